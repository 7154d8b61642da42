"""Tests for the method override and setup units."""

from roost.app import App
from roost.config import AppConfig
from roost.context import exchange_var
from roost.middleware.builtin import MethodOverride, Setup
from roost.routing.builder import RouteBuilder
from roost.testing import TestClient


def _app() -> App:
    app = App(AppConfig(log=False, static=False))

    @app.core
    def routes(r: RouteBuilder) -> None:
        r.post("/items/{id}", lambda id: f"posted {id}")
        r.delete("/items/{id}", lambda id: f"deleted {id}")
        r.put("/items/{id}", lambda id: f"replaced {id}")

    return app


class TestMethodOverride:
    async def test_form_field(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.post("/items/1", form={"_method": "delete"})

        assert response.text == "deleted 1"

    async def test_header(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.post(
                "/items/1", headers={"X-HTTP-Method-Override": "PUT"}
            )

        assert response.text == "replaced 1"

    async def test_form_field_wins_over_header(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.post(
                "/items/1",
                form={"_method": "DELETE"},
                headers={"X-HTTP-Method-Override": "PUT"},
            )

        assert response.text == "deleted 1"

    async def test_disallowed_method_ignored(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.post("/items/1", form={"_method": "TRACE"})

        assert response.text == "posted 1"

    async def test_only_post_is_overridden(self, make_exchange) -> None:
        exchange = make_exchange("GET", "/", headers={"X-HTTP-Method-Override": "DELETE"})

        async def next(ex):
            return ex.response

        await MethodOverride()(exchange, next)

        assert exchange.request.method == "GET"

    async def test_body_still_readable(self) -> None:
        app = App(AppConfig(log=False, static=False))

        @app.route("/echo", methods=["POST"])
        async def echo(request):
            return await request.text()

        async with TestClient(app) as client:
            response = await client.post("/echo", form={"name": "ada"})

        assert response.text == "name=ada"


class TestSetup:
    async def test_binds_and_resets(self, make_exchange) -> None:
        exchange = make_exchange()
        seen = []

        async def next(ex):
            seen.append(exchange_var.get())
            return ex.response

        await Setup()(exchange, next)

        assert seen == [exchange]
        assert exchange_var.get(None) is None
