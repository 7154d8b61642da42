"""Tests for roost.routing: route tables, the shared router, dispatch."""

import pytest

from roost.errors import ConfigurationError, MethodNotAllowed, NotFound
from roost.exchange import NOT_ROUTED, Exchange, Halt
from roost.http.response import Response
from roost.routing.builder import RouteBuilder
from roost.routing.dispatch import negotiate
from roost.routing.route import Route
from roost.routing.router import Router
from roost.routing.table import RouteTable, parse_path


def _handler() -> str:
    return "ok"


def _route(path: str, methods: frozenset[str] | None = None) -> Route:
    return Route(path=path, handler=_handler, methods=methods or frozenset({"GET"}))


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]
        assert not any(s.is_param for s in segments)

    def test_param(self) -> None:
        segments = parse_path("/users/{id}")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "str"

    def test_typed_param(self) -> None:
        assert parse_path("/users/{id:int}")[1].param_type == "int"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_unknown_converter(self) -> None:
        with pytest.raises(ConfigurationError, match="uuid"):
            parse_path("/items/{id:uuid}")


class TestRouteTable:
    def test_static_match(self) -> None:
        table = RouteTable([_route("/"), _route("/about")])
        assert table.match("GET", "/about").route.path == "/about"
        assert table.match("GET", "/").route.path == "/"

    def test_param_match(self) -> None:
        table = RouteTable([_route("/users/{id:int}")])
        match = table.match("GET", "/users/42")
        assert match.path_params == {"id": "42"}

    def test_typed_param_rejects(self) -> None:
        table = RouteTable([_route("/users/{id:int}")])
        with pytest.raises(NotFound):
            table.match("GET", "/users/ada")

    def test_static_beats_param(self) -> None:
        table = RouteTable([_route("/users/{name}"), _route("/users/me")])
        assert table.match("GET", "/users/me").route.path == "/users/me"

    def test_catch_all(self) -> None:
        table = RouteTable([_route("/files/{rest:path}")])
        assert table.match("GET", "/files/a/b/c.txt").path_params == {"rest": "a/b/c.txt"}

    def test_not_found(self) -> None:
        with pytest.raises(NotFound):
            RouteTable([_route("/")]).match("GET", "/missing")

    def test_method_not_allowed(self) -> None:
        table = RouteTable([_route("/items", frozenset({"GET", "POST"}))])
        with pytest.raises(MethodNotAllowed) as exc_info:
            table.match("DELETE", "/items")
        assert exc_info.value.headers == (("Allow", "GET, POST"),)

    def test_head_falls_back_to_get(self) -> None:
        table = RouteTable([_route("/items")])
        assert table.match("HEAD", "/items").route.path == "/items"

    def test_handlers_are_read_only(self) -> None:
        builder = RouteBuilder()
        builder.handler(404, _handler)
        table = builder.build()
        with pytest.raises(TypeError):
            table.handlers[500] = table.handlers[404]  # type: ignore[index]


class TestRouteBuilder:
    def test_decorator_and_direct(self) -> None:
        builder = RouteBuilder()
        builder.get("/a", _handler)

        @builder.post("/b")
        def create():
            return "created"

        table = builder.build()
        assert [(r.path, r.methods) for r in table.routes] == [
            ("/a", frozenset({"GET"})),
            ("/b", frozenset({"POST"})),
        ]

    def test_named_handler_with_status(self) -> None:
        builder = RouteBuilder()
        builder.handler("maintenance", _handler, status=503)
        handlers = builder.build().handlers

        assert handlers["maintenance"].status == 503
        assert handlers[503] is handlers["maintenance"]

    def test_code_handler(self) -> None:
        builder = RouteBuilder()
        builder.handler(404, _handler)
        assert builder.build().handlers[404].status == 404

    def test_extend_keeps_existing_handlers(self) -> None:
        first = RouteBuilder()
        first.handler(404, lambda: "first")
        second = RouteBuilder()
        second.handler(404, lambda: "second")

        first.extend(list(second.routes), second.handlers)

        assert first.build().handlers[404].handler() == "first"


class TestRouter:
    async def test_dispatch_runs_handler(self, make_exchange) -> None:
        builder = RouteBuilder()
        builder.get("/users/{id:int}", lambda id: f"user {id}")
        exchange = make_exchange("GET", "/users/7", router=Router(builder.build()))

        outcome = await exchange.router.dispatch(exchange)

        assert isinstance(outcome, Response)
        assert outcome.text == "user 7"
        assert exchange.routed
        assert exchange.request.path_params == {"id": "7"}

    async def test_annotation_converts_param(self, make_exchange) -> None:
        seen: list[object] = []

        def show(id: int):
            seen.append(id)
            return "ok"

        builder = RouteBuilder()
        builder.get("/users/{id:int}", show)
        exchange = make_exchange("GET", "/users/7", router=Router(builder.build()))
        await exchange.router.dispatch(exchange)

        assert seen == [7]

    async def test_dispatch_unmatched(self, make_exchange) -> None:
        exchange = make_exchange("GET", "/missing")
        assert await exchange.router.dispatch(exchange) is NOT_ROUTED
        assert not exchange.routed

    async def test_method_not_allowed_halts_405(self, make_exchange) -> None:
        builder = RouteBuilder()
        builder.get("/items", _handler)
        exchange = make_exchange("POST", "/items", router=Router(builder.build()))

        outcome = await exchange.router.dispatch(exchange)

        assert isinstance(outcome, Halt)
        assert outcome.response.status == 405
        assert outcome.response.header("Allow") == "GET"

    async def test_load_swaps_table(self, make_exchange) -> None:
        router = Router()
        old_table = router.table
        builder = RouteBuilder()
        builder.get("/", _handler)
        router.load(builder.build())

        assert router.table is not old_table
        exchange = make_exchange(router=router)
        outcome = await router.dispatch(exchange)
        assert isinstance(outcome, Response)
        assert outcome.text == "ok"

    async def test_reroute_dispatches_current_request(self, make_exchange) -> None:
        builder = RouteBuilder()
        builder.get("/b", lambda: "b")
        exchange = make_exchange("GET", "/a", router=Router(builder.build()))
        exchange.request = exchange.request.rerouted("/b")

        outcome = await exchange.router.reroute(exchange)

        assert isinstance(outcome, Response)
        assert outcome.text == "b"


class TestNegotiate:
    def test_none_keeps_response(self, make_exchange) -> None:
        exchange = make_exchange()
        assert negotiate(None, exchange) is exchange.response

    def test_str(self, make_exchange) -> None:
        exchange = make_exchange()
        assert negotiate("hi", exchange).text == "hi"

    def test_dict_is_json(self, make_exchange) -> None:
        exchange = make_exchange()
        response = negotiate({"a": 1}, exchange)
        assert response.content_type == "application/json"
        assert response.text == '{"a": 1}'

    def test_tuple_status(self, make_exchange) -> None:
        exchange = make_exchange()
        response = negotiate(("created", 201), exchange)
        assert (response.status, response.text) == (201, "created")

    def test_tuple_status_headers(self, make_exchange) -> None:
        exchange = make_exchange()
        response = negotiate(("", 204, {"X-A": "1"}), exchange)
        assert response.status == 204
        assert response.header("X-A") == "1"

    def test_halt_passes_through(self, make_exchange) -> None:
        exchange = make_exchange()
        halt = exchange.halt()
        assert negotiate(halt, exchange) is halt

    def test_unsupported(self, make_exchange) -> None:
        with pytest.raises(TypeError, match="Cannot convert"):
            negotiate(object(), make_exchange())

    def test_exchange_param_by_annotation(self, make_exchange) -> None:
        from roost.routing.dispatch import build_handler_kwargs

        def handler(ex: Exchange, request):
            return None

        exchange = make_exchange()
        kwargs = build_handler_kwargs(handler, exchange)
        assert kwargs == {"ex": exchange, "request": exchange.request}
