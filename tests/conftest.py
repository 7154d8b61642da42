"""Shared fixtures for roost tests."""

from typing import Any

import pytest

from roost.config import AppConfig
from roost.exchange import Exchange
from roost.http.request import Request
from roost.routing.router import Router


def build_request(
    method: str = "GET",
    path: str = "/",
    *,
    headers: dict[str, str] | None = None,
    body: bytes = b"",
    query_string: bytes = b"",
) -> Request:
    """A Request built from a minimal ASGI scope."""
    scope: dict[str, Any] = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query_string,
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ],
        "client": ("127.0.0.1", 5000),
        "server": ("testserver", 80),
    }
    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request.from_asgi(scope, receive)


@pytest.fixture
def make_exchange():
    """Factory for exchanges against a bare router."""

    def factory(
        method: str = "GET",
        path: str = "/",
        *,
        router: Router | None = None,
        config: AppConfig | None = None,
        **kwargs: Any,
    ) -> Exchange:
        return Exchange(
            build_request(method, path, **kwargs),
            router=router or Router(),
            config=config or AppConfig(log=False),
        )

    return factory
