"""Immutable HTTP request.

Frozen metadata with async body access. Rerouting does not mutate a
request; it swaps the exchange's request for a copy with a new path and
method (see ``Request.rerouted``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from roost._internal.asgi import Receive, Scope
from roost.http.cookies import parse_cookies
from roost.http.headers import Headers
from roost.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.text()``, ``.json()``.

    Incoming cookies are parsed once in ``from_asgi``. Outgoing cookies are
    not set here but on the exchange (``exchange.cookies``).
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: Mapping[str, str]
    client: tuple[str, int] | None
    cookies: Mapping[str, str]
    scope: Scope = field(repr=False, compare=False)

    # Private: ASGI receive callable the body is read from
    _receive: Receive = field(repr=False, compare=False)

    # Private: mutable cache for the body. Shared between a request and its
    # rerouted copies so the body is only consumed once.
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Request path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    # -- Derived copies --

    def rerouted(self, path: str, method: str | None = None) -> Request:
        """Return a copy pointing at *path* (and optionally *method*)."""
        return replace(
            self,
            path=path,
            method=(method or self.method).upper(),
            path_params={},
        )

    def with_method(self, method: str) -> Request:
        return replace(self, method=method.upper())

    def with_path_params(self, path_params: Mapping[str, str]) -> Request:
        return replace(self, path_params=path_params)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached: the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks: list[bytes] = []
        while True:
            message = await self._receive()
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON."""
        import json as json_module

        raw = await self.body()
        return json_module.loads(raw)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            client=tuple(client) if client else None,
            cookies=parse_cookies(headers.get("cookie", "")),
            scope=scope,
            _receive=receive,
        )
