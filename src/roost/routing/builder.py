"""Route declarations.

``RouteBuilder`` is what an app's ``core`` block receives. It records
routes and named handlers and compiles them into a ``RouteTable``::

    @app.core
    def routes(r: RouteBuilder) -> None:
        r.get("/", index)
        r.post("/posts", create_post)
        r.handler(404, not_found)
        r.handler("maintenance", maintenance_page, status=503)
"""

from collections.abc import Callable
from typing import Any, TypeAlias

from roost._internal.types import ErrorHandler, Handler
from roost.routing.route import NamedHandler, Route
from roost.routing.table import RouteTable


class RouteBuilder:
    """Collects routes and handlers for one compilation of the route table."""

    __slots__ = ("_handlers", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._handlers: dict[str | int, NamedHandler] = {}

    def route(
        self,
        path: str,
        handler: Handler | None = None,
        *,
        methods: list[str] | tuple[str, ...] | None = None,
        name: str | None = None,
    ) -> Any:
        """Register *handler* for *path*. Usable directly or as a decorator."""

        def register(func: Handler) -> Handler:
            upper = frozenset(m.upper() for m in (methods or ("GET",)))
            self._routes.append(Route(path=path, handler=func, methods=upper, name=name))
            return func

        if handler is None:
            return register
        return register(handler)

    def get(self, path: str, handler: Handler | None = None, **kwargs: Any) -> Any:
        return self.route(path, handler, methods=("GET",), **kwargs)

    def post(self, path: str, handler: Handler | None = None, **kwargs: Any) -> Any:
        return self.route(path, handler, methods=("POST",), **kwargs)

    def put(self, path: str, handler: Handler | None = None, **kwargs: Any) -> Any:
        return self.route(path, handler, methods=("PUT",), **kwargs)

    def patch(self, path: str, handler: Handler | None = None, **kwargs: Any) -> Any:
        return self.route(path, handler, methods=("PATCH",), **kwargs)

    def delete(self, path: str, handler: Handler | None = None, **kwargs: Any) -> Any:
        return self.route(path, handler, methods=("DELETE",), **kwargs)

    def handler(
        self,
        name_or_code: str | int,
        handler: ErrorHandler | None = None,
        *,
        status: int | None = None,
    ) -> Any:
        """Register a status or named handler.

        A handler registered under a name with a *status* is reachable both
        by the name and by the status code.
        """

        def register(func: ErrorHandler) -> ErrorHandler:
            code = status if status is not None else (
                name_or_code if isinstance(name_or_code, int) else None
            )
            entry = NamedHandler(key=name_or_code, handler=func, status=code)
            self._handlers[name_or_code] = entry
            if code is not None and not isinstance(name_or_code, int):
                self._handlers.setdefault(code, entry)
            return func

        if handler is None:
            return register
        return register(handler)

    def extend(self, routes: list[Route], handlers: dict[str | int, NamedHandler]) -> None:
        """Add already-built routes and handlers (from ``@app.route``)."""
        self._routes.extend(routes)
        for key, entry in handlers.items():
            self._handlers.setdefault(key, entry)

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    @property
    def handlers(self) -> dict[str | int, NamedHandler]:
        return dict(self._handlers)

    def build(self) -> RouteTable:
        return RouteTable(self._routes, self._handlers)


CoreBlock: TypeAlias = Callable[[RouteBuilder], Any]
