"""The shared router.

One ``Router`` serves every request of an application. It holds a
reference to the current immutable ``RouteTable``; ``load()`` replaces
that reference in a single assignment. Each dispatch reads the reference
once and works against that snapshot, so a reload racing with in-flight
requests never exposes a half-built table. Requests that started before
the swap finish on the old table.
"""

import logging
from http import HTTPStatus

from roost.errors import HTTPError, MethodNotAllowed, NotFound
from roost.exchange import NOT_ROUTED, Exchange, Halt, Outcome, _NotRouted
from roost.http.response import Response
from roost.routing.dispatch import call_handler, negotiate
from roost.routing.table import RouteTable

logger = logging.getLogger("roost.server")


def _reason(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"Error {status}"


class Router:
    """Routes exchanges to handlers using the current route table.

    Usage::

        router = Router()
        router.load(builder.build())
        outcome = await router.dispatch(exchange)
    """

    __slots__ = ("_table",)

    def __init__(self, table: RouteTable | None = None) -> None:
        self._table = table if table is not None else RouteTable()

    @property
    def table(self) -> RouteTable:
        return self._table

    def load(self, table: RouteTable) -> None:
        """Swap in a new route table."""
        self._table = table
        logger.debug("Loaded %r", table)

    async def dispatch(self, exchange: Exchange) -> Outcome | _NotRouted:
        """Run the handler matching the exchange's request.

        Returns ``NOT_ROUTED`` when no route matches the path, so the
        pipeline can move on to the next unit.
        """
        table = self._table
        request = exchange.request
        try:
            match = table.match(request.method, request.path)
        except NotFound:
            return NOT_ROUTED
        except MethodNotAllowed as exc:
            exchange.routed = True
            return await self._handle(table, exchange, exc.status, error=exc)

        exchange.routed = True
        exchange.request = request.with_path_params(match.path_params)
        try:
            result = await call_handler(match.route.handler, exchange)
        except HTTPError as exc:
            return await self._handle(table, exchange, exc.status, error=exc)
        return negotiate(result, exchange)

    async def reroute(self, exchange: Exchange) -> Outcome | _NotRouted:
        """Dispatch again after ``exchange.reroute()`` replaced the request."""
        return await self.dispatch(exchange)

    async def handle(
        self,
        exchange: Exchange,
        name_or_code: str | int,
        *,
        error: BaseException | None = None,
    ) -> Halt:
        """Run the handler registered as *name_or_code*, then halt.

        Status codes without a handler produce a plain response with that
        status. Unknown names produce a 404.
        """
        return await self._handle(self._table, exchange, name_or_code, error=error)

    async def _handle(
        self,
        table: RouteTable,
        exchange: Exchange,
        name_or_code: str | int,
        *,
        error: BaseException | None = None,
    ) -> Halt:
        if exchange.halted:
            return exchange.halt()

        entry = table.handlers.get(name_or_code)
        status = entry.status if entry is not None else None
        if status is None and isinstance(name_or_code, int):
            status = name_or_code

        response = exchange.response
        if status is not None:
            response = response.with_status(status)
        if isinstance(error, HTTPError):
            response = response.with_headers(dict(error.headers))
        exchange.response = response

        if entry is None:
            if status is None:
                logger.debug("No handler named %r; responding 404", name_or_code)
                exchange.response = Response(body=_reason(404), status=404)
            else:
                exchange.response = exchange.response.with_body(_reason(status))
            return exchange.halt()

        result = await call_handler(entry.handler, exchange, error=error)
        outcome = negotiate(result, exchange)
        if isinstance(outcome, Halt):
            return outcome
        if status is not None and exchange.response.status == 200:
            # A handler that built a fresh Response keeps the handler's status
            # only if it set one explicitly.
            exchange.response = exchange.response.with_status(status)
        return exchange.halt()
