"""Built-in units that make up the fixed skeleton of the pipeline."""

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs

from roost._internal.invoke import invoke
from roost.context import exchange_var
from roost.exchange import NOT_ROUTED, Exchange, Halt, Outcome
from roost.pipeline import Next

logger = logging.getLogger("roost.server")

OVERRIDE_HEADER = "x-http-method-override"
OVERRIDE_PARAM = "_method"
OVERRIDABLE_METHODS = frozenset({"GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"})


class MethodOverride:
    """Let HTML forms use methods other than GET and POST.

    A ``POST`` carrying ``_method=DELETE`` in an URL-encoded body, or an
    ``X-HTTP-Method-Override: DELETE`` header, is treated as ``DELETE``.
    The body field wins over the header.
    """

    __slots__ = ()
    name = "method_override"

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        request = exchange.request
        if request.method == "POST":
            override = await self._override(exchange)
            if override in OVERRIDABLE_METHODS:
                exchange.request = request.with_method(override)
        return await next(exchange)

    async def _override(self, exchange: Exchange) -> str | None:
        request = exchange.request
        content_type = request.content_type or ""
        if content_type.startswith("application/x-www-form-urlencoded"):
            fields = parse_qs((await request.body()).decode("latin-1"))
            values = fields.get(OVERRIDE_PARAM)
            if values:
                return values[0].upper()
        header = request.headers.get(OVERRIDE_HEADER)
        return header.upper() if header else None


class Setup:
    """Bind the exchange to ``exchange_var`` for the duration of the call."""

    __slots__ = ()
    name = "setup"

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        token = exchange_var.set(exchange)
        try:
            return await next(exchange)
        finally:
            exchange_var.reset(token)


class Reloader:
    """Reload the app's routes and views before every request.

    Meant for development (``config.auto_reload``). The reload swaps a new
    route table into the shared router; requests already in flight keep
    the table they started with.
    """

    __slots__ = ("_reload",)
    name = "reloader"

    def __init__(self, reload: Callable[[], Any]) -> None:
        self._reload = reload

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        await invoke(self._reload)
        return await next(exchange)


class Routing:
    """Dispatch the exchange through the router.

    A handler that halts ends the chain. Otherwise the chain continues, so
    ``after("routing")`` hooks see the routed response, and the not-found
    unit can tell whether anything matched.
    """

    __slots__ = ()
    name = "routing"

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        outcome = await exchange.router.dispatch(exchange)
        if isinstance(outcome, Halt):
            return outcome
        if outcome is NOT_ROUTED:
            logger.debug("No route for %s %s", exchange.request.method, exchange.request.path)
        return await next(exchange)


class NotFound:
    """Last unit: respond 404 when neither a route nor a view handled the request.

    Runs the app's ``404`` handler when one is registered.
    """

    __slots__ = ()
    name = "not_found"

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        if exchange.routed or exchange.view is not None:
            return await next(exchange)
        return await exchange.invoke_handler(404)
