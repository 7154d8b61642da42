"""Handler invocation and return-value negotiation.

Handlers declare what they need by parameter name or annotation::

    def show(exchange: Exchange, id: int): ...
    def page(request): ...
    async def oops(exchange, error): ...

and may return any of the values ``negotiate`` understands.
"""

import inspect
import json as json_module
from collections.abc import Callable
from typing import Any

from roost._internal.invoke import invoke
from roost.exchange import NOT_ROUTED, Exchange, Halt, Outcome, _NotRouted
from roost.http.request import Request
from roost.http.response import Response


async def call_handler(
    handler: Callable[..., Any],
    exchange: Exchange,
    *,
    error: BaseException | None = None,
) -> Any:
    """Call *handler* with arguments resolved from its signature."""
    kwargs = build_handler_kwargs(handler, exchange, error=error)
    return await invoke(handler, **kwargs)


def build_handler_kwargs(
    handler: Callable[..., Any],
    exchange: Exchange,
    *,
    error: BaseException | None = None,
) -> dict[str, Any]:
    """Inspect the handler signature and build kwargs.

    Resolution order:
    1. ``exchange`` parameter (by name or ``Exchange`` annotation)
    2. ``request`` parameter (by name or ``Request`` annotation)
    3. ``error`` parameter (status handlers invoked for an exception)
    4. Path parameters (by name, converted to the annotated type)
    """
    sig = inspect.signature(handler, eval_str=True)
    path_params = exchange.request.path_params
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "exchange" or param.annotation is Exchange:
            kwargs[name] = exchange
        elif name == "request" or param.annotation is Request:
            kwargs[name] = exchange.request
        elif name == "error":
            kwargs[name] = error
        elif name in path_params:
            value = path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value

    return kwargs


def negotiate(value: Any, exchange: Exchange) -> Outcome | _NotRouted:
    """Fold a handler's return value into the exchange.

    Dispatch order:

    1. ``Halt``              -> pass through (the exchange is halted)
    2. ``NOT_ROUTED``        -> pass through (a reroute found nothing)
    3. ``None``              -> keep the current response
    4. ``Response``          -> replaces the current response
    5. ``str``               -> body of the current response
    6. ``bytes``             -> body, ``application/octet-stream``
    7. ``dict`` / ``list``   -> JSON body
    8. ``(value, int)``      -> negotiate value, override status
    9. ``(value, int, dict)`` -> negotiate value, override status + headers
    """
    match value:
        case Halt():
            return value
        case _NotRouted():
            return NOT_ROUTED
        case None:
            return exchange.response
        case Response():
            exchange.response = value
        case str():
            exchange.response = exchange.response.with_body(value)
        case bytes():
            exchange.response = exchange.response.with_body(value).with_content_type(
                "application/octet-stream"
            )
        case dict() | list():
            exchange.response = exchange.response.with_body(
                json_module.dumps(value)
            ).with_content_type("application/json")
        case (inner, int() as status):
            outcome = negotiate(inner, exchange)
            if isinstance(outcome, Halt | _NotRouted):
                return outcome
            exchange.response = exchange.response.with_status(status)
        case (inner, int() as status, dict() as headers):
            outcome = negotiate(inner, exchange)
            if isinstance(outcome, Halt | _NotRouted):
                return outcome
            exchange.response = exchange.response.with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return a Response, str, bytes, dict, list, tuple, Halt, or None."
            )
            raise TypeError(msg)
    return exchange.response
