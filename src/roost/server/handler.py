"""ASGI handler: the one place where an ASGI call becomes an exchange.

Builds the ``Request`` from the scope, wraps it in a fresh ``Exchange``,
runs the pipeline and sends the finalized response. This is also the halt
boundary: a ``Halt`` coming back from the pipeline is unwrapped here.
"""

from roost._internal.asgi import Receive, Scope, Send
from roost.config import AppConfig
from roost.exchange import Exchange
from roost.http.request import Request
from roost.pipeline import Pipeline
from roost.routing.router import Router
from roost.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    pipeline: Pipeline,
    router: Router,
    config: AppConfig,
) -> Exchange | None:
    """Process a single HTTP request through the pipeline.

    Returns the finished exchange. Errors raised inside the pipeline
    propagate to the server after the logging unit has recorded them.
    """
    if scope["type"] != "http":
        return None

    request = Request.from_asgi(scope, receive)
    exchange = Exchange(request, router=router, config=config)

    await pipeline(exchange)

    response = exchange.finalize()
    await send_response(response, send, method=request.method)
    return exchange
