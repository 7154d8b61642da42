"""Request-scoped context via ContextVar.

``exchange_var`` holds the ``Exchange`` of the call in flight. The setup
unit sets it on entry and resets it on exit, so helpers deep inside
application code can reach the exchange without it being passed around.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. No locks needed, and concurrent calls never see each
    other's exchange.
"""

from contextvars import ContextVar

from roost.exchange import Exchange

exchange_var: ContextVar[Exchange] = ContextVar("roost_exchange")
"""The current exchange. Set by the setup unit."""


def get_exchange() -> Exchange:
    """Return the current exchange.

    Raises ``LookupError`` if called outside a request.
    """
    return exchange_var.get()
