"""Request logging unit.

Brackets everything inside it: attaches a ``RequestLogger`` to the
exchange, records a prologue, runs the rest of the chain and records an
epilogue (halted requests included). Errors are recorded and re-raised
untouched; the unit never changes what it observes.
"""

from roost.exchange import Exchange, Halt, Outcome
from roost.logger import RequestLogger
from roost.pipeline import Next


class RequestLogging:
    """Observer unit for the request/response cycle."""

    __slots__ = ("_kind",)
    name = "logging"

    def __init__(self, kind: str = "http") -> None:
        self._kind = kind

    async def __call__(self, exchange: Exchange, next: Next) -> Outcome:
        log = RequestLogger(self._kind)
        exchange.logger = log
        log.prologue(exchange.request)

        try:
            outcome = await next(exchange)
        except Exception as exc:
            log.record_error(exc)
            raise

        log.epilogue(outcome.response if isinstance(outcome, Halt) else outcome)
        return outcome
