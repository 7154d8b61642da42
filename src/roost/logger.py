"""Request-scoped logging.

A ``RequestLogger`` tags every record with a short request id so the lines
of one request can be picked out of interleaved output::

    [3f9a1c2e] GET /posts (for 127.0.0.1)
    [3f9a1c2e] 200 OK (4.21ms)
"""

import logging
import time
import uuid
from collections.abc import MutableMapping
from http import HTTPStatus
from typing import Any

from roost.http.request import Request
from roost.http.response import Response

logger = logging.getLogger("roost.request")

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def configure_logging(level: str) -> None:
    """Apply *level* to the ``roost`` logger namespace."""
    try:
        numeric = LOG_LEVELS[level.lower()]
    except KeyError:
        msg = f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}"
        raise ValueError(msg) from None
    logging.getLogger("roost").setLevel(numeric)


class RequestLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter bound to one request."""

    def __init__(self, kind: str = "http", base: logging.Logger | None = None) -> None:
        self.request_id = uuid.uuid4().hex[:8]
        self.kind = kind
        self.started = time.perf_counter()
        super().__init__(base or logger, {"request_id": self.request_id, "kind": kind})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return f"[{self.request_id}] {msg}", kwargs

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000

    def prologue(self, request: Request) -> None:
        """Record the start of a request."""
        client = request.client[0] if request.client else "unknown"
        self.info("%s %s (for %s)", request.method, request.url, client)

    def epilogue(self, response: Response) -> None:
        """Record the end of a request with its status and duration."""
        try:
            reason = HTTPStatus(response.status).phrase
        except ValueError:
            reason = ""
        self.info("%d %s (%.2fms)", response.status, reason, self.elapsed_ms)

    def record_error(self, error: BaseException) -> None:
        """Record an error raised while handling the request."""
        self.error(
            "%s: %s (%.2fms)",
            type(error).__name__,
            error,
            self.elapsed_ms,
            exc_info=(type(error), error, error.__traceback__),
        )
