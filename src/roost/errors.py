"""Roost exception hierarchy.

Shared across the router, the pipeline, the app and middleware so every
module raises and catches the same types.

``Halt`` is deliberately absent: halting is a return value
(``roost.exchange.Halt``), not an exception.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when the app cannot be prepared or run.

    Typically raised from ``App.prepare()`` or ``App.run()`` at startup,
    e.g. when no listener implementation is installed.
    """


class RerouteLimitExceeded(RoostError):
    """Raised when a request is rerouted more times than allowed.

    Guards against ``reroute("/a")`` -> ``reroute("/b")`` -> ``reroute("/a")``
    loops that would otherwise recurse until the interpreter gives up.
    """

    def __init__(self, path: str, depth: int) -> None:
        super().__init__(f"Reroute to {path!r} exceeds the maximum depth of {depth}")
        self.path = path
        self.depth = depth


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers or middleware. The routing unit catches these and
    runs the matching status handler through ``invoke_handler``.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """404: nothing handled the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """405: route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
