"""Per-request exchange: request, response, and the control flow around them.

An ``Exchange`` is created for every inbound call and owned by that call
alone. Pipeline units and route handlers receive it and may replace its
response, ask the router to reroute, run a status handler, or halt.

Halting is a value, not an exception::

    def show(exchange: Exchange):
        if not exchange.session.get("user"):
            return redirect_to(exchange, "/login")   # sets the response, returns Halt
        return "secret"

``exchange.halt()`` freezes the current response into a ``Halt`` signal.
The pipeline stops calling inner units as soon as the exchange is halted
and hands the same signal back to every outer unit; the dispatch boundary
unwraps it and finalizes the response it carries.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeAlias

from roost.config import AppConfig
from roost.errors import RerouteLimitExceeded
from roost.http.cookies import materialize_cookies
from roost.http.request import Request
from roost.http.response import Response

if TYPE_CHECKING:
    from roost.routing.router import Router


logger = logging.getLogger("roost.server")


@dataclass(frozen=True, slots=True)
class Halt:
    """Early-return signal carrying the finalized response."""

    response: Response


class _NotRouted:
    """Sentinel returned by the router when no route matched."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_ROUTED"

    def __bool__(self) -> bool:
        return False


NOT_ROUTED = _NotRouted()

# What a pipeline unit (or the router) hands back outward.
Outcome: TypeAlias = Response | Halt


class Exchange:
    """Mutable per-request context.

    Attributes:
        request: The current request. Replaced (never mutated) by reroute.
        response: The response built so far. Starts as an empty 200.
        cookies: Outgoing cookies, materialized onto the response at the end
            of the call. ``None`` or ``""`` deletes a cookie.
        router: The shared router this exchange dispatches through.
        config: The prepared application config.
        logger: Request-scoped logger. The logging unit replaces the default
            with a ``RequestLogger``.
        routed: True once the router matched a route for this exchange.
        view: Template name a handler asked the presenter to render.
        view_context: Context for ``view``.
    """

    __slots__ = (
        "_halt",
        "config",
        "cookies",
        "logger",
        "request",
        "reroute_depth",
        "response",
        "routed",
        "router",
        "view",
        "view_context",
    )

    def __init__(
        self,
        request: Request,
        *,
        router: Router,
        config: AppConfig | None = None,
        response: Response | None = None,
    ) -> None:
        self.request = request
        self.response = response or Response()
        self.router = router
        self.config = config or AppConfig()
        self.cookies: dict[str, Any] = {}
        self.logger: logging.Logger | logging.LoggerAdapter[logging.Logger] = logger
        self.routed = False
        self.reroute_depth = 0
        self.view: str | None = None
        self.view_context: dict[str, Any] = {}
        self._halt: Halt | None = None

    # -- Control flow --

    @property
    def halted(self) -> bool:
        return self._halt is not None

    @property
    def halt_signal(self) -> Halt | None:
        """The ``Halt`` produced by ``halt()``, or None if still running."""
        return self._halt

    def halt(self) -> Halt:
        """Stop processing and keep the current response.

        Idempotent: halting twice returns the first signal, so a response
        set after the first halt is ignored.
        """
        if self._halt is None:
            self._halt = Halt(self.response)
        return self._halt

    async def reroute(self, path: str, method: str | None = None) -> Outcome | _NotRouted:
        """Dispatch the request again, through the router only, as *path*.

        The outer pipeline (setup, static, logging, ...) does not run again.
        The response built so far and the halt state are kept. Returns the
        router's outcome, or ``NOT_ROUTED`` if nothing matches *path*.

        ``config.max_reroute_depth`` bounds how deeply reroutes nest;
        reroutes made one after another each start from the same depth.
        """
        limit = self.config.max_reroute_depth
        if self.reroute_depth >= limit:
            raise RerouteLimitExceeded(path, limit)
        self.logger.debug("Rerouting %s %s -> %s", self.request.method, self.request.path, path)
        self.request = self.request.rerouted(path, method)
        self.routed = False
        self.reroute_depth += 1
        try:
            return await self.router.reroute(self)
        finally:
            self.reroute_depth -= 1

    async def invoke_handler(self, name_or_code: str | int) -> Halt:
        """Run a named or status handler against this exchange, then halt."""
        return await self.router.handle(self, name_or_code)

    def present(self, view: str, **context: Any) -> None:
        """Ask the presenter to render *view* once the handler returns."""
        self.view = view
        self.view_context = context

    # -- Request-scoped data --

    @property
    def session(self) -> dict[str, Any]:
        """The session attached by the server or session middleware."""
        session = self.request.scope.get("session")
        if session is None:
            session = {}
            self.request.scope["session"] = session
        return session

    # -- Finalization --

    def finalize(self) -> Response:
        """Return the response to send, with outgoing cookies applied."""
        response = self._halt.response if self._halt is not None else self.response
        if not self.cookies:
            return response
        return response.with_cookies(
            materialize_cookies(
                self.cookies,
                path=self.config.cookie_path,
                lifetime=self.config.cookie_lifetime,
            )
        )

    def __repr__(self) -> str:
        state = "halted" if self.halted else "open"
        return f"<Exchange {self.request.method} {self.request.path} {state}>"


# -- Response helpers --
#
# Each helper replaces the exchange's response wholesale and halts. Handlers
# return the result:  ``return send_data(exchange, payload, "text/csv")``


def send_file(
    exchange: Exchange,
    source: str | Path,
    send_as: str | None = None,
    content_type: str | None = None,
) -> Halt:
    """Respond with the contents of *source*. MIME type is guessed from *send_as*."""
    path = Path(source)
    name = send_as or path.name
    if content_type is None:
        content_type, _ = mimetypes.guess_type(name)
    body = path.read_bytes()
    current = exchange.response
    exchange.response = Response(
        body=body,
        status=current.status,
        content_type=content_type or "application/octet-stream",
        headers=current.without_header("Content-Type").headers,
    )
    return exchange.halt()


def send_data(
    exchange: Exchange,
    data: str | bytes,
    content_type: str,
    filename: str | None = None,
) -> Halt:
    """Respond with *data*, optionally as a download named *filename*."""
    current = exchange.response
    response = Response(
        body=data,
        status=current.status,
        content_type=content_type,
        headers=current.without_header("Content-Type").headers,
    )
    if filename:
        response = response.without_header("Content-Disposition").with_header(
            "Content-Disposition", f"attachment; filename={filename}"
        )
    exchange.response = response
    return exchange.halt()


def redirect_to(exchange: Exchange, location: str, status: int = 302) -> Halt:
    """Redirect to *location*, keeping headers already set on the response."""
    exchange.response = Response(
        body="",
        status=status,
        headers=exchange.response.without_header("Location").headers,
    ).with_header("Location", location)
    return exchange.halt()
