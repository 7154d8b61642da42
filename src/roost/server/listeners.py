"""Listener selection and shutdown.

``run()`` binds the prepared app to the first available ASGI server: the
configured preference first, then a fixed fallback list. Each server is
wrapped in a small adapter exposing ``serve()`` and, where the server
supports it, ``stop()`` (drain) and ``stop_now()`` (hard stop).

Servers are imported lazily; none of them is required to import roost.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import os
import signal
from collections.abc import Callable
from typing import Any, Protocol, TypeAlias

from roost.errors import ConfigurationError

logger = logging.getLogger("roost.server")

#: Tried in order after the configured preference.
FALLBACK_SERVERS: tuple[str, ...] = ("pounce", "uvicorn", "hypercorn")


class Listener(Protocol):
    """A bound server. Adapters may also define ``stop()`` / ``stop_now()``."""

    def serve(self) -> None: ...


ListenerFactory: TypeAlias = Callable[[Any, str, int], Listener]


class PounceListener:
    """pounce, the free-threading ASGI server."""

    __slots__ = ("_server",)

    def __init__(self, app: Any, host: str, port: int) -> None:
        from pounce.config import ServerConfig
        from pounce.server import Server

        self._server = Server(ServerConfig(host=host, port=port, workers=1), app)

    def serve(self) -> None:
        self._server.run()

    def stop(self) -> None:
        self._server.shutdown()


class UvicornListener:
    """uvicorn, driven through ``uvicorn.Server``."""

    __slots__ = ("_server",)

    def __init__(self, app: Any, host: str, port: int) -> None:
        import uvicorn

        self._server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, lifespan="on"))

    def serve(self) -> None:
        self._server.run()

    def stop(self) -> None:
        self._server.should_exit = True

    def stop_now(self) -> None:
        self._server.force_exit = True
        self._server.should_exit = True


class HypercornListener:
    """hypercorn, served on an asyncio loop with a shutdown trigger."""

    __slots__ = ("_app", "_config", "_loop", "_shutdown")

    def __init__(self, app: Any, host: str, port: int) -> None:
        from hypercorn.config import Config

        self._app = app
        self._config = Config()
        self._config.bind = [f"{host}:{port}"]
        self._loop: asyncio.AbstractEventLoop | None = None
        self._shutdown: asyncio.Event | None = None

    def serve(self) -> None:
        asyncio.run(self._serve())

    async def _serve(self) -> None:
        from hypercorn.asyncio import serve

        self._loop = asyncio.get_running_loop()
        self._shutdown = asyncio.Event()
        await serve(self._app, self._config, shutdown_trigger=self._shutdown.wait)

    def stop(self) -> None:
        if self._loop is not None and self._shutdown is not None:
            self._loop.call_soon_threadsafe(self._shutdown.set)


#: server name -> (module that must be importable, adapter)
SERVERS: dict[str, tuple[str, ListenerFactory]] = {
    "pounce": ("pounce.server", PounceListener),
    "uvicorn": ("uvicorn", UvicornListener),
    "hypercorn": ("hypercorn.asyncio", HypercornListener),
}


def server_candidates(preferred: str | None) -> tuple[str, ...]:
    """The preference (if any) followed by the fallbacks, without duplicates."""
    names = [preferred, *FALLBACK_SERVERS] if preferred else list(FALLBACK_SERVERS)
    return tuple(dict.fromkeys(names))


def detect_server(preferred: str | None = None) -> tuple[str, ListenerFactory]:
    """Return ``(name, factory)`` for the first importable server.

    Raises ``ConfigurationError`` if none of the candidates is installed.
    """
    candidates = server_candidates(preferred)
    for name in candidates:
        entry = SERVERS.get(name)
        if entry is None:
            logger.warning("Unknown server %r; trying the next one", name)
            continue
        module, factory = entry
        try:
            importlib.import_module(module)
        except ImportError:
            logger.debug("Server %r is not installed", name)
            continue
        return name, factory

    msg = (
        f"No server available to run the app (tried: {', '.join(candidates)}). "
        "Install one with: pip install roost[server]"
    )
    raise ConfigurationError(msg)


def stop_listener(listener: object) -> None:
    """Stop *listener*, as cleanly as it allows.

    Prefers ``stop_now()``, then ``stop()``. A listener with neither is
    stopped by exiting the process.
    """
    stop_now = getattr(listener, "stop_now", None)
    if callable(stop_now):
        logger.info("Stopping server")
        stop_now()
        return
    stop = getattr(listener, "stop", None)
    if callable(stop):
        logger.info("Stopping server")
        stop()
        return
    logger.warning("Server cannot be stopped gracefully; exiting")
    os._exit(1)


def install_signal_handlers(listener: object) -> None:
    """Stop *listener* on ``SIGINT`` and ``SIGTERM``."""

    def on_signal(signum: int, frame: object) -> None:
        logger.info("Received %s", signal.Signals(signum).name)
        stop_listener(listener)

    signal.signal(signal.SIGINT, on_signal)
    signal.signal(signal.SIGTERM, on_signal)
