"""Roost application class.

Mutable during setup (routes, handlers, hooks, middleware, configuration).
Prepared exactly once, by ``stage()``, ``run()`` or the first ASGI call,
after which registration raises and the pipeline never changes.

Usage::

    app = App()

    @app.core
    def routes(r: RouteBuilder) -> None:
        r.get("/", lambda: "hello")
        r.handler(404, lambda: "nothing here")

    app.configure("production", log_level="warning", auto_reload=False)
    app.run("production")
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.types import ErrorHandler, Handler
from roost.config import AppConfig, ConfigBlock, normalize_environments, overrides_block, resolve_config
from roost.exchange import Exchange
from roost.lifecycle import ApplicationState, Lifecycle
from roost.logger import configure_logging
from roost.middleware import (
    MethodOverride,
    NotFound,
    Presentation,
    Reloader,
    RequestLogging,
    Routing,
    Setup,
    StaticFiles,
)
from roost.pipeline import MiddlewareRegistry, Pipeline, PipelineBuilder, Unit, build_pipeline
from roost.presenter import Presenter
from roost.routing.builder import CoreBlock, RouteBuilder
from roost.routing.router import Router
from roost.server.handler import handle_request

logger = logging.getLogger("roost.server")

MiddlewareBlock: TypeAlias = Callable[[PipelineBuilder], Any]


@dataclass(frozen=True, slots=True)
class Application:
    """The prepared runtime: resolved config, pipeline and router.

    Created once per ``App``. Everything here is read-only; the router's
    table is the only thing a reload replaces.
    """

    config: AppConfig
    environments: tuple[str, ...]
    pipeline: Pipeline
    router: Router

    async def dispatch(self, scope: Scope, receive: Receive, send: Send) -> Exchange | None:
        return await handle_request(
            scope,
            receive,
            send,
            pipeline=self.pipeline,
            router=self.router,
            config=self.config,
        )


class App:
    """The roost application.

    Thread safety:
        Registration happens at import time, single-threaded. Preparation
        holds the lifecycle lock with a double check, so two workers
        racing on the first request still build the pipeline once.
    """

    __slots__ = (
        "_application",
        "_builds",
        "_config_blocks",
        "_core_blocks",
        "_declared",
        "_middleware_blocks",
        "_presenter",
        "_registry",
        "_router",
        "_state",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._state = ApplicationState()
        self._config_blocks: dict[str, list[ConfigBlock]] = {}
        self._core_blocks: list[CoreBlock] = []
        self._declared = RouteBuilder()
        self._middleware_blocks: list[MiddlewareBlock] = []
        self._registry = MiddlewareRegistry()
        self._presenter: Presenter | None = None
        self._router = Router()
        self._application: Application | None = None
        self._builds = 0

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._declared.route(path, func, methods=methods, name=name)
            return func

        return decorator

    def core(self, block: CoreBlock) -> CoreBlock:
        """Register a route declaration block.

        Blocks run every time the route table is (re)built and receive a
        fresh ``RouteBuilder``.
        """
        self._check_not_frozen()
        self._core_blocks.append(block)
        return block

    def handler(
        self,
        name_or_code: str | int,
        *,
        status: int | None = None,
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register a named or status handler via decorator.

        Handlers declared in a ``core`` block take precedence over ones
        registered here under the same key.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._declared.handler(name_or_code, func, status=status)
            return func

        return decorator

    # -- Middleware --

    def before(self, step: str, *units: Unit) -> None:
        """Run *units* right before the named step (``"routing"``, ``"presentation"``)."""
        self._check_not_frozen()
        self._registry.before(step, units)

    def after(self, step: str, *units: Unit) -> None:
        """Run *units* right after the named step."""
        self._check_not_frozen()
        self._registry.after(step, units)

    def middleware(self, block: MiddlewareBlock) -> MiddlewareBlock:
        """Register a block that adds project units behind ``setup``."""
        self._check_not_frozen()
        self._middleware_blocks.append(block)
        return block

    def add_middleware(self, unit: Unit, *, name: str | None = None) -> None:
        """Add a single project unit to the pipeline."""
        self._check_not_frozen()

        def use(builder: PipelineBuilder) -> None:
            builder.use(unit, name=name)

        self._middleware_blocks.append(use)

    # -- Configuration --

    def configure(
        self,
        name: str,
        block: ConfigBlock | None = None,
        **overrides: Any,
    ) -> Any:
        """Register configuration for the environment *name*.

        Usable three ways::

            app.configure("test", log=False)

            app.configure("development", lambda c: replace(c, auto_reload=True))

            @app.configure("production")
            def production(config: AppConfig) -> AppConfig:
                return replace(config, log_level="warning")

        A block runs before the keyword overrides registered in the same call.
        """
        self._check_not_frozen()

        def register(func: ConfigBlock) -> ConfigBlock:
            self._config_blocks.setdefault(name, []).append(func)
            return func

        if block is None and not overrides:
            return register
        if block is not None:
            register(block)
        if overrides:
            register(overrides_block(overrides))
        return block

    def presenter(self, presenter: Presenter) -> Presenter:
        """Use *presenter* to render views. Adds the presentation step."""
        self._check_not_frozen()
        self._presenter = presenter
        return presenter

    # -- Lifecycle --

    @property
    def state(self) -> ApplicationState:
        return self._state

    @property
    def application(self) -> Application | None:
        """The prepared runtime, or None before ``prepare()``."""
        return self._application

    @property
    def router(self) -> Router:
        return self._router

    @property
    def builds(self) -> int:
        """How many times a pipeline was built. Never more than one."""
        return self._builds

    def stage(self, *environments: Any) -> Application:
        """Prepare the app for *environments* without serving it.

        Calling ``stage()`` again is a no-op that returns the prepared app.
        """
        application = self.prepare(*environments)
        if self._state.enter(Lifecycle.STAGED):
            logger.debug("Staged app")
        return application

    def run(
        self,
        *environments: Any,
        host: str | None = None,
        port: int | None = None,
    ) -> None:
        """Prepare the app and serve it until the listener stops.

        Picks the first installed server (``config.server``, then pounce,
        uvicorn and hypercorn). ``SIGINT``/``SIGTERM`` stop it. Calling
        ``run()`` on an app that is already running does nothing. The app
        is marked running only once a listener is bound, so a failed
        ``run()`` raises again when retried.
        """
        if self._state.running:
            return

        from roost.server.listeners import detect_server, install_signal_handlers

        application = self.prepare(*environments)
        config = application.config
        bind_host = host if host is not None else config.host
        bind_port = port if port is not None else config.port

        name, factory = detect_server(config.server)
        with self._state.lock:
            if self._state.running:
                return
            listener = factory(self, bind_host, bind_port)
            self._state.enter(Lifecycle.RUNNING)

        install_signal_handlers(listener)
        logger.info("Serving on http://%s:%d (%s)", bind_host, bind_port, name)
        listener.serve()

    def prepare(self, *environments: Any) -> Application:
        """Resolve config, load routes and build the pipeline, once.

        Later calls return the existing ``Application`` whatever
        environments they name.
        """
        application = self._application
        if application is not None:
            return application
        with self._state.lock:
            if self._application is not None:
                return self._application
            names = normalize_environments(environments, self.config.default_environment)
            self._application = self._prepare(names)
            self._state.enter(Lifecycle.PREPARED)
            return self._application

    def reload(self) -> None:
        """Rebuild the route table from the route declarations and reload views.

        The new table replaces the old one in the shared router in one step.
        """
        builder = RouteBuilder()
        for block in self._core_blocks:
            block(builder)
        builder.extend(list(self._declared.routes), self._declared.handlers)
        self._router.load(builder.build())
        if self._presenter is not None:
            self._presenter.load()

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Prepares the app for its default environment on the first call if
        it was not staged explicitly.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        application = self.prepare()
        await application.dispatch(scope, receive, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self.prepare()
                except Exception as exc:
                    logger.exception("App failed to prepare")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _prepare(self, environments: tuple[str, ...]) -> Application:
        """Build the runtime. MUST only be called while holding the state lock."""
        config = resolve_config(self.config, self._config_blocks, environments)
        if config.log:
            configure_logging(config.log_level)

        self.reload()

        project = PipelineBuilder()
        for block in self._middleware_blocks:
            block(project)

        self._registry.freeze()
        pipeline = build_pipeline(
            config,
            self._registry,
            _Units(self, config),
            project=project.entries,
        )
        self._builds += 1
        logger.info("Prepared app for %s: %r", ", ".join(environments), pipeline)
        return Application(
            config=config,
            environments=environments,
            pipeline=pipeline,
            router=self._router,
        )

    def _check_not_frozen(self) -> None:
        if self._state.prepared:
            msg = (
                "Cannot modify the app after it has been prepared. "
                "Register routes, handlers, hooks, and configuration before "
                "calling app.stage() or app.run()."
            )
            raise RuntimeError(msg)

    def __repr__(self) -> str:
        return f"<App {self._state.phase!r} routes={len(self._router.table.routes)}>"


class _Units:
    """Built-in units for one prepared config."""

    __slots__ = ("_app", "_config")

    def __init__(self, app: App, config: AppConfig) -> None:
        self._app = app
        self._config = config

    @property
    def has_presenter(self) -> bool:
        return self._app._presenter is not None

    def method_override(self) -> Unit:
        return MethodOverride()

    def setup(self) -> Unit:
        return Setup()

    def static(self) -> Unit:
        return StaticFiles(self._config.static_dir, self._config.static_url)

    def logging(self) -> Unit:
        return RequestLogging()

    def reloader(self) -> Unit:
        return Reloader(self._app.reload)

    def presentation(self) -> Unit:
        assert self._app._presenter is not None
        return Presentation(self._app._presenter)

    def routing(self) -> Unit:
        return Routing()

    def not_found(self) -> Unit:
        return NotFound()
