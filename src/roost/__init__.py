"""Roost: request handling for web application hosts.

Stage an app once, then run every request through a pipeline built from
its configuration: static files, logging, presentation, routing, and
whatever units the project adds around them.

Basic usage::

    from roost import App, RouteBuilder

    app = App()

    @app.core
    def routes(r: RouteBuilder) -> None:
        r.get("/", lambda: "Hello, World!")

    app.run()

Templates (``pip install roost[templates]``)::

    from roost import TemplatePresenter
    app.presenter(TemplatePresenter("views"))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "Application",
    "ConfigurationError",
    "Exchange",
    "HTTPError",
    "Halt",
    "MethodNotAllowed",
    "NOT_ROUTED",
    "Next",
    "NotFound",
    "PipelineBuilder",
    "Request",
    "RerouteLimitExceeded",
    "Response",
    "RoostError",
    "RouteBuilder",
    "TemplatePresenter",
    "Unit",
    "get_exchange",
    "redirect_to",
    "send_data",
    "send_file",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name in ("App", "Application"):
        from roost import app as _app

        return getattr(_app, name)

    if name == "AppConfig":
        from roost.config import AppConfig

        return AppConfig

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name == "Response":
        from roost.http.response import Response

        return Response

    if name in ("Exchange", "Halt", "NOT_ROUTED", "redirect_to", "send_data", "send_file"):
        from roost import exchange as _exchange

        return getattr(_exchange, name)

    if name in ("Next", "PipelineBuilder", "Unit"):
        from roost import pipeline as _pipeline

        return getattr(_pipeline, name)

    if name == "RouteBuilder":
        from roost.routing.builder import RouteBuilder

        return RouteBuilder

    if name == "TemplatePresenter":
        from roost.presenter import TemplatePresenter

        return TemplatePresenter

    if name == "get_exchange":
        from roost.context import get_exchange

        return get_exchange

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "RerouteLimitExceeded",
        "RoostError",
    ):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
