"""Pipeline units.

A unit is any callable matching::

    async def unit(exchange: Exchange, next: Next) -> Outcome: ...

No base class required. Built-in units:
    MethodOverride -- honour ``_method`` / ``X-HTTP-Method-Override`` on POST
    Setup -- bind the exchange to the request context
    StaticFiles -- serve files from a directory
    RequestLogging -- prologue/epilogue/error logging around the chain
    Reloader -- reload routes and views on every request
    Presentation -- render views through the presenter
    Routing -- dispatch through the router
    NotFound -- 404 for anything nothing handled
"""

from roost.middleware.builtin import MethodOverride, NotFound, Reloader, Routing, Setup
from roost.middleware.logging import RequestLogging
from roost.middleware.presentation import Presentation
from roost.middleware.protocol import Next, Unit
from roost.middleware.static import StaticFiles

__all__ = [
    "MethodOverride",
    "Next",
    "NotFound",
    "Presentation",
    "Reloader",
    "RequestLogging",
    "Routing",
    "Setup",
    "StaticFiles",
    "Unit",
]
