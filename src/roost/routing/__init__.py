"""Routing: route tables, the shared router, and handler dispatch.

Route tables are compiled from the app's route declarations and are
immutable. The ``Router`` holds the current table and swaps in a new one
on reload, so a request always sees a complete table.
"""

from roost.routing.builder import RouteBuilder
from roost.routing.route import Route, RouteMatch
from roost.routing.router import Router
from roost.routing.table import RouteTable

__all__ = ["Route", "RouteBuilder", "RouteMatch", "RouteTable", "Router"]
