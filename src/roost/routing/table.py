"""Immutable route table with trie-based path matching.

A ``RouteTable`` is compiled in one go from a list of routes and a set of
named handlers, and cannot be changed afterwards. Reloading builds a new
table; the ``Router`` swaps it in.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from roost.errors import ConfigurationError, MethodNotAllowed, NotFound
from roost.routing.params import CONVERTERS
from roost.routing.route import NamedHandler, PathSegment, Route, RouteMatch


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id}"     -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}" -> [PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{path:path}" -> [PathSegment("{path:path}", is_param=True, param_type="path")]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name = inner
                param_type = "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown path converter {param_type!r} in route {path!r}"
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


class _TrieNode:
    """A node in the route trie. Mutated during compilation only."""

    __slots__ = ("catch_all", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        self.children: dict[str, _TrieNode] = {}
        self.param_child: _ParamEdge | None = None
        self.catch_all: _CatchAllEdge | None = None
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    param_name: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    param_name: str
    routes_by_method: dict[str, Route]


class RouteTable:
    """Compiled routes plus named handlers.

    Usage::

        table = RouteTable(
            [Route("/users/{id:int}", show_user, frozenset({"GET"}))],
            {404: NamedHandler(404, not_found)},
        )
        match = table.match("GET", "/users/42")
    """

    __slots__ = ("_handlers", "_root", "_routes")

    def __init__(
        self,
        routes: Iterable[Route] = (),
        handlers: Mapping[str | int, NamedHandler] | None = None,
    ) -> None:
        self._root = _TrieNode()
        self._routes = tuple(routes)
        for route in self._routes:
            self._add(route)
        self._handlers: Mapping[str | int, NamedHandler] = MappingProxyType(dict(handlers or {}))

    @property
    def routes(self) -> tuple[Route, ...]:
        """Routes in registration order."""
        return self._routes

    @property
    def handlers(self) -> Mapping[str | int, NamedHandler]:
        return self._handlers

    def _add(self, route: Route) -> None:
        node = self._root
        for seg in parse_path(route.path):
            if seg.is_param and seg.param_type == "path":
                # Catch-all: consumes rest of path, must be last segment
                if node.catch_all is None:
                    node.catch_all = _CatchAllEdge(seg.param_name or "path", {})
                for method in route.methods:
                    node.catch_all.routes_by_method[method] = route
                return

            if seg.is_param:
                if node.param_child is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    node.param_child = _ParamEdge(
                        param_name=seg.param_name or "",
                        regex=re.compile(f"^{pattern}$"),
                        node=_TrieNode(),
                    )
                node = node.param_child.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        for method in route.methods:
            node.routes_by_method[method] = route

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request method and path.

        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})
        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        routes_by_method, params = result
        if method in routes_by_method:
            return RouteMatch(route=routes_by_method[method], path_params=params)
        if method == "HEAD" and "GET" in routes_by_method:
            return RouteMatch(route=routes_by_method["GET"], path_params=params)
        raise MethodNotAllowed(frozenset(routes_by_method))

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[dict[str, Route], dict[str, str]] | None:
        if index == len(parts):
            if node.routes_by_method:
                return node.routes_by_method, params
            return None

        part = parts[index]

        # Static child first, then parameter, then catch-all
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        if node.param_child is not None:
            edge = node.param_child
            if edge.regex.match(part):
                result = self._match_node(
                    edge.node, parts, index + 1, {**params, edge.param_name: part}
                )
                if result is not None:
                    return result

        if node.catch_all is not None:
            remaining = "/".join(parts[index:])
            return node.catch_all.routes_by_method, {
                **params,
                node.catch_all.param_name: remaining,
            }

        return None

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"<RouteTable routes={len(self._routes)} handlers={len(self._handlers)}>"
