"""Route table: a segment trie filled during startup, read-only afterwards.

Each level of the trie tries its children in a fixed order: a literal
segment, then each parameter in the order routes added it, then the ``{name:path}`` tail that
swallows everything left.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from arbor.errors import ConfigurationError, MethodNotAllowed, NotFound
from arbor.routing.params import CONVERTERS, convert_param
from arbor.routing.route import ANY_METHOD, InstalledRoute, PathSegment, RouteMatch

_PARAM = re.compile(r"\{(?P<name>\w+)(?::(?P<kind>\w+))?\}")


def _split(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def parse_path(path: str) -> list[PathSegment]:
    """Break ``"/items/{id:int}"`` into one ``PathSegment`` per non-empty part.

    Raises ``ConfigurationError`` for ``<param>`` placeholders and for
    converters other than those in ``CONVERTERS``.
    """
    segments: list[PathSegment] = []
    for part in _split(path):
        if part[0] == "<" and part[-1] == ">":
            msg = (
                f"Route {path!r} uses <param> syntax. "
                f"Arbor path parameters are written {{param}}."
            )
            raise ConfigurationError(msg)
        found = _PARAM.fullmatch(part)
        if found is None:
            segments.append(PathSegment(value=part))
            continue
        kind = found["kind"] or "str"
        if kind not in CONVERTERS:
            msg = f"Unknown path converter {kind!r} in route {path!r}"
            raise ConfigurationError(msg)
        segments.append(
            PathSegment(value=part, is_param=True, param_name=found["name"], param_type=kind)
        )
    return segments


@dataclass(slots=True)
class _Node:
    literal: dict[str, "_Node"] = field(default_factory=dict)
    # (name, converter) -> (segment regex, child), tried in insertion order
    params: dict[tuple[str, str], tuple[re.Pattern[str], "_Node"]] = field(default_factory=dict)
    # (name, child) for a trailing {name:path}
    tail: tuple[str, "_Node"] | None = None
    methods: dict[str, InstalledRoute] = field(default_factory=dict)

    def children(self) -> list["_Node"]:
        nodes = list(self.literal.values())
        nodes.extend(child for _, child in self.params.values())
        if self.tail is not None:
            nodes.append(self.tail[1])
        return nodes


class Router:
    """Map ``(method, path)`` to an ``InstalledRoute``.

    Usage::

        router = Router()
        router.add(InstalledRoute("GET", "/items/{id:int}", (), handler))
        router.compile()
        router.match("GET", "/items/7").path_params  # {"id": 7}
    """

    __slots__ = ("_frozen", "_root")

    def __init__(self) -> None:
        self._root = _Node()
        self._frozen = False

    def add(self, route: InstalledRoute) -> InstalledRoute | None:
        """Install ``route`` and return whatever it replaced at the same method and path."""
        if self._frozen:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        node = self._node_for(parse_path(route.path))
        replaced = node.methods.get(route.method)
        node.methods[route.method] = route
        return replaced

    def _node_for(self, segments: list[PathSegment]) -> _Node:
        node = self._root
        for segment in segments:
            name = segment.param_name or ""
            if not segment.is_param:
                node = node.literal.setdefault(segment.value, _Node())
            elif segment.param_type == "path":
                if node.tail is None:
                    node.tail = (name or "path", _Node())
                # Nothing after a tail parameter can ever match
                return node.tail[1]
            else:
                key = (name, segment.param_type)
                if key not in node.params:
                    pattern, _ = CONVERTERS[segment.param_type]
                    node.params[key] = (re.compile(pattern), _Node())
                node = node.params[key][1]
        return node

    @property
    def routes(self) -> list[InstalledRoute]:
        """Every installed route, parents before children."""
        found: list[InstalledRoute] = []
        pending = [self._root]
        while pending:
            node = pending.pop(0)
            found.extend(node.methods.values())
            pending.extend(node.children())
        return found

    def compile(self) -> None:
        """Freeze the table. ``add()`` raises from here on."""
        self._frozen = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Resolve a request to a route and its converted path parameters.

        The method is looked up exactly, then ``HEAD`` is served by ``GET``,
        then by a route installed for ``ALL``. Raises ``NotFound`` when no
        path matches and ``MethodNotAllowed`` when only the method is wrong.
        """
        hit = self._descend(self._root, _split(path), {})
        if hit is None:
            raise NotFound(f"No route matches {method} {path!r}")
        node, params = hit
        candidates = [method, "GET", ANY_METHOD] if method == "HEAD" else [method, ANY_METHOD]
        for candidate in candidates:
            route = node.methods.get(candidate)
            if route is not None:
                return RouteMatch(route=route, path_params=params)
        raise MethodNotAllowed(frozenset(node.methods))

    def _descend(
        self, node: _Node, parts: list[str], params: dict[str, Any]
    ) -> tuple[_Node, dict[str, Any]] | None:
        if not parts:
            return (node, params) if node.methods else None
        head, rest = parts[0], parts[1:]

        child = node.literal.get(head)
        if child is not None:
            hit = self._descend(child, rest, params)
            if hit is not None:
                return hit

        for (name, kind), (pattern, child) in node.params.items():
            if pattern.fullmatch(head):
                hit = self._descend(child, rest, {**params, name: convert_param(head, kind)})
                if hit is not None:
                    return hit

        if node.tail is not None and node.tail[1].methods:
            name, child = node.tail
            return child, {**params, name: "/".join(parts)}
        return None
