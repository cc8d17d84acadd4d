"""Route table with compiled path patterns.

Each route path compiles to one regex. Parameter segments look like
``{name}`` or ``{name:converter}``; converted values reach the
dispatcher already typed through ``CompiledRoute.path_vars``.

Converters:
    ``str``    one segment (default)
    ``int``    digits, converted with ``int``
    ``float``  digits with an optional fraction, converted with ``float``
    ``path``   the rest of the path, slashes included; last segment only
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from perch.errors import ConfigurationError, MethodNotAllowed, NotFound
from perch.routing.route import CompiledRoute, Route

type Converter = Callable[[str], Any]

_CONVERTERS: dict[str, tuple[str, Converter]] = {
    "str": (r"[^/]+", str),
    "int": (r"[0-9]+", int),
    "float": (r"[0-9]+(?:\.[0-9]+)?", float),
    "path": (r".+", str),
}

_PARAMETER = re.compile(r"\{(?P<name>[A-Za-z_]\w*)(?::(?P<converter>\w+))?\}")

# Segment weights: lower sorts first, so literals win over parameters
_LITERAL_RANK = 0
_PARAMETER_RANK = 1
_REST_RANK = 2


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A route path compiled for matching."""

    path: str
    regex: re.Pattern[str]
    converters: tuple[tuple[str, Converter], ...]
    rank: tuple[int, ...]

    def match(self, path: str) -> dict[str, Any] | None:
        """Return the converted path variables, or ``None`` if *path* doesn't match."""
        found = self.regex.fullmatch(path)
        if found is None:
            return None
        return {name: convert(found[name]) for name, convert in self.converters}


def normalize_path(path: str) -> str:
    """Collapse empty segments: ``"/users//7/"`` becomes ``"/users/7"``."""
    return "/" + "/".join(part for part in path.split("/") if part)


def compile_path(path: str) -> PathPattern:
    """Compile a route path into a ``PathPattern``.

    Raises ``ConfigurationError`` for ``<param>`` segments, malformed or
    repeated parameters, unknown converters, and a ``path`` parameter that
    isn't the last segment.
    """
    segments = [segment for segment in path.split("/") if segment]
    pieces: list[str] = []
    converters: list[tuple[str, Converter]] = []
    rank: list[int] = []

    for index, segment in enumerate(segments):
        if segment.startswith("<") and segment.endswith(">"):
            msg = f"Route {path!r} uses <param> syntax; perch expects {{param}}"
            raise ConfigurationError(msg)

        if "{" not in segment and "}" not in segment:
            pieces.append(re.escape(segment))
            rank.append(_LITERAL_RANK)
            continue

        parameter = _PARAMETER.fullmatch(segment)
        if parameter is None:
            msg = f"Malformed parameter segment {segment!r} in route {path!r}"
            raise ConfigurationError(msg)

        name = parameter["name"]
        converter = parameter["converter"] or "str"
        if converter not in _CONVERTERS:
            msg = f"Unknown converter {converter!r} in route {path!r}"
            raise ConfigurationError(msg)
        if any(name == existing for existing, _ in converters):
            msg = f"Parameter {name!r} appears twice in route {path!r}"
            raise ConfigurationError(msg)
        if converter == "path" and index != len(segments) - 1:
            msg = f"Path parameter {name!r} must be the last segment of route {path!r}"
            raise ConfigurationError(msg)

        regex, convert = _CONVERTERS[converter]
        pieces.append(f"(?P<{name}>{regex})")
        converters.append((name, convert))
        rank.append(_REST_RANK if converter == "path" else _PARAMETER_RANK)

    return PathPattern(
        path=path,
        regex=re.compile("/" + "/".join(pieces)),
        converters=tuple(converters),
        rank=tuple(rank),
    )


class Router:
    """Matches request paths against registered routes.

    Usage::

        router = Router()
        router.add(Route("/users/{id:int}", frozenset({"GET"}), controller=show_user))
        router.compile()
        compiled = router.match("GET", "/users/42")
        compiled.path_vars  # {"id": 42}

    ``compile()`` orders the table so literal segments win over parameters
    at the same position (``/users/me`` before ``/users/{id}``). Routes
    with equal rank keep registration order.
    """

    __slots__ = ("_compiled", "_table")

    def __init__(self) -> None:
        self._table: list[tuple[PathPattern, Route]] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Register *route*. Raises ``RuntimeError`` once compiled."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        self._table.append((compile_path(route.path), route))

    def compile(self) -> None:
        self._table.sort(key=lambda entry: entry[0].rank)
        self._compiled = True

    def match(self, method: str, path: str) -> CompiledRoute:
        """Find the route for *method* and *path*.

        Raises ``NotFound`` when no pattern matches the path, and
        ``MethodNotAllowed`` (listing every method the path accepts) when
        patterns match but none accepts *method*.
        """
        target = normalize_path(path)
        allowed: set[str] = set()
        for pattern, route in self._table:
            path_vars = pattern.match(target)
            if path_vars is None:
                continue
            if method in route.methods:
                return CompiledRoute.from_route(route, path_vars)
            allowed.update(route.methods)

        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound(f"No route matches {method} {path!r}")
