"""Route and CompiledRoute frozen dataclasses."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from perch.errors import ConfigurationError
from perch.middleware.protocol import MiddlewareParameters

# Middleware list entry: a class, an import string, a parameterized
# descriptor, or an already-built middleware object
type MiddlewareEntry = type | str | MiddlewareParameters | object


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Targets either a free callable (``controller``) or a controller class
    plus method name (``controller_name`` / ``controller_method``). The
    class may be given as an import string and is only loaded at dispatch.
    """

    path: str
    methods: frozenset[str]
    controller: Callable[..., Any] | None = None
    controller_name: type | str | None = None
    controller_method: str | None = None
    middleware: tuple[MiddlewareEntry, ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    name: str | None = None

    def __post_init__(self) -> None:
        if self.controller is None and (
            self.controller_name is None or not self.controller_method
        ):
            msg = f"Route {self.path!r} needs a callable or a controller class and method"
            raise ConfigurationError(msg)

    @property
    def uses_callable(self) -> bool:
        """True if the route targets a free callable rather than a controller class."""
        return self.controller is not None

    @property
    def target_name(self) -> str:
        """Human-readable target, used in error messages and logs."""
        if self.controller is not None:
            return getattr(self.controller, "__qualname__", "closure")
        name = self.controller_name
        class_name = name if isinstance(name, str) else getattr(name, "__qualname__", repr(name))
        return f"{class_name}.{self.controller_method}"


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A route matched against a concrete request path.

    Created by the router, consumed once per request by the dispatcher.
    """

    route: Route
    path_vars: Mapping[str, Any] = field(default_factory=dict)
    middleware: tuple[MiddlewareEntry, ...] = ()

    @classmethod
    def from_route(
        cls,
        route: Route,
        path_vars: Mapping[str, Any] | None = None,
        middleware: tuple[MiddlewareEntry, ...] | None = None,
    ) -> "CompiledRoute":
        """Compile *route*, defaulting the middleware list to the route's own."""
        return cls(
            route=route,
            path_vars=dict(path_vars or {}),
            middleware=route.middleware if middleware is None else middleware,
        )

    @property
    def uses_callable(self) -> bool:
        return self.route.uses_callable

    @property
    def controller(self) -> Callable[..., Any] | None:
        return self.route.controller

    @property
    def controller_name(self) -> type | str | None:
        return self.route.controller_name

    @property
    def controller_method(self) -> str | None:
        return self.route.controller_method

    @property
    def target_name(self) -> str:
        return self.route.target_name

    def get_default_value(self, name: str) -> Any:
        """Return the route's default for parameter *name*, or ``None``."""
        return self.route.defaults.get(name)
