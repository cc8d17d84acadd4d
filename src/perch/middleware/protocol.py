"""Middleware protocol, parameterized middleware, and the Next type alias.

A middleware is any object with a ``handle`` method::

    class Timing:
        async def handle(self, request: Request, next: Next) -> AnyResponse:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

Routes list middleware by class (or ``"module:Class"`` import string); the
dispatcher resolves each through the container so middleware can declare
its own dependencies. Middleware that needs per-route settings extends
``ParameterizedMiddleware`` and is listed via ``with_parameters()``::

    app.add_route("/admin", (AdminController, "index"),
                  middleware=[RequireRole.with_parameters(role="admin")])
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from perch.http.request import Request
from perch.http.response import Response

# Any response the pipeline can produce. Controllers may return other values;
# they pass through dispatch unchanged.
type AnyResponse = Response | Any

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[AnyResponse]]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for perch middleware. No base class required."""

    async def handle(self, request: Request, next: Next) -> AnyResponse: ...


@dataclass(frozen=True, slots=True)
class MiddlewareParameters:
    """A middleware class paired with the parameters to give it after construction."""

    middleware: type | str
    parameters: Mapping[str, Any] = field(default_factory=dict)


class ParameterizedMiddleware:
    """Base for middleware configured per route.

    The dispatcher resolves the class through the container, then calls
    ``set_parameters()`` with the mapping from ``with_parameters()``.
    Subclasses implement ``handle``.
    """

    def __init__(self) -> None:
        self.parameters: dict[str, Any] = {}

    @classmethod
    def with_parameters(cls, **parameters: Any) -> MiddlewareParameters:
        """Describe this middleware plus its parameters for a route's middleware list."""
        return MiddlewareParameters(cls, parameters)

    def set_parameters(self, parameters: Mapping[str, Any]) -> None:
        """Replace the parameters. Called by the dispatcher after construction."""
        self.parameters = dict(parameters)

    def get_parameter(self, name: str, default: Any = None) -> Any:
        """Return one parameter, or *default* if it wasn't given."""
        return self.parameters.get(name, default)
