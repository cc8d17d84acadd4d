"""Exceptions raised by perch.

``PerchError`` is the common base. ``HTTPError`` and its subclasses carry
a status and reach the client as that status; every other ``PerchError``
that escapes a request becomes a 500.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base class for perch errors."""


class ConfigurationError(PerchError):
    """The app, a route, or a view layer was set up wrongly."""


class RouteError(PerchError):
    """A matched route could not be run.

    Covers unknown controller classes, private or missing methods,
    unresolvable middleware and parameters with no value.
    """


class PipelineError(PerchError):
    """A pipeline stage or its final callback failed."""


class DependencyResolutionError(PerchError):
    """The container has no way to build the requested class."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """A failure with an HTTP status.

    Dispatch, the pipeline and the container let it through unwrapped, so
    raising ``NotFound`` anywhere in a request yields a 404.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        return f"{self.status}: {self.detail}" if self.detail else str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405, with an ``Allow`` header naming the methods the path accepts."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or f"Method not allowed. Allowed methods: {allow}",
            headers=(("Allow", allow),),
        )
