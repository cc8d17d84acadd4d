"""Middleware: classes with a ``handle(request, next)`` method."""

from perch.middleware.protocol import (
    Middleware,
    MiddlewareParameters,
    Next,
    ParameterizedMiddleware,
)

__all__ = ["Middleware", "MiddlewareParameters", "Next", "ParameterizedMiddleware"]
