"""Tests for perch.middleware (protocol and parameterized middleware)."""

from perch.http.request import Request
from perch.http.response import Response
from perch.middleware import Middleware, MiddlewareParameters, ParameterizedMiddleware


async def _ok(request: Request) -> Response:
    return Response("ok")


class RateLimit(ParameterizedMiddleware):
    async def handle(self, request, next):
        response = await next(request)
        return response.with_header("X-RateLimit-Limit", str(self.get_parameter("limit", 60)))


class TestParameterizedMiddleware:
    def test_with_parameters_describes_middleware(self) -> None:
        descriptor = RateLimit.with_parameters(limit=10)
        assert descriptor == MiddlewareParameters(RateLimit, {"limit": 10})

    def test_set_and_get_parameters(self) -> None:
        middleware = RateLimit()
        assert middleware.get_parameter("limit") is None
        middleware.set_parameters({"limit": 10})
        assert middleware.get_parameter("limit") == 10
        assert middleware.get_parameter("window", 60) == 60

    def test_set_parameters_replaces(self) -> None:
        middleware = RateLimit()
        middleware.set_parameters({"limit": 10})
        middleware.set_parameters({"window": 5})
        assert middleware.parameters == {"window": 5}

    def test_satisfies_protocol(self) -> None:
        assert isinstance(RateLimit(), Middleware)

    async def test_handle_reads_parameters(self) -> None:
        middleware = RateLimit()
        middleware.set_parameters({"limit": 10})
        response = await middleware.handle(Request.build("GET", "/"), _ok)
        assert response.header("X-RateLimit-Limit") == "10"

    async def test_handle_falls_back_to_default(self) -> None:
        response = await RateLimit().handle(Request.build("GET", "/"), _ok)
        assert response.header("X-RateLimit-Limit") == "60"


class TestMiddlewareProtocol:
    def test_plain_class_satisfies_protocol(self) -> None:
        class Passthrough:
            async def handle(self, request, next):
                return await next(request)

        assert isinstance(Passthrough(), Middleware)

    def test_object_without_handle_does_not(self) -> None:
        assert not isinstance(object(), Middleware)
