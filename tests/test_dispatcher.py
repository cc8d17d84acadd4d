"""Tests for perch.routing.dispatcher (middleware pipeline, controllers, parameter binding)."""

import pytest

from perch.errors import DependencyResolutionError, NotFound, RouteError
from perch.http.request import Request
from perch.http.response import Response
from perch.ioc import Container
from perch.middleware.protocol import ParameterizedMiddleware
from perch.routing.controller import Controller
from perch.routing.dispatcher import Dispatcher
from perch.routing.route import CompiledRoute, Route


# -- Services and controllers --


class Greeter:
    def greet(self, name: str) -> str:
        return f"hello {name}"


class UserController:
    def __init__(self, greeter: Greeter) -> None:
        self.greeter = greeter

    def show(self, id: int) -> str:
        return f"user {id} ({type(id).__name__})"

    def greet(self, name: str) -> str:
        return self.greeter.greet(name)

    async def listing(self, page: int = 1) -> str:
        return f"page {page}"

    def nothing(self) -> None:
        return None

    def json(self) -> Response:
        return Response.json({"ok": True})

    def typed(self, greeter: Greeter, id: int = 0) -> str:
        return f"{type(greeter).__name__} {id}"

    def explode(self) -> str:
        raise ValueError("kaboom")

    def missing_user(self) -> str:
        raise NotFound("no such user")

    def _secret(self) -> str:
        return "secret"

    def flag(self, enabled: bool) -> str:
        return f"enabled={enabled}"


class ViewAwareController(Controller):
    def show(self) -> str:
        assert self.request is not None
        return f"{self.request.method} {self.request.path}"


class MissingRecord:
    def __init__(self) -> None:
        raise NotFound("record gone")

    def show(self) -> str:
        return "unreachable"

    async def handle(self, request, next):
        return await next(request)


class ViewHooks(Controller):
    def show(self) -> str:
        return f"{self.view_factory} {self.view_compiler}"


class Recorder:
    """Middleware that records its position in the chain."""

    calls: list[str] = []

    async def handle(self, request, next):
        Recorder.calls.append("recorder")
        return await next(request)


class Blocker:
    async def handle(self, request, next):
        return Response("blocked", status=403)


class Tag(ParameterizedMiddleware):
    async def handle(self, request, next):
        response = await next(request)
        return response.with_header("X-Tag", self.get_parameter("value", "none"))


class NeedsUnboundScalar:
    def __init__(self, setting: str) -> None:
        self.setting = setting

    async def handle(self, request, next):
        return await next(request)


# -- Helpers --


def _compiled(*, path_vars=None, defaults=None, middleware=(), **target) -> CompiledRoute:
    route = Route(
        path="/test",
        methods=frozenset({"GET"}),
        middleware=tuple(middleware),
        defaults=defaults or {},
        **target,
    )
    return CompiledRoute.from_route(route, path_vars or {})


def _method(name: str, **kwargs) -> CompiledRoute:
    return _compiled(controller_name=UserController, controller_method=name, **kwargs)


@pytest.fixture
def dispatcher() -> Dispatcher:
    return Dispatcher(Container())


@pytest.fixture
def request_() -> Request:
    return Request.build("GET", "/test")


# =============================================================================
# Free callables
# =============================================================================


class TestCallableTargets:
    async def test_string_becomes_response(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_compiled(controller=lambda: "hi"), request_)
        assert isinstance(response, Response)
        assert response.text == "hi"

    async def test_none_becomes_empty_response(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_compiled(controller=lambda: None), request_)
        assert response == Response()

    async def test_other_values_pass_through(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_compiled(controller=lambda: {"a": 1}), request_)
        assert response == {"a": 1}

    async def test_async_callable(self, dispatcher, request_) -> None:
        async def handler(id: int) -> str:
            return f"id={id}"

        route = _compiled(controller=handler, path_vars={"id": 5})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "id=5"

    async def test_request_injected(self, dispatcher, request_) -> None:
        def handler(request: Request) -> str:
            return request.path

        response = await dispatcher.dispatch(_compiled(controller=handler), request_)
        assert response.text == "/test"

    async def test_request_carries_path_params(self, dispatcher, request_) -> None:
        def handler(request: Request) -> str:
            return str(request.path_params["id"])

        route = _compiled(controller=handler, path_vars={"id": 9})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "9"

    async def test_service_resolved(self, dispatcher, request_) -> None:
        def handler(greeter: Greeter, name: str) -> str:
            return greeter.greet(name)

        route = _compiled(controller=handler, path_vars={"name": "dave"})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "hello dave"

    async def test_class_typed_parameter_wins_over_path_var(self, dispatcher, request_) -> None:
        def handler(greeter: Greeter) -> str:
            return type(greeter).__name__

        route = _compiled(controller=handler, path_vars={"greeter": "ignored"})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "Greeter"

    async def test_unresolvable_service(self, request_) -> None:
        class Unbuildable:
            def __init__(self, value: str) -> None:
                pass

        def handler(dep: Unbuildable) -> str:
            return "unreachable"

        with pytest.raises(RouteError, match="Reflection failed"):
            await Dispatcher(Container()).dispatch(_compiled(controller=handler), request_)

    async def test_varargs_never_bound(self, dispatcher, request_) -> None:
        def handler(*args, **kwargs) -> str:
            return f"{args}{kwargs}"

        route = _compiled(controller=handler, path_vars={"x": 1})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "(){}"


# =============================================================================
# Parameter binding
# =============================================================================


class TestParameterBinding:
    async def test_path_var(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_method("show", path_vars={"id": 7}), request_)
        assert response.text == "user 7 (int)"

    async def test_string_path_var_coerced_to_annotation(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_method("show", path_vars={"id": "7"}), request_)
        assert response.text == "user 7 (int)"

    async def test_bool_coercion(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(
            _method("flag", path_vars={"enabled": "yes"}), request_
        )
        assert response.text == "enabled=True"

    async def test_route_default(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_method("listing", defaults={"page": 3}), request_)
        assert response.text == "page 3"

    async def test_path_var_beats_route_default(self, dispatcher, request_) -> None:
        route = _method("listing", path_vars={"page": 5}, defaults={"page": 3})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "page 5"

    async def test_parameter_default(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_method("listing"), request_)
        assert response.text == "page 1"

    async def test_missing_value(self, dispatcher, request_) -> None:
        with pytest.raises(RouteError, match="No value set for parameter id"):
            await dispatcher.dispatch(_method("show"), request_)

    async def test_methods_never_get_injected_objects(self, dispatcher, request_) -> None:
        # A class-typed method parameter is only bound from path vars or defaults
        with pytest.raises(RouteError, match="No value set for parameter greeter"):
            await dispatcher.dispatch(_method("typed"), request_)

    async def test_methods_bind_object_from_default(self, dispatcher, request_) -> None:
        greeter = Greeter()
        route = _method("typed", defaults={"greeter": greeter})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "Greeter 0"


# =============================================================================
# Controller classes
# =============================================================================


class TestControllerTargets:
    async def test_constructor_dependencies_resolved(self, dispatcher, request_) -> None:
        route = _method("greet", path_vars={"name": "ann"})
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "hello ann"

    async def test_import_string_controller(self, dispatcher, request_) -> None:
        route = _compiled(
            controller_name=f"{__name__}:UserController",
            controller_method="show",
            path_vars={"id": 1},
        )
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "user 1 (int)"

    async def test_unknown_controller_class(self, dispatcher, request_) -> None:
        route = _compiled(controller_name=f"{__name__}:Nope", controller_method="show")
        with pytest.raises(RouteError, match=f"Controller class {__name__}:Nope does not exist"):
            await dispatcher.dispatch(route, request_)

    async def test_private_method(self, dispatcher, request_) -> None:
        with pytest.raises(RouteError, match="Method _secret is private"):
            await dispatcher.dispatch(_method("_secret"), request_)

    async def test_missing_method(self, dispatcher, request_) -> None:
        with pytest.raises(RouteError, match="Method vanish does not exist"):
            await dispatcher.dispatch(_method("vanish"), request_)

    async def test_none_result(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_method("nothing"), request_)
        assert response == Response()

    async def test_response_result_passes_through(self, dispatcher, request_) -> None:
        response = await dispatcher.dispatch(_method("json"), request_)
        assert response.content_type == "application/json"

    async def test_controller_receives_request(self, dispatcher, request_) -> None:
        route = _compiled(controller_name=ViewAwareController, controller_method="show")
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "GET /test"

    async def test_view_hooks_unset_without_bound_view_layer(self, dispatcher, request_) -> None:
        route = _compiled(controller_name=ViewHooks, controller_method="show")
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "None None"

    @pytest.mark.parametrize(
        "method", ["set_request", "set_view_factory", "call_method", "show_http_error"]
    )
    async def test_controller_base_methods_not_routable(
        self, dispatcher, request_, method: str
    ) -> None:
        route = _compiled(controller_name=ViewHooks, controller_method=method)
        with pytest.raises(RouteError, match=f"Method {method} is not routable"):
            await dispatcher.dispatch(route, request_)

    async def test_controller_resolved_from_binding(self, request_) -> None:
        container = Container()
        container.bind_instance(UserController, UserController(Greeter()))
        route = _method("greet", path_vars={"name": "bo"})
        response = await Dispatcher(container).dispatch(route, request_)
        assert response.text == "hello bo"


# =============================================================================
# Failures
# =============================================================================


class TestFailures:
    async def test_invocation_failure_wrapped(self, dispatcher, request_) -> None:
        with pytest.raises(RouteError, match="Reflection failed for UserController.explode") as info:
            await dispatcher.dispatch(_method("explode"), request_)
        assert "kaboom" in str(info.value)

    async def test_http_error_propagates(self, dispatcher, request_) -> None:
        with pytest.raises(NotFound):
            await dispatcher.dispatch(_method("missing_user"), request_)

    async def test_http_error_from_controller_constructor(self, dispatcher, request_) -> None:
        route = _compiled(controller_name=MissingRecord, controller_method="show")
        with pytest.raises(NotFound, match="record gone"):
            await dispatcher.dispatch(route, request_)

    async def test_http_error_from_middleware_constructor(self, dispatcher, request_) -> None:
        route = _compiled(controller=lambda: "x", middleware=[MissingRecord])
        with pytest.raises(NotFound, match="record gone"):
            await dispatcher.dispatch(route, request_)

    async def test_single_route_error_not_double_wrapped(self, dispatcher, request_) -> None:
        with pytest.raises(RouteError) as info:
            await dispatcher.dispatch(_method("_secret"), request_)
        assert not isinstance(info.value.__cause__, RouteError)

    async def test_middleware_failure_wrapped(self, dispatcher, request_) -> None:
        class Failing:
            async def handle(self, request, next):
                raise ValueError("middleware broke")

        route = _compiled(controller=lambda: "x", middleware=[Failing()])
        with pytest.raises(RouteError, match="Failed to dispatch route"):
            await dispatcher.dispatch(route, request_)

    async def test_unresolvable_middleware(self, dispatcher, request_) -> None:
        route = _compiled(controller=lambda: "x", middleware=[NeedsUnboundScalar])
        with pytest.raises(RouteError, match="Failed to resolve middleware") as info:
            await dispatcher.dispatch(route, request_)
        assert isinstance(info.value.__cause__, DependencyResolutionError)


# =============================================================================
# Middleware
# =============================================================================


class TestMiddleware:
    async def test_class_middleware_resolved(self, dispatcher, request_) -> None:
        Recorder.calls = []
        route = _compiled(controller=lambda: "ok", middleware=[Recorder])
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "ok"
        assert Recorder.calls == ["recorder"]

    async def test_import_string_middleware(self, dispatcher, request_) -> None:
        route = _compiled(controller=lambda: "ok", middleware=[f"{__name__}:Blocker"])
        response = await dispatcher.dispatch(route, request_)
        assert response.status == 403

    async def test_short_circuit_skips_controller(self, dispatcher, request_) -> None:
        called: list[bool] = []

        def handler() -> str:
            called.append(True)
            return "ok"

        route = _compiled(controller=handler, middleware=[Blocker])
        response = await dispatcher.dispatch(route, request_)
        assert response.text == "blocked"
        assert called == []

    async def test_parameterized_middleware(self, dispatcher, request_) -> None:
        route = _compiled(controller=lambda: "ok", middleware=[Tag.with_parameters(value="v1")])
        response = await dispatcher.dispatch(route, request_)
        assert response.header("X-Tag") == "v1"

    async def test_prebuilt_middleware_used_as_is(self, dispatcher, request_) -> None:
        tag = Tag()
        tag.set_parameters({"value": "prebuilt"})
        route = _compiled(controller=lambda: "ok", middleware=[tag])
        response = await dispatcher.dispatch(route, request_)
        assert response.header("X-Tag") == "prebuilt"

    async def test_middleware_order(self, dispatcher, request_) -> None:
        order: list[str] = []

        def mark(name: str):
            async def middleware(request, next):
                order.append(name)
                return await next(request)

            return middleware

        route = _compiled(controller=lambda: "ok", middleware=[mark("a"), mark("b")])
        await dispatcher.dispatch(route, request_)
        assert order == ["a", "b"]
