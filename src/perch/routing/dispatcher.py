"""Runs a compiled route: middleware pipeline first, then the target.

Given a ``CompiledRoute`` and a ``Request``, the dispatcher:

1. Resolves the route's middleware through the container, handing
   parameterized middleware its parameters after construction.
2. Sends the request through a ``Pipeline`` of those middleware, ending
   in a callback that builds the controller (or takes the route's bound
   callable) and invokes the target.
3. Binds the target's parameters from its signature, in this order:
   class-typed dependencies (free callables only), path variables,
   route defaults, then the parameter's own default.
4. Normalizes the result: ``str`` becomes a ``Response``, ``None`` becomes
   an empty ``Response``, anything else passes through.

Every failure surfaces as a single ``RouteError``, except ``HTTPError``
raised by application code, which passes through untouched so the app
can render it with its status.
"""

import inspect
import logging
from contextlib import suppress
from typing import Any

from perch._internal.invoke import invoke
from perch._internal.signatures import (
    bindable_parameters,
    class_annotation,
    scalar_annotation,
    split_arguments,
)
from perch.errors import DependencyResolutionError, HTTPError, PipelineError, RouteError
from perch.http.request import Request
from perch.http.response import Response
from perch.ioc.container import DependencyResolver, import_class
from perch.middleware.protocol import AnyResponse, MiddlewareParameters
from perch.pipelines.pipeline import Pipeline, Stage
from perch.routing.controller import Controller
from perch.routing.route import CompiledRoute, MiddlewareEntry
from perch.views.compiler import ViewCompiler
from perch.views.factory import ViewFactory

logger = logging.getLogger("perch.routing")

_TRUTHY = frozenset({"true", "1", "yes", "on"})


class Dispatcher:
    """Dispatches compiled routes to their controllers.

    Usage::

        dispatcher = Dispatcher(container)
        response = await dispatcher.dispatch(router.match("GET", "/users/7"), request)
    """

    __slots__ = ("_resolver",)

    def __init__(self, resolver: DependencyResolver) -> None:
        self._resolver = resolver

    async def dispatch(self, route: CompiledRoute, request: Request) -> AnyResponse:
        """Run *route* for *request* and return the response.

        Raises ``RouteError`` if the route could not be dispatched.
        Raises ``HTTPError`` unchanged if middleware or the target raised one.
        """
        logger.debug("Dispatching %s %s to %s", request.method, request.path, route.target_name)
        request = request.with_path_params(route.path_vars)
        stages = self._middleware_to_stages(route.middleware)

        async def run_target(req: Request) -> AnyResponse:
            return await self._run_target(route, req)

        try:
            response = await (
                Pipeline().send(request).through(stages, "handle").then(run_target).execute()
            )
        except PipelineError as exc:
            if isinstance(exc.__cause__, RouteError):
                raise exc.__cause__ from exc.__cause__.__cause__
            msg = "Failed to dispatch route"
            raise RouteError(msg) from exc

        if response is None:
            # Nothing produced a value
            return Response()
        return response

    # -- Middleware --

    def _middleware_to_stages(self, middleware: tuple[MiddlewareEntry, ...]) -> list[Stage]:
        stages: list[Stage] = []
        for entry in middleware:
            try:
                if isinstance(entry, MiddlewareParameters):
                    stage = self._resolver.resolve(entry.middleware)
                    stage.set_parameters(entry.parameters)
                elif isinstance(entry, (type, str)):
                    stage = self._resolver.resolve(entry)
                else:
                    stage = entry
            except (DependencyResolutionError, AttributeError) as exc:
                msg = f"Failed to resolve middleware {entry!r}: {exc}"
                raise RouteError(msg) from exc
            stages.append(stage)
        return stages

    # -- Target --

    async def _run_target(self, route: CompiledRoute, request: Request) -> AnyResponse:
        if route.uses_callable:
            controller = route.controller
        else:
            controller = self._create_controller(route.controller_name, request)
        return await self._call_controller(controller, route, request)

    def _create_controller(self, name: type | str | None, request: Request) -> Any:
        cls = name
        if isinstance(name, str):
            try:
                cls = import_class(name)
            except DependencyResolutionError as exc:
                msg = f"Controller class {name} does not exist"
                raise RouteError(msg) from exc

        controller = self._resolver.resolve(cls)

        if isinstance(controller, Controller):
            controller.set_request(request)
            # The view layer is optional: apps without templates don't bind it
            with suppress(DependencyResolutionError):
                controller.set_view_factory(self._resolver.resolve(ViewFactory))
            with suppress(DependencyResolutionError):
                controller.set_view_compiler(self._resolver.resolve(ViewCompiler))

        return controller

    async def _call_controller(
        self,
        controller: Any,
        route: CompiledRoute,
        request: Request,
    ) -> AnyResponse:
        try:
            if route.uses_callable:
                params = bindable_parameters(controller)
                values = self._resolve_parameters(params, route, request, accept_objects=True)
                args, kwargs = split_arguments(params, values)
                response = await invoke(controller, *args, **kwargs)
            else:
                method_name = route.controller_method or ""
                if method_name.startswith("_"):
                    msg = f"Method {method_name} is private"
                    raise RouteError(msg)
                if isinstance(controller, Controller) and hasattr(Controller, method_name):
                    # The base class hooks are not actions
                    msg = f"Method {method_name} is not routable"
                    raise RouteError(msg)
                method = getattr(controller, method_name, None)
                if not callable(method):
                    msg = f"Method {method_name} does not exist"
                    raise RouteError(msg)

                params = bindable_parameters(method)
                values = self._resolve_parameters(params, route, request, accept_objects=False)
                args, kwargs = split_arguments(params, values)

                if isinstance(controller, Controller):
                    response = await controller.call_method(method_name, args, kwargs)
                else:
                    response = await invoke(method, *args, **kwargs)

            if isinstance(response, str):
                response = Response(response)
            return response
        except (HTTPError, RouteError):
            raise
        except Exception as exc:
            msg = f"Reflection failed for {route.target_name}: {exc}"
            raise RouteError(msg) from exc

    def _resolve_parameters(
        self,
        params: list[inspect.Parameter],
        route: CompiledRoute,
        request: Request,
        *,
        accept_objects: bool,
    ) -> dict[str, Any]:
        """Match the target's parameters to dependencies, path vars and defaults."""
        values: dict[str, Any] = {}
        for param in params:
            annotation = class_annotation(param) if accept_objects else None
            if annotation is not None:
                if issubclass(annotation, Request):
                    values[param.name] = request
                else:
                    values[param.name] = self._resolver.resolve(annotation)
            elif route.path_vars.get(param.name) is not None:
                values[param.name] = _coerce(param, route.path_vars[param.name])
            elif (default := route.get_default_value(param.name)) is not None:
                values[param.name] = default
            elif param.default is inspect.Parameter.empty:
                msg = f"No value set for parameter {param.name}"
                raise RouteError(msg)
        return values


def _coerce(param: inspect.Parameter, value: Any) -> Any:
    """Convert a string path variable to the parameter's scalar annotation."""
    target = scalar_annotation(param)
    if target is None or not isinstance(value, str) or target is str:
        return value
    if target is bool:
        return value.lower() in _TRUTHY
    try:
        return target(value)
    except (ValueError, TypeError):
        return value
