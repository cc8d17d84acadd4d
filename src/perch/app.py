"""The ``App``: where routes, middleware, bindings and error handlers are registered.

Registration is only allowed until the first ``handle()``, ``__call__()`` or
``router`` access, which freezes the app: routes compile, the view layer is
bound and the dispatcher is built.
"""

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch.config import AppConfig
from perch.errors import ConfigurationError
from perch.http.request import Request
from perch.http.response import Response
from perch.ioc.container import Container
from perch.routing.dispatcher import Dispatcher
from perch.routing.route import MiddlewareEntry, Route
from perch.routing.router import Router
from perch.server.errors import ErrorHandler, render_error
from perch.server.negotiation import negotiate
from perch.server.sender import send_response
from perch.views.compiler import ViewCompiler
from perch.views.environment import create_environment
from perch.views.factory import ViewFactory

type Handler = Callable[..., Any]

# A route target: a callable, a (ControllerClass, "method") pair,
# or a "module:Class@method" string
type Target = Handler | tuple[type | str, str] | str


@dataclass(frozen=True, slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    target: Target
    methods: Sequence[str] | None
    middleware: tuple[MiddlewareEntry, ...]
    defaults: dict[str, Any]
    name: str | None


def _target_fields(target: Target) -> dict[str, Any]:
    """Split a route target into ``Route`` keyword arguments."""
    if isinstance(target, str):
        class_name, sep, method = target.partition("@")
        if not sep or not class_name or not method:
            msg = f"Route target {target!r} must look like 'module:Class@method'"
            raise ConfigurationError(msg)
        return {"controller_name": class_name, "controller_method": method}
    if isinstance(target, tuple):
        if len(target) != 2 or not isinstance(target[1], str):
            msg = f"Route target {target!r} must be a (ControllerClass, 'method') pair"
            raise ConfigurationError(msg)
        return {"controller_name": target[0], "controller_method": target[1]}
    if callable(target) and not isinstance(target, type):
        return {"controller": target}
    msg = f"Route target {target!r} is not callable"
    raise ConfigurationError(msg)


class App:
    """Registers routes and services, then serves requests through the dispatcher.

    ::

        app = App(AppConfig(template_dir="views"))
        app.bind(UserRepository, InMemoryUserRepository())
        app.add_route("/users/{id:int}", (UserController, "show"))

        @app.route("/ping")
        def ping():
            return "pong"

    Registration happens on one thread before serving. Freezing takes a
    lock and re-checks, so concurrent first requests compile the app once.
    """

    __slots__ = (
        "_dispatcher",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_pending_routes",
        "_router",
        "_view_compiler",
        "config",
        "container",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        container: Container | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.container: Container = container or Container()
        self._pending_routes: list[_PendingRoute] = []
        self._middleware: list[MiddlewareEntry] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._router: Router | None = None
        self._dispatcher: Dispatcher | None = None
        self._view_compiler: ViewCompiler | None = None

    # -- Routes --

    def route(
        self,
        path: str,
        *,
        methods: Sequence[str] | None = None,
        middleware: Sequence[MiddlewareEntry] = (),
        defaults: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of ``add_route`` for plain functions.

        *methods* defaults to GET only. *middleware* runs after the app-wide
        middleware. *defaults* supply parameters no path variable fills.
        """

        def decorator(func: Handler) -> Handler:
            self.add_route(
                path, func, methods=methods, middleware=middleware, defaults=defaults, name=name
            )
            return func

        return decorator

    def add_route(
        self,
        path: str,
        target: Target,
        *,
        methods: Sequence[str] | None = None,
        middleware: Sequence[MiddlewareEntry] = (),
        defaults: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> None:
        """Register a route to a callable or a controller method.

        ::

            app.add_route("/users/{id:int}", (UserController, "show"))
            app.add_route("/users", "myapp.controllers:UserController@index")
        """
        self._check_not_frozen()
        _target_fields(target)
        self._pending_routes.append(
            _PendingRoute(path, target, methods, tuple(middleware), dict(defaults or {}), name)
        )

    # -- Middleware, bindings, errors --

    def add_middleware(self, middleware: MiddlewareEntry) -> None:
        """Add middleware run for every route, before route-level middleware."""
        self._check_not_frozen()
        self._middleware.append(middleware)

    def bind(self, interface: type, provider: object) -> None:
        """Bind *interface* in the container.

        A class is autowired per resolution, a callable (non-class) is a
        factory, anything else is a shared instance.
        """
        self._check_not_frozen()
        if isinstance(provider, type):
            self.container.bind_class(interface, provider)
        elif callable(provider):
            self.container.bind_factory(interface, provider)
        else:
            self.container.bind_instance(interface, provider)

    def error(
        self,
        status_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Decorator registering a handler for a status code or an exception class."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[status_or_exception] = func
            return func

        return decorator

    # -- Request handling --

    async def handle(self, request: Request) -> Response:
        """Route, dispatch and render one request. Request failures become error responses."""
        self._ensure_frozen()
        assert self._router is not None
        assert self._dispatcher is not None

        try:
            compiled = self._router.match(request.method, request.path)
            if self._middleware:
                compiled = replace(
                    compiled, middleware=(*self._middleware, *compiled.middleware)
                )
            result = await self._dispatcher.dispatch(compiled, request)
            return negotiate(result, compiler=self._view_compiler)
        except Exception as exc:
            return await render_error(exc, request, self._error_handlers, debug=self.config.debug)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point. Only HTTP scopes are served; others are ignored."""
        if scope["type"] != "http":
            return

        response = await self.handle(Request.from_asgi(scope, receive))
        await send_response(response, send)

    # -- Freezing --

    @property
    def router(self) -> Router:
        """The compiled router. Freezes the app on first access."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()
            self._frozen = True

    def _freeze(self) -> None:
        """Build the router, the view layer and the dispatcher. Caller holds _freeze_lock."""
        # 1. Routes
        router = Router()
        for pending in self._pending_routes:
            methods = frozenset(m.upper() for m in (pending.methods or ["GET"]))
            router.add(
                Route(
                    path=pending.path,
                    methods=methods,
                    middleware=pending.middleware,
                    defaults=pending.defaults,
                    name=pending.name,
                    **_target_fields(pending.target),
                )
            )
        router.compile()
        self._router = router

        # 2. View layer, bound only when the template directory exists
        template_dir = self.config.template_dir
        if template_dir is not None and Path(template_dir).is_dir():
            env = create_environment(self.config)
            factory = ViewFactory(env)
            self._view_compiler = ViewCompiler(env)
            if not self.container.has_binding(ViewFactory):
                self.container.bind_instance(ViewFactory, factory)
            if not self.container.has_binding(ViewCompiler):
                self.container.bind_instance(ViewCompiler, self._view_compiler)
        elif self.container.has_binding(ViewCompiler):
            self._view_compiler = self.container.resolve(ViewCompiler)

        # 3. Dispatcher over the container
        self.container.bind_instance(Container, self.container)
        self._dispatcher = Dispatcher(self.container)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started handling requests. "
                "Register routes, middleware and bindings before the first request."
            )
            raise RuntimeError(msg)
