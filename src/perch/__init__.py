"""Perch: routes dispatched through middleware to DI-built controllers.

::

    from perch import App

    app = App()

    @app.route("/users/{id:int}")
    def show_user(id: int):
        return f"user {id}"

SQL builders live in ``perch.data`` and the user repository contract in
``perch.users``.
"""

import importlib

__version__ = "0.1.0"

# Public name -> defining module, imported on first access
_EXPORTS: dict[str, str] = {
    "App": "perch.app",
    "AppConfig": "perch.config",
    "Container": "perch.ioc.container",
    "Controller": "perch.routing.controller",
    "Request": "perch.http.request",
    "Response": "perch.http.response",
    "View": "perch.views.view",
    "AnyResponse": "perch.middleware.protocol",
    "Middleware": "perch.middleware.protocol",
    "Next": "perch.middleware.protocol",
    "ConfigurationError": "perch.errors",
    "DependencyResolutionError": "perch.errors",
    "HTTPError": "perch.errors",
    "MethodNotAllowed": "perch.errors",
    "NotFound": "perch.errors",
    "PerchError": "perch.errors",
    "PipelineError": "perch.errors",
    "RouteError": "perch.errors",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> object:
    module = _EXPORTS.get(name)
    if module is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(importlib.import_module(module), name)
