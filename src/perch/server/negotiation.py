"""Turns whatever dispatch returned into a ``Response``.

Dispatch already maps ``str`` and ``None``; what can still arrive here is
a ``Response`` or a ``View``. A ``View`` is rendered with the app's
compiler, or, for an inline view in an app without templates, with a
bare kida environment.
"""

from typing import Any

from kida import Environment

from perch.errors import ConfigurationError
from perch.http.response import Response
from perch.views.compiler import ViewCompiler
from perch.views.view import View


def negotiate(value: Any, *, compiler: ViewCompiler | None = None) -> Response:
    """Convert a dispatch result to a ``Response``.

    Raises ``ConfigurationError`` for a named view when no view layer is
    configured, and ``TypeError`` for any other value.
    """
    match value:
        case Response():
            return value
        case None:
            return Response()
        case str():
            return Response(value)
        case View():
            if compiler is None:
                if value.source is None:
                    msg = (
                        f"Cannot render view {value.name!r}: no view layer. "
                        "Set template_dir in AppConfig."
                    )
                    raise ConfigurationError(msg)
                compiler = ViewCompiler(Environment())
            return Response(compiler.compile(value))
        case _:
            msg = f"Cannot convert {type(value).__name__} to a response"
            raise TypeError(msg)
