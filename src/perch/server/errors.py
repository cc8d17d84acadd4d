"""Turns request failures into responses.

``App.handle`` calls ``render_error`` for anything routing or dispatch
raised. An ``HTTPError`` keeps its status and headers. Everything else,
``RouteError`` included, is a 500 and is logged with its traceback.

Handlers registered with ``@app.error(...)`` are looked up by exception
class first (along the MRO, so a handler for ``HTTPError`` also catches
``NotFound``), then by status code.
"""

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any

from perch._internal.invoke import invoke
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response

logger = logging.getLogger("perch.server")

type ErrorHandler = Callable[..., Any]

PLAIN_TEXT = "text/plain; charset=utf-8"


def _find_handler(
    exc: Exception,
    status: int,
    handlers: Mapping[int | type, ErrorHandler],
) -> ErrorHandler | None:
    for cls in type(exc).__mro__:
        if cls in handlers:
            return handlers[cls]
    return handlers.get(status)


async def run_error_handler(handler: ErrorHandler, request: Request, exc: Exception) -> Response:
    """Call *handler* with as many of ``(request, exc)`` as it accepts.

    ``None`` becomes an empty response and any other non-``Response``
    value becomes its ``str()`` as the body.
    """
    arity = len(inspect.signature(handler).parameters)
    result = await invoke(handler, *(request, exc)[:arity])
    if isinstance(result, Response):
        return result
    return Response() if result is None else Response(str(result))


async def render_error(
    exc: Exception,
    request: Request,
    handlers: Mapping[int | type, ErrorHandler],
    *,
    debug: bool = False,
) -> Response:
    """Build the response for a failed request.

    A handler's response keeps its own status unless it left the default
    200, in which case the error's status applies.
    """
    if isinstance(exc, HTTPError):
        status = exc.status
        logger.debug("%d %s %s: %s", status, request.method, request.path, exc.detail)
    else:
        status = 500
        logger.exception("500 %s %s", request.method, request.path)

    handler = _find_handler(exc, status, handlers)
    if handler is not None:
        response = await run_error_handler(handler, request, exc)
        return response.with_status(status) if response.status == 200 else response

    if isinstance(exc, HTTPError):
        body = exc.detail or f"Error {status}"
        if debug and exc.detail:
            body = f"{status}: {exc.detail}"
        response = Response(body, status=status, content_type=PLAIN_TEXT)
        for name, value in exc.headers:
            response = response.with_header(name, value)
        return response

    body = f"Internal Server Error\n\n{exc!r}" if debug else "Internal Server Error"
    return Response(body, status=500, content_type=PLAIN_TEXT)
