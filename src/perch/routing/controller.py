"""Base controller class.

Controllers are plain classes resolved through the container, so their
constructors can declare services. Extending ``Controller`` opts into the
request and view hooks: the dispatcher hands over the current request and,
when the app has a view layer, a ``ViewFactory`` and ``ViewCompiler``.

Usage::

    class UserController(Controller):
        def __init__(self, users: UserRepository) -> None:
            self.users = users

        def show(self, id: int):
            user = self.users.get_by_id(id)
            if user is None:
                return self.show_http_error(404)
            self.view = self.view_factory.create("users/show.html", user=user)
"""

from typing import Any

from perch._internal.invoke import invoke
from perch.http.request import Request
from perch.http.response import Response
from perch.views.compiler import ViewCompiler
from perch.views.factory import ViewFactory
from perch.views.view import View


class Controller:
    """Base for controllers that want the request and the view layer."""

    request: Request | None = None
    view: View | None = None
    view_factory: ViewFactory | None = None
    view_compiler: ViewCompiler | None = None

    def set_request(self, request: Request) -> None:
        self.request = request

    def set_view_factory(self, view_factory: ViewFactory) -> None:
        self.view_factory = view_factory

    def set_view_compiler(self, view_compiler: ViewCompiler) -> None:
        self.view_compiler = view_compiler

    async def call_method(
        self,
        method_name: str,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> Any:
        """Call one of this controller's methods and build its response.

        A method that returns ``None`` or a string gets a ``Response``; when
        it also set ``self.view`` and a compiler is available, the rendered
        view becomes the body.
        """
        result = await invoke(getattr(self, method_name), *args, **kwargs)
        if result is not None and not isinstance(result, str):
            return result

        body = result or ""
        if self.view is not None and self.view_compiler is not None:
            body = self.view_compiler.compile(self.view)
        return Response(body)

    def show_http_error(self, status: int) -> Response:
        """Build an error response, rendering ``errors/<status>.html`` if it exists."""
        template = f"errors/{status}.html"
        if (
            self.view_factory is not None
            and self.view_compiler is not None
            and self.view_factory.has(template)
        ):
            self.view = self.view_factory.create(template)
            body = self.view_compiler.compile(self.view)
        else:
            body = ""
        return Response(body, status=status)
