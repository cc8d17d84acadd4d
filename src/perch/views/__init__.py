"""Views: kida templates behind a factory and a compiler.

Controllers receive both through the container when the app has a
template directory::

    class UserController(Controller):
        def show(self, id: int):
            self.view = self.view_factory.create("users/show.html", id=id)
"""

from perch.views.compiler import ViewCompiler
from perch.views.environment import create_environment
from perch.views.factory import ViewFactory
from perch.views.view import View

__all__ = ["View", "ViewCompiler", "ViewFactory", "create_environment"]
