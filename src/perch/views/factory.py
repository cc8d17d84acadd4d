"""View factory: creates views for templates the environment can load."""

from typing import Any

from kida import Environment

from perch.views.view import View


class ViewFactory:
    """Creates ``View`` objects and answers whether a template exists.

    Only available when bound; ``App`` binds it when a template directory exists.
    """

    __slots__ = ("env",)
    autowire = False

    def __init__(self, env: Environment) -> None:
        self.env = env

    def create(self, name: str, /, **vars: Any) -> View:
        """Return a view for template *name*.

        Raises kida's ``TemplateNotFoundError`` if the template doesn't exist.
        """
        self.env.get_template(name)
        return View(name, **vars)

    def has(self, name: str) -> bool:
        """True if the environment can load template *name*."""
        from kida.environment.exceptions import TemplateNotFoundError

        try:
            self.env.get_template(name)
        except TemplateNotFoundError:
            return False
        return True
