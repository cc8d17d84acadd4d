"""View compiler: renders a View to a string with kida."""

from kida import Environment

from perch.views.view import View


class ViewCompiler:
    """Renders views against one kida environment. Only available when bound."""

    __slots__ = ("env",)
    autowire = False

    def __init__(self, env: Environment) -> None:
        self.env = env

    def compile(self, view: View) -> str:
        """Render *view* to a string."""
        if view.source is not None:
            template = self.env.from_string(view.source)
        else:
            template = self.env.get_template(view.name)
        return template.render(dict(view.vars))
