"""The View value type: a template reference plus its variables."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class View:
    """A kida template to render, by name or from inline source.

    Usage::

        View("users/show.html", user=user)
        View.inline("<h1>{{ title }}</h1>", title="Hello")
    """

    name: str
    vars: Mapping[str, Any] = field(default_factory=dict)
    source: str | None = None

    def __init__(self, name: str, /, source: str | None = None, **vars: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "vars", vars)
        object.__setattr__(self, "source", source)

    @staticmethod
    def inline(source: str, /, **vars: Any) -> "View":
        """Create a view from template source.  For prototyping only."""
        return View("<inline>", source=source, **vars)

    def with_vars(self, **vars: Any) -> "View":
        """Return a new View with *vars* merged over the existing ones."""
        return View(self.name, source=self.source, **{**self.vars, **vars})
