"""App settings."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Settings read once, when the app freezes.

    The view layer exists only when ``template_dir`` names an existing
    directory; ``component_dirs`` are searched after it::

        AppConfig(debug=True, template_dir="views", component_dirs=("shared",))
    """

    debug: bool = False

    template_dir: str | Path | None = "templates"
    component_dirs: tuple[str | Path, ...] = ()
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True
