"""The kida environment behind the view layer."""

from kida import ChoiceLoader, Environment, FileSystemLoader

from perch.config import AppConfig


def create_environment(config: AppConfig) -> Environment:
    """Build the environment ``App`` shares between ``ViewFactory`` and ``ViewCompiler``.

    Templates are looked up in ``template_dir``, then in each of
    ``component_dirs``. Templates reload from disk in debug mode.
    """
    search = [config.template_dir, *config.component_dirs]
    return Environment(
        loader=ChoiceLoader([FileSystemLoader(str(path)) for path in search if path is not None]),
        autoescape=config.autoescape,
        auto_reload=config.debug,
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
    )
