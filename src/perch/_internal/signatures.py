"""Signature helpers shared by the container and the dispatcher.

Both autowire callables from their parameters: a parameter annotated with
a class is a dependency, anything else is a value.
"""

import inspect
from collections.abc import Callable
from typing import Any

# Builtin scalars are values, not services, even though they are classes
SCALAR_TYPES: frozenset[type] = frozenset({str, int, float, bool, bytes, complex})

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def bindable_parameters(func: Callable[..., Any]) -> list[inspect.Parameter]:
    """Return the parameters of *func* that can be bound by name or position.

    ``*args`` and ``**kwargs`` are dropped. String annotations are evaluated.
    """
    sig = inspect.signature(func, eval_str=True)
    return [p for p in sig.parameters.values() if p.kind not in _SKIPPED_KINDS]


def class_annotation(param: inspect.Parameter) -> type | None:
    """Return the parameter's class annotation, or ``None`` for scalars and untyped."""
    annotation = param.annotation
    if annotation is inspect.Parameter.empty:
        return None
    if not isinstance(annotation, type) or annotation in SCALAR_TYPES:
        return None
    return annotation


def scalar_annotation(param: inspect.Parameter) -> type | None:
    """Return the parameter's annotation when it is a builtin scalar type."""
    annotation = param.annotation
    if isinstance(annotation, type) and annotation in SCALAR_TYPES:
        return annotation
    return None


def split_arguments(
    params: list[inspect.Parameter],
    values: dict[str, Any],
) -> tuple[list[Any], dict[str, Any]]:
    """Split resolved values into positional-only args and keyword args."""
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for param in params:
        if param.name not in values:
            if (
                param.kind is inspect.Parameter.POSITIONAL_ONLY
                and param.default is not inspect.Parameter.empty
            ):
                args.append(param.default)
            continue
        if param.kind is inspect.Parameter.POSITIONAL_ONLY:
            args.append(values[param.name])
        else:
            kwargs[param.name] = values[param.name]
    return args, kwargs
