"""Placeholder values and their storage types.

Every ``?`` in rendered SQL has one ``(value, ParamType)`` pair, so a
prepared-statement layer knows how to bind it.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Any

type Placeholder = tuple[Any, ParamType]


class ParamType(Enum):
    """Storage type of a bound placeholder value."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    STR = "str"
    LOB = "lob"


def to_placeholder(value: Any) -> Placeholder:
    """Normalize a bare value or a ``(value, ParamType)`` pair.

    Bare values are tagged ``ParamType.STR``.
    """
    if (
        isinstance(value, tuple)
        and len(value) == 2
        and isinstance(value[1], ParamType)
    ):
        return value[0], value[1]
    return value, ParamType.STR


def to_placeholders(values: Iterable[Any]) -> tuple[Placeholder, ...]:
    return tuple(to_placeholder(v) for v in values)
