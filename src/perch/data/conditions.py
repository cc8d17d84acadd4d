"""Conditions that carry their own placeholder values.

A plain string condition never binds anything; these do::

    UpdateQuery("users", "", {"active": False}).where(
        "last_login < NOW()",
        in_("role", ["guest", "trial"]),
    )
    # ... WHERE (last_login < NOW()) AND (role IN (?, ?))
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from perch.data.errors import QueryBuilderError
from perch.data.params import ParamType, Placeholder


@dataclass(frozen=True, slots=True)
class Condition:
    """A rendered condition plus the placeholders it embeds, in order."""

    sql: str
    params: tuple[Placeholder, ...] = ()


def between(
    column: str,
    lower: Any,
    upper: Any,
    type: ParamType = ParamType.STR,  # noqa: A002
) -> Condition:
    """``column BETWEEN ? AND ?``"""
    return Condition(f"{column} BETWEEN ? AND ?", ((lower, type), (upper, type)))


def not_between(
    column: str,
    lower: Any,
    upper: Any,
    type: ParamType = ParamType.STR,  # noqa: A002
) -> Condition:
    """``column NOT BETWEEN ? AND ?``"""
    return Condition(f"{column} NOT BETWEEN ? AND ?", ((lower, type), (upper, type)))


def in_(
    column: str,
    values: Iterable[Any],
    type: ParamType = ParamType.STR,  # noqa: A002
) -> Condition:
    """``column IN (?, ...)``. Raises ``QueryBuilderError`` for no values."""
    return _membership(column, "IN", values, type)


def not_in(
    column: str,
    values: Iterable[Any],
    type: ParamType = ParamType.STR,  # noqa: A002
) -> Condition:
    """``column NOT IN (?, ...)``. Raises ``QueryBuilderError`` for no values."""
    return _membership(column, "NOT IN", values, type)


def _membership(column: str, operator: str, values: Iterable[Any], type: ParamType) -> Condition:  # noqa: A002
    params = tuple((v, type) for v in values)
    if not params:
        msg = f"{operator} condition on {column!r} needs at least one value"
        raise QueryBuilderError(msg)
    placeholders = ", ".join("?" for _ in params)
    return Condition(f"{column} {operator} ({placeholders})", params)
