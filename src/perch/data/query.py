"""Immutable SQL query builders.

Accumulate column values and WHERE conditions through chaining methods,
then read back exactly one SQL string and one ordered placeholder list.
Nothing here talks to a database: ``.sql`` and ``.params`` are handed
to whatever prepared-statement layer runs the query.

Each method returns a new frozen query; the original is never mutated.

Usage::

    from perch.data import ParamType, UpdateQuery

    query = (
        UpdateQuery("users", "u", {"name": "david"})
        .add_column_values({"email": "bar@foo.com"})
        .where("u.id = ?")
        .add_unnamed_placeholder_value(18175, ParamType.INT)
    )
    query.sql
    # UPDATE users AS u SET name = ?, email = ? WHERE (u.id = ?)
    query.params
    # (("david", ParamType.STR), ("bar@foo.com", ParamType.STR), (18175, ParamType.INT))

Placeholder order always matches the order ``?`` appears in ``.sql``:
column values first, then values embedded by ``Condition`` objects,
then explicitly appended unnamed placeholders.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Self

from perch.data.conditions import Condition
from perch.data.errors import QueryBuilderError
from perch.data.params import ParamType, Placeholder, to_placeholder, to_placeholders

type ColumnValues = tuple[tuple[str, Placeholder], ...]


def _normalize_columns(values: Mapping[str, Any] | ColumnValues | None) -> ColumnValues:
    if not values:
        return ()
    items = values.items() if isinstance(values, Mapping) else values
    return tuple((column, to_placeholder(value)) for column, value in items)


def _merge_columns(existing: ColumnValues, new: Mapping[str, Any]) -> ColumnValues:
    """Append *new* columns; a repeated name overrides in its original position."""
    merged = dict(existing)
    merged.update(_normalize_columns(new))
    return tuple(merged.items())


@dataclass(frozen=True, slots=True)
class _WhereGroup:
    """One ``where()`` call: conditions ANDed together, joined to the previous group."""

    joiner: str
    conditions: tuple[Condition, ...]


@dataclass(frozen=True, slots=True)
class ConditionalQuery:
    """Shared WHERE and placeholder handling for UPDATE and DELETE."""

    table: str
    alias: str = ""
    _wheres: tuple[_WhereGroup, ...] = field(default=(), kw_only=True)
    _unnamed: tuple[Placeholder, ...] = field(default=(), kw_only=True)

    # ── Building ─────────────────────────────────────────────────────────

    def where(self, *conditions: str | Condition) -> Self:
        """Add a group of conditions, ANDed with any previous group.

        ::

            query.where("u.id = ?", "emails.userid = u.id")
            # WHERE (u.id = ?) AND (emails.userid = u.id)
        """
        return self._add_where("AND", conditions)

    def and_where(self, *conditions: str | Condition) -> Self:
        """Add a group of conditions joined to the previous group by AND."""
        return self._add_where("AND", conditions)

    def or_where(self, *conditions: str | Condition) -> Self:
        """Add a group of conditions joined to the previous group by OR.

        ::

            query.where("u.id = ?").or_where("u.name = ?")
            # WHERE (u.id = ?) OR (u.name = ?)
        """
        return self._add_where("OR", conditions)

    def add_unnamed_placeholder_value(self, value: Any, type: ParamType = ParamType.STR) -> Self:  # noqa: A002
        """Append one placeholder value after every other placeholder."""
        return replace(self, _unnamed=(*self._unnamed, (value, type)))

    def add_unnamed_placeholder_values(self, values: Iterable[Any]) -> Self:
        """Append placeholder values, each bare (``STR``) or a ``(value, ParamType)`` pair."""
        return replace(self, _unnamed=(*self._unnamed, *to_placeholders(values)))

    def _add_where(self, joiner: str, conditions: tuple[str | Condition, ...]) -> Self:
        if not conditions:
            return self
        group = _WhereGroup(
            joiner=joiner,
            conditions=tuple(c if isinstance(c, Condition) else Condition(c) for c in conditions),
        )
        return replace(self, _wheres=(*self._wheres, group))

    # ── Compilation ──────────────────────────────────────────────────────

    def _table_sql(self) -> str:
        if self.alias:
            return f"{self.table} AS {self.alias}"
        return self.table

    def _where_sql(self) -> str:
        """`` WHERE ...`` or an empty string when no conditions were added."""
        if not self._wheres:
            return ""
        parts: list[str] = []
        for i, group in enumerate(self._wheres):
            if i > 0:
                parts.append(group.joiner)
            parts.append(" AND ".join(f"({c.sql})" for c in group.conditions))
        return " WHERE " + " ".join(parts)

    def _where_params(self) -> list[Placeholder]:
        result: list[Placeholder] = []
        for group in self._wheres:
            for condition in group.conditions:
                result.extend(condition.params)
        result.extend(self._unnamed)
        return result


@dataclass(frozen=True, slots=True)
class UpdateQuery(ConditionalQuery):
    """Immutable UPDATE builder.

    ``column_values`` maps column names to values; a value is bare
    (bound as ``ParamType.STR``) or a ``(value, ParamType)`` pair.
    """

    column_values: Mapping[str, Any] | ColumnValues = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "column_values", _normalize_columns(self.column_values))

    def add_column_values(self, values: Mapping[str, Any]) -> "UpdateQuery":
        """Add more ``SET`` columns after the existing ones.

        A column that is already set keeps its position and takes the new value.
        """
        return replace(self, column_values=_merge_columns(self.column_values, values))

    @property
    def sql(self) -> str:
        """The exact SQL that will run."""
        if not self.column_values:
            msg = f"UPDATE {self.table} has no columns to set"
            raise QueryBuilderError(msg)
        assignments = ", ".join(f"{column} = ?" for column, _ in self.column_values)
        return f"UPDATE {self._table_sql()} SET {assignments}{self._where_sql()}"

    @property
    def params(self) -> tuple[Placeholder, ...]:
        """The bound placeholders, in the order they appear in ``sql``."""
        return (*(p for _, p in self.column_values), *self._where_params())

    def get_sql(self) -> str:
        return self.sql

    def get_parameters(self) -> list[Placeholder]:
        return list(self.params)


@dataclass(frozen=True, slots=True)
class DeleteQuery(ConditionalQuery):
    """Immutable DELETE builder.

    ::

        DeleteQuery("sessions").where("expires_at < ?").add_unnamed_placeholder_value(now)
    """

    @property
    def sql(self) -> str:
        """The exact SQL that will run."""
        return f"DELETE FROM {self._table_sql()}{self._where_sql()}"

    @property
    def params(self) -> tuple[Placeholder, ...]:
        """The bound placeholders, in the order they appear in ``sql``."""
        return tuple(self._where_params())

    def get_sql(self) -> str:
        return self.sql

    def get_parameters(self) -> list[Placeholder]:
        return list(self.params)


@dataclass(frozen=True, slots=True)
class InsertQuery:
    """Immutable INSERT builder.

    ::

        InsertQuery("users", {"name": "dave", "age": (42, ParamType.INT)}).sql
        # INSERT INTO users (name, age) VALUES (?, ?)
    """

    table: str
    column_values: Mapping[str, Any] | ColumnValues = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "column_values", _normalize_columns(self.column_values))

    def add_column_values(self, values: Mapping[str, Any]) -> "InsertQuery":
        """Add more columns after the existing ones."""
        return replace(self, column_values=_merge_columns(self.column_values, values))

    @property
    def sql(self) -> str:
        """The exact SQL that will run."""
        if not self.column_values:
            msg = f"INSERT INTO {self.table} has no columns"
            raise QueryBuilderError(msg)
        columns = ", ".join(column for column, _ in self.column_values)
        placeholders = ", ".join("?" for _ in self.column_values)
        return f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})"

    @property
    def params(self) -> tuple[Placeholder, ...]:
        """The bound placeholders, in column order."""
        return tuple(p for _, p in self.column_values)

    def get_sql(self) -> str:
        return self.sql

    def get_parameters(self) -> list[Placeholder]:
        return list(self.params)
