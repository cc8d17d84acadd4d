"""SQL query builders for perch.

SQL strings and ordered, typed placeholders out. No connections, no ORM.

Basic usage::

    from perch.data import ParamType, UpdateQuery

    query = UpdateQuery("users", "", {"name": "david"}).where("id = ?")
    query = query.add_unnamed_placeholder_value(18175, ParamType.INT)
    cursor.execute(query.sql, [value for value, _ in query.params])
"""

from perch.data.conditions import Condition, between, in_, not_between, not_in
from perch.data.errors import DataError, QueryBuilderError
from perch.data.params import ParamType
from perch.data.query import ConditionalQuery, DeleteQuery, InsertQuery, UpdateQuery

__all__ = [
    "Condition",
    "ConditionalQuery",
    "DataError",
    "DeleteQuery",
    "InsertQuery",
    "ParamType",
    "QueryBuilderError",
    "UpdateQuery",
    "between",
    "in_",
    "not_between",
    "not_in",
]
