"""Data layer error hierarchy."""

from perch.errors import PerchError


class DataError(PerchError):
    """Base for all perch.data errors."""


class QueryBuilderError(DataError):
    """Raised when a query cannot be rendered to SQL."""
