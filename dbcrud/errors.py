from __future__ import annotations


class DbCrudError(Exception):
    """Base exception for dbcrud errors."""


class ConfigurationError(DbCrudError):
    """Invalid construction arguments (empty table name, empty primary key, bad config)."""


class PersistenceError(DbCrudError):
    """
    Any failure surfaced while talking to the database.

    The original error is always chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        model: object = None,
        table: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.model = model
        self.table = table
        self.operation = operation
