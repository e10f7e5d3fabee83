from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from .errors import ConfigurationError

Scalar = Union[None, int, float, str, bool, bytes]
Record = Mapping[str, Scalar]
PrimaryKeyValue = Union[Scalar, Dict[str, Scalar]]


class CrudOperationType(str, Enum):
    FETCH = "fetch"
    SAVE = "save"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class SingleKey:
    """
    Primary key made of one column.
    """
    column: str

    @property
    def columns(self) -> tuple[str, ...]:
        return (self.column,)

    def extract(self, record: Record) -> Scalar:
        """Return the key value held by ``record``. Raises KeyError if absent."""
        return record[self.column]

    def conditions_for(self, pk_value: Any) -> dict[str, Scalar]:
        """
        Normalize a delete key into column -> value equalities.

        A mapping is accepted only if it holds exactly this key's column.
        """
        if isinstance(pk_value, Mapping):
            if set(pk_value) != {self.column}:
                raise ValueError(
                    f"Primary key mapping must contain exactly column {self.column!r}, "
                    f"got {sorted(pk_value)!r}"
                )
            return dict(pk_value)
        return {self.column: pk_value}


@dataclass(frozen=True)
class CompositeKey:
    """
    Primary key made of an ordered set of columns.
    """
    columns: tuple[str, ...]

    def extract(self, record: Record) -> dict[str, Scalar]:
        """
        Project ``record`` onto the key columns, in key column order.

        Raises KeyError naming the first key column missing from the record.
        """
        return {column: record[column] for column in self.columns}

    def conditions_for(self, pk_value: Any) -> dict[str, Scalar]:
        if not isinstance(pk_value, Mapping):
            raise ValueError(
                f"Composite primary key {list(self.columns)!r} requires a mapping, "
                f"got {type(pk_value).__name__}"
            )
        missing = [column for column in self.columns if column not in pk_value]
        if missing:
            raise ValueError(f"Primary key mapping is missing columns {missing!r}")
        extra = [column for column in pk_value if column not in self.columns]
        if extra:
            raise ValueError(f"Primary key mapping has unknown columns {extra!r}")
        # Caller's order drives the rendered WHERE clause
        return dict(pk_value)


PrimaryKeySpec = Union[SingleKey, CompositeKey]


def primary_key_spec(value: str | Sequence[str]) -> PrimaryKeySpec:
    """
    Convert a primary key definition into its tagged form.

    A string names a single-column key; any other sequence of strings names a
    composite key (even with one element).

    Raises:
        ConfigurationError: If the definition is empty, contains empty or
            non-string column names, or repeats a column.
    """
    if isinstance(value, str):
        if not value:
            raise ConfigurationError("primary key cannot be empty")
        return SingleKey(value)

    if not isinstance(value, Sequence):
        raise ConfigurationError(
            f"primary key must be a column name or a sequence of column names, "
            f"got {type(value).__name__}"
        )

    columns = tuple(value)
    if not columns:
        raise ConfigurationError("primary key cannot be empty")
    for column in columns:
        if not isinstance(column, str) or not column:
            raise ConfigurationError(f"invalid primary key column {column!r}")
    if len(set(columns)) != len(columns):
        raise ConfigurationError(f"primary key repeats a column: {list(columns)!r}")
    return CompositeKey(columns)
