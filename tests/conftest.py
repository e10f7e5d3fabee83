from __future__ import annotations

import re
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, Mapping

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine


class RecordingExecutor:
    """
    In-memory DbExecutor double that records every call.

    ``rows`` is what query() returns, ``generated_key`` what insert() returns,
    and ``insertable`` (if set) the columns reduce_to_insertable_columns() keeps.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.rows: list[dict[str, Any]] = []
        self.generated_key: Any = None
        self.insertable: set[str] | None = None

    def query(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        self.calls.append(("query", sql, dict(params or {})))
        return list(self.rows)

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        self.calls.append(("execute", sql, dict(params or {})))
        return 0

    def insert(self, table: str, record: Mapping[str, Any], upsert: bool = False) -> Any:
        self.calls.append(("insert", table, dict(record), upsert))
        return self.generated_key

    def reduce_to_insertable_columns(self, record: Mapping[str, Any], table: str) -> dict[str, Any]:
        self.calls.append(("reduce", table, dict(record)))
        if self.insertable is None:
            return dict(record)
        return {k: v for k, v in record.items() if k in self.insertable}


@pytest.fixture
def fake_executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    """
    Per-test SQLite file database.
    """
    eng = create_engine(f"sqlite:///{tmp_path / 'dbcrud.db'}")
    yield eng
    eng.dispose()


def _sanitize_table_name(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9_]+", "_", name).strip("_").lower()
    if not name:
        name = "t"
    return name[:48]


@pytest.fixture
def table_factory(engine: Engine, request: pytest.FixtureRequest) -> Iterator[Callable[[str], str]]:
    """
    Factory fixture creating per-test tables.

    Usage:
        table = table_factory("id INTEGER PRIMARY KEY, name TEXT")
    """
    created: list[str] = []

    def _create(schema_sql: str) -> str:
        base = _sanitize_table_name(f"t_{request.node.name}")
        suffix = uuid.uuid4().hex[:10]
        table = f"{base}_{suffix}"

        with engine.begin() as conn:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS {table}")
            conn.exec_driver_sql(f"CREATE TABLE {table} ({schema_sql})")

        created.append(table)
        return table

    yield _create

    with engine.begin() as conn:
        for table in created:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS {table}")


@pytest.fixture
def users_table(table_factory: Callable[[str], str]) -> str:
    """
    Single-column auto-increment key.
    """
    return table_factory(
        """
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT
        """
    )


@pytest.fixture
def memberships_table(table_factory: Callable[[str], str]) -> str:
    """
    Composite key, nothing generated.
    """
    return table_factory(
        """
        user_id INTEGER NOT NULL,
        group_id INTEGER NOT NULL,
        role TEXT,
        PRIMARY KEY (user_id, group_id)
        """
    )


@pytest.fixture
def tags_table(table_factory: Callable[[str], str]) -> str:
    """
    Natural string key, nothing generated.
    """
    return table_factory(
        """
        slug TEXT NOT NULL PRIMARY KEY,
        label TEXT NOT NULL
        """
    )
