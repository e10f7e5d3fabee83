from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql import Executable, TextClause

logger = logging.getLogger(__name__)


class DbSession:
    """
    Transactional wrapper around a SQLAlchemy Engine connection.

    Commits when the block exits cleanly, rolls back when it raises, and always
    returns the connection to the pool.

    Use as:
        with DbSession(engine) as session:
            session.execute("DELETE FROM users WHERE id = :id", {"id": 7})
            rows = session.fetch_all("SELECT * FROM users")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._conn: Connection | None = None
        self._tx = None

    def __enter__(self) -> "DbSession":
        if self._conn is not None:
            raise RuntimeError("DbSession is already active; nested sessions are not allowed")
        self._conn = self.engine.connect()
        self._tx = self._conn.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._tx is not None:
                if exc_type:
                    logger.debug("Rolling back session after %s", exc_type.__name__)
                    self._tx.rollback()
                else:
                    self._tx.commit()
        finally:
            if self._conn is not None:
                self._conn.close()

            self._conn = None
            self._tx = None

        return False

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("DbSession is not active; use within a context manager")
        return self._conn

    def execute(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """
        Execute a non-SELECT statement and return affected row count.
        """
        stmt = text(sql) if isinstance(sql, str) else sql
        result = self.connection.execute(stmt, dict(params or {}))
        try:
            return int(result.rowcount) if result.rowcount is not None else 0
        finally:
            result.close()

    def fetch_all(
        self,
        sql: str | TextClause,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a SELECT and return every row as a dict, in driver order.
        """
        stmt = text(sql) if isinstance(sql, str) else sql
        result = self.connection.execute(stmt, dict(params or {}))
        try:
            return [dict(row) for row in result.mappings()]
        finally:
            result.close()

    def insert_row(self, stmt: Executable, return_key: bool = True) -> tuple[Any, ...] | None:
        """
        Execute a single-row Core INSERT construct.

        Returns the inserted primary key as a tuple in table key order, or
        None if ``return_key`` is false or the dialect could not report one.
        """
        result = self.connection.execute(stmt)
        try:
            if not return_key:
                return None
            key = result.inserted_primary_key
            return tuple(key) if key is not None else None
        finally:
            result.close()
