from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Mapping, Protocol

from sqlalchemy import MetaData, Table, create_engine, insert as sa_insert
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.sql import Insert

from ..config import DbConfig
from .helpers import bind_parameters, parse_sql_operation, validate_identifier
from .session import DbSession

logger = logging.getLogger(__name__)

_MYSQL_DIALECTS = ("mysql", "mariadb")


class DbExecutor(Protocol):
    """
    Database capability consumed by CrudEngine.

    Parameter maps are keyed by placeholder name (``":id"``) or bare name (``"id"``).
    """

    def query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run a SELECT and return its rows in order."""
        ...

    def execute(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """Run a non-returning statement; returns the affected row count."""
        ...

    def insert(
        self,
        table: str,
        record: Mapping[str, Any],
        upsert: bool = False,
    ) -> Any:
        """Insert one row; returns the generated key, or None if none was generated."""
        ...

    def reduce_to_insertable_columns(
        self,
        record: Mapping[str, Any],
        table: str,
    ) -> dict[str, Any]:
        """Restrict ``record`` to the columns ``table`` can accept on insert."""
        ...


class SqlAlchemyExecutor:
    """
    DbExecutor backed by a SQLAlchemy Engine or an active DbSession.

    Bound to an Engine, every call runs in its own DbSession (one transaction
    per call). Bound to a DbSession, every call joins that session's
    transaction and the caller decides when to commit.

    Usage:
        executor = SqlAlchemyExecutor(engine)

        with DbSession(engine) as session:
            tx_executor = SqlAlchemyExecutor(session)
            ...
    """

    def __init__(self, bind: Engine | DbSession) -> None:
        self.bind = bind
        self._metadata = MetaData()

    @contextmanager
    def _session(self) -> Iterator[DbSession]:
        if isinstance(self.bind, DbSession):
            yield self.bind
            return
        with DbSession(self.bind) as session:
            yield session

    def _table(self, session: DbSession, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            validate_identifier(name, "table")
            logger.debug("Reflecting table %s", name)
            table = Table(name, self._metadata, autoload_with=session.connection)
        return table

    @staticmethod
    def _log_statement(sql: str, bound: Mapping[str, Any]) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            table, op_type = parse_sql_operation(sql)
            logger.debug("%s on %s: %s params=%s", op_type, table, sql, sorted(bound))

    def query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        bound = bind_parameters(params)
        self._log_statement(sql, bound)
        with self._session() as session:
            return session.fetch_all(sql, bound)

    def execute(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        bound = bind_parameters(params)
        self._log_statement(sql, bound)
        with self._session() as session:
            return session.execute(sql, bound)

    def reduce_to_insertable_columns(
        self,
        record: Mapping[str, Any],
        table: str,
    ) -> dict[str, Any]:
        target = self._metadata.tables.get(table)
        if target is None:
            with self._session() as session:
                target = self._table(session, table)

        writable = {column.name for column in target.columns if column.computed is None}
        dropped = [name for name in record if name not in writable]
        if dropped:
            logger.debug("Dropping columns %s not insertable into %s", dropped, table)
        return {name: value for name, value in record.items() if name in writable}

    def insert(
        self,
        table: str,
        record: Mapping[str, Any],
        upsert: bool = False,
    ) -> Any:
        """
        Insert ``record`` into ``table``, optionally as an upsert.

        Upsert overwrites every non-key column present in ``record`` when the
        row already exists. A key counts as generated only when the table has
        an auto-increment column and ``record`` left it unset.

        Raises:
            NotImplementedError: If ``upsert`` is requested on a dialect other
                than MySQL/MariaDB, PostgreSQL or SQLite
            sqlalchemy.exc.SQLAlchemyError: On any driver failure, including
                primary key conflicts for a plain insert
        """
        with self._session() as session:
            target = self._table(session, table)
            values = dict(record)

            auto_column = target.autoincrement_column
            generates_key = auto_column is not None and values.get(auto_column.name) is None
            if generates_key:
                values.pop(auto_column.name, None)

            dialect = session.connection.dialect.name
            stmt = self._build_insert(target, values, upsert, dialect)
            logger.debug("insert into %s (upsert=%s) columns=%s", table, upsert, list(values))
            key = session.insert_row(stmt, return_key=generates_key)

        if not generates_key or not key:
            return None
        position = list(target.primary_key.columns).index(auto_column)
        return key[position]

    @staticmethod
    def _build_insert(
        target: Table,
        values: dict[str, Any],
        upsert: bool,
        dialect: str,
    ) -> Insert:
        if not upsert:
            return sa_insert(target).values(values)

        key_columns = [column.name for column in target.primary_key.columns]
        update_columns = [name for name in values if name not in key_columns]

        if dialect in _MYSQL_DIALECTS:
            stmt = mysql.insert(target).values(values)
            if not update_columns:
                # ON DUPLICATE KEY UPDATE needs at least one assignment
                return stmt.on_duplicate_key_update({name: target.c[name] for name in key_columns})
            return stmt.on_duplicate_key_update({name: stmt.inserted[name] for name in update_columns})

        if dialect == "sqlite":
            stmt = sqlite.insert(target).values(values)
        elif dialect == "postgresql":
            stmt = postgresql.insert(target).values(values)
        else:
            raise NotImplementedError(f"Upsert is not supported for dialect {dialect!r}")

        index_elements = key_columns or None
        if not update_columns:
            return stmt.on_conflict_do_nothing(index_elements=index_elements)
        return stmt.on_conflict_do_update(
            index_elements=index_elements,
            set_={name: stmt.excluded[name] for name in update_columns},
        )


def create_executor(config: DbConfig | None = None) -> SqlAlchemyExecutor:
    """
    Build an Engine-bound executor from ``config`` (or from the environment).
    """
    config = config or DbConfig.from_env()
    engine = create_engine(config.url, echo=config.echo, pool_pre_ping=config.pool_pre_ping)
    return SqlAlchemyExecutor(engine)
