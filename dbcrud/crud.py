from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Optional

from .criteria import NULL_CRITERIA, Criteria
from .db.executor import DbExecutor
from .db.helpers import conditions_to_parameters, render_conditions
from .db.metrics import observe_crud_operation
from .errors import ConfigurationError, PersistenceError
from .models import CrudOperationType, PrimaryKeyValue, Record, primary_key_spec

logger = logging.getLogger(__name__)


class Crud(ABC):
    """
    Data access surface an object-relational layer builds on.
    """

    @abstractmethod
    def get_main_table(self) -> str:
        ...

    @abstractmethod
    def get_model_identifier(self) -> Any:
        ...

    @abstractmethod
    def get_primary_key(self) -> str | tuple[str, ...]:
        ...

    @abstractmethod
    def fetch_one(self, criteria: Optional[Criteria] = None) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    def fetch_all(self, criteria: Optional[Criteria] = None) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def save(self, record: Record) -> PrimaryKeyValue:
        ...

    @abstractmethod
    def insert(self, record: Record) -> PrimaryKeyValue:
        ...

    @abstractmethod
    def delete(self, pk_value: Any) -> None:
        ...

    @abstractmethod
    def get_related_join_fragment(self, relation: Any) -> str:
        ...


class CrudEngine(Crud):
    """
    Table-agnostic CRUD over a single main table.

    Renders parameterized SQL, runs it through the injected DbExecutor and
    normalizes every executor failure into PersistenceError (the original
    error is kept as ``__cause__``). Holds no state besides its constructor
    arguments; no retries, no transactions. Pass an executor bound to a
    DbSession when several calls must be atomic.

    Usage:
        users = CrudEngine("User", "users", "id", SqlAlchemyExecutor(engine))
        user_id = users.insert({"name": "ada"})
        row = users.fetch_one(SimpleCriteria.where(id=user_id))
        users.delete(user_id)

        memberships = CrudEngine("Membership", "memberships", ["user_id", "group_id"], executor)
        memberships.save({"user_id": 1, "group_id": 2, "role": "owner"})
        memberships.delete({"user_id": 1, "group_id": 2})
    """

    def __init__(
        self,
        model: Any,
        main_table: str,
        primary_key: str | Sequence[str],
        executor: DbExecutor,
    ) -> None:
        """
        Args:
            model: Opaque model label, used only in errors and logs
            main_table: Table holding the model's rows (trusted identifier)
            primary_key: Column name, or ordered column names for a composite key
            executor: Database capability used for every call

        Raises:
            ConfigurationError: If the table name or primary key is empty, or
                no executor is given
        """
        if not isinstance(main_table, str) or not main_table:
            raise ConfigurationError(f"main table for model {model!r} cannot be empty")
        if executor is None:
            raise ConfigurationError(f"no executor given for model {model!r}")

        self._model = model
        self._main_table = main_table
        self._key_spec = primary_key_spec(primary_key)
        # Composite keys are kept as the validated tuple, not the caller's sequence
        self._primary_key = primary_key if isinstance(primary_key, str) else self._key_spec.columns
        self._executor = executor

    def get_main_table(self) -> str:
        return self._main_table

    def get_model_identifier(self) -> Any:
        return self._model

    def get_primary_key(self) -> str | tuple[str, ...]:
        return self._primary_key

    @contextmanager
    def _persistence_boundary(self, operation: CrudOperationType) -> Iterator[None]:
        start_time = time.monotonic()
        status = "success"
        try:
            yield
        except Exception as exc:
            status = "error"
            logger.warning(
                "%s on %s (model %r) failed: %s: %s",
                operation.value,
                self._main_table,
                self._model,
                type(exc).__name__,
                exc,
            )
            raise PersistenceError(
                str(exc) or type(exc).__name__,
                model=self._model,
                table=self._main_table,
                operation=operation.value,
            ) from exc
        finally:
            observe_crud_operation(
                self._main_table, operation.value, status, time.monotonic() - start_time
            )

    def fetch_one(self, criteria: Optional[Criteria] = None) -> Optional[dict[str, Any]]:
        """
        Return the first row matching ``criteria``, or None when nothing matches.

        No LIMIT is added; ``criteria`` is expected to scope to one row.
        """
        rows = self.fetch_all(criteria)
        return rows[0] if rows else None

    def fetch_all(self, criteria: Optional[Criteria] = None) -> list[dict[str, Any]]:
        """
        Return every row matching ``criteria`` exactly as the executor returns them.
        """
        with self._persistence_boundary(CrudOperationType.FETCH):
            sql = f"SELECT * FROM {self._main_table}"
            params: dict[str, Any] = {}

            if criteria is None:
                criteria = NULL_CRITERIA

            condition = criteria.condition
            if condition is not None:
                sql += f" WHERE {condition.render()}"
                params = dict(condition.parameters())

            return list(self._executor.query(sql, params))

    def save(self, record: Record) -> PrimaryKeyValue:
        """
        Insert ``record``, updating the existing row on a primary key conflict.

        Returns the primary key of the saved row.
        """
        with self._persistence_boundary(CrudOperationType.SAVE):
            return self._save_or_insert(record, upsert=True)

    def insert(self, record: Record) -> PrimaryKeyValue:
        """
        Insert ``record``; a primary key conflict raises PersistenceError.

        Returns the primary key of the new row.
        """
        with self._persistence_boundary(CrudOperationType.INSERT):
            return self._save_or_insert(record, upsert=False)

    def delete(self, pk_value: Any) -> None:
        """
        Delete the row identified by ``pk_value``.

        ``pk_value`` is a scalar for a single-column key, or a mapping of key
        column -> value (required for composite keys). Deleting a row that
        does not exist is not an error.
        """
        with self._persistence_boundary(CrudOperationType.DELETE):
            conditions = self._key_spec.conditions_for(pk_value)
            sql = f"DELETE FROM {self._main_table} WHERE {render_conditions(conditions)}"
            self._executor.execute(sql, conditions_to_parameters(conditions))

    def get_related_join_fragment(self, relation: Any) -> str:
        raise NotImplementedError("get_related_join_fragment() is not implemented")

    def _save_or_insert(self, record: Record, upsert: bool) -> PrimaryKeyValue:
        payload = self._executor.reduce_to_insertable_columns(record, self._main_table)
        pk_value = self._executor.insert(self._main_table, payload, upsert)
        if pk_value is None:
            # Nothing generated: the record must carry its own key
            pk_value = self._key_spec.extract(record)
        return pk_value
