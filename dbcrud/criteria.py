from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol

from .db.helpers import conditions_to_parameters, render_conditions


class Condition(Protocol):
    """A renderable SQL boolean expression with its bound parameters."""

    def render(self) -> str:
        ...

    def parameters(self) -> Mapping[str, Any]:
        ...


class Criteria(Protocol):
    """A filter consumed once per query; ``condition`` is None for "no restriction"."""

    @property
    def condition(self) -> Optional[Condition]:
        ...


@dataclass(frozen=True)
class SqlCondition:
    """
    A verbatim SQL fragment plus its parameters.

    Example:
        SqlCondition("age > :min_age", {":min_age": 18})
    """
    sql: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        return self.sql

    def parameters(self) -> Mapping[str, Any]:
        return dict(self.params)


@dataclass(frozen=True)
class SimpleCriteria:
    condition: Optional[Condition] = None

    @classmethod
    def null(cls) -> "SimpleCriteria":
        """Criteria that matches every row."""
        return cls()

    @classmethod
    def where(cls, **equalities: Any) -> "SimpleCriteria":
        """Criteria ANDing ``column = value`` for each keyword, in keyword order."""
        if not equalities:
            return cls()
        return cls(SqlCondition(render_conditions(equalities), conditions_to_parameters(equalities)))


NULL_CRITERIA = SimpleCriteria.null()
