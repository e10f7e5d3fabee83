from __future__ import annotations

import re
from typing import Any, Mapping

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_SQL_OPERATION_RE = re.compile(
    r"^\s*(?:(select)\b.*?\bfrom|(insert)\s+(?:ignore\s+)?into|(update)|(delete)\s+from)\s+([`\"\w.]+)",
    re.IGNORECASE | re.DOTALL,
)


def validate_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Check that a table or column name is a plain SQL identifier.

    Identifiers are interpolated into SQL text, never bound, so they MUST come
    from trusted code (model definitions), not from user input.

    Raises:
        TypeError: If ``name`` is not a string
        ValueError: If ``name`` is empty or not of the form [A-Za-z_][A-Za-z0-9_]*
    """
    if not isinstance(name, str):
        raise TypeError(f"{identifier_type} must be a string, got {type(name).__name__}")
    if not name:
        raise ValueError(f"{identifier_type} cannot be empty")
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(
            f"Invalid {identifier_type} {name!r}: "
            "must start with letter/underscore and contain only alphanumeric characters and underscores"
        )
    return name


def render_conditions(conditions: Mapping[str, Any]) -> str:
    """
    Render column -> value equalities as ``col1 = :col1 AND col2 = :col2``.

    Columns appear in the mapping's iteration order. An empty mapping renders
    as an empty string; callers must not emit a bare WHERE for it.
    """
    return " AND ".join(f"{column} = :{column}" for column in conditions)


def conditions_to_parameters(conditions: Mapping[str, Any]) -> dict[str, Any]:
    """
    Build the bound parameters matching :func:`render_conditions`.

    Placeholder names are the column names prefixed with ``:``.
    """
    return {f":{column}": value for column, value in conditions.items()}


def bind_parameters(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Strip the leading ``:`` from placeholder-keyed parameters.

    SQLAlchemy's ``text()`` binds ``:name`` placeholders from a ``name`` key;
    keys without the prefix pass through unchanged.
    """
    if not params:
        return {}
    return {
        (name[1:] if name.startswith(":") else name): value
        for name, value in params.items()
    }


def parse_sql_operation(sql: Any) -> tuple[str, str]:
    """
    Best-effort (table, op_type) extraction for log and metric labels.

    Returns ("unknown", "unknown") for anything it cannot classify.
    """
    match = _SQL_OPERATION_RE.match(str(sql))
    if match is None:
        return "unknown", "unknown"
    op_type = next(group for group in match.groups()[:4] if group).lower()
    table = match.group(5).strip("`\"")
    return table, op_type
