from __future__ import annotations

import logging

from ..metrics.registry import CRUD_OPERATION_LATENCY_SECONDS, CRUD_OPERATIONS_TOTAL

logger = logging.getLogger(__name__)


def observe_crud_operation(table: str, operation: str, status: str, latency_s: float) -> None:
    """
    Record one CRUD operation outcome.

    Never raises: a metrics failure must not replace the operation's own result
    or exception.
    """
    try:
        CRUD_OPERATIONS_TOTAL.labels(table=table, operation=operation, status=status).inc()
        CRUD_OPERATION_LATENCY_SECONDS.labels(table=table, operation=operation).observe(latency_s)
    except Exception:
        logger.debug("Failed to record metrics for %s on %s", operation, table, exc_info=True)
