from .registry import CRUD_OPERATION_LATENCY_SECONDS, CRUD_OPERATIONS_TOTAL

__all__ = ["CRUD_OPERATIONS_TOTAL", "CRUD_OPERATION_LATENCY_SECONDS"]
