from prometheus_client import Counter, Histogram

CRUD_OPERATIONS_TOTAL = Counter(
    "dbcrud_operations_total",
    "CRUD operations performed, by outcome",
    ["table", "operation", "status"],
)

CRUD_OPERATION_LATENCY_SECONDS = Histogram(
    "dbcrud_operation_latency_seconds",
    "Latency of CRUD operations including executor round-trips",
    ["table", "operation"],
)
