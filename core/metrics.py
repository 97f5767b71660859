"""
Prometheus metrics for the ledger service.

Custom metrics for ledger operations, the tabular store and HTTP traffic.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# Ledger metrics
ledger_rejections_total = Counter(
    "ledger_rejections_total",
    "Ledger operations rejected by policy or not-found outcomes",
    ["operation", "kind"],
)

tokens_granted_total = Counter(
    "tokens_granted_total",
    "Tokens granted by successful claims",
)

tokens_consumed_total = Counter(
    "tokens_consumed_total",
    "Tokens deducted by successful consumptions",
)

tokens_added_total = Counter(
    "tokens_added_total",
    "Tokens credited through the add-tokens path",
)

accounts_terminated_total = Counter(
    "accounts_terminated_total",
    "Accounts terminated by token exhaustion",
)

partial_updates_total = Counter(
    "partial_updates_total",
    "Multi-cell updates that failed after a partial write",
    ["failed_write"],
)

# Tabular store metrics
store_request_duration_seconds = Histogram(
    "store_request_duration_seconds",
    "Tabular store round trip duration in seconds",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

store_errors_total = Counter(
    "store_errors_total",
    "Tabular store calls that failed or timed out",
    ["operation"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
