"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Engine operations
assignment_operations = Counter(
    'assignment_operations_total',
    'Consistency engine operations',
    ['operation', 'outcome']  # outcome: success, not_found, invalid, store_error
)

assignment_latency = Histogram(
    'assignment_operation_latency_seconds',
    'Consistency engine operation latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

partial_applications = Counter(
    'partial_application_warnings_total',
    'Secondary documents that were missing or failed to update',
    ['collection']
)

# Store metrics
store_operations = Counter(
    'store_operations_total',
    'Document store operations',
    ['operation']  # get, update, query, create, delete
)

transaction_retries = Counter(
    'store_transaction_retries_total',
    'Transaction re-runs due to optimistic version conflicts'
)

transaction_conflicts = Counter(
    'store_transaction_conflicts_total',
    'Transactions abandoned after exhausting retries'
)

# Notifications
notifications_sent = Counter(
    'acceptance_notifications_total',
    'Acceptance notifications emitted',
    ['result']  # delivered, failed
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

# HTTP
request_latency = Histogram(
    'http_request_latency_seconds',
    'HTTP request latency',
    ['method', 'status_code'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_operation(operation: str, outcome: str):
    """Record an engine operation. Outcome: success, not_found, invalid, store_error"""
    assignment_operations.labels(operation=operation, outcome=outcome).inc()


def record_partial_application(collection: str):
    partial_applications.labels(collection=collection).inc()


def record_store_operation(operation: str):
    """Record document store operation. Operation: get, update, query, create, delete"""
    store_operations.labels(operation=operation).inc()


def record_notification(delivered: bool):
    result = "delivered" if delivered else "failed"
    notifications_sent.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
