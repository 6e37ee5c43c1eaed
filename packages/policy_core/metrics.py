"""Prometheus metrics definitions for the policy engine.

This module provides centralized metric definitions for observability.
Metrics are exported via the local policy service's /metrics endpoint.
"""

from prometheus_client import Counter, Histogram  # type: ignore[import-not-found]

# Request metrics (local policy service)
HTTP_REQUESTS = Counter(
    "policy_service_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
HTTP_LATENCY = Histogram(
    "policy_service_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
)

# Validation metrics
VALIDATIONS = Counter(
    "policy_validations_total",
    "Draft validations",
    ["kind", "result"],
)
VALIDATION_ERRORS = Counter(
    "policy_validation_errors_total",
    "Validation error tokens",
    ["kind", "field"],
)

# Store client metrics
STORE_CALLS = Counter(
    "policy_store_calls_total",
    "Version store calls",
    ["kind", "operation", "status"],
)
STORE_LATENCY = Histogram(
    "policy_store_call_duration_seconds",
    "Version store call latency",
    ["kind", "operation"],
)

# Lifecycle metrics
LIFECYCLE_TRANSITIONS = Counter(
    "policy_lifecycle_transitions_total",
    "Lifecycle controller operations by outcome",
    ["kind", "operation", "outcome"],
)
