"""Prometheus metrics export."""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Request metrics
request_count = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)

# Tenant client metrics
tenant_clients_opened_total = Counter(
    "tenant_clients_opened_total",
    "Total tenant backend clients opened",
    ["agent_id", "exec_context"],
)

tenant_clients_live = Gauge(
    "tenant_clients_live",
    "Number of live tenant backend clients",
)

# Backend query metrics
backend_queries_total = Counter(
    "backend_queries_total",
    "Total tenant backend queries",
    ["agent_id", "table", "status"],
)

backend_query_duration = Histogram(
    "backend_query_duration_seconds",
    "Tenant backend query duration in seconds",
    ["agent_id", "table"],
)

# Brain data metrics
brain_data_fetches_total = Counter(
    "brain_data_fetches_total",
    "Total brain data aggregations",
    ["agent_id", "status"],
)

brain_data_duration = Histogram(
    "brain_data_duration_seconds",
    "Brain data aggregation duration in seconds",
    ["agent_id"],
)


def get_metrics_response() -> Response:
    """Get Prometheus metrics as HTTP response."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
