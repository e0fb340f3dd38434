"""Prometheus metrics definitions for the Concierge service.

This module provides centralized metric definitions for observability.
Metrics are exported via the /metrics endpoint for Prometheus scraping.
"""

from prometheus_client import Counter, Histogram  # type: ignore[import-not-found]

# Request metrics
HTTP_REQUESTS = Counter(
    "concierge_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
HTTP_LATENCY = Histogram(
    "concierge_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
)

# Pipeline metrics
PIPELINE_RUNS = Counter(
    "concierge_pipeline_runs_total",
    "Pipeline runs by answer source",
    ["source"],
)
PIPELINE_LATENCY = Histogram(
    "concierge_pipeline_duration_seconds",
    "End-to-end pipeline latency",
)
STAGE_FAILURES = Counter(
    "concierge_stage_failures_total",
    "Pipeline stages degraded to a miss by an exception or timeout",
    ["stage"],
)
LLM_CALLS = Counter(
    "concierge_llm_calls_total",
    "LLM API calls",
    ["operation"],
)
LLM_LATENCY = Histogram(
    "concierge_llm_call_duration_seconds",
    "LLM call latency",
    ["operation"],
)
DISPATCHES = Counter(
    "concierge_dispatches_total",
    "Outbound messages by delivery outcome",
    ["outcome"],
)

# Business metrics
ESCALATIONS = Counter(
    "concierge_escalations_total",
    "Escalations triggered",
    ["reason_code"],
)
TICKETS = Counter(
    "concierge_support_tickets_total",
    "Support tickets created",
    ["priority"],
)
NOTIFICATION_FAILURES = Counter(
    "concierge_notification_failures_total",
    "Push notifications that could not be delivered",
    ["channel"],
)
