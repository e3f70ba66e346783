"""Prometheus collectors."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

http_requests = Counter(
    "hegel_http_requests_total",
    "HTTP requests served",
    ["route", "status"],
)

http_request_duration = Histogram(
    "hegel_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["route"],
)

hardware_lookups = Counter(
    "hegel_hardware_lookups_total",
    "Hardware lookups by caller IP",
    ["backend", "outcome"],  # outcome=found/not_found/error
)
