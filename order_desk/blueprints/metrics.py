"""
Prometheus metrics: request instrumentation, order composition counters
and the /metrics scrape endpoint.

The endpoint is not authenticated; keep it on the internal network.
"""
import os
import time
from typing import Iterable

from flask import Blueprint, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share their samples through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = 'PROMETHEUS_MULTIPROC_DIR' in os.environ

# HTTP
http_requests_total = Counter(
    'order_desk_http_requests_total',
    'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'http_status']
)

http_request_duration_seconds = Histogram(
    'order_desk_http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

# Order composition
line_edits_total = Counter(
    'order_desk_line_edits_total',
    'Draft line edits by kind (unit, quantity, price, remarks, details)',
    ['kind']
)

orders_submitted_total = Counter(
    'order_desk_orders_submitted_total',
    'Sales orders submitted from drafts'
)

submission_rejections_total = Counter(
    'order_desk_submission_rejections_total',
    'Draft submissions rejected by validation'
)

order_lines = Histogram(
    'order_desk_order_lines',
    'Lines per submitted sales order',
    buckets=(1, 2, 5, 10, 20, 50, 100)
)


def record_line_edit(kinds: Iterable[str]) -> None:
    """Count one edit per distinct kind touched by a PATCH."""
    for kind in sorted(set(kinds)):
        line_edits_total.labels(kind=kind).inc()


def record_submission(line_count: int) -> None:
    orders_submitted_total.inc()
    order_lines.observe(line_count)


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status."""

    @app.before_request
    def start_request_timer():
        g.request_started_at = time.perf_counter()

    @app.after_request
    def record_request(response):
        started_at = g.pop('request_started_at', None)
        if started_at is None:
            return response

        endpoint = request.endpoint or 'unknown'
        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(time.perf_counter() - started_at)
        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            http_status=response.status_code
        ).inc()
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus scrape endpoint."""
    if MULTIPROCESS_MODE:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
    else:
        registry = REGISTRY
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
