"""
Prometheus metrics for the service binding operator.

Environment Variables:
    METRICS_ENABLED: Enable metrics server (true/false) - default: false
    METRICS_PORT: HTTP port for /metrics endpoint - default: 8080

Usage:
    from binding_operator.metrics import start_metrics_server, track_reconcile_duration

    start_metrics_server(enabled=True, port=8080)

    with track_reconcile_duration("servicebindings"):
        # ... reconcile logic ...
        pass
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

RECONCILE_DURATION: Optional[Histogram] = None
RECONCILE_OUTCOMES: Optional[Counter] = None
APPLICATION_UPDATES: Optional[Counter] = None
SECRET_TRIGGERS: Optional[Counter] = None

_metrics_initialized = False
_metrics_lock = threading.Lock()


def init_metrics() -> None:
    """
    Create the metric objects (idempotent, thread-safe).

    Metrics stay None until this runs so that tests and the CLI never
    register collectors on the global registry.
    """
    global RECONCILE_DURATION, RECONCILE_OUTCOMES, APPLICATION_UPDATES, SECRET_TRIGGERS
    global _metrics_initialized

    with _metrics_lock:
        if _metrics_initialized:
            return

        RECONCILE_DURATION = Histogram(
            "servicebinding_reconcile_duration_seconds",
            "Duration of reconcile operations in seconds",
            labelnames=["resource_type"],
            buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0),
        )

        # outcome: ready, not_ready, requeued
        RECONCILE_OUTCOMES = Counter(
            "servicebinding_reconcile_outcomes_total",
            "Reconciliation passes by reported outcome",
            labelnames=["outcome"],
        )

        # result: updated, noop, failed
        APPLICATION_UPDATES = Counter(
            "servicebinding_application_updates_total",
            "Application writes performed by the injection engine",
            labelnames=["result"],
        )

        SECRET_TRIGGERS = Counter(
            "servicebinding_secret_triggers_total",
            "Bindings re-triggered by a backing secret change",
        )

        _metrics_initialized = True
        logger.info("Prometheus metrics initialized")


def start_metrics_server(enabled: bool, port: int) -> None:
    """Start the /metrics HTTP server in a daemon thread."""
    if not enabled:
        logger.info("Metrics server disabled (METRICS_ENABLED=false)")
        return

    init_metrics()

    try:
        start_http_server(port, addr="0.0.0.0")
        logger.info(f"Metrics server started on http://0.0.0.0:{port}/metrics")
    except OSError as e:
        logger.error(f"Failed to start metrics server: {e}")


@contextmanager
def track_reconcile_duration(resource_type: str) -> Generator[None, None, None]:
    if RECONCILE_DURATION is None:
        yield
        return

    with RECONCILE_DURATION.labels(resource_type=resource_type).time():
        yield


def track_outcome(outcome: str) -> None:
    if RECONCILE_OUTCOMES is not None:
        RECONCILE_OUTCOMES.labels(outcome=outcome).inc()


def track_application_update(result: str) -> None:
    if APPLICATION_UPDATES is not None:
        APPLICATION_UPDATES.labels(result=result).inc()


def track_secret_trigger(count: int = 1) -> None:
    if SECRET_TRIGGERS is not None and count:
        SECRET_TRIGGERS.inc(count)
