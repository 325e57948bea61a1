"""
Prometheus metrics for the personality engine.

Environment Variables:
    PERSONA_METRICS_ENABLED: Enable metrics server (true/false) - default: false
    PERSONA_METRICS_PORT: HTTP port for /metrics endpoint - default: 8080

Usage:
    from persona.metrics import start_metrics_server, INTERACTIONS_TOTAL

    start_metrics_server(enabled=True, port=8080)
    INTERACTIONS_TOTAL.labels(kind="gentle", outcome="accepted").inc()
"""

import logging
import os

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

INTERACTIONS_TOTAL = Counter(
    "persona_interactions_total",
    "Interaction attempts by kind and outcome",
    labelnames=["kind", "outcome"],
)

EVENTS_TOTAL = Counter(
    "persona_events_total",
    "Notifications dispatched to observers",
    labelnames=["event_type"],
)

INTERACTION_DURATION = Histogram(
    "persona_interaction_duration_seconds",
    "Duration of interact calls in seconds (validation through dispatch)",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
)

_server_started = False


def metrics_settings_from_env():
    enabled = os.getenv("PERSONA_METRICS_ENABLED", "false").strip().lower() in ("1", "true", "yes")
    try:
        port = int(os.getenv("PERSONA_METRICS_PORT", "8080"))
    except ValueError:
        logger.warning("Invalid PERSONA_METRICS_PORT, using 8080")
        port = 8080
    return enabled, port


def start_metrics_server(enabled: bool, port: int) -> None:
    """
    Start Prometheus metrics HTTP server in a daemon thread.

    Calling it again after a successful start is a no-op.
    """
    global _server_started

    if not enabled:
        logger.info("Metrics server disabled (PERSONA_METRICS_ENABLED=false)")
        return
    if _server_started:
        return

    start_http_server(port)
    _server_started = True
    logger.info("Metrics server started on port %d", port)
