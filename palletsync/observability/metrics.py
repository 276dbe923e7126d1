"""
Prometheus metrics collection for pallet-sync

This module provides metrics instrumentation for monitoring ledger writes,
status materialization and GRN propagation.
"""
import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# LEDGER METRICS
# =======================

ledger_facts_written_total = Counter(
    name="palletsync_ledger_facts_written_total",
    documentation="Built facts appended to the transaction ledger",
    registry=REGISTRY,
)

ledger_duplicates_total = Counter(
    name="palletsync_ledger_duplicates_total",
    documentation="Built transactions skipped because the ledger already held them",
    registry=REGISTRY,
)

# =======================
# MATERIALIZATION METRICS
# =======================

materializations_total = Counter(
    name="palletsync_materializations_total",
    documentation="Status materializations by mode and outcome",
    labelnames=["mode", "outcome"],  # mode: targeted, rebuild
    registry=REGISTRY,
)

status_rows_written_total = Counter(
    name="palletsync_status_rows_written_total",
    documentation="Status view rows rewritten",
    labelnames=["mode"],
    registry=REGISTRY,
)

unrecognized_actions_total = Counter(
    name="palletsync_unrecognized_actions_total",
    documentation="Ledger facts whose action type has no occupancy transition",
    labelnames=["action_type"],
    registry=REGISTRY,
)

stale_expiry_applied_total = Counter(
    name="palletsync_stale_expiry_applied_total",
    documentation="Build expiry dates written onto pallets the ledger marked empty",
    registry=REGISTRY,
)

# =======================
# PROPAGATION METRICS
# =======================

grn_propagations_total = Counter(
    name="palletsync_grn_propagations_total",
    documentation="GRN status propagation outcomes",
    labelnames=["outcome"],  # updated, no_op, not_found
    registry=REGISTRY,
)

# =======================
# PIPELINE METRICS
# =======================

pipeline_runs_total = Counter(
    name="palletsync_pipeline_runs_total",
    documentation="Pallet automation runs by outcome",
    labelnames=["outcome"],  # written, partial, duplicate, error
    registry=REGISTRY,
)

pipeline_duration_seconds = Histogram(
    name="palletsync_pipeline_duration_seconds",
    documentation="Time spent in one pipeline operation",
    labelnames=["operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

errors_total = Counter(
    name="palletsync_errors_total",
    documentation="Component aborts by component and error type",
    labelnames=["component", "error_type"],
    registry=REGISTRY,
)


# =======================
# EXPORT FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate current metrics in Prometheus text format

    Returns:
        Metrics in Prometheus exposition format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    """Content type for the Prometheus exposition format"""
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: int | None = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: the HTTP server is only needed when the endpoint is enabled
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


# =======================
# CONTEXT MANAGERS
# =======================

class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(pipeline_duration_seconds, operation="run"):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        """
        Initialize duration tracker

        Args:
            histogram: Prometheus Histogram metric
            **labels: Label values for the metric
        """
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        """Start timer"""
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Stop timer"""
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric (omit for unlabelled counters)
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def record_component_error(component: str, error: Exception) -> None:
    """Count a component abort by component and exception type."""
    increment_counter(errors_total, component=component, error_type=type(error).__name__)
