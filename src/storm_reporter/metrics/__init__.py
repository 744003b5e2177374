from storm_reporter.metrics.registry import MetricRegistry, name
from storm_reporter.metrics.types import (
    Counter,
    Gauge,
    Histogram,
    Meter,
    Metric,
    MetricFilter,
    Snapshot,
    Timer,
    accept_all,
)

__all__ = [
    "Counter",
    "Gauge",
    "Histogram",
    "Meter",
    "Metric",
    "MetricFilter",
    "MetricRegistry",
    "Snapshot",
    "Timer",
    "accept_all",
    "name",
]
