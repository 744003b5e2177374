"""
Flattening of metric instances into plaintext samples.

Each metric kind expands into a fixed, ordered list of ``(suffix, value)``
fields. Values are rendered as plain integers or as floats with two fractional
digits; any other gauge payload renders as ``None`` and is skipped.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, Type

from storm_reporter.metrics.registry import name as join_name
from storm_reporter.metrics.types import Counter, Gauge, Histogram, Meter, Metric, Snapshot, Timer
from storm_reporter.reporter.config import ReporterConfig

Field = Tuple[Optional[str], Optional[str]]

SNAPSHOT_SUFFIXES = ("max", "mean", "min", "stddev", "p50", "p75", "p95", "p98", "p99", "p999")
METERED_SUFFIXES = ("count", "m1_rate", "m5_rate", "m15_rate", "mean_rate")
HISTOGRAM_SUFFIXES = ("count", *SNAPSHOT_SUFFIXES)
TIMER_SUFFIXES = (*SNAPSHOT_SUFFIXES, *METERED_SUFFIXES)


class MetricSample(NamedTuple):
    name: str
    value: str
    timestamp: int

    def to_line(self) -> str:
        return f"{self.name} {self.value} {self.timestamp}\n"


def format_value(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # Carbon wants US-style digits; %-formatting ignores the locale.
        return "%2.2f" % value
    return None


def _snapshot_values(snapshot: Snapshot) -> Tuple[Any, ...]:
    return (
        snapshot.max,
        snapshot.mean,
        snapshot.min,
        snapshot.stddev,
        snapshot.median,
        snapshot.p75,
        snapshot.p95,
        snapshot.p98,
        snapshot.p99,
        snapshot.p999,
    )


def _metered_fields(metered: Meter | Timer, config: ReporterConfig) -> List[Field]:
    rates = (metered.m1_rate, metered.m5_rate, metered.m15_rate, metered.mean_rate)
    values = [format_value(metered.count)]
    values.extend(format_value(config.convert_rate(rate)) for rate in rates)
    return list(zip(METERED_SUFFIXES, values))


def gauge_fields(gauge: Gauge, config: ReporterConfig) -> List[Field]:
    return [(None, format_value(gauge.value))]


def counter_fields(counter: Counter, config: ReporterConfig) -> List[Field]:
    return [("count", format_value(counter.count))]


def histogram_fields(histogram: Histogram, config: ReporterConfig) -> List[Field]:
    values = [histogram.count, *_snapshot_values(histogram.snapshot)]
    return [(suffix, format_value(value)) for suffix, value in zip(HISTOGRAM_SUFFIXES, values)]


def meter_fields(meter: Meter, config: ReporterConfig) -> List[Field]:
    return _metered_fields(meter, config)


def timer_fields(timer: Timer, config: ReporterConfig) -> List[Field]:
    fields: List[Field] = [
        (suffix, format_value(config.convert_duration(value)))
        for suffix, value in zip(SNAPSHOT_SUFFIXES, _snapshot_values(timer.snapshot))
    ]
    fields.extend(_metered_fields(timer, config))
    return fields


_FIELDS: Dict[Type[Any], Callable[[Any, ReporterConfig], List[Field]]] = {
    Gauge: gauge_fields,
    Counter: counter_fields,
    Histogram: histogram_fields,
    Meter: meter_fields,
    Timer: timer_fields,
}


def flatten(
    metric_name: str, metric: Metric, timestamp: int, config: ReporterConfig
) -> List[MetricSample]:
    fields_fn = _FIELDS.get(type(metric))
    if fields_fn is None:
        raise TypeError(f"Unsupported metric type: {type(metric).__name__}")
    # tags (";label=value") stay after the field suffix
    base, sep, tags = metric_name.partition(";")
    return [
        MetricSample(join_name(config.prefix, base, suffix) + sep + tags, value, timestamp)
        for suffix, value in fields_fn(metric, config)
        if value is not None
    ]
