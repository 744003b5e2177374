from __future__ import annotations

import threading
from typing import Dict, Optional, Type, TypeVar

from storm_reporter.metrics.types import (
    Counter,
    Gauge,
    Histogram,
    Meter,
    Metric,
    MetricFilter,
    Timer,
    accept_all,
)
from storm_reporter.naming.identifier import ParsedMetric, parse_metric

M = TypeVar("M", Gauge, Counter, Histogram, Meter, Timer)


def name(*parts: Optional[str]) -> str:
    return ".".join(part for part in parts if part)


class MetricRegistry:
    def __init__(self) -> None:
        self._metrics: Dict[str, Metric] = {}
        self._lock = threading.Lock()

    def register(self, metric_name: str, metric: M) -> M:
        with self._lock:
            if metric_name in self._metrics:
                raise ValueError(f"A metric named {metric_name} already exists")
            self._metrics[metric_name] = metric
        return metric

    def register_worker_metric(self, identifier: str, metric: Metric) -> ParsedMetric:
        parsed = parse_metric(identifier)
        self.register(parsed.series_name, metric)
        return parsed

    def remove(self, metric_name: str) -> bool:
        with self._lock:
            return self._metrics.pop(metric_name, None) is not None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._metrics)

    def get_gauges(self, metric_filter: MetricFilter = accept_all) -> Dict[str, Gauge]:
        return self._get(Gauge, metric_filter)

    def get_counters(self, metric_filter: MetricFilter = accept_all) -> Dict[str, Counter]:
        return self._get(Counter, metric_filter)

    def get_histograms(self, metric_filter: MetricFilter = accept_all) -> Dict[str, Histogram]:
        return self._get(Histogram, metric_filter)

    def get_meters(self, metric_filter: MetricFilter = accept_all) -> Dict[str, Meter]:
        return self._get(Meter, metric_filter)

    def get_timers(self, metric_filter: MetricFilter = accept_all) -> Dict[str, Timer]:
        return self._get(Timer, metric_filter)

    def _get(self, kind: Type[M], metric_filter: MetricFilter) -> Dict[str, M]:
        with self._lock:
            items = list(self._metrics.items())
        return {
            metric_name: metric
            for metric_name, metric in sorted(items, key=lambda item: item[0])
            if type(metric) is kind and metric_filter(metric_name, metric)
        }
