"""
Metric kinds handed to the reporter.

The set is closed: gauge, counter, histogram, meter and timer. None of them
compute statistics; histograms, meters and timers hold whatever snapshot and
rates the owning worker last published into them.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Union


@dataclass(frozen=True)
class Snapshot:
    max: int = 0
    mean: float = 0.0
    min: int = 0
    stddev: float = 0.0
    median: float = 0.0
    p75: float = 0.0
    p95: float = 0.0
    p98: float = 0.0
    p99: float = 0.0
    p999: float = 0.0


@dataclass
class Gauge:
    value_fn: Callable[[], Any]

    @property
    def value(self) -> Any:
        return self.value_fn()


@dataclass
class Counter:
    count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self.count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self.count -= n


@dataclass
class Histogram:
    count: int = 0
    snapshot: Snapshot = field(default_factory=Snapshot)

    def update(self, count: int, snapshot: Snapshot) -> None:
        self.count = count
        self.snapshot = snapshot


@dataclass
class Meter:
    """Event rates, in events per second."""

    count: int = 0
    m1_rate: float = 0.0
    m5_rate: float = 0.0
    m15_rate: float = 0.0
    mean_rate: float = 0.0

    def update(
        self,
        count: int,
        m1_rate: float,
        m5_rate: float,
        m15_rate: float,
        mean_rate: float,
    ) -> None:
        self.count = count
        self.m1_rate = m1_rate
        self.m5_rate = m5_rate
        self.m15_rate = m15_rate
        self.mean_rate = mean_rate


@dataclass
class Timer:
    """Duration distribution (nanoseconds) plus invocation rates (per second)."""

    count: int = 0
    snapshot: Snapshot = field(default_factory=Snapshot)
    m1_rate: float = 0.0
    m5_rate: float = 0.0
    m15_rate: float = 0.0
    mean_rate: float = 0.0

    def update(
        self,
        count: int,
        snapshot: Snapshot,
        m1_rate: float,
        m5_rate: float,
        m15_rate: float,
        mean_rate: float,
    ) -> None:
        self.count = count
        self.snapshot = snapshot
        self.m1_rate = m1_rate
        self.m5_rate = m5_rate
        self.m15_rate = m15_rate
        self.mean_rate = mean_rate


Metric = Union[Gauge, Counter, Histogram, Meter, Timer]
MetricFilter = Callable[[str, Metric], bool]


def accept_all(name: str, metric: Metric) -> bool:
    return True
