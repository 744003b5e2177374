from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from storm_reporter.common.units import TimeUnit
from storm_reporter.metrics.types import MetricFilter, accept_all

Clock = Callable[[], float]

HOST_ENV = "STORM_REPORTER_HOST"
PORT_ENV = "STORM_REPORTER_PORT"


@dataclass(frozen=True)
class ReporterConfig:
    clock: Clock = time.time
    prefix: Optional[str] = None
    rate_unit: TimeUnit = TimeUnit.SECONDS
    duration_unit: TimeUnit = TimeUnit.MILLISECONDS
    metric_filter: MetricFilter = accept_all
    interval_sec: float = 10.0

    @property
    def rate_factor(self) -> float:
        return self.rate_unit.seconds

    @property
    def duration_factor(self) -> float:
        return 1.0 / self.duration_unit.nanos

    def convert_rate(self, rate: float) -> float:
        return rate * self.rate_factor

    def convert_duration(self, duration: float) -> float:
        return duration * self.duration_factor

    @staticmethod
    def from_settings(settings: Dict[str, Any]) -> "ReporterConfig":
        raw = settings.get("reporter", {}) or {}
        return ReporterConfig(
            prefix=raw.get("prefix") or None,
            rate_unit=TimeUnit.parse(raw.get("rate_unit", "seconds")),
            duration_unit=TimeUnit.parse(raw.get("duration_unit", "milliseconds")),
            interval_sec=float(raw.get("interval_sec", 10.0)),
        )


@dataclass(frozen=True)
class SenderConfig:
    host: str
    port: int
    timeout_sec: float = 5.0

    @staticmethod
    def from_settings(
        settings: Dict[str, Any], env: Optional[Mapping[str, str]] = None
    ) -> "SenderConfig":
        if env is None:
            env = os.environ
        raw = settings.get("reporter", {}) or {}
        host = env.get(HOST_ENV) or raw.get("host", "127.0.0.1")
        port = env.get(PORT_ENV) or raw.get("port", 2003)
        return SenderConfig(
            host=str(host),
            port=int(port),
            timeout_sec=float(raw.get("timeout_sec", 5.0)),
        )
