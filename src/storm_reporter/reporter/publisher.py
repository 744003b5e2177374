"""
Reporter that pushes registry snapshots to a Prometheus push gateway fronted
by a plaintext (Graphite-style) listener.

One call to :meth:`PrometheusReporter.report` is one reporting cycle: connect
if needed, write every sample, flush once. A transport error aborts the cycle
and force-closes the sender so the next cycle starts from a fresh connection.
Transport failures are logged and never raised to the scheduler. Any other
error (a failing gauge supplier, say) also closes the sender, discarding the
partial batch, and is then re-raised.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping, Optional

from storm_reporter.common.logging import get_logger
from storm_reporter.common.units import TimeUnit
from storm_reporter.metrics.registry import MetricRegistry
from storm_reporter.metrics.types import (
    Counter,
    Gauge,
    Histogram,
    Meter,
    Metric,
    MetricFilter,
    Timer,
)
from storm_reporter.reporter.config import Clock, ReporterConfig
from storm_reporter.reporter.formatting import flatten
from storm_reporter.reporter.scheduler import ReportScheduler
from storm_reporter.reporter.sender import Sender


class ReporterBuilder:
    """Defaults: no prefix, wall clock, rates per second, durations in milliseconds, no filter."""

    def __init__(self, registry: Optional[MetricRegistry] = None) -> None:
        self.registry = registry
        self.config = ReporterConfig()

    def with_clock(self, clock: Clock) -> "ReporterBuilder":
        self.config = replace(self.config, clock=clock)
        return self

    def prefixed_with(self, prefix: Optional[str]) -> "ReporterBuilder":
        self.config = replace(self.config, prefix=prefix)
        return self

    def convert_rates_to(self, rate_unit: TimeUnit) -> "ReporterBuilder":
        self.config = replace(self.config, rate_unit=rate_unit)
        return self

    def convert_durations_to(self, duration_unit: TimeUnit) -> "ReporterBuilder":
        self.config = replace(self.config, duration_unit=duration_unit)
        return self

    def filter(self, metric_filter: MetricFilter) -> "ReporterBuilder":
        self.config = replace(self.config, metric_filter=metric_filter)
        return self

    def with_config(self, config: ReporterConfig) -> "ReporterBuilder":
        self.config = config
        return self

    def build(self, sender: Sender, logger: Optional[logging.Logger] = None) -> "PrometheusReporter":
        return PrometheusReporter(
            sender=sender, config=self.config, registry=self.registry, logger=logger
        )


class PrometheusReporter:
    def __init__(
        self,
        sender: Sender,
        config: Optional[ReporterConfig] = None,
        registry: Optional[MetricRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.sender = sender
        self.config = config or ReporterConfig()
        self.registry = registry
        self.completed_cycles = 0
        self.failed_cycles = 0
        self._logger = logger or get_logger("reporter")
        self._scheduler: Optional[ReportScheduler] = None

    @staticmethod
    def for_registry(registry: Optional[MetricRegistry] = None) -> ReporterBuilder:
        return ReporterBuilder(registry)

    def __enter__(self) -> "PrometheusReporter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def start(self, interval_sec: Optional[float] = None, initial_delay_sec: Optional[float] = None) -> None:
        if self.registry is None:
            raise RuntimeError("Cannot schedule a reporter without a registry")
        if self._scheduler is not None:
            raise RuntimeError("Reporter already started")
        self._scheduler = ReportScheduler(
            self.report_registry,
            interval_sec or self.config.interval_sec,
            name="prometheus-reporter",
            initial_delay_sec=initial_delay_sec,
            logger=self._logger,
        )
        self._scheduler.start()

    def stop(self) -> None:
        """Stop scheduling, then close the sender even if stopping the scheduler failed.

        A close error here is only logged at DEBUG: the reporter is going away and
        nothing reconnects. Close errors after a failed cycle are logged at WARNING
        because the next cycle depends on a clean reconnect.
        """
        try:
            if self._scheduler is not None:
                self._scheduler.stop()
        finally:
            try:
                self.sender.close()
            except OSError as exc:
                self._logger.debug("sender_close_failed", extra={"error": str(exc)})
            self._logger.info(
                "reporter_stopped",
                extra={
                    "completed_cycles": self.completed_cycles,
                    "failed_cycles": self.failed_cycles,
                },
            )

    def report_registry(self) -> None:
        if self.registry is None:
            raise RuntimeError("Reporter has no registry attached")
        metric_filter = self.config.metric_filter
        self.report(
            self.registry.get_gauges(metric_filter),
            self.registry.get_counters(metric_filter),
            self.registry.get_histograms(metric_filter),
            self.registry.get_meters(metric_filter),
            self.registry.get_timers(metric_filter),
        )

    def report(
        self,
        gauges: Mapping[str, Gauge],
        counters: Mapping[str, Counter],
        histograms: Mapping[str, Histogram],
        meters: Mapping[str, Meter],
        timers: Mapping[str, Timer],
        timestamp: Optional[int] = None,
    ) -> bool:
        if timestamp is None:
            timestamp = int(self.config.clock())
        try:
            if not self.sender.is_connected:
                self.sender.connect()
            for collection in (gauges, counters, histograms, meters, timers):
                self._report_collection(collection, timestamp)
            self.sender.flush()
        except OSError as exc:
            self.failed_cycles += 1
            self._logger.warning(
                "report_failed",
                extra={"error": str(exc), "failed_cycles": self.failed_cycles},
            )
            try:
                self.sender.close()
            except OSError as close_exc:
                self._logger.warning("sender_close_failed", extra={"error": str(close_exc)})
            return False
        except Exception as exc:
            # drop whatever this cycle buffered before re-raising
            self.failed_cycles += 1
            self._logger.warning(
                "report_aborted",
                extra={"error": repr(exc), "failed_cycles": self.failed_cycles},
            )
            try:
                self.sender.close()
            except OSError as close_exc:
                self._logger.warning("sender_close_failed", extra={"error": str(close_exc)})
            raise
        self.completed_cycles += 1
        return True

    def _report_collection(self, collection: Mapping[str, Metric], timestamp: int) -> None:
        for metric_name in sorted(collection):
            for sample in flatten(metric_name, collection[metric_name], timestamp, self.config):
                self.sender.send(sample.name, sample.value, sample.timestamp)
