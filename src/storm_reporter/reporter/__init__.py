from storm_reporter.reporter.config import ReporterConfig, SenderConfig
from storm_reporter.reporter.formatting import MetricSample, flatten, format_value
from storm_reporter.reporter.publisher import PrometheusReporter, ReporterBuilder
from storm_reporter.reporter.scheduler import ReportScheduler
from storm_reporter.reporter.sender import PlaintextSender, Sender

__all__ = [
    "MetricSample",
    "PlaintextSender",
    "PrometheusReporter",
    "ReportScheduler",
    "ReporterBuilder",
    "ReporterConfig",
    "Sender",
    "SenderConfig",
    "flatten",
    "format_value",
]
