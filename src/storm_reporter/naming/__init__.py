from storm_reporter.naming.identifier import (
    HOST_NAME_PLACEHOLDER,
    NAME_PREFIX,
    ParsedMetric,
    parse_metric,
    sanitize,
    worker_metric_name,
)

__all__ = [
    "HOST_NAME_PLACEHOLDER",
    "NAME_PREFIX",
    "ParsedMetric",
    "parse_metric",
    "sanitize",
    "worker_metric_name",
]
