"""
Storm worker metric identifiers.

Workers register metrics under dot-delimited names of the form::

    storm.worker.<topology>.<host>.<component>[.<stream>].<task>.<port>-<name>

The stream segment is optional, so the layout is resolved by segment count.
The trailing ``<port>-<name>`` token is split on the first ``-`` only, since
the free-text name may contain dashes, brackets and spaces of its own.
"""

from __future__ import annotations

import re
import socket
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from storm_reporter.common.errors import MalformedIdentifierError

NAMESPACE = ("storm", "worker")
NAME_PREFIX = "storm_worker_"

# host_name is always reported as this literal, never the parsed host token.
HOST_NAME_PLACEHOLDER = "null"

_LAYOUTS: Dict[int, Tuple[str, ...]] = {
    5: ("topology_id", "host", "component_id", "task_id", "last"),
    6: ("topology_id", "host", "component_id", "stream_id", "task_id", "last"),
}

_INTEGER = re.compile(r"[+-]?[0-9]+")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")


@dataclass(frozen=True)
class ParsedMetric:
    name: str
    grouping_key: Dict[str, str] = field(default_factory=dict)

    @property
    def series_name(self) -> str:
        """Name plus grouping key in Graphite tag form, ``name;label=value;...``.

        Two tasks reporting the same metric differ only in their grouping key,
        so this, not :attr:`name`, is what identifies one series.
        """
        tags = "".join(f";{label}={value}" for label, value in self.grouping_key.items())
        return self.name + tags


def sanitize(text: str) -> str:
    return _UNSAFE_CHARS.sub("_", text)


def _parse_int(identifier: str, token: str, label: str) -> int:
    if not _INTEGER.fullmatch(token):
        raise MalformedIdentifierError(identifier, f"{label} is not an integer: {token!r}")
    return int(token)


def parse_metric(identifier: str) -> ParsedMetric:
    segments = identifier.split(".")
    if tuple(segments[: len(NAMESPACE)]) != NAMESPACE:
        raise MalformedIdentifierError(identifier, "missing storm.worker namespace")

    rest = segments[len(NAMESPACE) :]
    layout = _LAYOUTS.get(len(rest))
    if layout is None:
        raise MalformedIdentifierError(
            identifier, f"expected 7 or 8 segments, got {len(segments)}"
        )
    fields = dict(zip(layout, rest))

    worker_port_token, sep, suffix = fields["last"].partition("-")
    if not sep or not suffix:
        raise MalformedIdentifierError(identifier, "last segment is not <port>-<name>")
    worker_port = _parse_int(identifier, worker_port_token, "worker port")
    task_id = _parse_int(identifier, fields["task_id"], "task id")

    grouping_key = {
        "topology_id": fields["topology_id"],
        "host_name": HOST_NAME_PLACEHOLDER,
        "component_id": fields["component_id"],
    }
    if "stream_id" in fields:
        grouping_key["stream_id"] = fields["stream_id"]
    grouping_key["task_id"] = str(task_id)
    grouping_key["worker_port"] = str(worker_port)

    return ParsedMetric(name=NAME_PREFIX + sanitize(suffix), grouping_key=grouping_key)


def _dot_to_underscore(value: object) -> str:
    return str(value).replace(".", "_")


def worker_metric_name(
    name: str,
    topology_id: str,
    component_id: str,
    task_id: int,
    worker_port: int,
    stream_id: Optional[str] = None,
    host: Optional[str] = None,
) -> str:
    """Build a worker metric identifier, the inverse of :func:`parse_metric`.

    Dots inside any part are replaced with underscores so the result always
    has the segment count the parser expects.
    """
    if host is None:
        host = socket.gethostname()
    parts = [*NAMESPACE, topology_id, host, component_id]
    if stream_id is not None:
        parts.append(stream_id)
    parts.append(task_id)
    head = ".".join(_dot_to_underscore(part) for part in parts)
    return f"{head}.{int(worker_port)}-{_dot_to_underscore(name)}"
