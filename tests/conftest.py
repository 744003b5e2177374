import socket
import sys
import threading
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from storm_reporter.metrics.registry import MetricRegistry
from storm_reporter.metrics.types import Counter, Gauge, Histogram, Meter, Snapshot, Timer


class RecordingSender:
    """In-memory sender; ``fail_on_send`` / ``fail_on_connect`` inject transport errors."""

    def __init__(self) -> None:
        self.connected = False
        self.connects = 0
        self.closes = 0
        self.flushes = 0
        self.sent: list[tuple[str, str, int]] = []
        self.fail_on_connect = False
        self.fail_on_send: int | None = None
        self.fail_on_close = False

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self) -> None:
        self.connects += 1
        if self.fail_on_connect:
            raise ConnectionRefusedError("connection refused")
        self.connected = True

    def send(self, name: str, value: str, timestamp: int) -> None:
        if self.fail_on_send is not None and len(self.sent) >= self.fail_on_send:
            raise BrokenPipeError("broken pipe")
        self.sent.append((name, value, timestamp))

    def flush(self) -> None:
        self.flushes += 1

    def close(self) -> None:
        self.closes += 1
        self.connected = False
        if self.fail_on_close:
            raise OSError("close failed")

    def names(self) -> list[str]:
        return [name for name, _value, _ts in self.sent]


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def fixed_clock():
    return lambda: 1_700_000_000.75


@pytest.fixture
def timer_snapshot() -> Snapshot:
    ms = 1_000_000
    return Snapshot(
        max=10 * ms,
        mean=5.5 * ms,
        min=1 * ms,
        stddev=2.25 * ms,
        median=5 * ms,
        p75=7 * ms,
        p95=9 * ms,
        p98=9.5 * ms,
        p99=9.9 * ms,
        p999=10 * ms,
    )


@pytest.fixture
def registry(timer_snapshot) -> MetricRegistry:
    reg = MetricRegistry()
    reg.register("b.gauge", Gauge(lambda: 1.5))
    reg.register("a.gauge", Gauge(lambda: 7))
    reg.register("jobs", Counter(count=3))
    reg.register(
        "sizes",
        Histogram(count=4, snapshot=Snapshot(max=9, mean=4.5, min=1, stddev=1.0, median=4.0)),
    )
    reg.register("events", Meter(count=12, m1_rate=1.0, m5_rate=2.0, m15_rate=3.0, mean_rate=0.5))
    reg.register(
        "req.latency",
        Timer(count=2, snapshot=timer_snapshot, m1_rate=0.25, m5_rate=0.5, m15_rate=0.75, mean_rate=1.0),
    )
    return reg


class LineCollector:
    """Loopback TCP listener; serves ``connections`` clients in turn and keeps every byte."""

    def __init__(self, connections: int = 1) -> None:
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.bind(("127.0.0.1", 0))
        self._server.listen(connections)
        self.port = self._server.getsockname()[1]
        self.connections = connections
        self.accepted = 0
        self.data = b""
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while self.accepted < self.connections:
            conn, _addr = self._server.accept()
            self.accepted += 1
            with conn:
                while True:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    self.data += chunk

    def wait(self) -> str:
        self._thread.join(timeout=5)
        self._server.close()
        return self.data.decode("utf-8")


@pytest.fixture
def line_collector():
    return LineCollector
