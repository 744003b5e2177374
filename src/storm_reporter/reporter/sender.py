from __future__ import annotations

import contextlib
import logging
import re
import socket
from typing import List, Optional, Protocol

from storm_reporter.common.errors import TransportError
from storm_reporter.common.logging import get_logger
from storm_reporter.reporter.config import SenderConfig

_WHITESPACE = re.compile(r"\s+")


class Sender(Protocol):
    @property
    def is_connected(self) -> bool: ...

    def connect(self) -> None: ...

    def send(self, name: str, value: str, timestamp: int) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


def _sanitize(text: str) -> str:
    return _WHITESPACE.sub("-", text.strip())


class PlaintextSender:
    """Buffers ``<name> <value> <timestamp>`` lines and writes them over TCP on flush."""

    def __init__(
        self,
        host: str,
        port: int,
        timeout_sec: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout_sec = timeout_sec
        self.failures = 0
        self._logger = logger or get_logger("sender")
        self._socket: Optional[socket.socket] = None
        self._buffer: List[str] = []

    @staticmethod
    def from_config(config: SenderConfig, logger: Optional[logging.Logger] = None) -> "PlaintextSender":
        return PlaintextSender(config.host, config.port, config.timeout_sec, logger=logger)

    @property
    def is_connected(self) -> bool:
        return self._socket is not None

    def connect(self) -> None:
        if self._socket is not None:
            raise TransportError("Already connected")
        try:
            self._socket = socket.create_connection(
                (self.host, self.port), timeout=self.timeout_sec
            )
        except OSError as exc:
            raise TransportError(f"Unable to connect to {self.host}:{self.port}: {exc}") from exc
        self._logger.debug("sender_connected", extra={"host": self.host, "port": self.port})

    def send(self, name: str, value: str, timestamp: int) -> None:
        self._buffer.append(f"{_sanitize(name)} {_sanitize(value)} {int(timestamp)}\n")

    def flush(self) -> None:
        if self._socket is None:
            raise TransportError("Not connected")
        payload = "".join(self._buffer).encode("utf-8")
        try:
            self._socket.sendall(payload)
        except OSError as exc:
            self.failures += 1
            raise TransportError(f"Unable to write to {self.host}:{self.port}: {exc}") from exc
        self._buffer.clear()

    def close(self) -> None:
        self._buffer.clear()
        sock, self._socket = self._socket, None
        if sock is None:
            return
        # peer may already be gone
        with contextlib.suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)
        sock.close()
