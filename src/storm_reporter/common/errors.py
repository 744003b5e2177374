from __future__ import annotations


class MalformedIdentifierError(ValueError):
    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(f"Malformed metric identifier ({reason}): {identifier!r}")
        self.identifier = identifier
        self.reason = reason


class TransportError(OSError):
    pass
