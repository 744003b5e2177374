from __future__ import annotations

from enum import Enum


class TimeUnit(Enum):
    NANOSECONDS = 1
    MICROSECONDS = 1_000
    MILLISECONDS = 1_000_000
    SECONDS = 1_000_000_000
    MINUTES = 60 * 1_000_000_000
    HOURS = 3_600 * 1_000_000_000
    DAYS = 86_400 * 1_000_000_000

    @property
    def nanos(self) -> int:
        return self.value

    @property
    def seconds(self) -> float:
        return self.value / TimeUnit.SECONDS.value

    @staticmethod
    def parse(raw: str | "TimeUnit") -> "TimeUnit":
        if isinstance(raw, TimeUnit):
            return raw
        try:
            return TimeUnit[str(raw).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown time unit: {raw}") from None
