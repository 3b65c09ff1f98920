"""Persisted consent record and its retention window."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

__all__ = [
    "CONSENT_VERSION",
    "RETENTION_DAYS",
    "DAY_MS",
    "ConsentRecord",
    "now_ms",
    "is_expired",
]

CONSENT_VERSION = "1.0"
RETENTION_DAYS = 365
DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ConsentRecord:
    analytics: bool
    advertising: bool
    functional: bool
    timestamp: int  # epoch ms
    version: str = CONSENT_VERSION

    @classmethod
    def no_consent(cls, timestamp: int = 0) -> "ConsentRecord":
        """The implicit record when nothing valid is stored."""
        return cls(analytics=False, advertising=False, functional=True, timestamp=timestamp)

    def is_default(self) -> bool:
        return not self.analytics and not self.advertising and self.functional

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analytics": self.analytics,
            "advertising": self.advertising,
            "functional": self.functional,
            "timestamp": self.timestamp,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ConsentRecord"]:
        """Parse a stored mapping; anything malformed yields None.

        Category flags must be real booleans and the timestamp a positive
        integer; stored data is never guessed at.
        """
        if not isinstance(data, Mapping):
            return None
        ts = data.get("timestamp")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)) or ts <= 0:
            return None
        if isinstance(ts, float) and not math.isfinite(ts):
            return None
        flags = {}
        for key, default in (("analytics", False), ("advertising", False), ("functional", True)):
            v = data.get(key, default)
            if not isinstance(v, bool):
                return None
            flags[key] = v
        version = data.get("version", CONSENT_VERSION)
        if not isinstance(version, str):
            version = str(version)
        return cls(timestamp=int(ts), version=version, **flags)


def is_expired(record: ConsentRecord, now: int, retention_days: int = RETENTION_DAYS) -> bool:
    """True once more than ``retention_days`` have passed since the record's timestamp."""
    return now - record.timestamp > retention_days * DAY_MS
