"""
Time sources for condition timestamps.

Conditions carry RFC 3339 timestamps. Tests pin the clock so that status
objects compare exactly.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def format_timestamp(moment: datetime) -> str:
    """Kubernetes metav1.Time wire format (second precision, Z suffix)."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class SystemClock:
    """Wall clock used by the running operator."""

    def now(self) -> str:
        return format_timestamp(datetime.now(timezone.utc))


@dataclass(frozen=True)
class FixedClock:
    """
    Clock that always returns the same instant.

    Use tick() to get a clock a few seconds later.
    """
    current: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> str:
        return format_timestamp(self.current)

    def tick(self, seconds: int = 1) -> "FixedClock":
        return FixedClock(self.current + timedelta(seconds=seconds))
