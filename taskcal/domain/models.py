"""
Domain models for time spans and working hours.
"""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Tuple

from pendulum import DateTime


@dataclass
class Timespan:
    """
    Half-open interval ``[start, end)`` between two instants.

    Invariant: start must not be after end. The span is mutable only through
    ``set_start``, which moves both endpoints and keeps the duration.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Start time {self.start} must not be after end time {self.end}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int(self.duration.total_seconds() / 60)

    def overlaps(self, other: "Timespan | BusyInterval") -> bool:
        """Check if this span overlaps with another. Touching spans do not."""
        return self.end > other.start and other.end > self.start

    def set_start(self, new_start: DateTime) -> None:
        """Move the span so it begins at ``new_start``, preserving its duration."""
        self.end = new_start + (self.end - self.start)
        self.start = new_start

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('DD.MM.YYYY HH:mm')}"


class BusyKind(str, Enum):
    """Where a busy interval came from."""
    COMMITMENT = "commitment"
    OFF_HOURS = "off_hours"
    NON_WORKING_DAY = "non_working_day"


@dataclass(frozen=True)
class BusyInterval:
    """
    Read-only busy time used as input to the sweep.

    Duplicates are harmless; an interval has no identity beyond its bounds.
    """
    start: DateTime
    end: DateTime
    kind: BusyKind = BusyKind.COMMITMENT
    source: str = ""

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Start time {self.start} must not be after end time {self.end}")

    def sort_key(self):
        return (self.start, self.end)

    def __str__(self) -> str:
        label = f"{self.kind.value}:{self.source}" if self.source else self.kind.value
        return f"[{label}] {self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('DD.MM.YYYY HH:mm')}"


@dataclass(frozen=True)
class WorkingHours:
    """
    Configuration for working hours.

    Hours are whole local hours; ``end_hour`` may be 24 (midnight).
    """
    start_hour: int
    end_hour: int
    exclude_weekdays: Tuple[int, ...] = (5, 6)  # 0=Monday, 6=Sunday

    def __post_init__(self):
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Working hours must satisfy 0 <= start < end <= 24, "
                f"got {self.start_hour}-{self.end_hour}"
            )
