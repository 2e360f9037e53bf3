"""
Local-time arithmetic around the working-hour window.

Every "day" and "hour" here is a wall-clock value in one explicit time zone.
Working-hour and weekend boundaries are meaningless in UTC, so the zone is a
constructor argument and never taken from the process environment.
"""

from typing import Iterator, Optional

import pendulum
from pendulum import DateTime

from .exceptions import InvariantViolationError
from .models import BusyInterval, BusyKind, Timespan, WorkingHours


class WorkingHourClock:
    """
    Snaps instants to day and working-hour boundaries in a fixed time zone.
    """

    def __init__(self, working_hours: WorkingHours, timezone: str = "Europe/Berlin"):
        self.working_hours = working_hours
        self.timezone = pendulum.timezone(timezone)

    def local(self, instant: DateTime) -> DateTime:
        """Return ``instant`` expressed in the clock's time zone."""
        return pendulum.instance(instant).in_timezone(self.timezone)

    def now(self) -> DateTime:
        return pendulum.now(self.timezone)

    def truncate_to_day_boundary(
        self,
        instant: DateTime,
        hour_of_day: int,
        round_toward_past: bool = False
    ) -> DateTime:
        """
        Snap ``instant`` to a local day boundary, then set the hour.

        Without ``round_toward_past`` the instant's own day is used (floor).
        With it the day is rounded up (ceiling), unless the instant already
        sits on midnight. The ceiling is used when working backwards from an
        end time.
        """
        local = self.local(instant)
        day = local.start_of("day")
        if round_toward_past and day < local:
            day = day.add(days=1)
        return self._at_hour(day, hour_of_day)

    def initial_candidate_start(self, now: DateTime) -> DateTime:
        """
        First whole hour at or after ``now``, clamped into the working window.

        Before opening the candidate moves to today's start hour; past the
        closing hour it moves to tomorrow's start hour. A candidate exactly
        on the closing hour is kept and left to the sweep.
        """
        local = self.local(now)
        start = local.start_of("hour")
        if start < local:
            start = start.add(hours=1)

        if start.hour < self.working_hours.start_hour:
            start = start.set(hour=self.working_hours.start_hour)
        elif start.hour > self.working_hours.end_hour:
            start = start.add(days=1).set(hour=self.working_hours.start_hour)

        return start

    def is_working_day(self, day: DateTime) -> bool:
        """Check if a given datetime falls on a working weekday."""
        return self.local(day).weekday() not in self.working_hours.exclude_weekdays

    def iter_days(self, first: DateTime, last: DateTime) -> Iterator[DateTime]:
        """Yield local midnights from ``first``'s day up to and including ``last``."""
        day = self.truncate_to_day_boundary(first, 0)
        while day <= last:
            yield day
            day = day.add(days=1)

    def off_hours_band(self, day: DateTime, non_working: bool = False) -> BusyInterval:
        """
        Busy band that ends the night before ``day``'s working window.

        The band runs from the previous day's closing hour to this day's
        opening hour. On a non-working day it extends to the next day's
        opening hour instead, blocking the whole day.
        """
        midnight = self.truncate_to_day_boundary(day, 0)
        start = self._at_hour(midnight.subtract(days=1), self.working_hours.end_hour)

        if non_working:
            end = self._at_hour(midnight.add(days=1), self.working_hours.start_hour)
            kind = BusyKind.NON_WORKING_DAY
        else:
            end = self._at_hour(midnight, self.working_hours.start_hour)
            kind = BusyKind.OFF_HOURS

        return BusyInterval(start=start, end=end, kind=kind, source="working-hours")

    def resolve_window(
        self,
        start: Optional[DateTime] = None,
        end: Optional[DateTime] = None,
        span_days: int = 7
    ) -> Timespan:
        """
        Complete a partially specified listing window.

        - Neither bound: today's midnight plus ``span_days``.
        - Only ``end``: reach back ``span_days`` and round up to a midnight.
        - Only ``start``: reach forward ``span_days`` and round down to a midnight.

        Reversed bounds are swapped.
        """
        if start is None and end is None:
            start = self.truncate_to_day_boundary(self.now(), 0)
            end = start.add(days=span_days)
        elif start is None:
            start = self.truncate_to_day_boundary(end.subtract(days=span_days), 0, round_toward_past=True)
        elif end is None:
            end = self.truncate_to_day_boundary(start.add(days=span_days), 0)

        if start is None or end is None:
            raise InvariantViolationError("BUG: listing window has no start and no end")

        if end < start:
            start, end = end, start

        return Timespan(start=start, end=end)

    @staticmethod
    def _at_hour(day: DateTime, hour: int) -> DateTime:
        # hour 24 is the following midnight
        return day.add(days=hour // 24).set(hour=hour % 24)
