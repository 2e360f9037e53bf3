"""
Gathers everything that blocks a new task from being placed.

Busy time comes from three places:
1. Existing events in each configured calendar (primary, tasks, holidays)
2. One synthetic off-hours band per day in the lookahead window
3. Whole-day bands for excluded weekdays and days covered by a holiday

Calendar queries are independent reads and run concurrently. All of them
must succeed; the first failure aborts the collection.

Only events starting within ``lookahead_days`` of the candidate are fetched.
A candidate pushed past that window is not checked against later events.
"""

import asyncio
import logging
from datetime import date
from typing import List, Optional, Protocol, Sequence, Set

from pendulum import DateTime

from .exceptions import CalendarAPIError, SourceUnavailableError, TaskNotFoundError
from .models import BusyInterval, BusyKind, Timespan
from .working_hour_clock import WorkingHourClock

logger = logging.getLogger(__name__)

LOOKAHEAD_DAYS = 7


class IntervalSource(Protocol):
    """Read-only view of one calendar as a list of occupied spans."""

    name: str

    def query_events(self, start: DateTime, end: DateTime) -> Sequence[Timespan]:
        """Return every event intersecting ``[start, end)``, in any order."""


class BusyIntervalCollector:
    """
    Builds the busy-interval set for a single scheduling request.
    """

    def __init__(
        self,
        clock: WorkingHourClock,
        sources: Sequence[IntervalSource],
        holiday_source: Optional[IntervalSource] = None,
        lookahead_days: int = LOOKAHEAD_DAYS,
    ):
        self._clock = clock
        self._sources = list(sources)
        self._holiday_source = holiday_source
        self.lookahead_days = lookahead_days

    async def collect(self, target: Timespan) -> List[BusyInterval]:
        """
        Collect busy intervals relevant to ``target``.

        Raises:
            SourceUnavailableError: If any calendar query fails
        """
        window_start = target.start
        window_end = target.start.add(days=self.lookahead_days)

        sources = list(self._sources)
        if self._holiday_source is not None:
            sources.append(self._holiday_source)

        results = await asyncio.gather(
            *(self._query(source, window_start, window_end) for source in sources)
        )

        busy: List[BusyInterval] = []
        for source, spans in zip(sources, results):
            busy.extend(
                BusyInterval(start=span.start, end=span.end, kind=BusyKind.COMMITMENT, source=source.name)
                for span in spans
            )

        holidays: Set[date] = set()
        if self._holiday_source is not None:
            holidays = self._holiday_dates(results[-1])

        busy.extend(self._working_hour_bands(target, holidays))

        logger.debug(
            "Collected %d busy intervals for %s (%d holiday dates)",
            len(busy), target, len(holidays)
        )
        return busy

    async def _query(
        self,
        source: IntervalSource,
        start: DateTime,
        end: DateTime
    ) -> Sequence[Timespan]:
        logger.debug("Querying %s for %s - %s", source.name, start, end)
        try:
            return await asyncio.to_thread(source.query_events, start, end)
        except SourceUnavailableError:
            raise
        except (CalendarAPIError, TaskNotFoundError, OSError) as exc:
            raise SourceUnavailableError(source.name, str(exc)) from exc

    def _working_hour_bands(self, target: Timespan, holidays: Set[date]) -> List[BusyInterval]:
        """One off-hours band per local day from the target's day onwards."""
        last_day = self._clock.truncate_to_day_boundary(
            target.end, 0, round_toward_past=True
        ).add(days=self.lookahead_days)

        bands: List[BusyInterval] = []
        for day in self._clock.iter_days(target.start, last_day):
            non_working = not self._clock.is_working_day(day) or day.date() in holidays
            bands.append(self._clock.off_hours_band(day, non_working=non_working))

        return bands

    def _holiday_dates(self, spans: Sequence[Timespan]) -> Set[date]:
        """Local dates fully covered by at least one holiday event."""
        dates: Set[date] = set()

        for span in spans:
            day = self._clock.truncate_to_day_boundary(span.start, 0, round_toward_past=True)
            while day.add(days=1) <= span.end:
                dates.add(day.date())
                day = day.add(days=1)

        return dates
