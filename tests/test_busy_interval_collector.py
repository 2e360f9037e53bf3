"""
Tests for BusyIntervalCollector.
"""

import asyncio
from typing import List, Tuple

import pendulum
import pytest

from taskcal.domain.busy_interval_collector import BusyIntervalCollector
from taskcal.domain.exceptions import CalendarAPIError, SourceUnavailableError
from taskcal.domain.models import BusyKind, Timespan, WorkingHours
from taskcal.domain.working_hour_clock import WorkingHourClock

TZ = "Europe/Berlin"


def at(value: str):
    return pendulum.parse(value, tz=TZ)


class StubSource:
    """Minimal stub matching the IntervalSource protocol."""

    def __init__(self, name: str, spans: List[Timespan] | None = None, error: Exception | None = None):
        self.name = name
        self._spans = spans or []
        self._error = error
        self.calls: List[Tuple] = []

    def query_events(self, start, end):
        self.calls.append((start, end))
        if self._error is not None:
            raise self._error
        return self._spans


@pytest.fixture
def clock() -> WorkingHourClock:
    return WorkingHourClock(WorkingHours(start_hour=9, end_hour=18), timezone=TZ)


def _target(start: str, minutes: int = 60) -> Timespan:
    begin = at(start)
    return Timespan(start=begin, end=begin.add(minutes=minutes))


class TestBusyIntervalCollector:
    """Tests for busy interval collection."""

    def test_queries_every_source_for_lookahead_window(self, clock):
        primary = StubSource("primary")
        tasks = StubSource("tasks")
        collector = BusyIntervalCollector(clock, [primary, tasks])

        asyncio.run(collector.collect(_target("2024-11-25 10:00")))

        expected = (at("2024-11-25 10:00"), at("2024-12-02 10:00"))
        assert primary.calls == [expected]
        assert tasks.calls == [expected]

    def test_events_become_commitments(self, clock):
        meeting = Timespan(start=at("2024-11-25 10:00"), end=at("2024-11-25 11:30"))
        collector = BusyIntervalCollector(clock, [StubSource("primary", [meeting])])

        busy = asyncio.run(collector.collect(_target("2024-11-25 10:00")))

        commitments = [b for b in busy if b.kind is BusyKind.COMMITMENT]
        assert len(commitments) == 1
        assert commitments[0].start == meeting.start
        assert commitments[0].end == meeting.end
        assert commitments[0].source == "primary"

    def test_one_band_per_day_in_window(self, clock):
        collector = BusyIntervalCollector(clock, [])

        busy = asyncio.run(collector.collect(_target("2024-11-25 10:00")))

        # Monday 25.11. through Tuesday 03.12. (ceil of the end plus seven days)
        assert len(busy) == 9
        assert busy[0].start == at("2024-11-24 18:00")
        assert busy[0].end == at("2024-11-25 09:00")
        assert busy[-1].end == at("2024-12-03 09:00")

    def test_weekend_days_get_full_day_bands(self, clock):
        collector = BusyIntervalCollector(clock, [])

        busy = asyncio.run(collector.collect(_target("2024-11-25 10:00")))

        full_days = [b for b in busy if b.kind is BusyKind.NON_WORKING_DAY]
        assert [b.end for b in full_days] == [at("2024-12-01 09:00"), at("2024-12-02 09:00")]

    def test_days_covered_by_holiday_are_non_working(self, clock):
        christmas = Timespan(start=at("2024-12-25 00:00"), end=at("2024-12-27 00:00"))
        holidays = StubSource("holidays", [christmas])
        collector = BusyIntervalCollector(clock, [], holiday_source=holidays)

        busy = asyncio.run(collector.collect(_target("2024-12-23 10:00")))

        full_days = {
            b.end.subtract(days=1).date()
            for b in busy if b.kind is BusyKind.NON_WORKING_DAY
        }
        assert pendulum.date(2024, 12, 25) in full_days
        assert pendulum.date(2024, 12, 26) in full_days
        assert pendulum.date(2024, 12, 24) not in full_days
        # the holiday itself is also busy time
        assert any(b.source == "holidays" for b in busy)

    def test_partial_day_holiday_does_not_block_day(self, clock):
        afternoon_off = Timespan(start=at("2024-12-24 14:00"), end=at("2024-12-25 00:00"))
        collector = BusyIntervalCollector(clock, [], holiday_source=StubSource("holidays", [afternoon_off]))

        busy = asyncio.run(collector.collect(_target("2024-12-23 10:00")))

        full_days = {
            b.end.subtract(days=1).date()
            for b in busy if b.kind is BusyKind.NON_WORKING_DAY
        }
        assert pendulum.date(2024, 12, 24) not in full_days

    def test_failing_source_aborts_collection(self, clock):
        failing = StubSource("tasks", error=CalendarAPIError("503 Service Unavailable"))
        collector = BusyIntervalCollector(clock, [StubSource("primary"), failing])

        with pytest.raises(SourceUnavailableError) as exc_info:
            asyncio.run(collector.collect(_target("2024-11-25 10:00")))

        assert exc_info.value.source == "tasks"
        assert exc_info.value.retryable

    def test_source_unavailable_is_passed_through(self, clock):
        error = SourceUnavailableError("primary", "timeout")
        collector = BusyIntervalCollector(clock, [StubSource("primary", error=error)])

        with pytest.raises(SourceUnavailableError) as exc_info:
            asyncio.run(collector.collect(_target("2024-11-25 10:00")))

        assert exc_info.value is error

    def test_custom_lookahead(self, clock):
        source = StubSource("primary")
        collector = BusyIntervalCollector(clock, [source], lookahead_days=2)

        busy = asyncio.run(collector.collect(_target("2024-11-25 10:00")))

        assert source.calls == [(at("2024-11-25 10:00"), at("2024-11-27 10:00"))]
        assert len(busy) == 4
