"""
Tests for the earliest-fit sweep.
"""

import copy

import pendulum

from taskcal.domain.models import BusyInterval, BusyKind, Timespan, WorkingHours
from taskcal.domain.sweep_scheduler import IntervalSweepScheduler
from taskcal.domain.working_hour_clock import WorkingHourClock

TZ = "Europe/Berlin"


def at(value: str):
    return pendulum.parse(value, tz=TZ)


def busy(start: str, end: str) -> BusyInterval:
    return BusyInterval(start=at(start), end=at(end))


def candidate(start: str, minutes: int) -> Timespan:
    begin = at(start)
    return Timespan(start=begin, end=begin.add(minutes=minutes))


class TestIntervalSweepScheduler:
    """Tests for IntervalSweepScheduler."""

    def test_no_busy_intervals_keeps_candidate(self):
        """Monday 10:00, 60 minutes, nothing busy."""
        target = candidate("2024-11-25 10:00", 60)

        result = IntervalSweepScheduler().sweep(target, [])

        assert result.start == at("2024-11-25 10:00")
        assert result.end == at("2024-11-25 11:00")

    def test_pushes_past_single_conflict(self):
        """A 10:00-11:30 meeting pushes a 60 minute task to 11:30-12:30."""
        target = candidate("2024-11-25 10:00", 60)

        result = IntervalSweepScheduler().sweep(target, [busy("2024-11-25 10:00", "2024-11-25 11:30")])

        assert result.start == at("2024-11-25 11:30")
        assert result.end == at("2024-11-25 12:30")

    def test_chained_conflicts_in_any_input_order(self):
        """Overlapping meetings supplied out of order are resolved in one pass."""
        target = candidate("2024-11-26 09:00", 30)
        spans = [
            busy("2024-11-26 09:15", "2024-11-26 10:00"),
            busy("2024-11-26 09:00", "2024-11-26 09:30"),
        ]

        result = IntervalSweepScheduler().sweep(target, spans)

        assert result.start == at("2024-11-26 10:00")
        assert result.end == at("2024-11-26 10:30")

    def test_gap_too_small_is_skipped(self):
        target = candidate("2024-11-25 09:00", 60)
        spans = [
            busy("2024-11-25 09:00", "2024-11-25 09:45"),
            busy("2024-11-25 10:15", "2024-11-25 11:00"),
        ]

        result = IntervalSweepScheduler().sweep(target, spans)

        assert result.start == at("2024-11-25 11:00")

    def test_gap_that_fits_is_used(self):
        target = candidate("2024-11-25 09:00", 30)
        spans = [
            busy("2024-11-25 09:00", "2024-11-25 09:45"),
            busy("2024-11-25 10:15", "2024-11-25 11:00"),
        ]

        result = IntervalSweepScheduler().sweep(target, spans)

        assert result.start == at("2024-11-25 09:45")
        assert result.end == at("2024-11-25 10:15")

    def test_busy_intervals_in_the_past_are_ignored(self):
        target = candidate("2024-11-25 10:00", 60)

        result = IntervalSweepScheduler().sweep(target, [busy("2024-11-25 08:00", "2024-11-25 10:00")])

        assert result.start == at("2024-11-25 10:00")

    def test_weekend_band_moves_friday_evening_to_monday(self):
        """Friday 18:30 with 09:00-18:00 hours lands on Monday 09:00."""
        clock = WorkingHourClock(WorkingHours(start_hour=9, end_hour=18), timezone=TZ)
        bands = [
            clock.off_hours_band(at("2024-11-22")),
            clock.off_hours_band(at("2024-11-23"), non_working=True),
            clock.off_hours_band(at("2024-11-24"), non_working=True),
            clock.off_hours_band(at("2024-11-25")),
        ]
        target = candidate("2024-11-22 18:30", 60)

        result = IntervalSweepScheduler().sweep(target, bands)

        assert result.start == at("2024-11-25 09:00")
        assert result.end == at("2024-11-25 10:00")

    def test_returns_the_same_object(self):
        target = candidate("2024-11-25 10:00", 60)

        result = IntervalSweepScheduler().sweep(target, [busy("2024-11-25 10:00", "2024-11-25 11:00")])

        assert result is target

    def test_busy_intervals_are_not_modified(self):
        spans = [busy("2024-11-25 10:00", "2024-11-25 11:00")]
        before = list(spans)

        IntervalSweepScheduler().sweep(candidate("2024-11-25 10:00", 60), spans)

        assert spans == before


class TestSweepProperties:
    """Invariants that hold for any input."""

    SPANS = [
        busy("2024-11-25 09:00", "2024-11-25 09:30"),
        busy("2024-11-25 09:15", "2024-11-25 10:00"),
        busy("2024-11-25 11:00", "2024-11-25 12:00"),
        busy("2024-11-25 12:10", "2024-11-25 13:00"),
        BusyInterval(
            start=at("2024-11-25 18:00"),
            end=at("2024-11-26 09:00"),
            kind=BusyKind.OFF_HOURS,
        ),
    ]

    def test_sweep_is_a_fixed_point(self):
        scheduler = IntervalSweepScheduler()
        for start in ("2024-11-25 08:00", "2024-11-25 09:00", "2024-11-25 10:30", "2024-11-25 17:30"):
            first = scheduler.sweep(candidate(start, 45), self.SPANS)
            snapshot = copy.copy(first)

            second = scheduler.sweep(first, self.SPANS)

            assert second == snapshot

    def test_start_never_moves_backwards(self):
        scheduler = IntervalSweepScheduler()
        for start in ("2024-11-25 08:00", "2024-11-25 09:20", "2024-11-25 11:30", "2024-11-25 17:30"):
            original = candidate(start, 60)
            original_start = original.start

            result = scheduler.sweep(original, self.SPANS)

            assert result.start >= original_start
            assert result.duration_minutes() == 60

    def test_result_overlaps_nothing(self):
        scheduler = IntervalSweepScheduler()
        for minutes in (10, 30, 60, 120):
            result = scheduler.sweep(candidate("2024-11-25 09:00", minutes), self.SPANS)

            assert not any(result.overlaps(span) for span in self.SPANS)
