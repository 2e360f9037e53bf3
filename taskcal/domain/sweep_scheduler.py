"""
Earliest-fit placement of a task against a set of busy intervals.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from typing import Iterable

from .models import BusyInterval, Timespan

logger = logging.getLogger(__name__)


class IntervalSweepScheduler:
    """
    Pushes a candidate span forward until nothing busy overlaps it.

    Algorithm:
    1. Sort busy intervals by start, then end
    2. Walk them once; whenever the candidate overlaps one, move the
       candidate to start where that interval ends (duration kept)
    3. The candidate after the pass is the earliest conflict-free slot

    The candidate only ever moves forward and the intervals are visited in
    start order, so an interval left behind can never overlap again. No
    re-scan is needed.
    """

    def sweep(self, target: Timespan, busy_intervals: Iterable[BusyInterval]) -> Timespan:
        """
        Resolve ``target`` against ``busy_intervals`` in place.

        Args:
            target: Candidate span; mutated and returned
            busy_intervals: Read-only busy time, in any order

        Returns:
            The same span, moved to the earliest slot that fits
        """
        ordered = sorted(busy_intervals, key=BusyInterval.sort_key)

        for busy in ordered:
            if target.overlaps(busy):
                logger.debug("Candidate %s conflicts with %s", target, busy)
                target.set_start(busy.end)

        return target
