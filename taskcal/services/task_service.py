"""
Application services for scheduling tasks into free calendar time.

The service finds a slot through the domain components (clock, collector,
sweep) and then persists it through a calendar client adapter. Keeping the
calendar behind a protocol lets tests and the --mock mode swap in the
in-memory client.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from pendulum import DateTime

from ..adapters.interval_source import CalendarClientProtocol, CalendarIntervalSource
from ..config import AppConfig
from ..domain.busy_interval_collector import BusyIntervalCollector
from ..domain.exceptions import InvalidDurationError
from ..domain.models import Timespan
from ..domain.sweep_scheduler import IntervalSweepScheduler
from ..domain.tasks import Task, TaskList, apply_done_mark, next_copy_title
from ..domain.working_hour_clock import WorkingHourClock

logger = logging.getLogger(__name__)


class TaskService:
    """
    Orchestrates slot finding and task persistence.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        tasks_calendar_id: str,
        clock: WorkingHourClock,
        collector: BusyIntervalCollector,
        scheduler: IntervalSweepScheduler | None = None,
    ) -> None:
        self._calendar_client = calendar_client
        self._tasks_calendar_id = tasks_calendar_id
        self._clock = clock
        self._collector = collector
        self._scheduler = scheduler or IntervalSweepScheduler()

    async def schedule_time(
        self,
        desired_minutes: float = 60,
        now: Optional[DateTime] = None,
    ) -> Timespan:
        """
        Find the earliest free slot of ``desired_minutes`` starting after ``now``.

        Raises:
            InvalidDurationError: If the duration is not positive
            SourceUnavailableError: If a calendar cannot be read
        """
        return await self._find_slot(timedelta(minutes=desired_minutes), now)

    async def create_task(
        self,
        title: str,
        desired_minutes: float = 60,
        description: str = "",
        now: Optional[DateTime] = None,
    ) -> Task:
        """Schedule a new task in the earliest free slot."""
        slot = await self.schedule_time(desired_minutes, now=now)
        event = await asyncio.to_thread(
            self._calendar_client.create_event,
            self._tasks_calendar_id,
            title,
            slot.start,
            slot.end,
            description,
        )
        logger.info("Created task %r at %s", title, slot)
        return Task.from_event(event)

    async def reschedule_task(self, event_id: str, now: Optional[DateTime] = None) -> Task:
        """Move a task to the earliest free slot, keeping its length."""
        event = await self._get_event(event_id)
        slot = await self._find_slot(event.end - event.start, now)
        updated = await asyncio.to_thread(
            self._calendar_client.update_event,
            self._tasks_calendar_id,
            event_id,
            start=slot.start,
            end=slot.end,
        )
        logger.info("Rescheduled task %s to %s", event_id, slot)
        return Task.from_event(updated)

    async def copy_task(self, event_id: str, now: Optional[DateTime] = None) -> Task:
        """Schedule a numbered, not-done copy of a task."""
        event = await self._get_event(event_id)
        return await self.create_task(
            next_copy_title(event.title),
            desired_minutes=(event.end - event.start).total_seconds() / 60,
            description=event.description,
            now=now,
        )

    async def toggle_task_done(self, event_id: str, done: bool) -> bool:
        """Mark a task done or not done. Returns the new state."""
        event = await self._get_event(event_id)
        title = apply_done_mark(event.title, done)
        if title != event.title:
            await asyncio.to_thread(
                self._calendar_client.update_event,
                self._tasks_calendar_id,
                event_id,
                title=title,
            )
        return done

    async def list_tasks(
        self,
        start: Optional[DateTime] = None,
        end: Optional[DateTime] = None,
        span_days: int = 7,
    ) -> TaskList:
        """List tasks in a window; missing bounds are derived from ``span_days``."""
        window = self._clock.resolve_window(start, end, span_days)
        events = await asyncio.to_thread(
            self._calendar_client.list_events,
            self._tasks_calendar_id,
            window.start,
            window.end,
        )
        tasks = sorted((Task.from_event(event) for event in events), key=lambda t: (t.start, t.end))
        return TaskList(start=window.start, end=window.end, tasks=tasks)

    async def _get_event(self, event_id: str):
        return await asyncio.to_thread(
            self._calendar_client.get_event, self._tasks_calendar_id, event_id
        )

    async def _find_slot(self, duration: timedelta, now: Optional[DateTime]) -> Timespan:
        if duration <= timedelta(0):
            raise InvalidDurationError(f"Task duration must be positive, got {duration}")

        start = self._clock.initial_candidate_start(now or self._clock.now())
        target = Timespan(start=start, end=start + duration)

        busy = await self._collector.collect(target)
        slot = self._scheduler.sweep(target, busy)

        lookahead_end = start.add(days=self._collector.lookahead_days)
        if slot.end > lookahead_end:
            logger.warning(
                "Slot %s ends past the %d-day lookahead; later events were not checked",
                slot, self._collector.lookahead_days
            )
        return slot


def build_task_service(config: AppConfig, calendar_client: CalendarClientProtocol) -> TaskService:
    """Wire the domain components for the calendars named in ``config``."""
    clock = WorkingHourClock(config.get_working_hours(), timezone=config.timezone)

    calendars = config.calendars
    sources = [
        CalendarIntervalSource(calendar_client, calendars.primary, name="primary"),
        CalendarIntervalSource(calendar_client, calendars.tasks, name="tasks"),
    ]
    holiday_source = None
    if calendars.holidays:
        holiday_source = CalendarIntervalSource(calendar_client, calendars.holidays, name="holidays")

    collector = BusyIntervalCollector(clock, sources, holiday_source=holiday_source)

    return TaskService(
        calendar_client=calendar_client,
        tasks_calendar_id=calendars.tasks,
        clock=clock,
        collector=collector,
    )
