"""
Domain layer - Pure business logic without external dependencies.
"""

from .busy_interval_collector import BusyIntervalCollector, IntervalSource
from .models import BusyInterval, BusyKind, Timespan, WorkingHours
from .sweep_scheduler import IntervalSweepScheduler
from .tasks import CalendarEvent, Task, TaskList
from .working_hour_clock import WorkingHourClock

__all__ = [
    "BusyInterval",
    "BusyIntervalCollector",
    "BusyKind",
    "CalendarEvent",
    "IntervalSource",
    "IntervalSweepScheduler",
    "Task",
    "TaskList",
    "Timespan",
    "WorkingHourClock",
    "WorkingHours",
]
