"""
Tasks are calendar events in a dedicated task calendar.

A task's state lives entirely in the event: a leading check mark in the
title means "done", a trailing "(n)" counts copies.
"""

import re
from dataclasses import dataclass, field
from typing import List, Tuple

from pendulum import DateTime

from .models import Timespan

DONE_MARK = "✓"

_DONE_PREFIX = re.compile(r"^✓\s*")
_COPY_SUFFIX = re.compile(r"(?:\s*\((\d+)\))?\Z")

WEEKDAY_NAMES = {
    0: "Montag",
    1: "Dienstag",
    2: "Mittwoch",
    3: "Donnerstag",
    4: "Freitag",
    5: "Samstag",
    6: "Sonntag"
}


def split_done_mark(title: str) -> Tuple[str, bool]:
    """Strip the done mark from a title and report whether it was present."""
    stripped, count = _DONE_PREFIX.subn("", title, count=1)
    return stripped, count > 0


def apply_done_mark(title: str, done: bool) -> str:
    """Return ``title`` with the done mark added or removed. Idempotent."""
    stripped, marked = split_done_mark(title)
    if done:
        return title if marked else f"{DONE_MARK} {stripped}"
    return stripped


def next_copy_title(title: str) -> str:
    """
    Title for a copy of a task.

    The done mark is dropped and the trailing counter is bumped:
    "Write report" -> "Write report (1)", "Write report (1)" -> "Write report (2)".
    """
    stripped, _ = split_done_mark(title)

    def bump(match: re.Match) -> str:
        return f" ({int(match.group(1) or 0) + 1})"

    return _COPY_SUFFIX.sub(bump, stripped, count=1)


@dataclass
class CalendarEvent:
    """An event as stored by the calendar service."""
    id: str
    calendar_id: str
    title: str
    start: DateTime
    end: DateTime
    description: str = ""

    @property
    def timespan(self) -> Timespan:
        return Timespan(start=self.start, end=self.end)

    def duration_minutes(self) -> int:
        return self.timespan.duration_minutes()


@dataclass
class Task:
    """A task as presented to the user."""
    title: str
    done: bool
    event_id: str
    calendar_id: str
    start: DateTime
    end: DateTime

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "Task":
        title, done = split_done_mark(event.title)
        return cls(
            title=title,
            done=done,
            event_id=event.id,
            calendar_id=event.calendar_id,
            start=event.start,
            end=event.end,
        )

    def format_display(self) -> str:
        """
        Format the task for display.
        Format: [x] Wochentag, DD.MM.YYYY | HH:MM – HH:MM Uhr  Titel
        """
        checkbox = "[x]" if self.done else "[ ]"
        weekday = WEEKDAY_NAMES[self.start.weekday()]
        date_str = self.start.format("DD.MM.YYYY")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')} Uhr"
        return f"{checkbox} {weekday}, {date_str} | {time_str}  {self.title}"


@dataclass
class TaskList:
    """Tasks found in a listing window, with the window that was used."""
    start: DateTime
    end: DateTime
    tasks: List[Task] = field(default_factory=list)
