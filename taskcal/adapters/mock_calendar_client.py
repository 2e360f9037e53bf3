"""
In-memory calendar client for running without the Microsoft Graph API.
"""

import json
import uuid
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError, TaskNotFoundError
from ..domain.tasks import CalendarEvent

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that keeps calendar events in memory.

    Events are seeded from mock_calendar_data.json (or an explicit list), so
    the application can be exercised without authentication or network
    access. Writes only live as long as the client instance.
    """

    def __init__(
        self,
        events: Optional[Iterable[CalendarEvent]] = None,
        data_file: Optional[Path] = None,
        timezone: str = "Europe/Berlin",
        unavailable_calendars: Iterable[str] = ()
    ):
        """
        Initialize the mock client.

        Args:
            events: Explicit seed events; when omitted, data_file is loaded
            data_file: JSON file with seed events
            timezone: IANA timezone used when parsing the seed file
            unavailable_calendars: Calendar ids whose reads fail, to simulate outages
        """
        self.timezone = timezone
        self.unavailable_calendars = set(unavailable_calendars)
        self._events: Dict[str, CalendarEvent] = {}

        if events is None:
            events = self._load_calendar_data(data_file or DEFAULT_DATA_FILE)

        for event in events:
            self._events[event.id] = event

    def _load_calendar_data(self, data_file: Path) -> List[CalendarEvent]:
        """Load mock calendar data from JSON file."""
        if not data_file.exists():
            return []

        with open(data_file, "r", encoding="utf-8") as f:
            raw_events = json.load(f)

        return [
            CalendarEvent(
                id=raw["id"],
                calendar_id=raw["calendarId"],
                title=raw.get("title", ""),
                start=pendulum.parse(raw["start"], tz=self.timezone),
                end=pendulum.parse(raw["end"], tz=self.timezone),
                description=raw.get("description", "")
            )
            for raw in raw_events
        ]

    def list_events(
        self,
        calendar_id: str,
        start: DateTime,
        end: DateTime,
        strict: bool = False
    ) -> List[CalendarEvent]:
        """Return events of ``calendar_id`` that overlap ``[start, end)``. Seed events are always well-formed."""
        if calendar_id in self.unavailable_calendars:
            raise CalendarAPIError(f"Calendar {calendar_id} is unavailable")

        return [
            event for event in self._events.values()
            if event.calendar_id == calendar_id and event.start < end and event.end > start
        ]

    def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        event = self._events.get(event_id)
        if event is None or event.calendar_id != calendar_id:
            raise TaskNotFoundError(f"No event {event_id} in calendar {calendar_id}")
        return event

    def create_event(
        self,
        calendar_id: str,
        title: str,
        start: DateTime,
        end: DateTime,
        description: str = ""
    ) -> CalendarEvent:
        event = CalendarEvent(
            id=uuid.uuid4().hex,
            calendar_id=calendar_id,
            title=title,
            start=start,
            end=end,
            description=description
        )
        self._events[event.id] = event
        return event

    def update_event(
        self,
        calendar_id: str,
        event_id: str,
        *,
        title: str | None = None,
        start: DateTime | None = None,
        end: DateTime | None = None
    ) -> CalendarEvent:
        event = self.get_event(calendar_id, event_id)
        if title is not None:
            event.title = title
        if start is not None:
            event.start = start
        if end is not None:
            event.end = end
        return event
