"""
Exposes one calendar of a calendar client as a busy-interval source.
"""

import logging
from typing import List, Protocol

from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError, SourceUnavailableError, TaskNotFoundError
from ..domain.models import Timespan
from ..domain.tasks import CalendarEvent

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar operations the application needs."""

    def list_events(
        self,
        calendar_id: str,
        start: DateTime,
        end: DateTime,
        strict: bool = False,
    ) -> List[CalendarEvent]:
        """Return events intersecting ``[start, end)``; ``strict`` rejects malformed events."""

    def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        """Return a single event or raise TaskNotFoundError."""

    def create_event(
        self,
        calendar_id: str,
        title: str,
        start: DateTime,
        end: DateTime,
        description: str = "",
    ) -> CalendarEvent:
        """Store a new event."""

    def update_event(
        self,
        calendar_id: str,
        event_id: str,
        *,
        title: str | None = None,
        start: DateTime | None = None,
        end: DateTime | None = None,
    ) -> CalendarEvent:
        """Change title and/or time of an event."""


class CalendarIntervalSource:
    """Read-only adapter from a calendar to the collector's source interface."""

    def __init__(self, client: CalendarClientProtocol, calendar_id: str, name: str | None = None):
        self._client = client
        self.calendar_id = calendar_id
        self.name = name or calendar_id

    def query_events(self, start: DateTime, end: DateTime) -> List[Timespan]:
        """
        Return the spans of all events intersecting ``[start, end)``.

        Raises:
            SourceUnavailableError: If the calendar cannot be read
        """
        try:
            events = self._client.list_events(self.calendar_id, start, end, strict=True)
        except (CalendarAPIError, TaskNotFoundError) as exc:
            logger.warning("Reading calendar %s failed: %s", self.name, exc)
            raise SourceUnavailableError(self.name, str(exc)) from exc

        return [event.timespan for event in events]

    def __repr__(self) -> str:
        return f"CalendarIntervalSource(name={self.name!r}, calendar_id={self.calendar_id!r})"
