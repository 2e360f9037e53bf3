"""
Microsoft Graph API client for reading and writing calendar events.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError, TaskNotFoundError
from ..domain.tasks import CalendarEvent

logger = logging.getLogger(__name__)

# Graph returns seven fractional digits; keep microseconds only
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


class GraphClient:
    """
    Client for Microsoft Graph API calendar operations.

    Reads use the /calendarView endpoint, which expands recurring events
    into single occurrences inside the requested window.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"
    PAGE_SIZE = 100

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timezone: str = "Europe/Berlin",
        timeout: int = 30
    ):
        """
        Initialize the Graph API client.

        Args:
            access_token: Valid Microsoft Graph access token
            base_url: Override for the Graph endpoint
            timezone: IANA timezone the returned events are converted to
            timeout: Per-request timeout in seconds
        """
        self.access_token = access_token
        self.base_url = (base_url or self.GRAPH_API_ENDPOINT).rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Prefer": 'outlook.timezone="UTC"'
        }

    def list_events(
        self,
        calendar_id: str,
        start: DateTime,
        end: DateTime,
        strict: bool = False
    ) -> List[CalendarEvent]:
        """
        Get all events of a calendar intersecting ``[start, end)``.

        Args:
            calendar_id: Graph calendar id, or "primary" for the default calendar
            start: Start of the time window
            end: End of the time window
            strict: Fail on events that cannot be parsed instead of skipping them

        Returns:
            List of CalendarEvent objects, in the order Graph returns them

        Raises:
            CalendarAPIError: If the API call fails, or an event is malformed in strict mode
        """
        url: Optional[str] = f"{self._calendar_url(calendar_id)}/calendarView"
        params: Optional[Dict[str, Any]] = {
            "startDateTime": start.in_timezone("UTC").to_iso8601_string(),
            "endDateTime": end.in_timezone("UTC").to_iso8601_string(),
            "$select": "id,subject,body,start,end",
            "$top": self.PAGE_SIZE
        }

        events: List[CalendarEvent] = []

        # Follow @odata.nextLink until the window is exhausted
        while url:
            data = self._request("GET", url, params=params)
            for item in data.get("value", []):
                event = self._parse_event(item, calendar_id)
                if event is not None:
                    events.append(event)
                elif strict:
                    raise CalendarAPIError(
                        f"Malformed event {item.get('id', '?')} in calendar {calendar_id}"
                    )
            url = data.get("@odata.nextLink")
            params = None

        logger.debug("Fetched %d events from calendar %s", len(events), calendar_id)
        return events

    def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        """
        Fetch a single event.

        Raises:
            TaskNotFoundError: If the event does not exist
            CalendarAPIError: If the API call fails
        """
        data = self._request("GET", f"{self.base_url}/me/events/{event_id}")
        event = self._parse_event(data, calendar_id)
        if event is None:
            raise CalendarAPIError(f"Could not parse event {event_id}")
        return event

    def create_event(
        self,
        calendar_id: str,
        title: str,
        start: DateTime,
        end: DateTime,
        description: str = ""
    ) -> CalendarEvent:
        """Create an event occupying exactly ``[start, end)``."""
        payload = {
            "subject": title,
            "body": {"contentType": "text", "content": description},
            "start": self._format_datetime(start),
            "end": self._format_datetime(end)
        }
        data = self._request("POST", f"{self._calendar_url(calendar_id)}/events", json=payload)
        event = self._parse_event(data, calendar_id)
        if event is None:
            raise CalendarAPIError("Could not parse created event")
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
        """Change the title and/or time of an existing event."""
        payload: Dict[str, Any] = {}
        if title is not None:
            payload["subject"] = title
        if start is not None:
            payload["start"] = self._format_datetime(start)
        if end is not None:
            payload["end"] = self._format_datetime(end)

        data = self._request("PATCH", f"{self.base_url}/me/events/{event_id}", json=payload)
        event = self._parse_event(data, calendar_id)
        if event is None:
            raise CalendarAPIError(f"Could not parse updated event {event_id}")
        return event

    def _calendar_url(self, calendar_id: str) -> str:
        if calendar_id == "primary":
            return f"{self.base_url}/me/calendar"
        return f"{self.base_url}/me/calendars/{calendar_id}"

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Microsoft Graph request failed: {e}") from e

        if response.status_code == 404:
            raise TaskNotFoundError(f"Not found: {url}")

        try:
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            raise CalendarAPIError(f"Microsoft Graph returned an error: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Invalid JSON from Microsoft Graph: {e}") from e

    def _parse_event(self, item: Dict[str, Any], calendar_id: str) -> CalendarEvent | None:
        """
        Parse a Graph event resource into our domain model.

        Resource format:
        {
            "id": "AAMkAG...",
            "subject": "Write report",
            "body": {"contentType": "text", "content": "..."},
            "start": {"dateTime": "2024-11-25T09:00:00.0000000", "timeZone": "UTC"},
            "end": {"dateTime": "2024-11-25T10:00:00.0000000", "timeZone": "UTC"}
        }
        """
        try:
            start = self._parse_datetime(item["start"]["dateTime"], item["start"].get("timeZone", "UTC"))
            end = self._parse_datetime(item["end"]["dateTime"], item["end"].get("timeZone", "UTC"))
            return CalendarEvent(
                id=item["id"],
                calendar_id=calendar_id,
                title=item.get("subject") or "",
                start=start,
                end=end,
                description=(item.get("body") or {}).get("content", "")
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Could not parse calendar event %s: %s", item.get("id", "?"), e)
            return None

    def _parse_datetime(self, datetime_str: str, source_timezone: str) -> DateTime:
        """
        Parse a Graph dateTime string to a pendulum DateTime in the client's timezone.
        """
        dt = pendulum.parse(_EXCESS_FRACTION.sub(r"\1", datetime_str), tz=source_timezone)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {datetime_str}")

    @staticmethod
    def _format_datetime(dt: DateTime) -> Dict[str, str]:
        return {
            "dateTime": dt.in_timezone("UTC").format("YYYY-MM-DDTHH:mm:ss"),
            "timeZone": "UTC"
        }
