"""
Adapters layer - External integrations (Microsoft Graph API).
"""

from .graph_client import GraphClient
from .interval_source import CalendarClientProtocol, CalendarIntervalSource
from .mock_calendar_client import MockCalendarClient

__all__ = ["CalendarClientProtocol", "CalendarIntervalSource", "GraphClient", "MockCalendarClient"]
