"""
Google Calendar client.

Reads the primary calendar as CalendarEvents and creates study blocks and
manual events on it.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import httpx

from google_clients.http import GoogleApiClient
from planner_engine.config import GOOGLE_API_TIMEOUT, GOOGLE_CALENDAR_API_URL
from planner_engine.models import CalendarEvent, EventDraft

logger = logging.getLogger(__name__)

EVENTS_PATH = "/calendars/primary/events"


def _parse_event_time(value: dict[str, t.Any], tz: ZoneInfo) -> t.Optional[datetime]:
    """Event start/end as an aware datetime; all-day dates become local midnight."""
    if value.get("dateTime"):
        parsed = datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=ZoneInfo(value.get("timeZone") or tz.key))
        return parsed
    if value.get("date"):
        return datetime.combine(date.fromisoformat(value["date"]), time.min, tzinfo=tz)
    return None


def to_calendar_event(item: dict[str, t.Any], tz: ZoneInfo) -> t.Optional[CalendarEvent]:
    """Maps a Google Calendar event resource, or returns None if it has no usable times."""
    try:
        start = _parse_event_time(item.get("start") or {}, tz)
        end = _parse_event_time(item.get("end") or {}, tz)
    except ValueError as e:
        logger.warning("Skipping event %s with unparseable dates: %s", item.get("id"), e)
        return None
    if start is None or end is None:
        return None
    return CalendarEvent(
        id=item["id"],
        title=item.get("summary", "") or "(No title)",
        start_time=start,
        end_time=end,
        source="google_calendar",
        description=item.get("description"),
    )


class GoogleCalendarClient(GoogleApiClient):
    """Calendar collaborator backed by the Google Calendar v3 API."""

    def __init__(
            self,
            access_token: str,
            tz: ZoneInfo,
            base_url: str = GOOGLE_CALENDAR_API_URL,
            timeout: float = GOOGLE_API_TIMEOUT,
            transport: t.Optional[httpx.AsyncBaseTransport] = None,
            clock: t.Optional[t.Callable[[], datetime]] = None,
    ) -> None:
        super().__init__(access_token, base_url, timeout, transport)
        self.tz = tz
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def fetch_events(self, window_days: t.Optional[int] = None) -> list[CalendarEvent]:
        """Lists events of the primary calendar.

        :param window_days: Limit to this many days starting today; all events when omitted.
        :return: The events in start order.
        :raises ExternalFetchError: If the calendar cannot be read.
        """
        params: dict[str, t.Any] = {"singleEvents": "true", "orderBy": "startTime"}
        if window_days is not None:
            today = self.clock().astimezone(self.tz).date()
            time_min = datetime.combine(today, time.min, tzinfo=self.tz)
            time_max = datetime.combine(today + timedelta(days=window_days), time.min, tzinfo=self.tz)
            params["timeMin"] = time_min.isoformat()
            params["timeMax"] = time_max.isoformat()

        items = await self._get_paged(EVENTS_PATH, "items", params)
        events = [to_calendar_event(item, self.tz) for item in items]
        return [event for event in events if event is not None]

    async def create_event(self, draft: EventDraft) -> t.Optional[CalendarEvent]:
        """Creates an event on the primary calendar.

        :param draft: The event to create.
        :return: The created event, or None if the calendar rejected it.
        """
        body = {
            "summary": draft.title,
            "description": draft.description,
            "start": {"dateTime": draft.start_time.isoformat(), "timeZone": self.tz.key},
            "end": {"dateTime": draft.end_time.isoformat(), "timeZone": self.tz.key},
        }
        try:
            created = await self._post_json(EVENTS_PATH, body)
        except httpx.HTTPStatusError as e:
            logger.error(
                "Failed to create calendar event: %s %s", e.response.status_code, e.response.text
            )
            return None
        except httpx.HTTPError as e:
            logger.error("Failed to create calendar event: %s", e)
            return None

        if not created.get("id"):
            return None
        return CalendarEvent(
            id=created["id"],
            title=created.get("summary", draft.title),
            start_time=draft.start_time,
            end_time=draft.end_time,
            source="google_calendar",
            description=created.get("description", draft.description),
        )
