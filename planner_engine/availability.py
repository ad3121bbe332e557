"""
Free-time calculation over the planning horizon.

Free windows are computed per calendar day in the planner timezone and
rendered into the text block the allocation oracle reads:

    Timezone: Europe/Berlin (CEST)
    Monday, 2026-10-19: 14:00-16:30, 18:00-22:00
    Tuesday, 2026-10-20: 08:00-22:00

Days without free time are left out.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from planner_engine.intervals import merge_intervals
from planner_engine.models import CalendarEvent, DayAvailability, Horizon, TimeInterval

logger = logging.getLogger(__name__)

WORKDAY_START = time(8, 0)
WORKDAY_END = time(22, 0)
HORIZON_DAYS = 30


def _at(day: date, clock: time, tz: ZoneInfo) -> datetime:
    """Local wall-clock time on ``day`` as a UTC instant."""
    return datetime.combine(day, clock, tzinfo=tz).astimezone(timezone.utc)


def ceil_to_minute(moment: datetime) -> datetime:
    """Round up to the next whole minute, free windows are rendered as HH:MM."""
    if moment.second or moment.microsecond:
        return moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return moment


def busy_intervals_for_day(
        day: date,
        events: t.Iterable[CalendarEvent],
        tz: ZoneInfo,
) -> list[TimeInterval]:
    """Busy intervals of all events that touch ``day``, in UTC."""
    day_start = _at(day, time.min, tz)
    day_end = _at(day + timedelta(days=1), time.min, tz)

    busy: list[TimeInterval] = []
    for event in events:
        if event.start_time >= event.end_time:
            logger.debug("Skipping event %s with empty or inverted time range", event.id)
            continue
        # Also catches events that span the whole day
        if event.start_time < day_end and event.end_time > day_start:
            busy.append(TimeInterval(
                event.start_time.astimezone(timezone.utc),
                event.end_time.astimezone(timezone.utc),
            ))
    return busy


def free_windows_for_day(
        day: date,
        events: t.Iterable[CalendarEvent],
        now: datetime,
        tz: ZoneInfo,
        workday_start: time = WORKDAY_START,
        workday_end: time = WORKDAY_END,
) -> list[TimeInterval]:
    """Computes the free windows of one day inside the working envelope.

    :param day: The calendar day in the planner timezone.
    :param events: All known calendar events; events outside ``day`` are ignored.
    :param now: The current instant. Time before it is never offered on today.
    :param tz: The planner timezone.
    :param workday_start: Local start of the working envelope.
    :param workday_end: Local end of the working envelope.
    :return: Ordered free windows in UTC, possibly empty.
    """
    day_start = _at(day, time.min, tz)
    envelope_start = _at(day, workday_start, tz)
    envelope_end = _at(day, workday_end, tz)

    now = ceil_to_minute(now).astimezone(timezone.utc)
    is_today = now.astimezone(tz).date() == day

    busy = busy_intervals_for_day(day, events, tz)
    if is_today and now > day_start:
        busy.append(TimeInterval(day_start, now))

    cursor = max(day_start, envelope_start)
    if is_today:
        cursor = max(cursor, now)

    free: list[TimeInterval] = []
    for interval in merge_intervals(busy):
        gap_end = min(max(interval.start, day_start), envelope_end)
        if gap_end > cursor:
            free.append(TimeInterval(cursor, gap_end))
        cursor = max(cursor, interval.end)

    if envelope_end > cursor:
        free.append(TimeInterval(cursor, envelope_end))
    return free


def build_horizon(
        events: t.Sequence[CalendarEvent],
        now: datetime,
        tz: ZoneInfo,
        days: int = HORIZON_DAYS,
        workday_start: time = WORKDAY_START,
        workday_end: time = WORKDAY_END,
) -> Horizon:
    """Collects the free windows for ``days`` consecutive days starting today.

    :param events: All known calendar events.
    :param now: The current instant, anchoring "today".
    :param tz: The planner timezone.
    :param days: Length of the horizon.
    :return: A Horizon holding only the days with at least one free window.
    """
    local_now = now.astimezone(tz)
    today = local_now.date()

    availability: list[DayAvailability] = []
    for offset in range(days):
        day = today + timedelta(days=offset)
        windows = free_windows_for_day(day, events, now, tz, workday_start, workday_end)
        if windows:
            availability.append(DayAvailability(day=day, windows=tuple(windows)))

    return Horizon(
        timezone=tz.key,
        timezone_abbreviation=local_now.tzname() or tz.key,
        days=tuple(availability),
    )


def format_window(window: TimeInterval, tz: ZoneInfo) -> str:
    return f"{window.start.astimezone(tz):%H:%M}-{window.end.astimezone(tz):%H:%M}"


def serialize_horizon(horizon: Horizon) -> str:
    """Renders a horizon into the oracle's availability text.

    :param horizon: The horizon produced by :func:`build_horizon`.
    :return: A timezone header line followed by one line per day with free time.
    """
    tz = ZoneInfo(horizon.timezone)
    lines = [f"Timezone: {horizon.timezone} ({horizon.timezone_abbreviation})"]
    for availability in horizon.days:
        if not availability.windows:
            continue
        slots = ", ".join(format_window(w, tz) for w in availability.windows)
        lines.append(f"{availability.day:%A}, {availability.day.isoformat()}: {slots}")
    return "\n".join(lines)
