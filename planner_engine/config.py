"""
Configuration for the planner engine.

Every setting can be overridden through an environment variable; the
defaults describe a student's working day of 08:00-22:00 and a 30 day
planning horizon.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from zoneinfo import ZoneInfo

# Planning defaults - configurable via environment variables
PLANNER_TIMEZONE = os.getenv("PLANNER_TIMEZONE") or os.getenv("TZ") or "UTC"
PLANNER_WORKDAY_START = os.getenv("PLANNER_WORKDAY_START", "08:00")
PLANNER_WORKDAY_END = os.getenv("PLANNER_WORKDAY_END", "22:00")
PLANNER_HORIZON_DAYS = int(os.getenv("PLANNER_HORIZON_DAYS", "30"))
PLANNER_MIN_BLOCK_MINUTES = int(os.getenv("PLANNER_MIN_BLOCK_MINUTES", "15"))

# Oracle settings
PLANNER_ORACLE_MODEL = os.getenv("PLANNER_ORACLE_MODEL", "gpt-5")
ORACLE_TIMEOUT = float(os.getenv("ORACLE_TIMEOUT", "300"))  # LLM planning can take minutes

# Google API settings
GOOGLE_CALENDAR_API_URL = os.getenv("GOOGLE_CALENDAR_API_URL", "https://www.googleapis.com/calendar/v3")
GOOGLE_CLASSROOM_API_URL = os.getenv("GOOGLE_CLASSROOM_API_URL", "https://classroom.googleapis.com/v1")
GOOGLE_API_TIMEOUT = float(os.getenv("GOOGLE_API_TIMEOUT", "30"))


def parse_clock(hhmm: str) -> time:
    """Parse an ``HH:MM`` string into a :class:`datetime.time`."""
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return time(hours, minutes)


@dataclass(frozen=True)
class PlannerSettings:
    """Resolved planner configuration."""
    timezone: ZoneInfo
    workday_start: time = time(8, 0)
    workday_end: time = time(22, 0)
    horizon_days: int = 30
    min_block_minutes: int = 15
    oracle_model: str = "gpt-5"


def load_settings() -> PlannerSettings:
    """Build :class:`PlannerSettings` from the environment-backed constants."""
    settings = PlannerSettings(
        timezone=ZoneInfo(PLANNER_TIMEZONE),
        workday_start=parse_clock(PLANNER_WORKDAY_START),
        workday_end=parse_clock(PLANNER_WORKDAY_END),
        horizon_days=PLANNER_HORIZON_DAYS,
        min_block_minutes=PLANNER_MIN_BLOCK_MINUTES,
        oracle_model=PLANNER_ORACLE_MODEL,
    )
    if settings.workday_start >= settings.workday_end:
        raise ValueError(
            f"Workday start {PLANNER_WORKDAY_START} must be before workday end {PLANNER_WORKDAY_END}"
        )
    return settings
