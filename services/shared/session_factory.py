"""
Builds a PlannerSession wired to the real Google APIs and OpenAI oracle.

Shared by the MCP server, the REST service and the command line so they all
read the same environment variables.
"""
from __future__ import annotations

import os
import typing as t

from google_clients.calendar_client import GoogleCalendarClient
from google_clients.classroom_client import GoogleClassroomClient
from planner_engine.config import PlannerSettings, load_settings
from planner_engine.oracle import OpenAIAllocationOracle
from planner_engine.session import PlannerSession


def build_default_session(
        access_token: t.Optional[str] = None,
        settings: t.Optional[PlannerSettings] = None,
) -> PlannerSession:
    """Create a session for the student owning ``access_token``.

    :param access_token: Google OAuth access token; defaults to ``GOOGLE_ACCESS_TOKEN``.
    :param settings: Planner settings; defaults to the environment.
    :return: A fresh PlannerSession with empty state.
    """
    access_token = access_token or os.getenv("GOOGLE_ACCESS_TOKEN")
    if not access_token:
        raise RuntimeError("GOOGLE_ACCESS_TOKEN environment variable is not set.")
    settings = settings or load_settings()

    return PlannerSession(
        calendar=GoogleCalendarClient(access_token, settings.timezone),
        coursework=GoogleClassroomClient(access_token),
        oracle=OpenAIAllocationOracle(model=settings.oracle_model),
        settings=settings,
    )
