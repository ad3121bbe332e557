"""Tests for the Google Calendar and Classroom clients against a mock transport."""
import json
from datetime import datetime

import httpx
import pytest

from google_clients.calendar_client import GoogleCalendarClient, to_calendar_event
from google_clients.classroom_client import GoogleClassroomClient
from planner_engine.errors import ExternalFetchError
from planner_engine.models import Course, EventDraft
from stubs import NOW, TZ, local


def calendar_with(handler) -> GoogleCalendarClient:
    return GoogleCalendarClient("token-123", TZ, base_url="https://calendar.test/v3",
                                transport=httpx.MockTransport(handler), clock=lambda: NOW)


def classroom_with(handler) -> GoogleClassroomClient:
    return GoogleClassroomClient("token-123", base_url="https://classroom.test/v1",
                                 transport=httpx.MockTransport(handler))


# -----------------------------
# Calendar
# -----------------------------

def test_timed_and_all_day_events_are_parsed() -> None:
    timed = to_calendar_event({
        "id": "e1", "summary": "Lecture",
        "start": {"dateTime": "2026-10-20T09:00:00-04:00"},
        "end": {"dateTime": "2026-10-20T10:30:00-04:00"},
    }, TZ)
    all_day = to_calendar_event({
        "id": "e2",
        "start": {"date": "2026-10-21"},
        "end": {"date": "2026-10-22"},
    }, TZ)

    assert timed.start_time == local(9)
    assert timed.end_time == local(10, 30)
    assert all_day.title == "(No title)"
    assert all_day.start_time == datetime(2026, 10, 21, tzinfo=TZ)
    assert all_day.end_time == datetime(2026, 10, 22, tzinfo=TZ)


def test_naive_event_time_uses_its_timezone() -> None:
    event = to_calendar_event({
        "id": "e1",
        "start": {"dateTime": "2026-10-20T15:00:00", "timeZone": "Europe/Berlin"},
        "end": {"dateTime": "2026-10-20T16:00:00", "timeZone": "Europe/Berlin"},
    }, TZ)
    assert event.start_time == local(9)


def test_event_without_times_is_skipped() -> None:
    assert to_calendar_event({"id": "e1", "start": {}, "end": {}}, TZ) is None


@pytest.mark.asyncio
async def test_fetch_events_follows_pages() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.params.get("pageToken") == "p2":
            return httpx.Response(200, json={"items": [
                {"id": "e2", "start": {"date": "2026-10-21"}, "end": {"date": "2026-10-22"}},
            ]})
        return httpx.Response(200, json={"nextPageToken": "p2", "items": [
            {"id": "e1", "summary": "Lecture",
             "start": {"dateTime": "2026-10-20T13:00:00Z"}, "end": {"dateTime": "2026-10-20T14:00:00Z"}},
        ]})

    events = await calendar_with(handler).fetch_events(window_days=30)

    assert [e.id for e in events] == ["e1", "e2"]
    first = seen[0]
    assert first.url.path == "/v3/calendars/primary/events"
    assert first.headers["Authorization"] == "Bearer token-123"
    assert first.url.params["singleEvents"] == "true"
    assert first.url.params["timeMin"] == "2026-10-20T00:00:00-04:00"
    assert first.url.params["timeMax"].startswith("2026-11-19T00:00:00")


@pytest.mark.asyncio
async def test_fetch_events_error_status_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})

    with pytest.raises(ExternalFetchError, match="401"):
        await calendar_with(handler).fetch_events()


@pytest.mark.asyncio
async def test_fetch_events_timeout_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ExternalFetchError, match="timed out"):
        await calendar_with(handler).fetch_events()


@pytest.mark.asyncio
async def test_create_event_posts_draft() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(200, json={"id": "new-1", **body})

    draft = EventDraft("Outline essay", local(15), local(16), "Assignment ID: w1")
    created = await calendar_with(handler).create_event(draft)

    assert created.id == "new-1"
    assert created.start_time == local(15)
    assert created.description == "Assignment ID: w1"
    assert bodies[0]["start"] == {"dateTime": "2026-10-20T15:00:00-04:00", "timeZone": "America/New_York"}


@pytest.mark.asyncio
async def test_rejected_event_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"message": "Forbidden"}})

    draft = EventDraft("Outline essay", local(15), local(16))
    assert await calendar_with(handler).create_event(draft) is None


def test_access_token_is_required() -> None:
    with pytest.raises(ValueError):
        GoogleCalendarClient("", TZ)


# -----------------------------
# Classroom
# -----------------------------

@pytest.mark.asyncio
async def test_fetch_courses_lists_active_courses() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["courseStates"] == "ACTIVE"
        return httpx.Response(200, json={"courses": [{"id": 101, "name": "History"}, {"id": "102"}]})

    courses = await classroom_with(handler).fetch_courses()
    assert courses == [Course("101", "History"), Course("102", "Unknown Course")]


@pytest.mark.asyncio
async def test_fetch_course_work_attaches_submission_state() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/v1/courses/c1/courseWork":
            assert request.url.params["courseWorkStates"] == "PUBLISHED"
            return httpx.Response(200, json={"courseWork": [
                {"id": "w1", "title": "Essay", "workType": "ASSIGNMENT", "maxPoints": 100},
                {"id": "w2", "title": "Quiz", "workType": "ASSIGNMENT", "maxPoints": 10},
                {"id": "w3", "title": "Poll", "workType": "ASSIGNMENT", "maxPoints": 5},
            ]})
        if path.endswith("/w1/studentSubmissions"):
            assert request.url.params["userId"] == "me"
            return httpx.Response(200, json={"studentSubmissions": [{"state": "CREATED"}]})
        if path.endswith("/w2/studentSubmissions"):
            return httpx.Response(200, json={"studentSubmissions": [{"state": "RETURNED", "assignedGrade": 9}]})
        return httpx.Response(500, text="backend error")

    works = await classroom_with(handler).fetch_course_work("c1")

    assert [(w["id"], w["submissionState"], w["assignedGrade"]) for w in works] == [
        ("w1", "CREATED", None),
        ("w2", "RETURNED", 9),
        ("w3", None, None),
    ]
    assert all(w["courseId"] == "c1" for w in works)


@pytest.mark.asyncio
async def test_fetch_course_work_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"message": "Not found"}})

    with pytest.raises(ExternalFetchError):
        await classroom_with(handler).fetch_course_work("gone")
