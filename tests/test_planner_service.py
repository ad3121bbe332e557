"""Tests for the planner REST service, with stub collaborators behind the session."""
import pytest
from fastapi.testclient import TestClient

from planner_engine.session import PlannerSession
from services.planner_service.app import app, get_session
from stubs import NOW, StubCalendar, StubClassroom, StubOracle, raw_work, settings, utc_stamp


def one_hour_block() -> dict:
    return {"schedule": [{"task": "Draft essay", "startTime": utc_stamp(15), "endTime": utc_stamp(16)}]}


@pytest.fixture
def planner() -> PlannerSession:
    return PlannerSession(
        calendar=StubCalendar(),
        coursework=StubClassroom({"c1": [raw_work("w1", "Essay draft")]}),
        oracle=StubOracle(one_hour_block()),
        settings=settings(),
        clock=lambda: NOW,
    )


@pytest.fixture
def client(planner: PlannerSession):
    app.dependency_overrides[get_session] = lambda: planner
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_refresh_then_list_triage(client: TestClient) -> None:
    summary = client.post("/refresh").json()
    assert summary["triage"] == 1
    assert summary["courses"] == 1
    assert summary["refresh_generation"] == 1

    triage = client.get("/triage").json()
    assert [a["id"] for a in triage] == ["w1"]
    assert triage[0]["estimated_minutes"] is None


def test_availability(client: TestClient) -> None:
    body = client.get("/availability").json()
    assert body["timezone"] == "America/New_York"
    assert body["availability_text"].splitlines()[1] == "Tuesday, 2026-10-20: 14:00-22:00"
    assert body["days"][0]["day"] == "2026-10-20"
    assert len(body["days"][0]["windows"]) == 1


def test_schedule_triaged_assignment(client: TestClient) -> None:
    client.post("/refresh")
    response = client.post("/assignments/w1:schedule", json={"type": "Essay", "estimated_minutes": 60})

    assert response.status_code == 200
    body = response.json()
    assert body["assignment_id"] == "w1"
    assert [task["title"] for task in body["tasks"]] == ["Draft essay"]

    scheduled = client.get("/assignments").json()
    assert [a["id"] for a in scheduled] == ["w1"]
    assert client.get("/triage").json() == []


def test_schedule_with_wrong_total_is_unprocessable(client: TestClient) -> None:
    client.post("/refresh")
    response = client.post("/assignments/w1:schedule", json={"type": "Essay", "estimated_minutes": 90})

    assert response.status_code == 422
    assert "Could not schedule this task" in response.json()["detail"]
    assert [a["id"] for a in client.get("/triage").json()] == ["w1"]
    assert client.get("/notices").json()[-1]["level"] == "error"


def test_partial_failure_is_reported(client: TestClient, planner: PlannerSession) -> None:
    planner.calendar.fail_on_create = {1}
    client.post("/refresh")
    response = client.post("/assignments/w1:schedule", json={"type": "Essay", "estimated_minutes": 60})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["created"] == 0
    assert detail["failed_index"] == 1
    assert detail["total"] == 1


def test_schedule_unknown_assignment_is_not_found(client: TestClient) -> None:
    response = client.post("/assignments/nope:schedule", json={"type": "Essay", "estimated_minutes": 60})
    assert response.status_code == 404


def test_manual_assignment_and_toggle(client: TestClient) -> None:
    response = client.post("/assignments/manual", json={
        "title": "Read chapter 4",
        "course": "Biology",
        "due_date": "2026-10-25T23:59:00-04:00",
        "description": "Pages 80-120",
        "type": "Reading",
        "estimated_minutes": 60,
    })
    assert response.status_code == 200
    task_id = response.json()["tasks"][0]["id"]

    toggled = client.post(f"/tasks/{task_id}:toggle").json()
    assert toggled["status"] == "completed"
    manual = [a for a in client.get("/assignments").json() if a["source"] == "manual"]
    assert manual[0]["progress"] == 100


def test_toggle_unknown_task_is_not_found(client: TestClient) -> None:
    assert client.post("/tasks/missing:toggle").status_code == 404


def test_add_event(client: TestClient) -> None:
    response = client.post("/events", json={
        "title": "Dentist",
        "start_time": "2026-10-20T17:00:00-04:00",
        "end_time": "2026-10-20T18:00:00-04:00",
    })
    assert response.status_code == 200
    assert response.json()["title"] == "Dentist"
    text = client.get("/availability").json()["availability_text"]
    assert "Tuesday, 2026-10-20: 14:00-17:00, 18:00-22:00" in text


def test_add_inverted_event_is_rejected(client: TestClient) -> None:
    response = client.post("/events", json={
        "title": "Backwards",
        "start_time": "2026-10-20T18:00:00-04:00",
        "end_time": "2026-10-20T17:00:00-04:00",
    })
    assert response.status_code == 422


def test_event_without_timezone_is_rejected(client: TestClient, planner: PlannerSession) -> None:
    response = client.post("/events", json={
        "title": "Dentist",
        "start_time": "2026-10-20T17:00:00",
        "end_time": "2026-10-20T18:00:00-04:00",
    })
    assert response.status_code == 422
    assert planner.calendar.drafts == []


def test_manual_assignment_without_timezone_is_rejected(client: TestClient) -> None:
    response = client.post("/assignments/manual", json={
        "title": "Read chapter 4",
        "course": "Biology",
        "due_date": "2026-10-25T23:59:00",
        "description": "Pages 80-120",
        "type": "Reading",
        "estimated_minutes": 60,
    })
    assert response.status_code == 422


def test_unknown_assignment_type_is_unprocessable(client: TestClient) -> None:
    client.post("/refresh")
    response = client.post("/assignments/w1:schedule", json={"type": "Poster", "estimated_minutes": 60})

    assert response.status_code == 422
    assert "Unknown assignment type" in response.json()["detail"]
    assert [a["id"] for a in client.get("/triage").json()] == ["w1"]
