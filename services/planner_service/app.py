"""
FastAPI service for the study block planner.

Exposes one planner session over REST: refreshing calendar and coursework
data, inspecting free time and the triage queue, scheduling assignments
(which may take a minute or two while the allocation oracle plans) and
ticking off study blocks.
"""
from __future__ import annotations

import logging
import typing as t
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException

from planner_engine.availability import serialize_horizon
from planner_engine.errors import (EventCreationError, PartialApplicationFailure, PlannerError, SchedulingError,
                                   UnknownItemError)
from planner_engine.session import PlannerSession
from services.shared.models import (
    AssignmentModel,
    AvailabilityResponse,
    CalendarEventModel,
    CreateEventRequest,
    DayAvailabilityModel,
    FreeWindowModel,
    ManualAssignmentRequest,
    NoticeModel,
    ScheduledTaskModel,
    ScheduleResponse,
    ScheduleTriageRequest,
    StateSummary,
)
from services.shared.session_factory import build_default_session

logger = logging.getLogger(__name__)

# Global planner session - created on first use
session: t.Optional[PlannerSession] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    yield


app = FastAPI(
    title="Planner Service",
    description="REST API for turning homework into calendar study blocks",
    version="1.0.0",
    lifespan=lifespan,
)


def get_session() -> PlannerSession:
    """Return the process-wide planner session, creating it if needed."""
    global session
    if session is None:
        try:
            session = build_default_session()
        except RuntimeError as e:
            raise HTTPException(status_code=503, detail=str(e))
    return session


def _to_http_error(error: PlannerError) -> HTTPException:
    if isinstance(error, UnknownItemError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, PartialApplicationFailure):
        return HTTPException(status_code=502, detail={
            "message": str(error),
            "created": error.created_count,
            "failed_index": error.failed_index,
            "total": error.total,
        })
    if isinstance(error, SchedulingError):
        return HTTPException(status_code=422, detail=f"Could not schedule this task: {error}")
    if isinstance(error, EventCreationError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def _summary(planner: PlannerSession) -> StateSummary:
    state = planner.state
    return StateSummary(
        refresh_generation=state.refresh_generation,
        triage=len(state.triage),
        scheduled=len(state.scheduled),
        tasks=len(state.tasks),
        events=len(state.events),
        courses=len(state.courses),
    )


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "planner-service"}


@app.post("/refresh", response_model=StateSummary)
async def refresh(force: bool = True, planner: PlannerSession = Depends(get_session)) -> StateSummary:
    """Reload calendar events, courses and coursework."""
    await planner.refresh(force=force)
    return _summary(planner)


@app.get("/availability", response_model=AvailabilityResponse)
async def availability(planner: PlannerSession = Depends(get_session)) -> AvailabilityResponse:
    """Free time over the planning horizon, exactly as the oracle would see it."""
    horizon = planner.horizon()
    return AvailabilityResponse(
        timezone=horizon.timezone,
        availability_text=serialize_horizon(horizon),
        days=[
            DayAvailabilityModel(
                day=day.day,
                windows=[FreeWindowModel(start=w.start, end=w.end) for w in day.windows],
            )
            for day in horizon.days
        ],
    )


@app.get("/triage", response_model=list[AssignmentModel])
async def list_triage(planner: PlannerSession = Depends(get_session)) -> list[AssignmentModel]:
    """Assignments still missing a type or time estimate."""
    return [AssignmentModel.model_validate(a) for a in planner.state.triage]


@app.get("/assignments", response_model=list[AssignmentModel])
async def list_assignments(planner: PlannerSession = Depends(get_session)) -> list[AssignmentModel]:
    """Assignments that have been handed to the scheduler."""
    return [AssignmentModel.model_validate(a) for a in planner.state.scheduled]


@app.post("/assignments/{assignment_id}:schedule", response_model=ScheduleResponse)
async def schedule_triaged(
        assignment_id: str,
        request: ScheduleTriageRequest,
        planner: PlannerSession = Depends(get_session),
) -> ScheduleResponse:
    """
    Complete a triaged assignment and schedule it.

    This endpoint can take 1-2 minutes while the allocation oracle plans.
    """
    try:
        tasks = await planner.schedule_from_triage(assignment_id, request.type, request.estimated_minutes)
    except PlannerError as e:
        raise _to_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ScheduleResponse(
        assignment_id=assignment_id,
        tasks=[ScheduledTaskModel.model_validate(task) for task in tasks],
    )


@app.post("/assignments/manual", response_model=ScheduleResponse)
async def add_manual_assignment(
        request: ManualAssignmentRequest,
        planner: PlannerSession = Depends(get_session),
) -> ScheduleResponse:
    """Add homework by hand and schedule it right away."""
    try:
        assignment, tasks = await planner.add_manual_assignment(
            title=request.title,
            course=request.course,
            due_date=request.due_date,
            description=request.description,
            type=request.type,
            estimated_minutes=request.estimated_minutes,
        )
    except PlannerError as e:
        raise _to_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ScheduleResponse(
        assignment_id=assignment.id,
        tasks=[ScheduledTaskModel.model_validate(task) for task in tasks],
    )


@app.post("/tasks/{task_id}:toggle", response_model=ScheduledTaskModel)
async def toggle_task(task_id: str, planner: PlannerSession = Depends(get_session)) -> ScheduledTaskModel:
    """Mark a study block completed, or pending again."""
    try:
        task = planner.toggle_task(task_id)
    except PlannerError as e:
        raise _to_http_error(e)
    return ScheduledTaskModel.model_validate(task)


@app.post("/events", response_model=CalendarEventModel)
async def add_event(request: CreateEventRequest, planner: PlannerSession = Depends(get_session)) -> CalendarEventModel:
    """Add a manual commitment to the calendar."""
    if request.start_time >= request.end_time:
        raise HTTPException(status_code=422, detail="Event must end after it starts")
    try:
        event = await planner.add_event(request.title, request.start_time, request.end_time)
    except PlannerError as e:
        raise _to_http_error(e)
    return CalendarEventModel.model_validate(event)


@app.get("/notices", response_model=list[NoticeModel])
async def list_notices(planner: PlannerSession = Depends(get_session)) -> list[NoticeModel]:
    """Notifications produced so far in this session."""
    return [NoticeModel.model_validate(n) for n in planner.state.notices]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8004)
