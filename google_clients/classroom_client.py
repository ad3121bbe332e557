"""
Google Classroom client.

Course work is returned raw, with the student's submission state attached,
so the engine can decide what still needs study time.
"""
from __future__ import annotations

import logging
import typing as t

import httpx

from google_clients.http import GoogleApiClient
from planner_engine.config import GOOGLE_API_TIMEOUT, GOOGLE_CLASSROOM_API_URL
from planner_engine.errors import ExternalFetchError
from planner_engine.models import Course

logger = logging.getLogger(__name__)


class GoogleClassroomClient(GoogleApiClient):
    """Coursework collaborator backed by the Google Classroom v1 API."""

    def __init__(
            self,
            access_token: str,
            base_url: str = GOOGLE_CLASSROOM_API_URL,
            timeout: float = GOOGLE_API_TIMEOUT,
            transport: t.Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(access_token, base_url, timeout, transport)

    async def fetch_courses(self) -> list[Course]:
        """Lists the student's active courses."""
        courses = await self._get_paged("/courses", "courses", {"courseStates": "ACTIVE"})
        return [Course(id=str(c["id"]), name=c.get("name", "") or "Unknown Course") for c in courses]

    async def fetch_course_work(self, course_id: str) -> list[dict[str, t.Any]]:
        """Lists a course's published work, each with ``submissionState`` and ``assignedGrade``.

        Submissions are looked up one work item at a time. A failed lookup
        leaves the item without a submission state.

        :raises ExternalFetchError: If the course work itself cannot be read.
        """
        works = await self._get_paged(
            f"/courses/{course_id}/courseWork", "courseWork", {"courseWorkStates": "PUBLISHED"}
        )

        enriched: list[dict[str, t.Any]] = []
        for work in works:
            submission = await self._fetch_own_submission(course_id, work["id"])
            enriched.append({
                **work,
                "courseId": work.get("courseId", course_id),
                "submissionState": submission.get("state"),
                "assignedGrade": submission.get("assignedGrade"),
            })
        return enriched

    async def _fetch_own_submission(self, course_id: str, work_id: str) -> dict[str, t.Any]:
        try:
            data = await self._get_json(
                f"/courses/{course_id}/courseWork/{work_id}/studentSubmissions",
                {"userId": "me"},
            )
        except ExternalFetchError as e:
            logger.warning("Submission lookup for %s/%s failed: %s", course_id, work_id, e)
            return {}
        submissions = data.get("studentSubmissions") or []
        return submissions[0] if submissions else {}
