"""
Pydantic models for the allocation oracle's wire format.

The oracle answers with JSON of the shape::

    {"schedule": [{"task": "...", "startTime": "...", "endTime": "..."}]}

Timestamps are kept as strings here; the validator parses them so that a
missing UTC offset can be rejected instead of silently assumed.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class OracleScheduleItem(BaseModel):
    """One study block as returned by the oracle."""
    model_config = ConfigDict(populate_by_name=True)

    task: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")


class OracleResponse(BaseModel):
    """Top-level oracle response."""
    schedule: list[OracleScheduleItem] = Field(default_factory=list)
