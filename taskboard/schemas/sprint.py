"""Schemas for sprints"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskboard.models.sprint import SprintStatus


class SprintCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SprintStatusUpdate(BaseModel):
    status: SprintStatus


class SprintTasksUpdate(BaseModel):
    task_ids: List[str] = Field(default_factory=list)


class SprintResponse(BaseModel):
    id: str
    project_id: str
    name: str
    status: SprintStatus
    start_date: Optional[date]
    end_date: Optional[date]
    created_at: datetime

    class Config:
        from_attributes = True
