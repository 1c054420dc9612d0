"""Schemas for tasks"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskboard.models.task import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    column_id: Optional[str] = None
    sprint_id: Optional[str] = None
    assigned_to_id: Optional[str] = None
    position: int = 0


class TaskResponse(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str]
    column_id: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    sprint_id: Optional[str]
    assigned_to_id: Optional[str]
    created_by_id: str
    position: int
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
