"""Schemas for blocking dependencies"""
from datetime import datetime

from pydantic import BaseModel


class DependencyCreate(BaseModel):
    blocked_by_id: str


class DependencyResponse(BaseModel):
    id: str
    task_id: str
    blocked_by_id: str
    created_at: datetime

    class Config:
        from_attributes = True
