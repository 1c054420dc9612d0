"""Schemas for kanban columns"""
from typing import Optional

from pydantic import BaseModel, Field


class ColumnCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    order_index: Optional[int] = Field(default=None, ge=0)
    wip_limit: Optional[int] = Field(default=None, gt=0)


class ColumnUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    wip_limit: Optional[int] = Field(default=None, gt=0)


class ColumnResponse(BaseModel):
    id: str
    name: str
    order_index: int
    wip_limit: Optional[int]

    class Config:
        from_attributes = True
