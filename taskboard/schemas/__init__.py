"""
Pydantic schemas for request/response validation
"""
from taskboard.schemas.column import ColumnCreate, ColumnResponse, ColumnUpdate
from taskboard.schemas.task import TaskCreate, TaskResponse
from taskboard.schemas.dependency import DependencyCreate, DependencyResponse
from taskboard.schemas.sprint import SprintCreate, SprintResponse, SprintStatusUpdate, SprintTasksUpdate
from taskboard.schemas.transition import TransitionRequest, TransitionResult

__all__ = [
    "ColumnCreate",
    "ColumnResponse",
    "ColumnUpdate",
    "TaskCreate",
    "TaskResponse",
    "DependencyCreate",
    "DependencyResponse",
    "SprintCreate",
    "SprintResponse",
    "SprintStatusUpdate",
    "SprintTasksUpdate",
    "TransitionRequest",
    "TransitionResult",
]
