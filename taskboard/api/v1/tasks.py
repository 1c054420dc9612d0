"""Task and dependency endpoints"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from taskboard.api.v1.errors import service_errors
from taskboard.database import get_db
from taskboard.dependencies import get_current_user
from taskboard.models import User
from taskboard.schemas import DependencyCreate, DependencyResponse, TaskCreate, TaskResponse
from taskboard.services import tasks as task_service
from taskboard.services.dependency_store import DependencyStore
from taskboard.services.permissions import can_transition

router = APIRouter()


def _ensure_task_access(db: Session, task_id: str, current_user: User):
    with service_errors():
        task = task_service.get_live_task(db, task_id)
        task_service.get_accessible_project(db, task.project_id, current_user)
    return task


@router.get("/projects/{project_id}/tasks", response_model=List[TaskResponse])
def list_tasks(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors():
        task_service.get_accessible_project(db, project_id, current_user)
    return task_service.list_tasks(db, project_id)


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task; without a column it lands in the project's first column."""
    with service_errors():
        return task_service.create_task(
            db,
            current_user,
            task_data.project_id,
            task_data.title,
            description=task_data.description,
            priority=task_data.priority,
            column_id=task_data.column_id,
            sprint_id=task_data.sprint_id,
            assigned_to_id=task_data.assigned_to_id,
            position=task_data.position,
        )


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors():
        task_service.soft_delete_task(db, current_user, task_id)


@router.post("/tasks/{task_id}/dependencies", response_model=DependencyResponse, status_code=status.HTTP_201_CREATED)
def add_dependency(
    task_id: str,
    dependency_data: DependencyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark ``task_id`` as blocked by another task of the same project."""
    if not can_transition(current_user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not allowed to edit dependencies")
    _ensure_task_access(db, task_id, current_user)
    with service_errors():
        return DependencyStore(db).add(task_id, dependency_data.blocked_by_id)


@router.delete("/tasks/{task_id}/dependencies/{blocked_by_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_dependency(
    task_id: str,
    blocked_by_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not can_transition(current_user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not allowed to edit dependencies")
    _ensure_task_access(db, task_id, current_user)
    with service_errors():
        DependencyStore(db).remove(task_id, blocked_by_id)
