"""Sprint endpoints"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from taskboard.api.v1.errors import service_errors
from taskboard.database import get_db
from taskboard.dependencies import get_current_user
from taskboard.models import Sprint, User
from taskboard.schemas import SprintCreate, SprintResponse, SprintStatusUpdate, SprintTasksUpdate, TaskResponse
from taskboard.services import sprints as sprint_service
from taskboard.services.tasks import get_accessible_project

router = APIRouter()


def _load_sprint(db: Session, sprint_id: str, current_user: User) -> Sprint:
    sprint = db.get(Sprint, sprint_id)
    if sprint is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sprint not found")
    with service_errors():
        get_accessible_project(db, sprint.project_id, current_user)
    return sprint


@router.post("/projects/{project_id}/sprints", response_model=SprintResponse, status_code=status.HTTP_201_CREATED)
def create_sprint(
    project_id: str,
    sprint_data: SprintCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with service_errors():
        get_accessible_project(db, project_id, current_user)
        return sprint_service.create_sprint(
            db,
            current_user,
            project_id,
            sprint_data.name,
            start_date=sprint_data.start_date,
            end_date=sprint_data.end_date,
        )


@router.patch("/sprints/{sprint_id}", response_model=SprintResponse)
def update_sprint_status(
    sprint_id: str,
    status_data: SprintStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Plan, start or complete a sprint. Completing it locks its tasks in place."""
    _load_sprint(db, sprint_id, current_user)
    with service_errors():
        return sprint_service.update_sprint_status(db, current_user, sprint_id, status_data.status)


@router.put("/sprints/{sprint_id}/tasks", response_model=List[TaskResponse])
def assign_sprint_tasks(
    sprint_id: str,
    tasks_data: SprintTasksUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    sprint = _load_sprint(db, sprint_id, current_user)
    with service_errors():
        return sprint_service.assign_tasks(db, current_user, sprint.id, tasks_data.task_ids, sprint.project_id)
