"""Kanban column endpoints"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from taskboard.api.v1.errors import service_errors
from taskboard.database import get_db
from taskboard.dependencies import get_current_user
from taskboard.models import KanbanColumn, User
from taskboard.schemas import ColumnCreate, ColumnResponse, ColumnUpdate
from taskboard.services.column_registry import ColumnRegistry
from taskboard.services.permissions import can_manage_board
from taskboard.services.tasks import get_accessible_project

router = APIRouter()


def _ensure_manager(current_user: User):
    if not can_manage_board(current_user.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and associates can manage columns",
        )


def _load_column(db: Session, column_id: str, current_user: User) -> KanbanColumn:
    column = db.get(KanbanColumn, column_id)
    if column is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Column not found")
    with service_errors():
        get_accessible_project(db, column.project_id, current_user)
    return column


@router.get("/projects/{project_id}/columns", response_model=List[ColumnResponse])
def list_columns(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Return the project's columns ordered by their order index."""
    with service_errors():
        get_accessible_project(db, project_id, current_user)
    return ColumnRegistry(db).list_columns(project_id)


@router.post("/projects/{project_id}/columns", response_model=ColumnResponse, status_code=status.HTTP_201_CREATED)
def create_column(
    project_id: str,
    column_data: ColumnCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _ensure_manager(current_user)
    with service_errors():
        get_accessible_project(db, project_id, current_user)
        return ColumnRegistry(db).create_column(
            project_id,
            column_data.name.strip(),
            order_index=column_data.order_index,
            wip_limit=column_data.wip_limit,
        )


@router.patch("/columns/{column_id}", response_model=ColumnResponse)
def update_column(
    column_id: str,
    column_data: ColumnUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rename a column or change its WIP limit. Sending ``wip_limit: null`` removes the limit."""
    _ensure_manager(current_user)
    _load_column(db, column_id, current_user)
    changes = column_data.model_dump(exclude_unset=True)
    if changes.get("name") is None:
        changes.pop("name", None)
    with service_errors():
        return ColumnRegistry(db).update_column(column_id, **changes)


@router.delete("/columns/{column_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_column(
    column_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _ensure_manager(current_user)
    _load_column(db, column_id, current_user)
    with service_errors():
        ColumnRegistry(db).delete_column(column_id)
