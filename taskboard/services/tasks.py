"""Task creation, listing and soft deletion."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from taskboard.errors import InvalidInputError, NotFoundError, PermissionDeniedError
from taskboard.models import KanbanColumn, Project, Sprint, Task, TaskPriority, status_for_column
from taskboard.services import audit
from taskboard.services.column_registry import ColumnRegistry
from taskboard.services.permissions import can_manage_board, can_transition, user_can_access_project

logger = logging.getLogger(__name__)


def get_accessible_project(db: Session, project_id: str, user) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    if not user_can_access_project(db, project, user):
        raise PermissionDeniedError("You don't have access to this project")
    return project


def get_live_task(db: Session, task_id: str) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.deleted_at.is_(None)).first()
    if task is None:
        raise NotFoundError("Task not found")
    return task


def list_tasks(db: Session, project_id: str) -> List[Task]:
    return (
        db.query(Task)
        .filter(Task.project_id == project_id, Task.deleted_at.is_(None))
        .order_by(Task.position.asc(), Task.created_at.asc())
        .all()
    )


def create_task(
    db: Session,
    creator,
    project_id: str,
    title: str,
    description: Optional[str] = None,
    priority: TaskPriority = TaskPriority.MEDIUM,
    column_id: Optional[str] = None,
    sprint_id: Optional[str] = None,
    assigned_to_id: Optional[str] = None,
    position: int = 0,
    audit_sink=None,
) -> Task:
    """Create a task in ``column_id`` or, when omitted, in the project's first column."""
    if not can_transition(creator.role):
        raise PermissionDeniedError("You are not allowed to create tasks")
    get_accessible_project(db, project_id, creator)

    title = (title or "").strip()
    if not title:
        raise InvalidInputError("Task title cannot be empty")

    if column_id is None:
        column = ColumnRegistry(db).first_column(project_id)
        if column is None:
            raise InvalidInputError("No kanban columns found for this project")
        column_id, column_name = column.id, column.name
    else:
        column = db.get(KanbanColumn, column_id)
        if column is None or column.project_id != project_id:
            raise NotFoundError("Column not found")
        column_name = column.name

    if sprint_id is not None:
        sprint = db.get(Sprint, sprint_id)
        if sprint is None or sprint.project_id != project_id:
            raise NotFoundError("Sprint not found")

    task = Task(
        project_id=project_id,
        title=title,
        description=description,
        priority=priority,
        column_id=column_id,
        status=status_for_column(column_name),
        sprint_id=sprint_id,
        assigned_to_id=assigned_to_id,
        created_by_id=creator.id,
        position=position,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Created task %s in column %s", task.id, column_id)
    audit.emit(audit_sink or audit.DatabaseAuditSink(db), creator.id, audit.TASK_CREATED, "task", task.id,
               column_id=column_id)
    return task


def soft_delete_task(db: Session, actor, task_id: str, audit_sink=None) -> Task:
    """Mark a task deleted. Board managers may delete any task, others only their own."""
    task = get_live_task(db, task_id)
    get_accessible_project(db, task.project_id, actor)
    if not (can_manage_board(actor.role) or (can_transition(actor.role) and task.created_by_id == actor.id)):
        raise PermissionDeniedError("You are not allowed to delete this task")

    task.deleted_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(task)
    logger.info("Soft-deleted task %s", task_id)
    audit.emit(audit_sink or audit.DatabaseAuditSink(db), actor.id, audit.TASK_DELETED, "task", task_id)
    return task
