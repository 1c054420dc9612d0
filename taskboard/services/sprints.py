"""Sprint lifecycle; a project has at most one active sprint."""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from taskboard.errors import ConflictError, InvalidInputError, NotFoundError, PermissionDeniedError
from taskboard.models import Sprint, SprintStatus, Task
from taskboard.services.permissions import can_manage_board

logger = logging.getLogger(__name__)

ACTIVE_SPRINT_CONFLICT = "There is already an active sprint for this project."


def _require_manager(actor) -> None:
    if not can_manage_board(actor.role):
        raise PermissionDeniedError("Only admins and associates can manage sprints")


def _ensure_single_active(db: Session, project_id: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Sprint.id).filter(Sprint.project_id == project_id, Sprint.status == SprintStatus.ACTIVE)
    if exclude_id is not None:
        query = query.filter(Sprint.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(ACTIVE_SPRINT_CONFLICT)


def create_sprint(
    db: Session,
    actor,
    project_id: str,
    name: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Sprint:
    _require_manager(actor)
    if start_date and end_date and end_date < start_date:
        raise InvalidInputError("Sprint end date must not be before its start date")
    sprint = Sprint(
        project_id=project_id,
        name=name,
        status=SprintStatus.PLANNED,
        start_date=start_date,
        end_date=end_date,
    )
    db.add(sprint)
    db.commit()
    db.refresh(sprint)
    return sprint


def update_sprint_status(db: Session, actor, sprint_id: str, status: SprintStatus) -> Sprint:
    _require_manager(actor)
    sprint = db.get(Sprint, sprint_id)
    if sprint is None:
        raise NotFoundError("Sprint not found")
    if status == SprintStatus.ACTIVE:
        _ensure_single_active(db, sprint.project_id, exclude_id=sprint.id)
    sprint.status = status
    db.commit()
    db.refresh(sprint)
    logger.info("Sprint %s is now %s", sprint_id, status.value)
    return sprint


def assign_tasks(db: Session, actor, sprint_id: Optional[str], task_ids: List[str], project_id: str) -> List[Task]:
    """Put ``task_ids`` into a sprint, or take them out of any sprint when ``sprint_id`` is None."""
    _require_manager(actor)
    if sprint_id is not None:
        sprint = db.get(Sprint, sprint_id)
        if sprint is None or sprint.project_id != project_id:
            raise NotFoundError("Sprint not found")

    tasks = db.query(Task).filter(
        Task.id.in_(task_ids),
        Task.project_id == project_id,
        Task.deleted_at.is_(None),
    ).all()
    missing = set(task_ids) - {task.id for task in tasks}
    if missing:
        raise NotFoundError(f"Tasks not found: {', '.join(sorted(missing))}")

    for task in tasks:
        task.sprint_id = sprint_id
    db.commit()
    return tasks
