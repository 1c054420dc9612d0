"""Read and maintain "task X is blocked by task Y" edges."""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from taskboard.errors import ConflictError, NotFoundError, StoreUnavailable
from taskboard.models import Task, TaskDependency

logger = logging.getLogger(__name__)


class DependencyStore:
    """Dependency edges of the tasks visible through ``db``.

    An edge is active while its blocking task has not been soft-deleted.
    """

    def __init__(self, db: Session):
        self.db = db

    def _active_edges(self, task_id: str):
        blocker = aliased(Task)
        return (
            select(TaskDependency.blocked_by_id)
            .join(blocker, blocker.id == TaskDependency.blocked_by_id)
            .where(TaskDependency.task_id == task_id, blocker.deleted_at.is_(None))
        )

    def is_blocked(self, task_id: str) -> bool:
        """Return True iff at least one active edge blocks ``task_id``.

        Raises ``StoreUnavailable`` when the lookup fails; there is no
        "not blocked" fallback.
        """
        try:
            return bool(self.db.execute(select(self._active_edges(task_id).exists())).scalar())
        except SQLAlchemyError as exc:
            logger.error("Dependency lookup failed for task %s: %s", task_id, exc)
            raise StoreUnavailable("Could not verify task dependencies", original_error=exc) from exc

    def blockers_of(self, task_id: str) -> List[str]:
        try:
            return list(self.db.execute(self._active_edges(task_id)).scalars())
        except SQLAlchemyError as exc:
            raise StoreUnavailable("Could not load task dependencies", original_error=exc) from exc

    def add(self, task_id: str, blocked_by_id: str) -> TaskDependency:
        """Record that ``task_id`` is blocked by ``blocked_by_id``.

        Both tasks must be live and belong to the same project. Cycles are
        not detected.
        """
        if task_id == blocked_by_id:
            raise ConflictError("A task cannot block itself")

        tasks = {
            task.id: task
            for task in self.db.query(Task).filter(
                Task.id.in_([task_id, blocked_by_id]),
                Task.deleted_at.is_(None),
            )
        }
        if task_id not in tasks or blocked_by_id not in tasks:
            raise NotFoundError("Task not found")
        if tasks[task_id].project_id != tasks[blocked_by_id].project_id:
            raise ConflictError("Dependencies must stay within one project")

        existing = self.db.query(TaskDependency).filter(
            TaskDependency.task_id == task_id,
            TaskDependency.blocked_by_id == blocked_by_id,
        ).first()
        if existing is not None:
            raise ConflictError("Dependency already exists")

        dependency = TaskDependency(task_id=task_id, blocked_by_id=blocked_by_id)
        self.db.add(dependency)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Dependency already exists") from exc
        self.db.refresh(dependency)
        logger.info("Task %s is now blocked by %s", task_id, blocked_by_id)
        return dependency

    def remove(self, task_id: str, blocked_by_id: str) -> None:
        dependency = self.db.query(TaskDependency).filter(
            TaskDependency.task_id == task_id,
            TaskDependency.blocked_by_id == blocked_by_id,
        ).first()
        if dependency is None:
            raise NotFoundError("Dependency not found")
        self.db.delete(dependency)
        self.db.commit()
        logger.info("Task %s is no longer blocked by %s", task_id, blocked_by_id)
