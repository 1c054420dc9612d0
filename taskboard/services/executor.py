"""
Transition Executor

Runs the capability check and the validator, then applies an accepted move
as a single UPDATE keyed by task id. Validation and the write share one
transaction so the checks see the state the write lands on.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from taskboard.errors import StoreUnavailable, TransitionErrorKind
from taskboard.models import Task, status_for_column
from taskboard.schemas.transition import TransitionResult
from taskboard.services import audit
from taskboard.services.column_registry import ColumnRegistry
from taskboard.services.dependency_store import DependencyStore
from taskboard.services.permissions import can_transition, user_can_access_project
from taskboard.services.validator import COLUMN_NOT_FOUND_MESSAGE, TaskSnapshot, TransitionValidator

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "You are not allowed to move tasks on this board"
TASK_NOT_FOUND_MESSAGE = "Task not found"
SYSTEM_ERROR_MESSAGE = "The system encountered an unexpected issue. Please try again."


class TransitionExecutor:
    def __init__(self, db: Session, audit_sink=None):
        self.db = db
        self.columns = ColumnRegistry(db)
        self.validator = TransitionValidator(DependencyStore(db), self.columns)
        self.audit_sink = audit_sink if audit_sink is not None else audit.DatabaseAuditSink(db)

    def propose_transition(
        self,
        actor,
        task_id: str,
        destination_column_id: str,
        project_id: str,
        force: bool = False,
    ) -> TransitionResult:
        if not can_transition(actor.role):
            return self._denied(task_id, TransitionResult.deny(TransitionErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE))

        try:
            result, old_column_id = self._apply(actor, task_id, destination_column_id, project_id, force)
        except (SQLAlchemyError, StoreUnavailable):
            self.db.rollback()
            logger.exception("Moving task %s to column %s failed", task_id, destination_column_id)
            return TransitionResult.deny(TransitionErrorKind.SYSTEM_ERROR, SYSTEM_ERROR_MESSAGE)

        if not result.ok:
            return self._denied(task_id, result)
        if old_column_id is not None:
            logger.info(
                "Task %s moved from %s to %s by %s%s",
                task_id, old_column_id, destination_column_id, actor.id, " (forced)" if force else "",
            )
            audit.emit(
                self.audit_sink,
                actor.id,
                audit.TASK_MOVED,
                "task",
                task_id,
                old_column_id=old_column_id,
                new_column_id=destination_column_id,
                forced=bool(force),
            )
        return result

    def _apply(self, actor, task_id, destination_column_id, project_id, force):
        """Validate and write; returns the verdict and the column the task left (None if nothing moved)."""
        task = (
            self.db.query(Task)
            .options(selectinload(Task.sprint), selectinload(Task.project))
            .filter(Task.id == task_id, Task.deleted_at.is_(None))
            .first()
        )
        if task is None or task.project_id != project_id:
            return TransitionResult.deny(TransitionErrorKind.NOT_FOUND, TASK_NOT_FOUND_MESSAGE), None
        if not user_can_access_project(self.db, task.project, actor):
            return TransitionResult.deny(TransitionErrorKind.UNAUTHORIZED, UNAUTHORIZED_MESSAGE), None

        snapshot = TaskSnapshot.from_model(task)
        verdict = self.validator.validate(snapshot, destination_column_id, actor.role, force)
        if not verdict.ok or snapshot.column_id == destination_column_id:
            self.db.rollback()
            return verdict, None

        column = self.columns.get_column(destination_column_id)
        if column is None:
            # Removed after the checks passed.
            self.db.rollback()
            return TransitionResult.deny(TransitionErrorKind.NOT_FOUND, COLUMN_NOT_FOUND_MESSAGE), None
        outcome = self.db.execute(
            update(Task)
            .where(Task.id == task_id, Task.deleted_at.is_(None))
            .values(
                column_id=destination_column_id,
                status=status_for_column(column.name),
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if outcome.rowcount == 0:
            self.db.rollback()
            return TransitionResult.deny(TransitionErrorKind.NOT_FOUND, TASK_NOT_FOUND_MESSAGE), None
        self.db.commit()
        return verdict, snapshot.column_id

    def _denied(self, task_id: str, result: TransitionResult) -> TransitionResult:
        logger.info("Move of task %s denied: %s (%s)", task_id, result.reason.value, result.message)
        return result
