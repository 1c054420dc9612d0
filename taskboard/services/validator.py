"""
Transition Validator

Decides whether a task may move into a destination column. Checks run in a
fixed order and the first failing one wins:

1. blocking dependencies (never bypassed),
2. sprint lock (never bypassed),
3. destination column exists in the task's project,
4. work-in-progress limit (bypassed by an admin using force).

The validator owns no state. Task data arrives as a ``TaskSnapshot`` taken by
the executor; column and dependency data come from the stores it is built with.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from taskboard.errors import StoreUnavailable, TransitionErrorKind
from taskboard.models import SprintStatus
from taskboard.schemas.transition import TransitionResult
from taskboard.services.column_registry import ColumnRegistry
from taskboard.services.dependency_store import DependencyStore
from taskboard.services.permissions import can_force

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = "Task is blocked by another task"
SPRINT_LOCKED_MESSAGE = "Sprint is closed"
COLUMN_NOT_FOUND_MESSAGE = "Column not found"


@dataclass(frozen=True)
class TaskSnapshot:
    id: str
    project_id: str
    column_id: Optional[str]
    sprint_status: Optional[SprintStatus] = None

    @classmethod
    def from_model(cls, task) -> "TaskSnapshot":
        return cls(
            id=task.id,
            project_id=task.project_id,
            column_id=task.column_id,
            sprint_status=task.sprint.status if task.sprint is not None else None,
        )


def wip_exceeded_message(column_name: str) -> str:
    return f"WIP limit exceeded for column '{column_name}'"


class TransitionValidator:
    def __init__(self, dependencies: DependencyStore, columns: ColumnRegistry):
        self.dependencies = dependencies
        self.columns = columns

    def validate(self, task: TaskSnapshot, destination_column_id: str, actor_role, force: bool = False) -> TransitionResult:
        try:
            return self._validate(task, destination_column_id, actor_role, force)
        except StoreUnavailable as exc:
            logger.error("Denying move of task %s: %s", task.id, exc)
            return TransitionResult.deny(TransitionErrorKind.SYSTEM_ERROR, exc.message)

    def _validate(self, task: TaskSnapshot, destination_column_id: str, actor_role, force: bool) -> TransitionResult:
        if self.dependencies.is_blocked(task.id):
            return TransitionResult.deny(TransitionErrorKind.BLOCKED, BLOCKED_MESSAGE)

        if task.sprint_status == SprintStatus.COMPLETED:
            return TransitionResult.deny(TransitionErrorKind.SPRINT_LOCKED, SPRINT_LOCKED_MESSAGE)

        column = self.columns.get_column(destination_column_id)
        if column is None or column.project_id != task.project_id:
            return TransitionResult.deny(TransitionErrorKind.NOT_FOUND, COLUMN_NOT_FOUND_MESSAGE)

        if force and can_force(actor_role):
            logger.info("WIP check on column %s bypassed by forced move of task %s", column.id, task.id)
            return TransitionResult.allow()

        # A task already in the destination is part of the count.
        if column.is_bounded and task.column_id != column.id:
            if self.columns.count_tasks_in(column.id) >= column.wip_limit:
                return TransitionResult.deny(TransitionErrorKind.WIP_EXCEEDED, wip_exceeded_message(column.name))

        return TransitionResult.allow()
