"""Per-project workflow columns and their occupancy."""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.errors import ConflictError, InvalidInputError, NotFoundError, StoreUnavailable
from taskboard.models import KanbanColumn, Project, Task

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class ColumnInfo:
    id: str
    project_id: str
    name: str
    order_index: int
    wip_limit: Optional[int] = None

    @property
    def is_bounded(self) -> bool:
        return self.wip_limit is not None

    @classmethod
    def from_model(cls, column: KanbanColumn) -> "ColumnInfo":
        return cls(
            id=column.id,
            project_id=column.project_id,
            name=column.name,
            order_index=column.order_index,
            wip_limit=column.wip_limit,
        )


def _check_wip_limit(wip_limit: Optional[int]) -> None:
    if wip_limit is not None and wip_limit < 1:
        raise InvalidInputError("WIP limit must be a positive integer or unset")


class ColumnRegistry:
    def __init__(self, db: Session):
        self.db = db

    def get_column(self, column_id: str) -> Optional[ColumnInfo]:
        try:
            column = self.db.get(KanbanColumn, column_id)
        except SQLAlchemyError as exc:
            raise StoreUnavailable("Could not load column", original_error=exc) from exc
        return ColumnInfo.from_model(column) if column is not None else None

    def count_tasks_in(self, column_id: str) -> int:
        """Number of live (not soft-deleted) tasks currently in the column."""
        try:
            return self.db.query(func.count(Task.id)).filter(
                Task.column_id == column_id,
                Task.deleted_at.is_(None),
            ).scalar() or 0
        except SQLAlchemyError as exc:
            raise StoreUnavailable("Could not count column tasks", original_error=exc) from exc

    def list_columns(self, project_id: str) -> List[ColumnInfo]:
        columns = (
            self.db.query(KanbanColumn)
            .filter(KanbanColumn.project_id == project_id)
            .order_by(KanbanColumn.order_index.asc())
            .all()
        )
        return [ColumnInfo.from_model(column) for column in columns]

    def first_column(self, project_id: str) -> Optional[ColumnInfo]:
        columns = self.list_columns(project_id)
        return columns[0] if columns else None

    def create_column(
        self,
        project_id: str,
        name: str,
        order_index: Optional[int] = None,
        wip_limit: Optional[int] = None,
    ) -> ColumnInfo:
        if self.db.get(Project, project_id) is None:
            raise NotFoundError("Project not found")
        _check_wip_limit(wip_limit)

        if order_index is None:
            max_index = self.db.query(func.max(KanbanColumn.order_index)).filter(
                KanbanColumn.project_id == project_id
            ).scalar()
            order_index = 0 if max_index is None else max_index + 1
        else:
            taken = self.db.query(KanbanColumn.id).filter(
                KanbanColumn.project_id == project_id,
                KanbanColumn.order_index == order_index,
            ).first()
            if taken is not None:
                raise ConflictError(f"Order index {order_index} is already used in this project")

        column = KanbanColumn(project_id=project_id, name=name, order_index=order_index, wip_limit=wip_limit)
        self.db.add(column)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"Order index {order_index} is already used in this project") from exc
        self.db.refresh(column)
        logger.info("Created column %r (%s) in project %s", name, column.id, project_id)
        return ColumnInfo.from_model(column)

    def update_column(self, column_id: str, name=_UNSET, wip_limit=_UNSET) -> ColumnInfo:
        """Rename a column or change its WIP limit; ``wip_limit=None`` removes the cap."""
        column = self.db.get(KanbanColumn, column_id)
        if column is None:
            raise NotFoundError("Column not found")
        if name is not _UNSET:
            column.name = name
        if wip_limit is not _UNSET:
            _check_wip_limit(wip_limit)
            column.wip_limit = wip_limit
        self.db.commit()
        self.db.refresh(column)
        return ColumnInfo.from_model(column)

    def delete_column(self, column_id: str) -> None:
        column = self.db.get(KanbanColumn, column_id)
        if column is None:
            raise NotFoundError("Column not found")
        if self.count_tasks_in(column_id) > 0:
            raise ConflictError("Cannot delete column with active tasks. Move tasks first.")
        self.db.query(Task).filter(Task.column_id == column_id).update(
            {Task.column_id: None}, synchronize_session=False
        )
        self.db.delete(column)
        self.db.commit()
        logger.info("Deleted column %s", column_id)
