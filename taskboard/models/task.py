"""
Task Model
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from taskboard.database import Base


class TaskStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER.index(self)

    # str comparison would order alphabetically; compare by rank instead
    def __lt__(self, other):
        if not isinstance(other, TaskPriority):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, TaskPriority):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, TaskPriority):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, TaskPriority):
            return NotImplemented
        return self.rank >= other.rank


_PRIORITY_ORDER = [TaskPriority.LOW, TaskPriority.MEDIUM, TaskPriority.HIGH, TaskPriority.CRITICAL]

_COMPLETED_MARKERS = ("done", "completed", "resolved")
_NOT_STARTED_MARKERS = ("todo", "to do", "backlog")


def status_for_column(column_name: str) -> TaskStatus:
    """Derive a task status from the name of the column holding it."""
    name = (column_name or "").lower()
    if any(marker in name for marker in _COMPLETED_MARKERS):
        return TaskStatus.COMPLETED
    if any(marker in name for marker in _NOT_STARTED_MARKERS):
        return TaskStatus.NOT_STARTED
    if "blocked" in name:
        return TaskStatus.BLOCKED
    return TaskStatus.IN_PROGRESS


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(32), primary_key=True, index=True)
    project_id = Column(String(32), ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # NULL only for soft-deleted tasks whose column was removed afterwards
    column_id = Column(String(32), ForeignKey("kanban_columns.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.NOT_STARTED, nullable=False)
    priority = Column(SQLEnum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False)
    sprint_id = Column(String(32), ForeignKey("sprints.id"), nullable=True)
    position = Column(Integer, default=0, nullable=False)
    created_by_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    assigned_to_id = Column(String(32), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    project = relationship("Project", back_populates="tasks")
    column = relationship("KanbanColumn", back_populates="tasks")
    sprint = relationship("Sprint", back_populates="tasks")
    creator = relationship("User", foreign_keys=[created_by_id])
    assignee = relationship("User", foreign_keys=[assigned_to_id])
    blockers = relationship(
        "TaskDependency",
        foreign_keys="TaskDependency.task_id",
        back_populates="task",
        cascade="all, delete-orphan",
    )
