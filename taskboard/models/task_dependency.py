"""Blocking relation between two tasks"""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from taskboard.database import Base


class TaskDependency(Base):
    __tablename__ = "task_dependencies"

    id = Column(String(32), primary_key=True, index=True)
    task_id = Column(String(32), ForeignKey("tasks.id"), nullable=False, index=True)
    blocked_by_id = Column(String(32), ForeignKey("tasks.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    task = relationship("Task", foreign_keys=[task_id], back_populates="blockers")
    blocked_by = relationship("Task", foreign_keys=[blocked_by_id])

    __table_args__ = (
        UniqueConstraint('task_id', 'blocked_by_id', name='unique_task_dependency'),
    )
