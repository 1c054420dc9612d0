"""
Kanban Column Model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taskboard.database import Base


class KanbanColumn(Base):
    __tablename__ = "kanban_columns"

    id = Column(String(32), primary_key=True, index=True)
    project_id = Column(String(32), ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    order_index = Column(Integer, nullable=False)
    wip_limit = Column(Integer, nullable=True)  # NULL means unbounded
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    project = relationship("Project", back_populates="columns")
    tasks = relationship("Task", back_populates="column")

    __table_args__ = (
        UniqueConstraint('project_id', 'order_index', name='unique_column_order'),
        CheckConstraint('wip_limit IS NULL OR wip_limit > 0', name='positive_wip_limit'),
    )
