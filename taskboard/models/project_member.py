"""
Project Member Model
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taskboard.database import Base


class ProjectMember(Base):
    __tablename__ = "project_members"

    id = Column(String(32), primary_key=True, index=True)
    project_id = Column(String(32), ForeignKey("projects.id"), nullable=False)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    project = relationship("Project", back_populates="members")
    user = relationship("User", back_populates="project_memberships")

    __table_args__ = (
        UniqueConstraint('project_id', 'user_id', name='unique_project_member'),
    )
