"""Audit trail of board activity"""
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func

from taskboard.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(32), primary_key=True, index=True)
    user_id = Column(String(32), nullable=False, index=True)
    action_type = Column(String(64), nullable=False)
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(String(32), nullable=False, index=True)
    details = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
