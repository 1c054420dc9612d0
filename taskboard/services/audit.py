"""Best-effort activity records."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from taskboard.models import AuditLog

logger = logging.getLogger(__name__)

TASK_MOVED = "TASK_MOVED"
TASK_CREATED = "TASK_CREATED"
TASK_DELETED = "TASK_DELETED"


class DatabaseAuditSink:
    """Writes audit rows through ``db`` after the audited change has been committed."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        actor_id: str,
        action_type: str,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.db.add(
            AuditLog(
                user_id=actor_id,
                action_type=action_type,
                resource_type=resource_type,
                resource_id=resource_id,
                details=details or {},
            )
        )
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


def emit(sink, actor_id: str, action_type: str, resource_type: str, resource_id: str, **details) -> bool:
    """Send one record to ``sink``; failures are logged and never propagate."""
    if sink is None:
        return False
    details.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    try:
        sink.record(actor_id, action_type, resource_type, resource_id, details)
    except Exception as exc:
        logger.warning("Could not record %s for %s %s: %s", action_type, resource_type, resource_id, exc)
        return False
    return True
