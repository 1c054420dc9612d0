"""Task transition endpoint"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskboard.database import get_db
from taskboard.dependencies import get_current_user
from taskboard.errors import TransitionErrorKind
from taskboard.models import User
from taskboard.schemas import TransitionRequest, TransitionResult
from taskboard.services.executor import TransitionExecutor

router = APIRouter()

STATUS_BY_REASON = {
    TransitionErrorKind.BLOCKED: status.HTTP_409_CONFLICT,
    TransitionErrorKind.SPRINT_LOCKED: status.HTTP_409_CONFLICT,
    TransitionErrorKind.WIP_EXCEEDED: status.HTTP_409_CONFLICT,
    TransitionErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    TransitionErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    TransitionErrorKind.SYSTEM_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.post("", response_model=TransitionResult, response_model_exclude_none=True)
def propose_transition(
    transition: TransitionRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Move a task to another column, or explain why it cannot move."""
    result = TransitionExecutor(db).propose_transition(
        current_user,
        transition.task_id,
        transition.destination_column_id,
        transition.project_id,
        force=transition.force,
    )
    if not result.ok:
        response.status_code = STATUS_BY_REASON[result.reason]
    return result
