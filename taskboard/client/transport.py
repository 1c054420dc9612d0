"""Ways for the board client to reach the transition executor."""
import logging
from dataclasses import dataclass
from typing import List, Optional

import requests
from pydantic import ValidationError

from taskboard.config import settings
from taskboard.errors import TransitionErrorKind
from taskboard.models.user import UserRole
from taskboard.schemas import ColumnResponse, TransitionResult
from taskboard.services.executor import TransitionExecutor

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "The server did not respond in time. Please try again."
UNREACHABLE_MESSAGE = "Could not reach the server. Please try again."
BAD_RESPONSE_MESSAGE = "The server sent an unexpected response. Please try again."


@dataclass(frozen=True)
class Actor:
    """Caller identity as supplied by the session provider."""

    id: str
    role: UserRole = UserRole.MEMBER


class HttpTransitionClient:
    """Calls the transitions endpoint over HTTP.

    Transport failures never escape as exceptions: they come back as a
    ``SystemError`` denial so the board can roll back like for any other
    denial.
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        api_prefix: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout if timeout is not None else settings.TRANSITION_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.api_prefix = api_prefix if api_prefix is not None else settings.API_PREFIX

    def _url(self, path: str) -> str:
        return f"{self.base_url}{self.api_prefix}{path}"

    @property
    def _headers(self):
        return {"X-User-Id": self.user_id}

    def propose_transition(
        self,
        task_id: str,
        destination_column_id: str,
        project_id: str,
        force: bool = False,
    ) -> TransitionResult:
        payload = {
            "task_id": task_id,
            "destination_column_id": destination_column_id,
            "project_id": project_id,
            "force": force,
        }
        try:
            response = self.session.post(
                self._url("/transitions"), json=payload, headers=self._headers, timeout=self.timeout
            )
        except requests.Timeout:
            logger.warning("Transition request for task %s timed out after %ss", task_id, self.timeout)
            return TransitionResult.deny(TransitionErrorKind.SYSTEM_ERROR, TIMEOUT_MESSAGE)
        except requests.RequestException as exc:
            logger.warning("Transition request for task %s failed: %s", task_id, exc)
            return TransitionResult.deny(TransitionErrorKind.SYSTEM_ERROR, UNREACHABLE_MESSAGE)

        try:
            return TransitionResult.model_validate(response.json())
        except ValueError:
            # Covers undecodable bodies and pydantic validation errors alike.
            if response.status_code in (401, 403):
                return TransitionResult.deny(
                    TransitionErrorKind.UNAUTHORIZED, "You are not allowed to move tasks on this board"
                )
            logger.warning("Unexpected transition response (HTTP %s) for task %s", response.status_code, task_id)
            return TransitionResult.deny(TransitionErrorKind.SYSTEM_ERROR, BAD_RESPONSE_MESSAGE)

    def get_columns(self, project_id: str) -> List[ColumnResponse]:
        response = self.session.get(
            self._url(f"/projects/{project_id}/columns"), headers=self._headers, timeout=self.timeout
        )
        response.raise_for_status()
        return [ColumnResponse.model_validate(item) for item in response.json()]


class LocalTransitionClient:
    """Runs the executor in-process, one database session per call."""

    def __init__(self, session_factory, actor: Actor, audit_sink=None):
        self.session_factory = session_factory
        self.actor = actor
        self.audit_sink = audit_sink

    def propose_transition(
        self,
        task_id: str,
        destination_column_id: str,
        project_id: str,
        force: bool = False,
    ) -> TransitionResult:
        db = self.session_factory()
        try:
            executor = TransitionExecutor(db, audit_sink=self.audit_sink)
            return executor.propose_transition(self.actor, task_id, destination_column_id, project_id, force=force)
        finally:
            db.close()
