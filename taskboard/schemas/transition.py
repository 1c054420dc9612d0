"""Schemas for the task transition endpoint"""
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from taskboard.errors import TransitionErrorKind


class TransitionRequest(BaseModel):
    task_id: str = Field(..., min_length=1)
    destination_column_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    force: bool = False


class TransitionResult(BaseModel):
    """Either ``{ok: true}`` or ``{ok: false, reason, message}``, never both."""

    ok: bool
    reason: Optional[TransitionErrorKind] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def _reason_matches_outcome(self):
        if self.ok and self.reason is not None:
            raise ValueError("an accepted transition carries no reason")
        if not self.ok and self.reason is None:
            raise ValueError("a denied transition needs a reason")
        return self

    @classmethod
    def allow(cls) -> "TransitionResult":
        return cls(ok=True)

    @classmethod
    def deny(cls, reason: TransitionErrorKind, message: str) -> "TransitionResult":
        return cls(ok=False, reason=reason, message=message)

    @property
    def retryable(self) -> bool:
        return self.reason is not None and self.reason.retryable
