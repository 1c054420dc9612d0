"""Utilities for ensuring opaque string primary keys are populated."""
from __future__ import annotations

import uuid
from typing import Type

from sqlalchemy import event
from sqlalchemy.orm import Mapper


def new_identifier() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def register_string_pk_listener(model: Type[object], pk_name: str = "id") -> None:
    """Ensure ``model`` receives an opaque string primary key before insert.

    Every record in the board is addressed by an opaque string identifier.
    Callers are free to supply their own (tests and imports do), so the
    listener only fills the key when it is still empty.
    """

    table = getattr(model, "__table__", None)
    if table is None or pk_name not in table.c:
        raise ValueError(f"Model {model!r} does not expose a '{pk_name}' column")

    @event.listens_for(model, "before_insert", propagate=True)
    def _assign_string_pk(_: Mapper, connection, target) -> None:  # pragma: no cover - SQLAlchemy callback
        if getattr(target, pk_name):
            return
        setattr(target, pk_name, new_identifier())
