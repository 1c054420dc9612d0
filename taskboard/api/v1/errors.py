"""Translate service exceptions into HTTP errors"""
from contextlib import contextmanager

from fastapi import HTTPException, status

from taskboard.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    StoreUnavailable,
    TaskboardError,
)

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(exc: TaskboardError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


@contextmanager
def service_errors():
    try:
        yield
    except TaskboardError as exc:
        raise to_http_exception(exc) from exc
