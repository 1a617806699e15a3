"""Translate service exceptions into HTTP errors."""

import logging

from fastapi import HTTPException, status

from .services.exceptions import (
    AllocationError, DataIntegrityError, DuplicateError, InvalidOperationError,
    NotFoundError, ProjectAccessError, StoreError, UnauthenticatedError,
)

logger = logging.getLogger(__name__)

_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ProjectAccessError, status.HTTP_403_FORBIDDEN),
    (UnauthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (DuplicateError, status.HTTP_409_CONFLICT),
    (AllocationError, status.HTTP_400_BAD_REQUEST),
    (InvalidOperationError, status.HTTP_400_BAD_REQUEST),
    (DataIntegrityError, status.HTTP_400_BAD_REQUEST),
)


def http_error(exc: StoreError) -> HTTPException:
    for exc_type, code in _STATUS:
        if isinstance(exc, exc_type):
            break
    else:
        code = status.HTTP_400_BAD_REQUEST
    logger.info("%s -> HTTP %s: %s", type(exc).__name__, code, exc)
    return HTTPException(status_code=code, detail=str(exc))
