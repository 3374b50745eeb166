from __future__ import annotations

import logging

from fastapi import HTTPException, status

from menuvision.app.domain.errors import (
    ExtractionShapeError,
    InvalidMenuItemError,
    InvalidSourceError,
    MenuPipelineError,
    NoItemsExtractedError,
    PersistenceError,
    RestaurantAccessError,
    SourceNotFoundError,
    StorageError,
)
from menuvision.services.errors import QueueFullError, RateLimitedError, ServiceError

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (RestaurantAccessError, status.HTTP_403_FORBIDDEN),
    (SourceNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidSourceError, status.HTTP_400_BAD_REQUEST),
    (InvalidMenuItemError, status.HTTP_400_BAD_REQUEST),
    (ExtractionShapeError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NoItemsExtractedError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (QueueFullError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (RateLimitedError, status.HTTP_429_TOO_MANY_REQUESTS),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
    (ServiceError, status.HTTP_502_BAD_GATEWAY),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_error(exc: Exception) -> HTTPException:
    """Translate a domain or service error into the matching HTTP response."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            if status_code >= 500:
                logger.error("Request failed: error_type=%s, error=%s", type(exc).__name__, exc)
            return HTTPException(status_code=status_code, detail=str(exc))

    if isinstance(exc, MenuPipelineError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.error("Unmapped error: error_type=%s, error=%s", type(exc).__name__, exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")
