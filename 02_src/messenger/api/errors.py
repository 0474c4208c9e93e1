"""Mapping of domain errors to HTTP responses."""

from fastapi import HTTPException

from ..errors import AuthorizationError, MessengerError, NotFoundError, ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_DETAIL = "Internal server error"


def http_error(error: MessengerError) -> HTTPException:
    """Translate a domain error; storage details never reach the client."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, AuthorizationError):
        return HTTPException(status_code=403, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))

    logger.error("Request failed: %s", error, exc_info=error)
    return HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)
