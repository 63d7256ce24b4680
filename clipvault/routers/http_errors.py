"""Mapping from service errors to HTTP responses."""

import logging

from fastapi import HTTPException, status

from clipvault.enums import ErrorKind
from clipvault.errors import ClipVaultError, RangeNotSatisfiableError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.EXPIRED: status.HTTP_410_GONE,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.GATEWAY_FAILURE: status.HTTP_502_BAD_GATEWAY,
}


def to_http_exception(error: ClipVaultError) -> HTTPException:
    """Translate a ClipVaultError into an HTTPException.

    Expired links get 410 so clients can tell "link timed out" from "link
    never existed" (404). Server-side failures are logged with full context.
    """
    if isinstance(error, RangeNotSatisfiableError):
        return HTTPException(
            status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
            detail=error.message,
            headers={"Content-Range": f"bytes */{error.file_size}"},
        )

    status_code = STATUS_BY_KIND.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error(
            "%s (%s): %s",
            type(error).__name__,
            error.kind,
            error.message,
            exc_info=error,
        )
    return HTTPException(status_code=status_code, detail=error.message)
