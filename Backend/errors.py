"""
Gateway error types.

Every failure coming back from a gateway (identity, storage, mail relay) is a
plain message string; callers do not branch on the kind of failure.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base class for errors returned by a portal gateway."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IdentityError(PortalError):
    pass


class StorageError(PortalError):
    pass


class NotificationError(PortalError):
    pass


def portal_error_handler(request: Request, exc: PortalError):
    """Answer a gateway failure with its message as a 400."""
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=400, content={"detail": exc.message})
