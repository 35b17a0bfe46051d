"""Error taxonomy shared by the service layer and the HTTP layer."""

from __future__ import annotations

from fastapi import status


class ForumTallyError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(ForumTallyError):
    """No caller identity, or the presented token could not be verified."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"


class InvalidArgument(ForumTallyError):
    """Malformed vote value, identifier or request field."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class Forbidden(ForumTallyError):
    """Authenticated caller may not mutate the requested resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed"


class NotFound(ForumTallyError):
    """Target content row does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(ForumTallyError):
    """Unique constraint race or duplicate data."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class Unavailable(ForumTallyError):
    """The relational store could not complete the operation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage unavailable"


__all__ = [
    "Conflict",
    "Forbidden",
    "ForumTallyError",
    "InvalidArgument",
    "NotFound",
    "Unauthenticated",
    "Unavailable",
]
