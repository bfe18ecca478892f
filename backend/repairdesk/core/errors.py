"""Domain error taxonomy shared by services, actions and routers."""

from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for errors a caller may be shown verbatim."""

    code = "error"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthorizationError(ServiceError):
    """The requester lacks the privilege for the operation."""

    code = "forbidden"
    http_status = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """A uniqueness or state constraint would be violated."""

    code = "conflict"
    http_status = status.HTTP_409_CONFLICT


class ValidationError(ServiceError):
    code = "invalid"
    http_status = status.HTTP_422_UNPROCESSABLE_CONTENT


class UpstreamError(ServiceError):
    """An external provider could not be reached or answered badly."""

    code = "upstream"
    http_status = status.HTTP_502_BAD_GATEWAY


_STATUS_BY_CODE: dict[str, int] = {
    cls.code: cls.http_status
    for cls in (
        ServiceError,
        AuthorizationError,
        NotFoundError,
        ConflictError,
        ValidationError,
        UpstreamError,
    )
}


def http_status_for(code: str | None) -> int:
    """Map an error code onto its HTTP status."""
    if code is None:
        return status.HTTP_200_OK
    return _STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


__all__ = [
    "AuthorizationError",
    "ConflictError",
    "NotFoundError",
    "ServiceError",
    "UpstreamError",
    "ValidationError",
    "http_status_for",
]
