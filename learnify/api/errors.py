"""Shared API error types and helpers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fastapi import HTTPException


class ApiErrorCode(StrEnum):
    """Machine-readable API error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_TOKEN = "INVALID_TOKEN"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_ACTIVATION_CODE = "INVALID_ACTIVATION_CODE"
    REFRESH_FAILED = "REFRESH_FAILED"
    FORBIDDEN = "FORBIDDEN"
    AUTH_RATE_LIMITED = "AUTH_RATE_LIMITED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    EMAIL_DELIVERY_FAILED = "EMAIL_DELIVERY_FAILED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ApiError(HTTPException):
    """HTTP exception carrying stable API error envelope."""

    def __init__(
        self, *, status_code: int, error_code: ApiErrorCode, message: str
    ) -> None:
        """Build an HTTP exception with standard detail structure."""
        super().__init__(
            status_code=status_code,
            detail={"error_code": str(error_code), "message": message},
        )
        self.error_code = error_code
        self.message = message


class ValidationError(ApiError):
    """Malformed or missing input (400)."""

    def __init__(
        self, message: str, error_code: ApiErrorCode = ApiErrorCode.VALIDATION_ERROR
    ) -> None:
        super().__init__(status_code=400, error_code=error_code, message=message)


class AuthenticationError(ApiError):
    """Missing, invalid or expired credentials (400, same as validation)."""

    def __init__(self, error_code: ApiErrorCode, message: str) -> None:
        super().__init__(status_code=400, error_code=error_code, message=message)


class AuthorizationError(ApiError):
    """Authenticated identity lacks the required role (403)."""

    def __init__(self, message: str) -> None:
        super().__init__(
            status_code=403, error_code=ApiErrorCode.FORBIDDEN, message=message
        )


class NotFoundError(ApiError):
    """Referenced entity does not exist (404)."""

    def __init__(self, error_code: ApiErrorCode, message: str) -> None:
        super().__init__(status_code=404, error_code=error_code, message=message)


class InternalError(ApiError):
    """Unexpected store, signing or delivery failure (500)."""

    def __init__(
        self,
        message: str,
        error_code: ApiErrorCode = ApiErrorCode.INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(status_code=500, error_code=error_code, message=message)


def to_error_payload(detail: Any, status_code: int) -> dict[str, Any]:
    """Normalize HTTP exception detail into stable error payload."""
    if isinstance(detail, dict):
        error_code = str(detail.get("error_code") or f"HTTP_{status_code}")
        message = str(detail.get("message") or detail.get("detail") or "HTTP error")
        return {"success": False, "error_code": error_code, "message": message}
    return {
        "success": False,
        "error_code": f"HTTP_{status_code}",
        "message": str(detail or "HTTP error"),
    }
