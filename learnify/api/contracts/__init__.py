"""Public API response contracts."""

from learnify.api.contracts.models import (
    ApiErrorResponse,
    HealthResponse,
    MessageResponse,
    NotificationsListResponse,
    RefreshResponse,
    RegistrationResponse,
    UserResponse,
    UsersListResponse,
)

__all__ = [
    "ApiErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "NotificationsListResponse",
    "RefreshResponse",
    "RegistrationResponse",
    "UserResponse",
    "UsersListResponse",
]
