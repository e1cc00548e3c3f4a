"""Pydantic API response models used in OpenAPI contracts."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class ApiErrorResponse(BaseModel):
    """Stable error envelope for API responses."""

    success: Literal[False] = False
    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class HealthResponse(BaseModel):
    """Health check response payload."""

    status: Literal["ok"]


class MessageResponse(BaseModel):
    """Plain success acknowledgement with optional message."""

    success: Literal[True] = True
    message: str = ""


class RegistrationResponse(BaseModel):
    """Registration response carrying the activation token."""

    success: Literal[True] = True
    message: str
    activation_token: str


class UserResponse(BaseModel):
    """Single user snapshot response."""

    success: Literal[True] = True
    user: dict[str, Any]


class UsersListResponse(BaseModel):
    """Admin users listing response."""

    success: Literal[True] = True
    users: list[dict[str, Any]] = Field(default_factory=list)


class RefreshResponse(BaseModel):
    """Token rotation response payload."""

    success: Literal[True] = True
    access_token: str


class NotificationsListResponse(BaseModel):
    """Admin notifications listing response."""

    success: Literal[True] = True
    notifications: list[dict[str, Any]] = Field(default_factory=list)
