"""Pydantic models for the authentication domain."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value: str) -> str:
    """Lower-case and strip an email, rejecting obviously malformed values."""
    email = str(value or "").strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValueError("Please enter a valid email")
    return email


class Role(StrEnum):
    """Roles understood by the role authorizer."""

    USER = "user"
    ADMIN = "admin"


class AvatarRef(BaseModel):
    """Reference to an uploaded avatar held by the media provider."""

    public_id: str = ""
    url: str = ""


class CourseRef(BaseModel):
    """Enrolled course reference."""

    course_id: str


class UserSnapshot(BaseModel):
    """User profile without credentials; safe to cache and return."""

    user_id: str
    name: str
    email: str
    role: Role = Role.USER
    avatar: AvatarRef | None = None
    courses: list[CourseRef] = Field(default_factory=list)
    is_verified: bool = False
    created_at: int = 0
    updated_at: int = 0


class User(UserSnapshot):
    """Persisted credential-store user record."""

    password_hash: str = ""

    def to_snapshot(self) -> UserSnapshot:
        """Return the password-free projection of this user."""
        return UserSnapshot.model_validate(self.model_dump(exclude={"password_hash"}))


class PendingRegistration(BaseModel):
    """Registration payload embedded in an activation token."""

    name: str
    email: str
    password_hash: str


class ActivationTicket(BaseModel):
    """Signed activation token and the code it embeds."""

    token: str
    code: str


class ActivationClaims(BaseModel):
    """Decoded activation token contents."""

    pending: PendingRegistration
    activation_code: str


class TokenPair(BaseModel):
    """Access and refresh tokens issued together."""

    access_token: str
    refresh_token: str
    access_expires_at: int
    refresh_expires_at: int


class AuthSession(BaseModel):
    """Outcome of a successful login: the cached snapshot and its tokens."""

    user: UserSnapshot
    tokens: TokenPair


class _StrictRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class RegistrationRequest(_StrictRequest):
    """Registration request payload."""

    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return normalize_email(value)


class ActivationRequest(_StrictRequest):
    """Activation request payload."""

    activation_token: str = Field(min_length=1)
    activation_code: str = Field(min_length=1, max_length=16)


class LoginRequest(_StrictRequest):
    """Login request payload."""

    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return normalize_email(value)


class SocialAuthRequest(_StrictRequest):
    """Externally verified social-login claims."""

    email: str
    name: str = Field(min_length=1, max_length=100)
    avatar: str = ""

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return normalize_email(value)


class UpdateUserInfoRequest(_StrictRequest):
    """Profile update payload; omitted fields stay unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, value: str | None) -> str | None:
        return None if value is None else normalize_email(value)


class UpdatePasswordRequest(_StrictRequest):
    """Password change payload."""

    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)


class UpdateRoleRequest(_StrictRequest):
    """Admin role change payload."""

    user_id: str = Field(min_length=1)
    role: Role


def snapshot_payload(user: UserSnapshot) -> dict[str, Any]:
    """Serialize a snapshot for JSON responses."""
    return user.model_dump(mode="json")
