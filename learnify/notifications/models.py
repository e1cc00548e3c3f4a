"""Pydantic models for user-facing notifications."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class NotificationStatus(StrEnum):
    UNREAD = "unread"
    READ = "read"


class Notification(BaseModel):
    """Persisted notification record."""

    notification_id: str
    user_id: str = ""
    title: str
    message: str
    status: NotificationStatus = NotificationStatus.UNREAD
    created_at: int
    updated_at: int
