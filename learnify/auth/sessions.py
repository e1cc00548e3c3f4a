"""Redis-backed session cache holding one user snapshot per user id."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from learnify.auth.models import User, UserSnapshot

LOGGER = logging.getLogger(__name__)


class SessionStore:
    """Authoritative "currently logged in" record keyed by user id.

    Entries expire after ``ttl_seconds`` and are removed explicitly on
    logout and account deletion. A new login overwrites the previous entry.
    """

    key_prefix = "session:"

    def __init__(self, client: Any, *, ttl_seconds: int) -> None:
        self._client = client
        self._ttl_seconds = max(1, int(ttl_seconds))

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def _key(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    def save(self, user: User | UserSnapshot) -> UserSnapshot:
        """Write the password-free snapshot, replacing any existing entry."""
        snapshot = user.to_snapshot() if isinstance(user, User) else user
        self._client.set(
            self._key(snapshot.user_id),
            snapshot.model_dump_json(),
            ex=self._ttl_seconds,
        )
        return snapshot

    def load(self, user_id: str) -> UserSnapshot | None:
        """Return the cached snapshot or ``None`` when no session exists."""
        if not user_id:
            return None
        raw = self._client.get(self._key(user_id))
        if raw is None:
            return None
        try:
            return UserSnapshot.model_validate_json(raw)
        except PydanticValidationError:
            LOGGER.warning("session_snapshot_corrupt", extra={"user_id": user_id})
            return None

    def touch(self, user_id: str) -> bool:
        """Reset the entry TTL; returns ``False`` when the entry is gone."""
        return bool(self._client.expire(self._key(user_id), self._ttl_seconds))

    def replace_if_present(self, user: User | UserSnapshot) -> bool:
        """Rewrite the snapshot only for a user who is currently logged in."""
        snapshot = user.to_snapshot() if isinstance(user, User) else user
        written = self._client.set(
            self._key(snapshot.user_id),
            snapshot.model_dump_json(),
            ex=self._ttl_seconds,
            xx=True,
        )
        return bool(written)

    def delete(self, user_id: str) -> None:
        """Remove the session entry, invalidating outstanding refresh tokens."""
        self._client.delete(self._key(user_id))
