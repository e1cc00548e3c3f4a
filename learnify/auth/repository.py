"""Credential store repository for user records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

from pymongo.errors import DuplicateKeyError

from learnify.auth.models import User

LOGGER = logging.getLogger(__name__)

_NO_PASSWORD_PROJECTION = {"_id": 0, "password_hash": 0}
_FULL_PROJECTION = {"_id": 0}


class EmailTakenError(ValueError):
    """Raised when a write would give two users the same email."""


class UserRepository:
    """User repository with MongoDB primary and file-store fallback.

    Reads leave ``password_hash`` empty unless ``include_password`` is set,
    mirroring a select-projected password column.
    """

    def __init__(self, app_root: Path, *, db: Any = None) -> None:
        """Initialize repository storage backends."""
        self._fallback_dir = app_root / "runtime" / "auth_store"
        self._users_file = self._fallback_dir / "users.json"
        self._file_lock = Lock()
        self._mongo_users = db["users"] if db is not None else None
        if self._mongo_users is None:
            self._fallback_dir.mkdir(parents=True, exist_ok=True)

    @property
    def uses_mongo(self) -> bool:
        return self._mongo_users is not None

    def _read_json_file(self) -> list[dict[str, Any]]:
        """Read list payload from JSON file with empty fallback."""
        if not self._users_file.exists():
            return []
        try:
            payload = json.loads(self._users_file.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            LOGGER.warning("users_file_unreadable")
            return []
        return payload if isinstance(payload, list) else []

    def _write_json_file(self, items: list[dict[str, Any]]) -> None:
        """Persist list payload to JSON file."""
        self._users_file.write_text(
            json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    @staticmethod
    def _to_user(row: dict[str, Any], include_password: bool) -> User:
        data = dict(row)
        if not include_password:
            data.pop("password_hash", None)
        return User.model_validate(data)

    @staticmethod
    def _email_owner(items: list[dict[str, Any]], email: str) -> str | None:
        """Return the user id already holding ``email`` in file rows."""
        wanted = email.strip().lower()
        for row in items:
            if str(row.get("email", "")).strip().lower() == wanted:
                return str(row.get("user_id", ""))
        return None

    def _find_one(self, query: dict[str, str], include_password: bool) -> User | None:
        if self._mongo_users is not None:
            projection = _FULL_PROJECTION if include_password else _NO_PASSWORD_PROJECTION
            doc = self._mongo_users.find_one(query, projection)
            return User.model_validate(doc) if doc else None

        field, value = next(iter(query.items()))
        for row in self._read_json_file():
            if str(row.get(field, "")) == value:
                return self._to_user(row, include_password)
        return None

    def get_user_by_id(self, user_id: str, *, include_password: bool = False) -> User | None:
        """Get user by id."""
        return self._find_one({"user_id": user_id}, include_password)

    def get_user_by_email(self, email: str, *, include_password: bool = False) -> User | None:
        """Get user by normalized email."""
        return self._find_one({"email": email.strip().lower()}, include_password)

    def email_exists(self, email: str) -> bool:
        """Return whether any user already owns the email."""
        return self.get_user_by_email(email) is not None

    def create_user(self, user: User) -> User:
        """Insert a new user record."""
        doc = user.model_dump(mode="json")
        if self._mongo_users is not None:
            try:
                self._mongo_users.insert_one(dict(doc))
            except DuplicateKeyError as exc:
                raise EmailTakenError(user.email) from exc
            return user

        with self._file_lock:
            items = self._read_json_file()
            if self._email_owner(items, user.email) is not None:
                raise EmailTakenError(user.email)
            items.append(doc)
            self._write_json_file(items)
        return user

    def update_user(self, user_id: str, fields: dict[str, Any]) -> User | None:
        """Apply field updates and return the updated user without password."""
        if self._mongo_users is not None:
            try:
                result = self._mongo_users.update_one(
                    {"user_id": user_id}, {"$set": fields}
                )
            except DuplicateKeyError as exc:
                raise EmailTakenError(str(fields.get("email", ""))) from exc
            if result.matched_count == 0:
                return None
            return self.get_user_by_id(user_id)

        with self._file_lock:
            items = self._read_json_file()
            if "email" in fields:
                owner = self._email_owner(items, str(fields["email"]))
                if owner is not None and owner != user_id:
                    raise EmailTakenError(str(fields["email"]))
            updated: dict[str, Any] | None = None
            for row in items:
                if str(row.get("user_id", "")) == user_id:
                    row.update(fields)
                    updated = row
            if updated is None:
                return None
            self._write_json_file(items)
        return self._to_user(updated, include_password=False)

    def delete_user(self, user_id: str) -> bool:
        """Delete user by id, returning whether a record was removed."""
        if self._mongo_users is not None:
            return self._mongo_users.delete_one({"user_id": user_id}).deleted_count > 0

        with self._file_lock:
            items = self._read_json_file()
            remaining = [row for row in items if str(row.get("user_id", "")) != user_id]
            if len(remaining) == len(items):
                return False
            self._write_json_file(remaining)
        return True

    def list_users(self) -> list[User]:
        """Return all users, newest first, without passwords."""
        if self._mongo_users is not None:
            docs = self._mongo_users.find({}, _NO_PASSWORD_PROJECTION).sort("created_at", -1)
            return [User.model_validate(doc) for doc in docs]

        rows = sorted(
            self._read_json_file(),
            key=lambda row: int(row.get("created_at") or 0),
            reverse=True,
        )
        return [self._to_user(row, include_password=False) for row in rows]
