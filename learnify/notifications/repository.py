"""Notification repository with MongoDB primary and file-store fallback."""

from __future__ import annotations

import json
import logging
import time
import uuid
from pathlib import Path
from threading import Lock
from typing import Any

from pymongo import ReturnDocument

from learnify.notifications.models import Notification, NotificationStatus

LOGGER = logging.getLogger(__name__)


class NotificationRepository:
    """Admin notification store.

    Course and order handlers live in other services and write here through
    ``create``; this service only lists, marks read and purges.
    """

    def __init__(self, app_root: Path, *, db: Any = None) -> None:
        self._fallback_dir = app_root / "runtime" / "notifications_store"
        self._items_file = self._fallback_dir / "notifications.json"
        self._file_lock = Lock()
        self._mongo_items = db["notifications"] if db is not None else None
        if self._mongo_items is None:
            self._fallback_dir.mkdir(parents=True, exist_ok=True)

    def _read_json_file(self) -> list[dict[str, Any]]:
        if not self._items_file.exists():
            return []
        try:
            payload = json.loads(self._items_file.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            LOGGER.warning("notifications_file_unreadable")
            return []
        return payload if isinstance(payload, list) else []

    def _write_json_file(self, items: list[dict[str, Any]]) -> None:
        self._items_file.write_text(
            json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def create(
        self, *, title: str, message: str, user_id: str = "", created_at: int | None = None
    ) -> Notification:
        """Insert a new unread notification (the write boundary for other services)."""
        now = int(time.time()) if created_at is None else created_at
        item = Notification(
            notification_id=uuid.uuid4().hex,
            user_id=user_id,
            title=title,
            message=message,
            created_at=now,
            updated_at=now,
        )
        doc = item.model_dump(mode="json")
        if self._mongo_items is not None:
            self._mongo_items.insert_one(dict(doc))
            return item

        with self._file_lock:
            items = self._read_json_file()
            items.append(doc)
            self._write_json_file(items)
        return item

    def list_all(self) -> list[Notification]:
        """Return all notifications, newest first."""
        if self._mongo_items is not None:
            docs = self._mongo_items.find({}, {"_id": 0}).sort("created_at", -1)
            return [Notification.model_validate(doc) for doc in docs]

        rows = sorted(
            self._read_json_file(),
            key=lambda row: int(row.get("created_at") or 0),
            reverse=True,
        )
        return [Notification.model_validate(row) for row in rows]

    def mark_read(self, notification_id: str) -> Notification | None:
        """Set status to read; returns ``None`` for unknown ids."""
        fields = {"status": NotificationStatus.READ.value, "updated_at": int(time.time())}
        if self._mongo_items is not None:
            doc = self._mongo_items.find_one_and_update(
                {"notification_id": notification_id},
                {"$set": fields},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
            return Notification.model_validate(doc) if doc else None

        with self._file_lock:
            items = self._read_json_file()
            updated: dict[str, Any] | None = None
            for row in items:
                if str(row.get("notification_id", "")) == notification_id:
                    row.update(fields)
                    updated = row
            if updated is None:
                return None
            self._write_json_file(items)
        return Notification.model_validate(updated)

    def purge_read_before(self, cutoff: int) -> int:
        """Delete read notifications created before ``cutoff``; returns the count."""
        if self._mongo_items is not None:
            result = self._mongo_items.delete_many(
                {"status": NotificationStatus.READ.value, "created_at": {"$lt": cutoff}}
            )
            return int(result.deleted_count)

        with self._file_lock:
            items = self._read_json_file()
            remaining = [
                row
                for row in items
                if not (
                    row.get("status") == NotificationStatus.READ.value
                    and int(row.get("created_at") or 0) < cutoff
                )
            ]
            self._write_json_file(remaining)
        return len(items) - len(remaining)
