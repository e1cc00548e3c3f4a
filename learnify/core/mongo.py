"""MongoDB connection and versioned index migrations."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

import pymongo
from pymongo.errors import PyMongoError

from learnify.core.config import StorageConfig
from learnify.core.logging import CORRELATION_ID_CTX

LOGGER = logging.getLogger(__name__)

MigrationFn = Callable[[Any], None]


def _migration_20240601_01_user_indexes(db: Any) -> None:
    db["users"].create_index("user_id", unique=True)
    db["users"].create_index("email", unique=True)
    db["users"].create_index("created_at")


def _migration_20240601_02_notification_indexes(db: Any) -> None:
    db["notifications"].create_index("notification_id", unique=True)
    db["notifications"].create_index([("status", 1), ("created_at", 1)])


MIGRATIONS: list[tuple[str, MigrationFn]] = [
    ("20240601_01_user_indexes", _migration_20240601_01_user_indexes),
    ("20240601_02_notification_indexes", _migration_20240601_02_notification_indexes),
]


def connect_mongo(config: StorageConfig) -> pymongo.MongoClient | None:
    """Return a connected Mongo client, or ``None`` when Mongo is not configured."""
    if not config.mongodb_uri:
        return None

    client: pymongo.MongoClient = pymongo.MongoClient(
        config.mongodb_uri, serverSelectionTimeoutMS=3000
    )
    try:
        client.admin.command("ping")
    except PyMongoError:
        LOGGER.exception("mongo_unavailable")
        client.close()
        return None
    return client


def apply_mongo_migrations(db: Any) -> list[str]:
    """Apply pending migrations and return the ids applied in this run."""
    migration_collection = db["schema_migrations"]
    migration_collection.create_index("migration_id", unique=True)

    applied: list[str] = []
    for migration_id, migration_fn in MIGRATIONS:
        if migration_collection.find_one({"migration_id": migration_id}):
            continue
        migration_fn(db)
        migration_collection.insert_one(
            {
                "migration_id": migration_id,
                "applied_at": datetime.now(timezone.utc),
                "correlation_id": CORRELATION_ID_CTX.get(),
            }
        )
        applied.append(migration_id)
    if applied:
        LOGGER.info("mongo_migrations_applied: %s", ",".join(applied))
    return applied
