"""Process-wide Redis client used by the session cache and rate limiter."""

from __future__ import annotations

import logging

from redis import Redis

from learnify.core.config import StorageConfig

LOGGER = logging.getLogger(__name__)

DEFAULT_OPERATION_TIMEOUT = 5.0


def create_redis_client(
    config: StorageConfig, *, socket_timeout: float = DEFAULT_OPERATION_TIMEOUT
) -> Redis:
    """Build the shared Redis client; connections are opened lazily."""
    return Redis.from_url(
        config.redis_url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


def verify_redis_connection(client: Redis) -> bool:
    """Ping Redis and log the outcome without failing startup."""
    try:
        client.ping()
    except Exception:
        LOGGER.exception("redis_unavailable")
        return False
    return True
