"""Login brute-force protection backed by Redis counters."""

from __future__ import annotations

import hashlib
from typing import Any

from learnify.api.errors import ApiError, ApiErrorCode


class LoginRateLimiter:
    """Rate limiter for login attempts by normalized (email, ip) tuple."""

    def __init__(
        self,
        client: Any,
        *,
        max_attempts: int,
        window_seconds: int,
        lock_seconds: int,
    ) -> None:
        """Initialize limiter policy parameters."""
        self._client = client
        self._max_attempts = max(1, int(max_attempts))
        self._window_seconds = max(1, int(window_seconds))
        self._lock_seconds = max(1, int(lock_seconds))

    @staticmethod
    def _principal(email: str, client_ip: str) -> str:
        key_email = email.strip().lower()
        key_ip = client_ip.strip() or "unknown"
        return hashlib.sha256(f"{key_email}|{key_ip}".encode("utf-8")).hexdigest()

    def assert_allowed(self, *, email: str, client_ip: str) -> None:
        """Raise 429 when login attempts are currently locked for the principal."""
        lock_key = f"login:lock:{self._principal(email, client_ip)}"
        if not self._client.exists(lock_key):
            return
        retry_after = max(1, int(self._client.ttl(lock_key) or 0))
        raise ApiError(
            status_code=429,
            error_code=ApiErrorCode.AUTH_RATE_LIMITED,
            message=f"Too many login attempts. Retry after {retry_after} seconds.",
        )

    def record_success(self, *, email: str, client_ip: str) -> None:
        """Reset limiter state after successful login."""
        principal = self._principal(email, client_ip)
        self._client.delete(f"login:attempts:{principal}", f"login:lock:{principal}")

    def record_failure(self, *, email: str, client_ip: str) -> None:
        """Record failed login and apply lock when threshold is exceeded."""
        principal = self._principal(email, client_ip)
        attempts_key = f"login:attempts:{principal}"
        failed_attempts = int(self._client.incr(attempts_key))
        if failed_attempts == 1:
            self._client.expire(attempts_key, self._window_seconds)
        if failed_attempts >= self._max_attempts:
            self._client.set(f"login:lock:{principal}", "1", ex=self._lock_seconds)
            self._client.delete(attempts_key)
