from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from learnify.auth.repository import UserRepository
from learnify.auth.service import AuthService
from learnify.auth.sessions import SessionStore
from learnify.auth.tokens import TokenIssuer
from learnify.core.config import (
    AppConfig,
    AuthConfig,
    CookieConfig,
    EmailConfig,
    LoggingConfig,
    NotificationConfig,
    SecurityConfig,
    StorageConfig,
)
from learnify.mail.service import EmailDeliveryError


class FakeRedis:
    """Dict-backed stand-in for the subset of the Redis API the app uses."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.expires_at: dict[str, float] = {}
        self.now = time.time()

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _alive(self, name: str) -> bool:
        deadline = self.expires_at.get(name)
        if deadline is not None and deadline <= self.now:
            self.values.pop(name, None)
            self.expires_at.pop(name, None)
        return name in self.values

    def get(self, name: str) -> str | None:
        return self.values.get(name) if self._alive(name) else None

    def set(
        self, name: str, value: Any, ex: int | None = None, xx: bool = False
    ) -> bool | None:
        if xx and not self._alive(name):
            return None
        self.values[name] = str(value)
        self.expires_at.pop(name, None)
        if ex is not None:
            self.expires_at[name] = self.now + ex
        return True

    def delete(self, *names: str) -> int:
        removed = 0
        for name in names:
            if self._alive(name):
                removed += 1
            self.values.pop(name, None)
            self.expires_at.pop(name, None)
        return removed

    def exists(self, *names: str) -> int:
        return sum(1 for name in names if self._alive(name))

    def expire(self, name: str, seconds: int) -> bool:
        if not self._alive(name):
            return False
        self.expires_at[name] = self.now + seconds
        return True

    def ttl(self, name: str) -> int:
        if not self._alive(name):
            return -2
        deadline = self.expires_at.get(name)
        if deadline is None:
            return -1
        return int(deadline - self.now)

    def incr(self, name: str) -> int:
        value = int(self.get(name) or 0) + 1
        self.values[name] = str(value)
        return value

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        return None


@dataclass
class RecordingMailer:
    """Captures activation emails instead of sending them."""

    sent: list[dict[str, Any]] = field(default_factory=list)
    fail: bool = False

    def send_activation_email(
        self, to_email: str, *, name: str, code: str, expires_in_seconds: int
    ) -> None:
        if self.fail:
            raise EmailDeliveryError("smtp down")
        self.sent.append(
            {"to": to_email, "name": name, "code": code, "expires_in": expires_in_seconds}
        )


def auth_config(**overrides: Any) -> AuthConfig:
    values: dict[str, Any] = {
        "access_token_secret": "access-secret",
        "refresh_token_secret": "refresh-secret",
        "activation_token_secret": "activation-secret",
        "access_token_ttl_seconds": 300,
        "refresh_token_ttl_seconds": 3 * 24 * 60 * 60,
        "activation_token_ttl_seconds": 300,
        "session_ttl_seconds": 3 * 24 * 60 * 60,
        "issuer": "learnify-test",
        "admin_email": "admin@learnify.test",
        "admin_password": "admin-pass",
    }
    values.update(overrides)
    return AuthConfig(**values)


def cookie_config() -> CookieConfig:
    return CookieConfig(secure=False, path="/api/v1", samesite="lax")


def app_config(**auth_overrides: Any) -> AppConfig:
    return AppConfig(
        auth=auth_config(**auth_overrides),
        cookies=cookie_config(),
        storage=StorageConfig(
            mongodb_uri="", mongodb_db="learnify_test", redis_url="redis://unused"
        ),
        email=EmailConfig(
            smtp_host="",
            smtp_port=587,
            smtp_user="",
            smtp_password="",
            smtp_use_tls=True,
            from_email="",
            from_name="Learnify",
        ),
        notifications=NotificationConfig(purge_interval_seconds=3600, retention_days=30),
        logging=LoggingConfig(level="INFO"),
        security=SecurityConfig(
            cors_allowed_origins=["http://localhost:3000"],
            request_max_bytes=1024 * 1024,
            login_rate_limit_max_attempts=3,
            login_rate_limit_window_seconds=300,
            login_rate_limit_lock_seconds=600,
        ),
    )


@dataclass
class AuthHarness:
    service: AuthService
    repo: UserRepository
    sessions: SessionStore
    tokens: TokenIssuer
    redis: FakeRedis
    mailer: RecordingMailer


def build_auth(tmp_path: Path, **auth_overrides: Any) -> AuthHarness:
    config = auth_config(**auth_overrides)
    redis = FakeRedis()
    mailer = RecordingMailer()
    sessions = SessionStore(redis, ttl_seconds=config.session_ttl_seconds)
    tokens = TokenIssuer(config, cookie_config(), sessions, clock=lambda: redis.now)
    repo = UserRepository(tmp_path)
    service = AuthService(
        repo=repo,
        sessions=sessions,
        tokens=tokens,
        mailer=mailer,  # type: ignore[arg-type]
        config=config,
    )
    service.bootstrap_admin_user()
    return AuthHarness(
        service=service,
        repo=repo,
        sessions=sessions,
        tokens=tokens,
        redis=redis,
        mailer=mailer,
    )


def register_and_activate(
    harness: AuthHarness,
    *,
    name: str = "Student",
    email: str = "student@learnify.test",
    password: str = "secret-pass",
) -> str:
    """Run the activation handshake and return the new user id."""
    ticket = harness.service.register(name, email, password)
    code = harness.mailer.sent[-1]["code"]
    return harness.service.activate(ticket.token, code).user_id
