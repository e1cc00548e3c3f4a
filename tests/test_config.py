from __future__ import annotations

import pytest

from learnify.core.config import AppConfig

_ENV_KEYS = (
    "APP_ENV",
    "ACCESS_TOKEN_SECRET",
    "REFRESH_TOKEN_SECRET",
    "ACTIVATION_TOKEN_SECRET",
    "ACCESS_TOKEN_TTL_SECONDS",
    "REFRESH_TOKEN_TTL_SECONDS",
    "SESSION_TTL_SECONDS",
    "AUTH_ADMIN_EMAIL",
    "MONGODB_URI",
    "REDIS_URL",
    "SMTP_HOST",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_from_env_defaults() -> None:
    config = AppConfig.from_env()

    assert config.auth.access_token_ttl_seconds == 300
    assert config.auth.refresh_token_ttl_seconds == 3 * 24 * 60 * 60
    assert config.auth.activation_token_ttl_seconds == 300
    assert config.auth.session_ttl_seconds == config.auth.refresh_token_ttl_seconds
    assert len(
        {
            config.auth.access_token_secret,
            config.auth.refresh_token_secret,
            config.auth.activation_token_secret,
        }
    ) == 3
    assert config.cookies.secure is False
    assert config.cookies.path == "/api/v1"
    assert config.storage.mongodb_uri == ""
    assert config.storage.redis_url == "redis://localhost:6379/0"
    assert config.security.request_max_bytes == 50 * 1024 * 1024


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("REFRESH_TOKEN_TTL_SECONDS", "600")
    monkeypatch.setenv("AUTH_ADMIN_EMAIL", " Admin@Learnify.Test ")

    config = AppConfig.from_env()

    assert config.cookies.secure is True
    assert config.auth.session_ttl_seconds == 600
    assert config.auth.admin_email == "admin@learnify.test"
