"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AuthConfig:
    """Token secrets, lifetimes and bootstrap admin settings."""

    access_token_secret: str
    refresh_token_secret: str
    activation_token_secret: str
    access_token_ttl_seconds: int
    refresh_token_ttl_seconds: int
    activation_token_ttl_seconds: int
    session_ttl_seconds: int
    issuer: str
    admin_email: str
    admin_password: str


@dataclass(frozen=True)
class CookieConfig:
    """Attributes applied to the session cookies."""

    secure: bool
    path: str
    samesite: str


@dataclass(frozen=True)
class StorageConfig:
    """Credential store and session cache endpoints."""

    mongodb_uri: str
    mongodb_db: str
    redis_url: str


@dataclass(frozen=True)
class EmailConfig:
    """Outbound SMTP settings; empty host means log-only mode."""

    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_use_tls: bool
    from_email: str
    from_name: str


@dataclass(frozen=True)
class NotificationConfig:
    """Read-notification purge schedule."""

    purge_interval_seconds: int
    retention_days: int


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    request_max_bytes: int
    login_rate_limit_max_attempts: int
    login_rate_limit_window_seconds: int
    login_rate_limit_lock_seconds: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    auth: AuthConfig
    cookies: CookieConfig
    storage: StorageConfig
    email: EmailConfig
    notifications: NotificationConfig
    logging: LoggingConfig
    security: SecurityConfig

    @staticmethod
    def from_env() -> "AppConfig":
        """Build app config from process environment."""
        app_env = os.getenv("APP_ENV", "development").strip().lower() or "development"
        access_ttl = int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", "300"))
        refresh_ttl = int(os.getenv("REFRESH_TOKEN_TTL_SECONDS", str(3 * 24 * 60 * 60)))
        activation_ttl = int(os.getenv("ACTIVATION_TOKEN_TTL_SECONDS", "300"))
        session_ttl = int(os.getenv("SESSION_TTL_SECONDS", str(refresh_ttl)))
        issuer = os.getenv("AUTH_ISSUER", "learnify").strip() or "learnify"

        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]

        return AppConfig(
            auth=AuthConfig(
                access_token_secret=(
                    os.getenv("ACCESS_TOKEN_SECRET", "").strip()
                    or "dev-access-secret-change-me"
                ),
                refresh_token_secret=(
                    os.getenv("REFRESH_TOKEN_SECRET", "").strip()
                    or "dev-refresh-secret-change-me"
                ),
                activation_token_secret=(
                    os.getenv("ACTIVATION_TOKEN_SECRET", "").strip()
                    or "dev-activation-secret-change-me"
                ),
                access_token_ttl_seconds=access_ttl,
                refresh_token_ttl_seconds=refresh_ttl,
                activation_token_ttl_seconds=activation_ttl,
                session_ttl_seconds=session_ttl,
                issuer=issuer,
                admin_email=os.getenv("AUTH_ADMIN_EMAIL", "").strip().lower(),
                admin_password=os.getenv("AUTH_ADMIN_PASSWORD", "").strip(),
            ),
            cookies=CookieConfig(
                secure=app_env not in {"development", "local"},
                path=os.getenv("COOKIE_PATH", "/api/v1").strip() or "/api/v1",
                samesite=os.getenv("COOKIE_SAMESITE", "lax").strip().lower() or "lax",
            ),
            storage=StorageConfig(
                mongodb_uri=os.getenv("MONGODB_URI", "").strip(),
                mongodb_db=os.getenv("MONGODB_DB", "learnify").strip() or "learnify",
                redis_url=(
                    os.getenv("REDIS_URL", "").strip() or "redis://localhost:6379/0"
                ),
            ),
            email=EmailConfig(
                smtp_host=os.getenv("SMTP_HOST", "").strip(),
                smtp_port=int(os.getenv("SMTP_PORT", "587")),
                smtp_user=os.getenv("SMTP_USER", "").strip(),
                smtp_password=os.getenv("SMTP_PASSWORD", ""),
                smtp_use_tls=os.getenv("SMTP_USE_TLS", "1").strip().lower() in _TRUTHY,
                from_email=os.getenv("SMTP_FROM_EMAIL", "").strip(),
                from_name=os.getenv("SMTP_FROM_NAME", "Learnify").strip() or "Learnify",
            ),
            notifications=NotificationConfig(
                purge_interval_seconds=int(
                    os.getenv("NOTIFICATION_PURGE_INTERVAL_SECONDS", "86400")
                ),
                retention_days=int(os.getenv("NOTIFICATION_RETENTION_DAYS", "30")),
            ),
            logging=LoggingConfig(level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                request_max_bytes=int(
                    os.getenv("REQUEST_MAX_BYTES", str(50 * 1024 * 1024))
                ),
                login_rate_limit_max_attempts=int(
                    os.getenv("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", "5")
                ),
                login_rate_limit_window_seconds=int(
                    os.getenv("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "300")
                ),
                login_rate_limit_lock_seconds=int(
                    os.getenv("LOGIN_RATE_LIMIT_LOCK_SECONDS", "600")
                ),
            ),
        )
