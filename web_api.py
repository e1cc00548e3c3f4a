from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnify.api.contracts import HealthResponse
from learnify.api.http_setup import register_exception_handlers, register_http_middleware
from learnify.auth.middleware import AuthGuard
from learnify.auth.rate_limiter import LoginRateLimiter
from learnify.auth.repository import UserRepository
from learnify.auth.router import create_auth_router
from learnify.auth.service import AuthService
from learnify.auth.sessions import SessionStore
from learnify.auth.tokens import TokenIssuer
from learnify.core.cache import create_redis_client, verify_redis_connection
from learnify.core.config import AppConfig
from learnify.core.logging import setup_logging
from learnify.core.mongo import apply_mongo_migrations, connect_mongo
from learnify.mail.service import EmailService
from learnify.notifications.purge import NotificationPurger, PurgeSettings
from learnify.notifications.repository import NotificationRepository
from learnify.notifications.router import create_notifications_router

load_dotenv()
APP_CONFIG = AppConfig.from_env()
setup_logging(APP_CONFIG.logging.level)
LOGGER = logging.getLogger(__name__)

APP_ROOT = Path(__file__).resolve().parent
API_PREFIX = "/api/v1"


def create_app(
    config: AppConfig = APP_CONFIG,
    *,
    app_root: Path = APP_ROOT,
    redis_client: Any = None,
    mongo_client: Any = None,
    email_service: EmailService | None = None,
) -> FastAPI:
    """Wire stores, services and routers; clients passed in are not re-created."""
    app = FastAPI(title="Learnify API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)

    if mongo_client is None:
        mongo_client = connect_mongo(config.storage)
    mongo_db = mongo_client[config.storage.mongodb_db] if mongo_client is not None else None
    if mongo_db is not None:
        apply_mongo_migrations(mongo_db)

    if redis_client is None:
        redis_client = create_redis_client(config.storage)
        verify_redis_connection(redis_client)

    sessions = SessionStore(redis_client, ttl_seconds=config.auth.session_ttl_seconds)
    tokens = TokenIssuer(config.auth, config.cookies, sessions)
    auth_service = AuthService(
        repo=UserRepository(app_root, db=mongo_db),
        sessions=sessions,
        tokens=tokens,
        mailer=email_service or EmailService(config.email),
        config=config.auth,
    )
    auth_service.bootstrap_admin_user()
    guard = AuthGuard(auth_service)
    login_rate_limiter = LoginRateLimiter(
        redis_client,
        max_attempts=config.security.login_rate_limit_max_attempts,
        window_seconds=config.security.login_rate_limit_window_seconds,
        lock_seconds=config.security.login_rate_limit_lock_seconds,
    )

    notifications_repo = NotificationRepository(app_root, db=mongo_db)
    purger = NotificationPurger(
        notifications_repo,
        PurgeSettings(
            interval_seconds=config.notifications.purge_interval_seconds,
            retention_days=config.notifications.retention_days,
        ),
    )

    app.include_router(
        create_auth_router(auth_service, guard, login_rate_limiter, prefix=API_PREFIX)
    )
    app.include_router(
        create_notifications_router(notifications_repo, guard, prefix=API_PREFIX)
    )

    @app.get(f"{API_PREFIX}/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.on_event("startup")
    async def startup_background_tasks() -> None:
        await purger.start()

    @app.on_event("shutdown")
    async def shutdown_resources() -> None:
        await purger.stop()
        redis_client.close()
        if mongo_client is not None:
            mongo_client.close()

    app.state.auth_service = auth_service
    app.state.notifications_repo = notifications_repo
    app.state.purger = purger
    return app


app = create_app()
