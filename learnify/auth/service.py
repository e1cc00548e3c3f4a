"""Authentication service: activation, login, session refresh and accounts."""

from __future__ import annotations

import hmac
import logging
import time
import uuid

from learnify.api.errors import (
    ApiErrorCode,
    AuthenticationError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from learnify.auth.models import (
    ActivationTicket,
    AuthSession,
    AvatarRef,
    PendingRegistration,
    Role,
    TokenPair,
    User,
    UserSnapshot,
)
from learnify.auth.repository import EmailTakenError, UserRepository
from learnify.auth.sessions import SessionStore
from learnify.auth.tokens import TokenIssuer
from learnify.core.config import AuthConfig
from learnify.core.security import TokenExpiredError, hash_password, verify_password
from learnify.mail.service import EmailDeliveryError, EmailService

LOGGER = logging.getLogger(__name__)

REFRESH_FAILED_MESSAGE = "Could not refresh token"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
EMAIL_EXISTS_MESSAGE = "Email already exists"


class AuthService:
    """Authentication domain service.

    The request path (``verify_access_token``, ``refresh``) reads only the
    session cache; the credential store is consulted for login, activation
    and account changes.
    """

    def __init__(
        self,
        *,
        repo: UserRepository,
        sessions: SessionStore,
        tokens: TokenIssuer,
        mailer: EmailService,
        config: AuthConfig,
    ) -> None:
        """Initialize service dependencies."""
        self._repo = repo
        self._sessions = sessions
        self._tokens = tokens
        self._mailer = mailer
        self._config = config

    @property
    def tokens(self) -> TokenIssuer:
        return self._tokens

    def bootstrap_admin_user(self) -> None:
        """Ensure the configured bootstrap admin exists."""
        if not self._config.admin_email or not self._config.admin_password:
            return
        if self._repo.email_exists(self._config.admin_email):
            return
        now = int(time.time())
        self._repo.create_user(
            User(
                user_id=uuid.uuid4().hex,
                name="Administrator",
                email=self._config.admin_email,
                password_hash=hash_password(self._config.admin_password),
                role=Role.ADMIN,
                is_verified=True,
                created_at=now,
                updated_at=now,
            )
        )
        LOGGER.info("admin_bootstrapped")

    # Activation

    def register(self, name: str, email: str, password: str) -> ActivationTicket:
        """Issue an activation token for a new registration and email its code."""
        if self._repo.email_exists(email):
            raise ValidationError(EMAIL_EXISTS_MESSAGE, ApiErrorCode.EMAIL_EXISTS)

        pending = PendingRegistration(
            name=name, email=email, password_hash=hash_password(password)
        )
        ticket = self._tokens.issue_activation_token(pending)
        try:
            self._mailer.send_activation_email(
                email,
                name=name,
                code=ticket.code,
                expires_in_seconds=self._config.activation_token_ttl_seconds,
            )
        except EmailDeliveryError as exc:
            raise InternalError(
                "Could not send activation email",
                ApiErrorCode.EMAIL_DELIVERY_FAILED,
            ) from exc
        LOGGER.info("user_registered")
        return ticket

    def activate(self, activation_token: str, activation_code: str) -> UserSnapshot:
        """Create the user embedded in a valid token whose code matches."""
        try:
            claims = self._tokens.decode_activation_token(activation_token)
        except ValueError as exc:
            raise AuthenticationError(ApiErrorCode.INVALID_TOKEN, str(exc)) from exc

        if not hmac.compare_digest(
            claims.activation_code.encode("utf-8"),
            activation_code.strip().encode("utf-8"),
        ):
            raise AuthenticationError(
                ApiErrorCode.INVALID_ACTIVATION_CODE, "Invalid activation code"
            )

        pending = claims.pending
        if self._repo.email_exists(pending.email):
            raise ValidationError(EMAIL_EXISTS_MESSAGE, ApiErrorCode.EMAIL_EXISTS)

        now = int(time.time())
        user = self._create_user(
            User(
                user_id=uuid.uuid4().hex,
                name=pending.name,
                email=pending.email,
                password_hash=pending.password_hash,
                role=Role.USER,
                is_verified=True,
                created_at=now,
                updated_at=now,
            )
        )
        LOGGER.info("user_activated", extra={"user_id": user.user_id})
        return user.to_snapshot()

    def _create_user(self, user: User) -> User:
        try:
            return self._repo.create_user(user)
        except EmailTakenError as exc:
            raise ValidationError(
                EMAIL_EXISTS_MESSAGE, ApiErrorCode.EMAIL_EXISTS
            ) from exc

    # Sessions

    def login(self, email: str, password: str) -> AuthSession:
        """Check credentials and open a session."""
        user = self._repo.get_user_by_email(email, include_password=True)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError(
                ApiErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE
            )
        session = self._open_session(user)
        LOGGER.info("user_logged_in", extra={"user_id": user.user_id})
        return session

    def social_auth(self, email: str, name: str, avatar: str = "") -> AuthSession:
        """Open a session from externally verified social-login claims."""
        user = self._repo.get_user_by_email(email)
        if user is None:
            now = int(time.time())
            user = self._create_user(
                User(
                    user_id=uuid.uuid4().hex,
                    name=name,
                    email=email,
                    avatar=AvatarRef(url=avatar) if avatar else None,
                    role=Role.USER,
                    is_verified=True,
                    created_at=now,
                    updated_at=now,
                )
            )
            LOGGER.info("social_user_created", extra={"user_id": user.user_id})
        return self._open_session(user)

    def _open_session(self, user: User) -> AuthSession:
        tokens = self._tokens.issue_session_tokens(user)
        return AuthSession(user=user.to_snapshot(), tokens=tokens)

    def verify_access_token(self, token: str | None) -> UserSnapshot:
        """Resolve an access token to the cached identity."""
        if not token:
            raise AuthenticationError(
                ApiErrorCode.UNAUTHENTICATED,
                "Please login to access this resource",
            )
        try:
            user_id = self._tokens.decode_access_token(token)
        except ValueError as exc:
            raise AuthenticationError(
                ApiErrorCode.INVALID_TOKEN, "Access token is not valid"
            ) from exc

        snapshot = self._sessions.load(user_id)
        if snapshot is None:
            raise AuthenticationError(
                ApiErrorCode.SESSION_EXPIRED, "Session expired, please login again"
            )
        return snapshot

    def refresh(self, refresh_token: str | None) -> TokenPair:
        """Exchange a refresh token for a new pair while the session is live.

        Every failure carries the same message. No lock is taken, so two
        concurrent refreshes for one user both succeed with distinct pairs.
        """
        if not refresh_token:
            raise self._refresh_failed("missing_token")
        try:
            user_id = self._tokens.decode_refresh_token(refresh_token)
        except TokenExpiredError:
            raise self._refresh_failed("expired_token") from None
        except ValueError:
            raise self._refresh_failed("invalid_token") from None

        if self._sessions.load(user_id) is None:
            raise self._refresh_failed("no_session", user_id)

        pair = self._tokens.sign_session_tokens(user_id)
        self._sessions.touch(user_id)
        LOGGER.info("session_refreshed", extra={"user_id": user_id})
        return pair

    @staticmethod
    def _refresh_failed(reason: str, user_id: str = "") -> AuthenticationError:
        LOGGER.info("refresh_rejected: %s", reason, extra={"user_id": user_id})
        return AuthenticationError(ApiErrorCode.REFRESH_FAILED, REFRESH_FAILED_MESSAGE)

    def logout(self, user_id: str) -> None:
        """Drop the session entry so outstanding tokens stop working."""
        self._sessions.delete(user_id)
        LOGGER.info("user_logged_out", extra={"user_id": user_id})

    def get_me(self, user_id: str) -> UserSnapshot:
        """Return the cached profile for the current user."""
        snapshot = self._sessions.load(user_id)
        if snapshot is None:
            raise AuthenticationError(
                ApiErrorCode.SESSION_EXPIRED, "Session expired, please login again"
            )
        return snapshot

    # Account changes

    def update_user_info(
        self, user_id: str, *, name: str | None = None, email: str | None = None
    ) -> UserSnapshot:
        """Update name/email and refresh the cached snapshot."""
        fields: dict[str, object] = {}
        if email is not None:
            owner = self._repo.get_user_by_email(email)
            if owner is not None and owner.user_id != user_id:
                raise ValidationError(EMAIL_EXISTS_MESSAGE, ApiErrorCode.EMAIL_EXISTS)
            fields["email"] = email
        if name is not None:
            fields["name"] = name
        fields["updated_at"] = int(time.time())

        try:
            user = self._repo.update_user(user_id, fields)
        except EmailTakenError as exc:
            raise ValidationError(
                EMAIL_EXISTS_MESSAGE, ApiErrorCode.EMAIL_EXISTS
            ) from exc
        if user is None:
            raise NotFoundError(ApiErrorCode.USER_NOT_FOUND, "User not found")
        return self._sessions.save(user)

    def update_password(
        self, user_id: str, *, old_password: str, new_password: str
    ) -> UserSnapshot:
        """Change the password after verifying the old one."""
        user = self._repo.get_user_by_id(user_id, include_password=True)
        if user is None:
            raise NotFoundError(ApiErrorCode.USER_NOT_FOUND, "User not found")
        if not user.password_hash:
            raise ValidationError("Account has no password; sign in with your provider")
        if not verify_password(old_password, user.password_hash):
            raise AuthenticationError(
                ApiErrorCode.INVALID_CREDENTIALS, "Invalid old password"
            )

        updated = self._repo.update_user(
            user_id,
            {"password_hash": hash_password(new_password), "updated_at": int(time.time())},
        )
        if updated is None:
            raise NotFoundError(ApiErrorCode.USER_NOT_FOUND, "User not found")
        LOGGER.info("password_changed", extra={"user_id": user_id})
        return self._sessions.save(updated)

    def list_users(self) -> list[UserSnapshot]:
        """Return every user, newest first."""
        return [user.to_snapshot() for user in self._repo.list_users()]

    def update_user_role(self, user_id: str, role: Role) -> UserSnapshot:
        """Persist a role change and apply it to a live session, if any."""
        user = self._repo.update_user(
            user_id, {"role": role.value, "updated_at": int(time.time())}
        )
        if user is None:
            raise NotFoundError(ApiErrorCode.USER_NOT_FOUND, "User not found")
        self._sessions.replace_if_present(user)
        LOGGER.info("user_role_updated", extra={"user_id": user_id})
        return user.to_snapshot()

    def delete_user(self, user_id: str) -> None:
        """Delete the account and its session entry."""
        if not self._repo.delete_user(user_id):
            raise NotFoundError(ApiErrorCode.USER_NOT_FOUND, "User not found")
        self._sessions.delete(user_id)
        LOGGER.info("user_deleted", extra={"user_id": user_id})
