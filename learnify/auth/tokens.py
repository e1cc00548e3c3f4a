"""Token issuing, verification and session cookie handling."""

from __future__ import annotations

import time
import uuid
from typing import Any, Callable

from fastapi import Response
from pydantic import ValidationError as PydanticValidationError

from learnify.auth.models import (
    ActivationClaims,
    ActivationTicket,
    PendingRegistration,
    TokenPair,
    User,
)
from learnify.auth.sessions import SessionStore
from learnify.core.config import AuthConfig, CookieConfig
from learnify.core.security import (
    build_signed_token,
    decode_signed_token,
    generate_activation_code,
)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"
TOKEN_TYPE_ACTIVATION = "activation"


class TokenIssuer:
    """Signs access, refresh and activation tokens with per-class secrets."""

    def __init__(
        self,
        config: AuthConfig,
        cookies: CookieConfig,
        sessions: SessionStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if config.access_token_secret == config.refresh_token_secret:
            raise ValueError("Access and refresh token secrets must differ")
        self._config = config
        self._cookies = cookies
        self._sessions = sessions
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def _sign(self, claims: dict[str, Any], secret: str, ttl_seconds: int, now: int) -> str:
        payload = {
            **claims,
            "iss": self._config.issuer,
            "iat": now,
            "exp": now + ttl_seconds,
            "jti": uuid.uuid4().hex,
        }
        return build_signed_token(payload, secret)

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        """Verify signature, expiry, issuer and token class; ``ValueError`` otherwise."""
        payload = decode_signed_token(token, secret, now=self._now())
        if str(payload.get("iss") or "") != self._config.issuer:
            raise ValueError("Invalid token issuer")
        if str(payload.get("type") or "") != expected_type:
            raise ValueError("Invalid token type")
        return payload

    def issue_activation_token(self, pending: PendingRegistration) -> ActivationTicket:
        """Embed the pending registration and a fresh 4-digit code in a signed token."""
        code = generate_activation_code()
        token = self._sign(
            {
                "type": TOKEN_TYPE_ACTIVATION,
                "user": pending.model_dump(),
                "activation_code": code,
            },
            self._config.activation_token_secret,
            self._config.activation_token_ttl_seconds,
            self._now(),
        )
        return ActivationTicket(token=token, code=code)

    def decode_activation_token(self, token: str) -> ActivationClaims:
        """Return the registration embedded in a valid activation token."""
        payload = self._decode(
            token, self._config.activation_token_secret, TOKEN_TYPE_ACTIVATION
        )
        try:
            return ActivationClaims(
                pending=PendingRegistration.model_validate(payload.get("user")),
                activation_code=str(payload.get("activation_code") or ""),
            )
        except PydanticValidationError as exc:
            raise ValueError("Invalid activation payload") from exc

    def sign_session_tokens(self, user_id: str) -> TokenPair:
        """Sign a fresh access/refresh pair for the user id."""
        now = self._now()
        access_ttl = self._config.access_token_ttl_seconds
        refresh_ttl = self._config.refresh_token_ttl_seconds
        return TokenPair(
            access_token=self._sign(
                {"sub": user_id, "type": TOKEN_TYPE_ACCESS},
                self._config.access_token_secret,
                access_ttl,
                now,
            ),
            refresh_token=self._sign(
                {"sub": user_id, "type": TOKEN_TYPE_REFRESH},
                self._config.refresh_token_secret,
                refresh_ttl,
                now,
            ),
            access_expires_at=now + access_ttl,
            refresh_expires_at=now + refresh_ttl,
        )

    def issue_session_tokens(self, user: User) -> TokenPair:
        """Sign a token pair and store the user snapshot in the session cache."""
        pair = self.sign_session_tokens(user.user_id)
        self._sessions.save(user)
        return pair

    def decode_access_token(self, token: str) -> str:
        """Return the user id from a valid access token."""
        payload = self._decode(token, self._config.access_token_secret, TOKEN_TYPE_ACCESS)
        return str(payload.get("sub") or "")

    def decode_refresh_token(self, token: str) -> str:
        """Return the user id from a valid refresh token."""
        payload = self._decode(
            token, self._config.refresh_token_secret, TOKEN_TYPE_REFRESH
        )
        return str(payload.get("sub") or "")

    def set_session_cookies(self, response: Response, pair: TokenPair) -> None:
        """Write both token cookies with lifetimes matching the tokens."""
        self._set_cookie(
            response, ACCESS_COOKIE, pair.access_token,
            self._config.access_token_ttl_seconds,
        )
        self._set_cookie(
            response, REFRESH_COOKIE, pair.refresh_token,
            self._config.refresh_token_ttl_seconds,
        )

    def clear_session_cookies(self, response: Response) -> None:
        """Overwrite both token cookies with immediately expiring values."""
        self._set_cookie(response, ACCESS_COOKIE, "", 0)
        self._set_cookie(response, REFRESH_COOKIE, "", 0)

    def _set_cookie(self, response: Response, key: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key=key,
            value=value,
            max_age=max_age,
            path=self._cookies.path,
            secure=self._cookies.secure,
            httponly=True,
            samesite=self._cookies.samesite,
        )
