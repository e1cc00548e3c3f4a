"""Request gates: cookie-based authentication and role authorization."""

from __future__ import annotations

from typing import Callable, Iterable

from fastapi import Depends, Request

from learnify.api.errors import AuthorizationError
from learnify.auth.models import Role, UserSnapshot
from learnify.auth.service import AuthService
from learnify.auth.tokens import ACCESS_COOKIE


def ensure_role_allowed(role: str, allowed: Iterable[str]) -> None:
    """Raise 403 unless ``role`` is one of ``allowed``."""
    if str(role) not in {str(item) for item in allowed}:
        raise AuthorizationError(
            f"Role {role} is not allowed to access this resource"
        )


class AuthGuard:
    """FastAPI dependencies that authenticate requests against the session cache."""

    def __init__(self, service: AuthService) -> None:
        self._service = service

    def current_user(self, request: Request) -> UserSnapshot:
        """Validate the access cookie and attach the cached user to the request."""
        user = self._service.verify_access_token(request.cookies.get(ACCESS_COOKIE))
        request.state.user = user
        return user

    def authorize_roles(self, *roles: Role | str) -> Callable[..., UserSnapshot]:
        """Build a dependency that admits only the given roles."""
        allowed = tuple(str(role) for role in roles)

        def check_role(user: UserSnapshot = Depends(self.current_user)) -> UserSnapshot:
            ensure_role_allowed(user.role, allowed)
            return user

        return check_role
