"""Authentication and account API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from learnify.api.contracts import (
    ApiErrorResponse,
    MessageResponse,
    RefreshResponse,
    RegistrationResponse,
    UserResponse,
    UsersListResponse,
)
from learnify.api.errors import ApiError
from learnify.auth.middleware import AuthGuard
from learnify.auth.models import (
    ActivationRequest,
    LoginRequest,
    RegistrationRequest,
    Role,
    SocialAuthRequest,
    UpdatePasswordRequest,
    UpdateRoleRequest,
    UpdateUserInfoRequest,
    UserSnapshot,
    snapshot_payload,
)
from learnify.auth.rate_limiter import LoginRateLimiter
from learnify.auth.service import AuthService
from learnify.auth.tokens import REFRESH_COOKIE

_ERRORS = {
    400: {"model": ApiErrorResponse},
    403: {"model": ApiErrorResponse},
}


def create_auth_router(
    service: AuthService,
    guard: AuthGuard,
    rate_limiter: LoginRateLimiter,
    *,
    prefix: str = "/api/v1",
) -> APIRouter:
    """Build router with registration, session and account endpoints."""
    router = APIRouter(prefix=prefix, tags=["auth"], responses=_ERRORS)
    tokens = service.tokens
    admin_only = guard.authorize_roles(Role.ADMIN)

    @router.post("/registration", status_code=201, response_model=RegistrationResponse)
    def registration(req: RegistrationRequest) -> RegistrationResponse:
        """Start registration; the activation code is sent by email."""
        ticket = service.register(req.name, req.email, req.password)
        return RegistrationResponse(
            message=f"Please check your email: {req.email} to activate your account!",
            activation_token=ticket.token,
        )

    @router.post("/activate-user", status_code=201, response_model=MessageResponse)
    def activate_user(req: ActivationRequest) -> MessageResponse:
        """Create the account once the emailed code is confirmed."""
        service.activate(req.activation_token, req.activation_code)
        return MessageResponse(message="Account activated")

    @router.post(
        "/login",
        response_model=UserResponse,
        responses={429: {"model": ApiErrorResponse}},
    )
    def login(req: LoginRequest, request: Request, response: Response) -> UserResponse:
        """Authenticate user and set session cookies."""
        client_ip = (request.client.host if request.client else "") or "unknown"
        rate_limiter.assert_allowed(email=req.email, client_ip=client_ip)
        try:
            session = service.login(req.email, req.password)
        except ApiError:
            rate_limiter.record_failure(email=req.email, client_ip=client_ip)
            raise
        rate_limiter.record_success(email=req.email, client_ip=client_ip)
        tokens.set_session_cookies(response, session.tokens)
        return UserResponse(user=snapshot_payload(session.user))

    @router.post("/social-auth", response_model=UserResponse)
    def social_auth(req: SocialAuthRequest, response: Response) -> UserResponse:
        """Sign in with externally verified social-login claims."""
        session = service.social_auth(req.email, req.name, req.avatar)
        tokens.set_session_cookies(response, session.tokens)
        return UserResponse(user=snapshot_payload(session.user))

    @router.get("/logout", response_model=MessageResponse)
    def logout(
        response: Response, user: UserSnapshot = Depends(guard.current_user)
    ) -> MessageResponse:
        """Clear cookies and drop the cached session."""
        service.logout(user.user_id)
        tokens.clear_session_cookies(response)
        return MessageResponse(message="Logged out successfully")

    @router.get("/refresh", response_model=RefreshResponse)
    def refresh(request: Request, response: Response) -> RefreshResponse:
        """Rotate both session cookies using the refresh cookie."""
        pair = service.refresh(request.cookies.get(REFRESH_COOKIE))
        tokens.set_session_cookies(response, pair)
        return RefreshResponse(access_token=pair.access_token)

    @router.get("/me", response_model=UserResponse)
    def me(user: UserSnapshot = Depends(guard.current_user)) -> UserResponse:
        """Return the cached profile of the current user."""
        return UserResponse(user=snapshot_payload(service.get_me(user.user_id)))

    @router.put("/update-user-info", response_model=UserResponse)
    def update_user_info(
        req: UpdateUserInfoRequest, user: UserSnapshot = Depends(guard.current_user)
    ) -> UserResponse:
        updated = service.update_user_info(user.user_id, name=req.name, email=req.email)
        return UserResponse(user=snapshot_payload(updated))

    @router.put("/update-user-password", response_model=UserResponse)
    def update_user_password(
        req: UpdatePasswordRequest, user: UserSnapshot = Depends(guard.current_user)
    ) -> UserResponse:
        updated = service.update_password(
            user.user_id, old_password=req.old_password, new_password=req.new_password
        )
        return UserResponse(user=snapshot_payload(updated))

    @router.get("/get-users", response_model=UsersListResponse)
    def get_users(_admin: UserSnapshot = Depends(admin_only)) -> UsersListResponse:
        """List all users (admin only)."""
        return UsersListResponse(
            users=[snapshot_payload(item) for item in service.list_users()]
        )

    @router.put("/update-user", response_model=UserResponse)
    def update_user_role(
        req: UpdateRoleRequest, _admin: UserSnapshot = Depends(admin_only)
    ) -> UserResponse:
        """Change a user's role (admin only)."""
        updated = service.update_user_role(req.user_id, req.role)
        return UserResponse(user=snapshot_payload(updated))

    @router.delete(
        "/delete-user/{user_id}",
        response_model=MessageResponse,
        responses={404: {"model": ApiErrorResponse}},
    )
    def delete_user(
        user_id: str, _admin: UserSnapshot = Depends(admin_only)
    ) -> MessageResponse:
        """Delete a user and their session (admin only)."""
        service.delete_user(user_id)
        return MessageResponse(message="User deleted successfully")

    return router
