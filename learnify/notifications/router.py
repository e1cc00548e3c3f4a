"""Admin notification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from learnify.api.contracts import ApiErrorResponse, NotificationsListResponse
from learnify.api.errors import ApiErrorCode, NotFoundError
from learnify.auth.middleware import AuthGuard
from learnify.auth.models import Role, UserSnapshot
from learnify.notifications.repository import NotificationRepository


def create_notifications_router(
    repo: NotificationRepository, guard: AuthGuard, *, prefix: str = "/api/v1"
) -> APIRouter:
    """Build router exposing notification listing and read marking to admins."""
    router = APIRouter(
        prefix=prefix,
        tags=["notifications"],
        responses={400: {"model": ApiErrorResponse}, 403: {"model": ApiErrorResponse}},
    )
    admin_only = guard.authorize_roles(Role.ADMIN)

    def _listing() -> NotificationsListResponse:
        return NotificationsListResponse(
            notifications=[item.model_dump(mode="json") for item in repo.list_all()]
        )

    @router.get("/get-all-notifications", response_model=NotificationsListResponse)
    def get_notifications(
        _admin: UserSnapshot = Depends(admin_only),
    ) -> NotificationsListResponse:
        """List all notifications, newest first."""
        return _listing()

    @router.put(
        "/update-notification/{notification_id}",
        response_model=NotificationsListResponse,
        responses={404: {"model": ApiErrorResponse}},
    )
    def update_notification(
        notification_id: str, _admin: UserSnapshot = Depends(admin_only)
    ) -> NotificationsListResponse:
        """Mark a notification as read and return the refreshed listing."""
        if repo.mark_read(notification_id) is None:
            raise NotFoundError(
                ApiErrorCode.NOTIFICATION_NOT_FOUND, "Notification not found"
            )
        return _listing()

    return router
