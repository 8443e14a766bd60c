"""Support endpoints for the notification outbox."""

from datetime import datetime

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.notifications.outbox import OutboundNotification, replay_failed
from marketplace.ordering.api.schemas import ApiModel
from marketplace.shared.auth import admin_only

notification_router = APIRouter(prefix="/notifications", tags=["notifications"], dependencies=[Depends(admin_only)])


class NotificationResponse(ApiModel):
    id: str
    kind: str
    order_id: str
    status: str
    attempts: int
    last_error: str | None = None
    created_at: datetime | None = None


class ReplayResponse(ApiModel):
    delivered: int
    still_failed: int


@notification_router.get("/failed", response_model=list[NotificationResponse])
async def failed_notifications() -> list[NotificationResponse]:
    return [
        NotificationResponse(
            id=str(n.id),
            kind=n.kind,
            order_id=str(n.order_id),
            status=n.status,
            attempts=n.attempts,
            last_error=n.last_error,
            created_at=n.created_at,
        )
        for n in current_domain.repository_for(OutboundNotification).find_failed()
    ]


@notification_router.post("/replay", response_model=ReplayResponse)
async def replay() -> ReplayResponse:
    delivered = replay_failed()
    remaining = current_domain.repository_for(OutboundNotification).find_failed()
    return ReplayResponse(delivered=delivered, still_failed=len(remaining))
