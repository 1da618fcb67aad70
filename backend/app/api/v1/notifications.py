"""
Quiz Platform - Notification API Routes
"""
from typing import Annotated

from fastapi import APIRouter, Query

from app.api.deps import CurrentIdentity, DbSession
from app.schemas.common import Envelope
from app.schemas.notification import MarkReadOut, MarkReadRequest, NotificationOut
from app.services.notification import NOTIFICATION_LIST_LIMIT, NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "",
    response_model=Envelope[list[NotificationOut]],
    summary="List my notifications",
)
async def list_notifications(
    identity: CurrentIdentity,
    db: DbSession,
    unread: bool = False,
    limit: Annotated[int, Query(ge=1, le=NOTIFICATION_LIST_LIMIT)] = 50,
):
    notifications = await NotificationService(db).list_for(identity, unread, limit)
    return Envelope(data=[NotificationOut.model_validate(n) for n in notifications])


@router.post(
    "/mark-read",
    response_model=Envelope[MarkReadOut],
    summary="Mark notifications as read",
    description="Marks the listed ids, or every unread notification when no ids are given.",
)
async def mark_read(
    identity: CurrentIdentity,
    db: DbSession,
    body: MarkReadRequest | None = None,
):
    ids = body.notification_ids if body else None
    updated = await NotificationService(db).mark_read(identity, ids)
    return Envelope(data=MarkReadOut(updated=updated), message="Notifications marked as read")
