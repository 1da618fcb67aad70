"""
Quiz Platform - Notification Service
"""
import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import Identity
from app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

NOTIFICATION_LIST_LIMIT = 200


class NotificationService:
    """Create-only sink plus the owner's read/mark-read views."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: uuid.UUID,
        type: NotificationType,
        title: str,
        body: str,
        meta: dict | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type.value,
            title=title,
            body=body,
            meta=meta or {},
        )
        self.db.add(notification)
        await self.db.flush()
        logger.debug("Notification %s (%s) for user %s", notification.id, type.value, user_id)
        return notification

    async def list_for(self, identity: Identity, unread: bool = False, limit: int = 50) -> list[Notification]:
        query = select(Notification).where(Notification.user_id == identity.user_id)
        if unread:
            query = query.where(Notification.is_read.is_(False))
        result = await self.db.execute(
            query.order_by(Notification.created_at.desc()).limit(min(limit, NOTIFICATION_LIST_LIMIT))
        )
        return list(result.scalars().all())

    async def mark_read(self, identity: Identity, notification_ids: list[uuid.UUID] | None = None) -> int:
        """Mark the given ids (only the caller's own) or every unread notification as read."""
        stmt = update(Notification).where(
            Notification.user_id == identity.user_id,
            Notification.is_read.is_(False),
        )
        if notification_ids is not None:
            stmt = stmt.where(Notification.id.in_(notification_ids))
        result = await self.db.execute(
            stmt.values(is_read=True).execution_options(synchronize_session=False)
        )
        return result.rowcount
