"""Notification writes, maintenance and read paths."""

import logging
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFound
from ..models import Notification, NotificationType
from .audit_service import AuditService

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Service for user notifications.

    Bound to the session of the caller's unit of work; it flushes but never
    commits, so a notification is only visible once the surrounding
    transaction commits.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def enqueue(
        self,
        user_id: Optional[int],
        title: str,
        message: str,
        type: NotificationType,
        admin_id: Optional[int] = None,
        link: Optional[str] = None,
    ) -> Notification:
        """
        Add a notification for ``user_id`` (``None`` broadcasts to everyone).

        Raises nothing itself; a missing recipient surfaces from the flush as
        a foreign-key violation.
        """
        notification = Notification(
            user_id=user_id,
            admin_id=admin_id,
            title=title,
            message=message,
            type=NotificationType(type).value,
            link=link,
            is_read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        await self.db.refresh(notification)

        logger.info(
            "Notification enqueued",
            extra={
                "notification_id": notification.id,
                "user_id": user_id,
                "type": notification.type,
            }
        )
        return notification

    async def create_notification(
        self,
        admin_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        user_id: Optional[int] = None,
        link: Optional[str] = None,
    ) -> Notification:
        """
        Admin-authored notification, audited in the same unit of work.

        Args:
            admin_id: Authoring administrator
            title: Notification title
            message: Notification body
            type: Notification type
            user_id: Recipient, or None to broadcast
            link: Optional link shown with the notification

        Returns:
            The pending Notification row
        """
        notification = await self.enqueue(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            admin_id=admin_id,
            link=link,
        )
        await AuditService(self.db).record(
            admin_id=admin_id,
            action="create_notification",
            entity_type="notification",
            entity_id=notification.id,
            details={
                "title": title,
                "type": notification.type,
                "user_id": user_id,
                "broadcast": user_id is None,
            },
        )
        return notification

    async def mark_as_read(self, notification_id: int, user_id: int) -> Notification:
        """
        Mark a notification read on behalf of its recipient.

        Raises:
            NotFound: If the notification does not exist or is addressed to another user
        """
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                or_(Notification.user_id == user_id, Notification.user_id.is_(None)),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("notification", notification_id)

        notification = await self.db.get(Notification, notification_id, populate_existing=True)
        return notification

    async def get_user_notifications(self, user_id: int, limit: int = 50) -> list[Notification]:
        """The user's own notifications plus broadcasts, newest first."""
        result = await self.db.execute(
            select(Notification)
            .where(or_(Notification.user_id == user_id, Notification.user_id.is_(None)))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

