"""Notification service: inbox persistence and the queue delivery sink."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from taskedin.common.constants import NotificationType
from taskedin.database import async_session_factory
from taskedin.notifications.models import Notification
from taskedin.notifications.queue import NotificationItem

logger = logging.getLogger(__name__)


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        type: NotificationType = NotificationType.info,
        title: str,
        message: str,
    ) -> Notification:
        """Create a new notification and flush to DB."""
        notification = Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
        )
        db.add(notification)
        await db.flush()
        return notification


async def deliver_notification(item: NotificationItem) -> None:
    """Default worker sink: persist the item as an inbox notification.

    Runs in its own session, outside whichever transaction enqueued it.
    """
    async with async_session_factory() as session:
        await NotificationService.create_notification(
            session,
            recipient_id=item.user_id,
            type=item.kind,
            title=item.subject,
            message=item.body,
        )
        await session.commit()
    logger.debug("Delivered notification %r to user %s", item.subject, item.user_id)
