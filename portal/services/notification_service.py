"""
Notification Service
Creates in-app notifications and manages their read state
"""

from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.core.exceptions import NotificationNotFoundError
from portal.models.notification import Notification, NotificationType


class NotificationService:
    """Service for notification operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def notify(
        self,
        user_id: str,
        type: NotificationType,
        message: str,
        project_id: Optional[str] = None
    ) -> Notification:
        """Stage a notification in the caller's transaction. Does not commit."""
        notification = Notification(
            user_id=user_id,
            project_id=project_id,
            type=type,
            message=message,
            read=False,
        )
        self.db.add(notification)
        return notification

    async def list_for_user(self, user_id: str) -> List[Notification]:
        result = await self.db.execute(
            select(Notification)
            .options(selectinload(Notification.project))
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().all())

    async def mark_read(self, user_id: str, notification_id: str) -> Notification:
        """Mark one notification read; someone else's notification counts as missing"""
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotificationNotFoundError(notification_id)

        notification.read = True
        await self.db.commit()
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification read and return how many changed"""
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
            .values(read=True)
        )
        await self.db.commit()
        return result.rowcount or 0
