from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional, Protocol

from coursehub.models.notification import Notification


class NotificationSink(Protocol):
    async def notify(
        self,
        user_id: int,
        kind: str,
        title: str,
        message: str,
        related_id: Optional[str] = None
    ) -> None:
        ...


class DatabaseNotificationSink:
    """Stores notifications in the caller's session; the caller commits"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        user_id: int,
        kind: str,
        title: str,
        message: str,
        related_id: Optional[str] = None
    ) -> None:
        self.db.add(Notification(
            user_id=user_id,
            type=kind,
            title=title,
            message=message,
            related_id=related_id
        ))


async def get_notifications(db: AsyncSession, user_id: int, limit: int = 50) -> List[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
