from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from coursehub.database import get_db
from coursehub.models.user import User
from coursehub.routes.deps import get_current_user
from coursehub.schemas.notification import NotificationResponse
from coursehub.services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationResponse])
async def my_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await notification_service.get_notifications(db, user.id)
