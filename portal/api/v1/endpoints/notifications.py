from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from portal.core.database import get_db
from portal.models.user import User
from portal.modules.auth.dependencies import get_current_user
from portal.schemas.notification import NotificationOut, NotificationWithProject, ReadAllResponse
from portal.services.notification_service import NotificationService


router = APIRouter()


@router.get("", response_model=List[NotificationWithProject])
async def list_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Caller's notifications, newest first"""
    return await NotificationService(db).list_for_user(current_user.id)


# Declared before /{notification_id}/read so "read-all" is not taken for an id
@router.put("/read-all", response_model=ReadAllResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await NotificationService(db).mark_all_read(current_user.id)
    return ReadAllResponse(message="All notifications marked as read", count=count)


@router.put("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await NotificationService(db).mark_read(current_user.id, notification_id)
