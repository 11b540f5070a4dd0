"""In-app notification inbox."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user
from backend.app.db import get_db
from backend.app.models.user import User
from backend.app.schemas.points import NotificationListResponse
from backend.app.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict:
    items = await notification_service.list_notifications(
        db, user.id, unread_only=unread_only, limit=limit
    )
    return {
        "notifications": items,
        "unread_count": await notification_service.unread_count(db, user.id),
    }


@router.post("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, int]:
    return {"marked": await notification_service.mark_all_read(db, user.id)}
