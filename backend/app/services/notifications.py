"""In-app notifications.

Delivery is best-effort: notifications share the caller's transaction but are
written in a SAVEPOINT, so a failure never blocks the action that caused it.
"""

import logging
from collections.abc import Iterable
from enum import Enum

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.models.audit import Notification
from backend.app.models.user import Role, User
from backend.app.services.audit import best_effort

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    STATUS_CHANGE = "status_change"
    REVIEW_ASSIGNED = "review_assigned"
    COLLABORATION_INVITATION = "collaboration_invitation"
    COLLABORATION_RESPONSE = "collaboration_response"
    COLLABORATION_REMOVED = "collaboration_removed"
    NEW_COMMENT = "new_comment"
    NEW_SUGGESTION = "new_suggestion"
    SUGGESTION_STATUS = "suggestion_status"
    POINTS_AWARDED = "points_awarded"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"


async def notify(
    db: AsyncSession,
    user_ids: str | Iterable[str],
    notification_type: NotificationType,
    title: str,
    message: str,
    *,
    related_type: str | None = None,
    related_id: str | None = None,
) -> None:
    """Queue a notification for one or more users."""
    recipients = [user_ids] if isinstance(user_ids, str) else list(dict.fromkeys(user_ids))
    if not recipients:
        return

    async with best_effort(db, f"Notification {notification_type.value}"):
        now = utcnow()
        for user_id in recipients:
            db.add(
                Notification(
                    id=new_id(),
                    user_id=user_id,
                    type=notification_type.value,
                    title=title,
                    message=message,
                    related_type=related_type,
                    related_id=related_id,
                    created_at=now,
                )
            )
    logger.debug("Notified %d user(s): %s", len(recipients), notification_type.value)


async def users_with_roles(db: AsyncSession, *roles: Role) -> list[User]:
    # Roles live in a JSON column; filter in Python to stay backend-agnostic
    result = await db.execute(select(User).order_by(User.name))
    return [user for user in result.scalars().all() if user.has_any_role(*roles)]


async def list_notifications(
    db: AsyncSession, user_id: str, *, unread_only: bool = False, limit: int = 20
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read_at.is_(None))
    result = await db.execute(query.order_by(desc(Notification.created_at)).limit(limit))
    return list(result.scalars().all())


async def unread_count(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
    )
    return result.scalar_one()


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
        .values(read_at=utcnow())
    )
    return result.rowcount or 0
