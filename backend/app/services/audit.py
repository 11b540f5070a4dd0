"""Audit logging for ideas, reviews and engagement.

Entries are written inside a SAVEPOINT on the caller's session: a failed audit
write is logged and rolled back on its own, and the state change that
triggered it still commits.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.models.audit import AuditLog

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Idea lifecycle
    CREATE = "create"
    UPDATE = "update"
    STATUS_CHANGE = "status_change"
    REVIEW_SUBMITTED = "review_submitted"

    # Challenge submissions
    CHALLENGE_REVIEW_SUBMITTED = "challenge_review_submitted"
    CHALLENGE_STATUS_CHANGE = "challenge_status_change"

    # Versions
    VERSION_CREATED = "version_created"
    VERSION_RESTORED = "version_restored"

    # Collaboration
    COLLABORATION_INVITED = "collaboration_invited"
    COLLABORATION_RESPONDED = "collaboration_responded"
    COLLABORATION_REMOVED = "collaboration_removed"

    # Engagement
    COMMENT_ADDED = "comment_added"
    COMMENT_UPDATED = "comment_updated"
    COMMENT_DELETED = "comment_deleted"
    SUGGESTION_ADDED = "suggestion_added"
    SUGGESTION_STATUS_CHANGE = "suggestion_status_change"


@asynccontextmanager
async def best_effort(db: AsyncSession, what: str) -> AsyncIterator[None]:
    """Run a side-channel write in a SAVEPOINT and never let it fail the caller.

    Pending primary changes are flushed first, outside the guarded block, so an
    error in them still propagates.
    """
    await db.flush()
    try:
        async with db.begin_nested():
            yield
    except Exception:
        logger.exception("%s failed; continuing without it", what)


class AuditLogger:
    """Writes ``AuditLog`` rows for state changes."""

    async def log(
        self,
        db: AsyncSession,
        action: AuditAction,
        entity_type: str,
        entity_id: str | None,
        *,
        user_id: str | None = None,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> None:
        async with best_effort(db, f"Audit log for {action.value} on {entity_type}"):
            db.add(
                AuditLog(
                    id=new_id(),
                    user_id=user_id,
                    action=action.value,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    old_values=before,
                    new_values=after,
                    created_at=utcnow(),
                )
            )
        logger.debug(
            "Audit: %s %s/%s by %s", action.value, entity_type, entity_id, user_id or "system"
        )

    async def trail(
        self, db: AsyncSession, entity_type: str, entity_id: str, limit: int = 50
    ) -> list[AuditLog]:
        """Most recent audit entries for one entity."""
        result = await db.execute(
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(desc(AuditLog.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())


audit_logger = AuditLogger()
