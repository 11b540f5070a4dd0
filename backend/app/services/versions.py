"""Idea version snapshots.

Each idea carries a numbered history of its editable fields. Exactly one
version per idea is flagged ``is_current`` after any create or restore.
"""

import logging

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.errors import AuthorizationError, StateConflictError, ValidationError
from backend.app.models.category import Category
from backend.app.models.idea import Idea, IdeaVersion
from backend.app.models.user import User
from backend.app.services.audit import AuditAction, audit_logger
from backend.app.services.authorization import AuthorizationPolicy, default_policy
from backend.app.services.common import get_or_raise

logger = logging.getLogger(__name__)


async def _clear_current(db: AsyncSession, idea_id: str) -> None:
    await db.execute(
        update(IdeaVersion).where(IdeaVersion.idea_id == idea_id).values(is_current=False)
    )


async def create_version(
    db: AsyncSession, idea_id: str, created_by: str, note: str | None = None
) -> IdeaVersion:
    """Snapshot the idea's current title/description/category as the next version."""
    # Locking the idea serialises version numbering per idea
    idea = await get_or_raise(db, Idea, idea_id, "Idea", for_update=True)

    result = await db.execute(
        select(func.max(IdeaVersion.version_number)).where(IdeaVersion.idea_id == idea.id)
    )
    number = (result.scalar_one_or_none() or 0) + 1

    await _clear_current(db, idea.id)
    version = IdeaVersion(
        id=new_id(),
        idea_id=idea.id,
        version_number=number,
        title=idea.title,
        description=idea.description,
        category_id=idea.category_id,
        notes=note,
        is_current=True,
        created_by=created_by,
        created_at=utcnow(),
    )
    db.add(version)
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.VERSION_CREATED,
        "idea",
        idea.id,
        user_id=created_by,
        after={"version_number": number, "notes": note},
    )
    logger.info("Idea %s: created version %d", idea.id, number)
    return version


async def snapshot_idea(
    db: AsyncSession,
    idea_id: str,
    actor: User,
    note: str | None = None,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> IdeaVersion:
    """Explicit "save a version" by the author, outside of an edit."""
    idea = await get_or_raise(db, Idea, idea_id, "Idea")
    if not policy.can_edit_idea(actor, idea):
        raise AuthorizationError("Only the idea's author can save a version")
    return await create_version(db, idea.id, actor.id, (note or "").strip() or None)


async def restore_version(
    db: AsyncSession,
    version_id: str,
    actor: User,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Idea:
    """Copy a version's snapshot back onto its idea and mark that version current.

    The restored row itself becomes current; no new version row is written.
    """
    version = await get_or_raise(db, IdeaVersion, version_id, "Version")
    idea = await get_or_raise(db, Idea, version.idea_id, "Idea", for_update=True)

    if not policy.can_edit_idea(actor, idea):
        raise AuthorizationError("Only the idea's author can restore a version")
    if not idea.is_draft:
        raise StateConflictError(
            f"Ideas in stage {idea.current_stage} are read-only and cannot be restored"
        )

    before = {
        "title": idea.title,
        "description": idea.description,
        "category_id": idea.category_id,
    }
    idea.title = version.title
    idea.description = version.description
    idea.category_id = version.category_id

    await _clear_current(db, idea.id)
    version.is_current = True
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.VERSION_RESTORED,
        "idea",
        idea.id,
        user_id=actor.id,
        before=before,
        after={
            "title": idea.title,
            "description": idea.description,
            "category_id": idea.category_id,
            "version_number": version.version_number,
        },
    )
    logger.info("Idea %s: restored version %d", idea.id, version.version_number)
    return idea


async def list_versions(db: AsyncSession, idea_id: str) -> list[IdeaVersion]:
    await get_or_raise(db, Idea, idea_id, "Idea")
    result = await db.execute(
        select(IdeaVersion)
        .where(IdeaVersion.idea_id == idea_id)
        .order_by(desc(IdeaVersion.version_number))
    )
    return list(result.scalars().all())


async def current_version(db: AsyncSession, idea_id: str) -> IdeaVersion | None:
    result = await db.execute(
        select(IdeaVersion).where(IdeaVersion.idea_id == idea_id, IdeaVersion.is_current.is_(True))
    )
    return result.scalar_one_or_none()


async def _category_name(db: AsyncSession, category_id: str | None) -> str | None:
    if category_id is None:
        return None
    result = await db.execute(select(Category.name).where(Category.id == category_id))
    return result.scalar_one_or_none() or "Unknown"


async def compare_versions(
    db: AsyncSession, old_version_id: str, new_version_id: str
) -> dict[str, dict[str, str | None]]:
    """Field-by-field differences between two versions of the same idea.

    Returns ``{field: {"old": ..., "new": ...}}`` for each of title, description
    and category that differs; categories are reported by name.
    """
    old = await get_or_raise(db, IdeaVersion, old_version_id, "Version")
    new = await get_or_raise(db, IdeaVersion, new_version_id, "Version")
    if old.idea_id != new.idea_id:
        raise ValidationError("Versions belong to different ideas")

    differences: dict[str, dict[str, str | None]] = {}
    if old.title != new.title:
        differences["title"] = {"old": old.title, "new": new.title}
    if old.description != new.description:
        differences["description"] = {"old": old.description, "new": new.description}
    if old.category_id != new.category_id:
        differences["category"] = {
            "old": await _category_name(db, old.category_id),
            "new": await _category_name(db, new.category_id),
        }
    return differences
