"""Idea authoring: drafts, edits and the first steps of the stage pipeline.

Reviews and everything from ``manager_review`` on live in ``reviews.py``.
"""

import logging

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.errors import AuthorizationError, StateConflictError, ValidationError
from backend.app.models.category import Category
from backend.app.models.idea import ChallengeStatus, ChallengeSubmission, Idea, Stage
from backend.app.models.user import Role, User
from backend.app.services import gamification
from backend.app.services.audit import AuditAction, audit_logger
from backend.app.services.authorization import AuthorizationPolicy, default_policy
from backend.app.services.common import clean_text, get_or_raise
from backend.app.services.notifications import NotificationType, notify, users_with_roles
from backend.app.services.stages import as_stage, ensure_transition
from backend.app.services.versions import create_version

logger = logging.getLogger(__name__)

TITLE_LIMITS = (5, 200)
DESCRIPTION_LIMITS = (20, 10_000)


def _snapshot(idea: Idea) -> dict[str, str | None]:
    return {"title": idea.title, "description": idea.description, "category_id": idea.category_id}


async def _ensure_category(db: AsyncSession, category_id: str | None) -> None:
    if category_id is not None:
        await get_or_raise(db, Category, category_id, "Category")


async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


async def create_idea(
    db: AsyncSession,
    author: User,
    title: str,
    description: str,
    category_id: str | None = None,
) -> Idea:
    """Create a draft idea and record it as version 1."""
    title = clean_text(title, "Title", *TITLE_LIMITS)
    description = clean_text(description, "Description", *DESCRIPTION_LIMITS)
    await _ensure_category(db, category_id)

    idea = Idea(
        id=new_id(),
        title=title,
        description=description,
        author_id=author.id,
        category_id=category_id,
        current_stage=Stage.DRAFT.value,
        created_at=utcnow(),
    )
    db.add(idea)
    await db.flush()

    await create_version(db, idea.id, author.id, "Initial version")
    await audit_logger.log(
        db,
        AuditAction.CREATE,
        "idea",
        idea.id,
        user_id=author.id,
        after={"title": idea.title, "current_stage": idea.current_stage},
    )
    logger.info("Idea %s created by %s", idea.id, author.id)
    return idea


async def update_idea(
    db: AsyncSession,
    idea_id: str,
    actor: User,
    *,
    title: str | None = None,
    description: str | None = None,
    category_id: str | None = None,
    note: str | None = None,
    policy: AuthorizationPolicy = default_policy,
) -> Idea:
    """Edit a draft idea and snapshot the result as a new version."""
    idea = await get_or_raise(db, Idea, idea_id, "Idea", for_update=True)
    if not policy.can_edit_idea(actor, idea):
        raise AuthorizationError("You can only edit your own ideas")
    if not idea.is_draft:
        raise StateConflictError(
            f"Ideas in stage {idea.current_stage} are read-only and cannot be edited"
        )

    before = _snapshot(idea)
    if title is not None:
        idea.title = clean_text(title, "Title", *TITLE_LIMITS)
    if description is not None:
        idea.description = clean_text(description, "Description", *DESCRIPTION_LIMITS)
    if category_id is not None:
        await _ensure_category(db, category_id)
        idea.category_id = category_id
    await db.flush()

    await create_version(db, idea.id, actor.id, note or "Updated idea")
    await audit_logger.log(
        db,
        AuditAction.UPDATE,
        "idea",
        idea.id,
        user_id=actor.id,
        before=before,
        after=_snapshot(idea),
    )
    return idea


async def submit_idea(
    db: AsyncSession,
    idea_id: str,
    actor: User,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Idea:
    """Move a draft to ``submitted`` and award the submission points."""
    idea = await get_or_raise(db, Idea, idea_id, "Idea", for_update=True)
    if not policy.can_submit_idea(actor, idea):
        raise AuthorizationError("You can only submit your own ideas")
    if not idea.is_draft:
        raise StateConflictError("Only ideas in draft stage can be submitted")
    if not idea.title.strip() or not idea.description.strip():
        raise ValidationError("Idea must have both title and description to be submitted")

    old_stage = idea.current_stage
    now = utcnow()
    idea.current_stage = ensure_transition(idea.current_stage, Stage.SUBMITTED).value
    idea.submitted_at = now
    idea.last_stage_change = now
    await db.flush()

    await gamification.award_points(
        db,
        idea.author_id,
        "idea_submission",
        description=f"Points for submitting idea: {idea.title}",
        related_type="idea",
        related_id=idea.id,
    )
    await gamification.check_achievements(db, idea.author_id)
    await audit_logger.log(
        db,
        AuditAction.STATUS_CHANGE,
        "idea",
        idea.id,
        user_id=actor.id,
        before={"current_stage": old_stage},
        after={"current_stage": idea.current_stage},
    )

    managers = await users_with_roles(db, Role.MANAGER)
    await notify(
        db,
        [manager.id for manager in managers if manager.id != idea.author_id],
        NotificationType.REVIEW_ASSIGNED,
        "New Idea for Review",
        f"A new idea '{idea.title}' has been submitted for manager review",
        related_type="idea",
        related_id=idea.id,
    )
    logger.info("Idea %s submitted", idea.id)
    return idea


async def open_review(
    db: AsyncSession,
    idea_id: str,
    actor: User,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> Idea:
    """A manager picks up a submitted idea: ``submitted -> manager_review``."""
    idea = await get_or_raise(db, Idea, idea_id, "Idea", for_update=True)
    if not policy.can_open_review(actor, idea):
        raise AuthorizationError("Only a manager other than the author can open a review")

    old_stage = idea.current_stage
    idea.current_stage = ensure_transition(idea.current_stage, Stage.MANAGER_REVIEW).value
    idea.last_stage_change = utcnow()
    await db.flush()

    await audit_logger.log(
        db,
        AuditAction.STATUS_CHANGE,
        "idea",
        idea.id,
        user_id=actor.id,
        before={"current_stage": old_stage},
        after={"current_stage": idea.current_stage},
    )
    await notify(
        db,
        idea.author_id,
        NotificationType.STATUS_CHANGE,
        "Idea Status Updated",
        f"Your idea '{idea.title}' has moved from {old_stage} to {idea.current_stage}",
        related_type="idea",
        related_id=idea.id,
    )
    return idea


async def get_idea(db: AsyncSession, idea_id: str) -> Idea:
    return await get_or_raise(db, Idea, idea_id, "Idea")


async def list_ideas(
    db: AsyncSession,
    *,
    stage: Stage | str | None = None,
    author_id: str | None = None,
    limit: int = 50,
) -> list[Idea]:
    query = select(Idea)
    if stage is not None:
        query = query.where(Idea.current_stage == as_stage(stage).value)
    if author_id is not None:
        query = query.where(Idea.author_id == author_id)
    result = await db.execute(query.order_by(desc(Idea.created_at)).limit(limit))
    return list(result.scalars().all())


async def create_challenge_submission(
    db: AsyncSession, author: User, challenge_title: str, title: str, description: str
) -> ChallengeSubmission:
    submission = ChallengeSubmission(
        id=new_id(),
        challenge_title=clean_text(challenge_title, "Challenge title", 1, 200),
        title=clean_text(title, "Title", *TITLE_LIMITS),
        description=clean_text(description, "Description", *DESCRIPTION_LIMITS),
        author_id=author.id,
        status=ChallengeStatus.SUBMITTED.value,
        created_at=utcnow(),
    )
    db.add(submission)
    await db.flush()
    return submission
