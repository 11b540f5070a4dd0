"""Reviewer decisions and the dashboards that feed them.

``submit_review`` is the only way an idea moves past ``manager_review``. It
checks, in order: the reviewer is not the author, holds a role for the
level, the idea is in that level's stage, and has not already reviewed it
there. Only then does it validate the decision and rating and write
anything.

Challenge submissions take a separate, single-stage review: every eligible
reviewer rates the entry once, and after ``challenge_min_reviews`` reviews the
submission settles to approved or rejected. An approved entry can then be
marked the winner.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import desc, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import settings
from backend.app.db import new_id, utcnow
from backend.app.errors import (
    AuthorizationError,
    SelfReviewForbidden,
    StageMismatch,
    StateConflictError,
    ValidationError,
)
from backend.app.models.idea import ChallengeStatus, ChallengeSubmission, Idea, Stage
from backend.app.models.review import Decision, Review, ReviewType
from backend.app.models.user import User
from backend.app.services import gamification
from backend.app.services.audit import AuditAction, audit_logger
from backend.app.services.authorization import (
    REVIEWER_ROLES,
    AuthorizationPolicy,
    default_policy,
)
from backend.app.services.common import coerce_enum, get_or_raise
from backend.app.services.notifications import NotificationType, notify, users_with_roles
from backend.app.services.stages import (
    REVIEW_STAGES,
    ReviewLevel,
    level_for_stage,
    next_stage,
    review_stage_for,
)

logger = logging.getLogger(__name__)

QUICK_APPROVE_COMMENT = "Quick approval"

CHALLENGE_REVIEW_STAGE = "challenge_review"
REVIEWABLE_CHALLENGE_STATUSES = (
    ChallengeStatus.SUBMITTED.value,
    ChallengeStatus.UNDER_REVIEW.value,
)
# Average rating (1-5) a settled submission must reach, or fall below
CHALLENGE_APPROVE_AVERAGE = 3.5
CHALLENGE_REJECT_AVERAGE = 2.5


@dataclass
class ReviewOutcome:
    review: Review
    new_stage: Stage

    @property
    def review_id(self) -> str:
        return self.review.id


@dataclass
class ChallengeReviewOutcome:
    review: Review
    new_status: ChallengeStatus


def _validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return rating


async def _already_reviewed(
    db: AsyncSession, idea_id: str, reviewer_id: str, stage: Stage
) -> bool:
    result = await db.execute(
        select(Review.id).where(
            Review.idea_id == idea_id,
            Review.reviewer_id == reviewer_id,
            Review.review_stage == stage.value,
        )
    )
    return result.first() is not None


async def submit_review(
    db: AsyncSession,
    idea_id: str,
    actor: User,
    level: ReviewLevel | str,
    decision: Decision | str,
    rating: int,
    comments: str | None = None,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> ReviewOutcome:
    """Record a reviewer's decision and move the idea to its next stage."""
    idea = await get_or_raise(db, Idea, idea_id, "Idea", for_update=True)

    if idea.author_id == actor.id:
        raise SelfReviewForbidden()

    level = coerce_enum(ReviewLevel, level, "review level")
    if not policy.can_review(actor, idea, level):
        raise AuthorizationError(f"You are not authorized to perform {level.value} reviews")

    stage = review_stage_for(level)
    if idea.current_stage != stage.value:
        raise StageMismatch(
            f"Idea is in stage {idea.current_stage}, not {stage.value}; "
            f"it cannot take a {level.value} review"
        )
    if await _already_reviewed(db, idea.id, actor.id, stage):
        raise StateConflictError(f"You have already reviewed this idea at {stage.value}")

    decision = coerce_enum(Decision, decision, "decision")
    rating = _validate_rating(rating)
    new_stage = next_stage(stage, decision)

    now = utcnow()
    review = Review(
        id=new_id(),
        idea_id=idea.id,
        reviewer_id=actor.id,
        review_stage=stage.value,
        review_type=ReviewType.IDEA.value,
        decision=decision.value,
        rating=rating,
        comments=(comments or "").strip() or None,
        created_at=now,
    )
    db.add(review)

    entered_stage_at = idea.last_stage_change or idea.submitted_at
    idea.current_stage = new_stage.value
    idea.last_stage_change = now
    idea.last_reviewer_id = actor.id
    if new_stage is Stage.COMPLETED:
        idea.completed_at = now
    await db.flush()

    logger.info(
        "Review %s on idea %s: %s at %s -> %s",
        review.id,
        idea.id,
        decision.value,
        stage.value,
        new_stage.value,
    )

    await _award_review_points(db, idea, review, entered_stage_at)
    await audit_logger.log(
        db,
        AuditAction.REVIEW_SUBMITTED,
        "review",
        review.id,
        user_id=actor.id,
        after={"idea_id": idea.id, "review_stage": stage.value, "decision": decision.value},
    )
    await audit_logger.log(
        db,
        AuditAction.STATUS_CHANGE,
        "idea",
        idea.id,
        user_id=actor.id,
        before={"current_stage": stage.value},
        after={
            "current_stage": new_stage.value,
            "review_id": review.id,
            "decision": decision.value,
            "rating": rating,
        },
    )
    await _notify_stage_change(db, idea, stage, new_stage)
    return ReviewOutcome(review=review, new_stage=new_stage)


async def quick_approve(
    db: AsyncSession,
    idea_id: str,
    actor: User,
    level: ReviewLevel | str = ReviewLevel.BOARD,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> ReviewOutcome:
    """One-click approval with the configured fixed rating."""
    return await submit_review(
        db,
        idea_id,
        actor,
        level,
        Decision.APPROVED,
        settings.quick_approve_rating,
        QUICK_APPROVE_COMMENT,
        policy=policy,
    )


async def _award_review_points(
    db: AsyncSession, idea: Idea, review: Review, entered_stage_at: str | None
) -> None:
    await gamification.award_points(
        db,
        review.reviewer_id,
        "review_completion",
        description=f"Review completed for idea: {idea.title}",
        related_type="review",
        related_id=review.id,
    )

    if entered_stage_at:
        waited = datetime.now(UTC) - datetime.fromisoformat(entered_stage_at)
        if waited <= timedelta(hours=settings.early_review_hours):
            hours = int(waited.total_seconds() // 3600)
            await gamification.award_points(
                db,
                review.reviewer_id,
                "early_review_bonus",
                description=f"Early review bonus - completed within {hours} hours",
                related_type="review",
                related_id=review.id,
            )

    if idea.current_stage == Stage.COMPLETED.value:
        await gamification.award_points(
            db,
            idea.author_id,
            "idea_approved",
            description=f"Bonus for idea approved by the board: {idea.title}",
            related_type="idea",
            related_id=idea.id,
        )
        await gamification.check_achievements(db, idea.author_id)

    await gamification.check_achievements(db, review.reviewer_id)


async def _notify_stage_change(
    db: AsyncSession, idea: Idea, old_stage: Stage, new_stage: Stage
) -> None:
    await notify(
        db,
        idea.author_id,
        NotificationType.STATUS_CHANGE,
        "Idea Status Updated",
        f"Your idea '{idea.title}' has moved from {old_stage.value} to {new_stage.value}",
        related_type="idea",
        related_id=idea.id,
    )

    next_level = level_for_stage(new_stage)
    if next_level is None:
        return
    reviewers = await users_with_roles(db, *REVIEWER_ROLES[next_level])
    await notify(
        db,
        [user.id for user in reviewers if user.id != idea.author_id],
        NotificationType.REVIEW_ASSIGNED,
        "Review Assignment",
        f"You have been assigned to review idea '{idea.title}'",
        related_type="idea",
        related_id=idea.id,
    )


async def pending_reviews(
    db: AsyncSession, actor: User, *, policy: AuthorizationPolicy = default_policy
) -> list[Idea]:
    """Ideas waiting on ``actor``: in a stage their roles cover, not their own,
    and not already reviewed by them at that stage. Oldest submissions first."""
    stages = [REVIEW_STAGES[level].value for level in policy.reviewer_levels(actor)]
    if not stages:
        return []

    reviewed = exists().where(
        Review.idea_id == Idea.id,
        Review.reviewer_id == actor.id,
        Review.review_stage == Idea.current_stage,
    )
    result = await db.execute(
        select(Idea)
        .where(Idea.current_stage.in_(stages), Idea.author_id != actor.id, ~reviewed)
        .order_by(Idea.submitted_at, Idea.created_at)
    )
    return list(result.scalars().all())


async def list_reviews(db: AsyncSession, idea_id: str) -> list[Review]:
    await get_or_raise(db, Idea, idea_id, "Idea")
    result = await db.execute(
        select(Review).where(Review.idea_id == idea_id).order_by(desc(Review.created_at))
    )
    return list(result.scalars().all())


# --- Challenge submissions ---


def settle_challenge(decisions: list[tuple[str, int]], min_reviews: int) -> ChallengeStatus:
    """Status a submission takes given all of its ``(decision, rating)`` reviews.

    Below ``min_reviews`` it stays under review. After that, a majority of
    approvals with a high enough average approves it; a majority of rejections
    or a low average rejects it. A split with a middling average waits for
    more reviews.
    """
    if len(decisions) < min_reviews:
        return ChallengeStatus.UNDER_REVIEW
    approvals = sum(1 for decision, _ in decisions if decision == Decision.APPROVED.value)
    rejections = len(decisions) - approvals
    average = sum(rating for _, rating in decisions) / len(decisions)
    if approvals > rejections and average >= CHALLENGE_APPROVE_AVERAGE:
        return ChallengeStatus.APPROVED
    if rejections > approvals or average < CHALLENGE_REJECT_AVERAGE:
        return ChallengeStatus.REJECTED
    return ChallengeStatus.UNDER_REVIEW


async def submit_challenge_review(
    db: AsyncSession,
    submission_id: str,
    actor: User,
    decision: Decision | str,
    rating: int,
    comments: str | None = None,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> ChallengeReviewOutcome:
    """Record a review of a challenge submission and settle its status."""
    submission = await get_or_raise(
        db, ChallengeSubmission, submission_id, "Challenge submission", for_update=True
    )

    if submission.author_id == actor.id:
        raise SelfReviewForbidden("You cannot review your own challenge submission")
    if not policy.can_review_challenge(actor, submission):
        raise AuthorizationError("You are not authorized to review challenge submissions")
    if submission.status not in REVIEWABLE_CHALLENGE_STATUSES:
        raise StageMismatch(
            f"Challenge submission is {submission.status}; it is no longer open for review"
        )
    existing = await db.execute(
        select(Review.id).where(
            Review.challenge_submission_id == submission.id,
            Review.reviewer_id == actor.id,
        )
    )
    if existing.first() is not None:
        raise StateConflictError("You have already reviewed this challenge submission")

    decision = coerce_enum(Decision, decision, "decision")
    rating = _validate_rating(rating)

    review = Review(
        id=new_id(),
        challenge_submission_id=submission.id,
        reviewer_id=actor.id,
        review_stage=CHALLENGE_REVIEW_STAGE,
        review_type=ReviewType.CHALLENGE.value,
        decision=decision.value,
        rating=rating,
        comments=(comments or "").strip() or None,
        created_at=utcnow(),
    )
    db.add(review)
    await db.flush()

    result = await db.execute(
        select(Review.decision, Review.rating).where(
            Review.challenge_submission_id == submission.id
        )
    )
    decisions = [(row.decision, row.rating) for row in result.all()]
    old_status = submission.status
    new_status = settle_challenge(decisions, settings.challenge_min_reviews)
    submission.status = new_status.value
    await db.flush()

    logger.info(
        "Challenge review %s on submission %s: %s (%d reviews) -> %s",
        review.id,
        submission.id,
        decision.value,
        len(decisions),
        new_status.value,
    )

    await gamification.award_points(
        db,
        actor.id,
        "review_completion",
        description=f"Review completed for challenge submission: {submission.title}",
        related_type="review",
        related_id=review.id,
    )
    await gamification.check_achievements(db, actor.id)
    await audit_logger.log(
        db,
        AuditAction.CHALLENGE_REVIEW_SUBMITTED,
        "challenge_submission",
        submission.id,
        user_id=actor.id,
        after={"review_id": review.id, "decision": decision.value, "rating": rating},
    )
    if new_status.value != old_status:
        await _challenge_status_changed(db, submission, old_status, actor.id)
    return ChallengeReviewOutcome(review=review, new_status=new_status)


async def mark_challenge_winner(
    db: AsyncSession,
    submission_id: str,
    actor: User,
    *,
    policy: AuthorizationPolicy = default_policy,
) -> ChallengeSubmission:
    submission = await get_or_raise(
        db, ChallengeSubmission, submission_id, "Challenge submission", for_update=True
    )
    if not policy.can_mark_winner(actor):
        raise AuthorizationError("You do not have permission to mark winners")
    if submission.status != ChallengeStatus.APPROVED.value:
        raise StateConflictError("Only approved submissions can be marked as winners")

    submission.status = ChallengeStatus.WINNER.value
    submission.winner_announced_at = utcnow()
    await db.flush()
    logger.info("Challenge submission %s marked winner by %s", submission.id, actor.id)

    await _challenge_status_changed(db, submission, ChallengeStatus.APPROVED.value, actor.id)
    return submission


async def _challenge_status_changed(
    db: AsyncSession, submission: ChallengeSubmission, old_status: str, actor_id: str
) -> None:
    await audit_logger.log(
        db,
        AuditAction.CHALLENGE_STATUS_CHANGE,
        "challenge_submission",
        submission.id,
        user_id=actor_id,
        before={"status": old_status},
        after={"status": submission.status},
    )
    await notify(
        db,
        submission.author_id,
        NotificationType.STATUS_CHANGE,
        "Challenge Submission Updated",
        f"Your submission '{submission.title}' is now {submission.status}",
        related_type="challenge_submission",
        related_id=submission.id,
    )


async def pending_challenge_reviews(
    db: AsyncSession, actor: User, *, policy: AuthorizationPolicy = default_policy
) -> list[ChallengeSubmission]:
    """Open submissions ``actor`` may review and has not reviewed yet."""
    if not policy.is_challenge_reviewer(actor):
        return []

    reviewed = exists().where(
        Review.challenge_submission_id == ChallengeSubmission.id,
        Review.reviewer_id == actor.id,
    )
    result = await db.execute(
        select(ChallengeSubmission)
        .where(
            ChallengeSubmission.status.in_(REVIEWABLE_CHALLENGE_STATUSES),
            ChallengeSubmission.author_id != actor.id,
            ~reviewed,
        )
        .order_by(ChallengeSubmission.created_at)
    )
    return list(result.scalars().all())


async def list_challenge_reviews(db: AsyncSession, submission_id: str) -> list[Review]:
    await get_or_raise(db, ChallengeSubmission, submission_id, "Challenge submission")
    result = await db.execute(
        select(Review)
        .where(Review.challenge_submission_id == submission_id)
        .order_by(desc(Review.created_at))
    )
    return list(result.scalars().all())
