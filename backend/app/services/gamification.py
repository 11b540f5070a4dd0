"""Points ledger, leaderboards and achievements.

``UserPoint`` rows are append-only. Every total, leaderboard and achievement
check is a SUM/COUNT over the ledger and the engagement tables; nothing is
ever updated in place.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import new_id, utcnow
from backend.app.models.collaboration import Collaboration, CollaborationStatus
from backend.app.models.idea import Idea, Stage
from backend.app.models.points import UserPoint
from backend.app.models.review import Review
from backend.app.models.user import User
from backend.app.services.common import coerce_enum
from backend.app.services.notifications import NotificationType, notify

logger = logging.getLogger(__name__)

POINTS: dict[str, int] = {
    "idea_submission": 100,
    "collaboration_accepted": 25,
    "idea_approved": 200,
    "early_review_bonus": 15,
    "review_completion": 5,
}

ACHIEVEMENT_ACTION = "achievement_unlocked"

ACTION_LABELS: dict[str, str] = {
    "idea_submission": "Idea Submissions",
    "collaboration_accepted": "Collaboration Invitations Accepted",
    "idea_approved": "Ideas Approved by the Board",
    "early_review_bonus": "Early Review Bonuses",
    "review_completion": "Review Completions",
    ACHIEVEMENT_ACTION: "Achievements Unlocked",
}


class Period(str, Enum):
    ALL = "all"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Metric(str, Enum):
    IDEA_COUNT = "idea_count"
    COLLABORATION_COUNT = "collaboration_count"
    TOTAL_REVIEWS = "total_reviews"
    COMPLETED_IDEAS = "completed_ideas"
    SUCCESSFUL_INVITATIONS = "successful_invitations"
    TOTAL_POINTS = "total_points"


@dataclass(frozen=True)
class Achievement:
    key: str
    name: str
    description: str
    badge: str
    points_bonus: int
    criteria: int
    metric: Metric


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement(
        "innovation_pioneer",
        "Innovation Pioneer",
        "Submit your first 10 ideas",
        "bronze",
        100,
        10,
        Metric.IDEA_COUNT,
    ),
    Achievement(
        "collaboration_champion",
        "Collaboration Champion",
        "Take part in 50+ accepted collaborations",
        "gold",
        300,
        50,
        Metric.COLLABORATION_COUNT,
    ),
    Achievement(
        "review_expert",
        "Review Expert",
        "Complete 100+ reviews",
        "gold",
        350,
        100,
        Metric.TOTAL_REVIEWS,
    ),
    Achievement(
        "idea_implementer",
        "Idea Implementer",
        "Have 5+ ideas approved through the board",
        "diamond",
        1000,
        5,
        Metric.COMPLETED_IDEAS,
    ),
    Achievement(
        "community_builder",
        "Community Builder",
        "Invite 10+ collaborators who accept",
        "gold",
        400,
        10,
        Metric.SUCCESSFUL_INVITATIONS,
    ),
    Achievement(
        "innovation_catalyst",
        "Innovation Catalyst",
        "Reach 10,000 total points",
        "platinum",
        1000,
        10_000,
        Metric.TOTAL_POINTS,
    ),
)


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    name: str
    total_points: int


def period_start(period: Period | str, now: datetime | None = None) -> str | None:
    """ISO timestamp where ``period`` begins (``None`` for all-time)."""
    period = coerce_enum(Period, period, "period")
    now = now or datetime.now(UTC)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period is Period.WEEKLY:
        return (midnight - timedelta(days=midnight.weekday())).isoformat()
    if period is Period.MONTHLY:
        return midnight.replace(day=1).isoformat()
    if period is Period.YEARLY:
        return midnight.replace(month=1, day=1).isoformat()
    return None


async def award_points(
    db: AsyncSession,
    user_id: str,
    action: str,
    points: int | None = None,
    description: str | None = None,
    *,
    related_type: str | None = None,
    related_id: str | None = None,
) -> UserPoint:
    """Append a ledger row; ``points`` defaults to the value in ``POINTS``."""
    amount = POINTS[action] if points is None else points
    entry = UserPoint(
        id=new_id(),
        user_id=user_id,
        action=action,
        points=amount,
        description=description,
        related_type=related_type,
        related_id=related_id,
        created_at=utcnow(),
    )
    db.add(entry)
    await db.flush()
    logger.info("Awarded %d points to %s for %s", amount, user_id, action)

    await notify(
        db,
        user_id,
        NotificationType.POINTS_AWARDED,
        "Points Earned!",
        f"You earned {amount} points: {description or ACTION_LABELS.get(action, action)}",
        related_type="user_point",
        related_id=entry.id,
    )
    return entry


async def total_points(db: AsyncSession, user_id: str, period: Period | str = Period.ALL) -> int:
    query = select(func.coalesce(func.sum(UserPoint.points), 0)).where(
        UserPoint.user_id == user_id
    )
    start = period_start(period)
    if start:
        query = query.where(UserPoint.created_at >= start)
    result = await db.execute(query)
    return int(result.scalar_one())


async def leaderboard(
    db: AsyncSession, period: Period | str = Period.ALL, limit: int = 10
) -> list[LeaderboardEntry]:
    """Users ranked by points earned in ``period``; users with no positive total are left out."""
    total = func.sum(UserPoint.points).label("total")
    query = select(User.id, User.name, total).join(UserPoint, UserPoint.user_id == User.id)
    start = period_start(period)
    if start:
        query = query.where(UserPoint.created_at >= start)
    query = (
        query.group_by(User.id, User.name)
        .having(func.sum(UserPoint.points) > 0)
        .order_by(desc("total"), User.name)
        .limit(limit)
    )
    result = await db.execute(query)
    return [
        LeaderboardEntry(rank=index, user_id=user_id, name=name, total_points=int(points))
        for index, (user_id, name, points) in enumerate(result.all(), start=1)
    ]


async def points_breakdown(db: AsyncSession, user_id: str) -> list[dict]:
    result = await db.execute(
        select(
            UserPoint.action,
            func.sum(UserPoint.points).label("total"),
            func.count(UserPoint.id).label("count"),
        )
        .where(UserPoint.user_id == user_id)
        .group_by(UserPoint.action)
        .order_by(desc("total"))
    )
    return [
        {
            "action": action,
            "total_points": int(points),
            "count": count,
            "description": ACTION_LABELS.get(action, action.replace("_", " ").title()),
        }
        for action, points, count in result.all()
    ]


async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return int(result.scalar_one())


async def metric_value(db: AsyncSession, user_id: str, metric: Metric) -> int:
    accepted = CollaborationStatus.ACCEPTED.value
    if metric is Metric.IDEA_COUNT:
        return await _count(
            db,
            select(func.count(Idea.id)).where(
                Idea.author_id == user_id, Idea.submitted_at.is_not(None)
            ),
        )
    if metric is Metric.COLLABORATION_COUNT:
        return await _count(
            db,
            select(func.count(Collaboration.id)).where(
                Collaboration.collaborator_id == user_id, Collaboration.status == accepted
            ),
        )
    if metric is Metric.TOTAL_REVIEWS:
        return await _count(db, select(func.count(Review.id)).where(Review.reviewer_id == user_id))
    if metric is Metric.COMPLETED_IDEAS:
        return await _count(
            db,
            select(func.count(Idea.id)).where(
                Idea.author_id == user_id, Idea.current_stage == Stage.COMPLETED.value
            ),
        )
    if metric is Metric.SUCCESSFUL_INVITATIONS:
        return await _count(
            db,
            select(func.count(Collaboration.id)).where(
                Collaboration.invited_by == user_id, Collaboration.status == accepted
            ),
        )
    return await total_points(db, user_id)


async def unlocked_achievements(db: AsyncSession, user_id: str) -> set[str]:
    result = await db.execute(
        select(UserPoint.related_id).where(
            UserPoint.user_id == user_id, UserPoint.action == ACHIEVEMENT_ACTION
        )
    )
    return {key for key in result.scalars().all() if key}


async def check_achievements(db: AsyncSession, user_id: str) -> list[str]:
    """Unlock every achievement ``user_id`` now qualifies for; returns the new keys."""
    unlocked = await unlocked_achievements(db, user_id)
    newly: list[str] = []
    for achievement in ACHIEVEMENTS:
        if achievement.key in unlocked:
            continue
        if await metric_value(db, user_id, achievement.metric) < achievement.criteria:
            continue

        await award_points(
            db,
            user_id,
            ACHIEVEMENT_ACTION,
            achievement.points_bonus,
            f"Achievement unlocked: {achievement.name} - {achievement.description}",
            related_type="achievement",
            related_id=achievement.key,
        )
        await notify(
            db,
            user_id,
            NotificationType.ACHIEVEMENT_UNLOCKED,
            "Achievement Unlocked!",
            f"You've earned the '{achievement.name}' {achievement.badge} badge "
            f"and {achievement.points_bonus} bonus points!",
            related_type="achievement",
            related_id=achievement.key,
        )
        newly.append(achievement.key)

    if newly:
        logger.info("User %s unlocked achievements: %s", user_id, ", ".join(newly))
    return newly


async def achievement_progress(db: AsyncSession, user_id: str) -> list[dict]:
    unlocked = await unlocked_achievements(db, user_id)
    progress = []
    for achievement in ACHIEVEMENTS:
        value = await metric_value(db, user_id, achievement.metric)
        progress.append(
            {
                "key": achievement.key,
                "name": achievement.name,
                "description": achievement.description,
                "badge": achievement.badge,
                "achieved": achievement.key in unlocked,
                "current": value,
                "criteria": achievement.criteria,
                "progress": min(100, round(value * 100 / achievement.criteria)),
            }
        )
    return progress
