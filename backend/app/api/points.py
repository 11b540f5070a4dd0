"""Points, leaderboard and achievement endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user
from backend.app.config import settings
from backend.app.db import get_db
from backend.app.models.user import User
from backend.app.schemas.points import (
    AchievementProgress,
    LeaderboardEntryResponse,
    PointsSummary,
)
from backend.app.services import gamification
from backend.app.services.common import coerce_enum
from backend.app.services.gamification import LeaderboardEntry, Period

router = APIRouter(tags=["gamification"])


@router.get("/points/me", response_model=PointsSummary)
async def my_points(
    period: str = Period.ALL.value,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict:
    period = coerce_enum(Period, period, "period")
    return {
        "user_id": user.id,
        "period": period.value,
        "total_points": await gamification.total_points(db, user.id, period),
        "breakdown": await gamification.points_breakdown(db, user.id),
    }


@router.get("/points/leaderboard", response_model=list[LeaderboardEntryResponse])
async def leaderboard(
    period: str = Period.ALL.value,
    limit: int | None = Query(None, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[LeaderboardEntry]:
    return await gamification.leaderboard(db, period, limit or settings.leaderboard_limit)


@router.get("/achievements/me", response_model=list[AchievementProgress])
async def my_achievements(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[dict]:
    return await gamification.achievement_progress(db, user.id)
