"""Gamification and notification schemas."""

from pydantic import BaseModel


class PointsBreakdownItem(BaseModel):
    action: str
    description: str
    total_points: int
    count: int


class PointsSummary(BaseModel):
    user_id: str
    period: str
    total_points: int
    breakdown: list[PointsBreakdownItem]


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    name: str
    total_points: int


class AchievementProgress(BaseModel):
    key: str
    name: str
    description: str
    badge: str
    achieved: bool
    current: int
    criteria: int
    progress: int


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str
    related_type: str | None = None
    related_id: str | None = None
    read_at: str | None = None
    created_at: str


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int
