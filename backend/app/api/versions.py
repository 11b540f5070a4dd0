"""Idea version history endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.models.idea import Idea, IdeaVersion
from backend.app.models.user import User
from backend.app.schemas.idea import (
    IdeaResponse,
    VersionComparison,
    VersionCreate,
    VersionResponse,
)
from backend.app.services import versions as version_service
from backend.app.services.authorization import AuthorizationPolicy

router = APIRouter(tags=["versions"])


@router.get("/ideas/{idea_id}/versions", response_model=list[VersionResponse])
async def list_versions(idea_id: str, db: AsyncSession = Depends(get_db)) -> list[IdeaVersion]:
    return await version_service.list_versions(db, idea_id)


@router.post("/ideas/{idea_id}/versions", response_model=VersionResponse, status_code=201)
async def create_version(
    idea_id: str,
    data: VersionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> IdeaVersion:
    return await version_service.snapshot_idea(db, idea_id, user, data.note, policy=policy)


@router.post("/versions/{version_id}/restore", response_model=IdeaResponse)
async def restore_version(
    version_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Idea:
    return await version_service.restore_version(db, version_id, user, policy=policy)


@router.get("/versions/compare", response_model=VersionComparison)
async def compare_versions(a: str, b: str, db: AsyncSession = Depends(get_db)) -> dict:
    differences = await version_service.compare_versions(db, a, b)
    return {"old_version_id": a, "new_version_id": b, "differences": differences}
