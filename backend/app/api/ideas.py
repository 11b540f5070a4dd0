"""Idea authoring endpoints: drafts, edits, submission and categories."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.models.category import Category
from backend.app.models.idea import ChallengeSubmission, Idea
from backend.app.models.user import User
from backend.app.schemas.idea import (
    CategoryResponse,
    ChallengeSubmissionCreate,
    ChallengeSubmissionResponse,
    IdeaCreate,
    IdeaResponse,
    IdeaUpdate,
)
from backend.app.services import ideas as idea_service
from backend.app.services.authorization import AuthorizationPolicy
from backend.app.services.parents import ParentRef, resolve_parent

router = APIRouter(tags=["ideas"])


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[Category]:
    return await idea_service.list_categories(db)


@router.get("/ideas", response_model=list[IdeaResponse])
async def list_ideas(
    stage: str | None = None,
    author_id: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[Idea]:
    return await idea_service.list_ideas(db, stage=stage, author_id=author_id, limit=limit)


@router.post("/ideas", response_model=IdeaResponse, status_code=201)
async def create_idea(
    data: IdeaCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Idea:
    return await idea_service.create_idea(
        db, user, data.title, data.description, data.category_id
    )


@router.get("/ideas/{idea_id}", response_model=IdeaResponse)
async def get_idea(idea_id: str, db: AsyncSession = Depends(get_db)) -> Idea:
    return await idea_service.get_idea(db, idea_id)


@router.patch("/ideas/{idea_id}", response_model=IdeaResponse)
async def update_idea(
    idea_id: str,
    data: IdeaUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Idea:
    return await idea_service.update_idea(
        db,
        idea_id,
        user,
        title=data.title,
        description=data.description,
        category_id=data.category_id,
        note=data.note,
        policy=policy,
    )


@router.post("/ideas/{idea_id}/submit", response_model=IdeaResponse)
async def submit_idea(
    idea_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Idea:
    return await idea_service.submit_idea(db, idea_id, user, policy=policy)


@router.post("/ideas/{idea_id}/open-review", response_model=IdeaResponse)
async def open_review(
    idea_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> Idea:
    return await idea_service.open_review(db, idea_id, user, policy=policy)


# --- Challenge submissions ---


@router.post(
    "/challenge-submissions", response_model=ChallengeSubmissionResponse, status_code=201
)
async def create_challenge_submission(
    data: ChallengeSubmissionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ChallengeSubmission:
    return await idea_service.create_challenge_submission(
        db, user, data.challenge_title, data.title, data.description
    )


@router.get("/challenge-submissions/{submission_id}", response_model=ChallengeSubmissionResponse)
async def get_challenge_submission(
    submission_id: str, db: AsyncSession = Depends(get_db)
) -> ChallengeSubmission:
    return await resolve_parent(db, ParentRef.challenge_submission(submission_id))
