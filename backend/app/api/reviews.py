"""Review pipeline endpoints: decisions, quick approval and the reviewer dashboards.

Ideas and challenge submissions are reviewed through separate routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_current_user, get_policy
from backend.app.db import get_db
from backend.app.models.idea import ChallengeSubmission, Idea
from backend.app.models.review import Review
from backend.app.models.user import User
from backend.app.schemas.idea import ChallengeSubmissionResponse, IdeaResponse
from backend.app.schemas.review import (
    ChallengeReviewCreate,
    ChallengeReviewOutcomeResponse,
    QuickApproveRequest,
    ReviewCreate,
    ReviewOutcomeResponse,
    ReviewResponse,
)
from backend.app.services import reviews as review_service
from backend.app.services.authorization import AuthorizationPolicy
from backend.app.services.reviews import ReviewOutcome

router = APIRouter(tags=["reviews"])


def _outcome(outcome: ReviewOutcome) -> dict:
    return {
        "review_id": outcome.review_id,
        "new_stage": outcome.new_stage.value,
        "review": outcome.review,
    }


@router.get("/reviews/pending", response_model=list[IdeaResponse])
async def pending_reviews(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> list[Idea]:
    return await review_service.pending_reviews(db, user, policy=policy)


@router.get("/ideas/{idea_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(idea_id: str, db: AsyncSession = Depends(get_db)) -> list[Review]:
    return await review_service.list_reviews(db, idea_id)


@router.post("/ideas/{idea_id}/reviews", response_model=ReviewOutcomeResponse, status_code=201)
async def submit_review(
    idea_id: str,
    data: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> dict:
    outcome = await review_service.submit_review(
        db,
        idea_id,
        user,
        data.level,
        data.decision,
        data.rating,
        data.comments,
        policy=policy,
    )
    return _outcome(outcome)


@router.post(
    "/ideas/{idea_id}/quick-approve", response_model=ReviewOutcomeResponse, status_code=201
)
async def quick_approve(
    idea_id: str,
    data: QuickApproveRequest | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> dict:
    level = data.level if data else QuickApproveRequest().level
    outcome = await review_service.quick_approve(db, idea_id, user, level, policy=policy)
    return _outcome(outcome)


# --- Challenge submissions ---


@router.get("/reviews/pending-challenges", response_model=list[ChallengeSubmissionResponse])
async def pending_challenge_reviews(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> list[ChallengeSubmission]:
    return await review_service.pending_challenge_reviews(db, user, policy=policy)


@router.get(
    "/challenge-submissions/{submission_id}/reviews", response_model=list[ReviewResponse]
)
async def list_challenge_reviews(
    submission_id: str, db: AsyncSession = Depends(get_db)
) -> list[Review]:
    return await review_service.list_challenge_reviews(db, submission_id)


@router.post(
    "/challenge-submissions/{submission_id}/reviews",
    response_model=ChallengeReviewOutcomeResponse,
    status_code=201,
)
async def submit_challenge_review(
    submission_id: str,
    data: ChallengeReviewCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> dict:
    outcome = await review_service.submit_challenge_review(
        db,
        submission_id,
        user,
        data.decision,
        data.rating,
        data.comments,
        policy=policy,
    )
    return {
        "review_id": outcome.review.id,
        "new_status": outcome.new_status.value,
        "review": outcome.review,
    }


@router.post(
    "/challenge-submissions/{submission_id}/winner", response_model=ChallengeSubmissionResponse
)
async def mark_challenge_winner(
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_policy),
) -> ChallengeSubmission:
    return await review_service.mark_challenge_winner(db, submission_id, user, policy=policy)
