from pydantic import BaseModel


class ReviewCreate(BaseModel):
    level: str  # manager | sme | board
    decision: str  # approved | rejected
    rating: int
    comments: str | None = None


class QuickApproveRequest(BaseModel):
    level: str = "board"


class ChallengeReviewCreate(BaseModel):
    decision: str  # approved | rejected
    rating: int
    comments: str | None = None


class ReviewResponse(BaseModel):
    id: str
    idea_id: str | None = None
    challenge_submission_id: str | None = None
    reviewer_id: str
    review_stage: str
    review_type: str
    decision: str
    rating: int
    comments: str | None = None
    created_at: str


class ReviewOutcomeResponse(BaseModel):
    review_id: str
    new_stage: str
    review: ReviewResponse

class ChallengeReviewOutcomeResponse(BaseModel):
    review_id: str
    new_status: str
    review: ReviewResponse

