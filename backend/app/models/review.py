from enum import Enum

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base


class Decision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewType(str, Enum):
    IDEA = "idea"
    CHALLENGE = "challenge"


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    # Exactly one of idea_id / challenge_submission_id is set, matching review_type
    idea_id: Mapped[str | None] = mapped_column(String, ForeignKey("ideas.id"), nullable=True)
    challenge_submission_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("challenge_submissions.id"), nullable=True
    )
    reviewer_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    review_stage: Mapped[str] = mapped_column(String, nullable=False)
    review_type: Mapped[str] = mapped_column(
        String, nullable=False, default=ReviewType.IDEA.value
    )
    decision: Mapped[str] = mapped_column(String, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-5
    comments: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        # One decision per reviewer per stage, even if a caller skips the dashboard filter
        UniqueConstraint(
            "reviewer_id", "idea_id", "review_stage", name="uq_reviews_reviewer_stage"
        ),
        UniqueConstraint(
            "reviewer_id", "challenge_submission_id", name="uq_reviews_reviewer_submission"
        ),
        Index("idx_reviews_reviewer_stage", "reviewer_id", "review_stage"),
    )
