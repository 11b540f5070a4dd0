from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base


class Stage(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    MANAGER_REVIEW = "manager_review"
    SME_REVIEW = "sme_review"
    BOARD_REVIEW = "board_review"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ChallengeStatus(str, Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    WINNER = "winner"


class Idea(Base):
    __tablename__ = "ideas"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False, index=True
    )
    category_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("categories.id"), nullable=True
    )
    current_stage: Mapped[str] = mapped_column(
        String, nullable=False, default=Stage.DRAFT.value, index=True
    )
    created_at: Mapped[str] = mapped_column(String, nullable=False)
    submitted_at: Mapped[str | None] = mapped_column(String, nullable=True)
    completed_at: Mapped[str | None] = mapped_column(String, nullable=True)
    last_stage_change: Mapped[str | None] = mapped_column(String, nullable=True)
    last_reviewer_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("users.id"), nullable=True
    )

    @property
    def is_draft(self) -> bool:
        return self.current_stage == Stage.DRAFT.value


class IdeaVersion(Base):
    __tablename__ = "idea_versions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    idea_id: Mapped[str] = mapped_column(String, ForeignKey("ideas.id"), nullable=False)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    category_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("categories.id"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("idea_id", "version_number", name="uq_idea_versions_number"),
        Index("idx_idea_versions_current", "idea_id", "is_current"),
    )


class ChallengeSubmission(Base):
    """An entry to an innovation challenge; commentable like an idea."""

    __tablename__ = "challenge_submissions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    challenge_title: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    author_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ChallengeStatus.SUBMITTED.value, index=True
    )
    created_at: Mapped[str] = mapped_column(String, nullable=False)
    winner_announced_at: Mapped[str | None] = mapped_column(String, nullable=True)
