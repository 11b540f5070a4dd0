"""Comments, suggestions and their votes.

Both comments and suggestions hang off a polymorphic parent stored as a
``(parent_type, parent_id)`` pair; ``parent_type`` is a ``ParentKind`` value and
is resolved through ``backend.app.services.parents``.
"""

from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db import Base


class ParentKind(str, Enum):
    IDEA = "idea"
    CHALLENGE_SUBMISSION = "challenge_submission"


class VoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class SuggestionType(str, Enum):
    IMPROVEMENT = "improvement"
    ADDITION = "addition"
    MODIFICATION = "modification"
    CLARIFICATION = "clarification"
    OTHER = "other"


class SuggestionPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IMPLEMENTED = "implemented"


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    parent_type: Mapped[str] = mapped_column(String, nullable=False)
    parent_id: Mapped[str] = mapped_column(String, nullable=False)
    author_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(String, nullable=False)
    # Thread root this comment replies to; replies are one level deep
    reply_to_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("comments.id"), nullable=True, index=True
    )
    upvotes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_at: Mapped[str | None] = mapped_column(String, nullable=True)
    deleted_at: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (Index("idx_comments_parent", "parent_type", "parent_id"),)

    @property
    def net_score(self) -> int:
        return self.upvotes_count - self.downvotes_count


class CommentVote(Base):
    __tablename__ = "comment_votes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    comment_id: Mapped[str] = mapped_column(String, ForeignKey("comments.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    vote_type: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_user"),
        Index("idx_comment_votes_type", "comment_id", "vote_type"),
    )


class Suggestion(Base):
    __tablename__ = "suggestions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    parent_type: Mapped[str] = mapped_column(String, nullable=False)
    parent_id: Mapped[str] = mapped_column(String, nullable=False)
    author_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(String, nullable=False)
    suggestion_type: Mapped[str] = mapped_column(String, nullable=False)
    priority: Mapped[str] = mapped_column(
        String, nullable=False, default=SuggestionPriority.MEDIUM.value
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=SuggestionStatus.PENDING.value, index=True
    )
    implementation_notes: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String, ForeignKey("users.id"), nullable=True)
    reviewed_at: Mapped[str | None] = mapped_column(String, nullable=True)
    implemented_at: Mapped[str | None] = mapped_column(String, nullable=True)
    upvotes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (Index("idx_suggestions_parent", "parent_type", "parent_id"),)

    @property
    def net_score(self) -> int:
        return self.upvotes_count - self.downvotes_count


class SuggestionVote(Base):
    __tablename__ = "suggestion_votes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    suggestion_id: Mapped[str] = mapped_column(
        String, ForeignKey("suggestions.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    vote_type: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("suggestion_id", "user_id", name="uq_suggestion_votes_user"),
        Index("idx_suggestion_votes_type", "suggestion_id", "vote_type"),
    )
