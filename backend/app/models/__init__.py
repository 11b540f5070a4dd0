from backend.app.models.user import Role, User
from backend.app.models.category import Category
from backend.app.models.idea import (
    ChallengeStatus,
    ChallengeSubmission,
    Idea,
    IdeaVersion,
    Stage,
)
from backend.app.models.review import Decision, Review, ReviewType
from backend.app.models.collaboration import (
    Collaboration,
    CollaborationRole,
    CollaborationStatus,
)
from backend.app.models.engagement import (
    Comment,
    CommentVote,
    ParentKind,
    Suggestion,
    SuggestionPriority,
    SuggestionStatus,
    SuggestionType,
    SuggestionVote,
    VoteType,
)
from backend.app.models.points import UserPoint
from backend.app.models.audit import AuditLog, Notification

__all__ = [
    "Role",
    "User",
    "Category",
    "Stage",
    "ChallengeStatus",
    "Idea",
    "IdeaVersion",
    "ChallengeSubmission",
    "Decision",
    "Review",
    "ReviewType",
    "Collaboration",
    "CollaborationRole",
    "CollaborationStatus",
    "ParentKind",
    "VoteType",
    "Comment",
    "CommentVote",
    "SuggestionType",
    "SuggestionPriority",
    "SuggestionStatus",
    "Suggestion",
    "SuggestionVote",
    "UserPoint",
    "AuditLog",
    "Notification",
]
