from backend.app.schemas.audit import AuditLogResponse
from backend.app.schemas.collaboration import (
    CollaborationInvite,
    CollaborationRespond,
    CollaborationResponse,
)
from backend.app.schemas.engagement import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    SuggestionCreate,
    SuggestionResponse,
    SuggestionStatusUpdate,
    VoteCreate,
    VoteResponse,
)
from backend.app.schemas.idea import (
    CategoryResponse,
    ChallengeSubmissionCreate,
    ChallengeSubmissionResponse,
    IdeaCreate,
    IdeaResponse,
    IdeaUpdate,
    VersionComparison,
    VersionCreate,
    VersionResponse,
)
from backend.app.schemas.points import (
    AchievementProgress,
    LeaderboardEntryResponse,
    NotificationListResponse,
    NotificationResponse,
    PointsSummary,
)
from backend.app.schemas.review import (
    ChallengeReviewCreate,
    ChallengeReviewOutcomeResponse,
    QuickApproveRequest,
    ReviewCreate,
    ReviewOutcomeResponse,
    ReviewResponse,
)
from backend.app.schemas.user import UserCreate, UserResponse, UserRolesUpdate

__all__ = [
    "AuditLogResponse",
    "UserCreate",
    "UserResponse",
    "UserRolesUpdate",
    "CategoryResponse",
    "IdeaCreate",
    "IdeaUpdate",
    "IdeaResponse",
    "ChallengeSubmissionCreate",
    "ChallengeSubmissionResponse",
    "VersionCreate",
    "VersionResponse",
    "VersionComparison",
    "ReviewCreate",
    "QuickApproveRequest",
    "ReviewResponse",
    "ReviewOutcomeResponse",
    "ChallengeReviewCreate",
    "ChallengeReviewOutcomeResponse",
    "CollaborationInvite",
    "CollaborationRespond",
    "CollaborationResponse",
    "CommentCreate",
    "CommentUpdate",
    "CommentResponse",
    "SuggestionCreate",
    "SuggestionStatusUpdate",
    "SuggestionResponse",
    "VoteCreate",
    "VoteResponse",
    "PointsSummary",
    "LeaderboardEntryResponse",
    "AchievementProgress",
    "NotificationResponse",
    "NotificationListResponse",
]
