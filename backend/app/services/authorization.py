"""Role-based access control for ideas and the engagement features around them.

Roles:
- user: submit ideas, comment, suggest, vote
- manager / sme / board_member: review ideas at their stage
- challenge_reviewer: review challenge submissions (managers may too)
- administrator / developer: full access, may act on any idea

Every permission question the services ask goes through one
``AuthorizationPolicy`` instance. Routes receive it via ``get_policy`` so tests
and deployments can swap in a different policy.
"""

from backend.app.models.collaboration import Collaboration
from backend.app.models.engagement import Comment
from backend.app.models.idea import ChallengeSubmission, Idea
from backend.app.models.user import Role, User
from backend.app.services.stages import ReviewLevel

ADMIN_ROLES: tuple[Role, ...] = (Role.ADMINISTRATOR, Role.DEVELOPER)

# Roles allowed to act at each review level, in addition to administrators
REVIEWER_ROLES: dict[ReviewLevel, tuple[Role, ...]] = {
    ReviewLevel.MANAGER: (Role.MANAGER,),
    ReviewLevel.SME: (Role.SME,),
    ReviewLevel.BOARD: (Role.BOARD_MEMBER,),
}

SUGGESTION_MODERATOR_ROLES: tuple[Role, ...] = (
    Role.MANAGER,
    Role.SME,
    Role.ADMINISTRATOR,
    Role.DEVELOPER,
)

CHALLENGE_REVIEWER_ROLES: tuple[Role, ...] = (
    Role.CHALLENGE_REVIEWER,
    Role.MANAGER,
    Role.ADMINISTRATOR,
)

CHALLENGE_WINNER_ROLES: tuple[Role, ...] = (Role.MANAGER, Role.BOARD_MEMBER, Role.ADMINISTRATOR)


class AuthorizationPolicy:
    """Named permission predicates. All methods are pure and side-effect free."""

    def is_admin(self, user: User) -> bool:
        return user.has_any_role(*ADMIN_ROLES)

    def reviewer_levels(self, user: User) -> list[ReviewLevel]:
        """Review levels whose dashboard ``user`` sees."""
        if user.has_role(Role.ADMINISTRATOR):
            return list(ReviewLevel)
        return [level for level, roles in REVIEWER_ROLES.items() if user.has_any_role(*roles)]

    def can_review(self, user: User, idea: Idea, level: ReviewLevel) -> bool:
        if user.id == idea.author_id:
            return False
        return level in self.reviewer_levels(user)

    def can_open_review(self, user: User, idea: Idea) -> bool:
        return self.can_review(user, idea, ReviewLevel.MANAGER)

    def is_challenge_reviewer(self, user: User) -> bool:
        return user.has_any_role(*CHALLENGE_REVIEWER_ROLES)

    def can_review_challenge(self, user: User, submission: ChallengeSubmission) -> bool:
        if user.id == submission.author_id:
            return False
        return self.is_challenge_reviewer(user)

    def can_mark_winner(self, user: User) -> bool:
        return user.has_any_role(*CHALLENGE_WINNER_ROLES)

    def can_edit_idea(self, user: User, idea: Idea) -> bool:
        return user.id == idea.author_id or self.is_admin(user)

    def can_submit_idea(self, user: User, idea: Idea) -> bool:
        return self.can_edit_idea(user, idea)

    def can_invite(self, user: User, idea: Idea) -> bool:
        return user.id == idea.author_id or self.is_admin(user)

    def can_respond(self, user: User, collaboration: Collaboration) -> bool:
        return user.id == collaboration.collaborator_id

    def can_remove_collaboration(
        self, user: User, collaboration: Collaboration, idea: Idea
    ) -> bool:
        return (
            user.id == idea.author_id
            or user.id == collaboration.collaborator_id
            or self.is_admin(user)
        )

    def can_update_suggestion_status(self, user: User, parent_author_id: str) -> bool:
        """Only the author of the idea a suggestion targets, or a moderator role."""
        return user.id == parent_author_id or user.has_any_role(*SUGGESTION_MODERATOR_ROLES)

    def can_edit_comment(self, user: User, comment: Comment) -> bool:
        return user.id == comment.author_id

    def can_delete_comment(self, user: User, comment: Comment) -> bool:
        return user.id == comment.author_id or self.is_admin(user)

    def can_view_audit(self, user: User) -> bool:
        return self.is_admin(user)


default_policy = AuthorizationPolicy()
