"""Tests for the authorization policy predicates."""

from backend.app.models.collaboration import Collaboration
from backend.app.models.engagement import Comment
from backend.app.models.idea import Idea
from backend.app.models.user import User
from backend.app.services.authorization import AuthorizationPolicy
from backend.app.services.stages import ReviewLevel

policy = AuthorizationPolicy()


def _user(user_id: str, *roles: str) -> User:
    return User(id=user_id, name=user_id, email=f"{user_id}@example.com", roles=list(roles))


def _idea(author_id: str = "author") -> Idea:
    return Idea(id="idea-1", title="t", description="d", author_id=author_id)


def test_reviewer_levels_follow_roles():
    assert policy.reviewer_levels(_user("m", "manager")) == [ReviewLevel.MANAGER]
    assert policy.reviewer_levels(_user("s", "sme", "board_member")) == [
        ReviewLevel.SME,
        ReviewLevel.BOARD,
    ]
    assert policy.reviewer_levels(_user("a", "administrator")) == list(ReviewLevel)
    assert policy.reviewer_levels(_user("u", "user")) == []


def test_author_can_never_review():
    admin = _user("author", "administrator", "manager")
    for level in ReviewLevel:
        assert not policy.can_review(admin, _idea("author"), level)


def test_reviewer_needs_matching_role():
    manager = _user("m", "manager")
    assert policy.can_review(manager, _idea(), ReviewLevel.MANAGER)
    assert not policy.can_review(manager, _idea(), ReviewLevel.BOARD)


def test_developer_is_admin_but_not_reviewer():
    developer = _user("d", "developer")
    assert policy.is_admin(developer)
    assert policy.reviewer_levels(developer) == []


def test_idea_editing_and_inviting():
    assert policy.can_edit_idea(_user("author"), _idea())
    assert policy.can_edit_idea(_user("d", "developer"), _idea())
    assert not policy.can_edit_idea(_user("m", "manager"), _idea())
    assert policy.can_invite(_user("author"), _idea())
    assert not policy.can_invite(_user("other"), _idea())


def test_collaboration_predicates():
    collaboration = Collaboration(id="c", idea_id="idea-1", collaborator_id="bob")
    assert policy.can_respond(_user("bob"), collaboration)
    assert not policy.can_respond(_user("author"), collaboration)
    assert policy.can_remove_collaboration(_user("author"), collaboration, _idea())
    assert policy.can_remove_collaboration(_user("bob"), collaboration, _idea())
    assert policy.can_remove_collaboration(_user("x", "administrator"), collaboration, _idea())
    assert not policy.can_remove_collaboration(_user("x", "manager"), collaboration, _idea())


def test_suggestion_status_moderators():
    assert policy.can_update_suggestion_status(_user("author"), "author")
    assert policy.can_update_suggestion_status(_user("s", "sme"), "author")
    assert not policy.can_update_suggestion_status(_user("b", "board_member"), "author")
    assert not policy.can_update_suggestion_status(_user("u", "user"), "author")


def test_comment_predicates():
    comment = Comment(id="c", author_id="carol")
    assert policy.can_edit_comment(_user("carol"), comment)
    assert not policy.can_edit_comment(_user("x", "administrator"), comment)
    assert policy.can_delete_comment(_user("x", "administrator"), comment)
    assert not policy.can_delete_comment(_user("y"), comment)
