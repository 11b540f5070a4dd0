"""Idea review-stage state machine.

Pure functions only: nothing here touches the database. The review service
uses them to decide where an idea goes after a decision, and every other
stage change (submission, opening manager review) is checked against
``ALLOWED_TRANSITIONS``.

    draft -> submitted -> manager_review -> sme_review -> board_review -> completed
                  \\              \\              \\              \\
                   +--------------+--------------+--------------+--> rejected
"""

from enum import Enum

from backend.app.errors import StageMismatch
from backend.app.models.idea import Stage
from backend.app.models.review import Decision
from backend.app.services.common import coerce_enum


class ReviewLevel(str, Enum):
    MANAGER = "manager"
    SME = "sme"
    BOARD = "board"


REVIEW_STAGES: dict[ReviewLevel, Stage] = {
    ReviewLevel.MANAGER: Stage.MANAGER_REVIEW,
    ReviewLevel.SME: Stage.SME_REVIEW,
    ReviewLevel.BOARD: Stage.BOARD_REVIEW,
}

APPROVAL_TRANSITIONS: dict[Stage, Stage] = {
    Stage.MANAGER_REVIEW: Stage.SME_REVIEW,
    Stage.SME_REVIEW: Stage.BOARD_REVIEW,
    Stage.BOARD_REVIEW: Stage.COMPLETED,
}

ALLOWED_TRANSITIONS: dict[Stage, frozenset[Stage]] = {
    Stage.DRAFT: frozenset({Stage.SUBMITTED}),
    Stage.SUBMITTED: frozenset({Stage.MANAGER_REVIEW, Stage.REJECTED}),
    Stage.MANAGER_REVIEW: frozenset({Stage.SME_REVIEW, Stage.REJECTED}),
    Stage.SME_REVIEW: frozenset({Stage.BOARD_REVIEW, Stage.REJECTED}),
    Stage.BOARD_REVIEW: frozenset({Stage.COMPLETED, Stage.REJECTED}),
    Stage.COMPLETED: frozenset(),
    Stage.REJECTED: frozenset(),
}

TERMINAL_STAGES = frozenset({Stage.COMPLETED, Stage.REJECTED})


def as_stage(value: Stage | str) -> Stage:
    return coerce_enum(Stage, value, "stage")


def review_stage_for(level: ReviewLevel | str) -> Stage:
    return REVIEW_STAGES[coerce_enum(ReviewLevel, level, "review level")]


def level_for_stage(stage: Stage | str) -> ReviewLevel | None:
    stage = as_stage(stage)
    for level, review_stage in REVIEW_STAGES.items():
        if review_stage is stage:
            return level
    return None


def is_terminal(stage: Stage | str) -> bool:
    return as_stage(stage) in TERMINAL_STAGES


def can_advance(current: Stage | str, target: Stage | str) -> bool:
    return as_stage(target) in ALLOWED_TRANSITIONS[as_stage(current)]


def ensure_transition(current: Stage | str, target: Stage | str) -> Stage:
    """Return ``target`` as a ``Stage`` if the move is allowed, else raise ``StageMismatch``."""
    if not can_advance(current, target):
        raise StageMismatch(
            f"Invalid stage transition from {as_stage(current).value} to {as_stage(target).value}"
        )
    return as_stage(target)


def next_stage(current: Stage | str, decision: Decision | str) -> Stage:
    """Stage an idea moves to after a review decision at ``current``.

    Approvals follow ``APPROVAL_TRANSITIONS``; a rejection at any review stage
    is terminal.
    """
    current = as_stage(current)
    decision = coerce_enum(Decision, decision, "decision")
    if current not in APPROVAL_TRANSITIONS:
        raise StageMismatch(f"Ideas in stage {current.value} are not under review")
    if decision is Decision.REJECTED:
        return Stage.REJECTED
    return APPROVAL_TRANSITIONS[current]
