"""Operation errors raised by the service layer.

Every service checks its preconditions before writing anything and raises one
of these. The API layer maps them onto HTTP status codes in ``main.py``.
"""


class OperationError(Exception):
    """Base class for expected, caller-facing failures."""

    code = "operation_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthorizationError(OperationError):
    code = "forbidden"
    status_code = 403


class SelfReviewForbidden(AuthorizationError):
    code = "self_review_forbidden"

    def __init__(self, message: str = "You cannot review your own idea") -> None:
        super().__init__(message)


class StateConflictError(OperationError):
    code = "state_conflict"
    status_code = 409


class StageMismatch(StateConflictError):
    code = "stage_mismatch"


class ValidationError(OperationError):
    code = "validation_error"
    status_code = 422


class NotFoundError(OperationError):
    code = "not_found"
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id: str) -> "NotFoundError":
        return cls(f"{entity} {entity_id} not found")
