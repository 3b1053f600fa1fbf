class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "DomainError"


class NotFoundError(DomainError):
    """Raised when an employee, login or summary does not exist."""

    kind = "NotFound"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "InvalidInput"


class ConflictError(DomainError):
    """Raised when a summary is already signed or approved."""

    kind = "Conflict"


class InvalidTransitionError(DomainError):
    """Raised when a workflow action is not legal from the current status."""

    kind = "InvalidTransition"


class AuthorizationError(DomainError):
    """Raised when an actor lacks permission for an action."""

    kind = "Unauthorized"
