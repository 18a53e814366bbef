"""Domain error types."""


class DomainError(Exception):
    """Base domain error."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Resource not found."""
    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with id {identifier} not found")


class ValidationError(DomainError):
    """Validation error."""
    pass


class AuthorizationError(DomainError):
    """Authorization error."""
    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class DuplicateRequestError(DomainError):
    """A pending request (or its outcome) already exists for the same parties."""
    pass


class IllegalStateError(DomainError):
    """Operation not allowed in the current state of the record."""
    pass


class InvalidDecisionError(IllegalStateError):
    """Decision value is not one of the supported responses."""
    def __init__(self, decision: str):
        self.decision = decision
        super().__init__(f"Unsupported decision: {decision}")


class UnprocessableEntityError(ValidationError):
    """Request is well formed but a precondition on related data is not met."""
    pass


class TemplateError(DomainError):
    """Notification template missing or not renderable (configuration error)."""
    pass
