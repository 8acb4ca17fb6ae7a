class DomainError(Exception):
    """Base class for errors raised by the scheduling services."""


class ValidationError(DomainError):
    """Malformed input to a store mutator (bad time range, half-open exception, ...)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(DomainError):
    # Schedules never raise this: a doctor without rows simply has no availability.
    def __init__(self, resource: str, resource_id: object):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id
