"""Custom application exceptions."""

from uuid import UUID


class AppException(Exception):
    """Base application exception."""

    kind = "internal_error"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppException):
    """Referenced resource does not exist."""

    kind = "not_found"

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedError(AppException):
    """Unauthorized access exception."""

    kind = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ValidationError(AppException):
    """Malformed or missing input the caller can correct."""

    kind = "validation_error"

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class DuplicateError(AppException):
    """Uniqueness constraint violated."""

    kind = "duplicate"

    def __init__(self, message: str = "Resource already exists"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class SchedulingConflictError(AppException):
    """Requested slot overlaps an existing booking or falls outside working hours."""

    kind = "scheduling_conflict"

    def __init__(
        self,
        message: str = "Requested time is not available",
        conflicting_appointment_id: UUID | None = None,
    ):
        """Initialize with 409 status code and the clashing appointment, if any."""
        self.conflicting_appointment_id = conflicting_appointment_id
        super().__init__(message, status_code=409)


class InvalidTransitionError(AppException):
    """Appointment state machine violation."""

    kind = "invalid_transition"

    def __init__(self, message: str = "Invalid status transition"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class CapacityExceededError(AppException):
    """No confirmed places left."""

    kind = "capacity_exceeded"

    def __init__(self, message: str = "Capacity exceeded"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)
