class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced worker, project or record does not exist."""


class NoFaceDetectedError(DomainError):
    """Raised when the face directory finds no face in an enrollment photo."""


class DuplicateAttendanceError(DomainError):
    """Raised by the ledger when (worker, project, day) already has a record."""


class DuplicateAssignmentError(DomainError):
    """Raised when a worker already has an open assignment to the project."""


class ProviderError(Exception):
    """Infrastructure failure (face directory, object storage). Retryable by the caller."""

    def __init__(self, message: str, *, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider
