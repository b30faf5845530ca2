"""Custom exceptions for the pipeline CRM application."""


class CRMException(Exception):
    """Base exception for the CRM application."""

    pass


class ValidationError(CRMException):
    """Raised when validation fails."""

    pass


class InvalidStageError(ValidationError):
    """Raised when a sales stage is not legal for the contact's phase."""

    def __init__(self, stage: str, phase: int) -> None:
        super().__init__(f"Stage {stage!r} is not valid for phase {phase}.")
        self.stage = stage
        self.phase = phase


class NotFoundError(CRMException):
    """Raised when a resource is not found."""

    pass


class DatabaseError(CRMException):
    """Raised when a database operation fails."""

    pass


class ServiceError(CRMException):
    """Raised when a service operation fails."""

    pass


class ConfigurationError(CRMException):
    """Raised when configuration is invalid."""

    pass
