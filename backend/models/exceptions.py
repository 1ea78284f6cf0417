"""
Custom domain exceptions for the application.

These exceptions are raised by the service layer and converted to HTTP exceptions
by centralized exception handlers in main.py, maintaining proper separation of concerns.

The authentication module (auth.py) also uses these domain exceptions to remain
HTTP-agnostic, allowing reuse in non-HTTP contexts (CLI tools, background tasks).

Each exception carries a correlation ID for Sentry and user error reporting.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    pass


class PermissionDeniedException(DomainException):
    """Raised when user lacks required permissions."""

    pass


class ValidationException(DomainException):
    """Raised when input validation fails."""

    pass


class ConflictException(DomainException):
    """Raised when operation conflicts with existing data."""

    pass


class AuthenticationException(DomainException):
    """Raised when authentication fails."""

    pass


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    pass


# Users and scouts


class UserNotFoundException(NotFoundException):
    """User not found."""

    pass


class InactiveUserException(PermissionDeniedException):
    """User account is inactive."""

    pass


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't have sufficient permissions."""

    pass


class ScoutNotFoundException(NotFoundException):
    """Scout not found."""

    pass


class ScoutAccessDeniedException(PermissionDeniedException):
    """Raised when a family member asks for a scout they are not linked to."""

    def __init__(self, scout_id: int) -> None:
        super().__init__(f"You do not have access to scout {scout_id}")
        self.scout_id = scout_id


# Family notifications


class NotificationNotFoundException(NotFoundException):
    """Raised when a notification does not exist or belongs to someone else."""

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class NoRecipientsException(BusinessRuleException):
    """Raised when a fan-out resolves to no family members."""

    pass


# File uploads


class UploadedFileNotFoundException(NotFoundException):
    """Uploaded file record not found."""

    def __init__(self, file_id: int) -> None:
        super().__init__(f"File {file_id} not found")
        self.file_id = file_id


class EmptyFileException(ValidationException):
    """No file content was provided."""

    def __init__(self) -> None:
        super().__init__("No file was provided")


class FileTooLargeException(ValidationException):
    """Raised when the upload exceeds the configured size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(
            f"File size {size} bytes exceeds the {max_size // (1024 * 1024)}MB limit"
        )
        self.size = size
        self.max_size = max_size


class UnsupportedFileTypeException(ValidationException):
    """Raised when the MIME type is not in the allow-list."""

    def __init__(self, mime_type: str) -> None:
        super().__init__(f"File type '{mime_type}' is not allowed")
        self.mime_type = mime_type


class StorageException(DomainException):
    """Raised when the storage provider or the metadata write fails."""

    pass


class InvalidMigrationException(ValidationException):
    """Raised when a storage migration is requested between invalid backends."""

    pass


# Calendar


class ActivityNotFoundException(NotFoundException):
    """Activity not found."""

    def __init__(self, activity_id: int) -> None:
        super().__init__(f"Activity {activity_id} not found")
        self.activity_id = activity_id
