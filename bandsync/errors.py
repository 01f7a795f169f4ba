"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class Unauthenticated(AppError):
    """Raised when no verified user is attached to the session."""

    def __init__(self, message="Authentication required."):
        """Initialize the error."""
        super().__init__(message, 401)


class PermissionDenied(AppError):
    """Raised when the caller's role does not allow the action."""

    def __init__(self, message="You do not have permission to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class ConcurrentModification(AppError):
    """Raised when a conditional write kept losing to concurrent writers."""

    def __init__(self, message="The record was modified concurrently."):
        """Initialize the error."""
        super().__init__(message, 409)


class LastAdminConstraint(AppError):
    """Raised when an operation would leave a group without an admin."""

    def __init__(self, message="A group must keep at least one admin."):
        """Initialize the error."""
        super().__init__(message, 409)


class InvalidPolicy(AppError):
    """Raised when a permission change is malformed or would lock admins out."""

    def __init__(self, message="Invalid permission policy."):
        """Initialize the error."""
        super().__init__(message, 422)


class DecodeError(AppError):
    """Raised when a stored document does not match its expected shape."""

    def __init__(self, message="Stored document is malformed."):
        """Initialize the error."""
        super().__init__(message, 500)


class UpstreamUnavailable(AppError):
    """Raised when the backing store stays unreachable after retries."""

    def __init__(self, message="The data store is unavailable. Try again later."):
        """Initialize the error."""
        super().__init__(message, 503)


class CodeGenerationExhausted(AppError):
    """Raised when no free join code was drawn within the attempt budget."""

    def __init__(self, message="Could not generate a unique join code."):
        """Initialize the error."""
        super().__init__(message, 503)
