"""Custom exception hierarchy."""

class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class InvalidRangeError(ValidationError):
    """Raised when a date range ends before it starts."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class StorageError(AppError):
    """Raised when the file storage backend rejects or fails a request."""
    pass


class NotFoundError(AppError):
    """Base exception for missing records."""
    pass


class InstrumentNotFoundError(NotFoundError):
    """Raised when a bank account or credit card is not found."""
    pass


class StatementNotFoundError(NotFoundError):
    """Raised when a statement is not found."""
    pass


class OwnershipError(AppError):
    """Raised when a record does not belong to the claim in the request path."""
    pass
