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


class UnauthorizedError(AppError):
    """Raised when a request needs a signed-in user and has none."""

    def __init__(self, message="Unauthorized"):
        """Initialize the error."""
        super().__init__(message, 401)


class AccessDenied(AppError):
    """Raised when the caller lacks permission for an action."""

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


class ConfigurationError(AppError):
    """Raised when a listing is not configured for the requested operation.

    ``status`` is the short outcome code reported by batch callers such as
    reorder (``invalid-case-size``, ``po-disabled``, ...).
    """

    def __init__(self, message="Invalid configuration.", status="invalid-config"):
        """Initialize the error."""
        super().__init__(message, 422)
        self.status = status
