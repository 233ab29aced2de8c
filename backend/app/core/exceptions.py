class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def error_type(self) -> str:
        return type(self).__name__


class ValidationError(AppError):
    """Raised when input is malformed or violates a write rule."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id=None, message: str | None = None):
        if message is None:
            message = f"{resource_type} not found"
        details = {"resource": resource_type}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(message, status_code=404, details=details)


NotFoundError = ResourceNotFoundError


class ConflictError(AppError):
    """Raised on overlapping intervals, duplicate tuples and occupancy clashes."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class PreconditionError(AppError):
    """Raised when a delete or deactivate is blocked by live dependents."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class PayloadTooLargeError(AppError):
    """Raised when a request body exceeds the configured limit."""
    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Request body too large ({size} bytes). Maximum allowed is {limit} bytes.",
            status_code=413,
            details={"size": size, "limit": limit},
        )


class InternalError(AppError):
    """Raised when the backing store fails. The message is always generic."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)
