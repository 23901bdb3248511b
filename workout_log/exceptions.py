"""
Custom exceptions for the workout log.

The local store, the remote repository and the HTTP client raise these
so callers can tell validation and storage problems apart from
connectivity problems (which the sync engine absorbs).
"""


class WorkoutLogError(Exception):
    """Base exception for all workout log errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RecordValidationError(WorkoutLogError):
    """Raised when a record fails validation (e.g. missing name or weight)."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class StorageIOError(WorkoutLogError):
    """Raised when a storage I/O operation fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class StorageConnectionError(WorkoutLogError):
    """Raised when a store or remote endpoint cannot be reached.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Connection failed to {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause


class SyncError(WorkoutLogError):
    """Raised when the remote authority does not acknowledge a batch."""

    def __init__(self, message: str, status: int | None = None, cause: Exception | None = None):
        details: dict = {}
        if status is not None:
            details["status"] = status
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.status = status
        self.cause = cause
