class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str = "Resource", id: str = ""):
        super().__init__(f"{resource} not found: {id}" if id else f"{resource} not found")


class ConflictError(AppError):
    """Raised when a write would duplicate an existing resource."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class AuthenticationError(AppError):
    """Raised when credentials are invalid."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthorizationError(AppError):
    """Raised when a user lacks permission for an action."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


class ValidationError(AppError):
    """Raised for empty or malformed identifiers and payloads."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)


class StorageError(AppError):
    """Raised when the storage backend fails or does not answer in time."""

    def __init__(self, message: str = "Storage unavailable"):
        super().__init__(message)


class VersionRaceError(AppError):
    """Raised when two writers allocate the same version number.

    Internal to the version store, which retries the allocation.
    """

    def __init__(self, document_id: str = "", version_number: int = 0):
        self.version_number = version_number
        super().__init__(
            f"Version {version_number} of document {document_id} was taken concurrently"
        )
