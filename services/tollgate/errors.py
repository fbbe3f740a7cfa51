"""
Error taxonomy for admin operations.

Every failure the admin service reports is one of four kinds, each carrying
the HTTP status and machine-readable code the API surface renders.
Storage-layer causes are logged where they are caught and never attached here.
"""


class AdminError(Exception):
    """Base exception for admin operations."""

    status_code: int = 400
    code: str = "admin_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInputError(AdminError):
    """Raised when a request payload is empty or malformed."""

    code = "invalid_input"


class NotFoundError(AdminError):
    """Raised when a referenced role (or the public role) does not exist."""

    status_code = 404
    code = "not_found"


class ForbiddenError(AdminError):
    """Raised when an operation targets the protected public role."""

    status_code = 403
    code = "forbidden"


class OperationFailedError(AdminError):
    """Raised when the persistence layer fails during a mutation."""

    code = "operation_failed"

    def __init__(self, message: str = "An error occurred") -> None:
        super().__init__(message)


class UnknownBackendError(RuntimeError):
    """Raised at startup when the configured search backend is not registered."""

    def __init__(self, backend: str, available: list[str]) -> None:
        self.backend = backend
        self.available = available
        super().__init__(
            f"Unknown search backend '{backend}' (available: {', '.join(available)})"
        )
