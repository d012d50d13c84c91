"""Store error hierarchy.

All store implementations raise these errors for consistent error handling.
"""


class StoreError(Exception):
    """Base exception for all store errors.

    All store implementations should wrap backend-specific errors
    in one of the StoreError subclasses.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when the database is unreachable or a query fails in transit."""

    pass


class ValidationError(StoreError):
    """Raised on input the database cannot accept (e.g. a non-integer id)."""

    pass
