"""API exception hierarchy for consistent error handling.

All API exceptions inherit from CloudnativeAPIError, whose status_code is
used by the global exception handler to render ``{"error": message}``.
"""


class CloudnativeAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ItemOperationError(CloudnativeAPIError):
    """Raised when a database operation on items fails.

    The message is fixed per operation; backend details stay in the logs
    and on the span.
    """

    status_code = 500
