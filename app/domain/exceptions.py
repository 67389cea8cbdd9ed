"""Application exceptions for the portfolio API.

The cache subsystem never raises these to callers (it degrades to a miss);
they cover the small HTTP surface the service exposes itself. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class PortfolioException(Exception):
    """Base exception for all portfolio API errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """JSON body used by the exception handler."""
        body: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationException(PortfolioException):
    """Raised when a caller fails to present valid credentials."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")
