"""Custom exception classes for Court Autobook."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class AutobookError(Exception):
    """Base exception for Court Autobook."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize Autobook error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable with retry
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class ValidationError(AutobookError):
    """A candidate or request is missing required fields or is malformed."""

    def __init__(self, message: str = "Validation error", field: Optional[str] = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the offending field, if known
        """
        self.field = field
        details = {"field": field} if field else {}
        super().__init__(message, recoverable=False, details=details)


class UpstreamRejectedError(AutobookError):
    """The upstream service answered with a non-success status."""

    def __init__(self, status: int, body: Any = None, message: Optional[str] = None):
        """
        Initialize upstream rejection.

        Args:
            status: HTTP status code returned by the upstream service
            body: Response body, passed through verbatim
            message: Optional override for the error message
        """
        self.status = status
        self.body = body
        super().__init__(
            message or f"Upstream rejected request with status {status}",
            recoverable=status >= 500,
            details={"status": status, "body": body},
        )


class NetworkError(AutobookError):
    """No structured response was received (timeout, connection failure)."""

    def __init__(self, message: str = "Network error occurred", recoverable: bool = True):
        super().__init__(message, recoverable)


class ConfigurationError(AutobookError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class MissingTokenError(ConfigurationError):
    """Raised when an upstream call is attempted without an auth token."""

    def __init__(self):
        super().__init__("Auth token is not configured", details={"reason": "no-token"})
