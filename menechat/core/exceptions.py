"""
Exception hierarchy for MeneChat.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class MeneChatException(Exception):
    """Base exception for all MeneChat application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(MeneChatException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ConfigurationError(MeneChatException):
    """Raised when a required credential or endpoint is missing. Never retried."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize configuration error.

        Args:
            message: Error message
            setting: Name of the missing or invalid setting
            details: Additional context
        """
        details = details or {}
        if setting:
            details["setting"] = setting
        super().__init__(message, details)


class NetworkError(MeneChatException):
    """Raised on transport-level failures (connectivity, timeouts)."""

    pass


class ApiError(MeneChatException):
    """Raised when the completion service answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize API error.

        Args:
            message: Error message
            status: HTTP status code returned by the service
            details: Additional context
        """
        self.status = status
        details = details or {}
        details["status"] = status
        super().__init__(message, details)


class PersistenceError(MeneChatException):
    """Raised when a store read or write fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize persistence error.

        Args:
            message: Error message
            operation: Store operation that failed (append, list, create, delete)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class SessionNotFoundError(PersistenceError):
    """Raised when a session cannot be found."""

    def __init__(self, session_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize session not found error.

        Args:
            session_id: ID of the missing session
            details: Additional context
        """
        details = details or {}
        details["session_id"] = session_id
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}", details=details)


class StreamExhaustedError(MeneChatException):
    """Raised when a finished completion stream is pulled again."""

    pass
