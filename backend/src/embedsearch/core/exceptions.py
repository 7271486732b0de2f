"""Custom exceptions for the embedsearch backend.

This module defines all custom exceptions used throughout the application,
both by the server-side pipeline and by the widget loader.
"""

from typing import Any


class EmbedSearchException(Exception):
    """Base exception class for embedsearch."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Request Exceptions
class ValidationError(EmbedSearchException):
    """Raised when a uid or query is missing, blank or too long."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=details,
        )


# Plugin Registry Exceptions
class PluginNotFoundError(EmbedSearchException):
    """Raised when a uid is neither registered nor served by the degraded-mode allowlist."""

    def __init__(self, uid: str, details: dict[str, Any] | None = None):
        super().__init__(
            message="Plugin not found. Please provide a valid uid.",
            error_code="PLUGIN_NOT_FOUND",
            status_code=404,
            details=details or {"uid": uid},
        )
        self.uid = uid


class PluginAlreadyExistsError(EmbedSearchException):
    """Raised when a (type, uid) pair is already registered."""

    def __init__(self, plugin_type: str, uid: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Plugin with type '{plugin_type}' and uid '{uid}' already exists",
            error_code="PLUGIN_ALREADY_EXISTS",
            status_code=409,
            details=details or {"type": plugin_type, "uid": uid},
        )


class RegistryUnavailableError(EmbedSearchException):
    """Raised when the primary plugin registry cannot be reached."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Plugin registry unavailable: {reason}",
            error_code="REGISTRY_UNAVAILABLE",
            status_code=503,
            details=details or {"reason": reason},
        )


# Database Exceptions
class DatabaseConnectionError(EmbedSearchException):
    """Raised when there's a database connection error (network, auth, etc.)."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Database connection error: {reason}",
            error_code="DATABASE_CONNECTION_ERROR",
            status_code=503,
            details=details or {"reason": reason},
        )


class DatabaseQueryError(EmbedSearchException):
    """Raised when a database query fails (syntax, permissions, etc.)."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Database query error: {reason}",
            error_code="DATABASE_QUERY_ERROR",
            status_code=500,
            details=details or {"reason": reason},
        )


class DatabaseSessionError(EmbedSearchException):
    """Raised when there's an error with database session management."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Database session error: {reason}",
            error_code="DATABASE_SESSION_ERROR",
            status_code=500,
            details=details or {"reason": reason},
        )


# Ranking Model Exceptions
class UpstreamError(EmbedSearchException):
    """Base class for failures of the external ranking model."""


class UpstreamConfigError(UpstreamError):
    """Raised when the ranking model credential is not configured."""

    def __init__(self, message: str = "AI search is not configured", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="AI_SEARCH_NOT_CONFIGURED",
            status_code=503,
            details=details,
        )


class UpstreamFormatError(UpstreamError):
    """Raised when the ranking model output is not a parseable JSON array."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="AI_RESPONSE_FORMAT_ERROR",
            status_code=500,
            details=details,
        )


class UpstreamProviderError(UpstreamError):
    """Raised when the ranking model provider answers with an HTTP error."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="AI_PROVIDER_ERROR",
            status_code=502,
            details=details,
        )


class UpstreamTimeoutError(UpstreamError):
    """Raised when the ranking call exceeds the configured timeout."""

    def __init__(self, message: str = "AI search timed out", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="AI_SEARCH_TIMEOUT",
            status_code=504,
            details=details,
        )


# Widget Loader Exceptions
class TransportError(EmbedSearchException):
    """Raised by the widget loader when the search service cannot be reached."""

    def __init__(self, message: str = "Unable to connect to search service.", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="TRANSPORT_ERROR",
            status_code=503,
            details=details,
        )


class WidgetStateError(EmbedSearchException):
    """Raised on an illegal widget state transition."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Illegal widget transition {current} -> {target}",
            error_code="WIDGET_STATE_ERROR",
            status_code=409,
            details={"from": current, "to": target},
        )
