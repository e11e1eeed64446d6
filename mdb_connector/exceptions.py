"""
Custom exceptions for MDB_CONNECTOR.

Every connector error derives from MongoDBConnectorError, which stays a
RuntimeError so callers catching RuntimeError keep working.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .core.errors import ErrorCause


class MongoDBConnectorError(RuntimeError):
    """
    Base exception for MongoDB connector errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection,
                 field, stage, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(MongoDBConnectorError):
    """
    Raised when configuration is invalid or missing.

    Covers missing credentials, missing individual connection parameters,
    invalid settings and unknown operations. Always fatal for a run and
    raised before any connection attempt.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class MalformedConnectionStringError(ConfigurationError):
    """Raised when a connection string is empty or has an unknown scheme."""

    @property
    def cause(self) -> "ErrorCause":
        from .core.errors import ErrorCause

        return ErrorCause.MALFORMED_CONNECTION_STRING


class CommandError(MongoDBConnectorError):
    """
    Base class for errors scoped to a single batch item.

    Attributes:
        message: Error message
        field: Operation parameter that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if field:
            context["field"] = field
        super().__init__(message, context=context)
        self.field = field

    def __str__(self) -> str:
        # The field is already named in the message; keep item annotations readable.
        return self.message


class CommandParseError(CommandError):
    """
    Raised when a JSON parameter cannot be decoded.

    Attributes:
        diagnostic: Decoder error message
    """

    def __init__(
        self,
        field: str,
        diagnostic: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"Invalid {field} JSON: {diagnostic}", field=field, context=context)
        self.diagnostic = diagnostic


class CommandValidationError(CommandError):
    """Raised when a parameter decodes but has the wrong shape or value."""


class TransportError(MongoDBConnectorError):
    """
    Raised when the driver fails at connect or execute time.

    The message is the classified, user-facing message; the driver's own
    message is kept in ``original_message``.

    Attributes:
        cause: Classified ErrorCause
        stage: Where the failure happened ("connect", "execute", ...)
        original_message: Message of the underlying driver error
    """

    def __init__(
        self,
        message: str,
        cause: "ErrorCause",
        stage: Optional[str] = None,
        original_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        context["cause"] = cause.value
        if stage:
            context["stage"] = stage
        super().__init__(message, context=context)
        self.cause = cause
        self.stage = stage
        self.original_message = original_message
