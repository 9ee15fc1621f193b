"""
Structured error types for perema.

Instead of bare exceptions that lose context, every error raised by perema
code extends :class:`PeremaError` and carries:

- **Category:** what kind of failure (validation, config, delivery, ...)
- **Retryable:** whether repeating the same call may succeed
- **Context:** free-form key/value metadata for logging
- **Cause:** the chained underlying exception

Hierarchy::

    PeremaError
    ├── ValidationError        (VALIDATION, never retryable)
    ├── NotFoundError          (NOT_FOUND, never retryable)
    ├── ConfigError            (CONFIG, never retryable)
    │   └── MissingConfigError
    ├── StorageError           (STORAGE)
    └── TransientError         (retryable)
        └── MailDeliveryError  (DELIVERY)

Operation functions translate these into ``OperationResult.fail`` codes via
:func:`error_code_for`; the API then maps codes to HTTP statuses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFIG = "CONFIG"
    STORAGE = "STORAGE"
    DATABASE = "DATABASE"
    DELIVERY = "DELIVERY"
    NETWORK = "NETWORK"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


class PeremaError(Exception):
    """Base exception for all perema errors.

    Subclasses set ``default_category`` and ``default_retryable`` so call
    sites only pass a message in the common case::

        raise NotFoundError("Contact 42 not found").with_context(contact_id=42)
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PeremaError:
        """Add context to this error (fluent API)."""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.context:
            result["context"] = self.context
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DATA ERRORS
# =============================================================================


class ValidationError(PeremaError):
    """
    Input failed a domain rule.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(self, message: str, *, field: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class NotFoundError(PeremaError):
    """A referenced record does not exist."""

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False


class StorageError(PeremaError):
    """File storage (photo uploads) failed."""

    default_category = ErrorCategory.STORAGE


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(PeremaError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(PeremaError):
    """Temporary failure that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class MailDeliveryError(TransientError):
    """The mail provider rejected or failed to accept a message."""

    default_category = ErrorCategory.DELIVERY

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code


# =============================================================================
# HELPERS
# =============================================================================

_CODE_BY_CATEGORY: dict[ErrorCategory, str] = {
    ErrorCategory.VALIDATION: "VALIDATION_FAILED",
    ErrorCategory.NOT_FOUND: "NOT_FOUND",
    ErrorCategory.CONFIG: "UNAVAILABLE",
    ErrorCategory.DELIVERY: "TRANSIENT",
    ErrorCategory.NETWORK: "TRANSIENT",
}


def error_code_for(error: Exception) -> str:
    """Map an exception to an operation error code (``NOT_FOUND``, ...)."""
    if isinstance(error, PeremaError):
        return _CODE_BY_CATEGORY.get(error.category, "INTERNAL")
    return "INTERNAL"


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, PeremaError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "PeremaError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "ConfigError",
    "MissingConfigError",
    "TransientError",
    "MailDeliveryError",
    "error_code_for",
    "is_retryable",
]
