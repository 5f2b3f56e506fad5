"""
Structured error types for listcraft.

Every failure the position engine raises on its own account is a
``ListcraftError``. Errors carry a category, an explicit retry flag and a
context block so callers can log them as structured events instead of
parsing messages.

Manifesto:
    - **Typed hierarchy:** configuration mistakes and storage problems are
      different classes, not different strings
    - **Explicit retry semantics:** nothing in listcraft is transient; every
      scope error is a caller configuration error and is never retryable
    - **Rich context:** the model, scope and position column travel with
      the error
    - **Error chaining:** the original exception is kept as ``cause``

Architecture:
    ::

        ListcraftError (category, retryable, context, cause)
        ├── ConfigError            (CONFIG)
        │   ├── InvalidConfigError
        │   └── ScopeError
        │       ├── NullScopeError
        │       ├── NullForeignKeyError
        │       ├── InvalidScopeError
        │       └── InvalidQueryError
        └── StorageError           (STORAGE)
            ├── DetachedItemError
            └── UnsupportedModelError

    Database failures raised by SQLAlchemy are never wrapped; they reach the
    caller unchanged and the enclosing transaction rolls back.

Examples:
    >>> error = NullScopeError("scope is None")
    >>> error.retryable
    False
    >>> error.category.value
    'CONFIG'
    >>> error.with_context(model="TodoItem").context.model
    'TodoItem'

Tags:
    error-handling, exception-hierarchy, listcraft, configuration

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"
    STORAGE = "STORAGE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error."""

    model: str | None = None
    scope: str | None = None
    position_column: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return only the fields that are set, with metadata flattened in."""
        result: dict[str, Any] = {}
        if self.model is not None:
            result["model"] = self.model
        if self.scope is not None:
            result["scope"] = self.scope
        if self.position_column is not None:
            result["position_column"] = self.position_column
        result.update(self.metadata)
        return result


class ListcraftError(Exception):
    """
    Base exception for all listcraft errors.

    Subclasses set ``default_category`` and ``default_retryable`` so the
    raising site only has to supply a message.
    """

    # Default category for this error type
    default_category: ErrorCategory = ErrorCategory.INTERNAL

    # Default retryable setting
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ListcraftError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NullForeignKeyError("todo_list_id is None").with_context(
                model="TodoItem", scope="todo_list_id"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (Never Retryable)
# =============================================================================


class ConfigError(ListcraftError):
    """The list configuration or the scope definition is wrong."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """A ``ListConfiguration`` field has an unusable value."""


class ScopeError(ConfigError):
    """A scope could not be resolved into a predicate."""


class NullScopeError(ScopeError):
    """The configured scope is ``None``."""


class NullForeignKeyError(ScopeError):
    """The scope is a foreign-key equality but the item's key is ``None``."""


class InvalidScopeError(ScopeError):
    """The scope is not a raw predicate, a foreign key or a derived filter."""


class InvalidQueryError(ScopeError):
    """A derived filter carries no WHERE clause."""


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageError(ListcraftError):
    """The item or its model cannot be handled by the position store."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class DetachedItemError(StorageError):
    """An explicit list operation was called on an item outside any session."""


class UnsupportedModelError(StorageError):
    """The mapped model has a shape listcraft cannot order (composite key)."""


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Return the retry flag of a listcraft error; other exceptions are not retryable."""
    if isinstance(error, ListcraftError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Return the category of a listcraft error, ``INTERNAL`` for anything else."""
    if isinstance(error, ListcraftError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ListcraftError",
    "ConfigError",
    "InvalidConfigError",
    "ScopeError",
    "NullScopeError",
    "NullForeignKeyError",
    "InvalidScopeError",
    "InvalidQueryError",
    "StorageError",
    "DetachedItemError",
    "UnsupportedModelError",
    "is_retryable",
    "categorize_error",
]
