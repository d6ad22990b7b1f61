"""
Error taxonomy and classification for famalbum.

Every failure surfaced by the collection engine is one of the classes below.
Foreign exceptions (DuckDB, Google Cloud) are wrapped at the operation
boundary; ``ErrorHandler`` classifies anything that escaped unwrapped.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import duckdb
from google.cloud.exceptions import GoogleCloudError

from .logging_config import get_logger, log_error

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    NOT_FOUND = "not_found"
    INVALID_OPERATION = "invalid_operation"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    DATABASE = "database"
    OBJECT_STORE = "object_store"
    PARTIAL_FAILURE = "partial_failure"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


HTTP_STATUS_BY_CATEGORY = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.INVALID_OPERATION: 400,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.DATABASE: 500,
    ErrorCategory.OBJECT_STORE: 500,
    ErrorCategory.PARTIAL_FAILURE: 207,
    ErrorCategory.UNKNOWN: 500,
}


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    message: str
    user_message: str
    details: dict[str, Any]
    timestamp: datetime
    http_status: int
    recoverable: bool = True
    retry_suggested: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "http_status": self.http_status,
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
        }


class FamAlbumError(Exception):
    """Base exception class for famalbum."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        retry_suggested: bool = False,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or self._generate_user_message()
        self.details = details or {}
        self.recoverable = recoverable
        self.retry_suggested = retry_suggested
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    @property
    def http_status(self) -> int:
        """HTTP status the routing layer should answer with."""
        return HTTP_STATUS_BY_CATEGORY.get(self.category, 500)

    def _generate_user_message(self) -> str:
        user_messages = {
            ErrorCategory.NOT_FOUND: "The requested item could not be found. It may have been deleted.",
            ErrorCategory.INVALID_OPERATION: "This operation is not allowed.",
            ErrorCategory.VALIDATION: "Some of the provided data is invalid.",
            ErrorCategory.CONFLICT: "This change conflicts with existing data.",
            ErrorCategory.DATABASE: "A database error occurred. Please try again later.",
            ErrorCategory.OBJECT_STORE: "A storage error occurred. Please try again later.",
            ErrorCategory.PARTIAL_FAILURE: "The operation completed, but some cleanup steps failed.",
            ErrorCategory.UNKNOWN: "An unexpected error occurred.",
        }
        return user_messages.get(self.category, "An error occurred.")

    def _log_error(self) -> None:
        error_context = {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            severity=self.severity,
            code=self.code,
            message=str(self),
            user_message=self.user_message,
            details=self.details,
            timestamp=self.timestamp,
            http_status=self.http_status,
            recoverable=self.recoverable,
            retry_suggested=self.retry_suggested,
        )


class NotFoundError(FamAlbumError):
    """A referenced collection, user or image does not exist."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            code=code or "not_found",
            user_message=user_message,
            details=details,
            recoverable=False,
            retry_suggested=False,
            original_exception=original_exception,
        )


class InvalidOperationError(FamAlbumError):
    """Structurally disallowed request, e.g. removing the owner."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.INVALID_OPERATION,
            severity=ErrorSeverity.LOW,
            code=code or "invalid_operation",
            user_message=user_message,
            details=details,
            recoverable=False,
            retry_suggested=False,
        )


class ValidationError(FamAlbumError):
    """Input failed validation before reaching the stores."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            code=code or "validation_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=False,
        )


class ConflictError(FamAlbumError):
    """Well-formed request that violates a uniqueness rule."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFLICT,
            severity=ErrorSeverity.LOW,
            code=code or "conflict",
            user_message=user_message,
            details=details,
            recoverable=False,
            retry_suggested=False,
        )


class StorageFailure(FamAlbumError):
    """An underlying relational- or object-store call failed."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.DATABASE,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=category,
            severity=ErrorSeverity.HIGH,
            code=code or "storage_failure",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class DatabaseError(StorageFailure):
    """Relational store (DuckDB) failure."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.DATABASE,
            code=code or "database_error",
            user_message=user_message,
            details=details,
            original_exception=original_exception,
        )


class ObjectStoreError(StorageFailure):
    """Object store (GCS) failure."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.OBJECT_STORE,
            code=code or "object_store_error",
            user_message=user_message,
            details=details,
            original_exception=original_exception,
        )


class PartialFailure(FamAlbumError):
    """One or more per-image deletions failed during a cascading delete.

    Built and logged by the deletion orchestrator, attached to its report,
    never raised out of ``delete_collection``.
    """

    def __init__(
        self,
        message: str,
        failures: list[dict[str, Any]],
        details: dict[str, Any] | None = None,
    ):
        self.failures = failures
        super().__init__(
            message=message,
            category=ErrorCategory.PARTIAL_FAILURE,
            severity=ErrorSeverity.MEDIUM,
            code="media_purge_incomplete",
            details={"failed_count": len(failures), **(details or {})},
            recoverable=True,
            retry_suggested=False,
        )


class ErrorHandler:
    """Classifies exceptions into the taxonomy and tracks their frequency."""

    def __init__(self) -> None:
        self.error_counts: dict[str, int] = {}
        self.logger = get_logger(__name__)

    def handle_error(
        self,
        error: Exception,
        context: dict[str, Any] | None = None,
    ) -> ErrorInfo:
        """
        Handle and classify an error.

        Args:
            error: Exception to handle
            context: Additional context information

        Returns:
            ErrorInfo: Structured error information
        """
        context = context or {}

        if isinstance(error, FamAlbumError):
            error_info = error.get_error_info()
        else:
            error_info = self._classify_error(error, context).get_error_info()

        self._track_error(error_info.code)
        return error_info

    def _classify_error(self, error: Exception, context: dict[str, Any]) -> FamAlbumError:
        details = {"original_type": type(error).__name__, **context}

        if isinstance(error, duckdb.Error):
            return DatabaseError(str(error), details=details, original_exception=error)

        if isinstance(error, GoogleCloudError):
            return ObjectStoreError(str(error), details=details, original_exception=error)

        if isinstance(error, (KeyError, LookupError)):
            return NotFoundError(str(error), details=details, original_exception=error)

        return FamAlbumError(
            message=str(error),
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.MEDIUM,
            details=details,
            original_exception=error,
        )

    def _track_error(self, error_code: str) -> None:
        self.error_counts[error_code] = self.error_counts.get(error_code, 0) + 1

        if self.error_counts[error_code] % 10 == 0:
            self.logger.warning("frequent_error_detected", error_code=error_code, count=self.error_counts[error_code])

    def get_error_statistics(self) -> dict[str, int]:
        """Get error occurrence statistics."""
        return self.error_counts.copy()

    def reset_statistics(self) -> None:
        """Reset error statistics."""
        self.error_counts.clear()


def get_http_status(error: Exception) -> int:
    """Map any exception to the status code the routing layer should use."""
    if isinstance(error, FamAlbumError):
        return error.http_status
    return 500
