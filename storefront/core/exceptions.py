"""Exceptions raised by the catalog services.

Each carries the HTTP status the API boundary maps it to.
"""
from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base exception for catalog errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message, returned to the caller
            status_code: HTTP status code for API responses
            details: Additional error details for logging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InvalidFilter(StorefrontError):
    """Raised when a search filter or sort parameter is malformed."""

    def __init__(self, field: str, value: Any, reason: str = "must be a number"):
        super().__init__(
            message=f"Invalid value for '{field}': {reason}",
            status_code=400,
            details={"field": field, "value": value},
        )
        self.field = field


class InvalidPagination(StorefrontError):
    """Raised when page or limit is not a positive integer."""

    def __init__(self, field: str, value: Any):
        super().__init__(
            message=f"Invalid value for '{field}': must be a positive integer",
            status_code=400,
            details={"field": field, "value": value},
        )
        self.field = field


class NotFound(StorefrontError):
    """Raised when a requested catalog entity does not exist."""

    def __init__(self, entity: str, key: Any):
        super().__init__(
            message=f"{entity} not found",
            status_code=404,
            details={"entity": entity, "key": key},
        )


class StoreUnavailable(StorefrontError):
    """Raised when the catalog database fails.

    The message is generic; the underlying error is only logged.
    """

    def __init__(self, operation: str, error: Exception):
        super().__init__(
            message="Catalog temporarily unavailable",
            status_code=500,
            details={
                "operation": operation,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
