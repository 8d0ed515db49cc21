"""mdrrmo core exception classes."""

from typing import Any

from mdrrmo.core.exceptions.codes import ErrorCode


class MdrrmoError(Exception):
    """Base exception for mdrrmo."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL.value,
        details: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human readable message
            error_code: Error code
            details: Extra details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable payload representing the error."""

        return {
            "code": self.error_code,
            "message": self.message,
            "details": dict(self.details),
        }


class CacheError(MdrrmoError):
    """Cache related errors."""

    def __init__(
        self,
        message: str,
        cache_type: str | None = None,
        error_code: str = ErrorCode.CACHE.value,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if cache_type:
            super_details["cache_type"] = cache_type
        super().__init__(message, error_code, super_details)
        self.cache_type = cache_type


class StorageError(CacheError):
    """Durable storage read/write/serialization failure."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if key is not None:
            super_details["key"] = key
        if operation:
            super_details["operation"] = operation
        super().__init__(message, "persistent", ErrorCode.STORAGE.value, super_details)
        self.key = key
        self.operation = operation


class BackendError(MdrrmoError):
    """The backend service rejected a request or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, ErrorCode.BACKEND.value, super_details)
        self.status_code = status_code


class ConfigError(MdrrmoError):
    """Invalid or unreadable configuration."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIG.value, details)
