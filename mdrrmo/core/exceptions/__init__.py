"""Exception handling module."""

from mdrrmo.core.exceptions.base import (
    BackendError,
    CacheError,
    ConfigError,
    MdrrmoError,
    StorageError,
)
from mdrrmo.core.exceptions.codes import ErrorCode

__all__ = [
    "MdrrmoError",
    "CacheError",
    "StorageError",
    "BackendError",
    "ConfigError",
    "ErrorCode",
]
