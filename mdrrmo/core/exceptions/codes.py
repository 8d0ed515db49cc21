"""Standardized error codes."""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by every ``MdrrmoError``."""

    GENERAL = "GENERAL_ERROR"
    CACHE = "CACHE_ERROR"
    STORAGE = "STORAGE_ERROR"
    BACKEND = "BACKEND_ERROR"
    CONFIG = "CONFIG_ERROR"
