"""
Core application components including configuration and custom exceptions.
"""

from .config import settings
from .exceptions import (
    APIException,
    ExternalServiceError,
    InvalidCursorError,
    InvalidDateError,
    InvalidPageSizeError,
    MalformedIdError,
    NotFoundError,
    UnsupportedTypeError,
    ValidationError,
)

__all__ = [
    # config
    "settings",
    # exceptions
    "APIException",
    "ExternalServiceError",
    "InvalidCursorError",
    "InvalidDateError",
    "InvalidPageSizeError",
    "MalformedIdError",
    "NotFoundError",
    "UnsupportedTypeError",
    "ValidationError",
]
