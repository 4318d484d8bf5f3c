"""
Core exceptions for the application.

Every exception carries a ``code`` that is surfaced in the GraphQL error
``extensions`` by the error handler extension.
"""

from typing import Any


class APIException(Exception):
    """Base class for API exceptions."""

    code = "API_ERROR"

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code}


class ValidationError(APIException):
    """Raised when input data fails validation.

    ``errors`` maps a field name to the first violation found for it.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, errors: dict[str, str] | None = None, message: str = "VALIDATION_ERROR"):
        self.errors = errors or {}
        super().__init__(message)

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code, "fields": dict(self.errors)}


class MalformedIdError(APIException):
    """Raised when a global ID cannot be decoded."""

    code = "MALFORMED_ID"

    def __init__(self, message: str = "Malformed global ID"):
        super().__init__(message)


class InvalidCursorError(APIException):
    """Raised when a pagination cursor cannot be decoded."""

    code = "INVALID_CURSOR"

    def __init__(self, message: str = "Invalid cursor"):
        super().__init__(message)


class UnsupportedTypeError(APIException):
    """Raised when a global ID refers to a different kind of entity."""

    code = "UNSUPPORTED_TYPE"

    def __init__(self, message: str = "Unsupported node type"):
        super().__init__(message)


class NotFoundError(APIException):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class InvalidPageSizeError(APIException):
    code = "INVALID_PAGE_SIZE"

    def __init__(self, message: str = "`first` must be a positive integer"):
        super().__init__(message)


class InvalidDateError(APIException):
    """Raised when a filter date bound cannot be parsed."""

    code = "INVALID_DATE"

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Invalid {field} date")

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code, "field": self.field}


class ExternalServiceError(APIException):
    """Raised when the AI collaborator fails. Never surfaced to the wire."""

    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, message: str = "External service failed", quota_exceeded: bool = False):
        self.quota_exceeded = quota_exceeded
        super().__init__(message)
