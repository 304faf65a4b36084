"""Exceptions raised by the Bitable client."""

from typing import Optional

# Bitable's RecordIdNotFound code
RECORD_NOT_FOUND_CODE = 254404


class ExternalServiceError(Exception):
    """Base exception for failures of the external tabular service."""

    status_code = 502

    def __init__(self, message: str, code: Optional[int] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class ExternalAuthError(ExternalServiceError):
    """The tenant access token could not be obtained."""


class ExternalApiError(ExternalServiceError):
    """The API answered with a non-zero application code."""

    def __str__(self) -> str:
        return f"{self.message} (code: {self.code})"


class ExternalNotFoundError(ExternalApiError):
    """The requested record does not exist."""

    status_code = 404
