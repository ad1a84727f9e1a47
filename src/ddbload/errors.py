# src/ddbload/errors.py
from typing import Optional


class LoaderError(Exception):
    """Base class for every failure the loader reports."""


class ConfigurationError(LoaderError):
    pass


class EventError(LoaderError):
    """The trigger payload does not identify a source object."""


class DecodeError(LoaderError):
    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class SourceError(LoaderError):
    """Reading or decompressing the source object failed."""


class StoreError(LoaderError):
    """A request-level S3 or DynamoDB failure."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class RetryExhaustedError(StoreError):
    def __init__(self, message: str, unprocessed: int = 0):
        super().__init__(message, code="RetryExhausted")
        self.unprocessed = unprocessed


def error_code(exc: BaseException) -> Optional[str]:
    # botocore ClientError carries the service error code in its response
    response = getattr(exc, "response", None) or {}
    return response.get("Error", {}).get("Code") or type(exc).__name__
