# Base exception class
from .base import DynoCanvasError, ErrorKind

# Input, store and decode errors
from .domain_exceptions import (
    AccessDeniedError,
    ConflictError,
    ConnectionError,
    DecodeError,
    ExportLimitExceededError,
    InputError,
    InvalidRecordError,
    InvalidSearchParamsError,
    MissingPartitionKeyError,
    MissingPatternConfigError,
    MissingRequiredParameterError,
    NotFoundError,
    PkFormatUndefinedError,
    ReadOnlyModeError,
    RetryableError,
    StoreError,
    StoreErrorCategory,
    StoreValidationError,
)

__all__ = [
    # Base exception
    "DynoCanvasError",
    "ErrorKind",

    # Input errors
    "InputError",
    "InvalidRecordError",
    "InvalidSearchParamsError",
    "MissingPartitionKeyError",
    "MissingPatternConfigError",
    "MissingRequiredParameterError",
    "PkFormatUndefinedError",
    "ReadOnlyModeError",

    # Store errors
    "AccessDeniedError",
    "ConflictError",
    "ConnectionError",
    "ExportLimitExceededError",
    "NotFoundError",
    "RetryableError",
    "StoreError",
    "StoreErrorCategory",
    "StoreValidationError",

    # Decode errors
    "DecodeError",
]
