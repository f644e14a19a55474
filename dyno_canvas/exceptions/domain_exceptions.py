"""
Domain-Specific Exceptions for dyno-canvas

Every failure a public operation can report falls into one of three kinds:

1. Input Errors   - caller-correctable, raised before any store call is made
2. Store Errors   - DynamoDB rejected or failed the request
3. Decode Errors  - a single import line could not be decoded

Store errors carry a category so the calling layer can render a message
without knowing botocore error codes.
"""

from enum import Enum
from typing import Any, Dict, Optional

from .base import DynoCanvasError, ErrorKind


# =============================================================================
# Input Errors
# =============================================================================

class InputError(DynoCanvasError):
    """Raised when caller-supplied input cannot be used.

    Used for:
    - Missing partition key or pattern configuration
    - Missing required key-template parameters
    - Invalid record shape or search parameters
    """

    kind = ErrorKind.INPUT

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize input error.

        Args:
            message: Human-readable error message
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.errors = errors or {}
        context = {'validation_errors': self.errors} if self.errors else None
        super().__init__(message, original_error, context)


class MissingPartitionKeyError(InputError):
    """A DIRECT search was issued without a partition key value."""

    def __init__(self):
        super().__init__("Partition Key is required")


class MissingPatternConfigError(InputError):
    """A PATTERN search was issued without an access pattern."""

    def __init__(self):
        super().__init__("Access Pattern Config is missing")


class PkFormatUndefinedError(InputError):
    """The access pattern has no partition key format."""

    def __init__(self, pattern_id: Optional[str] = None):
        self.pattern_id = pattern_id
        super().__init__("PK Format is not defined in pattern config.")


class MissingRequiredParameterError(InputError):
    """A partition key template placeholder had no value."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing required param for PK: {name}")


class InvalidRecordError(InputError):
    """A record is missing its key attributes or is otherwise malformed."""


class InvalidSearchParamsError(InputError):
    """Search parameters failed validation."""


class ReadOnlyModeError(InputError):
    """A mutating operation was attempted while read-only mode is on."""

    def __init__(self):
        super().__init__("Operation not allowed in Read-Only mode.")


# =============================================================================
# Store Errors
# =============================================================================

class StoreErrorCategory(str, Enum):
    RESOURCE_NOT_FOUND = "resource_not_found"
    THROUGHPUT_EXCEEDED = "throughput_exceeded"
    CONDITIONAL_CHECK_FAILED = "conditional_check_failed"
    VALIDATION_ERROR = "validation_error"
    ACCESS_DENIED = "access_denied"
    UNKNOWN = "unknown"


class StoreError(DynoCanvasError):
    """Base class for failures reported by DynamoDB."""

    kind = ErrorKind.STORE
    category = StoreErrorCategory.UNKNOWN

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)

    @property
    def error_code(self) -> Optional[str]:
        """botocore error code of the underlying ClientError, if any."""
        response = getattr(self.original_error, 'response', None)
        if not response:
            return None
        return response.get('Error', {}).get('Code')

    @property
    def store_message(self) -> str:
        """Message DynamoDB returned, falling back to our own."""
        response = getattr(self.original_error, 'response', None)
        if response:
            return response.get('Error', {}).get('Message') or self.message
        return self.message


class NotFoundError(StoreError):
    """Raised when a DynamoDB resource (table, index) is not found.

    Used for:
    - ResourceNotFoundException
    - Table or index not found errors
    """

    category = StoreErrorCategory.RESOURCE_NOT_FOUND

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize not found error.

        Args:
            message: Human-readable error message
            resource_type: Type of resource not found (e.g., 'table', 'index')
            resource_name: Name of the resource not found
            original_error: The original exception that caused this error
        """
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)

    @property
    def user_message(self) -> str:
        return "Table or Resource not found."


class ConflictError(StoreError):
    """Raised when a conditional operation fails due to existing data.

    Used for:
    - ConditionalCheckFailedException from DynamoDB
    - Uniqueness violations on create
    - Transaction conflicts
    """

    category = StoreErrorCategory.CONDITIONAL_CHECK_FAILED

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize conflict error.

        Args:
            message: Human-readable error message
            resource_id: ID of the conflicting resource
            original_error: The original exception that caused this error
        """
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)

    @property
    def user_message(self) -> str:
        return "Item already exists or condition failed."


class StoreValidationError(StoreError):
    """Raised when DynamoDB rejects a request as invalid (ValidationException)."""

    category = StoreErrorCategory.VALIDATION_ERROR

    @property
    def user_message(self) -> str:
        return f"Validation Error: {self.store_message}"


class AccessDeniedError(StoreError):
    """Raised for authentication and authorization failures."""

    category = StoreErrorCategory.ACCESS_DENIED

    @property
    def user_message(self) -> str:
        return "Access Denied."


class RetryableError(StoreError):
    """Raised when operation fails due to temporary/throttling issues that can be retried.

    Used for:
    - ProvisionedThroughputExceededException
    - RequestLimitExceeded errors
    - Unprocessed batch items left after retries
    """

    category = StoreErrorCategory.THROUGHPUT_EXCEEDED

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        """Initialize retryable error.

        Args:
            message: Human-readable error message
            retry_after_seconds: Suggested retry delay in seconds
            original_error: The original exception that caused this error
        """
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)

    @property
    def user_message(self) -> str:
        if self.error_code in ('ProvisionedThroughputExceededException', 'RequestLimitExceeded', None):
            return "Provisioned throughput exceeded."
        return self.message


class ConnectionError(StoreError):
    """Raised when a DynamoDB call fails for a reason we do not classify.

    Used for:
    - Network connectivity issues
    - Client construction failures
    - Unknown error codes
    """

    category = StoreErrorCategory.UNKNOWN

    @property
    def user_message(self) -> str:
        return self.store_message


class ExportLimitExceededError(StoreError):
    """A full-drain read produced more items than the configured ceiling."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Export exceeds the configured limit of {limit} items", context={'limit': limit})


# =============================================================================
# Decode Errors
# =============================================================================

class DecodeError(DynoCanvasError):
    """Raised when one line of an import stream cannot be decoded."""

    kind = ErrorKind.DECODE

    def __init__(self, message: str, line_number: Optional[int] = None, original_error: Optional[Exception] = None):
        self.line_number = line_number
        context = {'line': line_number} if line_number is not None else None
        super().__init__(message, original_error, context)
