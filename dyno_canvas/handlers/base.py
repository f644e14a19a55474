"""
Shared plumbing for the read/write APIs.

Every public handler operation:
1. validates its input (pydantic) before touching DynamoDB
2. runs against a TableGateway from the shared ClientPool
3. converts any failure into a result object instead of raising
"""

import logging
from typing import Any, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..config import DynoCanvasConfig
from ..core import ClientPool, TableGateway, create_table_gateway
from ..exceptions import InputError, ReadOnlyModeError
from ..models import OperationResult, TableName

logger = logging.getLogger(__name__)

ResultT = TypeVar('ResultT', bound=OperationResult)

_table_name_adapter = TypeAdapter(TableName)


def validate_table_name(table_name: Any) -> str:
    """Raise InputError unless ``table_name`` is a valid table name."""
    try:
        return _table_name_adapter.validate_python(table_name)
    except ValidationError as e:
        raise InputError(f"Invalid table name: {table_name!r}", original_error=e) from e


def validate_model(model_class, data: Any, error_class: Type[InputError] = InputError):
    """Validate ``data`` into ``model_class``; instances pass through."""
    if isinstance(data, model_class):
        return data
    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        raise error_class(f"Invalid {model_class.__name__}: {e}", original_error=e) from e


class BaseApi:
    """Configuration, client pool and gateway access for one API object."""

    def __init__(self, config: Optional[DynoCanvasConfig] = None, pool: Optional[ClientPool] = None):
        """Initialize API.

        Args:
            config: Connection configuration (defaults to environment)
            pool: Client pool shared with other APIs (a private one is created if omitted)
        """
        self.config = config or DynoCanvasConfig.from_env()
        self.pool = pool or ClientPool()

    def gateway(self, table_name: Optional[str] = None) -> TableGateway:
        return create_table_gateway(self.config, table_name, self.pool)

    def ensure_writable(self) -> None:
        if self.config.read_only:
            raise ReadOnlyModeError()

    @staticmethod
    def failure(result_class: Type[ResultT], error: Exception, operation: str, **fields: Any) -> ResultT:
        """Log a failed operation and wrap it in a result."""
        if isinstance(error, InputError):
            logger.warning(f"{operation} rejected: {error}")
        else:
            logger.error(f"{operation} failed: {error}")
        return result_class.failure(error, **fields)
