from .config import DynoCanvasConfig
from .exceptions import (
    ConflictError,
    ConnectionError,
    DecodeError,
    DynoCanvasError,
    ErrorKind,
    InputError,
    NotFoundError,
    ReadOnlyModeError,
    RetryableError,
    StoreError,
)
from .models import (
    # Value objects
    AccessPatternConfig,
    KeyPair,
    KeySchema,
    QueryPlan,
    Record,
    SearchMode,
    SearchParams,
    # Results
    CountResult,
    ExportResult,
    ImportResult,
    OperationResult,
    SearchResult,
    TableDetailsResult,
)
from .core import (
    # Building blocks
    ClientPool,
    KeyTemplate,
    QueryExecutor,
    TableGateway,
    build_key_from_format,
    build_query_plan,
    create_table_gateway,
)
from .handlers.items import (
    # Item CQRS APIs
    ItemReadApi,
    ItemWriteApi,
)
from .handlers.tables import (
    # Table CQRS APIs
    TableReadApi,
    TableWriteApi,
)

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "DynoCanvasConfig",

    # Exceptions
    "ConflictError",
    "ConnectionError",
    "DecodeError",
    "DynoCanvasError",
    "ErrorKind",
    "InputError",
    "NotFoundError",
    "ReadOnlyModeError",
    "RetryableError",
    "StoreError",

    # Value objects
    "AccessPatternConfig",
    "KeyPair",
    "KeySchema",
    "QueryPlan",
    "Record",
    "SearchMode",
    "SearchParams",

    # Results
    "CountResult",
    "ExportResult",
    "ImportResult",
    "OperationResult",
    "SearchResult",
    "TableDetailsResult",

    # Building blocks
    "ClientPool",
    "KeyTemplate",
    "QueryExecutor",
    "TableGateway",
    "build_key_from_format",
    "build_query_plan",
    "create_table_gateway",

    # CQRS APIs
    "ItemReadApi",
    "ItemWriteApi",
    "TableReadApi",
    "TableWriteApi",
]
