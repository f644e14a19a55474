# Base mixins and constrained names
from .base import (
    AttributeName,
    DynamoDBMixin,
    IndexName,
    PatternId,
    TableName,
)

# Core value objects
from .domain_models import (
    GSI_PK,
    GSI_SK,
    PK,
    SK,
    AccessPatternConfig,
    KeyPair,
    KeySchema,
    QueryPlan,
    Record,
    SearchMode,
    SearchParams,
)

# Results (read side)
from .views import (
    CountResult,
    ExportResult,
    ImportResult,
    OperationResult,
    Page,
    PipelineResult,
    SearchResult,
    TableDetailsResult,
)

# Write requests
from .dtos import (
    BATCH_DELETE_MAX_KEYS,
    BatchDeleteRequest,
    CreateGsiRequest,
    UpdateTtlRequest,
)

__all__ = [
    # Base mixins and names
    "AttributeName",
    "DynamoDBMixin",
    "IndexName",
    "PatternId",
    "TableName",

    # Value objects
    "PK",
    "SK",
    "GSI_PK",
    "GSI_SK",
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
    "Page",
    "PipelineResult",
    "SearchResult",
    "TableDetailsResult",

    # Write requests
    "BATCH_DELETE_MAX_KEYS",
    "BatchDeleteRequest",
    "CreateGsiRequest",
    "UpdateTtlRequest",
]
