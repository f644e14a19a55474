"""
Core components for dyno-canvas.

- KeyTemplate: key format compiler (``USER#{userId}``)
- ExpressionBuilder / build_update_expression: aliased expression text
- build_query_plan: SearchParams -> QueryPlan
- ClientPool / TableGateway: boto3 access with error mapping
- QueryExecutor: paginated and full-drain reads
- RecordImportPipeline / PatternImportPipeline / encode_jsonl / render_csv
- AccessPatternStore / DynamoAccessPatternStore: access pattern persistence
"""

from .client_pool import ClientPool
from .executor import QueryExecutor
from .expressions import ExpressionBuilder, UpdateExpression, build_update_expression
from .key_template import KeyTemplate, Segment, SegmentKind, build_key_from_format
from .pattern_store import AccessPatternStore, DynamoAccessPatternStore
from .pipeline import (
    PatternImportPipeline,
    RecordImportPipeline,
    decode_line,
    encode_jsonl,
    render_csv,
)
from .query_plan import build_query_plan, resolve_key_names
from .table_gateway import TableGateway, create_table_gateway, map_dynamodb_error

__all__ = [
    "AccessPatternStore",
    "ClientPool",
    "DynamoAccessPatternStore",
    "ExpressionBuilder",
    "KeyTemplate",
    "PatternImportPipeline",
    "QueryExecutor",
    "RecordImportPipeline",
    "Segment",
    "SegmentKind",
    "TableGateway",
    "UpdateExpression",
    "build_key_from_format",
    "build_query_plan",
    "build_update_expression",
    "create_table_gateway",
    "decode_line",
    "encode_jsonl",
    "map_dynamodb_error",
    "render_csv",
    "resolve_key_names",
]
