"""
Write-side DTOs for table and item administration

Validated request shapes for the mutating operations whose inputs are more than
a table name and a key:

- CreateGsiRequest: a new global secondary index
- UpdateTtlRequest: enable/disable TTL on one attribute
- BatchDeleteRequest: 1..25 primary keys removed in one call
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from .base import AttributeName, IndexName, TableName
from .domain_models import KeyPair

BATCH_DELETE_MAX_KEYS = 25


class CreateGsiRequest(BaseModel):
    """New GSI with string-or-other typed key attributes."""

    table_name: TableName
    index_name: IndexName
    pk_name: AttributeName
    pk_type: str = Field("S", pattern=r'^(S|N|B)$')
    sk_name: Optional[AttributeName] = None
    sk_type: str = Field("S", pattern=r'^(S|N|B)$')


class UpdateTtlRequest(BaseModel):
    table_name: TableName
    enabled: bool
    attribute_name: AttributeName


class BatchDeleteRequest(BaseModel):
    table_name: TableName
    keys: List[KeyPair] = Field(..., min_length=1, max_length=BATCH_DELETE_MAX_KEYS)

