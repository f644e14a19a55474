"""
Domain Models for dyno-canvas

Value objects passed into and returned from the core. None of them are retained
between calls.

Organized by concern:
1. Search Requests (SearchMode, SearchParams)
2. Access Patterns (AccessPatternConfig)
3. Records (Record, KeyPair)
4. Compiled Queries (KeySchema, QueryPlan)
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import AttributeName, DynamoDBMixin, IndexName, PatternId, TableName

PK = "PK"
SK = "SK"
GSI_PK = "GSI1PK"
GSI_SK = "GSI1SK"


# =============================================================================
# Search Requests
# =============================================================================

class SearchMode(str, Enum):
    """How a search builds its key condition."""
    DIRECT = "DIRECT"
    PATTERN = "PATTERN"


# =============================================================================
# Access Patterns
# =============================================================================

class AccessPatternConfig(BaseModel):
    """A named, reusable query shape for one table.

    ``pk_format`` and ``sk_format`` are key templates such as
    ``"USER#{userId}#ORDER#{orderId}"``; the placeholders are filled from the
    search's ``pattern_params`` when the query is compiled.
    """

    id: PatternId = Field(..., description="Access pattern identifier")
    label: str = Field(..., min_length=1, max_length=100, description="Display label")
    description: str = Field(default="", max_length=500, description="Free-form description")
    pk_format: str = Field(..., min_length=1, alias="pkFormat", description="Partition key template")
    sk_format: Optional[str] = Field(None, alias="skFormat", description="Sort key template")
    index_name: Optional[IndexName] = Field(None, alias="indexName", description="GSI to query")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @staticmethod
    def fields_from_document(doc: Dict[str, Any]) -> Dict[str, Any]:
        """Map a stored access pattern document onto config field names.

        Two spellings exist in exported pattern files: ``PKFormat``/``SKFormat``/
        ``GSIName`` and the older ``PK_Format``/``SK_Format``/``IndexName``.
        """
        return {
            'id': doc.get('AccessPatternId'),
            'label': doc.get('Label'),
            'description': doc.get('Description') or "",
            'pk_format': doc.get('PKFormat') or doc.get('PK_Format'),
            'sk_format': doc.get('SKFormat') or doc.get('SK_Format'),
            'index_name': doc.get('GSIName') or doc.get('IndexName'),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'AccessPatternConfig':
        """Build a config from a stored access pattern document."""
        fields = {k: v for k, v in cls.fields_from_document(doc).items() if v is not None}
        return cls(**fields)


class SearchParams(BaseModel):
    """A query request against one table.

    DIRECT mode needs ``pk_input``; PATTERN mode needs ``pattern_config``. Those
    requirements are checked by the query plan builder so each one surfaces as
    its own input error.
    """

    table_name: TableName
    mode: SearchMode
    pk_input: Optional[str] = None
    sk_input: Optional[str] = None
    index_name: Optional[IndexName] = None
    pk_name: Optional[AttributeName] = None
    sk_name: Optional[AttributeName] = None
    pattern_config: Optional[AccessPatternConfig] = None
    pattern_params: Optional[Dict[str, str]] = None
    filters: Optional[Dict[str, str]] = None
    limit: Optional[int] = Field(None, ge=1, le=1000)
    start_key: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(use_enum_values=False)


# =============================================================================
# Records
# =============================================================================

class KeyPair(BaseModel):
    """Primary key of an item in a PK/SK table."""

    PK: str = Field(..., min_length=1)
    SK: str

    def as_key(self) -> Dict[str, str]:
        return {PK: self.PK, SK: self.SK}


class Record(DynamoDBMixin):
    """An item with mandatory ``PK``/``SK`` string keys and open attributes."""

    PK: str = Field(..., min_length=1)
    SK: str

    model_config = ConfigDict(extra='allow')

    @property
    def key(self) -> KeyPair:
        return KeyPair(PK=self.PK, SK=self.SK)

    def attributes(self) -> Dict[str, Any]:
        """Non-key attributes, in insertion order."""
        return dict(self.model_extra or {})

    def to_item(self) -> Dict[str, Any]:
        """Storable item with PK and SK first."""
        item = {PK: self.PK, SK: self.SK}
        item.update(self.to_dynamodb_item())
        return item


# =============================================================================
# Compiled Queries
# =============================================================================

class KeySchema(BaseModel):
    """Partition/sort attribute names of a table or one of its indexes."""

    pk_name: Optional[str] = None
    sk_name: Optional[str] = None


class QueryPlan(BaseModel):
    """Store-ready form of a SearchParams.

    Built fresh per call; the attribute value placeholders are call-specific.
    """

    table_name: str
    index_name: Optional[str] = None
    key_condition: str
    filter_condition: Optional[str] = None
    attribute_names: Dict[str, str] = Field(default_factory=dict)
    attribute_values: Dict[str, Any] = Field(default_factory=dict)
    limit: int = 100
    start_key: Optional[Dict[str, Any]] = None

    def to_query_kwargs(self, select_count: bool = False, include_limit: bool = True) -> Dict[str, Any]:
        """Render boto3 ``Query`` keyword arguments.

        Args:
            select_count: Ask for ``Select='COUNT'`` instead of item bodies
            include_limit: Keep the page size; full drains leave it to the store

        Returns:
            Keyword arguments for ``Table.query``
        """
        kwargs: Dict[str, Any] = {
            'KeyConditionExpression': self.key_condition,
            'ExpressionAttributeNames': dict(self.attribute_names),
            'ExpressionAttributeValues': dict(self.attribute_values),
        }
        if self.index_name:
            kwargs['IndexName'] = self.index_name
        if self.filter_condition:
            kwargs['FilterExpression'] = self.filter_condition
        if include_limit:
            kwargs['Limit'] = self.limit
        if select_count:
            kwargs['Select'] = 'COUNT'
        if self.start_key:
            kwargs['ExclusiveStartKey'] = self.start_key
        return kwargs
