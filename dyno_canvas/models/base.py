"""
Base Model Components and Mixins

Shared constrained string types and the DynamoDBMixin used by every model that
is written to, or read from, a DynamoDB table.

## Naming rules

DynamoDB accepts a wide range of names, but dyno-canvas manages keys, indexes
and access patterns through a stricter alphabet so names survive a round trip
through URLs, CSV headers and expression attribute names:

- Table and index names: 3-255 characters of ``a-z A-Z 0-9 _ - .``
- Attribute names used as keys: 1-255 characters of the same alphabet
- Access pattern ids: 1-128 characters of ``a-z A-Z 0-9 _ -``

## DynamoDBMixin

boto3's resource layer rejects Python floats; every number must be a Decimal.
``to_dynamodb_item`` converts a model into a storable dict, recursively turning
floats into Decimals.
"""

from typing import Annotated, Any, Dict

from pydantic import BaseModel, Field

NAME_PATTERN = r'^[a-zA-Z0-9_.-]+$'
ID_PATTERN = r'^[a-zA-Z0-9_-]+$'

TableName = Annotated[str, Field(min_length=3, max_length=255, pattern=NAME_PATTERN)]
IndexName = TableName
AttributeName = Annotated[str, Field(min_length=1, max_length=255, pattern=NAME_PATTERN)]
PatternId = Annotated[str, Field(min_length=1, max_length=128, pattern=ID_PATTERN)]


class DynamoDBMixin(BaseModel):
    """
    Mixin providing DynamoDB serialization functionality.

    Features:
    - Complete DynamoDB item serialization (to_dynamodb_item)
    - float -> Decimal conversion for the DynamoDB Number type
    - Extra attributes (models with extra='allow') are kept
    """

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """
        Convert model to DynamoDB-compatible item.

        Returns:
            DynamoDB-compatible dictionary ready for storage

        Example:
            item = record.to_dynamodb_item()
            gateway.put_item(item)
        """
        from ..utils import to_dynamodb_value

        dumped_item = self.model_dump(exclude_none=True, by_alias=True)
        return {k: to_dynamodb_value(v) for k, v in dumped_item.items()}
