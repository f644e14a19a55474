"""
Thin DynamoDB Table Gateway

This module provides a lightweight wrapper around boto3 DynamoDB operations for
one table. The gateway:

1. Exposes native DynamoDB operations (Query, Scan, item writes, table admin)
   with the request shapes boto3 already uses
2. Maps every botocore ClientError to a dyno-canvas StoreError
3. Owns the BatchWriteItem retry loop (UnprocessedItems and throttling)

Read/write APIs compose these calls; they never talk to boto3 directly.

The boto3 resource comes from a ClientPool, so every gateway built for the same
connection target shares one connection pool.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ..config import DynoCanvasConfig
from ..exceptions import (
    AccessDeniedError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    RetryableError,
    StoreError,
    StoreValidationError,
)
from ..models import KeySchema
from .client_pool import ClientPool

logger = logging.getLogger(__name__)

BATCH_WRITE_LIMIT = 25


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: Optional[str],
    resource_id: Optional[str] = None
) -> StoreError:
    """Map DynamoDB ClientError to dyno-canvas store errors.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "GetItem", "PutItem")
        table_name: The DynamoDB table name
        resource_id: Optional resource identifier (item key, index name) for context

    Returns:
        Appropriate StoreError subclass:
        - ConflictError: conditional check failures, resources in use
        - NotFoundError: missing tables and indexes
        - StoreValidationError: requests DynamoDB rejected as invalid
        - RetryableError: throttling and transient service failures
        - AccessDeniedError: authentication/authorization failures
        - ConnectionError: everything else
    """
    error_code = error.response.get('Error', {}).get('Code', 'Unknown')
    error_message = error.response.get('Error', {}).get('Message', str(error))

    context = f"{operation} on {table_name or 'account'}"
    if resource_id:
        context += f" (resource: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code == 'ConditionalCheckFailedException':
        return ConflictError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code in ['ResourceNotFoundException', 'TableNotFoundException']:
        return NotFoundError(
            f"Resource not found - {full_message}",
            resource_type='table',
            resource_name=table_name,
            original_error=error
        )

    elif error_code == 'IndexNotFoundException':
        return NotFoundError(
            f"Index not found - {full_message}",
            resource_type='index',
            resource_name=resource_id,
            original_error=error
        )

    elif error_code in ['ValidationException', 'ItemCollectionSizeLimitExceededException', 'LimitExceededException']:
        return StoreValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code in ['ProvisionedThroughputExceededException', 'RequestLimitExceeded', 'ThrottlingException']:
        return RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in ['InternalServerError', 'ServiceUnavailable', 'ServiceUnavailableException']:
        return RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code in ['TransactionCanceledException', 'TransactionInProgressException']:
        return RetryableError(f"Transaction issue - {full_message}", original_error=error)

    elif error_code in ['AccessDeniedException', 'UnrecognizedClientException']:
        return AccessDeniedError(f"Authentication/authorization failed - {full_message}", original_error=error)

    elif error_code in ['ExpiredTokenException', 'InvalidSignatureException', 'IncompleteSignatureException']:
        return AccessDeniedError(f"Credentials rejected - {full_message}", original_error=error)

    elif error_code in ['TransactionConflictException', 'ResourceInUseException', 'TableAlreadyExistsException']:
        return ConflictError(f"Resource conflict - {full_message}", resource_id, original_error=error)

    # Default to ConnectionError for unknown errors
    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to ConnectionError")
    return ConnectionError(f"DynamoDB operation failed - {full_message}", original_error=error)


def _key_context(key: Optional[Dict[str, Any]]) -> Optional[str]:
    if not key:
        return None
    return "/".join(str(v) for v in key.values())


class TableGateway:
    """
    Thin gateway for DynamoDB table operations.

    Item operations go through the boto3 Table resource (plain Python values);
    table administration goes through the low-level client of the same resource.
    ``table_name`` may be None for account-level calls such as list_tables.
    """

    def __init__(self, config: DynoCanvasConfig, table_name: Optional[str] = None, pool: Optional[ClientPool] = None):
        """Initialize table gateway.

        Args:
            config: Connection configuration
            table_name: Name of the DynamoDB table
            pool: Shared client pool (a private one is created if omitted)
        """
        self.config = config
        self.table_name = table_name
        self.pool = pool or ClientPool()
        self._table = None

    @property
    def dynamodb(self):
        """DynamoDB resource shared through the client pool."""
        return self.pool.resource(self.config)

    @property
    def client(self):
        """Low-level DynamoDB client behind the resource."""
        return self.dynamodb.meta.client

    @property
    def table(self):
        """boto3 Table resource for ``table_name``."""
        if self._table is None:
            if not self.table_name:
                raise ConnectionError("No table name configured for this gateway")
            try:
                self._table = self.dynamodb.Table(self.table_name)
            except StoreError:
                raise
            except Exception as e:
                logger.error(f"Failed to access table '{self.table_name}': {e}")
                raise ConnectionError(f"Failed to access table '{self.table_name}': {e}", e) from e
        return self._table

    # =========================================================================
    # Item reads
    # =========================================================================

    def query(self, **kwargs) -> Dict[str, Any]:
        """
        Execute DynamoDB Query operation.

        Raw pass-through to boto3 with error handling.

        Args:
            **kwargs: All boto3 query parameters

        Returns:
            Raw DynamoDB response

        Example:
            response = gateway.query(
                KeyConditionExpression='#name0 = :val0',
                ExpressionAttributeNames={'#name0': 'PK'},
                ExpressionAttributeValues={':val0': 'USER#1'},
                Limit=50
            )
        """
        try:
            return self.table.query(**kwargs)
        except ClientError as e:
            raise map_dynamodb_error(e, "Query", self.table_name, kwargs.get('IndexName')) from e

    def scan(self, **kwargs) -> Dict[str, Any]:
        """
        Execute DynamoDB Scan operation.

        Only used for whole-table exports; searches always go through Query.

        Args:
            **kwargs: All boto3 scan parameters

        Returns:
            Raw DynamoDB response
        """
        try:
            return self.table.scan(**kwargs)
        except ClientError as e:
            raise map_dynamodb_error(e, "Scan", self.table_name) from e

    def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Get one item by primary key.

        Returns:
            The item, or None if it does not exist
        """
        try:
            response = self.table.get_item(Key=key)
            return response.get('Item')
        except ClientError as e:
            raise map_dynamodb_error(e, "GetItem", self.table_name, _key_context(key)) from e

    # =========================================================================
    # Item writes
    # =========================================================================

    def put_item(self, item: Dict[str, Any], condition_expression=None) -> None:
        """
        Put item into DynamoDB table.

        Args:
            item: Item to store
            condition_expression: Optional condition for put operation

        Example:
            gateway.put_item(
                item={'PK': 'USER#1', 'SK': 'PROFILE', 'name': 'Alice'},
                condition_expression='attribute_not_exists(PK) AND attribute_not_exists(SK)'
            )
        """
        try:
            put_kwargs = {'Item': item}
            if condition_expression is not None:
                put_kwargs['ConditionExpression'] = condition_expression

            self.table.put_item(**put_kwargs)
            logger.info(f"Put item in {self.table_name}: {item.get('PK')}/{item.get('SK')}")
        except ClientError as e:
            resource_id = f"{item.get('PK')}/{item.get('SK')}"
            raise map_dynamodb_error(e, "PutItem", self.table_name, resource_id) from e

    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        condition_expression=None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        """
        Update item in DynamoDB table.

        Args:
            key: Primary key of item to update
            update_expression: UPDATE expression
            expression_attribute_values: Values for update expression
            expression_attribute_names: Names for update expression
            condition_expression: Optional condition for update
            return_values: What to return after update

        Returns:
            Updated attributes if return_values != 'NONE'
        """
        try:
            update_kwargs = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ReturnValues': return_values
            }

            if expression_attribute_values:
                update_kwargs['ExpressionAttributeValues'] = expression_attribute_values
            if expression_attribute_names:
                update_kwargs['ExpressionAttributeNames'] = expression_attribute_names
            if condition_expression is not None:
                update_kwargs['ConditionExpression'] = condition_expression

            response = self.table.update_item(**update_kwargs)
            logger.info(f"Updated item in {self.table_name}: {key}")

            return response.get('Attributes') if return_values != 'NONE' else None

        except ClientError as e:
            raise map_dynamodb_error(e, "UpdateItem", self.table_name, _key_context(key)) from e

    def delete_item(
        self,
        key: Dict[str, Any],
        condition_expression=None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        """
        Delete item from DynamoDB table.

        Args:
            key: Primary key of item to delete
            condition_expression: Optional condition for delete
            return_values: What to return after delete

        Returns:
            Deleted attributes if return_values != 'NONE'
        """
        try:
            delete_kwargs = {
                'Key': key,
                'ReturnValues': return_values
            }

            if condition_expression is not None:
                delete_kwargs['ConditionExpression'] = condition_expression

            response = self.table.delete_item(**delete_kwargs)
            logger.info(f"Deleted item from {self.table_name}: {key}")

            return response.get('Attributes') if return_values != 'NONE' else None

        except ClientError as e:
            raise map_dynamodb_error(e, "DeleteItem", self.table_name, _key_context(key)) from e

    def transact_write_items(self, transact_items: List[Dict[str, Any]]) -> None:
        """
        Execute transactional write operations.

        The resource's client accepts plain Python values, like the Table resource.

        Args:
            transact_items: List of transaction items

        Example:
            gateway.transact_write_items([
                {'Delete': {'TableName': 'orders', 'Key': {'PK': 'A', 'SK': '1'}}},
                {'Put': {'TableName': 'orders', 'Item': {'PK': 'A', 'SK': '2'}}}
            ])
        """
        try:
            self.client.transact_write_items(TransactItems=transact_items)
            logger.info(f"Transaction completed on {self.table_name}")
        except ClientError as e:
            raise map_dynamodb_error(e, "TransactWriteItems", self.table_name) from e

    def batch_write(
        self,
        put_items: Optional[List[Dict[str, Any]]] = None,
        delete_keys: Optional[List[Dict[str, Any]]] = None,
        max_retries: Optional[int] = None
    ) -> int:
        """Batch write with UnprocessedItems retry logic.

        Requests are sent in chunks of at most 25 (the BatchWriteItem limit).

        Args:
            put_items: Items to put
            delete_keys: Primary keys to delete
            max_retries: Retry attempts per chunk (defaults to config.batch_max_retries)

        Returns:
            Number of requests written

        Raises:
            RetryableError: Items were still unprocessed after all retries
            StoreError: Any other DynamoDB failure
        """
        requests = [{'PutRequest': {'Item': item}} for item in (put_items or [])]
        requests += [{'DeleteRequest': {'Key': key}} for key in (delete_keys or [])]
        if not requests:
            return 0

        if max_retries is None:
            max_retries = self.config.batch_max_retries

        written = 0
        for i in range(0, len(requests), BATCH_WRITE_LIMIT):
            chunk = requests[i:i + BATCH_WRITE_LIMIT]
            written += self._write_chunk_with_retry(chunk, max_retries)

        logger.info(f"Batch wrote {written} requests to {self.table_name}")
        return written

    def _write_chunk_with_retry(self, requests: List[Dict[str, Any]], max_retries: int) -> int:
        """Write a single chunk with retry logic for UnprocessedItems."""
        pending = list(requests)
        written = 0

        for attempt in range(max_retries + 1):
            if not pending:
                break

            try:
                response = self.dynamodb.batch_write_item(
                    RequestItems={self.table_name: pending}
                )
            except ClientError as e:
                error_code = e.response.get('Error', {}).get('Code')
                if error_code == 'ProvisionedThroughputExceededException' and attempt < max_retries:
                    # Longer delay for throttling
                    delay = (2 ** attempt) * 2
                    logger.warning(f"Throttled, backing off for {delay}s")
                    time.sleep(delay)
                    continue
                logger.error(f"Batch write error: {e}")
                raise map_dynamodb_error(e, "BatchWriteItem", self.table_name) from e

            unprocessed = response.get('UnprocessedItems', {}).get(self.table_name, [])
            written += len(pending) - len(unprocessed)
            pending = unprocessed

            if not pending:
                break

            if attempt < max_retries:
                # Exponential backoff with jitter
                delay = (2 ** attempt) + (time.time() % 1)
                logger.warning(
                    f"Retrying {len(pending)} unprocessed items after {delay:.2f}s "
                    f"(attempt {attempt + 1}/{max_retries + 1})"
                )
                time.sleep(delay)

        if pending:
            logger.error(f"Failed to process {len(pending)} items after {max_retries} retries")
            raise RetryableError(
                f"Batch write failed for {len(pending)} items after {max_retries} retries"
            )
        return written

    # =========================================================================
    # Table administration
    # =========================================================================

    def describe_table(self) -> Dict[str, Any]:
        """DescribeTable ``Table`` description."""
        try:
            return self.client.describe_table(TableName=self.table_name)['Table']
        except ClientError as e:
            raise map_dynamodb_error(e, "DescribeTable", self.table_name) from e

    def describe_ttl(self) -> Optional[Dict[str, Any]]:
        """DescribeTimeToLive ``TimeToLiveDescription``."""
        try:
            response = self.client.describe_time_to_live(TableName=self.table_name)
            return response.get('TimeToLiveDescription')
        except ClientError as e:
            raise map_dynamodb_error(e, "DescribeTimeToLive", self.table_name) from e

    def get_key_schema(self, index_name: Optional[str] = None) -> KeySchema:
        """
        Partition/sort attribute names of the table or one of its indexes.

        Args:
            index_name: Global or local secondary index name, None for the base table

        Returns:
            KeySchema; names are None when the table/index does not define them
        """
        description = self.describe_table()
        key_schema = description.get('KeySchema', [])
        if index_name:
            indexes = description.get('GlobalSecondaryIndexes', []) + description.get('LocalSecondaryIndexes', [])
            index = next((idx for idx in indexes if idx.get('IndexName') == index_name), None)
            key_schema = index.get('KeySchema', []) if index else []

        names = {element['KeyType']: element['AttributeName'] for element in key_schema}
        return KeySchema(pk_name=names.get('HASH'), sk_name=names.get('RANGE'))

    def list_tables(self) -> List[str]:
        """All table names visible to the configured credentials."""
        names: List[str] = []
        list_kwargs: Dict[str, Any] = {}
        try:
            while True:
                response = self.client.list_tables(**list_kwargs)
                names.extend(response.get('TableNames', []))
                last_name = response.get('LastEvaluatedTableName')
                if not last_name:
                    break
                list_kwargs['ExclusiveStartTableName'] = last_name
        except ClientError as e:
            raise map_dynamodb_error(e, "ListTables", None) from e
        return names

    def create_table(self, **kwargs) -> Dict[str, Any]:
        """CreateTable for ``table_name``; kwargs are passed to boto3 unchanged."""
        try:
            response = self.client.create_table(TableName=self.table_name, **kwargs)
            logger.info(f"Created table {self.table_name}")
            return response.get('TableDescription', {})
        except ClientError as e:
            raise map_dynamodb_error(e, "CreateTable", self.table_name) from e

    def delete_table(self) -> None:
        try:
            self.client.delete_table(TableName=self.table_name)
            logger.info(f"Deleted table {self.table_name}")
        except ClientError as e:
            raise map_dynamodb_error(e, "DeleteTable", self.table_name) from e

    def update_table(self, **kwargs) -> Dict[str, Any]:
        """UpdateTable for ``table_name`` (GSI creation/deletion)."""
        try:
            response = self.client.update_table(TableName=self.table_name, **kwargs)
            logger.info(f"Updated table {self.table_name}")
            return response.get('TableDescription', {})
        except ClientError as e:
            raise map_dynamodb_error(e, "UpdateTable", self.table_name) from e

    def update_ttl(self, enabled: bool, attribute_name: str) -> None:
        try:
            self.client.update_time_to_live(
                TableName=self.table_name,
                TimeToLiveSpecification={'Enabled': enabled, 'AttributeName': attribute_name}
            )
            logger.info(f"Set TTL on {self.table_name}.{attribute_name} to {enabled}")
        except ClientError as e:
            raise map_dynamodb_error(e, "UpdateTimeToLive", self.table_name) from e


def create_table_gateway(config: DynoCanvasConfig, table_name: Optional[str] = None, pool: Optional[ClientPool] = None) -> TableGateway:
    """
    Factory function to create a TableGateway instance.

    Args:
        config: Connection configuration
        table_name: Table name
        pool: Shared client pool

    Returns:
        Configured TableGateway instance
    """
    return TableGateway(config, table_name, pool)
