"""
Table Write API

Table administration and access pattern maintenance:
- create_table / delete_table
- create_gsi / delete_gsi
- update_ttl
- upsert_access_pattern / delete_access_pattern / import_access_patterns

All operations are rejected in read-only mode and return OperationResult (or
ImportResult) instead of raising.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

from ...config import DynoCanvasConfig
from ...core import AccessPatternStore, ClientPool, DynamoAccessPatternStore, PatternImportPipeline
from ...core.pipeline import Line
from ...exceptions import ConflictError, InputError
from ...models import (
    PK,
    SK,
    AccessPatternConfig,
    CreateGsiRequest,
    ImportResult,
    OperationResult,
    UpdateTtlRequest,
)
from ..base import BaseApi, validate_model, validate_table_name

logger = logging.getLogger(__name__)

PATTERN_EXISTS_ERROR = "PatternAlreadyExists"


def _is_pay_per_request(table: Dict[str, Any]) -> bool:
    if table.get('BillingModeSummary', {}).get('BillingMode') == 'PAY_PER_REQUEST':
        return True
    throughput = table.get('ProvisionedThroughput', {})
    return throughput.get('ReadCapacityUnits') == 0 and throughput.get('WriteCapacityUnits') == 0


class TableWriteApi(BaseApi):
    """Write-only API for tables, indexes, TTL and access patterns."""

    def __init__(
        self,
        config: Optional[DynoCanvasConfig] = None,
        pool: Optional[ClientPool] = None,
        pattern_store: Optional[AccessPatternStore] = None
    ):
        super().__init__(config, pool)
        self.pattern_store = pattern_store or DynamoAccessPatternStore(self.config, self.pool)

    # =========================================================================
    # Tables
    # =========================================================================

    def create_table(self, table_name: str) -> OperationResult:
        """
        Create a PK/SK table.

        DynamoDB Operation: CreateTable (PK, SK strings; PAY_PER_REQUEST)
        """
        logger.debug(f"create_table called: {table_name}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            self.gateway(table_name).create_table(
                KeySchema=[
                    {'AttributeName': PK, 'KeyType': 'HASH'},
                    {'AttributeName': SK, 'KeyType': 'RANGE'},
                ],
                AttributeDefinitions=[
                    {'AttributeName': PK, 'AttributeType': 'S'},
                    {'AttributeName': SK, 'AttributeType': 'S'},
                ],
                BillingMode='PAY_PER_REQUEST',
            )
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, f"Create table {table_name}")

    def delete_table(self, table_name: str) -> OperationResult:
        logger.debug(f"delete_table called: {table_name}")
        try:
            validate_table_name(table_name)
            self.ensure_writable()
            self.gateway(table_name).delete_table()
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, f"Delete table {table_name}")

    # =========================================================================
    # Indexes and TTL
    # =========================================================================

    def create_gsi(self, table_name: str, index_name: str, pk: str, sk: Optional[str] = None) -> OperationResult:
        """
        Add a global secondary index.

        DynamoDB Operations: DescribeTable, UpdateTable (GlobalSecondaryIndexUpdates.Create)

        Key attribute types are taken from the table's existing attribute
        definitions and default to S. Provisioned tables get 1/1 throughput on
        the new index.
        """
        logger.debug(f"create_gsi called: {table_name}.{index_name}")
        try:
            self.ensure_writable()
            request = validate_model(
                CreateGsiRequest,
                {'table_name': table_name, 'index_name': index_name, 'pk_name': pk, 'sk_name': sk or None},
            )
            gateway = self.gateway(request.table_name)
            table = gateway.describe_table()

            existing_types = {
                definition['AttributeName']: definition['AttributeType']
                for definition in table.get('AttributeDefinitions', [])
            }

            key_schema = [{'AttributeName': request.pk_name, 'KeyType': 'HASH'}]
            attribute_definitions = [
                {'AttributeName': request.pk_name, 'AttributeType': existing_types.get(request.pk_name, request.pk_type)}
            ]
            if request.sk_name:
                if request.sk_name != request.pk_name:
                    attribute_definitions.append(
                        {'AttributeName': request.sk_name, 'AttributeType': existing_types.get(request.sk_name, request.sk_type)}
                    )
                key_schema.append({'AttributeName': request.sk_name, 'KeyType': 'RANGE'})

            create: Dict[str, Any] = {
                'IndexName': request.index_name,
                'KeySchema': key_schema,
                'Projection': {'ProjectionType': 'ALL'},
            }
            if not _is_pay_per_request(table):
                create['ProvisionedThroughput'] = {'ReadCapacityUnits': 1, 'WriteCapacityUnits': 1}

            gateway.update_table(
                AttributeDefinitions=attribute_definitions,
                GlobalSecondaryIndexUpdates=[{'Create': create}],
            )
            logger.info(f"GSI {request.index_name} created on {request.table_name}")
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, f"Create GSI {index_name} on {table_name}")

    def delete_gsi(self, table_name: str, index_name: str) -> OperationResult:
        """
        Remove a global secondary index.

        DynamoDB Operation: UpdateTable (GlobalSecondaryIndexUpdates.Delete)
        """
        logger.debug(f"delete_gsi called: {table_name}.{index_name}")
        try:
            validate_table_name(table_name)
            self.ensure_writable()
            self.gateway(table_name).update_table(
                GlobalSecondaryIndexUpdates=[{'Delete': {'IndexName': index_name}}]
            )
            logger.info(f"GSI {index_name} deleted from {table_name}")
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, f"Delete GSI {index_name} on {table_name}")

    def update_ttl(self, table_name: str, enabled: bool, attribute_name: str) -> OperationResult:
        """
        Enable or disable TTL.

        DynamoDB Operation: UpdateTimeToLive
        """
        logger.debug(f"update_ttl called: {table_name} {attribute_name}={enabled}")
        try:
            self.ensure_writable()
            request = validate_model(
                UpdateTtlRequest,
                {'table_name': table_name, 'enabled': enabled, 'attribute_name': attribute_name},
            )
            self.gateway(request.table_name).update_ttl(request.enabled, request.attribute_name)
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, f"Update TTL on {table_name}")

    # =========================================================================
    # Access patterns
    # =========================================================================

    def upsert_access_pattern(
        self,
        table_name: str,
        config: Union[AccessPatternConfig, Dict[str, Any]],
        allow_overwrite: bool = True
    ) -> OperationResult:
        """
        Save an access pattern for a table.

        Returns:
            OperationResult; with ``allow_overwrite=False`` an existing pattern
            yields error "PatternAlreadyExists"
        """
        logger.debug(f"upsert_access_pattern called: {table_name}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            pattern = validate_model(AccessPatternConfig, config)
            logger.info(f"Upserting access pattern {pattern.id} for {table_name}")
            self.pattern_store.upsert(table_name, pattern, allow_overwrite=allow_overwrite)
            return OperationResult(success=True)
        except ConflictError as e:
            logger.warning(f"Access pattern already exists for {table_name}: {e}")
            return OperationResult(success=False, error=PATTERN_EXISTS_ERROR, error_kind=e.kind)
        except Exception as e:
            return self.failure(OperationResult, e, f"Upsert access pattern for {table_name}")

    def delete_access_pattern(self, table_name: str, pattern_id: str) -> OperationResult:
        logger.debug(f"delete_access_pattern called: {table_name} {pattern_id}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            if not pattern_id:
                raise InputError("Access pattern id is required")
            self.pattern_store.delete(table_name, pattern_id)
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, f"Delete access pattern {pattern_id} for {table_name}")

    def import_access_patterns(self, table_name: str, lines: Iterable[Line]) -> ImportResult:
        """
        Load access patterns from ``{"Item": ...}`` lines, overwriting existing ones.

        Lines missing id, label or partition key format are skipped and reported.
        """
        logger.debug(f"import_access_patterns called: {table_name}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            result = PatternImportPipeline(self.pattern_store).run(table_name, lines)
        except Exception as e:
            return self.failure(ImportResult, e, f"Import access patterns for {table_name}")

        if result.has_errors:
            logger.warning(f"Pattern import for {table_name} finished with {len(result.errors)} errors")
        return result.to_import_result("patterns")

    # =========================================================================
    # Admin table
    # =========================================================================

    def ensure_admin_table(self) -> OperationResult:
        """Create the access pattern admin table if it does not exist yet."""
        try:
            self.ensure_writable()
            if not isinstance(self.pattern_store, DynamoAccessPatternStore):
                return OperationResult(success=True)
            if self.pattern_store.admin_table_exists():
                return OperationResult(success=True, message="Admin table already exists.")
            self.pattern_store.create_admin_table()
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, "Create admin table")
