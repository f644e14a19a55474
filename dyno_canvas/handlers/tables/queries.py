"""
Table Read API

Read operations over tables and their access patterns:
- list_tables, get_table_details, get_table_keys
- export_table: whole-table Scan drain as JSON lines
- get_access_patterns / export_access_patterns: patterns stored in the admin table
"""

import logging
from typing import List, Optional

from ...config import DynoCanvasConfig
from ...core import AccessPatternStore, ClientPool, DynamoAccessPatternStore, QueryExecutor, encode_jsonl
from ...models import AccessPatternConfig, ExportResult, KeySchema, TableDetailsResult
from ..base import BaseApi, validate_table_name

logger = logging.getLogger(__name__)


class TableReadApi(BaseApi):
    """Read-only API for table metadata, table exports and access patterns."""

    def __init__(
        self,
        config: Optional[DynoCanvasConfig] = None,
        pool: Optional[ClientPool] = None,
        pattern_store: Optional[AccessPatternStore] = None
    ):
        super().__init__(config, pool)
        self.pattern_store = pattern_store or DynamoAccessPatternStore(self.config, self.pool)

    def list_tables(self) -> List[str]:
        """
        Every table name in the configured account/region.

        DynamoDB Operation: ListTables (all pages)

        Raises:
            StoreError: ListTables failed
        """
        logger.debug("list_tables called")
        try:
            return self.gateway().list_tables()
        except Exception as e:
            logger.error(f"Failed to list tables: {e}")
            raise

    def get_table_details(self, table_name: str) -> TableDetailsResult:
        """
        Table description plus TTL settings.

        DynamoDB Operations: DescribeTable, DescribeTimeToLive
        """
        logger.debug(f"get_table_details called: {table_name}")
        try:
            validate_table_name(table_name)
            gateway = self.gateway(table_name)
            return TableDetailsResult(
                success=True,
                table=gateway.describe_table(),
                ttl=gateway.describe_ttl(),
                is_local=self.config.is_local,
            )
        except Exception as e:
            return self.failure(TableDetailsResult, e, f"Get table details for {table_name}")

    def get_table_keys(self, table_name: str, index_name: Optional[str] = None) -> KeySchema:
        """
        Partition/sort attribute names of a table or index.

        Raises:
            StoreError: DescribeTable failed
        """
        validate_table_name(table_name)
        return self.gateway(table_name).get_key_schema(index_name)

    def export_table(self, table_name: str) -> ExportResult:
        """
        Export every item of a table as JSON lines.

        DynamoDB Operation: Scan, following every cursor
        """
        logger.debug(f"export_table called: {table_name}")
        try:
            validate_table_name(table_name)
            items = QueryExecutor(self.gateway(table_name), self.config.export_max_items).scan_all()
            logger.info(f"Exported {len(items)} items from table {table_name}")
            return ExportResult(success=True, data=encode_jsonl(items), count=len(items))
        except Exception as e:
            return self.failure(ExportResult, e, f"Export table {table_name}")

    def get_access_patterns(self, table_name: str) -> List[AccessPatternConfig]:
        """
        Access patterns defined for a table.

        Returns:
            Patterns, or an empty list when they cannot be read
        """
        logger.debug(f"get_access_patterns called: {table_name}")
        try:
            validate_table_name(table_name)
            return self.pattern_store.get_patterns_for_table(table_name)
        except Exception as e:
            logger.error(f"Failed to fetch access patterns for {table_name}: {e}")
            return []

    def export_access_patterns(self, table_name: str) -> ExportResult:
        """Export a table's access pattern documents as JSON lines (re-importable)."""
        logger.debug(f"export_access_patterns called: {table_name}")
        try:
            validate_table_name(table_name)
            docs = self.pattern_store.get_pattern_documents(table_name)
            return ExportResult(success=True, data=encode_jsonl(docs), count=len(docs))
        except Exception as e:
            return self.failure(ExportResult, e, f"Export access patterns for {table_name}")
