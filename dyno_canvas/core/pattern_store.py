"""
Access Pattern Store

Access patterns live in an admin table, one item per (account, region, table,
pattern id):

    PK = AccountId#<account>#DynoCanvas#AccessPattern
    SK = Region#<region>#TableName#<table>#AccessPatternId#<id>

``AccessPatternStore`` is the interface the import pipeline and handlers
depend on; ``DynamoAccessPatternStore`` is the implementation over the admin
table. Tests substitute their own store.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from ..config import DynoCanvasConfig
from ..exceptions import StoreError
from ..models import PK, SK, AccessPatternConfig, QueryPlan
from .client_pool import ClientPool
from .executor import QueryExecutor
from .expressions import BEGINS_WITH, EQUALS, ExpressionBuilder
from .table_gateway import TableGateway

logger = logging.getLogger(__name__)

CREATE_ONLY_CONDITION = "attribute_not_exists(PK) AND attribute_not_exists(SK)"


class AccessPatternStore(Protocol):
    """Persistence for access patterns, scoped to one target table per call."""

    def get_pattern_documents(self, table_name: str) -> List[Dict[str, Any]]:
        ...

    def get_patterns_for_table(self, table_name: str) -> List[AccessPatternConfig]:
        ...

    def upsert(self, table_name: str, config: AccessPatternConfig, allow_overwrite: bool = True) -> None:
        ...

    def delete(self, table_name: str, pattern_id: str) -> None:
        ...


class DynamoAccessPatternStore:
    """AccessPatternStore over the dyno-canvas admin table."""

    def __init__(self, config: DynoCanvasConfig, pool: Optional[ClientPool] = None):
        self.config = config
        self.pool = pool or ClientPool()
        self.gateway = TableGateway(config, config.admin_table_name, self.pool)
        self._account_id: Optional[str] = None

    # =========================================================================
    # Keys
    # =========================================================================

    @property
    def account_id(self) -> str:
        """AWS account id from STS, or the environment name.

        DynamoDB Local always uses the environment name; STS failures fall
        back to it with a warning.
        """
        if self._account_id is None:
            self._account_id = self._resolve_account_id()
        return self._account_id

    def _resolve_account_id(self) -> str:
        if self.config.is_local:
            return self.config.env_name
        try:
            identity = self.pool.sts_client(self.config).get_caller_identity()
            return identity.get('Account') or self.config.env_name
        except Exception as e:
            logger.warning(f"Failed to get AWS Account ID, falling back to env name '{self.config.env_name}': {e}")
            return self.config.env_name

    def partition_key(self) -> str:
        return f"AccountId#{self.account_id}#DynoCanvas#AccessPattern"

    def sort_key_prefix(self, table_name: Optional[str] = None) -> str:
        prefix = f"Region#{self.config.region_key}#"
        if table_name:
            prefix += f"TableName#{table_name}#"
        return prefix

    def sort_key(self, table_name: str, pattern_id: str) -> str:
        return f"{self.sort_key_prefix(table_name)}AccessPatternId#{pattern_id}"

    # =========================================================================
    # Reads
    # =========================================================================

    def get_pattern_documents(self, table_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Raw admin-table items for one table, or for every table in the region."""
        builder = ExpressionBuilder()
        key_condition = ExpressionBuilder.join([
            builder.add_condition(PK, EQUALS, self.partition_key()),
            builder.add_condition(SK, BEGINS_WITH, self.sort_key_prefix(table_name)),
        ])
        plan = QueryPlan(
            table_name=self.config.admin_table_name,
            key_condition=key_condition,
            attribute_names=builder.names,
            attribute_values=builder.values,
        )
        return QueryExecutor(self.gateway).fetch_all(plan)

    def get_patterns_for_table(self, table_name: str) -> List[AccessPatternConfig]:
        return [AccessPatternConfig.from_document(doc) for doc in self.get_pattern_documents(table_name)]

    # =========================================================================
    # Writes
    # =========================================================================

    def build_document(self, table_name: str, config: AccessPatternConfig) -> Dict[str, Any]:
        timestamp = datetime.now(timezone.utc).isoformat()
        doc = {
            'PK': self.partition_key(),
            'SK': self.sort_key(table_name, config.id),
            'AccountId': self.account_id,
            'Region': self.config.region_key,
            'TableName': table_name,
            'AccessPatternId': config.id,
            'Label': config.label,
            'Description': config.description,
            'GSIName': config.index_name,
            'PKFormat': config.pk_format,
            'SKFormat': config.sk_format,
            'CreatedAt': timestamp,
            'UpdatedAt': timestamp,
        }
        return {k: v for k, v in doc.items() if v is not None}

    def upsert(self, table_name: str, config: AccessPatternConfig, allow_overwrite: bool = True) -> None:
        """Store an access pattern.

        Raises:
            ConflictError: The pattern exists and ``allow_overwrite`` is False
        """
        condition = None if allow_overwrite else CREATE_ONLY_CONDITION
        self.gateway.put_item(self.build_document(table_name, config), condition_expression=condition)
        logger.info(f"Saved access pattern {config.id} for {table_name}")

    def delete(self, table_name: str, pattern_id: str) -> None:
        self.gateway.delete_item({'PK': self.partition_key(), 'SK': self.sort_key(table_name, pattern_id)})
        logger.info(f"Deleted access pattern {pattern_id} for {table_name}")

    # =========================================================================
    # Admin table lifecycle
    # =========================================================================

    def admin_table_exists(self) -> bool:
        try:
            return self.config.admin_table_name in self.gateway.list_tables()
        except StoreError as e:
            logger.error(f"Failed to list tables while checking admin table: {e}")
            return False

    def create_admin_table(self) -> None:
        self.gateway.create_table(
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
