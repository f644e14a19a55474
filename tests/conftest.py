"""
Test configuration and fixtures for dyno-canvas.

Provides a test configuration, moto-backed DynamoDB tables and the four CQRS
APIs wired to one shared ClientPool.
"""

import sys
from pathlib import Path
from typing import Dict, List

# Add parent directory to path so we can import dyno_canvas
sys.path.insert(0, str(Path(__file__).parent.parent))

import boto3
import pytest
from moto import mock_aws

from dyno_canvas import (
    AccessPatternConfig,
    ClientPool,
    DynoCanvasConfig,
    ItemReadApi,
    ItemWriteApi,
    TableReadApi,
    TableWriteApi,
)
from dyno_canvas.exceptions import ConflictError

ITEMS_TABLE = "test_items"
ADMIN_TABLE = "test-dyno-canvas"


@pytest.fixture
def mock_config():
    """Configuration pointing at the default AWS endpoint (intercepted by moto)."""
    return DynoCanvasConfig(
        mode="aws",
        region_name="us-east-1",
        endpoint_url=None,
        profile_name=None,
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        admin_table_name=ADMIN_TABLE,
        env_name="test",
        read_only=False,
        export_max_items=None,
        log_level="INFO"
    )


@pytest.fixture
def read_only_config(mock_config):
    return mock_config.model_copy(update={'read_only': True})


@pytest.fixture
def mock_dynamodb_resource():
    """Mock DynamoDB resource."""
    with mock_aws():
        yield boto3.resource('dynamodb', region_name='us-east-1')


def _create_pk_sk_table(resource, table_name: str, with_gsi: bool = False):
    attribute_definitions = [
        {'AttributeName': 'PK', 'AttributeType': 'S'},
        {'AttributeName': 'SK', 'AttributeType': 'S'},
    ]
    create_kwargs = {
        'TableName': table_name,
        'KeySchema': [
            {'AttributeName': 'PK', 'KeyType': 'HASH'},
            {'AttributeName': 'SK', 'KeyType': 'RANGE'},
        ],
        'BillingMode': 'PAY_PER_REQUEST',
    }
    if with_gsi:
        attribute_definitions += [
            {'AttributeName': 'GSI1PK', 'AttributeType': 'S'},
            {'AttributeName': 'GSI1SK', 'AttributeType': 'S'},
        ]
        create_kwargs['GlobalSecondaryIndexes'] = [
            {
                'IndexName': 'GSI1',
                'KeySchema': [
                    {'AttributeName': 'GSI1PK', 'KeyType': 'HASH'},
                    {'AttributeName': 'GSI1SK', 'KeyType': 'RANGE'},
                ],
                'Projection': {'ProjectionType': 'ALL'},
            }
        ]
    create_kwargs['AttributeDefinitions'] = attribute_definitions
    return resource.create_table(**create_kwargs)


@pytest.fixture
def items_table(mock_dynamodb_resource):
    """PK/SK table with a GSI1 (GSI1PK/GSI1SK) index."""
    return _create_pk_sk_table(mock_dynamodb_resource, ITEMS_TABLE, with_gsi=True)


@pytest.fixture
def second_table(mock_dynamodb_resource):
    """Empty PK/SK table used as an import target."""
    return _create_pk_sk_table(mock_dynamodb_resource, "test_items_copy")


@pytest.fixture
def admin_table(mock_dynamodb_resource):
    """Access pattern admin table."""
    return _create_pk_sk_table(mock_dynamodb_resource, ADMIN_TABLE)


@pytest.fixture
def client_pool():
    return ClientPool()


@pytest.fixture
def sample_items() -> List[Dict]:
    """Items for two users: three orders for USER#1, one for USER#2."""
    return [
        {'PK': 'USER#1', 'SK': 'ORDER#2024-01', 'status': 'shipped', 'total': 10,
         'GSI1PK': 'STATUS#shipped', 'GSI1SK': 'USER#1'},
        {'PK': 'USER#1', 'SK': 'ORDER#2024-02', 'status': 'pending', 'total': 25,
         'GSI1PK': 'STATUS#pending', 'GSI1SK': 'USER#1'},
        {'PK': 'USER#1', 'SK': 'ORDER#2025-01', 'status': 'shipped', 'total': 7,
         'GSI1PK': 'STATUS#shipped', 'GSI1SK': 'USER#1#2025'},
        {'PK': 'USER#1', 'SK': 'PROFILE', 'name': 'Alice'},
        {'PK': 'USER#2', 'SK': 'ORDER#2024-03', 'status': 'shipped', 'total': 3,
         'GSI1PK': 'STATUS#shipped', 'GSI1SK': 'USER#2'},
    ]


@pytest.fixture
def populated_items_table(items_table, sample_items):
    with items_table.batch_writer() as batch:
        for item in sample_items:
            batch.put_item(Item=item)
    return items_table


class InMemoryPatternStore:
    """AccessPatternStore keeping patterns in a dict, for handler tests."""

    def __init__(self):
        self.patterns: Dict[tuple, AccessPatternConfig] = {}

    def get_pattern_documents(self, table_name: str) -> List[Dict]:
        return [
            {
                'AccessPatternId': config.id,
                'Label': config.label,
                'Description': config.description,
                'PKFormat': config.pk_format,
                'SKFormat': config.sk_format,
                'GSIName': config.index_name,
            }
            for (table, _), config in self.patterns.items()
            if table == table_name
        ]

    def get_patterns_for_table(self, table_name: str) -> List[AccessPatternConfig]:
        return [config for (table, _), config in self.patterns.items() if table == table_name]

    def upsert(self, table_name: str, config: AccessPatternConfig, allow_overwrite: bool = True) -> None:
        key = (table_name, config.id)
        if not allow_overwrite and key in self.patterns:
            raise ConflictError(f"Access pattern {config.id} already exists", config.id)
        self.patterns[key] = config

    def delete(self, table_name: str, pattern_id: str) -> None:
        self.patterns.pop((table_name, pattern_id), None)


@pytest.fixture
def pattern_store():
    return InMemoryPatternStore()


# CQRS API Fixtures

@pytest.fixture
def item_read_api(mock_config, client_pool, items_table):
    """Item read API with mocked DynamoDB."""
    return ItemReadApi(mock_config, client_pool)


@pytest.fixture
def item_write_api(mock_config, client_pool, items_table):
    """Item write API with mocked DynamoDB."""
    return ItemWriteApi(mock_config, client_pool)


@pytest.fixture
def table_read_api(mock_config, client_pool, mock_dynamodb_resource):
    """Table read API backed by the DynamoDB admin table store."""
    return TableReadApi(mock_config, client_pool)


@pytest.fixture
def table_write_api(mock_config, client_pool, mock_dynamodb_resource):
    """Table write API backed by the DynamoDB admin table store."""
    return TableWriteApi(mock_config, client_pool)
