"""
Tests for the table CQRS APIs (handlers/tables).

Table administration and the admin-table access pattern store run against
moto; GSI request shapes are checked with a mocked gateway.
"""

import json
from unittest.mock import Mock, patch

import pytest
from moto.core import DEFAULT_ACCOUNT_ID

from dyno_canvas import AccessPatternConfig, DynoCanvasConfig, KeySchema, TableReadApi, TableWriteApi
from dyno_canvas.core import DynamoAccessPatternStore
from dyno_canvas.exceptions import ErrorKind
from dyno_canvas.handlers.tables.commands import PATTERN_EXISTS_ERROR

READ_ONLY_ERROR = "Operation not allowed in Read-Only mode."


@pytest.fixture
def orders_pattern():
    return AccessPatternConfig(
        id="userOrders",
        label="Orders by user",
        description="All orders of one user",
        pk_format="USER#{userId}",
        sk_format="ORDER#{orderId}",
    )


class TestTableReadApi:

    def test_list_tables(self, table_read_api, items_table, second_table):
        assert set(table_read_api.list_tables()) >= {'test_items', 'test_items_copy'}

    def test_table_details(self, table_read_api, items_table):
        result = table_read_api.get_table_details('test_items')

        assert result.success is True
        assert result.table['TableName'] == 'test_items'
        assert result.ttl['TimeToLiveStatus'] == 'DISABLED'
        assert result.is_local is False

    def test_missing_table_details(self, table_read_api):
        result = table_read_api.get_table_details('no_such_table')

        assert result.success is False
        assert result.error == "Table or Resource not found."
        assert result.table is None

    def test_table_keys(self, table_read_api, items_table):
        assert table_read_api.get_table_keys('test_items') == KeySchema(pk_name='PK', sk_name='SK')
        assert table_read_api.get_table_keys('test_items', 'GSI1') == KeySchema(pk_name='GSI1PK', sk_name='GSI1SK')

    def test_export_table(self, table_read_api, populated_items_table, sample_items):
        result = table_read_api.export_table('test_items')

        assert result.success is True
        assert result.count == len(sample_items)
        exported = [json.loads(line)['Item'] for line in result.data.split("\n")]
        assert {item['SK']['S'] for item in exported} == {item['SK'] for item in sample_items}

    def test_invalid_table_name(self, table_read_api):
        result = table_read_api.export_table('x')

        assert result.success is False
        assert result.error_kind == ErrorKind.INPUT


class TestTableWriteApi:

    def test_create_and_delete_table(self, table_write_api, table_read_api):
        assert table_write_api.create_table('new_table').success is True

        details = table_read_api.get_table_details('new_table')
        assert details.table['BillingModeSummary']['BillingMode'] == 'PAY_PER_REQUEST'
        assert table_read_api.get_table_keys('new_table') == KeySchema(pk_name='PK', sk_name='SK')

        assert table_write_api.delete_table('new_table').success is True
        assert 'new_table' not in table_read_api.list_tables()

    def test_create_existing_table(self, table_write_api, items_table):
        result = table_write_api.create_table('test_items')

        assert result.success is False
        assert result.error_kind == ErrorKind.STORE

    def test_create_and_delete_gsi(self, table_write_api, table_read_api, items_table):
        result = table_write_api.create_gsi('test_items', 'ByStatus', 'status', 'createdAt')

        assert result.success is True
        assert table_read_api.get_table_keys('test_items', 'ByStatus') == KeySchema(
            pk_name='status', sk_name='createdAt'
        )

        assert table_write_api.delete_gsi('test_items', 'GSI1').success is True
        indexes = table_read_api.get_table_details('test_items').table.get('GlobalSecondaryIndexes', [])
        assert 'GSI1' not in [index['IndexName'] for index in indexes]

    def test_update_ttl(self, table_write_api, table_read_api, items_table):
        assert table_write_api.update_ttl('test_items', True, 'expiresAt').success is True

        ttl = table_read_api.get_table_details('test_items').ttl
        assert ttl['TimeToLiveStatus'] == 'ENABLED'
        assert ttl['AttributeName'] == 'expiresAt'

    def test_read_only_rejects_administration(self, read_only_config, client_pool, pattern_store, items_table):
        api = TableWriteApi(read_only_config, client_pool, pattern_store)

        results = [
            api.create_table('new_table'),
            api.delete_table('test_items'),
            api.create_gsi('test_items', 'ByStatus', 'status'),
            api.delete_gsi('test_items', 'GSI1'),
            api.update_ttl('test_items', True, 'expiresAt'),
            api.upsert_access_pattern('test_items', {'id': 'a', 'label': 'A', 'pkFormat': 'A#{a}'}),
            api.delete_access_pattern('test_items', 'a'),
            api.import_access_patterns('test_items', []),
            api.ensure_admin_table(),
        ]

        for result in results:
            assert result.success is False
            assert result.error == READ_ONLY_ERROR
        assert pattern_store.patterns == {}


class TestCreateGsiRequest:
    """UpdateTable request built by create_gsi."""

    @pytest.fixture
    def api(self, mock_config, pattern_store):
        return TableWriteApi(mock_config, Mock(), pattern_store)

    def _create_request(self, api, description, *args):
        gateway = Mock()
        gateway.describe_table.return_value = description
        with patch.object(api, 'gateway', return_value=gateway):
            result = api.create_gsi(*args)
        return result, gateway.update_table.call_args.kwargs

    def test_provisioned_table_gets_throughput(self, api):
        description = {
            'AttributeDefinitions': [
                {'AttributeName': 'PK', 'AttributeType': 'S'},
                {'AttributeName': 'userId', 'AttributeType': 'N'},
            ],
            'ProvisionedThroughput': {'ReadCapacityUnits': 5, 'WriteCapacityUnits': 5},
        }

        result, request = self._create_request(api, description, 'test_items', 'ByUser', 'userId', 'PK')

        assert result.success is True
        assert request['AttributeDefinitions'] == [
            {'AttributeName': 'userId', 'AttributeType': 'N'},
            {'AttributeName': 'PK', 'AttributeType': 'S'},
        ]
        create = request['GlobalSecondaryIndexUpdates'][0]['Create']
        assert create['IndexName'] == 'ByUser'
        assert create['KeySchema'] == [
            {'AttributeName': 'userId', 'KeyType': 'HASH'},
            {'AttributeName': 'PK', 'KeyType': 'RANGE'},
        ]
        assert create['Projection'] == {'ProjectionType': 'ALL'}
        assert create['ProvisionedThroughput'] == {'ReadCapacityUnits': 1, 'WriteCapacityUnits': 1}

    def test_on_demand_table_has_no_throughput(self, api):
        description = {
            'AttributeDefinitions': [],
            'BillingModeSummary': {'BillingMode': 'PAY_PER_REQUEST'},
            'ProvisionedThroughput': {'ReadCapacityUnits': 0, 'WriteCapacityUnits': 0},
        }

        result, request = self._create_request(api, description, 'test_items', 'ByEmail', 'email')

        assert result.success is True
        assert request['AttributeDefinitions'] == [{'AttributeName': 'email', 'AttributeType': 'S'}]
        create = request['GlobalSecondaryIndexUpdates'][0]['Create']
        assert len(create['KeySchema']) == 1
        assert 'ProvisionedThroughput' not in create

    def test_invalid_index_name(self, api):
        result = api.create_gsi('test_items', 'ab', 'email')

        assert result.success is False
        assert result.error_kind == ErrorKind.INPUT


class TestAccessPatterns:
    """Access patterns stored in the admin table."""

    def test_upsert_and_read(self, table_write_api, table_read_api, admin_table, orders_pattern):
        assert table_write_api.upsert_access_pattern('test_items', orders_pattern).success is True

        patterns = table_read_api.get_access_patterns('test_items')

        assert patterns == [orders_pattern]

    def test_admin_table_keys(self, table_write_api, admin_table, orders_pattern):
        table_write_api.upsert_access_pattern('test_items', orders_pattern)

        stored = admin_table.get_item(Key={
            'PK': f"AccountId#{DEFAULT_ACCOUNT_ID}#DynoCanvas#AccessPattern",
            'SK': "Region#us-east-1#TableName#test_items#AccessPatternId#userOrders",
        })['Item']

        assert stored['PKFormat'] == "USER#{userId}"
        assert stored['SKFormat'] == "ORDER#{orderId}"
        assert stored['Label'] == "Orders by user"
        assert 'GSIName' not in stored
        assert stored['CreatedAt'] == stored['UpdatedAt']

    def test_patterns_are_scoped_per_table(self, table_write_api, table_read_api, admin_table, orders_pattern):
        table_write_api.upsert_access_pattern('test_items', orders_pattern)
        table_write_api.upsert_access_pattern('test_items_copy', {'id': 'other', 'label': 'Other', 'pkFormat': 'O#{o}'})

        assert [p.id for p in table_read_api.get_access_patterns('test_items')] == ['userOrders']
        assert [p.id for p in table_read_api.get_access_patterns('test_items_copy')] == ['other']

    def test_create_only_conflict(self, table_write_api, admin_table, orders_pattern):
        table_write_api.upsert_access_pattern('test_items', orders_pattern, allow_overwrite=False)

        result = table_write_api.upsert_access_pattern('test_items', orders_pattern, allow_overwrite=False)

        assert result.success is False
        assert result.error == PATTERN_EXISTS_ERROR

    def test_overwrite(self, table_write_api, table_read_api, admin_table, orders_pattern):
        table_write_api.upsert_access_pattern('test_items', orders_pattern)
        changed = orders_pattern.model_copy(update={'label': 'Renamed'})

        assert table_write_api.upsert_access_pattern('test_items', changed).success is True
        assert table_read_api.get_access_patterns('test_items')[0].label == 'Renamed'

    def test_invalid_pattern(self, table_write_api, admin_table):
        result = table_write_api.upsert_access_pattern('test_items', {'id': 'bad id', 'label': 'X', 'pkFormat': 'X'})

        assert result.success is False
        assert result.error_kind == ErrorKind.INPUT

    def test_delete(self, table_write_api, table_read_api, admin_table, orders_pattern):
        table_write_api.upsert_access_pattern('test_items', orders_pattern)

        assert table_write_api.delete_access_pattern('test_items', 'userOrders').success is True
        assert table_read_api.get_access_patterns('test_items') == []

    def test_export_and_import(self, table_write_api, table_read_api, admin_table, orders_pattern):
        table_write_api.upsert_access_pattern('test_items', orders_pattern)
        exported = table_read_api.export_access_patterns('test_items')

        result = table_write_api.import_access_patterns('test_items_copy', exported.data.split("\n"))

        assert exported.count == 1
        assert result.success is True
        assert result.count == 1
        assert result.message == "Imported 1 patterns."
        assert table_read_api.get_access_patterns('test_items_copy') == [orders_pattern]

    def test_import_reports_bad_lines(self, mock_config, client_pool, pattern_store):
        api = TableWriteApi(mock_config, client_pool, pattern_store)
        lines = [
            json.dumps({'Item': {'AccessPatternId': {'S': 'a'}, 'Label': {'S': 'A'}, 'PK_Format': {'S': 'A#{a}'}}}),
            json.dumps({'Item': {'AccessPatternId': {'S': 'b'}, 'PKFormat': {'S': 'B#{b}'}}}),
        ]

        result = api.import_access_patterns('test_items', lines)

        assert result.success is False
        assert result.count == 1
        assert result.error == "Imported 1 patterns with 1 errors: Line 2: Missing required fields (id, label, pkFormat)"
        assert [p.id for p in pattern_store.get_patterns_for_table('test_items')] == ['a']

    def test_missing_admin_table_reads_empty(self, table_read_api):
        assert table_read_api.get_access_patterns('test_items') == []

    def test_ensure_admin_table(self, table_write_api, table_read_api, mock_config):
        first = table_write_api.ensure_admin_table()
        second = table_write_api.ensure_admin_table()

        assert first.success is True
        assert second.message == "Admin table already exists."
        assert mock_config.admin_table_name in table_read_api.list_tables()


class TestAccountResolution:

    def test_sts_failure_falls_back_to_env_name(self, mock_config):
        pool = Mock()
        pool.sts_client.return_value.get_caller_identity.side_effect = Exception("no credentials")

        store = DynamoAccessPatternStore(mock_config, pool)

        assert store.account_id == "test"
        assert store.partition_key() == "AccountId#test#DynoCanvas#AccessPattern"

    def test_local_mode_uses_env_name(self):
        config = DynoCanvasConfig.for_local_development().model_copy(update={'env_name': 'dev'})
        pool = Mock()

        store = DynamoAccessPatternStore(config, pool)

        assert store.account_id == "dev"
        assert store.sort_key('orders', 'p1') == "Region#dynamodb-local#TableName#orders#AccessPatternId#p1"
        pool.sts_client.assert_not_called()

    def test_account_id_is_cached(self, mock_config):
        pool = Mock()
        pool.sts_client.return_value.get_caller_identity.return_value = {'Account': '111122223333'}
        store = DynamoAccessPatternStore(mock_config, pool)

        assert store.account_id == store.account_id == '111122223333'
        pool.sts_client.assert_called_once()
