"""
Item Write API

Mutations over any PK/SK table:
- create_item: PutItem that refuses to overwrite
- update_item: SET every non-key attribute (ReturnValues=ALL_NEW)
- replace_item: delete the old key and put the new item in one transaction
- delete_item / batch_delete_items
- import_items: line-delimited bulk load through RecordImportPipeline

Every operation returns an OperationResult (or ImportResult) instead of raising.
"""

import logging
from typing import Any, Dict, Iterable, List, Union

from ...core import RecordImportPipeline, build_update_expression
from ...core.pipeline import Line
from ...exceptions import InputError, InvalidRecordError
from ...models import (
    PK,
    SK,
    BatchDeleteRequest,
    ImportResult,
    KeyPair,
    OperationResult,
    Record,
)
from ..base import BaseApi, validate_model, validate_table_name

logger = logging.getLogger(__name__)

CREATE_ONLY_CONDITION = "attribute_not_exists(PK) AND attribute_not_exists(SK)"
NO_ATTRIBUTES_MESSAGE = "No attributes to update."


class ItemWriteApi(BaseApi):
    """
    Write-only API for item mutations.

    Honors read-only mode: every operation is rejected before any DynamoDB call.
    """

    def create_item(self, table_name: str, item: Union[Record, Dict[str, Any]]) -> OperationResult:
        """
        Create a new item.

        DynamoDB Operation: PutItem with ConditionExpression
        Condition: attribute_not_exists(PK) AND attribute_not_exists(SK)

        Returns:
            OperationResult; an existing key yields "Item already exists or condition failed."
        """
        logger.debug(f"create_item called: {table_name}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            record = validate_model(Record, item, InvalidRecordError)

            self.gateway(table_name).put_item(record.to_item(), condition_expression=CREATE_ONLY_CONDITION)
            logger.info(f"Item created in {table_name}: {record.PK}/{record.SK}")
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, "CreateItem")

    def update_item(self, table_name: str, item: Union[Record, Dict[str, Any]]) -> OperationResult:
        """
        Overwrite every non-key attribute of an item.

        DynamoDB Operation: UpdateItem with ``SET #attr0 = :val0, ...`` and ReturnValues=ALL_NEW

        Returns:
            OperationResult; an item with only key attributes succeeds with
            message "No attributes to update." and no DynamoDB call
        """
        logger.debug(f"update_item called: {table_name}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            record = validate_model(Record, item, InvalidRecordError)
            if not record.PK or not record.SK:
                raise InvalidRecordError("Primary keys (PK, SK) are required for update.")

            update = build_update_expression(record.attributes())
            if update is None:
                return OperationResult(success=True, message=NO_ATTRIBUTES_MESSAGE)

            self.gateway(table_name).update_item(
                key=record.key.as_key(),
                update_expression=update.expression,
                expression_attribute_values=update.values,
                expression_attribute_names=update.names,
                return_values='ALL_NEW'
            )
            logger.info(f"Item updated in {table_name}: {record.PK}/{record.SK}")
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, "UpdateItem")

    def replace_item(
        self,
        table_name: str,
        old_key: Union[KeyPair, Dict[str, str]],
        new_item: Union[Record, Dict[str, Any]]
    ) -> OperationResult:
        """
        Replace an item whose key changed.

        DynamoDB Operation: TransactWriteItems (Delete old key, Put new item)
        """
        logger.debug(f"replace_item called: {table_name}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            old_key = validate_model(KeyPair, old_key, InvalidRecordError)
            record = validate_model(Record, new_item, InvalidRecordError)

            self.gateway(table_name).transact_write_items([
                {'Delete': {'TableName': table_name, 'Key': old_key.as_key()}},
                {'Put': {'TableName': table_name, 'Item': record.to_item()}},
            ])
            logger.info(f"Item replaced in {table_name}: {old_key.PK}/{old_key.SK} -> {record.PK}/{record.SK}")
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, "ReplaceItem")

    def delete_item(self, table_name: str, pk: str, sk: str) -> OperationResult:
        """
        Delete one item.

        DynamoDB Operation: DeleteItem
        """
        logger.debug(f"delete_item called: {table_name} {pk}/{sk}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            if not pk:
                raise InvalidRecordError("PK is required")

            self.gateway(table_name).delete_item({PK: pk, SK: sk})
            return OperationResult(success=True)
        except Exception as e:
            return self.failure(OperationResult, e, "DeleteItem")

    def batch_delete_items(self, table_name: str, keys: List[Union[KeyPair, Dict[str, str]]]) -> OperationResult:
        """
        Delete 1 to 25 items.

        DynamoDB Operation: BatchWriteItem (DeleteRequest per key)

        Returns:
            OperationResult; failed chunks are joined into ``error``
        """
        logger.debug(f"batch_delete_items called: {table_name} ({len(keys or [])} keys)")
        try:
            self.ensure_writable()
            request = validate_model(BatchDeleteRequest, {'table_name': table_name, 'keys': keys or []}, InputError)
        except Exception as e:
            return self.failure(OperationResult, e, "BatchDeleteItems")

        gateway = self.gateway(request.table_name)
        chunk_size = self.config.batch_chunk_size
        errors: List[str] = []
        deleted_count = 0

        for i in range(0, len(request.keys), chunk_size):
            chunk = request.keys[i:i + chunk_size]
            try:
                gateway.batch_write(delete_keys=[key.as_key() for key in chunk])
                deleted_count += len(chunk)
            except Exception as e:
                logger.error(f"Batch delete chunk error on {table_name}: {e}")
                errors.append(OperationResult.failure(e).error)

        if errors:
            return OperationResult(success=False, error=", ".join(errors))

        logger.info(f"Batch deleted {deleted_count} items from {table_name}")
        return OperationResult(success=True)

    def import_items(self, table_name: str, lines: Iterable[Line]) -> ImportResult:
        """
        Bulk load ``{"Item": ...}`` lines into a table.

        DynamoDB Operation: BatchWriteItem, one call per 25 decoded records

        Args:
            table_name: Target table
            lines: Open file, io stream or any iterable of lines

        Returns:
            ImportResult with the exact imported count; on any error
            ``success`` is False and ``error`` summarizes the first three
        """
        logger.debug(f"import_items called: {table_name}")
        try:
            self.ensure_writable()
            validate_table_name(table_name)
            pipeline = RecordImportPipeline(self.gateway(table_name), self.config.batch_chunk_size)
            result = pipeline.run(lines)
        except Exception as e:
            return self.failure(ImportResult, e, "ImportItems")

        if result.has_errors:
            logger.warning(f"Import into {table_name} finished with {len(result.errors)} errors")
        else:
            logger.info(f"Import items into {table_name} completed successfully")
        return result.to_import_result("items")
