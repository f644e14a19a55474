"""
Item Read API

Read operations over any PK/SK table:
- get_item: one item by primary key
- search_items: one page of a DIRECT or PATTERN search
- get_search_count: total matches of a search (Select=COUNT drain)
- export_all_items: every match of a search as JSON lines or CSV

Searches are compiled by build_query_plan. Key attribute names come from the
search itself or, failing that, from DescribeTable on the target table/index.
"""

import logging
from typing import Any, Dict, Optional, Union

from ...core import QueryExecutor, TableGateway, build_query_plan, encode_jsonl, render_csv
from ...core.query_plan import target_index
from ...exceptions import InputError, InvalidSearchParamsError
from ...models import CountResult, ExportResult, QueryPlan, SearchParams, SearchResult
from ..base import BaseApi, validate_model, validate_table_name

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("jsonl", "csv")


class ItemReadApi(BaseApi):
    """
    Read-only API for item lookups, searches, counts and exports.

    Uses Query only; a search always targets one partition key.
    """

    def get_item(self, table_name: str, pk: str, sk: str) -> Optional[Dict[str, Any]]:
        """
        Get one item by primary key.

        DynamoDB Operation: GetItem

        Returns:
            The item, or None when it does not exist or the lookup failed
        """
        logger.debug(f"get_item called: {table_name} {pk}/{sk}")
        try:
            validate_table_name(table_name)
            return self.gateway(table_name).get_item({'PK': pk, 'SK': sk})
        except Exception as e:
            logger.error(f"GetItem error on {table_name}: {e}")
            return None

    def build_plan(self, params: Union[SearchParams, Dict[str, Any]], gateway: Optional[TableGateway] = None) -> QueryPlan:
        """
        Compile a search, describing the table for key names when needed.

        Input errors are raised before any DynamoDB call is made.

        Raises:
            InvalidSearchParamsError: ``params`` failed validation
            InputError: Missing partition key, pattern or key template parameter
            StoreError: DescribeTable failed
        """
        params = validate_model(SearchParams, params, InvalidSearchParamsError)
        plan = build_query_plan(params, default_limit=self.config.default_page_limit)
        if params.pk_name and params.sk_name:
            return plan

        gateway = gateway or self.gateway(params.table_name)
        key_schema = gateway.get_key_schema(target_index(params))
        return build_query_plan(params, key_schema, default_limit=self.config.default_page_limit)

    def search_items(self, params: Union[SearchParams, Dict[str, Any]]) -> SearchResult:
        """
        Run one page of a search.

        DynamoDB Operation: Query (Limit = page size, ExclusiveStartKey = start_key)

        Returns:
            SearchResult with the page's items and the cursor for the next page
        """
        logger.debug("search_items called")
        try:
            params = validate_model(SearchParams, params, InvalidSearchParamsError)
            gateway = self.gateway(params.table_name)
            plan = self.build_plan(params, gateway)
            page = QueryExecutor(gateway).fetch_page(plan)
            return SearchResult(success=True, data=page.items, last_evaluated_key=page.last_evaluated_key)
        except Exception as e:
            return self.failure(SearchResult, e, "Search")

    def get_search_count(self, params: Union[SearchParams, Dict[str, Any]]) -> CountResult:
        """
        Count every item a search matches.

        DynamoDB Operation: Query with Select=COUNT, following every cursor
        """
        logger.debug("get_search_count called")
        try:
            params = validate_model(SearchParams, params, InvalidSearchParamsError)
            gateway = self.gateway(params.table_name)
            plan = self.build_plan(params, gateway)
            count = QueryExecutor(gateway).count_all(plan)
            return CountResult(success=True, count=count)
        except Exception as e:
            return self.failure(CountResult, e, "Count")

    def export_all_items(self, params: Union[SearchParams, Dict[str, Any]], fmt: str = "jsonl") -> ExportResult:
        """
        Export every item a search matches.

        DynamoDB Operation: Query without Limit, following every cursor

        Args:
            params: Search request
            fmt: ``"jsonl"`` (re-importable) or ``"csv"``

        Returns:
            ExportResult with the rendered document; no partial output on failure
        """
        logger.debug(f"export_all_items called ({fmt})")
        try:
            if fmt not in EXPORT_FORMATS:
                raise InputError(f"Unsupported export format: {fmt}")
            params = validate_model(SearchParams, params, InvalidSearchParamsError)
            gateway = self.gateway(params.table_name)
            plan = self.build_plan(params, gateway)
            items = QueryExecutor(gateway, self.config.export_max_items).fetch_all(plan)
            data = encode_jsonl(items) if fmt == "jsonl" else render_csv(items)
            logger.info(f"Exported {len(items)} items from {plan.table_name}")
            return ExportResult(success=True, data=data, count=len(items), format=fmt)
        except Exception as e:
            return self.failure(ExportResult, e, "Export")
