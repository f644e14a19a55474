"""
Paginated Query Executor

Runs a QueryPlan against a TableGateway one page at a time or drains every page
by following ``LastEvaluatedKey`` cursors in order.

- fetch_page: one Query call, items plus the next cursor
- count_all:  Select=COUNT over every page, summing ``Count``
- fetch_all:  every item of every page
- scan_all:   every item of a whole-table Scan

Drains abort on the first store error; partial results are discarded. An
optional ``max_items`` ceiling stops a drain that grows past it.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import ExportLimitExceededError
from ..models import Page, QueryPlan
from .table_gateway import TableGateway

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Executes query plans through one gateway."""

    def __init__(self, gateway: TableGateway, max_items: Optional[int] = None):
        """Initialize executor.

        Args:
            gateway: Gateway for the plan's table
            max_items: Fail full drains that exceed this many items (None = unbounded)
        """
        self.gateway = gateway
        self.max_items = max_items

    def fetch_page(self, plan: QueryPlan) -> Page:
        """Run one Query call for the plan's page size and start key."""
        response = self.gateway.query(**plan.to_query_kwargs())
        return Page(
            items=response.get('Items', []),
            last_evaluated_key=response.get('LastEvaluatedKey'),
        )

    def count_all(self, plan: QueryPlan) -> int:
        """Count every matching item, following cursors until exhausted."""
        query_kwargs = plan.to_query_kwargs(select_count=True, include_limit=False)
        total = 0
        pages = 0
        for response in self._drain(self.gateway.query, query_kwargs):
            total += response.get('Count', 0)
            pages += 1
        logger.debug(f"Counted {total} items in {plan.table_name} over {pages} pages")
        return total

    def fetch_all(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        """Collect every matching item, following cursors until exhausted."""
        query_kwargs = plan.to_query_kwargs(include_limit=False)
        return self._collect(self.gateway.query, query_kwargs)

    def scan_all(self) -> List[Dict[str, Any]]:
        """Collect every item of the gateway's table."""
        return self._collect(self.gateway.scan, {})

    def _collect(self, call: Callable[..., Dict[str, Any]], kwargs: Dict[str, Any]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for response in self._drain(call, kwargs):
            items.extend(response.get('Items', []))
            if self.max_items is not None and len(items) > self.max_items:
                logger.error(f"Drain of {self.gateway.table_name} exceeded {self.max_items} items")
                raise ExportLimitExceededError(self.max_items)
        return items

    @staticmethod
    def _drain(call: Callable[..., Dict[str, Any]], kwargs: Dict[str, Any]):
        """Yield raw responses page by page."""
        kwargs = dict(kwargs)
        while True:
            response = call(**kwargs)
            yield response
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                break
            kwargs['ExclusiveStartKey'] = last_key
