"""
Query Plan Builder

Compiles a SearchParams into a QueryPlan: a key condition, an optional filter
condition and the alias/value maps both of them use.

DIRECT searches take the partition key (and optional sort key prefix) verbatim.
PATTERN searches materialize the access pattern's key templates from
``pattern_params``. Filters always go to the filter condition; they never
narrow the key condition.

Key attribute names are resolved in this order:
1. ``pk_name``/``sk_name`` on the search
2. the key schema described from the table or index, when one is supplied
3. ``PK``/``SK`` for the base table, ``GSI1PK``/``GSI1SK`` for an index
"""

import logging
from typing import Optional, Tuple

from ..exceptions import MissingPartitionKeyError, MissingPatternConfigError, PkFormatUndefinedError
from ..models import GSI_PK, GSI_SK, PK, SK, KeySchema, QueryPlan, SearchMode, SearchParams
from .expressions import BEGINS_WITH, EQUALS, ExpressionBuilder
from .key_template import KeyTemplate

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def resolve_key_names(
    index_name: Optional[str],
    pk_name: Optional[str] = None,
    sk_name: Optional[str] = None,
    key_schema: Optional[KeySchema] = None,
) -> Tuple[str, str]:
    """Pick the partition/sort attribute names for a query."""
    default_pk, default_sk = (GSI_PK, GSI_SK) if index_name else (PK, SK)
    described_pk = key_schema.pk_name if key_schema else None
    described_sk = key_schema.sk_name if key_schema else None
    return (
        pk_name or described_pk or default_pk,
        sk_name or described_sk or default_sk,
    )


def target_index(params: SearchParams) -> Optional[str]:
    """Index a search runs against; a pattern's index wins in PATTERN mode."""
    if params.mode == SearchMode.PATTERN and params.pattern_config is not None:
        return params.pattern_config.index_name or params.index_name
    return params.index_name


def _key_values(params: SearchParams) -> Tuple[str, str]:
    """Partition key value and sort key prefix for a search."""
    if params.mode == SearchMode.DIRECT:
        if not params.pk_input:
            raise MissingPartitionKeyError()
        return params.pk_input, params.sk_input or ""

    pattern = params.pattern_config
    if pattern is None:
        raise MissingPatternConfigError()
    if not pattern.pk_format:
        raise PkFormatUndefinedError(pattern.id)

    pk_value = KeyTemplate.compile(pattern.pk_format).materialize(params.pattern_params, required=True)
    sk_value = ""
    if pattern.sk_format:
        sk_value = KeyTemplate.compile(pattern.sk_format).materialize(params.pattern_params, required=False)
    return pk_value, sk_value


def build_query_plan(
    params: SearchParams,
    key_schema: Optional[KeySchema] = None,
    default_limit: int = DEFAULT_LIMIT,
) -> QueryPlan:
    """Compile a search into a store-ready query.

    Args:
        params: Search request
        key_schema: Key attribute names described from the target table/index
        default_limit: Page size when the search does not set one

    Returns:
        QueryPlan for one table or index

    Raises:
        MissingPartitionKeyError: DIRECT search without ``pk_input``
        MissingPatternConfigError: PATTERN search without ``pattern_config``
        PkFormatUndefinedError: Pattern has no partition key format
        MissingRequiredParameterError: A partition key placeholder has no value
    """
    index_name = target_index(params)
    pk_value, sk_prefix = _key_values(params)
    pk_name, sk_name = resolve_key_names(index_name, params.pk_name, params.sk_name, key_schema)

    builder = ExpressionBuilder()
    key_clauses = [builder.add_condition(pk_name, EQUALS, pk_value)]
    if sk_prefix:
        key_clauses.append(builder.add_condition(sk_name, BEGINS_WITH, sk_prefix))

    filter_clauses = [
        builder.add_condition(attribute, EQUALS, value)
        for attribute, value in (params.filters or {}).items()
        if value
    ]

    plan = QueryPlan(
        table_name=params.table_name,
        index_name=index_name,
        key_condition=ExpressionBuilder.join(key_clauses),
        filter_condition=ExpressionBuilder.join(filter_clauses),
        attribute_names=builder.names,
        attribute_values=builder.values,
        limit=params.limit or default_limit,
        start_key=params.start_key,
    )
    logger.debug(
        f"Built query plan for {params.table_name}"
        f"{' index ' + index_name if index_name else ''}: {plan.key_condition}"
    )
    return plan
