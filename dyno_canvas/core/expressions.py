"""
Expression Builders

Every attribute name in a generated expression goes through an alias
(``#name0``) and every value through a placeholder (``:val0``), so reserved
words and special characters in attribute names never reach the expression
text. The alias/value maps are returned alongside the expression.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..utils import to_dynamodb_value

EQUALS = "="
BEGINS_WITH = "begins_with"


class ExpressionBuilder:
    """Accumulates conditions with one shared alias counter.

    Key conditions and filter conditions built from the same builder never
    reuse a placeholder, so both can be sent in one request.
    """

    def __init__(self, name_prefix: str = "#name", value_prefix: str = ":val"):
        self._name_prefix = name_prefix
        self._value_prefix = value_prefix
        self._counter = 0
        self.names: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}

    def _next_aliases(self):
        index = self._counter
        self._counter += 1
        return f"{self._name_prefix}{index}", f"{self._value_prefix}{index}"

    def add_condition(self, attribute: str, operator: str, value: Any) -> str:
        """Register one comparison and return its expression text.

        Args:
            attribute: Attribute name
            operator: ``"="`` or ``"begins_with"``
            value: Comparison value

        Returns:
            ``"#name0 = :val0"`` or ``"begins_with(#name0, :val0)"``
        """
        if operator not in (EQUALS, BEGINS_WITH):
            raise ValueError(f"Unsupported operator: {operator}")

        name_alias, value_alias = self._next_aliases()
        self.names[name_alias] = attribute
        self.values[value_alias] = value
        if operator == BEGINS_WITH:
            return f"begins_with({name_alias}, {value_alias})"
        return f"{name_alias} = {value_alias}"

    @staticmethod
    def join(clauses: List[str]) -> Optional[str]:
        return " AND ".join(clauses) if clauses else None


@dataclass
class UpdateExpression:
    """Rendered ``SET`` expression for UpdateItem."""

    expression: str
    names: Dict[str, str] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)


def build_update_expression(attributes: Mapping[str, Any]) -> Optional[UpdateExpression]:
    """Build ``SET #attr0 = :val0, #attr1 = :val1, ...`` for the given attributes.

    Args:
        attributes: Attribute name -> new value

    Returns:
        UpdateExpression, or None when there is nothing to set

    Example:
        >>> build_update_expression({'status': 'done'}).expression
        'SET #attr0 = :val0'
    """
    if not attributes:
        return None

    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}
    clauses = []
    for i, (attribute, value) in enumerate(attributes.items()):
        names[f"#attr{i}"] = attribute
        values[f":val{i}"] = to_dynamodb_value(value)
        clauses.append(f"#attr{i} = :val{i}")

    return UpdateExpression(expression="SET " + ", ".join(clauses), names=names, values=values)
