"""
dyno-canvas Utilities

Value conversion helpers shared by the gateway, the pipeline and the handlers.

Key Features:
- Python values -> values the boto3 resource layer accepts (float -> Decimal)
- Resource-layer items <-> DynamoDB-JSON (``{"S": "..."}``) for the line format
- Resource-layer values -> JSON-friendly values for CSV cells and API output

Binary attributes are carried base64-encoded in DynamoDB-JSON, matching the
encoding the DynamoDB console and CLI use.
"""

import base64
import logging
from decimal import Decimal
from typing import Any, Dict

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

logger = logging.getLogger(__name__)

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


# =============================================================================
# Resource-layer Conversion
# =============================================================================

def to_dynamodb_value(value: Any) -> Any:
    """Convert a Python value into one the boto3 resource layer accepts.

    Floats become Decimals (via ``str`` so 0.1 stays 0.1); containers are
    converted recursively. Everything else is returned unchanged.

    Examples:
        >>> to_dynamodb_value({'price': 9.99, 'tags': [1.5]})
        {'price': Decimal('9.99'), 'tags': [Decimal('1.5')]}
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamodb_value(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {to_dynamodb_value(v) for v in value}
    return value


def to_plain_value(value: Any) -> Any:
    """Convert a resource-layer value into a JSON-friendly one.

    Integral Decimals become ints, other Decimals floats, sets sorted lists
    and binary values base64 strings.
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: to_plain_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain_value(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((to_plain_value(v) for v in value), key=str)
    if isinstance(value, Binary):
        return base64.b64encode(value.value).decode('ascii')
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode('ascii')
    return value


# =============================================================================
# DynamoDB-JSON
# =============================================================================

def _encode_binary(av: Dict[str, Any]) -> Dict[str, Any]:
    """Base64-encode binary members of a serialized attribute value."""
    (type_tag, payload), = av.items()
    if type_tag == 'B':
        return {'B': base64.b64encode(_raw_bytes(payload)).decode('ascii')}
    if type_tag == 'BS':
        return {'BS': [base64.b64encode(_raw_bytes(b)).decode('ascii') for b in payload]}
    if type_tag == 'M':
        return {'M': {k: _encode_binary(v) for k, v in payload.items()}}
    if type_tag == 'L':
        return {'L': [_encode_binary(v) for v in payload]}
    return av


def _decode_binary(av: Dict[str, Any]) -> Dict[str, Any]:
    (type_tag, payload), = av.items()
    if type_tag == 'B':
        return {'B': base64.b64decode(payload)}
    if type_tag == 'BS':
        return {'BS': [base64.b64decode(b) for b in payload]}
    if type_tag == 'M':
        return {'M': {k: _decode_binary(v) for k, v in payload.items()}}
    if type_tag == 'L':
        return {'L': [_decode_binary(v) for v in payload]}
    return av


def _raw_bytes(value: Any) -> bytes:
    return value.value if isinstance(value, Binary) else bytes(value)


def serialize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a resource-layer item into DynamoDB-JSON.

    Args:
        item: Item as returned by (or accepted by) ``Table.get_item``/``put_item``

    Returns:
        Mapping of attribute name to typed attribute value, JSON-serializable
    """
    return {
        k: _encode_binary(_serializer.serialize(to_dynamodb_value(v)))
        for k, v in item.items()
    }


def deserialize_item(typed_item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a DynamoDB-JSON item back into resource-layer values.

    Raises:
        TypeError: An attribute value is not a one-key ``{type: payload}`` map
        ValueError: Unknown type tag or malformed payload
    """
    if not isinstance(typed_item, dict):
        raise TypeError(f"Expected an attribute map, got {type(typed_item).__name__}")
    result = {}
    for name, av in typed_item.items():
        if not isinstance(av, dict) or len(av) != 1:
            raise TypeError(f"Attribute '{name}' is not a typed attribute value")
        result[name] = _deserializer.deserialize(_decode_binary(av))
    return result
