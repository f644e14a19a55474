"""
Key Template Compiler

Turns a key format such as ``"USER#{userId}#ORDER#{orderId}"`` into an ordered
list of literal and placeholder segments, and materializes it against a map of
parameter values.

Grammar:
- ``{name}`` is a placeholder; ``name`` is one or more characters other than
  ``{`` and ``}``
- everything else is literal text, including an unterminated ``{``, a stray
  ``}`` and an empty ``{}``

Partition keys are materialized with ``required=True``: a placeholder without a
value is an error. Sort keys are materialized with ``required=False``: the
result stops at the first missing value, which yields the prefix used for
``begins_with`` conditions.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from ..exceptions import MissingRequiredParameterError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r'\{([^{}]+)\}')


class SegmentKind(str, Enum):
    LITERAL = "literal"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    value: str


class KeyTemplate:
    """A compiled key format."""

    def __init__(self, fmt: str, segments: Tuple[Segment, ...]):
        self.format = fmt
        self.segments = segments

    @classmethod
    def compile(cls, fmt: Optional[str]) -> 'KeyTemplate':
        """Split a format string into segments, left to right.

        Args:
            fmt: Key format; None or empty compiles to an empty template

        Returns:
            Compiled KeyTemplate
        """
        fmt = fmt or ""
        segments: List[Segment] = []
        literal_start = 0
        for match in _PLACEHOLDER.finditer(fmt):
            if match.start() > literal_start:
                segments.append(Segment(SegmentKind.LITERAL, fmt[literal_start:match.start()]))
            segments.append(Segment(SegmentKind.PLACEHOLDER, match.group(1)))
            literal_start = match.end()
        if literal_start < len(fmt):
            segments.append(Segment(SegmentKind.LITERAL, fmt[literal_start:]))
        return cls(fmt, tuple(segments))

    @property
    def placeholders(self) -> List[str]:
        """Distinct placeholder names in order of first appearance."""
        names: List[str] = []
        for segment in self.segments:
            if segment.kind is SegmentKind.PLACEHOLDER and segment.value not in names:
                names.append(segment.value)
        return names

    def materialize(self, params: Optional[Mapping[str, str]], required: bool) -> str:
        """Substitute parameter values into the template.

        A placeholder whose value is absent or empty counts as missing.

        Args:
            params: Placeholder values; None is treated as an empty map
            required: Raise on a missing value instead of returning the prefix

        Returns:
            The full key, or the literal prefix up to the first missing value

        Raises:
            MissingRequiredParameterError: A value is missing and ``required`` is set
        """
        params = params or {}
        parts: List[str] = []
        for segment in self.segments:
            if segment.kind is SegmentKind.LITERAL:
                parts.append(segment.value)
                continue
            value = params.get(segment.value)
            if value is None or value == "":
                if required:
                    raise MissingRequiredParameterError(segment.value)
                logger.debug(f"Key template '{self.format}' stopped at missing '{segment.value}'")
                return "".join(parts)
            parts.append(str(value))
        return "".join(parts)

    def __repr__(self) -> str:
        return f"KeyTemplate({self.format!r})"


def build_key_from_format(fmt: Optional[str], params: Optional[Dict[str, str]], is_pk: bool) -> str:
    """Compile and materialize a key format in one call.

    Examples:
        >>> build_key_from_format("USER#{userId}", {"userId": "123"}, is_pk=True)
        'USER#123'
        >>> build_key_from_format("ORDER#{orderId}#ITEM#{itemId}", {"orderId": "A"}, is_pk=False)
        'ORDER#A#ITEM#'
    """
    return KeyTemplate.compile(fmt).materialize(params, required=is_pk)
