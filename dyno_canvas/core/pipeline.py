"""
Batch Ingest/Export Pipeline

Moves line-delimited records into and out of a table.

Wire format (one JSON object per line):

    {"Item": {"PK": {"S": "USER#1"}, "SK": {"S": "PROFILE"}, "age": {"N": "30"}}}

Import:
- RecordImportPipeline decodes each non-blank line, buffers records into chunks
  of 25 and flushes each chunk through ``gateway.batch_write``. A bad line or a
  failed chunk adds one error; the run always continues to the end.
- PatternImportPipeline decodes access pattern documents and upserts them one
  at a time through an AccessPatternStore.

Export:
- encode_jsonl: the line format above, one line per record
- render_csv: header is the union of attribute names with PK, SK first
"""

import csv
import io
import json
import logging
from decimal import DecimalException
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..exceptions import DecodeError, DynoCanvasError, InputError
from ..models import PK, SK, AccessPatternConfig, PipelineResult
from ..utils import deserialize_item, serialize_item, to_plain_value
from .pattern_store import AccessPatternStore
from .table_gateway import BATCH_WRITE_LIMIT, TableGateway

logger = logging.getLogger(__name__)

Line = Union[str, bytes]

MISSING_ITEM_MESSAGE = "Missing 'Item' property in a line"
MISSING_PATTERN_FIELDS_MESSAGE = "Missing required fields (id, label, pkFormat)"


# =============================================================================
# Line Decoding
# =============================================================================

def _non_blank_lines(lines: Iterable[Line]) -> Iterator[Tuple[int, Line]]:
    """Yield (1-based line number, line) for every non-blank line.

    Byte lines are passed through undecoded; decode_line reports bad encodings.
    """
    for line_number, line in enumerate(lines, start=1):
        if line.strip():
            yield line_number, line


def decode_line(line: Line, line_number: Optional[int] = None) -> Dict[str, Any]:
    """Decode one ``{"Item": ...}`` line into a resource-layer item.

    Args:
        line: One line of the import stream
        line_number: Position in the stream, recorded on errors

    Returns:
        Item with plain Python values (numbers as Decimal)

    Raises:
        DecodeError: Malformed JSON, a missing ``Item`` wrapper, or bad attribute encoding
    """
    try:
        if isinstance(line, bytes):
            line = line.decode('utf-8')
        obj = json.loads(line)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Parse error: {e}", line_number, e) from e

    if not isinstance(obj, dict) or not obj.get('Item'):
        raise DecodeError(MISSING_ITEM_MESSAGE, line_number)

    try:
        return deserialize_item(obj['Item'])
    except (TypeError, ValueError, AttributeError, DecimalException) as e:
        raise DecodeError(f"Parse error: {e}", line_number, e) from e


def _error_text(error: Exception) -> str:
    if isinstance(error, DynoCanvasError):
        return error.user_message
    return str(error) or error.__class__.__name__


def _line_error(error: Exception, line_number: int) -> str:
    return f"Line {line_number}: {_error_text(error)}"


# =============================================================================
# Record Import
# =============================================================================

class RecordImportPipeline:
    """Streams records from line-delimited input into one table."""

    def __init__(self, gateway: TableGateway, chunk_size: int = BATCH_WRITE_LIMIT):
        if not 1 <= chunk_size <= BATCH_WRITE_LIMIT:
            raise ValueError(f"chunk_size must be between 1 and {BATCH_WRITE_LIMIT}")
        self.gateway = gateway
        self.chunk_size = chunk_size

    def run(self, lines: Iterable[Line]) -> PipelineResult:
        """Import every decodable line.

        Chunks are flushed in input order. Only chunks that were written count
        toward ``imported_count``.

        Args:
            lines: Any iterable of text or byte lines (open file, io stream, list)

        Returns:
            PipelineResult with the exact imported count and every error
        """
        result = PipelineResult()
        chunk: List[Dict[str, Any]] = []

        for line_number, line in _non_blank_lines(lines):
            try:
                chunk.append(decode_line(line, line_number))
            except DecodeError as e:
                result.errors.append(_line_error(e, line_number))
                continue

            if len(chunk) >= self.chunk_size:
                self._flush(chunk, result)
                chunk = []

        if chunk:
            self._flush(chunk, result)

        logger.info(
            f"Imported {result.imported_count} items into {self.gateway.table_name} "
            f"with {len(result.errors)} errors"
        )
        return result

    def _flush(self, chunk: List[Dict[str, Any]], result: PipelineResult) -> None:
        try:
            self.gateway.batch_write(put_items=chunk)
        except Exception as e:
            logger.error(f"Batch write chunk error: {e}")
            result.errors.append(_error_text(e))
            return
        result.imported_count += len(chunk)


# =============================================================================
# Access Pattern Import
# =============================================================================

def pattern_from_document(doc: Dict[str, Any]) -> AccessPatternConfig:
    """Map a decoded pattern document onto an AccessPatternConfig.

    Raises:
        InputError: id, label or partition key format is missing or invalid
    """
    fields = AccessPatternConfig.fields_from_document(doc)
    if not fields['id'] or not fields['label'] or not fields['pk_format']:
        raise InputError(MISSING_PATTERN_FIELDS_MESSAGE)
    try:
        return AccessPatternConfig(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise InputError(f"Invalid access pattern {fields['id']}: {e}", original_error=e) from e


class PatternImportPipeline:
    """Upserts access patterns from line-delimited input, one line at a time."""

    def __init__(self, pattern_store: AccessPatternStore):
        """Initialize pipeline.

        Args:
            pattern_store: AccessPatternStore receiving the upserts
        """
        self.pattern_store = pattern_store

    def run(self, table_name: str, lines: Iterable[Line]) -> PipelineResult:
        """Upsert every valid pattern line into the store for one table.

        A line that fails to decode or upsert adds one error and is skipped.
        Existing patterns with the same id are overwritten.

        Args:
            table_name: Table the patterns belong to
            lines: Any iterable of text or byte lines

        Returns:
            PipelineResult counting the upserted patterns
        """
        result = PipelineResult()

        for line_number, line in _non_blank_lines(lines):
            try:
                config = pattern_from_document(decode_line(line, line_number))
                self.pattern_store.upsert(table_name, config, allow_overwrite=True)
            except Exception as e:
                logger.warning(f"Skipping access pattern on line {line_number}: {e}")
                result.errors.append(_line_error(e, line_number))
                continue
            result.imported_count += 1

        logger.info(
            f"Imported {result.imported_count} access patterns for {table_name} "
            f"with {len(result.errors)} errors"
        )
        return result


# =============================================================================
# Export
# =============================================================================

def encode_line(item: Dict[str, Any]) -> str:
    return json.dumps({'Item': serialize_item(item)}, ensure_ascii=False)


def encode_jsonl(items: Iterable[Dict[str, Any]]) -> str:
    """Render items in the import line format, newline separated."""
    return "\n".join(encode_line(item) for item in items)


def csv_header(items: List[Dict[str, Any]]) -> List[str]:
    """Union of attribute names: PK, SK first, the rest sorted."""
    names = set()
    for item in items:
        names.update(item.keys())
    leading = [name for name in (PK, SK) if name in names]
    return leading + sorted(names - {PK, SK})


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    value = to_plain_value(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_csv(items: List[Dict[str, Any]]) -> str:
    """Render items as CSV.

    Fields containing a comma, quote or newline are quoted with embedded
    quotes doubled. Rows are joined with ``\\n`` and there is no trailing
    newline.
    """
    if not items:
        return ""
    header = csv_header(items)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(header)
    for item in items:
        writer.writerow([_csv_cell(item.get(name)) for name in header])
    output = buffer.getvalue()
    return output[:-1] if output.endswith("\n") else output
