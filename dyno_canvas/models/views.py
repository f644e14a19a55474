"""
Result Models (read side of every public operation)

Every handler returns one of these instead of raising past the library
boundary, so a calling layer can render ``error`` without knowing botocore or
dyno-canvas exception types.

- OperationResult: success flag, user-facing error, error kind
- SearchResult / CountResult / ExportResult / ImportResult / TableDetailsResult
- Page: one page of a paginated read, used inside the core
- PipelineResult: aggregate outcome of one import run
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..exceptions import DynoCanvasError, ErrorKind

ERROR_PREVIEW_COUNT = 3


class OperationResult(BaseModel):
    """Uniform ``{success, error?}`` result shape."""

    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def failure(cls, error: Exception, **fields: Any):
        """Build a failed result from any exception.

        dyno-canvas errors contribute their user-facing message and kind;
        anything else is reported by its string form.
        """
        if isinstance(error, DynoCanvasError):
            return cls(success=False, error=error.user_message, error_kind=error.kind, **fields)
        return cls(success=False, error=str(error) or "Unknown error occurred.", **fields)


class SearchResult(OperationResult):
    data: List[Dict[str, Any]] = Field(default_factory=list)
    last_evaluated_key: Optional[Dict[str, Any]] = None


class CountResult(OperationResult):
    count: int = 0


class ExportResult(OperationResult):
    data: str = ""
    count: int = 0
    format: str = "jsonl"


class ImportResult(OperationResult):
    count: int = 0
    errors: List[str] = Field(default_factory=list)


class TableDetailsResult(OperationResult):
    table: Optional[Dict[str, Any]] = None
    ttl: Optional[Dict[str, Any]] = None
    is_local: bool = False


class Page(BaseModel):
    """One page of items and the cursor for the next one."""

    items: List[Dict[str, Any]] = Field(default_factory=list)
    last_evaluated_key: Optional[Dict[str, Any]] = None


class PipelineResult(BaseModel):
    """Outcome of one import run.

    ``imported_count`` is exact; ``errors`` keeps every message, and
    ``summary()`` shows only the first few.
    """

    imported_count: int = 0
    errors: List[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self, noun: str = "items") -> str:
        if not self.errors:
            return f"Imported {self.imported_count} {noun}."
        preview = ", ".join(self.errors[:ERROR_PREVIEW_COUNT])
        more = "..." if len(self.errors) > ERROR_PREVIEW_COUNT else ""
        return (
            f"Imported {self.imported_count} {noun} with {len(self.errors)} errors: "
            f"{preview}{more}"
        )

    def to_import_result(self, noun: str = "items") -> ImportResult:
        if self.errors:
            return ImportResult(
                success=False,
                error=self.summary(noun),
                count=self.imported_count,
                errors=list(self.errors),
            )
        return ImportResult(success=True, count=self.imported_count, message=self.summary(noun))
