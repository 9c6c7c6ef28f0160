"""
Extraction Result Module.

The common shell returned by every document pipeline, and the non-fatal
issue records collected while a document is parsed. Issues are never
raised; each one is kept on ``ExtractionResult.issues`` and rendered into
``ExtractionResult.warnings``.

Author: ML Engineering Team
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, Tuple, TypeVar, Union

from aduana_extraction.postprocessor.normalizers import Money

T = TypeVar("T")


@dataclass(frozen=True)
class MissingFieldWarning:
    """A required field whose label does not appear in the text."""
    field: str

    def __str__(self) -> str:
        return f"{self.field}: required field not found"


@dataclass(frozen=True)
class FieldCoercionWarning:
    """A field was located but its captured text could not be coerced."""
    field: str
    raw: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: could not use {self.raw!r} ({self.reason})"


@dataclass(frozen=True)
class LineItemWarning:
    """A row inside a line-item block that was skipped."""
    row: int
    text: str
    reason: str

    def __str__(self) -> str:
        return f"line item {self.row}: skipped {self.text!r} ({self.reason})"


@dataclass(frozen=True)
class ConsistencyWarning:
    """A cross-field relationship that does not hold."""
    rule: str
    message: str
    fields: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.rule}: {self.message}"


ExtractionIssue = Union[MissingFieldWarning, FieldCoercionWarning, LineItemWarning, ConsistencyWarning]


def to_jsonable(value: Any) -> Any:
    """Convert records, dates, decimals and money into JSON-friendly values."""
    if isinstance(value, Money):
        return {"amount": str(value.amount), "currency": value.currency}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value


@dataclass
class ExtractionResult(Generic[T]):
    """
    Structured record plus extraction metadata.

    Attributes:
        record: The typed document record (one dataclass per document type).
        document_type: Tag of the record's document type.
        source_hash: SHA-256 of the input bytes (or of the UTF-8 text for
            raw-text calls).
        extracted_at: UTC time of the call.
        is_valid: True iff every required field was captured and coerced.
        warnings: Human-readable issues in the order they were found.
        issues: Typed versions of the same issues, where available.
        file_name: Input file name, when there was one.
        extraction_method: ``raw_text``, ``ocr``, ``pdf_text``, ``pdf_ocr``
            or ``pdf_mixed``.
        raw_text: The text the fields were extracted from.
    """
    record: T
    document_type: str
    source_hash: str
    extracted_at: datetime
    is_valid: bool
    warnings: List[str] = field(default_factory=list)
    issues: List[ExtractionIssue] = field(default_factory=list)
    file_name: str = ""
    extraction_method: str = "raw_text"
    raw_text: str = ""

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_dict(self, include_text: bool = False) -> Dict[str, Any]:
        """
        Convert to a JSON-serializable dictionary.

        Args:
            include_text: Whether to include ``raw_text``.
        """
        data = {
            "document_type": self.document_type,
            "record": to_jsonable(self.record),
            "source_hash": self.source_hash,
            "extracted_at": self.extracted_at.isoformat(),
            "is_valid": self.is_valid,
            "warnings": list(self.warnings),
            "file_name": self.file_name,
            "extraction_method": self.extraction_method,
        }
        if include_text:
            data["raw_text"] = self.raw_text
        return data

    def __repr__(self) -> str:
        return (
            f"ExtractionResult(type='{self.document_type}', valid={self.is_valid}, "
            f"warnings={len(self.warnings)}, hash={self.source_hash[:12]})"
        )
