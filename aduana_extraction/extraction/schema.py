"""
Declarative Document Schemas.

A document type is described as data: an ordered tuple of
:class:`FieldSpec` entries (where to look, how to capture, how to coerce),
an optional :class:`LineItemSpec` for repeating rows, and cross-field
rules. One generic engine runs every schema.

Label patterns are regular expressions matched against *folded* lines
(lowercase, accents removed, ``°``/``º`` read as ``o``), so
``r"fecha\\s+(de\\s+)?emision"`` matches "Fecha Emisión" and
"FECHA DE EMISION" alike.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Pattern, Tuple

from .extraction_result import ConsistencyWarning


class FieldKind(Enum):
    """Semantic type a captured value is coerced to."""
    TEXT = "text"
    IDENTIFIER = "identifier"
    DATE = "date"
    AMOUNT = "amount"
    DECIMAL = "decimal"
    INTEGER = "integer"
    RUT = "rut"
    CONTAINER = "container"


class Capture(Enum):
    """Where the value sits relative to its label."""
    SAME_LINE = "same_line"
    NEXT_LINE = "next_line"
    SAME_OR_NEXT = "same_or_next"
    # No label: first line anywhere in the text where the value pattern matches
    ANYWHERE = "anywhere"


# Kinds that can locate their own value without an explicit pattern
SELF_LOCATING = {FieldKind.RUT, FieldKind.CONTAINER, FieldKind.DATE}


@dataclass(frozen=True)
class FieldSpec:
    """
    How to find and coerce one field.

    Attributes:
        name: Attribute name on the record dataclass.
        labels: Label regexes over folded text; the first line matching
            any of them is the anchor.
        kind: Semantic type.
        required: Whether the record is invalid without this field.
        capture: Value position relative to the anchor.
        pattern: Regex the value must contain (case-insensitive). A
            ``value`` group, if present, is what gets kept.
        stop: Folded regexes that end a TEXT value early (the next label
            on the same line, typically).
        choices: Allowed values for TEXT fields; matched accent-insensitively.
        currency: Currency assumed for AMOUNT fields when the text names none.
        date_formats: Extra strptime formats for DATE fields.
    """
    name: str
    labels: Tuple[str, ...] = ()
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    capture: Capture = Capture.SAME_OR_NEXT
    pattern: Optional[str] = None
    stop: Tuple[str, ...] = ()
    choices: Tuple[str, ...] = ()
    currency: Optional[str] = None
    date_formats: Tuple[str, ...] = ()
    label_res: Tuple[Pattern, ...] = field(default=(), init=False, repr=False, compare=False)
    stop_res: Tuple[Pattern, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.capture is Capture.ANYWHERE:
            if self.pattern is None and self.kind not in SELF_LOCATING:
                raise ValueError(f"{self.name}: ANYWHERE capture needs a pattern")
        elif not self.labels:
            raise ValueError(f"{self.name}: at least one label pattern is required")

        if self.kind is FieldKind.IDENTIFIER and self.pattern is None:
            raise ValueError(f"{self.name}: identifier fields need a pattern")

        object.__setattr__(self, "label_res", tuple(re.compile(label) for label in self.labels))
        object.__setattr__(self, "stop_res", tuple(re.compile(stop) for stop in self.stop))


@dataclass(frozen=True)
class LineItemSpec:
    """
    A repeating block of rows.

    The block starts after the first run of header lines and ends at
    the first footer match (or end of text). Each row must match
    ``row_pattern`` in full; its named groups are coerced according to
    ``kinds`` (TEXT when absent) and passed to ``item_type``.

    Attributes:
        name: Attribute name on the record holding the tuple of items.
        item_type: Dataclass built from each row's groups.
        headers: Folded regexes recognising the header line.
        footers: Folded regexes recognising the first line after the block.
        row_pattern: Regex over the original (unfolded) row.
        kinds: Group name to FieldKind.
        amount_field: Item attribute summed by total checks.
    """
    name: str
    item_type: type
    headers: Tuple[str, ...]
    footers: Tuple[str, ...]
    row_pattern: str
    kinds: Mapping[str, FieldKind] = field(default_factory=dict)
    amount_field: str = "amount"
    header_res: Tuple[Pattern, ...] = field(default=(), init=False, repr=False, compare=False)
    footer_res: Tuple[Pattern, ...] = field(default=(), init=False, repr=False, compare=False)
    row_re: Optional[Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "header_res", tuple(re.compile(h) for h in self.headers))
        object.__setattr__(self, "footer_res", tuple(re.compile(f) for f in self.footers))
        object.__setattr__(self, "row_re", re.compile(self.row_pattern, re.IGNORECASE))


Rule = Callable[[Mapping[str, Any]], Optional[ConsistencyWarning]]


@dataclass(frozen=True)
class DocumentSchema:
    """
    Complete extraction recipe for one document type.

    Attributes:
        document_type: Tag stored on results.
        record_type: Dataclass built from the extracted values; it must
            accept every field name (and the line-item name) as keyword.
        fields: Field specs in the order they are processed.
        line_items: Optional repeating block.
        rules: Cross-field checks run after all fields are captured.
    """
    document_type: str
    record_type: type
    fields: Tuple[FieldSpec, ...]
    line_items: Optional[LineItemSpec] = None
    rules: Tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        names = [spec.name for spec in self.fields]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"{self.document_type}: duplicate fields {sorted(duplicates)}")

    @property
    def label_patterns(self) -> Tuple[Pattern, ...]:
        """Every field label; a line matching one belongs to that field."""
        return tuple(label for spec in self.fields for label in spec.label_res)

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.required)

    def get(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def field_map(self) -> Dict[str, FieldSpec]:
        return {spec.name: spec for spec in self.fields}
