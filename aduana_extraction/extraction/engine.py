"""
Field Extraction Engine.

Runs a :class:`DocumentSchema` over OCR text:

    1. Split into trimmed, non-empty lines (order is layout)
    2. Find each field's anchor: first line matching one of its labels
    3. Capture the value on the same line and/or the next line
    4. Coerce and validate according to the field kind
    5. Parse the line-item block, if the schema has one
    6. Run cross-field rules
    7. Build the record; valid iff every required field was coerced

Nothing here raises on bad input: every problem becomes an issue on the
outcome. The engine holds no per-call state, so one instance can serve
concurrent calls.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Pattern, Sequence, Tuple

from aduana_extraction.utils.logger import get_logger
from aduana_extraction.postprocessor.normalizers import (
    AmountNormalizer,
    ContainerNormalizer,
    DateNormalizer,
    RutNormalizer,
    clean_text,
    fold_text,
)
from aduana_extraction.postprocessor.validators import (
    AmountValidator,
    ContainerValidator,
    DateValidator,
    FieldValidator,
    RutValidator,
)
from .extraction_result import (
    ExtractionIssue,
    FieldCoercionWarning,
    LineItemWarning,
    MissingFieldWarning,
)
from .schema import Capture, DocumentSchema, FieldKind, FieldSpec, LineItemSpec

# Initialize module logger
logger = get_logger(__name__)

# Separator debris between a label and its value
LEADING_SEPARATORS = re.compile(r"^[\s:;.=\-–|>]+")
# Wide gaps separate columns on the same OCR line
COLUMN_GAP = re.compile(r"\s{3,}|\t")


@lru_cache(maxsize=256)
def _cell_spec(name: str, kind: FieldKind) -> FieldSpec:
    return FieldSpec(name, labels=(r"^",), kind=kind)


def segment_lines(text: str) -> List[str]:
    """
    Split text into trimmed, non-empty lines in reading order.

    Example:
        >>> segment_lines("  RUT: 1-9 \\n\\n Nombre ")
        ['RUT: 1-9', 'Nombre']
    """
    return [line.strip() for line in text.splitlines() if line.strip()]


@dataclass
class EngineOutcome:
    """Values, record and issues produced by one engine run."""
    record: Any
    values: Dict[str, Any]
    issues: List[ExtractionIssue] = field(default_factory=list)
    is_valid: bool = True


class FieldExtractionEngine:
    """
    Generic, schema-driven field extractor.

    Example:
        >>> engine = FieldExtractionEngine()
        >>> outcome = engine.extract(CARNET_SCHEMA, text)
        >>> outcome.record.numero_carnet
        '12345-AB'
    """

    def __init__(self) -> None:
        self.dates = DateNormalizer()
        self.amounts = AmountNormalizer()
        self.ruts = RutNormalizer()
        self.containers = ContainerNormalizer()
        self.rut_validator = RutValidator()
        self.container_validator = ContainerValidator()
        self.date_validator = DateValidator()
        self.amount_validator = AmountValidator()
        self.field_validator = FieldValidator()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def extract(self, schema: DocumentSchema, text: str) -> EngineOutcome:
        """
        Extract a record from text.

        Args:
            schema: Document schema to apply.
            text: OCR or text-layer output.

        Returns:
            EngineOutcome with the built record and every issue found.
        """
        lines = segment_lines(text or "")
        folded = [fold_text(line) for line in lines]

        values: Dict[str, Any] = {}
        issues: List[ExtractionIssue] = []
        is_valid = True
        labels = schema.label_patterns

        for spec in schema.fields:
            value, issue = self.extract_field(spec, lines, folded, labels)
            values[spec.name] = value
            if issue is not None:
                issues.append(issue)
            if spec.required and value is None:
                is_valid = False

        if schema.line_items is not None:
            items, item_issues = self.extract_line_items(schema.line_items, lines, folded)
            values[schema.line_items.name] = items
            issues.extend(item_issues)

        for rule in schema.rules:
            warning = rule(values)
            if warning is not None:
                issues.append(warning)

        record = schema.record_type(**values)

        logger.debug(
            f"{schema.document_type}: {sum(v is not None for v in values.values())}/"
            f"{len(values)} values, {len(issues)} issue(s), valid={is_valid}"
        )
        return EngineOutcome(record, values, issues, is_valid)

    def extract_field(
        self,
        spec: FieldSpec,
        lines: List[str],
        folded: List[str],
        labels: Sequence[Pattern] = ()
    ) -> Tuple[Any, Optional[ExtractionIssue]]:
        """
        Locate, capture and coerce a single field.

        Args:
            spec: Field to extract.
            lines: Segmented lines.
            folded: ``lines`` after :func:`fold_text`.
            labels: Labels of every field in the schema; a next line
                matching one of them is never read as this field's value.

        Returns:
            ``(value, issue)``; value is None when the field is missing or
            failed coercion. Missing optional fields produce no issue.
        """
        raw = self._capture(spec, lines, folded, labels)

        if raw is None:
            if spec.required:
                return None, MissingFieldWarning(spec.name)
            return None, None

        if not raw:
            return None, FieldCoercionWarning(spec.name, "", "no value after label")

        value, error = self.coerce(spec, raw)
        if error is not None:
            return None, FieldCoercionWarning(spec.name, raw, error)
        return value, None

    # -------------------------------------------------------------------------
    # Capture
    # -------------------------------------------------------------------------

    def _capture(
        self,
        spec: FieldSpec,
        lines: List[str],
        folded: List[str],
        labels: Sequence[Pattern] = ()
    ) -> Optional[str]:
        """
        Return the raw value for a field, ``""`` when its label carries no
        value, or None when the anchor was not found.

        A value on the label's own line is final even if it later fails
        coercion. The next line is read only when the label's line holds
        nothing else and the next line is not another field's label line.
        """
        if spec.capture is Capture.ANYWHERE:
            for line in lines:
                value, error = self.coerce(spec, line)
                if error is None:
                    return line
            return None

        anchor = self._find_anchor(spec, folded)
        if anchor is None:
            return None

        index, end = anchor
        if spec.capture is not Capture.NEXT_LINE:
            remainder = self._strip_stop(spec, lines[index][end:], folded[index][end:])
            remainder = LEADING_SEPARATORS.sub("", remainder).strip()
            if remainder or spec.capture is Capture.SAME_LINE:
                return remainder

        following = index + 1
        if following >= len(lines) or any(label.search(folded[following]) for label in labels):
            return ""
        return self._strip_stop(spec, lines[following], folded[following]).strip()

    @staticmethod
    def _find_anchor(spec: FieldSpec, folded: List[str]) -> Optional[Tuple[int, int]]:
        for index, line in enumerate(folded):
            for label in spec.label_res:
                match = label.search(line)
                if match:
                    return index, match.end()
        return None

    @staticmethod
    def _strip_stop(spec: FieldSpec, original: str, folded: str) -> str:
        # Only TEXT values run on into the next label
        if spec.kind is not FieldKind.TEXT or not spec.stop_res:
            return original
        cut = len(original)
        for stop in spec.stop_res:
            match = stop.search(folded, 1)
            if match:
                cut = min(cut, match.start())
        return original[:cut]

    # -------------------------------------------------------------------------
    # Coercion
    # -------------------------------------------------------------------------

    def coerce(self, spec: FieldSpec, raw: str) -> Tuple[Any, Optional[str]]:
        """
        Coerce a raw string to the field's kind.

        Returns:
            ``(value, None)`` on success, ``(None, reason)`` on failure.
        """
        kind = spec.kind

        if kind is FieldKind.TEXT:
            return self._coerce_text(spec, raw)

        if kind is FieldKind.IDENTIFIER:
            value = self.field_validator.match_pattern(raw, spec.pattern)
            if value is None:
                return None, "does not match the expected identifier format"
            return re.sub(r"\s+", "", value).upper(), None

        if kind is FieldKind.DATE:
            value = self.dates.normalize(raw, spec.date_formats)
            if value is None:
                return None, "not a recognised date"
            ok, error = self.date_validator.validate(value)
            return (value, None) if ok else (None, error)

        if kind is FieldKind.AMOUNT:
            currency = self.amounts.detect_currency(raw) or spec.currency
            value = self.amounts.parse_money(self._narrow(spec, raw), currency)
            if value is None:
                return None, "not a recognised amount"
            ok, error = self.amount_validator.validate(value.amount)
            return (value, None) if ok else (None, error)

        if kind is FieldKind.DECIMAL:
            value = self.amounts.parse_decimal(self._narrow(spec, raw))
            if value is None:
                return None, "not a number"
            return value, None

        if kind is FieldKind.INTEGER:
            value = self.amounts.parse_decimal(self._narrow(spec, raw))
            if value is None or value != value.to_integral_value():
                return None, "not a whole number"
            return int(value), None

        if kind is FieldKind.RUT:
            parts = self.ruts.normalize(raw)
            if parts is None:
                return None, "not a RUT"
            ok, error = self.rut_validator.validate(*parts)
            return (self.ruts.format(*parts), None) if ok else (None, error)

        if kind is FieldKind.CONTAINER:
            value = self.containers.normalize(raw)
            if value is None:
                return None, "not a container number"
            ok, error = self.container_validator.validate(value)
            return (value, None) if ok else (None, error)

        raise ValueError(f"Unsupported field kind: {kind}")

    def _narrow(self, spec: FieldSpec, raw: str) -> str:
        if spec.pattern is None:
            return raw
        return self.field_validator.match_pattern(raw, spec.pattern) or ""

    def _coerce_text(self, spec: FieldSpec, raw: str) -> Tuple[Any, Optional[str]]:
        if spec.pattern is not None:
            value = self.field_validator.match_pattern(raw, spec.pattern)
            if value is None:
                return None, "does not match the expected format"
            return clean_text(value), None

        if spec.choices:
            value = self.field_validator.match_choice(raw, spec.choices)
            if value is None:
                return None, f"not one of {list(spec.choices)}"
            return value, None

        value = clean_text(COLUMN_GAP.split(raw.strip())[0]) if raw.strip() else ""
        if not value:
            return None, "empty value"
        return value, None

    # -------------------------------------------------------------------------
    # Line items
    # -------------------------------------------------------------------------

    def extract_line_items(
        self,
        spec: LineItemSpec,
        lines: List[str],
        folded: List[str]
    ) -> Tuple[tuple, List[ExtractionIssue]]:
        """
        Parse the rows between the block header and footer.

        Rows that do not match the layout, or whose cells fail coercion,
        are skipped with a :class:`LineItemWarning`.

        Returns:
            ``(items, issues)`` with items as a tuple of ``spec.item_type``.
        """
        start = next(
            (i for i, line in enumerate(folded) if any(h.search(line) for h in spec.header_res)),
            None
        )
        if start is None:
            return (), []
        # Title and column headers often sit on consecutive lines
        while start + 1 < len(lines) and any(h.search(folded[start + 1]) for h in spec.header_res):
            start += 1

        items = []
        issues: List[ExtractionIssue] = []
        row_number = 0

        for index in range(start + 1, len(lines)):
            if any(f.search(folded[index]) for f in spec.footer_res):
                break

            row_number += 1
            line = lines[index]
            match = spec.row_re.fullmatch(line)
            if match is None:
                issues.append(LineItemWarning(row_number, line, "does not match the row layout"))
                continue

            cells = {}
            failure = None
            for name, raw in match.groupdict().items():
                kind = spec.kinds.get(name, FieldKind.TEXT)
                value, error = self.coerce(_cell_spec(name, kind), raw or "")
                if error is not None:
                    failure = f"{name}: {error}"
                    break
                cells[name] = value

            if failure is not None:
                issues.append(LineItemWarning(row_number, line, failure))
                continue

            items.append(spec.item_type(**cells))

        return tuple(items), issues
