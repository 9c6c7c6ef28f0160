from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

import pytest

from aduana_extraction.documents.carnet_aduanero import CARNET_LABEL
from aduana_extraction.documents.labels import FECHA_EMISION, RUT
from aduana_extraction.extraction import (
    Capture,
    ConsistencyWarning,
    DocumentSchema,
    FieldCoercionWarning,
    FieldExtractionEngine,
    FieldKind,
    FieldSpec,
    LineItemSpec,
    LineItemWarning,
    MissingFieldWarning,
    rules,
    segment_lines,
)
from aduana_extraction.postprocessor.normalizers import Money


@dataclass(frozen=True)
class MiniCarnet:
    numero_carnet: Optional[str] = None
    fecha_emision: Optional[date] = None


MINI_SCHEMA = DocumentSchema(
    document_type="mini_carnet",
    record_type=MiniCarnet,
    fields=(
        FieldSpec(
            "numero_carnet",
            labels=(CARNET_LABEL,),
            kind=FieldKind.IDENTIFIER,
            pattern=r"\b[A-Z0-9]{2,}(?:-[A-Z0-9]+)*\b",
            required=True,
        ),
        FieldSpec("fecha_emision", labels=(FECHA_EMISION,), kind=FieldKind.DATE, required=True),
    ),
)


@dataclass(frozen=True)
class Row:
    codigo: str
    monto: Money


@dataclass(frozen=True)
class Receipt:
    titular: Optional[str] = None
    rut: Optional[str] = None
    total: Optional[Money] = None
    items: Tuple[Row, ...] = ()


RECEIPT_SCHEMA = DocumentSchema(
    document_type="receipt",
    record_type=Receipt,
    fields=(
        FieldSpec("titular", labels=(r"^titular\b",), stop=(RUT,), capture=Capture.SAME_LINE),
        FieldSpec("rut", labels=(RUT,), kind=FieldKind.RUT),
        FieldSpec("total", labels=(r"^total\b",), kind=FieldKind.AMOUNT, required=True, capture=Capture.SAME_LINE),
    ),
    line_items=LineItemSpec(
        name="items",
        item_type=Row,
        headers=(r"^codigo\s+monto$",),
        footers=(r"^total\b",),
        row_pattern=r"(?P<codigo>\d{1,4})\s+\$?\s*(?P<monto>[\d.,]+)",
        kinds={"monto": FieldKind.AMOUNT},
        amount_field="monto",
    ),
    rules=(rules.items_total("items", "total", "monto"),),
)

RECEIPT_TEXT = """
Titular: ANA ROJAS   RUT: 12.345.678-5
Codigo  Monto
10   $ 1.000
20   $ 2.500
Total $ 3.500
"""


class TestSegmentLines:
    def test_trims_and_drops_blank_lines(self) -> None:
        assert segment_lines("  RUT: 1-9 \n\n\t Nombre \n") == ["RUT: 1-9", "Nombre"]


class TestMinimalSchema:
    def test_value_on_next_line(self) -> None:
        text = "N° de Carné: 12345-AB\nFecha Emisión\n15/03/2024"

        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, text)

        assert outcome.record == MiniCarnet("12345-AB", date(2024, 3, 15))
        assert outcome.issues == []
        assert outcome.is_valid

    def test_missing_anchor_yields_one_warning(self) -> None:
        text = "N° de Carné: 12345-AB\n15/03/2024"

        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, text)

        assert not outcome.is_valid
        assert [str(issue) for issue in outcome.issues] == ["fecha_emision: required field not found"]
        assert outcome.issues == [MissingFieldWarning("fecha_emision")]
        assert outcome.record.numero_carnet == "12345-AB"
        assert outcome.record.fecha_emision is None

    def test_uncoercible_value_is_reported(self) -> None:
        text = "N° de Carné: 12345-AB\nFecha Emisión: 31/02/2024"

        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, text)

        assert not outcome.is_valid
        assert outcome.issues == [
            FieldCoercionWarning("fecha_emision", "31/02/2024", "not a recognised date")
        ]
        assert str(outcome.issues[0]) == "fecha_emision: could not use '31/02/2024' (not a recognised date)"

    def test_label_without_value(self) -> None:
        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, "N° de Carné: 12345-AB\nFecha Emisión")

        assert outcome.issues == [FieldCoercionWarning("fecha_emision", "", "no value after label")]

    def test_bad_same_line_value_is_not_replaced_by_next_line(self) -> None:
        text = "N° de Carné: 12345-AB\nFecha Emisión: 32/13/2024\n15/03/2024"

        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, text)

        assert not outcome.is_valid
        assert outcome.record.fecha_emision is None
        assert outcome.issues == [
            FieldCoercionWarning("fecha_emision", "32/13/2024", "not a recognised date")
        ]

    def test_labelled_next_line_belongs_to_its_own_field(self) -> None:
        text = "N° de Carné:\nFecha Emisión: 15/03/2024"

        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, text)

        assert not outcome.is_valid
        assert outcome.record == MiniCarnet(None, date(2024, 3, 15))
        assert outcome.issues == [FieldCoercionWarning("numero_carnet", "", "no value after label")]

    def test_same_line_value_preferred_over_next_line(self) -> None:
        text = "N° de Carné: 12345-AB\nFecha Emisión: 01/01/2024\n15/03/2024"

        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, text)

        assert outcome.record.fecha_emision == date(2024, 1, 1)

    def test_first_matching_line_is_the_anchor(self) -> None:
        text = "Fecha Emisión: 01/01/2024\nN° de Carné: 12345-AB\nFecha Emisión: 02/02/2024"

        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, text)

        assert outcome.record.fecha_emision == date(2024, 1, 1)

    def test_idempotent(self) -> None:
        engine = FieldExtractionEngine()
        text = "N° de Carné: 12345-AB\nFecha Emisión\n15/03/2024"

        first = engine.extract(MINI_SCHEMA, text)
        second = engine.extract(MINI_SCHEMA, text)

        assert first.record == second.record
        assert first.issues == second.issues

    def test_empty_text(self) -> None:
        outcome = FieldExtractionEngine().extract(MINI_SCHEMA, "")

        assert not outcome.is_valid
        assert len(outcome.issues) == 2


class TestCapture:
    def test_stop_label_ends_text_value(self) -> None:
        outcome = FieldExtractionEngine().extract(RECEIPT_SCHEMA, RECEIPT_TEXT)

        assert outcome.record.titular == "ANA ROJAS"
        assert outcome.record.rut == "12.345.678-5"

    def test_invalid_rut_check_digit(self) -> None:
        text = RECEIPT_TEXT.replace("12.345.678-5", "12.345.678-4")

        outcome = FieldExtractionEngine().extract(RECEIPT_SCHEMA, text)

        assert outcome.record.rut is None
        assert outcome.is_valid
        assert any(isinstance(i, FieldCoercionWarning) and i.field == "rut" for i in outcome.issues)

    def test_next_line_capture_ignores_same_line(self) -> None:
        spec = FieldSpec("nombre", labels=(r"^nombre\b",), capture=Capture.NEXT_LINE)
        engine = FieldExtractionEngine()
        lines = ["Nombre: ignorado", "ANA ROJAS"]

        value, issue = engine.extract_field(spec, lines, [line.lower() for line in lines])

        assert (value, issue) == ("ANA ROJAS", None)

    def test_anywhere_capture_finds_shape(self) -> None:
        spec = FieldSpec(
            "din",
            kind=FieldKind.IDENTIFIER,
            capture=Capture.ANYWHERE,
            pattern=r"\d{10}\s*-\s*[\dK]",
        )
        engine = FieldExtractionEngine()
        lines = ["DECLARACION DE INGRESO", "Identificacion 1234567890 - 1"]

        value, issue = engine.extract_field(spec, lines, lines)

        assert (value, issue) == ("1234567890-1", None)

    def test_choices_are_accent_insensitive(self) -> None:
        spec = FieldSpec("estado", labels=(r"^estado\b",), choices=("LLENO", "VACIO"))
        engine = FieldExtractionEngine()

        assert engine.coerce(spec, ": Vacío") == ("VACIO", None)
        value, error = engine.coerce(spec, ": otro")
        assert value is None
        assert "not one of" in error

    def test_amount_currency_from_text_overrides_default(self) -> None:
        spec = FieldSpec("fob", labels=(r"fob",), kind=FieldKind.AMOUNT, currency="USD")
        engine = FieldExtractionEngine()

        assert engine.coerce(spec, "1.200,00") == (Money(Decimal("1200.00"), "USD"), None)
        assert engine.coerce(spec, "EUR 1.200,00") == (Money(Decimal("1200.00"), "EUR"), None)

    def test_integer_rejects_fractions(self) -> None:
        spec = FieldSpec("bultos", labels=(r"bultos",), kind=FieldKind.INTEGER)
        engine = FieldExtractionEngine()

        assert engine.coerce(spec, "40") == (40, None)
        assert engine.coerce(spec, "4,5") == (None, "not a whole number")

    def test_negative_amount_rejected(self) -> None:
        spec = FieldSpec("total", labels=(r"total",), kind=FieldKind.AMOUNT)

        assert FieldExtractionEngine().coerce(spec, "-100") == (None, "negative amount")


class TestLineItems:
    def test_rows_between_header_and_footer(self) -> None:
        outcome = FieldExtractionEngine().extract(RECEIPT_SCHEMA, RECEIPT_TEXT)

        assert outcome.record.items == (
            Row("10", Money(Decimal("1000.00"), "CLP")),
            Row("20", Money(Decimal("2500.00"), "CLP")),
        )
        assert outcome.record.total == Money(Decimal("3500.00"), "CLP")
        assert outcome.issues == []

    def test_mismatched_total_is_a_consistency_warning(self) -> None:
        text = RECEIPT_TEXT.replace("Total $ 3.500", "Total $ 4.000")

        outcome = FieldExtractionEngine().extract(RECEIPT_SCHEMA, text)

        assert outcome.is_valid
        assert len(outcome.issues) == 1
        warning = outcome.issues[0]
        assert isinstance(warning, ConsistencyWarning)
        assert warning.rule == "items_total"
        assert warning.fields == ("items", "total")

    def test_unparseable_row_is_skipped(self) -> None:
        text = RECEIPT_TEXT.replace("20   $ 2.500", "20   $ 2.500\nNOTA: sin detalle")

        outcome = FieldExtractionEngine().extract(RECEIPT_SCHEMA, text)

        assert len(outcome.record.items) == 2
        assert outcome.issues == [LineItemWarning(3, "NOTA: sin detalle", "does not match the row layout")]

    def test_no_header_means_no_items(self) -> None:
        outcome = FieldExtractionEngine().extract(RECEIPT_SCHEMA, "Total $ 3.500")

        assert outcome.record.items == ()
        assert outcome.issues == []


class TestSchemaDefinition:
    def test_label_required(self) -> None:
        with pytest.raises(ValueError):
            FieldSpec("nombre")

    def test_anywhere_text_needs_pattern(self) -> None:
        with pytest.raises(ValueError):
            FieldSpec("titulo", capture=Capture.ANYWHERE)

    def test_anywhere_self_locating_kind(self) -> None:
        spec = FieldSpec("contenedor", kind=FieldKind.CONTAINER, capture=Capture.ANYWHERE)
        assert spec.labels == ()

    def test_identifier_needs_pattern(self) -> None:
        with pytest.raises(ValueError):
            FieldSpec("folio", labels=(r"folio",), kind=FieldKind.IDENTIFIER)

    def test_duplicate_fields_rejected(self) -> None:
        with pytest.raises(ValueError):
            DocumentSchema(
                document_type="dup",
                record_type=MiniCarnet,
                fields=(FieldSpec("a", labels=("a",)), FieldSpec("a", labels=("b",))),
            )

    def test_required_fields(self) -> None:
        assert MINI_SCHEMA.required_fields == ("numero_carnet", "fecha_emision")
        assert MINI_SCHEMA.get("fecha_emision").kind is FieldKind.DATE
        with pytest.raises(KeyError):
            MINI_SCHEMA.get("missing")
