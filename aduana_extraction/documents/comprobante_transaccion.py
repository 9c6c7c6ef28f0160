"""
Comprobante de Transaccion.

Payment receipt issued by the Tesoreria or a collecting bank for customs
duties. Besides the header fields it carries a detail block with one row
per paid concept::

    DETALLE DE PAGO
    Cod  Glosa                        Monto
    91   DERECHOS AD VALOREM          $ 120.000
    178  IVA IMPORTACION              $ 45.600
    TOTAL PAGADO                      $ 165.600

Author: ML Engineering Team
"""

from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Optional, Tuple

from aduana_extraction.extraction import rules
from aduana_extraction.extraction.schema import (
    Capture,
    DocumentSchema,
    FieldKind,
    FieldSpec,
    LineItemSpec,
)
from aduana_extraction.postprocessor.normalizers import Money
from .base import DocumentPipeline
from .labels import FECHA_VENCIMIENTO, NUMBER, RUT


@dataclass(frozen=True)
class PagoItem:
    """One paid concept in the detail block."""
    codigo: str
    descripcion: str
    monto: Money


@dataclass(frozen=True)
class ComprobanteTransaccionData:
    DOCUMENT_TYPE: ClassVar[str] = "comprobante_transaccion"

    numero_folio: Optional[str] = None
    rut: Optional[str] = None
    formulario: Optional[str] = None
    fecha_vencimiento: Optional[date] = None
    fecha_pago: Optional[date] = None
    moneda_pago: Optional[str] = None
    institucion_recaudadora: Optional[str] = None
    identificador_transaccion: Optional[str] = None
    total_pagado: Optional[Money] = None
    codigo_barras: Optional[str] = None
    items: Tuple[PagoItem, ...] = ()


COMPROBANTE_TRANSACCION_SCHEMA = DocumentSchema(
    document_type=ComprobanteTransaccionData.DOCUMENT_TYPE,
    record_type=ComprobanteTransaccionData,
    fields=(
        FieldSpec(
            "numero_folio",
            labels=(r"\bfolio\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{3,})",
            required=True,
        ),
        FieldSpec(
            "rut",
            labels=(r"\brut\s*-\s*rol\b", RUT),
            kind=FieldKind.RUT,
        ),
        FieldSpec(
            "formulario",
            labels=(r"\bformulario\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{1,4})",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "fecha_vencimiento",
            labels=(FECHA_VENCIMIENTO, r"\bvencimiento\b"),
            kind=FieldKind.DATE,
        ),
        FieldSpec(
            "fecha_pago",
            labels=(r"\bfecha\s+(?:de\s+)?(?:pago|transaccion)\b",),
            kind=FieldKind.DATE,
        ),
        FieldSpec(
            "moneda_pago",
            labels=(r"\bmoneda(?:\s+(?:de\s+)?pago)?\b",),
            choices=("PESOS", "DOLARES", "CLP", "USD"),
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "institucion_recaudadora",
            labels=(r"\binstitucion\s+recaudadora\b", r"\bbanco\b"),
            stop=(r"\bfecha\b", r"\bfolio\b"),
        ),
        FieldSpec(
            "identificador_transaccion",
            labels=(
                r"\bidentificador\s+(?:de\s+)?(?:la\s+)?transaccion\b",
                rf"\b{NUMBER}\s*(?:de\s+)?(?:operacion|transaccion)\b",
            ),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>[A-Z0-9]{6,})",
        ),
        FieldSpec(
            "total_pagado",
            labels=(r"\btotal\s+(?:a\s+)?pagado\b", r"\bmonto\s+pagado\b", r"^total\b"),
            kind=FieldKind.AMOUNT,
            required=True,
        ),
        FieldSpec(
            "codigo_barras",
            capture=Capture.ANYWHERE,
            pattern=r"(?<!\d)\d{26,}(?!\d)",
        ),
    ),
    line_items=LineItemSpec(
        name="items",
        item_type=PagoItem,
        headers=(r"\bglosa\b.*\bmonto\b", r"\bdetalle\s+(?:de\s+)?(?:pago|giro)\b"),
        footers=(r"\btotal\b",),
        row_pattern=r"(?P<codigo>\d{1,4})\s+(?P<descripcion>.+?)\s+\$?\s*(?P<monto>-?[\d.,]+)",
        kinds={"monto": FieldKind.AMOUNT},
        amount_field="monto",
    ),
    rules=(
        rules.items_total("items", "total_pagado", "monto"),
        rules.date_order("fecha_pago", "fecha_vencimiento"),
        rules.positive("total_pagado"),
    ),
)


class ComprobanteTransaccionPipeline(DocumentPipeline[ComprobanteTransaccionData]):
    schema = COMPROBANTE_TRANSACCION_SCHEMA
