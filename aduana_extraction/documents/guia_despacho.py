"""
Guia de Despacho.

Dispatch guide (electronic tax document) that accompanies goods leaving
customs on their way to the consignee. It has the usual DTE layout::

    R.U.T.: 76.543.210-3
    GUIA DE DESPACHO ELECTRONICA N° 4512
    Señor(es): IMPORTADORA ANDES LTDA   R.U.T.: 12.345.678-5
    Cantidad  Descripcion            Precio Unit.   Total
    10        REPUESTOS MOTOR        $ 5.000        $ 50.000
    Monto Neto  $ 50.000
    IVA 19%     $ 9.500
    Total       $ 59.500

The amounts are checked against each other: the item totals against the
net amount, net plus VAT against the total, and quantity times unit price
against each row.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
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
from .labels import RUT


@dataclass(frozen=True)
class GuiaItem:
    """One goods row of the guide."""
    cantidad: Decimal
    descripcion: str
    precio_unitario: Money
    monto: Money


@dataclass(frozen=True)
class GuiaDespachoData:
    DOCUMENT_TYPE: ClassVar[str] = "guia_despacho"

    # Emisor
    rut_emisor: Optional[str] = None
    numero_guia: Optional[str] = None
    fecha_documento: Optional[date] = None
    giro_emisor: Optional[str] = None
    direccion_emisor: Optional[str] = None
    # Receptor
    nombre_receptor: Optional[str] = None
    rut_receptor: Optional[str] = None
    direccion_receptor: Optional[str] = None
    comuna: Optional[str] = None
    ciudad: Optional[str] = None
    # Transporte
    transportista: Optional[str] = None
    patente: Optional[str] = None
    chofer: Optional[str] = None
    # Referencias aduaneras
    numero_despacho: Optional[str] = None
    aduana: Optional[str] = None
    referencia: Optional[str] = None
    conocimiento_embarque: Optional[str] = None
    manifiesto: Optional[str] = None
    # Carga
    peso_bruto: Optional[Decimal] = None
    valor_cif: Optional[Money] = None
    cantidad_bultos: Optional[int] = None
    observaciones: Optional[str] = None
    # Totales
    monto_neto: Optional[Money] = None
    iva: Optional[Money] = None
    monto_total: Optional[Money] = None
    items: Tuple[GuiaItem, ...] = ()


GUIA_DESPACHO_SCHEMA = DocumentSchema(
    document_type=GuiaDespachoData.DOCUMENT_TYPE,
    record_type=GuiaDespachoData,
    fields=(
        FieldSpec(
            "rut_emisor",
            labels=(rf"^{RUT}",),
            kind=FieldKind.RUT,
            required=True,
        ),
        FieldSpec(
            "numero_guia",
            labels=(r"\bguia\s+de\s+despacho\b.*?\bn(?:o|ro)\b\.?", r"^n(?:o|ro)\.?\s*(?=\d)"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{1,10})",
            required=True,
        ),
        FieldSpec(
            "fecha_documento",
            labels=(r"^fecha(?:\s+(?:de\s+)?emision)?\b",),
            kind=FieldKind.DATE,
            required=True,
        ),
        FieldSpec("giro_emisor", labels=(r"^giro\b",), stop=(r"\bdireccion\b",)),
        FieldSpec("direccion_emisor", labels=(r"^(?:direccion|casa\s+matriz)\b",), stop=(r"\bcomuna\b", r"\bciudad\b")),
        FieldSpec(
            "nombre_receptor",
            labels=(r"\bsenor\s*\(?es\)?", r"\bsenores\b", r"\b(?:receptor|cliente|destinatario)\b"),
            stop=(RUT,),
        ),
        FieldSpec(
            "rut_receptor",
            labels=(r"\bsenor\s*\(?es\)?", r"\bsenores\b", r"\brut\s+(?:del\s+)?(?:receptor|cliente|destinatario)\b"),
            kind=FieldKind.RUT,
        ),
        FieldSpec(
            "direccion_receptor",
            labels=(r"\b(?:direccion|domicilio)\s+(?:de\s+)?(?:del\s+)?(?:receptor|cliente|destino|entrega)\b",),
            stop=(r"\bcomuna\b", r"\bciudad\b"),
        ),
        FieldSpec("comuna", labels=(r"\bcomuna\b",), stop=(r"\bciudad\b", r"\bgiro\b"), capture=Capture.SAME_LINE),
        FieldSpec("ciudad", labels=(r"\bciudad\b",), stop=(r"\bcomuna\b", r"\bgiro\b"), capture=Capture.SAME_LINE),
        FieldSpec(
            "transportista",
            labels=(r"\btransportista\b", r"\bempresa\s+(?:de\s+)?transporte\b"),
            stop=(r"\bpatente\b", RUT),
        ),
        FieldSpec(
            "patente",
            labels=(r"\bpatente\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>[A-Z]{2,4}\s?-?\s?\d{2,4})",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec("chofer", labels=(r"\b(?:chofer|conductor)\b",), stop=(RUT, r"\bpatente\b")),
        FieldSpec(
            "numero_despacho",
            labels=(r"^(?:n(?:o|ro)\.?\s*)?(?:de\s+)?despacho\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d[\d\-]{3,})",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec("aduana", labels=(r"^aduana\b",), stop=(r"\bdespacho\b", r"\bmanifiesto\b")),
        FieldSpec("referencia", labels=(r"^referencias?\b", r"\bdocumento\s+de\s+referencia\b")),
        FieldSpec(
            "conocimiento_embarque",
            labels=(r"\bconocimiento\s+(?:de\s+)?embarque\b", r"\bb/l\b"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>(?=[A-Z\-]*\d)[A-Z0-9][A-Z0-9\-]{5,})",
        ),
        FieldSpec(
            "manifiesto",
            labels=(r"\bmanifiesto\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{4,})",
        ),
        FieldSpec(
            "peso_bruto",
            labels=(r"\bpeso\s+bruto\b", r"^peso\b"),
            kind=FieldKind.DECIMAL,
            pattern=r"(?P<value>\d[\d.,]*)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "valor_cif",
            labels=(r"\bvalor\s+cif\b",),
            kind=FieldKind.AMOUNT,
            currency="USD",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "cantidad_bultos",
            labels=(r"\b(?:cantidad|total)\s+(?:de\s+)?bultos\b",),
            kind=FieldKind.INTEGER,
            pattern=r"(?P<value>\d[\d.]*)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec("observaciones", labels=(r"^observacion(?:es)?\b", r"^obs\b\.?")),
        FieldSpec(
            "monto_neto",
            labels=(r"^(?:monto\s+)?neto\b", r"^sub\s?total\b"),
            kind=FieldKind.AMOUNT,
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "iva",
            labels=(r"^i\.?\s?v\.?\s?a\b\.?",),
            kind=FieldKind.AMOUNT,
            pattern=r"(?:\(?\d{1,2}(?:[.,]\d+)?\s*%\)?)?\D*(?P<value>-?\d[\d.,]*)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "monto_total",
            labels=(r"^(?:monto\s+)?total\b",),
            kind=FieldKind.AMOUNT,
            capture=Capture.SAME_LINE,
        ),
    ),
    line_items=LineItemSpec(
        name="items",
        item_type=GuiaItem,
        headers=(r"\bcantidad\b.*\bdescripcion\b", r"^detalle\b"),
        footers=(r"^(?:monto\s+)?neto\b", r"^sub\s?total\b", r"^(?:monto\s+)?total\b", r"^i\.?\s?v\.?\s?a\b"),
        row_pattern=(
            r"(?P<cantidad>\d+(?:[.,]\d+)?)\s+(?P<descripcion>.+?)"
            r"\s+\$?\s*(?P<precio_unitario>\d[\d.,]*)\s+\$?\s*(?P<monto>\d[\d.,]*)"
        ),
        kinds={
            "cantidad": FieldKind.DECIMAL,
            "precio_unitario": FieldKind.AMOUNT,
            "monto": FieldKind.AMOUNT,
        },
        amount_field="monto",
    ),
    rules=(
        rules.items_total("items", "monto_neto", "monto"),
        rules.sum_of("monto_total", ("monto_neto", "iva")),
        rules.vat_rate("monto_neto", "iva"),
        rules.item_products("items", "cantidad", "precio_unitario", "monto"),
    ),
)


class GuiaDespachoPipeline(DocumentPipeline[GuiaDespachoData]):
    """Extracts :class:`GuiaDespachoData` with its goods rows."""

    schema = GUIA_DESPACHO_SCHEMA
