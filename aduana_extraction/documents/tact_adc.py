"""
TATC / ADC.

Container admission document (Titulo de Admision Temporal de
Contenedores, with its ADC counterpart) issued by the port terminal. The
container number is checked against its ISO 6346 check digit.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import ClassVar, Optional

from aduana_extraction.extraction import rules
from aduana_extraction.extraction.schema import Capture, DocumentSchema, FieldKind, FieldSpec
from .base import DocumentPipeline
from .labels import FECHA_EMISION, FECHA_VENCIMIENTO, NUMBER, PORT_STOP, RUT, port


@dataclass(frozen=True)
class TactAdcData:
    DOCUMENT_TYPE: ClassVar[str] = "tact_adc"

    numero_tatc: Optional[str] = None
    empresa_emisora: Optional[str] = None
    rut_emisor: Optional[str] = None
    fecha_emision: Optional[date] = None
    numero_contenedor: Optional[str] = None
    tipo_contenedor: Optional[str] = None
    numero_sellos: Optional[str] = None
    bl_armador: Optional[str] = None
    consignatario: Optional[str] = None
    puerto_embarque: Optional[str] = None
    puerto_descarga: Optional[str] = None
    cantidad: Optional[int] = None
    peso: Optional[Decimal] = None
    volumen: Optional[Decimal] = None
    estado: Optional[str] = None
    fecha_vencimiento: Optional[date] = None


TACT_ADC_SCHEMA = DocumentSchema(
    document_type=TactAdcData.DOCUMENT_TYPE,
    record_type=TactAdcData,
    fields=(
        FieldSpec(
            "numero_tatc",
            labels=(rf"\b{NUMBER}\s*(?:de\s+)?(?:t\.?a\.?t\.?c|a\.?d\.?c)\b\.?", r"^(?:tatc|adc)\s*:"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{4}(?:\s?\d{4}){3})",
            required=True,
        ),
        FieldSpec(
            "empresa_emisora",
            labels=(r"\bempresa\s+(?:emisora|portuaria)\b", r"\bemitido\s+por\b"),
            stop=(RUT,),
        ),
        FieldSpec(
            "rut_emisor",
            labels=(r"\brut\s+(?:del\s+)?emisor\b", r"\bempresa\s+(?:emisora|portuaria)\b", r"\bemitido\s+por\b"),
            kind=FieldKind.RUT,
        ),
        FieldSpec("fecha_emision", labels=(FECHA_EMISION,), kind=FieldKind.DATE),
        FieldSpec(
            "numero_contenedor",
            labels=(r"^(?:n(?:o|ro)\.?\s*)?(?:de\s+)?contenedor\b", r"\bsigla\b"),
            kind=FieldKind.CONTAINER,
            required=True,
        ),
        FieldSpec(
            "tipo_contenedor",
            labels=(r"\btipo\s+(?:de\s+)?contenedor\b",),
            stop=(r"\bestado\b", r"\bsellos?\b"),
        ),
        FieldSpec(
            "numero_sellos",
            labels=(rf"\b{NUMBER}\s*(?:de\s+)?sellos?\b", r"^sellos?\b"),
            pattern=r"(?P<value>[A-Z0-9]*\d[A-Z0-9]*(?:\s*[/,;]\s*[A-Z0-9]*\d[A-Z0-9]*)*)",
            required=True,
        ),
        FieldSpec(
            "bl_armador",
            labels=(r"\bb/?l\s+(?:del\s+)?armador\b", r"\bconocimiento\s+(?:de\s+)?embarque\b"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>(?=[A-Z\-]*\d)[A-Z0-9][A-Z0-9\-]{5,})",
        ),
        FieldSpec("consignatario", labels=(r"\bconsignatario\b",), stop=(RUT,)),
        FieldSpec("puerto_embarque", labels=port("embarque"), stop=PORT_STOP),
        FieldSpec("puerto_descarga", labels=port("descarga") + port("desembarque"), stop=PORT_STOP),
        FieldSpec(
            "cantidad",
            labels=(r"\bcantidad(?:\s+(?:de\s+)?bultos)?\b",),
            kind=FieldKind.INTEGER,
            pattern=r"(?P<value>\d[\d.]*)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "peso",
            labels=(r"\bpeso(?:\s+bruto)?\b",),
            kind=FieldKind.DECIMAL,
            pattern=r"(?P<value>\d[\d.,]*)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "volumen",
            labels=(r"\bvolumen\b",),
            kind=FieldKind.DECIMAL,
            pattern=r"(?P<value>\d[\d.,]*)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "estado",
            labels=(r"\b(?:estado|condicion)\b",),
            choices=("LLENO", "VACIO"),
            capture=Capture.SAME_LINE,
        ),
        FieldSpec("fecha_vencimiento", labels=(FECHA_VENCIMIENTO, r"\bvalido\s+hasta\b"), kind=FieldKind.DATE),
    ),
    rules=(
        rules.date_order("fecha_emision", "fecha_vencimiento"),
    ),
)


class TactAdcPipeline(DocumentPipeline[TactAdcData]):
    """Extracts :class:`TactAdcData` container admission records."""

    schema = TACT_ADC_SCHEMA
