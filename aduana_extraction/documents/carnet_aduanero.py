"""
Carnet Aduanero.

Customs-clearance authorization card issued to agents and their staff.
Typical OCR text::

    CARNÉ ADUANERO
    N° de Carné: 12345-AB
    Nombre: JUAN ANDRES PEREZ SOTO
    R.U.T.: 12.345.678-5
    Fecha Emisión: 15 MAR 2024
    Fecha Vencimiento: 15/03/2027
    Resol. N° 1234 de fecha 01.02.2024

Author: ML Engineering Team
"""

from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Optional

from aduana_extraction.extraction import rules
from aduana_extraction.extraction.schema import Capture, DocumentSchema, FieldKind, FieldSpec
from .base import DocumentPipeline
from .labels import FECHA_EMISION, FECHA_VENCIMIENTO, NUMBER, RUT


@dataclass(frozen=True)
class CarnetAduaneroData:
    """Fields read from a carnet aduanero."""
    DOCUMENT_TYPE: ClassVar[str] = "carnet_aduanero"

    titulo: Optional[str] = None
    numero_carnet: Optional[str] = None
    nombre_completo: Optional[str] = None
    rut: Optional[str] = None
    fecha_emision: Optional[date] = None
    fecha_vencimiento: Optional[date] = None
    resolucion: Optional[str] = None
    fecha_resolucion: Optional[date] = None
    codigo_agente: Optional[str] = None


CARNET_LABEL = rf"\b{NUMBER}\s*(?:de\s+|del\s+)?carnet?\b"

CARNET_ADUANERO_SCHEMA = DocumentSchema(
    document_type=CarnetAduaneroData.DOCUMENT_TYPE,
    record_type=CarnetAduaneroData,
    fields=(
        FieldSpec(
            "titulo",
            capture=Capture.ANYWHERE,
            pattern=r"carn[eé]t?\s+aduanero",
        ),
        FieldSpec(
            "numero_carnet",
            labels=(CARNET_LABEL, rf"\bcarnet?\s+{NUMBER}\b\.?"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"\b[A-Z0-9]{2,}(?:-[A-Z0-9]+)*\b",
            required=True,
        ),
        FieldSpec(
            "nombre_completo",
            labels=(r"^nombre(?:\s+completo)?\b", r"\bnombre\s+del?\s+titular\b"),
            stop=(RUT,),
            required=True,
        ),
        FieldSpec(
            "rut",
            labels=(RUT,),
            kind=FieldKind.RUT,
            required=True,
        ),
        FieldSpec(
            "fecha_emision",
            labels=(FECHA_EMISION,),
            kind=FieldKind.DATE,
            required=True,
        ),
        FieldSpec(
            "fecha_vencimiento",
            labels=(FECHA_VENCIMIENTO, r"\bvalido\s+hasta\b"),
            kind=FieldKind.DATE,
        ),
        FieldSpec(
            "resolucion",
            labels=(r"\bresol(?:ucion)?\b\.?",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{1,6}(?:/\d{2,4})?)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "fecha_resolucion",
            labels=(r"\bresol(?:ucion)?\b.*?\bfecha\b",),
            kind=FieldKind.DATE,
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "codigo_agente",
            labels=(r"\bcod(?:igo)?\.?\s*(?:agente|agad)\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>[A-Z]?\d{2,5})",
        ),
    ),
    rules=(
        rules.date_order("fecha_emision", "fecha_vencimiento"),
        rules.date_order("fecha_resolucion", "fecha_emision"),
    ),
)


class CarnetAduaneroPipeline(DocumentPipeline[CarnetAduaneroData]):
    """Extracts :class:`CarnetAduaneroData` from scans, PDFs or text."""

    schema = CARNET_ADUANERO_SCHEMA
