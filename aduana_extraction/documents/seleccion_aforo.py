"""
Seleccion de Aforo.

Notice from the customs service stating how a declaration was selected
for inspection (physical, documentary or none). The acceptance date is
sometimes printed as eight bare digits (``15032024``).

Author: ML Engineering Team
"""

from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Optional

from aduana_extraction.extraction.schema import Capture, DocumentSchema, FieldKind, FieldSpec
from .base import DocumentPipeline
from .labels import FECHA_ACEPTACION, NUMBER, RUT

REVIEW_TYPES = ("FISICO", "DOCUMENTAL", "SIN INSPECCION")


@dataclass(frozen=True)
class SeleccionAforoData:
    DOCUMENT_TYPE: ClassVar[str] = "seleccion_aforo"

    numero_din: Optional[str] = None
    fecha_aceptacion: Optional[date] = None
    tipo_revision: Optional[str] = None
    numero_encriptado: Optional[str] = None
    codigo_agente: Optional[str] = None
    nombre_agente: Optional[str] = None
    codigo_aduana: Optional[str] = None
    nombre_aduana: Optional[str] = None
    nombre_firmante: Optional[str] = None
    rut_firmante: Optional[str] = None
    numero_agencia: Optional[str] = None
    nombre_agencia: Optional[str] = None


SELECCION_AFORO_SCHEMA = DocumentSchema(
    document_type=SeleccionAforoData.DOCUMENT_TYPE,
    record_type=SeleccionAforoData,
    fields=(
        FieldSpec(
            "numero_din",
            labels=(rf"\b{NUMBER}\s*(?:de\s+)?(?:la\s+)?(?:din|declaracion|identificacion)\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{10}\s*-?\s*[\dK]?)",
            required=True,
        ),
        FieldSpec(
            "fecha_aceptacion",
            labels=(FECHA_ACEPTACION,),
            kind=FieldKind.DATE,
            date_formats=("%d%m%Y",),
        ),
        FieldSpec(
            "tipo_revision",
            labels=(r"\btipo\s+(?:de\s+)?(?:revision|aforo)\b", r"\b(?:revision|aforo)\s*:"),
            choices=REVIEW_TYPES,
            required=True,
        ),
        FieldSpec(
            "numero_encriptado",
            labels=(rf"\b{NUMBER}\s*encriptado\b", r"\bcodigo\s+(?:de\s+)?verificacion\b"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>[A-F0-9]{8,})",
        ),
        FieldSpec(
            "codigo_agente",
            labels=(r"\bcod(?:igo)?\.?\s*(?:del\s+)?agente\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>[A-Z]?\d{2,5})",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "nombre_agente",
            labels=(r"\bagente\b.*?\bnombre\b", r"\bnombre\s+(?:del\s+)?agente\b"),
            stop=(r"\bcod(?:igo)?\b", RUT),
            required=True,
        ),
        FieldSpec(
            "codigo_aduana",
            labels=(r"\bcod(?:igo)?\.?\s*(?:de\s+)?(?:la\s+)?aduana\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{1,3})",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "nombre_aduana",
            labels=(r"^aduana\b", r"\bnombre\s+(?:de\s+)?(?:la\s+)?aduana\b"),
            stop=(r"\bcod(?:igo)?\b", r"\bfecha\b"),
        ),
        FieldSpec(
            "nombre_firmante",
            labels=(r"\b(?:nombre\s+(?:del\s+)?)?firmante\b", r"\bfirmado\s+por\b"),
            stop=(RUT,),
        ),
        FieldSpec(
            "rut_firmante",
            labels=(r"\brut\s+(?:del\s+)?firmante\b", r"\bfirmante\b", r"\bfirmado\s+por\b"),
            kind=FieldKind.RUT,
        ),
        FieldSpec(
            "numero_agencia",
            labels=(rf"\b{NUMBER}\s*(?:de\s+)?agencia\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{1,5})",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "nombre_agencia",
            labels=(r"\bc\.\s?a\.\s*(?:n(?:o|ro)\.?\s*\d*)?", r"\bnombre\s+(?:de\s+)?(?:la\s+)?agencia\b"),
            stop=(RUT, r"\bcod(?:igo)?\b"),
        ),
    ),
)


class SeleccionAforoPipeline(DocumentPipeline[SeleccionAforoData]):
    schema = SELECCION_AFORO_SCHEMA
