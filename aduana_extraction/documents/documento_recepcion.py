"""
Documento de Recepcion (DR).

Receipt issued by the bonded warehouse when cargo enters storage. It
records the manifest, the storage clock (start of the 90-day period),
the consignee, the container and the cargo measures.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import ClassVar, Optional

from aduana_extraction.extraction import rules
from aduana_extraction.extraction.schema import Capture, DocumentSchema, FieldKind, FieldSpec
from .base import DocumentPipeline
from .labels import FECHA_EMISION, NUMBER, PORT_STOP, RUT, port


@dataclass(frozen=True)
class DocumentoRecepcionData:
    DOCUMENT_TYPE: ClassVar[str] = "documento_recepcion"

    numero_documento: Optional[str] = None
    situacion: Optional[str] = None
    tipo_documento: Optional[str] = None
    numero_manifiesto: Optional[str] = None
    fecha_manifiesto: Optional[date] = None
    fecha_inicio_almacenaje: Optional[date] = None
    fecha_inicio_90_dias: Optional[date] = None
    fecha_termino_90_dias: Optional[date] = None
    bl_armador: Optional[str] = None
    consignatario: Optional[str] = None
    rut_consignatario: Optional[str] = None
    direccion: Optional[str] = None
    linea_operadora: Optional[str] = None
    puerto_origen: Optional[str] = None
    puerto_embarque: Optional[str] = None
    puerto_descarga: Optional[str] = None
    nave_viaje: Optional[str] = None
    almacen: Optional[str] = None
    contenedor: Optional[str] = None
    numero_tatc: Optional[str] = None
    cantidad: Optional[int] = None
    tipo_bulto: Optional[str] = None
    peso: Optional[Decimal] = None
    volumen: Optional[Decimal] = None
    agencia_aduana: Optional[str] = None
    fecha_emision: Optional[date] = None
    rut_emisor: Optional[str] = None


NINETY_DAYS = r"\b90\s+dias\b"

DOCUMENTO_RECEPCION_SCHEMA = DocumentSchema(
    document_type=DocumentoRecepcionData.DOCUMENT_TYPE,
    record_type=DocumentoRecepcionData,
    fields=(
        FieldSpec(
            "numero_documento",
            labels=(
                r"\bn(?:o|ro)?\.?\s*(?:de\s+)?d\.?\s?r\.?(?=\W|$)",
                r"\bdocumento\s+(?:de\s+)?recepcion\s+n(?:o|ro)?\b\.?",
            ),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{4}\s*-?\s*\d{4,})",
            required=True,
        ),
        FieldSpec(
            "situacion",
            labels=(r"\bsituacion\b",),
            choices=("VIGENTE", "ANULADO", "CERRADO", "RETIRADO"),
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "tipo_documento",
            labels=(r"\btipo\s+(?:de\s+)?documento\b",),
            stop=(r"\bsituacion\b",),
        ),
        FieldSpec(
            "numero_manifiesto",
            labels=(rf"\b{NUMBER}\s*(?:de\s+)?manifiesto\b", r"^manifiesto\b"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{4,})",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "fecha_manifiesto",
            labels=(r"\bfecha\s+(?:de\s+)?(?:aceptacion\s+)?manifiesto\b", r"\bmanifiesto\b.*?\bfecha\b"),
            kind=FieldKind.DATE,
        ),
        FieldSpec(
            "fecha_inicio_almacenaje",
            labels=(r"\binicio\s+(?:de\s+)?almacenaje\b", r"\bfecha\s+(?:de\s+)?recepcion\b"),
            kind=FieldKind.DATE,
        ),
        FieldSpec(
            "fecha_inicio_90_dias",
            labels=(rf"\binicio\b.*?{NINETY_DAYS}", rf"{NINETY_DAYS}.*?\binicio\b"),
            kind=FieldKind.DATE,
        ),
        FieldSpec(
            "fecha_termino_90_dias",
            labels=(rf"\b(?:termino|vencimiento)\b.*?{NINETY_DAYS}", rf"{NINETY_DAYS}.*?\b(?:termino|vencimiento)\b"),
            kind=FieldKind.DATE,
        ),
        FieldSpec(
            "bl_armador",
            labels=(r"\bb/?l\s+(?:del\s+)?armador\b", r"\bconocimiento\s+(?:de\s+)?embarque\b"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>(?=[A-Z\-]*\d)[A-Z0-9][A-Z0-9\-]{5,})",
        ),
        FieldSpec(
            "consignatario",
            labels=(r"^consignatario\b", r"\bnombre\s+(?:del\s+)?consignatario\b"),
            pattern=r"(?P<value>[^\s(\d][^(]*?)\s*(?:\(|\br\.?\s?u\.?\s?t\b|$)",
        ),
        FieldSpec(
            "rut_consignatario",
            labels=(r"\brut\s+(?:del\s+)?consignatario\b", r"\bconsignatario\b"),
            kind=FieldKind.RUT,
        ),
        FieldSpec("direccion", labels=(r"^direccion\b",), stop=(r"\bcomuna\b", r"\bciudad\b")),
        FieldSpec(
            "linea_operadora",
            labels=(r"\blinea\s+operadora\b", r"\bnaviera\b"),
            stop=(r"\bnave\b", r"\bviaje\b"),
        ),
        FieldSpec("puerto_origen", labels=port("origen"), stop=PORT_STOP),
        FieldSpec("puerto_embarque", labels=port("embarque"), stop=PORT_STOP),
        FieldSpec("puerto_descarga", labels=port("descarga") + port("desembarque"), stop=PORT_STOP),
        FieldSpec(
            "nave_viaje",
            labels=(r"\bnave\s*/\s*viaje\b", r"^nave\b"),
            stop=(r"\blinea\b", r"\bpuerto\b"),
        ),
        FieldSpec(
            "almacen",
            labels=(r"\balmacen(?:ista)?\b", r"\brecinto\b"),
            stop=(r"\bcodigo\b", RUT),
        ),
        FieldSpec(
            "contenedor",
            labels=(r"^(?:n(?:o|ro)\.?\s*)?contenedor(?:es)?\b", r"\bsigla\b"),
            kind=FieldKind.CONTAINER,
        ),
        FieldSpec(
            "numero_tatc",
            labels=(r"\bt\.?\s?a\.?\s?t\.?\s?c\b\.?",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{10,16})",
        ),
        FieldSpec(
            "cantidad",
            labels=(r"\bcantidad(?:\s+(?:de\s+)?bultos)?\b",),
            kind=FieldKind.INTEGER,
            pattern=r"(?P<value>\d[\d.]*)",
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "tipo_bulto",
            labels=(r"\btipo\s+(?:de\s+)?bultos?\b",),
            stop=(r"\bpeso\b", r"\bvolumen\b"),
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
            "agencia_aduana",
            labels=(r"\bagen(?:cia|te)\s+(?:de\s+)?aduanas?\b",),
            stop=(RUT, r"\bcodigo\b"),
        ),
        FieldSpec("fecha_emision", labels=(FECHA_EMISION,), kind=FieldKind.DATE),
        FieldSpec("rut_emisor", labels=(r"\bemitido\s+por\b", r"\brut\s+emisor\b"), kind=FieldKind.RUT),
    ),
    rules=(
        rules.date_order("fecha_manifiesto", "fecha_inicio_almacenaje"),
        rules.date_order("fecha_inicio_90_dias", "fecha_termino_90_dias"),
    ),
)


class DocumentoRecepcionPipeline(DocumentPipeline[DocumentoRecepcionData]):
    schema = DOCUMENTO_RECEPCION_SCHEMA
