"""
Declaracion de Ingreso (DIN).

Import declaration lodged by the customs agent. The identification
number (ten digits and a check digit) is printed without a fixed label,
so it is located by shape; the rest of the fields follow their captions.
Valuation amounts (FOB, freight, insurance, CIF) are in US dollars.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import ClassVar, Optional

from aduana_extraction.extraction import rules
from aduana_extraction.extraction.schema import Capture, DocumentSchema, FieldKind, FieldSpec
from aduana_extraction.postprocessor.normalizers import Money
from .base import DocumentPipeline
from .labels import FECHA_ACEPTACION, FECHA_VENCIMIENTO, PORT_STOP, RUT, port

INCOTERMS = ("EXW", "FCA", "FAS", "FOB", "CFR", "CIF", "CPT", "CIP", "DAP", "DPU", "DDP")


@dataclass(frozen=True)
class DeclaracionIngresoData:
    DOCUMENT_TYPE: ClassVar[str] = "declaracion_ingreso"

    numero_identificacion: Optional[str] = None
    fecha_aceptacion: Optional[date] = None
    fecha_vencimiento: Optional[date] = None
    tipo_operacion: Optional[str] = None
    aduana: Optional[str] = None
    nombre_importador: Optional[str] = None
    rut_importador: Optional[str] = None
    consignante: Optional[str] = None
    pais_origen: Optional[str] = None
    puerto_embarque: Optional[str] = None
    puerto_desembarque: Optional[str] = None
    compania_transportista: Optional[str] = None
    manifiesto: Optional[str] = None
    documento_transporte: Optional[str] = None
    moneda: Optional[str] = None
    forma_pago: Optional[str] = None
    clausula_compra: Optional[str] = None
    valor_fob: Optional[Money] = None
    flete: Optional[Money] = None
    seguro: Optional[Money] = None
    valor_cif: Optional[Money] = None
    peso_bruto: Optional[Decimal] = None
    total_bultos: Optional[int] = None
    total_a_pagar: Optional[Money] = None
    descripcion_mercancias: Optional[str] = None


DECLARACION_INGRESO_SCHEMA = DocumentSchema(
    document_type=DeclaracionIngresoData.DOCUMENT_TYPE,
    record_type=DeclaracionIngresoData,
    fields=(
        FieldSpec(
            "numero_identificacion",
            kind=FieldKind.IDENTIFIER,
            capture=Capture.ANYWHERE,
            pattern=r"(?<![\d.])\d{10}\s*-\s*[\dK](?![\d])",
            required=True,
        ),
        FieldSpec("fecha_aceptacion", labels=(FECHA_ACEPTACION,), kind=FieldKind.DATE),
        FieldSpec("fecha_vencimiento", labels=(FECHA_VENCIMIENTO,), kind=FieldKind.DATE),
        FieldSpec(
            "tipo_operacion",
            labels=(r"\btipo\s+(?:de\s+)?operacion\b",),
            stop=(r"\bcod(?:igo)?\b", r"\baduana\b"),
        ),
        FieldSpec(
            "aduana",
            labels=(r"^aduana\b", r"\baduana\s+(?:de\s+)?tramitacion\b"),
            stop=(r"\bcod(?:igo)?\b", r"\bfecha\b"),
        ),
        FieldSpec(
            "nombre_importador",
            labels=(r"\bnombre\s+(?:del\s+)?importador\b", r"^importador\b"),
            stop=(RUT,),
        ),
        FieldSpec(
            "rut_importador",
            labels=(r"\brut\s+(?:del\s+)?importador\b", r"\bimportador\b"),
            kind=FieldKind.RUT,
        ),
        FieldSpec(
            "consignante",
            labels=(r"\bconsignante\b",),
            stop=(r"\bdireccion\b", r"\bpais\b"),
        ),
        FieldSpec(
            "pais_origen",
            labels=(r"\bpais\s+(?:de\s+)?origen\b",),
            stop=(r"\bpais\b", r"\bcod(?:igo)?\b", r"\bvia\b"),
        ),
        FieldSpec("puerto_embarque", labels=port("embarque"), stop=PORT_STOP),
        FieldSpec("puerto_desembarque", labels=port("desembarque"), stop=PORT_STOP),
        FieldSpec(
            "compania_transportista",
            labels=(r"\bcompania\s+transportista\b", r"^transportista\b"),
            stop=(r"\bmanifiesto\b", RUT),
        ),
        FieldSpec(
            "manifiesto",
            labels=(r"\bmanifiesto\b",),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>\d{4,})",
        ),
        FieldSpec(
            "documento_transporte",
            labels=(r"\bdoc(?:umento)?\.?\s+(?:de\s+)?transporte\b", r"\bb/l\b"),
            kind=FieldKind.IDENTIFIER,
            pattern=r"(?P<value>(?=[A-Z\-]*\d)[A-Z0-9][A-Z0-9\-]{5,})",
        ),
        FieldSpec(
            "moneda",
            labels=(r"^moneda\b", r"\bmoneda\s+(?:de\s+)?(?:la\s+)?transaccion\b"),
            choices=("DOLAR USA", "USD", "EURO", "EUR", "PESO CHILENO", "CLP"),
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "forma_pago",
            labels=(r"\bforma\s+(?:de\s+)?pago\b",),
            stop=(r"\bclausula\b", r"\bmoneda\b"),
        ),
        FieldSpec(
            "clausula_compra",
            labels=(r"\bclausula\b",),
            choices=INCOTERMS,
            capture=Capture.SAME_LINE,
        ),
        FieldSpec(
            "valor_fob",
            labels=(r"\b(?:valor|total)\s+fob\b", r"^fob\b"),
            kind=FieldKind.AMOUNT,
            currency="USD",
        ),
        FieldSpec(
            "flete",
            labels=(r"\b(?:valor|total)\s+flete\b", r"^flete\b"),
            kind=FieldKind.AMOUNT,
            currency="USD",
        ),
        FieldSpec(
            "seguro",
            labels=(r"\b(?:valor|total)\s+seguro\b", r"^seguro\b"),
            kind=FieldKind.AMOUNT,
            currency="USD",
        ),
        FieldSpec(
            "valor_cif",
            labels=(r"\b(?:valor|total)\s+cif\b", r"^cif\b"),
            kind=FieldKind.AMOUNT,
            currency="USD",
        ),
        FieldSpec(
            "peso_bruto",
            labels=(r"\bpeso\s+bruto\b", r"\btotal\s+peso\b"),
            kind=FieldKind.DECIMAL,
            pattern=r"(?P<value>\d[\d.,]*)",
        ),
        FieldSpec(
            "total_bultos",
            labels=(r"\btotal\s+(?:de\s+)?bultos\b",),
            kind=FieldKind.INTEGER,
            pattern=r"(?P<value>\d[\d.]*)",
        ),
        FieldSpec(
            "total_a_pagar",
            labels=(r"\btotal\s+a\s+pagar\b", r"\btotal\s+giro\b"),
            kind=FieldKind.AMOUNT,
        ),
        FieldSpec(
            "descripcion_mercancias",
            labels=(r"\bdescripcion\s+(?:de\s+)?(?:las\s+)?mercancias?\b",),
        ),
    ),
    rules=(
        rules.sum_of("valor_cif", ("valor_fob", "flete", "seguro")),
        rules.date_order("fecha_aceptacion", "fecha_vencimiento"),
    ),
)


class DeclaracionIngresoPipeline(DocumentPipeline[DeclaracionIngresoData]):
    """Extracts :class:`DeclaracionIngresoData` (DIN) records."""

    schema = DECLARACION_INGRESO_SCHEMA
