"""
Document Pipelines Module.

One pipeline per customs document type. Each is a thin subclass of
:class:`DocumentPipeline` that declares its schema; the records share the
:class:`ExtractionResult` shell.

Author: ML Engineering Team
"""

from typing import Dict, Type

from .base import DocumentPipeline
from .carnet_aduanero import CARNET_ADUANERO_SCHEMA, CarnetAduaneroData, CarnetAduaneroPipeline
from .comprobante_transaccion import (
    COMPROBANTE_TRANSACCION_SCHEMA,
    ComprobanteTransaccionData,
    ComprobanteTransaccionPipeline,
    PagoItem,
)
from .declaracion_ingreso import DECLARACION_INGRESO_SCHEMA, DeclaracionIngresoData, DeclaracionIngresoPipeline
from .documento_recepcion import DOCUMENTO_RECEPCION_SCHEMA, DocumentoRecepcionData, DocumentoRecepcionPipeline
from .guia_despacho import GUIA_DESPACHO_SCHEMA, GuiaDespachoData, GuiaDespachoPipeline, GuiaItem
from .seleccion_aforo import SELECCION_AFORO_SCHEMA, SeleccionAforoData, SeleccionAforoPipeline
from .tact_adc import TACT_ADC_SCHEMA, TactAdcData, TactAdcPipeline

PIPELINES: Dict[str, Type[DocumentPipeline]] = {
    pipeline.schema.document_type: pipeline
    for pipeline in (
        CarnetAduaneroPipeline,
        ComprobanteTransaccionPipeline,
        DeclaracionIngresoPipeline,
        DocumentoRecepcionPipeline,
        GuiaDespachoPipeline,
        SeleccionAforoPipeline,
        TactAdcPipeline,
    )
}


def get_pipeline(document_type: str, **kwargs) -> DocumentPipeline:
    """
    Create the pipeline registered for a document type.

    Args:
        document_type: Tag such as ``"carnet_aduanero"``.
        **kwargs: Passed to the pipeline constructor (``ocr``, ``input_handler``, ``engine``).

    Raises:
        ValueError: If the document type is unknown.

    Example:
        >>> pipeline = get_pipeline("guia_despacho", ocr=my_ocr)
    """
    try:
        pipeline_class = PIPELINES[document_type]
    except KeyError:
        raise ValueError(
            f"Unknown document type: {document_type}. "
            f"Available: {sorted(PIPELINES)}"
        ) from None
    return pipeline_class(**kwargs)


__all__ = [
    'DocumentPipeline',
    'PIPELINES',
    'get_pipeline',
    'CARNET_ADUANERO_SCHEMA',
    'CarnetAduaneroData',
    'CarnetAduaneroPipeline',
    'COMPROBANTE_TRANSACCION_SCHEMA',
    'ComprobanteTransaccionData',
    'ComprobanteTransaccionPipeline',
    'PagoItem',
    'DECLARACION_INGRESO_SCHEMA',
    'DeclaracionIngresoData',
    'DeclaracionIngresoPipeline',
    'DOCUMENTO_RECEPCION_SCHEMA',
    'DocumentoRecepcionData',
    'DocumentoRecepcionPipeline',
    'GUIA_DESPACHO_SCHEMA',
    'GuiaDespachoData',
    'GuiaDespachoPipeline',
    'GuiaItem',
    'SELECCION_AFORO_SCHEMA',
    'SeleccionAforoData',
    'SeleccionAforoPipeline',
    'TACT_ADC_SCHEMA',
    'TactAdcData',
    'TactAdcPipeline',
]
