"""
Customs Document Extraction System.

Turns scanned or digital Chilean customs documents (PNG or PDF) into
typed records. Each module has a single responsibility.

Modules:
    - input_handler: Format sniffing, loading, PDF text and images
    - ocr_engine: Pluggable OCR backends behind one ``image -> text`` function
    - postprocessor: Normalization and validation of raw values
    - extraction: Declarative schemas and the generic extraction engine
    - documents: One pipeline per document type
    - repository: Storage boundary for extracted carnets
    - utils: Logging, exceptions and helpers

Architecture:
    Input → Text (PDF layer or OCR) → Schema extraction → ExtractionResult
                                                        ↓
                                                   Repository
"""

from .documents import PIPELINES, get_pipeline
from .extraction.extraction_result import ExtractionResult

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'PIPELINES',
    'get_pipeline',
    'ExtractionResult',
    'input_handler',
    'ocr_engine',
    'postprocessor',
    'extraction',
    'documents',
    'repository',
    'utils',
]
