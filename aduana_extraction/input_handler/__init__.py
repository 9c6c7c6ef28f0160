"""
Input Handler Module.

This module provides functionality for:
    - Detecting PNG and PDF inputs from magic bytes and hashing them
    - Loading documents from paths, streams or byte buffers
    - Reading PDF text layers and rendering pages for OCR
    - Extracting embedded images from PDFs

Author: ML Engineering Team
"""

from .sniffer import (
    DocumentFormat,
    detect_format,
    is_valid_png,
    is_valid_pdf,
    compute_hash,
    validate_format,
)
from .handler import InputHandler, RawDocument, TextAcquisition, OcrFunction
from .pdf_processor import PDFProcessor, PageText
from .image_processor import ImageProcessor
from .image_extractor import PDFImageExtractor, ExtractedImage, ImageExtractionResult

__all__ = [
    'DocumentFormat',
    'detect_format',
    'is_valid_png',
    'is_valid_pdf',
    'compute_hash',
    'validate_format',
    'InputHandler',
    'RawDocument',
    'TextAcquisition',
    'OcrFunction',
    'PDFProcessor',
    'PageText',
    'ImageProcessor',
    'PDFImageExtractor',
    'ExtractedImage',
    'ImageExtractionResult',
]
