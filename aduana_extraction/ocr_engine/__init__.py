"""
OCR Engine Module.

Two interchangeable backends behind one function-shaped contract,
``text = ocr(image)``:
    - Tesseract (local)
    - Google Cloud Vision (cloud)

Author: ML Engineering Team
"""

from .engine import OCREngine, OcrFunction, create_backend, create_ocr_function
from .tesseract_backend import TesseractBackend
from .google_vision_backend import GoogleVisionBackend

__all__ = [
    'OCREngine',
    'OcrFunction',
    'create_backend',
    'create_ocr_function',
    'TesseractBackend',
    'GoogleVisionBackend',
]
