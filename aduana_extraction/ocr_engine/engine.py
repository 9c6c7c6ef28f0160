"""
Main OCR Engine Module.

Selects an OCR backend from configuration and exposes it as a plain
``image -> text`` function, which is the only contract the document
pipelines depend on.

Usage:
    from aduana_extraction.ocr_engine import create_ocr_function

    ocr = create_ocr_function()
    text = ocr(image)

Author: ML Engineering Team
"""

from typing import Callable, Dict, Optional

from PIL import Image

from config import get_config
from aduana_extraction.utils.logger import get_logger
from aduana_extraction.utils.exceptions import OCREngineNotAvailableError, OCRError
from .tesseract_backend import TesseractBackend
from .google_vision_backend import GoogleVisionBackend

# Initialize module logger
logger = get_logger(__name__)

OcrFunction = Callable[[Image.Image], str]

BACKENDS: Dict[str, Callable[[], OcrFunction]] = {
    "tesseract": TesseractBackend,
    "google_vision": GoogleVisionBackend,
}

ALIASES = {
    "pytesseract": "tesseract",
    "google": "google_vision",
    "vision": "google_vision",
}


def _normalize_name(name: str) -> str:
    name = name.strip().lower()
    return ALIASES.get(name, name)


def create_backend(name: str) -> OcrFunction:
    """
    Build a single OCR backend by name.

    Raises:
        OCREngineNotAvailableError: If the name is unknown or the backend
            cannot be initialized.
    """
    name = _normalize_name(name)
    if name not in BACKENDS:
        raise OCREngineNotAvailableError(name, f"supported: {sorted(BACKENDS)}")
    return BACKENDS[name]()


class OCREngine:
    """
    Callable OCR engine with optional fallback.

    When the primary backend raises an :class:`OCRError`, the fallback
    (if configured) is tried once. If both fail, the fallback's error is
    raised, so its ``is_transient`` flag tells the caller whether retrying
    makes sense. The engine never retries on its own.

    Supported Backends:
        - tesseract: local Tesseract (default)
        - google_vision: Google Cloud Vision

    Example:
        >>> engine = OCREngine()
        >>> text = engine(image)
    """

    def __init__(
        self,
        backend: Optional[str] = None,
        fallback: Optional[str] = None,
        primary_fn: Optional[OcrFunction] = None,
        fallback_fn: Optional[OcrFunction] = None
    ) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: Primary backend name; ``ocr.engine`` when omitted.
            fallback: Fallback backend name; ``ocr.fallback_engine`` when
                     omitted.
            primary_fn: Ready-made primary OCR function, overrides ``backend``.
            fallback_fn: Ready-made fallback OCR function, overrides ``fallback``.
        """
        self.backend_name = _normalize_name(backend or get_config("ocr.engine", "tesseract"))
        fallback_name = fallback or get_config("ocr.fallback_engine")
        self.fallback_name = _normalize_name(fallback_name) if fallback_name else None

        self.primary = primary_fn or self._init_primary()
        self.fallback = fallback_fn or self._init_fallback()

        logger.info(
            f"OCR Engine initialized with backend: {self.backend_name}"
            + (f" (fallback: {self.fallback_name})" if self.fallback is not None else "")
        )

    def _init_primary(self) -> Optional[OcrFunction]:
        try:
            return create_backend(self.backend_name)
        except OCREngineNotAvailableError as e:
            if not self.fallback_name:
                raise
            logger.warning(f"Primary OCR backend unavailable, relying on fallback: {e}")
            return None

    def _init_fallback(self) -> Optional[OcrFunction]:
        if not self.fallback_name or self.fallback_name == self.backend_name:
            return None
        try:
            return create_backend(self.fallback_name)
        except OCREngineNotAvailableError as e:
            if self.primary is None:
                raise
            logger.warning(f"Fallback OCR backend unavailable: {e}")
            return None

    def extract_text(self, image: Image.Image) -> str:
        """
        Extract text from an image.

        Args:
            image: PIL Image to process.

        Returns:
            Recognized text.

        Raises:
            OCRError: If every configured backend failed.
        """
        if self.primary is not None:
            try:
                return self.primary(image)
            except OCRError as e:
                if self.fallback is None:
                    raise
                logger.warning(f"{self.backend_name} failed ({e}), trying {self.fallback_name}")

        return self.fallback(image)

    __call__ = extract_text


def create_ocr_function(backend: Optional[str] = None) -> OcrFunction:
    """Build the configured OCR engine as an ``image -> text`` function."""
    return OCREngine(backend=backend)
