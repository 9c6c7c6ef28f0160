"""
Tesseract OCR Backend.

Local, CPU-bound OCR through pytesseract. Returns plain text with line
breaks in reading order, which is all the field extraction engine needs.

Requirements:
    - Tesseract OCR installed on the system, with the ``spa`` language pack
    - pytesseract Python package

Author: ML Engineering Team
"""

import pytesseract
from PIL import Image

from config import get_config
from aduana_extraction.utils.logger import get_logger
from aduana_extraction.utils.exceptions import (
    OCREngineNotAvailableError,
    OCRPermanentError,
    OCRTransientError,
)

# Initialize module logger
logger = get_logger(__name__)


class TesseractBackend:
    """
    Tesseract OCR backend.

    Attributes:
        language: Tesseract language code (e.g., "spa")
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        timeout: Seconds before a Tesseract run is abandoned (0 disables)

    Example:
        >>> backend = TesseractBackend()
        >>> text = backend.extract_text(image)
    """

    name = "tesseract"

    def __init__(self) -> None:
        """Initialize the Tesseract backend with configuration."""
        self.language = get_config("ocr.tesseract.lang", "spa")
        self.psm = get_config("ocr.tesseract.psm", 6)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "")
        self.timeout = get_config("ocr.tesseract.timeout", 60)

        self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> None:
        """
        Check that the Tesseract binary is reachable.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as e:
            raise OCREngineNotAvailableError(self.name, f"not installed or not in PATH: {e}")

        logger.info(f"Tesseract version: {version}")

    def _build_config(self) -> str:
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def extract_text(self, image: Image.Image) -> str:
        """
        Run Tesseract on an image.

        Args:
            image: PIL Image to process.

        Returns:
            Recognized text.

        Raises:
            OCRTransientError: If Tesseract timed out.
            OCRPermanentError: If Tesseract rejected the image.
            OCREngineNotAvailableError: If the binary disappeared.
        """
        config = self._build_config()
        logger.debug(f"Running Tesseract OCR (config: {config})")

        try:
            text = pytesseract.image_to_string(
                image,
                lang=self.language,
                config=config,
                timeout=self.timeout
            )
        except pytesseract.TesseractNotFoundError as e:
            raise OCREngineNotAvailableError(self.name, str(e))
        except pytesseract.TesseractError as e:
            raise OCRPermanentError(self.name, str(e))
        except RuntimeError as e:
            # pytesseract signals timeouts with a bare RuntimeError
            raise OCRTransientError(self.name, str(e))

        logger.debug(f"Tesseract returned {len(text)} characters")
        return text

    __call__ = extract_text
