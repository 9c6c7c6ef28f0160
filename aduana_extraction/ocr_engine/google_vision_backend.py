"""
Google Cloud Vision OCR Backend.

Network-bound OCR through ``document_text_detection``. API failures are
split into transient ones (unavailable, deadline, rate limit, internal)
that a caller may retry, and permanent ones (bad request, auth, rejected
image) that it should not.

Author: ML Engineering Team
"""

import io
from pathlib import Path
from typing import List, Optional

from google.api_core import exceptions as gexc
from google.cloud import vision
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

TRANSIENT_ERRORS = (
    gexc.ServiceUnavailable,
    gexc.DeadlineExceeded,
    gexc.TooManyRequests,
    gexc.ResourceExhausted,
    gexc.InternalServerError,
    gexc.GatewayTimeout,
)


class GoogleVisionBackend:
    """
    Google Cloud Vision backend.

    The API client is created lazily on first use so that constructing an
    engine never touches the network.

    Attributes:
        credentials_path: Service-account JSON; when None the ambient
            Google credentials are used.
        language_hints: Language hints sent with each request.
        timeout: Per-request timeout in seconds.
    """

    name = "google_vision"

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        client: Optional[vision.ImageAnnotatorClient] = None
    ) -> None:
        self.credentials_path = credentials_path or get_config("ocr.google_vision.credentials_path")
        self.language_hints: List[str] = list(get_config("ocr.google_vision.language_hints", ["es"]))
        self.timeout = get_config("ocr.google_vision.timeout", 30)
        self._client = client

        if self.credentials_path and not Path(self.credentials_path).exists():
            raise OCREngineNotAvailableError(
                self.name, f"credentials file not found: {self.credentials_path}"
            )

    @property
    def client(self) -> vision.ImageAnnotatorClient:
        if self._client is None:
            try:
                if self.credentials_path:
                    self._client = vision.ImageAnnotatorClient.from_service_account_file(
                        self.credentials_path
                    )
                else:
                    self._client = vision.ImageAnnotatorClient()
            except Exception as e:
                # google.auth raises DefaultCredentialsError outside api_core
                raise OCREngineNotAvailableError(self.name, str(e))
            logger.info("Google Vision client initialized")
        return self._client

    def extract_text(self, image: Image.Image) -> str:
        """
        Send an image to Google Vision and return the full text annotation.

        Args:
            image: PIL Image to process.

        Returns:
            Recognized text with line breaks preserved.

        Raises:
            OCRTransientError: For retryable API failures.
            OCRPermanentError: For rejected requests or images.
        """
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")

        request_image = vision.Image(content=buffer.getvalue())
        context = vision.ImageContext(language_hints=self.language_hints)

        try:
            response = self.client.document_text_detection(
                image=request_image,
                image_context=context,
                timeout=self.timeout
            )
        except TRANSIENT_ERRORS as e:
            logger.warning(f"Google Vision transient failure: {e}")
            raise OCRTransientError(self.name, str(e))
        except gexc.GoogleAPIError as e:
            raise OCRPermanentError(self.name, str(e))

        if response.error.message:
            raise OCRPermanentError(self.name, response.error.message)

        text = response.full_text_annotation.text or ""
        logger.debug(f"Google Vision returned {len(text)} characters")
        return text

    __call__ = extract_text
