"""
Main Input Handler Module.

Normalizes the three ways a document can arrive (file path, binary
stream, byte buffer) into a single :class:`RawDocument`, and turns a
RawDocument into plain text:

    - PNG: decode, prepare and OCR
    - PDF: use each page's text layer; render and OCR pages without one

Usage:
    from aduana_extraction.input_handler import InputHandler

    handler = InputHandler()
    raw = handler.load_path("carnet.png")
    text = handler.acquire_text(raw, ocr)

Classes:
    RawDocument: Bytes plus detected format
    TextAcquisition: Text plus how it was obtained
    InputHandler: Loading and text acquisition
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Union

from PIL import Image

from config import get_config
from aduana_extraction.utils.logger import get_logger
from aduana_extraction.utils.helpers import format_file_size
from aduana_extraction.ocr_engine.engine import OcrFunction
from aduana_extraction.utils.exceptions import (
    DocumentNotFoundError,
    ExtractionFatalError,
    InputError,
    OCRError,
    UnsupportedFileTypeError,
)
from .sniffer import DocumentFormat, validate_format
from .pdf_processor import PDFProcessor
from .image_processor import ImageProcessor

# Initialize module logger
logger = get_logger(__name__)

ALL_FORMATS = (DocumentFormat.PNG, DocumentFormat.PDF)


@dataclass(frozen=True)
class RawDocument:
    """
    A validated input document held in memory.

    Attributes:
        data: Complete file contents.
        file_name: Original file name, or a placeholder for anonymous buffers.
        detected_format: Format detected from the magic bytes.
    """
    data: bytes
    file_name: str
    detected_format: DocumentFormat

    def __repr__(self) -> str:
        return (
            f"RawDocument(file_name='{self.file_name}', "
            f"format={self.detected_format.value}, size={len(self.data)})"
        )


@dataclass
class TextAcquisition:
    """
    Text obtained from a RawDocument.

    Attributes:
        text: Text in reading order, pages separated by newlines.
        method: ``ocr``, ``pdf_text``, ``pdf_ocr`` or ``pdf_mixed``.
        warnings: Non-fatal notes raised while obtaining the text.
    """
    text: str
    method: str
    warnings: List[str] = field(default_factory=list)


class InputHandler:
    """
    Entry point for getting documents into the system.

    Attributes:
        max_file_size: Upper bound on accepted input size in bytes.
        pdf_processor: PDFProcessor used for text layers and rendering.
        image_processor: ImageProcessor used for decoding and OCR preparation.

    Example:
        >>> handler = InputHandler()
        >>> raw = handler.load_bytes(data, "guia.pdf")
        >>> acquisition = handler.acquire_text(raw, ocr)
        >>> acquisition.method
        'pdf_text'
    """

    def __init__(
        self,
        pdf_processor: Optional[PDFProcessor] = None,
        image_processor: Optional[ImageProcessor] = None
    ) -> None:
        """
        Initialize the InputHandler.

        Args:
            pdf_processor: Optional PDFProcessor; built from configuration
                          when omitted.
            image_processor: Optional ImageProcessor; built from
                            configuration when omitted.
        """
        self.max_file_size = int(get_config("input.max_file_size_mb", 50) * 1024 * 1024)
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.image_processor = image_processor or ImageProcessor()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(
        self,
        source: Union[str, Path, bytes, bytearray, BinaryIO],
        file_name: Optional[str] = None,
        accepted: Iterable[DocumentFormat] = ALL_FORMATS
    ) -> RawDocument:
        """
        Load a document from any supported source.

        Args:
            source: Path, bytes-like object or binary stream.
            file_name: Name to report; derived from the path or stream when
                      possible.
            accepted: Formats the caller is prepared to handle.

        Returns:
            Validated RawDocument.

        Raises:
            UnsupportedFileTypeError: If ``source`` is none of the above.
            DocumentNotFoundError: If a path does not exist.
            EmptyInputError: If no bytes were supplied.
            FormatError: If the bytes are not an accepted format.
        """
        if isinstance(source, (str, Path)):
            return self.load_path(source, accepted)
        if isinstance(source, (bytes, bytearray, memoryview)):
            return self.load_bytes(bytes(source), file_name, accepted)
        if hasattr(source, "read"):
            return self.load_stream(source, file_name, accepted)

        raise UnsupportedFileTypeError(
            type(source).__name__, ["str", "Path", "bytes", "binary stream"]
        )

    def load_path(
        self,
        path: Union[str, Path],
        accepted: Iterable[DocumentFormat] = ALL_FORMATS
    ) -> RawDocument:
        path = Path(path)
        if not path.is_file():
            raise DocumentNotFoundError(str(path))

        logger.info(f"Loading {path.name} ({format_file_size(path.stat().st_size)})")
        return self.load_bytes(path.read_bytes(), path.name, accepted)

    def load_stream(
        self,
        stream: BinaryIO,
        file_name: Optional[str] = None,
        accepted: Iterable[DocumentFormat] = ALL_FORMATS
    ) -> RawDocument:
        if file_name is None:
            stream_name = getattr(stream, "name", None)
            file_name = Path(stream_name).name if isinstance(stream_name, str) else None

        data = stream.read()
        if isinstance(data, str):
            raise UnsupportedFileTypeError("text stream", ["binary stream"])

        return self.load_bytes(data, file_name, accepted)

    def load_bytes(
        self,
        data: bytes,
        file_name: Optional[str] = None,
        accepted: Iterable[DocumentFormat] = ALL_FORMATS
    ) -> RawDocument:
        file_name = file_name or "<bytes>"
        detected = validate_format(data, accepted, file_name)

        if len(data) > self.max_file_size:
            raise InputError(
                f"Input too large: {format_file_size(len(data))}",
                {"file_name": file_name, "limit": format_file_size(self.max_file_size)}
            )

        logger.debug(f"Detected {detected.value} for {file_name}")
        return RawDocument(data, file_name, detected)

    # -------------------------------------------------------------------------
    # Text acquisition
    # -------------------------------------------------------------------------

    def acquire_text(self, raw: RawDocument, ocr: OcrFunction) -> TextAcquisition:
        """
        Obtain plain text from a document.

        Args:
            raw: Loaded document.
            ocr: Function turning an image into text.

        Returns:
            TextAcquisition with the text and how it was obtained.

        Raises:
            ExtractionFatalError: If no text at all could be obtained.
            OCRError: If the only OCR attempt for a PNG fails.
        """
        if raw.detected_format is DocumentFormat.PNG:
            return self._acquire_from_png(raw, ocr)
        if raw.detected_format is DocumentFormat.PDF:
            return self._acquire_from_pdf(raw, ocr)

        raise ExtractionFatalError(raw.file_name, f"unsupported format {raw.detected_format.value}")

    def _ocr_image(self, image: Image.Image, ocr: OcrFunction) -> str:
        return ocr(self.image_processor.prepare_for_ocr(image)) or ""

    def _acquire_from_png(self, raw: RawDocument, ocr: OcrFunction) -> TextAcquisition:
        image = self.image_processor.load(raw.data, raw.file_name)
        text = self._ocr_image(image, ocr)

        if not text.strip():
            raise ExtractionFatalError(raw.file_name, "OCR returned no text")

        return TextAcquisition(text, "ocr")

    def _acquire_from_pdf(self, raw: RawDocument, ocr: OcrFunction) -> TextAcquisition:
        pages = self.pdf_processor.extract_page_texts(raw.data, raw.file_name)
        if not pages:
            raise ExtractionFatalError(raw.file_name, "PDF has no pages")

        texts = []
        warnings = []
        used_layer = used_ocr = False
        last_error = None

        for page in pages:
            if page.has_text:
                used_layer = True
                texts.append(page.text)
                if page.has_images:
                    warnings.append(
                        f"page {page.page_index}: OCR skipped, text layer used "
                        "although the page also contains images"
                    )
                continue

            try:
                image = self.pdf_processor.render_page(raw.data, page.page_index, raw.file_name)
                page_text = self._ocr_image(image, ocr)
            except OCRError as e:
                logger.warning(f"OCR failed for page {page.page_index} of {raw.file_name}: {e}")
                warnings.append(f"page {page.page_index}: OCR failed ({e.message})")
                last_error = e
                continue

            used_ocr = True
            if page_text.strip():
                texts.append(page_text)
            else:
                warnings.append(f"page {page.page_index}: no text found")

        text = "\n".join(texts)
        if not text.strip():
            if last_error is not None:
                raise ExtractionFatalError(
                    raw.file_name, str(last_error), is_transient=last_error.is_transient
                ) from last_error
            raise ExtractionFatalError(raw.file_name, "no text layer and OCR found no text")

        if used_layer and used_ocr:
            method = "pdf_mixed"
        elif used_layer:
            method = "pdf_text"
        else:
            method = "pdf_ocr"

        logger.info(f"Obtained text from {raw.file_name} via {method} ({len(pages)} page(s))")
        return TextAcquisition(text, method, warnings)
