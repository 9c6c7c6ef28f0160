"""
PDF Processor Module.

Reads PDF inputs for the document pipelines:
    - Per-page text layer extraction (pdfplumber)
    - Detection of pages that also carry raster images
    - Rendering pages to images for OCR (PyMuPDF or pdf2image)

All methods work on in-memory bytes; nothing is written to disk here.

Author: ML Engineering Team
"""

import io
from dataclasses import dataclass
from typing import List

import fitz  # PyMuPDF
import pdfplumber
from pdf2image import convert_from_bytes
from PIL import Image

from config import get_config
from aduana_extraction.utils.logger import get_logger
from aduana_extraction.utils.exceptions import CorruptedFileError, InputError

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class PageText:
    """
    Text layer of a single PDF page.

    Attributes:
        page_index: Zero-based page number.
        text: Extracted text, empty when the page has no text layer.
        has_images: Whether the page carries embedded raster images.
    """
    page_index: int
    text: str
    has_images: bool

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


class PDFProcessor:
    """
    Processor for PDF byte buffers.

    Attributes:
        dpi: Resolution used when rendering pages for OCR.
        max_pages: Pages beyond this limit are ignored.
        render_backend: ``pymupdf`` (default) or ``pdf2image``.

    Example:
        >>> processor = PDFProcessor()
        >>> pages = processor.extract_page_texts(pdf_bytes)
        >>> image = processor.render_page(pdf_bytes, 0)
    """

    RENDER_BACKENDS = ('pymupdf', 'pdf2image')

    def __init__(self) -> None:
        """Initialize the PDF processor with configuration."""
        self.dpi = get_config("pdf.dpi", 300)
        self.max_pages = get_config("pdf.max_pages", 20)
        self.render_backend = get_config("pdf.render_backend", "pymupdf")

        if self.render_backend not in self.RENDER_BACKENDS:
            raise InputError(
                f"Unknown PDF render backend: {self.render_backend}",
                {"supported": list(self.RENDER_BACKENDS)}
            )

        logger.debug(f"PDFProcessor initialized (DPI={self.dpi}, backend={self.render_backend})")

    def extract_page_texts(self, data: bytes, file_name: str = "<bytes>") -> List[PageText]:
        """
        Extract the text layer of each page in document order.

        Args:
            data: PDF bytes.
            file_name: Used in log lines and error details.

        Returns:
            One :class:`PageText` per page, up to ``max_pages``.

        Raises:
            CorruptedFileError: If the PDF cannot be parsed.
        """
        pages = []

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                total = len(pdf.pages)
                if total > self.max_pages:
                    logger.warning(
                        f"{file_name} has {total} pages, limiting to {self.max_pages}"
                    )

                for index, page in enumerate(pdf.pages[:self.max_pages]):
                    text = page.extract_text() or ""
                    pages.append(PageText(index, text, bool(page.images)))

        except Exception as e:
            logger.error(f"Could not read PDF text layer of {file_name}: {e}")
            raise CorruptedFileError(file_name, str(e))

        with_text = sum(1 for page in pages if page.has_text)
        logger.debug(f"{file_name}: {with_text}/{len(pages)} page(s) carry a text layer")
        return pages

    def render_page(self, data: bytes, page_index: int, file_name: str = "<bytes>") -> Image.Image:
        """
        Render one page to an RGB image for OCR.

        Args:
            data: PDF bytes.
            page_index: Zero-based page number.
            file_name: Used in error details.

        Returns:
            Rendered page.

        Raises:
            CorruptedFileError: If rendering fails.
        """
        if self.render_backend == 'pdf2image':
            return self._render_with_pdf2image(data, page_index, file_name)
        return self._render_with_pymupdf(data, page_index, file_name)

    def _render_with_pymupdf(self, data: bytes, page_index: int, file_name: str) -> Image.Image:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                page = doc.load_page(page_index)

                # Default PDF resolution is 72 DPI
                zoom = self.dpi / 72.0
                pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
                image = Image.open(io.BytesIO(pix.tobytes("png")))
                image.load()

        except Exception as e:
            logger.error(f"PyMuPDF could not render page {page_index} of {file_name}: {e}")
            raise CorruptedFileError(file_name, str(e))

        return image.convert('RGB') if image.mode != 'RGB' else image

    def _render_with_pdf2image(self, data: bytes, page_index: int, file_name: str) -> Image.Image:
        try:
            images = convert_from_bytes(
                data,
                dpi=self.dpi,
                first_page=page_index + 1,
                last_page=page_index + 1,
                fmt='png'
            )
        except Exception as e:
            logger.error(f"pdf2image could not render page {page_index} of {file_name}: {e}")
            raise CorruptedFileError(file_name, str(e))

        if not images:
            raise CorruptedFileError(file_name, f"page {page_index} produced no image")

        image = images[0]
        return image.convert('RGB') if image.mode != 'RGB' else image

    def get_page_count(self, data: bytes, file_name: str = "<bytes>") -> int:
        """
        Get the number of pages in a PDF.

        Raises:
            CorruptedFileError: If the PDF cannot be opened.
        """
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                return doc.page_count
        except Exception as e:
            raise CorruptedFileError(file_name, str(e))
