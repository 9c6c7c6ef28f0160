"""
PDF Image Extractor.

Recovers the raster images embedded in a PDF and writes each one to disk
as PNG. Pages are walked in document order and each page's images in the
order PyMuPDF lists them. File names combine the source stem, a token
unique to the call, the page index and the sequence index, so concurrent
calls sharing an output folder never collide and a retry after an
interrupted call does not overwrite leftovers.

A corrupt embedded image is recorded as a warning and skipped; the call
only fails if the PDF itself cannot be opened.

Author: ML Engineering Team
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import fitz  # PyMuPDF

from aduana_extraction.utils.logger import get_logger
from aduana_extraction.utils.exceptions import CorruptedFileError
from aduana_extraction.utils.helpers import (
    default_image_output_dir,
    ensure_directory,
    new_call_id,
    safe_filename,
)
from .sniffer import DocumentFormat, validate_format

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class ExtractedImage:
    """
    One image written by :class:`PDFImageExtractor`.

    The caller owns the file at ``path`` once it is returned.
    """
    path: str
    page_index: int
    sequence_index: int


@dataclass
class ImageExtractionResult:
    """
    Outcome of an image extraction call.

    Attributes:
        images: Written images in page/sequence order.
        warnings: One entry per embedded image that could not be recovered.
        output_folder: Folder the images were written to.
    """
    images: List[ExtractedImage] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    output_folder: str = ""

    @property
    def is_valid(self) -> bool:
        # The PDF parsed; individual image failures are reported as warnings
        return True

    @property
    def paths(self) -> List[str]:
        return [image.path for image in self.images]


class PDFImageExtractor:
    """
    Writes the embedded images of a PDF to a folder.

    Example:
        >>> extractor = PDFImageExtractor()
        >>> result = extractor.extract_images(pdf_bytes, "out/", stem="din_2024")
        >>> for image in result.images:
        ...     print(image.page_index, image.sequence_index, image.path)
    """

    def extract_images(
        self,
        data: bytes,
        output_folder: Optional[Union[str, Path]] = None,
        stem: Optional[str] = None
    ) -> ImageExtractionResult:
        """
        Extract every embedded raster image from a PDF.

        Args:
            data: PDF bytes.
            output_folder: Destination folder; the configured default
                          (``pdf.images.output_dir``) when omitted.
            stem: Prefix for written file names, usually the source file
                 stem.

        Returns:
            ImageExtractionResult with the written images and warnings.

        Raises:
            EmptyInputError: If ``data`` is empty.
            FormatError: If ``data`` is not a PDF.
            CorruptedFileError: If the PDF cannot be parsed.
        """
        validate_format(data, [DocumentFormat.PDF], stem)

        folder = ensure_directory(
            Path(output_folder) if output_folder is not None else default_image_output_dir()
        ).resolve()
        prefix = f"{safe_filename(stem or 'documento')}_{new_call_id()}"
        result = ImageExtractionResult(output_folder=str(folder))

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.error(f"Could not open PDF for image extraction: {e}")
            raise CorruptedFileError(stem or "<bytes>", str(e))

        with doc:
            for page_index in range(doc.page_count):
                page = doc.load_page(page_index)
                for sequence_index, info in enumerate(page.get_images(full=True)):
                    xref = info[0]
                    target = folder / f"{prefix}_p{page_index:03d}_i{sequence_index:03d}.png"
                    try:
                        png = self._decode(doc, xref)
                        target.write_bytes(png)
                    except Exception as e:
                        message = (
                            f"page {page_index} image {sequence_index} (xref {xref}) "
                            f"could not be extracted: {e}"
                        )
                        logger.warning(message)
                        result.warnings.append(message)
                        continue

                    result.images.append(ExtractedImage(str(target), page_index, sequence_index))

        logger.info(
            f"Extracted {len(result.images)} image(s) to {folder}"
            + (f" with {len(result.warnings)} warning(s)" if result.warnings else "")
        )
        return result

    async def extract_images_async(
        self,
        data: bytes,
        output_folder: Optional[Union[str, Path]] = None,
        stem: Optional[str] = None
    ) -> ImageExtractionResult:
        """Run :meth:`extract_images` in a worker thread."""
        return await asyncio.to_thread(self.extract_images, data, output_folder, stem)

    @staticmethod
    def _decode(doc: "fitz.Document", xref: int) -> bytes:
        pix = fitz.Pixmap(doc, xref)
        # CMYK and other non-RGB colourspaces cannot be written as PNG directly
        if pix.n - pix.alpha >= 4:
            pix = fitz.Pixmap(fitz.csRGB, pix)
        return pix.tobytes("png")
