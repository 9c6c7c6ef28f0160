"""
Image Processor Module.

Loads raster inputs and prepares them for OCR:
    - Decoding PNG bytes into PIL images
    - Orientation correction from EXIF
    - Flattening transparency and converting to grayscale
    - Upscaling small scans and capping oversized ones

Author: ML Engineering Team
"""

import io
from PIL import Image, ImageEnhance, ImageOps

from config import get_config
from aduana_extraction.utils.logger import get_logger
from aduana_extraction.utils.exceptions import CorruptedFileError

# Initialize module logger
logger = get_logger(__name__)


class ImageProcessor:
    """
    Decodes and normalizes images before they reach an OCR backend.

    Customs forms are often photographed or scanned at low resolution;
    OCR engines do noticeably better once the short side is brought up
    to a few hundred pixels and colour noise is dropped.

    Attributes:
        min_width: Images narrower than this are upscaled.
        max_dimension: Images with a longer side are downscaled.
        grayscale: Whether to convert to single-channel luminance.

    Example:
        >>> processor = ImageProcessor()
        >>> image = processor.load(png_bytes, "carnet.png")
        >>> ready = processor.prepare_for_ocr(image)
    """

    def __init__(self) -> None:
        """Initialize the image processor with configuration."""
        self.min_width = get_config("ocr.min_width", 800)
        self.max_dimension = get_config("ocr.max_dimension", 4000)
        self.grayscale = get_config("ocr.grayscale", True)

        logger.debug(
            f"ImageProcessor initialized (min_width={self.min_width}, "
            f"max_dimension={self.max_dimension})"
        )

    def load(self, data: bytes, file_name: str = "<bytes>") -> Image.Image:
        """
        Decode image bytes.

        Args:
            data: Encoded image bytes (PNG).
            file_name: Used in error details only.

        Returns:
            Fully loaded PIL Image.

        Raises:
            CorruptedFileError: If the bytes cannot be decoded.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except Exception as e:
            logger.error(f"Failed to decode image {file_name}: {e}")
            raise CorruptedFileError(file_name, str(e))

        logger.debug(f"Loaded image {file_name}: {image.width}x{image.height} ({image.mode})")
        return image

    def prepare_for_ocr(self, image: Image.Image) -> Image.Image:
        """
        Apply the OCR preparation pipeline.

        Steps:
            1. Fix orientation from EXIF data
            2. Flatten alpha onto white
            3. Convert to grayscale (optional)
            4. Upscale small images / downscale huge ones
            5. Mild contrast boost

        Args:
            image: Input PIL Image.

        Returns:
            Processed PIL Image.
        """
        image = ImageOps.exif_transpose(image)
        image = self._flatten(image)

        if self.grayscale:
            image = image.convert('L')

        image = self._resize(image)
        image = ImageEnhance.Contrast(image).enhance(1.2)

        return image

    def _flatten(self, image: Image.Image) -> Image.Image:
        """Composite transparent images onto a white background, return RGB."""
        if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
            rgba = image.convert('RGBA')
            background = Image.new('RGB', rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background

        if image.mode not in ('RGB', 'L'):
            return image.convert('RGB')

        return image

    def _resize(self, image: Image.Image) -> Image.Image:
        width, height = image.size

        if width < self.min_width:
            ratio = self.min_width / width
        elif max(width, height) > self.max_dimension:
            ratio = self.max_dimension / max(width, height)
        else:
            return image

        new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
        logger.debug(f"Resized image from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return image.resize(new_size, Image.LANCZOS)
