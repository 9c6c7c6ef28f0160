"""
File Sniffer & Hasher.

Identifies PNG and PDF inputs from their leading bytes and computes the
SHA-256 content digest used as ``source_hash`` on every extraction
result. Everything here is a pure function of the bytes passed in.

Author: ML Engineering Team
"""

import hashlib
import re
from enum import Enum
from typing import Iterable, Optional

from config import get_config
from aduana_extraction.utils.exceptions import EmptyInputError, FormatError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
PDF_HEADER = re.compile(rb"%PDF-\d\.\d")
DEFAULT_PDF_HEADER_WINDOW = 1024


class DocumentFormat(Enum):
    """Formats the pipelines accept, plus ``UNKNOWN`` for everything else."""

    PNG = "PNG"
    PDF = "PDF"
    UNKNOWN = "UNKNOWN"


def _looks_like_png(data: bytes) -> bool:
    # Signature, then the first chunk must be IHDR (length field is bytes 8-11)
    return (
        len(data) >= 16
        and data[:8] == PNG_SIGNATURE
        and data[12:16] == b"IHDR"
    )


def _looks_like_pdf(data: bytes, window: int) -> bool:
    return PDF_HEADER.search(data[:window]) is not None


def detect_format(data: Optional[bytes]) -> DocumentFormat:
    """
    Detect the format of a byte buffer from its magic bytes.

    The PDF header is accepted anywhere within the first
    ``input.sniffer.pdf_header_window`` bytes so that files carrying a BOM
    or a short preamble are still recognised.

    Args:
        data: Raw file contents.

    Returns:
        The detected :class:`DocumentFormat`; ``UNKNOWN`` for empty or
        truncated input.

    Example:
        >>> detect_format(b"%PDF-1.7\\n...")
        <DocumentFormat.PDF: 'PDF'>
    """
    if not data:
        return DocumentFormat.UNKNOWN

    if _looks_like_png(data):
        return DocumentFormat.PNG

    window = get_config("input.sniffer.pdf_header_window", DEFAULT_PDF_HEADER_WINDOW)
    if _looks_like_pdf(data, window):
        return DocumentFormat.PDF

    return DocumentFormat.UNKNOWN


def is_valid_png(data: Optional[bytes]) -> bool:
    return detect_format(data) is DocumentFormat.PNG


def is_valid_pdf(data: Optional[bytes]) -> bool:
    return detect_format(data) is DocumentFormat.PDF


def compute_hash(data: bytes) -> str:
    """
    Return the SHA-256 digest of ``data`` as lowercase hex.

    Example:
        >>> compute_hash(b"")
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(data).hexdigest()


def validate_format(
    data: Optional[bytes],
    expected: Iterable[DocumentFormat],
    file_name: Optional[str] = None
) -> DocumentFormat:
    """
    Check that ``data`` is one of the ``expected`` formats.

    Args:
        data: Raw file contents.
        expected: Acceptable formats.
        file_name: Used in error details only.

    Returns:
        The detected format.

    Raises:
        EmptyInputError: If ``data`` is empty or None.
        FormatError: If the detected format is not among ``expected``.
    """
    if not data:
        raise EmptyInputError(file_name)

    expected = tuple(expected)
    detected = detect_format(data)
    if detected not in expected:
        raise FormatError([fmt.value for fmt in expected], detected.value, file_name)

    return detected
