"""
Helper Utilities Module.

Small filesystem and formatting helpers shared across the package.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - safe_filename: Sanitize a file stem for the filesystem
    - format_file_size: Human-readable byte counts for log lines
    - default_image_output_dir: Configured folder for extracted PDF images
    - new_call_id: Short random token that scopes files written by one call
"""

import re
import tempfile
import uuid
from pathlib import Path
from typing import Union

from config import get_config


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it and its parents if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/imagenes")
        PosixPath('outputs/imagenes')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def safe_filename(filename: str, replacement: str = "_") -> str:
    """
    Sanitize a filename by replacing characters invalid on common filesystems.

    Args:
        filename: Original filename or stem.
        replacement: Character to replace invalid characters with.

    Returns:
        Sanitized filename.

    Example:
        >>> safe_filename("guia:123/despacho")
        'guia_123_despacho'
    """
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f\s]', replacement, filename)
    sanitized = sanitized.strip('. ')

    if not sanitized:
        sanitized = "documento"

    return sanitized


def format_file_size(size_bytes: float) -> str:
    """
    Format a byte count for humans.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"


def default_image_output_dir() -> Path:
    """
    Folder used for extracted PDF images when the caller names none.

    Reads ``pdf.images.output_dir``; when unset, a fixed subfolder of the
    system temp directory.
    """
    configured = get_config("pdf.images.output_dir")
    if configured:
        return Path(configured)
    return Path(tempfile.gettempdir()) / "aduana_extraction" / "images"


def new_call_id() -> str:
    """Return a 12-character hex token unique to one extraction call."""
    return uuid.uuid4().hex[:12]
