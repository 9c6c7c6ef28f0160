"""
Utility Module for the Customs Document Extraction System.

Provides logging setup, the exception hierarchy and small helpers.
"""

from .logger import setup_logger, get_logger, setup_logger_from_config
from .exceptions import (
    DocumentExtractionError,
    InputError,
    EmptyInputError,
    FormatError,
    UnsupportedFileTypeError,
    DocumentNotFoundError,
    CorruptedFileError,
    OCRError,
    OCREngineNotAvailableError,
    OCRTransientError,
    OCRPermanentError,
    ExtractionFatalError,
    RepositoryError,
    DuplicateRecordError,
)
from .helpers import ensure_directory, safe_filename, format_file_size

__all__ = [
    'setup_logger',
    'get_logger',
    'setup_logger_from_config',
    'DocumentExtractionError',
    'InputError',
    'EmptyInputError',
    'FormatError',
    'UnsupportedFileTypeError',
    'DocumentNotFoundError',
    'CorruptedFileError',
    'OCRError',
    'OCREngineNotAvailableError',
    'OCRTransientError',
    'OCRPermanentError',
    'ExtractionFatalError',
    'RepositoryError',
    'DuplicateRecordError',
    'ensure_directory',
    'safe_filename',
    'format_file_size',
]
