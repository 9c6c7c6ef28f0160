"""
Custom Exceptions Module.

All errors raised by the customs document extraction system. Field-level
problems (a date that does not parse, a total that does not add up) are
never raised: they are recorded as warnings on the extraction result.
Only conditions that stop a call from producing any result live here.

Exception Hierarchy:
    DocumentExtractionError (base)
    ├── InputError
    │   ├── EmptyInputError
    │   ├── FormatError
    │   ├── UnsupportedFileTypeError
    │   ├── DocumentNotFoundError
    │   └── CorruptedFileError
    ├── OCRError
    │   ├── OCREngineNotAvailableError
    │   ├── OCRTransientError
    │   └── OCRPermanentError
    ├── ExtractionFatalError
    └── RepositoryError
        └── DuplicateRecordError
"""

from typing import List, Optional


class DocumentExtractionError(Exception):
    """
    Base exception for all extraction errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(DocumentExtractionError):
    """Base exception for input handling errors."""
    pass


class EmptyInputError(InputError):
    """
    Raised when no bytes were supplied at all.

    Kept apart from :class:`FormatError` so callers can tell
    "nothing was sent" from "the wrong kind of file was sent".
    """

    def __init__(self, file_name: Optional[str] = None):
        message = "Empty input: no bytes supplied"
        details = {"file_name": file_name} if file_name else {}
        super().__init__(message, details)


class FormatError(InputError):
    """
    Raised when input bytes do not carry the expected magic signature.

    Example:
        >>> raise FormatError(["PDF"], "UNKNOWN", "scan.pdf")
    """

    def __init__(self, expected: List[str], detected: str, file_name: Optional[str] = None):
        self.expected = list(expected)
        self.detected = detected
        message = f"Unexpected file format '{detected}', expected one of {self.expected}"
        details = {"expected": self.expected, "detected": detected}
        if file_name:
            details["file_name"] = file_name
        super().__init__(message, details)


class UnsupportedFileTypeError(InputError):
    """Raised when an input source of an unsupported kind is given."""

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported input type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class DocumentNotFoundError(InputError):
    """Raised when an input path does not exist."""

    def __init__(self, filepath: str):
        message = f"File not found: {filepath}"
        details = {"filepath": filepath}
        super().__init__(message, details)


class CorruptedFileError(InputError):
    """Raised when a file passes the sniffer but cannot be parsed."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Corrupted or unreadable file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# OCR ERRORS
# =============================================================================

class OCRError(DocumentExtractionError):
    """
    Base exception for OCR-related errors.

    Attributes:
        is_transient: True when retrying the same call may succeed. The
            library never retries on its own.
    """

    is_transient = False


class OCREngineNotAvailableError(OCRError):
    """Raised when the configured OCR engine cannot be used at all."""

    def __init__(self, engine_name: str, reason: str = None):
        message = f"OCR engine not available: {engine_name}"
        details = {"engine": engine_name}
        if reason:
            details["reason"] = reason
        super().__init__(message, details)


class OCRTransientError(OCRError):
    """Raised for recoverable backend failures (network, timeout, rate limit)."""

    is_transient = True

    def __init__(self, engine_name: str, reason: str = None):
        message = f"Transient OCR failure in {engine_name}"
        details = {"engine": engine_name, "reason": reason}
        super().__init__(message, details)


class OCRPermanentError(OCRError):
    """Raised when the backend rejects the image as unprocessable."""

    def __init__(self, engine_name: str, reason: str = None):
        message = f"OCR rejected input in {engine_name}"
        details = {"engine": engine_name, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class ExtractionFatalError(DocumentExtractionError):
    """
    Raised when no text could be obtained from a document by any means.

    Attributes:
        is_transient: True when the text was lost to a transient OCR
            failure, so the same call may succeed later.
    """

    def __init__(self, file_name: str, reason: str = None, is_transient: bool = False):
        message = f"No text could be obtained from: {file_name}"
        details = {"file_name": file_name, "reason": reason}
        if is_transient:
            details["transient"] = True
        super().__init__(message, details)
        self.is_transient = is_transient


# =============================================================================
# REPOSITORY ERRORS
# =============================================================================

class RepositoryError(DocumentExtractionError):
    """Raised when a repository operation fails."""

    def __init__(self, operation: str, reason: str = None):
        message = f"Repository operation failed: {operation}"
        details = {"operation": operation, "reason": reason}
        super().__init__(message, details)


class DuplicateRecordError(RepositoryError):
    """Raised when creating a record whose business number already exists."""

    def __init__(self, number: str, operation: str = "create"):
        super().__init__(operation, f"record with number '{number}' already exists")
        self.number = number


__all__ = [
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
]
