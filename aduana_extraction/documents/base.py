"""
Document Pipeline Base.

Every document type runs the same pipeline:

    bytes -> format check -> text (OCR or PDF text layer) -> schema -> result

A concrete pipeline only declares its :class:`DocumentSchema`. The four
entry points (path, stream, bytes, raw text) and their async variants
live here.

Author: ML Engineering Team
"""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, ClassVar, Generic, List, Optional, Tuple, TypeVar, Union

from aduana_extraction.utils.logger import get_logger
from aduana_extraction.input_handler.handler import InputHandler, RawDocument
from aduana_extraction.input_handler.sniffer import DocumentFormat, compute_hash
from aduana_extraction.ocr_engine.engine import OcrFunction, create_ocr_function
from aduana_extraction.extraction.engine import FieldExtractionEngine
from aduana_extraction.extraction.extraction_result import ExtractionResult
from aduana_extraction.extraction.schema import DocumentSchema

# Initialize module logger
logger = get_logger(__name__)

T = TypeVar("T")


class DocumentPipeline(Generic[T]):
    """
    Orchestrates extraction for one document type.

    Attributes:
        schema: Declarative extraction recipe (set by subclasses).
        accepted_formats: Input formats the pipeline takes.

    The OCR function is created from configuration on first use, so
    :meth:`process_raw_text` and text-layer PDFs never touch an OCR
    backend.

    Example:
        >>> pipeline = CarnetAduaneroPipeline()
        >>> result = pipeline.extract_from_path("carnet.png")
        >>> result.record.numero_carnet, result.is_valid
        ('12345-AB', True)
    """

    schema: ClassVar[DocumentSchema]
    accepted_formats: ClassVar[Tuple[DocumentFormat, ...]] = (DocumentFormat.PNG, DocumentFormat.PDF)

    def __init__(
        self,
        ocr: Optional[OcrFunction] = None,
        input_handler: Optional[InputHandler] = None,
        engine: Optional[FieldExtractionEngine] = None
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            ocr: ``image -> text`` function; the configured OCR engine
                when omitted.
            input_handler: Loader and text acquirer.
            engine: Field extraction engine.
        """
        self._ocr = ocr
        self.input_handler = input_handler or InputHandler()
        self.engine = engine or FieldExtractionEngine()

    @property
    def document_type(self) -> str:
        return self.schema.document_type

    @property
    def ocr(self) -> OcrFunction:
        if self._ocr is None:
            self._ocr = create_ocr_function()
        return self._ocr

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def extract_from_path(self, path: Union[str, Path]) -> ExtractionResult[T]:
        """
        Extract a record from a file on disk.

        Raises:
            DocumentNotFoundError: If the path does not exist.
            EmptyInputError: If the file is empty.
            FormatError: If the file is not an accepted format.
            ExtractionFatalError: If no text could be obtained.
        """
        raw = self.input_handler.load_path(path, self.accepted_formats)
        return self._extract(raw)

    def extract_from_stream(self, stream: BinaryIO, file_name: Optional[str] = None) -> ExtractionResult[T]:
        """Extract a record from a binary stream. See :meth:`extract_from_path`."""
        raw = self.input_handler.load_stream(stream, file_name, self.accepted_formats)
        return self._extract(raw)

    def extract_from_bytes(self, data: bytes, file_name: Optional[str] = None) -> ExtractionResult[T]:
        """Extract a record from an in-memory buffer. See :meth:`extract_from_path`."""
        raw = self.input_handler.load_bytes(data, file_name, self.accepted_formats)
        return self._extract(raw)

    def process_raw_text(self, text: str, file_name: str = "") -> ExtractionResult[T]:
        """
        Run only the field extraction step on text the caller already has.

        ``source_hash`` is the digest of the UTF-8 encoded text.
        """
        return self._build_result(
            text,
            source_hash=compute_hash(text.encode("utf-8")),
            file_name=file_name,
            method="raw_text",
            preliminary=[]
        )

    async def extract_from_path_async(self, path: Union[str, Path]) -> ExtractionResult[T]:
        return await asyncio.to_thread(self.extract_from_path, path)

    async def extract_from_stream_async(self, stream: BinaryIO, file_name: Optional[str] = None) -> ExtractionResult[T]:
        return await asyncio.to_thread(self.extract_from_stream, stream, file_name)

    async def extract_from_bytes_async(self, data: bytes, file_name: Optional[str] = None) -> ExtractionResult[T]:
        return await asyncio.to_thread(self.extract_from_bytes, data, file_name)

    async def process_raw_text_async(self, text: str, file_name: str = "") -> ExtractionResult[T]:
        return await asyncio.to_thread(self.process_raw_text, text, file_name)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _extract(self, raw: RawDocument) -> ExtractionResult[T]:
        logger.info(f"Extracting {self.document_type} from {raw.file_name}")
        acquisition = self.input_handler.acquire_text(raw, self.ocr)
        return self._build_result(
            acquisition.text,
            source_hash=compute_hash(raw.data),
            file_name=raw.file_name,
            method=acquisition.method,
            preliminary=acquisition.warnings
        )

    def _build_result(
        self,
        text: str,
        source_hash: str,
        file_name: str,
        method: str,
        preliminary: List[str]
    ) -> ExtractionResult[T]:
        outcome = self.engine.extract(self.schema, text)
        warnings = list(preliminary) + [str(issue) for issue in outcome.issues]

        result = ExtractionResult(
            record=outcome.record,
            document_type=self.document_type,
            source_hash=source_hash,
            extracted_at=datetime.now(timezone.utc),
            is_valid=outcome.is_valid,
            warnings=warnings,
            issues=list(outcome.issues),
            file_name=file_name,
            extraction_method=method,
            raw_text=text
        )

        if result.is_valid:
            logger.info(f"{self.document_type}: extracted with {len(warnings)} warning(s)")
        else:
            logger.warning(f"{self.document_type}: record invalid: {'; '.join(warnings)}")
        return result
