import io

import pytest
from PIL import Image

from config import ConfigurationManager
from aduana_extraction.input_handler import DocumentFormat, InputHandler, PDFProcessor
from aduana_extraction.utils.exceptions import (
    DocumentNotFoundError,
    EmptyInputError,
    ExtractionFatalError,
    FormatError,
    OCRPermanentError,
    OCRTransientError,
    UnsupportedFileTypeError,
)


@pytest.fixture()
def handler() -> InputHandler:
    # Low DPI keeps rendered pages small
    ConfigurationManager().set("pdf.dpi", 72)
    return InputHandler()


class TestLoading:
    def test_load_path(self, handler: InputHandler, tmp_path, png_bytes: bytes) -> None:
        path = tmp_path / "carnet.png"
        path.write_bytes(png_bytes)

        raw = handler.load(path)

        assert raw.file_name == "carnet.png"
        assert raw.detected_format is DocumentFormat.PNG
        assert raw.data == png_bytes

    def test_load_stream_takes_name_from_file(self, handler: InputHandler, tmp_path, text_pdf_bytes: bytes) -> None:
        path = tmp_path / "din.pdf"
        path.write_bytes(text_pdf_bytes)

        with open(path, "rb") as stream:
            raw = handler.load(stream)

        assert raw.file_name == "din.pdf"
        assert raw.detected_format is DocumentFormat.PDF

    def test_load_bytes_placeholder_name(self, handler: InputHandler, png_bytes: bytes) -> None:
        raw = handler.load(bytearray(png_bytes))

        assert raw.file_name == "<bytes>"

    def test_missing_path(self, handler: InputHandler, tmp_path) -> None:
        with pytest.raises(DocumentNotFoundError):
            handler.load_path(tmp_path / "no_existe.png")

    def test_empty_stream(self, handler: InputHandler) -> None:
        with pytest.raises(EmptyInputError):
            handler.load_stream(io.BytesIO(b""), "vacio.pdf")

    def test_not_accepted_format(self, handler: InputHandler, png_bytes: bytes) -> None:
        with pytest.raises(FormatError):
            handler.load_bytes(png_bytes, "scan.png", [DocumentFormat.PDF])

    def test_unsupported_source(self, handler: InputHandler) -> None:
        with pytest.raises(UnsupportedFileTypeError):
            handler.load(12345)

    def test_text_stream_rejected(self, handler: InputHandler) -> None:
        with pytest.raises(UnsupportedFileTypeError):
            handler.load_stream(io.StringIO("%PDF-1.4"))


class TestAcquireText:
    def test_png_goes_through_ocr(self, handler: InputHandler, png_bytes: bytes, make_ocr, carnet_text: str) -> None:
        ocr = make_ocr(carnet_text)
        raw = handler.load_bytes(png_bytes, "carnet.png")

        acquisition = handler.acquire_text(raw, ocr)

        assert acquisition.method == "ocr"
        assert acquisition.text == carnet_text
        assert acquisition.warnings == []
        assert len(ocr.images) == 1
        assert isinstance(ocr.images[0], Image.Image)

    def test_png_without_text_is_fatal(self, handler: InputHandler, png_bytes: bytes, make_ocr) -> None:
        raw = handler.load_bytes(png_bytes, "blanco.png")

        with pytest.raises(ExtractionFatalError):
            handler.acquire_text(raw, make_ocr("   "))

    def test_pdf_text_layer_skips_ocr(self, handler: InputHandler, text_pdf_bytes: bytes, make_ocr) -> None:
        ocr = make_ocr("no debe usarse")
        raw = handler.load_bytes(text_pdf_bytes, "carnet.pdf")

        acquisition = handler.acquire_text(raw, ocr)

        assert acquisition.method == "pdf_text"
        assert "12345-AB" in acquisition.text
        assert acquisition.warnings == []
        assert ocr.images == []

    def test_text_page_with_images_warns(self, handler: InputHandler, text_and_image_pdf_bytes: bytes, make_ocr) -> None:
        ocr = make_ocr("no debe usarse")
        raw = handler.load_bytes(text_and_image_pdf_bytes, "mixto.pdf")

        acquisition = handler.acquire_text(raw, ocr)

        assert acquisition.method == "pdf_text"
        assert acquisition.warnings == [
            "page 0: OCR skipped, text layer used although the page also contains images"
        ]
        assert ocr.images == []

    def test_scanned_pdf_is_rendered_and_ocred(
        self, handler: InputHandler, scanned_pdf_bytes: bytes, make_ocr, carnet_text: str
    ) -> None:
        ocr = make_ocr(carnet_text)
        raw = handler.load_bytes(scanned_pdf_bytes, "escaneo.pdf")

        acquisition = handler.acquire_text(raw, ocr)

        assert acquisition.method == "pdf_ocr"
        assert acquisition.text == carnet_text
        assert len(ocr.images) == 1

    def test_blank_pdf_is_fatal(self, handler: InputHandler, blank_pdf_bytes: bytes, make_ocr) -> None:
        raw = handler.load_bytes(blank_pdf_bytes, "blanco.pdf")

        with pytest.raises(ExtractionFatalError) as exc_info:
            handler.acquire_text(raw, make_ocr(""))

        assert not exc_info.value.is_transient
        assert exc_info.value.__cause__ is None

    def test_transient_ocr_failure_on_scanned_pdf(self, handler: InputHandler, scanned_pdf_bytes: bytes) -> None:
        failure = OCRTransientError("google_vision", "deadline exceeded")

        def ocr(image):
            raise failure

        raw = handler.load_bytes(scanned_pdf_bytes, "escaneo.pdf")

        with pytest.raises(ExtractionFatalError) as exc_info:
            handler.acquire_text(raw, ocr)

        assert exc_info.value.is_transient
        assert exc_info.value.__cause__ is failure
        assert exc_info.value.details["transient"] is True

    def test_permanent_ocr_failure_on_scanned_pdf(self, handler: InputHandler, scanned_pdf_bytes: bytes) -> None:
        def ocr(image):
            raise OCRPermanentError("tesseract", "bad image")

        raw = handler.load_bytes(scanned_pdf_bytes, "escaneo.pdf")

        with pytest.raises(ExtractionFatalError) as exc_info:
            handler.acquire_text(raw, ocr)

        assert not exc_info.value.is_transient
        assert isinstance(exc_info.value.__cause__, OCRPermanentError)


class TestPDFProcessor:
    def test_page_texts(self, text_and_image_pdf_bytes: bytes) -> None:
        pages = PDFProcessor().extract_page_texts(text_and_image_pdf_bytes)

        assert len(pages) == 1
        assert pages[0].has_text
        assert pages[0].has_images

    def test_page_count(self, two_image_pdf_bytes: bytes) -> None:
        assert PDFProcessor().get_page_count(two_image_pdf_bytes) == 2

    def test_render_page(self, blank_pdf_bytes: bytes) -> None:
        ConfigurationManager().set("pdf.dpi", 72)

        image = PDFProcessor().render_page(blank_pdf_bytes, 0)

        assert image.mode == "RGB"
        assert image.width > 0
