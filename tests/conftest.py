import io
from typing import Callable, List

import fitz
import pytest
from PIL import Image

from config import ConfigurationManager

CARNET_TEXT = (
    "CARNÉ ADUANERO\n"
    "N° de Carné: 12345-AB\n"
    "Nombre: JUAN ANDRES PEREZ SOTO   R.U.T.: 12.345.678-5\n"
    "Fecha Emisión: 15 MAR 2024\n"
    "Fecha Vencimiento: 15/03/2027\n"
    "Resol. N° 1234 de fecha 01.02.2024\n"
    "Código Agente: A123\n"
)

# Plain ASCII so the PDF base font renders every character
CARNET_PDF_TEXT = (
    "No de Carnet: 12345-AB\n"
    "Nombre: JUAN ANDRES PEREZ SOTO\n"
    "RUT: 12.345.678-5\n"
    "Fecha Emision: 15/03/2024\n"
)


class FakeOcr:
    """Records every image it receives and returns canned text."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.images: List[Image.Image] = []

    def __call__(self, image: Image.Image) -> str:
        self.images.append(image)
        return self.text


def _png(color: str = "white", size=(200, 100)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from the packaged settings, without overrides."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture()
def carnet_text() -> str:
    return CARNET_TEXT


@pytest.fixture()
def make_ocr() -> Callable[[str], FakeOcr]:
    return FakeOcr


@pytest.fixture()
def png_bytes() -> bytes:
    """A small blank PNG."""
    return _png()


@pytest.fixture()
def text_pdf_bytes() -> bytes:
    """A single-page PDF whose text layer holds a carnet."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), CARNET_PDF_TEXT, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture()
def scanned_pdf_bytes() -> bytes:
    """A single-page PDF holding only an image (no text layer)."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_image(fitz.Rect(72, 72, 272, 172), stream=_png("gray"))
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture()
def text_and_image_pdf_bytes() -> bytes:
    """A page with both a text layer and an embedded image."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), CARNET_PDF_TEXT, fontsize=11)
    page.insert_image(fitz.Rect(72, 300, 272, 400), stream=_png("gray"))
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture()
def two_image_pdf_bytes() -> bytes:
    """Two pages, one distinct image on each."""
    doc = fitz.open()
    for color in ("red", "blue"):
        page = doc.new_page()
        page.insert_image(fitz.Rect(72, 72, 272, 172), stream=_png(color))
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture()
def broken_image_pdf_bytes() -> bytes:
    """Two pages with one image each; the image on page 0 cannot be decoded."""
    doc = fitz.open()
    for color in ("red", "blue"):
        page = doc.new_page()
        page.insert_image(fitz.Rect(72, 72, 272, 172), stream=_png(color))

    xref = doc[0].get_images(full=True)[0][0]
    # A zero-width image is rejected when MuPDF loads it
    doc.xref_set_key(xref, "Width", "0")

    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture()
def blank_pdf_bytes() -> bytes:
    """A valid PDF with one empty page."""
    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data
