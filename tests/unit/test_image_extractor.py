import asyncio
from pathlib import Path

import pytest
from PIL import Image

from config import ConfigurationManager
from aduana_extraction.input_handler import PDFImageExtractor
from aduana_extraction.utils.exceptions import EmptyInputError, FormatError


class TestPDFImageExtractor:
    def test_no_images(self, blank_pdf_bytes: bytes, tmp_path) -> None:
        result = PDFImageExtractor().extract_images(blank_pdf_bytes, tmp_path)

        assert result.images == []
        assert result.warnings == []
        assert result.is_valid

    def test_one_file_per_image_in_page_order(self, two_image_pdf_bytes: bytes, tmp_path) -> None:
        result = PDFImageExtractor().extract_images(two_image_pdf_bytes, tmp_path, stem="din 2024")

        assert result.warnings == []
        assert [(i.page_index, i.sequence_index) for i in result.images] == [(0, 0), (1, 0)]
        assert result.output_folder == str(tmp_path.resolve())
        for image in result.images:
            path = Path(image.path)
            assert path.exists()
            assert path.name.startswith("din_2024_")
            assert path.name.endswith(f"_p{image.page_index:03d}_i000.png")
            with Image.open(path) as written:
                assert written.format == "PNG"

    def test_undecodable_image_warns_and_continues(self, broken_image_pdf_bytes: bytes, tmp_path) -> None:
        result = PDFImageExtractor().extract_images(broken_image_pdf_bytes, tmp_path, stem="dr")

        assert result.is_valid
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("page 0 image 0 ")
        assert [(i.page_index, i.sequence_index) for i in result.images] == [(1, 0)]
        assert Path(result.images[0].path).exists()
        assert len(list(tmp_path.glob("*.png"))) == 1

    def test_calls_do_not_overwrite_each_other(self, two_image_pdf_bytes: bytes, tmp_path) -> None:
        extractor = PDFImageExtractor()

        first = extractor.extract_images(two_image_pdf_bytes, tmp_path, stem="din")
        second = extractor.extract_images(two_image_pdf_bytes, tmp_path, stem="din")

        assert set(first.paths).isdisjoint(second.paths)
        assert len(list(tmp_path.glob("*.png"))) == 4

    def test_default_folder_from_configuration(self, two_image_pdf_bytes: bytes, tmp_path) -> None:
        folder = tmp_path / "imagenes"
        ConfigurationManager().set("pdf.images.output_dir", str(folder))

        result = PDFImageExtractor().extract_images(two_image_pdf_bytes)

        assert result.output_folder == str(folder.resolve())
        assert len(list(folder.glob("*.png"))) == 2

    def test_async_variant(self, two_image_pdf_bytes: bytes, tmp_path) -> None:
        result = asyncio.run(PDFImageExtractor().extract_images_async(two_image_pdf_bytes, tmp_path))

        assert len(result.images) == 2

    def test_rejects_non_pdf(self, png_bytes: bytes, tmp_path) -> None:
        with pytest.raises(FormatError):
            PDFImageExtractor().extract_images(png_bytes, tmp_path)

    def test_rejects_empty(self, tmp_path) -> None:
        with pytest.raises(EmptyInputError):
            PDFImageExtractor().extract_images(b"", tmp_path)
