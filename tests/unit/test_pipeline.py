import asyncio
import io
import json
from datetime import date

import pytest

from aduana_extraction import ExtractionResult, get_pipeline
from aduana_extraction.documents import CarnetAduaneroPipeline
from aduana_extraction.input_handler.sniffer import compute_hash
from aduana_extraction.utils.exceptions import ExtractionFatalError, FormatError


@pytest.fixture()
def pipeline(make_ocr, carnet_text: str) -> CarnetAduaneroPipeline:
    return CarnetAduaneroPipeline(ocr=make_ocr(carnet_text))


class TestProcessRawText:
    def test_hash_of_utf8_text(self, pipeline: CarnetAduaneroPipeline, carnet_text: str) -> None:
        result = pipeline.process_raw_text(carnet_text, "carnet.txt")

        assert result.source_hash == compute_hash(carnet_text.encode("utf-8"))
        assert result.extraction_method == "raw_text"
        assert result.file_name == "carnet.txt"
        assert result.document_type == "carnet_aduanero"
        assert result.raw_text == carnet_text

    def test_idempotent(self, pipeline: CarnetAduaneroPipeline, carnet_text: str) -> None:
        first = pipeline.process_raw_text(carnet_text)
        second = pipeline.process_raw_text(carnet_text)

        assert first.record == second.record
        assert first.warnings == second.warnings
        assert first.source_hash == second.source_hash

    def test_to_dict_is_json_serializable(self, pipeline: CarnetAduaneroPipeline, carnet_text: str) -> None:
        data = pipeline.process_raw_text(carnet_text).to_dict()

        assert data["record"]["fecha_emision"] == "2024-03-15"
        assert data["record"]["rut"] == "12.345.678-5"
        assert data["is_valid"] is True
        assert "raw_text" not in data
        json.dumps(data)

    def test_to_dict_with_money_and_items(self) -> None:
        text = (
            "Folio: 987654321\n"
            "DETALLE DE PAGO\n"
            "91   DERECHOS AD VALOREM   $ 120.000\n"
            "TOTAL PAGADO   $ 120.000\n"
        )
        data = get_pipeline("comprobante_transaccion").process_raw_text(text).to_dict(include_text=True)

        assert data["record"]["total_pagado"] == {"amount": "120000.00", "currency": "CLP"}
        assert data["record"]["items"][0]["codigo"] == "91"
        assert data["raw_text"] == text
        json.dumps(data)


class TestExtractFromInput:
    def test_from_png_bytes(self, pipeline: CarnetAduaneroPipeline, png_bytes: bytes) -> None:
        result = pipeline.extract_from_bytes(png_bytes, "carnet.png")

        assert isinstance(result, ExtractionResult)
        assert result.is_valid
        assert result.extraction_method == "ocr"
        assert result.source_hash == compute_hash(png_bytes)
        assert result.record.numero_carnet == "12345-AB"

    def test_from_path(self, pipeline: CarnetAduaneroPipeline, tmp_path, png_bytes: bytes) -> None:
        path = tmp_path / "carnet.png"
        path.write_bytes(png_bytes)

        result = pipeline.extract_from_path(path)

        assert result.file_name == "carnet.png"
        assert result.record.fecha_emision == date(2024, 3, 15)

    def test_from_stream(self, pipeline: CarnetAduaneroPipeline, png_bytes: bytes) -> None:
        result = pipeline.extract_from_stream(io.BytesIO(png_bytes), "carnet.png")

        assert result.record.rut == "12.345.678-5"

    def test_from_text_pdf(self, make_ocr, text_pdf_bytes: bytes) -> None:
        ocr = make_ocr("")
        result = CarnetAduaneroPipeline(ocr=ocr).extract_from_bytes(text_pdf_bytes, "carnet.pdf")

        assert result.extraction_method == "pdf_text"
        assert result.record.numero_carnet == "12345-AB"
        assert result.record.rut == "12.345.678-5"
        assert result.record.fecha_emision == date(2024, 3, 15)
        assert ocr.images == []

    def test_pdf_warnings_come_first(self, make_ocr, text_and_image_pdf_bytes: bytes) -> None:
        result = CarnetAduaneroPipeline(ocr=make_ocr("")).extract_from_bytes(text_and_image_pdf_bytes)

        assert result.warnings[0].startswith("page 0: OCR skipped")

    def test_blank_pdf_is_fatal(self, make_ocr, blank_pdf_bytes: bytes) -> None:
        with pytest.raises(ExtractionFatalError):
            CarnetAduaneroPipeline(ocr=make_ocr("")).extract_from_bytes(blank_pdf_bytes)

    def test_rejects_unknown_format(self, pipeline: CarnetAduaneroPipeline) -> None:
        with pytest.raises(FormatError):
            pipeline.extract_from_bytes(b"GIF89a not a document")


class TestAsync:
    def test_async_variants(self, pipeline: CarnetAduaneroPipeline, png_bytes: bytes, carnet_text: str) -> None:
        async def run():
            return await asyncio.gather(
                pipeline.extract_from_bytes_async(png_bytes, "a.png"),
                pipeline.extract_from_stream_async(io.BytesIO(png_bytes), "b.png"),
                pipeline.process_raw_text_async(carnet_text),
            )

        results = asyncio.run(run())

        assert [r.record.numero_carnet for r in results] == ["12345-AB"] * 3
        assert [r.file_name for r in results] == ["a.png", "b.png", ""]
