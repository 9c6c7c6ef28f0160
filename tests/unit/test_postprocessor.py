from datetime import date
from decimal import Decimal

import pytest

from aduana_extraction.postprocessor import (
    AmountNormalizer,
    AmountValidator,
    ContainerNormalizer,
    ContainerValidator,
    DateNormalizer,
    DateValidator,
    FieldValidator,
    Money,
    RutNormalizer,
    RutValidator,
    clean_text,
    container_check_digit,
    fold_text,
    rut_check_digit,
)


class TestFoldText:
    def test_strips_accents_and_lowercases(self) -> None:
        assert fold_text("N° de Carné") == "no de carne"
        assert fold_text("SEÑOR(ES)") == "senor(es)"

    def test_keeps_length(self) -> None:
        for text in ("Fecha Emisión", "Nº Declaración", "Compañía", "ﬁ"):
            assert len(fold_text(text)) == len(text)

    def test_clean_text(self) -> None:
        assert clean_text("  : JUAN   PEREZ ; ") == "JUAN PEREZ"


class TestDateNormalizer:
    @pytest.mark.parametrize("raw,expected", [
        ("15/03/2024", date(2024, 3, 15)),
        ("Fecha: 15-03-2024", date(2024, 3, 15)),
        ("01.02.2024", date(2024, 2, 1)),
        ("2024-03-15", date(2024, 3, 15)),
        ("15 / 03 / 2024", date(2024, 3, 15)),
        ("15 de Marzo de 2024", date(2024, 3, 15)),
        ("15 de marzo del 2024", date(2024, 3, 15)),
        ("15 MAR 2024", date(2024, 3, 15)),
        ("05-dic-2023", date(2023, 12, 5)),
    ])
    def test_formats(self, raw: str, expected: date) -> None:
        assert DateNormalizer().normalize(raw) == expected

    def test_first_date_wins(self) -> None:
        assert DateNormalizer().normalize("10/03/2024 al 08/06/2024") == date(2024, 3, 10)

    def test_invalid_calendar_date(self) -> None:
        assert DateNormalizer().normalize("31/02/2024") is None

    def test_year_is_required(self) -> None:
        assert DateNormalizer().normalize("15 de marzo") is None

    def test_compact_digits_need_explicit_format(self) -> None:
        normalizer = DateNormalizer()
        assert normalizer.normalize("15032024") is None
        assert normalizer.normalize("15032024", ["%d%m%Y"]) == date(2024, 3, 15)

    @pytest.mark.parametrize("raw", ["", "sin fecha", "N° 1234"])
    def test_no_date(self, raw: str) -> None:
        assert DateNormalizer().normalize(raw) is None


class TestAmountNormalizer:
    @pytest.mark.parametrize("raw,expected", [
        ("$ 1.234.567", Decimal("1234567")),
        ("12.345,67", Decimal("12345.67")),
        ("12,345.67", Decimal("12345.67")),
        ("1.234", Decimal("1234")),
        ("30,5", Decimal("30.5")),
        ("1234.5", Decimal("1234.5")),
        ("-500", Decimal("-500")),
    ])
    def test_parse_decimal(self, raw: str, expected: Decimal) -> None:
        assert AmountNormalizer().parse_decimal(raw) == expected

    def test_parse_money_defaults_to_clp(self) -> None:
        assert AmountNormalizer().parse_money("Total Pagado: $ 165.600") == Money(Decimal("165600.00"), "CLP")

    def test_parse_money_detects_currency(self) -> None:
        normalizer = AmountNormalizer()
        assert normalizer.parse_money("US$ 12.345,67") == Money(Decimal("12345.67"), "USD")
        assert normalizer.parse_money("EUR 99,90").currency == "EUR"

    def test_parse_money_uses_given_currency(self) -> None:
        assert AmountNormalizer().parse_money("1.200,00", "USD").currency == "USD"

    def test_money_is_quantized(self) -> None:
        assert AmountNormalizer().parse_money("10,005").amount == Decimal("10.01")

    def test_not_an_amount(self) -> None:
        normalizer = AmountNormalizer()
        assert normalizer.parse_money("sin monto") is None
        assert normalizer.parse_decimal("") is None

    def test_money_str(self) -> None:
        assert str(Money(Decimal("10.00"), "USD")) == "10.00 USD"


class TestRut:
    @pytest.mark.parametrize("body,digit", [
        ("12345678", "5"),
        ("15970128", "K"),
        ("76543210", "3"),
        ("9876543", "3"),
        ("96908970", "K"),
    ])
    def test_check_digit(self, body: str, digit: str) -> None:
        assert rut_check_digit(body) == digit

    @pytest.mark.parametrize("raw", ["12.345.678-5", "12345678-5", "12,345,678 - 5", "RUT: 12.345.678-5"])
    def test_normalize_variants(self, raw: str) -> None:
        assert RutNormalizer().normalize(raw) == ("12345678", "5")

    def test_lowercase_k(self) -> None:
        assert RutNormalizer().normalize("R.U.T.: 15,970,128 - k") == ("15970128", "K")

    def test_format(self) -> None:
        assert RutNormalizer.format("9876543", "3") == "9.876.543-3"
        assert RutNormalizer.format("76543210", "3") == "76.543.210-3"

    def test_validator(self) -> None:
        validator = RutValidator()
        assert validator.validate("12345678", "5") == (True, "")
        ok, error = validator.validate("12345678", "4")
        assert not ok
        assert "expected 5" in error

    def test_no_rut(self) -> None:
        assert RutNormalizer().normalize("Folio: 987654321") is None


class TestContainer:
    def test_check_digit(self) -> None:
        assert container_check_digit("CSQU305438") == 3

    def test_normalize(self) -> None:
        assert ContainerNormalizer().normalize("Contenedor: csqu 305438-3") == "CSQU3054383"

    def test_validator(self) -> None:
        validator = ContainerValidator()
        assert validator.validate("CSQU3054383") == (True, "")
        assert validator.validate("CSQU3054384")[0] is False
        assert validator.validate("CSQ3054384")[0] is False


class TestValidators:
    def test_date_range(self) -> None:
        assert DateValidator().validate(date(2024, 1, 1))[0]
        assert not DateValidator().validate(date(2924, 1, 1))[0]

    def test_negative_amount(self) -> None:
        assert AmountValidator().validate(Decimal("0"))[0]
        assert AmountValidator().validate(Decimal("-1")) == (False, "negative amount")

    def test_match_pattern_value_group(self) -> None:
        validator = FieldValidator()
        assert validator.match_pattern("DIN 1234567890-1", r"\d{10}-\d") == "1234567890-1"
        assert validator.match_pattern("Folio: 987", r"(?P<value>\d+)") == "987"
        assert validator.match_pattern("sin numero", r"\d+") is None

    def test_match_choice_prefers_longest(self) -> None:
        validator = FieldValidator()
        assert validator.match_choice("Revisión: Física", ["FISICO", "DOCUMENTAL"]) is None
        assert validator.match_choice("Revisión: FÍSICO", ["FISICO", "DOCUMENTAL"]) == "FISICO"
        assert validator.match_choice("Moneda: dolar usa", ["USD", "DOLAR USA"]) == "DOLAR USA"
