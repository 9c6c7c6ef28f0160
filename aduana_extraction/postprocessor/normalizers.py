"""
Data Normalizers Module.

Turns raw OCR snippets into typed values:
    - Accent/case folding for label matching
    - Dates (numeric formats, then Spanish month names via dateutil)
    - Monetary amounts with locale-aware separators and currency codes
    - Chilean RUT numbers
    - ISO 6346 container numbers

Normalizers only parse. Whether a parsed value is acceptable (check
digits, plausible year) is decided in :mod:`validators`.

Author: ML Engineering Team
"""

import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from dateutil import parser as date_parser

from config import get_config
from aduana_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

CENTS = Decimal("0.01")


# =============================================================================
# TEXT
# =============================================================================

@lru_cache(maxsize=4096)
def _fold_char(ch: str) -> str:
    if ch in "°º":
        return "o"
    base = "".join(
        c for c in unicodedata.normalize("NFKD", ch) if not unicodedata.combining(c)
    ).lower()
    if len(base) == 1:
        return base
    lowered = ch.lower()
    return lowered if len(lowered) == 1 else ch


def fold_text(text: str) -> str:
    """
    Lowercase and strip accents, one output character per input character.

    Offsets in the folded string are valid in the original, so a label
    matched on folded text can be cut out of the original line.

    Example:
        >>> fold_text("N° de Carné")
        'no de carne'
    """
    return "".join(_fold_char(ch) for ch in text)


def clean_text(text: str) -> str:
    """Collapse whitespace and trim separator debris left around a value."""
    text = " ".join(text.split())
    return text.strip(" :;,-_|")


# =============================================================================
# DATES
# =============================================================================

class SpanishParserInfo(date_parser.parserinfo):
    """dateutil vocabulary for Spanish month names and connectors."""

    JUMP = date_parser.parserinfo.JUMP + ["de", "del"]
    MONTHS = [
        ("ene", "enero"),
        ("feb", "febrero"),
        ("mar", "marzo"),
        ("abr", "abril"),
        ("may", "mayo"),
        ("jun", "junio"),
        ("jul", "julio"),
        ("ago", "agosto"),
        ("sep", "sept", "septiembre", "set", "setiembre"),
        ("oct", "octubre"),
        ("nov", "noviembre"),
        ("dic", "diciembre"),
    ]


_MONTH_WORDS = "|".join(
    sorted({name for names in SpanishParserInfo.MONTHS for name in names}, key=len, reverse=True)
)


class DateNormalizer:
    """
    Parses calendar dates out of OCR text.

    Numeric candidates are tried against ``extraction.date.input_formats``
    in order (first format that parses wins). Candidates written with a
    Spanish month name ("15 de marzo del 2024", "15 MAR 2024") are handed
    to dateutil with :class:`SpanishParserInfo`. A year must always be
    present; nothing is filled in from the current date.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("Fecha: 15/03/2024")
        datetime.date(2024, 3, 15)
        >>> normalizer.normalize("15 de Marzo del 2024")
        datetime.date(2024, 3, 15)
    """

    DATE_PATTERNS = [
        # DD/MM/YYYY, DD-MM-YY, DD.MM.YYYY (OCR may insert spaces)
        re.compile(r"(?<!\d)\d{1,2}\s?([/\-.])\s?\d{1,2}\s?\1\s?\d{2,4}(?!\d)"),
        # YYYY-MM-DD
        re.compile(r"(?<!\d)\d{4}([/\-.])\d{1,2}\1\d{1,2}(?!\d)"),
        # 15 de marzo de 2024 / 15-MAR-2024
        re.compile(
            rf"(?<!\d)\d{{1,2}}[\s\-./]*(?:de\s+)?(?:{_MONTH_WORDS})\.?[\s\-./]*(?:del?\s+)?\d{{4}}(?!\d)",
            re.IGNORECASE
        ),
    ]
    COMPACT_PATTERN = re.compile(r"(?<!\d)\d{8}(?!\d)")

    def __init__(self) -> None:
        """Initialize the date normalizer with configuration."""
        self.input_formats: List[str] = list(get_config(
            "extraction.date.input_formats",
            ["%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%Y-%m-%d", "%d/%m/%y", "%d-%m-%y"]
        ))
        self.parser_info = SpanishParserInfo(dayfirst=True)

    def normalize(self, raw: str, extra_formats: Iterable[str] = ()) -> Optional[date]:
        """
        Find and parse the first date in ``raw``.

        Args:
            raw: Captured text, possibly with surrounding noise.
            extra_formats: Field-specific formats tried after the defaults.
                          Formats without separators (``%d%m%Y``) also
                          enable bare eight-digit candidates.

        Returns:
            Parsed date, or None if no candidate parses.
        """
        if not raw:
            return None

        formats = self.input_formats + [f for f in extra_formats if f not in self.input_formats]

        for candidate, textual in self._candidates(raw, formats):
            parsed = (
                self._try_dateutil_parser(candidate)
                if textual
                else self._try_explicit_formats(candidate, formats)
            )
            if parsed is not None:
                return parsed

        logger.debug(f"Could not parse date: {raw!r}")
        return None

    def _candidates(self, raw: str, formats: List[str]) -> List[Tuple[str, bool]]:
        found = []
        for index, pattern in enumerate(self.DATE_PATTERNS):
            for match in pattern.finditer(raw):
                found.append((match.start(), match.group(0), index == 2))

        if any("%" in f and not re.search(r"[/\-. ]", f) for f in formats):
            for match in self.COMPACT_PATTERN.finditer(raw):
                found.append((match.start(), match.group(0), False))

        found.sort(key=lambda item: item[0])
        return [(text, textual) for _, text, textual in found]

    def _try_explicit_formats(self, candidate: str, formats: List[str]) -> Optional[date]:
        candidate = re.sub(r"\s+", "", candidate)
        for fmt in formats:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, candidate: str) -> Optional[date]:
        try:
            return date_parser.parse(candidate, parserinfo=self.parser_info).date()
        except (ValueError, OverflowError):
            return None


# =============================================================================
# AMOUNTS
# =============================================================================

@dataclass(frozen=True)
class Money:
    """A fixed-point amount (two decimals) and its ISO currency code."""
    amount: Decimal
    currency: str

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


class AmountNormalizer:
    """
    Parses monetary amounts and plain decimal quantities.

    Separator handling:
        - Both ``.`` and ``,`` present: the rightmost one is the decimal mark.
        - One separator repeated: thousands grouping ("1.234.567").
        - One separator once, followed by exactly three digits: ambiguous;
          resolved by the configured locale (Chile: ``.`` groups
          thousands, ``,`` is decimal).
        - Otherwise the single separator is the decimal mark.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.parse_money("Total Pagado: $ 1.234.567")
        Money(amount=Decimal('1234567.00'), currency='CLP')
        >>> normalizer.parse_money("US$ 12.345,67")
        Money(amount=Decimal('12345.67'), currency='USD')
    """

    NUMBER_PATTERN = re.compile(r"-?\d[\d.,]*")
    CURRENCY_MARKERS = [
        (re.compile(r"US\s?\$|\bUSD\b|\bD[OÓ]LAR", re.IGNORECASE), "USD"),
        (re.compile(r"€|\bEUR\b|\bEUROS?\b", re.IGNORECASE), "EUR"),
        (re.compile(r"\bCLP\b|\bPESOS?\b", re.IGNORECASE), "CLP"),
    ]

    def __init__(self) -> None:
        """Initialize the amount normalizer with configuration."""
        self.decimal_separator = get_config("extraction.amount.decimal_separator", ",")
        self.thousands_separator = get_config("extraction.amount.thousands_separator", ".")
        self.default_currency = get_config("extraction.amount.default_currency", "CLP")

    def parse_decimal(self, raw: str) -> Optional[Decimal]:
        """
        Parse the first number in ``raw``.

        Returns:
            Decimal value (not quantized), or None.
        """
        if not raw:
            return None

        match = self.NUMBER_PATTERN.search(raw)
        if match is None:
            return None

        return self._to_decimal(match.group(0).rstrip(".,"))

    def parse_money(self, raw: str, currency: Optional[str] = None) -> Optional[Money]:
        """
        Parse an amount and its currency.

        Args:
            raw: Captured text.
            currency: Currency to assume when the text names none; the
                     configured default otherwise.

        Returns:
            Money quantized to cents, or None.
        """
        value = self.parse_decimal(raw)
        if value is None:
            return None

        code = self.detect_currency(raw) or currency or self.default_currency
        return Money(value.quantize(CENTS, rounding=ROUND_HALF_UP), code)

    def detect_currency(self, raw: str) -> Optional[str]:
        for pattern, code in self.CURRENCY_MARKERS:
            if pattern.search(raw):
                return code
        return None

    def _to_decimal(self, token: str) -> Optional[Decimal]:
        dots, commas = token.count("."), token.count(",")

        if dots and commas:
            decimal_mark = "." if token.rfind(".") > token.rfind(",") else ","
        elif dots or commas:
            sep = "." if dots else ","
            tail = len(token) - token.rfind(sep) - 1
            if dots + commas > 1:
                decimal_mark = None
            elif tail == 3:
                decimal_mark = None if sep == self.thousands_separator else sep
            else:
                decimal_mark = sep
        else:
            decimal_mark = None

        grouping = {".", ","} - {decimal_mark}
        for sep in grouping:
            token = token.replace(sep, "")
        if decimal_mark:
            token = token.replace(decimal_mark, ".")

        if not re.fullmatch(r"-?\d+(?:\.\d+)?", token):
            return None

        try:
            return Decimal(token)
        except InvalidOperation:
            return None


# =============================================================================
# IDENTIFIERS
# =============================================================================

class RutNormalizer:
    """
    Finds Chilean RUT numbers and renders them as ``12.345.678-5``.

    Tolerates the usual OCR variants: missing dots, commas instead of
    dots, spaces around the dash, lowercase ``k``.
    """

    RUT_PATTERN = re.compile(r"(?<![\d.])(\d{1,2}(?:[.,]?\d{3}){2})\s*-\s*([\dkK])(?![\dA-Za-z])")

    def normalize(self, raw: str) -> Optional[Tuple[str, str]]:
        """
        Return ``(body, check_digit)`` of the first RUT in ``raw``.

        Example:
            >>> RutNormalizer().normalize("R.U.T.: 15,970,128 - k")
            ('15970128', 'K')
        """
        if not raw:
            return None
        match = self.RUT_PATTERN.search(raw)
        if match is None:
            return None
        body = re.sub(r"[.,]", "", match.group(1)).lstrip("0") or "0"
        return body, match.group(2).upper()

    @staticmethod
    def format(body: str, check_digit: str) -> str:
        groups = []
        while len(body) > 3:
            groups.insert(0, body[-3:])
            body = body[:-3]
        groups.insert(0, body)
        return f"{'.'.join(groups)}-{check_digit}"


class ContainerNormalizer:
    """Finds ISO 6346 container numbers (owner code, serial, check digit)."""

    CONTAINER_PATTERN = re.compile(r"\b([A-Z]{3}[UJZ])\s?(\d{6})\s?-?\s?(\d)\b")

    def normalize(self, raw: str) -> Optional[str]:
        """
        Example:
            >>> ContainerNormalizer().normalize("Contenedor: csqu 305438-3")
            'CSQU3054383'
        """
        if not raw:
            return None
        match = self.CONTAINER_PATTERN.search(raw.upper())
        if match is None:
            return None
        return "".join(match.groups())
