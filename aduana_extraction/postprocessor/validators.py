"""
Data Validators Module.

Checks applied after a value has been parsed:
    - Chilean RUT modulo-11 check digit
    - ISO 6346 container check digit
    - Plausible date range
    - Identifier patterns and enumerated choices
    - Amount sign

Each validator returns ``(is_valid, error_message)`` so the extraction
engine can turn failures into warnings instead of exceptions.

Author: ML Engineering Team
"""

import re
import string
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from aduana_extraction.utils.logger import get_logger
from .normalizers import fold_text

# Initialize module logger
logger = get_logger(__name__)


def rut_check_digit(body: str) -> str:
    """
    Compute the modulo-11 check digit of a RUT body.

    Example:
        >>> rut_check_digit("12345678")
        '5'
        >>> rut_check_digit("15970128")
        'K'
    """
    total = 0
    factor = 2
    for digit in reversed(body):
        total += int(digit) * factor
        factor = 2 if factor == 7 else factor + 1

    remainder = 11 - total % 11
    if remainder == 11:
        return "0"
    if remainder == 10:
        return "K"
    return str(remainder)


def _container_letter_values() -> Dict[str, int]:
    # A=10 upward, skipping multiples of 11
    values = {}
    value = 10
    for letter in string.ascii_uppercase:
        if value % 11 == 0:
            value += 1
        values[letter] = value
        value += 1
    return values


_LETTER_VALUES = _container_letter_values()


def container_check_digit(code: str) -> int:
    """
    Compute the ISO 6346 check digit for the first ten characters of a
    container number.

    Example:
        >>> container_check_digit("CSQU305438")
        3
    """
    total = 0
    for position, char in enumerate(code[:10]):
        value = _LETTER_VALUES[char] if char.isalpha() else int(char)
        total += value * (2 ** position)
    return total % 11 % 10


class RutValidator:
    """Validates RUT check digits."""

    def validate(self, body: str, check_digit: str) -> Tuple[bool, str]:
        expected = rut_check_digit(body)
        if expected != check_digit.upper():
            return False, f"check digit {check_digit} does not match (expected {expected})"
        return True, ""


class ContainerValidator:
    """Validates ISO 6346 container numbers."""

    def validate(self, number: str) -> Tuple[bool, str]:
        if not re.fullmatch(r"[A-Z]{4}\d{7}", number):
            return False, "not an ISO 6346 container number"
        expected = container_check_digit(number)
        if int(number[-1]) != expected:
            return False, f"check digit {number[-1]} does not match (expected {expected})"
        return True, ""


class DateValidator:
    """
    Rejects dates outside a plausible range.

    OCR misreads ("2O24" -> "2024" is fine, "2924" is not) usually land
    far outside the range below.
    """

    MIN_YEAR = 1950
    MAX_YEAR = 2100

    def validate(self, value: date) -> Tuple[bool, str]:
        if not self.MIN_YEAR <= value.year <= self.MAX_YEAR:
            return False, f"year {value.year} outside {self.MIN_YEAR}-{self.MAX_YEAR}"
        return True, ""


class AmountValidator:
    """Rejects negative monetary amounts."""

    def validate(self, value: Decimal) -> Tuple[bool, str]:
        if value < 0:
            return False, "negative amount"
        return True, ""


class FieldValidator:
    """
    Pattern and choice checks for identifier and text fields.

    Example:
        >>> validator = FieldValidator()
        >>> validator.match_pattern("DIN 1234567890-1", r"\\d{10}-\\d")
        '1234567890-1'
        >>> validator.match_choice("Revision: Fisico", ["FISICO", "DOCUMENTAL"])
        'FISICO'
    """

    def match_pattern(self, raw: str, pattern: str) -> Optional[str]:
        """
        Return the first match of ``pattern`` in ``raw``.

        When the pattern defines a ``value`` group, only that group is
        returned.
        """
        match = re.search(pattern, raw, re.IGNORECASE)
        if match is None:
            return None
        if "value" in match.re.groupindex:
            return match.group("value")
        return match.group(0)

    def match_choice(self, raw: str, choices: Iterable[str]) -> Optional[str]:
        """
        Return the first choice that appears in ``raw``, ignoring case and
        accents. Longer choices are tried first.
        """
        folded = fold_text(raw)
        for choice in sorted(choices, key=len, reverse=True):
            if re.search(rf"\b{re.escape(fold_text(choice))}\b", folded):
                return choice
        return None
