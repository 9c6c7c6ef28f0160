"""
Cross-field consistency rules.

Each factory returns a function taking the extracted values (field name
to coerced value) and returning a :class:`ConsistencyWarning` or None.
Rules stay silent when any value they need is missing; missing values
are reported by the engine already.

Author: ML Engineering Team
"""

from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from config import get_config
from aduana_extraction.postprocessor.normalizers import Money
from .extraction_result import ConsistencyWarning
from .schema import Rule


def _tolerance(tolerance: Optional[Decimal]) -> Decimal:
    if tolerance is not None:
        return Decimal(str(tolerance))
    return Decimal(str(get_config("extraction.consistency.tolerance", 0.01)))


def as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Money):
        return value.amount
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    return None


def date_order(earlier: str, later: str) -> Rule:
    """``earlier`` must not fall after ``later``."""

    def check(values: Mapping[str, Any]) -> Optional[ConsistencyWarning]:
        first, second = values.get(earlier), values.get(later)
        if first is None or second is None or first <= second:
            return None
        return ConsistencyWarning(
            "date_order",
            f"{earlier} {first.isoformat()} is later than {later} {second.isoformat()}",
            (earlier, later),
        )

    return check


def items_total(items: str, total: str, attribute: str = "amount",
                tolerance: Optional[Decimal] = None) -> Rule:
    """The line-item amounts must add up to ``total``."""

    def check(values: Mapping[str, Any]) -> Optional[ConsistencyWarning]:
        rows = values.get(items) or ()
        expected = as_decimal(values.get(total))
        if not rows or expected is None:
            return None

        amounts = [as_decimal(getattr(row, attribute)) for row in rows]
        computed = sum((a for a in amounts if a is not None), Decimal("0"))
        if abs(computed - expected) <= _tolerance(tolerance):
            return None

        return ConsistencyWarning(
            "items_total",
            f"sum of {len(rows)} {items} ({computed}) differs from {total} ({expected})",
            (items, total),
        )

    return check


def sum_of(total: str, parts: Sequence[str], tolerance: Optional[Decimal] = None) -> Rule:
    """``total`` must equal the sum of ``parts``."""

    def check(values: Mapping[str, Any]) -> Optional[ConsistencyWarning]:
        expected = as_decimal(values.get(total))
        amounts = [as_decimal(values.get(part)) for part in parts]
        if expected is None or any(a is None for a in amounts):
            return None

        computed = sum(amounts, Decimal("0"))
        if abs(computed - expected) <= _tolerance(tolerance):
            return None

        return ConsistencyWarning(
            "sum_of",
            f"{' + '.join(parts)} = {computed} differs from {total} ({expected})",
            (total, *parts),
        )

    return check


def vat_rate(net: str, vat: str, rate: Optional[Decimal] = None,
             tolerance: Optional[Decimal] = None) -> Rule:
    """``vat`` must be ``rate`` times ``net``, within an absolute rounding tolerance."""

    def check(values: Mapping[str, Any]) -> Optional[ConsistencyWarning]:
        net_amount, vat_amount = as_decimal(values.get(net)), as_decimal(values.get(vat))
        if net_amount is None or vat_amount is None:
            return None

        applied = rate if rate is not None else Decimal(str(get_config("extraction.consistency.iva_rate", 0.19)))
        allowed = (
            Decimal(str(tolerance)) if tolerance is not None
            else Decimal(str(get_config("extraction.consistency.iva_tolerance", 1)))
        )
        computed = (net_amount * applied).quantize(Decimal("0.01"))
        if abs(computed - vat_amount) <= allowed:
            return None

        return ConsistencyWarning(
            "vat_rate",
            f"{vat} {vat_amount} is not {applied} x {net} (expected {computed})",
            (net, vat),
        )

    return check


def positive(name: str) -> Rule:
    """An amount that must be greater than zero when present."""

    def check(values: Mapping[str, Any]) -> Optional[ConsistencyWarning]:
        amount = as_decimal(values.get(name))
        if amount is None or amount > 0:
            return None
        return ConsistencyWarning("positive", f"{name} must be greater than zero", (name,))

    return check


def item_products(items: str, quantity: str, price: str, amount: str,
                  tolerance: Optional[Decimal] = None) -> Rule:
    """Each line item's ``amount`` must equal ``quantity`` x ``price``."""

    def check(values: Mapping[str, Any]) -> Optional[ConsistencyWarning]:
        allowed = _tolerance(tolerance)
        mismatched = []
        for position, row in enumerate(values.get(items) or (), start=1):
            qty, unit, total = (as_decimal(getattr(row, name)) for name in (quantity, price, amount))
            if qty is None or unit is None or total is None:
                continue
            if abs(qty * unit - total) > allowed:
                mismatched.append(str(position))

        if not mismatched:
            return None
        return ConsistencyWarning(
            "item_products",
            f"{quantity} x {price} differs from {amount} in row(s) {', '.join(mismatched)}",
            (items,),
        )

    return check
