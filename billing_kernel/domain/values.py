"""
Values -- Exact quantities and presentation rounding.

Responsibility:
    Convert caller numbers into ``Decimal`` without float drift, and turn
    exact rational quantities (``Fraction``) into rounded ``Decimal``
    values at the serialization boundary.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Floats never enter arithmetic: they are converted through ``str``.
    - Engines accumulate in ``Fraction``; rounding only happens here, once,
      with ROUND_HALF_UP.
    - Quantities (fractions, months, units) round to 4 places; currency
      amounts round to 2 places.

Failure modes:
    - InvalidParameterError when a value cannot be read as a finite number.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from fractions import Fraction
from typing import Any

from billing_kernel.exceptions import InvalidParameterError

QUANTITY_PLACES = Decimal("0.0001")
CURRENCY_PLACES = Decimal("0.01")


def to_decimal(value: Any, field: str) -> Decimal:
    """Read ``value`` as a finite Decimal (``bool`` is rejected)."""
    if isinstance(value, bool):
        raise InvalidParameterError(field, value, "expected a number, got bool")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation as exc:
            raise InvalidParameterError(field, value, "not a number") from exc
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise InvalidParameterError(
            field, value, f"unsupported type {type(value).__name__}"
        )
    if not result.is_finite():
        raise InvalidParameterError(field, value, "must be finite")
    return result


def round_exact(value: Fraction | Decimal | int, places: Decimal) -> Decimal:
    """
    Round an exact value to ``places`` with ROUND_HALF_UP.

    The rational is split into integer and remainder parts so rounding is
    decided on the exact value, not on a 28-digit approximation.
    """
    if isinstance(value, Decimal):
        return value.quantize(places, rounding=ROUND_HALF_UP)
    frac = Fraction(value)
    scale = 10 ** -places.as_tuple().exponent
    scaled = frac * scale
    whole, remainder = divmod(abs(scaled.numerator), scaled.denominator)
    if remainder * 2 >= scaled.denominator:
        whole += 1
    if scaled < 0:
        whole = -whole
    return (Decimal(whole) / Decimal(scale)).quantize(places)


def round_quantity(value: Fraction | Decimal | int) -> Decimal:
    return round_exact(value, QUANTITY_PLACES)


def round_currency(value: Fraction | Decimal | int) -> Decimal:
    return round_exact(value, CURRENCY_PLACES)
