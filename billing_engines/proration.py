"""
Module: billing_engines.proration
Responsibility:
    Split an arbitrary date span into calendar-month fragments and compute,
    for each fragment, the fraction of that month the span covers
    (active days / days in month).  The sum of fractions is the span's
    billable quantity in months.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel.

Invariants enforced:
    - Every fragment lies inside a single calendar month.
    - 0 < fraction <= 1 for every fragment; anything else is a defect and
      raises instead of being clamped.
    - Fractions are exact rationals; ``sum(fraction * total_days)`` equals
      the span's day count with no rounding error.
    - Rounding happens only in ``MonthFragment.to_dict``.

Failure modes:
    - InvalidRangeError when span_start > span_end.
    - InvalidRangeError when a fragment's fraction falls outside (0, 1].

Usage:
    from datetime import date
    from decimal import Decimal
    from billing_engines.proration import fractionate

    result = fractionate(
        date(2025, 2, 15), date(2025, 3, 1),
        quantity_per_month=Decimal("5"),
        price_per_month=Decimal("10"),
    )
    result.quantity_months   # Fraction(14, 28) + Fraction(1, 31)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from fractions import Fraction
from typing import Any

from billing_engines.tracer import traced_engine
from billing_kernel.domain.dates import (
    days_in_month,
    first_day_of_month,
    last_day_of_month,
    month_label,
    next_month_start,
)
from billing_kernel.domain.values import round_currency, round_quantity
from billing_kernel.exceptions import InvalidRangeError
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.proration")


@dataclass(frozen=True)
class MonthFragment:
    """
    The part of one billing period that falls inside one calendar month.

    Contract:
        Frozen dataclass; always nested under a BillingPeriod.
    Guarantees:
        - 1 <= active_days <= total_days.
        - ``fraction``, ``partial_units`` and ``partial_amount`` are exact.
    """

    year: int
    month: int
    active_days: int
    total_days: int
    quantity_per_month: Decimal
    price_per_month: Decimal

    def __post_init__(self) -> None:
        if not (0 < self.active_days <= self.total_days):
            raise InvalidRangeError(
                date(self.year, self.month, 1),
                date(self.year, self.month, self.total_days),
                reason=(
                    f"fraction {self.active_days}/{self.total_days} "
                    "outside (0, 1]"
                ),
            )

    @property
    def label(self) -> str:
        return month_label(self.year, self.month)

    @property
    def fraction(self) -> Fraction:
        return Fraction(self.active_days, self.total_days)

    @property
    def partial_units(self) -> Fraction:
        return self.fraction * Fraction(self.quantity_per_month)

    @property
    def partial_amount(self) -> Fraction:
        return self.partial_units * Fraction(self.price_per_month)

    def to_dict(self, include_partial_units: bool = False) -> dict[str, Any]:
        """Breakdown record with presentation rounding applied."""
        record: dict[str, Any] = {
            "month": self.label,
            "active_days": self.active_days,
            "total_days": self.total_days,
            "fraction": round_quantity(self.fraction),
        }
        if include_partial_units:
            record["partial_units"] = round_quantity(self.partial_units)
        record["partial_amount"] = round_currency(self.partial_amount)
        return record


@dataclass(frozen=True)
class FractionationResult:
    """Quantity in months for a span plus its month-by-month fragments."""

    quantity_months: Fraction
    fragments: tuple[MonthFragment, ...]

    @property
    def total_active_days(self) -> int:
        return sum(f.active_days for f in self.fragments)


@traced_engine(
    "proration", "1.0",
    fingerprint_fields=("span_start", "span_end", "quantity_per_month", "price_per_month"),
)
def fractionate(
    span_start: date,
    span_end: date,
    quantity_per_month: Decimal,
    price_per_month: Decimal,
) -> FractionationResult:
    """
    Split ``span_start .. span_end`` (inclusive) into calendar-month fragments.

    Pure function.

    Args:
        span_start: First day of the span
        span_end: Last day of the span (inclusive)
        quantity_per_month: Units consumed in a full month
        price_per_month: Price per unit per month

    Returns:
        FractionationResult with the exact month quantity and fragments

    Raises:
        InvalidRangeError: If span_start is after span_end
    """
    if span_start > span_end:
        raise InvalidRangeError(span_start, span_end)

    fragments: list[MonthFragment] = []
    quantity_months = Fraction(0)
    cursor = span_start

    while cursor <= span_end:
        seg_start = max(span_start, first_day_of_month(cursor))
        seg_end = min(span_end, last_day_of_month(cursor))
        fragment = MonthFragment(
            year=cursor.year,
            month=cursor.month,
            active_days=seg_end.day - seg_start.day + 1,
            total_days=days_in_month(cursor.year, cursor.month),
            quantity_per_month=quantity_per_month,
            price_per_month=price_per_month,
        )
        quantity_months += fragment.fraction
        fragments.append(fragment)
        cursor = next_month_start(cursor)

    logger.debug("span_fractionated", extra={
        "span_start": span_start.isoformat(),
        "span_end": span_end.isoformat(),
        "month_count": len(fragments),
        "quantity_months": str(round_quantity(quantity_months)),
    })

    return FractionationResult(
        quantity_months=quantity_months,
        fragments=tuple(fragments),
    )
