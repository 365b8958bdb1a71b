"""
Module: billing_engines.parameters
Responsibility:
    The validated, immutable input of schedule generation, and the
    coercion of loosely typed caller input (YAML, CLI flags, JSON bodies)
    into it.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - start <= end.
    - 1 <= cycle_anchor_day <= 28, so the anchor exists in every month.
    - price_per_month, quantity_per_month and max_quantity are positive,
      finite Decimals.
    - All validation happens here, once; engines trust their input.

Failure modes:
    - InvalidParameterError for a bad field (type, range, unknown cycle,
      missing or unexpected key in ``from_mapping``).
    - InvalidRangeError when start is after end.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from billing_engines.cycles import BillingCycle
from billing_kernel.domain.dates import to_date
from billing_kernel.domain.values import to_decimal
from billing_kernel.exceptions import InvalidParameterError, InvalidRangeError

MIN_ANCHOR_DAY = 1
MAX_ANCHOR_DAY = 28


def coerce_cycle(value: Any) -> BillingCycle:
    """Accept the enum, its value, its member name, or its month count."""
    if isinstance(value, BillingCycle):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return BillingCycle.from_months(value)
        except ValueError as exc:
            raise InvalidParameterError("cycle", value, str(exc)) from exc
    if isinstance(value, str):
        key = value.strip()
        try:
            return BillingCycle(key.lower())
        except ValueError:
            pass
        try:
            return BillingCycle[key.upper().replace("-", "_")]
        except KeyError:
            pass
    allowed = ", ".join(c.value for c in BillingCycle)
    raise InvalidParameterError("cycle", value, f"expected one of: {allowed}")


def _coerce_anchor_day(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidParameterError("cycle_anchor_day", value, "expected an integer")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as exc:
            raise InvalidParameterError(
                "cycle_anchor_day", value, "expected an integer"
            ) from exc
    if not isinstance(value, int):
        raise InvalidParameterError("cycle_anchor_day", value, "expected an integer")
    return value


@dataclass(frozen=True)
class BillingParameters:
    """
    Immutable input for schedule generation.

    Attributes:
        start: First billable day
        cycle_anchor_day: Day of month every cycle starts on (1..28)
        end: Last billable day (inclusive)
        cycle: Billing frequency
        price_per_month: Price per unit per month
        quantity_per_month: Units consumed in a full month
        max_quantity: Cap on total units billed over the whole schedule
    """

    start: date
    cycle_anchor_day: int
    end: date
    cycle: BillingCycle
    price_per_month: Decimal
    quantity_per_month: Decimal
    max_quantity: Decimal

    def __post_init__(self) -> None:
        for attr in ("start", "end"):
            val = getattr(self, attr)
            if not isinstance(val, date):
                raise InvalidParameterError(attr, val, "expected a date")
            if isinstance(val, datetime):
                object.__setattr__(self, attr, val.date())
        if not isinstance(self.cycle, BillingCycle):
            raise InvalidParameterError("cycle", self.cycle, "expected a BillingCycle")
        if (
            isinstance(self.cycle_anchor_day, bool)
            or not isinstance(self.cycle_anchor_day, int)
            or not MIN_ANCHOR_DAY <= self.cycle_anchor_day <= MAX_ANCHOR_DAY
        ):
            raise InvalidParameterError(
                "cycle_anchor_day",
                self.cycle_anchor_day,
                f"must be an integer between {MIN_ANCHOR_DAY} and {MAX_ANCHOR_DAY}",
            )
        for attr in ("price_per_month", "quantity_per_month", "max_quantity"):
            val = getattr(self, attr)
            if not isinstance(val, Decimal) or not val.is_finite():
                raise InvalidParameterError(attr, val, "expected a finite Decimal")
            if val <= 0:
                raise InvalidParameterError(attr, val, "must be positive")
        if self.start > self.end:
            raise InvalidRangeError(self.start, self.end, reason="start is after end")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BillingParameters":
        """
        Build parameters from loosely typed input.

        Dates may be ``date``/``datetime``/ISO strings, numbers may be
        Decimal/int/float/str, and the cycle may be given by value, name
        or month count.
        """
        expected = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - expected)
        if unknown:
            raise InvalidParameterError(unknown[0], data[unknown[0]], "unexpected key")
        missing = sorted(expected - set(data))
        if missing:
            raise InvalidParameterError(missing[0], None, "required key is missing")

        return cls(
            start=to_date(data["start"], "start"),
            cycle_anchor_day=_coerce_anchor_day(data["cycle_anchor_day"]),
            end=to_date(data["end"], "end"),
            cycle=coerce_cycle(data["cycle"]),
            price_per_month=to_decimal(data["price_per_month"], "price_per_month"),
            quantity_per_month=to_decimal(data["quantity_per_month"], "quantity_per_month"),
            max_quantity=to_decimal(data["max_quantity"], "max_quantity"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain representation (dates as ISO strings, numbers as str)."""
        return {
            "start": self.start.isoformat(),
            "cycle_anchor_day": self.cycle_anchor_day,
            "end": self.end.isoformat(),
            "cycle": self.cycle.value,
            "price_per_month": str(self.price_per_month),
            "quantity_per_month": str(self.quantity_per_month),
            "max_quantity": str(self.max_quantity),
        }
