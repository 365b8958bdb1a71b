"""
Module: billing_engines.cap
Responsibility:
    Enforce the schedule-wide quantity cap on a single period: convert the
    period's month quantity to units, truncate the units when they would
    push the running total past the cap, and price the result.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The running total is passed in and never stored here.

Invariants enforced:
    - total_billed_so_far + units <= max_quantity after the cap applies.
    - units >= 0; a period that starts with the cap already consumed bills 0.
    - Exact rational arithmetic; no rounding.

Failure modes:
    - None.  Inputs are validated by BillingParameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction

from billing_kernel.domain.values import round_quantity
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.cap")

_ZERO = Fraction(0)


@dataclass(frozen=True)
class CapResult:
    """
    Outcome of applying the cap to one period.

    Attributes:
        quantity_months: Month quantity after the cap
        units: Units billed after the cap
        amount: units x price_per_month
        cap_reached: True if the cap truncated this period
    """

    quantity_months: Fraction
    units: Fraction
    amount: Fraction
    cap_reached: bool


def apply_cap(
    quantity_months: Fraction,
    quantity_per_month: Decimal,
    price_per_month: Decimal,
    total_billed_so_far: Fraction,
    max_quantity: Decimal,
) -> CapResult:
    """
    Cap a period's units so the running total never exceeds max_quantity.

    Pure function.

    Args:
        quantity_months: Uncapped month quantity of the period
        quantity_per_month: Units consumed in a full month
        price_per_month: Price per unit per month
        total_billed_so_far: Units billed by all earlier periods
        max_quantity: Cap on total units

    Returns:
        CapResult with the (possibly truncated) quantity, units and amount
    """
    qpm = Fraction(quantity_per_month)
    cap = Fraction(max_quantity)
    units = quantity_months * qpm
    cap_reached = False

    if total_billed_so_far + units > cap:
        remaining = max(_ZERO, cap - total_billed_so_far)
        logger.warning("cap_applied", extra={
            "requested_units": str(round_quantity(units)),
            "remaining_units": str(round_quantity(remaining)),
            "total_billed_so_far": str(round_quantity(total_billed_so_far)),
            "max_quantity": str(max_quantity),
        })
        units = remaining
        quantity_months = units / qpm
        cap_reached = True

    return CapResult(
        quantity_months=quantity_months,
        units=units,
        amount=units * Fraction(price_per_month),
        cap_reached=cap_reached,
    )
