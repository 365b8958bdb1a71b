"""
Module: billing_engines.cycles
Responsibility:
    Determine billing period boundaries: a first, possibly partial, period
    that runs up to the day before the first cycle anchor, followed by
    fixed-length cycles that each start on the anchor day.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel.

Invariants enforced:
    - The first anchor is strictly after the billing start, so the first
      period always covers at least one day.
    - Cycle starts strictly advance by ``cycle.months`` months; the
      sequence always terminates.
    - No period end (first period included) is later than the billing end.

Failure modes:
    - None for validated BillingParameters.  ``add_months`` raises
      ValueError only for anchor days above 28, which parameter
      validation rejects.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from billing_kernel.domain.dates import ONE_DAY, add_months
from billing_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from billing_engines.parameters import BillingParameters

logger = get_logger("engines.cycles")

PeriodBounds = tuple[date, date]


class BillingCycle(str, Enum):
    """Recurring billing frequency."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"

    @property
    def months(self) -> int:
        """Calendar months covered by one cycle."""
        return _CYCLE_MONTHS[self]

    @classmethod
    def from_months(cls, months: int) -> "BillingCycle":
        for cycle, count in _CYCLE_MONTHS.items():
            if count == months:
                return cycle
        raise ValueError(f"No billing cycle spans {months} months")


_CYCLE_MONTHS: dict[BillingCycle, int] = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.HALF_YEARLY: 6,
}


def first_anchor(params: BillingParameters) -> date:
    """
    First cycle anchor strictly after the billing start.

    The anchor day in the start month, pushed one month forward when it
    falls on or before the start date.
    """
    anchor = params.start.replace(day=params.cycle_anchor_day)
    if anchor <= params.start:
        anchor = add_months(anchor, 1)
    return anchor


def first_period_bounds(params: BillingParameters) -> PeriodBounds:
    """Billing start up to the day before the first anchor, truncated to the billing end."""
    anchor = first_anchor(params)
    bounds = (params.start, min(anchor - ONE_DAY, params.end))
    logger.debug("first_period_bounds", extra={
        "period_start": bounds[0].isoformat(),
        "period_end": bounds[1].isoformat(),
        "first_anchor": anchor.isoformat(),
    })
    return bounds


def iter_cycle_bounds(params: BillingParameters) -> Iterator[PeriodBounds]:
    """
    Lazily yield ``(cycle_start, cycle_end)`` for every cycle after the first period.

    Each cycle starts on an anchor date and ends the day before the next
    anchor, truncated to the billing end.  Stops once a cycle start passes
    the billing end; consumers may stop earlier (cap reached).
    """
    cycle_start = first_anchor(params)
    while cycle_start <= params.end:
        next_anchor = add_months(cycle_start, params.cycle.months)
        cycle_end = min(next_anchor - ONE_DAY, params.end)
        yield cycle_start, cycle_end
        cycle_start = next_anchor
