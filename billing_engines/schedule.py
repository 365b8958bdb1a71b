"""
Module: billing_engines.schedule
Responsibility:
    Generate the ordered billing schedule for a subscription: build each
    period's boundaries, fractionate it into calendar months, apply the
    schedule-wide quantity cap, and stop once the cap is reached or the
    billing end is passed.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes billing_engines.cycles, billing_engines.proration and
    billing_engines.cap.

Invariants enforced:
    - Periods are emitted in date order and never overlap.
    - The running total of billed units is non-decreasing and never
      exceeds max_quantity.
    - The running total lives in an explicit ScheduleState value that is
      replaced after every period; there is no module-level state.
    - The period that triggers the cap is emitted; nothing after it is.
    - Determinism: identical parameters give identical schedules.

State machine:
    GENERATING_FIRST_PERIOD -> GENERATING_CYCLES -> TERMINATED
    The first period is always built.  Generation moves straight to
    TERMINATED when the first period already reaches the cap.

Failure modes:
    - InvalidRangeError only on a date-arithmetic defect.

Usage:
    from billing_engines.parameters import BillingParameters
    from billing_engines.schedule import generate_schedule

    schedule = generate_schedule(BillingParameters.from_mapping({...}))
    for period in schedule:
        print(period.period_start, period.amount)
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from fractions import Fraction
from typing import Any

import simplejson

from billing_engines.cap import CapResult, apply_cap
from billing_engines.cycles import PeriodBounds, first_period_bounds, iter_cycle_bounds
from billing_engines.parameters import BillingParameters
from billing_engines.proration import MonthFragment, fractionate
from billing_engines.tracer import traced_engine
from billing_kernel.domain.dates import ONE_DAY, inclusive_days
from billing_kernel.domain.values import round_currency, round_quantity
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.schedule")


class GenerationPhase(str, Enum):
    """Schedule generation states."""

    GENERATING_FIRST_PERIOD = "generating_first_period"
    GENERATING_CYCLES = "generating_cycles"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class BillingPeriod:
    """
    One billed period of the schedule.

    Contract:
        Frozen dataclass built from its fragments; never mutated.
    Guarantees:
        - period_start <= period_end.
        - sum(f.active_days for f in breakdown) == day_count.
        - units_billed == quantity_months x quantity_per_month.
        - amount == units_billed x price_per_month.
    """

    period_start: date
    period_end: date
    quantity_months: Fraction
    uncapped_quantity_months: Fraction
    units_billed: Fraction
    amount: Fraction
    prorated: bool
    cap_truncated: bool
    breakdown: tuple[MonthFragment, ...]

    @property
    def day_count(self) -> int:
        return inclusive_days(self.period_start, self.period_end)

    def to_dict(self, include_partial_units: bool = False) -> dict[str, Any]:
        """Output record; rounding is applied here and nowhere else."""
        return {
            "billing_start": self.period_start.isoformat(),
            "billing_end": self.period_end.isoformat(),
            "quantity_months": round_quantity(self.quantity_months),
            "units_billed": round_quantity(self.units_billed),
            "amount": round_currency(self.amount),
            "prorated": self.prorated,
            "breakdown": [
                f.to_dict(include_partial_units=include_partial_units)
                for f in self.breakdown
            ],
        }


@dataclass(frozen=True)
class ScheduleState:
    """Accumulator threaded through generation; replaced, never mutated."""

    phase: GenerationPhase
    total_units_billed: Fraction
    cycle_cursor: date


@dataclass(frozen=True)
class BillingSchedule:
    """
    Complete billing schedule.

    Attributes:
        parameters: The input the schedule was generated from
        periods: Billing periods in date order
        total_units_billed: Sum of units over all periods
        cap_reached: True if generation stopped on the quantity cap
    """

    parameters: BillingParameters
    periods: tuple[BillingPeriod, ...]
    total_units_billed: Fraction
    cap_reached: bool

    def __iter__(self) -> Iterator[BillingPeriod]:
        return iter(self.periods)

    def __len__(self) -> int:
        return len(self.periods)

    @property
    def total_amount(self) -> Fraction:
        return sum((p.amount for p in self.periods), Fraction(0))

    def to_dicts(self, include_partial_units: bool = False) -> list[dict[str, Any]]:
        return [p.to_dict(include_partial_units) for p in self.periods]

    def to_json(self, indent: int | None = 2, include_partial_units: bool = False) -> str:
        """
        JSON array of period records.

        Rounded values are written as JSON numbers carrying the exact
        decimal text (``26.61``, ``15.0000``), never through ``float``.
        """
        return simplejson.dumps(
            self.to_dicts(include_partial_units),
            indent=indent,
            use_decimal=True,
        )


def build_period(
    bounds: PeriodBounds,
    params: BillingParameters,
    total_billed_so_far: Fraction,
) -> tuple[BillingPeriod, CapResult]:
    """
    Fractionate one period and apply the cap to it.

    Pure function.

    Args:
        bounds: (period_start, period_end), inclusive
        params: Validated billing parameters
        total_billed_so_far: Units billed by all earlier periods

    Returns:
        Tuple of (BillingPeriod, CapResult)
    """
    period_start, period_end = bounds
    split = fractionate(
        period_start,
        period_end,
        params.quantity_per_month,
        params.price_per_month,
    )
    capped = apply_cap(
        split.quantity_months,
        params.quantity_per_month,
        params.price_per_month,
        total_billed_so_far,
        params.max_quantity,
    )
    prorated = capped.cap_reached or split.quantity_months != params.cycle.months

    period = BillingPeriod(
        period_start=period_start,
        period_end=period_end,
        quantity_months=capped.quantity_months,
        uncapped_quantity_months=split.quantity_months,
        units_billed=capped.units,
        amount=capped.amount,
        prorated=prorated,
        cap_truncated=capped.cap_reached,
        breakdown=split.fragments,
    )

    logger.debug("billing_period_built", extra={
        "period_start": period_start.isoformat(),
        "period_end": period_end.isoformat(),
        "quantity_months": str(round_quantity(period.quantity_months)),
        "units_billed": str(round_quantity(period.units_billed)),
        "amount": str(round_currency(period.amount)),
        "prorated": prorated,
        "cap_truncated": capped.cap_reached,
    })

    return period, capped


def _advance(
    state: ScheduleState,
    period: BillingPeriod,
    params: BillingParameters,
    next_phase: GenerationPhase,
) -> ScheduleState:
    """Fold one emitted period into the state and pick the next phase."""
    total = state.total_units_billed + period.units_billed
    phase = next_phase
    if total >= Fraction(params.max_quantity):
        phase = GenerationPhase.TERMINATED
    return replace(
        state,
        phase=phase,
        total_units_billed=total,
        cycle_cursor=period.period_end + ONE_DAY,
    )


@traced_engine("schedule", "1.0", fingerprint_fields=("params",))
def generate_schedule(params: BillingParameters) -> BillingSchedule:
    """
    Generate the billing schedule for ``params``.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        params: Validated billing parameters

    Returns:
        BillingSchedule with every emitted period in date order
    """
    t0 = time.monotonic()
    logger.info("schedule_generation_started", extra={
        "start": params.start.isoformat(),
        "end": params.end.isoformat(),
        "cycle": params.cycle.value,
        "cycle_anchor_day": params.cycle_anchor_day,
        "max_quantity": str(params.max_quantity),
    })

    state = ScheduleState(
        phase=GenerationPhase.GENERATING_FIRST_PERIOD,
        total_units_billed=Fraction(0),
        cycle_cursor=params.start,
    )
    periods: list[BillingPeriod] = []

    first, _ = build_period(first_period_bounds(params), params, state.total_units_billed)
    periods.append(first)
    state = _advance(state, first, params, GenerationPhase.GENERATING_CYCLES)

    if state.phase is GenerationPhase.GENERATING_CYCLES:
        for bounds in iter_cycle_bounds(params):
            period, _ = build_period(bounds, params, state.total_units_billed)
            periods.append(period)
            state = _advance(state, period, params, GenerationPhase.GENERATING_CYCLES)
            if state.phase is GenerationPhase.TERMINATED:
                break
        state = replace(state, phase=GenerationPhase.TERMINATED)

    cap_reached = state.total_units_billed >= Fraction(params.max_quantity)
    schedule = BillingSchedule(
        parameters=params,
        periods=tuple(periods),
        total_units_billed=state.total_units_billed,
        cap_reached=cap_reached,
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("schedule_generation_completed", extra={
        "period_count": len(schedule.periods),
        "total_units_billed": str(round_quantity(schedule.total_units_billed)),
        "total_amount": str(round_currency(schedule.total_amount)),
        "cap_reached": cap_reached,
        "next_cycle_start": state.cycle_cursor.isoformat(),
        "duration_ms": duration_ms,
    })

    return schedule
