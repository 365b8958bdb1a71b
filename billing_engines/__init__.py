"""
Module: billing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    billing schedule engines.  This is the canonical import surface for
    outer layers (billing_config, scripts).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel (and sibling engine modules).

Invariants enforced:
    - Purity: engines NEVER call ``date.today()``; every date is an
      explicit parameter.
    - Exact arithmetic: quantities accumulate as ``Fraction``; floats are
      never used for amounts.  Rounding happens only when a result is
      serialized.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from billing_engines import BillingParameters, generate_schedule

    params = BillingParameters.from_mapping({
        "start": "2025-02-15",
        "cycle_anchor_day": 2,
        "end": "2025-12-31",
        "cycle": "quarterly",
        "price_per_month": "10",
        "quantity_per_month": "5",
        "max_quantity": "5000000",
    })
    schedule = generate_schedule(params)
    print(schedule.to_json())
"""

from billing_engines.cap import CapResult, apply_cap
from billing_engines.cycles import (
    BillingCycle,
    first_anchor,
    first_period_bounds,
    iter_cycle_bounds,
)
from billing_engines.parameters import BillingParameters, coerce_cycle
from billing_engines.proration import (
    FractionationResult,
    MonthFragment,
    fractionate,
)
from billing_engines.schedule import (
    BillingPeriod,
    BillingSchedule,
    GenerationPhase,
    ScheduleState,
    build_period,
    generate_schedule,
)

__all__ = [
    "BillingCycle",
    "BillingParameters",
    "BillingPeriod",
    "BillingSchedule",
    "CapResult",
    "FractionationResult",
    "GenerationPhase",
    "MonthFragment",
    "ScheduleState",
    "apply_cap",
    "build_period",
    "coerce_cycle",
    "first_anchor",
    "first_period_bounds",
    "fractionate",
    "generate_schedule",
    "iter_cycle_bounds",
]
