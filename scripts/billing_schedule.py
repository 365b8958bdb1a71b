#!/usr/bin/env python3
"""
Print a prorated billing schedule.

Parameters come from a YAML file (--config), from flags, or both (flags
win).  Output is a human-readable period-by-period report, or the JSON
records with --json.

Usage:
    python3 scripts/billing_schedule.py --config billing_config/sets/quarterly.yaml
    python3 scripts/billing_schedule.py --start 2025-02-15 --anchor-day 2 \\
        --end 2025-12-31 --cycle quarterly --price 10 --quantity 5 \\
        --max-quantity 5000000 --json
"""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import nullcontext
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from billing_config import compute_checksum, load_parameters  # noqa: E402
from billing_engines import (  # noqa: E402
    BillingCycle,
    BillingParameters,
    BillingPeriod,
    BillingSchedule,
    generate_schedule,
)
from billing_kernel.domain.values import round_currency, round_quantity  # noqa: E402
from billing_kernel.exceptions import BillingError  # noqa: E402
from billing_kernel.logging_config import (  # noqa: E402
    LogContext,
    configure_logging,
    quiet_logging,
)

W = 60

EXIT_OK = 0
EXIT_INVALID_INPUT = 2

# Log records of one run carry this prefix of the parameter checksum.
SCHEDULE_ID_LEN = 16


# =============================================================================
# Formatting helpers
# =============================================================================


def _day(d) -> str:
    return d.strftime("%a %b %d %Y")


def _qty(value) -> str:
    return f"{round_quantity(value)}"


def format_period(period: BillingPeriod, params: BillingParameters) -> str:
    """Human-readable block for one billing period."""
    qpm = params.quantity_per_month
    price = params.price_per_month
    lines = [
        f"Billing Period: {_day(period.period_start)} -> {_day(period.period_end)}",
        f"  Quantity (months) = {_qty(period.quantity_months)}",
        f"  Units billed      = {_qty(period.units_billed)}",
        f"  Amount            = {round_currency(period.amount)}",
    ]
    if period.cap_truncated:
        lines.append(
            f"  Capped at max quantity (uncapped months = "
            f"{_qty(period.uncapped_quantity_months)})"
        )
    lines.append("  Month-wise Breakdown:")
    for fragment in period.breakdown:
        lines.append(
            f"    - {fragment.label}: {fragment.active_days}/{fragment.total_days} days"
            f" -> {_qty(fragment.fraction)} x {qpm} units"
            f" = {_qty(fragment.partial_units)} units x {price}"
            f" = {round_currency(fragment.partial_amount)}"
        )
    lines.append("-" * W)
    return "\n".join(lines)


def format_schedule(schedule: BillingSchedule) -> str:
    """All period blocks followed by a totals footer."""
    params = schedule.parameters
    blocks = [format_period(p, params) for p in schedule.periods]
    footer = [
        "=" * W,
        f"  Periods:            {len(schedule)}",
        f"  Total units billed: {_qty(schedule.total_units_billed)}",
        f"  Total amount:       {round_currency(schedule.total_amount)}",
    ]
    if schedule.cap_reached:
        footer.append(f"  Max quantity {params.max_quantity} reached")
    footer.append("=" * W)
    return "\n".join(blocks + footer)


# =============================================================================
# CLI
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a prorated billing schedule.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/billing_schedule.py --config billing_config/sets/quarterly.yaml\n"
            "  python3 scripts/billing_schedule.py --config billing_config/sets/quarterly.yaml"
            " --max-quantity 10 --json\n"
        ),
    )
    parser.add_argument("--config", type=Path, help="YAML file with billing parameters")
    parser.add_argument("--start", type=str, help="First billable day (YYYY-MM-DD)")
    parser.add_argument(
        "--anchor-day", dest="cycle_anchor_day", type=int,
        help="Day of month each cycle starts on (1-28)",
    )
    parser.add_argument("--end", type=str, help="Last billable day (YYYY-MM-DD)")
    parser.add_argument(
        "--cycle", type=str, choices=[c.value for c in BillingCycle],
        help="Billing frequency",
    )
    parser.add_argument(
        "--price", dest="price_per_month", type=str,
        help="Price per unit per month",
    )
    parser.add_argument(
        "--quantity", dest="quantity_per_month", type=str,
        help="Units consumed in a full month",
    )
    parser.add_argument(
        "--max-quantity", dest="max_quantity", type=str,
        help="Cap on total units billed",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Output JSON records instead of formatted text",
    )
    parser.add_argument(
        "--partial-units", action="store_true",
        help="Include partial_units in each JSON breakdown entry",
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Emit structured JSON logs on stderr at this level",
    )
    parser.add_argument(
        "--correlation-id", type=str, default=None,
        help="Identifier attached to every log record of this run",
    )
    return parser


_PARAM_KEYS = (
    "start",
    "cycle_anchor_day",
    "end",
    "cycle",
    "price_per_month",
    "quantity_per_month",
    "max_quantity",
)


def resolve_parameters(args: argparse.Namespace) -> BillingParameters:
    """Combine the YAML file (if any) with flag overrides."""
    overrides = {key: getattr(args, key) for key in _PARAM_KEYS}
    if args.config is not None:
        return load_parameters(args.config, overrides=overrides)
    return BillingParameters.from_mapping(
        {k: v for k, v in overrides.items() if v is not None}
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.log_level:
        configure_logging(level=getattr(logging, args.log_level))
        logs = nullcontext()
    else:
        logs = quiet_logging()

    with logs, LogContext.bind(correlation_id=args.correlation_id):
        try:
            params = resolve_parameters(args)
            with LogContext.bind(schedule_id=compute_checksum(params)[:SCHEDULE_ID_LEN]):
                schedule = generate_schedule(params)
        except BillingError as exc:
            print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
            return EXIT_INVALID_INPUT
        except (FileNotFoundError, yaml.YAMLError) as exc:
            print(f"  ERROR: {exc}", file=sys.stderr)
            return EXIT_INVALID_INPUT

    if args.json:
        print(schedule.to_json(include_partial_units=args.partial_units))
    else:
        print(format_schedule(schedule))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
