"""
Property-based tests for schedule generation.

Hypothesis generates subscriptions across cycles, anchor days, leap
years, spans of a few days to several years, and caps that are either
out of reach or hit mid-schedule.  Each property must hold for every
generated subscription.

Properties checked:
- Periods tile start .. end (or start .. cap period) without gaps or overlap
- Month fragments cover each period exactly; fractions lie in (0, 1]
- Uncapped periods bill quantity_months x quantity_per_month exactly
- The running total never decreases and never exceeds max_quantity
- Proration is additive: uncapped periods sum to the whole span's months
- Serialization is deterministic
"""

from datetime import date, timedelta
from decimal import Decimal
from fractions import Fraction

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from billing_engines.cycles import BillingCycle
from billing_engines.parameters import BillingParameters
from billing_engines.proration import fractionate
from billing_engines.schedule import generate_schedule
from billing_kernel.domain.dates import ONE_DAY

FUZZ_SETTINGS = settings(
    max_examples=150,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)

amounts = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("1000"), places=2,
)


@composite
def billing_parameters(draw, cap=None):
    start = draw(st.dates(min_value=date(1999, 1, 1), max_value=date(2031, 12, 31)))
    span_days = draw(st.integers(min_value=0, max_value=6 * 366))
    if cap is None:
        cap = draw(st.one_of(
            st.just(Decimal("1000000000")),
            st.decimals(min_value=Decimal("0.01"), max_value=Decimal("500"), places=2),
        ))
    return BillingParameters(
        start=start,
        cycle_anchor_day=draw(st.integers(min_value=1, max_value=28)),
        end=start + timedelta(days=span_days),
        cycle=draw(st.sampled_from(list(BillingCycle))),
        price_per_month=draw(amounts),
        quantity_per_month=draw(amounts),
        max_quantity=cap,
    )


uncapped_parameters = billing_parameters(cap=Decimal("1000000000000"))


# ============================================================================
# Period layout
# ============================================================================


class TestPeriodLayout:

    @given(params=billing_parameters())
    @FUZZ_SETTINGS
    def test_periods_are_contiguous(self, params):
        schedule = generate_schedule(params)
        assert len(schedule) >= 1
        assert schedule.periods[0].period_start == params.start
        for prev, nxt in zip(schedule.periods, schedule.periods[1:]):
            assert nxt.period_start == prev.period_end + ONE_DAY
        for period in schedule:
            assert period.period_start <= period.period_end <= params.end

    @given(params=billing_parameters())
    @FUZZ_SETTINGS
    def test_cycle_periods_start_on_anchor_day(self, params):
        schedule = generate_schedule(params)
        for period in schedule.periods[1:]:
            assert period.period_start.day == params.cycle_anchor_day

    @given(params=uncapped_parameters)
    @FUZZ_SETTINGS
    def test_uncapped_schedule_reaches_end(self, params):
        schedule = generate_schedule(params)
        assert schedule.cap_reached is False
        assert schedule.periods[-1].period_end == params.end


# ============================================================================
# Fragments
# ============================================================================


class TestFragments:

    @given(params=billing_parameters())
    @FUZZ_SETTINGS
    def test_fragments_cover_period(self, params):
        for period in generate_schedule(params):
            assert sum(f.active_days for f in period.breakdown) == period.day_count
            assert period.uncapped_quantity_months == sum(
                f.fraction for f in period.breakdown
            )

    @given(params=billing_parameters())
    @FUZZ_SETTINGS
    def test_fraction_recovers_active_days(self, params):
        for period in generate_schedule(params):
            for frag in period.breakdown:
                assert 0 < frag.fraction <= 1
                assert frag.fraction * frag.total_days == frag.active_days


# ============================================================================
# Quantities and cap
# ============================================================================


class TestQuantities:

    @given(params=billing_parameters())
    @FUZZ_SETTINGS
    def test_uncapped_periods_bill_exact_units(self, params):
        qpm = Fraction(params.quantity_per_month)
        price = Fraction(params.price_per_month)
        for period in generate_schedule(params):
            if not period.cap_truncated:
                assert period.quantity_months == period.uncapped_quantity_months
                assert period.units_billed == period.quantity_months * qpm
            assert period.amount == period.units_billed * price
            assert period.units_billed > 0

    @given(params=billing_parameters())
    @FUZZ_SETTINGS
    def test_running_total_bounded_by_cap(self, params):
        schedule = generate_schedule(params)
        cap = Fraction(params.max_quantity)
        running = Fraction(0)
        for period in schedule:
            running += period.units_billed
            assert running <= cap
        assert running == schedule.total_units_billed
        if schedule.cap_reached:
            assert running == cap
        assert sum(p.cap_truncated for p in schedule) <= 1

    @given(params=uncapped_parameters)
    @FUZZ_SETTINGS
    def test_proration_is_additive_across_periods(self, params):
        schedule = generate_schedule(params)
        whole = fractionate(
            params.start, params.end, params.quantity_per_month, params.price_per_month,
        )
        assert sum(p.quantity_months for p in schedule) == whole.quantity_months


# ============================================================================
# Determinism
# ============================================================================


class TestDeterminism:

    @given(params=billing_parameters())
    @FUZZ_SETTINGS
    def test_json_is_byte_identical(self, params):
        assert generate_schedule(params).to_json() == generate_schedule(params).to_json()
