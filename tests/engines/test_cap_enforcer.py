"""
Tests for quantity cap enforcement (billing_engines.cap).
"""

from decimal import Decimal
from fractions import Fraction

from billing_engines.cap import CapResult, apply_cap

QPM = Decimal("5")
PRICE = Decimal("10")
CAP = Decimal("10")


class TestUnderCap:
    """Periods that fit under the cap are billed in full."""

    def test_full_period(self):
        result = apply_cap(Fraction(1), QPM, PRICE, Fraction(0), CAP)
        assert result == CapResult(
            quantity_months=Fraction(1),
            units=Fraction(5),
            amount=Fraction(50),
            cap_reached=False,
        )

    def test_exactly_reaching_cap_is_not_truncation(self):
        result = apply_cap(Fraction(1), QPM, PRICE, Fraction(5), CAP)
        assert result.units == 5
        assert result.cap_reached is False

    def test_fractional_quantity(self):
        result = apply_cap(Fraction(33, 62), QPM, PRICE, Fraction(0), CAP)
        assert result.units == Fraction(165, 62)
        assert result.amount == Fraction(1650, 62)


class TestOverCap:
    """The period crossing the cap is truncated to the remaining units."""

    def test_truncates_to_remaining(self):
        already = Fraction(165, 62)
        result = apply_cap(Fraction(2791, 930), QPM, PRICE, already, CAP)
        assert result.cap_reached is True
        assert result.units == 10 - already
        assert result.quantity_months == (10 - already) / 5
        assert result.amount == (10 - already) * 10
        assert already + result.units == CAP

    def test_first_period_over_cap(self):
        result = apply_cap(Fraction(3), QPM, PRICE, Fraction(0), Decimal("1"))
        assert result.units == 1
        assert result.quantity_months == Fraction(1, 5)
        assert result.amount == 10

    def test_cap_already_consumed_bills_zero(self):
        result = apply_cap(Fraction(1), QPM, PRICE, Fraction(10), CAP)
        assert result.cap_reached is True
        assert result.units == 0
        assert result.quantity_months == 0
        assert result.amount == 0

    def test_overshoot_never_goes_negative(self):
        result = apply_cap(Fraction(1), QPM, PRICE, Fraction(12), CAP)
        assert result.units == 0

    def test_decimal_cap_and_quantity(self):
        result = apply_cap(
            Fraction(1), Decimal("0.3"), Decimal("2.5"), Fraction(0), Decimal("0.1")
        )
        assert result.units == Fraction(1, 10)
        assert result.quantity_months == Fraction(1, 3)
        assert result.amount == Fraction(1, 4)

    def test_logs_warning_when_applied(self, caplog):
        with caplog.at_level("WARNING", logger="billing_kernel.engines.cap"):
            apply_cap(Fraction(3), QPM, PRICE, Fraction(0), CAP)
        records = [r for r in caplog.records if r.getMessage() == "cap_applied"]
        assert len(records) == 1
        assert records[0].remaining_units == "10.0000"
