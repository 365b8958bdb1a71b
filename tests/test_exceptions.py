"""Tests for the typed exception hierarchy (billing_kernel/exceptions.py)."""

from datetime import date

import pytest

from billing_kernel.exceptions import (
    BillingError,
    InvalidParameterError,
    InvalidRangeError,
)


class TestHierarchy:
    """Every error is a BillingError with its own code."""

    @pytest.mark.parametrize("cls,code", [
        (BillingError, "BILLING_ERROR"),
        (InvalidRangeError, "INVALID_RANGE"),
        (InvalidParameterError, "INVALID_PARAMETER"),
    ])
    def test_codes(self, cls, code):
        assert cls.code == code
        assert issubclass(cls, BillingError)


class TestInvalidRangeError:

    def test_fields_and_message(self):
        err = InvalidRangeError(date(2025, 3, 2), date(2025, 3, 1), "start is after end")
        assert err.start == date(2025, 3, 2)
        assert err.end == date(2025, 3, 1)
        assert str(err) == "Invalid date range: 2025-03-02 .. 2025-03-01 (start is after end)"

    def test_reason_optional(self):
        err = InvalidRangeError(date(2025, 3, 2), date(2025, 3, 1))
        assert err.reason is None
        assert str(err) == "Invalid date range: 2025-03-02 .. 2025-03-01"


class TestInvalidParameterError:

    def test_fields_and_message(self):
        err = InvalidParameterError("cycle_anchor_day", 31, "must be between 1 and 28")
        assert err.field == "cycle_anchor_day"
        assert err.value == 31
        assert str(err) == "Invalid cycle_anchor_day=31: must be between 1 and 28"

    def test_caught_as_base(self):
        with pytest.raises(BillingError):
            raise InvalidParameterError("cycle", "yearly", "unknown billing cycle")
