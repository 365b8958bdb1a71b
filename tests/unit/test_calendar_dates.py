"""Tests for calendar helpers (billing_kernel.domain.dates)."""

from datetime import date, datetime

import pytest

from billing_kernel.domain.dates import (
    add_months,
    days_in_month,
    first_day_of_month,
    inclusive_days,
    last_day_of_month,
    month_label,
    next_month_start,
    to_date,
)
from billing_kernel.exceptions import InvalidParameterError


class TestToDate:
    """Date-likes are normalized to calendar dates."""

    def test_date_passthrough(self):
        d = date(2025, 2, 15)
        assert to_date(d) is d

    def test_datetime_drops_time(self):
        assert to_date(datetime(2025, 2, 15, 23, 59)) == date(2025, 2, 15)

    @pytest.mark.parametrize("text", ["2025-02-15", "20250215", " 2025-02-15 "])
    def test_strings(self, text):
        assert to_date(text) == date(2025, 2, 15)

    def test_bad_string_names_field(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            to_date("Feb 15", "start")
        assert exc_info.value.field == "start"

    def test_bad_type(self):
        with pytest.raises(InvalidParameterError, match="int"):
            to_date(20250215)


class TestMonthArithmetic:
    """Month lengths and stepping."""

    @pytest.mark.parametrize("year,month,days", [
        (2025, 2, 28), (2024, 2, 29), (2000, 2, 29), (1900, 2, 28),
        (2025, 4, 30), (2025, 12, 31),
    ])
    def test_days_in_month(self, year, month, days):
        assert days_in_month(year, month) == days

    def test_first_and_last_day(self):
        d = date(2024, 2, 10)
        assert first_day_of_month(d) == date(2024, 2, 1)
        assert last_day_of_month(d) == date(2024, 2, 29)

    def test_next_month_start_wraps_year(self):
        assert next_month_start(date(2025, 12, 31)) == date(2026, 1, 1)
        assert next_month_start(date(2025, 1, 31)) == date(2025, 2, 1)

    @pytest.mark.parametrize("start,months,expected", [
        (date(2025, 3, 2), 3, date(2025, 6, 2)),
        (date(2025, 11, 28), 3, date(2026, 2, 28)),
        (date(2025, 7, 15), 6, date(2026, 1, 15)),
        (date(2025, 1, 2), -1, date(2024, 12, 2)),
        (date(2025, 1, 2), 24, date(2027, 1, 2)),
    ])
    def test_add_months(self, start, months, expected):
        assert add_months(start, months) == expected

    def test_add_months_rejects_missing_day(self):
        with pytest.raises(ValueError):
            add_months(date(2025, 1, 31), 1)

    def test_month_label(self):
        assert month_label(2025, 2) == "Feb 2025"
        assert month_label(2026, 12) == "Dec 2026"

    def test_inclusive_days(self):
        assert inclusive_days(date(2025, 3, 15), date(2025, 3, 15)) == 1
        assert inclusive_days(date(2025, 2, 15), date(2025, 3, 1)) == 15
