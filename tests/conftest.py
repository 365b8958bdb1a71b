"""
Pytest fixtures for the billing schedule test suite.

Provides:
- Canonical billing parameter sets (the quarterly reference subscription)
- A factory for parameter variations
- Logging isolation between tests
"""

from datetime import date
from decimal import Decimal

import pytest

from billing_engines.cycles import BillingCycle
from billing_engines.parameters import BillingParameters
from billing_kernel.logging_config import LogContext, reset_logging


def make_params(**overrides) -> BillingParameters:
    """Quarterly reference subscription with selected fields replaced."""
    values = {
        "start": date(2025, 2, 15),
        "cycle_anchor_day": 2,
        "end": date(2025, 12, 31),
        "cycle": BillingCycle.QUARTERLY,
        "price_per_month": Decimal("10"),
        "quantity_per_month": Decimal("5"),
        "max_quantity": Decimal("5000000"),
    }
    values.update(overrides)
    return BillingParameters(**values)


@pytest.fixture
def params_factory():
    """Build BillingParameters from the reference values plus overrides."""
    return make_params


@pytest.fixture
def quarterly_params() -> BillingParameters:
    """2025-02-15 .. 2025-12-31, quarterly on the 2nd, 10 per unit, 5 units/month."""
    return make_params()


@pytest.fixture
def capped_params() -> BillingParameters:
    """Reference subscription with a cap of 10 units."""
    return make_params(max_quantity=Decimal("10"))


@pytest.fixture(autouse=True)
def _isolated_logging():
    """Each test starts with unconfigured logging and an empty context."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
