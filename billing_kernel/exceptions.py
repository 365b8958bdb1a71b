"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the schedule engine (CLI, HTTP handlers, batch jobs) must be able
to tell "the request was wrong" apart from "the engine has a bug" without
parsing message strings.

Every exception in this module:
  1. Is a TYPED class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (the offending field, value or dates)

Example:
    try:
        schedule = generate_schedule(params)
    except InvalidParameterError as e:
        api_response(code=e.code, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingError (base)
    |
    +-- InvalidRangeError
    +-- InvalidParameterError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code               | When Raised
-------------------|-----------------------------------------------------------
INVALID_RANGE      | start after end, or a computed sub-span is inverted /
                   | yields a month fraction outside (0, 1]
INVALID_PARAMETER  | anchor day outside 1..28, non-positive price, quantity
                   | or cap, unknown cycle, unparseable date or number
"""

from __future__ import annotations

from datetime import date
from typing import Any


class BillingError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "BILLING_ERROR"


class InvalidRangeError(BillingError):
    """
    A date range is inverted.

    Raised at entry when ``start > end``.  Raised from inside the engines
    only when date arithmetic produced an impossible span, which is a
    defect rather than a caller error.
    """

    code: str = "INVALID_RANGE"

    def __init__(self, start: date, end: date, reason: str | None = None):
        self.start = start
        self.end = end
        self.reason = reason
        message = f"Invalid date range: {start} .. {end}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidParameterError(BillingError):
    """A billing parameter failed validation."""

    code: str = "INVALID_PARAMETER"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")
