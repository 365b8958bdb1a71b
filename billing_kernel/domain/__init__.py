"""Pure domain helpers for the billing kernel (dates, rounding)."""
