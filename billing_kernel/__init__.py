"""
Billing Kernel

Shared foundation for the prorated billing schedule engines:
- Typed, coded exceptions
- Structured JSON logging with request-scoped context
- Calendar helpers and exact-to-Decimal rounding
"""

__version__ = "0.1.0"
