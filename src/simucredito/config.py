"""Application-wide constants and configuration defaults.

All tuneable defaults live here so there is a single place to adjust them.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Context, Decimal

from .exceptions import InvalidInputError

# ── Numeric convenience ───────────────────────────────────────────────────────

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")  # percentages reported with 4 decimals

# decimal128: 34 significant digits, enough for 360 compounding periods
MATH_CONTEXT = Context(prec=34, rounding=ROUND_HALF_EVEN)

# ── Financial calendar (360-day year) ─────────────────────────────────────────

DAYS_IN_YEAR = 360
DAYS_IN_MONTH = 30
MONTHS_IN_YEAR = 12

# ── Loan limits ───────────────────────────────────────────────────────────────

MAX_GRACE_MONTHS: int = 24
MIN_TERM_YEARS: int = 1
MAX_TERM_YEARS: int = 30

# Flat fee charged per period when the statement is mailed on paper
PHYSICAL_STATEMENT_FEE = Decimal("10.00")

# ── IRR solver ────────────────────────────────────────────────────────────────

IRR_INITIAL_GUESS = Decimal("0.01")
IRR_MAX_ITERATIONS: int = 100
IRR_TOLERANCE = Decimal("0.0001")

# ── Pre-qualification ─────────────────────────────────────────────────────────

BFH_MAX_MONTHLY_INCOME_KEY = "BFH_MAX_MONTHLY_INCOME"
DEFAULT_BFH_MAX_MONTHLY_INCOME = Decimal("3715")
MIN_INCOME_FOR_CREDIT = Decimal("1500")
SENIOR_AGE: int = 60

# ── Exchange rate ─────────────────────────────────────────────────────────────

EXCHANGE_RATE_USD_PEN_KEY = "EXCHANGE_RATE_USD_PEN"
DEFAULT_HTTP_TIMEOUT: float = 10.0

SUPPORTED_CURRENCIES: frozenset[str] = frozenset({"PEN", "USD"})


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the command-line front end."""

    log_level: str = "WARNING"
    log_format: str = "standard"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        raw_timeout = os.getenv("SIMUCREDITO_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))
        try:
            http_timeout = float(raw_timeout)
        except ValueError:
            raise InvalidInputError(
                f"SIMUCREDITO_HTTP_TIMEOUT must be a number of seconds (got {raw_timeout!r})"
            ) from None
        return cls(
            log_level=os.getenv("SIMUCREDITO_LOG_LEVEL", "WARNING"),
            log_format=os.getenv("SIMUCREDITO_LOG_FORMAT", "standard"),
            http_timeout=http_timeout,
        )
