"""Rate conversion to the monthly effective rate (TEM).

Rates are quoted as percentages (e.g. 10 for 10%) and converted on a
360-day financial year. Fractional powers use the decimal power function in a
34-digit context; binary floating point is never involved.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Optional, Union

from .config import (
    DAYS_IN_MONTH, DAYS_IN_YEAR, HUNDRED, MATH_CONTEXT, MONTHS_IN_YEAR, ONE, ZERO,
)
from .exceptions import InvalidInputError, InvalidRateKindError


class RateKind(str, Enum):
    EFFECTIVE = "TE"
    NOMINAL = "TN"


class Period(str, Enum):
    DAILY = "daily"
    SEMINAL = "seminal"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    BI_MONTHLY = "bi-monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi-annually"
    ANNUAL = "annual"


# period → (days in period, capitalizations per year)
_PERIOD_TABLE: dict[Period, tuple[int, int]] = {
    Period.DAILY: (1, 360),
    Period.SEMINAL: (15, 24),
    Period.BI_WEEKLY: (15, 24),
    Period.MONTHLY: (30, 12),
    Period.BI_MONTHLY: (60, 6),
    Period.QUARTERLY: (90, 4),
    Period.SEMI_ANNUALLY: (180, 2),
    Period.ANNUAL: (360, 1),
}

PeriodLike = Union[Period, str]


def _lookup(period: Optional[PeriodLike]) -> tuple[int, int]:
    if isinstance(period, Period):
        return _PERIOD_TABLE[period]
    try:
        return _PERIOD_TABLE[Period(str(period).lower())]
    except ValueError:
        # Unknown names fall back to monthly
        return _PERIOD_TABLE[Period.MONTHLY]


def days_in_period(period: Optional[PeriodLike]) -> int:
    """Length of *period* in days of a 360-day year (monthly when unknown)."""
    return _lookup(period)[0]


def capitalizations_per_year(period: Optional[PeriodLike]) -> int:
    """How many times per 360-day year interest capitalizes (12 when unknown or None)."""
    return _lookup(period)[1]


def _coerce_kind(kind: Union[RateKind, str]) -> RateKind:
    if isinstance(kind, RateKind):
        return kind
    try:
        return RateKind(str(kind).upper())
    except ValueError:
        raise InvalidRateKindError(f"Invalid rate type: {kind!r} (expected 'TE' or 'TN')") from None


def _coerce_period(value: PeriodLike, name: str) -> Period:
    if isinstance(value, Period):
        return value
    try:
        return Period(str(value).lower())
    except ValueError:
        valid = ", ".join(p.value for p in Period)
        raise InvalidInputError(f"Invalid {name} {value!r}. Valid values: {valid}") from None


@dataclass(frozen=True)
class RateSpec:
    """A quoted interest rate.

    ``rate`` is a percentage. ``capitalization`` only matters for nominal
    rates; a nominal rate without one capitalizes monthly.
    """
    rate: Decimal
    kind: RateKind = RateKind.EFFECTIVE
    period: Period = Period.ANNUAL
    capitalization: Optional[Period] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "rate", Decimal(self.rate))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidInputError(f"rate must be a number (got {self.rate!r})") from None
        object.__setattr__(self, "kind", _coerce_kind(self.kind))
        object.__setattr__(self, "period", _coerce_period(self.period, "period"))
        if self.capitalization is not None:
            object.__setattr__(
                self, "capitalization", _coerce_period(self.capitalization, "capitalization period")
            )
        if self.rate < ZERO:
            raise InvalidInputError(f"rate must be >= 0 (got {self.rate})")


def to_monthly_effective_rate(spec: RateSpec) -> Decimal:
    """Convert *spec* to the monthly effective rate (TEM) as a fraction.

    Effective:  TEM = (1 + TEP)^(30 / days(period)) - 1
    Nominal:    j = TNP * 360 / days(period);  TEM = (1 + j/m)^(m/12) - 1
    """
    kind = _coerce_kind(spec.kind)

    with localcontext(MATH_CONTEXT):
        rate = spec.rate / HUNDRED
        days = Decimal(days_in_period(spec.period))

        if kind is RateKind.EFFECTIVE:
            exponent = Decimal(DAYS_IN_MONTH) / days
            return (ONE + rate) ** exponent - ONE

        annual_nominal = rate * (Decimal(DAYS_IN_YEAR) / days)
        m = Decimal(capitalizations_per_year(spec.capitalization))
        exponent = m / Decimal(MONTHS_IN_YEAR)
        return (ONE + annual_nominal / m) ** exponent - ONE


def annual_effective_rate(monthly_rate: Decimal) -> Decimal:
    """Annual effective rate, as a percentage, equivalent to a monthly fraction."""
    with localcontext(MATH_CONTEXT):
        return ((ONE + monthly_rate) ** MONTHS_IN_YEAR - ONE) * HUNDRED
