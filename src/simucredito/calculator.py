"""Core financial calculation functions — French-method annuity and schedule.

All monetary values use decimal.Decimal — float is forbidden.
Rounding: ROUND_HALF_UP to 2 decimal places for every amount written to a
schedule row, full precision (34 digits) for intermediate steps.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum

from .config import (
    CENT, MATH_CONTEXT, MAX_GRACE_MONTHS, MONTHS_IN_YEAR, ONE, PHYSICAL_STATEMENT_FEE, ZERO,
)
from .exceptions import InvalidInputError
from .rates import RateSpec


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class GraceKind(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    TOTAL = "total"


@dataclass(frozen=True)
class GracePeriod:
    kind: GraceKind = GraceKind.NONE
    months: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.kind, GraceKind):
            try:
                object.__setattr__(self, "kind", GraceKind(str(self.kind).lower()))
            except ValueError:
                raise InvalidInputError(
                    f"Grace period type must be 'none', 'partial' or 'total' (got {self.kind!r})"
                ) from None
        if not isinstance(self.months, int):
            try:
                object.__setattr__(self, "months", int(str(self.months).strip()))
            except ValueError:
                raise InvalidInputError(
                    f"Grace period months must be a whole number (got {self.months!r})"
                ) from None
        if not 0 <= self.months <= MAX_GRACE_MONTHS:
            raise InvalidInputError(
                f"Grace period must be between 0 and {MAX_GRACE_MONTHS} months (got {self.months})"
            )

    @property
    def effective_months(self) -> int:
        """Months actually deferred; a 'none' grace period defers nothing."""
        return 0 if self.kind is GraceKind.NONE else self.months


@dataclass(frozen=True)
class MonthlyCosts:
    commissions: Decimal = ZERO
    administration: Decimal = ZERO
    physical_statement: bool = False

    def __post_init__(self) -> None:
        if self.commissions < ZERO or self.administration < ZERO:
            raise InvalidInputError("Monthly commissions and administration costs cannot be negative")

    @property
    def delivery_fee(self) -> Decimal:
        return PHYSICAL_STATEMENT_FEE if self.physical_statement else ZERO

    @property
    def total(self) -> Decimal:
        return self.commissions + self.administration + self.delivery_fee


@dataclass(frozen=True)
class Insurance:
    life_rate: Decimal = ZERO              # monthly, applied to the outstanding balance
    property_annual_rate: Decimal = ZERO   # annual, applied to the insured value
    property_insured_value: Decimal = ZERO

    def __post_init__(self) -> None:
        if min(self.life_rate, self.property_annual_rate, self.property_insured_value) < ZERO:
            raise InvalidInputError("Insurance rates and insured value cannot be negative")

    @property
    def monthly_property_premium(self) -> Decimal:
        with localcontext(MATH_CONTEXT):
            return _round(self.property_insured_value * self.property_annual_rate / MONTHS_IN_YEAR)


@dataclass(frozen=True)
class LoanTerms:
    principal: Decimal
    rate: RateSpec
    term_months: int
    grace: GracePeriod = field(default_factory=GracePeriod)
    costs: MonthlyCosts = field(default_factory=MonthlyCosts)
    insurance: Insurance = field(default_factory=Insurance)

    def __post_init__(self) -> None:
        if self.principal <= ZERO:
            raise InvalidInputError(f"principal must be > 0 (got {self.principal})")
        if self.term_months <= 0:
            raise InvalidInputError(f"term_months must be > 0 (got {self.term_months})")
        if self.grace.effective_months >= self.term_months:
            raise InvalidInputError(
                f"Grace period ({self.grace.effective_months} months) must be shorter "
                f"than the loan term ({self.term_months} months)"
            )


@dataclass(frozen=True)
class AmortizationRow:
    period: int
    beginning_balance: Decimal
    interest: Decimal
    principal_portion: Decimal
    scheduled_payment: Decimal     # principal + interest only
    life_insurance: Decimal
    property_insurance: Decimal
    fixed_costs: Decimal           # commissions + administration + delivery
    total_payment: Decimal
    ending_balance: Decimal
    cumulative_principal: Decimal
    cumulative_interest: Decimal
    is_grace_period: bool


@dataclass(frozen=True)
class ScheduleTotals:
    interest: Decimal
    principal: Decimal
    life_insurance: Decimal
    property_insurance: Decimal
    commissions: Decimal
    administration: Decimal
    delivery: Decimal
    total_paid: Decimal


def compute_monthly_payment(
    principal: Decimal,
    monthly_rate: Decimal,
    term_months: int,
) -> Decimal:
    """Return the constant French-method installment (principal + interest only).

    Uses the standard annuity formula:
        C = P * r * (1 + r)^n / ((1 + r)^n - 1)

    Special case: if monthly_rate == 0, C = P / n.
    """
    if term_months <= 0:
        raise InvalidInputError("term_months must be > 0")
    if principal <= ZERO:
        raise InvalidInputError("principal must be > 0")
    if monthly_rate < ZERO:
        raise InvalidInputError("monthly_rate must be >= 0")

    with localcontext(MATH_CONTEXT):
        if monthly_rate == ZERO:
            return _round(principal / Decimal(term_months))

        factor = (ONE + monthly_rate) ** term_months
        payment = principal * monthly_rate * factor / (factor - ONE)
        return _round(payment)


def compute_reference_payment(terms: LoanTerms, monthly_rate: Decimal) -> Decimal:
    """Installment due once the grace period is over.

    Under total grace the capitalized interest is amortized too, so the
    annuity is taken on the grown balance over the months left.
    """
    grace_months = terms.grace.effective_months
    balance = terms.principal

    if terms.grace.kind is GraceKind.TOTAL:
        with localcontext(MATH_CONTEXT):
            for _ in range(grace_months):
                balance += _round(balance * monthly_rate)

    return compute_monthly_payment(balance, monthly_rate, terms.term_months - grace_months)


def generate_schedule(
    terms: LoanTerms,
    monthly_rate: Decimal,
    reference_payment: Decimal,
) -> list[AmortizationRow]:
    """Build the full month-by-month schedule, grace periods and add-ons included."""
    grace_months = terms.grace.effective_months
    total_grace = terms.grace.kind is GraceKind.TOTAL
    fixed_costs = terms.costs.total
    property_premium = terms.insurance.monthly_property_premium

    rows: list[AmortizationRow] = []
    balance = terms.principal
    cumulative_principal = ZERO
    cumulative_interest = ZERO

    with localcontext(MATH_CONTEXT):
        for period in range(1, terms.term_months + 1):
            opening = balance
            interest = _round(opening * monthly_rate)
            in_grace = period <= grace_months

            if in_grace and total_grace:
                # Nothing is paid; interest capitalizes
                principal_portion = ZERO
                scheduled = ZERO
                closing = opening + interest
            elif in_grace:
                principal_portion = ZERO
                scheduled = interest
                closing = opening
            else:
                if period == terms.term_months:
                    # The last installment retires whatever balance is left
                    principal_portion = opening
                else:
                    principal_portion = min(reference_payment - interest, opening)
                scheduled = reference_payment
                closing = opening - principal_portion

            life_premium = _round(opening * terms.insurance.life_rate)
            total = scheduled + life_premium + property_premium + fixed_costs

            cumulative_principal += principal_portion
            cumulative_interest += interest

            rows.append(
                AmortizationRow(
                    period=period,
                    beginning_balance=opening,
                    interest=interest,
                    principal_portion=principal_portion,
                    scheduled_payment=scheduled,
                    life_insurance=life_premium,
                    property_insurance=property_premium,
                    fixed_costs=fixed_costs,
                    total_payment=total,
                    ending_balance=closing,
                    cumulative_principal=cumulative_principal,
                    cumulative_interest=cumulative_interest,
                    is_grace_period=in_grace,
                )
            )
            balance = closing

    return rows


def representative_payment(schedule: list[AmortizationRow], terms: LoanTerms) -> Decimal:
    """Total payment of the first regular installment (period grace + 1)."""
    return schedule[terms.grace.effective_months].total_payment


def schedule_totals(schedule: list[AmortizationRow], terms: LoanTerms) -> ScheduleTotals:
    periods = Decimal(len(schedule))
    return ScheduleTotals(
        interest=sum((row.interest for row in schedule), ZERO),
        principal=sum((row.principal_portion for row in schedule), ZERO),
        life_insurance=sum((row.life_insurance for row in schedule), ZERO),
        property_insurance=sum((row.property_insurance for row in schedule), ZERO),
        commissions=terms.costs.commissions * periods,
        administration=terms.costs.administration * periods,
        delivery=terms.costs.delivery_fee * periods,
        total_paid=sum((row.total_payment for row in schedule), ZERO),
    )


def cash_flows(principal: Decimal, schedule: list[AmortizationRow]) -> list[Decimal]:
    """Lender-side cash flows: the disbursement, then every realized total payment."""
    return [-principal] + [row.total_payment for row in schedule]

