"""Simulation pipeline: rates → installment → schedule → TIR / TCEA / VAN.

Mirrors the order a credit analyst follows:
1. Convert the loan rate and the opportunity cost (COK) to TEM.
2. Compute the post-grace reference installment.
3. Generate the schedule and the realized cash flows.
4. Solve the monthly IRR of those flows and annualize it into the TCEA.
5. Discount the flows at the COK to obtain the VAN.
"""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .calculator import (
    AmortizationRow, LoanTerms, ScheduleTotals, cash_flows, compute_reference_payment,
    generate_schedule, representative_payment, schedule_totals,
)
from .config import CENT, RATE_QUANTUM
from .exceptions import InvalidInputError
from .irr import annualize, net_present_value, solve_irr
from .rates import RateSpec, annual_effective_rate, to_monthly_effective_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationResult:
    monthly_rate: Decimal            # TEM of the loan, fraction
    opportunity_rate: Decimal        # TEM of the COK, fraction
    reference_payment: Decimal       # principal + interest after grace
    monthly_payment: Decimal         # total of the first regular installment
    tcea: Decimal                    # percentage
    cok: Decimal                     # annual effective percentage
    van: Decimal
    tir_monthly: Decimal             # percentage
    irr_converged: bool
    totals: ScheduleTotals
    schedule: tuple[AmortizationRow, ...]
    cash_flows: tuple[Decimal, ...]


def simulate(terms: LoanTerms, opportunity_cost: RateSpec) -> SimulationResult:
    """Run the full simulation for *terms*, discounting at *opportunity_cost*."""
    monthly_rate = to_monthly_effective_rate(terms.rate)
    opportunity_rate = to_monthly_effective_rate(opportunity_cost)

    reference = compute_reference_payment(terms, monthly_rate)
    schedule = generate_schedule(terms, monthly_rate, reference)
    flows = cash_flows(terms.principal, schedule)

    irr = solve_irr(flows)
    tir = irr.percent
    tcea = annualize(tir).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)
    cok = annual_effective_rate(opportunity_rate).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)
    van = net_present_value(flows, opportunity_rate).quantize(CENT, rounding=ROUND_HALF_UP)

    result = SimulationResult(
        monthly_rate=monthly_rate,
        opportunity_rate=opportunity_rate,
        reference_payment=reference,
        monthly_payment=representative_payment(schedule, terms),
        tcea=tcea,
        cok=cok,
        van=van,
        tir_monthly=tir,
        irr_converged=irr.converged,
        totals=schedule_totals(schedule, terms),
        schedule=tuple(schedule),
        cash_flows=tuple(flows),
    )
    logger.info(
        "Simulated %s over %d months (grace %s/%d): payment=%s tcea=%s%% van=%s",
        terms.principal, terms.term_months, terms.grace.kind.value, terms.grace.effective_months,
        result.monthly_payment, tcea, van,
        extra={"principal": terms.principal, "tcea": tcea, "van": van},
    )
    return result


def payment_dates(first_due: date, periods: int) -> list[date]:
    """Monthly due dates starting at *first_due*, clamped to the end of short months."""
    if periods < 0:
        raise InvalidInputError("periods must be >= 0")
    dates: list[date] = []
    for offset in range(periods):
        month_index = first_due.month - 1 + offset
        year = first_due.year + month_index // 12
        month = month_index % 12 + 1
        day = min(first_due.day, calendar.monthrange(year, month)[1])
        dates.append(date(year, month, day))
    return dates
