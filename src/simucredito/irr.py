"""Internal rate of return, TCEA and net present value.

The IRR is found with Newton-Raphson on

    NPV(r) = sum_{t=0}^{n} CF_t / (1 + r)^t

whose derivative is  dNPV/dr = sum_{t=1}^{n} -t * CF_t / (1 + r)^(t + 1).
Failing to converge is not an error: the last guess is returned and a
warning is logged, since callers accept an approximate TIR.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Sequence

from .config import (
    HUNDRED, IRR_INITIAL_GUESS, IRR_MAX_ITERATIONS, IRR_TOLERANCE, MATH_CONTEXT,
    MONTHS_IN_YEAR, ONE, RATE_QUANTUM, ZERO,
)
from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IRRResult:
    rate: Decimal       # monthly, as a fraction
    iterations: int
    converged: bool

    @property
    def percent(self) -> Decimal:
        return (self.rate * HUNDRED).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def _check(cash_flows: Sequence[Decimal]) -> None:
    if not cash_flows:
        raise InvalidInputError("cash_flows must contain at least the initial disbursement")


def net_present_value(cash_flows: Sequence[Decimal], monthly_discount_rate: Decimal) -> Decimal:
    """Discount every flow at *monthly_discount_rate*; index 0 is not discounted."""
    _check(cash_flows)
    with localcontext(MATH_CONTEXT):
        base = ONE + monthly_discount_rate
        npv = ZERO
        discount = ONE
        for flow in cash_flows:
            npv += flow / discount
            discount *= base
        return npv


def _npv_derivative(cash_flows: Sequence[Decimal], rate: Decimal) -> Decimal:
    base = ONE + rate
    derivative = ZERO
    discount = base * base  # (1 + r)^(t + 1) for t = 1
    for t, flow in enumerate(cash_flows[1:], start=1):
        derivative -= t * flow / discount
        discount *= base
    return derivative


def solve_irr(
    cash_flows: Sequence[Decimal],
    max_iterations: int = IRR_MAX_ITERATIONS,
    tolerance: Decimal = IRR_TOLERANCE,
    initial_guess: Decimal = IRR_INITIAL_GUESS,
) -> IRRResult:
    """Newton-Raphson search for the monthly rate that zeroes the NPV."""
    _check(cash_flows)
    guess = initial_guess

    with localcontext(MATH_CONTEXT):
        for iteration in range(1, max_iterations + 1):
            f = net_present_value(cash_flows, guess)
            f_prime = _npv_derivative(cash_flows, guess)

            if abs(f_prime) < tolerance:
                # Flat NPV curve: another step would divide by ~0
                logger.warning(
                    "IRR derivative vanished at guess %s after %d iterations", guess, iteration
                )
                return IRRResult(rate=guess, iterations=iteration, converged=False)

            new_guess = guess - f / f_prime
            if abs(new_guess - guess) < tolerance:
                return IRRResult(rate=new_guess, iterations=iteration, converged=True)

            guess = new_guess

    logger.warning(
        "IRR did not converge within %d iterations; returning last guess %s", max_iterations, guess
    )
    return IRRResult(rate=guess, iterations=max_iterations, converged=False)


def monthly_irr(
    cash_flows: Sequence[Decimal],
    max_iterations: int = IRR_MAX_ITERATIONS,
    tolerance: Decimal = IRR_TOLERANCE,
) -> Decimal:
    """Monthly IRR (TIR) as a percentage with 4 decimals, e.g. 1.2345 for 1.2345%."""
    return solve_irr(cash_flows, max_iterations, tolerance).percent


def annualize(monthly_rate_percent: Decimal) -> Decimal:
    """TCEA as a percentage: ((1 + p/100)^12 - 1) * 100."""
    with localcontext(MATH_CONTEXT):
        return ((ONE + monthly_rate_percent / HUNDRED) ** MONTHS_IN_YEAR - ONE) * HUNDRED


def deannualize(annual_rate_percent: Decimal) -> Decimal:
    """Monthly equivalent, as a percentage, of an annual effective percentage."""
    with localcontext(MATH_CONTEXT):
        exponent = ONE / Decimal(MONTHS_IN_YEAR)
        return ((ONE + annual_rate_percent / HUNDRED) ** exponent - ONE) * HUNDRED
