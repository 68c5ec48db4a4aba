"""Unit tests for calculator.py — annuity, grace periods, add-ons, totals."""
from decimal import Decimal

import pytest

from simucredito.calculator import (
    GraceKind,
    GracePeriod,
    Insurance,
    LoanTerms,
    MonthlyCosts,
    cash_flows,
    compute_monthly_payment,
    compute_reference_payment,
    generate_schedule,
    representative_payment,
    schedule_totals,
)
from simucredito.exceptions import InvalidInputError
from simucredito.rates import RateSpec

ZERO = Decimal("0")
TEM = Decimal("0.01")


def _terms(principal="100000", months=12, grace=None, costs=None, insurance=None):
    return LoanTerms(
        principal=Decimal(principal),
        rate=RateSpec(Decimal("1"), "TE", "monthly"),
        term_months=months,
        grace=grace or GracePeriod(),
        costs=costs or MonthlyCosts(),
        insurance=insurance or Insurance(),
    )


def _schedule(terms, rate=TEM):
    return generate_schedule(terms, rate, compute_reference_payment(terms, rate))


class TestComputeMonthlyPayment:
    @pytest.mark.parametrize("principal,monthly_rate,months,expected", [
        # P=100000, r=1%, n=12 → 8884.88
        (Decimal("100000"), Decimal("0.01"), 12, Decimal("8884.88")),
        # P=100000, r=3.5%/12, n=240 → 579.96
        (Decimal("100000"), Decimal("0.035") / 12, 240, Decimal("579.96")),
    ])
    def test_standard_cases(self, principal, monthly_rate, months, expected):
        result = compute_monthly_payment(principal, monthly_rate, months)
        assert result == expected, f"Payment mismatch: got {result}, expected {expected}"

    def test_zero_interest(self):
        """Zero interest: payment = P / n."""
        assert compute_monthly_payment(Decimal("120000"), ZERO, 120) == Decimal("1000.00")

    def test_single_month(self):
        # 1000 * 0.01 * 1.01 / 0.01 = 1010.00
        assert compute_monthly_payment(Decimal("1000"), TEM, 1) == Decimal("1010.00")

    def test_invalid_term(self):
        with pytest.raises(InvalidInputError, match="term_months"):
            compute_monthly_payment(Decimal("100000"), TEM, 0)

    def test_non_positive_principal(self):
        with pytest.raises(ValueError, match="principal"):
            compute_monthly_payment(Decimal("0"), TEM, 12)

    def test_negative_rate(self):
        with pytest.raises(InvalidInputError, match="monthly_rate"):
            compute_monthly_payment(Decimal("1000"), Decimal("-0.01"), 12)


class TestGracePeriod:
    def test_kind_from_string(self):
        assert GracePeriod("TOTAL", 3).kind is GraceKind.TOTAL

    def test_none_defers_nothing(self):
        assert GracePeriod("none", 5).effective_months == 0

    def test_months_from_string(self):
        assert GracePeriod("partial", "3").months == 3

    @pytest.mark.parametrize("months", ["three", "2.5", None])
    def test_months_not_a_whole_number(self, months):
        with pytest.raises(InvalidInputError, match="whole number"):
            GracePeriod("partial", months)

    def test_unknown_kind(self):
        with pytest.raises(InvalidInputError, match="Grace period type"):
            GracePeriod("holiday", 3)

    @pytest.mark.parametrize("months", [-1, 25])
    def test_months_out_of_range(self, months):
        with pytest.raises(InvalidInputError, match="between 0 and 24"):
            GracePeriod("partial", months)

    def test_grace_must_be_shorter_than_term(self):
        with pytest.raises(InvalidInputError, match="shorter"):
            _terms(months=6, grace=GracePeriod("partial", 6))


class TestLoanTerms:
    def test_non_positive_principal(self):
        with pytest.raises(InvalidInputError, match="principal"):
            _terms(principal="0")

    def test_non_positive_term(self):
        with pytest.raises(InvalidInputError, match="term_months"):
            _terms(months=0)

    def test_negative_costs(self):
        with pytest.raises(InvalidInputError):
            MonthlyCosts(commissions=Decimal("-1"))

    def test_negative_insurance(self):
        with pytest.raises(InvalidInputError):
            Insurance(life_rate=Decimal("-0.001"))


class TestSchedule:
    def test_row_count(self):
        assert len(_schedule(_terms(months=60))) == 60

    def test_first_period(self):
        row = _schedule(_terms())[0]
        assert row.period == 1
        assert row.beginning_balance == Decimal("100000")
        assert row.interest == Decimal("1000.00")
        assert row.principal_portion == Decimal("7884.88")
        assert row.ending_balance == Decimal("92115.12")
        assert row.is_grace_period is False

    def test_last_row_closes_at_zero(self):
        schedule = _schedule(_terms())
        assert schedule[-1].period == 12
        assert schedule[-1].ending_balance == Decimal("0.00")

    def test_balances_chain(self):
        schedule = _schedule(_terms(months=36))
        for previous, current in zip(schedule, schedule[1:]):
            assert current.beginning_balance == previous.ending_balance

    def test_principal_sums_to_loan(self):
        schedule = _schedule(_terms(months=240, principal="250000"))
        assert sum(r.principal_portion for r in schedule) == Decimal("250000")

    def test_every_row_charges_the_reference_installment(self):
        terms = _terms()
        reference = compute_reference_payment(terms, TEM)
        schedule = generate_schedule(terms, TEM, reference)
        assert reference == Decimal("8884.88")
        assert [r.scheduled_payment for r in schedule] == [reference] * 12
        assert [r.total_payment for r in schedule] == [reference] * 12

    def test_last_row_retires_remaining_balance(self):
        schedule = _schedule(_terms())
        last = schedule[-1]
        assert last.principal_portion == last.beginning_balance
        assert last.scheduled_payment == Decimal("8884.88")

    def test_cumulative_columns(self):
        schedule = _schedule(_terms())
        assert schedule[-1].cumulative_principal == Decimal("100000")
        assert schedule[-1].cumulative_interest == sum(r.interest for r in schedule)

    def test_zero_rate_schedule(self):
        terms = _terms()
        schedule = generate_schedule(terms, ZERO, compute_monthly_payment(terms.principal, ZERO, 12))
        assert schedule[0].scheduled_payment == Decimal("8333.33")
        # 11 * 8333.33 = 91666.63, the last row takes the remainder
        assert schedule[-1].principal_portion == Decimal("8333.37")
        assert schedule[-1].ending_balance == ZERO

    def test_deterministic(self):
        assert _schedule(_terms()) == _schedule(_terms())


class TestGraceSchedules:
    def test_partial_grace_pays_interest_only(self):
        schedule = _schedule(_terms(grace=GracePeriod("partial", 3)))
        for row in schedule[:3]:
            assert row.is_grace_period
            assert row.scheduled_payment == Decimal("1000.00")
            assert row.principal_portion == ZERO
            assert row.ending_balance == Decimal("100000")
        assert schedule[3].scheduled_payment == compute_monthly_payment(Decimal("100000"), TEM, 9)
        assert schedule[-1].ending_balance == ZERO

    def test_total_grace_capitalizes_interest(self):
        schedule = _schedule(_terms(grace=GracePeriod("total", 2)))
        assert schedule[0].scheduled_payment == ZERO
        assert schedule[0].ending_balance == Decimal("101000.00")
        # 101000 * 1% = 1010.00
        assert schedule[1].interest == Decimal("1010.00")
        assert schedule[1].ending_balance == Decimal("102010.00")
        assert schedule[2].beginning_balance == Decimal("102010.00")
        assert schedule[-1].ending_balance == ZERO
        assert schedule[-1].cumulative_principal == Decimal("102010.00")

    def test_total_grace_reference_payment(self):
        terms = _terms(grace=GracePeriod("total", 2))
        expected = compute_monthly_payment(Decimal("102010.00"), TEM, 10)
        assert compute_reference_payment(terms, TEM) == expected

    def test_total_grace_costs_more_interest_than_partial(self):
        total = _schedule(_terms(grace=GracePeriod("total", 6), months=60))
        partial = _schedule(_terms(grace=GracePeriod("partial", 6), months=60))
        assert total[-1].cumulative_interest > partial[-1].cumulative_interest

    def test_representative_payment_skips_grace(self):
        terms = _terms(grace=GracePeriod("partial", 3))
        schedule = _schedule(terms)
        assert representative_payment(schedule, terms) == schedule[3].total_payment


class TestAddOns:
    def _build(self):
        terms = _terms(
            costs=MonthlyCosts(
                commissions=Decimal("5"), administration=Decimal("3"), physical_statement=True
            ),
            insurance=Insurance(
                life_rate=Decimal("0.0005"),
                property_annual_rate=Decimal("0.003"),
                property_insured_value=Decimal("200000"),
            ),
        )
        return terms, _schedule(terms)

    def test_fixed_costs_include_delivery_fee(self):
        _, schedule = self._build()
        assert schedule[0].fixed_costs == Decimal("18.00")

    def test_life_insurance_on_opening_balance(self):
        _, schedule = self._build()
        # 100000 * 0.0005 = 50.00
        assert schedule[0].life_insurance == Decimal("50.00")
        # 92115.12 * 0.0005 = 46.05756 → 46.06
        assert schedule[1].life_insurance == Decimal("46.06")

    def test_property_insurance_is_flat(self):
        _, schedule = self._build()
        # 200000 * 0.003 / 12 = 50.00
        assert {r.property_insurance for r in schedule} == {Decimal("50.00")}

    def test_total_payment(self):
        _, schedule = self._build()
        # 8884.88 + 50 + 50 + 18
        assert schedule[0].total_payment == Decimal("9002.88")

    def test_add_ons_do_not_change_amortization(self):
        _, schedule = self._build()
        assert [r.principal_portion for r in schedule] == [
            r.principal_portion for r in _schedule(_terms())
        ]

    def test_totals(self):
        terms, schedule = self._build()
        totals = schedule_totals(schedule, terms)
        assert totals.principal == Decimal("100000")
        assert totals.commissions == Decimal("60")
        assert totals.administration == Decimal("36")
        assert totals.delivery == Decimal("120.00")
        assert totals.property_insurance == Decimal("600.00")
        assert totals.total_paid == sum(r.total_payment for r in schedule)


class TestCashFlows:
    def test_disbursement_then_payments(self):
        schedule = _schedule(_terms())
        flows = cash_flows(Decimal("100000"), schedule)
        assert flows[0] == Decimal("-100000")
        assert len(flows) == 13
        assert flows[1:] == [r.total_payment for r in schedule]
