"""Command-line front end — click entry point + rich rendering.

Commands:
  simulate     French-method simulation with schedule, TCEA, VAN and TIR.
  prequalify   Subsidy pre-qualification for a household.
  bonus        BBP amount applicable to a property value.
  fx           Fetch the USD/PEN exchange rate (BCRP) with offline fallback.
"""
from __future__ import annotations

import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .bonuses import applicable_bonuses, bbp_amount, bbp_subtype
from .calculator import GracePeriod, Insurance, LoanTerms, MonthlyCosts
from .config import (
    EXCHANGE_RATE_USD_PEN_KEY, HUNDRED, MAX_TERM_YEARS, MIN_TERM_YEARS, SUPPORTED_CURRENCIES, Settings,
)
from .exceptions import FetchError, SimulatorError
from .fetcher import fetch_exchange_rate
from .logging import setup_logging
from .parameters import GlobalValueStore
from .prequalification import EligibilityStatus, PreQualificationInput, PreQualificationResult, prequalify
from .rates import Period, RateKind, RateSpec
from .simulation import SimulationResult, payment_dates, simulate

console = Console()
err_console = Console(stderr=True, style="bold red")

_PERIODS = [p.value for p in Period]
_KINDS = [k.value for k in RateKind]

# ──────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ──────────────────────────────────────────────────────────────────────────────

def _fmt_money(value: Decimal, currency: str) -> str:
    return f"{value:,.2f} {currency}"


def _fmt_pct(value: Decimal) -> str:
    """*value* is already a percentage."""
    return f"{value:.4f}%"


def _fmt_rate(fraction: Decimal) -> str:
    return f"{fraction * HUNDRED:.6f}%"


def _status(status: EligibilityStatus) -> str:
    if status is EligibilityStatus.ELIGIBLE:
        return "[green]ELIGIBLE[/green]"
    if status is EligibilityStatus.NOT_ELIGIBLE:
        return "[red]NOT ELIGIBLE[/red]"
    return "[yellow]REQUIRES PROPERTY EVALUATION[/yellow]"


def _parse_decimal(raw: Optional[str], name: str) -> Optional[Decimal]:
    if raw is None:
        return None
    try:
        return Decimal(raw.replace(" ", "").replace("_", ""))
    except InvalidOperation:
        err_console.print(f"Invalid value for --{name}: '{raw}'")
        sys.exit(1)


# ──────────────────────────────────────────────────────────────────────────────
# Result display
# ──────────────────────────────────────────────────────────────────────────────

def display_result(result: SimulationResult, terms: LoanTerms, currency: str) -> None:
    console.print()
    console.print(Panel(
        f"[bold green]Simulation[/bold green] — French method, "
        f"{terms.term_months} months, grace: {terms.grace.kind.value} ({terms.grace.effective_months})",
        expand=False,
    ))

    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="cyan")
    t.add_column("Value", justify="right")

    totals = result.totals
    t.add_row("Financed amount", _fmt_money(terms.principal, currency))
    t.add_row("TEM", _fmt_rate(result.monthly_rate))
    t.add_row("Installment (P+I)", _fmt_money(result.reference_payment, currency))
    t.add_row("Monthly payment (total)", _fmt_money(result.monthly_payment, currency))
    t.add_row("TCEA", _fmt_pct(result.tcea))
    t.add_row("TIR (monthly)", _fmt_pct(result.tir_monthly))
    t.add_row("COK (annual)", _fmt_pct(result.cok))
    t.add_row("VAN", _fmt_money(result.van, currency))
    t.add_row("Total interest", _fmt_money(totals.interest, currency))
    t.add_row("Total life insurance", _fmt_money(totals.life_insurance, currency))
    t.add_row("Total property insurance", _fmt_money(totals.property_insurance, currency))
    t.add_row("Total commissions", _fmt_money(totals.commissions, currency))
    t.add_row("Total administration", _fmt_money(totals.administration, currency))
    t.add_row("Total paid", _fmt_money(totals.total_paid, currency))
    console.print(t)
    if not result.irr_converged:
        console.print("[yellow]TIR did not converge; the value shown is approximate.[/yellow]")


def display_schedule(result: SimulationResult, currency: str, first_due: Optional[datetime]) -> None:
    dates = payment_dates(first_due.date(), len(result.schedule)) if first_due else None

    t = Table(title=f"Amortization Schedule ({currency})", box=box.MINIMAL_HEAVY_HEAD)
    columns = ["N°"] + (["Due"] if dates else []) + [
        "Opening Bal.", "Interest", "Principal", "Installment",
        "Life Ins.", "Prop. Ins.", "Costs", "Total", "Closing Bal.",
    ]
    for col in columns:
        t.add_column(col, justify="right")

    for i, row in enumerate(result.schedule):
        label = f"{row.period}{'G' if row.is_grace_period else ''}"
        cells = [label] + ([dates[i].isoformat()] if dates else []) + [
            f"{value:,.2f}" for value in (
                row.beginning_balance, row.interest, row.principal_portion, row.scheduled_payment,
                row.life_insurance, row.property_insurance, row.fixed_costs, row.total_payment,
                row.ending_balance,
            )
        ]
        t.add_row(*cells)
    console.print(t)


def display_prequalification(result: PreQualificationResult) -> None:
    t = Table(title="Pre-qualification", box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Program", style="cyan")
    t.add_column("Status")
    t.add_row("Techo Propio (BFH)", _status(result.techo_propio_status))
    t.add_row("Bono del Buen Pagador", _status(result.bbp_status))
    t.add_row("Bono Integrador", _status(result.integrator_bonus_status))
    t.add_row("Bono Sostenible", _status(result.sustainable_bonus_status))
    console.print(t)
    verdict = "[bold green]Eligible[/bold green]" if result.is_eligible else "[bold red]Not eligible[/bold red]"
    console.print(Panel(f"{verdict}\n\n{result.recommendation}", title="Recommendation", expand=False))


# ──────────────────────────────────────────────────────────────────────────────
# Click entry point
# ──────────────────────────────────────────────────────────────────────────────

@click.group()
@click.option("--log-level", type=str, default=None, help="Log level (default: $SIMUCREDITO_LOG_LEVEL or WARNING)")
@click.option("--log-format", type=click.Choice(["standard", "json"]), default=None, help="Log format")
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """SimuCrédito — mortgage credit simulator (MiVivienda / Techo Propio)."""
    try:
        settings = Settings.from_env()
    except SimulatorError as exc:
        err_console.print(f"Configuration error: {exc}")
        sys.exit(1)
    setup_logging(log_level or settings.log_level, log_format or settings.log_format)
    ctx.obj = {"settings": settings, "store": GlobalValueStore()}


@main.command("simulate")
@click.option("--principal", type=str, required=True, help="Financed amount")
@click.option("--currency", type=click.Choice(sorted(SUPPORTED_CURRENCIES)), default="PEN", show_default=True)
@click.option("--term-years", type=click.IntRange(MIN_TERM_YEARS, MAX_TERM_YEARS), default=20, show_default=True)
@click.option("--term-months", type=int, default=None, help="Loan term in months (overrides --term-years)")
@click.option("--rate", type=str, required=True, help="Interest rate, as a percentage (e.g. 10 for 10%)")
@click.option("--rate-type", type=click.Choice(_KINDS), default="TE", show_default=True)
@click.option("--rate-period", type=click.Choice(_PERIODS), default="annual", show_default=True)
@click.option("--capitalization", type=click.Choice(_PERIODS), default=None, help="Capitalization (TN only)")
@click.option("--cok", type=str, required=True, help="Opportunity cost rate, as a percentage")
@click.option("--cok-type", type=click.Choice(_KINDS), default="TE", show_default=True)
@click.option("--cok-period", type=click.Choice(_PERIODS), default="annual", show_default=True)
@click.option("--cok-capitalization", type=click.Choice(_PERIODS), default=None)
@click.option("--grace-type", type=click.Choice(["none", "partial", "total"]), default="none", show_default=True)
@click.option("--grace-months", type=int, default=0, show_default=True)
@click.option("--commissions", type=str, default="0", help="Monthly commissions")
@click.option("--admin", type=str, default="0", help="Monthly administration costs")
@click.option("--statement", type=click.Choice(["electronic", "physical"]), default="electronic", show_default=True)
@click.option("--life-rate", type=str, default="0", help="Monthly life (desgravamen) insurance rate, fraction of balance")
@click.option("--property-rate", type=str, default="0", help="Annual property insurance rate, fraction of insured value")
@click.option("--property-value", type=str, default="0", help="Insured property value")
@click.option("--schedule/--no-schedule", default=False, help="Print the amortization schedule")
@click.option("--first-due", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="First due date (YYYY-MM-DD)")
def simulate_command(
    principal: str,
    currency: str,
    term_years: int,
    term_months: Optional[int],
    rate: str,
    rate_type: str,
    rate_period: str,
    capitalization: Optional[str],
    cok: str,
    cok_type: str,
    cok_period: str,
    cok_capitalization: Optional[str],
    grace_type: str,
    grace_months: int,
    commissions: str,
    admin: str,
    statement: str,
    life_rate: str,
    property_rate: str,
    property_value: str,
    schedule: bool,
    first_due: Optional[datetime],
) -> None:
    """Simulate a French-method mortgage loan."""
    try:
        terms = LoanTerms(
            principal=_parse_decimal(principal, "principal"),
            rate=RateSpec(_parse_decimal(rate, "rate"), rate_type, rate_period, capitalization),
            term_months=term_months if term_months is not None else term_years * 12,
            grace=GracePeriod(grace_type, grace_months),
            costs=MonthlyCosts(
                commissions=_parse_decimal(commissions, "commissions"),
                administration=_parse_decimal(admin, "admin"),
                physical_statement=statement == "physical",
            ),
            insurance=Insurance(
                life_rate=_parse_decimal(life_rate, "life-rate"),
                property_annual_rate=_parse_decimal(property_rate, "property-rate"),
                property_insured_value=_parse_decimal(property_value, "property-value"),
            ),
        )
        opportunity_cost = RateSpec(_parse_decimal(cok, "cok"), cok_type, cok_period, cok_capitalization)
        result = simulate(terms, opportunity_cost)
    except SimulatorError as exc:
        err_console.print(f"Parameter error: {exc}")
        sys.exit(1)

    display_result(result, terms, currency)
    if schedule:
        display_schedule(result, currency, first_due)


@main.command("prequalify")
@click.option("--family-income", type=str, required=True, help="Family net monthly income (PEN)")
@click.option("--monthly-income", type=str, default=None, help="Holder net monthly income (default: family income)")
@click.option("--age", type=click.IntRange(18, 120), required=True)
@click.option("--owner/--no-owner", default=False, help="Owns another property")
@click.option("--previous-support/--no-previous-support", default=False, help="Received state housing support before")
@click.option("--conadis", type=str, default=None, help="CONADIS disability card number")
@click.option("--integrator/--no-integrator", default=False, help="Applies for the Bono Integrador")
@click.pass_obj
def prequalify_command(
    obj: dict,
    family_income: str,
    monthly_income: Optional[str],
    age: int,
    owner: bool,
    previous_support: bool,
    conadis: Optional[str],
    integrator: bool,
) -> None:
    """Evaluate Techo Propio, BBP and Bono Integrador eligibility."""
    family = _parse_decimal(family_income, "family-income")
    holder = _parse_decimal(monthly_income, "monthly-income")
    data = PreQualificationInput(
        monthly_income=holder if holder is not None else family,
        family_net_income=family,
        age=age,
        applies_for_integrator_bonus=integrator,
        is_owner_of_another_property=owner,
        has_received_previous_support=previous_support,
        conadis_card_number=conadis,
    )
    display_prequalification(prequalify(data, obj["store"]))


@main.command("bonus")
@click.option("--property-value", type=str, required=True, help="Property value (PEN)")
@click.option("--sustainable/--traditional", default=False, help="MiVivienda Verde certified project")
@click.option("--integrator/--no-integrator", default=False, help="Household qualifies for the Bono Integrador")
def bonus_command(property_value: str, sustainable: bool, integrator: bool) -> None:
    """Show the Bono del Buen Pagador applicable to a property value."""
    value = _parse_decimal(property_value, "property-value")
    amount = bbp_amount(value, sustainable, integrator)
    subtype = bbp_subtype(sustainable, integrator)

    t = Table(title="BBP bands matching this property", box=box.SIMPLE)
    for col in ("Subtype", "From", "To", "Amount"):
        t.add_column(col, justify="right")
    for param in applicable_bonuses("BBP", None, value, sustainable):
        t.add_row(
            param.bonus_subtype.value,
            _fmt_money(param.min_property_value, "PEN"),
            _fmt_money(param.max_property_value, "PEN"),
            _fmt_money(param.bonus_amount, "PEN"),
        )
    console.print(t)
    console.print(f"BBP ({subtype.value}): [bold]{_fmt_money(amount, 'PEN')}[/bold]")


@main.command("fx")
@click.option("--usd", type=str, default=None, help="Amount in USD to convert to PEN")
@click.pass_obj
def fx_command(obj: dict, usd: Optional[str]) -> None:
    """Fetch the USD/PEN exchange rate from the BCRP (falls back to the stored value)."""
    store: GlobalValueStore = obj["store"]
    settings: Settings = obj["settings"]
    try:
        rate = fetch_exchange_rate(timeout=settings.http_timeout)
        store.set_numeric_value(EXCHANGE_RATE_USD_PEN_KEY, rate)
        source = "BCRP"
    except FetchError as exc:
        err_console.print(f"  Fetch failed: {exc}")
        rate = store.get_numeric_value(EXCHANGE_RATE_USD_PEN_KEY)
        source = "stored default"

    console.print(f"USD/PEN: [bold]{rate}[/bold] ({source})")
    amount = _parse_decimal(usd, "usd")
    if amount is not None:
        console.print(f"{_fmt_money(amount, 'USD')} = {_fmt_money(amount * rate, 'PEN')}")
