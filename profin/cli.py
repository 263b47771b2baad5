"""
Command-Line Interface for ProFin.

Purpose
-------
Provides a CLI for the planning engines: tax liability, goal projections,
required SIPs, debt payoff plans and inflation conversions, without
writing Python code. The CLI reads plan files and prints (or writes)
results; it never stores planner state.

Commands
--------
- tax: Compute tax under one regime or compare both
- simulate: Monte Carlo projection of a single goal
- sip: Required monthly contribution for a target
- debt: Avalanche/snowball payoff plan from a plan file
- goal: Achievability of every goal in a plan file
- inflation: Future/present value of an amount
- info: Package and regime information

Example Usage
-------------
    # Compare regimes with 80C and 80D claims
    $ profin tax 1800000 --compare --80c 150000 --80d 25000

    # Project a goal
    $ profin simulate --current 200000 --contribution 15000 --years 5 --target 1500000 --seed 42

    # Debt plan with 5,000 extra per month
    $ profin debt --plan plan.json --extra 5000 --method avalanche

    # Show version
    $ profin --version
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import AppSettings
from .exceptions import ProFinError
from .utils import format_currency, round_money

LOGGER = logging.getLogger(__name__)


def _money(value: float) -> str:
    settings = click.get_current_context().obj["settings"]
    return format_currency(round_money(value), symbol=settings.currency_symbol)


def _console(ctx: click.Context) -> Optional[Console]:
    """Rich console, or None in quiet mode (plain echo output)."""
    if ctx.obj.get("quiet", False):
        return None
    return ctx.obj["console"]


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="profin")
@click.option("--quiet", "-q", is_flag=True, help="Plain output without tables")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override PROFIN_LOG_LEVEL",
)
@click.pass_context
def main(ctx: click.Context, quiet: bool, log_level: Optional[str]) -> None:
    """
    ProFin - Personal finance planning core.

    Tax (Indian old/new regimes), Monte Carlo goal projections, required
    SIPs, debt payoff plans and inflation conversions.

    Use 'profin COMMAND --help' for command-specific help.
    """
    settings = AppSettings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = Console()


# ---------------------------------------------------------------------------
# tax
# ---------------------------------------------------------------------------

@main.command()
@click.argument("income", type=float)
@click.option(
    "--regime", "-r",
    type=click.Choice(["old", "new"]),
    default=None,
    help="Tax regime (default: PROFIN_DEFAULT_REGIME or new)"
)
@click.option("--compare", is_flag=True, help="Compute both regimes and recommend one")
@click.option("--80c", "retirement_instruments", type=float, default=0.0, help="80C claims (PPF, ELSS, EPF...)")
@click.option("--80d", "health_insurance", type=float, default=0.0, help="Health insurance premiums")
@click.option("--nps", "pension_scheme", type=float, default=0.0, help="Additional NPS contribution")
@click.option("--home-loan-interest", "mortgage_interest", type=float, default=0.0, help="Home-loan interest")
@click.option("--hra", "hra_exemption", type=float, default=0.0, help="HRA exemption")
@click.option("--ltcg", "long_term_gains", type=float, default=0.0, help="Long-term capital gains")
@click.option("--stcg", "short_term_gains", type=float, default=0.0, help="Short-term capital gains")
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the result as JSON"
)
@click.pass_context
def tax(
    ctx: click.Context,
    income: float,
    regime: Optional[str],
    compare: bool,
    output: Optional[Path],
    **claims: float,
) -> None:
    """
    Compute annual income tax.

    Example:
        profin tax 1200000 --regime new
    """
    from .serialization import save_result
    from .tax import DeductionInputs, compare_regimes, compute_tax

    console = _console(ctx)
    regime = regime or ctx.obj["settings"].default_regime

    try:
        deductions = DeductionInputs(**claims)
        if compare:
            comparison = compare_regimes(income, deductions)
            results = [comparison.old, comparison.new]
        else:
            results = [compute_tax(income, regime, deductions)]
    except ProFinError as e:
        _fail(str(e))

    rows = [
        ("Taxable income", "taxable_income"),
        ("Slab tax", "slab_tax"),
        ("Rebate", "rebate"),
        ("Surcharge", "surcharge"),
        ("Cess", "cess"),
        ("Capital gains tax", "capital_gains_tax"),
        ("Total tax", "total_tax"),
        ("Monthly tax", "monthly_tax"),
    ]

    if console:
        table = Table(title=f"Income Tax on {_money(income)}", show_header=True)
        table.add_column("Item", style="cyan")
        for res in results:
            table.add_column(f"{res.regime.title()} regime", style="green", justify="right")
        for label, attr in rows:
            table.add_row(label, *[_money(getattr(res, attr)) for res in results])
        table.add_row("Effective rate", *[f"{res.effective_rate:.2%}" for res in results])
        console.print(table)
        if compare:
            console.print(f"[bold]{comparison.recommendation}[/bold]")
    else:
        for res in results:
            click.echo(f"[{res.regime}] Total tax: {_money(res.total_tax)}")
            click.echo(f"[{res.regime}] Effective rate: {res.effective_rate:.2%}")
        if compare:
            click.echo(comparison.recommendation)

    if output:
        if compare:
            save_result({
                "old": comparison.old.to_dict(),
                "new": comparison.new.to_dict(),
                "difference": round_money(comparison.difference),
                "cheaper": comparison.cheaper,
            }, output)
        else:
            save_result(results[0], output)


# ---------------------------------------------------------------------------
# simulate
# ---------------------------------------------------------------------------

@main.command()
@click.option("--current", type=float, default=0.0, help="Amount saved today")
@click.option("--contribution", type=float, default=0.0, help="Monthly contribution")
@click.option("--return", "expected_return", type=float, default=12.0, help="Expected annual return % (default: 12)")
@click.option("--volatility", type=float, default=15.0, help="Annual volatility % (default: 15)")
@click.option("--years", type=float, required=True, help="Horizon in years")
@click.option("--target", type=float, required=True, help="Target amount")
@click.option(
    "--iterations", "-n",
    type=int,
    default=None,
    help="Monte Carlo trials (default: PROFIN_DEFAULT_ITERATIONS or 1000)"
)
@click.option("--seed", "-s", type=int, default=None, help="Random seed for reproducibility")
@click.option("--workers", type=int, default=1, help="Threads for trial blocks (default: 1)")
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the result as JSON"
)
@click.pass_context
def simulate(
    ctx: click.Context,
    current: float,
    contribution: float,
    expected_return: float,
    volatility: float,
    years: float,
    target: float,
    iterations: Optional[int],
    seed: Optional[int],
    workers: int,
    output: Optional[Path],
) -> None:
    """
    Run a Monte Carlo projection for one goal.

    Example:
        profin simulate --current 200000 --contribution 15000 --years 5 --target 1500000 -n 5000 --seed 42
    """
    from .montecarlo import simulate_goal
    from .serialization import save_result

    console = _console(ctx)
    iterations = iterations or ctx.obj["settings"].default_iterations

    if console:
        console.print(f"[bold]Running {iterations:,} trials over {years:g} years...[/bold]")

    try:
        result = simulate_goal(
            current_amount=current,
            monthly_contribution=contribution,
            expected_return=expected_return,
            volatility=volatility,
            years=years,
            target_amount=target,
            iterations=iterations,
            seed=seed,
            workers=workers,
        )
    except ProFinError as e:
        _fail(str(e))

    if console:
        table = Table(title="Simulation Results", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        table.add_row("Success probability", f"{result.probability:.0%}")
        for key, value in result.percentiles.items():
            table.add_row(f"{key.upper()} terminal wealth", _money(value))
        table.add_row("Mean", _money(result.mean))
        table.add_row("Min", _money(result.min))
        table.add_row("Max", _money(result.max))
        console.print(table)
    else:
        click.echo(f"Probability: {result.probability:.2f}")
        click.echo(f"Median: {_money(result.p50)}")
        click.echo(f"P10: {_money(result.p10)}")
        click.echo(f"P90: {_money(result.p90)}")

    if output:
        save_result(result, output)


# ---------------------------------------------------------------------------
# sip
# ---------------------------------------------------------------------------

@main.command()
@click.option("--current", type=float, default=0.0, help="Amount saved today")
@click.option("--target", type=float, required=True, help="Target amount")
@click.option("--years", type=float, required=True, help="Horizon in years")
@click.option("--rate", type=float, default=12.0, help="Expected annual return % (default: 12)")
@click.pass_context
def sip(ctx: click.Context, current: float, target: float, years: float, rate: float) -> None:
    """
    Required monthly contribution (SIP) to reach a target.

    Example:
        profin sip --target 1000000 --years 10 --rate 12
    """
    from .goals import required_monthly_contribution

    console = _console(ctx)
    try:
        required = required_monthly_contribution(current, target, years, rate)
    except ProFinError as e:
        _fail(str(e))

    message = (
        f"Invest {_money(required)}/month for {years:g} years at {rate:g}% "
        f"to reach {_money(target)}"
    )
    if console:
        console.print(Panel(message, title="Required SIP"))
    else:
        click.echo(f"Required SIP: {_money(required)}")


# ---------------------------------------------------------------------------
# debt
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--plan", "-p",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Plan file (JSON) with a 'debts' list"
)
@click.option("--extra", type=float, default=0.0, help="Extra monthly payment (default: 0)")
@click.option(
    "--method", "-m",
    type=click.Choice(["avalanche", "snowball"]),
    default="avalanche",
    help="Payoff ordering (default: avalanche)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the month-by-month schedule as CSV"
)
@click.pass_context
def debt(
    ctx: click.Context,
    plan: Path,
    extra: float,
    method: str,
    output: Optional[Path],
) -> None:
    """
    Build a debt payoff plan.

    Example:
        profin debt --plan plan.json --extra 5000 --method snowball
    """
    from .debt import build_payoff_plan
    from .serialization import debts_from_plan, load_plan

    console = _console(ctx)
    try:
        debts = debts_from_plan(load_plan(plan))
        payoff = build_payoff_plan(debts, extra_payment=extra, method=method)
    except ProFinError as e:
        _fail(str(e))

    if payoff is None:
        click.echo("No debts in plan.")
        return

    summary = payoff.summary()
    if console:
        table = Table(title=f"Payoff Plan ({method})", show_header=True)
        table.add_column("Debt", style="cyan")
        table.add_column("Balance", justify="right")
        table.add_column("Interest", justify="right")
        table.add_column("Total paid", justify="right")
        table.add_column("Paid off", style="green", justify="right")
        for d in payoff.debts:
            month = d.get("payoff_month")
            table.add_row(
                d["name"],
                _money(d["initial_balance"]),
                _money(d["interest_paid"]),
                _money(d["total_paid"]),
                f"month {month}" if month is not None else "never",
            )
        console.print(table)
        console.print(
            f"Debt-free in [bold]{summary['total_months']}[/bold] months; "
            f"{summary['months_saved']} months and {_money(payoff.interest_saved)} "
            f"interest saved vs minimum payments."
        )
        if not payoff.converged:
            console.print("[bold red]Some debts are not paid off within 50 years.[/bold red]")
    else:
        click.echo(f"Months: {summary['total_months']}")
        click.echo(f"Months saved: {summary['months_saved']}")
        click.echo(f"Interest saved: {_money(payoff.interest_saved)}")
        click.echo(f"Converged: {payoff.converged}")

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        payoff.to_frame().to_csv(output, index=False)
        if not ctx.obj.get("quiet", False):
            click.echo(f"Schedule saved to {output}")


# ---------------------------------------------------------------------------
# goal
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--plan", "-p",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Plan file (JSON) with household and goals"
)
@click.option("--seed", "-s", type=int, default=None, help="Random seed (overrides the plan's)")
@click.option("--phases", is_flag=True, help="Also show each goal's phased plan")
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write assessments as JSON"
)
@click.pass_context
def goal(
    ctx: click.Context,
    plan: Path,
    seed: Optional[int],
    phases: bool,
    output: Optional[Path],
) -> None:
    """
    Assess the achievability of every goal in a plan.

    Example:
        profin goal --plan plan.json --seed 42 --phases
    """
    from .goals import assess_goals, goal_plan
    from .serialization import goals_from_plan, household_from_plan, load_plan, save_result

    console = _console(ctx)
    try:
        config = load_plan(plan)
        goals = goals_from_plan(config)
        household = household_from_plan(config)
        rate = None if config.planner.use_category_inflation else config.planner.inflation_rate
        assessments = assess_goals(
            goals,
            household,
            as_of=config.as_of,
            config=config.planner.simulation,
            seed=seed,
            inflation_rate=rate,
        )
        plans = [
            goal_plan(g, household, as_of=config.as_of, inflation_rate=rate) for g in goals
        ] if phases else []
    except ProFinError as e:
        _fail(str(e))

    if not assessments:
        click.echo("No goals in plan.")
        return

    if console:
        table = Table(title=f"{config.name} ({config.planner.financial_year})", show_header=True)
        table.add_column("Goal", style="cyan")
        table.add_column("Target", justify="right")
        table.add_column("Months", justify="right")
        table.add_column("Required SIP", justify="right")
        table.add_column("Available", justify="right")
        table.add_column("Probability", style="green", justify="right")
        for a in assessments:
            table.add_row(
                a.goal.name,
                _money(a.target),
                str(a.months),
                _money(a.required_contribution),
                _money(a.disposable_income),
                f"{a.probability:.0%}",
            )
        console.print(table)
    else:
        for a in assessments:
            click.echo(a.message())
            click.echo(f"  probability: {a.probability:.2f}")

    for p in plans:
        if console:
            table = Table(title=f"{p.goal.name}: {p.kind} plan", show_header=True)
            table.add_column("Phase", style="cyan")
            table.add_column("Status")
            table.add_column("From")
            table.add_column("To")
            table.add_column("Monthly", justify="right")
            table.add_column("Lump sum", justify="right")
            for phase in p.phases:
                table.add_row(
                    phase.name,
                    phase.status,
                    phase.start.isoformat() if phase.start else "",
                    phase.end.isoformat() if phase.end else "",
                    _money(phase.monthly_amount) if phase.monthly_amount else "",
                    _money(phase.lump_sum) if phase.lump_sum else "",
                )
            console.print(table)
            console.print(Panel(p.recommendation, border_style="blue"))
        else:
            click.echo(f"{p.goal.name} ({p.kind}): {p.recommendation}")
            for phase in p.phases:
                click.echo(f"  {phase.name} [{phase.status}]")

    if output:
        result = {"goals": [a.to_dict() for a in assessments]}
        if plans:
            result["plans"] = [p.to_dict() for p in plans]
        save_result(result, output)


# ---------------------------------------------------------------------------
# inflation
# ---------------------------------------------------------------------------

@main.command()
@click.argument("amount", type=float)
@click.option("--years", type=float, required=True, help="Years ahead")
@click.option("--rate", type=float, default=None, help="Annual inflation % (default: 6)")
@click.option(
    "--category",
    type=click.Choice(["house", "education", "car", "retirement", "wedding", "travel", "emergency", "other"]),
    default=None,
    help="Use the inflation rate of a goal category"
)
@click.option("--present", is_flag=True, help="Treat AMOUNT as a future value and discount it")
@click.pass_context
def inflation(
    ctx: click.Context,
    amount: float,
    years: float,
    rate: Optional[float],
    category: Optional[str],
    present: bool,
) -> None:
    """
    Convert an amount between today's and future money.

    Example:
        profin inflation 100000 --years 10 --rate 6
    """
    from .constants import DEFAULT_INFLATION_RATE
    from .inflation import future_value, goal_inflation_rate, present_value

    console = _console(ctx)
    if rate is None:
        rate = goal_inflation_rate(category) if category else DEFAULT_INFLATION_RATE

    try:
        if present:
            value = present_value(amount, years, rate)
            message = f"{_money(amount)} in {years:g} years is worth {_money(value)} today at {rate:g}%"
        else:
            value = future_value(amount, years, rate)
            message = f"{_money(amount)} today costs {_money(value)} in {years:g} years at {rate:g}%"
    except ProFinError as e:
        _fail(str(e))

    if console:
        console.print(Panel(message, title="Inflation"))
    else:
        click.echo(message)


# ---------------------------------------------------------------------------
# info
# ---------------------------------------------------------------------------

@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display package, regime and dependency information.
    """
    from importlib.metadata import PackageNotFoundError, version

    from .tax_data import FINANCIAL_YEAR, REGIMES

    console = _console(ctx)
    settings = ctx.obj["settings"]

    info_lines = [
        f"ProFin Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
        f"Tax year: {FINANCIAL_YEAR} (regimes: {', '.join(sorted(REGIMES))})",
        f"Default regime: {settings.default_regime}",
        f"Log level: {settings.log_level}",
    ]

    for name in ("numpy", "pandas", "pydantic", "pydantic-settings", "click", "rich"):
        try:
            info_lines.append(f"{name}: {version(name)}")
        except PackageNotFoundError:
            info_lines.append(f"{name}: not installed")

    if console:
        console.print(Panel("\n".join(info_lines), title="System Information"))
    else:
        for line in info_lines:
            click.echo(line)


if __name__ == "__main__":
    main()
