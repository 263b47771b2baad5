"""
Goal solver for ProFin.

Purpose
-------
Annuity mathematics for savings goals, and the achievability assessment
that ties the tax, inflation and projection engines together.

Key formulas
------------
With r = annual_rate / 12 / 100 and n = round(years * 12):

    FV(current)  = current (1 + r)^n
    SIP required = (target - FV(current)) r / ((1 + r)^n - 1)      (r ≠ 0)
                 = (target - current) / n                          (r ≈ 0)

    EMI = P r (1 + r)^N / ((1 + r)^N - 1)                           (loans)

Achievability
-------------
``assess_goal`` runs the Monte Carlo projection with the household's
*disposable* monthly income (gross - tax - expenses - EMIs - other goals'
contributions) as the contribution, so the probability measures what the
household can afford against what the goal needs. ``assess_goals`` commits
each goal's required SIP before charging it to the others.

Phased plans
------------
``goal_plan`` splits a goal into phases by funding and goal type:

- loan: save the down payment, buy, repay the EMI
- retirement: accumulate the corpus from ``retirement_corpus``
- education: fund the study years from ``education_cost_projection``

Example
-------
>>> from profin.goals import required_monthly_contribution, months_to_target
>>> round(required_monthly_contribution(0, 1_000_000, 10, 12))
4347
>>> months_to_target(0, 10_000, 12, 100_000)
10
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date
import logging
import math
from typing import List, Literal, Optional, Sequence, Tuple

import pandas as pd

from .config import SimulationConfig
from .constants import (
    DEFAULT_CURRENT_AGE,
    DEFAULT_DOWNPAYMENT_PERCENT,
    DEFAULT_EDUCATION_AGE,
    DEFAULT_EDUCATION_YEARS,
    DEFAULT_EXPECTED_RETURN,
    DEFAULT_ITERATIONS_WINDFALL,
    DEFAULT_LIFE_EXPECTANCY,
    DEFAULT_LOAN_INTEREST_RATE,
    DEFAULT_LOAN_TENURE_YEARS,
    DEFAULT_RETIREMENT_EXPENSES,
    DEFAULT_VOLATILITY,
    EMI_CAUTION_RATIO,
    EMI_WARNING_RATIO,
    HORIZON_CAP_MONTHS,
    MONTHS_PER_YEAR,
    ZERO_RATE_TOLERANCE,
)
from .exceptions import TimeIndexError, ValidationError
from .inflation import (
    GOAL_INFLATION_CATEGORY,
    adjust_goal_for_inflation,
    education_cost_projection,
    goal_inflation_rate,
    retirement_corpus,
)
from .montecarlo import SimulationResult, simulate_goal
from .tax import DeductionInputs, compute_tax
from .utils import (
    check_non_negative,
    days_between,
    format_currency,
    horizon_months,
    months_between,
    pct_to_monthly_rate,
    round_money,
)
from .variates import SeedLike

__all__ = [
    "FundingType",
    "GoalSpec",
    "HouseholdSnapshot",
    "required_monthly_contribution",
    "months_to_target",
    "calculate_years_to_target",
    "WindfallImpact",
    "windfall_impact",
    "loan_emi",
    "months_until",
    "goal_future_value",
    "goal_required_contribution",
    "GoalAssessment",
    "assess_goal",
    "assess_goals",
    "GoalPhase",
    "LoanAffordability",
    "loan_affordability",
    "LoanSummary",
    "GoalPlan",
    "goal_plan",
]

LOGGER = logging.getLogger(__name__)

FundingType = Literal["cash", "loan"]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GoalSpec:
    """
    A savings goal.

    Parameters
    ----------
    name : str
        Display name.
    target_amount : float
        Cost in today's money (inflated to the target date when
        ``inflation_adjust`` is set).
    target_date : date
        When the money is needed. Must be after the evaluation date.
    current_value : float, default 0
        Amount already saved towards the goal.
    monthly_contribution : float, default 0
        What the household currently puts in each month.
    expected_return, volatility : float
        Annual whole-number percentages for the projection.
    funding_type : {"cash", "loan"}, default "cash"
        Loan-funded goals only accumulate the down payment.
    inflation_adjust : bool, default True
        Inflate ``target_amount`` at the goal type's category rate.
    goal_type : str, default "other"
        house, retirement, education, car, wedding, travel, emergency, other.
    downpayment_percent, loan_interest_rate, loan_tenure_years
        Loan terms for loan-funded goals.
    """
    name: str
    target_amount: float
    target_date: date
    current_value: float = 0.0
    monthly_contribution: float = 0.0
    expected_return: float = DEFAULT_EXPECTED_RETURN
    volatility: float = DEFAULT_VOLATILITY
    funding_type: FundingType = "cash"
    inflation_adjust: bool = True
    goal_type: str = "other"
    downpayment_percent: float = DEFAULT_DOWNPAYMENT_PERCENT
    loan_interest_rate: float = DEFAULT_LOAN_INTEREST_RATE
    loan_tenure_years: int = DEFAULT_LOAN_TENURE_YEARS

    def __post_init__(self):
        check_non_negative(f"{self.name}.target_amount", self.target_amount)
        check_non_negative(f"{self.name}.current_value", self.current_value)
        check_non_negative(f"{self.name}.monthly_contribution", self.monthly_contribution)
        check_non_negative(f"{self.name}.volatility", self.volatility)
        check_non_negative(f"{self.name}.loan_interest_rate", self.loan_interest_rate)
        check_non_negative(f"{self.name}.loan_tenure_years", self.loan_tenure_years)
        if self.funding_type not in ("cash", "loan"):
            raise ValidationError(
                f"{self.name}: funding_type must be 'cash' or 'loan', got '{self.funding_type}'"
            )
        if self.goal_type not in GOAL_INFLATION_CATEGORY:
            raise ValidationError(
                f"{self.name}: unknown goal type '{self.goal_type}'. "
                f"Valid types: {sorted(GOAL_INFLATION_CATEGORY)}"
            )
        if not (0.0 <= self.downpayment_percent <= 100.0):
            raise ValidationError(
                f"{self.name}: downpayment_percent must be in [0, 100], "
                f"got {self.downpayment_percent}"
            )


@dataclass(frozen=True)
class HouseholdSnapshot:
    """
    Monthly cash flows of a household at evaluation time.

    ``monthly_income`` is gross; tax is derived from it with the tax
    engine on an annualized basis.
    """
    monthly_income: float
    monthly_expenses: float = 0.0
    existing_emis: float = 0.0
    other_goal_contributions: float = 0.0
    tax_regime: str = "new"
    deductions: Optional[DeductionInputs] = None

    def __post_init__(self):
        check_non_negative("monthly_income", self.monthly_income)
        check_non_negative("monthly_expenses", self.monthly_expenses)
        check_non_negative("existing_emis", self.existing_emis)
        check_non_negative("other_goal_contributions", self.other_goal_contributions)

    @property
    def monthly_tax(self) -> float:
        annual = compute_tax(self.monthly_income * MONTHS_PER_YEAR, self.tax_regime, self.deductions)
        return annual.monthly_tax

    def disposable_income(self) -> float:
        """Income left for a new goal each month, floored at zero."""
        spare = (
            self.monthly_income
            - self.monthly_tax
            - self.monthly_expenses
            - self.existing_emis
            - self.other_goal_contributions
        )
        return max(0.0, spare)


# ---------------------------------------------------------------------------
# Annuity mathematics
# ---------------------------------------------------------------------------

def required_monthly_contribution(
    current_amount: float,
    target_amount: float,
    years: float,
    annual_rate: float = DEFAULT_EXPECTED_RETURN,
) -> float:
    """
    Monthly contribution needed to grow ``current_amount`` into ``target_amount``.

    Parameters
    ----------
    current_amount : float
        Amount saved today.
    target_amount : float
        Amount needed at the horizon.
    years : float
        Horizon in years (non-negative).
    annual_rate : float, default 12
        Expected annual return in whole percent.

    Returns
    -------
    float
        Never negative. 0 when the current amount alone reaches the
        target. With a zero horizon the whole shortfall is due at once.

    Examples
    --------
    >>> round(required_monthly_contribution(0, 1_000_000, 10, 12))
    4347
    >>> required_monthly_contribution(2_000_000, 1_000_000, 10, 12)
    0.0
    >>> required_monthly_contribution(0, 120_000, 10, 0)
    1000.0
    """
    check_non_negative("current_amount", current_amount)
    check_non_negative("target_amount", target_amount)
    check_non_negative("years", years)

    n = horizon_months(years)
    if n == 0:
        return max(0.0, float(target_amount) - float(current_amount))

    r = pct_to_monthly_rate(annual_rate)
    if abs(r) <= ZERO_RATE_TOLERANCE:
        return max(0.0, (float(target_amount) - float(current_amount)) / n)

    growth = (1.0 + r) ** n
    fv_current = current_amount * growth
    if fv_current >= target_amount:
        return 0.0
    return max(0.0, (target_amount - fv_current) * r / (growth - 1.0))


def months_to_target(
    current_amount: float,
    monthly_contribution: float,
    annual_rate: float,
    target_amount: float,
) -> Optional[int]:
    """
    Months of deterministic compounding until ``target_amount`` is reached.

    Each month: value = value × (1 + r) + contribution. Returns None when
    the target is not reached within ``HORIZON_CAP_MONTHS`` months.
    """
    r = pct_to_monthly_rate(annual_rate)
    value = float(current_amount)
    months = 0
    while value < target_amount and months < HORIZON_CAP_MONTHS:
        value = value * (1.0 + r) + monthly_contribution
        months += 1
    if value < target_amount:
        LOGGER.debug("target %.2f unreachable within %d months", target_amount, HORIZON_CAP_MONTHS)
        return None
    return months


def calculate_years_to_target(
    current_amount: float,
    monthly_contribution: float,
    annual_rate: float,
    target_amount: float,
) -> Optional[float]:
    """``months_to_target`` expressed in years."""
    months = months_to_target(current_amount, monthly_contribution, annual_rate, target_amount)
    return None if months is None else months / MONTHS_PER_YEAR


@dataclass(frozen=True)
class WindfallImpact:
    months_without: int
    months_with: int
    invested_value: Optional[float] = None

    @property
    def months_saved(self) -> int:
        return self.months_without - self.months_with


def windfall_impact(
    windfall: float,
    monthly_contribution: float,
    expected_return: float,
    target_amount: float,
    current_progress: float = 0.0,
    *,
    simulate: bool = True,
    seed: SeedLike = None,
) -> Optional[WindfallImpact]:
    """
    How many months a one-off windfall takes off reaching a target.

    Returns None if the target is unreachable with or without the windfall.
    With ``simulate=True`` also reports ``invested_value``: the median of a
    short Monte Carlo run of the windfall alone over the original horizon.
    """
    check_non_negative("windfall", windfall)
    without = months_to_target(current_progress, monthly_contribution, expected_return, target_amount)
    with_windfall = months_to_target(
        current_progress + windfall, monthly_contribution, expected_return, target_amount
    )
    if without is None or with_windfall is None:
        return None

    invested = None
    if simulate:
        invested = simulate_goal(
            current_amount=windfall,
            monthly_contribution=0.0,
            expected_return=expected_return,
            volatility=DEFAULT_VOLATILITY,
            years=without / MONTHS_PER_YEAR,
            target_amount=windfall * 2,
            iterations=DEFAULT_ITERATIONS_WINDFALL,
            seed=seed,
        ).p50
    return WindfallImpact(months_without=without, months_with=with_windfall, invested_value=invested)


def loan_emi(principal: float, annual_rate: float, tenure_years: float) -> float:
    """
    Equated monthly installment of an amortizing loan.

    Examples
    --------
    >>> round(loan_emi(1_000_000, 0, 10))
    8333
    >>> loan_emi(0, 8.5, 20)
    0.0
    """
    if principal <= 0 or tenure_years <= 0:
        return 0.0
    r = pct_to_monthly_rate(annual_rate)
    n = horizon_months(tenure_years)
    if abs(r) <= ZERO_RATE_TOLERANCE:
        return float(principal) / n
    growth = (1.0 + r) ** n
    return principal * r * growth / (growth - 1.0)


# ---------------------------------------------------------------------------
# Goal assessment
# ---------------------------------------------------------------------------

def months_until(target_date: date, as_of: Optional[date] = None) -> int:
    """
    Months from ``as_of`` (default today) to ``target_date``, at least 1.

    Raises
    ------
    TimeIndexError
        If ``target_date`` is not strictly after ``as_of``.
    """
    as_of = as_of or date.today()
    if days_between(as_of, target_date) <= 0:
        raise TimeIndexError(
            f"target date {target_date.isoformat()} must be after {as_of.isoformat()}"
        )
    return max(1, months_between(as_of, target_date))


def goal_future_value(
    goal: GoalSpec,
    as_of: Optional[date] = None,
    inflation_rate: Optional[float] = None,
) -> float:
    """
    Goal cost at its target date.

    Uses ``inflation_rate`` when given, otherwise the goal type's
    category rate. Goals without ``inflation_adjust`` keep their amount.
    """
    if not goal.inflation_adjust:
        return float(goal.target_amount)
    rate = inflation_rate if inflation_rate is not None else goal_inflation_rate(goal.goal_type)
    return adjust_goal_for_inflation(
        goal.target_amount, goal.target_date, category_rate=rate, as_of=as_of
    ).future_value


@dataclass(frozen=True)
class GoalAssessment:
    """
    Everything the caller needs to present a goal.

    Attributes
    ----------
    goal : GoalSpec
    future_value : float
        Inflated cost at the target date.
    target : float
        Amount to accumulate (down payment for loan-funded goals).
    months : int
        Months until the target date.
    required_contribution : float
        Monthly SIP needed to reach ``target`` at the expected return.
    disposable_income : float
        What the household can actually put in each month.
    projected_emi : float
        Post-purchase EMI of the loan part (0 for cash goals).
    simulation : SimulationResult
        Monte Carlo run using ``disposable_income`` as the contribution.
    """
    goal: GoalSpec
    future_value: float
    target: float
    months: int
    required_contribution: float
    disposable_income: float
    projected_emi: float
    simulation: SimulationResult

    @property
    def can_afford_required(self) -> bool:
        return self.disposable_income >= self.required_contribution

    @property
    def probability(self) -> float:
        return self.simulation.probability

    @property
    def shortfall(self) -> float:
        return max(0.0, self.required_contribution - self.disposable_income)

    def message(self) -> str:
        if self.can_afford_required:
            return (
                f"{self.goal.name}: needs {format_currency(round_money(self.required_contribution))}"
                f"/month; {format_currency(round_money(self.disposable_income))} available"
            )
        return (
            f"{self.goal.name}: short by {format_currency(round_money(self.shortfall))}/month"
        )

    def to_dict(self) -> dict:
        return {
            "name": self.goal.name,
            "future_value": round_money(self.future_value),
            "target": round_money(self.target),
            "months": self.months,
            "required_contribution": round_money(self.required_contribution),
            "disposable_income": round_money(self.disposable_income),
            "can_afford_required": self.can_afford_required,
            "projected_emi": round_money(self.projected_emi),
            "simulation": self.simulation.to_dict(),
        }


def _loan_split(goal: GoalSpec, cost: float) -> Tuple[float, float, float]:
    """Down payment, loan amount and EMI for a purchase of ``cost``."""
    down = cost * goal.downpayment_percent / 100.0
    principal = cost - down
    return down, principal, loan_emi(principal, goal.loan_interest_rate, goal.loan_tenure_years)


def _accumulation_terms(
    goal: GoalSpec,
    as_of: Optional[date],
    inflation_rate: Optional[float],
) -> Tuple[int, float, float, float]:
    """Months, inflated cost, amount to accumulate and post-purchase EMI."""
    months = months_until(goal.target_date, as_of)
    fv = goal_future_value(goal, as_of, inflation_rate)
    if goal.funding_type == "loan":
        target, _, emi = _loan_split(goal, fv)
    else:
        target, emi = fv, 0.0
    return months, fv, target, emi


def goal_required_contribution(
    goal: GoalSpec,
    as_of: Optional[date] = None,
    inflation_rate: Optional[float] = None,
) -> float:
    """Monthly SIP a goal needs to reach its accumulation target on time."""
    months, _, target, _ = _accumulation_terms(goal, as_of, inflation_rate)
    return required_monthly_contribution(
        goal.current_value, target, months / MONTHS_PER_YEAR, goal.expected_return
    )


def assess_goal(
    goal: GoalSpec,
    household: HouseholdSnapshot,
    *,
    as_of: Optional[date] = None,
    config: Optional[SimulationConfig] = None,
    seed: SeedLike = None,
    inflation_rate: Optional[float] = None,
) -> GoalAssessment:
    """
    Required contribution and achievability of one goal.

    Parameters
    ----------
    goal : GoalSpec
        The goal to assess.
    household : HouseholdSnapshot
        Cash flows used to derive disposable income.
    as_of : date, optional
        Evaluation date (default today).
    config : SimulationConfig, optional
        Iterations, seed and workers for the projection.
    seed : int, optional
        Overrides ``config.seed``.
    inflation_rate : float, optional
        Overrides the goal type's category inflation rate.

    Raises
    ------
    TimeIndexError
        If the goal's target date is not in the future.
    """
    config = config or SimulationConfig()
    months, fv, target, emi = _accumulation_terms(goal, as_of, inflation_rate)
    years = months / MONTHS_PER_YEAR

    required = required_monthly_contribution(goal.current_value, target, years, goal.expected_return)
    disposable = household.disposable_income()

    simulation = simulate_goal(
        current_amount=goal.current_value,
        monthly_contribution=disposable,
        expected_return=goal.expected_return,
        volatility=goal.volatility,
        years=years,
        target_amount=target,
        iterations=config.iterations,
        seed=seed if seed is not None else config.seed,
        workers=config.workers,
    )
    LOGGER.info(
        "%s: target=%.0f months=%d required=%.0f disposable=%.0f P=%.2f",
        goal.name, target, months, required, disposable, simulation.probability,
    )
    return GoalAssessment(
        goal=goal,
        future_value=fv,
        target=target,
        months=months,
        required_contribution=required,
        disposable_income=disposable,
        projected_emi=emi,
        simulation=simulation,
    )


def assess_goals(
    goals: Sequence[GoalSpec],
    household: HouseholdSnapshot,
    *,
    as_of: Optional[date] = None,
    config: Optional[SimulationConfig] = None,
    seed: SeedLike = None,
    inflation_rate: Optional[float] = None,
) -> List[GoalAssessment]:
    """
    Assess several goals against one household.

    Every goal first commits the larger of its required SIP and its
    current ``monthly_contribution``. Each goal is then assessed with the
    other goals' commitments deducted from disposable income, so one
    surplus is never counted twice.
    """
    committed = [
        max(goal_required_contribution(g, as_of, inflation_rate), g.monthly_contribution)
        for g in goals
    ]
    out = []
    for i, goal in enumerate(goals):
        others = sum(c for j, c in enumerate(committed) if j != i)
        snapshot = replace(
            household,
            other_goal_contributions=household.other_goal_contributions + others,
        )
        out.append(assess_goal(
            goal, snapshot, as_of=as_of, config=config, seed=seed, inflation_rate=inflation_rate,
        ))
    return out


# ---------------------------------------------------------------------------
# Goal plans
# ---------------------------------------------------------------------------

PhaseStatus = Literal["completed", "active", "pending", "future"]
PlanKind = Literal["cash", "loan", "retirement", "education"]


@dataclass(frozen=True)
class GoalPhase:
    """
    One stage in the life of a goal.

    Attributes
    ----------
    name, description : str
    status : {"completed", "active", "pending", "future"}
        "pending" marks a one-off event (purchase, withdrawal).
    start, end : date, optional
        Span of the phase; one-off events have ``end`` equal to ``start``.
    target, current : float
        Amount to accumulate and amount already saved (accumulation phases).
    monthly_amount : float
        SIP while accumulating, EMI while repaying, withdrawal in retirement.
    lump_sum : float
        One-off outflow (purchase price, a year of fees).
    """
    name: str
    description: str
    status: PhaseStatus
    start: Optional[date] = None
    end: Optional[date] = None
    target: float = 0.0
    current: float = 0.0
    monthly_amount: float = 0.0
    lump_sum: float = 0.0

    @property
    def progress(self) -> float:
        """Share of ``target`` already saved, in % (capped at 100)."""
        if self.target <= 0:
            return 100.0
        return min(100.0, self.current / self.target * 100.0)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "target": round_money(self.target),
            "current": round_money(self.current),
            "progress": round(self.progress, 1),
            "monthly_amount": round_money(self.monthly_amount),
            "lump_sum": round_money(self.lump_sum),
        }


@dataclass(frozen=True)
class LoanAffordability:
    """Total EMIs as a share of gross monthly income."""
    emi_ratio: float

    @property
    def verdict(self) -> str:
        if self.emi_ratio > EMI_WARNING_RATIO:
            return "warning"
        if self.emi_ratio > EMI_CAUTION_RATIO:
            return "caution"
        return "affordable"

    @property
    def message(self) -> str:
        pct = f"{self.emi_ratio:.0f}%" if math.isfinite(self.emi_ratio) else "all"
        if self.verdict == "warning":
            return (
                f"Warning: EMI would be {pct} of income "
                f"(recommended below {EMI_WARNING_RATIO:g}%)"
            )
        if self.verdict == "caution":
            return f"Caution: EMI would be {pct} of income"
        return f"Affordable: EMI would be {pct} of income"


def loan_affordability(
    new_emi: float,
    monthly_income: float,
    existing_emis: float = 0.0,
) -> LoanAffordability:
    """
    EMI-to-income check for a new loan.

    The ratio is (existing EMIs + new EMI) / gross monthly income in %.
    With no income, any EMI is infinitely unaffordable and no EMI is 0%.

    Examples
    --------
    >>> loan_affordability(30_000, 100_000, 15_000).verdict
    'caution'
    >>> loan_affordability(30_000, 100_000, 25_000).verdict
    'warning'
    """
    check_non_negative("new_emi", new_emi)
    check_non_negative("monthly_income", monthly_income)
    check_non_negative("existing_emis", existing_emis)
    total = existing_emis + new_emi
    if monthly_income > 0:
        ratio = total / monthly_income * 100.0
    else:
        ratio = math.inf if total > 0 else 0.0
    return LoanAffordability(emi_ratio=ratio)


@dataclass(frozen=True)
class LoanSummary:
    """Cost of a loan-funded purchase once the down payment is saved."""
    purchase_cost: float
    down_payment: float
    loan_amount: float
    emi: float
    tenure_years: int
    affordability: Optional[LoanAffordability] = None

    @property
    def total_payments(self) -> float:
        return self.emi * self.tenure_years * MONTHS_PER_YEAR

    @property
    def total_interest(self) -> float:
        return self.total_payments - self.loan_amount

    @property
    def total_cost_of_ownership(self) -> float:
        return self.down_payment + self.total_payments

    def to_dict(self) -> dict:
        out = {
            "purchase_cost": round_money(self.purchase_cost),
            "down_payment": round_money(self.down_payment),
            "loan_amount": round_money(self.loan_amount),
            "emi": round_money(self.emi),
            "tenure_years": self.tenure_years,
            "total_payments": round_money(self.total_payments),
            "total_interest": round_money(self.total_interest),
            "total_cost_of_ownership": round_money(self.total_cost_of_ownership),
        }
        if self.affordability is not None:
            out["emi_ratio_pct"] = (
                round(self.affordability.emi_ratio, 1)
                if math.isfinite(self.affordability.emi_ratio) else None
            )
            out["verdict"] = self.affordability.verdict
        return out


@dataclass(frozen=True)
class GoalPlan:
    """
    Phased plan for one goal.

    ``target`` is what must be accumulated by the target date: the down
    payment for loan-funded goals, the retirement corpus for retirement,
    the inflated fees of every study year for education, and the inflated
    cost otherwise.
    """
    goal: GoalSpec
    kind: PlanKind
    months: int
    target: float
    monthly_sip: float
    phases: Tuple[GoalPhase, ...]
    recommendation: str
    loan: Optional[LoanSummary] = None

    @property
    def active_phase(self) -> GoalPhase:
        for phase in self.phases:
            if phase.status == "active":
                return phase
        return self.phases[0]

    @property
    def total_contributions(self) -> float:
        return self.monthly_sip * self.months

    def to_dict(self) -> dict:
        out = {
            "name": self.goal.name,
            "kind": self.kind,
            "months": self.months,
            "target": round_money(self.target),
            "monthly_sip": round_money(self.monthly_sip),
            "total_contributions": round_money(self.total_contributions),
            "recommendation": self.recommendation,
            "phases": [p.to_dict() for p in self.phases],
        }
        if self.loan is not None:
            out["loan"] = self.loan.to_dict()
        return out


def _add_years(d: date, years: int) -> date:
    return (pd.Timestamp(d) + pd.DateOffset(years=years)).date()


def _accumulation_phase(
    name: str,
    description: str,
    start: date,
    end: date,
    target: float,
    current: float,
    sip: float,
) -> GoalPhase:
    return GoalPhase(
        name=name,
        description=description,
        status="completed" if current >= target else "active",
        start=start,
        end=end,
        target=target,
        current=current,
        monthly_amount=sip,
    )


def _loan_plan(goal, household, start, months, inflation_rate) -> GoalPlan:
    cost = goal_future_value(goal, start, inflation_rate)
    down, principal, emi = _loan_split(goal, cost)
    sip = required_monthly_contribution(
        goal.current_value, down, months / MONTHS_PER_YEAR, goal.expected_return
    )
    affordability = None
    if household is not None:
        affordability = loan_affordability(emi, household.monthly_income, household.existing_emis)
    loan = LoanSummary(
        purchase_cost=cost,
        down_payment=down,
        loan_amount=principal,
        emi=emi,
        tenure_years=goal.loan_tenure_years,
        affordability=affordability,
    )
    phases = (
        _accumulation_phase(
            "Accumulation", "Save for the down payment",
            start, goal.target_date, down, goal.current_value, sip,
        ),
        GoalPhase(
            name="Purchase",
            description="Pay the down payment and draw the loan",
            status="pending",
            start=goal.target_date,
            end=goal.target_date,
            lump_sum=cost,
        ),
        GoalPhase(
            name="EMI",
            description="Monthly loan repayments",
            status="future",
            start=goal.target_date,
            end=_add_years(goal.target_date, goal.loan_tenure_years),
            monthly_amount=emi,
        ),
    )
    if affordability is not None:
        recommendation = affordability.message
    elif emi > 0:
        recommendation = (
            f"EMI of {format_currency(round_money(emi))}/month will be added "
            "to your expenses after purchase"
        )
    else:
        recommendation = "No loan needed"
    return GoalPlan(goal, "loan", months, down, sip, phases, recommendation, loan)


def _cash_plan(goal, start, months, inflation_rate) -> GoalPlan:
    target = goal_future_value(goal, start, inflation_rate)
    sip = required_monthly_contribution(
        goal.current_value, target, months / MONTHS_PER_YEAR, goal.expected_return
    )
    phases = (
        _accumulation_phase(
            "Savings", "Build the corpus through regular SIPs",
            start, goal.target_date, target, goal.current_value, sip,
        ),
        GoalPhase(
            name="Goal achievement",
            description="Withdraw and use the funds",
            status="pending",
            start=goal.target_date,
            end=goal.target_date,
            lump_sum=target,
        ),
    )
    if sip > 0:
        recommendation = f"Invest {format_currency(round_money(sip))}/month in equity funds"
    else:
        recommendation = "Goal already funded"
    return GoalPlan(goal, "cash", months, target, sip, phases, recommendation)


def _retirement_plan(goal, household, start, months, current_age, life_expectancy) -> GoalPlan:
    expenses = DEFAULT_RETIREMENT_EXPENSES
    if household is not None and household.monthly_expenses > 0:
        expenses = household.monthly_expenses
    years_to_retirement = max(1, round(months / MONTHS_PER_YEAR))
    corpus = retirement_corpus(
        monthly_expenses=expenses,
        current_age=current_age,
        retirement_age=current_age + years_to_retirement,
        life_expectancy=life_expectancy,
    )
    saving_months = corpus.years_to_retirement * MONTHS_PER_YEAR
    sip = required_monthly_contribution(
        goal.current_value, corpus.corpus_required, corpus.years_to_retirement, goal.expected_return
    )
    phases = (
        _accumulation_phase(
            "Wealth building", "Grow the retirement corpus",
            start, goal.target_date, corpus.corpus_required, goal.current_value, sip,
        ),
        GoalPhase(
            name="Retirement",
            description="Systematic withdrawals",
            status="future",
            start=goal.target_date,
            end=_add_years(goal.target_date, corpus.retirement_years),
            monthly_amount=corpus.monthly_expenses_at_retirement,
        ),
    )
    recommendation = (
        f"Need {format_currency(round_money(corpus.corpus_required))} corpus for "
        f"{format_currency(round_money(corpus.monthly_expenses_at_retirement))}/month "
        "after retirement"
    )
    return GoalPlan(
        goal, "retirement", saving_months, corpus.corpus_required, sip, phases, recommendation
    )


def _education_plan(
    goal, start, months, inflation_rate, child_age, education_age, education_years,
) -> GoalPlan:
    years_to_start = max(1, round(months / MONTHS_PER_YEAR))
    if child_age is None:
        child_age = max(0, education_age - years_to_start)
    rate = inflation_rate if inflation_rate is not None else goal_inflation_rate(goal.goal_type)
    projection = education_cost_projection(
        current_cost=goal.target_amount / education_years,
        child_age=child_age,
        education_age=education_age,
        education_duration=education_years,
        education_inflation=rate,
        start_year=start.year,
    )
    target = projection.total_cost_future
    sip = required_monthly_contribution(
        goal.current_value, target, months / MONTHS_PER_YEAR, goal.expected_return
    )
    phases = [
        _accumulation_phase(
            "Savings", "Build the education corpus",
            start, goal.target_date, target, goal.current_value, sip,
        ),
    ]
    for i, row in enumerate(projection.year_wise.itertuples(index=False), start=1):
        fee_date = date(int(row.year), goal.target_date.month, 1)
        phases.append(GoalPhase(
            name=f"Year {i}: {int(row.year)}",
            description=f"Fees for study year {i}",
            status="future",
            start=fee_date,
            end=fee_date,
            lump_sum=float(row.cost),
        ))
    recommendation = (
        f"Education costs will be {projection.inflation_multiple:.1f}x today's value"
    )
    return GoalPlan(goal, "education", months, target, sip, tuple(phases), recommendation)


def goal_plan(
    goal: GoalSpec,
    household: Optional[HouseholdSnapshot] = None,
    *,
    as_of: Optional[date] = None,
    inflation_rate: Optional[float] = None,
    current_age: int = DEFAULT_CURRENT_AGE,
    life_expectancy: int = DEFAULT_LIFE_EXPECTANCY,
    child_age: Optional[int] = None,
    education_age: int = DEFAULT_EDUCATION_AGE,
    education_years: int = DEFAULT_EDUCATION_YEARS,
) -> GoalPlan:
    """
    Break a goal into phases according to how it is funded and its type.

    Plans
    -----
    loan
        Accumulate the down payment, purchase, then repay the EMI. With a
        household the EMI is checked against gross income.
    retirement
        The target date is the retirement date. The target is the
        ``retirement_corpus`` needed to cover the household's monthly
        expenses (inflated) until ``life_expectancy``.
    education
        ``target_amount`` is today's cost of the whole programme, spread
        over ``education_years``. The target is the sum of every year's
        inflated fees from ``education_cost_projection``. ``child_age``
        defaults to the age that starts studies at the target date.
    cash
        Everything else: accumulate the inflated cost.

    Raises
    ------
    TimeIndexError
        If the goal's target date is not in the future.
    ValidationError
        If the ages are inconsistent.

    Examples
    --------
    >>> from datetime import date
    >>> car = GoalSpec("Car", 1_000_000, date(2028, 4, 1), funding_type="loan", goal_type="car")
    >>> plan = goal_plan(car, as_of=date(2025, 4, 1))
    >>> [p.name for p in plan.phases]
    ['Accumulation', 'Purchase', 'EMI']
    """
    start = as_of or date.today()
    months = months_until(goal.target_date, start)
    if education_years < 1:
        raise ValidationError(f"education_years must be at least 1, got {education_years}")
    if child_age is not None and not (0 <= child_age <= education_age):
        raise ValidationError(
            f"child_age must be in [0, {education_age}], got {child_age}"
        )

    if goal.funding_type == "loan":
        plan = _loan_plan(goal, household, start, months, inflation_rate)
    elif goal.goal_type == "retirement":
        plan = _retirement_plan(goal, household, start, months, current_age, life_expectancy)
    elif goal.goal_type == "education":
        plan = _education_plan(
            goal, start, months, inflation_rate, child_age, education_age, education_years,
        )
    else:
        plan = _cash_plan(goal, start, months, inflation_rate)

    LOGGER.debug(
        "%s: %s plan, target=%.0f sip=%.0f over %d months",
        goal.name, plan.kind, plan.target, plan.monthly_sip, plan.months,
    )
    return plan
