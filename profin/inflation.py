"""
Inflation engine for ProFin.

Purpose
-------
Present/future value conversions at a whole-number inflation rate and
category-specific inflation lookups for goals. All functions are pure.

    FV = PV (1 + i/100)^n,        PV = FV / (1 + i/100)^n

Real returns use the Fisher relation:

    (1 + r_real) = (1 + r_nominal) / (1 + i)

Example
-------
>>> from profin.inflation import future_value, present_value, goal_inflation_rate
>>> future_value(100_000, years=10, rate=6)
179084.7...
>>> present_value(future_value(100_000, 10, 6), 10, 6)
100000.0...
>>> goal_inflation_rate("education")
10.0
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

import pandas as pd

from .constants import DEFAULT_INFLATION_RATE, MONTHS_PER_YEAR
from .exceptions import ValidationError
from .types import ErosionDict
from .utils import format_currency, round_money, years_between

__all__ = [
    "CATEGORY_INFLATION_RATES",
    "GOAL_INFLATION_CATEGORY",
    "future_value",
    "present_value",
    "real_return",
    "required_nominal_return",
    "goal_inflation_rate",
    "GoalInflation",
    "adjust_goal_for_inflation",
    "inflation_table",
    "purchasing_power_erosion",
    "RetirementCorpus",
    "retirement_corpus",
    "EducationProjection",
    "education_cost_projection",
]


CATEGORY_INFLATION_RATES: Dict[str, float] = {
    "education": 10.0,
    "healthcare": 8.0,
    "housing": 7.0,
    "car": 5.0,
    "general": 6.0,
    "food": 6.0,
    "travel": 4.0,
}
"""Annual inflation (%) by spending category."""

GOAL_INFLATION_CATEGORY: Dict[str, str] = {
    "house": "housing",
    "education": "education",
    "car": "car",
    "retirement": "general",
    "wedding": "general",
    "travel": "travel",
    "emergency": "general",
    "other": "general",
}
"""Goal type -> inflation category. Unknown goal types map to "general"."""


def _growth(rate: float) -> float:
    if rate <= -100.0:
        raise ValidationError(f"inflation rate must be > -100%, got {rate}")
    return 1.0 + rate / 100.0


# ---------------------------------------------------------------------------
# Core conversions
# ---------------------------------------------------------------------------

def future_value(present_value: float, years: float, rate: float = DEFAULT_INFLATION_RATE) -> float:
    """Value after ``years`` of compounding at ``rate`` percent a year."""
    return float(present_value) * _growth(rate) ** years


def present_value(future_value: float, years: float, rate: float = DEFAULT_INFLATION_RATE) -> float:
    """Today's equivalent of an amount ``years`` ahead at ``rate`` percent a year."""
    return float(future_value) / _growth(rate) ** years


def real_return(nominal_return: float, inflation_rate: float = DEFAULT_INFLATION_RATE) -> float:
    """Inflation-adjusted return (%) via the Fisher relation."""
    return ((1.0 + nominal_return / 100.0) / _growth(inflation_rate) - 1.0) * 100.0


def required_nominal_return(target_real_return: float, inflation_rate: float = DEFAULT_INFLATION_RATE) -> float:
    """Nominal return (%) needed to earn ``target_real_return`` after inflation."""
    return ((1.0 + target_real_return / 100.0) * _growth(inflation_rate) - 1.0) * 100.0


def goal_inflation_rate(goal_type: str) -> float:
    """Category inflation rate (%) for a goal type."""
    category = GOAL_INFLATION_CATEGORY.get(goal_type, "general")
    return CATEGORY_INFLATION_RATES[category]


# ---------------------------------------------------------------------------
# Goal adjustment
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GoalInflation:
    today_value: float
    future_value: float
    years: float
    inflation_rate: float

    @property
    def total_inflation(self) -> float:
        """Cumulative price increase over the horizon (%)."""
        if self.today_value == 0:
            return 0.0
        return (self.future_value / self.today_value - 1.0) * 100.0


def adjust_goal_for_inflation(
    current_cost: float,
    target_date: date,
    inflation_rate: float = DEFAULT_INFLATION_RATE,
    category_rate: Optional[float] = None,
    as_of: Optional[date] = None,
) -> GoalInflation:
    """
    Inflate today's cost of a goal to its target date.

    ``category_rate`` overrides ``inflation_rate`` when given. Target dates
    on or before ``as_of`` (default: today) get no inflation.
    """
    as_of = as_of or date.today()
    years = years_between(as_of, target_date)
    if years <= 0:
        return GoalInflation(float(current_cost), float(current_cost), 0.0, 0.0)

    rate = category_rate if category_rate is not None else inflation_rate
    return GoalInflation(
        today_value=float(current_cost),
        future_value=future_value(current_cost, years, rate),
        years=years,
        inflation_rate=rate,
    )


def inflation_table(
    current_cost: float,
    years: int,
    rate: float = DEFAULT_INFLATION_RATE,
    start_year: Optional[int] = None,
) -> pd.DataFrame:
    """
    Year-by-year cost of an item under constant inflation.

    Returns
    -------
    pd.DataFrame
        Indexed by calendar year with columns
        ["value", "yearly_increase", "cumulative_inflation"] (last one in %).
    """
    start_year = start_year if start_year is not None else date.today().year
    rows = []
    for year in range(int(years) + 1):
        value = future_value(current_cost, year, rate)
        increase = value - future_value(current_cost, year - 1, rate) if year > 0 else 0.0
        cumulative = (value / current_cost - 1.0) * 100.0 if current_cost else 0.0
        rows.append({
            "year": start_year + year,
            "value": value,
            "yearly_increase": increase,
            "cumulative_inflation": cumulative,
        })
    return pd.DataFrame(rows).set_index("year")


def purchasing_power_erosion(
    amount: float,
    years: float,
    rate: float = DEFAULT_INFLATION_RATE,
) -> ErosionDict:
    """How much of ``amount``'s purchasing power inflation removes over ``years``."""
    equivalent = present_value(amount, years, rate)
    erosion = amount - equivalent
    pct = (erosion / amount) * 100.0 if amount else 0.0
    return {
        "current_value": float(amount),
        "future_equivalent": equivalent,
        "erosion": erosion,
        "erosion_percentage": pct,
        "message": (
            f"{format_currency(amount)} today will be worth only "
            f"{format_currency(round_money(equivalent))} in {years:g} years"
        ),
    }


# ---------------------------------------------------------------------------
# Corpus projections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RetirementCorpus:
    monthly_expenses_today: float
    monthly_expenses_at_retirement: float
    corpus_required: float
    years_to_retirement: int
    retirement_years: int


def retirement_corpus(
    monthly_expenses: float = 50_000,
    current_age: int = 30,
    retirement_age: int = 60,
    life_expectancy: int = 85,
    pre_retirement_inflation: float = 6.0,
    post_retirement_inflation: float = 5.0,
    post_retirement_return: float = 6.0,
) -> RetirementCorpus:
    """
    Corpus needed at retirement to fund inflating expenses until life expectancy.

    Expenses are inflated to the retirement date, then the corpus is the
    present value (at retirement) of a monthly annuity discounted at the
    real post-retirement return. A non-positive real return falls back to
    expenses x months.
    """
    if retirement_age < current_age or life_expectancy < retirement_age:
        raise ValidationError(
            "ages must satisfy current_age <= retirement_age <= life_expectancy, "
            f"got {current_age}, {retirement_age}, {life_expectancy}"
        )
    years_to_retirement = retirement_age - current_age
    retirement_years = life_expectancy - retirement_age

    expenses_at_retirement = future_value(
        monthly_expenses, years_to_retirement, pre_retirement_inflation
    )
    monthly_real = real_return(post_retirement_return, post_retirement_inflation) / 100.0 / MONTHS_PER_YEAR
    n = retirement_years * MONTHS_PER_YEAR

    if monthly_real <= 0:
        corpus = expenses_at_retirement * n
    else:
        corpus = expenses_at_retirement * (1.0 - (1.0 + monthly_real) ** -n) / monthly_real

    return RetirementCorpus(
        monthly_expenses_today=float(monthly_expenses),
        monthly_expenses_at_retirement=expenses_at_retirement,
        corpus_required=corpus,
        years_to_retirement=years_to_retirement,
        retirement_years=retirement_years,
    )


@dataclass(frozen=True)
class EducationProjection:
    current_annual_cost: float
    total_cost_today: float
    total_cost_future: float
    start_year: int
    year_wise: pd.DataFrame

    @property
    def inflation_multiple(self) -> float:
        if self.total_cost_today == 0:
            return 0.0
        return self.total_cost_future / self.total_cost_today


def education_cost_projection(
    current_cost: float = 1_000_000,
    child_age: int = 5,
    education_age: int = 18,
    education_duration: int = 4,
    education_inflation: float = 10.0,
    start_year: Optional[int] = None,
) -> EducationProjection:
    """Inflated cost of each year of a multi-year education programme."""
    this_year = start_year if start_year is not None else date.today().year
    years_to_start = education_age - child_age

    rows = []
    for i in range(education_duration):
        years_from_now = years_to_start + i
        rows.append({
            "year": this_year + years_from_now,
            "age": education_age + i,
            "cost": future_value(current_cost, years_from_now, education_inflation),
        })
    year_wise = pd.DataFrame(rows, columns=["year", "age", "cost"])

    return EducationProjection(
        current_annual_cost=float(current_cost),
        total_cost_today=float(current_cost) * education_duration,
        total_cost_future=float(year_wise["cost"].sum()),
        start_year=this_year + years_to_start,
        year_wise=year_wise,
    )
