"""
Type definitions for ProFin.

Purpose
-------
Provides TypedDict definitions for the dict-shaped outputs ProFin hands to
presentation layers. Engines return dataclasses; these dicts are what
``to_dict()`` methods and helper reports produce.

Type Definitions
----------------
PercentilesDict
    Nearest-rank percentiles of a simulated sample: {"p10", ..., "p90"}

TaxBreakdownDict
    Deductions and exemptions applied on the way to taxable income

PaymentRowDict
    One (month, debt) row of a payoff schedule

DebtSummaryDict
    Per-debt totals of a payoff plan

ErosionDict
    Purchasing-power erosion of an amount over time
"""

from typing import Dict
from typing_extensions import NotRequired, TypedDict

__all__ = [
    "PercentilesDict",
    "TaxBreakdownDict",
    "PaymentRowDict",
    "DebtSummaryDict",
    "ErosionDict",
]


class PercentilesDict(TypedDict, total=False):
    """
    Nearest-rank percentiles of terminal wealth.

    Examples
    --------
    >>> pct: PercentilesDict = {"p10": 812_000, "p50": 1_040_000, "p90": 1_310_000}
    """

    p10: float
    p25: float
    p50: float
    p75: float
    p90: float


class TaxBreakdownDict(TypedDict):
    """
    Path from gross to taxable income.

    Attributes
    ----------
    gross_income : float
        Income before any deduction.
    deductions : Dict[str, float]
        Amount actually deducted per category, after ceilings
        (always contains "standard_deduction").
    exemptions : Dict[str, float]
        Exempt components (e.g., "hra").
    taxable_income : float
        Income the slab table is applied to, floored at zero.
    slab_taxes : Dict[str, float]
        Tax collected in each slab, keyed "lower-upper@rate%".
    """

    gross_income: float
    deductions: Dict[str, float]
    exemptions: Dict[str, float]
    taxable_income: float
    slab_taxes: Dict[str, float]


class PaymentRowDict(TypedDict):
    """One debt's activity in one month of a payoff schedule."""

    month: int
    debt: str
    payment: float
    interest: float
    principal: float
    balance: float


class DebtSummaryDict(TypedDict):
    """Per-debt outcome of a payoff plan."""

    name: str
    initial_balance: float
    total_paid: float
    interest_paid: float
    months_paid: int
    payoff_month: NotRequired[int]


class ErosionDict(TypedDict):
    """Purchasing power lost to inflation."""

    current_value: float
    future_equivalent: float
    erosion: float
    erosion_percentage: float
    message: str
