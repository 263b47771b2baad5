"""
Global constants for ProFin.

Purpose
-------
Centralizes default values and magic numbers used throughout the ProFin
codebase. All percentages are whole numbers (12 means 12%).

Usage
-----
>>> from profin.constants import DEFAULT_ITERATIONS, HORIZON_CAP_MONTHS
>>>
>>> result = simulate_goal(..., iterations=DEFAULT_ITERATIONS)

Categories
----------
- Simulation: Monte Carlo iteration counts, block sizes, percentile levels
- Horizons: Month caps for iterative solvers
- Assumptions: Default return, volatility and inflation rates
- Loans: Default down payment, loan terms and EMI affordability thresholds
- Life-stage goals: Retirement and education planning assumptions
"""

from typing import Tuple

__all__ = [
    # Simulation
    "DEFAULT_ITERATIONS",
    "DEFAULT_ITERATIONS_TRADEOFF",
    "DEFAULT_ITERATIONS_PROJECTION",
    "DEFAULT_ITERATIONS_WINDFALL",
    "TRIAL_BLOCK_SIZE",
    "DEFAULT_PERCENTILES",
    # Horizons
    "HORIZON_CAP_MONTHS",
    "MAX_PROJECTION_POINTS",
    "MONTHS_PER_YEAR",
    "DAYS_PER_MONTH",
    "DAYS_PER_YEAR",
    "ZERO_RATE_TOLERANCE",
    # Assumptions
    "DEFAULT_EXPECTED_RETURN",
    "DEFAULT_VOLATILITY",
    "DEFAULT_ASSET_RETURN",
    "DEFAULT_INFLATION_RATE",
    # Loans
    "DEFAULT_DOWNPAYMENT_PERCENT",
    "DEFAULT_LOAN_INTEREST_RATE",
    "DEFAULT_LOAN_TENURE_YEARS",
    "EMI_CAUTION_RATIO",
    "EMI_WARNING_RATIO",
    # Life-stage goals
    "DEFAULT_RETIREMENT_EXPENSES",
    "DEFAULT_CURRENT_AGE",
    "DEFAULT_LIFE_EXPECTANCY",
    "DEFAULT_EDUCATION_AGE",
    "DEFAULT_EDUCATION_YEARS",
]


# =============================================================================
# Simulation Defaults
# =============================================================================

DEFAULT_ITERATIONS: int = 1000
"""Default number of Monte Carlo trials for goal simulations."""

DEFAULT_ITERATIONS_TRADEOFF: int = 500
"""Trials for interactive trade-off sliders (speed over precision)."""

DEFAULT_ITERATIONS_PROJECTION: int = 100
"""Trials per time step when building projection bands."""

DEFAULT_ITERATIONS_WINDFALL: int = 100
"""Trials used to value an invested windfall."""

TRIAL_BLOCK_SIZE: int = 256
"""Trials per independent random stream.

Fixed so that a seeded simulation returns the same sample regardless of
how many workers the blocks are spread across.
"""

DEFAULT_PERCENTILES: Tuple[float, ...] = (0.10, 0.25, 0.50, 0.75, 0.90)
"""Percentile levels reported by goal simulations."""


# =============================================================================
# Horizons
# =============================================================================

HORIZON_CAP_MONTHS: int = 600
"""Hard cap (50 years) for month-by-month iterations."""

MAX_PROJECTION_POINTS: int = 120
"""Maximum monthly points in a projection band before the step widens."""

MONTHS_PER_YEAR: int = 12
"""Number of months in a year."""

DAYS_PER_MONTH: float = 30.44
"""Average month length used to turn date differences into months."""

DAYS_PER_YEAR: float = 365.25
"""Average year length used to turn date differences into years."""

ZERO_RATE_TOLERANCE: float = 1e-12
"""Monthly rates at or below this magnitude use linear formulas."""


# =============================================================================
# Assumptions
# =============================================================================

DEFAULT_EXPECTED_RETURN: float = 12.0
"""Default expected annual return (%) for an equity-heavy goal portfolio."""

DEFAULT_VOLATILITY: float = 15.0
"""Default annual volatility (%) for goal simulations."""

DEFAULT_ASSET_RETURN: float = 10.0
"""Default expected annual return (%) for a sub-portfolio without one."""

DEFAULT_INFLATION_RATE: float = 6.0
"""Default general (CPI) inflation rate (%)."""


# =============================================================================
# Loans
# =============================================================================

DEFAULT_DOWNPAYMENT_PERCENT: float = 20.0
"""Share of a loan-funded goal paid upfront (%)."""

DEFAULT_LOAN_INTEREST_RATE: float = 8.5
"""Default annual interest rate (%) for loan-funded goals."""

DEFAULT_LOAN_TENURE_YEARS: int = 20
"""Default tenure (years) for loan-funded goals."""

EMI_CAUTION_RATIO: float = 40.0
"""Total EMIs above this share of gross income (%) call for caution."""

EMI_WARNING_RATIO: float = 50.0
"""Total EMIs above this share of gross income (%) are flagged as unaffordable."""


# =============================================================================
# Life-stage Goals
# =============================================================================

DEFAULT_RETIREMENT_EXPENSES: float = 50_000.0
"""Monthly expenses (today's money) assumed for retirement plans without a household."""

DEFAULT_CURRENT_AGE: int = 30
"""Age of the earner when planning retirement."""

DEFAULT_LIFE_EXPECTANCY: int = 85
"""Age up to which a retirement corpus must last."""

DEFAULT_EDUCATION_AGE: int = 18
"""Age at which a child starts higher education."""

DEFAULT_EDUCATION_YEARS: int = 4
"""Length of a higher-education programme in years."""
