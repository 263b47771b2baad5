"""General utilities for ProFin

Contents
--------
- Validation helpers
- Rate conversions (whole-number percent -> monthly decimal)
- Sample statistics (nearest-rank percentile)
- Calendar helpers (month index, months/years between dates)
- Formatting helpers (currency, rounding at presentation boundaries)
"""

from __future__ import annotations

import math
from datetime import date
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .constants import DAYS_PER_MONTH, DAYS_PER_YEAR, MONTHS_PER_YEAR
from .exceptions import ValidationError

__all__ = [
    # Validation
    "check_non_negative",
    "check_positive",
    # Rates
    "pct_to_monthly_rate",
    "pct_to_monthly_volatility",
    "horizon_months",
    # Statistics
    "nearest_rank",
    # Calendar
    "month_index",
    "days_between",
    "months_between",
    "years_between",
    # Formatting
    "round_money",
    "format_currency",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict) or not a finite number."""
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number (got {value}).")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative (got {value}).")


def check_positive(name: str, value: float) -> None:
    """Raise if *value* is zero, negative or not a finite number."""
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number (got {value}).")
    if value <= 0:
        raise ValidationError(f"{name} must be positive (got {value}).")


# ---------------------------------------------------------------------------
# Rate conversions (simple, percent based)
# ---------------------------------------------------------------------------

def pct_to_monthly_rate(annual_pct: float) -> float:
    """Convert a whole-number annual percentage to a simple monthly rate.

    Uses: annual_pct / 100 / 12 (nominal, not compounded). ``12`` -> ``0.01``.
    """
    return float(annual_pct) / 100.0 / MONTHS_PER_YEAR


def pct_to_monthly_volatility(annual_pct: float) -> float:
    """Scale a whole-number annual volatility to monthly: pct / 100 / sqrt(12)."""
    return float(annual_pct) / 100.0 / math.sqrt(MONTHS_PER_YEAR)


def horizon_months(years: float) -> int:
    """Number of monthly steps in *years*: round(years * 12)."""
    return int(round(float(years) * MONTHS_PER_YEAR))


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

def nearest_rank(sorted_values: np.ndarray | Sequence[float], p: float) -> float:
    """Read the *p*-quantile of an ascending sample by nearest rank.

    The index is ``floor(n * p)`` clamped to ``n - 1``; no interpolation.
    ``p = 0`` returns the minimum.

    Examples
    --------
    >>> nearest_rank([1.0, 2.0, 3.0, 4.0], 0.5)
    3.0
    """
    n = len(sorted_values)
    if n == 0:
        raise ValidationError("cannot take a percentile of an empty sample.")
    if not (0.0 <= p <= 1.0):
        raise ValidationError(f"percentile level must be in [0, 1], got {p}.")
    idx = min(int(math.floor(n * p)), n - 1)
    return float(sorted_values[idx])


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def month_index(start: Optional[date], months: int) -> pd.DatetimeIndex:
    """Construct a first-of-month DatetimeIndex for *months* periods.

    If *start* is None, uses the current month as the first period.
    """
    if months <= 0:
        return pd.DatetimeIndex([], dtype="datetime64[ns]")
    if start is None:
        today = pd.Timestamp.today().normalize()
        first = pd.Timestamp(today.year, today.month, 1)
    else:
        first = pd.Timestamp(start.year, start.month, 1)
    return pd.date_range(start=first, periods=months, freq="MS")


def days_between(start: date, end: date) -> int:
    """Signed number of days from *start* to *end*."""
    return (end - start).days


def months_between(start: date, end: date) -> int:
    """Whole months from *start* to *end* using 30.44-day months (rounded)."""
    return int(round(days_between(start, end) / DAYS_PER_MONTH))


def years_between(start: date, end: date) -> float:
    """Fractional years from *start* to *end* (365.25-day years)."""
    return days_between(start, end) / DAYS_PER_YEAR


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def round_money(value: float) -> int:
    """Round a monetary amount for presentation (half away from zero)."""
    value = float(value)
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def format_currency(value: float, symbol: str = "₹", decimals: int = 0) -> str:
    """
    Format a monetary amount for messages and tables.

    Examples
    --------
    >>> format_currency(125000)
    '₹125,000'
    >>> format_currency(-4347.14, decimals=2)
    '-₹4,347.14'
    """
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"
