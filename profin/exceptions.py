"""
Custom exceptions for ProFin.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all ProFin modules. All exceptions inherit from ProFinError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
ProFinError (base)
├── ConfigurationError - Invalid configuration or regime data
└── ValidationError - Invalid caller input (negative amounts, bad counts)
    └── TimeIndexError - Target dates not strictly in the future

Non-convergent iterations (debt payoff, months-to-target) are NOT errors:
they are reported through sentinel results (``None`` or ``converged=False``).
Near-zero rates never raise; the closed-form formulas fall back to their
linear equivalents.

Usage
-----
>>> from profin.exceptions import ValidationError
>>>
>>> raise ValidationError("iterations must be positive, got 0")
>>>
>>> try:
...     result = simulate_goal(...)
... except ProFinError as e:
...     print(f"ProFin error: {e}")
"""

__all__ = [
    "ProFinError",
    "ConfigurationError",
    "ValidationError",
    "TimeIndexError",
]


class ProFinError(Exception):
    """
    Base exception for all ProFin errors.

    Examples
    --------
    >>> try:
    ...     compute_tax(-1, "new")
    ... except ProFinError as e:
    ...     LOGGER.error("Tax computation failed: %s", e)
    """
    pass


class ConfigurationError(ProFinError):
    """
    Invalid configuration or parameters.

    Raised when model configuration is invalid, such as:
    - Slab tables with gaps, overlaps or a bounded top slab
    - Unknown tax regime names
    - Surcharge tiers out of order

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "slab 2 starts at 500000 but previous slab ends at 400000. "
    ...     "Slabs must be contiguous."
    ... )
    """
    pass


class ValidationError(ProFinError):
    """
    Input validation failures.

    Raised when caller data fails validation checks, such as:
    - Negative amounts or rates
    - Non-positive iteration counts
    - Debts with a non-positive installment

    Examples
    --------
    >>> raise ValidationError(
    ...     f"iterations must be positive, got {iterations}. "
    ...     f"Use iterations >= 1 for a valid simulation."
    ... )
    """
    pass


class TimeIndexError(ValidationError):
    """
    Month/date indexing errors.

    Raised when a goal's target date is not strictly after the
    evaluation date.

    Examples
    --------
    >>> raise TimeIndexError(
    ...     f"target_date {target_date} must be after {as_of}."
    ... )
    """
    pass
