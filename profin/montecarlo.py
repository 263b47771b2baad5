"""
Stochastic projection engine (Monte Carlo) for ProFin.

Mathematical Model
------------------
Each trial walks a portfolio month by month:

    W_{t+1} = W_t (1 + r_t) + c,    r_t ~ N(μ_m, σ_m)  i.i.d.

with μ_m = expected_return / 100 / 12 and σ_m = volatility / 100 / sqrt(12).
Terminal values W_T across trials are sorted ascending and summarized:

    probability = #(W_T ≥ target) / iterations
    p_q         = sorted[floor(iterations * q)]      (nearest rank)

Design principles
-----------------
- Stateless: every call builds its own random streams and returns a new result.
- Block-parallel: trials are grouped in fixed-size blocks, each with an
  independent stream; blocks may run on a thread pool and are merged only
  at the sort step.
- Reproducible: a seeded call yields the same sample for any worker count.
- Pluggable variates: the normal generator is injected through a factory.

Example
-------
>>> from profin.montecarlo import simulate_goal
>>> res = simulate_goal(
...     current_amount=200_000, monthly_contribution=15_000,
...     expected_return=12, volatility=15, years=5,
...     target_amount=1_500_000, iterations=1000, seed=42,
... )
>>> 0.0 <= res.probability <= 1.0
True
>>> res.percentiles["p10"] <= res.percentiles["p50"] <= res.percentiles["p90"]
True
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import (
    DEFAULT_ASSET_RETURN,
    DEFAULT_ITERATIONS,
    DEFAULT_ITERATIONS_PROJECTION,
    DEFAULT_ITERATIONS_TRADEOFF,
    DEFAULT_PERCENTILES,
    DEFAULT_VOLATILITY,
    MAX_PROJECTION_POINTS,
    TRIAL_BLOCK_SIZE,
)
from .exceptions import ValidationError
from .utils import (
    check_non_negative,
    horizon_months,
    month_index,
    nearest_rank,
    pct_to_monthly_rate,
    pct_to_monthly_volatility,
    round_money,
)
from .variates import (
    BoxMullerGenerator,
    GeneratorFactory,
    SeedLike,
    root_sequence,
    spawn_generators,
)
from .types import PercentilesDict

__all__ = [
    "AssetSpec",
    "SimulationResult",
    "simulate_goal",
    "simulate_portfolio",
    "tradeoff_simulation",
    "projection_bands",
]

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inputs and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AssetSpec:
    """
    One named sub-portfolio for ``simulate_portfolio``.

    Parameters
    ----------
    name : str
        Identifier (e.g., "Mutual Funds", "PPF").
    current_value : float
        Starting balance (non-negative).
    monthly_contribution : float, default 0.0
        Amount added after each month's return.
    expected_return : float, default 10
        Annual expected return in whole percent.
    volatility : float, default 15
        Annual volatility in whole percent.
    """
    name: str
    current_value: float
    monthly_contribution: float = 0.0
    expected_return: float = DEFAULT_ASSET_RETURN
    volatility: float = DEFAULT_VOLATILITY

    def __post_init__(self):
        check_non_negative(f"{self.name}.current_value", self.current_value)
        check_non_negative(f"{self.name}.volatility", self.volatility)


@dataclass(frozen=True)
class SimulationResult:
    """
    Summary of one sorted sample of terminal portfolio values.

    Attributes
    ----------
    probability : float or None
        Share of trials with terminal value ≥ target, in [0, 1].
        None when no target was given (portfolio projections).
    percentiles : PercentilesDict
        Nearest-rank percentiles keyed "p10", "p25", "p50", "p75", "p90".
    mean, min, max : float
        Sample statistics of the terminal values.
    iterations : int
        Number of trials.
    target_amount : float or None
        Target used for ``probability``.
    terminal_values : np.ndarray
        Sorted terminal values (ascending), shape (iterations,).
    """
    probability: Optional[float]
    percentiles: PercentilesDict
    mean: float
    min: float
    max: float
    iterations: int
    target_amount: Optional[float] = None
    terminal_values: np.ndarray = field(default=None, repr=False, compare=False)

    @property
    def p10(self) -> float:
        return self.percentiles["p10"]

    @property
    def p50(self) -> float:
        return self.percentiles["p50"]

    @property
    def p90(self) -> float:
        return self.percentiles["p90"]

    def to_dict(self) -> Dict[str, object]:
        """Presentation view: probability to 2 decimals, amounts rounded."""
        return {
            "probability": None if self.probability is None else round(self.probability, 2),
            "percentiles": {k: round_money(v) for k, v in self.percentiles.items()},
            "mean": round_money(self.mean),
            "min": round_money(self.min),
            "max": round_money(self.max),
        }

    def __repr__(self) -> str:
        prob = "n/a" if self.probability is None else f"{self.probability:.1%}"
        return (
            f"SimulationResult(P={prob}, p10={self.percentiles.get('p10', float('nan')):,.0f}, "
            f"p50={self.percentiles.get('p50', float('nan')):,.0f}, "
            f"p90={self.percentiles.get('p90', float('nan')):,.0f}, n={self.iterations})"
        )


# ---------------------------------------------------------------------------
# Core random walk
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Walk:
    start: float
    contribution: float
    mu: float
    sigma: float


def _walk_terminal(generator, n_trials: int, months: int, walk: _Walk) -> np.ndarray:
    """Terminal values of ``n_trials`` independent walks of ``months`` steps."""
    portfolio = np.full(n_trials, float(walk.start), dtype=float)
    for _ in range(months):
        r = generator.normal(walk.mu, walk.sigma, n_trials)
        portfolio = portfolio * (1.0 + r)
        portfolio = portfolio + walk.contribution
    return portfolio


def _block_sizes(iterations: int) -> List[int]:
    n_blocks = math.ceil(iterations / TRIAL_BLOCK_SIZE)
    return [
        min(TRIAL_BLOCK_SIZE, iterations - b * TRIAL_BLOCK_SIZE)
        for b in range(n_blocks)
    ]


def _terminal_sample(
    walks: Sequence[_Walk],
    months: int,
    iterations: int,
    seed: SeedLike,
    workers: int,
    variates: GeneratorFactory,
) -> np.ndarray:
    """
    Run all trials and return their sorted terminal values.

    Each block of trials owns one generator; the walks of a block (one per
    sub-portfolio) are summed per trial before merging.
    """
    sizes = _block_sizes(iterations)
    generators = spawn_generators(seed, len(sizes), factory=variates)

    def run_block(b: int) -> np.ndarray:
        total = np.zeros(sizes[b], dtype=float)
        for walk in walks:
            total += _walk_terminal(generators[b], sizes[b], months, walk)
        return total

    if workers > 1 and len(sizes) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            parts = list(pool.map(run_block, range(len(sizes))))
    else:
        parts = [run_block(b) for b in range(len(sizes))]

    return np.sort(np.concatenate(parts))


def _summarize(
    values: np.ndarray,
    target_amount: Optional[float],
    levels: Tuple[float, ...],
) -> SimulationResult:
    iterations = len(values)
    if target_amount is None:
        probability = None
    else:
        probability = float(np.count_nonzero(values >= target_amount)) / iterations
    percentiles: PercentilesDict = {
        f"p{int(round(q * 100))}": nearest_rank(values, q) for q in levels
    }
    return SimulationResult(
        probability=probability,
        percentiles=percentiles,
        mean=float(values.mean()),
        min=float(values[0]),
        max=float(values[iterations - 1]),
        iterations=iterations,
        target_amount=target_amount,
        terminal_values=values,
    )


def _validate_run(iterations: int, years: float, workers: int) -> None:
    if iterations <= 0:
        raise ValidationError(
            f"iterations must be positive, got {iterations}. "
            f"Use iterations >= 1 for a valid simulation."
        )
    check_non_negative("years", years)
    if workers < 1:
        raise ValidationError(f"workers must be >= 1, got {workers}.")


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def simulate_goal(
    current_amount: float,
    monthly_contribution: float,
    expected_return: float,
    volatility: float,
    years: float,
    target_amount: float,
    iterations: int = DEFAULT_ITERATIONS,
    *,
    seed: SeedLike = None,
    workers: int = 1,
    variates: GeneratorFactory = BoxMullerGenerator,
) -> SimulationResult:
    """
    Simulate the distribution of terminal wealth for one goal.

    Parameters
    ----------
    current_amount : float
        Portfolio value today.
    monthly_contribution : float
        Fixed amount added after each month's return.
    expected_return : float
        Annual expected return in whole percent (12 means 12%).
    volatility : float
        Annual volatility in whole percent.
    years : float
        Horizon; the walk has round(years * 12) monthly steps.
    target_amount : float
        Goal amount used for the success probability.
    iterations : int, default 1000
        Number of independent trials (must be ≥ 1).
    seed : int or SeedSequence, optional
        Root seed. None uses fresh OS entropy.
    workers : int, default 1
        Threads used to run trial blocks concurrently.
    variates : callable, default BoxMullerGenerator
        Factory wrapping a ``np.random.Generator`` into a normal generator.

    Returns
    -------
    SimulationResult

    Raises
    ------
    ValidationError
        If iterations ≤ 0, or any amount, years or volatility is negative.

    Notes
    -----
    With years = 0 every trial stays at ``current_amount``: all percentiles
    equal it and probability is 1.0 or 0.0.
    """
    _validate_run(iterations, years, workers)
    check_non_negative("current_amount", current_amount)
    check_non_negative("monthly_contribution", monthly_contribution)
    check_non_negative("target_amount", target_amount)
    check_non_negative("volatility", volatility)

    months = horizon_months(years)
    walk = _Walk(
        start=float(current_amount),
        contribution=float(monthly_contribution),
        mu=pct_to_monthly_rate(expected_return),
        sigma=pct_to_monthly_volatility(volatility),
    )
    LOGGER.debug(
        "simulate_goal: %d trials x %d months (mu=%.5f, sigma=%.5f, workers=%d)",
        iterations, months, walk.mu, walk.sigma, workers,
    )
    values = _terminal_sample([walk], months, iterations, seed, workers, variates)
    return _summarize(values, float(target_amount), DEFAULT_PERCENTILES)


def simulate_portfolio(
    assets: Sequence[AssetSpec],
    years: float,
    iterations: int = DEFAULT_ITERATIONS,
    *,
    target_amount: Optional[float] = None,
    seed: SeedLike = None,
    workers: int = 1,
    variates: GeneratorFactory = BoxMullerGenerator,
) -> SimulationResult:
    """
    Simulate several sub-portfolios and summarize their summed terminal value.

    Each asset walks independently (no cross-asset correlation); per trial
    the terminal values are added before sorting.

    Parameters
    ----------
    assets : Sequence[AssetSpec]
        Sub-portfolios to project. Must not be empty.
    years : float
        Horizon in years.
    iterations : int, default 1000
        Number of trials.
    target_amount : float, optional
        If given, ``probability`` is the share of trials whose total reaches it.

    Examples
    --------
    >>> assets = [
    ...     AssetSpec("Mutual Funds", 500_000, 10_000, expected_return=12, volatility=18),
    ...     AssetSpec("PPF", 300_000, 12_500, expected_return=7.1, volatility=0),
    ... ]
    >>> res = simulate_portfolio(assets, years=10, iterations=1000, seed=7)
    >>> sorted(res.percentiles)
    ['p10', 'p25', 'p50', 'p75', 'p90']
    """
    if not assets:
        raise ValidationError("assets list cannot be empty")
    _validate_run(iterations, years, workers)
    if target_amount is not None:
        check_non_negative("target_amount", target_amount)

    months = horizon_months(years)
    walks = [
        _Walk(
            start=float(a.current_value),
            contribution=float(a.monthly_contribution),
            mu=pct_to_monthly_rate(a.expected_return),
            sigma=pct_to_monthly_volatility(a.volatility),
        )
        for a in assets
    ]
    LOGGER.debug(
        "simulate_portfolio: %d assets, %d trials x %d months",
        len(walks), iterations, months,
    )
    values = _terminal_sample(walks, months, iterations, seed, workers, variates)
    return _summarize(values, target_amount, DEFAULT_PERCENTILES)


def tradeoff_simulation(
    current_amount: float,
    monthly_contribution: float,
    target_amount: float,
    base_years: float,
    base_return: float = 12.0,
    base_volatility: float = DEFAULT_VOLATILITY,
    delay_months: int = 0,
    risk_adjustment: float = 0.0,
    target_reduction: float = 0.0,
    iterations: int = DEFAULT_ITERATIONS_TRADEOFF,
    *,
    seed: SeedLike = None,
) -> SimulationResult:
    """
    Re-run a goal simulation under adjusted levers.

    - Delay: horizon grows by ``delay_months / 12`` years.
    - Risk: return shifts by ``risk_adjustment`` points and volatility by
      1.5x that amount (never below zero). Range is typically -6..+6.
    - Target: reduced by ``target_reduction`` percent (0..50).
    """
    if not (0.0 <= target_reduction <= 100.0):
        raise ValidationError(
            f"target_reduction must be in [0, 100], got {target_reduction}"
        )
    years = base_years + delay_months / 12.0
    expected_return = base_return + risk_adjustment
    volatility = max(0.0, base_volatility + risk_adjustment * 1.5)
    target = target_amount * (1.0 - target_reduction / 100.0)
    return simulate_goal(
        current_amount=current_amount,
        monthly_contribution=monthly_contribution,
        expected_return=expected_return,
        volatility=volatility,
        years=years,
        target_amount=target,
        iterations=iterations,
        seed=seed,
    )


def projection_bands(
    current_amount: float,
    monthly_contribution: float,
    expected_return: float,
    volatility: float,
    years: float,
    iterations: int = DEFAULT_ITERATIONS_PROJECTION,
    *,
    start: Optional[date] = None,
    seed: SeedLike = None,
) -> pd.DataFrame:
    """
    Percentile bands (p10/p50/p90) of wealth over time.

    Points are monthly up to 120 months; longer horizons use a step of
    ceil(months / 120). Each point is an independent ``simulate_goal`` run.

    Returns
    -------
    pd.DataFrame
        Indexed by first-of-month dates, columns ["month", "p10", "p50", "p90"].
    """
    months = horizon_months(years)
    interval = 1 if months <= MAX_PROJECTION_POINTS else math.ceil(months / MAX_PROJECTION_POINTS)
    steps = list(range(0, months + 1, interval))

    root = root_sequence(seed)
    children = root.spawn(len(steps))

    rows = []
    for m, child in zip(steps, children):
        res = simulate_goal(
            current_amount=current_amount,
            monthly_contribution=monthly_contribution,
            expected_return=expected_return,
            volatility=volatility,
            years=m / 12.0,
            target_amount=0.0,
            iterations=iterations,
            seed=child,
        )
        rows.append({"month": m, "p10": res.p10, "p50": res.p50, "p90": res.p90})

    first = month_index(start, 1)[0]
    index = pd.DatetimeIndex([first + pd.DateOffset(months=m) for m in steps], name="date")
    return pd.DataFrame(rows, index=index)
