"""
Unit tests for montecarlo.py module.

Tests goal and portfolio simulation, nearest-rank summaries,
reproducibility across worker counts, trade-off levers and projection bands.
"""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from profin.exceptions import ValidationError
from profin.montecarlo import (
    AssetSpec,
    projection_bands,
    simulate_goal,
    simulate_portfolio,
    tradeoff_simulation,
)


def annuity_value(current, contribution, annual_pct, months):
    """Deterministic month-by-month accumulation used as a reference."""
    r = annual_pct / 100 / 12
    value = current
    for _ in range(months):
        value = value * (1 + r) + contribution
    return value


class ZeroShock:
    """Variate generator that always returns the mean."""

    def __init__(self, rng):
        self.rng = rng

    def normal(self, mean, stdev, size):
        return np.full(size, mean)


# ============================================================================
# SIMULATE GOAL
# ============================================================================

class TestSimulateGoal:
    """Test single-goal simulation."""

    @pytest.mark.parametrize("current, target, expected", [
        (500_000, 400_000, 1.0),
        (500_000, 500_000, 1.0),
        (300_000, 400_000, 0.0),
    ])
    def test_zero_years_returns_current(self, current, target, expected):
        """With no horizon every trial equals the current amount."""
        res = simulate_goal(current, 10_000, 12, 15, 0, target, iterations=50, seed=1)

        assert res.probability == expected
        for value in res.percentiles.values():
            assert value == current
        assert res.min == res.max == current

    def test_result_structure(self, seed, iterations):
        """Percentile keys, sample shape and ordering."""
        res = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, iterations, seed=seed)

        assert 0.0 <= res.probability <= 1.0
        assert sorted(res.percentiles) == ["p10", "p25", "p50", "p75", "p90"]
        assert res.iterations == iterations
        assert res.terminal_values.shape == (iterations,)
        assert res.min <= res.p10 <= res.p50 <= res.p90 <= res.max

    def test_nearest_rank_percentiles(self, seed):
        """Percentile p is read at index floor(n * p) of the sorted sample."""
        n = 1000
        res = simulate_goal(100_000, 5_000, 10, 20, 3, 300_000, n, seed=seed)
        values = res.terminal_values

        assert np.all(np.diff(values) >= 0)
        assert res.percentiles["p10"] == values[100]
        assert res.percentiles["p50"] == values[500]
        assert res.percentiles["p90"] == values[900]
        assert res.min == values[0]
        assert res.max == values[n - 1]

    def test_probability_counts_trials_at_or_above_target(self, seed):
        """Probability is the share of trials reaching the target."""
        res = simulate_goal(100_000, 5_000, 10, 20, 3, 300_000, 800, seed=seed)
        expected = np.count_nonzero(res.terminal_values >= 300_000) / 800
        assert res.probability == pytest.approx(expected)

    def test_zero_volatility_matches_annuity(self):
        """Without volatility every trial is the annuity value."""
        res = simulate_goal(0, 1_000, 12, 0, 1, 10_000, iterations=20, seed=3)
        expected = annuity_value(0, 1_000, 12, 12)

        assert expected == pytest.approx(12_682.50, abs=0.01)
        assert res.p10 == pytest.approx(expected)
        assert res.p90 == pytest.approx(expected)

    def test_injected_generator(self):
        """A custom variate factory replaces Box–Muller."""
        res = simulate_goal(
            50_000, 2_000, 8, 25, 2, 100_000, iterations=10, seed=0, variates=ZeroShock
        )
        assert res.p50 == pytest.approx(annuity_value(50_000, 2_000, 8, 24))

    def test_same_seed_same_result(self, seed):
        """An integer seed reproduces the sample."""
        a = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 600, seed=seed)
        b = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 600, seed=seed)
        np.testing.assert_array_equal(a.terminal_values, b.terminal_values)
        assert a.probability == b.probability

    def test_reused_seed_sequence_same_result(self):
        """A SeedSequence passed twice reproduces the sample."""
        ss = np.random.SeedSequence(7)
        a = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 300, seed=ss)
        b = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 300, seed=ss)
        np.testing.assert_array_equal(a.terminal_values, b.terminal_values)
        assert a.p50 == b.p50

    def test_different_seed_different_sample(self):
        """Different seeds give different samples."""
        a = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 300, seed=1)
        b = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 300, seed=2)
        assert not np.array_equal(a.terminal_values, b.terminal_values)

    def test_worker_count_does_not_change_result(self, seed):
        """Blocks are seeded independently of how they are scheduled."""
        serial = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 1000, seed=seed, workers=1)
        threaded = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 1000, seed=seed, workers=4)
        np.testing.assert_array_equal(serial.terminal_values, threaded.terminal_values)

    def test_more_contribution_raises_median(self, seed):
        """Saving more lifts the median outcome."""
        low = simulate_goal(100_000, 5_000, 12, 15, 10, 2_000_000, 500, seed=seed)
        high = simulate_goal(100_000, 20_000, 12, 15, 10, 2_000_000, 500, seed=seed)
        assert high.p50 > low.p50
        assert high.probability >= low.probability

    @pytest.mark.parametrize("iterations", [0, -5])
    def test_non_positive_iterations_rejected(self, iterations):
        """At least one iteration is required."""
        with pytest.raises(ValidationError, match="iterations must be positive"):
            simulate_goal(0, 1_000, 12, 15, 5, 100_000, iterations)

    @pytest.mark.parametrize("kwargs", [
        {"current_amount": -1},
        {"monthly_contribution": -1},
        {"years": -1},
        {"volatility": -1},
        {"target_amount": -1},
    ])
    def test_negative_inputs_rejected(self, kwargs):
        """Negative amounts, years and volatility are rejected."""
        params = dict(
            current_amount=0, monthly_contribution=1_000, expected_return=12,
            volatility=15, years=5, target_amount=100_000, iterations=10,
        )
        params.update(kwargs)
        with pytest.raises(ValidationError):
            simulate_goal(**params)

    def test_workers_must_be_positive(self):
        """At least one worker is required."""
        with pytest.raises(ValidationError, match="workers"):
            simulate_goal(0, 1_000, 12, 15, 5, 100_000, 10, workers=0)

    def test_to_dict_rounds(self, seed):
        """Money rounds to whole rupees and probability to two places."""
        data = simulate_goal(200_000, 15_000, 12, 15, 5, 1_500_000, 200, seed=seed).to_dict()
        assert isinstance(data["mean"], int)
        assert data["probability"] == round(data["probability"], 2)


# ============================================================================
# SIMULATE PORTFOLIO
# ============================================================================

class TestSimulatePortfolio:
    """Test multi-asset simulation."""

    def test_deterministic_assets_sum(self):
        """Fixed-return assets add up to the sum of their annuities."""
        assets = [
            AssetSpec("PPF", 300_000, 12_500, expected_return=7.1, volatility=0),
            AssetSpec("FD", 200_000, 0, expected_return=6.5, volatility=0),
        ]
        res = simulate_portfolio(assets, years=5, iterations=10, seed=1)
        expected = annuity_value(300_000, 12_500, 7.1, 60) + annuity_value(200_000, 0, 6.5, 60)

        assert res.p50 == pytest.approx(expected)
        assert res.probability is None

    def test_target_probability(self, seed):
        """A target gives a probability in range."""
        assets = [
            AssetSpec("Mutual Funds", 500_000, 10_000, expected_return=12, volatility=18),
            AssetSpec("PPF", 300_000, 12_500, expected_return=7.1, volatility=0),
        ]
        res = simulate_portfolio(assets, years=10, iterations=400, target_amount=5_000_000, seed=seed)
        assert 0.0 <= res.probability <= 1.0

    def test_default_asset_assumptions(self):
        """Assets default to 10% return and 15% volatility."""
        asset = AssetSpec("Stocks", 100_000)
        assert asset.expected_return == 10
        assert asset.volatility == 15

    def test_empty_assets_rejected(self):
        """A portfolio needs at least one asset."""
        with pytest.raises(ValidationError, match="empty"):
            simulate_portfolio([], years=5)

    def test_negative_asset_value_rejected(self):
        """Asset values cannot be negative."""
        with pytest.raises(ValidationError):
            AssetSpec("Broken", -1)


# ============================================================================
# TRADE-OFFS AND BANDS
# ============================================================================

class TestTradeoffSimulation:
    """Test lever adjustments."""

    def test_full_target_reduction_is_certain(self, seed):
        """Dropping the whole target makes it certain."""
        res = tradeoff_simulation(0, 10_000, 1_000_000, 5, target_reduction=100, iterations=50, seed=seed)
        assert res.probability == 1.0
        assert res.target_amount == 0

    def test_delay_extends_horizon(self):
        """Delaying adds months of contributions."""
        base = tradeoff_simulation(0, 10_000, 1_000_000, 5, base_volatility=0, iterations=5, seed=1)
        delayed = tradeoff_simulation(
            0, 10_000, 1_000_000, 5, base_volatility=0, delay_months=12, iterations=5, seed=1
        )
        assert delayed.p50 == pytest.approx(annuity_value(0, 10_000, 12, 72))
        assert delayed.p50 > base.p50

    def test_risk_adjustment_never_negative_volatility(self):
        """Volatility is floored at zero."""
        res = tradeoff_simulation(
            0, 10_000, 1_000_000, 5, base_volatility=3, risk_adjustment=-6, iterations=5, seed=1
        )
        assert res.p10 == pytest.approx(res.p90)

    def test_target_reduction_out_of_range(self):
        """Reductions above 100% are rejected."""
        with pytest.raises(ValidationError):
            tradeoff_simulation(0, 10_000, 1_000_000, 5, target_reduction=120)


class TestProjectionBands:
    """Test percentile bands over time."""

    def test_monthly_points_for_short_horizon(self, seed):
        """Short horizons get one point per month from the first of the month."""
        bands = projection_bands(100_000, 5_000, 12, 15, 2, iterations=50, start=date(2025, 1, 15), seed=seed)

        assert list(bands.columns) == ["month", "p10", "p50", "p90"]
        assert len(bands) == 25
        assert bands.index.name == "date"
        assert bands.index[0] == pd.Timestamp("2025-01-01")
        assert bands.index[-1] == pd.Timestamp("2027-01-01")
        assert bands["p10"].iloc[0] == bands["p90"].iloc[0] == 100_000

    def test_step_grows_beyond_ten_years(self, seed):
        """Long horizons are sampled every few months."""
        bands = projection_bands(0, 5_000, 12, 15, 20, iterations=20, start=date(2025, 1, 1), seed=seed)

        assert len(bands) == 121
        assert bands["month"].iloc[1] == 2
        assert bands["month"].iloc[-1] == 240

    def test_bands_ordered(self, seed):
        """p10 never exceeds p50 and p50 never exceeds p90."""
        bands = projection_bands(100_000, 5_000, 12, 15, 3, iterations=100, seed=seed)
        assert (bands["p10"] <= bands["p50"]).all()
        assert (bands["p50"] <= bands["p90"]).all()

    def test_reused_seed_sequence_same_bands(self):
        """Bands seeded from one SeedSequence repeat exactly."""
        ss = np.random.SeedSequence(11)
        a = projection_bands(100_000, 5_000, 12, 15, 1, iterations=30, start=date(2025, 1, 1), seed=ss)
        b = projection_bands(100_000, 5_000, 12, 15, 1, iterations=30, start=date(2025, 1, 1), seed=ss)
        pd.testing.assert_frame_equal(a, b)
