"""
Unit tests for monte_carlo.py - Monte Carlo Simulation Engine

Tests cover:
- Percentile index clamping
- Summary statistics on a known outcome set
- Single-simulation boundary
- Reproducibility with seeds / injected generators
- Distributional sanity of the simulated P&L
"""

import numpy as np
import pytest

from quantrisk.core.errors import InsufficientDataError, InvalidParameterError
from quantrisk.core.monte_carlo import (
    percentile_index,
    run_monte_carlo,
    simulate_portfolio_pnl,
    summarize_simulation,
)


class TestPercentileIndex:
    """Tests for percentile_index function."""

    def test_standard(self):
        assert percentile_index(0.05, 100) == 5
        assert percentile_index(0.01, 100) == 1

    def test_floors_to_zero(self):
        assert percentile_index(0.01, 50) == 0
        assert percentile_index(0.05, 1) == 0

    def test_clamped_to_last(self):
        assert percentile_index(1.0, 10) == 9


class TestSummarizeSimulation:
    """Tests for summarize_simulation function."""

    def test_known_outcomes(self):
        pnl = np.arange(100, dtype=float) - 50.0  # -50 .. 49
        np.random.default_rng(1).shuffle(pnl)

        result = summarize_simulation(pnl)

        assert result.num_simulations == 100
        assert result.var_95 == 45.0
        assert result.var_99 == 49.0
        assert result.expected_loss == pytest.approx(0.5)
        assert result.worst_case == 50.0
        assert result.best_case == -49.0

    def test_single_outcome(self):
        result = summarize_simulation(np.array([-123.0]))

        assert result.var_95 == result.var_99 == result.worst_case == result.best_case == 123.0

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            summarize_simulation(np.array([]))


class TestRunMonteCarlo:
    """Tests for run_monte_carlo function."""

    def test_single_simulation(self):
        """n = 1 must not index out of bounds; all quantiles coincide."""
        result = run_monte_carlo(["A", "B"], 1_000_000, num_simulations=1, seed=3)

        assert result.num_simulations == 1
        assert abs(result.var_95) == abs(result.var_99) == abs(result.worst_case) == abs(result.best_case)

    @pytest.mark.parametrize("n", [2, 7, 50, 99])
    def test_small_simulation_counts(self, n):
        result = run_monte_carlo(["A"], 1_000, num_simulations=n, seed=0)

        assert result.num_simulations == n
        assert result.worst_case >= result.var_99 >= result.var_95 >= result.best_case

    def test_seed_reproducible(self):
        first = run_monte_carlo(["SPY", "QQQ"], 1e6, num_simulations=1_000, seed=42)
        second = run_monte_carlo(["SPY", "QQQ"], 1e6, num_simulations=1_000, seed=42)

        assert first == second

    def test_injected_rng_matches_seed(self):
        injected = run_monte_carlo(
            ["SPY"], 1e6, num_simulations=500, rng=np.random.default_rng(7)
        )
        seeded = run_monte_carlo(["SPY"], 1e6, num_simulations=500, seed=7)

        assert injected == seeded

    def test_global_random_state_untouched(self):
        before = np.random.get_state()[1].copy()
        run_monte_carlo(["SPY"], 1e6, num_simulations=100, seed=1)
        after = np.random.get_state()[1]

        np.testing.assert_array_equal(before, after)

    def test_distribution_scale(self):
        """Equal-weight mean of N independent 2% draws has σ = V · 0.02 / √N."""
        result = run_monte_carlo(
            ["A", "B", "C", "D"], 1_000_000, num_simulations=200_000, seed=42
        )
        sigma = 1_000_000 * 0.02 / np.sqrt(4)

        assert result.var_95 == pytest.approx(1.6449 * sigma, rel=0.03)
        assert result.var_99 == pytest.approx(2.3263 * sigma, rel=0.03)
        assert abs(result.expected_loss) < 0.01 * sigma

    def test_daily_volatility_scales_pnl(self):
        low = simulate_portfolio_pnl(["A"], 1_000, num_simulations=100, seed=5,
                                     daily_volatility=0.01)
        high = simulate_portfolio_pnl(["A"], 1_000, num_simulations=100, seed=5,
                                      daily_volatility=0.02)

        np.testing.assert_allclose(high, 2 * low)

    def test_to_dict(self):
        data = run_monte_carlo(["A"], 1_000, num_simulations=10, seed=0).to_dict()

        assert set(data) == {
            "num_simulations", "var_95", "var_99",
            "expected_loss", "worst_case", "best_case",
        }

    @pytest.mark.parametrize("n", [0, -5, 2.5])
    def test_bad_simulation_count_raises(self, n):
        with pytest.raises(InvalidParameterError, match="simulations"):
            run_monte_carlo(["A"], 1_000, num_simulations=n)

    def test_empty_symbols_raises(self):
        with pytest.raises(InvalidParameterError, match="symbol"):
            run_monte_carlo([], 1_000, num_simulations=10)

    @pytest.mark.parametrize("value", [-1.0, float("inf"), float("nan")])
    def test_bad_portfolio_value_raises(self, value):
        with pytest.raises(InvalidParameterError, match="Portfolio value"):
            run_monte_carlo(["A"], value, num_simulations=10)

    def test_non_positive_volatility_raises(self):
        with pytest.raises(InvalidParameterError, match="volatility"):
            run_monte_carlo(["A"], 1_000, num_simulations=10, daily_volatility=0.0)
