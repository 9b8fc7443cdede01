"""
Monte Carlo Simulation Engine
=============================
Simulates one-day portfolio P&L from independent Gaussian asset returns
and summarizes the resulting loss distribution.

Mathematical Foundation:
    Asset return:   r_ij = σ · Z_ij,   Z_ij ~ N(0, 1) i.i.d.
    Portfolio P&L:  P_i  = V · (1/N) Σ_j r_ij
    Quantile index: k(p) = clamp(floor(p · n), 0, n - 1)

Simplification:
    Draws are independent across assets; no correlation structure is
    modelled and the correlation engine's output is not consumed here.
"""

import math
from typing import Optional, Sequence

import numpy as np

from quantrisk.core.errors import InsufficientDataError, InvalidParameterError
from quantrisk.core.results import MonteCarloResult
from quantrisk.core.risk_metrics import validate_portfolio_value


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
DEFAULT_NUM_SIMULATIONS: int = 10_000
DEFAULT_DAILY_VOLATILITY: float = 0.02


def percentile_index(probability: float, num_outcomes: int) -> int:
    """Index of the ``probability`` quantile in sorted outcomes, clamped."""
    index = int(math.floor(probability * num_outcomes))
    return min(max(index, 0), num_outcomes - 1)


def simulate_portfolio_pnl(
    symbols: Sequence[str],
    portfolio_value: float,
    num_simulations: int = DEFAULT_NUM_SIMULATIONS,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    daily_volatility: float = DEFAULT_DAILY_VOLATILITY,
) -> np.ndarray:
    """
    Simulate portfolio P&L outcomes.

    Algorithm:
        1. Draw Z ~ N(0, I) of shape (num_simulations, N)
        2. Scale by daily_volatility
        3. Average across assets (equal weights)
        4. Multiply by portfolio value

    Parameters
    ----------
    symbols : sequence of str
        Assets held in equal proportion.
    portfolio_value : float
        Portfolio value in currency.
    num_simulations : int
        Number of trials (>= 1).
    rng : np.random.Generator, optional
        Injected random source.  When omitted a generator scoped to this
        call is created from ``seed``.
    seed : int, optional
        Seed for the call-scoped generator.
    daily_volatility : float
        Per-asset daily return volatility (default: 2%).

    Returns
    -------
    np.ndarray
        Simulated P&L in currency (num_simulations,), unsorted.

    Raises
    ------
    InvalidParameterError
        On empty symbols, num_simulations < 1, non-positive value or
        non-positive volatility.
    """
    if len(symbols) == 0:
        raise InvalidParameterError("Monte Carlo simulation needs at least one symbol")
    if (
        isinstance(num_simulations, bool)
        or not isinstance(num_simulations, (int, np.integer))
        or num_simulations < 1
    ):
        raise InvalidParameterError(
            f"Number of simulations must be a positive integer, got {num_simulations!r}"
        )
    validate_portfolio_value(portfolio_value)
    if not daily_volatility > 0:
        raise InvalidParameterError(
            f"Daily volatility must be positive, got {daily_volatility}"
        )

    if rng is None:
        rng = np.random.default_rng(seed)

    Z = rng.standard_normal(size=(num_simulations, len(symbols)))
    asset_returns = Z * daily_volatility
    portfolio_returns = asset_returns.mean(axis=1)

    return portfolio_returns * portfolio_value


def summarize_simulation(
    pnl: np.ndarray,
) -> MonteCarloResult:
    """
    Summarize simulated P&L into loss statistics.

    Parameters
    ----------
    pnl : np.ndarray
        Simulated P&L outcomes in currency.

    Returns
    -------
    MonteCarloResult
        VaR at 95% / 99%, expected loss, worst and best case.  With a
        single outcome every quantile collapses onto that outcome.
    """
    outcomes = np.sort(np.asarray(pnl, dtype=float))
    n = len(outcomes)
    if n == 0:
        raise InsufficientDataError("Cannot summarize an empty simulation")

    return MonteCarloResult(
        num_simulations=n,
        var_95=-float(outcomes[percentile_index(0.05, n)]),
        var_99=-float(outcomes[percentile_index(0.01, n)]),
        expected_loss=-float(np.mean(outcomes)),
        worst_case=-float(outcomes[0]),
        best_case=-float(outcomes[-1]),
    )


def run_monte_carlo(
    symbols: Sequence[str],
    portfolio_value: float,
    num_simulations: int = DEFAULT_NUM_SIMULATIONS,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    daily_volatility: float = DEFAULT_DAILY_VOLATILITY,
) -> MonteCarloResult:
    """
    Full Monte Carlo risk engine execution.

    See ``simulate_portfolio_pnl`` for parameters.

    Returns
    -------
    MonteCarloResult
    """
    pnl = simulate_portfolio_pnl(
        symbols,
        portfolio_value,
        num_simulations=num_simulations,
        rng=rng,
        seed=seed,
        daily_volatility=daily_volatility,
    )
    return summarize_simulation(pnl)
