"""
Risk Metrics Module
====================
Implements Historical Simulation VaR and Expected Shortfall on a
portfolio return series.

Mathematical Foundation:
    Quantile index:     k = floor((1 - α) · L)
    Historical VaR:     VaR = -r_(k) · V · √h
    Expected Shortfall: ES  = -mean(r_(0) .. r_(k)) · V · √h
    Volatility:         σ_ann = √(Var(r) · 252)

Where r_(i) is the i-th smallest return, V the portfolio value and h the
horizon in days.

Known simplification:
    √h scaling of a one-day empirical distribution is only exact for
    i.i.d. normal returns.
"""

import math
import numbers
from typing import Sequence

import numpy as np

from quantrisk.core.errors import InsufficientDataError, InvalidParameterError
from quantrisk.core.portfolio import AssetReturns, compute_portfolio_returns
from quantrisk.core.results import VaRResult


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
TRADING_DAYS_PER_YEAR: int = 252
DEFAULT_CONFIDENCE: float = 0.95
DEFAULT_HORIZON_DAYS: int = 1


# ─────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────

def validate_confidence(confidence: float) -> None:
    if not 0.0 < confidence < 1.0:
        raise InvalidParameterError(
            f"Confidence must lie strictly between 0 and 1, got {confidence}"
        )


def validate_horizon(horizon_days: int) -> None:
    if (
        isinstance(horizon_days, bool)
        or not isinstance(horizon_days, numbers.Integral)
        or horizon_days < 1
    ):
        raise InvalidParameterError(
            f"Horizon must be a positive whole number of days, got {horizon_days!r}"
        )


def validate_portfolio_value(portfolio_value: float) -> None:
    if not (math.isfinite(portfolio_value) and portfolio_value > 0):
        raise InvalidParameterError(
            f"Portfolio value must be finite and positive, got {portfolio_value}"
        )


# ─────────────────────────────────────────────────────────────
# Historical VaR
# ─────────────────────────────────────────────────────────────

def compute_var_index(num_observations: int, confidence: float) -> int:
    """
    Empirical quantile index into the ascending-sorted returns.

    k = floor((1 - confidence) · L), clamped to [0, L - 1].

    k == 0 is a normal outcome at very high confidence on a short sample:
    VaR is then the single worst observation.
    """
    index = int(math.floor((1.0 - confidence) * num_observations))
    return min(max(index, 0), num_observations - 1)


def compute_annualized_volatility(
    returns: np.ndarray,
    trading_days: int = TRADING_DAYS_PER_YEAR,
    ddof: int = 0,
) -> float:
    """
    Annualized volatility of raw daily returns.

    Parameters
    ----------
    returns : np.ndarray
        Daily returns (unscaled by horizon).
    trading_days : int
        Trading days per year used for annualization.
    ddof : int
        Delta degrees of freedom of the variance (0 = population).

    Returns
    -------
    float
        √(Var(r) · trading_days). Exactly 0.0 for a constant series.
    """
    returns = np.asarray(returns, dtype=float)
    if len(returns) - ddof <= 0 or np.all(returns == returns[0]):
        return 0.0
    variance = float(np.var(returns, ddof=ddof))
    return math.sqrt(variance * trading_days)


def compute_var(
    portfolio_returns: Sequence[float],
    portfolio_value: float,
    confidence: float = DEFAULT_CONFIDENCE,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    trading_days: int = TRADING_DAYS_PER_YEAR,
    volatility_ddof: int = 0,
) -> VaRResult:
    """
    Compute Value-at-Risk and Expected Shortfall by Historical Simulation.

    Algorithm:
        1. Sort returns ascending
        2. k = floor((1 - confidence) · L)
        3. VaR = -r_(k) · V · √h
        4. ES  = -mean(r_(0..k)) · V · √h   (k + 1 observations)
        5. Annualized volatility of the unscaled returns

    Parameters
    ----------
    portfolio_returns : sequence of float
        Daily portfolio returns.
    portfolio_value : float
        Current portfolio value in currency.
    confidence : float
        Confidence level in (0, 1).
    horizon_days : int
        Horizon in trading days (>= 1).
    trading_days : int
        Trading days per year for volatility annualization.
    volatility_ddof : int
        Delta degrees of freedom used in the volatility estimate.

    Returns
    -------
    VaRResult

    Raises
    ------
    InvalidParameterError
        If confidence, horizon or portfolio value are out of range.
    InsufficientDataError
        If the return series is empty.
    """
    validate_confidence(confidence)
    validate_horizon(horizon_days)
    validate_portfolio_value(portfolio_value)

    returns = np.asarray(portfolio_returns, dtype=float)
    if returns.size == 0:
        raise InsufficientDataError("Cannot compute VaR from an empty return series")

    sorted_returns = np.sort(returns, kind="stable")
    var_index = compute_var_index(len(sorted_returns), confidence)
    horizon_scale = math.sqrt(horizon_days)

    var = (-float(sorted_returns[var_index]) * portfolio_value) * horizon_scale

    tail = sorted_returns[: var_index + 1]
    expected_shortfall = (-float(np.mean(tail)) * portfolio_value) * horizon_scale

    volatility = compute_annualized_volatility(
        returns, trading_days=trading_days, ddof=volatility_ddof
    )

    return VaRResult(
        portfolio_value=float(portfolio_value),
        var=var,
        confidence=float(confidence),
        expected_shortfall=expected_shortfall,
        time_horizon=int(horizon_days),
        volatility=volatility,
    )


def calculate_portfolio_var(
    assets: Sequence[AssetReturns],
    portfolio_value: float,
    confidence: float = DEFAULT_CONFIDENCE,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    trading_days: int = TRADING_DAYS_PER_YEAR,
    volatility_ddof: int = 0,
) -> VaRResult:
    """
    Aggregate weighted asset returns and compute historical VaR.

    Parameters
    ----------
    assets : sequence of AssetReturns
        (symbol, weight, returns) tuples of equal-length series.
    portfolio_value, confidence, horizon_days, trading_days, volatility_ddof
        See ``compute_var``.

    Returns
    -------
    VaRResult
    """
    portfolio_returns = compute_portfolio_returns(assets)
    return compute_var(
        portfolio_returns,
        portfolio_value,
        confidence=confidence,
        horizon_days=horizon_days,
        trading_days=trading_days,
        volatility_ddof=volatility_ddof,
    )
