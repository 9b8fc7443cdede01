"""
Statistical Estimation Module
==============================
Computes the pairwise Pearson correlation matrix across asset return
series and descriptive statistics of a portfolio return series.

Mathematical Foundation:
    Pearson ρ = (n·Σxy - Σx·Σy) / √[(n·Σx² - (Σx)²)(n·Σy² - (Σy)²)]
"""

from typing import Dict, Sequence

import numpy as np
from scipy import stats as scipy_stats

from quantrisk.core.errors import DimensionMismatchError, InsufficientDataError
from quantrisk.core.results import CorrelationMatrix
from quantrisk.core.risk_metrics import TRADING_DAYS_PER_YEAR


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Sum-based Pearson correlation over the overlapping prefix of x and y.

    Only the first min(len(x), len(y)) observations are used.  If either
    series has zero variance on that prefix the denominator vanishes and
    the correlation is defined as 0.0.

    Parameters
    ----------
    x, y : sequence of float
        Return series.

    Returns
    -------
    float
        Correlation in [-1, 1].
    """
    n = min(len(x), len(y))
    x = np.asarray(x[:n], dtype=float)
    y = np.asarray(y[:n], dtype=float)

    # Constant series: the sums below would leave rounding noise, not 0
    if n == 0 or np.all(x == x[0]) or np.all(y == y[0]):
        return 0.0

    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_x2 = float(np.sum(x * x))
    sum_y2 = float(np.sum(y * y))

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)

    # Rounding can push the product of two ~0 terms slightly negative
    if variance_product <= 0.0:
        return 0.0

    rho = numerator / np.sqrt(variance_product)
    return float(np.clip(rho, -1.0, 1.0))


def compute_correlation_matrix(
    series_set: Dict[str, np.ndarray],
    symbol_order: Sequence[str],
) -> CorrelationMatrix:
    """
    Compute the Pearson correlation matrix.

    Each off-diagonal pair is computed once and mirrored, so the result
    is exactly symmetric.  The diagonal is 1.0 by construction.

    Parameters
    ----------
    series_set : dict
        Symbol -> daily return series.
    symbol_order : sequence of str
        Row/column order of the matrix.

    Returns
    -------
    CorrelationMatrix
        |symbol_order| x |symbol_order| matrix.

    Raises
    ------
    DimensionMismatchError
        If a symbol in ``symbol_order`` has no return series.
    """
    missing = [s for s in symbol_order if s not in series_set]
    if missing:
        raise DimensionMismatchError(f"No return series for symbols: {missing}")

    n = len(symbol_order)
    matrix = np.eye(n)

    for i in range(n):
        for j in range(i + 1, n):
            rho = pearson_correlation(
                series_set[symbol_order[i]], series_set[symbol_order[j]]
            )
            matrix[i, j] = rho
            matrix[j, i] = rho

    return CorrelationMatrix.from_array(symbol_order, matrix)


def get_return_summary(
    portfolio_returns: Sequence[float],
    trading_days: int = TRADING_DAYS_PER_YEAR,
) -> Dict[str, float]:
    """
    Compute descriptive statistics for a daily return series.

    Skewness < 0 (left skew) and excess kurtosis > 0 (leptokurtic) both
    point to heavier-than-Gaussian left tails, where the √h scaling of
    historical VaR is least reliable.

    Parameters
    ----------
    portfolio_returns : sequence of float
        Daily portfolio returns.
    trading_days : int
        Trading days per year used for annualization.

    Returns
    -------
    dict
        Performance metrics, downside risk metrics and distribution
        shape statistics.
    """
    returns = np.asarray(portfolio_returns, dtype=float)
    if returns.size < 2:
        raise InsufficientDataError(
            f"Need at least 2 observations for a return summary, got {returns.size}"
        )

    ann_return = float(returns.mean() * trading_days)
    ann_vol = float(returns.std(ddof=1) * np.sqrt(trading_days))
    sharpe = ann_return / ann_vol if ann_vol > 0 else 0.0

    # Downside deviation: volatility of negative returns only
    losses = returns[returns < 0]
    downside_vol_daily = float(losses.std(ddof=1)) if len(losses) > 1 else 0.0
    ann_downside_vol = downside_vol_daily * np.sqrt(trading_days)
    sortino = ann_return / ann_downside_vol if ann_downside_vol > 0 else 0.0

    if not np.all(returns == returns[0]):
        skewness = float(scipy_stats.skew(returns))
        excess_kurtosis = float(scipy_stats.kurtosis(returns))
    else:
        skewness = 0.0
        excess_kurtosis = 0.0

    return {
        "annualized_return": ann_return,
        "annualized_volatility": ann_vol,
        "sharpe_ratio": sharpe,
        "annualized_downside_vol": float(ann_downside_vol),
        "sortino_ratio": float(sortino),
        "skewness": skewness,
        "excess_kurtosis": excess_kurtosis,
        "num_observations": int(returns.size),
    }
