"""
Portfolio Construction Module
=============================
Handles portfolio definition, alignment of weights with return series,
and portfolio return aggregation.

Mathematical Foundation:
    Simple return:     r_t = (P_t - P_{t-1}) / P_{t-1}
    Portfolio return:  R_p[t] = Σ_i w_i · r_i[t]

Design note:
    Weights are bound to their symbol explicitly through ``AssetReturns``
    tuples.  A mapping's iteration order is never trusted to line up with
    a separate weight vector.

    Weights are NOT normalized.  A portfolio whose weights sum to 0.8
    carries 80% exposure; deciding otherwise is the caller's job.
"""

from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Sequence, Tuple

import numpy as np
import pandas as pd

from quantrisk.core.errors import (
    DimensionMismatchError,
    InsufficientDataError,
    InvalidParameterError,
    PortfolioFileError,
)


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
PORTFOLIO_COLUMNS: List[str] = ["symbol", "weight", "price", "quantity"]


class AssetReturns(NamedTuple):
    """One asset's weight paired with its daily return series."""

    symbol: str
    weight: float
    returns: np.ndarray


@dataclass(frozen=True)
class Position:
    symbol: str
    weight: float
    price: float
    quantity: int

    @property
    def market_value(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class Portfolio:
    """
    Immutable set of positions.

    ``weights`` are informational (as read from the file); ``total_value``
    is computed independently as Σ price × quantity.
    """

    positions: Tuple[Position, ...]

    def __post_init__(self):
        seen = set()
        for position in self.positions:
            if position.symbol in seen:
                raise InvalidParameterError(
                    f"Duplicate position for symbol {position.symbol!r}"
                )
            seen.add(position.symbol)

    @property
    def symbols(self) -> List[str]:
        return [p.symbol for p in self.positions]

    @property
    def weights(self) -> List[float]:
        return [p.weight for p in self.positions]

    @property
    def total_value(self) -> float:
        return float(sum(p.market_value for p in self.positions))

    @classmethod
    def from_csv(cls, path: str) -> "Portfolio":
        """
        Load a portfolio from CSV.

        Expected format (header row required)::

            symbol,weight,price,quantity
            AAPL,0.4,190.50,100

        Raises
        ------
        PortfolioFileError
            If the file has missing columns, unparsable or blank values,
            or a fractional quantity.
        """
        try:
            # keep_default_na=False so tickers such as "NA" stay strings
            df = pd.read_csv(path, skipinitialspace=True, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise PortfolioFileError(f"Cannot read portfolio file {path}: {exc}") from exc

        df.columns = [str(c).strip().lower() for c in df.columns]
        missing = [c for c in PORTFOLIO_COLUMNS if c not in df.columns]
        if missing:
            raise PortfolioFileError(
                f"Portfolio file {path} is missing columns: {missing}"
            )

        try:
            weights = pd.to_numeric(df["weight"], errors="raise")
            prices = pd.to_numeric(df["price"], errors="raise")
            quantities = pd.to_numeric(df["quantity"], errors="raise")
        except (ValueError, TypeError) as exc:
            raise PortfolioFileError(
                f"Non-numeric value in portfolio file {path}: {exc}"
            ) from exc

        for column, values in (("weight", weights), ("price", prices), ("quantity", quantities)):
            if not np.isfinite(values.to_numpy(dtype=float)).all():
                raise PortfolioFileError(
                    f"Blank or non-finite {column} in portfolio file {path}"
                )
        if (quantities % 1 != 0).any():
            raise PortfolioFileError(
                f"Fractional quantity in portfolio file {path}; quantities must be whole numbers"
            )

        symbols = df["symbol"].astype(str).str.strip()
        if (symbols == "").any():
            raise PortfolioFileError(f"Blank symbol in portfolio file {path}")

        positions = tuple(
            Position(
                symbol=symbol,
                weight=float(weight),
                price=float(price),
                quantity=int(quantity),
            )
            for symbol, weight, price, quantity in zip(
                symbols, weights, prices, quantities
            )
        )
        return cls(positions=positions)


def compute_simple_returns(prices: pd.Series) -> pd.Series:
    """
    Compute simple (arithmetic) returns from a price series.

    Mathematical Definition:
        r_t = (P_t - P_{t-1}) / P_{t-1}

    Parameters
    ----------
    prices : pd.Series
        Prices indexed by date.

    Returns
    -------
    pd.Series
        Simple returns (first observation dropped).
    """
    return prices.pct_change().dropna()


def align_asset_returns(
    series_set: Dict[str, np.ndarray],
    symbols: Sequence[str],
    weights: Sequence[float],
) -> List[AssetReturns]:
    """
    Pair each symbol with its weight and return series.

    Parameters
    ----------
    series_set : dict
        Symbol -> daily return series.
    symbols : sequence of str
        Symbol order that ``weights`` refers to.
    weights : sequence of float
        weights[i] belongs to symbols[i].

    Returns
    -------
    list of AssetReturns
        In ``symbols`` order.

    Raises
    ------
    DimensionMismatchError
        If the number of weights differs from the number of symbols, or a
        symbol has no return series.
    """
    if len(symbols) != len(weights):
        raise DimensionMismatchError(
            f"Got {len(weights)} weights for {len(symbols)} symbols"
        )

    missing = [s for s in symbols if s not in series_set]
    if missing:
        raise DimensionMismatchError(f"No return series for symbols: {missing}")

    return [
        AssetReturns(symbol, float(weight), np.asarray(series_set[symbol], dtype=float))
        for symbol, weight in zip(symbols, weights)
    ]


def compute_portfolio_returns(assets: Sequence[AssetReturns]) -> np.ndarray:
    """
    Compute portfolio returns as weighted sum of asset returns.

    Mathematical Definition:
        R_p[t] = Σ_i w_i · r_i[t]

    Terms are accumulated in asset order.

    Parameters
    ----------
    assets : sequence of AssetReturns
        Weighted return series, all of the same length.

    Returns
    -------
    np.ndarray
        Portfolio return series, same length as each input series.

    Raises
    ------
    InsufficientDataError
        If no assets are given.
    InvalidParameterError
        If a symbol appears twice.
    DimensionMismatchError
        If the series lengths differ.
    """
    if len(assets) == 0:
        raise InsufficientDataError("Cannot aggregate an empty set of assets")

    symbols = [a.symbol for a in assets]
    if len(set(symbols)) != len(symbols):
        raise InvalidParameterError(f"Duplicate symbols in portfolio: {symbols}")

    lengths = {a.symbol: len(a.returns) for a in assets}
    if len(set(lengths.values())) != 1:
        raise DimensionMismatchError(
            f"Return series lengths differ across assets: {lengths}"
        )

    length = len(assets[0].returns)
    portfolio_returns = np.zeros(length, dtype=float)
    for asset in assets:
        portfolio_returns += asset.weight * np.asarray(asset.returns, dtype=float)

    return portfolio_returns
