"""
Market Data Module
==================
Return-series providers and concurrent fetching.

Providers:
    SyntheticReturnProvider  Deterministic per-symbol Gaussian returns
    YahooReturnProvider      Adjusted-close simple returns from Yahoo Finance

``fetch_returns`` resolves every requested symbol on a worker pool that
lives only for the duration of the call, and returns a fully populated
series set in the requested symbol order.
"""

import zlib
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError, wait
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import structlog
import yfinance as yf

from quantrisk.core.errors import MarketDataError
from quantrisk.core.portfolio import compute_simple_returns

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
DEFAULT_LOOKBACK_DAYS: int = 252
DEFAULT_MAX_WORKERS: int = 10
DEFAULT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_MAX_RETRIES: int = 2

SYNTHETIC_MIN_VOL: float = 0.015
SYNTHETIC_VOL_RANGE: float = 0.015


class ReturnSeriesProvider(ABC):
    """Interface: supply an ordered daily return series per symbol."""

    name = "base"

    @abstractmethod
    def get_returns(self, symbol: str) -> np.ndarray:
        ...


class SyntheticReturnProvider(ReturnSeriesProvider):
    """
    Deterministic synthetic returns.

    Each symbol gets its own generator seeded from a stable CRC-32 of the
    symbol, so a symbol always yields the same series across runs and
    processes.  Daily volatility is drawn uniformly from [1.5%, 3%].
    """

    name = "synthetic"

    def __init__(self, days: int = DEFAULT_LOOKBACK_DAYS):
        self.days = days

    @staticmethod
    def symbol_seed(symbol: str) -> int:
        return zlib.crc32(symbol.encode("utf-8"))

    def get_returns(self, symbol: str) -> np.ndarray:
        rng = np.random.default_rng(self.symbol_seed(symbol))
        volatility = SYNTHETIC_MIN_VOL + rng.random() * SYNTHETIC_VOL_RANGE
        return rng.standard_normal(self.days) * volatility


class YahooReturnProvider(ReturnSeriesProvider):
    """
    Daily simple returns of adjusted closes from Yahoo Finance.

    Only the most recent ``lookback_days`` returns are kept.
    """

    name = "yahoo"

    def __init__(self, lookback_days: int = DEFAULT_LOOKBACK_DAYS, period: str = "2y"):
        self.lookback_days = lookback_days
        self.period = period

    def get_returns(self, symbol: str) -> np.ndarray:
        raw = yf.download(
            symbol, period=self.period, auto_adjust=True, progress=False
        )
        if raw is None or raw.empty:
            raise MarketDataError(f"No price data returned for {symbol}")

        close = raw["Close"]
        # Newer yfinance returns ticker-level columns even for one symbol
        if isinstance(close, pd.DataFrame):
            close = close.iloc[:, 0]

        returns = compute_simple_returns(close.dropna())
        if returns.empty:
            raise MarketDataError(f"Not enough prices to compute returns for {symbol}")

        return returns.iloc[-self.lookback_days:].to_numpy(dtype=float)


def get_provider(
    source: str,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> ReturnSeriesProvider:
    """Build a provider from its configured name."""
    if source == SyntheticReturnProvider.name:
        return SyntheticReturnProvider(days=lookback_days)
    if source == YahooReturnProvider.name:
        return YahooReturnProvider(lookback_days=lookback_days)
    raise MarketDataError(
        f"Unknown data source {source!r}; expected 'synthetic' or 'yahoo'"
    )


def _fetch_with_retries(
    provider: ReturnSeriesProvider,
    symbol: str,
    max_retries: int,
) -> np.ndarray:
    attempts = max(1, max_retries + 1)
    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            return np.asarray(provider.get_returns(symbol), dtype=float)
        except Exception as exc:
            last_error = exc
            if attempt < attempts:
                logger.warning(
                    "fetch_returns: retrying symbol",
                    symbol=symbol,
                    attempt=attempt,
                    error=str(exc),
                )
    raise MarketDataError(
        f"Fetching returns for {symbol} failed after {attempts} attempts: {last_error}"
    ) from last_error


def fetch_returns(
    provider: ReturnSeriesProvider,
    symbols: Sequence[str],
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Dict[str, np.ndarray]:
    """
    Fetch return series for all symbols concurrently.

    Parameters
    ----------
    provider : ReturnSeriesProvider
        Source of return series.
    symbols : sequence of str
        Symbols to resolve; duplicates are fetched once.
    max_workers : int
        Upper bound on concurrent fetches.
    timeout : float, optional
        Seconds to wait for all symbols before giving up.
    max_retries : int
        Extra attempts per symbol after a failure.

    Returns
    -------
    dict
        Symbol -> return series, keyed in the order of ``symbols``.

    Raises
    ------
    MarketDataError
        If any symbol fails or the timeout expires.
    """
    unique: List[str] = list(dict.fromkeys(symbols))
    if not unique:
        return {}

    logger.info(
        "fetch_returns: fetching",
        provider=provider.name,
        num_symbols=len(unique),
    )

    executor = ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(unique))),
        thread_name_prefix="quantrisk-fetch",
    )
    try:
        futures = {
            symbol: executor.submit(_fetch_with_retries, provider, symbol, max_retries)
            for symbol in unique
        }
        _, pending = wait(futures.values(), timeout=timeout)
        if pending:
            late = [s for s, f in futures.items() if f in pending]
            logger.error("fetch_returns: timed out", pending_symbols=late, timeout=timeout)
            raise MarketDataError(
                f"Timed out after {timeout}s waiting for returns of {late}"
            )

        series_set: Dict[str, np.ndarray] = {}
        for symbol, future in futures.items():
            try:
                series_set[symbol] = future.result(timeout=0)
            except FutureTimeoutError as exc:
                raise MarketDataError(f"Returns for {symbol} not ready") from exc
            except MarketDataError:
                logger.error("fetch_returns: symbol failed", symbol=symbol)
                raise
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    logger.info(
        "fetch_returns: complete",
        provider=provider.name,
        lengths={s: len(r) for s, r in series_set.items()},
    )
    return series_set
