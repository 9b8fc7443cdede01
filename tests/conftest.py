"""
Shared test fixtures for the risk engine test suite.

Provides consistent test data across all test modules:
- Sample return series sets with correlation structure
- Constant return series for closed-form checks
- Sample portfolio CSV files
"""

import os

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
import structlog


@pytest.fixture(autouse=True)
def clean_quantrisk_env(monkeypatch):
    """Keep QUANTRISK_* variables from the outer shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("QUANTRISK_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo structlog configuration bound to a test's captured stderr."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def sample_symbols():
    """Standard list of symbols used across tests.

    Returns:
        List[str]: List of 4 symbols
    """
    return ["SPY", "QQQ", "TLT", "GLD"]


@pytest.fixture
def sample_series_set(sample_symbols):
    """Return series (252 days) per symbol with correlation structure.

    Returns:
        Dict[str, np.ndarray]: QQQ correlated with SPY, TLT anti-correlated with SPY
    """
    rng = np.random.default_rng(42)
    data = rng.normal(0, 0.015, (252, len(sample_symbols)))
    data[:, 1] = 0.8 * data[:, 0] + 0.2 * data[:, 1]
    data[:, 2] = -0.5 * data[:, 0] + 0.5 * data[:, 2]

    return {symbol: data[:, i].copy() for i, symbol in enumerate(sample_symbols)}


@pytest.fixture
def sample_weights():
    """Portfolio weights aligned with sample_symbols.

    Returns:
        List[float]: 4 weights summing to 1.0
    """
    return [0.4, 0.3, 0.2, 0.1]


@pytest.fixture
def constant_series_set():
    """Two assets whose returns are -1% every day for 100 days."""
    return {
        "A": np.full(100, -0.01),
        "B": np.full(100, -0.01),
    }


@pytest.fixture
def portfolio_csv(tmp_path):
    """Write a three-position portfolio CSV and return its path."""
    path = tmp_path / "portfolio.csv"
    path.write_text(
        "symbol,weight,price,quantity\n"
        "AAPL, 0.5, 200.0, 100\n"
        "MSFT, 0.3, 400.0, 25\n"
        "GOOGL, 0.2, 150.0, 40\n"
    )
    return str(path)
