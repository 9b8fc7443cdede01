"""
Unit tests for portfolio.py - Portfolio Construction Module

Tests cover:
- Weight / series alignment
- Portfolio return aggregation
- CSV portfolio loading
- Simple return computation
"""

import dataclasses

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from quantrisk.core.errors import (
    DimensionMismatchError,
    InsufficientDataError,
    InvalidParameterError,
    PortfolioFileError,
)
from quantrisk.core.portfolio import (
    AssetReturns,
    Portfolio,
    Position,
    align_asset_returns,
    compute_portfolio_returns,
    compute_simple_returns,
)


class TestAlignAssetReturns:
    """Tests for align_asset_returns function."""

    def test_pairs_follow_symbol_order(self, sample_series_set, sample_weights):
        """Weights bind to the symbol order given, not the dict order."""
        symbols = ["GLD", "TLT", "QQQ", "SPY"]
        assets = align_asset_returns(sample_series_set, symbols, sample_weights)

        assert [a.symbol for a in assets] == symbols
        assert [a.weight for a in assets] == sample_weights
        assert_allclose(assets[0].returns, sample_series_set["GLD"])

    def test_weight_count_mismatch_raises(self, sample_series_set, sample_symbols):
        with pytest.raises(DimensionMismatchError, match="3 weights for 4 symbols"):
            align_asset_returns(sample_series_set, sample_symbols, [0.5, 0.3, 0.2])

    def test_missing_symbol_raises(self, sample_series_set):
        with pytest.raises(DimensionMismatchError, match="XYZ"):
            align_asset_returns(sample_series_set, ["SPY", "XYZ"], [0.5, 0.5])


class TestComputePortfolioReturns:
    """Tests for compute_portfolio_returns function."""

    def test_length_preserved(self, sample_series_set, sample_symbols, sample_weights):
        assets = align_asset_returns(sample_series_set, sample_symbols, sample_weights)
        portfolio = compute_portfolio_returns(assets)

        assert len(portfolio) == 252

    def test_weighted_sum_identity(self, sample_series_set, sample_symbols, sample_weights):
        """portfolio[t] == Σ w_i · r_i[t] for every t."""
        assets = align_asset_returns(sample_series_set, sample_symbols, sample_weights)
        portfolio = compute_portfolio_returns(assets)

        expected = [
            sum(w * sample_series_set[s][t] for s, w in zip(sample_symbols, sample_weights))
            for t in range(252)
        ]
        assert_allclose(portfolio, expected, rtol=0, atol=1e-15)

    def test_weights_not_normalized(self):
        """Weights summing to 2 double the exposure."""
        assets = [
            AssetReturns("A", 1.0, np.full(5, 0.01)),
            AssetReturns("B", 1.0, np.full(5, 0.01)),
        ]
        assert_allclose(compute_portfolio_returns(assets), np.full(5, 0.02))

    def test_constant_returns(self, constant_series_set):
        assets = align_asset_returns(constant_series_set, ["A", "B"], [0.5, 0.5])
        portfolio = compute_portfolio_returns(assets)

        assert np.all(portfolio == -0.01)

    def test_length_mismatch_raises(self):
        assets = [
            AssetReturns("A", 0.5, np.zeros(10)),
            AssetReturns("B", 0.5, np.zeros(9)),
        ]
        with pytest.raises(DimensionMismatchError, match="lengths differ"):
            compute_portfolio_returns(assets)

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            compute_portfolio_returns([])

    def test_duplicate_symbol_raises(self):
        assets = [
            AssetReturns("A", 0.5, np.zeros(3)),
            AssetReturns("A", 0.5, np.zeros(3)),
        ]
        with pytest.raises(InvalidParameterError, match="Duplicate"):
            compute_portfolio_returns(assets)


class TestPortfolio:
    """Tests for Portfolio and CSV loading."""

    def test_from_csv(self, portfolio_csv):
        portfolio = Portfolio.from_csv(portfolio_csv)

        assert portfolio.symbols == ["AAPL", "MSFT", "GOOGL"]
        assert portfolio.weights == [0.5, 0.3, 0.2]
        assert portfolio.positions[1] == Position("MSFT", 0.3, 400.0, 25)

    def test_total_value_uses_price_and_quantity(self, portfolio_csv):
        """Total value = Σ price × quantity, independent of weights."""
        portfolio = Portfolio.from_csv(portfolio_csv)

        assert portfolio.total_value == pytest.approx(200.0 * 100 + 400.0 * 25 + 150.0 * 40)

    def test_portfolio_is_immutable(self, portfolio_csv):
        portfolio = Portfolio.from_csv(portfolio_csv)

        with pytest.raises(dataclasses.FrozenInstanceError):
            portfolio.positions = ()

    def test_missing_column_raises(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("symbol,weight,price\nAAPL,1.0,100\n")

        with pytest.raises(PortfolioFileError, match="quantity"):
            Portfolio.from_csv(str(path))

    def test_non_numeric_value_raises(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("symbol,weight,price,quantity\nAAPL,1.0,abc,10\n")

        with pytest.raises(PortfolioFileError, match="Non-numeric"):
            Portfolio.from_csv(str(path))

    def test_fractional_quantity_raises(self, tmp_path):
        path = tmp_path / "fractional.csv"
        path.write_text("symbol,weight,price,quantity\nAAPL,1.0,100.0,10.9\n")

        with pytest.raises(PortfolioFileError, match="whole numbers"):
            Portfolio.from_csv(str(path))

    def test_whole_number_float_quantity_accepted(self, tmp_path):
        path = tmp_path / "whole.csv"
        path.write_text("symbol,weight,price,quantity\nAAPL,1.0,100.0,10.0\n")

        portfolio = Portfolio.from_csv(str(path))

        assert portfolio.positions[0].quantity == 10
        assert portfolio.total_value == pytest.approx(1000.0)

    @pytest.mark.parametrize("row, column", [
        ("AAPL,1.0,100.0,", "quantity"),
        ("AAPL,1.0,,10", "price"),
        ("AAPL,,100.0,10", "weight"),
        ("AAPL,1.0,inf,10", "price"),
    ])
    def test_blank_or_non_finite_cell_raises(self, tmp_path, row, column):
        path = tmp_path / "blank.csv"
        path.write_text(f"symbol,weight,price,quantity\n{row}\n")

        with pytest.raises(PortfolioFileError, match=column):
            Portfolio.from_csv(str(path))

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(PortfolioFileError):
            Portfolio.from_csv(str(tmp_path / "nope.csv"))

    def test_duplicate_symbol_raises(self, tmp_path):
        path = tmp_path / "dup.csv"
        path.write_text(
            "symbol,weight,price,quantity\nAAPL,0.5,100,1\nAAPL,0.5,100,1\n"
        )
        with pytest.raises(InvalidParameterError, match="AAPL"):
            Portfolio.from_csv(str(path))


class TestSimpleReturns:
    """Tests for compute_simple_returns function."""

    def test_simple_returns(self):
        prices = pd.Series([100.0, 110.0, 99.0])
        returns = compute_simple_returns(prices)

        assert len(returns) == 2
        assert_allclose(returns.values, [0.1, -0.1])
