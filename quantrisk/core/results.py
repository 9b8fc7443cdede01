"""
Result Records
==============
Immutable value objects returned by the calculators.

Each record serializes to a flat dictionary with one entry per named
attribute, ready for ``json.dump``.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class VaRResult:
    """Historical-simulation VaR and Expected Shortfall."""

    portfolio_value: float
    var: float
    confidence: float
    expected_shortfall: float
    time_horizon: int
    volatility: float

    @property
    def var_percentage(self) -> float:
        """VaR as a percentage of portfolio value."""
        return self.var / self.portfolio_value * 100

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        data["var_percentage"] = self.var_percentage
        return data


@dataclass(frozen=True)
class StressTestResult:
    """Loss under a shock scenario (worst_asset_loss is in percent)."""

    scenario: str
    loss: float
    loss_percentage: float
    worst_asset: str
    worst_asset_loss: float

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class MonteCarloResult:
    """
    Summary of a simulated P&L distribution.

    All amounts are losses in currency; ``best_case`` is signed, so a
    negative value is a gain.
    """

    num_simulations: int
    var_95: float
    var_99: float
    expected_loss: float
    worst_case: float
    best_case: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class CorrelationMatrix:
    """Square correlation matrix labelled by ``symbols`` on both axes."""

    symbols: Tuple[str, ...]
    values: Tuple[Tuple[float, ...], ...]

    @classmethod
    def from_array(cls, symbols, matrix: np.ndarray) -> "CorrelationMatrix":
        return cls(
            symbols=tuple(symbols),
            values=tuple(tuple(float(v) for v in row) for row in matrix),
        )

    def get(self, symbol_a: str, symbol_b: str) -> float:
        """Correlation between two symbols."""
        i = self.symbols.index(symbol_a)
        j = self.symbols.index(symbol_b)
        return self.values[i][j]

    def to_array(self) -> np.ndarray:
        return np.array(self.values, dtype=float).reshape(
            len(self.symbols), len(self.symbols)
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.to_array(), index=list(self.symbols), columns=list(self.symbols)
        )

    def to_dict(self) -> Dict[str, List]:
        return {
            "symbols": list(self.symbols),
            "matrix": [list(row) for row in self.values],
        }
