"""
Stress Testing Module
=====================
Applies scenario shock vectors to a portfolio to measure hypothetical
loss under extreme market moves.

Model:
    allocation_i = V / N                 (equal weighting)
    loss         = -Σ_i allocation_i · shock_i

Simplification:
    Every symbol is allocated an equal share of the portfolio value,
    whatever weights the VaR calculation uses.  The engine knows nothing
    about specific scenarios; shock tables are passed in by the caller
    (see ``quantrisk.core.scenarios``).
"""

import math
from typing import Dict, Mapping, Sequence

from quantrisk.core.errors import InvalidParameterError
from quantrisk.core.results import StressTestResult
from quantrisk.core.risk_metrics import validate_portfolio_value


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
DEFAULT_SHOCK: float = -0.20
CUSTOM_SCENARIO_NAME: str = "Custom Stress"


def apply_shocks(
    symbols: Sequence[str],
    portfolio_value: float,
    shock_table: Mapping[str, float],
    scenario_name: str,
    default_shock: float = DEFAULT_SHOCK,
) -> StressTestResult:
    """
    Compute portfolio loss under a shock table.

    Algorithm:
        1. Allocate V / N to each symbol
        2. Look up each symbol's shock; unknown symbols get default_shock
        3. Sum per-asset P&L; loss is its negation
        4. Worst asset = largest |shock|, first in ``symbols`` on ties

    Parameters
    ----------
    symbols : sequence of str
        Portfolio symbols.
    portfolio_value : float
        Portfolio value in currency.
    shock_table : mapping
        Symbol -> fractional shock (e.g. -0.37 for -37%).
    scenario_name : str
        Label carried into the result.
    default_shock : float
        Shock applied to symbols absent from the table (default: -20%).

    Returns
    -------
    StressTestResult

    Raises
    ------
    InvalidParameterError
        If ``symbols`` is empty or the portfolio value is not positive.
    """
    if len(symbols) == 0:
        raise InvalidParameterError("Stress test needs at least one symbol")
    validate_portfolio_value(portfolio_value)

    allocation = portfolio_value / len(symbols)
    shocks = [(symbol, float(shock_table.get(symbol, default_shock))) for symbol in symbols]

    distinct_shocks = {shock for _, shock in shocks}
    if len(distinct_shocks) == 1:
        # N allocations of V / N with one shock sum to exactly V * shock
        pnl = portfolio_value * distinct_shocks.pop()
    else:
        pnl = math.fsum(allocation * shock for _, shock in shocks)
    loss = -pnl

    # max() keeps the first of equal keys
    worst_asset, worst_shock = max(shocks, key=lambda item: abs(item[1]))

    return StressTestResult(
        scenario=scenario_name,
        loss=loss,
        loss_percentage=loss / portfolio_value * 100,
        worst_asset=worst_asset,
        worst_asset_loss=worst_shock * 100,
    )


def run_scenario(
    scenario_name: str,
    symbols: Sequence[str],
    portfolio_value: float,
    registry: Dict[str, Mapping[str, float]],
    default_shock: float = DEFAULT_SHOCK,
) -> StressTestResult:
    """
    Apply a named scenario taken from ``registry``.

    Raises
    ------
    InvalidParameterError
        If the scenario is not in the registry.
    """
    if scenario_name not in registry:
        raise InvalidParameterError(
            f"Unknown stress scenario {scenario_name!r}; available: {sorted(registry)}"
        )
    return apply_shocks(
        symbols, portfolio_value, registry[scenario_name], scenario_name, default_shock
    )


def custom_stress_test(
    symbols: Sequence[str],
    portfolio_value: float,
    shock: float,
) -> StressTestResult:
    """Apply the same fractional shock to every symbol."""
    shock_table = {symbol: shock for symbol in symbols}
    return apply_shocks(symbols, portfolio_value, shock_table, CUSTOM_SCENARIO_NAME)
