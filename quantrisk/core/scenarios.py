"""
Stress Scenario Tables
======================
Named historical shock vectors (symbol -> fractional price move).

Tables live here rather than inside the stress engine so that new
scenarios can be added, or loaded from a JSON file, without touching
the engine.
"""

import json
from pathlib import Path
from typing import Dict, Optional

from quantrisk.core.errors import InvalidParameterError


ShockTable = Dict[str, float]

FINANCIAL_CRISIS_2008: ShockTable = {
    "SPY": -0.37,
    "QQQ": -0.42,
    "IWM": -0.34,
    "AAPL": -0.56,
    "MSFT": -0.44,
    "GOOGL": -0.65,
}

COVID_CRASH_2020: ShockTable = {
    "SPY": -0.34,
    "QQQ": -0.25,
    "IWM": -0.41,
    "AAPL": -0.17,
    "MSFT": -0.20,
    "GOOGL": -0.21,
}

SCENARIOS: Dict[str, ShockTable] = {
    "2008 Financial Crisis": FINANCIAL_CRISIS_2008,
    "COVID-19 Crash": COVID_CRASH_2020,
}

# Short names accepted on the command line
SCENARIO_ALIASES: Dict[str, str] = {
    "2008": "2008 Financial Crisis",
    "gfc": "2008 Financial Crisis",
    "covid": "COVID-19 Crash",
    "2020": "COVID-19 Crash",
}


def load_scenarios(path: str) -> Dict[str, ShockTable]:
    """
    Read scenario tables from a JSON file.

    Expected shape::

        {"Rates Shock": {"TLT": -0.15, "SPY": -0.08}}

    Raises
    ------
    InvalidParameterError
        If the file is not a mapping of name -> {symbol: number}.
    """
    try:
        raw = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidParameterError(f"Cannot read scenario file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise InvalidParameterError(f"Scenario file {path} must hold a JSON object")

    scenarios: Dict[str, ShockTable] = {}
    for name, table in raw.items():
        if not isinstance(table, dict):
            raise InvalidParameterError(f"Scenario {name!r} must map symbols to shocks")
        try:
            scenarios[str(name)] = {str(sym): float(shock) for sym, shock in table.items()}
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(
                f"Scenario {name!r} has a non-numeric shock: {exc}"
            ) from exc
    return scenarios


def build_registry(scenario_file: Optional[str] = None) -> Dict[str, ShockTable]:
    """Built-in scenarios, extended (or overridden) by ``scenario_file``."""
    registry = {name: dict(table) for name, table in SCENARIOS.items()}
    if scenario_file:
        registry.update(load_scenarios(scenario_file))
    return registry


def resolve_scenario_name(name: str, registry: Dict[str, ShockTable]) -> str:
    """Map a CLI alias or a case-insensitive name onto a registry key."""
    if name in registry:
        return name
    alias = SCENARIO_ALIASES.get(name.lower())
    if alias in registry:
        return alias
    for key in registry:
        if key.lower() == name.lower():
            return key
    raise InvalidParameterError(
        f"Unknown stress scenario {name!r}; available: {sorted(registry)}"
    )
