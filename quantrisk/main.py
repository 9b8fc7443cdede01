"""
QuantRisk — Command-Line Entry Point
====================================
Portfolio risk calculator front end.

Commands:
    var          Historical VaR & Expected Shortfall for weighted symbols
    stress       Scenario or custom-shock stress loss
    correlation  Pairwise Pearson correlation matrix
    montecarlo   Monte Carlo loss distribution
    portfolio    Batch mode: VaR of a CSV portfolio, printed as JSON
    scenarios    List available stress scenarios

Return series come from the configured provider (synthetic by default,
Yahoo Finance with ``--source yahoo``).  Results print as terminal
tables, or as JSON with ``--json``; ``--output`` also writes the JSON
to a file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import structlog

from quantrisk import __version__
from quantrisk.config import Settings, get_settings
from quantrisk.core.errors import InvalidParameterError, RiskEngineError
from quantrisk.core.market_data import fetch_returns, get_provider
from quantrisk.core.monte_carlo import simulate_portfolio_pnl, summarize_simulation
from quantrisk.core.portfolio import (
    Portfolio,
    align_asset_returns,
    compute_portfolio_returns,
)
from quantrisk.core.results import (
    CorrelationMatrix,
    MonteCarloResult,
    StressTestResult,
    VaRResult,
)
from quantrisk.core.risk_metrics import compute_var
from quantrisk.core.scenarios import build_registry, resolve_scenario_name
from quantrisk.core.statistics import compute_correlation_matrix, get_return_summary
from quantrisk.core.stress_testing import custom_stress_test, run_scenario

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Set up structlog with human-readable console output on stderr."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


# ─────────────────────────────────────────────────────────────
# Terminal output
# ─────────────────────────────────────────────────────────────

def print_header(text: str) -> None:
    """Print formatted section header."""
    width = 60
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width)


def print_metrics(metrics: dict, indent: int = 4) -> None:
    """Print dictionary of metrics with formatting."""
    prefix = " " * indent
    for key, val in metrics.items():
        if isinstance(val, float):
            print(f"{prefix}{key:.<35} {val:>16,.6f}")
        else:
            print(f"{prefix}{key:.<35} {str(val):>16}")


def print_var_result(result: VaRResult) -> None:
    print_header("VALUE-AT-RISK RESULTS")
    print(f"    Portfolio Value:     ${result.portfolio_value:,.2f}")
    print(f"    VaR ({result.confidence * 100:.1f}% conf):    ${result.var:,.2f}")
    print(f"    VaR Percentage:      {result.var_percentage:.2f}%")
    print(f"    Expected Shortfall:  ${result.expected_shortfall:,.2f}")
    print(f"    Time Horizon:        {result.time_horizon} days")
    print(f"    Volatility:          {result.volatility * 100:.2f}%")


def print_stress_result(result: StressTestResult) -> None:
    print_header(f"STRESS TEST — {result.scenario}")
    print(f"    Portfolio Loss:      ${result.loss:,.2f}")
    print(f"    Loss Percentage:     {result.loss_percentage:.2f}%")
    print(f"    Worst Asset:         {result.worst_asset} ({result.worst_asset_loss:.2f}%)")


def print_correlation_matrix(matrix: CorrelationMatrix) -> None:
    print_header("CORRELATION MATRIX")
    print(f"{'':>8}" + "".join(f"{s:>8}" for s in matrix.symbols))
    for symbol, row in zip(matrix.symbols, matrix.values):
        print(f"{symbol:>8}" + "".join(f"{v:>8.3f}" for v in row))


def print_monte_carlo_result(result: MonteCarloResult) -> None:
    print_header("MONTE CARLO RESULTS")
    print(f"    Simulations:         {result.num_simulations:,}")
    print(f"    VaR (95%):           ${result.var_95:,.2f}")
    print(f"    VaR (99%):           ${result.var_99:,.2f}")
    print(f"    Expected Loss:       ${result.expected_loss:,.2f}")
    print(f"    Worst Case:          ${result.worst_case:,.2f}")
    print(f"    Best Case:           ${result.best_case:,.2f}")


def emit_json(payload: object, args: argparse.Namespace, to_stdout: bool) -> None:
    """Print and/or save a JSON payload."""
    text = json.dumps(payload, indent=2, default=str)
    if to_stdout:
        print(text)
    if args.output:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n")
        logger.info("results exported", path=str(path))


# ─────────────────────────────────────────────────────────────
# Argument helpers
# ─────────────────────────────────────────────────────────────

def parse_symbols(text: str) -> List[str]:
    symbols = [s.strip().upper() for s in text.split(",") if s.strip()]
    if not symbols:
        raise InvalidParameterError("At least one symbol is required")
    return symbols


def parse_weights(text: str) -> List[float]:
    try:
        return [float(w) for w in text.split(",") if w.strip()]
    except ValueError as exc:
        raise InvalidParameterError(f"Weights must be numbers: {text!r}") from exc


def load_series(symbols: Sequence[str], args: argparse.Namespace, settings: Settings):
    provider = get_provider(args.source or settings.DATA_SOURCE, settings.LOOKBACK_DAYS)
    return fetch_returns(
        provider,
        symbols,
        max_workers=settings.FETCH_MAX_WORKERS,
        timeout=settings.FETCH_TIMEOUT_SECONDS,
        max_retries=settings.FETCH_MAX_RETRIES,
    )


def figures_dir(args: argparse.Namespace, settings: Settings) -> str:
    return str(Path(args.results_dir or settings.RESULTS_DIR) / "figures")


# ─────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────

def cmd_var(args: argparse.Namespace, settings: Settings) -> int:
    symbols = parse_symbols(args.symbols)
    weights = parse_weights(args.weights) if args.weights else [1.0 / len(symbols)] * len(symbols)

    series_set = load_series(symbols, args, settings)
    assets = align_asset_returns(series_set, symbols, weights)
    portfolio_returns = compute_portfolio_returns(assets)

    result = compute_var(
        portfolio_returns,
        args.value,
        confidence=args.confidence,
        horizon_days=args.horizon,
        trading_days=settings.TRADING_DAYS_PER_YEAR,
        volatility_ddof=settings.VOLATILITY_DDOF,
    )
    summary = (
        get_return_summary(portfolio_returns, settings.TRADING_DAYS_PER_YEAR)
        if args.summary else None
    )

    payload: Dict[str, object] = result.to_dict()
    if summary is not None:
        payload = {"var": result.to_dict(), "summary": summary}

    if not args.json:
        print_var_result(result)
        if summary is not None:
            print_header("PORTFOLIO RETURN SUMMARY")
            print_metrics(summary)
    emit_json(payload, args, to_stdout=args.json)
    return 0


def cmd_stress(args: argparse.Namespace, settings: Settings) -> int:
    symbols = parse_symbols(args.symbols)
    registry = build_registry(args.scenario_file or settings.SCENARIO_FILE)

    if args.shock is not None:
        results = [custom_stress_test(symbols, args.value, args.shock)]
    elif args.scenario.lower() == "all":
        results = [
            run_scenario(name, symbols, args.value, registry, settings.DEFAULT_STRESS_SHOCK)
            for name in registry
        ]
    else:
        name = resolve_scenario_name(args.scenario, registry)
        results = [
            run_scenario(name, symbols, args.value, registry, settings.DEFAULT_STRESS_SHOCK)
        ]

    if not args.json:
        for result in results:
            print_stress_result(result)

    if args.plot:
        from quantrisk.core.visualization import plot_stress_comparison

        path = plot_stress_comparison(results, output_dir=figures_dir(args, settings))
        logger.info("figure saved", path=path)

    payload = results[0].to_dict() if len(results) == 1 else [r.to_dict() for r in results]
    emit_json(payload, args, to_stdout=args.json)
    return 0


def cmd_correlation(args: argparse.Namespace, settings: Settings) -> int:
    symbols = parse_symbols(args.symbols)
    series_set = load_series(symbols, args, settings)
    matrix = compute_correlation_matrix(series_set, symbols)

    if not args.json:
        print_correlation_matrix(matrix)

    if args.plot:
        from quantrisk.core.visualization import plot_correlation_heatmap

        path = plot_correlation_heatmap(matrix, output_dir=figures_dir(args, settings))
        logger.info("figure saved", path=path)

    emit_json(matrix.to_dict(), args, to_stdout=args.json)
    return 0


def cmd_montecarlo(args: argparse.Namespace, settings: Settings) -> int:
    symbols = parse_symbols(args.symbols)
    seed = args.seed if args.seed is not None else settings.RANDOM_SEED
    num_simulations = (
        args.simulations if args.simulations is not None else settings.MC_NUM_SIMULATIONS
    )
    rng = np.random.default_rng(seed)

    logger.info("running monte carlo", num_simulations=num_simulations, seed=seed)
    pnl = simulate_portfolio_pnl(
        symbols,
        args.value,
        num_simulations=num_simulations,
        rng=rng,
        daily_volatility=settings.MC_DAILY_VOLATILITY,
    )
    result = summarize_simulation(pnl)

    if not args.json:
        print_monte_carlo_result(result)

    if args.plot:
        from quantrisk.core.visualization import plot_pnl_distribution

        path = plot_pnl_distribution(pnl, result, output_dir=figures_dir(args, settings))
        logger.info("figure saved", path=path)

    emit_json(result.to_dict(), args, to_stdout=args.json)
    return 0


def cmd_portfolio(args: argparse.Namespace, settings: Settings) -> int:
    portfolio = Portfolio.from_csv(args.csv)
    logger.info(
        "portfolio loaded",
        path=args.csv,
        num_positions=len(portfolio.positions),
        total_value=portfolio.total_value,
    )

    series_set = load_series(portfolio.symbols, args, settings)
    assets = align_asset_returns(series_set, portfolio.symbols, portfolio.weights)
    result = compute_var(
        compute_portfolio_returns(assets),
        portfolio.total_value,
        confidence=args.confidence,
        horizon_days=args.horizon,
        trading_days=settings.TRADING_DAYS_PER_YEAR,
        volatility_ddof=settings.VOLATILITY_DDOF,
    )

    emit_json(result.to_dict(), args, to_stdout=True)
    return 0


def cmd_scenarios(args: argparse.Namespace, settings: Settings) -> int:
    registry = build_registry(args.scenario_file or settings.SCENARIO_FILE)
    if args.json:
        emit_json(registry, args, to_stdout=True)
        return 0
    for name, table in registry.items():
        print_header(name)
        print_metrics({symbol: shock for symbol, shock in table.items()})
    return 0


# ─────────────────────────────────────────────────────────────
# Parser
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--source", choices=["synthetic", "yahoo"], default=None,
                        help="Return-series provider (default: QUANTRISK_DATA_SOURCE)")
    common.add_argument("--json", action="store_true", help="Print results as JSON")
    common.add_argument("--output", default=None, help="Also write JSON results to this file")
    common.add_argument("--plot", action="store_true", help="Save charts under RESULTS_DIR/figures")
    common.add_argument("--results-dir", default=None, help="Override QUANTRISK_RESULTS_DIR")
    common.add_argument("--log-level", default=None, help="Override QUANTRISK_LOG_LEVEL")

    parser = argparse.ArgumentParser(
        prog="quantrisk", description="Portfolio risk calculator"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("var", parents=[common], help="Historical VaR and Expected Shortfall")
    p.add_argument("--symbols", required=True, help="Comma-separated, e.g. AAPL,MSFT,GOOGL")
    p.add_argument("--weights", default=None, help="Comma-separated, aligned with --symbols")
    p.add_argument("--value", type=float, required=True, help="Portfolio value")
    p.add_argument("--confidence", type=float, default=0.95)
    p.add_argument("--horizon", type=int, default=1, help="Horizon in days")
    p.add_argument("--summary", action="store_true", help="Also show return statistics")
    p.set_defaults(handler=cmd_var)

    p = sub.add_parser("stress", parents=[common], help="Scenario stress test")
    p.add_argument("--symbols", required=True)
    p.add_argument("--value", type=float, required=True)
    p.add_argument("--scenario", default="2008",
                   help="Scenario name or alias (2008, covid), or 'all'")
    p.add_argument("--shock", type=float, default=None,
                   help="Uniform custom shock, e.g. -0.30 for -30%%")
    p.add_argument("--scenario-file", default=None, help="JSON file of extra scenarios")
    p.set_defaults(handler=cmd_stress)

    p = sub.add_parser("correlation", parents=[common], help="Correlation matrix")
    p.add_argument("--symbols", required=True)
    p.set_defaults(handler=cmd_correlation)

    p = sub.add_parser("montecarlo", parents=[common], help="Monte Carlo simulation")
    p.add_argument("--symbols", required=True)
    p.add_argument("--value", type=float, required=True)
    p.add_argument("--simulations", type=int, default=None)
    p.add_argument("--seed", type=int, default=None)
    p.set_defaults(handler=cmd_montecarlo)

    p = sub.add_parser("portfolio", parents=[common], help="Batch VaR for a CSV portfolio")
    p.add_argument("csv", help="CSV with columns symbol,weight,price,quantity")
    p.add_argument("--confidence", type=float, default=0.95)
    p.add_argument("--horizon", type=int, default=1)
    p.set_defaults(handler=cmd_portfolio)

    p = sub.add_parser("scenarios", parents=[common], help="List stress scenarios")
    p.add_argument("--scenario-file", default=None)
    p.set_defaults(handler=cmd_scenarios)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run one command and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.LOG_LEVEL)

    logger.debug("dispatching command", command=args.command)
    try:
        return args.handler(args, settings)
    except RiskEngineError as exc:
        logger.error("command failed", command=args.command, error=str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
