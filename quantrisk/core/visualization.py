"""
Visualization Module
====================
Produces static charts for risk analysis reporting.

Generated Figures:
    1. Monte Carlo P&L Distribution (Histogram)
    2. Correlation Heatmap
    3. Stress Scenario Losses
"""

from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import matplotlib.ticker as mtick
import numpy as np
import seaborn as sns

from quantrisk.core.results import CorrelationMatrix, MonteCarloResult, StressTestResult


# ─────────────────────────────────────────────────────────────
# Style Configuration
# ─────────────────────────────────────────────────────────────
plt.rcParams.update({
    "figure.figsize": (12, 7),
    "figure.dpi": 150,
    "font.size": 11,
    "font.family": "serif",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "axes.spines.top": False,
    "axes.spines.right": False,
})

COLORS = {
    "primary": "#1f77b4",
    "var_95": "#ff7f0e",
    "var_99": "#d62728",
    "worst": "#9467bd",
}


def save_figure(fig: plt.Figure, name: str, output_dir: str = "results/figures") -> str:
    """Save figure to disk and return the path."""
    path = Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    filepath = path / f"{name}.png"
    fig.savefig(filepath, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return str(filepath)


def plot_pnl_distribution(
    portfolio_pnl: np.ndarray,
    result: MonteCarloResult,
    output_dir: str = "results/figures",
    title: str = "Monte Carlo Simulated P&L Distribution",
) -> str:
    """
    Plot histogram of simulated portfolio P&L with VaR lines.

    Parameters
    ----------
    portfolio_pnl : np.ndarray
        Simulated P&L in currency.
    result : MonteCarloResult
        Summary of the same simulation (losses are positive).
    output_dir : str
        Output directory for figure.
    title : str
        Chart title.

    Returns
    -------
    str
        Path to saved figure.
    """
    fig, ax = plt.subplots(figsize=(14, 7))

    bins = min(300, max(10, len(portfolio_pnl) // 20))
    ax.hist(
        portfolio_pnl, bins=bins, density=True,
        color=COLORS["primary"], alpha=0.7, edgecolor="none",
        label="Simulated P&L",
    )

    ax.axvline(-result.var_95, color=COLORS["var_95"], linewidth=2,
               linestyle="--", label=f"95% VaR = {result.var_95:,.0f}")
    ax.axvline(-result.var_99, color=COLORS["var_99"], linewidth=2,
               linestyle="--", label=f"99% VaR = {result.var_99:,.0f}")
    ax.axvline(-result.worst_case, color=COLORS["worst"], linewidth=2,
               linestyle=":", label=f"Worst case = {result.worst_case:,.0f}")

    ax.set_xlabel("Portfolio P&L", fontsize=12)
    ax.set_ylabel("Density", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=11, loc="upper right")
    ax.xaxis.set_major_formatter(mtick.StrMethodFormatter("{x:,.0f}"))

    return save_figure(fig, "mc_pnl_distribution", output_dir)


def plot_correlation_heatmap(
    correlation: CorrelationMatrix,
    output_dir: str = "results/figures",
) -> str:
    """
    Plot correlation matrix as an annotated heatmap.

    Parameters
    ----------
    correlation : CorrelationMatrix
        Matrix to draw (lower triangle shown).
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    fig, ax = plt.subplots(figsize=(9, 7))

    matrix = correlation.to_array()
    labels = list(correlation.symbols)
    mask = np.triu(np.ones_like(matrix, dtype=bool), k=1)

    sns.heatmap(
        matrix,
        mask=mask,
        annot=True,
        fmt=".3f",
        cmap="RdYlBu_r",
        center=0,
        vmin=-1,
        vmax=1,
        square=True,
        linewidths=0.5,
        xticklabels=labels,
        yticklabels=labels,
        ax=ax,
        cbar_kws={"shrink": 0.8, "label": "Correlation"},
    )

    ax.set_title("Asset Correlation Matrix",
                 fontsize=14, fontweight="bold")

    return save_figure(fig, "correlation_heatmap", output_dir)


def plot_stress_comparison(
    results: Sequence[StressTestResult],
    output_dir: str = "results/figures",
) -> str:
    """
    Bar chart of loss percentage per stress scenario.

    Parameters
    ----------
    results : sequence of StressTestResult
        One result per scenario.
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    fig, ax = plt.subplots(figsize=(12, 7))

    names = [r.scenario for r in results]
    losses = [r.loss_percentage / 100 for r in results]
    x = np.arange(len(names))

    bars = ax.bar(x, losses, 0.5, color=COLORS["var_99"], alpha=0.8)
    for bar, r in zip(bars, results):
        ax.annotate(
            f"worst: {r.worst_asset}",
            (bar.get_x() + bar.get_width() / 2, bar.get_height()),
            ha="center", va="bottom", fontsize=10,
        )

    ax.set_xlabel("Scenario", fontsize=12)
    ax.set_ylabel("Loss (fraction of portfolio)", fontsize=12)
    ax.set_title("Stress Test Comparison — Scenario Losses",
                 fontsize=14, fontweight="bold")
    ax.set_xticks(x)
    ax.set_xticklabels(names, fontsize=11)
    ax.yaxis.set_major_formatter(mtick.PercentFormatter(1.0))

    return save_figure(fig, "stress_comparison", output_dir)
