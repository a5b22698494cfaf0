"""Chart generation for PIECE Analyzer reports.

Creates matplotlib charts of an NPV evaluation's cash flows and of a
scenario comparison. Charts are saved as PNG files for embedding in PDF
reports.
"""

from typing import List, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker

from piece.models.calculations import discount_factors
from piece.models.project import NpvEvaluation


def _millions(x, _):
    return f"${x:,.1f}M"


def create_cashflow_chart(evaluation: NpvEvaluation, output_path: str) -> None:
    """Create a bar chart of nominal and discounted cash flows per period.

    The initial investment is shown at period 0. A line tracks the
    cumulative discounted position, which ends at the NPV.

    Args:
        evaluation: Evaluation to plot.
        output_path: File path to save the PNG chart.
    """
    # Only periods that carry a flow are plotted, so gaps cost nothing
    by_period = {0: -evaluation.initial_investment}
    for cf in evaluation.cash_flows:
        by_period[cf.period] = by_period.get(cf.period, 0.0) + cf.amount
    periods = sorted(by_period)
    series = [by_period[p] for p in periods]
    factors = discount_factors(evaluation.discount_rate, periods)
    discounted = [cf * f for cf, f in zip(series, factors)]

    cumulative = []
    running = 0.0
    for value in discounted:
        running += value
        cumulative.append(running / 1e6)

    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    bar_width = 0.35

    ax.bar(
        [p - bar_width / 2 for p in periods],
        [v / 1e6 for v in series],
        bar_width,
        label="Nominal",
        color="#1565c0",
        alpha=0.8,
    )
    ax.bar(
        [p + bar_width / 2 for p in periods],
        [v / 1e6 for v in discounted],
        bar_width,
        label="Discounted",
        color="#2e7d32",
        alpha=0.8,
    )
    ax.plot(periods, cumulative, color="#ef6c00", marker="o", linewidth=1.5,
            label="Cumulative discounted")

    ax.set_xlabel("Period", fontsize=11)
    ax.set_ylabel("$ Millions", fontsize=11)
    ax.set_title("Cash Flows and Cumulative Present Value", fontsize=13, fontweight="bold")
    ax.legend(fontsize=10)
    ax.axhline(y=0, color="black", linewidth=0.5)
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(_millions))
    ax.grid(axis="y", alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)


def create_comparison_chart(ranked: Sequence[Tuple[str, float]], output_path: str) -> None:
    """Create a horizontal bar chart of NPV by scenario.

    Args:
        ranked: (scenario name, npv) pairs, best first.
        output_path: File path to save the PNG chart.
    """
    if not ranked:
        return

    names: List[str] = [name for name, _ in ranked]
    values = [npv / 1e6 for _, npv in ranked]
    colors = ["#2e7d32" if v >= 0 else "#c62828" for v in values]

    fig, ax = plt.subplots(figsize=(7, 0.6 * len(names) + 1.5), dpi=150)
    ax.barh(names[::-1], values[::-1], color=colors[::-1], alpha=0.85)
    ax.axvline(x=0, color="black", linewidth=0.5)
    ax.xaxis.set_major_formatter(mticker.FuncFormatter(_millions))
    ax.set_title("Net Present Value by Scenario", fontsize=13, fontweight="bold")
    ax.grid(axis="x", alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
