"""
Figures for the analysis report.
"""

import numpy as np
from matplotlib.figure import Figure

from screening_analysis.comparison.data_models import ComparisonTable
from screening_analysis.factor.parallel_analysis import ParallelAnalysisResult
from screening_analysis.irt.curves import CurveSet


def plot_item_characteristic_curves(curves: CurveSet) -> Figure:
    """
    Expected item score against the trait, one line per item.

    For dichotomous items this is the probability of endorsing the item.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(9, 6))
    for name, scores in zip(curves.item_names, curves.expected_scores):
        ax.plot(curves.theta, scores, label=name)

    ax.set_xlabel("θ")
    ax.set_ylabel("Expected item score")
    ax.set_title("Item characteristic curves")
    ax.legend(loc="upper left", fontsize="small")
    ax.grid(alpha=0.3)
    fig.tight_layout()
    return fig


def plot_information_curves(curves: CurveSet) -> Figure:
    import matplotlib.pyplot as plt

    fig, (info_ax, se_ax) = plt.subplots(1, 2, figsize=(12, 5))

    for name, information in zip(curves.item_names, curves.item_information):
        info_ax.plot(curves.theta, information, label=name, alpha=0.7)
    info_ax.plot(
        curves.theta, curves.test_information, color="black", label="Test"
    )
    info_ax.set_xlabel("θ")
    info_ax.set_ylabel("Information")
    info_ax.set_title("Item and test information")
    info_ax.legend(loc="upper left", fontsize="small")

    se_ax.plot(curves.theta, curves.standard_error, color="black")
    se_ax.set_xlabel("θ")
    se_ax.set_ylabel("Standard error")
    se_ax.set_title("Standard error of measurement")

    for ax in (info_ax, se_ax):
        ax.grid(alpha=0.3)
    fig.tight_layout()
    return fig


def plot_parallel_analysis(result: ParallelAnalysisResult) -> Figure:
    """Scree plot of observed eigenvalues against the random percentile."""
    import matplotlib.pyplot as plt

    ranks = np.arange(1, len(result.observed_eigenvalues) + 1)

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(ranks, result.observed_eigenvalues, marker="o", label="Observed")
    ax.plot(
        ranks,
        result.random_eigenvalues,
        marker="x",
        linestyle="--",
        label=f"Random ({result.percentile:g}th percentile)",
    )
    ax.axhline(1.0, color="grey", linewidth=0.8)
    ax.set_xticks(ranks)
    ax.set_xlabel("Factor")
    ax.set_ylabel("Eigenvalue")
    ax.set_title(
        f"Parallel analysis: {result.n_factors} factor(s), seed {result.seed}"
    )
    ax.legend()
    ax.grid(alpha=0.3)
    fig.tight_layout()
    return fig


def plot_loading_comparison(table: ComparisonTable) -> Figure:
    """Grouped bars of the two loading vectors, keyed by item."""
    import matplotlib.pyplot as plt

    positions = np.arange(len(table.rows))
    width = 0.4

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.bar(
        positions - width / 2,
        [row.value_a for row in table.rows],
        width,
        label=table.label_a.upper(),
    )
    ax.bar(
        positions + width / 2,
        [row.value_b for row in table.rows],
        width,
        label=table.label_b.upper(),
    )
    ax.set_xticks(positions)
    ax.set_xticklabels(table.keys, rotation=45, ha="right")
    ax.set_ylim(0.0, 1.0)
    ax.set_ylabel("Standardized loading")
    ax.set_title("Converted IRT loadings vs ordinal CFA loadings")
    ax.legend()
    fig.tight_layout()
    return fig
