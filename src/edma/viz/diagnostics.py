"""
Diagnostic figure for a group-separation ranking.

Four panels:
- target/reference ratio against average reference/target size
- R² against average size, with the selection cut-off
- histogram of ratios with a kernel density estimate
- histogram of R² values with a kernel density estimate
"""

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from scipy.stats import gaussian_kde

from ..difference_detection.results import ILDSelection

__all__ = ['plot_ratio_diagnostics']


def _hist_with_density(ax: plt.Axes, values: np.ndarray, title: str, xlabel: str) -> None:
    values = np.asarray(values, dtype=float)
    values = values[np.isfinite(values)]
    if values.size == 0:
        ax.set_axis_off()
        ax.set_title(title or "No data")
        return

    bins = max(1, int(np.sqrt(values.size)))
    ax.hist(values, bins=bins, density=True, color="lightgrey", edgecolor="grey")
    # KDE is singular for constant samples
    if values.size > 1 and np.ptp(values) > 0:
        grid = np.linspace(values.min(), values.max(), 200)
        ax.plot(grid, gaussian_kde(values)(grid), color="red")
    ax.set_title(title, fontsize=10)
    ax.set_xlabel(xlabel, fontsize=9)
    ax.set_ylabel("density", fontsize=9)


def plot_ratio_diagnostics(
    selection: ILDSelection,
    figsize: Tuple[float, float] = (10, 8),
    fig: Optional[plt.Figure] = None,
) -> plt.Figure:
    """
    Explore how ratios and effect sizes relate to distance length.

    Parameters
    ----------
    selection : ILDSelection
        Output of :func:`edma.difference_detection.rank`.
    figsize : tuple, default=(10, 8)
        Size of the new figure when ``fig`` is not given.
    fig : plt.Figure, optional
        Figure to draw into; cleared first.

    Returns
    -------
    plt.Figure
    """
    if fig is None:
        fig = plt.figure(figsize=figsize)
    else:
        fig.clear()
    axes = fig.subplots(2, 2)

    average = selection.baseline['average']
    ratios = selection.ratio_order
    effect_sizes = selection.effect_sizes

    ax = axes[0, 0]
    ax.scatter(average[ratios.index], ratios.to_numpy(), s=10, color="black")
    ax.axhline(1.0, color="grey", linewidth=3)
    ax.set_title("Do ratios vary more in shorter distances?", fontsize=10)
    ax.set_xlabel("average of reference & target distance", fontsize=9)
    ax.set_ylabel("target/reference ratio", fontsize=9)

    ax = axes[0, 1]
    ax.scatter(average[effect_sizes.index], effect_sizes.to_numpy(), s=10, color="black")
    if np.isfinite(selection.threshold):
        ax.axhline(selection.threshold, color="grey", linewidth=3)
    ax.set_title("Does R² relate to distance length?", fontsize=10)
    ax.set_xlabel("average of reference & target distance", fontsize=9)
    ax.set_ylabel("R² vs group", fontsize=9)

    _hist_with_density(
        axes[1, 0], ratios.to_numpy(),
        "Target/reference ratios", "target/reference ratio",
    )
    _hist_with_density(
        axes[1, 1], effect_sizes.to_numpy(),
        "R² of distances vs group", "R²",
    )

    fig.tight_layout()
    return fig
