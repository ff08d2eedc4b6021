"""
Plots for PCA results: a scree plot and a biplot.
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, Tuple

from pcakit.exceptions import InvalidInput
from pcakit.math.pca import PCAResult

logger = logging.getLogger(__name__)


def scree_plot(result: PCAResult, ax: Optional[plt.Axes] = None) -> plt.Axes:
    """
    Bar chart of explained variance per component with the cumulative share.

    Args:
        result: Result of compute_pca
        ax: Axes to draw on (a new figure is created if omitted)

    Returns:
        The Axes drawn on
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))

    labels = result.component_names(len(result.eigenvalues))
    x = np.arange(len(labels))

    ax.bar(x, result.explained_variance_ratio, color="steelblue", label="Proportion of variance")
    ax.plot(x, result.cumulative_variance_ratio, color="black", marker="o", label="Cumulative")
    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.set_ylim(0, 1.05)
    ax.set_ylabel("Proportion of variance")
    ax.set_title("Scree plot")
    ax.legend(loc="center right")

    return ax


def biplot(result: PCAResult,
           components: Tuple[int, int] = (0, 1),
           ax: Optional[plt.Axes] = None,
           label_points: bool = True) -> plt.Axes:
    """
    Scores of two components as points, loadings as arrows.

    Arrows are stretched so the longest one reaches the extent of the scores.

    Args:
        result: Result of compute_pca
        components: Zero-based indices of the two components to show
        ax: Axes to draw on (a new figure is created if omitted)
        label_points: Annotate points with observation names

    Returns:
        The Axes drawn on
    """
    i, j = components
    if i == j or not (0 <= i < result.n_components and 0 <= j < result.n_components):
        raise InvalidInput(f"Biplot needs two distinct retained components, got {components}")

    if ax is None:
        _, ax = plt.subplots(figsize=(7, 7))

    scores = result.scores[:, [i, j]]
    loadings = result.loadings[:, [i, j]]

    ax.scatter(scores[:, 0], scores[:, 1], s=15, color="grey", alpha=0.7)
    if label_points:
        for name, (x, y) in zip(result.observation_names, scores):
            ax.annotate(str(name), (x, y), fontsize=7, alpha=0.8)

    arrow_len = np.abs(loadings).max()
    stretch = np.abs(scores).max() / arrow_len if arrow_len > 0 else 1.0
    for name, (x, y) in zip(result.variable_names, loadings * stretch):
        ax.arrow(0, 0, x, y, color="firebrick", head_width=0.05 * stretch * arrow_len,
                 length_includes_head=True)
        ax.annotate(str(name), (x * 1.08, y * 1.08), color="firebrick", fontsize=9)

    names = result.component_names()
    ratios = result.explained_variance_ratio
    ax.set_xlabel(f"{names[i]} ({ratios[i]:.1%})")
    ax.set_ylabel(f"{names[j]} ({ratios[j]:.1%})")
    ax.axhline(0, color="k", linestyle="--", linewidth=0.8)
    ax.axvline(0, color="k", linestyle="--", linewidth=0.8)
    ax.set_title("Biplot")

    return ax
