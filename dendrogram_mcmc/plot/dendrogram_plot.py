"""
Dendrogram visualization (SciPy + matplotlib).

The sampled topology is drawn with :func:`scipy.cluster.hierarchy.dendrogram`
after conversion to a linkage matrix; heights are subtree leaf counts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple

import matplotlib.pyplot as plt
from scipy.cluster.hierarchy import dendrogram as scipy_dendrogram

from dendrogram_mcmc.tree.io import to_linkage

if TYPE_CHECKING:
    from dendrogram_mcmc.tree.dendrogram import Dendrogram


def plot_dendrogram(
    tree: "Dendrogram",
    ax: Optional[plt.Axes] = None,
    *,
    title: Optional[str] = None,
    show: bool = False,
) -> Tuple[plt.Figure, plt.Axes]:
    """Plot a sampled dendrogram.

    Parameters
    ----------
    tree
        The sampling session to draw.
    ax
        Axes to draw into; a new figure is created when omitted.
    title
        Optional title; defaults to the current likelihood and step count.
    show
        Call ``plt.show()`` before returning.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(max(6.0, 0.3 * tree.n_leaves), 4.0))
    else:
        fig = ax.figure

    Z, labels = to_linkage(tree)
    scipy_dendrogram(Z, labels=[str(label) for label in labels], ax=ax)

    if title is None:
        title = f"likelihood={tree.likelihood:.4g}  steps={tree.mcmc_steps}"
    ax.set_title(title)
    ax.set_ylabel("leaf count")

    if show:
        plt.show()
    return fig, ax


__all__ = ["plot_dendrogram"]
