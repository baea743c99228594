"""I/O helpers for exporting a :class:`Dendrogram`.

Text formats
------------
* tree file: one ``<index>\\t<left>\\t<right>`` line per internal node, children
  written as ``<index> (D)`` (internal) or ``<leaf> (G)`` (graph node);
* info file: aggregate likelihood and number of MCMC steps;
* dot file: undirected Graphviz description of the tree.

Structured exports
------------------
:func:`to_digraph` returns a parent→child :class:`networkx.DiGraph` using the
``L…``/``N…`` node naming used by the rest of the tree tooling, and
:func:`to_linkage` returns a SciPy linkage matrix.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Hashable, List, Tuple, Union

import networkx as nx
import numpy as np
from scipy.cluster.hierarchy import is_valid_linkage

from dendrogram_mcmc import config
from dendrogram_mcmc.tree.node import DendrogramNode

if TYPE_CHECKING:
    from dendrogram_mcmc.tree.dendrogram import Dendrogram

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# ---------------------------------------------------------------------------
# Text renderings
# ---------------------------------------------------------------------------


def format_tree(dendrogram: "Dendrogram") -> str:
    """Render the tree file contents (nodes in index order)."""
    return "\n".join(str(node) for node in dendrogram.nodes) + "\n"


def format_info(dendrogram: "Dendrogram") -> str:
    """Render the info file contents."""
    return (
        f"Likelihood:\t{dendrogram.likelihood!r}\n"
        f"MCMC Steps:\t{dendrogram.mcmc_steps}\n"
    )


def format_dot(dendrogram: "Dendrogram") -> str:
    """Render the Graphviz description.

    Leaves are numbered in first-encounter order with a registry that lives
    only for this call, so repeated exports number leaves identically.
    """
    leaf_ids: Dict[Hashable, int] = {}
    body = "\n".join(node.to_dot(leaf_ids) for node in dendrogram.nodes)
    return f"graph {{\n{body}\n}}\n"


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def dot_path_for(tree_file: PathLike) -> Path:
    """Path of the dot file written next to ``tree_file``."""
    return Path(tree_file).with_suffix(config.DOT_SUFFIX)


def write_dot(dendrogram: "Dendrogram", dot_file: PathLike) -> Path:
    path = Path(dot_file)
    path.write_text(format_dot(dendrogram))
    return path


def save_dendrogram(
    dendrogram: "Dendrogram", tree_file: PathLike, info_file: PathLike
) -> Tuple[Path, Path, Path]:
    """Write the tree file, the info file and the sibling dot file.

    Returns
    -------
    tuple[Path, Path, Path]
        Paths of the tree, info and dot files. ``OSError`` from any write
        propagates to the caller.
    """
    tree_path = Path(tree_file)
    info_path = Path(info_file)

    tree_path.write_text(format_tree(dendrogram))
    info_path.write_text(format_info(dendrogram))
    dot_path = write_dot(dendrogram, dot_path_for(tree_path))

    logger.info(
        "Saved dendrogram (%d steps) to %s, %s, %s",
        dendrogram.mcmc_steps,
        tree_path,
        info_path,
        dot_path,
    )
    return tree_path, info_path, dot_path


# ---------------------------------------------------------------------------
# Structured exports
# ---------------------------------------------------------------------------


def _node_id(child) -> str:
    if isinstance(child, DendrogramNode):
        return f"N{child.index}"
    return f"L{child}"


def to_digraph(dendrogram: "Dendrogram") -> nx.DiGraph:
    """Directed parent→child graph of the dendrogram.

    Leaves become ``L<leaf>`` nodes with ``is_leaf=True`` and ``label=<leaf>``;
    internal nodes become ``N<index>`` nodes carrying their cached
    ``likelihood``. The root is stored in ``G.graph["root"]``.

    Raises
    ------
    ValueError
        If two distinct leaves render to the same ``L<leaf>`` id
        (for example ``1`` and ``"1"``).
    """
    leaf_ids: Dict[str, Hashable] = {}
    for leaf in dendrogram.leaves():
        leaf_id = _node_id(leaf)
        if leaf_id in leaf_ids:
            raise ValueError(
                f"Leaves {leaf_ids[leaf_id]!r} and {leaf!r} share node id {leaf_id!r}"
            )
        leaf_ids[leaf_id] = leaf

    G = nx.DiGraph()
    likelihoods = dendrogram.likelihoods

    for node in dendrogram.nodes:
        G.add_node(
            _node_id(node),
            is_leaf=False,
            index=node.index,
            likelihood=float(likelihoods[node.index]),
        )
        for child in (node.left, node.right):
            if not isinstance(child, DendrogramNode):
                G.add_node(_node_id(child), is_leaf=True, label=child)
            G.add_edge(_node_id(node), _node_id(child))

    G.graph["root"] = _node_id(dendrogram.root)
    return G


def to_linkage(dendrogram: "Dendrogram") -> Tuple[np.ndarray, List[Hashable]]:
    """Convert the dendrogram to a SciPy linkage matrix.

    Leaf ``i`` of the returned label list is observation ``i``. Merge heights
    are subtree leaf counts, which grow strictly from child to parent, so
    ordering merges by height lists every child before its parent.

    Returns
    -------
    tuple[np.ndarray, list]
        ``(n-1, 4)`` linkage matrix and the leaf labels.
    """
    labels = list(dendrogram.leaves())
    n_leaves = len(labels)
    cluster_ids: Dict[object, int] = {leaf: i for i, leaf in enumerate(labels)}

    ordered = sorted(dendrogram.nodes, key=lambda node: len(node.children(False)))
    Z = np.zeros((n_leaves - 1, 4), dtype=np.float64)
    internal_ids: Dict[int, int] = {}

    def _cluster(child) -> int:
        if isinstance(child, DendrogramNode):
            return internal_ids[child.index]
        return cluster_ids[child]

    for k, node in enumerate(ordered):
        size = len(node.children(False))
        Z[k] = [_cluster(node.left), _cluster(node.right), float(size), float(size)]
        internal_ids[node.index] = n_leaves + k

    if not is_valid_linkage(Z):
        raise ValueError("Dendrogram produced an invalid linkage matrix")
    return Z, labels


__all__ = [
    "format_tree",
    "format_info",
    "format_dot",
    "dot_path_for",
    "write_dot",
    "save_dendrogram",
    "to_digraph",
    "to_linkage",
]
