"""Dendrogram sampling session.

:class:`Dendrogram` owns every internal node of one fit, the per-node
likelihood cache and the running product of that cache. Each call to
:meth:`Dendrogram.sample` performs one Metropolis-Hastings step: a random
rotation is applied, the two affected likelihood terms are refreshed, and the
move is kept or reverted.

Notes
-----
The aggregate likelihood is a literal product of per-node terms and underflows
to ``0.0`` on large graphs. :attr:`Dendrogram.log_likelihood` is computed from
the same cache and stays finite as long as no single term underflows.
"""

from __future__ import annotations

import itertools
import logging
from collections import Counter
from pathlib import Path
from typing import Hashable, List, Optional, Union

import numpy as np

from dendrogram_mcmc import config
from dendrogram_mcmc.graph.network_graph import ensure_graph
from dendrogram_mcmc.tree.node import Child, DendrogramNode

logger = logging.getLogger(__name__)


class Dendrogram:
    """Random binary hierarchy over a graph's nodes, refined by MCMC.

    Parameters
    ----------
    graph
        A :class:`networkx.Graph` or any object exposing ``nodes()`` and
        ``edges_between(a, b)``.
    rng
        Random source providing ``random()``, ``integers(n)`` and
        ``shuffle(seq)`` (a :class:`numpy.random.Generator` by default).
    random_seed
        Seed for the default generator; falls back to ``config.RANDOM_SEED``.
        Ignored when ``rng`` is supplied.
    """

    def __init__(
        self,
        graph,
        rng: Optional[np.random.Generator] = None,
        random_seed: Optional[int] = None,
    ):
        self.graph = ensure_graph(graph)
        if rng is None:
            seed = random_seed if random_seed is not None else config.RANDOM_SEED
            rng = np.random.default_rng(seed)
        self.rng = rng

        self._index = itertools.count()
        self._nodes: List[DendrogramNode] = []
        self.mcmc_steps = 0
        self.n_accepted = 0
        self.last_accepted: Optional[bool] = None

        leaves = list(self.graph.nodes())
        if len(leaves) < config.MIN_TREE_LEAVES:
            raise ValueError(
                f"A dendrogram needs at least {config.MIN_TREE_LEAVES} leaves, "
                f"got {len(leaves)}"
            )
        if len(set(leaves)) != len(leaves):
            raise ValueError("Graph nodes must be unique")
        self._leaves = leaves

        self.root = self._build_random_topology(leaves)

        self._likelihoods = np.array(
            [node.likelihood(self.graph) for node in self._nodes], dtype=np.float64
        )
        self.likelihood = self.recompute_likelihood()

        logger.debug(
            "Built dendrogram with %d leaves, %d internal nodes, likelihood %.6g",
            len(leaves),
            len(self._nodes),
            self.likelihood,
        )

    # ---------------- Construction ----------------

    def _combine(self, a: Child, b: Child) -> DendrogramNode:
        """Create a node over ``a`` and ``b`` with the next session index."""
        node = DendrogramNode(a, b, next(self._index))
        self._nodes.append(node)
        return node

    def _build_random_topology(self, leaves: List[Hashable]) -> DendrogramNode:
        remaining: List[Child] = list(leaves)
        self.rng.shuffle(remaining)

        while len(remaining) > 1:
            a = remaining.pop()
            b = remaining.pop(0)
            remaining.append(self._combine(a, b))
            self.rng.shuffle(remaining)

        return remaining[0]

    # ---------------- Accessors ----------------

    @property
    def nodes(self) -> List[DendrogramNode]:
        """Internal nodes in index (creation) order."""
        return list(self._nodes)

    @property
    def likelihoods(self) -> np.ndarray:
        """Copy of the per-node likelihood cache, indexed by node index."""
        return self._likelihoods.copy()

    @property
    def n_leaves(self) -> int:
        return len(self._leaves)

    def leaves(self) -> List[Hashable]:
        """Leaves under the root."""
        return list(self.root.children(False))

    @property
    def log_likelihood(self) -> float:
        """Sum of the log of every cached likelihood term."""
        with np.errstate(divide="ignore"):
            return float(np.sum(np.log(self._likelihoods)))

    @property
    def acceptance_rate(self) -> float:
        if self.mcmc_steps == 0:
            return float("nan")
        return self.n_accepted / self.mcmc_steps

    # ---------------- Likelihood bookkeeping ----------------

    def recompute_likelihood(self) -> float:
        """Reset the aggregate likelihood to the product of the cache."""
        self.likelihood = float(np.prod(self._likelihoods))
        return self.likelihood

    def update(self, a: DendrogramNode, b: DendrogramNode) -> float:
        """Refresh the likelihood terms of two nodes touched by a rotation.

        The stale terms are divided out of the aggregate and the fresh ones
        multiplied in. A rotation only changes the leaf split of the rotated
        node and its pivot, so no other cached term needs recomputing.
        """
        stale = self._likelihoods[a.index] * self._likelihoods[b.index]

        for node in (a, b):
            self._likelihoods[node.index] = node.likelihood(self.graph)

        if stale > 0.0:
            self.likelihood /= stale
            self.likelihood *= self._likelihoods[a.index] * self._likelihoods[b.index]
            self.likelihood = float(self.likelihood)
        else:
            self.recompute_likelihood()
        return self.likelihood

    # ---------------- Sampling ----------------

    def _select_mutable_node(self) -> DendrogramNode:
        n_nodes = len(self._nodes)
        for _ in range(config.MAX_SELECTION_ATTEMPTS):
            node = self._nodes[int(self.rng.integers(n_nodes))]
            if node.is_mutable:
                return node

        candidates = [node for node in self._nodes if node.is_mutable]
        if not candidates:
            raise RuntimeError("Dendrogram has no mutable node to rotate")
        logger.debug(
            "Selection cap of %d draws reached; choosing among %d mutable nodes",
            config.MAX_SELECTION_ATTEMPTS,
            len(candidates),
        )
        return candidates[int(self.rng.integers(len(candidates)))]

    def sample(self) -> float:
        """Run one Metropolis-Hastings step and return the current likelihood.

        A rotation that increases the likelihood is always kept; otherwise it
        is kept with probability ``candidate / previous``. Rejected rotations
        are undone by re-applying the same descriptor.

        Raises
        ------
        ValueError
            If the tree has fewer than three leaves (no rotation exists).
        """
        if self.n_leaves < config.MIN_SAMPLING_LEAVES:
            raise ValueError(
                f"Sampling needs at least {config.MIN_SAMPLING_LEAVES} leaves, "
                f"got {self.n_leaves}"
            )

        node = self._select_mutable_node()
        mutation = node.apply_mutation(node.propose_mutation(self.rng))
        pivot = mutation.pivot

        previous = self.likelihood
        candidate = self.update(node, pivot)

        if candidate > previous:
            accepted = True
        else:
            ratio = candidate / previous if previous > 0.0 else 0.0
            accepted = float(self.rng.random()) < ratio

        if accepted:
            self.n_accepted += 1
        else:
            node.apply_mutation(mutation)
            self.update(node, pivot)
            logger.debug(
                "Step %d: rejected rotation at node %d (%.6g -> %.6g)",
                self.mcmc_steps,
                node.index,
                previous,
                candidate,
            )

        self.last_accepted = accepted
        self.mcmc_steps += 1
        return self.likelihood

    # ---------------- Validation ----------------

    def validate(self) -> None:
        """Check the structural invariants of the tree.

        Raises
        ------
        ValueError
            If a leaf is missing or duplicated, the node count is wrong, or a
            node is reachable from more than one parent.
        """
        if len(self._nodes) != self.n_leaves - 1:
            raise ValueError(
                f"Expected {self.n_leaves - 1} internal nodes, got {len(self._nodes)}"
            )
        for i, node in enumerate(self._nodes):
            if node.index != i:
                raise ValueError(f"Node at position {i} has index {node.index}")

        parents: Counter = Counter()
        for node in self._nodes:
            for child in (node.left, node.right):
                if isinstance(child, DendrogramNode):
                    parents[child.index] += 1

        for node in self._nodes:
            expected = 0 if node is self.root else 1
            if parents[node.index] != expected:
                raise ValueError(
                    f"Node {node.index} has {parents[node.index]} parents, "
                    f"expected {expected}"
                )

        leaves = Counter(self.root.children(True))
        if leaves != Counter(self._leaves):
            raise ValueError("Root leaf set does not match the graph's nodes")

    # ---------------- Persistence ----------------

    def save(
        self, tree_file: Union[str, Path], info_file: Union[str, Path]
    ) -> None:
        """Write the tree, info and dot files (see :mod:`dendrogram_mcmc.tree.io`)."""
        from dendrogram_mcmc.tree.io import save_dendrogram

        save_dendrogram(self, tree_file, info_file)

    def to_dot(self, dot_file: Union[str, Path]) -> None:
        from dendrogram_mcmc.tree.io import write_dot

        write_dot(self, dot_file)


__all__ = ["Dendrogram"]
