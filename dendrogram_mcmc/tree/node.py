"""Internal dendrogram node: local likelihood and rotation moves.

A dendrogram child is either another :class:`DendrogramNode` or a raw leaf
identifier taken straight from the observed graph. Leaves are never wrapped, so
``isinstance(child, DendrogramNode)`` is the test that separates the two cases.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Hashable, List, Optional, Union

from dendrogram_mcmc import config

if TYPE_CHECKING:
    import numpy as np

Child = Union["DendrogramNode", Hashable]


@dataclass
class Mutation:
    """Rotation descriptor returned by :meth:`DendrogramNode.propose_mutation`.

    ``local_child`` is rewritten by every application, so applying the same
    descriptor twice performs the inverse rotation.
    """

    pivot: "DendrogramNode"
    use_left: bool
    local_child: Any


def _is_node(child: Any) -> bool:
    return isinstance(child, DendrogramNode)


def _leaves_of(child: Child, force: bool = False) -> List[Hashable]:
    return child.children(force) if _is_node(child) else [child]


class DendrogramNode:
    """Internal node of a binary dendrogram.

    Parameters
    ----------
    left, right
        Child subtrees: each a ``DendrogramNode`` or a leaf identifier.
    index
        Session-wide sequential id, used as the key into the likelihood cache.
    """

    __slots__ = ("index", "left", "right", "_child_cache")

    def __init__(self, left: Child, right: Child, index: int):
        self.left = left
        self.right = right
        self.index = index
        self._child_cache: Optional[List[Hashable]] = None

    def __repr__(self) -> str:
        return f"DendrogramNode(index={self.index})"

    def __str__(self) -> str:
        """Tree-file line: ``<index>\\t<left>\\t<right>``."""
        return "\t".join(
            [str(self.index), _child_repr(self.left), _child_repr(self.right)]
        )

    # ---------------- Leaf sets ----------------

    def children(self, force: bool = True) -> List[Hashable]:
        """Return the flattened leaves below this node.

        The result is cached; pass ``force=True`` after any change to the
        topology under this node, otherwise a stale leaf list is returned.
        """
        if force or self._child_cache is None:
            self._child_cache = _leaves_of(self.left, force) + _leaves_of(
                self.right, force
            )
        return self._child_cache

    # ---------------- Likelihood ----------------

    def likelihood(self, graph) -> float:
        """Likelihood of the edges crossing this node's left/right split.

        With ``links`` observed edges out of ``max_links = |L| * |R|`` possible,
        the maximum-likelihood connection probability is
        ``theta = links / max_links`` and the term is
        ``theta**links * (1 - theta)**(max_links - links)``. Python evaluates
        ``0.0 ** 0`` as ``1.0``, which is the convention required for the
        empty and complete splits.
        """
        left_leaves = _leaves_of(self.left)
        right_leaves = _leaves_of(self.right)

        links = float(graph.edges_between(left_leaves, right_leaves))
        max_links = len(left_leaves) * len(right_leaves)

        theta = links / max_links
        return (theta**links) * (1.0 - theta) ** (max_links - links)

    # ---------------- Rotations ----------------

    @property
    def is_mutable(self) -> bool:
        """A rotation needs at least one internal child to pivot through."""
        return _is_node(self.left) or _is_node(self.right)

    def propose_mutation(self, rng: "np.random.Generator") -> Mutation:
        """Draw a rotation through this node's internal child.

        The pivot is the left child when it is internal, otherwise the right
        child; a single uniform draw decides which of the pivot's edges takes
        part in the swap.
        """
        if not self.is_mutable:
            raise ValueError(f"Node {self.index} has no internal child to rotate")

        pivot = self.left if _is_node(self.left) else self.right
        use_left = float(rng.random()) > config.MUTATION_LEFT_THRESHOLD
        local_child = self.right if pivot is self.left else self.left
        return Mutation(pivot=pivot, use_left=use_left, local_child=local_child)

    def apply_mutation(self, mutation: Mutation) -> Mutation:
        """Swap the pivot's chosen child with ``mutation.local_child``.

        The subtree taken from the pivot replaces ``local_child`` under this
        node and ``local_child`` moves under the pivot. ``mutation`` is updated
        in place so that re-applying it undoes the rotation. Leaf caches of the
        pivot and of this node are rebuilt; ancestors are unaffected because
        this node's total leaf set does not change.
        """
        pivot = mutation.pivot
        local_child = mutation.local_child

        if mutation.use_left:
            moved = pivot.left
            pivot.left = local_child
        else:
            moved = pivot.right
            pivot.right = local_child

        if self.left is local_child:
            self.left = moved
        else:
            self.right = moved
        mutation.local_child = moved

        pivot.children(True)
        self.children(True)
        return mutation

    # ---------------- Export ----------------

    def to_dot(self, leaf_ids: Dict[Hashable, int]) -> str:
        """Graphviz fragment for this node.

        ``leaf_ids`` is the export-scoped leaf registry; leaves seen for the
        first time are numbered and declared here.
        """
        name = f"INTERNAL_{self.index}"
        dot = [f'{name} [shape=point,label=""];']

        for child in (self.left, self.right):
            if _is_node(child):
                dot.append(f"{name} -- INTERNAL_{child.index};")
                continue
            if child not in leaf_ids:
                leaf_ids[child] = len(leaf_ids)
                dot.append(
                    f'LEAF_{leaf_ids[child]} [shape=none, label="{child}"];'
                )
            dot.append(f"{name} -- LEAF_{leaf_ids[child]};")

        return "\t" + "\n\t".join(dot)


def _child_repr(child: Child) -> str:
    if _is_node(child):
        return f"{child.index} (D)"
    return f"{child} (G)"


__all__ = ["DendrogramNode", "Mutation", "Child"]
