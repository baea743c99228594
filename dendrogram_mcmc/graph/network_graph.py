"""Graph collaborator backed by NetworkX.

The sampler only needs two queries from the observed graph: the set of nodes
(the dendrogram leaves) and the number of edges crossing between two disjoint
groups of nodes. :class:`NetworkGraph` answers both on top of an undirected
:class:`networkx.Graph`.
"""

from __future__ import annotations

from typing import Hashable, Iterable, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np


class NetworkGraph:
    """Undirected observed graph exposing ``nodes`` and ``edges_between``.

    Parameters
    ----------
    graph
        Any NetworkX graph. Directed graphs and multigraphs are collapsed to a
        simple undirected graph so that each connected pair counts once
        regardless of orientation or parallel edges.
    """

    def __init__(self, graph: nx.Graph):
        if not isinstance(graph, nx.Graph):
            raise TypeError(
                f"Expected a networkx graph, got {type(graph).__name__}"
            )
        if graph.is_directed() or graph.is_multigraph():
            graph = nx.Graph(graph)
        self.graph = graph

    # ---------------- Constructors ----------------

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Tuple[Hashable, Hashable]],
        nodes: Optional[Iterable[Hashable]] = None,
    ) -> "NetworkGraph":
        """Build a graph from an edge list, optionally adding isolated nodes."""
        G = nx.Graph()
        if nodes is not None:
            G.add_nodes_from(nodes)
        G.add_edges_from(edges)
        return cls(G)

    @classmethod
    def from_adjacency(
        cls,
        adjacency: np.ndarray,
        node_names: Optional[Sequence[Hashable]] = None,
    ) -> "NetworkGraph":
        """Build a graph from a square 0/1 adjacency matrix.

        Parameters
        ----------
        adjacency
            ``(n, n)`` symmetric array; non-zero entries are edges.
        node_names
            Optional labels for rows/columns; defaults to ``0 … n-1``.
        """
        A = np.asarray(adjacency)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ValueError(f"Adjacency must be square, got shape {A.shape}")

        G = nx.from_numpy_array((A != 0).astype(int))
        if node_names is not None:
            if len(node_names) != A.shape[0]:
                raise ValueError(
                    f"Expected {A.shape[0]} node names, got {len(node_names)}"
                )
            G = nx.relabel_nodes(G, dict(enumerate(node_names)))
        return cls(G)

    # ---------------- Collaborator interface ----------------

    def nodes(self) -> List[Hashable]:
        """Return the graph's nodes (the dendrogram leaves)."""
        return list(self.graph.nodes)

    def edges_between(
        self, left: Iterable[Hashable], right: Iterable[Hashable]
    ) -> int:
        """Count edges with one endpoint in ``left`` and the other in ``right``."""
        return int(nx.cut_size(self.graph, set(left), set(right)))

    def __len__(self) -> int:
        return self.graph.number_of_nodes()


def ensure_graph(graph) -> object:
    """Wrap a raw NetworkX graph; pass collaborator objects through unchanged."""
    if isinstance(graph, nx.Graph):
        return NetworkGraph(graph)
    if not (callable(getattr(graph, "nodes", None)) and callable(
        getattr(graph, "edges_between", None)
    )):
        raise TypeError(
            "graph must be a networkx graph or expose nodes() and edges_between()"
        )
    return graph


__all__ = ["NetworkGraph", "ensure_graph"]
