"""Observed-graph adapters consumed by the dendrogram sampler."""

from .network_graph import NetworkGraph, ensure_graph

__all__ = ["NetworkGraph", "ensure_graph"]
