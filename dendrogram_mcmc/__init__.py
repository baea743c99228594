"""Hierarchical random-graph fitting by MCMC over dendrograms."""

from dendrogram_mcmc.graph import NetworkGraph
from dendrogram_mcmc.sampling import run_chain
from dendrogram_mcmc.tree.dendrogram import Dendrogram
from dendrogram_mcmc.tree.node import DendrogramNode, Mutation

__all__ = ["Dendrogram", "DendrogramNode", "Mutation", "NetworkGraph", "run_chain"]
