"""Tests for dendrogram text and structured exports."""

import networkx as nx
import numpy as np
import pytest
from scipy.cluster.hierarchy import is_valid_linkage

from dendrogram_mcmc.graph import NetworkGraph
from dendrogram_mcmc.tree.dendrogram import Dendrogram
from dendrogram_mcmc.tree.io import (
    dot_path_for,
    format_dot,
    format_info,
    format_tree,
    save_dendrogram,
    to_digraph,
    to_linkage,
)
from tests.rng_utils import StubRandom


@pytest.fixture
def two_leaf_tree():
    """Identity shuffle over ``[A, B]`` builds the single node ``(B, A)``."""
    graph = NetworkGraph.from_edges([], nodes=["A", "B"])
    return Dendrogram(graph, rng=StubRandom())


@pytest.fixture
def three_leaf_tree():
    """Identity shuffle over ``[B, C, A]`` builds ``((A, B), C)``."""
    graph = NetworkGraph.from_edges([("A", "B")], nodes=["B", "C", "A"])
    return Dendrogram(graph, rng=StubRandom())


TWO_LEAF_DOT = (
    "graph {\n"
    '\tINTERNAL_0 [shape=point,label=""];\n'
    '\tLEAF_0 [shape=none, label="B"];\n'
    "\tINTERNAL_0 -- LEAF_0;\n"
    '\tLEAF_1 [shape=none, label="A"];\n'
    "\tINTERNAL_0 -- LEAF_1;\n"
    "}\n"
)

THREE_LEAF_DOT = (
    "graph {\n"
    '\tINTERNAL_0 [shape=point,label=""];\n'
    '\tLEAF_0 [shape=none, label="A"];\n'
    "\tINTERNAL_0 -- LEAF_0;\n"
    '\tLEAF_1 [shape=none, label="B"];\n'
    "\tINTERNAL_0 -- LEAF_1;\n"
    '\tINTERNAL_1 [shape=point,label=""];\n'
    "\tINTERNAL_1 -- INTERNAL_0;\n"
    '\tLEAF_2 [shape=none, label="C"];\n'
    "\tINTERNAL_1 -- LEAF_2;\n"
    "}\n"
)


def test_two_leaf_formats(two_leaf_tree):
    assert format_tree(two_leaf_tree) == "0\tB (G)\tA (G)\n"
    assert format_info(two_leaf_tree) == "Likelihood:\t1.0\nMCMC Steps:\t0\n"
    assert format_dot(two_leaf_tree) == TWO_LEAF_DOT


def test_three_leaf_formats(three_leaf_tree):
    assert format_tree(three_leaf_tree) == "0\tA (G)\tB (G)\n1\t0 (D)\tC (G)\n"
    assert format_dot(three_leaf_tree) == THREE_LEAF_DOT


def test_dot_leaf_numbering_resets_per_export(three_leaf_tree):
    assert format_dot(three_leaf_tree) == format_dot(three_leaf_tree)


def test_info_reports_steps_after_sampling():
    graph = NetworkGraph.from_edges([("A", "B")], nodes=["B", "C", "A"])
    tree = Dendrogram(graph, rng=StubRandom(uniforms=[0.9, 0.2], indices=[1]))
    tree.sample()

    assert format_info(tree) == "Likelihood:\t0.25\nMCMC Steps:\t1\n"


def test_save_writes_tree_info_and_dot(tmp_path, three_leaf_tree):
    tree_file = tmp_path / "fit.tree"
    info_file = tmp_path / "fit.info"

    three_leaf_tree.save(tree_file, info_file)

    assert tree_file.read_text() == "0\tA (G)\tB (G)\n1\t0 (D)\tC (G)\n"
    assert info_file.read_text() == "Likelihood:\t1.0\nMCMC Steps:\t0\n"
    assert (tmp_path / "fit.dot").read_text() == THREE_LEAF_DOT


def test_save_returns_paths(tmp_path, two_leaf_tree):
    paths = save_dendrogram(two_leaf_tree, tmp_path / "a.txt", tmp_path / "a.info")
    assert paths == (tmp_path / "a.txt", tmp_path / "a.info", tmp_path / "a.dot")


def test_save_into_missing_directory_raises(tmp_path, two_leaf_tree):
    with pytest.raises(OSError):
        two_leaf_tree.save(tmp_path / "missing" / "a.tree", tmp_path / "a.info")


def test_dot_path_replaces_last_extension():
    assert dot_path_for("runs/fit.v1.tree").name == "fit.v1.dot"


def test_to_dot_method_writes_file(tmp_path, two_leaf_tree):
    target = tmp_path / "only.dot"
    two_leaf_tree.to_dot(target)
    assert target.read_text() == TWO_LEAF_DOT


class TestStructuredExports:
    def test_to_digraph_shape(self, three_leaf_tree):
        G = to_digraph(three_leaf_tree)

        assert G.graph["root"] == "N1"
        assert set(G.successors("N1")) == {"N0", "LC"}
        assert set(G.successors("N0")) == {"LA", "LB"}
        assert G.nodes["LA"] == {"is_leaf": True, "label": "A"}
        assert G.nodes["N0"]["likelihood"] == 1.0
        assert nx.is_arborescence(G)

    def test_to_digraph_on_sampled_tree(self):
        tree = Dendrogram(nx.karate_club_graph(), random_seed=0)
        for _ in range(100):
            tree.sample()

        G = to_digraph(tree)
        leaves = [n for n, d in G.nodes(data=True) if d["is_leaf"]]
        assert len(leaves) == 34
        assert G.number_of_nodes() == 34 + 33
        assert nx.is_arborescence(G)

    def test_to_linkage_is_valid(self):
        tree = Dendrogram(nx.karate_club_graph(), random_seed=1)
        for _ in range(100):
            tree.sample()

        Z, labels = to_linkage(tree)

        assert Z.shape == (33, 4)
        assert is_valid_linkage(Z)
        assert sorted(labels) == list(range(34))
        assert Z[-1, 3] == 34
        assert np.all(np.diff(Z[:, 2]) >= 0)


def test_to_digraph_rejects_colliding_leaf_ids():
    graph = NetworkGraph.from_edges([], nodes=[1, "1", 2])
    tree = Dendrogram(graph, random_seed=0)

    with pytest.raises(ValueError):
        to_digraph(tree)
