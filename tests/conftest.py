"""Pytest fixtures shared across all test modules."""

import pytest

from eclgraph.graph import CSRGraph
from eclgraph.loader import compile_edge_list


@pytest.fixture
def small_graph():
    """Four-edge directed triangle plus a back edge, compiled from text.

    Sorted unique pairs are (0,1), (1,0), (1,2), (2,0).
    """
    return compile_edge_list(["0 1\n", "1 2\n", "2 0\n", "1 0\n"])


@pytest.fixture
def weighted_graph():
    """Hand-built graph with per-edge weights and an isolated last node."""
    return CSRGraph(
        node_count=4,
        offsets=[0, 2, 3, 3, 3],
        adjacency=[1, 2, 0],
        edge_weight=[10, -20, 30],
    )


@pytest.fixture
def egr_file(tmp_path, small_graph):
    """Path to ``small_graph`` written in .egr format."""
    path = tmp_path / "small.egr"
    small_graph.save(path)
    return path

