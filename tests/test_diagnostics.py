"""Unit tests for eclgraph.diagnostics module."""

import pytest

from eclgraph.diagnostics import degree_summary, describe_graph, top_degree_nodes
from eclgraph.graph import CSRGraph


class TestDegreeSummary:
    """Tests for degree_summary."""

    def test_counts(self, small_graph):
        """Node and edge counts are reported."""
        stats = degree_summary(small_graph)
        assert stats["nodes"] == 3
        assert stats["edges"] == 4
        assert stats["weighted"] is False

    def test_out_degree(self, small_graph):
        """Out-degrees are [1, 2, 1]."""
        out_d = degree_summary(small_graph)["out_degree"]
        assert out_d["min"] == 1
        assert out_d["max"] == 2
        assert out_d["mean"] == pytest.approx(4 / 3)

    def test_in_degree(self, small_graph):
        """In-degrees are [2, 1, 1]."""
        in_d = degree_summary(small_graph)["in_degree"]
        assert in_d["min"] == 1
        assert in_d["max"] == 2

    def test_isolated_sources_and_sinks(self):
        """Nodes are classified by which directions they lack."""
        # 0 -> 1, node 2 isolated
        graph = CSRGraph(3, [0, 1, 1, 1], [1])
        stats = degree_summary(graph)
        assert stats["isolated_nodes"] == 1
        assert stats["source_nodes"] == 2  # 0 and 2
        assert stats["sink_nodes"] == 2  # 1 and 2
        assert stats["max_out_degree_node"] == 0

    def test_memory(self, weighted_graph):
        """Memory usage counts weights too."""
        assert degree_summary(weighted_graph)["memory_bytes"] == weighted_graph.nbytes


class TestTopDegreeNodes:
    """Tests for top_degree_nodes."""

    def test_highest_first(self, small_graph):
        """The busiest node comes first."""
        assert top_degree_nodes(small_graph, 1) == [(1, 2)]

    def test_k_capped_by_node_count(self, small_graph):
        """Asking for more nodes than exist returns every node."""
        assert len(top_degree_nodes(small_graph, 10)) == 3


class TestDescribeGraph:
    """Tests for describe_graph output."""

    def test_prints_summary(self, small_graph, capsys):
        """Counts and degree lines are printed."""
        stats = describe_graph(small_graph)
        out = capsys.readouterr().out
        assert "Nodes:  3" in out
        assert "Edges:  4" in out
        assert "Weights: absent" in out
        assert "TOP 5 NODES BY OUT-DEGREE" in out
        assert stats["edges"] == 4

    def test_edgeless_graph(self, capsys):
        """A graph without edges skips the top-node listing."""
        describe_graph(CSRGraph(1, [0, 0], []))
        out = capsys.readouterr().out
        assert "TOP" not in out
        assert "Edges:  0" in out
