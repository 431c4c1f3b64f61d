"""Tests for the eclgraph command line."""

import os

import pytest

from eclgraph.codec import encode, read_graph
from eclgraph.convert_graph import build_egr, main, write_graph_atomic
from eclgraph.graph import CSRGraph


FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
ONE_BASED_EDGES_FILE = os.path.join(FIXTURES_DIR, "edges_one_based.txt")


def _run(argv):
    """Run main() and return its exit code (0 when it returns normally)."""
    try:
        main(argv)
    except SystemExit as e:
        return e.code
    return 0


class TestBuildCommand:
    """Tests for `eclgraph build`."""

    def test_writes_egr(self, tmp_path, capsys):
        """The fixture converts and the summary is printed."""
        output = tmp_path / "out.egr"
        assert _run(["build", ONE_BASED_EDGES_FILE, str(output)]) == 0

        graph = read_graph(output)
        assert graph.node_count == 4
        assert graph.adjacency.tolist() == [1, 2, 2, 3, 0, 0]

        out = capsys.readouterr().out
        assert "Nodes:  4" in out
        assert "Edges:  6" in out
        assert "Mode:   as-is" in out
        assert "Done." in out

    def test_undirected(self, tmp_path, capsys):
        """--undirected symmetrizes the graph."""
        output = tmp_path / "out.egr"
        assert _run(["build", ONE_BASED_EDGES_FILE, str(output), "--undirected"]) == 0
        graph = read_graph(output)
        assert graph.has_edge(1, 0)
        assert "Mode:   undirected (symmetrized)" in capsys.readouterr().out

    def test_creates_output_directory(self, tmp_path):
        """Missing parent directories are created."""
        output = tmp_path / "nested" / "dir" / "g.egr"
        build_egr(ONE_BASED_EDGES_FILE, output)
        assert output.exists()

    def test_empty_graph_exit_code(self, tmp_path, capsys):
        """No usable edges exits with 5 and writes nothing."""
        source = tmp_path / "loops.txt"
        source.write_text("# comment\n1 1\n")
        output = tmp_path / "out.egr"
        assert _run(["build", str(source), str(output)]) == 5
        assert not output.exists()
        assert "ERROR:" in capsys.readouterr().err

    def test_negative_id_exit_code(self, tmp_path):
        """Negative ids exit with 3."""
        source = tmp_path / "neg.txt"
        source.write_text("0 1\n-2 1\n")
        assert _run(["build", str(source), str(tmp_path / "o.egr")]) == 3

    def test_overflow_id_exit_code(self, tmp_path):
        """Ids beyond 2**31 - 1 exit with 4."""
        source = tmp_path / "big.txt"
        source.write_text("0 4294967296\n")
        assert _run(["build", str(source), str(tmp_path / "o.egr")]) == 4

    def test_missing_input_exit_code(self, tmp_path, capsys):
        """An unreadable input exits with the I/O code."""
        assert _run(["build", str(tmp_path / "nope.txt"), str(tmp_path / "o.egr")]) == 2
        assert "nope.txt" in capsys.readouterr().err

    def test_failure_keeps_existing_output(self, tmp_path):
        """A failed rebuild leaves the previous file untouched."""
        output = tmp_path / "out.egr"
        assert _run(["build", ONE_BASED_EDGES_FILE, str(output)]) == 0
        before = output.read_bytes()

        source = tmp_path / "bad.txt"
        source.write_text("# nothing\n")
        assert _run(["build", str(source), str(output)]) == 5
        assert output.read_bytes() == before


class TestWriteGraphAtomic:
    """Tests for the temp-file-and-rename writer."""

    def test_no_temp_files_left(self, tmp_path, small_graph):
        """Only the final file remains after a successful write."""
        output = tmp_path / "g.egr"
        write_graph_atomic(small_graph, output)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["g.egr"]
        assert output.read_bytes() == encode(small_graph)

    def test_temp_file_removed_on_failure(self, tmp_path, monkeypatch, small_graph):
        """A write error removes the temp file and propagates."""
        def boom(graph, sink):
            sink.write(b"partial")
            raise OSError("disk full")

        monkeypatch.setattr("eclgraph.convert_graph.write_graph", boom)
        with pytest.raises(OSError, match="disk full"):
            write_graph_atomic(small_graph, tmp_path / "g.egr")
        assert list(tmp_path.iterdir()) == []


class TestInfoCommand:
    """Tests for `eclgraph info`."""

    def test_prints_statistics(self, egr_file, capsys):
        """Counts and degree analysis are printed."""
        assert _run(["info", str(egr_file)]) == 0
        out = capsys.readouterr().out
        assert "Nodes:  3" in out
        assert "Edges:  4" in out
        assert "DEGREE ANALYSIS" in out

    def test_mmap(self, egr_file, capsys):
        """--mmap reads the same graph."""
        assert _run(["info", str(egr_file), "--mmap"]) == 0
        assert "Edges:  4" in capsys.readouterr().out

    def test_check_passes(self, egr_file, capsys):
        """--check prints a passing validation summary."""
        assert _run(["info", str(egr_file), "--check"]) == 0
        assert "Validation PASSED" in capsys.readouterr().out

    def test_check_reports_warnings(self, tmp_path, capsys):
        """Duplicate edges in a foreign file are warnings, not failures."""
        path = tmp_path / "dups.egr"
        CSRGraph(2, [0, 2, 2], [1, 1]).save(path)
        assert _run(["info", str(path), "--check"]) == 0
        assert "DUPLICATE_EDGE" in capsys.readouterr().out

    def test_check_fails_on_invalid_structure(self, tmp_path, capsys):
        """Structural errors exit with the invalid-graph code."""
        path = tmp_path / "bad.egr"
        CSRGraph(2, [0, 1, 1], [7]).save(path)
        assert _run(["info", str(path), "--check"]) == 13
        assert "TARGET_OUT_OF_RANGE" in capsys.readouterr().out

    def test_invalid_structure_without_check(self, tmp_path):
        """Reading an invalid file fails even without --check."""
        path = tmp_path / "bad.egr"
        CSRGraph(2, [0, 1, 1], [7]).save(path)
        assert _run(["info", str(path)]) == 13

    def test_truncated_file(self, tmp_path, capsys):
        """Truncated files exit with 12."""
        path = tmp_path / "short.egr"
        path.write_bytes(b"\x03\x00")
        assert _run(["info", str(path)]) == 12
        assert "ERROR:" in capsys.readouterr().err

    def test_invalid_counts(self, tmp_path):
        """A zero node count exits with 11."""
        path = tmp_path / "zero.egr"
        path.write_bytes(b"\x00" * 24)
        assert _run(["info", str(path)]) == 11


class TestUsage:
    """Tests for argument handling."""

    def test_no_command(self, capsys):
        """Running without a command prints help and exits with 1."""
        assert _run([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_missing_arguments(self, capsys):
        """argparse errors use the usage exit code."""
        assert _run(["build"]) == 1
        assert "error" in capsys.readouterr().err

    def test_log_level_case_insensitive(self, egr_file):
        """Level names are accepted in any case."""
        assert _run(["--log-level", "debug", "info", str(egr_file)]) == 0

    def test_unknown_log_level(self, egr_file, capsys):
        """An unknown --log-level is a usage error, not a traceback."""
        assert _run(["--log-level", "loud", "info", str(egr_file)]) == 1
        assert "invalid log level 'LOUD'" in capsys.readouterr().err

    def test_unknown_log_level_from_environment(self, egr_file, monkeypatch, capsys):
        """A bad ECLGRAPH_LOG_LEVEL default is rejected the same way."""
        monkeypatch.setattr("eclgraph.convert_graph.LOG_LEVEL", "verbose")
        assert _run(["info", str(egr_file)]) == 1
        assert "invalid log level 'VERBOSE'" in capsys.readouterr().err

    def test_error_prefix(self, tmp_path, capsys):
        """Failures are reported as 'ERROR: <message>' on stderr."""
        path = tmp_path / "zero.egr"
        path.write_bytes(b"\x00" * 24)
        assert _run(["info", str(path)]) == 11
        assert capsys.readouterr().err.startswith("ERROR: ")
