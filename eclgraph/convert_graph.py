"""CLI utility to build and inspect .egr graphs.

Examples:
    eclgraph build soc-graph.txt soc-graph.egr
    eclgraph build soc-graph.txt soc-graph.egr --undirected
    eclgraph info soc-graph.egr --check
"""

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path

from eclgraph.codec import read_graph, write_graph
from eclgraph.diagnostics import describe_graph
from eclgraph.errors import EclGraphError, InvalidGraph
from eclgraph.loader import build_graph_from_edgelist
from eclgraph.validation import validate_graph

# Configuration via environment variables
LOG_LEVEL = os.environ.get("ECLGRAPH_LOG_LEVEL", "WARNING")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

USAGE_EXIT_CODE = 1
IO_EXIT_CODE = 2


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with USAGE_EXIT_CODE."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(USAGE_EXIT_CODE, f"{self.prog}: error: {message}\n")


def write_graph_atomic(graph, output_path):
    """Write ``graph`` to a temp file beside ``output_path``, then rename.

    A failed write leaves no partial output behind.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(
        prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent
    )
    try:
        with os.fdopen(fd, "wb") as f:
            write_graph(graph, f)
        os.replace(temp_path, output_path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def build_egr(input_path, output_path, symmetrize=False):
    """Compile an edge-list file and write it as .egr."""
    input_path = Path(input_path)
    output_path = Path(output_path)

    graph, compiler = build_graph_from_edgelist(input_path, symmetrize=symmetrize)

    print(f"Input:  {input_path}")
    print(f"Output: {output_path}")
    print(f"Nodes:  {graph.node_count}")
    print(f"Edges:  {graph.edge_count}")
    print(f"Mode:   {compiler.mode}")
    if compiler.rebased:
        print("Note:   minimum node id was 1; ids shifted to start at 0")

    write_graph_atomic(graph, output_path)
    print("Done.")
    return graph


def inspect_egr(graph_path, mmap=False, check=False, top=5):
    """Print diagnostics for an .egr file. Returns the validation result if checked."""
    graph_path = Path(graph_path)
    graph = read_graph(
        graph_path, mmap_mode="r" if mmap else None, validate=not check
    )
    print(f"Graph: {graph_path}")

    result = None
    if check:
        result = validate_graph(graph)
        print(result.summary())
        print()
        if not result.valid:
            raise InvalidGraph(result.errors)

    describe_graph(graph, top=top)
    return result


def main(argv=None):
    parser = _ArgumentParser(
        description="Build and inspect CSR graphs in .egr format",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a directed edge list
  eclgraph build edges.txt graph.egr

  # Add the reverse of every edge
  eclgraph build edges.txt graph.egr --undirected

  # Summarize and verify a graph file
  eclgraph info graph.egr --check
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default=LOG_LEVEL,
        help=f"Logging level, one of {', '.join(LOG_LEVELS)} "
        "(default: $ECLGRAPH_LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    build = subparsers.add_parser(
        "build", help="Convert a text edge list to .egr"
    )
    build.add_argument("input", type=Path, help="Edge list: one 'src dst' pair per line")
    build.add_argument("output", type=Path, help="Output .egr path")
    build.add_argument(
        "--undirected",
        action="store_true",
        help="Symmetrize: also store the reverse of every edge",
    )

    info = subparsers.add_parser("info", help="Print statistics for an .egr file")
    info.add_argument("graph", type=Path, help="Path to .egr file")
    info.add_argument(
        "--mmap", action="store_true", help="Memory-map the arrays instead of reading them"
    )
    info.add_argument(
        "--check",
        action="store_true",
        help="Report invariant violations, duplicate edges and self-loops",
    )
    info.add_argument(
        "--top", type=int, default=5, help="Number of highest-degree nodes to list"
    )

    args = parser.parse_args(argv)
    # Covers an invalid $ECLGRAPH_LOG_LEVEL default as well
    if args.log_level not in LOG_LEVELS:
        parser.error(
            f"invalid log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})"
        )

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(USAGE_EXIT_CODE)

    try:
        if args.command == "build":
            build_egr(args.input, args.output, symmetrize=args.undirected)
        elif args.command == "info":
            inspect_egr(args.graph, mmap=args.mmap, check=args.check, top=args.top)
    except EclGraphError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(e.exit_code)
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(IO_EXIT_CODE)


if __name__ == "__main__":
    main()
