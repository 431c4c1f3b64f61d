"""Compile a text edge list into a CSR graph.

Single pass over the input, then an in-memory build:

Scan:  Each line is skipped (blank or ``#`` comment), parsed into two node
       ids, dropped if it is a self-loop, and otherwise appended to the
       working set (twice, reversed, when symmetrizing). Lines without two
       leading integers are ignored; negative or oversized ids abort.
Build: Re-base 1-indexed input, sort by (src, dst) via np.lexsort, drop
       duplicate pairs, count degrees into the offset array, prefix-sum it,
       and place each destination at its source node's cursor.

The whole edge list and the finished CSR arrays are held in memory at the
same time, so graph size is bounded by available RAM.
"""

import logging
import re
from array import array

import numpy as np

from eclgraph.errors import (
    EmptyGraph,
    InternalInvariantViolation,
    InvalidNodeRange,
    MalformedInput,
    TooManyEdges,
)
from eclgraph.graph import INDEX_DTYPE, CSRGraph

logger = logging.getLogger(__name__)

# Largest node id / edge count the converter accepts (signed 32-bit range)
MAX_NODE_ID = 2**31 - 1
MAX_EDGES = 2**31 - 1

COMMENT_MARKER = "#"

_LEADING_PAIR = re.compile(r"([+-]?[0-9]+)\s+([+-]?[0-9]+)")


def _parse_pair(text):
    """Return the two leading integers of a line, or None.

    Anything after the second integer (a weight column, a trailing comment,
    punctuation) is ignored; ``1.5 2`` has no second integer after ``1``.
    """
    match = _LEADING_PAIR.match(text)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def build_csr_arrays(src, dst, node_count):
    """Build (offsets, adjacency) from edges sorted by (src, dst).

    Degrees are counted into ``offsets[src + 1]`` and prefix-summed in place,
    after which ``offsets[i]`` is the write cursor start for node ``i``. Every
    destination is then placed at its source's cursor, which advances by one.

    Raises:
        InternalInvariantViolation: a source or destination lies outside
            ``[0, node_count)`` or a cursor leaves its node's range. These
            indicate a bug upstream, not bad input.
    """
    src = np.asarray(src, dtype=INDEX_DTYPE)
    dst = np.asarray(dst, dtype=INDEX_DTYPE)
    edge_count = len(src)

    bad_src = np.flatnonzero((src < 0) | (src >= node_count))
    if len(bad_src) > 0:
        raise InternalInvariantViolation(
            f"src out of range: {int(src[bad_src[0]])}"
        )

    # Degree count
    offsets = np.zeros(node_count + 1, dtype=INDEX_DTYPE)
    offsets[1:] = np.bincount(src, minlength=node_count)

    # Prefix sum
    np.cumsum(offsets, out=offsets)

    # Fill adjacency (cursor per node). Sources are sorted, so an edge's
    # cursor advance equals its distance from the first edge of its source.
    run_start = np.searchsorted(src, src, side="left")
    positions = offsets[src] + (np.arange(edge_count, dtype=INDEX_DTYPE) - run_start)
    overrun = np.flatnonzero(
        (positions < offsets[src]) | (positions >= offsets[src + 1])
    )
    if len(overrun) > 0:
        node = int(src[overrun[0]])
        raise InternalInvariantViolation(
            f"adjacency cursor for node {node} left its range "
            f"[{int(offsets[node])}, {int(offsets[node + 1])})"
        )

    adjacency = np.empty(edge_count, dtype=INDEX_DTYPE)
    adjacency[positions] = dst

    bad_dst = np.flatnonzero((adjacency < 0) | (adjacency >= node_count))
    if len(bad_dst) > 0:
        raise InternalInvariantViolation(
            f"dst out of range: {int(adjacency[bad_dst[0]])}"
        )

    return offsets, adjacency


class EdgeListCompiler:
    """Accumulates edge-list lines and builds a canonical CSRGraph.

    Scan statistics are kept as attributes so callers can report them:
    ``lines_read``, ``lines_skipped``, ``self_loops``, ``edges_accepted``,
    plus ``duplicates_removed`` and ``rebased`` once ``build()`` has run.
    """

    def __init__(self, symmetrize=False, max_node_id=MAX_NODE_ID, max_edges=MAX_EDGES):
        """
        Args:
            symmetrize: Also record (v, u) for every accepted (u, v), turning
                a directed pair list into an undirected graph
            max_node_id: Largest node id accepted before MalformedInput
            max_edges: Largest deduplicated edge count before TooManyEdges
        """
        self.symmetrize = symmetrize
        self.max_node_id = max_node_id
        self.max_edges = max_edges

        self._src = array("q")
        self._dst = array("q")
        self.min_id = None
        self.max_id = None

        self.lines_read = 0
        self.lines_skipped = 0
        self.self_loops = 0
        self.edges_accepted = 0
        self.duplicates_removed = 0
        self.rebased = False

    @property
    def mode(self):
        return "undirected (symmetrized)" if self.symmetrize else "as-is"

    def feed(self, line):
        """Process one input line. Returns True if it contributed an edge."""
        self.lines_read += 1
        line_no = self.lines_read

        text = line.lstrip()
        if not text or text.startswith(COMMENT_MARKER):
            self.lines_skipped += 1
            return False

        pair = _parse_pair(text)
        if pair is None:
            self.lines_skipped += 1
            logger.debug("Skipping unparseable line %d: %r", line_no, line)
            return False
        u, v = pair

        if u < 0 or v < 0:
            raise MalformedInput(
                "negative node id detected", line_no, line.rstrip("\r\n"),
                negative=True,
            )
        if u > self.max_node_id or v > self.max_node_id:
            raise MalformedInput(
                f"node id exceeds {self.max_node_id:,}", line_no, line.rstrip("\r\n"),
            )

        # Remove self-loops
        if u == v:
            self.self_loops += 1
            return False

        lo, hi = (u, v) if u < v else (v, u)
        if self.min_id is None or lo < self.min_id:
            self.min_id = lo
        if self.max_id is None or hi > self.max_id:
            self.max_id = hi

        self._src.append(u)
        self._dst.append(v)
        if self.symmetrize:
            self._src.append(v)
            self._dst.append(u)
        self.edges_accepted += 1

        if self.edges_accepted % 1_000_000 == 0:
            logger.info("  %s edges read...", f"{self.edges_accepted:,}")
        return True

    def feed_lines(self, lines):
        """Process every line of an iterable (e.g. an open text file)."""
        for line in lines:
            self.feed(line)
        return self

    def build(self, source=None):
        """Normalize the working set and build the CSRGraph.

        Args:
            source: Optional input name used in error messages

        Raises:
            EmptyGraph, InvalidNodeRange, TooManyEdges,
            InternalInvariantViolation
        """
        if len(self._src) == 0:
            where = f" from {source}" if source else ""
            raise EmptyGraph(f"no edges read{where}")

        src = np.asarray(self._src, dtype=INDEX_DTYPE)
        dst = np.asarray(self._dst, dtype=INDEX_DTYPE)
        min_id, max_id = self.min_id, self.max_id

        # Heuristic: a minimum id of exactly 1 means the file is 1-based.
        # A 0-based graph that simply has no node 0 is shifted as well.
        if min_id == 1:
            logger.info("Minimum node id is 1; treating input as 1-based")
            src = src - 1
            dst = dst - 1
            max_id -= 1
            min_id = 0
            self.rebased = True

        if min_id < 0:
            raise InvalidNodeRange(min_id)

        node_count = max_id + 1

        # Sort + unique
        order = np.lexsort((dst, src))
        src = src[order]
        dst = dst[order]
        keep = np.ones(len(src), dtype=bool)
        keep[1:] = (src[1:] != src[:-1]) | (dst[1:] != dst[:-1])
        self.duplicates_removed = int(len(keep) - np.count_nonzero(keep))
        src = src[keep]
        dst = dst[keep]
        del order, keep

        edge_count = len(src)
        if edge_count > self.max_edges:
            raise TooManyEdges(edge_count, self.max_edges)

        offsets, adjacency = build_csr_arrays(src, dst, node_count)
        graph = CSRGraph(node_count, offsets, adjacency)

        logger.info(
            "Compiled graph: %s nodes, %s edges, mode %s "
            "(%s lines, %s skipped, %s self-loops, %s duplicates removed)",
            f"{node_count:,}", f"{edge_count:,}", self.mode,
            f"{self.lines_read:,}", f"{self.lines_skipped:,}",
            f"{self.self_loops:,}", f"{self.duplicates_removed:,}",
        )
        return graph


def compile_edge_list(lines, symmetrize=False, **limits):
    """Build a CSRGraph from an iterable of edge-list lines.

    ``limits`` may override ``max_node_id`` and ``max_edges``.
    """
    compiler = EdgeListCompiler(symmetrize=symmetrize, **limits)
    compiler.feed_lines(lines)
    return compiler.build()


def build_graph_from_edgelist(edgelist_path, symmetrize=False, **limits):
    """Build a CSRGraph from an edge-list file.

    Returns (graph, compiler) so callers can report the scan statistics.
    """
    edgelist_path = str(edgelist_path)
    logger.info("Reading edges from %s...", edgelist_path)

    compiler = EdgeListCompiler(symmetrize=symmetrize, **limits)
    with open(edgelist_path, "r", encoding="utf-8", errors="replace") as f:
        compiler.feed_lines(f)
    graph = compiler.build(source=edgelist_path)
    return graph, compiler
