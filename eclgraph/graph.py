"""CSR graph container shared by the edge-list compiler and the .egr codec."""

from pathlib import Path
from typing import Optional, Union

import numpy as np

from eclgraph.errors import InvalidGraph
from eclgraph.validation import validate_lengths, validate_structure

# Single fixed element width for every array in the format
INDEX_DTYPE = np.dtype("<i8")


def _as_index_array(values):
    """Return ``values`` as a little-endian int64 array, copying only if needed."""
    arr = np.asarray(values)
    if arr.dtype != INDEX_DTYPE:
        arr = arr.astype(INDEX_DTYPE)
    return arr.reshape(-1)


def _freeze(arr):
    """Mark an array read-only (memory maps opened read-only already are)."""
    if arr.flags.writeable:
        arr.flags.writeable = False
    return arr


class CSRGraph:
    """
    Compressed Sparse Row graph with optional per-edge weights.

    Node ``i``'s outgoing neighbors live in
    ``adjacency[offsets[i]:offsets[i + 1]]``; ``edge_weight`` (when present)
    is parallel to ``adjacency``. Arrays are read-only after construction.
    """

    __slots__ = ("node_count", "edge_count", "offsets", "adjacency", "edge_weight")

    def __init__(self, node_count, offsets, adjacency, edge_weight=None):
        """
        Args:
            node_count: Total number of nodes, numbered 0 .. node_count - 1
            offsets: node_count + 1 prefix-sum offsets into adjacency
            adjacency: Target node per edge, grouped by source node
            edge_weight: Optional weight per edge (parallel to adjacency)

        Raises:
            InvalidGraph: if array lengths or counts are inconsistent. The
                O(E) offset/range checks are left to ``validate()``.
        """
        offsets = _as_index_array(offsets)
        adjacency = _as_index_array(adjacency)
        if edge_weight is not None:
            edge_weight = _as_index_array(edge_weight)
            # With no edges the file cannot tell empty weights from absent ones
            if len(edge_weight) == 0 and len(adjacency) == 0:
                edge_weight = None

        node_count = int(node_count)
        edge_count = len(adjacency)
        errors = validate_lengths(node_count, edge_count, offsets, adjacency, edge_weight)
        if errors:
            raise InvalidGraph(errors)

        self.node_count = node_count
        self.edge_count = edge_count
        self.offsets = _freeze(offsets)
        self.adjacency = _freeze(adjacency)
        self.edge_weight = _freeze(edge_weight) if edge_weight is not None else None

    def validate(self):
        """Raise InvalidGraph unless offsets and targets satisfy the CSR invariants."""
        errors = validate_structure(
            self.node_count, self.edge_count, self.offsets, self.adjacency,
            self.edge_weight,
        )
        if errors:
            raise InvalidGraph(errors)
        return self

    @property
    def has_weights(self):
        return self.edge_weight is not None

    @property
    def nbytes(self):
        """In-memory size of the CSR arrays in bytes."""
        total = self.offsets.nbytes + self.adjacency.nbytes
        if self.edge_weight is not None:
            total += self.edge_weight.nbytes
        return total

    # ------------------------------------------------------------------
    # Neighbor queries
    # ------------------------------------------------------------------

    def _check_node(self, node_idx):
        if not 0 <= node_idx < self.node_count:
            raise IndexError(
                f"node {node_idx} out of range for graph with "
                f"{self.node_count:,} nodes"
            )

    def neighbors(self, node_idx):
        """Get neighbor indices for a node (nodes this node points TO)."""
        self._check_node(node_idx)
        start = self.offsets[node_idx]
        end = self.offsets[node_idx + 1]
        return self.adjacency[start:end]

    def weights(self, node_idx):
        """Get the weights of a node's outgoing edges, or None if unweighted."""
        if self.edge_weight is None:
            return None
        self._check_node(node_idx)
        start = self.offsets[node_idx]
        end = self.offsets[node_idx + 1]
        return self.edge_weight[start:end]

    def degree(self, node_idx):
        """Get the out-degree of a node."""
        self._check_node(node_idx)
        return int(self.offsets[node_idx + 1] - self.offsets[node_idx])

    def degrees(self):
        """Out-degree of every node as an array."""
        return np.diff(self.offsets)

    def has_edge(self, src_idx, dst_idx):
        """Check whether ``src_idx -> dst_idx`` exists.

        Neighbor ranges written by the compiler are sorted, so this uses
        binary search; graphs from elsewhere fall back to a linear scan.
        """
        targets = self.neighbors(src_idx)
        if len(targets) == 0:
            return False
        pos = int(np.searchsorted(targets, dst_idx, side="left"))
        if pos < len(targets) and targets[pos] == dst_idx:
            return True
        return bool(np.any(targets == dst_idx))

    def iter_edges(self):
        """Yield every edge as a (source, target) tuple in CSR order."""
        for src in range(self.node_count):
            start = int(self.offsets[src])
            end = int(self.offsets[src + 1])
            for pos in range(start, end):
                yield src, int(self.adjacency[pos])

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, CSRGraph):
            return NotImplemented
        if (self.node_count, self.edge_count) != (other.node_count, other.edge_count):
            return False
        if (self.edge_weight is None) != (other.edge_weight is None):
            return False
        if not np.array_equal(self.offsets, other.offsets):
            return False
        if not np.array_equal(self.adjacency, other.adjacency):
            return False
        if self.edge_weight is not None:
            return np.array_equal(self.edge_weight, other.edge_weight)
        return True

    __hash__ = None

    def __repr__(self):
        weighted = ", weighted" if self.edge_weight is not None else ""
        return f"CSRGraph(nodes={self.node_count:,}, edges={self.edge_count:,}{weighted})"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def save(self, filepath: Union[str, Path]):
        """Save graph to disk in .egr format."""
        from eclgraph.codec import write_graph

        write_graph(self, filepath)

    @staticmethod
    def load(filepath: Union[str, Path], mmap_mode: Optional[str] = None):
        """Load graph from an .egr file, optionally memory-mapping its arrays."""
        from eclgraph.codec import read_graph

        return read_graph(filepath, mmap_mode=mmap_mode)
