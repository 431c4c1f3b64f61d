"""Binary .egr encoding for CSR graphs.

Layout (every value a little-endian int64, no other header):

    node_count
    edge_count
    offsets[node_count + 1]
    adjacency[edge_count]
    edge_weight[edge_count]     present only when trailing bytes exist

The codec is a pure transform over bytes or a binary file object. It does not
make writes atomic; callers that need that write to a temporary file and
rename it. OSError from the underlying file propagates unchanged.
"""

import logging
import os
import struct
from pathlib import Path
from typing import Optional, Union

import numpy as np

from eclgraph.errors import InvalidCounts, TruncatedInput
from eclgraph.graph import INDEX_DTYPE, CSRGraph

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<qq")
_ITEM_SIZE = INDEX_DTYPE.itemsize

# Read-only memmap modes; "r+" and "w+" would write to the source file
MMAP_MODES = ("r", "c")


def _check_counts(node_count, edge_count):
    if node_count < 1 or edge_count < 0:
        raise InvalidCounts(node_count, edge_count)


def _payload(graph):
    """Yield the byte chunks of an encoded graph, in file order."""
    _check_counts(graph.node_count, graph.edge_count)
    yield _HEADER.pack(graph.node_count, graph.edge_count)
    arrays = [graph.offsets, graph.adjacency]
    if graph.edge_weight is not None:
        arrays.append(graph.edge_weight)
    for arr in arrays:
        yield np.ascontiguousarray(arr, dtype=INDEX_DTYPE).view(np.uint8).data


def encode(graph: CSRGraph) -> bytes:
    """Serialize a graph to .egr bytes."""
    return b"".join(bytes(chunk) for chunk in _payload(graph))


def write_graph(graph: CSRGraph, sink) -> None:
    """Write a graph to a path or a binary file object."""
    if hasattr(sink, "write"):
        for chunk in _payload(graph):
            sink.write(chunk)
        return

    with open(sink, "wb") as f:
        for chunk in _payload(graph):
            f.write(chunk)
    logger.debug(
        "Wrote %s (%s nodes, %s edges, weights=%s)",
        sink, f"{graph.node_count:,}", f"{graph.edge_count:,}", graph.has_weights,
    )


def _read_header(data):
    if len(data) < _HEADER.size:
        raise TruncatedInput("node and edge counts", 2, len(data) // _ITEM_SIZE)
    node_count, edge_count = _HEADER.unpack_from(data, 0)
    # Bounds first: nothing below may size a buffer from an unchecked count
    _check_counts(node_count, edge_count)
    return node_count, edge_count


def _take(data, pos, count, field, copy):
    """Read ``count`` int64 values at byte ``pos``; return (array, new_pos)."""
    available = max(len(data) - pos, 0) // _ITEM_SIZE
    if available < count:
        raise TruncatedInput(field, count, available)
    if count == 0:
        return np.empty(0, dtype=INDEX_DTYPE), pos
    arr = np.frombuffer(data, dtype=INDEX_DTYPE, count=count, offset=pos)
    if copy:
        arr = arr.copy()
    return arr, pos + count * _ITEM_SIZE


def decode(data, validate: bool = True) -> CSRGraph:
    """Deserialize .egr bytes into a CSRGraph.

    Args:
        data: bytes-like object holding the encoded graph. Immutable ``bytes``
            are wrapped without copying; other buffers are copied.
        validate: Also check the offset and target invariants (O(E)).

    Raises:
        InvalidCounts: header counts are out of bounds
        TruncatedInput: fewer values than declared, or a partial weight array
        InvalidGraph: the decoded arrays violate the CSR invariants
    """
    copy = not isinstance(data, bytes)
    node_count, edge_count = _read_header(data)
    pos = _HEADER.size

    offsets, pos = _take(data, pos, node_count + 1, "neighbor index list", copy)
    adjacency, pos = _take(data, pos, edge_count, "neighbor list", copy)

    edge_weight = None
    if len(data) > pos:
        edge_weight, pos = _take(data, pos, edge_count, "edge weights", copy)
        if len(data) > pos:
            logger.debug("Ignoring %d trailing bytes after edge weights", len(data) - pos)

    graph = CSRGraph(node_count, offsets, adjacency, edge_weight)
    if validate:
        graph.validate()
    return graph


def _mmap_section(path, pos, count, field, file_size, mmap_mode):
    available = max(file_size - pos, 0) // _ITEM_SIZE
    if available < count:
        raise TruncatedInput(field, count, available)
    if count == 0:
        # np.memmap refuses zero-length maps
        return np.empty(0, dtype=INDEX_DTYPE), pos
    arr = np.memmap(path, dtype=INDEX_DTYPE, mode=mmap_mode, offset=pos, shape=(count,))
    return arr, pos + count * _ITEM_SIZE


def _read_mmap(path, mmap_mode, validate):
    path = Path(path)
    file_size = os.path.getsize(path)
    with open(path, "rb") as f:
        header = f.read(_HEADER.size)
    node_count, edge_count = _read_header(header)
    pos = _HEADER.size

    offsets, pos = _mmap_section(
        path, pos, node_count + 1, "neighbor index list", file_size, mmap_mode
    )
    adjacency, pos = _mmap_section(
        path, pos, edge_count, "neighbor list", file_size, mmap_mode
    )
    edge_weight = None
    if file_size > pos:
        edge_weight, pos = _mmap_section(
            path, pos, edge_count, "edge weights", file_size, mmap_mode
        )

    graph = CSRGraph(node_count, offsets, adjacency, edge_weight)
    if validate:
        graph.validate()
    return graph


def read_graph(
    source: Union[str, Path, object],
    mmap_mode: Optional[str] = None,
    validate: bool = True,
) -> CSRGraph:
    """Read a graph from a path or a binary file object.

    Args:
        source: Path to an .egr file, or an object with ``read()``
        mmap_mode: numpy memmap mode ("r" or "c") to map the arrays instead
            of loading them; requires a path
        validate: Check the offset and target invariants after reading
    """
    if mmap_mode is not None:
        if mmap_mode not in MMAP_MODES:
            raise ValueError(
                f"mmap_mode must be one of {MMAP_MODES}, got {mmap_mode!r}"
            )
        if hasattr(source, "read"):
            raise ValueError("mmap_mode requires a file path, not a file object")
        graph = _read_mmap(source, mmap_mode, validate)
    elif hasattr(source, "read"):
        graph = decode(source.read(), validate=validate)
    else:
        graph = decode(Path(source).read_bytes(), validate=validate)

    logger.debug("Read %r from %s", graph, source)
    return graph
