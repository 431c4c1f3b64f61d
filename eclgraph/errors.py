"""Exception hierarchy for edge-list compilation and .egr decoding.

Every error carries an ``exit_code`` so the command line tools can report a
distinct status per failure category. I/O problems are not wrapped: they
surface as the ``OSError`` raised by the underlying file object.
"""


class EclGraphError(Exception):
    """Base exception for eclgraph."""

    exit_code = 1


# ---------------------------------------------------------------
# Compiler errors
# ---------------------------------------------------------------


class CompileError(EclGraphError):
    """Raised when an edge list cannot be turned into a CSR graph."""


class MalformedInput(CompileError):
    """A node id in the edge list is negative or exceeds the supported range."""

    NEGATIVE_EXIT_CODE = 3
    OVERFLOW_EXIT_CODE = 4

    def __init__(self, message, line_no=None, line=None, negative=False):
        self.line_no = line_no
        self.line = line
        self.negative = negative
        self.exit_code = (
            self.NEGATIVE_EXIT_CODE if negative else self.OVERFLOW_EXIT_CODE
        )
        if line_no is not None:
            message = f"{message} (line {line_no}: {line!r})"
        super().__init__(message)


class EmptyGraph(CompileError):
    """No usable edge survived parsing and self-loop removal."""

    exit_code = 5


class InvalidNodeRange(CompileError):
    """The smallest node id is still negative after re-basing."""

    exit_code = 6

    def __init__(self, min_id):
        self.min_id = min_id
        super().__init__(f"negative node id after shifting (min={min_id})")


class TooManyEdges(CompileError):
    """The deduplicated edge count does not fit the supported width."""

    exit_code = 7

    def __init__(self, edge_count, limit):
        self.edge_count = edge_count
        self.limit = limit
        super().__init__(
            f"too many edges ({edge_count:,}) for this converter "
            f"(limit {limit:,}). Consider a streaming converter if you need "
            f"bigger graphs."
        )


class InternalInvariantViolation(CompileError):
    """CSR placement went out of bounds; indicates a bug, not bad input."""

    exit_code = 9


# ---------------------------------------------------------------
# Codec errors
# ---------------------------------------------------------------


class DecodeError(EclGraphError):
    """Raised when a byte stream is not a valid .egr graph."""

    exit_code = 11


class InvalidCounts(DecodeError):
    """The node or edge count in the header is out of bounds."""

    exit_code = 11

    def __init__(self, node_count, edge_count):
        self.node_count = node_count
        self.edge_count = edge_count
        super().__init__(
            f"node or edge count too low (nodes={node_count}, edges={edge_count})"
        )


class TruncatedInput(DecodeError):
    """Fewer elements are available than the header declares."""

    exit_code = 12

    def __init__(self, field, expected, available):
        self.field = field
        self.expected = expected
        self.available = available
        super().__init__(
            f"failed to read {field}: expected {expected:,} values, "
            f"only {available:,} available"
        )


class InvalidGraph(DecodeError):
    """Offsets or adjacency violate the CSR invariants."""

    exit_code = 13

    def __init__(self, errors):
        self.errors = list(errors)
        detail = "; ".join(e.message for e in self.errors[:5])
        if len(self.errors) > 5:
            detail += f"; ... ({len(self.errors) - 5} more)"
        super().__init__(f"invalid CSR structure: {detail}")
