"""
eclgraph - Edge-list to CSR conversion and the .egr binary graph format
"""

__version__ = "0.1.0"

from eclgraph.codec import decode, encode, read_graph, write_graph
from eclgraph.diagnostics import degree_summary, describe_graph, top_degree_nodes
from eclgraph.errors import (
    CompileError,
    DecodeError,
    EclGraphError,
    EmptyGraph,
    InternalInvariantViolation,
    InvalidCounts,
    InvalidGraph,
    InvalidNodeRange,
    MalformedInput,
    TooManyEdges,
    TruncatedInput,
)
from eclgraph.graph import CSRGraph
from eclgraph.loader import (
    EdgeListCompiler,
    build_csr_arrays,
    build_graph_from_edgelist,
    compile_edge_list,
)
from eclgraph.validation import (
    ValidationError,
    ValidationResult,
    find_duplicate_edges,
    find_self_loops,
    validate_graph,
    validate_structure,
)

__all__ = [
    # Core classes
    "CSRGraph",
    "EdgeListCompiler",
    # Compiling
    "compile_edge_list",
    "build_graph_from_edgelist",
    "build_csr_arrays",
    # Codec
    "encode",
    "decode",
    "read_graph",
    "write_graph",
    # Diagnostics
    "degree_summary",
    "describe_graph",
    "top_degree_nodes",
    # Validation
    "ValidationError",
    "ValidationResult",
    "validate_graph",
    "validate_structure",
    "find_duplicate_edges",
    "find_self_loops",
    # Errors
    "EclGraphError",
    "CompileError",
    "MalformedInput",
    "EmptyGraph",
    "InvalidNodeRange",
    "TooManyEdges",
    "InternalInvariantViolation",
    "DecodeError",
    "InvalidCounts",
    "TruncatedInput",
    "InvalidGraph",
]
