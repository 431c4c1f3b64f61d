"""Validation utilities for checking CSR graphs against the format invariants.

Structural problems (bad offsets, out-of-range targets, misaligned weights)
make a graph unusable and are reported as errors. Duplicate edges and
self-loops are legal in the file format, so they are only reported as
warnings; graphs produced by the edge-list compiler never contain them.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass
class ValidationError:
    """Represents a single problem found in a graph."""
    error_type: str
    message: str
    node_idx: Optional[int] = None
    position: Optional[int] = None


@dataclass
class ValidationResult:
    """Result of validating a graph."""
    valid: bool
    node_count: int
    edge_count: int
    errors: list[ValidationError]
    warnings: list[ValidationError] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            f"Validation {'PASSED' if self.valid else 'FAILED'}",
            f"  Nodes: {self.node_count:,}",
            f"  Edges: {self.edge_count:,}",
        ]
        for label, items in (("Errors", self.errors), ("Warnings", self.warnings)):
            if not items:
                continue
            lines.append(f"  {label} ({len(items)}):")
            for item in items[:10]:  # Show first 10
                lines.append(f"    - [{item.error_type}] {item.message}")
            if len(items) > 10:
                lines.append(f"    ... and {len(items) - 10} more")
        return "\n".join(lines)


def validate_lengths(
    node_count: int,
    edge_count: int,
    offsets: np.ndarray,
    adjacency: np.ndarray,
    edge_weight: Optional[np.ndarray] = None,
) -> list[ValidationError]:
    """Check the counts and that every array has the length they imply."""
    errors = []

    if node_count < 1 or edge_count < 0:
        errors.append(ValidationError(
            error_type="COUNT_OUT_OF_RANGE",
            message=f"node_count={node_count} must be >= 1 and "
                    f"edge_count={edge_count} must be >= 0",
        ))
        return errors

    if len(offsets) != node_count + 1:
        errors.append(ValidationError(
            error_type="OFFSETS_LENGTH",
            message=f"offsets has {len(offsets):,} entries, "
                    f"expected {node_count + 1:,}",
        ))
    if len(adjacency) != edge_count:
        errors.append(ValidationError(
            error_type="ADJACENCY_LENGTH",
            message=f"adjacency has {len(adjacency):,} entries, "
                    f"expected {edge_count:,}",
        ))
    if edge_weight is not None and len(edge_weight) != edge_count:
        errors.append(ValidationError(
            error_type="WEIGHT_LENGTH",
            message=f"edge_weight has {len(edge_weight):,} entries, "
                    f"expected {edge_count:,}",
        ))
    return errors


def validate_structure(
    node_count: int,
    edge_count: int,
    offsets: np.ndarray,
    adjacency: np.ndarray,
    edge_weight: Optional[np.ndarray] = None,
) -> list[ValidationError]:
    """Check the CSR invariants that every consumer of the format relies on.

    Returns a list of ValidationError, empty when the structure is sound.
    Length problems short-circuit the remaining checks since the arrays
    cannot be indexed safely.
    """
    errors = validate_lengths(node_count, edge_count, offsets, adjacency, edge_weight)
    if errors:
        return errors

    if int(offsets[0]) != 0:
        errors.append(ValidationError(
            error_type="OFFSETS_START",
            message=f"offsets[0] is {int(offsets[0])}, expected 0",
            node_idx=0,
        ))
    if int(offsets[-1]) != edge_count:
        errors.append(ValidationError(
            error_type="OFFSETS_END",
            message=f"offsets[{node_count}] is {int(offsets[-1])}, "
                    f"expected edge_count={edge_count}",
            node_idx=node_count,
        ))

    decreasing = np.flatnonzero(np.diff(offsets) < 0)
    if len(decreasing) > 0:
        node = int(decreasing[0])
        errors.append(ValidationError(
            error_type="OFFSETS_NOT_MONOTONIC",
            message=f"offsets decrease at node {node} "
                    f"({int(offsets[node])} -> {int(offsets[node + 1])}); "
                    f"{len(decreasing):,} node(s) affected",
            node_idx=node,
        ))

    if edge_count > 0:
        bad = np.flatnonzero((adjacency < 0) | (adjacency >= node_count))
        if len(bad) > 0:
            pos = int(bad[0])
            errors.append(ValidationError(
                error_type="TARGET_OUT_OF_RANGE",
                message=f"adjacency[{pos}] = {int(adjacency[pos])} is outside "
                        f"[0, {node_count}); {len(bad):,} target(s) affected",
                position=pos,
            ))

    return errors


def edge_sources(graph) -> np.ndarray:
    """Expand the offsets into a per-edge source array (parallel to adjacency)."""
    degrees = np.diff(np.asarray(graph.offsets))
    return np.repeat(np.arange(graph.node_count, dtype=np.int64), degrees)


def find_self_loops(graph) -> np.ndarray:
    """Return adjacency positions whose target equals the owning node."""
    return np.flatnonzero(edge_sources(graph) == np.asarray(graph.adjacency))


def find_duplicate_edges(graph) -> np.ndarray:
    """Return adjacency positions that repeat an earlier (source, target) pair."""
    if graph.edge_count == 0:
        return np.array([], dtype=np.int64)

    sources = edge_sources(graph)
    targets = np.asarray(graph.adjacency)
    # Stable sort keeps the first occurrence ahead of its repeats
    order = np.lexsort((targets, sources))
    same = (np.diff(sources[order]) == 0) & (np.diff(targets[order]) == 0)
    return np.sort(order[1:][same])


def validate_graph(graph, verbose: bool = False) -> ValidationResult:
    """
    Validate a CSRGraph against the format invariants.

    Args:
        graph: The CSRGraph to validate
        verbose: Print progress information

    Returns:
        ValidationResult with validation status, errors and warnings
    """
    if verbose:
        print(f"Validating graph: {graph.node_count:,} nodes, "
              f"{graph.edge_count:,} edges")

    errors = validate_structure(
        graph.node_count,
        graph.edge_count,
        graph.offsets,
        graph.adjacency,
        graph.edge_weight,
    )
    warnings = []

    # Topology checks need trustworthy offsets
    if not errors:
        loops = find_self_loops(graph)
        if len(loops) > 0:
            pos = int(loops[0])
            warnings.append(ValidationError(
                error_type="SELF_LOOP",
                message=f"{len(loops):,} self-loop(s), first at adjacency[{pos}] "
                        f"(node {int(graph.adjacency[pos])})",
                node_idx=int(graph.adjacency[pos]),
                position=pos,
            ))

        dups = find_duplicate_edges(graph)
        if len(dups) > 0:
            pos = int(dups[0])
            warnings.append(ValidationError(
                error_type="DUPLICATE_EDGE",
                message=f"{len(dups):,} duplicate edge(s), first at adjacency[{pos}]",
                position=pos,
            ))

    if verbose:
        print(f"  {len(errors)} error(s), {len(warnings)} warning(s)")

    return ValidationResult(
        valid=not errors,
        node_count=graph.node_count,
        edge_count=graph.edge_count,
        errors=errors,
        warnings=warnings,
    )
