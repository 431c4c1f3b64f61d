"""Degree statistics and summaries for CSR graphs."""

import numpy as np

from eclgraph.graph import CSRGraph


def degree_summary(graph: CSRGraph):
    """
    Compute out/in-degree statistics for a graph.

    Returns a dict with node/edge counts, degree min/max/mean for both
    directions, and counts of isolated nodes (no edges at all), sources
    (no incoming edges) and sinks (no outgoing edges).
    """
    out_deg = graph.degrees()
    in_deg = np.bincount(np.asarray(graph.adjacency), minlength=graph.node_count)

    return {
        "nodes": graph.node_count,
        "edges": graph.edge_count,
        "weighted": graph.has_weights,
        "out_degree": {
            "min": int(out_deg.min()),
            "max": int(out_deg.max()),
            "mean": float(out_deg.mean()),
        },
        "in_degree": {
            "min": int(in_deg.min()),
            "max": int(in_deg.max()),
            "mean": float(in_deg.mean()),
        },
        "isolated_nodes": int(np.count_nonzero((out_deg == 0) & (in_deg == 0))),
        "source_nodes": int(np.count_nonzero(in_deg == 0)),
        "sink_nodes": int(np.count_nonzero(out_deg == 0)),
        "max_out_degree_node": int(out_deg.argmax()),
        "memory_bytes": graph.nbytes,
    }


def top_degree_nodes(graph: CSRGraph, k=10):
    """Return the ``k`` nodes with the largest out-degree as (node, degree)."""
    out_deg = graph.degrees()
    k = min(k, graph.node_count)
    top = np.argsort(out_deg, kind="stable")[::-1][:k]
    return [(int(node), int(out_deg[node])) for node in top]


def describe_graph(graph: CSRGraph, top=5):
    """Print a human-readable overview of a graph."""
    stats = degree_summary(graph)

    print("=== GRAPH SUMMARY ===")
    print(f"Nodes:  {stats['nodes']:,}")
    print(f"Edges:  {stats['edges']:,}")
    print(f"Weights: {'present' if stats['weighted'] else 'absent'}")
    print()

    out_d = stats["out_degree"]
    in_d = stats["in_degree"]
    print("DEGREE ANALYSIS")
    print(f"   Out-degree: min={out_d['min']:,} max={out_d['max']:,} "
          f"mean={out_d['mean']:.2f}")
    print(f"   In-degree:  min={in_d['min']:,} max={in_d['max']:,} "
          f"mean={in_d['mean']:.2f}")
    print(f"   Isolated nodes: {stats['isolated_nodes']:,}")
    print(f"   Nodes without incoming edges: {stats['source_nodes']:,}")
    print(f"   Nodes without outgoing edges: {stats['sink_nodes']:,}")
    print()

    if top > 0 and graph.edge_count > 0:
        print(f"TOP {top} NODES BY OUT-DEGREE")
        for node, degree in top_degree_nodes(graph, top):
            print(f"   {node}: {degree:,}")
        print()

    print(f"CSR memory usage: ~{stats['memory_bytes'] / 1024 / 1024:.1f} MB")
    return stats
