"""
Bridge detection (Tarjan) over a GenericGraph.

The DFS keeps an explicit stack of (node, parent, neighbour iterator)
frames instead of recursing, so polygon size is not limited by the
interpreter's recursion depth.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .graphs import ExcludedEdges, GenericGraph

Bridges = Dict[int, Set[int]]


def find_bridges(graph: GenericGraph,
                 excluded_edges: Optional[ExcludedEdges] = None,
                 node_ids: Optional[Iterable[int]] = None) -> Bridges:
    """
    Find every edge whose removal disconnects its component.

    Args:
        graph: Graph to search
        excluded_edges: Edges treated as already removed (u -> {v, ...});
            used when recomputing bridges after some edges were consumed
        node_ids: Restrict the search to these nodes

    Returns:
        Mapping node id -> ids it is bridged to, filled in both directions
    """
    excluded = excluded_edges or {}
    allowed = set(graph.nodes) if node_ids is None else set(node_ids)
    discovery: Dict[int, int] = {}
    low: Dict[int, int] = {}
    bridges: Bridges = {}
    counter = 0

    def usable_neighbours(node_id: int) -> Iterator[int]:
        blocked = excluded.get(node_id, ())
        for neighbour in graph.get_neighbours(node_id):
            if neighbour in allowed and neighbour not in blocked:
                yield neighbour

    for root in sorted(allowed):
        if root in discovery:
            continue
        discovery[root] = low[root] = counter
        counter += 1
        stack: List[Tuple[int, Optional[int], Iterator[int]]] = [
            (root, None, usable_neighbours(root))]
        while stack:
            node_id, parent, neighbours = stack[-1]
            descended = False
            for neighbour in neighbours:
                if neighbour == parent:
                    continue
                if neighbour not in discovery:
                    discovery[neighbour] = low[neighbour] = counter
                    counter += 1
                    stack.append((neighbour, node_id,
                                  usable_neighbours(neighbour)))
                    descended = True
                    break
                low[node_id] = min(low[node_id], discovery[neighbour])
            if descended:
                continue
            stack.pop()
            if parent is not None:
                low[parent] = min(low[parent], low[node_id])
                if low[node_id] > discovery[parent]:
                    bridges.setdefault(parent, set()).add(node_id)
                    bridges.setdefault(node_id, set()).add(parent)
    return bridges


def merge_edge_maps(*edge_maps: ExcludedEdges) -> Bridges:
    """Union of several node -> neighbours maps."""
    merged: Bridges = {}
    for edge_map in edge_maps:
        for node_id, others in edge_map.items():
            merged.setdefault(node_id, set()).update(others)
    return merged
