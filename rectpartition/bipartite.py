"""
Maximum bipartite matching and the sets derived from it.

The matching is found with Ford-Fulkerson on a unit capacity network
(source -> left -> right -> sink), using BFS to find augmenting paths
(Edmonds-Karp). König's theorem then turns the matching into a minimum
vertex cover, whose complement is a maximum independent set.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from .graphs import GenericGraph, GraphNode

logger = logging.getLogger(__name__)


class BipartiteSide(Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(eq=False)
class BipartiteGraphNode(GraphNode):
    side: BipartiteSide = BipartiteSide.LEFT


class BipartiteGraph(GenericGraph):

    def __init__(self, nodes: Sequence[BipartiteGraphNode]):
        super().__init__(nodes)
        self.left_node_ids: Set[int] = {
            n.id for n in nodes if n.side == BipartiteSide.LEFT}
        self.right_node_ids: Set[int] = {
            n.id for n in nodes if n.side == BipartiteSide.RIGHT}
        for node in nodes:
            same_side = (self.left_node_ids if node.side == BipartiteSide.LEFT
                         else self.right_node_ids)
            if node.connected_node_ids & same_side:
                raise ValueError("Node %d connects to a node on its own side"
                                 % node.id)


# =============================================================================
# Maximum Matching
# =============================================================================

def get_max_matching(graph: BipartiteGraph) -> Dict[int, int]:
    """
    Maximum matching of a bipartite graph.

    Returns:
        Mapping of matched left node id -> right node id
    """
    size = len(graph)
    source_id, sink_id = size, size + 1
    capacity = _build_capacity_network(graph, source_id, sink_id)
    flow = np.zeros_like(capacity)

    while True:
        path = _get_augmenting_path(capacity - flow, source_id, sink_id)
        if not path:
            break
        for u, v in zip(path, path[1:]):
            flow[u, v] += 1
            flow[v, u] -= 1

    matching = {}
    for left_id in sorted(graph.left_node_ids):
        for right_id in sorted(graph.right_node_ids):
            if flow[left_id, right_id] > 0:
                matching[left_id] = right_id
    logger.debug('matched %d of %d left nodes'
                 % (len(matching), len(graph.left_node_ids)))
    return matching


def _build_capacity_network(graph: BipartiteGraph, source_id: int,
                            sink_id: int) -> np.ndarray:
    size = len(graph) + 2
    capacity = np.zeros((size, size), dtype=int)
    left = sorted(graph.left_node_ids)
    right = sorted(graph.right_node_ids)
    capacity[source_id, left] = 1
    capacity[right, sink_id] = 1
    if left and right:
        capacity[np.ix_(left, right)] = graph.adj_matrix[np.ix_(left, right)]
    return capacity


def _get_augmenting_path(residual: np.ndarray, source_id: int,
                         sink_id: int) -> List[int]:
    """Shortest source -> sink path in the residual network, [] if none."""
    parents = {source_id: None}
    queue = deque([source_id])
    while queue:
        node_id = queue.popleft()
        if node_id == sink_id:
            break
        for neighbour in np.flatnonzero(residual[node_id] > 0):
            neighbour = int(neighbour)
            if neighbour not in parents:
                parents[neighbour] = node_id
                queue.append(neighbour)
    if sink_id not in parents:
        return []
    path = [sink_id]
    while parents[path[-1]] is not None:
        path.append(parents[path[-1]])
    return list(reversed(path))


# =============================================================================
# König's Theorem
# =============================================================================

def get_max_vertex_cover(graph: BipartiteGraph,
                         matching: Optional[Dict[int, int]] = None) -> Set[int]:
    """
    Minimum vertex cover built from a maximum matching.

    The unmatched left nodes are DFS-covered over the bipartite adjacency,
    leaving left nodes only through unmatched edges and right nodes only
    through matched edges (alternating paths). The cover is then the
    visited right nodes plus the unvisited left nodes.
    """
    if matching is None:
        matching = get_max_matching(graph)
    matched_left_of = {right: left for left, right in matching.items()}

    excluded: Dict[int, Set[int]] = {}
    for left_id in graph.left_node_ids:
        excluded[left_id] = {matching[left_id]} if left_id in matching else set()
    for right_id in graph.right_node_ids:
        excluded[right_id] = {
            left_id for left_id in graph.get_neighbours(right_id)
            if matched_left_of.get(right_id) != left_id}

    unmatched_left = [n for n in sorted(graph.left_node_ids)
                      if n not in matching]
    visited = graph.get_dfs_cover(unmatched_left, excluded)
    return ((graph.right_node_ids & visited) |
            (graph.left_node_ids - visited))


def get_max_independent_set(graph: BipartiteGraph,
                            matching: Optional[Dict[int, int]] = None
                            ) -> Set[int]:
    """Complement of the minimum vertex cover."""
    cover = get_max_vertex_cover(graph, matching)
    return set(graph.nodes) - cover
