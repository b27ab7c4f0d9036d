from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

import numpy as np

ExcludedEdges = Mapping[int, Iterable[int]]


class IndexesNotASequenceError(ValueError):
    """Node ids of a graph are not exactly 0..N-1."""


class CycleExtractionError(RuntimeError):
    """A cycle that the graph's invariants guarantee could not be found."""


@dataclass(eq=False)
class GraphNode:
    """Node identified by an integer id, with the ids it connects to"""
    id: int
    connected_node_ids: Set[int] = field(default_factory=set)

    def __post_init__(self):
        self.connected_node_ids = set(self.connected_node_ids)


class GenericGraph:
    """
    Undirected graph backed by an adjacency matrix.

    Node ids must form the contiguous sequence 0..N-1 so that they can be
    used directly as matrix indices.
    """

    def __init__(self, nodes: Sequence[GraphNode]):
        if not nodes:
            raise ValueError("A graph needs at least one node")
        ids = [node.id for node in nodes]
        if sorted(ids) != list(range(len(ids))):
            raise IndexesNotASequenceError(
                "Node ids must be unique and form 0..%d, got %s"
                % (len(ids) - 1, sorted(ids)))
        self.nodes: Dict[int, GraphNode] = {node.id: node for node in nodes}
        self.adj_matrix = self._build_adj_matrix()

    def _build_adj_matrix(self) -> np.ndarray:
        size = len(self.nodes)
        adj_matrix = np.zeros((size, size), dtype=int)
        for node in self.nodes.values():
            for conn_id in node.connected_node_ids:
                if conn_id not in self.nodes:
                    raise ValueError("Node %d connects to unknown node %d"
                                     % (node.id, conn_id))
                adj_matrix[node.id, conn_id] = 1
                adj_matrix[conn_id, node.id] = 1
        return adj_matrix

    def __len__(self) -> int:
        return len(self.nodes)

    def get_neighbours(self, node_id: int) -> List[int]:
        return [int(i) for i in np.flatnonzero(self.adj_matrix[node_id])]

    def get_dfs_cover(self, start_ids: Iterable[int],
                      excluded_edges: Optional[ExcludedEdges] = None
                      ) -> Set[int]:
        """
        All nodes reachable from the seeds, seeds included.

        An edge u->v is not followed if v is listed under u in
        excluded_edges. The map is read per direction, so an undirected
        exclusion must list both ends.
        """
        excluded = excluded_edges or {}
        visited: Set[int] = set()
        stack = list(start_ids)
        while stack:
            node_id = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)
            blocked = excluded.get(node_id, ())
            for neighbour in self.get_neighbours(node_id):
                if neighbour not in visited and neighbour not in blocked:
                    stack.append(neighbour)
        return visited
