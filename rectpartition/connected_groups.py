"""
Nodes of the polygon-splitting graph and the groups they form once
bridges are taken out.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Set, Tuple

from .bridges import Bridges
from .custom_types import Point, Polygon
from .edges import EdgeCollection
from .geometry import (NORTH, is_point_strictly_in_poly, is_poly_in_poly,
                       pick_next_vertex)
from .graphs import CycleExtractionError, GraphNode


@dataclass(eq=False)
class PolygonSplittingGraphNode(GraphNode):
    """Graph node placed at a coordinate; ordered by (x, y)"""
    coord: Point = (0, 0)

    def __lt__(self, other: "PolygonSplittingGraphNode") -> bool:
        return self.coord < other.coord


class ConnectedNodeGroup:
    """
    Nodes reachable from one another without crossing a bridge.

    On construction the group traces its outer perimeter: starting at its
    lexicographically smallest vertex with a northward bearing, it keeps
    taking the neighbour with the smallest counter-clockwise deviation
    from the reverse of the direction it came from, until it is back at
    the start. The result runs counter-clockwise around the group.
    """

    def __init__(self, group_id: int,
                 nodes: Mapping[int, PolygonSplittingGraphNode],
                 bridges: Bridges):
        if not nodes:
            raise ValueError("A connected group needs at least one node")
        self.id = group_id
        self.nodes: Dict[int, PolygonSplittingGraphNode] = dict(nodes)
        self.bridges: Bridges = {
            node_id: set(bridges[node_id])
            for node_id in self.nodes if node_id in bridges}
        self.coords: Set[Point] = {n.coord for n in self.nodes.values()}
        self.neighbours: Dict[int, List[int]] = {
            node_id: sorted(n for n in node.connected_node_ids if n in self.nodes)
            for node_id, node in self.nodes.items()}
        self.edges: List[Tuple[int, int]] = [
            (node_id, other) for node_id in sorted(self.nodes)
            for other in self.get_neighbours(node_id) if node_id < other]
        self.outer_perim_ids: List[int] = self._trace_outer_perim()
        self.outer_perim: Polygon = [self.nodes[i].coord
                                     for i in self.outer_perim_ids]
        self.simplified_outer_perim: Polygon = self._simplify_outer_perim()

    def __repr__(self):
        return "ConnectedNodeGroup(id=%d, nodes=%d)" % (self.id, len(self.nodes))

    def get_neighbours(self, node_id: int) -> List[int]:
        """Neighbours of a member node that are members themselves."""
        return self.neighbours[node_id]

    def get_edges(self) -> List[Tuple[int, int]]:
        """Every intra-group edge once, as (smaller id, larger id)."""
        return self.edges

    def _trace_outer_perim(self) -> List[int]:
        start = min(self.nodes.values())
        perim = [start.id]
        if not self.get_neighbours(start.id):
            return perim

        bearing = NORTH
        current = start
        # each edge can be walked at most once per direction
        max_steps = 2 * len(self.get_edges()) + 1
        for _ in range(max_steps):
            by_coord = {self.nodes[n].coord: self.nodes[n]
                        for n in self.get_neighbours(current.id)}
            chosen = by_coord[pick_next_vertex(current.coord, bearing, by_coord)]
            if chosen.id == start.id:
                return perim
            bearing = (current.coord[0] - chosen.coord[0],
                       current.coord[1] - chosen.coord[1])
            perim.append(chosen.id)
            current = chosen
        raise CycleExtractionError(
            "Outer perimeter trace of group %d did not close" % self.id)

    def _simplify_outer_perim(self) -> Polygon:
        if len(self.outer_perim) < 3:
            return list(self.outer_perim)
        simplified = EdgeCollection.from_loop(self.outer_perim
                                              ).get_simplified_perim()
        return simplified or list(self.outer_perim)

    # -------------------------------------------------------------------------
    # Nesting
    # -------------------------------------------------------------------------

    def get_shared_vertices(self, other: "ConnectedNodeGroup") -> Set[Point]:
        """Coordinates present in both groups (under different node ids)."""
        return self.coords & other.coords

    def is_other_group_in_this_group(self, other: "ConnectedNodeGroup") -> bool:
        """
        Check whether other sits inside this group's outer perimeter.

        Groups that share no vertex are compared with is_poly_in_poly.
        Groups that touch must have every vertex of other that is not
        shared lie strictly inside this group's outer perimeter.
        """
        if other.id == self.id:
            return False
        if len(self.outer_perim) < 3 or len(other.outer_perim) < 3:
            return False
        shared = self.get_shared_vertices(other)
        if not shared:
            return is_poly_in_poly(other.simplified_outer_perim,
                                   self.simplified_outer_perim)
        non_shared = other.coords - shared
        if not non_shared:
            return False
        return all(is_point_strictly_in_poly(v, self.outer_perim)
                   for v in non_shared)
