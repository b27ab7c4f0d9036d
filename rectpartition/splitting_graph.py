"""
Polygon-Splitting Graph

Splits the planar graph formed by a polygon's perimeter loops and its
internal cuts (chords or extensions) into chordless polygons and holes:

1. Bridges are found with Tarjan's algorithm and never crossed.
2. The remaining connected groups each trace their outer perimeter.
3. Groups lying inside other groups are arranged into a nesting tree.
4. Each group repeatedly extracts its smallest cycle through a node
   that has exactly two valid edges left, until none is left.

Edge use is tracked per direction: every edge borders two faces and is
retired only once both of them are extracted. The group's outer face
is retired up front, so what is extracted are the interior faces.
"""

import logging
from collections import Counter, deque
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from .bridges import Bridges, find_bridges, merge_edge_maps
from .ChordlessPolygon import ChordlessPolygon
from .connected_groups import ConnectedNodeGroup, PolygonSplittingGraphNode
from .custom_types import Point, Polygon
from .EngineSettings import settings
from .geometry import (are_polys_identical, get_area_of_polygon, get_bounds,
                       get_signed_area, is_point_in_poly,
                       is_point_strictly_in_poly, open_loop, pick_next_vertex)
from .graphs import CycleExtractionError, GenericGraph

logger = logging.getLogger(__name__)

HalfEdge = Tuple[int, int]


class CycleKind(Enum):
    COMPLEX = "complex"
    HOLE = "hole"
    OUTER_PERIM = "outer_perim"
    POLYGON = "polygon"


class PolygonSplittingGraph(GenericGraph):
    """
    Planar graph over a polygon's vertices and cuts.

    Args:
        nodes: Graph nodes with coordinates; ids must be 0..N-1
        holes: Perimeters of the polygon's declared holes, used to
            recognise hole faces
    """

    def __init__(self, nodes: Sequence[PolygonSplittingGraphNode],
                 holes: Optional[Sequence[Sequence[Point]]] = None):
        super().__init__(nodes)
        self.holes: List[Polygon] = [open_loop(h) for h in holes or []]
        self.diagnostics: List[str] = []
        self._face_checks: Dict[FrozenSet[HalfEdge], bool] = {}
        self.bridges: Bridges = find_bridges(self)
        self.groups: List[ConnectedNodeGroup] = self._build_groups()
        self.group_nesting: Dict[int, Set[int]] = self._build_group_nesting()

    def _build_groups(self) -> List[ConnectedNodeGroup]:
        groups = []
        assigned: Set[int] = set()
        for node_id in sorted(self.nodes):
            if node_id in assigned:
                continue
            members = self.get_dfs_cover([node_id], self.bridges)
            assigned |= members
            groups.append(ConnectedNodeGroup(
                len(groups), {i: self.nodes[i] for i in members}, self.bridges))
        logger.debug('%d nodes form %d groups, %d bridges'
                     % (len(self.nodes), len(groups),
                        sum(len(v) for v in self.bridges.values()) // 2))
        return groups

    def _build_group_nesting(self) -> Dict[int, Set[int]]:
        """Direct children of every group; grandchildren are left out."""
        contains = {
            group.id: {other.id for other in self.groups
                       if group.is_other_group_in_this_group(other)}
            for group in self.groups}
        nesting = {}
        for group_id, children in contains.items():
            nested: Set[int] = set()
            for child in children:
                nested |= contains[child]
            nesting[group_id] = children - nested
        return nesting

    def _coords(self, cycle: Sequence[int]) -> Polygon:
        return [self.nodes[i].coord for i in cycle]

    # =========================================================================
    # Chordless polygons
    # =========================================================================

    def get_chordless_polygons(self) -> List[ChordlessPolygon]:
        """
        Every interior face of every group as a ChordlessPolygon.

        Faces that match a declared hole come back flagged with is_hole.
        """
        polygons = []
        for group in self.groups:
            polygons.extend(self._get_group_polygons(group))
        return polygons

    def _get_group_polygons(self, group: ConnectedNodeGroup
                            ) -> List[ChordlessPolygon]:
        if len(group.outer_perim_ids) < 3:
            return []
        genuine, holes = [], []
        outer_face = None
        for cycle in self.get_min_cycles(group):
            coords = self._coords(cycle)
            kind = self.classify_cycle(group, coords)
            if kind == CycleKind.COMPLEX:
                if settings.get('DISCARD_COMPLEX_CYCLES'):
                    logger.debug('discarding complex cycle %s' % coords)
                    continue
                genuine.append(coords)
            elif kind == CycleKind.HOLE:
                holes.append(coords)
            elif kind == CycleKind.OUTER_PERIM:
                outer_face = coords
            else:
                genuine.append(coords)
        if not genuine and outer_face is not None:
            # a bare loop: its only face is its own outer perimeter
            genuine.append(outer_face)

        children = [self.groups[c] for c in sorted(self.group_nesting[group.id])]
        child_perims = [child.simplified_outer_perim for child in children]
        bridge_pairs = self._get_bridge_pairs([group] + children)

        polygons = [ChordlessPolygon(coords, child_perims,
                                     self._select_bridges(coords, child_perims,
                                                          bridge_pairs))
                    for coords in genuine]
        polygons.extend(ChordlessPolygon(coords, is_hole=True) for coords in holes)
        logger.debug('group %d: %d polygons, %d holes'
                     % (group.id, len(genuine), len(holes)))
        return polygons

    def _get_bridge_pairs(self, groups: Sequence[ConnectedNodeGroup]
                          ) -> Set[FrozenSet[Point]]:
        pairs = set()
        for group in groups:
            for node_id, others in group.bridges.items():
                for other in others:
                    pairs.add(frozenset((self.nodes[node_id].coord,
                                         self.nodes[other].coord)))
        return pairs

    @staticmethod
    def _select_bridges(cycle: Polygon, holes: Sequence[Polygon],
                        pairs: Set[FrozenSet[Point]]) -> Dict[Point, Set[Point]]:
        """Bridges running through the region enclosed by cycle."""
        selected: Dict[Point, Set[Point]] = {}
        for pair in pairs:
            if len(pair) != 2:
                continue
            a, b = sorted(pair)
            middle = ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)
            if not is_point_strictly_in_poly(middle, cycle):
                continue
            if any(is_point_in_poly(middle, hole) for hole in holes):
                continue
            selected.setdefault(a, set()).add(b)
            selected.setdefault(b, set()).add(a)
        return selected

    def classify_cycle(self, group: ConnectedNodeGroup,
                       coords: Sequence[Point]) -> CycleKind:
        repeated = [c for c, count in Counter(coords).items() if count > 1]
        if len(repeated) > 1:
            return CycleKind.COMPLEX
        if any(are_polys_identical(coords, hole) for hole in self.holes):
            return CycleKind.HOLE
        if are_polys_identical(coords, group.outer_perim):
            return CycleKind.OUTER_PERIM
        return CycleKind.POLYGON

    # =========================================================================
    # Minimum cycles
    # =========================================================================

    def get_min_cycles(self, group: ConnectedNodeGroup) -> List[List[int]]:
        """
        Extract the group's interior faces, smallest first.

        The cycle found for a node is kept across passes until one of its
        half-edges is consumed or an edge at the node itself is.

        Returns:
            Node id cycles (not closed), in extraction order
        """
        outer = group.outer_perim_ids
        consumed: Set[HalfEdge] = set(zip(outer, outer[1:] + outer[:1]))
        found: Dict[int, List[int]] = {}
        cycles = []
        while True:
            two_edge_nodes = [
                n for n in sorted(group.nodes)
                if len(self._get_valid_neighbours(group, n, consumed)) == 2]
            if not two_edge_nodes:
                break
            before = set(consumed)
            candidates: Dict[FrozenSet[HalfEdge], List[int]] = {}
            for node_id in two_edge_nodes:
                if node_id not in found:
                    try:
                        found[node_id] = self._find_min_cycle(group, node_id,
                                                              consumed)
                    except CycleExtractionError as err:
                        if settings.get('STRICT_CYCLE_EXTRACTION'):
                            raise
                        self._retire_node(group, node_id, consumed, err)
                        continue
                cycle = found[node_id]
                candidates.setdefault(frozenset(self._half_edges(cycle)), cycle)

            if candidates:
                cycle = min(candidates.values(),
                            key=lambda c: (len(c),
                                           get_area_of_polygon(self._coords(c))))
                consumed.update(self._half_edges(cycle))
                self._retire_new_bridges(group, consumed)
                cycles.append(cycle)
            self._drop_stale_cycles(found, consumed - before)
        return cycles

    def _drop_stale_cycles(self, found: Dict[int, List[int]],
                           newly_consumed: Set[HalfEdge]):
        touched = {node_id for half_edge in newly_consumed for node_id in half_edge}
        for node_id in list(found):
            if node_id in touched or any(
                    he in newly_consumed for he in self._half_edges(found[node_id])):
                del found[node_id]

    @staticmethod
    def _half_edges(cycle: Sequence[int]) -> List[HalfEdge]:
        return list(zip(cycle, list(cycle[1:]) + list(cycle[:1])))

    @staticmethod
    def _get_valid_neighbours(group: ConnectedNodeGroup, node_id: int,
                              consumed: Set[HalfEdge]) -> List[int]:
        """Neighbours whose shared edge still borders an unextracted face."""
        return [n for n in group.get_neighbours(node_id)
                if (node_id, n) not in consumed or (n, node_id) not in consumed]

    def _find_min_cycle(self, group: ConnectedNodeGroup, node_id: int,
                        consumed: Set[HalfEdge]) -> List[int]:
        """
        Smallest unextracted face through a node with two valid edges.

        One of the node's edges is set aside and the shortest path back
        to the node found by BFS. If that cycle is not a single face that
        is still unextracted, the face is traced by angular sweep instead.
        """
        removed_to = self._get_valid_neighbours(group, node_id, consumed)[0]
        path = self._bfs_path(group, node_id, removed_to, consumed)
        if path is None:
            raise CycleExtractionError(
                "no path from node %d back to its neighbour %d"
                % (node_id, removed_to))
        cycle = self._orient_as_face(path)
        if self._is_unextracted_face(group, cycle, consumed):
            return cycle
        return self._trace_min_face(group, node_id, consumed)

    def _bfs_path(self, group: ConnectedNodeGroup, start: int, target: int,
                  consumed: Set[HalfEdge]) -> Optional[List[int]]:
        parents: Dict[int, Optional[int]] = {start: None}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbour in self._get_valid_neighbours(group, current, consumed):
                if (current == start and neighbour == target) or neighbour in parents:
                    continue
                parents[neighbour] = current
                if neighbour == target:
                    path = [target]
                    while parents[path[-1]] is not None:
                        path.append(parents[path[-1]])
                    return list(reversed(path))
                queue.append(neighbour)
        return None

    def _orient_as_face(self, cycle: List[int]) -> List[int]:
        """Interior faces are walked clockwise (negative signed area)."""
        if get_signed_area(self._coords(cycle)) > 0:
            return [cycle[0]] + list(reversed(cycle[1:]))
        return cycle

    def _is_unextracted_face(self, group: ConnectedNodeGroup,
                             cycle: List[int], consumed: Set[HalfEdge]) -> bool:
        half_edges = self._half_edges(cycle)
        if any(he in consumed for he in half_edges):
            return False
        key = frozenset(half_edges)
        if key not in self._face_checks:
            self._face_checks[key] = self._is_empty_face(group, cycle)
        return self._face_checks[key]

    def _is_empty_face(self, group: ConnectedNodeGroup, cycle: List[int]) -> bool:
        """Clockwise cycle with no group node or edge inside it."""
        coords = self._coords(cycle)
        if get_signed_area(coords) >= 0:
            return False
        x_min, y_min, x_max, y_max = get_bounds(coords)

        def is_inside(point: Point) -> bool:
            return (x_min < point[0] < x_max and y_min < point[1] < y_max and
                    is_point_strictly_in_poly(point, coords))

        cycle_ids, cycle_coords = set(cycle), set(coords)
        for node in group.nodes.values():
            if node.id in cycle_ids or node.coord in cycle_coords:
                continue
            if is_inside(node.coord):
                return False
        cycle_edges = {frozenset(he) for he in self._half_edges(cycle)}
        for u, v in group.get_edges():
            if frozenset((u, v)) in cycle_edges:
                continue
            a, b = self.nodes[u].coord, self.nodes[v].coord
            if is_inside(((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)):
                return False
        return True

    def _trace_min_face(self, group: ConnectedNodeGroup, node_id: int,
                        consumed: Set[HalfEdge]) -> List[int]:
        faces = []
        for neighbour in self._get_valid_neighbours(group, node_id, consumed):
            if (node_id, neighbour) in consumed:
                continue
            face = self._trace_face(group, node_id, neighbour)
            if get_signed_area(self._coords(face)) >= 0:
                continue
            if any(he in consumed for he in self._half_edges(face)):
                continue
            faces.append(face)
        if not faces:
            raise CycleExtractionError("node %d borders no unextracted face"
                                       % node_id)
        return min(faces, key=lambda f: (len(f),
                                         get_area_of_polygon(self._coords(f))))

    def _trace_face(self, group: ConnectedNodeGroup, start: int,
                    first: int) -> List[int]:
        """Walk the face that follows the directed edge start -> first."""
        face = [start]
        previous, current = start, first
        for _ in range(2 * len(group.get_edges()) + 1):
            here = self.nodes[current].coord
            back = self.nodes[previous].coord
            by_coord = {self.nodes[n].coord: n
                        for n in group.get_neighbours(current)}
            following = by_coord[pick_next_vertex(
                here, (back[0] - here[0], back[1] - here[1]), by_coord)]
            if current == start and following == first:
                return face
            face.append(current)
            previous, current = current, following
        raise CycleExtractionError("face walk from edge %d -> %d did not close"
                                   % (start, first))

    def _retire_new_bridges(self, group: ConnectedNodeGroup,
                            consumed: Set[HalfEdge]):
        """Edges left as bridges can no longer be on any cycle."""
        removed: Bridges = {}
        for u, v in consumed:
            if (v, u) in consumed:
                removed.setdefault(u, set()).add(v)
        new_bridges = find_bridges(self, merge_edge_maps(self.bridges, removed),
                                   group.nodes)
        for u, others in new_bridges.items():
            for v in others:
                consumed.add((u, v))
        if new_bridges:
            logger.debug('group %d: retired %d new bridges'
                         % (group.id, sum(len(v) for v in new_bridges.values()) // 2))

    def _retire_node(self, group: ConnectedNodeGroup, node_id: int,
                     consumed: Set[HalfEdge], err: CycleExtractionError):
        message = ('group %d, node %d at %s: %s'
                   % (group.id, node_id, self.nodes[node_id].coord, err))
        logger.warning('skipping cycle extraction for %s' % message)
        self.diagnostics.append(message)
        for neighbour in self._get_valid_neighbours(group, node_id, consumed):
            consumed.add((node_id, neighbour))
            consumed.add((neighbour, node_id))
