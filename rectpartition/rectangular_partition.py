"""
Rectangular Partitioning of Orthogonal Polygons

This module turns an orthogonal polygon with holes into axis-aligned
rectangles in two passes:

1. Complex -> Chordless
   Chords are axis-aligned cuts joining two concave vertices through the
   polygon's interior. Vertical and horizontal chords that cross form a
   bipartite conflict graph; its maximum independent set is the largest
   set of chords that can be drawn together. The perimeter plus those
   chords is split into faces by the polygon-splitting graph.

2. Chordless -> Rectangles
   Every concave vertex of a chordless polygon that is not resolved yet
   is extended horizontally or vertically until the extension meets the
   perimeter, a hole or an earlier extension. The faces of the resulting
   graph are rectangles.

Coordinates are y-down (screen convention); see geometry.py.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .bipartite import (BipartiteGraph, BipartiteGraphNode, BipartiteSide,
                        get_max_independent_set)
from .ChordlessPolygon import ChordlessPolygon
from .connected_groups import PolygonSplittingGraphNode
from .custom_types import (Chord, ChordDirection, ConcaveVertex, PerimVertex,
                           Point, Polygon, Rectangle)
from .EngineSettings import settings
from .geometry import (are_segments_collinear, are_segments_parallel,
                       close_loop, do_segments_intersect, do_segments_overlap,
                       ensure_ccw, get_bounds, get_turn_angle,
                       is_point_in_poly, is_point_on_perim,
                       is_point_on_segment, is_point_strictly_in_poly,
                       loop_segments, open_loop)
from .graphs import CycleExtractionError
from .splitting_graph import PolygonSplittingGraph

logger = logging.getLogger(__name__)

Segment = Tuple[Point, Point]


# =============================================================================
# Concave Vertices
# =============================================================================

OUTER_CONCAVE_TURN = 270.0
HOLE_CONCAVE_TURN = 90.0


def find_concave_vertices(outer: Sequence[Point],
                          holes: Iterable[Sequence[Point]] = ()
                          ) -> List[ConcaveVertex]:
    """
    Find the concave vertices of a polygon with holes.

    All loops are walked counter-clockwise. A vertex of the outer loop is
    concave if it turns 270 degrees, a vertex of a hole if it turns 90
    degrees (the hole's inside is outside the polygon). Vertices whose
    coordinate is shared between the outer loop and a hole are skipped.

    Args:
        outer: Outer perimeter, open or closed
        holes: Hole perimeters, open or closed

    Returns:
        Concave vertices, with origin 0 for the outer loop and i for
        the i-th hole
    """
    outer_loop = ensure_ccw(open_loop(outer))
    hole_loops = [ensure_ccw(open_loop(h)) for h in holes]
    outer_coords = set(outer_loop)
    hole_coords: Set[Point] = set()
    for hole in hole_loops:
        hole_coords.update(hole)

    loops = [(outer_loop, OUTER_CONCAVE_TURN, hole_coords)]
    loops += [(hole, HOLE_CONCAVE_TURN, outer_coords) for hole in hole_loops]

    concave = []
    for origin, (loop, concave_turn, shared) in enumerate(loops):
        n = len(loop)
        for i, vertex in enumerate(loop):
            prev_vertex = loop[i - 1]
            next_vertex = loop[(i + 1) % n]
            if get_turn_angle(prev_vertex, vertex, next_vertex) != concave_turn:
                continue
            if vertex in shared:
                continue
            concave.append(ConcaveVertex(vertex, prev_vertex, next_vertex, origin))
    return concave


# =============================================================================
# Complex Polygon Decomposition
# =============================================================================

class ComplexPolygonDecomposer:
    """
    Split an orthogonal polygon with holes into chordless polygons.

    After decompose() the intermediate results stay available:
    concave_vertices, chords (every valid candidate), selected_chords
    (the maximum independent set) and splitting_graph.
    """

    def __init__(self, perimeters: Sequence[Sequence[Point]]):
        """
        Args:
            perimeters: Loop 0 is the outer boundary, loops 1..N are holes.
                Loops may be open or closed and wound either way.
        """
        if not perimeters:
            raise ValueError("At least an outer perimeter is required")
        self.loops: List[Polygon] = [self._normalise_loop(p) for p in perimeters]
        self.concave_vertices: List[ConcaveVertex] = []
        self.chords: List[Chord] = []
        self.selected_chords: List[Chord] = []
        self.splitting_graph: Optional[PolygonSplittingGraph] = None

    @staticmethod
    def _normalise_loop(perimeter: Sequence[Point]) -> Polygon:
        points: Polygon = []
        for point in open_loop(perimeter):
            if not points or points[-1] != point:
                points.append(point)
        if len(points) > 1 and points[0] == points[-1]:
            points.pop()
        if len(set(points)) < 4:
            raise ValueError("Perimeter %s has fewer than four distinct vertices"
                             % list(perimeter))
        return ensure_ccw(points)

    @property
    def outer(self) -> Polygon:
        return self.loops[0]

    @property
    def holes(self) -> List[Polygon]:
        return self.loops[1:]

    def decompose(self) -> List[ChordlessPolygon]:
        self.find_concave_vertices()
        self.find_chords()
        self.select_chords()
        self.build_splitting_graph()
        polygons = [p for p in self.splitting_graph.get_chordless_polygons()
                    if not p.is_hole]
        logger.debug('decomposed into %d chordless polygons' % len(polygons))
        return polygons

    def find_concave_vertices(self) -> List[ConcaveVertex]:
        self.concave_vertices = find_concave_vertices(self.outer, self.holes)
        return self.concave_vertices

    def find_chords(self) -> List[Chord]:
        """Every valid axis-aligned cut between two concave vertices."""
        segments = [s for loop in self.loops for s in loop_segments(loop)]
        seen = set()
        self.chords = []
        for i, first in enumerate(self.concave_vertices):
            for second in self.concave_vertices[i + 1:]:
                a, b = first.vertex, second.vertex
                if a == b or (a[0] != b[0] and a[1] != b[1]):
                    continue
                chord = Chord(a, b, first.origin, second.origin)
                if chord.key in seen or not self._is_valid_chord(chord, segments):
                    continue
                seen.add(chord.key)
                self.chords.append(chord)
        logger.debug('%d concave vertices, %d chords'
                     % (len(self.concave_vertices), len(self.chords)))
        return self.chords

    def _is_valid_chord(self, chord: Chord, segments: Sequence[Segment]) -> bool:
        a, b = chord.a, chord.b
        for seg_a, seg_b in segments:
            if do_segments_overlap(a, b, seg_a, seg_b):
                return False
            if seg_a in (a, b) or seg_b in (a, b):
                continue
            if do_segments_intersect(a, b, seg_a, seg_b):
                return False
        middle = ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)
        if not is_point_strictly_in_poly(middle, self.outer):
            return False
        for hole in self.holes:
            if is_point_in_poly(middle, hole) or is_point_on_perim(middle, hole):
                return False
        return True

    def build_conflict_graph(self) -> Tuple[BipartiteGraph, List[Chord]]:
        """
        Bipartite graph of crossing chords.

        Vertical chords are the left side and take the first ids,
        horizontal chords the right side. Chords sharing an endpoint
        count as crossing.

        Returns:
            The graph and the chords indexed by node id
        """
        vertical = [c for c in self.chords if c.direction == ChordDirection.VERTICAL]
        horizontal = [c for c in self.chords
                      if c.direction == ChordDirection.HORIZONTAL]
        ordered = vertical + horizontal
        nodes = [BipartiteGraphNode(i, set(), BipartiteSide.LEFT)
                 for i in range(len(vertical))]
        nodes += [BipartiteGraphNode(i, set(), BipartiteSide.RIGHT)
                  for i in range(len(vertical), len(ordered))]
        for i, v_chord in enumerate(vertical):
            for j, h_chord in enumerate(horizontal, start=len(vertical)):
                if do_segments_intersect(v_chord.a, v_chord.b, h_chord.a, h_chord.b):
                    nodes[i].connected_node_ids.add(j)
                    nodes[j].connected_node_ids.add(i)
        return BipartiteGraph(nodes), ordered

    def select_chords(self) -> List[Chord]:
        if not self.chords:
            self.selected_chords = []
            return self.selected_chords
        graph, ordered = self.build_conflict_graph()
        independent = get_max_independent_set(graph)
        self.selected_chords = [ordered[i] for i in sorted(independent)]
        logger.debug('selected %d of %d chords'
                     % (len(self.selected_chords), len(self.chords)))
        return self.selected_chords

    def build_splitting_graph(self) -> PolygonSplittingGraph:
        """Graph of all loop edges plus the selected chords."""
        ids: Dict[PerimVertex, int] = {}
        connections: Dict[int, Set[int]] = {}

        def connect(a: PerimVertex, b: PerimVertex):
            for key in (a, b):
                if key not in ids:
                    ids[key] = len(ids)
                    connections[ids[key]] = set()
            connections[ids[a]].add(ids[b])
            connections[ids[b]].add(ids[a])

        for origin, loop in enumerate(self.loops):
            for a, b in loop_segments(loop):
                connect(PerimVertex(a, origin), PerimVertex(b, origin))
        for chord in self.selected_chords:
            connect(PerimVertex(chord.a, chord.origin_a),
                    PerimVertex(chord.b, chord.origin_b))

        nodes = [PolygonSplittingGraphNode(node_id, connections[node_id], key.vertex)
                 for key, node_id in ids.items()]
        self.splitting_graph = PolygonSplittingGraph(nodes, holes=self.holes)
        return self.splitting_graph


# =============================================================================
# Chordless Polygon Decomposition
# =============================================================================

class ChordlessPolygonDecomposer:
    """
    Split a chordless polygon into rectangles by extending its concave
    vertices.

    Args:
        polygon: Chordless polygon to split
        chords: Chords found for the complex polygon it came from;
            extensions avoid running along them where possible
    """

    def __init__(self, polygon: ChordlessPolygon,
                 chords: Optional[Iterable[Chord]] = None):
        self.polygon = polygon
        self.known_chords: List[Chord] = list(chords or [])
        self.outer: Polygon = open_loop(polygon.outer_perim)
        self.holes: List[Polygon] = [open_loop(h) for h in polygon.holes]
        self.extensions: List[Segment] = []
        self.resolved: Set[Point] = set()
        self.splitting_graph: Optional[PolygonSplittingGraph] = None

    def decompose(self) -> List[Polygon]:
        """
        Returns:
            Rectangles as closed 5-coordinate loops, counter-clockwise
        """
        self._add_bridge_extensions()
        concave = find_concave_vertices(self.outer, self.holes)
        if not concave and not self.extensions and not self.holes:
            return [close_loop(self.outer)]

        for vertex in sorted(concave, key=lambda c: c.vertex):
            if vertex.vertex in self.resolved:
                continue
            self._extend(vertex)

        outer, holes, extensions = self._insert_new_vertices()
        self.splitting_graph = PolygonSplittingGraph(
            self._build_nodes(outer, holes, extensions), holes=holes)
        rectangles = [close_loop(p.outer_perim)
                      for p in self.splitting_graph.get_chordless_polygons()
                      if not p.is_hole]
        logger.debug('%d extensions gave %d rectangles'
                     % (len(self.extensions), len(rectangles)))
        return rectangles

    def _add_bridge_extensions(self):
        seen = set()
        for a in sorted(self.polygon.bridges):
            for b in sorted(self.polygon.bridges[a]):
                key = frozenset((a, b))
                if key in seen:
                    continue
                seen.add(key)
                self.extensions.append((a, b))
                self.resolved.update((a, b))

    def _extend(self, vertex: ConcaveVertex):
        direction = self._choose_direction(vertex)
        end = self._cut_extension(vertex.vertex, direction)
        self.extensions.append((vertex.vertex, end))
        self.resolved.update((vertex.vertex, end))

    def _choose_direction(self, vertex: ConcaveVertex) -> Point:
        horizontal = vertex.get_horizontal_free_direction()
        vertical = vertex.get_vertical_free_direction()
        if settings.get('PREFER_HORIZONTAL_EXTENSION'):
            primary, secondary = horizontal, vertical
        else:
            primary, secondary = vertical, horizontal
        if (self._is_along_known_chord(vertex.vertex, primary) and
                not self._is_along_known_chord(vertex.vertex, secondary)):
            return secondary
        return primary

    def _is_along_known_chord(self, origin: Point, direction: Point) -> bool:
        for chord in self.known_chords:
            if origin not in (chord.a, chord.b):
                continue
            other = chord.b if chord.a == origin else chord.a
            dx, dy = other[0] - origin[0], other[1] - origin[1]
            ahead = dx * direction[0] + dy * direction[1] > 0
            if ahead and dx * direction[1] - dy * direction[0] == 0:
                return True
        return False

    def _cut_extension(self, origin: Point, direction: Point) -> Point:
        """
        Nearest point where a ray from origin meets the polygon.

        The ray is first drawn past the bounding box, then cut back to
        the closest hit among the outer perimeter, the holes and the
        extensions so far, in that order.
        """
        x_min, y_min, x_max, y_max = get_bounds(self.outer)
        overshoot = settings.get('EXTENSION_OVERSHOOT')
        is_horizontal = direction[1] == 0
        if is_horizontal:
            far = (x_max + overshoot if direction[0] > 0 else x_min - overshoot,
                   origin[1])
        else:
            far = (origin[0],
                   y_max + overshoot if direction[1] > 0 else y_min - overshoot)

        segments = loop_segments(self.outer)
        for hole in self.holes:
            segments += loop_segments(hole)
        segments += self.extensions

        best, best_distance = None, None
        for seg_a, seg_b in segments:
            if origin in (seg_a, seg_b):
                continue
            hit = self._get_ray_hit(origin, far, seg_a, seg_b, is_horizontal)
            if hit is None:
                continue
            distance = abs(hit[0] - origin[0]) + abs(hit[1] - origin[1])
            if distance <= 0:
                continue
            if best_distance is None or distance < best_distance:
                best, best_distance = hit, distance
        if best is None:
            raise CycleExtractionError("Extension from %s towards %s meets nothing"
                                       % (origin, direction))
        return best

    @staticmethod
    def _get_ray_hit(origin: Point, far: Point, seg_a: Point, seg_b: Point,
                     is_horizontal: bool) -> Optional[Point]:
        if are_segments_parallel(origin, far, seg_a, seg_b):
            if not are_segments_collinear(origin, far, seg_a, seg_b):
                return None
            ahead = [p for p in (seg_a, seg_b)
                     if p != origin and is_point_on_segment(p, origin, far)]
            if not ahead:
                return None
            return min(ahead, key=lambda p: abs(p[0] - origin[0]) +
                       abs(p[1] - origin[1]))
        if not do_segments_intersect(origin, far, seg_a, seg_b):
            return None
        if is_horizontal:
            return (seg_a[0], origin[1])
        return (origin[0], seg_a[1])

    def _insert_new_vertices(self) -> Tuple[Polygon, List[Polygon], List[Segment]]:
        """
        Put extension endpoints into the loops they land on, and split
        extensions at endpoints lying on them.
        """
        points: Set[Point] = {p for segment in self.extensions for p in segment}
        outer = self._insert_into_loop(self.outer, points)
        holes = [self._insert_into_loop(h, points) for h in self.holes]

        for loop in [outer] + holes:
            points.update(loop)
        extensions = []
        for a, b in self.extensions:
            inner = sorted((p for p in points
                            if is_point_on_segment(p, a, b, strict=True)),
                           key=lambda p: abs(p[0] - a[0]) + abs(p[1] - a[1]))
            chain = [a] + inner + [b]
            extensions.extend(zip(chain, chain[1:]))
        return outer, holes, extensions

    @staticmethod
    def _insert_into_loop(loop: Polygon, points: Set[Point]) -> Polygon:
        result = []
        for a, b in loop_segments(loop):
            result.append(a)
            result.extend(sorted(
                (p for p in points if is_point_on_segment(p, a, b, strict=True)),
                key=lambda p: abs(p[0] - a[0]) + abs(p[1] - a[1])))
        return result

    @staticmethod
    def _build_nodes(outer: Polygon, holes: Sequence[Polygon],
                     extensions: Sequence[Segment]
                     ) -> List[PolygonSplittingGraphNode]:
        """One node per distinct coordinate."""
        ids: Dict[Point, int] = {}
        connections: Dict[int, Set[int]] = {}

        def connect(a: Point, b: Point):
            if a == b:
                return
            for coord in (a, b):
                if coord not in ids:
                    ids[coord] = len(ids)
                    connections[ids[coord]] = set()
            connections[ids[a]].add(ids[b])
            connections[ids[b]].add(ids[a])

        for loop in [outer] + list(holes):
            for a, b in loop_segments(loop):
                connect(a, b)
        for a, b in extensions:
            connect(a, b)
        return [PolygonSplittingGraphNode(node_id, connections[node_id], coord)
                for coord, node_id in ids.items()]


# =============================================================================
# Convenience Functions
# =============================================================================

def decompose_complex_polygon(perimeters: Sequence[Sequence[Point]]
                              ) -> List[ChordlessPolygon]:
    """
    Split an orthogonal polygon with holes into chordless polygons.

    Args:
        perimeters: Loop 0 is the outer boundary, loops 1..N are holes

    Returns:
        Chordless polygons, each with its own holes and bridges
    """
    return ComplexPolygonDecomposer(perimeters).decompose()


def decompose_chordless_polygon(polygon: ChordlessPolygon,
                                chords: Optional[Iterable[Chord]] = None
                                ) -> List[Polygon]:
    """Split a chordless polygon into rectangles (closed 5-coordinate loops)."""
    return ChordlessPolygonDecomposer(polygon, chords).decompose()


def partition_into_rectangles(perimeters: Sequence[Sequence[Point]]
                              ) -> List[Rectangle]:
    """
    Partition an orthogonal polygon with holes into rectangles.

    This combines both passes:
    1. Split along the maximum set of non-crossing chords
    2. Extend the remaining concave vertices

    Args:
        perimeters: Loop 0 is the outer boundary, loops 1..N are holes

    Returns:
        List of Rectangle objects
    """
    decomposer = ComplexPolygonDecomposer(perimeters)
    rectangles = []
    for polygon in decomposer.decompose():
        for perimeter in decompose_chordless_polygon(polygon, decomposer.chords):
            rectangles.append(Rectangle.from_perimeter(perimeter))
    return rectangles


# =============================================================================
# Testing
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)

    # 3x3 square with its centre removed
    ring = [
        [(0, 0), (0, 3), (3, 3), (3, 0), (0, 0)],
        [(1, 1), (1, 2), (2, 2), (2, 1), (1, 1)],
    ]
    print("Ring with one hole:")
    for polygon in decompose_complex_polygon(ring):
        print(f"  {polygon}")
    rectangles = partition_into_rectangles(ring)
    print(f"  Partitioned into {len(rectangles)} rectangles")
    for i, rect in enumerate(rectangles):
        print(f"  Rectangle {i+1}: ({rect.x_min}, {rect.y_min}) - ({rect.x_max}, {rect.y_max})")

    plus = [[
        (1, 0), (2, 0), (2, 1), (3, 1), (3, 2), (2, 2),
        (2, 3), (1, 3), (1, 2), (0, 2), (0, 1), (1, 1)
    ]]
    print("\nPlus-shaped polygon:")
    rectangles = partition_into_rectangles(plus)
    print(f"  Partitioned into {len(rectangles)} rectangles")
    for i, rect in enumerate(rectangles):
        print(f"  Rectangle {i+1}: ({rect.x_min}, {rect.y_min}) - ({rect.x_max}, {rect.y_max})")
