from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .custom_types import Point, Polygon
from .edges import EdgeCollection
from .geometry import (are_polys_identical, close_loop, ensure_ccw,
                       is_point_strictly_in_poly, is_poly_in_poly)


class ChordlessPolygon:
    """
    Polygon piece without any valid chord, possibly with holes.

    The outer perimeter is simplified (collinear vertices merged) and
    stored CCW in closed-loop form. Of the potential holes handed in,
    only those lying inside the outer perimeter are kept, each forced
    CCW. A polygon flagged as a hole has no holes or bridges itself.
    """

    def __init__(self, outer_perim: Sequence[Point],
                 potential_holes: Optional[Iterable[Sequence[Point]]] = None,
                 bridges: Optional[Mapping[Point, Iterable[Point]]] = None,
                 is_hole: bool = False):
        if not outer_perim:
            raise ValueError("A chordless polygon needs an outer perimeter")
        self.is_hole = is_hole
        self.outer_perim_unsimplified: Polygon = close_loop(outer_perim)
        simplified = EdgeCollection.from_loop(
            self.outer_perim_unsimplified).get_simplified_perim()
        if not simplified:
            raise ValueError("Outer perimeter %s is not a connected loop"
                             % self.outer_perim_unsimplified)
        self.outer_perim: Polygon = ensure_ccw(simplified)

        self.holes: List[Polygon] = []
        self.bridges: Dict[Point, Set[Point]] = {}
        if not is_hole:
            self.holes = self._get_contained_holes(potential_holes or [])
            self.bridges = {tuple(k): {tuple(p) for p in v}
                            for k, v in (bridges or {}).items()}

    def __repr__(self):
        return "ChordlessPolygon(%s, holes=%d%s)" % (
            self.outer_perim, len(self.holes), ", hole" if self.is_hole else "")

    def _get_contained_holes(self, potential_holes: Iterable[Sequence[Point]]
                             ) -> List[Polygon]:
        holes = []
        outer_vertices = set(self.outer_perim)
        for potential in potential_holes:
            hole = close_loop(potential)
            if are_polys_identical(hole, self.outer_perim):
                continue
            if is_poly_in_poly(hole, self.outer_perim):
                holes.append(ensure_ccw(hole))
                continue
            shared = outer_vertices & set(hole)
            if not shared:
                continue
            # touching hole: some vertex of its own must be inside
            if any(is_point_strictly_in_poly(v, self.outer_perim)
                   for v in set(hole) - shared):
                holes.append(ensure_ccw(hole))
        return holes
