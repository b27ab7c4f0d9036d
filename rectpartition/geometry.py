"""
Geometry Kernel

Point and segment predicates plus polygon utilities used by the
rectangulation engine.

All coordinates follow the screen convention: x grows to the right and
y grows downwards. A loop is counter-clockwise (CCW) when it turns
counter-clockwise as drawn on screen, which is the case exactly when
its signed area (see get_signed_area) is positive.

Polygons may be passed either open or in closed-loop form (first
coordinate repeated at the end); every function here tolerates both.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from .custom_types import Point, Polygon
from .EngineSettings import settings


# =============================================================================
# Loop Helpers
# =============================================================================

def open_loop(polygon: Sequence[Point]) -> Polygon:
    """Return the loop without the closing duplicate coordinate."""
    points = [tuple(p) for p in polygon]
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points


def close_loop(polygon: Sequence[Point]) -> Polygon:
    """Return the loop in closed-loop form (first == last)."""
    points = open_loop(polygon)
    if points:
        points.append(points[0])
    return points


def loop_segments(polygon: Sequence[Point]) -> List[Tuple[Point, Point]]:
    """Consecutive segments of a loop, including the closing one."""
    points = open_loop(polygon)
    return [(points[i], points[(i + 1) % len(points)])
            for i in range(len(points))] if len(points) > 1 else []


# =============================================================================
# Segment Predicates
# =============================================================================

def _cross(ox: float, oy: float, ax: float, ay: float,
           bx: float, by: float) -> float:
    return (ax - ox) * (by - oy) - (ay - oy) * (bx - ox)


def _get_triangle_area(a: Point, b: Point, c: Point) -> float:
    return abs(_cross(a[0], a[1], b[0], b[1], c[0], c[1])) / 2.0


def are_segments_parallel(l1a: Point, l1b: Point,
                          l2a: Point, l2b: Point) -> bool:
    """Check whether both segments have the same slope."""
    tolerance = settings.get('COORD_TOLERANCE')
    d1x, d1y = l1b[0] - l1a[0], l1b[1] - l1a[1]
    d2x, d2y = l2b[0] - l2a[0], l2b[1] - l2a[1]
    # dy1/dx1 == dy2/dx2 without dividing
    return abs(d1y * d2x - d2y * d1x) <= tolerance


def are_segments_collinear(l1a: Point, l1b: Point,
                           l2a: Point, l2b: Point) -> bool:
    """Check whether both segments lie on the same line."""
    if not are_segments_parallel(l1a, l1b, l2a, l2b):
        return False
    tolerance = settings.get('COORD_TOLERANCE')
    return (_get_triangle_area(l1a, l1b, l2a) <= tolerance and
            _get_triangle_area(l1a, l1b, l2b) <= tolerance)


def do_segments_overlap(l1a: Point, l1b: Point,
                        l2a: Point, l2b: Point) -> bool:
    """
    Check whether two collinear segments share more than an endpoint.

    Both segments are parametrised along the direction of the first one
    and their 1D intervals compared. Segments that only touch at an
    endpoint do not overlap.
    """
    if not are_segments_collinear(l1a, l1b, l2a, l2b):
        return False
    dx, dy = l1b[0] - l1a[0], l1b[1] - l1a[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return False

    def param(p: Point) -> float:
        return ((p[0] - l1a[0]) * dx + (p[1] - l1a[1]) * dy) / length_sq

    t_a, t_b = sorted((param(l2a), param(l2b)))
    if min(1.0, t_b) <= max(0.0, t_a):
        return False
    return True


def _get_intersection_params(l1a: Point, l1b: Point, l2a: Point, l2b: Point
                             ) -> Optional[Tuple[float, float]]:
    denominator = ((l2b[1] - l2a[1]) * (l1b[0] - l1a[0]) -
                   (l2b[0] - l2a[0]) * (l1b[1] - l1a[1]))
    if denominator == 0:
        # parallel or collinear, handled by do_segments_overlap
        return None
    u_a = ((l2b[0] - l2a[0]) * (l1a[1] - l2a[1]) -
           (l2b[1] - l2a[1]) * (l1a[0] - l2a[0])) / denominator
    u_b = ((l1b[0] - l1a[0]) * (l1a[1] - l2a[1]) -
           (l1b[1] - l1a[1]) * (l1a[0] - l2a[0])) / denominator
    return u_a, u_b


def do_segments_intersect(l1a: Point, l1b: Point,
                          l2a: Point, l2b: Point) -> bool:
    """
    Parametric segment intersection test.

    Touching at an endpoint counts as intersecting. Parallel and
    collinear segments never intersect under this test.
    """
    params = _get_intersection_params(l1a, l1b, l2a, l2b)
    if params is None:
        return False
    u_a, u_b = params
    return 0 <= u_a <= 1 and 0 <= u_b <= 1


def is_point_on_segment(point: Point, a: Point, b: Point,
                        strict: bool = False) -> bool:
    """
    Check whether point lies on segment ab.

    With strict=True the endpoints themselves are excluded.
    """
    tolerance = settings.get('COORD_TOLERANCE')
    if abs(_cross(a[0], a[1], b[0], b[1], point[0], point[1])) > tolerance:
        return False
    if not (min(a[0], b[0]) <= point[0] <= max(a[0], b[0]) and
            min(a[1], b[1]) <= point[1] <= max(a[1], b[1])):
        return False
    if strict and (point == a or point == b):
        return False
    return True


# =============================================================================
# Polygon Utilities
# =============================================================================

def get_signed_area(polygon: Sequence[Point]) -> float:
    """Signed shoelace area, positive for CCW loops (y pointing down)."""
    points = open_loop(polygon)
    n = len(points)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        this_x, this_y = points[i]
        next_x, next_y = points[(i + 1) % n]
        area += next_x * this_y - next_y * this_x
    return area / 2.0


def get_area_of_polygon(polygon: Sequence[Point]) -> float:
    return abs(get_signed_area(polygon))


def is_polygon_ccw(polygon: Sequence[Point]) -> bool:
    return get_signed_area(polygon) > 0


def ensure_ccw(polygon: Sequence[Point]) -> Polygon:
    """Reverse the loop if it is not CCW. Closed loops stay closed."""
    points = [tuple(p) for p in polygon]
    if is_polygon_ccw(points):
        return points
    return list(reversed(points))


def is_point_in_poly(point: Point, polygon: Sequence[Point]) -> bool:
    """
    Winding number point-in-polygon test.

    Works for either orientation of a single simple loop. Points that
    lie exactly on the boundary are not classified reliably; use
    is_point_on_perim first when that matters.
    """
    x, y = point
    winding = 0
    for a, b in loop_segments(polygon):
        is_left = _cross(a[0], a[1], b[0], b[1], x, y)
        if a[1] <= y:
            if b[1] > y and is_left > 0:
                winding += 1
        elif b[1] <= y and is_left < 0:
            winding -= 1
    return winding != 0


def is_point_on_perim(point: Point, polygon: Sequence[Point]) -> bool:
    return any(is_point_on_segment(point, a, b)
               for a, b in loop_segments(polygon))


def is_point_strictly_in_poly(point: Point, polygon: Sequence[Point]) -> bool:
    return (not is_point_on_perim(point, polygon) and
            is_point_in_poly(point, polygon))


def are_polys_identical(poly_a: Iterable[Point],
                        poly_b: Iterable[Point]) -> bool:
    """Same vertex set, regardless of order or winding."""
    return {tuple(p) for p in poly_a} == {tuple(p) for p in poly_b}


def is_poly_in_poly(inner: Sequence[Point], outer: Sequence[Point]) -> bool:
    """
    Check whether inner lies inside outer without touching its boundary.

    Returns False when inner is at least as large as outer or both have
    the same vertex set, or when any pair of edges intersects.
    """
    if get_area_of_polygon(inner) >= get_area_of_polygon(outer):
        return False
    if are_polys_identical(inner, outer):
        return False
    outer_segments = loop_segments(outer)
    for ia, ib in loop_segments(inner):
        for oa, ob in outer_segments:
            if do_segments_intersect(ia, ib, oa, ob):
                return False
    return is_point_in_poly(open_loop(inner)[0], outer)


def get_min_x_min_y_coord(polygon: Sequence[Point]) -> int:
    """Index of the lexicographically smallest (x, then y) vertex."""
    points = [tuple(p) for p in polygon]
    if not points:
        raise ValueError("Cannot pick a start vertex of an empty polygon")
    return min(range(len(points)), key=lambda i: points[i])


def get_bounds(polygon: Sequence[Point]) -> Tuple[float, float, float, float]:
    """Bounding box as (x_min, y_min, x_max, y_max)."""
    xs = [p[0] for p in polygon]
    ys = [p[1] for p in polygon]
    return min(xs), min(ys), max(xs), max(ys)


# =============================================================================
# Angular Sweep
# =============================================================================

NORTH: Point = (0.0, -1.0)


def get_ccw_angle(bearing: Point, direction: Point) -> float:
    """
    Counter-clockwise angle (degrees, in (0, 360]) from bearing to direction.

    The y axis is mirrored first so that counter-clockwise means
    counter-clockwise on screen. A direction equal to the bearing
    yields 360, so turning back is always the last resort.
    """
    bx, by = bearing[0], -bearing[1]
    dx, dy = direction[0], -direction[1]
    angle = math.degrees(math.atan2(bx * dy - by * dx, bx * dx + by * dy))
    if angle <= 0:
        angle += 360.0
    return angle


def pick_next_vertex(current: Point, bearing: Point,
                     candidates: Iterable[Point]) -> Optional[Point]:
    """
    Choose the candidate with the smallest CCW deviation from bearing.

    bearing points from current back towards the previous vertex.
    Returns None if there are no candidates.
    """
    best, best_angle = None, None
    for candidate in candidates:
        direction = (candidate[0] - current[0], candidate[1] - current[1])
        angle = get_ccw_angle(bearing, direction)
        if best_angle is None or angle < best_angle:
            best, best_angle = candidate, angle
    return best


def get_turn_angle(prev_vertex: Point, vertex: Point,
                   next_vertex: Point) -> float:
    """
    Turn at vertex in degrees, in [0, 360).

    Computed as the angle of the incoming edge minus the angle of the
    outgoing edge. On a CCW loop a convex corner turns 90 and a concave
    corner 270.
    """
    incoming = math.atan2(vertex[1] - prev_vertex[1], vertex[0] - prev_vertex[0])
    outgoing = math.atan2(next_vertex[1] - vertex[1], next_vertex[0] - vertex[0])
    angle = round(math.degrees(incoming - outgoing), 6)
    if angle < 0:
        angle += 360.0
    return angle % 360.0


# =============================================================================
# Axis Transforms
# =============================================================================

def coord_to_iso_axis(coord: Point) -> Point:
    return (coord[0] + 2 * coord[1], 2 * coord[1] - coord[0])


def coord_to_carte_axis(coord: Point) -> Point:
    return ((coord[0] - coord[1]) / 2, (coord[0] + coord[1]) / 4)


def coords_to_iso_axis(coords: Iterable[Point]) -> Polygon:
    return [coord_to_iso_axis(c) for c in coords]


def coords_to_carte_axis(coords: Iterable[Point]) -> Polygon:
    return [coord_to_carte_axis(c) for c in coords]
