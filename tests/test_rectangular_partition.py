import itertools
import random
from collections import Counter

import pytest

from rectpartition.ChordlessPolygon import ChordlessPolygon
from rectpartition.custom_types import Chord, ChordDirection, ConcaveVertex, Rectangle
from rectpartition.EngineSettings import settings
from rectpartition.geometry import (get_area_of_polygon, get_bounds, is_point_in_poly,
                                    is_polygon_ccw, open_loop)
from rectpartition.rectangular_partition import (
    ChordlessPolygonDecomposer, ComplexPolygonDecomposer,
    decompose_chordless_polygon, decompose_complex_polygon,
    find_concave_vertices, partition_into_rectangles)


def total_area(rectangles):
    return sum(r.area for r in rectangles)


def assert_no_overlap(rectangles):
    for first, second in itertools.combinations(rectangles, 2):
        width = min(first.x_max, second.x_max) - max(first.x_min, second.x_min)
        height = min(first.y_max, second.y_max) - max(first.y_min, second.y_min)
        assert width <= 0 or height <= 0, (first, second)


# -----------------------------------------------------------------------------
# Concave vertices
# -----------------------------------------------------------------------------

def test_find_concave_vertices_of_l_shape(l_shape):
    concave = find_concave_vertices(l_shape)
    assert [c.vertex for c in concave] == [(1, 1)]
    assert concave[0].origin == 0


def test_find_concave_vertices_ignores_winding(l_shape):
    concave = find_concave_vertices(list(reversed(l_shape)))
    assert [c.vertex for c in concave] == [(1, 1)]


def test_find_concave_vertices_of_ring(ring):
    outer, hole = ring
    concave = find_concave_vertices(outer, [hole])
    assert {c.vertex for c in concave} == {(1, 1), (1, 2), (2, 1), (2, 2)}
    assert all(c.origin == 1 for c in concave)


def test_concave_vertex_shared_with_hole_is_skipped():
    outer = [(0, 0), (0, 3), (3, 3), (3, 0), (2, 0), (2, 1), (1, 1), (1, 0)]
    hole = [(1, 1), (1, 2), (2, 2), (2, 1)]
    concave = find_concave_vertices(outer, [hole])
    assert sorted(c.vertex for c in concave) == [(1, 2), (2, 2)]
    assert all(c.origin == 1 for c in concave)


def test_free_directions():
    vertex = ConcaveVertex((1, 1), (2, 1), (1, 0))
    assert vertex.get_horizontal_free_direction() == (-1, 0)
    assert vertex.get_vertical_free_direction() == (0, 1)


# -----------------------------------------------------------------------------
# Complex -> chordless
# -----------------------------------------------------------------------------

def test_degenerate_perimeters_are_rejected():
    with pytest.raises(ValueError):
        ComplexPolygonDecomposer([])
    with pytest.raises(ValueError):
        ComplexPolygonDecomposer([[(0, 0), (0, 1), (1, 1), (0, 0)]])


def test_plus_shape_keeps_horizontal_chords(plus_shape):
    decomposer = ComplexPolygonDecomposer([plus_shape])
    polygons = decomposer.decompose()

    assert len(decomposer.concave_vertices) == 4
    assert len(decomposer.chords) == 4
    assert len(decomposer.selected_chords) == 2
    assert all(c.direction == ChordDirection.HORIZONTAL
               for c in decomposer.selected_chords)
    assert len(polygons) == 3
    assert sorted(get_area_of_polygon(p.outer_perim) for p in polygons) == [1, 1, 3]


def test_chord_along_perimeter_is_rejected(u_shape):
    decomposer = ComplexPolygonDecomposer([u_shape])
    decomposer.find_concave_vertices()
    assert len(decomposer.concave_vertices) == 2
    assert decomposer.find_chords() == []


def test_ring_keeps_its_hole(ring):
    decomposer = ComplexPolygonDecomposer(ring)
    polygons = decomposer.decompose()

    assert decomposer.chords == []
    assert len(polygons) == 1
    assert len(polygons[0].holes) == 1
    hole_faces = [p for p in decomposer.splitting_graph.get_chordless_polygons()
                  if p.is_hole]
    assert len(hole_faces) == 1


def test_chordless_output_is_ccw(ring, plus_shape, staircase):
    for perimeters in (ring, [plus_shape], [staircase]):
        for polygon in decompose_complex_polygon(perimeters):
            assert is_polygon_ccw(polygon.outer_perim)
            assert all(is_polygon_ccw(h) for h in polygon.holes)


# -----------------------------------------------------------------------------
# Chordless -> rectangles
# -----------------------------------------------------------------------------

def test_rectangle_is_returned_unchanged(square):
    rectangles = decompose_chordless_polygon(ChordlessPolygon(square))
    assert len(rectangles) == 1
    assert set(rectangles[0]) == set(square)
    assert len(rectangles[0]) == 5

    again = decompose_chordless_polygon(ChordlessPolygon(rectangles[0]))
    assert set(again[0]) == set(rectangles[0])


def test_l_shape_extends_horizontally(l_shape):
    rectangles = [Rectangle.from_perimeter(p)
                  for p in decompose_chordless_polygon(ChordlessPolygon(l_shape))]
    assert sorted((r.x_min, r.y_min, r.x_max, r.y_max) for r in rectangles) == [
        (0, 0, 1, 1), (0, 1, 2, 2)]


def test_l_shape_extends_vertically_when_preferred(l_shape):
    settings.set('PREFER_HORIZONTAL_EXTENSION', False)
    rectangles = [Rectangle.from_perimeter(p)
                  for p in decompose_chordless_polygon(ChordlessPolygon(l_shape))]
    assert sorted((r.x_min, r.y_min, r.x_max, r.y_max) for r in rectangles) == [
        (0, 0, 1, 2), (1, 1, 2, 2)]


def test_known_chord_direction_is_avoided(l_shape):
    decomposer = ChordlessPolygonDecomposer(ChordlessPolygon(l_shape),
                                            [Chord((1, 1), (0, 1))])
    vertex = find_concave_vertices(l_shape)[0]
    assert decomposer._choose_direction(vertex) == (0, 1)
    areas = sorted(get_area_of_polygon(p) for p in decomposer.decompose())
    assert areas == [1, 2]


def test_bridge_becomes_an_extension(ring):
    outer, hole = ring
    polygon = ChordlessPolygon(outer, [hole], {(0, 1): {(1, 1)}, (1, 1): {(0, 1)}})
    decomposer = ChordlessPolygonDecomposer(polygon)
    rectangles = decomposer.decompose()

    assert ((0, 1), (1, 1)) in decomposer.extensions
    assert len(rectangles) == 4
    assert sum(get_area_of_polygon(r) for r in rectangles) == 8


def test_rectangles_are_closed_ccw_loops(u_shape):
    for rectangle in decompose_chordless_polygon(ChordlessPolygon(u_shape)):
        assert len(rectangle) == 5
        assert rectangle[0] == rectangle[-1]
        assert is_polygon_ccw(rectangle)


# -----------------------------------------------------------------------------
# Whole pipeline
# -----------------------------------------------------------------------------

def assert_exact_cover(rectangles, perimeters):
    """Every unit cell of the polygon lies in exactly one rectangle."""
    outer, holes = perimeters[0], perimeters[1:]
    x_min, y_min, x_max, y_max = get_bounds(outer)

    def is_in_polygon(point):
        return (is_point_in_poly(point, outer) and
                not any(is_point_in_poly(point, hole) for hole in holes))

    expected = {(x, y)
                for x in range(int(x_min), int(x_max))
                for y in range(int(y_min), int(y_max))
                if is_in_polygon((x + 0.5, y + 0.5))}
    covered = Counter((x, y)
                      for r in rectangles
                      for x in range(int(r.x_min), int(r.x_max))
                      for y in range(int(r.y_min), int(r.y_max)))
    assert set(covered) == expected
    assert [cell for cell, count in covered.items() if count > 1] == []


def two_holes():
    """5x3 rectangle with two unit holes one cell apart."""
    return [
        [(0, 0), (5, 0), (5, 3), (0, 3)],
        [(1, 1), (2, 1), (2, 2), (1, 2)],
        [(3, 1), (4, 1), (4, 2), (3, 2)],
    ]


def plus_with_hole():
    """Plus of 3x3 arms around a centre with a unit hole."""
    return [
        [(3, 0), (6, 0), (6, 3), (9, 3), (9, 6), (6, 6),
         (6, 9), (3, 9), (3, 6), (0, 6), (0, 3), (3, 3)],
        [(4, 4), (5, 4), (5, 5), (4, 5)],
    ]


def notch_over_hole():
    """Notched square whose notch corner lines up with a hole corner."""
    return [
        [(0, 0), (1, 0), (1, 1), (3, 1), (3, 0), (4, 0), (4, 4), (0, 4)],
        [(1, 2), (2, 2), (2, 3), (1, 3)],
    ]


def test_ring_partitions_into_four_rectangles(ring):
    rectangles = partition_into_rectangles(ring)
    assert len(rectangles) == 4
    assert total_area(rectangles) == 8
    assert_no_overlap(rectangles)
    assert_exact_cover(rectangles, ring)


def test_plus_shape_partitions_into_three_rectangles(plus_shape):
    rectangles = partition_into_rectangles([plus_shape])
    assert len(rectangles) == 3
    assert total_area(rectangles) == 5
    assert_exact_cover(rectangles, [plus_shape])


@pytest.mark.parametrize("shape, count", [
    ("l_shape", 2),
    ("u_shape", 3),
    ("staircase", 3),
    ("square", 1),
    ("comb", 21),
])
def test_area_is_preserved(shape, count, request):
    perimeter = request.getfixturevalue(shape)
    rectangles = partition_into_rectangles([perimeter])
    assert len(rectangles) == count
    assert total_area(rectangles) == get_area_of_polygon(perimeter)
    assert_exact_cover(rectangles, [perimeter])


@pytest.mark.parametrize("perimeters, count, area", [
    (two_holes(), 5, 13),
    (plus_with_hole(), 6, 44),
    (notch_over_hole(), 5, 13),
])
def test_polygons_with_holes(perimeters, count, area):
    rectangles = partition_into_rectangles(perimeters)
    assert len(rectangles) == count
    assert total_area(rectangles) == area
    assert_exact_cover(rectangles, perimeters)


def test_holes_between_chords_are_handed_on():
    decomposer = ComplexPolygonDecomposer(two_holes())
    polygons = decomposer.decompose()

    assert len(decomposer.selected_chords) == 2
    assert sorted(len(p.holes) for p in polygons) == [0, 1]
    outer = [p for p in polygons if p.holes][0]
    assert set(open_loop(outer.holes[0])) == {(1, 1), (4, 1), (4, 2), (1, 2)}


def test_chord_to_a_hole_reaches_the_rectangles_as_a_bridge():
    perimeters = notch_over_hole()
    decomposer = ComplexPolygonDecomposer(perimeters)
    polygons = decomposer.decompose()

    assert [(c.a, c.b) for c in decomposer.selected_chords] in (
        [((1, 1), (1, 2))], [((1, 2), (1, 1))])
    assert len(polygons) == 1
    assert polygons[0].bridges == {(1, 1): {(1, 2)}, (1, 2): {(1, 1)}}

    chordless = ChordlessPolygonDecomposer(polygons[0], decomposer.chords)
    chordless.decompose()
    assert chordless.extensions[0] == ((1, 1), (1, 2))


def test_area_is_preserved_with_hole(ring):
    outer, hole = ring
    expected = get_area_of_polygon(outer) - get_area_of_polygon(hole)
    assert total_area(partition_into_rectangles(ring)) == expected


def column_polygon(rng, columns):
    """
    Random x-monotone polygon: column i spans lo[i] <= y < hi[i] and
    neighbouring columns overlap by at least one cell.
    """
    lo = [rng.randint(0, 3)]
    hi = [lo[0] + rng.randint(1, 4)]
    for _ in range(columns - 1):
        lo.append(rng.randint(0, hi[-1] - 1))
        hi.append(rng.randint(max(lo[-1], lo[-2]) + 1, 7))
    points = []
    for i in range(columns):
        points += [(i, hi[i]), (i + 1, hi[i])]
    for i in reversed(range(columns)):
        points += [(i + 1, lo[i]), (i, lo[i])]

    loop = []
    for point in points:
        if loop and loop[-1] == point:
            continue
        while len(loop) >= 2 and (loop[-2][0] == loop[-1][0] == point[0] or
                                  loop[-2][1] == loop[-1][1] == point[1]):
            loop.pop()
        loop.append(point)
    return loop


def do_chords_touch(first, second):
    for axis in (0, 1):
        low = max(min(first.a[axis], first.b[axis]),
                  min(second.a[axis], second.b[axis]))
        high = min(max(first.a[axis], first.b[axis]),
                   max(second.a[axis], second.b[axis]))
        if low > high:
            return False
    return True


def get_max_disjoint_chords(chords):
    for size in range(len(chords), 0, -1):
        for subset in itertools.combinations(chords, size):
            if not any(do_chords_touch(a, b)
                       for a, b in itertools.combinations(subset, 2)):
                return size
    return 0


@pytest.mark.parametrize("seed", range(25))
def test_random_column_polygons(seed):
    rng = random.Random(seed)
    loop = column_polygon(rng, rng.randint(2, 7))
    decomposer = ComplexPolygonDecomposer([loop])
    decomposer.find_concave_vertices()
    decomposer.find_chords()
    expected = (len(decomposer.concave_vertices) -
                get_max_disjoint_chords(decomposer.chords) + 1)

    rectangles = partition_into_rectangles([loop])
    assert_exact_cover(rectangles, [loop])
    assert len(rectangles) == expected


def test_rectangle_value_type():
    rectangle = Rectangle.from_perimeter([(1, 2), (1, 4), (4, 4), (4, 2), (1, 2)])
    assert (rectangle.width, rectangle.height, rectangle.area) == (3, 2, 6)
    assert is_polygon_ccw(rectangle.corners)
