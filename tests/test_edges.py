from rectpartition.custom_types import Edge
from rectpartition.edges import EdgeCollection


def test_edge_equality_is_undirected():
    assert Edge((0, 0), (1, 0)) == Edge((1, 0), (0, 0))
    assert hash(Edge((0, 0), (1, 0))) == hash(Edge((1, 0), (0, 0)))
    assert Edge((0, 0), (1, 0)) != Edge((0, 0), (0, 1))


def test_edge_direction_and_reverse():
    edge = Edge((0, 0), (0, 3))
    assert edge.get_direction() == (0.0, 1.0)
    reverse = edge.get_reverse_edge()
    assert (reverse.a, reverse.b) == ((0, 3), (0, 0))


def test_from_loop_closes_open_loops():
    collection = EdgeCollection.from_loop([(0, 0), (0, 1), (1, 1), (1, 0)])
    assert len(collection) == 4
    assert collection.is_closed()


def test_set_helpers():
    collection = EdgeCollection([
        Edge((0, 0), (1, 0)), Edge((1, 0), (0, 0)), Edge((1, 0), (1, 1))])
    unique = collection.get_set_collection()
    assert len(unique) == 2
    assert unique.has_edge_points(Edge((1, 1), (1, 0)))

    remaining = collection.get_excluded_collection([Edge((0, 0), (1, 0))])
    assert len(remaining) == 1
    assert not remaining.has_edge_points(Edge((0, 0), (1, 0)))


def test_get_ordered_collection_links_shuffled_edges():
    collection = EdgeCollection([
        Edge((0, 0), (1, 0)),
        Edge((1, 1), (0, 1)),
        Edge((1, 0), (1, 1)),
        Edge((0, 1), (0, 0)),
    ])
    ordered = collection.get_ordered_collection()
    assert len(ordered) == 4
    for first, second in zip(ordered, ordered[1:]):
        assert first.b == second.a
    assert ordered.is_closed()


def test_get_ordered_collection_stops_at_disconnected_edges():
    collection = EdgeCollection([
        Edge((0, 0), (1, 0)), Edge((5, 5), (6, 5)), Edge((1, 0), (1, 1))])
    ordered = collection.get_ordered_collection()
    assert len(ordered) == 2
    rest = collection.get_excluded_collection(ordered)
    assert len(rest.get_ordered_collection()) == 1


def test_get_simplified_perim_merges_collinear_edges():
    collection = EdgeCollection.from_loop([(0, 0), (1, 0), (2, 0), (2, 2), (0, 2)])
    assert collection.get_simplified_perim() == [
        (0, 0), (2, 0), (2, 2), (0, 2), (0, 0)]


def test_get_simplified_perim_moves_seam_off_collinear_start():
    collection = EdgeCollection.from_loop([(1, 0), (2, 0), (2, 2), (0, 2), (0, 0)])
    assert collection.get_simplified_perim() == [
        (0, 0), (2, 0), (2, 2), (0, 2), (0, 0)]


def test_get_simplified_perim_collapses_seam_inside_a_run():
    collection = EdgeCollection.from_loop(
        [(1, 0), (2, 0), (2, 2), (0, 2), (0, 0), (0.5, 0)])
    perim = collection.get_simplified_perim()
    assert perim[0] == perim[-1]
    assert set(perim) == {(0, 0), (2, 0), (2, 2), (0, 2)}


def test_get_simplified_perim_rejects_disconnected_edges():
    collection = EdgeCollection([Edge((0, 0), (1, 0)), Edge((5, 5), (6, 5))])
    assert collection.get_simplified_perim() == []
