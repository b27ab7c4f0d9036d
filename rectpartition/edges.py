"""
Edge collections: ordering, closing and simplification of perimeters.
"""

import math
from collections import deque
from typing import Iterable, Iterator, List, Optional, Sequence

from .custom_types import Edge, Point, Polygon


def _same_direction(d1: Point, d2: Point) -> bool:
    return math.isclose(d1[0], d2[0]) and math.isclose(d1[1], d2[1])


def _direction(a: Point, b: Point) -> Point:
    return Edge(a, b).get_direction()


class EdgeCollection:
    """
    Ordered list of edges with set-style helpers.

    Equality between edges is undirected, so (a, b) and (b, a) are the
    same edge for every lookup done here.
    """

    def __init__(self, edges: Optional[Iterable[Edge]] = None):
        self._edges: List[Edge] = list(edges) if edges is not None else []

    @classmethod
    def from_loop(cls, vertices: Sequence[Point]) -> "EdgeCollection":
        """Edges between consecutive vertices; the loop is closed if needed."""
        points = [tuple(v) for v in vertices]
        if len(points) > 1 and points[0] != points[-1]:
            points.append(points[0])
        return cls(Edge(points[i], points[i + 1])
                   for i in range(len(points) - 1))

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __getitem__(self, index):
        return self._edges[index]

    def __repr__(self):
        return "EdgeCollection(%r)" % self._edges

    def append(self, edge: Edge):
        self._edges.append(edge)

    def is_closed(self) -> bool:
        """True if the first edge starts where the last one ends."""
        if not self._edges:
            return False
        return self._edges[0].a == self._edges[-1].b

    def has_edge_points(self, edge: Edge) -> bool:
        return any(existing.is_identical(edge) for existing in self._edges)

    def get_set_collection(self) -> "EdgeCollection":
        """Copy without duplicate edges, keeping first occurrences."""
        seen = set()
        unique = []
        for edge in self._edges:
            if edge not in seen:
                seen.add(edge)
                unique.append(edge)
        return EdgeCollection(unique)

    def get_excluded_collection(self, exclude: Iterable[Edge]
                                ) -> "EdgeCollection":
        """Copy without any edge that appears in exclude."""
        excluded = set(exclude)
        return EdgeCollection(e for e in self._edges if e not in excluded)

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def get_ordered_collection(self) -> "EdgeCollection":
        """
        Link edges into a single chain.

        Starting from the first edge, any unchecked edge sharing a
        coordinate with either end of the chain is attached there (reversed
        if needed). Ordering stops once neither end can grow; edges that
        were never reached are left out, so calling this again on the
        excluded collection yields the next disconnected group.
        """
        for edge in self._edges:
            edge.checked = False
        if not self._edges:
            return EdgeCollection()

        ordered = deque([self._edges[0]])
        self._edges[0].checked = True
        while len(ordered) < len(self._edges):
            back_edge = ordered[-1]
            back_conn = self._grab_connected_edge(back_edge)
            if back_conn is not None:
                back_conn.checked = True
                ordered.append(back_conn if back_conn.a == back_edge.b
                               else back_conn.get_reverse_edge())

            # reversed so that its b is the chain's first coordinate
            front_edge = ordered[0].get_reverse_edge()
            front_conn = self._grab_connected_edge(front_edge)
            if front_conn is not None:
                front_conn.checked = True
                ordered.appendleft(front_conn if front_conn.b == front_edge.b
                                   else front_conn.get_reverse_edge())

            if back_conn is None and front_conn is None:
                break
        return EdgeCollection(ordered)

    def _grab_connected_edge(self, reference: Edge) -> Optional[Edge]:
        for edge in self._edges:
            if edge.checked or edge.is_identical(reference):
                continue
            if edge.a == reference.b or edge.b == reference.b:
                return edge
        return None

    # -------------------------------------------------------------------------
    # Simplification
    # -------------------------------------------------------------------------

    def get_simplified_perim(self) -> Polygon:
        """
        Vertices of the ordered chain with collinear runs merged.

        Closed chains come back in closed-loop form. Returns an empty list
        if the edges are unordered or disconnected.
        """
        if not self._edges:
            return []
        start = self._edges[0].a
        perim: Polygon = []
        for edge in self._edges:
            if not perim:
                perim = [edge.a, edge.b]
                continue
            if edge.a != perim[-1]:
                return []
            if edge.b == start:
                perim = self._process_final_extension(perim, edge)
            else:
                perim = self._process_extension(perim, edge)
        return perim

    @staticmethod
    def _process_extension(perim: Polygon, edge: Edge) -> Polygon:
        perim = list(perim)
        previous = _direction(perim[-2], perim[-1])
        if _same_direction(previous, edge.get_direction()):
            perim[-1] = edge.b
        else:
            perim.append(edge.b)
        return perim

    @staticmethod
    def _process_final_extension(perim: Polygon, final_edge: Edge) -> Polygon:
        perim = list(perim)
        previous_a, previous_b = perim[-2], perim[-1]
        first_a, first_b = perim[0], perim[1]
        previous = _direction(previous_a, previous_b)
        first = _direction(first_a, first_b)
        final = final_edge.get_direction()

        if _same_direction(previous, final) and _same_direction(first, final):
            # previous, final and first edges collapse into one
            perim[0] = previous_a
            perim.pop()
        elif _same_direction(previous, final):
            perim[-1] = first_a
        elif _same_direction(first, final):
            perim[0] = previous_b
        else:
            perim.append(first_a)
        return perim
