import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

Point = Tuple[float, float]
Polygon = List[Point]


class ChordDirection(Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


def _normalised(vector: Point) -> Point:
    length = math.hypot(vector[0], vector[1])
    if length == 0:
        return (0.0, 0.0)
    return (vector[0] / length, vector[1] / length)


@dataclass(eq=False)
class Edge:
    """Segment between two points; equality ignores direction"""
    a: Point
    b: Point
    checked: bool = False
    payload: Optional[Any] = None  # e.g. originating tile and side

    def __eq__(self, other):
        if not isinstance(other, Edge):
            return NotImplemented
        return self.is_identical(other)

    def __hash__(self):
        return hash(frozenset((self.a, self.b)))

    def is_identical(self, other: "Edge") -> bool:
        return ((self.a == other.a and self.b == other.b) or
                (self.a == other.b and self.b == other.a))

    def get_reverse_edge(self) -> "Edge":
        return Edge(self.b, self.a, self.checked, self.payload)

    def get_direction(self) -> Point:
        """Unit vector pointing from a to b"""
        return _normalised((self.b[0] - self.a[0], self.b[1] - self.a[1]))


@dataclass(frozen=True)
class Chord:
    """Axis-aligned cut between two concave vertices"""
    a: Point
    b: Point
    origin_a: int = 0  # perimeter loop index of each endpoint
    origin_b: int = 0

    @property
    def direction(self) -> ChordDirection:
        if self.a[0] == self.b[0]:
            return ChordDirection.VERTICAL
        return ChordDirection.HORIZONTAL

    @property
    def key(self) -> frozenset:
        return frozenset((self.a, self.b))


class PerimVertex(NamedTuple):
    """Vertex identified by coordinate and the perimeter loop it came from"""
    vertex: Point
    origin: int


@dataclass(frozen=True)
class ConcaveVertex:
    """Concave vertex with its two perimeter neighbours"""
    vertex: Point
    prev_vertex: Point
    next_vertex: Point
    origin: int = 0

    def get_horizontal_free_direction(self) -> Point:
        """Direction of the horizontal extension into the interior."""
        if self.prev_vertex[1] == self.vertex[1]:
            adjacent = self.prev_vertex
        else:
            adjacent = self.next_vertex
        dx, dy = _normalised((adjacent[0] - self.vertex[0],
                              adjacent[1] - self.vertex[1]))
        return (-dx, dy)

    def get_vertical_free_direction(self) -> Point:
        """Direction of the vertical extension into the interior."""
        if self.prev_vertex[0] == self.vertex[0]:
            adjacent = self.prev_vertex
        else:
            adjacent = self.next_vertex
        dx, dy = _normalised((adjacent[0] - self.vertex[0],
                              adjacent[1] - self.vertex[1]))
        return (dx, -dy)


@dataclass
class Rectangle:
    """Represents an axis-aligned rectangle."""
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @classmethod
    def from_perimeter(cls, perimeter: Sequence[Point]) -> "Rectangle":
        """Build from a 4 (or closed 5) coordinate rectangle perimeter."""
        xs = [p[0] for p in perimeter]
        ys = [p[1] for p in perimeter]
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def corners(self) -> List[Point]:
        """Return corners counter-clockwise as drawn with y pointing down."""
        return [
            (self.x_min, self.y_min),
            (self.x_min, self.y_max),
            (self.x_max, self.y_max),
            (self.x_max, self.y_min)
        ]
