"""
Vector and line geometry helpers for road network generation.
Coordinates are (x, y) with y growing downwards; angles are in degrees.
"""

import math
from typing import NamedTuple, Optional

# Parameters this close to a segment end count as touching, not crossing
INTERSECTION_END_TOLERANCE = 0.001


class Point(NamedTuple):
    x: float
    y: float


UP = Point(0.0, 1.0)


class Intersection(NamedTuple):
    """Crossing point of two segments and its parameter along the first one."""

    x: float
    y: float
    t: float

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


class LineDistance(NamedTuple):
    """Result of projecting a point onto the line through a segment."""

    distance2: float  # squared distance from the point to its projection
    point_on_line: Point
    line_proj2: float  # signed squared length of the projection along the segment
    length2: float  # squared segment length


def subtract_points(a, b) -> Point:
    return Point(a[0] - b[0], a[1] - b[1])


def add_points(a, b) -> Point:
    return Point(a[0] + b[0], a[1] + b[1])


def scale_vector(v, factor: float) -> Point:
    return Point(v[0] * factor, v[1] * factor)


def cross_product(a, b) -> float:
    return a[0] * b[1] - a[1] * b[0]


def dot_product(a, b) -> float:
    return a[0] * b[0] + a[1] * b[1]


def sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def vector_length(v) -> float:
    return math.hypot(v[0], v[1])


def length(a, b) -> float:
    """Euclidean distance between two points."""
    return vector_length(subtract_points(b, a))


def length2(a, b) -> float:
    """Squared Euclidean distance between two points."""
    d = subtract_points(b, a)
    return d[0] * d[0] + d[1] * d[1]


def equal_points(a, b) -> bool:
    """Exact point equality."""
    return a[0] == b[0] and a[1] == b[1]


def angle_between(v1, v2) -> float:
    """
    Unsigned angle between two vectors.

    Returns:
        Angle in degrees in [0, 180]; 0 if either vector has zero length
    """
    # exact for parallel and anti-parallel vectors
    return math.degrees(math.atan2(abs(cross_product(v1, v2)), dot_product(v1, v2)))


def clockwise_direction(start, end) -> float:
    """
    Signed clockwise angle of ``start -> end`` measured from the up vector.

    Args:
        start: Segment start point
        end: Segment end point

    Returns:
        Direction in degrees in [-180, 180]
    """
    vector = subtract_points(end, start)
    # straight down has a zero cross product but is +180, not 0
    side = sign(cross_product(UP, vector)) or -1
    return -1 * side * angle_between(UP, vector)


def point_from_direction(start, direction: float, distance: float) -> Point:
    """Point reached by travelling ``distance`` from ``start`` along ``direction``."""
    radians = math.radians(direction)
    return Point(
        start[0] + distance * math.sin(radians),
        start[1] + distance * math.cos(radians),
    )


def min_degree_difference(d1: float, d2: float) -> float:
    """Smallest angle between two undirected directions, in [0, 90]."""
    diff = abs(d1 - d2) % 180
    return min(diff, abs(diff - 180))


def segments_intersect(p, p2, q, q2, omit_ends: bool = True) -> Optional[Intersection]:
    """
    Intersect segment ``p -> p2`` with segment ``q -> q2``.

    Parallel and collinear segments never intersect. With ``omit_ends`` a crossing
    within INTERSECTION_END_TOLERANCE of any endpoint is ignored, so segments that
    merely share a vertex do not count as crossing.

    Args:
        p: First segment start
        p2: First segment end
        q: Second segment start
        q2: Second segment end
        omit_ends: Ignore touches at the endpoints

    Returns:
        Intersection with the parameter along the first segment, or None
    """
    r = subtract_points(p2, p)
    s = subtract_points(q2, q)
    qp = subtract_points(q, p)

    u_numerator = cross_product(qp, r)
    denominator = cross_product(r, s)

    if denominator == 0:
        # Parallel or collinear
        return None

    u = u_numerator / denominator
    t = cross_product(qp, s) / denominator

    if omit_ends:
        low = INTERSECTION_END_TOLERANCE
        high = 1 - INTERSECTION_END_TOLERANCE
        crosses = low < t < high and low < u < high
    else:
        crosses = 0 <= t <= 1 and 0 <= u <= 1

    if not crosses:
        return None
    return Intersection(p[0] + t * r[0], p[1] + t * r[1], t)


def distance_to_line(point, a, b) -> LineDistance:
    """
    Project ``point`` onto the infinite line through ``a`` and ``b``.

    The projection lies on the segment itself when
    ``0 <= line_proj2 <= length2``.
    """
    ap = subtract_points(point, a)
    ab = subtract_points(b, a)
    ab_length2 = dot_product(ab, ab)
    dot = dot_product(ap, ab)

    if ab_length2 == 0:
        projected = Point(0.0, 0.0)
    else:
        projected = scale_vector(ab, dot / ab_length2)

    on_line = add_points(a, projected)
    return LineDistance(
        distance2=length2(on_line, point),
        point_on_line=on_line,
        line_proj2=sign(dot) * dot_product(projected, projected),
        length2=ab_length2,
    )
