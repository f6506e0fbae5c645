"""
Local constraints: fit a candidate segment into the existing network.

Every segment near the candidate is checked for three situations, strongest first:

- crossing (priority 4): the candidate crosses another road; the nearest crossing
  along the candidate wins.
- snap (priority 3): the candidate ends close to another road's end vertex.
- radius (priority 2): the candidate ends close to the body of another road.

Only the single winning action is resolved. Resolution may truncate the candidate,
split the other road and rewire links, or reject the candidate outright.
"""

from enum import IntEnum
from typing import List, Optional

from . import geometry
from .config import GenerationConfig
from .geometry import Intersection, Point
from .quadtree import Quadtree
from .segments import Segment


class ActionKind(IntEnum):
    """Constraint actions, valued by priority."""

    NONE = 0
    RADIUS = 2
    SNAP = 3
    INTERSECTION = 4


class ConstraintAction:
    """The strongest constraint found so far for a candidate."""

    __slots__ = ("kind", "other", "point", "t")

    def __init__(self):
        self.kind = ActionKind.NONE
        self.other: Optional[Segment] = None
        self.point: Optional[Point] = None
        self.t: Optional[float] = None

    @property
    def priority(self) -> int:
        return int(self.kind)

    def set(self, kind: ActionKind, other: Segment, point: Point) -> None:
        self.kind = kind
        self.other = other
        self.point = point


class DebugData:
    """Points where constraints changed the network, kept for inspection."""

    def __init__(self):
        self.snaps: List[Point] = []
        self.intersections_radius: List[Point] = []
        self.intersections: List[Intersection] = []


def find_action(
    segment: Segment, qtree: Quadtree, config: GenerationConfig
) -> ConstraintAction:
    """
    Scan nearby segments and pick the constraint to apply to ``segment``.

    Args:
        segment: Candidate segment
        qtree: Spatial index of the accepted network
        config: Generation parameters (snap distance)

    Returns:
        The winning action (kind NONE if nothing applies)
    """
    action = ConstraintAction()
    snap_distance = config.road_snap_distance

    for other in qtree.retrieve(segment.limits()):
        # crossing check
        if action.priority <= ActionKind.INTERSECTION:
            intersection = geometry.segments_intersect(
                segment.road.start, segment.road.end, other.road.start, other.road.end, True
            )
            if intersection is not None and (action.t is None or intersection.t < action.t):
                action.t = intersection.t
                action.set(ActionKind.INTERSECTION, other, intersection.point)

        # snap to an existing vertex within radius
        if action.priority <= ActionKind.SNAP:
            if geometry.length(segment.road.end, other.road.end) <= snap_distance:
                action.set(ActionKind.SNAP, other, other.road.end)

        # snap onto an existing road within radius
        if action.priority <= ActionKind.RADIUS:
            distance = geometry.distance_to_line(segment.road.end, other.road.start, other.road.end)
            if (
                distance.distance2 < snap_distance * snap_distance
                and 0 <= distance.line_proj2 <= distance.length2
            ):
                action.set(ActionKind.RADIUS, other, distance.point_on_line)

    return action


def _too_aligned(segment: Segment, other: Segment, config: GenerationConfig) -> bool:
    deviation = geometry.min_degree_difference(other.direction(), segment.direction())
    return deviation < config.minimum_intersection_deviation


def _resolve_intersection(
    segment: Segment,
    action: ConstraintAction,
    segments: List[Segment],
    qtree: Quadtree,
    config: GenerationConfig,
    debug_data: DebugData,
) -> bool:
    other = action.other
    if _too_aligned(segment, other, config):
        return False
    point = action.point
    other.split(point, segment, segments, qtree)
    segment.road.end = point
    segment.meta.severed = True
    debug_data.intersections.append(Intersection(point.x, point.y, action.t))
    return True


def _resolve_snap(
    segment: Segment,
    action: ConstraintAction,
    debug_data: DebugData,
) -> bool:
    other = action.other
    point = action.point
    start = segment.road.start
    links = other.links_at_end()

    # duplicate roads are rejected before anything is touched
    for link in links:
        if (
            geometry.equal_points(link.road.start, point)
            and geometry.equal_points(link.road.end, start)
        ) or (
            geometry.equal_points(link.road.start, start)
            and geometry.equal_points(link.road.end, point)
        ):
            return False

    segment.road.end = point
    segment.meta.severed = True
    for link in links:
        link.links_for_end_containing(other).append(segment)
        segment.links.forward.append(link)
    links.append(segment)
    segment.links.forward.append(other)
    debug_data.snaps.append(point)
    return True


def _resolve_radius(
    segment: Segment,
    action: ConstraintAction,
    segments: List[Segment],
    qtree: Quadtree,
    config: GenerationConfig,
    debug_data: DebugData,
) -> bool:
    other = action.other
    point = action.point
    segment.road.end = point
    segment.meta.severed = True
    if _too_aligned(segment, other, config):
        return False
    other.split(point, segment, segments, qtree)
    debug_data.intersections_radius.append(point)
    return True


def apply_local_constraints(
    segment: Segment,
    segments: List[Segment],
    qtree: Quadtree,
    config: GenerationConfig,
    debug_data: Optional[DebugData] = None,
) -> bool:
    """
    Fit ``segment`` into the network, modifying it and its neighbours as needed.

    Args:
        segment: Candidate segment (not yet in the network)
        segments: Accepted segments; split halves are appended here
        qtree: Spatial index of the accepted network
        config: Generation parameters
        debug_data: Optional collector for snap and intersection points

    Returns:
        True if the candidate should be accepted, False if it must be dropped
    """
    if debug_data is None:
        debug_data = DebugData()

    action = find_action(segment, qtree, config)

    if action.kind == ActionKind.INTERSECTION:
        return _resolve_intersection(segment, action, segments, qtree, config, debug_data)
    if action.kind == ActionKind.SNAP:
        return _resolve_snap(segment, action, debug_data)
    if action.kind == ActionKind.RADIUS:
        return _resolve_radius(segment, action, segments, qtree, config, debug_data)
    return True
