"""
Road segment model.

A segment is one edge of the road network. Its geometry lives in a mutable ``Road``
whose revision counter bumps on every endpoint change; direction, length and
bounding box are cached against that counter.

Links are undirected and reciprocal but split into two lists, ``backward`` and
``forward``. Which list belongs to which geometric end is not stored: it is derived
from the geometry of the first link (see ``Segment.start_is_backwards``).
"""

from enum import Enum
from typing import List, NamedTuple, Optional

from . import geometry
from .geometry import Point
from .quadtree import Bounds, Quadtree

# Road classes: (width, max speed, capacity)
HIGHWAY_SEGMENT_WIDTH = 16.0
DEFAULT_SEGMENT_WIDTH = 6.0
HIGHWAY_MAX_SPEED = 1200.0
DEFAULT_MAX_SPEED = 800.0
HIGHWAY_CAPACITY = 12
DEFAULT_CAPACITY = 6

DEFAULT_SEGMENT_LENGTH = 300.0
MIN_SPEED_PROPORTION = 0.1

# Debug colours for Segment.debug_links
SELECTED_COLOR = 0x00FF00
BACKWARD_COLOR = 0xFF0000
FORWARD_COLOR = 0x0000FF


class SegmentEnd(Enum):
    START = "start"
    END = "end"


class MetaInfo:
    """Meta-information used by the global goals."""

    def __init__(self, highway: bool = False, severed: bool = False, color: Optional[int] = None):
        self.highway = highway
        self.severed = severed
        self.color = color

    def copy(self) -> "MetaInfo":
        return MetaInfo(self.highway, self.severed, self.color)

    def __repr__(self):
        return f"MetaInfo(highway={self.highway}, severed={self.severed})"


class Road:
    """Mutable endpoints of a segment plus a change counter."""

    __slots__ = ("_start", "_end", "revision")

    def __init__(self, start, end):
        self._start = Point(start[0], start[1])
        self._end = Point(end[0], end[1])
        self.revision = 0

    @property
    def start(self) -> Point:
        return self._start

    @start.setter
    def start(self, value) -> None:
        self._start = Point(value[0], value[1])
        self.revision += 1

    @property
    def end(self) -> Point:
        return self._end

    @end.setter
    def end(self, value) -> None:
        self._end = Point(value[0], value[1])
        self.revision += 1

    def __repr__(self):
        return f"Road({tuple(self._start)} -> {tuple(self._end)})"


class Links:
    """Neighbour lists of a segment."""

    __slots__ = ("backward", "forward")

    def __init__(self):
        self.backward: List["Segment"] = []
        self.forward: List["Segment"] = []


class PendingLink(NamedTuple):
    """Link setup applied when a branch candidate gets accepted."""

    previous: "Segment"


class Segment:
    """One piece of road in the network."""

    def __init__(
        self,
        start,
        end,
        t: float = 0.0,
        meta: Optional[MetaInfo] = None,
        width: Optional[float] = None,
        min_speed_proportion: float = MIN_SPEED_PROPORTION,
    ):
        """
        Initialize segment.

        Args:
            start: Start point (x, y)
            end: End point (x, y)
            t: Scheduling delay before the segment is evaluated
            meta: Meta-information (a normal street if omitted)
            width: Road width (defaults by road class)
            min_speed_proportion: Speed floor as a proportion of max speed
        """
        if meta is None:
            meta = MetaInfo()
        self.road = Road(start, end)
        self.t = t
        self.meta = meta
        if meta.highway:
            self.width = HIGHWAY_SEGMENT_WIDTH if width is None else width
            self.max_speed = HIGHWAY_MAX_SPEED
            self.capacity = HIGHWAY_CAPACITY
        else:
            self.width = DEFAULT_SEGMENT_WIDTH if width is None else width
            self.max_speed = DEFAULT_MAX_SPEED
            self.capacity = DEFAULT_CAPACITY
        self.links = Links()
        self.occupants: List[int] = []
        self.id: Optional[int] = None
        self.pending_link: Optional[PendingLink] = None
        self.min_speed_proportion = min_speed_proportion

        self._cached_direction = 0.0
        self._direction_revision: Optional[int] = None
        self._cached_length = 0.0
        self._length_revision: Optional[int] = None
        self._cached_limits: Optional[Bounds] = None
        self._limits_revision: Optional[int] = None

    @property
    def start(self) -> Point:
        return self.road.start

    @property
    def end(self) -> Point:
        return self.road.end

    @property
    def highway(self) -> bool:
        return self.meta.highway

    def limits(self) -> Bounds:
        """Bounding box of the two endpoints."""
        if self._limits_revision != self.road.revision:
            self._limits_revision = self.road.revision
            self._cached_limits = Bounds.from_points(self.road.start, self.road.end)
        return self._cached_limits

    def direction(self) -> float:
        """Clockwise direction in degrees, measured from the up vector."""
        if self._direction_revision != self.road.revision:
            self._direction_revision = self.road.revision
            self._cached_direction = geometry.clockwise_direction(self.road.start, self.road.end)
        return self._cached_direction

    def length(self) -> float:
        if self._length_revision != self.road.revision:
            self._length_revision = self.road.revision
            self._cached_length = geometry.length(self.road.start, self.road.end)
        return self._cached_length

    def current_speed(self, min_speed_proportion: Optional[float] = None) -> float:
        """
        Throughput speed given the current occupants.

        A single occupant travels at full speed; further occupants reduce the
        proportion linearly with capacity, and the proportion is taken as the
        ``min`` with the floor (the segment's own floor unless one is given).
        """
        if min_speed_proportion is None:
            min_speed_proportion = self.min_speed_proportion
        # subtract 1 so that a single occupant can go full speed
        proportion = 1 - max(0, len(self.occupants) - 1) / self.capacity
        return min(min_speed_proportion, proportion) * self.max_speed

    def cost(self, min_speed_proportion: Optional[float] = None) -> float:
        """Time to traverse the segment at its current speed."""
        return self.length() / self.current_speed(min_speed_proportion)

    def cost_to(self, other: "Segment", from_fraction: Optional[float] = None) -> float:
        """
        Cost of travelling along this segment towards ``other``.

        Args:
            other: Linked segment
            from_fraction: Position along this segment (0 = start) where travel begins

        Returns:
            Half the cost by default, otherwise the cost of the remaining fraction
        """
        segment_end = self.end_containing(other)
        fraction = 0.5
        if from_fraction is not None:
            if segment_end == SegmentEnd.START:
                fraction = from_fraction
            else:
                fraction = 1 - from_fraction
        return self.cost() * fraction

    def neighbours(self) -> List["Segment"]:
        return self.links.forward + self.links.backward

    def debug_links(self) -> None:
        """Colour this segment and its neighbours for inspection."""
        self.meta.color = SELECTED_COLOR
        for backward in self.links.backward:
            backward.meta.color = BACKWARD_COLOR
        for forward in self.links.forward:
            forward.meta.color = FORWARD_COLOR

    def start_is_backwards(self) -> bool:
        """
        Whether the backward links sit at this segment's start.

        Decided from the first backward link (does it touch our start?) or, without
        backward links, the first forward link (does it touch our end?). A segment
        with no links counts as start-backwards.
        """
        if self.links.backward:
            link = self.links.backward[0]
            return geometry.equal_points(link.road.start, self.road.start) or geometry.equal_points(
                link.road.end, self.road.start
            )
        if self.links.forward:
            link = self.links.forward[0]
            return geometry.equal_points(link.road.start, self.road.end) or geometry.equal_points(
                link.road.end, self.road.end
            )
        return True

    def end_containing(self, other: "Segment") -> Optional[SegmentEnd]:
        """Geometric end at which ``other`` is linked, or None if not linked."""
        start_backwards = self.start_is_backwards()
        if _contains(self.links.backward, other):
            return SegmentEnd.START if start_backwards else SegmentEnd.END
        if _contains(self.links.forward, other):
            return SegmentEnd.END if start_backwards else SegmentEnd.START
        return None

    def links_for_end_containing(self, other: "Segment") -> Optional[List["Segment"]]:
        """The link list (not a copy) holding ``other``."""
        if _contains(self.links.backward, other):
            return self.links.backward
        if _contains(self.links.forward, other):
            return self.links.forward
        return None

    def links_at_end(self) -> List["Segment"]:
        """The link list (not a copy) attached to the geometric end."""
        return self.links.forward if self.start_is_backwards() else self.links.backward

    def split(
        self,
        point,
        crossing: "Segment",
        segment_list: List["Segment"],
        qtree: Quadtree,
    ) -> "Segment":
        """
        Split this segment at ``point`` where ``crossing`` meets it.

        A copy is created for the start half (start -> point) while this segment keeps
        the end half (point -> end). Neighbours at the start are relinked to the copy,
        both halves link to each other and to ``crossing``, and ``crossing`` gains both
        halves as forward links.

        Args:
            point: Split point on this segment
            crossing: Segment that meets this one at ``point``
            segment_list: Network segment list; the copy is appended
            qtree: Spatial index; the copy is inserted

        Returns:
            The new start-half segment
        """
        split_part = from_existing(self)
        start_is_backwards = self.start_is_backwards()
        segment_list.append(split_part)
        qtree.insert(split_part.limits(), split_part)
        split_part.road.end = point
        self.road.start = point

        split_part.links.backward = list(self.links.backward)
        split_part.links.forward = list(self.links.forward)

        # determine which links correspond to which end of the split segment
        if start_is_backwards:
            first_split = split_part
            second_split = self
            fix_links = split_part.links.backward
        else:
            first_split = self
            second_split = split_part
            fix_links = split_part.links.forward

        for link in fix_links:
            if not _replace(link.links.backward, self, split_part):
                _replace(link.links.forward, self, split_part)

        first_split.links.forward = [crossing, second_split]
        second_split.links.backward = [crossing, first_split]
        crossing.links.forward.append(first_split)
        crossing.links.forward.append(second_split)
        return split_part

    def __repr__(self):
        kind = "highway" if self.meta.highway else "street"
        return f"Segment(id={self.id}, {kind}, {tuple(self.start)} -> {tuple(self.end)}, t={self.t})"


def _contains(links: List[Segment], segment: Segment) -> bool:
    return any(link is segment for link in links)


def _replace(links: List[Segment], old: Segment, new: Segment) -> bool:
    for i, link in enumerate(links):
        if link is old:
            links[i] = new
            return True
    return False


def from_existing(
    segment: Segment,
    t: Optional[float] = None,
    road: Optional[Road] = None,
    meta: Optional[MetaInfo] = None,
) -> Segment:
    """
    Copy a segment's geometry, delay and meta-information (links are not copied).

    Args:
        segment: Segment to copy
        t: Delay override
        road: Road override
        meta: Meta-information override (copied)

    Returns:
        New unlinked segment
    """
    t = segment.t if t is None else t
    road = segment.road if road is None else road
    meta = segment.meta if meta is None else meta
    return Segment(
        road.start,
        road.end,
        t,
        meta.copy(),
        width=segment.width,
        min_speed_proportion=segment.min_speed_proportion,
    )


def using_direction(
    start,
    direction: float = 90.0,
    length: float = DEFAULT_SEGMENT_LENGTH,
    t: float = 0.0,
    meta: Optional[MetaInfo] = None,
    width: Optional[float] = None,
    min_speed_proportion: float = MIN_SPEED_PROPORTION,
) -> Segment:
    """
    Create a segment from a start point, clockwise direction and length.

    Args:
        start: Start point (x, y)
        direction: Clockwise direction in degrees from the up vector
        length: Segment length
        t: Scheduling delay
        meta: Meta-information (a normal street if omitted)
        width: Road width (defaults by road class)
        min_speed_proportion: Speed floor as a proportion of max speed

    Returns:
        New unlinked segment
    """
    end = geometry.point_from_direction(start, direction, length)
    return Segment(start, end, t, meta, width=width, min_speed_proportion=min_speed_proportion)
