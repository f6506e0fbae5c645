"""
Quadtree spatial index.
Maps axis-aligned rectangles to payloads and answers conservative region queries.
"""

import math
from typing import Any, List, Optional, Tuple

# Quadrant indices (y grows downwards)
TOP_RIGHT = 0
TOP_LEFT = 1
BOTTOM_LEFT = 2
BOTTOM_RIGHT = 3


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class Bounds:
    """Axis-aligned rectangle with its origin at the top-left corner."""

    __slots__ = ("x", "y", "width", "height")

    def __init__(self, x: float, y: float, width: float, height: float):
        """
        Initialize bounds.

        Args:
            x: Left edge
            y: Top edge
            width: Width (must not be negative)
            height: Height (must not be negative)

        Raises:
            ValueError: If width or height is negative
        """
        if width < 0 or height < 0:
            raise ValueError(
                f"Bounds width and height must be non-negative, got {width}x{height}"
            )
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    @classmethod
    def from_points(cls, a: Tuple[float, float], b: Tuple[float, float]) -> "Bounds":
        """Smallest bounds containing both points."""
        return cls(
            min(a[0], b[0]),
            min(a[1], b[1]),
            abs(a[0] - b[0]),
            abs(a[1] - b[1]),
        )

    def __eq__(self, other):
        if not isinstance(other, Bounds):
            return NotImplemented
        return (self.x, self.y, self.width, self.height) == (
            other.x,
            other.y,
            other.width,
            other.height,
        )

    def __repr__(self):
        return f"Bounds(x={self.x}, y={self.y}, width={self.width}, height={self.height})"


class Quadtree:
    """
    Region quadtree over rectangles.

    A node stores entries directly until it holds more than ``max_objects`` of them,
    then splits into four children and pushes down every entry that fits entirely
    inside one child. Entries straddling a midpoint stay at the node.
    """

    def __init__(
        self, bounds: Bounds, max_objects: int = 10, max_levels: int = 4, level: int = 0
    ):
        """
        Initialize a quadtree node.

        Args:
            bounds: Area covered by this node
            max_objects: Entries a node holds before it splits
            max_levels: Depth at which nodes stop splitting
            level: Depth of this node (0 for the root)
        """
        if not isinstance(bounds, Bounds):
            bounds = Bounds(*bounds)
        self.bounds = bounds
        self.max_objects = max_objects
        self.max_levels = max_levels
        self.level = level
        self.objects: List[Tuple[Bounds, Any]] = []
        self.nodes: List["Quadtree"] = []

    def split(self) -> None:
        """Create the four child nodes."""
        next_level = self.level + 1
        width = _round_half_up(self.bounds.width / 2)
        height = _round_half_up(self.bounds.height / 2)
        x = _round_half_up(self.bounds.x)
        y = _round_half_up(self.bounds.y)

        self.nodes = [
            Quadtree(Bounds(x + width, y, width, height), self.max_objects, self.max_levels, next_level),
            Quadtree(Bounds(x, y, width, height), self.max_objects, self.max_levels, next_level),
            Quadtree(Bounds(x, y + height, width, height), self.max_objects, self.max_levels, next_level),
            Quadtree(Bounds(x + width, y + height, width, height), self.max_objects, self.max_levels, next_level),
        ]

    def get_index(self, rect: Bounds) -> int:
        """
        Determine which child quadrant fully contains ``rect``.

        Args:
            rect: Rectangle to classify

        Returns:
            Quadrant index (0-3), or -1 if ``rect`` straddles a midpoint
        """
        vertical_midpoint = self.bounds.x + (self.bounds.width / 2)
        horizontal_midpoint = self.bounds.y + (self.bounds.height / 2)

        top = rect.y < horizontal_midpoint and rect.y + rect.height < horizontal_midpoint
        bottom = rect.y > horizontal_midpoint

        if rect.x < vertical_midpoint and rect.x + rect.width < vertical_midpoint:
            if top:
                return TOP_LEFT
            if bottom:
                return BOTTOM_LEFT
        elif rect.x > vertical_midpoint:
            if top:
                return TOP_RIGHT
            if bottom:
                return BOTTOM_RIGHT
        return -1

    def insert(self, rect: Bounds, payload: Any) -> None:
        """
        Insert ``payload`` covering ``rect``.

        Args:
            rect: Bounding rectangle of the payload
            payload: Value returned by later region queries
        """
        if self.nodes:
            index = self.get_index(rect)
            if index != -1:
                self.nodes[index].insert(rect, payload)
                return

        self.objects.append((rect, payload))

        if len(self.objects) > self.max_objects and self.level < self.max_levels:
            if not self.nodes:
                self.split()

            i = 0
            while i < len(self.objects):
                index = self.get_index(self.objects[i][0])
                if index != -1:
                    entry_rect, entry_payload = self.objects.pop(i)
                    self.nodes[index].insert(entry_rect, entry_payload)
                else:
                    i += 1

    def retrieve(self, rect: Bounds) -> List[Any]:
        """
        Return every payload that could overlap ``rect``.

        The result is a superset; callers still need exact geometry checks.
        """
        found = [payload for _, payload in self.objects]

        if self.nodes:
            index = self.get_index(rect)
            if index != -1:
                found.extend(self.nodes[index].retrieve(rect))
            else:
                for node in self.nodes:
                    found.extend(node.retrieve(rect))

        return found

    def clear(self) -> None:
        """Remove all entries and child nodes."""
        self.objects = []
        for node in self.nodes:
            node.clear()
        self.nodes = []

    def depth(self) -> int:
        """Deepest level reached by this node or its descendants."""
        if not self.nodes:
            return self.level
        return max(node.depth() for node in self.nodes)

    def __len__(self) -> int:
        return len(self.objects) + sum(len(node) for node in self.nodes)

    def find_node(self, payload: Any) -> Optional["Quadtree"]:
        """Return the node storing ``payload`` directly, if any."""
        for _, stored in self.objects:
            if stored is payload:
                return self
        for node in self.nodes:
            found = node.find_node(payload)
            if found is not None:
                return found
        return None
