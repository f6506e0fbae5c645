"""
Road network generation loop.

Candidates wait in a priority queue keyed by their scheduling time ``t``. Each step
pops the earliest one, fits it into the network with the local constraints and, if
it survives, indexes it and asks the global goals for follow-on candidates.
"""

import logging
import math
from enum import Enum
from typing import Any, Dict, Iterator, List, NamedTuple, Optional

import shapely.geometry as sg

from . import seeds
from .config import GenerationConfig
from .density import PopulationDensity
from .geometry import Point
from .global_goals import apply_pending_link, generate_branches
from .local_constraints import DebugData, apply_local_constraints
from .quadtree import Quadtree
from .segments import MetaInfo, Segment, from_existing

logger = logging.getLogger(__name__)


class StepStatus(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXHAUSTED = "exhausted"


class GenerationSnapshot(NamedTuple):
    """State handed out after each accepted segment (read-only for consumers)."""

    segments: List[Segment]
    pending_queue: List[Segment]


class StepResult(NamedTuple):
    status: StepStatus
    snapshot: Optional[GenerationSnapshot] = None
    segment: Optional[Segment] = None


class GenerationResult(NamedTuple):
    """Final state of a completed generation run."""

    segments: List[Segment]
    qtree: Quadtree
    density: PopulationDensity
    debug_data: DebugData
    accepted_count: int
    rejected_count: int


class RoadNetworkGenerator:
    """
    Step-by-step road network generator.

    Call ``advance()`` repeatedly (or iterate the generator) until it reports
    EXHAUSTED. The outcome depends only on the seed and the configuration, never on
    how fast the caller steps.
    """

    def __init__(self, seed: seeds.Seed, config: Optional[GenerationConfig] = None):
        """
        Initialize generator.

        Args:
            seed: Seed for both the random source and the density field
            config: Generation parameters (defaults if omitted)
        """
        self.seed = seed
        self.config = config if config is not None else GenerationConfig()
        self.rng = seeds.seeded_random(seed)
        # the density field is seeded from the first draws of the same generator
        self.density = PopulationDensity(seeds.get_noise_offset(self.rng))

        self.priority_queue: List[Segment] = []
        self.segments: List[Segment] = []
        self.qtree = Quadtree(
            self.config.quadtree_bounds,
            self.config.quadtree_max_objects,
            self.config.quadtree_max_levels,
        )
        self.debug_data = DebugData()
        self.accepted_count = 0
        self.rejected_count = 0
        self.finished = False

        logger.info(
            "generating with seed %r (fingerprint %d)", seed, seeds.get_seed_fingerprint(seed)
        )
        self._seed_queue()

    def _seed_queue(self) -> None:
        # two highways leaving the origin in opposite directions
        length = self.config.segment_length(True)
        root = Segment(
            (0.0, 0.0),
            (length, 0.0),
            0.0,
            MetaInfo(highway=True),
            width=self.config.segment_width(True),
            min_speed_proportion=self.config.min_speed_proportion,
        )
        opposite = from_existing(root)
        opposite.road.end = Point(root.road.start.x - length, opposite.road.end.y)
        opposite.links.backward.append(root)
        root.links.backward.append(opposite)
        self.priority_queue.append(root)
        self.priority_queue.append(opposite)

    def _pop_next(self) -> Segment:
        # smallest t wins; ties go to the earliest queued candidate
        min_t = math.inf
        min_index = 0
        for i, segment in enumerate(self.priority_queue):
            if segment.t < min_t:
                min_t = segment.t
                min_index = i
        return self.priority_queue.pop(min_index)

    def snapshot(self) -> GenerationSnapshot:
        return GenerationSnapshot(list(self.segments), list(self.priority_queue))

    def advance(self) -> StepResult:
        """
        Evaluate the next queued candidate.

        Returns:
            ACCEPTED with a snapshot, REJECTED, or EXHAUSTED once the queue is empty
            or the segment limit is reached
        """
        if self.finished:
            return StepResult(StepStatus.EXHAUSTED)
        if not self.priority_queue or len(self.segments) >= self.config.segment_count_limit:
            self._finish()
            return StepResult(StepStatus.EXHAUSTED)

        segment = self._pop_next()
        accepted = apply_local_constraints(
            segment, self.segments, self.qtree, self.config, self.debug_data
        )
        if not accepted:
            self.rejected_count += 1
            logger.debug("rejected candidate %r", segment)
            return StepResult(StepStatus.REJECTED, segment=segment)

        apply_pending_link(segment)
        self.segments.append(segment)
        self.qtree.insert(segment.limits(), segment)
        for new_segment in generate_branches(segment, self.config, self.rng, self.density):
            new_segment.t = segment.t + 1 + new_segment.t
            self.priority_queue.append(new_segment)
        self.accepted_count += 1

        return StepResult(StepStatus.ACCEPTED, self.snapshot(), segment)

    def _finish(self) -> None:
        for segment_id, segment in enumerate(self.segments):
            segment.id = segment_id
        self.finished = True
        logger.info("%d segments generated.", len(self.segments))

    def __iter__(self) -> Iterator[GenerationSnapshot]:
        while True:
            step = self.advance()
            if step.status is StepStatus.EXHAUSTED:
                return
            if step.status is StepStatus.ACCEPTED:
                yield step.snapshot

    def run(self) -> GenerationResult:
        """Advance until exhausted and return the final network."""
        while self.advance().status is not StepStatus.EXHAUSTED:
            pass
        return self.result()

    def result(self) -> GenerationResult:
        return GenerationResult(
            segments=self.segments,
            qtree=self.qtree,
            density=self.density,
            debug_data=self.debug_data,
            accepted_count=self.accepted_count,
            rejected_count=self.rejected_count,
        )


def generate(
    seed: seeds.Seed, config: Optional[GenerationConfig] = None
) -> Iterator[GenerationSnapshot]:
    """
    Yield a snapshot after every accepted segment.

    The sequence is finite and single-use; a new call with the same seed replays it.
    """
    yield from RoadNetworkGenerator(seed, config)


def generate_network(
    seed: seeds.Seed, config: Optional[GenerationConfig] = None
) -> GenerationResult:
    """Run a full generation and return the final network."""
    return RoadNetworkGenerator(seed, config).run()


def summarize_network(segments: List[Segment]) -> Dict[str, Any]:
    """
    Summarize a road network.

    Args:
        segments: Network segments

    Returns:
        Dictionary with counts, lengths (metres) and the bounding box
    """
    lines = [
        sg.LineString([segment.road.start, segment.road.end])
        for segment in segments
        if segment.length() > 0
    ]
    highway_lines = [
        sg.LineString([segment.road.start, segment.road.end])
        for segment in segments
        if segment.meta.highway and segment.length() > 0
    ]
    network = sg.MultiLineString(lines)

    bounds = None
    if lines:
        min_x, min_y, max_x, max_y = network.bounds
        bounds = {"min_x": min_x, "min_y": min_y, "max_x": max_x, "max_y": max_y}

    return {
        "segment_count": len(segments),
        "highway_count": sum(1 for segment in segments if segment.meta.highway),
        "severed_count": sum(1 for segment in segments if segment.meta.severed),
        "total_length": network.length,
        "highway_length": sg.MultiLineString(highway_lines).length,
        "bounds": bounds,
    }
