"""
Tests for the road network generation loop.
"""

import sys
from pathlib import Path

# Add server directory to path
server_dir = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(server_dir))

import pytest
from internal.roadgen import generation
from internal.roadgen.config import GenerationConfig
from internal.roadgen.generation import RoadNetworkGenerator, StepStatus
from internal.roadgen.geometry import Point
from internal.roadgen.segments import MetaInfo, Segment


def _endpoints(segments):
    return [
        (
            tuple(s.start),
            tuple(s.end),
            s.meta.highway,
            sorted(n.id for n in s.links.backward),
            sorted(n.id for n in s.links.forward),
        )
        for s in segments
    ]


def test_two_segment_network():
    """Test the two opposite highways form the seed of every network"""
    result = generation.generate_network("test", GenerationConfig(segment_count_limit=2))

    assert len(result.segments) == 2
    root, opposite = result.segments
    assert root.id == 0 and opposite.id == 1
    assert root.start == Point(0, 0) and root.end == Point(400, 0)
    assert opposite.start == Point(0, 0) and opposite.end == Point(-400, 0)
    assert root.meta.highway and opposite.meta.highway
    assert root.links.backward == [opposite]
    assert opposite.links.backward == [root]
    assert result.accepted_count == 2
    assert result.rejected_count == 0


def test_generation_is_deterministic():
    """Test the same seed always produces the same network"""
    config = GenerationConfig(segment_count_limit=150)

    first = generation.generate_network("determinism", config)
    second = generation.generate_network("determinism", config)

    assert _endpoints(first.segments) == _endpoints(second.segments)
    assert [s.id for s in first.segments] == list(range(len(first.segments)))


def test_different_seeds_produce_different_networks():
    """Test seeds change the generated network"""
    config = GenerationConfig(segment_count_limit=60)

    alpha = generation.generate_network("alpha", config)
    beta = generation.generate_network("beta", config)

    assert _endpoints(alpha.segments) != _endpoints(beta.segments)


def test_integer_seeds():
    """Test integer seeds are accepted"""
    result = generation.generate_network(12345, GenerationConfig(segment_count_limit=10))
    assert 0 < len(result.segments) <= 10


def test_segment_limit_is_respected():
    """Test generation stops once the segment cap is reached"""
    result = generation.generate_network("cap", GenerationConfig(segment_count_limit=40))
    # A final step may add the accepted segment and a split half
    assert len(result.segments) <= 41


def test_snapshots_only_grow():
    """Test every snapshot extends the previous one"""
    snapshots = list(generation.generate("growth", GenerationConfig(segment_count_limit=80)))

    assert snapshots
    for earlier, later in zip(snapshots, snapshots[1:]):
        assert len(later.segments) > len(earlier.segments)
        for before, after in zip(earlier.segments, later.segments):
            assert before is after


def test_snapshots_are_copies():
    """Test consumers cannot change the generator through a snapshot"""
    generator = RoadNetworkGenerator("copies", GenerationConfig(segment_count_limit=5))
    step = generator.advance()

    step.snapshot.segments.clear()
    step.snapshot.pending_queue.clear()

    assert len(generator.segments) == 1
    assert generator.priority_queue


def test_links_are_reciprocal_across_network():
    """Test every link is mirrored and no segment links to itself"""
    result = generation.generate_network("links", GenerationConfig(segment_count_limit=300))

    for segment in result.segments:
        for neighbour in segment.neighbours():
            assert neighbour is not segment
            assert any(back is segment for back in neighbour.neighbours())


def test_every_segment_is_indexed():
    """Test every accepted segment (including split halves) sits in the spatial index"""
    result = generation.generate_network("index", GenerationConfig(segment_count_limit=120))

    for segment in result.segments:
        assert result.qtree.find_node(segment) is not None
    assert len(result.qtree) == len(result.segments)


def test_step_results():
    """Test stepping reports accepted segments and then exhaustion"""
    generator = RoadNetworkGenerator("steps", GenerationConfig(segment_count_limit=1))

    step = generator.advance()
    assert step.status is StepStatus.ACCEPTED
    assert step.segment.end == Point(400, 0)
    assert len(step.snapshot.segments) == 1

    assert generator.advance().status is StepStatus.EXHAUSTED
    assert generator.advance().status is StepStatus.EXHAUSTED
    assert generator.finished
    assert generator.segments[0].id == 0


def test_rejected_candidate():
    """Test a candidate crossing a road at a shallow angle is dropped"""
    generator = RoadNetworkGenerator("reject", GenerationConfig(segment_count_limit=5))
    generator.advance()
    root = generator.segments[0]

    candidate = Segment((100, -5), (140, 5), -1.0, MetaInfo())
    generator.priority_queue.append(candidate)
    step = generator.advance()

    assert step.status is StepStatus.REJECTED
    assert step.segment is candidate
    assert step.snapshot is None
    assert generator.rejected_count == 1
    assert generator.segments == [root]
    assert root.end == Point(400, 0)


def test_branch_times_follow_acceptance():
    """Test queued branches are scheduled after the segment they grew from"""
    generator = RoadNetworkGenerator("times", GenerationConfig(segment_count_limit=50))
    generator.advance()
    root = generator.segments[0]

    for candidate in generator.priority_queue:
        if candidate.pending_link is not None:
            assert candidate.pending_link.previous is root
            assert candidate.t >= root.t + 1


def test_iterating_generator():
    """Test iterating yields one snapshot per accepted segment"""
    generator = RoadNetworkGenerator("iterate", GenerationConfig(segment_count_limit=30))

    snapshots = list(generator)

    assert len(snapshots) == generator.accepted_count
    assert generator.finished


def test_summarize_network():
    """Test network summary counts and measures"""
    highway = Segment((0, 0), (400, 0), meta=MetaInfo(highway=True))
    street = Segment((0, 0), (0, 300), meta=MetaInfo(severed=True))

    summary = generation.summarize_network([highway, street])

    assert summary["segment_count"] == 2
    assert summary["highway_count"] == 1
    assert summary["severed_count"] == 1
    assert summary["total_length"] == pytest.approx(700.0)
    assert summary["highway_length"] == pytest.approx(400.0)
    assert summary["bounds"] == {"min_x": 0.0, "min_y": 0.0, "max_x": 400.0, "max_y": 300.0}


def test_summarize_empty_network():
    """Test summary of a network with no segments"""
    summary = generation.summarize_network([])

    assert summary["segment_count"] == 0
    assert summary["total_length"] == 0
    assert summary["bounds"] is None


def test_configured_lengths_and_speed_floor():
    """Test segment lengths and the speed floor come from the configuration"""
    config = GenerationConfig(
        segment_count_limit=60,
        highway_segment_length=250,
        default_segment_length=120,
        min_speed_proportion=0.5,
    )

    generator = RoadNetworkGenerator("configured", config)
    root = generator.advance().segment
    assert root.length() == pytest.approx(250.0)
    assert root.current_speed() == pytest.approx(0.5 * root.max_speed)

    result = generator.run()
    assert len(result.segments) > 1
    for segment in result.segments:
        assert segment.min_speed_proportion == 0.5
        assert segment.cost() == pytest.approx(segment.length() / (0.5 * segment.max_speed))
