"""
Tests for proposing follow-on road segments.
"""

import sys
from pathlib import Path

# Add server directory to path
server_dir = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(server_dir))

import random

import pytest
from internal.roadgen.config import GenerationConfig
from internal.roadgen.geometry import Point
from internal.roadgen.global_goals import apply_pending_link, generate_branches
from internal.roadgen.segments import MetaInfo, PendingLink, Segment


class FlatDensity:
    """Same population everywhere"""

    def __init__(self, value):
        self.value = value

    def population_on_road(self, road):
        return self.value


class NorthernDensity:
    """More people where y is negative"""

    def population_on_road(self, road):
        return 0.8 if road.end.y < -1 else 0.5


def _config(**overrides):
    values = {
        "default_branch_probability": 0.0,
        "highway_branch_probability": 0.0,
        "random_branch_angle": lambda rng: 2.0,
        "random_straight_angle": lambda rng: 10.0,
    }
    values.update(overrides)
    return GenerationConfig(**values)


def test_severed_segment_has_no_branches():
    """Test a severed segment never grows further"""
    previous = Segment((0, 0), (300, 0), meta=MetaInfo(severed=True))

    branches = generate_branches(previous, _config(), random.Random(1), FlatDensity(1.0))

    assert branches == []


def test_street_in_empty_area_stops():
    """Test streets need population to continue"""
    previous = Segment((0, 0), (300, 0))

    branches = generate_branches(
        previous, _config(default_branch_probability=1.0), random.Random(1), FlatDensity(0.0)
    )

    assert branches == []


def test_street_continues_straight():
    """Test a populated street continues in the same direction"""
    previous = Segment((0, 0), (250, 0))

    branches = generate_branches(previous, _config(), random.Random(1), FlatDensity(0.5))

    assert len(branches) == 1
    straight = branches[0]
    assert straight.start == Point(250, 0)
    assert straight.length() == pytest.approx(250.0)
    assert straight.direction() == pytest.approx(90.0)
    assert straight.t == 0.0
    assert straight.meta.highway is False
    assert straight.meta is not previous.meta
    assert straight.pending_link == PendingLink(previous)


def test_street_branches_left_first():
    """Test a successful branch draw adds one perpendicular side street"""
    previous = Segment((0, 0), (300, 0))

    branches = generate_branches(
        previous, _config(default_branch_probability=1.0), random.Random(1), FlatDensity(0.5)
    )

    assert len(branches) == 2
    side = branches[1]
    # 90 - 90 + 2 degrees of jitter
    assert side.direction() == pytest.approx(2.0)
    assert side.length() == pytest.approx(300.0)
    assert side.t == 0.0
    assert side.width == 6.0
    assert side.pending_link.previous is previous


def test_highway_follows_population():
    """Test a highway takes the jittered continuation when it is more populated"""
    previous = Segment((0, 0), (400, 0), meta=MetaInfo(highway=True))

    branches = generate_branches(previous, _config(), random.Random(1), NorthernDensity())

    assert len(branches) == 1
    highway = branches[0]
    assert highway.meta.highway is True
    assert highway.direction() == pytest.approx(100.0)
    assert highway.length() == pytest.approx(400.0)
    assert highway.width == 16.0
    assert highway.t == 0.0


def test_highway_keeps_straight_when_equal():
    """Test ties between the two continuations go straight"""
    previous = Segment((0, 0), (400, 0), meta=MetaInfo(highway=True))

    branches = generate_branches(previous, _config(), random.Random(1), FlatDensity(0.5))

    assert len(branches) == 1
    assert branches[0].direction() == pytest.approx(90.0)


def test_highway_forks_and_spawns_delayed_street():
    """Test highway branches stay highways while side streets are delayed"""
    previous = Segment((0, 0), (400, 0), meta=MetaInfo(highway=True))
    config = _config(default_branch_probability=1.0, highway_branch_probability=1.0)

    branches = generate_branches(previous, config, random.Random(1), FlatDensity(0.5))

    assert len(branches) == 3
    continuation, fork, street = branches
    assert continuation.meta.highway is True
    assert fork.meta.highway is True
    assert fork.direction() == pytest.approx(2.0)
    assert fork.length() == pytest.approx(400.0)
    assert street.meta.highway is False
    assert street.t == pytest.approx(config.normal_branch_time_delay_from_highway)
    assert street.length() == pytest.approx(config.default_segment_length)
    for branch in branches:
        assert branch.start == previous.end


def test_highway_below_threshold_does_not_fork():
    """Test highway forks need more population than the threshold"""
    previous = Segment((0, 0), (400, 0), meta=MetaInfo(highway=True))
    config = _config(highway_branch_probability=1.0, highway_branch_population_threshold=0.6)

    branches = generate_branches(previous, config, random.Random(1), FlatDensity(0.5))

    assert len(branches) == 1


def test_default_jitter_stays_within_limits():
    """Test the built-in jitter respects the configured angle limits"""
    config = GenerationConfig(default_branch_probability=1.0)
    rng = random.Random("jitter")
    previous = Segment((0, 0), (300, 0))

    for _ in range(50):
        side = generate_branches(previous, config, rng, FlatDensity(0.5))[1]
        assert abs(side.direction()) < config.branch_angle_limit


def test_apply_pending_link_joins_junction():
    """Test an accepted branch links to its previous segment and the junction"""
    previous = Segment((0, 0), (300, 0))
    junction = Segment((300, 0), (300, 300))
    previous.links.forward.append(junction)
    junction.links.backward.append(previous)
    branch = Segment((300, 0), (600, 0))
    branch.pending_link = PendingLink(previous)

    assert apply_pending_link(branch) is previous

    assert branch.links.backward == [junction, previous]
    assert previous.links.forward == [junction, branch]
    assert junction.links.backward == [previous, branch]
    assert branch.pending_link is None
    for segment in (previous, junction, branch):
        for neighbour in segment.neighbours():
            assert any(back is segment for back in neighbour.neighbours())

    # Applying again is a no-op
    assert apply_pending_link(branch) is None
    assert branch.links.backward == [junction, previous]
