"""
Global goals: propose follow-on segments for an accepted segment.

Highways keep going in whichever of two directions (straight or slightly turned) has
more population and occasionally fork into new highways. Streets continue only
through populated areas. Both can spawn perpendicular side streets.
"""

import random
from typing import List, Optional

from .config import GenerationConfig
from .density import PopulationDensity
from .segments import MetaInfo, PendingLink, Segment, using_direction


def _continuation(previous: Segment, direction: float, config: GenerationConfig) -> Segment:
    # used for highways or going straight on a street
    return using_direction(
        previous.road.end,
        direction,
        previous.length(),
        0.0,
        previous.meta.copy(),
        width=config.segment_width(previous.meta.highway),
        min_speed_proportion=config.min_speed_proportion,
    )


def _branch(previous: Segment, direction: float, config: GenerationConfig) -> Segment:
    # side streets are never highways
    delay = config.normal_branch_time_delay_from_highway if previous.meta.highway else 0.0
    return using_direction(
        previous.road.end,
        direction,
        config.segment_length(False),
        delay,
        MetaInfo(highway=False),
        width=config.segment_width(False),
        min_speed_proportion=config.min_speed_proportion,
    )


def generate_branches(
    previous: Segment,
    config: GenerationConfig,
    rng: random.Random,
    density: PopulationDensity,
) -> List[Segment]:
    """
    Propose new candidate segments starting at the end of ``previous``.

    Args:
        previous: Newly accepted segment
        config: Generation parameters
        rng: Random source for angles and branch decisions
        density: Population density field

    Returns:
        Candidates (possibly empty), each carrying a PendingLink to ``previous``
    """
    new_branches: List[Segment] = []
    if previous.meta.severed:
        return new_branches

    direction = previous.direction()
    continue_straight = _continuation(previous, direction, config)
    straight_pop = density.population_on_road(continue_straight.road)

    if previous.meta.highway:
        random_straight = _continuation(
            previous, direction + config.random_straight_angle(rng), config
        )
        random_pop = density.population_on_road(random_straight.road)
        if random_pop > straight_pop:
            new_branches.append(random_straight)
            road_pop = random_pop
        else:
            new_branches.append(continue_straight)
            road_pop = straight_pop

        if road_pop > config.highway_branch_population_threshold:
            if rng.random() < config.highway_branch_probability:
                new_branches.append(
                    _continuation(previous, direction - 90 + config.random_branch_angle(rng), config)
                )
            elif rng.random() < config.highway_branch_probability:
                new_branches.append(
                    _continuation(previous, direction + 90 + config.random_branch_angle(rng), config)
                )
    elif straight_pop > config.normal_branch_population_threshold:
        new_branches.append(continue_straight)

    if straight_pop > config.normal_branch_population_threshold:
        if rng.random() < config.default_branch_probability:
            new_branches.append(
                _branch(previous, direction - 90 + config.random_branch_angle(rng), config)
            )
        elif rng.random() < config.default_branch_probability:
            new_branches.append(
                _branch(previous, direction + 90 + config.random_branch_angle(rng), config)
            )

    for branch in new_branches:
        branch.pending_link = PendingLink(previous)
    return new_branches


def apply_pending_link(branch: Segment) -> Optional[Segment]:
    """
    Link an accepted branch to the segment it grew from.

    The branch joins the junction at the end of its previous segment: it links to the
    previous segment and to every other road already meeting there.

    Args:
        branch: Accepted candidate

    Returns:
        The previous segment, or None if the branch had no pending link
    """
    pending = branch.pending_link
    if pending is None:
        return None
    previous = pending.previous
    junction = previous.links_at_end()
    for link in list(junction):
        branch.links.backward.append(link)
        link.links_for_end_containing(previous).append(branch)
    junction.append(branch)
    branch.links.backward.append(previous)
    branch.pending_link = None
    return previous
