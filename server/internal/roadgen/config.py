"""
Configuration management for the road generation service.
"""

import json
import os
import random
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from dotenv import load_dotenv

from . import seeds
from .quadtree import Bounds

AngleJitter = Callable[[random.Random], float]

DEFAULT_CONFIG_PATH = (
    Path(__file__).parent.parent.parent / "config" / "road-generation.json"
)


class Config:
    """Configuration for road generation service"""

    def __init__(self):
        # Server configuration
        self.host = os.getenv("ROADGEN_SERVICE_HOST", "0.0.0.0")
        self.port = int(os.getenv("ROADGEN_SERVICE_PORT", "8082"))
        self.environment = os.getenv("ENVIRONMENT", "development")

        # Generation configuration
        self.world_seed = os.getenv("WORLD_SEED", "12345")
        self.max_segment_limit = int(os.getenv("MAX_SEGMENT_LIMIT", "5000"))
        self.generation_config_path = os.getenv("ROAD_GENERATION_CONFIG")


def load_config() -> Config:
    """Load configuration from environment variables (and a .env file, if present)"""
    load_dotenv(override=False)
    return Config()


class GenerationConfig:
    """
    Tunable parameters for road network generation.

    Defaults reproduce the classic density-driven city generator: 400m highway
    segments, 300m streets, a 50m snap radius and a 5000 segment cap.
    """

    def __init__(
        self,
        default_segment_length: float = 300.0,
        highway_segment_length: float = 400.0,
        default_segment_width: float = 6.0,
        highway_segment_width: float = 16.0,
        branch_angle_limit: float = 3.0,
        straight_angle_limit: float = 15.0,
        default_branch_probability: float = 0.4,
        highway_branch_probability: float = 0.05,
        highway_branch_population_threshold: float = 0.1,
        normal_branch_population_threshold: float = 0.1,
        normal_branch_time_delay_from_highway: float = 5.0,
        minimum_intersection_deviation: float = 30.0,
        segment_count_limit: int = 5000,
        road_snap_distance: float = 50.0,
        quadtree_bounds: Union[Bounds, tuple, list, None] = None,
        quadtree_max_objects: int = 10,
        quadtree_max_levels: int = 10,
        min_speed_proportion: float = 0.1,
        random_branch_angle: Optional[AngleJitter] = None,
        random_straight_angle: Optional[AngleJitter] = None,
    ):
        """
        Initialize generation configuration.

        Args:
            default_segment_length: Length of normal street segments
            highway_segment_length: Length of highway segments
            default_segment_width: Width of normal street segments
            highway_segment_width: Width of highway segments
            branch_angle_limit: Largest jitter (degrees) added to 90° branches
            straight_angle_limit: Largest jitter (degrees) for highway continuations
            default_branch_probability: Chance of each street branch attempt
            highway_branch_probability: Chance of each highway branch attempt
            highway_branch_population_threshold: Density needed for highway branches
            normal_branch_population_threshold: Density needed for streets
            normal_branch_time_delay_from_highway: Extra delay for streets leaving a highway
            minimum_intersection_deviation: Smallest crossing angle (degrees) allowed
            segment_count_limit: Cap on generated segments
            road_snap_distance: Radius for snapping to existing vertices and roads
            quadtree_bounds: Root bounds of the spatial index
            quadtree_max_objects: Entries per quadtree node before it splits
            quadtree_max_levels: Maximum quadtree depth
            min_speed_proportion: Speed floor as a proportion of max speed
            random_branch_angle: Branch jitter function (rng -> degrees)
            random_straight_angle: Highway continuation jitter function (rng -> degrees)

        Raises:
            ValueError: If any parameter is out of range
        """
        self.default_segment_length = float(default_segment_length)
        self.highway_segment_length = float(highway_segment_length)
        self.default_segment_width = float(default_segment_width)
        self.highway_segment_width = float(highway_segment_width)
        self.branch_angle_limit = float(branch_angle_limit)
        self.straight_angle_limit = float(straight_angle_limit)
        self.default_branch_probability = float(default_branch_probability)
        self.highway_branch_probability = float(highway_branch_probability)
        self.highway_branch_population_threshold = float(highway_branch_population_threshold)
        self.normal_branch_population_threshold = float(normal_branch_population_threshold)
        self.normal_branch_time_delay_from_highway = float(normal_branch_time_delay_from_highway)
        self.minimum_intersection_deviation = float(minimum_intersection_deviation)
        self.segment_count_limit = int(segment_count_limit)
        self.road_snap_distance = float(road_snap_distance)
        if quadtree_bounds is None:
            quadtree_bounds = Bounds(-2e4, -2e4, 4e4, 4e4)
        elif not isinstance(quadtree_bounds, Bounds):
            quadtree_bounds = Bounds(*quadtree_bounds)
        self.quadtree_bounds = quadtree_bounds
        self.quadtree_max_objects = int(quadtree_max_objects)
        self.quadtree_max_levels = int(quadtree_max_levels)
        self.min_speed_proportion = float(min_speed_proportion)
        self._random_branch_angle = random_branch_angle
        self._random_straight_angle = random_straight_angle

        self._validate()

    def _validate(self) -> None:
        for name in (
            "default_segment_length",
            "highway_segment_length",
            "default_segment_width",
            "highway_segment_width",
            "branch_angle_limit",
            "straight_angle_limit",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"GenerationConfig {name} must be positive")
        for name in ("default_branch_probability", "highway_branch_probability"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f"GenerationConfig {name} must lie within [0, 1]")
        for name in (
            "highway_branch_population_threshold",
            "normal_branch_population_threshold",
            "normal_branch_time_delay_from_highway",
            "minimum_intersection_deviation",
            "road_snap_distance",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"GenerationConfig {name} cannot be negative")
        if self.segment_count_limit <= 0:
            raise ValueError("GenerationConfig segment_count_limit must be positive")
        if self.quadtree_max_objects <= 0:
            raise ValueError("GenerationConfig quadtree_max_objects must be positive")
        if self.quadtree_max_levels < 0:
            raise ValueError("GenerationConfig quadtree_max_levels cannot be negative")
        if not 0.0 < self.min_speed_proportion <= 1.0:
            raise ValueError("GenerationConfig min_speed_proportion must lie within (0, 1]")

    def random_branch_angle(self, rng: random.Random) -> float:
        """Jitter added to a 90° branch."""
        if self._random_branch_angle is not None:
            return self._random_branch_angle(rng)
        return seeds.biased_angle(rng, self.branch_angle_limit)

    def random_straight_angle(self, rng: random.Random) -> float:
        """Jitter tried for a highway continuation."""
        if self._random_straight_angle is not None:
            return self._random_straight_angle(rng)
        return seeds.biased_angle(rng, self.straight_angle_limit)

    def segment_length(self, highway: bool) -> float:
        return self.highway_segment_length if highway else self.default_segment_length

    def segment_width(self, highway: bool) -> float:
        return self.highway_segment_width if highway else self.default_segment_width

    def with_overrides(self, **overrides: Any) -> "GenerationConfig":
        """Copy of this configuration with some parameters replaced."""
        values = self.to_dict()
        values["random_branch_angle"] = self._random_branch_angle
        values["random_straight_angle"] = self._random_straight_angle
        unknown = set(overrides) - set(values)
        if unknown:
            raise ValueError(f"Unknown generation parameters: {sorted(unknown)}")
        values.update(overrides)
        return GenerationConfig(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Plain parameters (jitter functions excluded)."""
        bounds = self.quadtree_bounds
        return {
            "default_segment_length": self.default_segment_length,
            "highway_segment_length": self.highway_segment_length,
            "default_segment_width": self.default_segment_width,
            "highway_segment_width": self.highway_segment_width,
            "branch_angle_limit": self.branch_angle_limit,
            "straight_angle_limit": self.straight_angle_limit,
            "default_branch_probability": self.default_branch_probability,
            "highway_branch_probability": self.highway_branch_probability,
            "highway_branch_population_threshold": self.highway_branch_population_threshold,
            "normal_branch_population_threshold": self.normal_branch_population_threshold,
            "normal_branch_time_delay_from_highway": self.normal_branch_time_delay_from_highway,
            "minimum_intersection_deviation": self.minimum_intersection_deviation,
            "segment_count_limit": self.segment_count_limit,
            "road_snap_distance": self.road_snap_distance,
            "quadtree_bounds": [bounds.x, bounds.y, bounds.width, bounds.height],
            "quadtree_max_objects": self.quadtree_max_objects,
            "quadtree_max_levels": self.quadtree_max_levels,
            "min_speed_proportion": self.min_speed_proportion,
        }


def load_generation_config(
    path: Optional[Union[str, Path]] = None, **overrides: Any
) -> GenerationConfig:
    """
    Load generation parameters from a JSON file.

    The file is looked up from ``path``, then the ROAD_GENERATION_CONFIG environment
    variable, then the bundled default. A missing file means built-in defaults.

    Args:
        path: Optional path to a JSON object of parameters
        **overrides: Parameters applied on top of the file

    Returns:
        GenerationConfig instance

    Raises:
        ValueError: If the file contains unknown keys or invalid values
        json.JSONDecodeError: If the file is not valid JSON
    """
    if path is None:
        path = os.getenv("ROAD_GENERATION_CONFIG") or DEFAULT_CONFIG_PATH
    config_path = Path(path)

    values: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            values = json.load(f)
        if not isinstance(values, dict):
            raise ValueError(f"Generation config must be a JSON object: {config_path}")
        # jitter functions can only be set from code
        unknown = set(values) - set(GenerationConfig().to_dict())
        if unknown:
            raise ValueError(f"Unknown generation parameters in {config_path}: {sorted(unknown)}")

    return GenerationConfig().with_overrides(**{**values, **overrides})
