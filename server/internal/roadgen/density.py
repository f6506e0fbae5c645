"""
Population density field driving road growth.
"""

from typing import Tuple

from noise import snoise2

from .segments import Road

# Noise scales (metres per noise unit)
PRIMARY_SCALE = 10000.0
SECONDARY_SCALE = 20000.0


class PopulationDensity:
    """Deterministic density field in [0, 1] built from simplex noise."""

    def __init__(self, offset: Tuple[float, float] = (0.0, 0.0)):
        """
        Initialize density field.

        Args:
            offset: Noise-space offset; different offsets give different cities
        """
        self.offset = (float(offset[0]), float(offset[1]))

    def _sample(self, x: float, y: float, scale: float, shift: float) -> float:
        value = snoise2(x / scale + shift + self.offset[0], y / scale + shift + self.offset[1])
        return (value + 1) / 2

    def population_at(self, x: float, y: float) -> float:
        """
        Population density at a point.

        Args:
            x: X coordinate
            y: Y coordinate

        Returns:
            Density in [0, 1]
        """
        value1 = self._sample(x, y, PRIMARY_SCALE, 0.0)
        value2 = self._sample(x, y, SECONDARY_SCALE, 500.0)
        value3 = self._sample(x, y, SECONDARY_SCALE, 1000.0)
        density = ((value1 * value2 + value3) / 2) ** 2
        return min(1.0, max(0.0, density))

    def population_on_road(self, road: Road) -> float:
        """Mean density at the two ends of a road."""
        return (
            self.population_at(road.start.x, road.start.y)
            + self.population_at(road.end.x, road.end.y)
        ) / 2
