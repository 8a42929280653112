"""
Synthetic Precipitation - Gaussian Rain Cells

Rain is what degrades the SAM radar in this simulation. Instead of real
weather data we generate a synthetic field of rain CELLS:

    rain_rate(p) = rate * exp(-0.5 * (|p - center| / sigma)^2)
    sigma        = alpha * size

Each cell is a Gaussian blob. `size` is its effective radius (~3 sigma)
and `rate` is the nominal rain rate at its center (mm/hr).

KEY CONCEPTS:

1. RANDOM FIELD GENERATION
   Cell centers are uniform over the grid. Cell size and rate are
   perturbed around their nominal values by standard-normal deviates
   (Box-Muller) scaled by alpha * nominal.

2. COMBINING OVERLAPPING CELLS
   Where cells overlap, contributions are summed with a distance weight
   exp(-dist / (2 sigma^2)) and the total is capped at 50 mm/hr.
   The weight is a separate blending function, not the cell's own
   falloff term, and the cap applies to the sum.

3. REPRODUCIBILITY
   All draws come from an explicit numpy Generator. Pass a seeded one
   to get the same field twice.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .errors import InvalidBounds
from .quadtree import Bounds, QuadTree
from .vector import Vec2

logger = logging.getLogger(__name__)

# Ceiling applied to the combined rain rate of overlapping cells (mm/hr)
MAX_COMBINED_RAIN_RATE = 50.0

# Search radius for nearby cells, as a multiple of the nominal cell size
SEARCH_RADIUS_FACTOR = 10.0


def box_muller(rng: np.random.Generator) -> float:
    """
    Standard-normal deviate (mean 0, stddev 1) via the Box-Muller transform.

        z = sqrt(-2 ln u) * cos(2 pi v),   u, v uniform in (0, 1]
    """
    u = 0.0
    v = 0.0
    while u == 0.0:  # ln(0) is undefined
        u = rng.random()
    while v == 0.0:
        v = rng.random()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


@dataclass(frozen=True)
class PrecipitationCell:
    """A single Gaussian rain-rate blob. Immutable after creation."""
    center: Vec2
    size: float   # km, effective radius (3-sigma)
    rate: float   # mm/hr at center
    alpha: float  # sigma = alpha * size

    @property
    def sigma(self) -> float:
        return self.alpha * self.size

    def rain_rate_at(self, x: float, y: float) -> float:
        """Gaussian falloff from the center. A zero-width cell contributes nothing."""
        if self.sigma <= 0:
            return 0.0
        distance = math.hypot(x - self.center.x, y - self.center.y)
        return self.rate * math.exp(-0.5 * (distance / self.sigma) ** 2)

    def is_in_range(self, x: float, y: float) -> bool:
        return math.hypot(x - self.center.x, y - self.center.y) <= self.size

    def bounds(self) -> tuple:
        """(min_x, max_x, min_y, max_y) bounding box."""
        return (
            self.center.x - self.size,
            self.center.x + self.size,
            self.center.y - self.size,
            self.center.y + self.size,
        )

    def to_dict(self) -> dict:
        return {
            "center": self.center.to_dict(),
            "size": self.size,
            "rate": self.rate,
            "alpha": self.alpha,
        }


@dataclass
class SyntheticFieldConfig:
    """
    Configuration for synthetic field generation.

    Grid is described by its center (origin) and full width/height in km;
    the field covers [origin - extent/2, origin + extent/2] on each axis.
    """
    grid_width: float
    grid_height: float
    num_cells: int
    nominal_rain_rate: float      # mm/hr
    nominal_cell_size: float      # km
    alpha: float                  # spread factor
    origin: Vec2 = field(default_factory=Vec2.zero)

    @property
    def min_corner(self) -> Vec2:
        return Vec2(self.origin.x - self.grid_width / 2, self.origin.y - self.grid_height / 2)

    def to_dict(self) -> dict:
        return {
            "grid_width": self.grid_width,
            "grid_height": self.grid_height,
            "num_cells": self.num_cells,
            "nominal_rain_rate": self.nominal_rain_rate,
            "nominal_cell_size": self.nominal_cell_size,
            "alpha": self.alpha,
            "origin": self.origin.to_dict(),
        }


def cells_for_coverage(
    coverage_pct: float,
    grid_width: float,
    grid_height: float,
    nominal_cell_size: float,
) -> int:
    """Number of nominal-size cells whose total area covers `coverage_pct` of the grid."""
    if nominal_cell_size <= 0:
        return 1
    cell_area = math.pi * nominal_cell_size ** 2
    return max(1, round((coverage_pct / 100.0) * grid_width * grid_height / cell_area))


class PrecipitationField:
    """
    Owns a set of rain cells plus a quadtree over their centers.

    Usage:
        field = PrecipitationField(config, rng=np.random.default_rng(42))
        rate = field.sample_rain_rate(10.0, -4.0)
        grid = field.generate_rain_rate_grid(resolution=2)
    """

    def __init__(
        self,
        config: SyntheticFieldConfig,
        rng: Optional[np.random.Generator] = None,
    ):
        if config.grid_width <= 0 or config.grid_height <= 0:
            raise InvalidBounds(
                f"Invalid grid bounds for precipitation field: "
                f"{config.grid_width} x {config.grid_height} km"
            )

        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()
        self.cells: List[PrecipitationCell] = []
        self.index: QuadTree[PrecipitationCell] = QuadTree(
            Bounds(
                config.origin.x,
                config.origin.y,
                config.grid_width / 2,
                config.grid_height / 2,
            ),
            capacity=4,
        )
        self._grid_cache: Dict[float, np.ndarray] = {}

        self.generate()

    def generate(self) -> None:
        """Draw `num_cells` random cells and index them."""
        cfg = self.config
        sigma_size = cfg.alpha * cfg.nominal_cell_size
        sigma_rate = cfg.alpha * cfg.nominal_rain_rate
        corner = cfg.min_corner

        for _ in range(cfg.num_cells):
            center = Vec2(
                corner.x + self.rng.random() * cfg.grid_width,
                corner.y + self.rng.random() * cfg.grid_height,
            )
            size = cfg.nominal_cell_size + box_muller(self.rng) * sigma_size
            rate = cfg.nominal_rain_rate + box_muller(self.rng) * sigma_rate

            cell = PrecipitationCell(center=center, size=size, rate=rate, alpha=cfg.alpha)
            self.cells.append(cell)
            self.index.insert(cell.center, cell)

        logger.info(
            f"Generated {len(self.cells)} precipitation cells "
            f"(nominal size {cfg.nominal_cell_size} km, rate {cfg.nominal_rain_rate} mm/hr, alpha {cfg.alpha})"
        )

    def sample_rain_rate(self, x: float, y: float) -> float:
        """
        Rain rate (mm/hr) at a point.

        Sums distance-weighted contributions from every in-range cell,
        then caps the sum at MAX_COMBINED_RAIN_RATE.
        """
        search_radius = self.config.nominal_cell_size * SEARCH_RADIUS_FACTOR
        nearby = self.index.query_range(Vec2(x, y), search_radius)

        if not nearby:
            return 0.0

        rain_rate = 0.0
        for item in nearby:
            cell = item.data
            sigma = cell.sigma
            if sigma <= 0 or not cell.is_in_range(x, y):
                continue
            dist = math.hypot(x - cell.center.x, y - cell.center.y)
            weight = math.exp(-dist / (2 * sigma * sigma))
            rain_rate += cell.rain_rate_at(x, y) * weight

        return min(rain_rate, MAX_COMBINED_RAIN_RATE)

    def generate_rain_rate_grid(self, resolution: float = 10) -> np.ndarray:
        """
        Raster of sampled rain rates at `resolution` samples per km.

        Row index increases with y, column index with x, starting at the
        grid's min corner. Cached per resolution - the field never changes.
        """
        if resolution in self._grid_cache:
            return self._grid_cache[resolution]

        cfg = self.config
        n_cols = int(math.floor(cfg.grid_width * resolution))
        n_rows = int(math.floor(cfg.grid_height * resolution))
        corner = cfg.min_corner

        grid = np.zeros((n_rows, n_cols))
        for row in range(n_rows):
            y = corner.y + row / resolution
            for col in range(n_cols):
                grid[row, col] = self.sample_rain_rate(corner.x + col / resolution, y)

        self._grid_cache[resolution] = grid
        return grid

    def get_statistics(self) -> dict:
        """Summary statistics for display."""
        if not self.cells:
            return {
                "num_cells": 0,
                "avg_cell_size": 0.0,
                "total_coverage": 0.0,
                "nominal_rate": self.config.nominal_rain_rate,
            }

        sizes = np.array([c.size for c in self.cells])
        total_area = float(np.sum(np.pi * sizes ** 2))
        grid_area = self.config.grid_width * self.config.grid_height

        return {
            "num_cells": len(self.cells),
            "avg_cell_size": float(np.mean(sizes)),
            "total_coverage": total_area / grid_area * 100.0,
            "nominal_rate": self.config.nominal_rain_rate,
        }

    def cells_as_dicts(self) -> List[dict]:
        return [cell.to_dict() for cell in self.cells]
