"""
Rain Raster - Precipitation from an Image-Style Grid

An alternative to the synthetic cell field: a precomputed 2D array of rain
rates (e.g. exported from a weather product or painted by hand), sampled
the way the radar display reads an image.

Image convention:
- Row 0 is the TOP of the picture, i.e. the largest y
- The center pixel corresponds to the grid origin
- `resolution` pixels per km on both axes

World -> pixel:
    ix = cx + floor((x - origin_x) * resolution)
    iy = cy - floor((y - origin_y) * resolution)

Values are either 0-255 intensities (scaled to `max_rain_rate_cap`) or
rain rates in mm/hr already.
"""

from __future__ import annotations
import logging
import math
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from .errors import InvalidBounds
from .precipitation import PrecipitationField
from .vector import Vec2

logger = logging.getLogger(__name__)

# Default ceiling for intensity-encoded rasters (mm/hr at intensity 255)
DEFAULT_MAX_RAIN_RATE_CAP = 35.0


class RainRaster:
    """
    Rain rates on a pixel grid, sampled in world coordinates.

    Out-of-image samples clamp to the nearest edge pixel, with a warning.
    """

    def __init__(
        self,
        rates: np.ndarray,
        resolution: float,
        origin: Optional[Vec2] = None,
    ):
        rates = np.asarray(rates, dtype=float)
        if rates.ndim != 2 or rates.shape[0] == 0 or rates.shape[1] == 0:
            raise InvalidBounds(f"Rain raster must be a non-empty 2D array, got shape {rates.shape}")
        if resolution <= 0:
            raise InvalidBounds(f"Rain raster resolution must be positive, got {resolution}")

        self.rates = rates
        self.resolution = resolution
        self.origin = origin if origin is not None else Vec2.zero()
        self.height, self.width = rates.shape
        self._clamp_warned = False

    @classmethod
    def from_intensity(
        cls,
        intensity: np.ndarray,
        resolution: float,
        max_rain_rate_cap: float = DEFAULT_MAX_RAIN_RATE_CAP,
        origin: Optional[Vec2] = None,
    ) -> "RainRaster":
        """Grayscale 0-255 image, mapped linearly onto 0..max_rain_rate_cap mm/hr."""
        intensity = np.asarray(intensity, dtype=float)
        if intensity.ndim == 3:
            # RGB(A) image: average the color channels
            intensity = intensity[..., :3].mean(axis=2)
        return cls(intensity / 255.0 * max_rain_rate_cap, resolution, origin)

    @classmethod
    def load(
        cls,
        filepath: Union[str, Path],
        resolution: float,
        max_rain_rate_cap: float = DEFAULT_MAX_RAIN_RATE_CAP,
        origin: Optional[Vec2] = None,
        intensity: bool = True,
    ) -> "RainRaster":
        """
        Load a raster saved with numpy.save.

        `intensity=True` treats values as 0-255 pixel intensities,
        otherwise as mm/hr.
        """
        path = Path(filepath)
        try:
            data = np.load(path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load rain raster {path}: {e}")
            raise

        logger.info(f"Loaded rain raster {path.name} with shape {data.shape}")
        if intensity:
            return cls.from_intensity(data, resolution, max_rain_rate_cap, origin)
        return cls(data, resolution, origin)

    @classmethod
    def from_field(cls, precipitation: PrecipitationField, resolution: float) -> "RainRaster":
        """
        Rasterize a synthetic field.

        The field's grid has row 0 at min y; flip it so row 0 is the top.
        """
        grid = precipitation.generate_rain_rate_grid(resolution)
        return cls(np.flipud(grid), resolution, precipitation.config.origin.copy())

    @property
    def center_pixel(self) -> Tuple[int, int]:
        return self.width // 2, self.height // 2

    def world_to_pixel(self, x: float, y: float) -> Tuple[int, int]:
        """Unclamped (ix, iy) for a world position."""
        cx, cy = self.center_pixel
        ix = cx + math.floor((x - self.origin.x) * self.resolution)
        iy = cy - math.floor((y - self.origin.y) * self.resolution)
        return ix, iy

    def in_bounds(self, ix: int, iy: int) -> bool:
        return 0 <= ix < self.width and 0 <= iy < self.height

    def sample_rain_rate(self, x: float, y: float) -> float:
        ix, iy = self.world_to_pixel(x, y)

        if not self.in_bounds(ix, iy):
            clamped_x = min(max(ix, 0), self.width - 1)
            clamped_y = min(max(iy, 0), self.height - 1)
            # Warn once per raster
            if not self._clamp_warned:
                logger.warning(
                    f"Rain raster sample at ({x:.2f}, {y:.2f}) km is outside the image "
                    f"({ix}, {iy}); clamping to ({clamped_x}, {clamped_y})"
                )
                self._clamp_warned = True
            ix, iy = clamped_x, clamped_y

        return float(self.rates[iy, ix])

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "resolution": self.resolution,
            "origin": self.origin.to_dict(),
            "max_rate": float(self.rates.max()),
            "data": self.rates.tolist(),
        }
