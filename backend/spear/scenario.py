"""
Scenario definition: grid, platform placement, weather.

A scenario references platform configs by id; the simulator resolves
them through a PlatformStore when the engagement is created.
"""

from __future__ import annotations
from typing import Annotated, Literal, Optional

from pydantic import Field

from .precipitation import SyntheticFieldConfig, cells_for_coverage
from .schema import Count, Number, Point, SpearModel
from .vector import Vec2

FlightPathType = Literal["straight", "evasive", "memrFringe"]

DEFAULT_TIME_STEP = 0.5  # seconds


class GridBounds(SpearModel):
    width: Number                       # km
    height: Number                      # km
    resolution: Number                  # samples per km
    origin: Optional[Point] = None

    def origin_vec(self) -> Vec2:
        if self.origin is None:
            return Vec2.zero()
        return Vec2(self.origin.x, self.origin.y)


class FlightPath(SpearModel):
    type: FlightPathType = "straight"
    params: Optional[dict] = None


class ScenarioPlatform(SpearModel):
    config_id: str
    position: Point
    heading: Number = 0.0

    def position_vec(self) -> Vec2:
        return Vec2(self.position.x, self.position.y)


class ScenarioFighter(ScenarioPlatform):
    flight_path: FlightPath = Field(default_factory=FlightPath)


class ScenarioPlatforms(SpearModel):
    sam: ScenarioPlatform
    fighter: ScenarioFighter


class PrecipitationConfig(SpearModel):
    enabled: bool = False
    nominal_rain_rate: Number = 10.0    # mm/hr
    nominal_cell_size: Number = 5.0     # km
    nominal_coverage: Number = 20.0     # % of grid area
    alpha: Annotated[Number, Field(gt=0)] = 0.3
    max_rain_rate_cap: Number = 35.0    # mm/hr at full raster intensity
    num_cells: Optional[Count] = None
    seed: Optional[Count] = None


class ScenarioEnvironment(SpearModel):
    precipitation: PrecipitationConfig = Field(default_factory=PrecipitationConfig)


class ScenarioConfig(SpearModel):
    id: str
    name: str
    description: Optional[str] = None
    grid: GridBounds
    time_step: Annotated[Number, Field(gt=0)] = DEFAULT_TIME_STEP
    platforms: ScenarioPlatforms
    environment: ScenarioEnvironment = Field(default_factory=ScenarioEnvironment)
    precipitation_field_image: Optional[str] = None

    def field_config(self) -> SyntheticFieldConfig:
        """Synthetic-field parameters derived from grid + precipitation settings."""
        precip = self.environment.precipitation
        num_cells = precip.num_cells
        if num_cells is None:
            num_cells = cells_for_coverage(
                precip.nominal_coverage,
                self.grid.width,
                self.grid.height,
                precip.nominal_cell_size,
            )
        return SyntheticFieldConfig(
            grid_width=self.grid.width,
            grid_height=self.grid.height,
            num_cells=num_cells,
            nominal_rain_rate=precip.nominal_rain_rate,
            nominal_cell_size=precip.nominal_cell_size,
            alpha=precip.alpha,
            origin=self.grid.origin_vec(),
        )
