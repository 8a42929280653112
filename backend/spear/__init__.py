"""
SPEAR engagement simulation core.

This package provides:
- EngagementSimulator: SAM vs fighter fixed-timestep state machine
- PrecipitationField / RainRaster: synthetic and raster rain environments
- RadarModel / AttenuationTable: detection range under rain attenuation
- PlatformStore / ScenarioStore / SessionStore: JSON records and sessions
"""

from .attenuation import AttenuationTable
from .engine import EngagementResult, EngagementSimulator, EngagementSnapshot, SimConfig
from .errors import (
    ITUDataNotLoaded,
    InvalidBounds,
    PlatformNotFound,
    ScenarioNotFound,
    SessionNotFound,
    SpearError,
)
from .precipitation import PrecipitationCell, PrecipitationField, SyntheticFieldConfig
from .radar import RadarConfig, RadarModel
from .raster import RainRaster
from .scenario import ScenarioConfig
from .session import SessionStore, SimulationHandle
from .store import PlatformStore, ScenarioStore

__all__ = [
    "AttenuationTable",
    "EngagementResult",
    "EngagementSimulator",
    "EngagementSnapshot",
    "SimConfig",
    "ITUDataNotLoaded",
    "InvalidBounds",
    "PlatformNotFound",
    "ScenarioNotFound",
    "SessionNotFound",
    "SpearError",
    "PrecipitationCell",
    "PrecipitationField",
    "SyntheticFieldConfig",
    "RadarConfig",
    "RadarModel",
    "RainRaster",
    "ScenarioConfig",
    "SessionStore",
    "SimulationHandle",
    "PlatformStore",
    "ScenarioStore",
]
