"""
Platform Models - SAM Site and Fighter

Two layers per platform:

1. STATIC CONFIG (pydantic, frozen)
   What the platform IS: radar range, missile speed, RCS profile...
   Loaded from JSON records and never mutated.

2. ENGAGEMENT STATE (dataclass, mutable)
   What the platform is DOING in this run: position, heading, tracking
   status, missiles left. Rebuilt from the scenario on reset.

ASPECT-DEPENDENT RCS:
The fighter's radar cross-section depends on which side the radar sees.
Aspect = bearing from fighter to observer minus fighter heading:

        nose  (-30, +30)         small
        tail  (150, 210)         medium
        side  everything else    large

The sector edges are exclusive: exactly 30 degrees is "side".
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from pydantic import model_validator

from .radar import PulseIntegration, RadarConfig, SPEED_OF_SOUND
from .schema import Count, Number, SpearModel
from .vector import Vec2, normalize_angle

PulseModel = Literal["short", "medium", "long"]
FighterType = Literal["F-16", "F-22", "F-35"]
LaunchPreference = Literal["maxRange", "memrRatio"]

# Pulses integrated per dwell for each pulse model
PULSES_PER_MODEL = {
    "short": 1,
    "medium": 10,
    "long": 20,
}

DEFAULT_SAM_MISSILES = 4
DEFAULT_LAUNCH_INTERVAL_SEC = 5.0
DEFAULT_HARM_COUNT = 1
DEFAULT_MEMR_RATIO = 0.9


# =============================================================================
# Static configs
# =============================================================================

class SAMSystemConfig(SpearModel):
    id: str
    name: str
    nominal_range: Number               # km against 1 m^2
    pulse_model: PulseModel
    manual_acquisition_time: Number     # s
    auto_acquisition_time: Number       # s
    memr: Number                        # km, max effective missile range
    missile_velocity: Number            # Mach
    system_frequency: Number            # GHz
    missile_tracking_frequency: Number  # GHz
    missiles: Count = DEFAULT_SAM_MISSILES
    launch_interval_sec: Number = DEFAULT_LAUNCH_INTERVAL_SEC

    @property
    def num_pulses(self) -> int:
        return PULSES_PER_MODEL[self.pulse_model]

    def radar_config(self) -> RadarConfig:
        return RadarConfig(
            nominal_range=self.nominal_range,
            frequency=self.system_frequency,
            num_pulses=self.num_pulses,
            mode=PulseIntegration.NONCOHERENT,
        )


class RCSProfile(SpearModel):
    """Radar cross-section by aspect (m^2). top/bottom fall back to side."""
    nose: Number
    tail: Number
    side: Number
    top: Number
    bottom: Number

    @model_validator(mode="before")
    @classmethod
    def _default_top_bottom(cls, data):
        if isinstance(data, dict) and "side" in data:
            data = dict(data)
            data.setdefault("top", data["side"])
            data.setdefault("bottom", data["side"])
        return data


class HARMParameters(SpearModel):
    velocity: Number                    # Mach
    range: Number                       # km
    launch_preference: LaunchPreference = "maxRange"
    memr_ratio: Optional[Number] = None


class FighterPlatformConfig(SpearModel):
    id: str
    type: FighterType
    velocity: Number                    # Mach
    rcs: RCSProfile
    harm_params: HARMParameters


# =============================================================================
# Engagement state
# =============================================================================

class PlatformState(str, Enum):
    ACTIVE = "active"
    DESTROYED = "destroyed"


class TrackingState(str, Enum):
    TRACKING = "tracking"
    NOT_TRACKING = "not_tracking"


class ManeuverMode(str, Enum):
    NONE = "none"
    EVASIVE = "evasive"


@dataclass
class TrackingStatus:
    status: TrackingState = TrackingState.NOT_TRACKING
    time_elapsed_tracking: float = 0.0

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "time_elapsed_tracking": self.time_elapsed_tracking,
        }


@dataclass
class LauncherStatus:
    missiles_remaining: int
    last_launch_time: float = -math.inf

    def to_dict(self) -> dict:
        return {
            "missiles_remaining": self.missiles_remaining,
            "last_launch_time": None if math.isinf(self.last_launch_time) else self.last_launch_time,
        }


@dataclass
class SAMSystem:
    """A SAM site during an engagement."""
    config: SAMSystemConfig
    position: Vec2
    heading: float = 0.0
    state: PlatformState = PlatformState.ACTIVE
    tracking_status: TrackingStatus = field(default_factory=TrackingStatus)
    status: Optional[LauncherStatus] = None
    launch_interval_sec: Optional[float] = None

    def __post_init__(self):
        if self.status is None:
            self.status = LauncherStatus(missiles_remaining=self.config.missiles)
        if self.launch_interval_sec is None:
            self.launch_interval_sec = self.config.launch_interval_sec

    @property
    def is_active(self) -> bool:
        return self.state == PlatformState.ACTIVE

    @property
    def is_tracking(self) -> bool:
        return self.tracking_status.status == TrackingState.TRACKING

    @property
    def memr(self) -> float:
        return self.config.memr

    def is_within_memr(self, distance: float) -> bool:
        return distance <= self.config.memr

    def missile_velocity_kms(self) -> float:
        return self.config.missile_velocity * SPEED_OF_SOUND / 1000.0

    def update_tracking(self, detected: bool, dt: float) -> None:
        if detected:
            self.tracking_status.status = TrackingState.TRACKING
            self.tracking_status.time_elapsed_tracking += dt
        else:
            self.tracking_status.status = TrackingState.NOT_TRACKING
            self.tracking_status.time_elapsed_tracking = 0.0

    def ready_to_fire(self, time: float) -> bool:
        """Has ammo and the launch interval has passed."""
        return (
            self.status.missiles_remaining > 0
            and time - self.status.last_launch_time >= self.launch_interval_sec
        )

    def record_launch(self, time: float) -> None:
        self.status.missiles_remaining -= 1
        self.status.last_launch_time = time

    def to_dict(self) -> dict:
        return {
            "id": self.config.id,
            "name": self.config.name,
            "position": self.position.to_dict(),
            "heading": self.heading,
            "state": self.state.value,
            "tracking_status": self.tracking_status.to_dict(),
            "status": self.status.to_dict(),
            "launch_interval_sec": self.launch_interval_sec,
        }


@dataclass
class Fighter:
    """A fighter during an engagement. Carries a single HARM."""
    config: FighterPlatformConfig
    position: Vec2
    heading: float = 0.0
    state: PlatformState = PlatformState.ACTIVE
    maneuvers: ManeuverMode = ManeuverMode.NONE
    missiles_remaining: int = DEFAULT_HARM_COUNT

    @property
    def is_active(self) -> bool:
        return self.state == PlatformState.ACTIVE

    @property
    def harm_range(self) -> float:
        return self.config.harm_params.range

    @property
    def memr_ratio(self) -> float:
        ratio = self.config.harm_params.memr_ratio
        return ratio if ratio is not None else DEFAULT_MEMR_RATIO

    def velocity_kms(self) -> float:
        return self.config.velocity * SPEED_OF_SOUND / 1000.0

    def harm_velocity_kms(self) -> float:
        return self.config.harm_params.velocity * SPEED_OF_SOUND / 1000.0

    def harm_flight_time(self, distance: float) -> float:
        velocity = self.harm_velocity_kms()
        if velocity <= 0:
            return 0.0
        return distance / velocity

    def get_rcs_at_aspect(self, aspect_deg: float) -> float:
        """RCS seen from `aspect_deg` off the nose (0 = nose-on, 180 = tail-on)."""
        angle = normalize_angle(aspect_deg)
        rcs = self.config.rcs
        if angle < 30 or angle > 330:
            return rcs.nose
        if 150 < angle < 210:
            return rcs.tail
        return rcs.side

    def get_rcs_from_position(self, observer: Vec2) -> float:
        aspect = self.position.bearing_to(observer) - self.heading
        return self.get_rcs_at_aspect(aspect)

    def should_launch_harm(self, distance_to_sam: float, sam_memr: float, sam_tracking: bool) -> bool:
        """
        HARM release rule: SAM must be tracking us, we must be inside its
        MEMR, and the SAM must be beyond the HARM's own range.
        """
        if not sam_tracking:
            return False
        return distance_to_sam <= sam_memr and self.harm_range < distance_to_sam

    def to_dict(self) -> dict:
        return {
            "id": self.config.id,
            "type": self.config.type,
            "position": self.position.to_dict(),
            "heading": self.heading,
            "state": self.state.value,
            "maneuvers": self.maneuvers.value,
            "missiles_remaining": self.missiles_remaining,
        }
