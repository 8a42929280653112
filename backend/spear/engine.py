"""
Engagement Simulator - SAM vs Fighter State Machine

KEY CONCEPT: Fixed Timestep Engagement

Each call to advance_simulation_time_step() moves the whole world forward
by exactly `time_step` seconds, in a fixed order:

    1. Advance the clock
    2. Radar: distance, azimuth, aspect RCS -> detected? -> tracking status
    3. SAM launch     (detected, active, inside MEMR, ammo, interval passed)
    4. HARM launch    (SAM tracking us, inside MEMR, SAM beyond HARM range)
    5. Missile headings (pursuit, or random drift when the SAM lost track)
    6. Missile positions
    7. Fighter heading (beam maneuver if evasive)
    8. Fighter position
    9. Intercepts: first kill decides the engagement
   10. End conditions: kill, every missile spent, or 600 s

Order matters. Guidance uses positions from the START of the step and
the intercept check uses the segment each missile flew DURING the step.

RANDOMNESS:
Two independent streams are spawned from one SeedSequence: one builds the
rain field, the other drives loss-of-lock heading drift. Same seed, same
engagement.

RAIN:
The rain field never changes during a run, so the SAM's 1 m^2 detection
range per azimuth is computed once (the "range profile") and scaled by
the fighter's aspect RCS every step.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Tuple, Union

import numpy as np

from .attenuation import AttenuationTable
from .entities import LaunchedBy, Missile, MissileResult, MissileStatus, TargetRef
from .errors import ITUDataNotLoaded, InvalidBounds, PlatformNotFound
from .evasion import evasive_heading
from .guidance import guided_heading, jitter_heading
from .intercept import check_intercept
from .platforms import (
    Fighter, FighterPlatformConfig, ManeuverMode, PlatformState,
    SAMSystem, SAMSystemConfig,
)
from .precipitation import PrecipitationField
from .radar import (
    RAY_STEP_SAMPLES, RadarModel, RainSampler, azimuth_bin, in_vulnerability_window,
)
from .raster import RainRaster
from .scenario import ScenarioConfig
from .vector import Vec2

logger = logging.getLogger(__name__)

MAX_SIMULATION_TIME = 600.0  # seconds


class PlatformSource(Protocol):
    """Anything that resolves platform config ids (see store.PlatformStore)."""
    def load_sam(self, sam_id: str) -> Optional[SAMSystemConfig]: ...
    def load_fighter(self, fighter_id: str) -> Optional[FighterPlatformConfig]: ...


@dataclass
class SimConfig:
    """Runtime knobs for one engagement."""
    time_step: float = 0.5
    max_time: float = MAX_SIMULATION_TIME
    seed: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "time_step": self.time_step,
            "max_time": self.max_time,
            "seed": self.seed,
        }


@dataclass
class EngagementSnapshot:
    """Read-only view of the engagement at one instant."""
    time: float
    sam: dict
    fighter: dict
    distance: float
    azimuth: float
    fighter_rcs: float
    detection_range: float
    detected: bool
    within_memr: bool
    should_launch_harm: bool
    in_vulnerability_window: bool
    complete: bool
    missiles: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "sam": self.sam,
            "fighter": self.fighter,
            "distance": self.distance,
            "azimuth": self.azimuth,
            "fighter_rcs": self.fighter_rcs,
            "detection_range": self.detection_range,
            "detected": self.detected,
            "within_memr": self.within_memr,
            "should_launch_harm": self.should_launch_harm,
            "in_vulnerability_window": self.in_vulnerability_window,
            "complete": self.complete,
            "missiles": self.missiles,
        }


@dataclass
class EngagementResult:
    scenario_id: str
    missile_results: List[MissileResult]
    success: bool
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "scenario_id": self.scenario_id,
            "missile_results": [r.to_dict() for r in self.missile_results],
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
        }


class EngagementSimulator:
    """
    One SAM, one fighter, any number of missiles.

    Usage:
        sim = EngagementSimulator.create(scenario, platform_store, table, seed=7)
        result = sim.run_to_completion()
    """

    def __init__(
        self,
        scenario: ScenarioConfig,
        sam_config: SAMSystemConfig,
        fighter_config: FighterPlatformConfig,
        radar: RadarModel,
        config: SimConfig,
        precipitation: Optional[PrecipitationField] = None,
        raster: Optional[RainRaster] = None,
        jitter_rng: Optional[np.random.Generator] = None,
    ):
        self.scenario = scenario
        self.sam_config = sam_config
        self.fighter_config = fighter_config
        self.radar = radar
        self.config = config
        self.precipitation = precipitation
        self.raster = raster
        self.rng = jitter_rng if jitter_rng is not None else np.random.default_rng()

        self.time_elapsed = 0.0
        self.missiles: List[Missile] = []
        self.is_engagement_complete = False
        self.sam: SAMSystem
        self.fighter: Fighter
        self._build_platforms()

        self._nominal_profile = radar.nominal_range_profile()
        self._precipitation_profile: Optional[List[float]] = None
        sampler = self.rain_sampler
        if sampler is not None:
            self._precipitation_profile = radar.attenuated_range_profile(
                self.sam.position,
                sampler,
                step_km=RAY_STEP_SAMPLES / scenario.grid.resolution,
            )

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def create(
        cls,
        scenario: ScenarioConfig,
        platforms: PlatformSource,
        attenuation: AttenuationTable,
        time_step: Optional[float] = None,
        seed: Optional[int] = None,
        raster_dir: Optional[Union[str, Path]] = None,
    ) -> "EngagementSimulator":
        """
        Resolve configs, build the rain environment and radar, and return a
        simulator at t = 0.

        `seed` overrides the scenario's precipitation seed. With neither,
        both random streams are seeded from OS entropy.
        """
        sam_id = scenario.platforms.sam.config_id
        fighter_id = scenario.platforms.fighter.config_id
        sam_config = platforms.load_sam(sam_id)
        if sam_config is None:
            raise PlatformNotFound("SAM", sam_id)
        fighter_config = platforms.load_fighter(fighter_id)
        if fighter_config is None:
            raise PlatformNotFound("Fighter", fighter_id)

        if attenuation is None or not attenuation.is_loaded:
            raise ITUDataNotLoaded("ITU attenuation data must be loaded before creating an engagement")

        grid = scenario.grid
        if grid.width <= 0 or grid.height <= 0 or grid.resolution <= 0:
            raise InvalidBounds(
                f"Invalid grid for scenario {scenario.id}: "
                f"{grid.width} x {grid.height} km at {grid.resolution} samples/km"
            )

        if time_step is None:
            time_step = scenario.time_step
        if time_step <= 0:
            raise InvalidBounds(f"Time step must be positive, got {time_step}s")

        precip = scenario.environment.precipitation
        if seed is None:
            seed = precip.seed
        field_seq, jitter_seq = np.random.SeedSequence(seed).spawn(2)

        precipitation = None
        if precip.enabled:
            precipitation = PrecipitationField(scenario.field_config(), rng=np.random.default_rng(field_seq))

        raster = None
        if scenario.precipitation_field_image:
            path = Path(raster_dir or ".") / scenario.precipitation_field_image
            raster = RainRaster.load(
                path,
                resolution=grid.resolution,
                max_rain_rate_cap=precip.max_rain_rate_cap,
                origin=grid.origin_vec(),
            )

        config = SimConfig(
            time_step=time_step,
            seed=seed,
        )
        radar = RadarModel(sam_config.radar_config(), attenuation)

        logger.info(
            f"Creating engagement {scenario.id}: SAM {sam_config.id} vs {fighter_config.type} "
            f"{fighter_config.id}, dt={config.time_step}s, seed={seed}"
        )
        return cls(
            scenario,
            sam_config,
            fighter_config,
            radar,
            config,
            precipitation=precipitation,
            raster=raster,
            jitter_rng=np.random.default_rng(jitter_seq),
        )

    def _build_platforms(self) -> None:
        """Fresh engagement state for both platforms from the scenario."""
        placement = self.scenario.platforms
        self.sam = SAMSystem(
            config=self.sam_config,
            position=placement.sam.position_vec(),
            heading=placement.sam.heading,
        )
        self.fighter = Fighter(
            config=self.fighter_config,
            position=placement.fighter.position_vec(),
            heading=placement.fighter.heading,
        )
        if placement.fighter.flight_path.type == "evasive":
            self.fighter.maneuvers = ManeuverMode.EVASIVE

    @property
    def time_step(self) -> float:
        return self.config.time_step

    @property
    def rain_sampler(self) -> Optional[RainSampler]:
        """The raster if one is configured, else the synthetic field."""
        if self.raster is not None:
            return self.raster
        return self.precipitation

    # =========================================================================
    # Geometry and detection
    # =========================================================================

    def _target_position(self, target: TargetRef) -> Vec2:
        if target == TargetRef.SAM:
            return self.sam.position
        return self.fighter.position

    def _target_platform(self, target: TargetRef) -> Union[SAMSystem, Fighter]:
        if target == TargetRef.SAM:
            return self.sam
        return self.fighter

    def distance_sam_to_fighter(self) -> float:
        return self.sam.position.distance_to(self.fighter.position)

    def azimuth_sam_to_fighter(self) -> float:
        return self.sam.position.bearing_to(self.fighter.position)

    def _detection(self) -> Tuple[float, float, float, float, bool]:
        """(distance, azimuth, aspect RCS, detection range, detected)"""
        distance = self.distance_sam_to_fighter()
        azimuth = self.azimuth_sam_to_fighter()
        rcs = self.fighter.get_rcs_from_position(self.sam.position)

        profile = self._precipitation_profile or self._nominal_profile
        base_range = profile[azimuth_bin(azimuth, len(profile))]
        detection_range = self.radar.calculate_detection_range(rcs, self.sam_config.num_pulses, base_range)

        return distance, azimuth, rcs, detection_range, distance <= detection_range

    # =========================================================================
    # Stepping
    # =========================================================================

    def advance_simulation_time_step(self) -> bool:
        """Advance one step. Returns True once the engagement is complete."""
        if self.is_engagement_complete:
            return True

        dt = self.time_step
        self.time_elapsed += dt
        t = self.time_elapsed

        distance, azimuth, _, _, detected = self._detection()
        self.sam.update_tracking(detected, dt)

        # SAM launch
        if (
            detected
            and self.sam.is_active
            and self.sam.is_within_memr(distance)
            and self.sam.ready_to_fire(t)
        ):
            missile = Missile(
                id=f"SAM-Missile-{t:g}",
                position=self.sam.position,
                velocity=self.sam.missile_velocity_kms(),
                heading=azimuth,
                launched_by=LaunchedBy.SAM,
                time_of_launch=t,
                target=TargetRef.FIGHTER,
                max_range=self.sam.memr,
            )
            self.missiles.append(missile)
            self.sam.record_launch(t)
            logger.info(f"t={t:.1f}s: SAM launched {missile.id} at {distance:.2f} km")

        # HARM launch
        if (
            self.fighter.is_active
            and self.fighter.missiles_remaining > 0
            and self.fighter.should_launch_harm(distance, self.sam.memr, self.sam.is_tracking)
        ):
            missile = Missile(
                id=f"HARM-Missile-{t:g}",
                position=self.fighter.position,
                velocity=self.fighter.harm_velocity_kms(),
                heading=self.fighter.position.bearing_to(self.sam.position),
                launched_by=LaunchedBy.FIGHTER,
                time_of_launch=t,
                target=TargetRef.SAM,
                max_range=self.fighter.harm_range,
            )
            self.missiles.append(missile)
            self.fighter.missiles_remaining -= 1
            logger.info(f"t={t:.1f}s: fighter launched {missile.id} at {distance:.2f} km")

        active = [m for m in self.missiles if m.is_active]

        # Missile headings
        for missile in active:
            if not self.sam.is_tracking:
                missile.heading = jitter_heading(missile.heading, self.rng)
            else:
                missile.heading = guided_heading(
                    missile.heading,
                    missile.position,
                    self._target_position(missile.target),
                    missile.velocity,
                    dt,
                )

        # Missile positions
        for missile in active:
            missile.advance(dt)

        # Fighter heading and position
        fighter_previous = self.fighter.position.copy()
        if self.fighter.is_active:
            if self.fighter.maneuvers == ManeuverMode.EVASIVE:
                self.fighter.heading = evasive_heading(
                    self.fighter.heading,
                    self.fighter.position,
                    self.sam.position,
                    self.fighter.velocity_kms(),
                    dt,
                )
            self.fighter.position = self.fighter.position + Vec2.from_heading(
                self.fighter.heading, self.fighter.velocity_kms() * dt
            )

        # Intercepts
        killed = False
        for missile in active:
            target_position = self._target_position(missile.target)
            target_previous = fighter_previous if missile.target == TargetRef.FIGHTER else target_position

            if check_intercept(missile, target_position, target_previous):
                missile.status = MissileStatus.KILL
                missile.time_of_impact = t
                self._target_platform(missile.target).state = PlatformState.DESTROYED
                logger.info(f"t={t:.1f}s: {missile.id} killed the {missile.target.value}")
                killed = True
                break

            if missile.max_range is not None and missile.distance_flown(t) >= missile.max_range:
                missile.status = MissileStatus.MISSED
                logger.info(f"t={t:.1f}s: {missile.id} missed (max range {missile.max_range:.1f} km)")

        # End conditions
        if killed:
            self.is_engagement_complete = True
        elif self.missiles and not any(m.is_active for m in self.missiles):
            self.is_engagement_complete = True
        elif self.time_elapsed >= self.config.max_time:
            self.time_elapsed = self.config.max_time
            self.is_engagement_complete = True

        logger.debug(
            f"t={self.time_elapsed:.1f}s d={distance:.2f}km az={azimuth:.1f} "
            f"tracking={self.sam.is_tracking} missiles={len(self.missiles)}"
        )
        return self.is_engagement_complete

    def run_to_completion(self) -> EngagementResult:
        while not self.advance_simulation_time_step():
            pass
        return self.engagement_result()

    def engagement_complete(self) -> bool:
        return self.is_engagement_complete

    def reset_scenario(self) -> None:
        """Back to t = 0 with the same configs, rain field and profiles."""
        self.time_elapsed = 0.0
        self.missiles = []
        self.is_engagement_complete = False
        self._build_platforms()

    # =========================================================================
    # Read-back
    # =========================================================================

    def get_time_elapsed(self) -> float:
        return self.time_elapsed

    def get_missiles(self) -> Tuple[Missile, ...]:
        return tuple(self.missiles)

    def engagement_result(self) -> EngagementResult:
        """success: the SAM site survived."""
        return EngagementResult(
            scenario_id=self.scenario.id,
            missile_results=[MissileResult.from_missile(m) for m in self.missiles],
            success=self.sam.state != PlatformState.DESTROYED,
            timestamp=datetime.now(timezone.utc),
        )

    def get_state(self) -> EngagementSnapshot:
        distance, azimuth, rcs, detection_range, detected = self._detection()
        return EngagementSnapshot(
            time=self.time_elapsed,
            sam=self.sam.to_dict(),
            fighter=self.fighter.to_dict(),
            distance=distance,
            azimuth=azimuth,
            fighter_rcs=rcs,
            detection_range=detection_range,
            detected=detected,
            within_memr=self.sam.is_within_memr(distance),
            should_launch_harm=self.fighter.should_launch_harm(distance, self.sam.memr, self.sam.is_tracking),
            in_vulnerability_window=in_vulnerability_window(distance, self.sam.memr, self.fighter.memr_ratio),
            complete=self.is_engagement_complete,
            missiles=[m.to_dict() for m in self.missiles],
        )

    def nominal_ranges(self) -> List[float]:
        return list(self._nominal_profile)

    def precipitation_ranges(self) -> Optional[List[float]]:
        """Attenuated 1 m^2 profile, or None without rain."""
        if self._precipitation_profile is None:
            return None
        return list(self._precipitation_profile)

    def detection_ranges(self, ranges: List[float], rcs: float, num_pulses: int) -> List[float]:
        """Scale a 1 m^2 profile to a target RCS and pulse count."""
        return [self.radar.calculate_detection_range(rcs, num_pulses, r) for r in ranges]
