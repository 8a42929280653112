"""
Radar Detection Model - Range Equation, Pulse Integration, Rain Loss

How far can the SAM radar see the fighter? We never evaluate the full
radar range equation. Everything is RELATIVE to a nominal range measured
against a 1 m^2 target:

    R = R_nominal * (rcs / 1 m^2)^0.25 * 10^(gain_dB / 40)

KEY CONCEPTS:

1. FOURTH-ROOT SCALING
   Received power falls off as 1/R^4, so a power change of G dB moves
   the detection range by a factor 10^(G/40). A 16 m^2 target is seen
   at twice the 1 m^2 range.

2. PULSE INTEGRATION
   Integrating N pulses raises the effective SNR:
   - Coherent:     gain = 10 log10(sqrt(N))
   - Non-coherent: gain = 10 log10(N^0.7)

3. RAIN ATTENUATION (RAY MARCH)
   Rain along the beam eats into the budget. We march outward from the
   radar along the azimuth in steps, accumulating TWO-WAY loss
   2 * gamma(rain_rate) * step, and keep shrinking the reachable range.
   The march stops at the first step that reaches the shrunken range.
   This finds the self-consistent range where "how far the beam gets"
   matches "how much rain it has crossed".

4. RANGE PROFILES
   Rain cells never move, so the attenuated range for each of 360
   azimuth bins is computed once per scenario and reused every step.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Protocol

from .attenuation import AttenuationTable
from .errors import ITUDataNotLoaded
from .vector import Vec2, normalize_angle

if TYPE_CHECKING:
    from .platforms import FighterPlatformConfig, SAMSystemConfig

logger = logging.getLogger(__name__)

SPEED_OF_SOUND = 343.0   # m/s at sea level
NUM_AZIMUTH_BINS = 360

# Ray-march step, in sample units (pixels / grid samples)
RAY_STEP_SAMPLES = 1.5


class RainSampler(Protocol):
    def sample_rain_rate(self, x: float, y: float) -> float: ...


class PulseIntegration(str, Enum):
    COHERENT = "coherent"
    NONCOHERENT = "noncoherent"


def pulse_integration_gain(mode: PulseIntegration, num_pulses: int) -> float:
    """Integration gain in dB. Zero for a single pulse."""
    if num_pulses <= 1:
        return 0.0
    if mode == PulseIntegration.COHERENT:
        return 10.0 * math.log10(math.sqrt(num_pulses))
    return 10.0 * math.log10(num_pulses ** 0.7)


def range_factor_from_db(gain_db: float) -> float:
    """Range multiplier for a power change of `gain_db` (fourth-root law)."""
    return 10.0 ** (gain_db / 40.0)


def apply_path_attenuation(detection_range: float, attenuation_db: float) -> float:
    """Shrink a range by a (positive) path loss in dB."""
    return detection_range * range_factor_from_db(-attenuation_db)


def missile_flight_time(distance_km: float, velocity_mach: float) -> float:
    """Seconds to cover `distance_km` at `velocity_mach`. Zero velocity -> 0."""
    velocity_kms = velocity_mach * SPEED_OF_SOUND / 1000.0
    if velocity_kms <= 0:
        return 0.0
    return distance_km / velocity_kms


def in_vulnerability_window(distance_km: float, memr: float, memr_ratio: float = 0.9) -> bool:
    """True once the fighter is inside memr_ratio * MEMR of the SAM."""
    return distance_km <= memr * memr_ratio


def azimuth_bin(azimuth_deg: float, num_bins: int = NUM_AZIMUTH_BINS) -> int:
    """Index into a range profile for an azimuth in degrees."""
    return int(round(normalize_angle(azimuth_deg) * num_bins / 360.0)) % num_bins


@dataclass
class RadarConfig:
    nominal_range: float                                      # km against 1 m^2
    frequency: float                                          # GHz
    num_pulses: int = 1
    mode: PulseIntegration = PulseIntegration.NONCOHERENT

    def to_dict(self) -> dict:
        return {
            "nominal_range": self.nominal_range,
            "frequency": self.frequency,
            "num_pulses": self.num_pulses,
            "mode": self.mode.value,
        }


class RadarModel:
    """
    Detection-range calculator for one radar.

    The attenuation table is only needed for rain-aware methods; those
    raise ITUDataNotLoaded without it.
    """

    def __init__(self, config: RadarConfig, attenuation: Optional[AttenuationTable] = None):
        self.config = config
        self.attenuation = attenuation
        self._attenuation_curve: Optional[Callable[[float], float]] = None

    def calculate_detection_range(self, rcs: float, num_pulses: int, base_range: float) -> float:
        """base_range scaled by pulse gain and RCS (both fourth-root)."""
        gain = pulse_integration_gain(self.config.mode, num_pulses)
        return base_range * range_factor_from_db(gain) * (rcs / 1.0) ** 0.25

    def specific_attenuation(self, rain_rate: float) -> float:
        """dB/km at this radar's frequency."""
        if self._attenuation_curve is None:
            if self.attenuation is None or not self.attenuation.is_loaded:
                raise ITUDataNotLoaded("ITU attenuation data not loaded")
            self._attenuation_curve = self.attenuation.rate_curve(self.config.frequency)
        return self._attenuation_curve(rain_rate)

    def attenuated_detection_range(
        self,
        rcs: float,
        position: Vec2,
        azimuth_deg: float,
        sampler: RainSampler,
        step_km: float,
        num_pulses: int = 1,
    ) -> float:
        """
        Ray-marched detection range along one azimuth.

        Returns the range of the first step at or beyond the
        attenuation-adjusted range, or the unattenuated range if the march
        never gets there.
        """
        base = self.calculate_detection_range(rcs, num_pulses, self.config.nominal_range)
        if step_km <= 0:
            return base

        direction = Vec2.from_heading(azimuth_deg)
        num_steps = int(math.ceil(base / step_km))
        adjusted = base
        total_gain_db = 0.0

        for i in range(num_steps):
            current_range = (i + 1) * step_km
            if current_range >= adjusted:
                return current_range

            x = position.x + direction.x * current_range
            y = position.y + direction.y * current_range
            rain_rate = sampler.sample_rain_rate(x, y)
            if rain_rate > 0:
                total_gain_db -= 2.0 * self.specific_attenuation(rain_rate) * step_km
                adjusted = base * range_factor_from_db(total_gain_db)

        return base

    def path_attenuation(
        self,
        start: Vec2,
        end: Vec2,
        sampler: RainSampler,
        samples_per_km: float = 10,
    ) -> float:
        """One-way integrated loss (dB) along a straight path."""
        delta = end - start
        total_distance = delta.magnitude()
        if total_distance == 0:
            return 0.0

        num_samples = max(2, int(math.ceil(total_distance * samples_per_km)))
        step = total_distance / num_samples

        total = 0.0
        for i in range(num_samples):
            t = i / (num_samples - 1)
            rain_rate = sampler.sample_rain_rate(start.x + t * delta.x, start.y + t * delta.y)
            if rain_rate > 0:
                total += self.specific_attenuation(rain_rate) * step
        return total

    def detection_range_along_azimuth(
        self,
        base_range: float,
        position: Vec2,
        azimuth_deg: float,
        sampler: RainSampler,
        samples_per_km: float = 10,
    ) -> float:
        """Single-pass estimate: loss over the full base range, applied once."""
        end = position + Vec2.from_heading(azimuth_deg, base_range)
        loss = self.path_attenuation(position, end, sampler, samples_per_km)
        return apply_path_attenuation(base_range, loss)

    def nominal_range_profile(self, num_bins: int = NUM_AZIMUTH_BINS) -> List[float]:
        """Clear-air 1 m^2 range, identical in every direction."""
        return [self.config.nominal_range] * num_bins

    def attenuated_range_profile(
        self,
        position: Vec2,
        sampler: RainSampler,
        step_km: float,
        num_bins: int = NUM_AZIMUTH_BINS,
    ) -> List[float]:
        """1 m^2, single-pulse ray-marched range for each azimuth bin."""
        profile = [
            self.attenuated_detection_range(1.0, position, i * 360.0 / num_bins, sampler, step_km)
            for i in range(num_bins)
        ]
        logger.info(
            f"Computed attenuated range profile: min {min(profile):.2f} km, "
            f"max {max(profile):.2f} km over {num_bins} azimuths"
        )
        return profile


@dataclass
class EngagementEstimate:
    """Closed-form timeline for a single SAM vs fighter snapshot."""
    detection_range: float
    current_distance: float
    sam_kill_time: float
    harm_kill_time: float
    success: bool
    detected: bool

    def to_dict(self) -> dict:
        return {
            "detection_range": self.detection_range,
            "current_distance": self.current_distance,
            "sam_kill_time": self.sam_kill_time,
            "harm_kill_time": self.harm_kill_time,
            "success": self.success,
            "detected": self.detected,
        }


def estimate_engagement(
    sam: SAMSystemConfig,
    fighter: FighterPlatformConfig,
    distance_km: float,
    fighter_rcs: float,
    path_attenuation_db: float = 0.0,
) -> EngagementEstimate:
    """
    Back-of-envelope engagement outcome without stepping the simulation.

    SAM kill time = auto acquisition time + SAM missile flight time.
    HARM kill time = HARM flight time (immediate launch).
    success means the HARM lands first.
    """
    detection_range = sam.nominal_range * (fighter_rcs / 1.0) ** 0.25
    detection_range = apply_path_attenuation(detection_range, path_attenuation_db)

    sam_kill_time = sam.auto_acquisition_time + missile_flight_time(distance_km, sam.missile_velocity)
    harm_kill_time = missile_flight_time(distance_km, fighter.harm_params.velocity)

    return EngagementEstimate(
        detection_range=detection_range,
        current_distance=distance_km,
        sam_kill_time=sam_kill_time,
        harm_kill_time=harm_kill_time,
        success=harm_kill_time < sam_kill_time,
        detected=distance_km <= detection_range,
    )
