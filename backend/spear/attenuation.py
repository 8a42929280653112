"""
Rain Attenuation Table - ITU Specific Attenuation Lookup

Rain absorbs and scatters microwave energy. The loss per km of path
("specific attenuation", dB/km) depends on frequency and rain rate.
We use a tabulated matrix:

- Rows:    frequency, 5.0 to 15.0 GHz in 0.2 GHz steps (51 rows)
- Columns: rain rate, the fixed ITU axis below (19 columns, mm/hr)
- Cells:   attenuation in dB/km

Lookups use bilinear interpolation (scipy RegularGridInterpolator).

Where the table comes from:
- A headerless CSV (one row per frequency, one column per rain rate), or
- The built-in ITU-R P.838-3 power law, gamma = k * R^alpha, with
  horizontal-polarization k and alpha coefficients.

The table must be loaded before any query. Queries before that raise
ITUDataNotLoaded; radar models are built only after loading.
"""

from __future__ import annotations
import logging
import math
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np
from scipy.interpolate import RegularGridInterpolator

from .errors import ITUDataNotLoaded

logger = logging.getLogger(__name__)

# Rain-rate axis of the table (mm/hr)
ITU_RAIN_RATES = np.array([
    0.01, 0.1, 0.5, 1, 2, 3, 4, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55, 60,
], dtype=float)

# Frequency axis of the table (GHz)
ITU_FREQ_MIN = 5.0
ITU_FREQ_MAX = 15.0
ITU_FREQ_STEP = 0.2
ITU_FREQUENCIES = np.round(
    ITU_FREQ_MIN + ITU_FREQ_STEP * np.arange(int(round((ITU_FREQ_MAX - ITU_FREQ_MIN) / ITU_FREQ_STEP)) + 1),
    1,
)

# ITU-R P.838-3 horizontal polarization coefficients: GHz -> (k, alpha)
P838_COEFFICIENTS = {
    5.0: (0.0002162, 1.6969),
    6.0: (0.0007056, 1.5900),
    7.0: (0.001915, 1.4810),
    8.0: (0.004115, 1.3905),
    9.0: (0.007535, 1.3155),
    10.0: (0.01217, 1.2571),
    11.0: (0.01772, 1.2140),
    12.0: (0.02386, 1.1825),
    13.0: (0.03041, 1.1586),
    14.0: (0.03738, 1.1396),
    15.0: (0.04481, 1.1233),
}


def p838_coefficients(frequency_ghz: float) -> tuple:
    """
    (k, alpha) at an arbitrary frequency.

    log k is interpolated linearly in log f, alpha linearly in log f.
    """
    freqs = np.array(sorted(P838_COEFFICIENTS))
    ks = np.array([P838_COEFFICIENTS[f][0] for f in freqs])
    alphas = np.array([P838_COEFFICIENTS[f][1] for f in freqs])

    log_f = math.log10(frequency_ghz)
    log_freqs = np.log10(freqs)
    k = 10 ** float(np.interp(log_f, log_freqs, np.log10(ks)))
    alpha = float(np.interp(log_f, log_freqs, alphas))
    return k, alpha


def p838_table() -> np.ndarray:
    """Full (frequency x rain rate) matrix from the power law."""
    table = np.zeros((len(ITU_FREQUENCIES), len(ITU_RAIN_RATES)))
    for i, freq in enumerate(ITU_FREQUENCIES):
        k, alpha = p838_coefficients(float(freq))
        table[i, :] = k * ITU_RAIN_RATES ** alpha
    return table


class AttenuationTable:
    """
    Frequency x rain-rate attenuation matrix.

    Usage:
        table = AttenuationTable.from_p838()
        db_per_km = table.get(10.0, 25.0)
    """

    def __init__(self):
        self.values: Optional[np.ndarray] = None
        self._interpolator: Optional[RegularGridInterpolator] = None
        self._warned_clamp = False

    @property
    def is_loaded(self) -> bool:
        return self._interpolator is not None

    def load_array(self, values: np.ndarray) -> None:
        values = np.asarray(values, dtype=float)
        expected = (len(ITU_FREQUENCIES), len(ITU_RAIN_RATES))
        if values.shape != expected:
            raise ValueError(f"ITU table must have shape {expected}, got {values.shape}")

        self.values = values
        self._interpolator = RegularGridInterpolator(
            (ITU_FREQUENCIES, ITU_RAIN_RATES),
            values,
            method="linear",
        )

    def load_csv(self, filepath: Union[str, Path]) -> None:
        """Load a headerless CSV: one row per frequency, one column per rain rate."""
        path = Path(filepath)
        try:
            values = np.loadtxt(path, delimiter=",", ndmin=2)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read ITU table {path}: {e}")
            raise

        self.load_array(values)
        logger.info(f"Loaded ITU attenuation table from {path} ({values.shape[0]} frequencies)")

    @classmethod
    def from_csv(cls, filepath: Union[str, Path]) -> "AttenuationTable":
        table = cls()
        table.load_csv(filepath)
        return table

    @classmethod
    def from_p838(cls) -> "AttenuationTable":
        table = cls()
        table.load_array(p838_table())
        logger.info("Loaded built-in ITU-R P.838-3 attenuation table")
        return table

    def _require_loaded(self) -> None:
        if not self.is_loaded:
            raise ITUDataNotLoaded("ITU attenuation data not loaded")

    def _clamp(self, frequency_ghz: float, rain_rate: float) -> tuple:
        freq = min(max(frequency_ghz, ITU_FREQ_MIN), ITU_FREQ_MAX)
        rate = min(max(rain_rate, ITU_RAIN_RATES[0]), ITU_RAIN_RATES[-1])
        if (freq != frequency_ghz or rate != rain_rate) and not self._warned_clamp:
            logger.warning(
                f"ITU lookup ({frequency_ghz} GHz, {rain_rate} mm/hr) outside table; "
                f"clamped to ({freq} GHz, {rate} mm/hr)"
            )
            self._warned_clamp = True
        return freq, rate

    def get(self, frequency_ghz: float, rain_rate: float) -> float:
        """Specific attenuation (dB/km). Zero for no rain."""
        self._require_loaded()
        if rain_rate <= 0:
            return 0.0

        freq, rate = self._clamp(frequency_ghz, rain_rate)
        return float(self._interpolator([[freq, rate]])[0])

    def rate_curve(self, frequency_ghz: float) -> Callable[[float], float]:
        """
        Attenuation as a function of rain rate at a fixed frequency.

        Same values as get() - bilinear interpolation is separable, so the
        frequency interpolation is done once up front. Used by the radar,
        which samples thousands of rain rates at its single frequency.
        """
        self._require_loaded()
        freq, _ = self._clamp(frequency_ghz, ITU_RAIN_RATES[0])
        row = np.array([
            self._interpolator([[freq, r]])[0] for r in ITU_RAIN_RATES
        ])
        rate_min = ITU_RAIN_RATES[0]
        rate_max = ITU_RAIN_RATES[-1]

        def curve(rain_rate: float) -> float:
            if rain_rate <= 0:
                return 0.0
            rate = min(max(rain_rate, rate_min), rate_max)
            return float(np.interp(rate, ITU_RAIN_RATES, row))

        return curve
