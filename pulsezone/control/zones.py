# pulsezone/control/zones.py
from __future__ import annotations
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Tuple

from pulsezone.errors import ConfigurationError, InvalidParameter

DEFAULT_MAX_HR = 190.0


class Zone(IntEnum):
    """Training zones, ordered by ascending intensity."""
    REST = 0
    FAT_BURN = 1
    CARDIO = 2
    PEAK = 3


@dataclass(frozen=True)
class ZoneBands:
    # lower bounds in % of max HR; each band is [lower, next lower)
    fat_burn_pct: float = 60.0
    cardio_pct:   float = 70.0
    peak_pct:     float = 85.0

    def __post_init__(self):
        lows = (self.fat_burn_pct, self.cardio_pct, self.peak_pct)
        if any(not math.isfinite(v) or v <= 0 for v in lows):
            raise ConfigurationError(f"zone bands must be positive percentages (got {lows})")
        if not (lows[0] < lows[1] < lows[2]):
            raise ConfigurationError(f"zone bands must be strictly ascending (got {lows})")

    def ranges(self) -> Dict[Zone, Tuple[float, float]]:
        """Half-open [low, high) percentage range per zone; PEAK is open-ended."""
        return {
            Zone.REST:     (0.0, self.fat_burn_pct),
            Zone.FAT_BURN: (self.fat_burn_pct, self.cardio_pct),
            Zone.CARDIO:   (self.cardio_pct, self.peak_pct),
            Zone.PEAK:     (self.peak_pct, math.inf),
        }


def percent_of_max(bpm: float, max_heart_rate: float) -> float:
    """Heart rate as a percentage of max HR. Rejects a non-positive max."""
    max_hr = float(max_heart_rate)
    if not math.isfinite(max_hr) or max_hr <= 0:
        raise InvalidParameter(f"max heart rate must be > 0 (got {max_heart_rate!r})")
    value = float(bpm)
    if not math.isfinite(value):
        raise InvalidParameter(f"bpm must be a finite number (got {bpm!r})")
    return value / max_hr * 100.0


def max_hr_from_age(age: int) -> float:
    """Age-predicted max HR (220 - age)."""
    max_hr = 220.0 - float(age)
    if max_hr <= 0:
        raise InvalidParameter(f"age {age!r} gives a non-positive max heart rate")
    return max_hr


class ZoneClassifier:
    def __init__(self, bands: ZoneBands | None = None):
        self.bands = bands or ZoneBands()

    def classify(self, bpm: float, max_heart_rate: float = DEFAULT_MAX_HR) -> Zone:
        """
        Map a reading to its zone. Lower bounds are inclusive, so exactly
        60/70/85 % land in the higher zone. Anything from the peak bound up
        (including above 100 %) is PEAK; zero or negative bpm is REST.
        """
        pct = percent_of_max(bpm, max_heart_rate)
        if pct >= self.bands.peak_pct:
            return Zone.PEAK
        if pct >= self.bands.cardio_pct:
            return Zone.CARDIO
        if pct >= self.bands.fat_burn_pct:
            return Zone.FAT_BURN
        return Zone.REST


_DEFAULT_CLASSIFIER = ZoneClassifier()


def classify(bpm: float, max_heart_rate: float = DEFAULT_MAX_HR) -> Zone:
    return _DEFAULT_CLASSIFIER.classify(bpm, max_heart_rate)
