# tests/test_zones.py
import math

import pytest

from pulsezone.control.zones import (
    Zone, ZoneBands, ZoneClassifier, classify, max_hr_from_age, percent_of_max,
)
from pulsezone.errors import ConfigurationError, InvalidParameter


def test_resting_reading_is_rest():
    # 100 / 190 ~ 52.6 %
    assert classify(100, 190) is Zone.REST


def test_peak_reading_above_85_percent():
    # 165 / 190 ~ 86.8 %
    assert classify(165, 190) is Zone.PEAK


@pytest.mark.parametrize("pct, zone", [
    (60, Zone.FAT_BURN),
    (70, Zone.CARDIO),
    (85, Zone.PEAK),
])
def test_boundaries_belong_to_the_higher_zone(pct, zone):
    assert classify(pct, 100) is zone


def test_just_below_boundaries_stay_in_lower_zone():
    assert classify(59.999, 100) is Zone.REST
    assert classify(69.999, 100) is Zone.FAT_BURN
    assert classify(84.999, 100) is Zone.CARDIO


def test_above_max_is_still_peak():
    assert classify(250, 190) is Zone.PEAK


def test_zero_and_negative_bpm_are_rest():
    assert classify(0, 190) is Zone.REST
    assert classify(-20, 190) is Zone.REST


@pytest.mark.parametrize("max_hr", [0, -190, float("nan"), float("inf")])
def test_bad_max_heart_rate_is_rejected(max_hr):
    with pytest.raises(InvalidParameter):
        classify(120, max_hr)


def test_nan_bpm_is_rejected():
    with pytest.raises(InvalidParameter):
        classify(float("nan"), 190)


def test_every_reading_lands_in_exactly_one_band():
    bands = ZoneBands()
    ranges = bands.ranges()
    for bpm in range(0, 260, 3):
        pct = percent_of_max(bpm, 190)
        hits = [z for z, (lo, hi) in ranges.items() if lo <= pct < hi]
        assert hits == [classify(bpm, 190)], f"bpm={bpm} pct={pct:.1f}"


def test_zones_are_ordered_by_intensity():
    assert Zone.REST < Zone.FAT_BURN < Zone.CARDIO < Zone.PEAK
    assert list(Zone) == sorted(Zone)


def test_custom_bands():
    c = ZoneClassifier(ZoneBands(fat_burn_pct=50, cardio_pct=65, peak_pct=90))
    assert c.classify(55, 100) is Zone.FAT_BURN
    assert c.classify(89, 100) is Zone.CARDIO
    assert c.classify(90, 100) is Zone.PEAK


@pytest.mark.parametrize("kwargs", [
    {"fat_burn_pct": 70, "cardio_pct": 60},
    {"cardio_pct": 85, "peak_pct": 85},
    {"fat_burn_pct": 0},
    {"peak_pct": math.nan},
])
def test_bad_bands_are_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        ZoneBands(**kwargs)


def test_max_hr_from_age():
    assert max_hr_from_age(30) == 190.0
    assert max_hr_from_age(0) == 220.0
    with pytest.raises(InvalidParameter):
        max_hr_from_age(220)
