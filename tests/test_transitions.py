# tests/test_transitions.py
import itertools

from pulsezone.control.transitions import Direction, detect
from pulsezone.control.zones import Zone


def test_first_classification_has_no_event():
    for z in Zone:
        assert detect(None, z) is None


def test_same_zone_has_no_event():
    for z in Zone:
        assert detect(z, z) is None


def test_direction_follows_zone_order():
    for prev, cur in itertools.permutations(Zone, 2):
        ev = detect(prev, cur)
        assert ev is not None
        assert ev.direction is (Direction.UP if cur > prev else Direction.DOWN)
        assert ev.previous is prev and ev.current is cur


def test_cardio_to_peak_flags_peak_entry():
    ev = detect(Zone.CARDIO, Zone.PEAK)
    assert ev.direction is Direction.UP
    assert ev.entered_peak is True


def test_leaving_peak_is_not_peak_entry():
    ev = detect(Zone.PEAK, Zone.CARDIO)
    assert ev.direction is Direction.DOWN
    assert ev.entered_peak is False


def test_rest_straight_to_peak():
    ev = detect(Zone.REST, Zone.PEAK)
    assert ev.direction is Direction.UP and ev.entered_peak
