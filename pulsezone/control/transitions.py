from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pulsezone.control.zones import Zone


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class TransitionEvent:
    previous: Zone
    current: Zone
    direction: Direction
    entered_peak: bool


def detect(previous: Optional[Zone], current: Zone) -> Optional[TransitionEvent]:
    """
    Compare two consecutive classifications.
    Returns None for the first classification of a session (no previous
    zone) or when the zone did not change.
    """
    if previous is None or previous == current:
        return None
    direction = Direction.UP if current > previous else Direction.DOWN
    return TransitionEvent(
        previous=previous,
        current=current,
        direction=direction,
        entered_peak=current is Zone.PEAK,
    )
