# ui/display.py
"""Zone colors, icons and text plus small formatters for terminal output."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Tuple

from pulsezone.control.controller import MonitoringState
from pulsezone.control.session import SessionStats
from pulsezone.control.zones import Zone


@dataclass(frozen=True)
class ZoneDisplay:
    label: str
    color: str
    icon: str
    description: str
    range_label: str


ZONE_DISPLAY: Dict[Zone, ZoneDisplay] = {
    Zone.REST:     ZoneDisplay("Rest",     "green",  "figure.stand",    "Recovery zone",      "50-60%"),
    Zone.FAT_BURN: ZoneDisplay("Fat Burn", "yellow", "flame",           "Light exercise",     "60-70%"),
    Zone.CARDIO:   ZoneDisplay("Cardio",   "orange", "figure.run",      "Moderate intensity", "70-85%"),
    Zone.PEAK:     ZoneDisplay("Peak",     "red",    "bolt.heart.fill", "Maximum effort",     "85-100%"),
}

# display-only bpm bounds (fractions of max HR); REST starts at 50 % here
_BPM_FRACTIONS: Dict[Zone, Tuple[float, float]] = {
    Zone.REST:     (0.50, 0.60),
    Zone.FAT_BURN: (0.60, 0.70),
    Zone.CARDIO:   (0.70, 0.85),
    Zone.PEAK:     (0.85, 1.00),
}

_ANSI = {"green": "\033[32m", "yellow": "\033[33m", "orange": "\033[38;5;208m", "red": "\033[31m"}
_RESET = "\033[0m"


def bpm_range(zone: Zone, max_heart_rate: float) -> str:
    low, high = _BPM_FRACTIONS[zone]
    return f"{int(max_heart_rate * low)}-{int(max_heart_rate * high)}"


def format_bpm(bpm: float) -> str:
    return f"{int(bpm)}"


def format_duration(seconds: float) -> str:
    total = int(max(0.0, seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


def colorize(text: str, zone: Zone, enabled: bool = True) -> str:
    if not enabled:
        return text
    return f"{_ANSI[ZONE_DISPLAY[zone].color]}{text}{_RESET}"


def zone_table(max_heart_rate: float) -> List[str]:
    rows = []
    for zone in Zone:
        d = ZONE_DISPLAY[zone]
        rows.append(f"{d.label:9s} {d.range_label:>8s}  {bpm_range(zone, max_heart_rate):>8s} bpm  {d.description}")
    rows.append(f"Based on max HR: {int(max_heart_rate)} BPM (formula: 220 - age)")
    return rows


def render_state(state: MonitoringState, color: bool = False) -> str:
    d = ZONE_DISPLAY[state.current_zone]
    when = state.last_updated.strftime("%H:%M:%S") if state.last_updated else "--:--:--"
    prev = ZONE_DISPLAY[state.previous_zone].label if state.previous_zone is not None else "-"
    line = (f"{when}  {format_bpm(state.current_bpm):>3s} BPM  "
            f"zone={colorize(d.label, state.current_zone, color)}  prev={prev}  "
            f"samples={state.sample_count}  phase={state.phase.value}")
    if state.last_error:
        line += f"  error={state.last_error}"
    return line


def render_stats(stats: SessionStats) -> List[str]:
    if stats.count == 0:
        return ["No data yet. Start monitoring to collect heart rate data."]
    return [
        f"Average  : {format_bpm(stats.average_bpm)} BPM",
        f"Min      : {format_bpm(stats.min_bpm)} BPM",
        f"Max      : {format_bpm(stats.max_bpm)} BPM",
        f"Samples  : {stats.count} samples collected",
        f"Duration : {format_duration(stats.duration_sec)}",
    ]
