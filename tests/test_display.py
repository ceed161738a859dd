# tests/test_display.py
from pulsezone.control.controller import MonitoringState, Phase
from pulsezone.control.session import SessionStats
from pulsezone.control.zones import Zone
from ui.display import (
    ZONE_DISPLAY, bpm_range, colorize, format_duration, render_state, render_stats, zone_table,
)

from conftest import at


def test_every_zone_has_display_attributes():
    assert set(ZONE_DISPLAY) == set(Zone)
    assert [ZONE_DISPLAY[z].color for z in Zone] == ["green", "yellow", "orange", "red"]
    assert ZONE_DISPLAY[Zone.PEAK].range_label == "85-100%"


def test_bpm_ranges_at_190():
    assert bpm_range(Zone.REST, 190) == "95-114"
    assert bpm_range(Zone.CARDIO, 190) == "133-161"
    assert bpm_range(Zone.PEAK, 190) == "161-190"


def test_format_duration():
    assert format_duration(0) == "00:00"
    assert format_duration(125.9) == "02:05"
    assert format_duration(-3) == "00:00"


def test_colorize():
    assert colorize("Peak", Zone.PEAK, enabled=False) == "Peak"
    out = colorize("Peak", Zone.PEAK)
    assert out.startswith("\033[31m") and out.endswith("\033[0m")


def test_zone_table_mentions_formula():
    rows = zone_table(185)
    assert len(rows) == 5
    assert rows[0].startswith("Rest")
    assert rows[-1] == "Based on max HR: 185 BPM (formula: 220 - age)"


def test_render_state():
    s = MonitoringState(current_bpm=162.4, current_zone=Zone.PEAK, previous_zone=Zone.CARDIO,
                        is_monitoring=True, phase=Phase.MONITORING, sample_count=12,
                        last_updated=at(0))
    line = render_state(s)
    assert line.startswith("09:00:00")
    assert "162 BPM" in line
    assert "zone=Peak" in line and "prev=Cardio" in line
    assert "samples=12" in line and "phase=monitoring" in line
    assert "error=" not in line


def test_render_state_before_any_reading():
    line = render_state(MonitoringState(last_error="Authorization failed: denied"))
    assert line.startswith("--:--:--")
    assert "prev=-" in line
    assert line.endswith("error=Authorization failed: denied")


def test_render_stats():
    assert render_stats(SessionStats()) == ["No data yet. Start monitoring to collect heart rate data."]
    lines = render_stats(SessionStats(min_bpm=98, max_bpm=171.6, average_bpm=133.3, count=40, duration_sec=95))
    assert lines[0] == "Average  : 133 BPM"
    assert "40 samples collected" in lines[3]
    assert lines[4].endswith("01:35")
