"""
pulsezone configuration.

Built-in DEFAULTS, optionally overridden by a YAML file (configs/defaults.yaml
by default) and then by CLI flags in the ui scripts.
"""

from __future__ import annotations
import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pulsezone.control.zones import DEFAULT_MAX_HR, max_hr_from_age

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/defaults.yaml")

# --------- defaults (mirror configs/defaults.yaml) ---------
DEFAULTS: Dict[str, Any] = {
    "profile": {
        "max_heart_rate": DEFAULT_MAX_HR,
        "age": None,            # when set, max HR = 220 - age
    },
    "zones": {
        "fat_burn_pct": 60.0,
        "cardio_pct": 70.0,
        "peak_pct": 85.0,
    },
    "source": {
        "name": "sim",
        "polar": {
            "device": "Polar",
            "window_sec": 30.0,
            "scan_timeout": 5.0,
        },
        "sim": {
            "rest_bpm": 65.0,
            "peak_bpm": 180.0,
            "profile_sec": 600.0,
            "interval_sec": 1.0,
            "noise_bpm": 2.0,
            "seed": 4242,
        },
    },
    "feedback": {
        "name": "log",
        "tone": {
            "cue_dir": "outputs/cues",
            "sample_rate": 22050,
            "peak_target": 0.80,
        },
    },
    "logging": {
        "level": "INFO",
    },
}


def _safe_load_yaml(path) -> Dict[str, Any]:
    """Load YAML if present; a missing or unparsable file yields {}."""
    if path is None:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not parse YAML at %s (%s). Falling back to defaults.", p, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top level must be a mapping.", p)
        return {}
    return data


def merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive dict merge; `override` wins. Neither input is modified."""
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def load_config(path: Optional[str | Path] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    return merge(DEFAULTS, _safe_load_yaml(path))


def resolve_max_heart_rate(cfg: Dict[str, Any]) -> float:
    profile = cfg.get("profile", {})
    age = profile.get("age")
    if age is not None:
        return max_hr_from_age(int(age))
    return float(profile.get("max_heart_rate", DEFAULT_MAX_HR))


def configure_logging(level: str | int = "INFO") -> None:
    """basicConfig for the ui scripts; library modules only create loggers."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
