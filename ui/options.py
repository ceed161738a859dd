# ui/options.py
"""Flags shared by the ui scripts and how they override the YAML config."""

from __future__ import annotations
import argparse
from typing import Any, Dict

from pulsezone.config import DEFAULT_CONFIG_PATH, load_config


def add_common_args(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to defaults.yaml.")
    p.add_argument("--source", type=str, help="HR source name (see --list-sources in cli.py).")
    p.add_argument("--device", type=str, help="BLE name or address of the HR strap (polar source).")
    p.add_argument("--age", type=int, help="Age; sets max HR to 220 - age.")
    p.add_argument("--max-hr", type=float, help="Max heart rate in BPM (ignored when --age is given).")
    p.add_argument("--feedback", choices=["log", "tone", "none"], help="Feedback executor.")
    p.add_argument("--cue-dir", type=str, help="Where the tone executor writes cue WAVs.")
    p.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING"], help="Logging level.")
    return p


def resolve_config(args) -> Dict[str, Any]:
    """YAML over DEFAULTS, then CLI overrides."""
    cfg = load_config(args.config)

    profile = cfg["profile"]
    if args.age is not None:
        profile["age"] = int(args.age)
    elif args.max_hr is not None:
        profile["age"] = None
        profile["max_heart_rate"] = float(args.max_hr)

    src = cfg["source"]
    if args.source:
        src["name"] = args.source.lower()
    if args.device:
        src.setdefault("polar", {})["device"] = args.device

    fb = cfg["feedback"]
    if args.feedback:
        fb["name"] = args.feedback
    if args.cue_dir:
        fb.setdefault("tone", {})["cue_dir"] = args.cue_dir

    if args.log_level:
        cfg["logging"]["level"] = args.log_level
    return cfg
