# pulsezone/audio/metrics.py
from __future__ import annotations
import numpy as np

def rms(x: np.ndarray) -> float:
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(x), dtype=np.float64)))

def peak(x: np.ndarray) -> float:
    return float(np.max(np.abs(x))) if x.size else 0.0

def crest_db(x: np.ndarray) -> float:
    r = rms(x)
    p = peak(x)
    if r <= 1e-12:
        return 0.0
    return float(20.0 * np.log10((p + 1e-12) / (r + 1e-12)))

def cue_metrics(x: np.ndarray, sr: int) -> dict:
    return {
        "duration_sec": float(x.size) / float(sr) if sr else 0.0,
        "rms": rms(x),
        "peak": peak(x),
        "crest_db": crest_db(x),
    }
