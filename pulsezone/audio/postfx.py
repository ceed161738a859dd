# pulsezone/audio/postfx.py
from __future__ import annotations
import numpy as np
from scipy.signal import butter, sosfiltfilt

def _butter_filter(x: np.ndarray, sr: int, cutoff: float, btype: str, order: int = 4) -> np.ndarray:
    ny = 0.5 * sr
    wc = np.clip(cutoff / ny, 1e-6, 0.999999)
    sos = butter(order, wc, btype=btype, output="sos")
    # zero-phase, so cue onsets are not smeared
    return sosfiltfilt(sos, x).astype(np.float32)

def highpass(x: np.ndarray, sr: int, cutoff_hz: float) -> np.ndarray:
    if cutoff_hz <= 0 or x.size < 32:
        return x
    return _butter_filter(x, sr, cutoff_hz, btype="highpass")

def lowpass(x: np.ndarray, sr: int, cutoff_hz: float) -> np.ndarray:
    if cutoff_hz <= 0 or cutoff_hz >= 0.5 * sr or x.size < 32:
        return x
    return _butter_filter(x, sr, cutoff_hz, btype="lowpass")

def apply_fade(x: np.ndarray, sr: int, fade_ms: float = 5.0) -> np.ndarray:
    """Linear fade-in/out so tone edges do not click."""
    n = min(int(sr * fade_ms / 1000.0), x.size // 2)
    if n <= 0:
        return x
    y = x.astype(np.float32, copy=True)
    ramp = np.linspace(0.0, 1.0, n, dtype=np.float32)
    y[:n] *= ramp
    y[-n:] *= ramp[::-1]
    return y

def normalize_peak(x: np.ndarray, target: float = 0.90) -> np.ndarray:
    target = float(np.clip(target, 0.0, 1.0))
    peak = float(np.max(np.abs(x))) if x.size else 0.0
    if peak <= 1e-12 or target == 0.0:
        return x
    return (x * (target / peak)).astype(np.float32)
