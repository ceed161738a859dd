"""
Audio-cue feedback.

Each effect is a short pattern of sine beeps (rising for escalate, falling
for de-escalate, a triple beep for warning, ...). Patterns are rendered once
with numpy, band-limited and peak-normalized, then written as one WAV cue file per
effect on a single background worker so trigger() never blocks the
monitoring loop.
"""

from __future__ import annotations
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import numpy as np
import soundfile as sf

from pulsezone.audio.metrics import cue_metrics
from pulsezone.audio.postfx import apply_fade, highpass, lowpass, normalize_peak
from pulsezone.feedback.dispatcher import Effect, FeedbackExecutor, register_feedback

logger = logging.getLogger(__name__)

SR_DEFAULT = 22050

# (frequency Hz, seconds); 0 Hz is a gap
PATTERNS: Dict[Effect, List[Tuple[float, float]]] = {
    Effect.TAP:           [(1000.0, 0.04)],
    Effect.BEGIN_SESSION: [(660.0, 0.08), (0.0, 0.04), (880.0, 0.12)],
    Effect.END_SESSION:   [(880.0, 0.08), (0.0, 0.04), (660.0, 0.12)],
    Effect.ESCALATE:      [(523.0, 0.07), (659.0, 0.07), (784.0, 0.10)],
    Effect.DE_ESCALATE:   [(784.0, 0.07), (659.0, 0.07), (523.0, 0.10)],
    Effect.WARNING:       [(440.0, 0.12), (0.0, 0.06), (440.0, 0.12), (0.0, 0.06), (440.0, 0.12)],
    Effect.SUCCESS:       [(784.0, 0.08), (1046.0, 0.14)],
}


def render_effect(
    effect: Effect,
    sr: int = SR_DEFAULT,
    highpass_hz: float = 200.0,
    lowpass_hz: float = 6000.0,
    peak_target: float = 0.80,
) -> np.ndarray:
    """Mono float32 cue for `effect`."""
    parts = []
    for freq, dur in PATTERNS[effect]:
        n = int(sr * dur)
        if freq <= 0:
            parts.append(np.zeros(n, dtype=np.float32))
            continue
        t = np.arange(n, dtype=np.float32) / float(sr)
        beep = np.sin(2.0 * np.pi * freq * t).astype(np.float32)
        parts.append(apply_fade(beep, sr, fade_ms=5.0))
    wav = np.concatenate(parts) if parts else np.zeros(0, dtype=np.float32)
    wav = highpass(wav, sr, highpass_hz)
    wav = lowpass(wav, sr, lowpass_hz)
    return normalize_peak(wav, target=peak_target)


@register_feedback("tone")
class ToneFeedback(FeedbackExecutor):
    """
    Keeps one WAV per effect at ``<cue_dir>/<effect>.wav`` for an external
    player. A file is rendered and written the first time its effect fires
    (overwriting any copy from an earlier run); later triggers reuse it and
    only log the cue.
    """
    def __init__(self, cue_dir: str = "outputs/cues", sample_rate: int = SR_DEFAULT,
                 peak_target: float = 0.80, **kwargs) -> None:
        super().__init__(**kwargs)
        self.cue_dir = Path(cue_dir)
        self.sample_rate = int(sample_rate)
        self.peak_target = float(peak_target)
        self._cache: Dict[Effect, np.ndarray] = {}
        self._written: Set[Effect] = set()
        self._pool: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tone-cue")

    def cue(self, effect: Effect) -> np.ndarray:
        wav = self._cache.get(effect)
        if wav is None:
            wav = render_effect(effect, sr=self.sample_rate, peak_target=self.peak_target)
            self._cache[effect] = wav
        return wav

    def cue_path(self, effect: Effect) -> Path:
        return self.cue_dir / f"{effect.value}.wav"

    def _write(self, effect: Effect) -> Path:
        path = self.cue_path(effect)
        if effect in self._written:
            return path
        wav = self.cue(effect)
        self.cue_dir.mkdir(parents=True, exist_ok=True)
        sf.write(str(path), wav, self.sample_rate, subtype="PCM_16")
        self._written.add(effect)
        logger.debug("cue %s -> %s %s", effect.value, path, cue_metrics(wav, self.sample_rate))
        return path

    @staticmethod
    def _report(fut: Future) -> None:
        err = fut.exception()
        if err is not None:
            logger.warning("writing cue failed: %s", err)
            return
        logger.info("cue: %s", fut.result())

    def trigger(self, effect: Effect) -> None:
        if self._pool is None:
            raise RuntimeError("ToneFeedback is closed")
        fut = self._pool.submit(self._write, effect)
        fut.add_done_callback(self._report)

    def close(self) -> None:
        """Wait for pending cues to be written and stop the worker."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
