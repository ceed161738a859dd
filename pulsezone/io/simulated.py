"""
Synthetic heart-rate source.

Plays a repeating workout profile (warm-up, intervals, cool-down) with
gaussian jitter, one sample per tick, from its own worker thread, the same
way a real strap delivers notifications off the caller's loop.
"""

from __future__ import annotations
import asyncio
import itertools
import logging
import math
import time
from collections import deque
from datetime import datetime, timezone
from threading import Event, Lock, Thread
from typing import Deque, Dict, Optional, Tuple

import numpy as np

from pulsezone.errors import FetchFailed
from pulsezone.io.hr_source import BatchCallback, HRSource, Sample, register_source

logger = logging.getLogger(__name__)


@register_source("sim")
class SimulatedHRSource(HRSource):
    def __init__(
        self,
        rest_bpm: float = 65.0,
        peak_bpm: float = 180.0,
        profile_sec: float = 600.0,
        interval_sec: float = 1.0,
        noise_bpm: float = 2.0,
        seed: int = 4242,
        buffer_size: int = 120,
        available: bool = True,
        authorize: bool = True,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        if profile_sec <= 0 or interval_sec <= 0:
            raise ValueError("profile_sec and interval_sec must be > 0")
        self.rest_bpm = float(rest_bpm)
        self.peak_bpm = float(peak_bpm)
        self.profile_sec = float(profile_sec)
        self.interval_sec = float(interval_sec)
        self.noise_bpm = float(noise_bpm)
        self._rng = np.random.default_rng(seed)
        self._available = bool(available)
        self._authorize = bool(authorize)
        self._authorized = False

        self._buffer: Deque[Sample] = deque(maxlen=int(buffer_size))
        self._listeners: Dict[int, BatchCallback] = {}
        self._lock = Lock()
        self._handles = itertools.count(1)

        self._stop = Event()
        self._thread: Optional[Thread] = None
        self._t0 = time.monotonic()

    # ---------- profile ----------
    def intensity_at(self, t_sec: float) -> float:
        """0..1 effort level of the profile at `t_sec` (noise-free)."""
        frac = (t_sec % self.profile_sec) / self.profile_sec
        if frac < 0.2:                      # warm-up
            return 0.5 * frac / 0.2
        if frac < 0.8:                      # intervals, 3 cycles
            phase = (frac - 0.2) / 0.6 * 3.0
            return 0.7 + 0.3 * math.sin(2.0 * math.pi * phase)
        return 0.5 * (1.0 - (frac - 0.8) / 0.2)  # cool-down

    def sample_at(self, t_sec: float) -> Sample:
        level = self.intensity_at(t_sec)
        bpm = self.rest_bpm + (self.peak_bpm - self.rest_bpm) * level
        if self.noise_bpm > 0:
            bpm += float(self._rng.normal(0.0, self.noise_bpm))
        return Sample(bpm=round(bpm, 1), timestamp=datetime.now(timezone.utc))

    # ---------- worker ----------
    def _tick(self) -> Sample:
        # caller holds _lock
        sample = self.sample_at(time.monotonic() - self._t0)
        self._buffer.append(sample)
        return sample

    def _worker(self):
        while not self._stop.wait(self.interval_sec):
            with self._lock:
                sample = self._tick()
                listeners = list(self._listeners.values())
            for cb in listeners:
                try:
                    cb((sample,))
                except Exception:
                    logger.exception("HR subscriber raised; dropping this delivery")

    def _ensure_worker(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self._worker, name="sim-hr", daemon=True)
        self._thread.start()

    # ---------- HRSource API ----------
    def is_available(self) -> bool:
        return self._available

    async def request_authorization(self) -> bool:
        await asyncio.sleep(0)
        self._authorized = self._authorize
        return self._authorized

    async def fetch_latest(self) -> Optional[Sample]:
        if not self._authorized:
            raise FetchFailed("simulated source is not authorized")
        with self._lock:
            return self._buffer[-1] if self._buffer else self._tick()

    def subscribe(self, on_batch: BatchCallback) -> int:
        handle = next(self._handles)
        with self._lock:
            self._listeners[handle] = on_batch
        self._ensure_worker()
        return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            self._listeners.pop(handle, None)

    def recent(self) -> Tuple[Sample, ...]:
        with self._lock:
            return tuple(reversed(self._buffer))

    def close(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
