# pulsezone/control/session.py
from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Optional, Tuple

import numpy as np

from pulsezone.io.hr_source import Sample


@dataclass(frozen=True)
class SessionStats:
    min_bpm: float = 0.0
    max_bpm: float = 0.0
    average_bpm: float = 0.0
    count: int = 0
    duration_sec: float = 0.0


class SessionAggregator:
    """
    Samples of the active monitoring session, newest first.

    Identical timestamps are not deduplicated: two readings that share a
    timestamp count as two samples.
    """

    def __init__(self) -> None:
        self._samples: Deque[Sample] = deque()
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def __len__(self) -> int:
        return len(self._samples)

    def start(self) -> None:
        """Empty the session and mark it active. Calling it again just restarts."""
        self._samples.clear()
        self._active = True

    def stop(self) -> None:
        """Freeze the session; samples stay available for stats()."""
        self._active = False

    def append(self, batch: Iterable[Sample]) -> int:
        """
        Put a newest-first batch in front of what is already held, keeping
        the batch's own order. Ignored (returns 0) while the session is not
        active.
        """
        if not self._active:
            return 0
        items = list(batch)
        # extendleft reverses, so feed it oldest-first
        self._samples.extendleft(reversed(items))
        return len(items)

    def samples(self) -> Tuple[Sample, ...]:
        return tuple(self._samples)

    def latest(self) -> Optional[Sample]:
        return self._samples[0] if self._samples else None

    def stats(self) -> SessionStats:
        if not self._samples:
            return SessionStats()
        bpm = np.fromiter((s.bpm for s in self._samples), dtype=np.float64, count=len(self._samples))
        duration = 0.0
        if len(self._samples) >= 2:
            duration = (self._samples[0].timestamp - self._samples[-1].timestamp).total_seconds()
        return SessionStats(
            min_bpm=float(bpm.min()),
            max_bpm=float(bpm.max()),
            average_bpm=float(bpm.mean()),
            count=int(bpm.size),
            duration_sec=float(duration),
        )
