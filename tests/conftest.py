# tests/conftest.py
from pathlib import Path
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Ensure project root is on sys.path for `import pulsezone.*` / `import ui.*`
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pulsezone.errors import FetchFailed
from pulsezone.feedback.dispatcher import FeedbackExecutor
from pulsezone.io.hr_source import HRSource, Sample

T0 = datetime(2026, 2, 8, 9, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def sample(bpm: float, seconds: float = 0.0) -> Sample:
    return Sample(bpm=bpm, timestamp=at(seconds))


class FakeSource(HRSource):
    """In-memory source; tests push batches with emit()."""

    def __init__(self, available=True, grant=True, auth_error=None, fetch_result=None, fetch_error=None):
        super().__init__()
        self.available = available
        self.grant = grant
        self.auth_error = auth_error
        self.fetch_result = fetch_result
        self.fetch_error = fetch_error
        self.listeners = {}
        self.unsubscribed = []
        self.closed = False
        self._next = 0

    def is_available(self):
        return self.available

    async def request_authorization(self):
        if self.auth_error is not None:
            raise self.auth_error
        return self.grant

    async def fetch_latest(self):
        if self.fetch_error is not None:
            raise FetchFailed(self.fetch_error)
        return self.fetch_result

    def subscribe(self, on_batch):
        self._next += 1
        self.listeners[self._next] = on_batch
        return self._next

    def unsubscribe(self, handle):
        self.unsubscribed.append(handle)
        self.listeners.pop(handle, None)

    def emit(self, *batch):
        for cb in list(self.listeners.values()):
            cb(batch)

    def close(self):
        self.closed = True


class RecordingFeedback(FeedbackExecutor):
    def __init__(self, fail=False):
        super().__init__()
        self.effects = []
        self.fail = fail

    def trigger(self, effect):
        if self.fail:
            raise RuntimeError("haptic engine offline")
        self.effects.append(effect)


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def feedback():
    return RecordingFeedback()
