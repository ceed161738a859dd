"""
Monitoring controller.

Owns the monitoring state machine

    UNAUTHORIZED -> AUTHORIZING -> IDLE <-> MONITORING

and routes every incoming batch through session -> zones -> transitions ->
feedback. All state mutation happens on the controller's asyncio loop:
sources may call back from any thread, and the subscription callback only
hops onto the loop with call_soon_threadsafe. Batches that arrive after
stop(), or from a subscription that is no longer current, are dropped.

Failures from the source are never raised to the caller; they end up as a
message in ``state.last_error``.
"""

from __future__ import annotations
import asyncio
import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pulsezone.config import resolve_max_heart_rate
from pulsezone.control.session import SessionAggregator, SessionStats
from pulsezone.control.transitions import TransitionEvent, detect
from pulsezone.control.zones import (
    DEFAULT_MAX_HR, Zone, ZoneBands, ZoneClassifier, max_hr_from_age,
)
from pulsezone.errors import DeviceUnavailable, InvalidParameter
from pulsezone.feedback.dispatcher import Effect, FeedbackDispatcher, create_feedback
from pulsezone.io.hr_source import HRSource, Sample, create_source

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    UNAUTHORIZED = "unauthorized"
    AUTHORIZING = "authorizing"
    IDLE = "idle"
    MONITORING = "monitoring"


@dataclass(frozen=True)
class MonitoringState:
    current_bpm: float = 0.0
    current_zone: Zone = Zone.REST
    previous_zone: Optional[Zone] = None
    is_monitoring: bool = False
    is_authorized: bool = False
    is_available: bool = False
    max_heart_rate: float = DEFAULT_MAX_HR
    last_error: Optional[str] = None
    last_updated: Optional[datetime] = None
    phase: Phase = Phase.UNAUTHORIZED
    sample_count: int = 0


StateWatcher = Callable[[MonitoringState], None]


class MonitoringController:
    def __init__(
        self,
        source: HRSource,
        dispatcher: FeedbackDispatcher | None = None,
        classifier: ZoneClassifier | None = None,
        max_heart_rate: float = DEFAULT_MAX_HR,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if not max_heart_rate or max_heart_rate <= 0:
            raise InvalidParameter(f"max heart rate must be > 0 (got {max_heart_rate!r})")
        self.source = source
        self.dispatcher = dispatcher or FeedbackDispatcher()
        self.classifier = classifier or ZoneClassifier()
        self._session = SessionAggregator()
        self._loop = loop
        self._handle: Optional[int] = None
        self._generation = 0
        self._last_zone: Optional[Zone] = None
        self._watchers: List[StateWatcher] = []
        self._state = MonitoringState(
            max_heart_rate=float(max_heart_rate),
            is_available=self._probe_available(),
        )

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], loop: asyncio.AbstractEventLoop | None = None) -> "MonitoringController":
        """Build source, feedback executor and zone bands from a load_config() dict."""
        src_cfg = cfg.get("source", {})
        src_name = src_cfg.get("name", "sim")
        source = create_source(src_name, **(src_cfg.get(src_name) or {}))

        fb_cfg = cfg.get("feedback", {})
        fb_name = fb_cfg.get("name", "log")
        executor = create_feedback(fb_name, **(fb_cfg.get(fb_name) or {}))

        return cls(
            source,
            FeedbackDispatcher(executor),
            ZoneClassifier(ZoneBands(**cfg.get("zones", {}))),
            max_heart_rate=resolve_max_heart_rate(cfg),
            loop=loop,
        )

    # ---------- observable state ----------
    @property
    def state(self) -> MonitoringState:
        return self._state

    def watch(self, callback: StateWatcher) -> Callable[[], None]:
        """Call `callback` with every new state. Returns an unwatch function."""
        self._watchers.append(callback)

        def unwatch() -> None:
            if callback in self._watchers:
                self._watchers.remove(callback)
        return unwatch

    def samples(self) -> Tuple[Sample, ...]:
        return self._session.samples()

    def stats(self) -> SessionStats:
        return self._session.stats()

    def zone_for(self, bpm: float) -> Zone:
        return self.classifier.classify(bpm, self._state.max_heart_rate)

    def _update(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for cb in list(self._watchers):
            try:
                cb(self._state)
            except Exception:
                logger.exception("state watcher raised")

    def _fail(self, message: str, **changes) -> None:
        logger.warning(message)
        self._update(last_error=message, **changes)

    def _probe_available(self) -> bool:
        try:
            return bool(self.source.is_available())
        except Exception as e:
            logger.warning("availability check failed: %s", e)
            return False

    # ---------- authorization ----------
    async def request_authorization(self) -> bool:
        """
        UNAUTHORIZED -> AUTHORIZING -> IDLE, or back to UNAUTHORIZED with
        last_error set. In any other phase this just reports is_authorized.
        """
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        if self._state.phase is not Phase.UNAUTHORIZED:
            return self._state.is_authorized
        if not self._state.is_available:
            self._fail("Heart-rate source is not available on this device")
            return False

        self._update(phase=Phase.AUTHORIZING, last_error=None)
        try:
            granted = await self.source.request_authorization()
        except DeviceUnavailable as e:
            self._fail(f"Heart-rate source is not available: {e}",
                       phase=Phase.UNAUTHORIZED, is_available=False, is_authorized=False)
            return False
        except Exception as e:
            self._fail(f"Authorization failed: {e}", phase=Phase.UNAUTHORIZED, is_authorized=False)
            return False
        if not granted:
            self._fail("Authorization failed: access was not granted",
                       phase=Phase.UNAUTHORIZED, is_authorized=False)
            return False

        self._update(phase=Phase.IDLE, is_authorized=True)
        self.dispatcher.trigger(Effect.SUCCESS)
        logger.info("heart-rate source authorized")
        return True

    # ---------- monitoring ----------
    def start(self) -> bool:
        """
        IDLE -> MONITORING. Clears the session and subscribes to the source.
        Deliveries go to the running loop, or to the loop that ran
        request_authorization() when called from plain code.
        """
        if self._state.phase is not Phase.IDLE:
            logger.debug("start() ignored in phase %s", self._state.phase.value)
            return False
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("start() outside a running loop; delivering to %r", self._loop)

        self._session.start()
        self._last_zone = None
        self._generation += 1
        generation = self._generation
        try:
            handle = self.source.subscribe(lambda batch: self._deliver(generation, batch))
        except Exception as e:
            self._session.stop()
            self._fail(f"Could not start monitoring: {e}")
            return False

        self._handle = handle
        self._update(phase=Phase.MONITORING, is_monitoring=True, previous_zone=None,
                     last_error=None, sample_count=0)
        self.dispatcher.trigger(Effect.BEGIN_SESSION)
        logger.info("monitoring started (max HR %.0f)", self._state.max_heart_rate)
        return True

    def stop(self) -> bool:
        """MONITORING -> IDLE. The session is frozen, not cleared."""
        if self._state.phase is not Phase.MONITORING:
            logger.debug("stop() ignored in phase %s", self._state.phase.value)
            return False
        handle, self._handle = self._handle, None
        if handle is not None:
            try:
                self.source.unsubscribe(handle)
            except Exception as e:
                logger.warning("unsubscribe failed: %s", e)
        self._session.stop()
        self._update(phase=Phase.IDLE, is_monitoring=False)
        self.dispatcher.trigger(Effect.END_SESSION)
        logger.info("monitoring stopped after %d sample(s)", len(self._session))
        return True

    def toggle(self) -> bool:
        if self._state.is_monitoring:
            return self.stop()
        return self.start()

    def tap(self) -> None:
        self.dispatcher.trigger(Effect.TAP)

    def set_max_heart_rate(self, age: int) -> bool:
        """max HR = 220 - age, used from the next classification on."""
        try:
            max_hr = max_hr_from_age(age)
        except (InvalidParameter, TypeError, ValueError) as e:
            self._fail(f"Invalid age {age!r}: {e}")
            return False
        self._update(max_heart_rate=max_hr)
        return True

    # ---------- sample path ----------
    def _deliver(self, generation: int, batch: Sequence[Sample]) -> None:
        # source thread: only hop onto the controller loop here
        try:
            self._loop.call_soon_threadsafe(self._on_delivery, generation, tuple(batch))
        except RuntimeError:
            logger.debug("controller loop closed; dropping late batch")

    def _on_delivery(self, generation: int, batch: Tuple[Sample, ...]) -> None:
        if generation != self._generation:
            logger.debug("dropping batch from a stale subscription")
            return
        self.handle_batch(batch)

    def handle_batch(self, batch: Sequence[Sample]) -> Optional[TransitionEvent]:
        """
        Process one newest-first batch. The head of the batch is the latest
        reading. Ignored unless monitoring. Samples with a non-finite bpm
        never reach the session.
        """
        if self._state.phase is not Phase.MONITORING:
            logger.debug("dropping batch of %d sample(s): not monitoring", len(batch))
            return None
        received = tuple(batch)
        batch = tuple(s for s in received if math.isfinite(s.bpm))
        if len(batch) != len(received):
            self._fail(f"Dropped {len(received) - len(batch)} reading(s) with a non-finite bpm")
        self._session.append(batch)
        if not batch:
            return None
        return self._apply_reading(batch[0], sample_count=len(self._session))

    async def fetch_latest(self) -> Optional[Sample]:
        """
        One-shot read while monitoring. The reading is classified like a
        streamed one but is not added to the session. Outside MONITORING
        this does nothing.
        """
        if self._state.phase is not Phase.MONITORING:
            return None
        try:
            sample = await self.source.fetch_latest()
        except Exception as e:
            self._fail(f"Failed to fetch heart rate: {e}")
            return None
        if sample is None or self._state.phase is not Phase.MONITORING:
            return None
        self._apply_reading(sample)
        return sample

    def _apply_reading(self, sample: Sample, **changes) -> Optional[TransitionEvent]:
        try:
            zone = self.classifier.classify(sample.bpm, self._state.max_heart_rate)
        except InvalidParameter as e:
            self._fail(f"Could not classify {sample.bpm!r} bpm: {e}", **changes)
            return None

        prior = self._last_zone
        event = detect(prior, zone)
        self.dispatcher.dispatch(event)
        self._last_zone = zone
        self._update(current_bpm=sample.bpm, last_updated=sample.timestamp,
                     previous_zone=prior, current_zone=zone, **changes)
        return event

    def close(self) -> None:
        self.stop()
        self.source.close()
        self.dispatcher.close()
