from __future__ import annotations
import asyncio
import itertools
import logging
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Deque, Dict, List, Optional, Tuple
from threading import Lock, Thread

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from pulsezone.errors import AuthorizationFailed, DeviceUnavailable, FetchFailed
from pulsezone.io.hr_source import BatchCallback, HRSource, Sample, register_source

logger = logging.getLogger(__name__)

# Standard Heart Rate Measurement Characteristic
HR_CHAR_UUID = "00002a37-0000-1000-8000-00805f9b34fb"
DEFAULT_DEVICE_NAME = "Polar"

def parse_hr_measurement(data: bytes) -> Optional[int]:
    """
    Parse Bluetooth SIG Heart Rate Measurement value.
    Returns bpm as int, or None if cannot parse / out of plausible range.
    """
    if not data:
        return None
    flags = data[0]
    if flags & 0x01:
        if len(data) < 3:
            return None
        bpm = int.from_bytes(data[1:3], byteorder="little")
    else:
        if len(data) < 2:
            return None
        bpm = data[1]
    return bpm if 20 <= bpm <= 240 else None


async def discover_devices(timeout: float = 8.0) -> List[Tuple[str, str]]:
    """(name, address) of every advertising BLE device seen within `timeout`."""
    devices = await BleakScanner.discover(timeout=timeout)
    return [(d.name or "", d.address) for d in devices]


@register_source("polar")
class PolarHeartRateSource(HRSource):
    """
    Bluetooth LE heart-rate strap (any device exposing the standard HR service).

    Authorization = find, connect and start notifications. Bleak runs on a
    persistent private loop thread so notifications never target a closed
    loop; subscribers are called from that thread.
    Keeps a rolling deque of samples limited by a time window (default 30 s).
    """
    def __init__(self, device: Optional[str] = None, window_sec: float = 30.0,
                 scan_timeout: float = 5.0, **kwargs):
        super().__init__(**kwargs)
        self.device_query = device or DEFAULT_DEVICE_NAME
        self.window_sec = float(window_sec)
        self.scan_timeout = float(scan_timeout)
        self._deque: Deque[Sample] = deque()  # oldest at the left

        self._client: Optional[BleakClient] = None
        self._connected: bool = False

        self._listeners: Dict[int, BatchCallback] = {}
        self._lock = Lock()
        self._handles = itertools.count(1)

        # Dedicated asyncio loop & thread (lazy-started on authorization)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[Thread] = None

    # ---------- loop/thread helpers ----------
    def _ensure_loop(self):
        if self._loop is not None:
            return
        self._loop = asyncio.new_event_loop()
        self._thread = Thread(target=self._loop.run_forever, name="polar-ble", daemon=True)
        self._thread.start()

    def _run(self, coro):
        fut = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return fut.result()

    # ---------- async internals ----------
    async def _a_find_device(self) -> Optional[str]:
        dq = (self.device_query or "").strip()
        if ":" in dq or dq.count("-") >= 5:
            return dq  # looks like an address
        devices = await BleakScanner.discover(timeout=self.scan_timeout)
        dq_lower = dq.lower()
        for d in devices:
            if dq_lower and dq_lower in (d.name or "").lower():
                return d.address
        return None

    async def _a_connect(self):
        if self._connected:
            return
        try:
            address = await self._a_find_device()
        except (BleakError, OSError) as e:
            raise DeviceUnavailable(f"Bluetooth scan failed: {e}") from e
        if not address:
            raise AuthorizationFailed(f"HR device '{self.device_query}' not found. Wake it and retry.")
        self._client = BleakClient(address)
        try:
            await self._client.connect()
            await self._client.start_notify(HR_CHAR_UUID, self._on_hr_notify)
        except BleakError as e:
            raise AuthorizationFailed(f"could not connect to {address}: {e}") from e
        self._connected = True
        logger.info("Connected to HR device %s", address)

    async def _a_disconnect(self):
        if self._client and self._connected:
            try:
                await self._client.stop_notify(HR_CHAR_UUID)
            except BleakError as e:
                logger.debug("stop_notify failed: %s", e)
            try:
                await self._client.disconnect()
            except BleakError as e:
                logger.debug("disconnect failed: %s", e)
        self._connected = False
        self._client = None

    # ---------- notifications ----------
    def _on_hr_notify(self, sender, data: bytearray):
        bpm = parse_hr_measurement(bytes(data))
        if bpm is None:
            return
        sample = Sample(bpm=float(bpm), timestamp=datetime.now(timezone.utc))
        cut = sample.timestamp - timedelta(seconds=self.window_sec)
        with self._lock:
            self._deque.append(sample)
            # prune outside the window
            while self._deque and self._deque[0].timestamp < cut:
                self._deque.popleft()
            listeners = list(self._listeners.values())
        for cb in listeners:
            try:
                cb((sample,))
            except Exception:
                logger.exception("HR subscriber raised; dropping this delivery")

    # ---------- HRSource API ----------
    def is_available(self) -> bool:
        """
        True when a bleak backend can be created on this host. A missing or
        powered-off adapter only shows up once scanning starts, as
        DeviceUnavailable from request_authorization().
        """
        try:
            BleakScanner()
        except (BleakError, OSError) as e:
            logger.warning("Bluetooth LE backend unavailable: %s", e)
            return False
        return True

    async def request_authorization(self) -> bool:
        self._ensure_loop()
        fut = asyncio.run_coroutine_threadsafe(self._a_connect(), self._loop)
        await asyncio.wrap_future(fut)
        return True

    async def fetch_latest(self) -> Optional[Sample]:
        if not self._connected:
            raise FetchFailed(f"not connected to '{self.device_query}'")
        with self._lock:
            return self._deque[-1] if self._deque else None

    def subscribe(self, on_batch: BatchCallback) -> int:
        handle = next(self._handles)
        with self._lock:
            self._listeners[handle] = on_batch
        return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            self._listeners.pop(handle, None)

    def recent(self) -> Tuple[Sample, ...]:
        with self._lock:
            return tuple(reversed(self._deque))

    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self):
        if self._loop is None:
            return
        self._run(self._a_disconnect())

    def close(self):
        """Disconnect and fully stop the background loop/thread."""
        if self._loop is None:
            return
        try:
            self.disconnect()
        except BleakError as e:
            logger.warning("HR device disconnect failed: %s", e)
        try:
            self._loop.call_soon_threadsafe(self._loop.stop)
            if self._thread:
                self._thread.join(timeout=2.0)
        finally:
            self._thread = None
            self._loop = None
