from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Type, Optional, List, Sequence, Tuple


@dataclass(frozen=True)
class Sample:
    """One heart-rate reading. bpm <= 0 is passed through, not rejected."""
    bpm: float
    timestamp: datetime


BatchCallback = Callable[[Sequence[Sample]], None]


class HRSource(ABC):
    """
    Unified interface all HR sources must implement.

    Batches handed to subscribers are newest-first and may be delivered from
    any thread; subscribers are responsible for marshalling onto their own
    loop.
    """

    def __init__(self, **kwargs) -> None:
        self._kwargs = kwargs

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the hardware / service exists at all on this machine."""
        ...

    @abstractmethod
    async def request_authorization(self) -> bool:
        """
        Ask for read access (connect / pair etc).
        Returns True on success; may raise DeviceUnavailable or AuthorizationFailed.
        """
        ...

    @abstractmethod
    async def fetch_latest(self) -> Optional[Sample]:
        """One-shot read of the newest sample, None if there is none. Raises FetchFailed."""
        ...

    @abstractmethod
    def subscribe(self, on_batch: BatchCallback) -> int:
        """Start delivering new samples to `on_batch`. Returns a handle for unsubscribe()."""
        ...

    @abstractmethod
    def unsubscribe(self, handle: int) -> None:
        ...

    def recent(self) -> Tuple[Sample, ...]:
        """Optional: samples currently buffered by the source, newest first."""
        return ()

    def close(self) -> None:
        """Optional cleanup."""
        ...


_SOURCE_REGISTRY: Dict[str, Type[HRSource]] = {}

def register_source(name: str):
    """Decorator to register a concrete HRSource under a CLI name."""
    def deco(cls: Type[HRSource]) -> Type[HRSource]:
        _SOURCE_REGISTRY[name.lower()] = cls
        return cls
    return deco

def create_source(name: str, **kwargs) -> HRSource:
    _load_builtin_sources()
    key = (name or "").lower()
    if key not in _SOURCE_REGISTRY:
        raise ValueError(f"Unknown HR source '{name}'. Available: {sorted(_SOURCE_REGISTRY.keys())}")
    return _SOURCE_REGISTRY[key](**kwargs)

def available_sources() -> List[str]:
    _load_builtin_sources()
    return sorted(_SOURCE_REGISTRY.keys())

def _load_builtin_sources() -> None:
    # importing registers them
    import pulsezone.io.simulated  # noqa: F401
    import pulsezone.io.polar_bridge  # noqa: F401
