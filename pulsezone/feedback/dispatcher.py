from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Type

from pulsezone.control.transitions import Direction, TransitionEvent

logger = logging.getLogger(__name__)


class Effect(str, Enum):
    TAP = "tap"
    BEGIN_SESSION = "beginSession"
    END_SESSION = "endSession"
    ESCALATE = "escalate"
    DE_ESCALATE = "deEscalate"
    WARNING = "warning"
    SUCCESS = "success"


class FeedbackExecutor(ABC):
    """Plays named feedback effects. trigger() must not block on playback."""

    def __init__(self, **kwargs) -> None:
        self._kwargs = kwargs

    @abstractmethod
    def trigger(self, effect: Effect) -> None:
        ...

    def close(self) -> None:
        """Optional cleanup."""
        ...


_FEEDBACK_REGISTRY: Dict[str, Type[FeedbackExecutor]] = {}

def register_feedback(name: str):
    """Decorator to register a concrete FeedbackExecutor under a CLI name."""
    def deco(cls: Type[FeedbackExecutor]) -> Type[FeedbackExecutor]:
        _FEEDBACK_REGISTRY[name.lower()] = cls
        return cls
    return deco

def create_feedback(name: str, **kwargs) -> FeedbackExecutor:
    import pulsezone.feedback.tones  # noqa: F401  (registers "tone")
    key = (name or "").lower()
    if key not in _FEEDBACK_REGISTRY:
        raise ValueError(f"Unknown feedback executor '{name}'. Available: {sorted(_FEEDBACK_REGISTRY.keys())}")
    return _FEEDBACK_REGISTRY[key](**kwargs)


@register_feedback("log")
class LoggingFeedback(FeedbackExecutor):
    def trigger(self, effect: Effect) -> None:
        logger.info("feedback: %s", effect.value)


@register_feedback("none")
class NullFeedback(FeedbackExecutor):
    def trigger(self, effect: Effect) -> None:
        pass


class FeedbackDispatcher:
    """
    Turns zone transitions into effect requests.

    Feedback is best-effort: an executor failure is logged and otherwise
    ignored, and nothing is retried.
    """

    def __init__(self, executor: FeedbackExecutor | None = None):
        self.executor = executor or NullFeedback()

    def trigger(self, effect: Effect) -> bool:
        try:
            self.executor.trigger(effect)
        except Exception as e:
            logger.warning("feedback effect %s failed: %s", effect.value, e)
            return False
        return True

    def dispatch(self, event: Optional[TransitionEvent]) -> List[Effect]:
        """
        UP -> escalate, DOWN -> de-escalate, plus a separate warning when the
        transition entered PEAK. Returns the effects requested.
        """
        if event is None:
            return []
        effects = [Effect.ESCALATE if event.direction is Direction.UP else Effect.DE_ESCALATE]
        if event.entered_peak:
            effects.append(Effect.WARNING)
        for effect in effects:
            self.trigger(effect)
        logger.debug("zone %s -> %s: %s", event.previous.name, event.current.name,
                     ", ".join(e.value for e in effects))
        return effects

    def close(self) -> None:
        self.executor.close()
