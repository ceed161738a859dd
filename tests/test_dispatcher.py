# tests/test_dispatcher.py
import pytest

from pulsezone.control.transitions import detect
from pulsezone.control.zones import Zone
from pulsezone.feedback.dispatcher import (
    Effect, FeedbackDispatcher, LoggingFeedback, NullFeedback, create_feedback,
)

from conftest import RecordingFeedback


def test_up_into_peak_escalates_then_warns(feedback):
    d = FeedbackDispatcher(feedback)
    out = d.dispatch(detect(Zone.CARDIO, Zone.PEAK))
    assert out == [Effect.ESCALATE, Effect.WARNING]
    assert feedback.effects == [Effect.ESCALATE, Effect.WARNING]


def test_up_below_peak_only_escalates(feedback):
    d = FeedbackDispatcher(feedback)
    assert d.dispatch(detect(Zone.REST, Zone.FAT_BURN)) == [Effect.ESCALATE]


def test_down_de_escalates(feedback):
    d = FeedbackDispatcher(feedback)
    assert d.dispatch(detect(Zone.PEAK, Zone.REST)) == [Effect.DE_ESCALATE]
    assert feedback.effects == [Effect.DE_ESCALATE]


def test_no_event_no_effect(feedback):
    d = FeedbackDispatcher(feedback)
    assert d.dispatch(None) == []
    assert feedback.effects == []


def test_executor_failure_is_swallowed():
    d = FeedbackDispatcher(RecordingFeedback(fail=True))
    assert d.trigger(Effect.TAP) is False
    # still reports what it asked for
    assert d.dispatch(detect(Zone.CARDIO, Zone.PEAK)) == [Effect.ESCALATE, Effect.WARNING]


def test_default_executor_is_silent():
    d = FeedbackDispatcher()
    assert isinstance(d.executor, NullFeedback)
    assert d.trigger(Effect.SUCCESS) is True


def test_effect_names_match_haptic_patterns():
    assert [e.value for e in Effect] == [
        "tap", "beginSession", "endSession", "escalate", "deEscalate", "warning", "success",
    ]


def test_create_feedback_by_name():
    assert isinstance(create_feedback("log"), LoggingFeedback)
    assert isinstance(create_feedback("NONE"), NullFeedback)
    with pytest.raises(ValueError):
        create_feedback("buzzer")


def test_logging_feedback_logs(caplog):
    caplog.set_level("INFO", logger="pulsezone.feedback.dispatcher")
    FeedbackDispatcher(LoggingFeedback()).trigger(Effect.BEGIN_SESSION)
    assert "beginSession" in caplog.text
