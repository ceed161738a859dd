# tests/test_session.py
import pytest

from pulsezone.control.session import SessionAggregator, SessionStats

from conftest import sample


def test_empty_session_is_all_zero():
    s = SessionAggregator()
    s.start()
    assert s.stats() == SessionStats(0.0, 0.0, 0.0, 0, 0.0)


def test_never_started_session_is_all_zero():
    assert SessionAggregator().stats() == SessionStats()


def test_batches_go_in_front_newest_first():
    s = SessionAggregator()
    s.start()
    s.append([sample(100, 1), sample(98, 0)])
    s.append([sample(110, 3), sample(105, 2)])
    assert [x.bpm for x in s.samples()] == [110, 105, 100, 98]
    assert s.latest().bpm == 110


def test_average_is_arithmetic_mean():
    values = [72.5, 88.0, 131.25, 164.0, 99.9]
    s = SessionAggregator()
    s.start()
    for i, v in enumerate(values):
        s.append([sample(v, i)])
    st = s.stats()
    assert st.count == len(values)
    assert st.average_bpm == pytest.approx(sum(values) / len(values))
    assert st.min_bpm == 72.5
    assert st.max_bpm == 164.0


def test_duration_spans_oldest_to_newest():
    s = SessionAggregator()
    s.start()
    s.append([sample(90, 0)])
    s.append([sample(95, 4)])
    s.append([sample(99, 11)])
    assert s.stats().duration_sec == pytest.approx(11.0)


def test_single_sample_has_zero_duration():
    s = SessionAggregator()
    s.start()
    s.append([sample(90, 5)])
    assert s.stats().duration_sec == 0.0


def test_identical_timestamps_are_kept():
    s = SessionAggregator()
    s.start()
    s.append([sample(90, 1), sample(90, 1)])
    assert len(s) == 2


def test_start_twice_is_same_as_once():
    s = SessionAggregator()
    s.start()
    s.append([sample(90, 1)])
    s.start()
    s.start()
    assert s.active
    assert s.samples() == ()
    assert s.stats() == SessionStats()


def test_stop_freezes_but_keeps_samples():
    s = SessionAggregator()
    s.start()
    s.append([sample(120, 0)])
    s.stop()
    assert s.append([sample(130, 1)]) == 0
    assert not s.active
    assert [x.bpm for x in s.samples()] == [120]


def test_samples_is_a_copy():
    s = SessionAggregator()
    s.start()
    s.append([sample(120, 0)])
    snap = s.samples()
    s.append([sample(121, 1)])
    assert len(snap) == 1
