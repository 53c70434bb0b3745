from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta
import logging

import numpy as np
import pytest

from ditherquality.metrics import QualityRating, compute_quality
from ditherquality.session import DitherEvent, DitherSession
from ditherquality.settling import SettleStatistics, settle_statistics

T0 = datetime(2024, 3, 1, 22, 0, 0)


def _dither(session: DitherSession, dx: float, dy: float, settle: float = 2.0, success: bool = True, at: int = 0):
    start = T0 + timedelta(minutes=at)
    session.begin_dither(dx, dy, timestamp=start)
    return session.complete_dither(success, timestamp=start + timedelta(seconds=settle))


# ------------------------------------------------------------------------------
# Settle statistics
# ------------------------------------------------------------------------------
def test_settle_statistics_over_successful_events():
    events = []
    for i, (seconds, success) in enumerate([(1.0, True), (2.0, True), (3.0, True), (10.0, True), (5.0, False)]):
        start = T0 + timedelta(minutes=i)
        events.append(DitherEvent(
            start_time=start,
            pixel_shift_x=0.0,
            pixel_shift_y=0.0,
            end_time=start + timedelta(seconds=seconds),
            success=success,
        ))
    stats = settle_statistics(events)
    assert stats.total == 5
    assert stats.successful == 4
    assert stats.success_rate == pytest.approx(80.0)
    assert stats.average == pytest.approx(4.0)
    assert stats.median == pytest.approx(2.5)
    assert stats.minimum == pytest.approx(1.0)
    assert stats.maximum == pytest.approx(10.0)
    assert stats.std_dev == pytest.approx(12.5 ** 0.5)


def test_settle_statistics_without_data():
    assert settle_statistics([]) == SettleStatistics()
    failed = DitherEvent(start_time=T0, pixel_shift_x=1.0, pixel_shift_y=1.0, end_time=T0, success=False)
    stats = settle_statistics([failed])
    assert stats.total == 1
    assert stats.successful == 0
    assert stats.success_rate == 0.0
    assert stats.average == 0.0


def test_pending_event_has_no_settle_time():
    event = DitherEvent(start_time=T0, pixel_shift_x=0.5, pixel_shift_y=0.5)
    assert event.settle_time is None


# ------------------------------------------------------------------------------
# Session
# ------------------------------------------------------------------------------
def test_positions_accumulate_pixel_shifts():
    session = DitherSession()
    first = _dither(session, 0.3, 0.4, settle=2.5)
    second = _dither(session, 0.5, -0.1, at=1)
    assert first.settle_time == pytest.approx(2.5)
    assert first.position == pytest.approx((0.3, 0.4))
    assert second.position == pytest.approx((0.8, 0.3))
    np.testing.assert_allclose(session.positions(), [(0.3, 0.4), (0.8, 0.3)])


def test_failed_settle_still_moves_the_position():
    session = DitherSession()
    _dither(session, 1.25, 0.0)
    _dither(session, 1.25, 0.0, success=False, at=1)
    assert session.positions()[-1] == pytest.approx((2.5, 0.0))
    assert session.statistics().total == 2
    assert session.statistics().successful == 1


def test_quality_published_after_each_dither():
    session = DitherSession()
    received = []
    session.subscribe(lambda quality, stats: received.append((quality, stats)))

    shifts = [(0.25, 0.25), (0.0, 0.5), (0.5, 0.0), (0.0, -0.5)]
    for i, (dx, dy) in enumerate(shifts):
        _dither(session, dx, dy, at=i)

    assert len(received) == 4
    assert all(q.quality_rating is QualityRating.INSUFFICIENT_DATA for q, _ in received[:3])
    last_quality, last_stats = received[-1]
    assert last_quality.total_positions == 4
    assert last_quality.is_sufficient
    assert last_stats.total == 4
    assert session.quality() == last_quality
    assert "Total Dithers: 4" in session.report()


def test_failing_subscriber_does_not_block_others(caplog):
    session = DitherSession()
    calls = []

    def broken(quality, stats):
        raise RuntimeError("chart closed")

    session.subscribe(broken)
    session.subscribe(lambda quality, stats: calls.append(quality))
    with caplog.at_level(logging.ERROR, logger="ditherquality"):
        _dither(session, 0.1, 0.2)
    assert len(calls) == 1
    assert "chart closed" in caplog.text


def test_unsubscribe_stops_notifications():
    session = DitherSession()
    calls = []

    def listener(quality, stats):
        calls.append(quality)

    session.subscribe(listener)
    session.subscribe(listener)
    _dither(session, 0.1, 0.1)
    session.unsubscribe(listener)
    _dither(session, 0.1, 0.1, at=1)
    assert len(calls) == 1


def test_settle_without_pending_dither_is_ignored(caplog):
    session = DitherSession()
    with caplog.at_level(logging.WARNING, logger="ditherquality"):
        assert session.complete_dither(True) is None
    assert session.events() == ()
    assert "no dither was pending" in caplog.text


def test_new_dither_replaces_unsettled_one(caplog):
    session = DitherSession()
    with caplog.at_level(logging.WARNING, logger="ditherquality"):
        session.begin_dither(5.0, 5.0, timestamp=T0)
        session.begin_dither(0.2, 0.3, timestamp=T0 + timedelta(seconds=10))
    event = session.complete_dither(True, timestamp=T0 + timedelta(seconds=12))
    assert event.position == pytest.approx((0.2, 0.3))
    assert event.settle_time == pytest.approx(2.0)
    assert "discarding the previous one" in caplog.text


def test_injected_clock_is_used():
    ticks = iter([T0, T0 + timedelta(seconds=4)])
    session = DitherSession(clock=lambda: next(ticks))
    session.begin_dither(0.1, 0.1)
    event = session.complete_dither(True)
    assert event.settle_time == pytest.approx(4.0)


def test_reset_clears_history_but_keeps_subscribers():
    session = DitherSession()
    calls = []
    session.subscribe(lambda quality, stats: calls.append(quality))
    for i in range(5):
        _dither(session, 0.3, 0.7, at=i)
    session.reset()
    assert session.positions() == ()
    assert session.quality().quality_rating is QualityRating.INSUFFICIENT_DATA
    assert session.statistics() == SettleStatistics()
    _dither(session, 0.1, 0.1)
    assert len(calls) == 6
    np.testing.assert_allclose(session.positions(), [(0.1, 0.1)])


def test_session_uses_configured_pixfrac():
    coarse = DitherSession(pixfrac=1.0)
    fine = DitherSession(pixfrac=0.3)
    for session in (coarse, fine):
        for i, (dx, dy) in enumerate([(0.25, 0.25), (0.0, 0.5), (0.5, 0.0), (0.0, -0.5), (0.3, 0.1)]):
            _dither(session, dx, dy, at=i)
    assert coarse.quality().gap_fill.scale2 > fine.quality().gap_fill.scale2


def test_returned_events_cannot_rewrite_history():
    session = DitherSession()
    event = _dither(session, 0.3, 0.4)
    with pytest.raises(FrozenInstanceError):
        event.cumulative_x = 99.0
    with pytest.raises(FrozenInstanceError):
        session.events()[0].success = False
    _dither(session, 0.1, 0.1, at=1)
    np.testing.assert_allclose(session.positions(), [(0.3, 0.4), (0.4, 0.5)])
    assert session.events()[0].success


def test_reset_during_assessment_keeps_the_newer_result(monkeypatch):
    session = DitherSession()
    received = []
    session.subscribe(lambda quality, stats: received.append(quality))
    for i in range(3):
        _dither(session, 0.1, 0.1, at=i)

    interrupted = []

    def interleaved(positions, **kwargs):
        if not interrupted:
            interrupted.append(positions)
            session.reset()
            for i, (dx, dy) in enumerate([(0.25, 0.25), (0.0, 0.5), (0.5, 0.0), (0.0, -0.5)]):
                _dither(session, dx, dy, at=10 + i)
        return compute_quality(positions, **kwargs)

    monkeypatch.setattr("ditherquality.session.compute_quality", interleaved)
    _dither(session, 0.1, 0.1, at=3)

    assert len(interrupted[0]) == 4
    np.testing.assert_allclose(session.positions(), [(0.25, 0.25), (0.25, 0.75), (0.75, 0.75), (0.75, 0.25)])
    expected = compute_quality(session.positions(), pixfrac=session.pixfrac)
    assert session.quality() == expected
    assert session.statistics().total == 4
    assert len(received) == 7
    assert received[-1] == expected


def test_session_rejects_invalid_pixfrac():
    with pytest.raises(ValueError, match="pixfrac"):
        DitherSession(pixfrac=0.0)
