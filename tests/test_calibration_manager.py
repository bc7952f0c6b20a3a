from __future__ import annotations

import threading

import pytest

from processing.calibration_manager import CalibrationManager, parse_weight
from processing.channel_store import ChannelStore


def _set_raw(store: ChannelStore, channel_id: int, value: float) -> None:
    raw = store.raw_values()
    raw[channel_id - 1] = value
    store.update_raw(raw)


def test_parse_weight() -> None:
    assert parse_weight("100") == 100.0
    assert parse_weight(" 2.5 ") == 2.5
    assert parse_weight(7) == 7.0
    for bad in ("", "abc", "nan", "inf", None, True):
        assert parse_weight(bad) is None


def test_rejects_non_numeric_weight_without_state_change(store: ChannelStore) -> None:
    session = CalibrationManager(store, 1)
    messages = []
    session.status_signal.connect(messages.append)

    assert session.add_point("heavy") is False
    assert session.points == ()
    assert session.phase == CalibrationManager.PHASE_OPEN
    assert messages == ["Please enter a valid number for weight."]


def test_identity_slope_commit_is_a_no_op(store: ChannelStore) -> None:
    store.apply_calibration(1, 1.5)
    session = CalibrationManager(store, 1)
    _set_raw(store, 1, 100.0)
    session.add_point(100)
    _set_raw(store, 1, 200.0)
    session.add_point(200)

    assert session.phase == CalibrationManager.PHASE_READY
    slope, r_squared = session.result()
    assert slope == pytest.approx(1.0)
    assert r_squared == pytest.approx(1.0)

    assert session.commit() is True
    assert session.phase == CalibrationManager.PHASE_COMMITTED
    assert store.get(1).calibration_slope == 1.5


def test_commit_writes_regression_slope_over_tared_points(store: ChannelStore) -> None:
    _set_raw(store, 2, 10.0)
    store.tare_all()
    session = CalibrationManager(store, 2)
    results = []
    session.result_signal.connect(lambda s, r: results.append((s, r)))

    _set_raw(store, 2, 30.0)   # tared 20 at 10 kg
    session.add_point("10")
    _set_raw(store, 2, 50.0)   # tared 40 at 20 kg
    session.add_point(20)

    assert session.tared_points() == [(10.0, 20.0), (20.0, 40.0)]
    assert results[-1] == (pytest.approx(2.0), pytest.approx(1.0))
    assert session.commit() is True
    assert store.get(2).calibration_slope == pytest.approx(2.0)
    assert store.get(2).tare_value == 10.0


def test_commit_requires_two_points(store: ChannelStore) -> None:
    session = CalibrationManager(store, 1)
    assert session.commit() is False
    session.add_point(5)
    assert session.commit() is False
    assert session.phase == CalibrationManager.PHASE_OPEN


def test_abandon_discards_points(store: ChannelStore) -> None:
    session = CalibrationManager(store, 3)
    _set_raw(store, 3, 4.0)
    session.add_point(1)
    _set_raw(store, 3, 9.0)
    session.add_point(2)

    assert session.abandon() is True
    assert session.points == ()
    assert session.phase == CalibrationManager.PHASE_ABANDONED
    assert store.get(3).calibration_slope == 1.0
    assert session.add_point(3) is False
    assert session.commit() is False


def test_remove_point_returns_to_open(store: ChannelStore) -> None:
    session = CalibrationManager(store, 1)
    _set_raw(store, 1, 1.0)
    session.add_point(1)
    _set_raw(store, 1, 3.0)
    session.add_point(2)
    assert session.remove_point(0) is True
    assert session.points == ((2.0, 3.0),)
    assert session.phase == CalibrationManager.PHASE_OPEN
    assert session.remove_point(5) is False


def test_regression_uses_current_tare(store: ChannelStore) -> None:
    session = CalibrationManager(store, 1)
    _set_raw(store, 1, 10.0)
    session.add_point(0)
    _set_raw(store, 1, 20.0)
    session.add_point(5)
    _set_raw(store, 1, 10.0)
    store.tare_all()
    assert session.tared_points() == [(0.0, 0.0), (5.0, 10.0)]


def test_commit_does_not_revert_concurrent_tare(store: ChannelStore) -> None:
    session = CalibrationManager(store, 1)
    _set_raw(store, 1, 10.0)
    session.add_point(10)
    _set_raw(store, 1, 30.0)
    session.add_point(20)

    _set_raw(store, 1, 7.0)
    thread = threading.Thread(target=store.tare_all)
    thread.start()
    session.commit()
    thread.join()

    channel = store.get(1)
    assert channel.tare_value == 7.0
    assert channel.calibration_slope == pytest.approx(2.0)


def test_unknown_channel_is_rejected(store: ChannelStore) -> None:
    with pytest.raises(KeyError):
        CalibrationManager(store, 42)


def test_repeated_weight_commit_leaves_slope_unchanged(store: ChannelStore) -> None:
    session = CalibrationManager(store, 4)
    for raw in (0.0, 1.0, 2.0):
        _set_raw(store, 4, raw)
        session.add_point("12.34")

    assert session.result() == (1.0, 0.0)
    assert session.commit() is True
    assert store.get(4).calibration_slope == 1.0


def test_clear_points_returns_to_open(store: ChannelStore) -> None:
    session = CalibrationManager(store, 1)
    _set_raw(store, 1, 1.0)
    session.add_point(1)
    _set_raw(store, 1, 3.0)
    session.add_point(2)

    assert session.clear_points() is True
    assert session.points == ()
    assert session.phase == CalibrationManager.PHASE_OPEN
    assert session.commit() is False

    session.abandon()
    assert session.clear_points() is False
