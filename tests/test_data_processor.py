from __future__ import annotations

import pytest

from processing.calibration_manager import CalibrationManager
from processing.channel_store import Category, ChannelStore
from processing.data_processor import DataProcessor
from processing.log_export import parse_tsv


@pytest.fixture
def processor(store: ChannelStore) -> DataProcessor:
    return DataProcessor(store, log_capacity=5)


def test_end_to_end_totals_with_tare(processor: DataProcessor) -> None:
    processor.set_ingesting(True)
    processor.process_sample([10.0] * 8)
    processor.set_category(1, "x")
    processor.set_category(2, "-x")

    result = processor.process_sample([10.0] * 8)
    assert result.total_x == pytest.approx(0.0)
    assert result.total_y == pytest.approx(0.0)

    processor.tare_all()
    assert processor.channel_store.get(1).tare_value == 10.0

    result = processor.process_sample([15.0] + [10.0] * 7)
    assert result.total_x == pytest.approx(5.0)
    assert processor.get_aggregate() == result


def test_logs_only_while_ingesting(processor: DataProcessor) -> None:
    processor.process_sample([1.0] * 8)
    assert processor.get_log() == ()

    processor.set_ingesting(True)
    processor.process_sample([2.0] * 8)
    processor.process_sample([3.0] * 8)
    processor.set_ingesting(False)
    processor.process_sample([4.0] * 8)

    assert [e.processed_values[0] for e in processor.get_log()] == [2.0, 3.0]


def test_configuration_changes_do_not_add_log_entries(processor: DataProcessor) -> None:
    processor.set_ingesting(True)
    processor.process_sample([1.0] * 8)
    processor.tare_all()
    processor.set_category(3, Category.PLUS_Y)
    assert len(processor.get_log()) == 1


def test_log_capacity_is_enforced(processor: DataProcessor) -> None:
    processor.set_ingesting(True)
    for i in range(8):
        processor.process_sample([float(i)] * 8)
    assert len(processor.get_log()) == 5
    processor.set_log_capacity(2)
    assert [e.processed_values[0] for e in processor.get_log()] == [6.0, 7.0]


def test_history_is_not_changed_by_later_mutation(processor: DataProcessor) -> None:
    processor.set_ingesting(True)
    processor.set_category(1, Category.PLUS_X)
    processor.process_sample([4.0] * 8)
    processor.channel_store.apply_calibration(1, 3.0)
    processor.tare_all()
    entry = processor.get_log()[0]
    assert entry.total_x == 4.0
    assert entry.processed_values[0] == 4.0


def test_invalid_sample_is_reported_not_raised(processor: DataProcessor) -> None:
    messages = []
    processor.status_signal.connect(messages.append)
    processor.set_ingesting(True)
    assert processor.process_sample([1.0, 2.0]) is None
    assert processor.get_log() == ()
    assert messages and messages[0].startswith("Invalid sample received")


def test_stability_of_rising_channel(processor: DataProcessor) -> None:
    processor.set_log_capacity(50)
    processor.set_ingesting(True)
    for i in range(25):
        processor.process_sample([0.2 * i] + [1.0] * 7)
    stability = processor.get_stability()
    assert stability.channels[0] == pytest.approx(20.0)
    assert stability.channels[1] == pytest.approx(0.0)


def test_export_log(processor: DataProcessor) -> None:
    assert processor.export_log() is None
    processor.set_channel_name(1, "Front Left")
    processor.set_ingesting(True)
    processor.process_sample([1.5] * 8)

    text = processor.export_log()
    assert text.split("\n")[0].split("\t")[2] == "Front_Left"
    assert parse_tsv(text)[0].processed_values == (1.5,) * 8


def test_calibration_session_updates_totals(processor: DataProcessor) -> None:
    changed = []
    processor.channels_changed_signal.connect(lambda: changed.append(True))
    processor.set_category(1, Category.PLUS_X)
    session = processor.start_calibration(1)
    processor.process_sample([10.0] + [0.0] * 7)
    session.add_point(5)
    processor.process_sample([20.0] + [0.0] * 7)
    session.add_point(10)
    assert session.commit() is True

    assert processor.channel_store.get(1).calibration_slope == pytest.approx(2.0)
    assert processor.get_aggregate().total_x == pytest.approx(40.0)
    assert changed


def test_calibration_sessions_are_not_retained(processor: DataProcessor) -> None:
    for channel_id in (1, 2, 3):
        session = processor.start_calibration(channel_id)
        assert session.parent() is None
        session.abandon()
    assert processor.findChildren(CalibrationManager) == []
