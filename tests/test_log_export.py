from __future__ import annotations

import pytest

from processing.buffer_manager import LogEntry
from processing.log_export import export_tsv, format_number, header_row, parse_tsv

NAMES = [f"Scale {n}" for n in range(1, 9)]


def test_header_replaces_spaces() -> None:
    assert header_row(["Front Left", "B"]) == "X_Total\tY_Total\tFront_Left\tB"


def test_rows_are_oldest_first_with_three_decimals() -> None:
    entries = [
        LogEntry(1.0, -2.5, (0.1234,) * 8),
        LogEntry(5.0, 0.0, tuple(float(i) for i in range(8))),
    ]
    lines = export_tsv(entries, NAMES).split("\n")

    assert lines[0] == "X_Total\tY_Total\t" + "\t".join(f"Scale_{n}" for n in range(1, 9))
    assert lines[1] == "1.000\t-2.500\t" + "\t".join(["0.123"] * 8)
    assert lines[2].split("\t")[:4] == ["5.000", "0.000", "0.000", "1.000"]
    assert len(lines) == 3


def test_round_trip_to_three_decimals() -> None:
    entries = [
        LogEntry(12.34567, -0.0004, tuple(i * 1.11111 for i in range(8))),
        LogEntry(-3.2, 7.9999, (0.5,) * 8),
    ]
    parsed = parse_tsv(export_tsv(entries, NAMES))

    assert len(parsed) == len(entries)
    for original, restored in zip(entries, parsed):
        assert restored.total_x == pytest.approx(original.total_x, abs=5e-4)
        assert restored.total_y == pytest.approx(original.total_y, abs=5e-4)
        assert restored.processed_values == pytest.approx(original.processed_values, abs=5e-4)


def test_parse_rejects_short_rows() -> None:
    with pytest.raises(ValueError):
        parse_tsv("X_Total\tY_Total\tA\n1.000\t2.000")


def test_negative_zero_prints_unsigned() -> None:
    assert format_number(-0.0) == "0.000"
    assert format_number(-0.0004) == "0.000"
    assert format_number(-0.0006) == "-0.001"


def test_header_keeps_one_column_per_channel() -> None:
    header = header_row(["Left\tFront", "Back\nRight"])
    assert header.split("\t") == ["X_Total", "Y_Total", "Left_Front", "Back_Right"]
