from __future__ import annotations

import pytest

from processing.buffer_manager import LogEntry
from processing.stability import estimate_stability


def test_fewer_than_two_entries_gives_zero() -> None:
    assert estimate_stability([]) == ((0.0,) * 8, 0.0, 0.0)
    single = [LogEntry(1.0, 2.0, (3.0,) * 8)]
    assert estimate_stability(single) == ((0.0,) * 8, 0.0, 0.0)


@pytest.mark.parametrize("d, k", [(0.5, 2), (0.25, 7), (-1.5, 20)])
def test_arithmetic_sequence_gives_hundred_times_difference(d: float, k: int) -> None:
    entries = [LogEntry(10 + d * i, -d * i, tuple(d * i + c for c in range(8))) for i in range(k)]
    result = estimate_stability(entries)

    assert result.channels == pytest.approx([100 * d] * 8)
    assert result.total_x == pytest.approx(100 * d)
    assert result.total_y == pytest.approx(-100 * d)


def test_only_trailing_window_is_used() -> None:
    # 30 flat entries followed by 20 rising ones: the flat part falls outside the window
    flat = [LogEntry(0.0, 0.0, (0.0,) * 8) for _ in range(30)]
    rising = [LogEntry(float(i), 0.0, (float(i),) * 8) for i in range(20)]
    result = estimate_stability(flat + rising)
    assert result.total_x == pytest.approx(100.0)
    assert result.channels[0] == pytest.approx(100.0)


def test_missing_channel_values_count_as_zero() -> None:
    entries = [LogEntry(0.0, 0.0, (float(i),)) for i in range(5)]
    result = estimate_stability(entries)
    assert result.channels[0] == pytest.approx(100.0)
    assert result.channels[1:] == (0.0,) * 7
