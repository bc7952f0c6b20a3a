"""
Short-window trend ("stability") estimation over the log history.
"""
from typing import NamedTuple, Sequence, Tuple

import config
from .regression import trendline_slope


class Stability(NamedTuple):
    channels: Tuple[float, ...]
    total_x: float
    total_y: float


def estimate_stability(entries: Sequence, num_channels=config.NUM_CHANNELS,
                       window=config.STABILITY_WINDOW, scale=config.STABILITY_SCALE) -> Stability:
    """
    Trend slope of each channel and both totals over the trailing window.

    Args:
        entries: LogEntry sequence, oldest first
        num_channels: Number of per-channel slopes to report
        window: Max number of trailing entries considered
        scale: Multiplier applied to the per-tick slope

    Returns:
        Stability: slopes in units per `scale` ticks, all 0 with fewer than 2 entries
    """
    recent = list(entries)[-window:] if window > 0 else []
    if len(recent) < 2:
        return Stability((0.0,) * num_channels, 0.0, 0.0)

    channel_slopes = []
    for index in range(num_channels):
        series = [
            entry.processed_values[index] if index < len(entry.processed_values) else 0.0
            for entry in recent
        ]
        channel_slopes.append(trendline_slope(series) * scale)

    total_x = trendline_slope([entry.total_x for entry in recent]) * scale
    total_y = trendline_slope([entry.total_y for entry in recent]) * scale
    return Stability(tuple(channel_slopes), total_x, total_y)
