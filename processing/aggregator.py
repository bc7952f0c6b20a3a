"""
Resolves per-channel processed values into the two signed force totals.
"""
from typing import Iterable, NamedTuple, Tuple

from .channel_store import Category, Channel


class Aggregate(NamedTuple):
    processed_values: Tuple[float, ...]
    total_x: float
    total_y: float


def aggregate(channels: Iterable[Channel]) -> Aggregate:
    """Compute processed values and the X/Y totals for a channel snapshot."""
    total_x = 0.0
    total_y = 0.0
    processed = []
    for channel in channels:
        value = channel.processed_value
        processed.append(value)
        category = channel.category
        if category is Category.PLUS_X:
            total_x += value
        elif category is Category.MINUS_X:
            total_x -= value
        elif category is Category.PLUS_Y:
            total_y += value
        elif category is Category.MINUS_Y:
            total_y -= value
        elif category is Category.NONE:
            pass
        else:
            raise ValueError(f"Unhandled category: {category!r}")
    return Aggregate(tuple(processed), total_x, total_y)
