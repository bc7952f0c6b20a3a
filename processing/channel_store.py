"""
Holds the state of the 8 load cell channels: raw value, tare, calibration
slope, category and display name.
Every mutation of a persisted field saves the whole channel configuration.
"""
import dataclasses
import enum
import logging
import math
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import config
from .config_store import ConfigStore

logger = logging.getLogger(__name__)


class Category(enum.Enum):
    """Signed axis assignment of a channel. Values are the persisted strings."""
    NONE = 'none'
    PLUS_X = 'x'
    MINUS_X = '-x'
    PLUS_Y = 'y'
    MINUS_Y = '-y'


@dataclass(frozen=True)
class Channel:
    id: int
    name: str
    raw_value: float = 0.0
    tare_value: float = 0.0
    calibration_slope: float = 1.0
    category: Category = Category.NONE

    @property
    def processed_value(self) -> float:
        return (self.raw_value - self.tare_value) * self.calibration_slope

    def to_record(self) -> dict:
        """Persisted subset of the channel (raw value is never stored)."""
        return {
            'id': self.id,
            'name': self.name,
            'tareValue': self.tare_value,
            'calibrationSlope': self.calibration_slope,
            'category': self.category.value,
        }


def default_channels(num_channels: int = config.NUM_CHANNELS) -> List[Channel]:
    return [
        Channel(id=i + 1, name=config.DEFAULT_CHANNEL_NAME.format(n=i + 1))
        for i in range(num_channels)
    ]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def channels_from_records(records, num_channels: int = config.NUM_CHANNELS) -> Optional[List[Channel]]:
    """
    Rebuild channels from persisted records.

    Returns:
        List of channels, or None if the records are not a list of exactly
        num_channels well-formed objects.
    """
    if not isinstance(records, list) or len(records) != num_channels:
        return None
    channels = []
    for record in records:
        if not isinstance(record, dict):
            return None
        channel_id = record.get('id')
        name = record.get('name')
        tare = record.get('tareValue')
        slope = record.get('calibrationSlope')
        if not isinstance(channel_id, int) or isinstance(channel_id, bool) or not isinstance(name, str):
            return None
        if not _is_number(tare) or not _is_number(slope):
            return None
        try:
            category = Category(record.get('category'))
        except ValueError:
            return None
        channels.append(Channel(
            id=channel_id,
            name=name,
            tare_value=float(tare),
            calibration_slope=float(slope),
            category=category,
        ))
    if len({c.id for c in channels}) != num_channels:
        return None
    return channels


class ChannelStore:
    """
    Owns the channel records for the process lifetime.

    All access goes through a re-entrant lock, so a reader never sees a
    partially applied update. Compound operations (e.g. committing a
    calibration against the current tare) may hold `lock` across calls.
    """

    def __init__(self, config_store: Optional[ConfigStore] = None, num_channels: int = config.NUM_CHANNELS):
        self.num_channels = num_channels
        self._config_store = config_store
        self._lock = threading.RLock()
        self._channels: List[Channel] = []
        self.load()

    @property
    def lock(self):
        return self._lock

    def load(self):
        """Load the persisted configuration, falling back to defaults."""
        channels = None
        if self._config_store is not None:
            records = self._config_store.load()
            if records is not None:
                channels = channels_from_records(records, self.num_channels)
                if channels is None:
                    logger.warning("Stored channel configuration is malformed, using defaults")
        if channels is None:
            channels = default_channels(self.num_channels)
        with self._lock:
            self._channels = channels

    def persist(self) -> bool:
        """Save the persisted subset of all channels. Write failures are logged only."""
        if self._config_store is None:
            return True
        with self._lock:
            records = [c.to_record() for c in self._channels]
        return self._config_store.save(records)

    def snapshot(self) -> Tuple[Channel, ...]:
        with self._lock:
            return tuple(self._channels)

    def get(self, channel_id: int) -> Channel:
        with self._lock:
            return self._channels[self._index(channel_id)]

    def names(self) -> List[str]:
        with self._lock:
            return [c.name for c in self._channels]

    def raw_values(self) -> List[float]:
        with self._lock:
            return [c.raw_value for c in self._channels]

    def update_raw(self, values: Sequence[float]):
        """Overwrite all raw values as one unit."""
        values = [float(v) for v in values]
        if len(values) != self.num_channels:
            raise ValueError(f"Expected {self.num_channels} raw values, got {len(values)}")
        with self._lock:
            self._channels = [
                dataclasses.replace(c, raw_value=v) for c, v in zip(self._channels, values)
            ]

    def tare_all(self):
        """Set every channel's tare to its current raw value."""
        with self._lock:
            self._channels = [dataclasses.replace(c, tare_value=c.raw_value) for c in self._channels]
            self.persist()

    def set_category(self, channel_id: int, category):
        self._update(channel_id, category=Category(category))

    def apply_calibration(self, channel_id: int, new_slope: float):
        self._update(channel_id, calibration_slope=float(new_slope))

    def set_name(self, channel_id: int, name: str):
        # Names end up in TSV headers: no tabs or line breaks
        name = " ".join(str(name).replace("\t", " ").splitlines()).strip()
        self._update(channel_id, name=name)

    def _update(self, channel_id, **changes):
        with self._lock:
            index = self._index(channel_id)
            self._channels[index] = dataclasses.replace(self._channels[index], **changes)
            self.persist()

    def _index(self, channel_id):
        for i, channel in enumerate(self._channels):
            if channel.id == channel_id:
                return i
        raise KeyError(f"Unknown channel id: {channel_id}")
