"""
Handles processing of raw load cell samples, including:
- Updating the channel store with each raw 8-value frame
- Applying tare and calibration slope per channel
- Summing channels into the signed X and Y totals
- Logging snapshots into the bounded history while ingestion is active
- Deriving stability slopes and the TSV export on read

This is a facade over the processing modules; the UI talks only to it.
"""
import threading

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

import config
from .aggregator import aggregate
from .buffer_manager import LogBuffer, LogEntry
from .calibration_manager import CalibrationManager
from .channel_store import ChannelStore
from .log_export import export_tsv
from .stability import estimate_stability


class DataProcessor(QObject):
    """
    Runs one synchronous pipeline pass per accepted sample:
    raw update -> aggregate -> (if ingesting) log append.
    Operates in the main application thread (receives samples from the
    acquisition thread via queued signals).
    """
    processed_data_signal = pyqtSignal(object)  # Aggregate
    channels_changed_signal = pyqtSignal()
    status_signal = pyqtSignal(str)

    def __init__(self, channel_store=None, log_capacity=config.DEFAULT_LOG_BUFFER_SIZE, parent=None):
        super().__init__(parent)
        self._store = channel_store if channel_store is not None else ChannelStore()
        self._log = LogBuffer(log_capacity)
        self._lock = threading.RLock()
        self._ingesting = False
        self._last_aggregate = aggregate(self._store.snapshot())

    @property
    def channel_store(self):
        return self._store

    @property
    def is_ingesting(self):
        return self._ingesting

    @pyqtSlot(bool)
    def set_ingesting(self, active):
        """Enable or disable logging of pipeline passes (simulated or device input)."""
        with self._lock:
            self._ingesting = bool(active)

    @pyqtSlot(object)
    def process_sample(self, raw_values):
        """
        Run the pipeline for one raw frame.

        Returns:
            Aggregate for the new state, or None if the frame was rejected
        """
        try:
            with self._lock:
                self._store.update_raw(raw_values)
                result = aggregate(self._store.snapshot())
                self._last_aggregate = result
                if self._ingesting:
                    self._log.append(LogEntry.from_aggregate(result))
        except (TypeError, ValueError) as e:
            self.status_signal.emit(f"Invalid sample received: {e}")
            return None
        self.processed_data_signal.emit(result)
        return result

    def _refresh(self):
        # Re-aggregate after a configuration change without logging a tick
        with self._lock:
            self._last_aggregate = aggregate(self._store.snapshot())
            result = self._last_aggregate
        self.channels_changed_signal.emit()
        self.processed_data_signal.emit(result)

    @pyqtSlot()
    def tare_all(self):
        self._store.tare_all()
        self.status_signal.emit("All channels tared.")
        self._refresh()

    def set_category(self, channel_id, category):
        self._store.set_category(channel_id, category)
        self._refresh()

    def set_channel_name(self, channel_id, name):
        self._store.set_name(channel_id, name)
        self.channels_changed_signal.emit()

    def start_calibration(self, channel_id):
        """Open a calibration session for one channel. The caller owns the session."""
        session = CalibrationManager(self._store, channel_id)
        session.status_signal.connect(self.status_signal)
        session.calibration_complete_signal.connect(lambda _id, _slope: self._refresh())
        return session

    def set_log_capacity(self, capacity):
        with self._lock:
            self._log.set_capacity(capacity)

    @property
    def log_capacity(self):
        return self._log.capacity

    @pyqtSlot()
    def clear_log(self):
        with self._lock:
            self._log.clear()

    def get_log(self):
        with self._lock:
            return self._log.entries()

    def get_aggregate(self):
        with self._lock:
            return self._last_aggregate

    def get_stability(self):
        with self._lock:
            entries = self._log.recent(config.STABILITY_WINDOW)
        return estimate_stability(entries, num_channels=self._store.num_channels)

    def export_log(self):
        """Log history as TSV text, or None if the log is empty."""
        with self._lock:
            entries = self._log.entries()
        if not entries:
            return None
        return export_tsv(entries, self._store.names())
