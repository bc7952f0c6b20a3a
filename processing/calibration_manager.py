"""
Manages a per-channel calibration session state machine.
Collects (known weight, raw value) points and proposes a new calibration
slope from a linear regression over the tared points.
"""
import math

from PyQt6.QtCore import QObject, pyqtSignal

from .regression import IDENTITY, linear_regression


def parse_weight(value):
    """Parse a known weight entry. Returns a finite float or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        weight = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(weight):
        return None
    return weight


class CalibrationManager(QObject):
    """
    One calibration session for one channel of a ChannelStore.
    Emits signals for UI updates as points are collected.
    """

    status_signal = pyqtSignal(str)
    result_signal = pyqtSignal(float, float)  # slope, r_squared
    calibration_complete_signal = pyqtSignal(int, float)  # channel id, applied slope

    # Session phases
    PHASE_OPEN = 0       # Collecting points, fewer than 2
    PHASE_READY = 1      # At least 2 points, regression computable
    PHASE_COMMITTED = 2  # Slope written back (or identity no-op), session over
    PHASE_ABANDONED = 3  # Points discarded, no effect

    MIN_POINTS = 2

    def __init__(self, channel_store, channel_id, parent=None):
        super().__init__(parent)
        self._store = channel_store
        self.channel_id = channel_id
        # Raises KeyError for an unknown channel before the session exists
        self._store.get(channel_id)
        self._points = []
        self.phase = self.PHASE_OPEN

    @property
    def points(self):
        """Collected (known_weight, raw_value) pairs."""
        return tuple(self._points)

    @property
    def is_active(self):
        return self.phase in (self.PHASE_OPEN, self.PHASE_READY)

    def tared_points(self):
        """Points as (known_weight, raw_value - tare) using the current tare value."""
        tare = self._store.get(self.channel_id).tare_value
        return [(weight, raw - tare) for weight, raw in self._points]

    def result(self):
        """Regression over the tared points (identity with fewer than 2 points)."""
        if len(self._points) < self.MIN_POINTS:
            return IDENTITY
        return linear_regression(self.tared_points())

    def add_point(self, known_weight):
        """
        Capture the channel's current raw value against a known weight.

        Args:
            known_weight: Number or numeric string

        Returns:
            bool: False if the weight was rejected or the session is over
        """
        if not self.is_active:
            self.status_signal.emit("Calibration session is closed.")
            return False
        weight = parse_weight(known_weight)
        if weight is None:
            self.status_signal.emit("Please enter a valid number for weight.")
            return False

        raw_value = self._store.get(self.channel_id).raw_value
        self._points.append((weight, raw_value))
        self._recompute()
        return True

    def remove_point(self, index):
        if not self.is_active or not 0 <= index < len(self._points):
            return False
        del self._points[index]
        self._recompute()
        return True

    def clear_points(self):
        if not self.is_active:
            return False
        self._points = []
        self._recompute()
        return True

    def _recompute(self):
        self.phase = self.PHASE_READY if len(self._points) >= self.MIN_POINTS else self.PHASE_OPEN
        if self.phase == self.PHASE_READY:
            slope, r_squared = self.result()
            self.result_signal.emit(slope, r_squared)

    def commit(self):
        """
        Write the computed slope back to the channel store and end the session.

        The regression is recomputed while holding the store lock, so it uses
        the tare in effect and cannot interleave with a tare of all channels.
        A slope equal to the identity (1.0) is treated as "not calibrated" and
        nothing is written.

        Returns:
            bool: True if the session ended (committed), False if not allowed
        """
        if self.phase != self.PHASE_READY:
            self.status_signal.emit("At least 2 calibration points are required.")
            return False

        with self._store.lock:
            slope, r_squared = self.result()
            applied = slope != IDENTITY.slope
            if applied:
                self._store.apply_calibration(self.channel_id, slope)

        self.phase = self.PHASE_COMMITTED
        self._points = []
        if applied:
            self.status_signal.emit(
                f"Channel {self.channel_id} calibrated: slope {slope:.3f} (R² {r_squared:.3f})")
            self.calibration_complete_signal.emit(self.channel_id, slope)
        else:
            self.status_signal.emit(
                f"Channel {self.channel_id} calibration unchanged (slope equals 1.000)")
        return True

    def abandon(self):
        """Discard the collected points without touching the channel store."""
        if not self.is_active:
            return False
        self._points = []
        self.phase = self.PHASE_ABANDONED
        self.status_signal.emit(f"Channel {self.channel_id} calibration cancelled.")
        return True
