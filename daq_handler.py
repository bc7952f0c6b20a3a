"""
Handles the two mutually exclusive sources of raw load cell frames:
- A simulated random walk driven by a QTimer in the main thread
- A serial device streamed on a separate thread (QThread) so blocking reads
  never freeze the GUI

Only one source may run at a time; switching requires stopping the other.
"""
import enum
import logging

import numpy as np
import serial
import serial.tools.list_ports
from PyQt6.QtCore import QObject, QThread, QTimer, pyqtSignal, pyqtSlot, QMutex, QMutexLocker

import config
from processing.frame_decoder import FrameDecoder

logger = logging.getLogger(__name__)


class DeviceStatus(enum.Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    ERROR = 'error'


def list_serial_ports():
    """Names of the serial ports currently visible to the OS."""
    return [port.device for port in serial.tools.list_ports.comports()]


class SimulatedSource(QObject):
    """
    Bounded random walk: every tick each channel moves by a uniform delta
    in [-step/2, step/2].
    """
    raw_values_signal = pyqtSignal(object)

    def __init__(self, num_channels=config.NUM_CHANNELS, interval_ms=config.SIMULATION_INTERVAL_MS,
                 step=config.SIMULATION_STEP, seed=None, parent=None):
        super().__init__(parent)
        self.num_channels = num_channels
        self.step_size = step
        self._rng = np.random.default_rng(seed)
        self._values = np.zeros(num_channels, dtype=np.float64)
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.step)

    def is_running(self):
        return self._timer.isActive()

    def start(self, initial_values=None):
        if initial_values is not None:
            values = np.asarray(initial_values, dtype=np.float64)
            if values.shape != (self.num_channels,):
                raise ValueError(f"Expected {self.num_channels} initial values, got shape {values.shape}")
            self._values = values.copy()
        self._timer.start()

    def stop(self):
        self._timer.stop()

    @pyqtSlot()
    def step(self):
        """Advance the walk by one tick and emit the new frame."""
        half = self.step_size / 2.0
        self._values = self._values + self._rng.uniform(-half, half, self.num_channels)
        frame = self._values.tolist()
        self.raw_values_signal.emit(frame)
        return frame


class SerialWorker(QObject):
    """
    Worker object reading the serial port in a separate thread.
    Emits one raw frame per complete, well-formed line.
    """
    raw_values_signal = pyqtSignal(object)
    status_signal = pyqtSignal(str)
    error_signal = pyqtSignal(str)
    finished = pyqtSignal()

    def __init__(self, port, num_channels=config.NUM_CHANNELS, chunk_size=config.SERIAL_READ_CHUNK_SIZE,
                 parent=None):
        super().__init__(parent)
        self._port = port
        self.chunk_size = chunk_size
        self.decoder = FrameDecoder(num_channels)
        # Armed here, never in run(): a stop() before run() must end the loop
        self._is_running = True
        self._mutex = QMutex()

    def is_running(self):
        with QMutexLocker(self._mutex):
            return self._is_running

    @pyqtSlot()
    def run(self):
        self.status_signal.emit("Serial reader started.")

        try:
            while self.is_running():
                waiting = self._port.in_waiting
                data = self._port.read(min(max(waiting, 1), self.chunk_size))
                if not data:
                    continue
                for frame in self.decoder.feed(data):
                    self.raw_values_signal.emit(frame)
        except (serial.SerialException, OSError) as e:
            if self.is_running():
                self.error_signal.emit(f"Serial read error: {e}")
        finally:
            with QMutexLocker(self._mutex):
                self._is_running = False
            # Partial lines are not kept across connections
            self.decoder.reset()
            self.status_signal.emit("Serial reader stopping.")
            self.finished.emit()

    def stop(self):
        """Signals the read loop to exit and cancels a pending blocking read."""
        with QMutexLocker(self._mutex):
            self._is_running = False
        cancel_read = getattr(self._port, 'cancel_read', None)
        if cancel_read is not None:
            try:
                cancel_read()
            except (serial.SerialException, OSError):
                pass


class DAQHandler(QObject):
    """
    Owns the active data source and exposes one sink for raw frames.
    Tracks the device connection status for the UI.
    """
    raw_values_signal = pyqtSignal(object)
    acquisition_state_signal = pyqtSignal(bool)  # True while any source is feeding data
    device_status_signal = pyqtSignal(str, str)  # DeviceStatus value, message
    daq_status_signal = pyqtSignal(str)
    daq_error_signal = pyqtSignal(str)

    def __init__(self, num_channels=config.NUM_CHANNELS, baud_rate=config.SERIAL_BAUD_RATE,
                 port_factory=None, parent=None):
        super().__init__(parent)
        self.num_channels = num_channels
        self.baud_rate = baud_rate
        self._port_factory = port_factory or self._open_serial_port

        self._simulation = SimulatedSource(num_channels, parent=self)
        self._simulation.raw_values_signal.connect(self.raw_values_signal)

        self._port = None
        self._thread = None
        self._worker = None
        self.status = DeviceStatus.IDLE
        self.status_message = "Disconnected"

    def _open_serial_port(self, port_name):
        return serial.Serial(port_name, self.baud_rate, timeout=config.SERIAL_READ_TIMEOUT_S)

    def _set_status(self, status, message):
        self.status = status
        self.status_message = message
        self.device_status_signal.emit(status.value, message)

    @property
    def is_simulating(self):
        return self._simulation.is_running()

    @property
    def is_connected(self):
        return self.status == DeviceStatus.CONNECTED

    @property
    def is_acquiring(self):
        return self.is_simulating or self.is_connected

    def start_simulation(self, initial_values=None):
        """Start the random walk. Refused while a device is connected."""
        if self._port is not None:
            self.daq_error_signal.emit("Disconnect the device before starting the simulation.")
            return False
        if self.is_simulating:
            self.daq_status_signal.emit("Simulation already running.")
            return True
        self._simulation.start(initial_values)
        self.daq_status_signal.emit("Simulation started.")
        self.acquisition_state_signal.emit(True)
        return True

    def stop_simulation(self):
        if not self.is_simulating:
            return
        self._simulation.stop()
        self.daq_status_signal.emit("Simulation stopped.")
        self.acquisition_state_signal.emit(False)

    def connect_device(self, port_name):
        """Open the serial port and start the reader thread. Refused while simulating."""
        if self.is_simulating:
            self.daq_error_signal.emit("Stop the simulation before connecting a device.")
            return False
        if self._port is not None:
            self.daq_status_signal.emit("Device already connected.")
            return True

        self._set_status(DeviceStatus.CONNECTING, "Connecting...")
        try:
            port = self._port_factory(port_name)
        except (serial.SerialException, OSError, ValueError) as e:
            self._set_status(DeviceStatus.ERROR, f"Error: {e}")
            self.daq_error_signal.emit(f"Could not open serial port {port_name}: {e}")
            return False

        self._port = port
        self._thread = QThread(self)
        self._worker = SerialWorker(port, self.num_channels)
        self._worker.moveToThread(self._thread)

        self._worker.raw_values_signal.connect(self.raw_values_signal)
        self._worker.status_signal.connect(self.daq_status_signal)
        self._worker.error_signal.connect(self._on_worker_error)
        self._worker.finished.connect(self._thread.quit)

        self._thread.started.connect(self._worker.run)
        self._thread.start()

        self._set_status(DeviceStatus.CONNECTED, "Connected")
        self.acquisition_state_signal.emit(True)
        return True

    def disconnect_device(self):
        """Stop the reader, wait for its thread and release the port."""
        was_connected = self._port is not None
        self._shutdown_reader()
        if was_connected:
            self.acquisition_state_signal.emit(False)
        self._set_status(DeviceStatus.IDLE, "Disconnected")

    def _shutdown_reader(self):
        if self._worker is not None:
            self._worker.stop()
        if self._thread is not None:
            self._thread.quit()
            if not self._thread.wait(config.READER_STOP_TIMEOUT_MS):
                logger.warning("Serial reader thread did not stop within %d ms", config.READER_STOP_TIMEOUT_MS)
        if self._port is not None:
            try:
                self._port.close()
            except (serial.SerialException, OSError) as e:
                self.daq_error_signal.emit(f"Error closing serial port: {e}")
        self._worker = None
        self._thread = None
        self._port = None

    @pyqtSlot(str)
    def _on_worker_error(self, message):
        """Transport failure: stop ingesting and surface the error as a status."""
        self.daq_error_signal.emit(message)
        was_connected = self._port is not None
        self._shutdown_reader()
        if was_connected:
            self.acquisition_state_signal.emit(False)
        self._set_status(DeviceStatus.ERROR, f"Error: {message}")

    def stop_all(self):
        self.stop_simulation()
        self.disconnect_device()
