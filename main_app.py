"""
Main application window for the Loadcell Data Analyzer.
Integrates data sources, channel processing, plotting, and user interface.
"""
import sys
import logging
import pyqtgraph as pg
from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QPushButton, QLabel, QStatusBar, QComboBox, QSpinBox, QFileDialog,
    QTableWidget, QTableWidgetItem, QGroupBox, QHeaderView
)
from PyQt6.QtCore import pyqtSlot, QTimer, Qt

import config
from daq_handler import DAQHandler, DeviceStatus, list_serial_ports
from display_results import LogDisplay
from plot_handler import PlotHandler
from processing.channel_store import Category, ChannelStore
from processing.config_store import ConfigStore
from processing.data_processor import DataProcessor
from processing.log_export import format_number
from ui.calibration_widget import CalibrationWidget

logging.basicConfig(
    filename=config.LOG_FILE,
    level=logging.DEBUG,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)

CATEGORY_LABELS = [
    (Category.NONE, "None"),
    (Category.PLUS_X, "X"),
    (Category.MINUS_X, "-X"),
    (Category.PLUS_Y, "Y"),
    (Category.MINUS_Y, "-Y"),
]

COL_NAME, COL_RAW, COL_PROCESSED, COL_STABILITY, COL_CATEGORY, COL_ACTIONS = range(6)


def validate_config():
    """Returns a list of problems with the constants in config.py."""
    errors = []
    if config.NUM_CHANNELS != 8:
        errors.append("NUM_CHANNELS must be 8.")
    if config.DEFAULT_LOG_BUFFER_SIZE < 1:
        errors.append("DEFAULT_LOG_BUFFER_SIZE must be at least 1.")
    if config.STABILITY_WINDOW < 2:
        errors.append("STABILITY_WINDOW must be at least 2.")
    if config.SIMULATION_INTERVAL_MS <= 0:
        errors.append("SIMULATION_INTERVAL_MS must be positive.")
    return errors


class MainWindow(QMainWindow):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Loadcell Data Analyzer")
        self.setGeometry(100, 100, 1100, 800)

        # --- Backend Components ---
        self.channel_store = ChannelStore(ConfigStore())
        self.data_processor = DataProcessor(self.channel_store)
        self.daq_handler = DAQHandler()

        # --- Central Widget and Layout ---
        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        self.main_layout = QVBoxLayout(self.central_widget)

        self._build_controls()
        self._build_totals()
        self._build_plots()
        self._build_channel_table()
        self._build_logging()

        self.setStatusBar(QStatusBar())
        self.statusBar().showMessage("Application Started. Ready.")

        self._connect_signals()
        self.refresh_ports()
        self._populate_channel_table()
        self._update_button_states()

        # UI refresh is decoupled from the sample rate
        self._ui_timer = QTimer(self)
        self._ui_timer.setInterval(config.PLOT_REFRESH_MS)
        self._ui_timer.timeout.connect(self.refresh_view)
        self._ui_timer.start()

    # --- Layout ---
    def _build_controls(self):
        layout = QHBoxLayout()
        self.btn_simulate = QPushButton("Start Simulation")
        self.port_combo = QComboBox()
        self.port_combo.setMinimumWidth(160)
        self.btn_refresh_ports = QPushButton("Refresh Ports")
        self.btn_connect = QPushButton("Connect to Device")
        self.serial_status_label = QLabel("Disconnected")
        self.btn_tare = QPushButton("Tare All")

        layout.addWidget(self.btn_simulate)
        layout.addWidget(self.port_combo)
        layout.addWidget(self.btn_refresh_ports)
        layout.addWidget(self.btn_connect)
        layout.addWidget(self.serial_status_label)
        layout.addStretch(1)
        layout.addWidget(self.btn_tare)
        self.main_layout.addLayout(layout)

    def _build_totals(self):
        layout = QHBoxLayout()
        self.total_labels = {}
        self.total_slope_labels = {}
        for key, title in (('x', "X-Direction Total"), ('y', "Y-Direction Total")):
            group = QGroupBox(title)
            group_layout = QVBoxLayout(group)
            value_label = QLabel(format_number(0.0))
            value_label.setStyleSheet("font-size: 32px; font-weight: bold;")
            value_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            slope_label = QLabel(f"Slope: {format_number(0.0)}")
            slope_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            group_layout.addWidget(value_label)
            group_layout.addWidget(slope_label)
            self.total_labels[key] = value_label
            self.total_slope_labels[key] = slope_label
            layout.addWidget(group)
        self.main_layout.addLayout(layout)

    def _build_plots(self):
        layout = QHBoxLayout()
        self.x_plot_widget = pg.PlotWidget()
        self.y_plot_widget = pg.PlotWidget()
        layout.addWidget(self.x_plot_widget)
        layout.addWidget(self.y_plot_widget)
        self.main_layout.addLayout(layout, 2)
        self.plot_handler = PlotHandler(self.x_plot_widget, self.y_plot_widget)
        self.plot_handler.setup_plot()

    def _build_channel_table(self):
        group = QGroupBox("Individual Scales")
        layout = QVBoxLayout(group)
        self.channel_table = QTableWidget(config.NUM_CHANNELS, 6)
        self.channel_table.setHorizontalHeaderLabels([
            "Scale", "Raw Value", "Processed Value", "Stability (Slope)", "Category", "Actions"
        ])
        self.channel_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.channel_table.verticalHeader().setVisible(False)
        layout.addWidget(self.channel_table)
        self.main_layout.addWidget(group, 2)

        self.category_combos = []
        self.calibrate_buttons = []
        for row in range(config.NUM_CHANNELS):
            combo = QComboBox()
            for category, label in CATEGORY_LABELS:
                combo.addItem(label, category)
            combo.currentIndexChanged.connect(
                lambda _index, r=row: self.change_category(r))
            self.channel_table.setCellWidget(row, COL_CATEGORY, combo)
            self.category_combos.append(combo)

            button = QPushButton("Calibrate")
            button.clicked.connect(lambda _checked=False, r=row: self.open_calibration(r))
            self.channel_table.setCellWidget(row, COL_ACTIONS, button)
            self.calibrate_buttons.append(button)

    def _build_logging(self):
        group = QGroupBox("Data Logging")
        layout = QGridLayout(group)
        layout.addWidget(QLabel("Buffer Size:"), 0, 0)
        self.buffer_spin = QSpinBox()
        self.buffer_spin.setRange(1, config.MAX_LOG_BUFFER_SIZE)
        self.buffer_spin.setValue(self.data_processor.log_capacity)
        layout.addWidget(self.buffer_spin, 0, 1)
        self.btn_copy = QPushButton("Copy to Clipboard")
        self.btn_save = QPushButton("Save Log...")
        self.btn_clear_log = QPushButton("Clear Log")
        layout.addWidget(self.btn_copy, 0, 2)
        layout.addWidget(self.btn_save, 0, 3)
        layout.addWidget(self.btn_clear_log, 0, 4)
        self.log_display = LogDisplay()
        self.log_display.setFixedHeight(150)
        layout.addWidget(self.log_display, 1, 0, 1, 5)
        self.main_layout.addWidget(group)

    def _connect_signals(self):
        # Button Clicks
        self.btn_simulate.clicked.connect(self.toggle_simulation)
        self.btn_refresh_ports.clicked.connect(self.refresh_ports)
        self.btn_connect.clicked.connect(self.toggle_connection)
        self.btn_tare.clicked.connect(self.data_processor.tare_all)
        self.btn_copy.clicked.connect(self.copy_to_clipboard)
        self.btn_save.clicked.connect(self.save_log)
        self.btn_clear_log.clicked.connect(self.data_processor.clear_log)
        self.btn_clear_log.clicked.connect(self.plot_handler.clear_plot)
        self.buffer_spin.valueChanged.connect(self.data_processor.set_log_capacity)
        self.channel_table.itemChanged.connect(self.rename_channel)

        # DAQ Handler Signals: every frame goes through one pipeline pass
        self.daq_handler.raw_values_signal.connect(self.data_processor.process_sample)
        self.daq_handler.acquisition_state_signal.connect(self.data_processor.set_ingesting)
        self.daq_handler.acquisition_state_signal.connect(self._update_button_states)
        self.daq_handler.device_status_signal.connect(self.update_device_status)
        self.daq_handler.daq_status_signal.connect(self.update_status)
        self.daq_handler.daq_error_signal.connect(self.show_error)

        # Data Processor Signals
        self.data_processor.status_signal.connect(self.update_status)
        self.data_processor.channels_changed_signal.connect(self._populate_channel_table)

    # --- Channel table ---
    def _populate_channel_table(self):
        """Refresh names and categories from the store (persisted fields)."""
        self.channel_table.blockSignals(True)
        for row, channel in enumerate(self.channel_store.snapshot()):
            name_item = self.channel_table.item(row, COL_NAME)
            if name_item is None:
                name_item = QTableWidgetItem()
                self.channel_table.setItem(row, COL_NAME, name_item)
            name_item.setText(channel.name)
            name_item.setData(Qt.ItemDataRole.UserRole, channel.id)
            for col in (COL_RAW, COL_PROCESSED, COL_STABILITY):
                if self.channel_table.item(row, col) is None:
                    item = QTableWidgetItem(format_number(0.0))
                    item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEditable)
                    self.channel_table.setItem(row, col, item)
            combo = self.category_combos[row]
            combo.blockSignals(True)
            combo.setCurrentIndex(combo.findData(channel.category))
            combo.blockSignals(False)
        self.channel_table.blockSignals(False)

    def _channel_id(self, row):
        return self.channel_table.item(row, COL_NAME).data(Qt.ItemDataRole.UserRole)

    @pyqtSlot(QTableWidgetItem)
    def rename_channel(self, item):
        if item.column() != COL_NAME:
            return
        name = item.text().strip()
        channel_id = item.data(Qt.ItemDataRole.UserRole)
        if not name:
            self._populate_channel_table()
            return
        self.data_processor.set_channel_name(channel_id, name)

    def change_category(self, row):
        category = self.category_combos[row].currentData()
        self.data_processor.set_category(self._channel_id(row), category)

    def open_calibration(self, row):
        dialog = CalibrationWidget(self.data_processor, self._channel_id(row), self)
        dialog.exec()
        dialog.deleteLater()

    # --- Periodic view refresh ---
    @pyqtSlot()
    def refresh_view(self):
        """Redraw totals, table values, stability, log and charts from processor state."""
        aggregate = self.data_processor.get_aggregate()
        stability = self.data_processor.get_stability()
        entries = self.data_processor.get_log()

        self.total_labels['x'].setText(format_number(aggregate.total_x))
        self.total_labels['y'].setText(format_number(aggregate.total_y))
        self.total_slope_labels['x'].setText(f"Slope: {format_number(stability.total_x)}")
        self.total_slope_labels['y'].setText(f"Slope: {format_number(stability.total_y)}")

        self.channel_table.blockSignals(True)
        channels = self.channel_store.snapshot()
        for row, channel in enumerate(channels):
            values = {
                COL_RAW: channel.raw_value,
                COL_PROCESSED: aggregate.processed_values[row],
                COL_STABILITY: stability.channels[row],
            }
            for col, value in values.items():
                item = self.channel_table.item(row, col)
                if item is not None:
                    item.setText(format_number(value))
        self.channel_table.blockSignals(False)

        self.log_display.display_log(entries)
        self.plot_handler.update_history(entries)
        self.btn_copy.setEnabled(bool(entries))
        self.btn_save.setEnabled(bool(entries))

    # --- Data sources ---
    @pyqtSlot()
    def toggle_simulation(self):
        if self.daq_handler.is_simulating:
            self.daq_handler.stop_simulation()
        else:
            self.daq_handler.start_simulation(self.channel_store.raw_values())
        self._update_button_states()

    @pyqtSlot()
    def refresh_ports(self):
        self.port_combo.clear()
        ports = list_serial_ports()
        self.port_combo.addItems(ports)
        if not ports:
            self.update_status("No serial ports found.")

    @pyqtSlot()
    def toggle_connection(self):
        if self.daq_handler.is_connected:
            self.daq_handler.disconnect_device()
        else:
            port_name = self.port_combo.currentText()
            if not port_name:
                self.show_error("Select a serial port first.")
                return
            self.daq_handler.connect_device(port_name)
        self._update_button_states()

    @pyqtSlot(str, str)
    def update_device_status(self, status, message):
        colors = {
            DeviceStatus.IDLE.value: "#666666",
            DeviceStatus.CONNECTING.value: "#cc8800",
            DeviceStatus.CONNECTED.value: "#008800",
            DeviceStatus.ERROR.value: "#cc0000",
        }
        self.serial_status_label.setText(message)
        self.serial_status_label.setStyleSheet(f"color: {colors.get(status, '#000000')};")
        if status == DeviceStatus.ERROR.value:
            logging.error("Device status: %s", message)
        self._update_button_states()

    def _update_button_states(self, *_):
        simulating = self.daq_handler.is_simulating
        connected = self.daq_handler.is_connected
        acquiring = simulating or connected
        self.btn_simulate.setText("Stop Simulation" if simulating else "Start Simulation")
        self.btn_simulate.setEnabled(not connected)
        self.btn_connect.setText("Disconnect Device" if connected else "Connect to Device")
        self.btn_connect.setEnabled(not simulating)
        self.port_combo.setEnabled(not acquiring)
        self.btn_refresh_ports.setEnabled(not acquiring)
        self.btn_tare.setEnabled(acquiring)
        for button in self.calibrate_buttons:
            button.setEnabled(acquiring)

    # --- Export ---
    @pyqtSlot()
    def copy_to_clipboard(self):
        text = self.data_processor.export_log()
        if text is None:
            self.show_error("No data to copy.")
            return
        QApplication.clipboard().setText(text)
        self.update_status(f"Copied {len(self.data_processor.get_log())} log entries to clipboard.")

    @pyqtSlot()
    def save_log(self):
        text = self.data_processor.export_log()
        if text is None:
            self.show_error("No data available to save.")
            return
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save Log", "", "Tab-separated Files (*.tsv);;Text Files (*.txt)")
        if not file_path:
            self.update_status("Save cancelled.")
            return
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(text + "\n")
            self.update_status(f"Log saved successfully to {file_path}.")
        except OSError as e:
            self.show_error(f"Error saving file: {e}")

    # --- Status ---
    @pyqtSlot(str)
    def update_status(self, message):
        """Updates the status bar message and logs it."""
        logging.info(message)
        self.statusBar().showMessage(message)

    @pyqtSlot(str)
    def show_error(self, message):
        """Shows an error message in the status bar and logs it."""
        logging.error(message)
        self.statusBar().showMessage(f"Error: {message}", 5000)

    def closeEvent(self, event):
        """Ensures the data sources are stopped cleanly on exit."""
        self.update_status("Closing application...")
        self.daq_handler.stop_all()
        event.accept()


def main():
    errors = validate_config()
    if errors:
        logging.error("Configuration validation failed: " + "; ".join(errors))
        print("Configuration validation failed: " + "; ".join(errors), file=sys.stderr)
        sys.exit(1)
    app = QApplication(sys.argv)
    app.setStyle('Fusion')
    main_win = MainWindow()
    main_win.show()
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
