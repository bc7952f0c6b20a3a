"""
Calibration dialog for one load cell channel.
Collects known-weight points against the live raw value and applies the
regression slope as the channel's calibration slope.
"""
import numpy as np
from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QLineEdit,
    QTableWidget, QTableWidgetItem, QGroupBox, QHeaderView, QSplitter, QWidget
)
from PyQt6.QtCore import Qt, pyqtSlot, QTimer
import pyqtgraph as pg

from processing.log_export import format_number


class CalibrationWidget(QDialog):
    """Dialog wrapping a CalibrationManager session for one channel."""

    def __init__(self, data_processor, channel_id, parent=None):
        super().__init__(parent)
        self._store = data_processor.channel_store
        self.channel_id = channel_id
        self.session = data_processor.start_calibration(channel_id)
        self.session.result_signal.connect(self.update_results)
        self.session.status_signal.connect(self.show_message)

        channel = self._store.get(channel_id)
        self.setWindowTitle(f"Calibrate {channel.name}")
        self.init_ui()

        # Timer for refreshing the live raw reading
        self.update_timer = QTimer(self)
        self.update_timer.timeout.connect(self.update_display)
        self.update_timer.start(100)
        self.update_display()

    def init_ui(self):
        """Initialize the user interface."""
        main_layout = QVBoxLayout(self)
        splitter = QSplitter(Qt.Orientation.Horizontal)

        left_widget = QWidget()
        left_layout = QVBoxLayout(left_widget)

        # Point entry
        entry_group = QGroupBox("Add Calibration Point")
        entry_layout = QHBoxLayout()
        self.weight_edit = QLineEdit("100")
        self.weight_edit.setPlaceholderText("Enter known weight (e.g., 100)")
        self.weight_edit.returnPressed.connect(self.add_point)
        self.add_btn = QPushButton("Add Data Point")
        self.add_btn.clicked.connect(self.add_point)
        entry_layout.addWidget(self.weight_edit)
        entry_layout.addWidget(self.add_btn)
        entry_group.setLayout(entry_layout)

        self.message_label = QLabel("")
        self.message_label.setStyleSheet("color: red;")

        # Points table
        table_group = QGroupBox("Calibration Points")
        table_layout = QVBoxLayout()
        self.data_table = QTableWidget()
        self.data_table.setColumnCount(3)
        self.data_table.setHorizontalHeaderLabels(["Known Weight", "Raw Value", "Tared Value"])
        self.data_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.remove_btn = QPushButton("Remove Selected")
        self.remove_btn.clicked.connect(self.remove_selected)
        self.clear_btn = QPushButton("Clear Points")
        self.clear_btn.clicked.connect(self.clear_points)
        table_buttons = QHBoxLayout()
        table_buttons.addWidget(self.remove_btn)
        table_buttons.addWidget(self.clear_btn)
        table_layout.addWidget(self.data_table)
        table_layout.addLayout(table_buttons)
        table_group.setLayout(table_layout)

        # Results
        results_group = QGroupBox("Calibration Results")
        results_layout = QVBoxLayout()
        self.slope_label = QLabel("Calculated Slope (A): ---")
        self.slope_label.setStyleSheet("font-size: 16px; font-weight: bold;")
        self.r_squared_label = QLabel("Coefficient of Determination (R²): ---")
        results_layout.addWidget(self.slope_label)
        results_layout.addWidget(self.r_squared_label)
        results_group.setLayout(results_layout)

        # Actions
        action_layout = QHBoxLayout()
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self.reject)
        self.apply_btn = QPushButton("Apply Calibration")
        self.apply_btn.setEnabled(False)
        self.apply_btn.clicked.connect(self.apply_calibration)
        action_layout.addWidget(self.cancel_btn)
        action_layout.addWidget(self.apply_btn)

        left_layout.addWidget(entry_group)
        left_layout.addWidget(self.message_label)
        left_layout.addWidget(table_group)
        left_layout.addWidget(results_group)
        left_layout.addLayout(action_layout)

        # Tared value vs known weight
        self.plot_widget = pg.PlotWidget(title="Calibration Curve")
        self.plot_widget.setBackground('w')
        self.plot_widget.setLabel('left', 'Tared Raw Value')
        self.plot_widget.setLabel('bottom', 'Known Weight')
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self.scatter_plot = self.plot_widget.plot(
            [], [], pen=None, symbol='o', symbolSize=10, symbolBrush='b'
        )
        self.fit_line = self.plot_widget.plot([], [], pen=pg.mkPen('r', width=2))

        splitter.addWidget(left_widget)
        splitter.addWidget(self.plot_widget)
        splitter.setSizes([420, 480])
        main_layout.addWidget(splitter)

    @pyqtSlot()
    def update_display(self):
        raw_value = self._store.get(self.channel_id).raw_value
        self.add_btn.setText(f"Add Data Point (Current Raw: {format_number(raw_value)})")

    @pyqtSlot()
    def add_point(self):
        if self.session.add_point(self.weight_edit.text()):
            self.message_label.setText("")
            self.update_table()

    @pyqtSlot()
    def remove_selected(self):
        rows = sorted({item.row() for item in self.data_table.selectedItems()}, reverse=True)
        for row in rows:
            self.session.remove_point(row)
        if rows:
            self.update_table()

    @pyqtSlot()
    def clear_points(self):
        if self.session.clear_points():
            self.update_table()

    def update_table(self):
        """Rebuild the points table, results and plot from the session."""
        tared = self.session.tared_points()
        points = self.session.points
        self.data_table.setRowCount(len(points))
        for row, ((weight, raw), (_, tared_value)) in enumerate(zip(points, tared)):
            for col, text in enumerate((f"{weight:g}", format_number(raw), format_number(tared_value))):
                item = QTableWidgetItem(text)
                item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEditable)
                self.data_table.setItem(row, col, item)

        ready = self.session.phase == self.session.PHASE_READY
        self.apply_btn.setEnabled(ready)
        if not ready:
            self.slope_label.setText("Calculated Slope (A): ---")
            self.r_squared_label.setText("Coefficient of Determination (R²): ---")
        else:
            self.update_results(*self.session.result())
        self.update_plot(tared)

    @pyqtSlot(float, float)
    def update_results(self, slope, r_squared):
        self.slope_label.setText(f"Calculated Slope (A): {format_number(slope)}")
        self.r_squared_label.setText(f"Coefficient of Determination (R²): {format_number(r_squared)}")

    def update_plot(self, tared_points):
        if not tared_points:
            self.scatter_plot.setData([], [])
            self.fit_line.setData([], [])
            return
        weights = np.array([p[0] for p in tared_points])
        values = np.array([p[1] for p in tared_points])
        self.scatter_plot.setData(weights, values)
        if len(tared_points) >= 2 and np.ptp(weights) > 0:
            slope = self.session.result().slope
            intercept = np.mean(values) - slope * np.mean(weights)
            x_range = np.linspace(weights.min(), weights.max(), 50)
            self.fit_line.setData(x_range, slope * x_range + intercept)
        else:
            self.fit_line.setData([], [])

    @pyqtSlot(str)
    def show_message(self, message):
        self.message_label.setText(message)

    @pyqtSlot()
    def apply_calibration(self):
        if self.session.commit():
            self.accept()

    def reject(self):
        if self.session.is_active:
            self.session.abandon()
        super().reject()

    def done(self, result):
        self.update_timer.stop()
        super().done(result)
