"""
Manages the PyQtGraph plots for the X and Y total history.
"""
import numpy as np
import pyqtgraph as pg
from PyQt6.QtCore import pyqtSlot, QObject, QTimer

import config

pg.setConfigOptions(antialias=True)


class PlotHandler(QObject):
    """
    Plots the logged X and Y totals against their tick index.
    Redraws are throttled by a timer: update_history() only queues the
    latest log snapshot, and the timer draws it.
    """
    def __init__(self, x_plot_widget, y_plot_widget):
        super().__init__()
        self._plots = {
            'x': (x_plot_widget, "X Total History", config.PLOT_X_COLOR),
            'y': (y_plot_widget, "Y Total History", config.PLOT_Y_COLOR),
        }
        self._curves = {}
        self._pending_entries = None

        self._plot_timer = QTimer(self)
        self._plot_timer.setInterval(config.PLOT_REFRESH_MS)
        self._plot_timer.timeout.connect(self._flush_pending)
        self._plot_timer.start()

    def setup_plot(self):
        """Initializes both plots' appearance and curves."""
        for key, (widget, title, color) in self._plots.items():
            widget.setBackground('w')
            plot_item = widget.getPlotItem()
            plot_item.clear()
            plot_item.setTitle(title)
            plot_item.setLabel('bottom', "Tick")
            plot_item.showGrid(x=True, y=True)
            plot_item.setMouseEnabled(x=True, y=True)
            curve = plot_item.plot(pen=pg.mkPen(color=color, width=2))
            curve.setClipToView(True)
            self._curves[key] = curve

    @pyqtSlot(object)
    def update_history(self, entries):
        """Queue the log entries (oldest first) for the next redraw."""
        self._pending_entries = entries

    @pyqtSlot()
    def clear_plot(self):
        self._pending_entries = None
        for curve in self._curves.values():
            curve.setData([], [])

    def _flush_pending(self):
        """Draw the most recent queued snapshot."""
        entries = self._pending_entries
        if entries is None or not self._curves:
            return
        self._pending_entries = None
        # A line needs at least two points
        if len(entries) < 2:
            for curve in self._curves.values():
                curve.setData([], [])
            return
        ticks = np.arange(len(entries))
        self._curves['x'].setData(ticks, np.array([e.total_x for e in entries]))
        self._curves['y'].setData(ticks, np.array([e.total_y for e in entries]))
