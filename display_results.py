from PyQt6.QtCore import pyqtSlot
from PyQt6.QtWidgets import QTextEdit

import config
from processing.log_export import format_number


def format_recent_log(entries, limit=config.RECENT_LOG_LINES):
    """Newest-first summary lines of the log, with a count of hidden entries."""
    entries = list(entries)
    lines = [
        f"X: {format_number(entry.total_x)}, Y: {format_number(entry.total_y)}"
        for entry in reversed(entries[-limit:])
    ] if limit > 0 else []
    hidden = len(entries) - limit
    if hidden > 0:
        lines.append(f"...and {hidden} more entries")
    return lines


class LogDisplay(QTextEdit):
    """Read-only view of the most recent log entries."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setReadOnly(True)

    @pyqtSlot(object)
    def display_log(self, entries):
        self.setPlainText("\n".join(format_recent_log(entries)))
