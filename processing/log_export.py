"""
Tab-separated export of the log history (spreadsheet friendly) and its
inverse for reloading exported numbers.
"""
import re
from typing import Iterable, List, Sequence

from .buffer_manager import LogEntry

SEPARATOR = "\t"
_COLUMN_UNSAFE = re.compile(r"[ \t\r\n]")


def format_number(value) -> str:
    # round() then + 0.0 folds -0.0 so tiny negatives print as 0.000
    return f"{round(float(value), 3) + 0.0:.3f}"


def header_row(channel_names: Sequence[str]) -> str:
    columns = ["X_Total", "Y_Total"] + [_COLUMN_UNSAFE.sub("_", name) for name in channel_names]
    return SEPARATOR.join(columns)


def export_tsv(entries: Iterable[LogEntry], channel_names: Sequence[str]) -> str:
    """
    Render entries as TSV: header row, then one row per entry oldest first.

    Args:
        entries: LogEntry sequence
        channel_names: Display names for the per-channel columns

    Returns:
        str: header and rows joined by newlines, every number to 3 decimals
    """
    lines = [header_row(channel_names)]
    for entry in entries:
        fields = [format_number(entry.total_x), format_number(entry.total_y)]
        fields.extend(format_number(v) for v in entry.processed_values)
        lines.append(SEPARATOR.join(fields))
    return "\n".join(lines)


def parse_tsv(text: str) -> List[LogEntry]:
    """Parse an export back into LogEntry values. Raises ValueError on malformed rows."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []
    header = lines[0].split(SEPARATOR)
    if header[:2] != ["X_Total", "Y_Total"]:
        raise ValueError("Missing X_Total/Y_Total header")
    num_columns = len(header)
    entries = []
    for row_number, line in enumerate(lines[1:], start=2):
        fields = line.split(SEPARATOR)
        if len(fields) != num_columns:
            raise ValueError(f"Row {row_number}: expected {num_columns} fields, got {len(fields)}")
        values = [float(f) for f in fields]
        entries.append(LogEntry(values[0], values[1], tuple(values[2:])))
    return entries
