"""
User interface modules for the Loadcell Analyzer.

This package contains dialogs opened from the main window:
- calibration_widget.py: Per-channel calibration dialog
"""
