"""
Data processing modules for the Loadcell Analyzer.

This package contains the core channel processing pipeline:
- data_processor.py: Main coordinator (facade pattern)
- channel_store.py: The 8 channels' state and persisted configuration
- config_store.py: JSON persistence of the channel configuration
- aggregator.py: Signed X/Y totals from processed channel values
- buffer_manager.py: Bounded log history of aggregate snapshots
- stability.py: Trailing-window trend slopes
- regression.py: Ordinary least squares used by calibration and stability
- calibration_manager.py: Per-channel calibration session state machine
- frame_decoder.py: Incremental decoding of the streamed device feed
- log_export.py: Tab-separated export of the log history
"""
