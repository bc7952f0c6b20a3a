# Configuration constants for the Loadcell Analyzer

# Channel Settings
NUM_CHANNELS = 8  # Fixed number of load cell channels (ids 1..8)
DEFAULT_CHANNEL_NAME = "Scale {n}"

# Simulation Settings
SIMULATION_INTERVAL_MS = 100  # Random walk tick interval
SIMULATION_STEP = 0.1  # Width of the symmetric random delta (uniform in +/- STEP/2)

# Serial Device Settings
SERIAL_BAUD_RATE = 9600
SERIAL_READ_TIMEOUT_S = 0.1  # Blocking read timeout, bounds how long a stop request can wait
SERIAL_READ_CHUNK_SIZE = 256  # Max bytes per read call
READER_STOP_TIMEOUT_MS = 2000  # Max wait for the reader thread on disconnect
FRAME_FIELD_SEPARATOR = "\t"

# Logging Buffer Settings
DEFAULT_LOG_BUFFER_SIZE = 100  # Number of LogEntry snapshots kept
MAX_LOG_BUFFER_SIZE = 100000
RECENT_LOG_LINES = 10  # Entries shown in the log display

# Stability Settings
STABILITY_WINDOW = 20  # Trailing entries used for the trend slope
STABILITY_SCALE = 100.0  # Slope reported per 100 ticks

# Persistence Settings
CONFIG_FILE = "scales_config.json"
CONFIG_KEY = "loadcellAnalyzerScalesConfig"
LOG_FILE = "loadcell_analyzer.log"

# Plotting Settings
PLOT_REFRESH_MS = 100
PLOT_X_COLOR = (0, 102, 204)
PLOT_Y_COLOR = (204, 51, 0)
