"""
Cell Bank Dashboard - Core Configuration
Shared between the Streamlit pages and the acquisition service.
Operator-specific values are read from the environment (.env supported).
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ── Application ───────────────────────────────────────────────────────────────
APP_NAME    = 'Cell Bank Dashboard'
APP_VERSION = '1.0.0'
APP_TAGLINE = 'Monitor and analyze your 18650 Li-ion cells in real-time'

# ── BMS API ───────────────────────────────────────────────────────────────────
API_URL           = os.getenv('BMS_API_URL', 'http://192.168.178.178:8000')
API_TIMEOUT       = float(os.getenv('BMS_API_TIMEOUT', '5'))      # seconds
POLL_INTERVAL     = float(os.getenv('BMS_POLL_INTERVAL', '5'))    # seconds
NUMBER_OF_CELLS   = 16

ENDPOINT_CELLS_INFO = '/api/get_cells_info'
ENDPOINT_SET_CELL   = '/api/set_cell'
ENDPOINT_SET_MACRO  = '/api/set_cell_macro'

# Test type -> CmD code understood by the BMS
TEST_COMMANDS = {
    'charge':    'ach',
    'discharge': 'adc',
    'esr':       'esr',
    'capacity':  'cap',
    'store':     'asc',
}
CMD_STOP_CHARGE    = 'sc'
CMD_STOP_DISCHARGE = 'odc'
CMD_DISPOSE        = 'dsp'
DEFAULT_MACRO      = 'standart'      # spelling is what the device firmware expects

# ST state code reported per cell -> test type
CELL_STATE_CODES = {
    'CH':  'charge',
    'DCH': 'discharge',
    'ESR': 'esr',
    'CAP': 'capacity',
    'STO': 'store',
    'MAC': 'macro',
}
STATE_DISPOSED = 'DSP'

# ── Local Store ───────────────────────────────────────────────────────────────
DATA_DIR              = os.getenv('BMS_DATA_DIR', 'data')
STORAGE_KEY_BATTERIES = 'battery-cells'
STORAGE_KEY_PROJECTS  = 'battery-projects'
STORAGE_KEY_SETTINGS  = 'cellTestSettings'

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL       = os.getenv('BMS_LOG_LEVEL', 'INFO')
LOG_FORMAT      = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'
MAX_LOG_RECORDS = 200

# ── Status Thresholds ─────────────────────────────────────────────────────────
SOH_DANGER_PCT  = 70
SOH_WARNING_PCT = 85
SOC_DANGER_PCT  = 10
SOC_WARNING_PCT = 20

VOLTAGE_DANGER_V  = 3.2              # below
VOLTAGE_WARNING_V = 3.5
TEMP_DANGER_C     = 40               # above
TEMP_WARNING_C    = 35
ESR_DANGER_MOHM   = 70               # above
ESR_WARNING_MOHM  = 40

# ── Mock Data Ranges ──────────────────────────────────────────────────────────
MOCK_SOC_RANGE         = (5, 100)
MOCK_SOH_RANGE         = (60, 100)
MOCK_VOLTAGE_RANGE     = (3.0, 4.2)
MOCK_ESR_RANGE         = (15, 100)
MOCK_TEMPERATURE_RANGE = (20, 40)
MOCK_CYCLE_RANGE       = (0, 500)
SIMULATE_DRIFT         = True        # nudge synthetic cells on every offline poll

# ── Default Cell Test Settings ────────────────────────────────────────────────
DEFAULT_SETTINGS = {
    'charging': {
        'max_voltage':         4.2,
        'min_voltage':         2.8,
        'charge_current':      0.5,
        'termination_current': 0.05,
        'max_temperature':     45,
    },
    'discharging': {
        'cutoff_voltage':    2.8,
        'discharge_current': 0.5,
        'max_temperature':   45,
    },
    'esr': {
        'pulse_current': 1.0,
        'pulse_length':  10,
        'measurements':  3,
    },
    'capacity': {
        'charge_current':    0.5,
        'discharge_current': 0.5,
        'rest_period':       30,
        'cycles':            1,
    },
    'general': {
        'storage_voltage':    3.4,
        'max_cells_per_test': 16,
        'log_interval':       10,
    },
}

# ── Labels ────────────────────────────────────────────────────────────────────
LABEL_WIDTH_MM  = 100
LABEL_HEIGHT_MM = 50
LABEL_PRINTER   = 'Brother QL-800'

# ── Repacker ──────────────────────────────────────────────────────────────────
DEFAULT_PACK_NAME     = 'New Battery Pack'
DEFAULT_PACK_SERIES   = 4
DEFAULT_PACK_PARALLEL = 1

# ── UI Colors ─────────────────────────────────────────────────────────────────
STATUS_COLORS = {
    'good':    '#22c55e',
    'warning': '#f97316',
    'danger':  '#ef4444',
}
STATUS_LABELS = {
    'good':    'Good',
    'warning': 'Warning',
    'danger':  'Critical',
}
SOC_COLOR_STEPS = [(0, '#ef4444'), (20, '#f59e0b'), (50, '#10b981')]
SOH_COLOR_STEPS = [(0, '#ef4444'), (70, '#f59e0b'), (85, '#10b981')]
