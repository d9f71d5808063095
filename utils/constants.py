import json
from pathlib import Path

"""
Loads configuration constants from config/constants.json and exposes them as module-level variables.
Edit constants.json to change values; import from utils.constants to use in code.
"""

# Build the path to the JSON config file
CONSTANTS_PATH = Path(__file__).parent.parent / "config" / "constants.json"

with open(CONSTANTS_PATH, "r", encoding="utf-8") as f:
    _constants = json.load(f)

# Column resolution
COLUMN_ALIASES = _constants["COLUMN_ALIASES"]
REQUIRED_FIELDS = _constants["REQUIRED_FIELDS"]
OPTIONAL_FIELDS = [f for f in COLUMN_ALIASES if f not in REQUIRED_FIELDS]

# Date handling
EXCEL_EPOCH_OFFSET_DAYS = _constants["EXCEL_EPOCH_OFFSET_DAYS"]
SECONDS_PER_DAY = _constants["SECONDS_PER_DAY"]
WEEK_START_WEEKDAY = _constants["WEEK_START_WEEKDAY"]
DAYS_PER_WEEK = _constants["DAYS_PER_WEEK"]
MONTH_GRID_DAYS = _constants["MONTH_GRID_DAYS"]

MAX_ROW_ERRORS_SHOWN = _constants["MAX_ROW_ERRORS_SHOWN"]
MAX_BATCH_OPERATIONS = _constants["MAX_BATCH_OPERATIONS"]

# Views and preferences
VIEW_MODES = _constants["VIEW_MODES"]
FILTER_ALL = _constants["FILTER_ALL"]
PREFERENCE_DEFAULTS = _constants["PREFERENCE_DEFAULTS"]

POLL_INTERVAL_SECONDS = _constants["POLL_INTERVAL_SECONDS"]
MAX_POLL_FAILURES = _constants["MAX_POLL_FAILURES"]
