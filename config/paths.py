import os
from pathlib import Path

# === Base project path ===
PROJECT_ROOT = Path(__file__).resolve().parents[1]

# === Common directories ===
DATA_DIR = Path(os.getenv("SCHEDULE_DATA_DIR", PROJECT_ROOT / "data"))
CONFIG_DIR = PROJECT_ROOT / "config"
LOG_DIR = Path(os.getenv("SCHEDULE_LOG_DIR", PROJECT_ROOT))

# === Default log file path ===
LOG_PATH = LOG_DIR / "schedule_run.log"

# === Shared schedule document and client-local preferences ===
SCHEDULE_STORE_PATH = Path(
    os.getenv("SCHEDULE_STORE_PATH", DATA_DIR / "schedule.json")
)
PREFERENCES_PATH = Path(
    os.getenv("SCHEDULE_PREFERENCES_PATH", Path.home() / ".work_schedule" / "prefs.json")
)
