# utils/logger.py
import logging
import os
import sys
from config.paths import LOG_PATH

LOG_LEVEL = os.getenv("SCHEDULE_LOG_LEVEL", "INFO").upper()

# Ensure directory exists
LOG_PATH.parent.mkdir(parents=True, exist_ok=True)

logger = logging.getLogger("schedule")
logger.setLevel(LOG_LEVEL)

# Prevent duplicate handlers when streamlit reruns the script
if not logger.handlers:
    # Upload and store history goes to the run log
    file_handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    # Console output for uvicorn / streamlit terminals
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)


def get_logger(name: str) -> logging.Logger:
    """Child of the shared "schedule" logger, e.g. get_logger("store")."""
    return logger.getChild(name)
