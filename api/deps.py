from functools import lru_cache
from config.paths import SCHEDULE_STORE_PATH
from store.schedule_store import JsonFileScheduleStore, ScheduleStore


@lru_cache(maxsize=1)
def get_schedule_store() -> ScheduleStore:
    """Process-wide shared schedule store (FastAPI dependency)."""
    # Each request reads the file; no watcher thread is needed server-side
    return JsonFileScheduleStore(SCHEDULE_STORE_PATH, poll_interval=None).open()
