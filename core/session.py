import threading
from datetime import date
from typing import Callable, Optional, Tuple
from core.state import SessionState
from core.views import ScheduleViews, build_views
from exceptions.custom_errors import FileContentError, FileReadingError, NoValidRowsError, StoreError
from store.preference_store import (
    CURRENT_USER,
    TEST_FILTER,
    VIEW_MODE,
    PreferenceStore,
    Preferences,
    load_preferences,
    save_preferences,
)
from store.schedule_store import ScheduleStore
from utils.constants import VIEW_MODES
from utils.date_utils import add_days, month_anchor, next_month, normalize_to_week_start, prev_month
from utils.loader import IngestResult, ingest, summarize_row_errors
from utils.logger import get_logger

logger = get_logger("session")

LOAD_ERROR = "Could not load schedule from server."
CLEAR_ERROR = "Could not clear schedule from server."


class ScheduleSession:
    """
    One viewer's connection to the shared schedule.

    Wires the schedule store subscription, local preferences, ingestion and
    the view builder together. Views are recomputed only when the record set,
    the person/filter selection or an anchor changes.
    """

    def __init__(
        self,
        schedule_store: ScheduleStore,
        preference_store: PreferenceStore,
        today: Optional[Callable[[], date]] = None,
    ):
        self.schedule_store = schedule_store
        self.preference_store = preference_store
        self._today = today or date.today
        self.state = SessionState(
            week_start=normalize_to_week_start(self._today()),
            month=month_anchor(self._today()),
        )
        self._lock = threading.RLock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._cache_key: Optional[Tuple] = None
        self._cache: Optional[ScheduleViews] = None

    # -- lifecycle --
    def open(self) -> "ScheduleSession":
        self.state.preferences = load_preferences(self.preference_store)
        self.schedule_store.open()
        self._unsubscribe = self.schedule_store.subscribe(self._on_change, self._on_error)
        return self

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.schedule_store.dispose()
        self.preference_store.dispose()

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.dispose()

    # -- store callbacks --
    def _on_change(self, entries) -> None:
        with self._lock:
            self.state.entries = list(entries)
            self.state.version += 1
            self.state.loading = False
            if not self.state.preferences.current_user and entries:
                self.select_person(entries[0].person)
        try:
            self.state.updated_at = self.schedule_store.last_updated()
        except StoreError as e:
            logger.warning("Could not read schedule metadata: %s", e)

    def _on_error(self, error: Exception) -> None:
        with self._lock:
            logger.error("Schedule subscription error: %s", error)
            self.state.error = LOAD_ERROR
            self.state.loading = False

    # -- upload / clear --
    def upload(self, data, filename: Optional[str] = None) -> Optional[IngestResult]:
        """
        Ingest a spreadsheet and replace the shared schedule with it.

        Returns the ingestion result, or None when nothing was written; the
        reason is left in `state.error` and the current data is untouched.
        """
        with self._lock:
            self.state.error = ""
            self.state.notice = ""

        try:
            result = ingest(data, filename)
        except NoValidRowsError as e:
            message = str(e)
            if e.row_errors:
                message += "\n\n" + summarize_row_errors(e.row_errors)
            return self._upload_failed(message)
        except (FileReadingError, FileContentError) as e:
            return self._upload_failed(str(e))

        try:
            meta = self.schedule_store.replace_all(result.entries)
        except StoreError as e:
            return self._upload_failed(f"Could not save schedule to server: {e}")

        with self._lock:
            self.state.updated_at = meta.updatedAt
            if result.errors:
                self.state.error = "Import completed with warnings:\n\n" + result.summary()
            else:
                self.state.notice = f"Successfully imported {len(result.entries)} schedule entries!"
            if not self.state.preferences.current_user:
                self.select_person(result.entries[0].person)
        return result

    def _upload_failed(self, message: str) -> None:
        logger.warning("Upload rejected: %s", message)
        with self._lock:
            self.state.error = message
        return None

    def clear(self) -> bool:
        """Empty the shared schedule and reset local preferences to defaults."""
        try:
            self.schedule_store.clear()
        except StoreError as e:
            logger.error("Clear failed: %s", e)
            with self._lock:
                self.state.error = CLEAR_ERROR
            return False

        with self._lock:
            self.state.entries = []
            self.state.version += 1
            self.state.preferences = Preferences()
            self.state.error = ""
            self.state.notice = ""
            save_preferences(self.preference_store, self.state.preferences)
        return True

    # -- preferences --
    def select_person(self, person: str) -> None:
        with self._lock:
            self.state.preferences.current_user = person
            if person:
                self.preference_store.set(CURRENT_USER, person)

    def set_view(self, view_mode: str) -> None:
        if view_mode not in VIEW_MODES:
            raise ValueError(f"Unknown view {view_mode!r}; expected one of {VIEW_MODES}")
        with self._lock:
            self.state.preferences.view_mode = view_mode
            self.preference_store.set(VIEW_MODE, view_mode)

    def set_filter(self, test_filter: str) -> None:
        with self._lock:
            self.state.preferences.test_filter = test_filter
            self.preference_store.set(TEST_FILTER, test_filter)

    # -- navigation --
    def prev_week(self) -> None:
        self.state.week_start = add_days(self.state.week_start, -7).isoformat()

    def next_week(self) -> None:
        self.state.week_start = add_days(self.state.week_start, 7).isoformat()

    def this_week(self) -> None:
        self.state.week_start = normalize_to_week_start(self._today())

    def prev_month(self) -> None:
        self.state.month = prev_month(self.state.month)

    def next_month(self) -> None:
        self.state.month = next_month(self.state.month)

    def this_month(self) -> None:
        self.state.month = month_anchor(self._today())

    # -- derived views --
    def views(self) -> ScheduleViews:
        with self._lock:
            prefs = self.state.preferences
            today = self._today()
            key = (
                self.state.version,
                prefs.current_user,
                prefs.test_filter,
                self.state.week_start,
                self.state.month,
                today,
            )
            if key != self._cache_key:
                self._cache = build_views(
                    self.state.entries,
                    selected_person=prefs.current_user,
                    test_filter=prefs.test_filter,
                    week_anchor=self.state.week_start,
                    month=self.state.month,
                    today=today,
                )
                self._cache_key = key
            return self._cache
