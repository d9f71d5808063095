import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional
from utils.constants import FILTER_ALL, PREFERENCE_DEFAULTS, VIEW_MODES
from utils.logger import get_logger

logger = get_logger("preferences")

CURRENT_USER = "currentUser"
VIEW_MODE = "viewMode"
TEST_FILTER = "testFilter"


class PreferenceStore(ABC):
    """
    Client-local key/value store for UI preferences.

    `get` and `set` never raise: a failing backend is logged and treated as
    "no value" / "not saved".
    """

    @abstractmethod
    def _get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def _set(self, key: str, value: str) -> None:
        pass

    def get(self, key: str) -> Optional[str]:
        try:
            return self._get(key)
        except Exception as e:
            logger.warning("Error loading preference %r: %s", key, e)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            self._set(key, value)
        except Exception as e:
            logger.warning("Error saving preference %r: %s", key, e)

    def dispose(self) -> None:
        pass


class InMemoryPreferenceStore(PreferenceStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def _get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def _set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonPreferenceStore(PreferenceStore):
    """Preferences kept in a small JSON object on the local machine."""

    def __init__(self, path: os.PathLike):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return None if value is None else str(value)

    def _set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".prefs-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise


@dataclass
class Preferences:
    current_user: str = PREFERENCE_DEFAULTS[CURRENT_USER]
    view_mode: str = PREFERENCE_DEFAULTS[VIEW_MODE]
    test_filter: str = PREFERENCE_DEFAULTS[TEST_FILTER]


def load_preferences(store: PreferenceStore) -> Preferences:
    """Saved preferences, with defaults for anything missing or unrecognised."""
    prefs = Preferences()
    user = store.get(CURRENT_USER)
    view = store.get(VIEW_MODE)
    test_filter = store.get(TEST_FILTER)

    if user:
        prefs.current_user = user
    if view:
        if view in VIEW_MODES:
            prefs.view_mode = view
        else:
            logger.warning("Ignoring unknown view mode %r", view)
    if test_filter:
        prefs.test_filter = test_filter
    return prefs


def save_preferences(store: PreferenceStore, prefs: Preferences) -> None:
    store.set(CURRENT_USER, prefs.current_user)
    store.set(VIEW_MODE, prefs.view_mode)
    store.set(TEST_FILTER, prefs.test_filter or FILTER_ALL)
