"""
store
-----

Adapters for the two pieces of state that outlive a page load:

- ScheduleStore:
  The shared record set. Whole-set replace/clear, change subscription and
  last-updated metadata. In-memory and JSON-file backends.

- PreferenceStore:
  Client-local UI preferences (current user, view mode, test filter).
  Failures are logged and ignored.
"""
from .schedule_store import ScheduleStore, InMemoryScheduleStore, JsonFileScheduleStore
from .preference_store import (
    PreferenceStore,
    InMemoryPreferenceStore,
    JsonPreferenceStore,
    Preferences,
    load_preferences,
    save_preferences,
)
