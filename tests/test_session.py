from datetime import date

import pytest

from conftest import make_csv, make_workbook
from core.session import CLEAR_ERROR, LOAD_ERROR, ScheduleSession
from store.preference_store import CURRENT_USER, TEST_FILTER, VIEW_MODE, InMemoryPreferenceStore
from store.schedule_store import InMemoryScheduleStore


class FlakyStore(InMemoryScheduleStore):
    fail_writes = False

    def _write(self, rows, meta):
        if self.fail_writes:
            raise OSError("network down")
        super()._write(rows, meta)


class UnreachableStore(InMemoryScheduleStore):
    def _load(self):
        raise OSError("connection refused")


def today():
    return date(2023, 3, 15)


@pytest.fixture
def session(schedule_store, preference_store):
    s = ScheduleSession(schedule_store, preference_store, today=today).open()
    yield s
    s.dispose()


def test_open_receives_initial_push(session):
    assert session.state.loading is False
    assert session.state.entries == []
    assert session.state.error == ""
    assert session.state.week_start == "2023-03-11"
    assert session.state.month == "2023-03"


def test_first_person_selected_when_none_saved(sample_entries, preference_store):
    store = InMemoryScheduleStore(sample_entries)
    with ScheduleSession(store, preference_store, today=today) as s:
        assert s.state.preferences.current_user == "Bob"
        assert preference_store.get(CURRENT_USER) == "Bob"
        assert s.state.updated_at is not None


def test_saved_person_kept(sample_entries):
    prefs = InMemoryPreferenceStore({CURRENT_USER: "Carol", VIEW_MODE: "list"})
    with ScheduleSession(InMemoryScheduleStore(sample_entries), prefs, today=today) as s:
        assert s.state.preferences.current_user == "Carol"
        assert s.state.preferences.view_mode == "list"


def test_subscription_failure_sets_banner(preference_store):
    with ScheduleSession(UnreachableStore(), preference_store, today=today) as s:
        assert s.state.error == LOAD_ERROR
        assert s.state.loading is False


def test_upload_success(session, valid_workbook):
    result = session.upload(valid_workbook, "schedule.xlsx")

    assert len(result.entries) == 3
    assert session.state.notice == "Successfully imported 3 schedule entries!"
    assert session.state.error == ""
    assert len(session.state.entries) == 3
    assert session.state.preferences.current_user == "A"
    assert session.state.updated_at is not None


def test_upload_with_row_warnings(session):
    csv = make_csv("Date,Name,Test\n2023-03-15,A,X\n2023-03-16,,Y\n")
    session.upload(csv, "schedule.csv")

    assert session.state.error == "Import completed with warnings:\n\nRow 3: Missing person name"
    assert session.state.notice == ""
    assert len(session.state.entries) == 1


def test_reupload_replaces_everything(session, valid_workbook):
    session.upload(valid_workbook, "schedule.xlsx")
    session.upload(make_csv("Date,Name,Test\n2023-04-01,Dan,Lead\n"), "again.csv")

    assert [e.person for e in session.state.entries] == ["Dan"]
    assert [e.id for e in session.state.entries] == ["0"]


def test_upload_missing_columns_keeps_data(session, valid_workbook):
    session.upload(valid_workbook, "schedule.xlsx")
    assert session.upload(make_workbook([{"Name": "A", "Test": "X"}]), "bad.xlsx") is None

    assert session.state.error.startswith("Missing required columns: Date.")
    assert len(session.state.entries) == 3


def test_upload_no_valid_rows_lists_row_errors(session):
    session.upload(make_csv("Date,Name,Test\n2023-03-15,,X\n"), "bad.csv")

    assert session.state.error.startswith("No valid data found in file.")
    assert "Row 2: Missing person name" in session.state.error
    assert session.state.entries == []


def test_upload_store_failure(preference_store, valid_workbook):
    store = FlakyStore()
    store.fail_writes = True
    with ScheduleSession(store, preference_store, today=today) as s:
        assert s.upload(valid_workbook, "schedule.xlsx") is None
        assert s.state.error.startswith("Could not save schedule to server:")
        assert s.state.entries == []


def test_upload_over_row_limit(preference_store, valid_workbook):
    store = InMemoryScheduleStore(max_batch_operations=3)
    with ScheduleSession(store, preference_store, today=today) as s:
        assert s.upload(valid_workbook, "schedule.xlsx") is None
        assert "at most 2" in s.state.error


def test_clear_resets_data_and_preferences(session, valid_workbook, preference_store):
    session.upload(valid_workbook, "schedule.xlsx")
    session.set_view("monthly")
    session.set_filter("X")

    assert session.clear() is True
    assert session.state.entries == []
    assert session.state.preferences.current_user == ""
    assert session.state.preferences.view_mode == "mySchedule"
    assert preference_store.get(VIEW_MODE) == "mySchedule"
    assert preference_store.get(TEST_FILTER) == "all"


def test_clear_failure_keeps_data(preference_store, sample_entries):
    store = FlakyStore(sample_entries)
    with ScheduleSession(store, preference_store, today=today) as s:
        store.fail_writes = True
        assert s.clear() is False
        assert s.state.error == CLEAR_ERROR
        assert len(s.state.entries) == len(sample_entries)


def test_preference_setters_persist(session, preference_store):
    session.select_person("Alice")
    session.set_view("teamWeekly")
    session.set_filter("Radon")

    assert preference_store.get(CURRENT_USER) == "Alice"
    assert preference_store.get(VIEW_MODE) == "teamWeekly"
    assert preference_store.get(TEST_FILTER) == "Radon"


def test_set_view_rejects_unknown_mode(session):
    with pytest.raises(ValueError):
        session.set_view("gantt")
    assert session.state.preferences.view_mode == "mySchedule"


def test_week_navigation(session):
    session.next_week()
    assert session.state.week_start == "2023-03-18"
    session.prev_week()
    session.prev_week()
    assert session.state.week_start == "2023-03-04"
    session.this_week()
    assert session.state.week_start == "2023-03-11"


def test_month_navigation(session):
    session.prev_month()
    assert session.state.month == "2023-02"
    session.next_month()
    session.next_month()
    assert session.state.month == "2023-04"
    session.this_month()
    assert session.state.month == "2023-03"


def test_views_cached_until_inputs_change(session, valid_workbook):
    first = session.views()
    assert session.views() is first

    session.set_filter("X")
    filtered = session.views()
    assert filtered is not first

    session.upload(valid_workbook, "schedule.xlsx")
    refreshed = session.views()
    assert refreshed is not filtered
    assert [e.person for e in refreshed.person_list] == ["A"]
    assert refreshed.week_dates[0] == "2023-03-11"
