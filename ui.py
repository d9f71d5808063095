# ui.py
"""Streamlit UI for the shared work schedule."""
import os

os.environ["STREAMLIT_SERVER_FILE_WATCHER_TYPE"] = "none"
import streamlit as st
import logging
from datetime import date
from config.paths import PREFERENCES_PATH, SCHEDULE_STORE_PATH
from core.session import ScheduleSession
from core.views import ScheduleViews
from store.preference_store import JsonPreferenceStore
from store.schedule_store import JsonFileScheduleStore
from utils.constants import FILTER_ALL, VIEW_MODES
from utils.date_utils import parse_month, to_date
from utils.download import download_excel, entries_to_frame, week_to_frame

logging.getLogger("watchdog.observers.inotify_buffer").setLevel(logging.WARNING)
logging.getLogger("watchdog").setLevel(logging.WARNING)

VIEW_LABELS = {
    "mySchedule": "📋 My Schedule",
    "teamWeekly": "👥 Team Weekly",
    "monthly": "🗓️ Monthly",
    "list": "📄 List",
}

st.set_page_config(page_title="Work Schedule", layout="wide")
st.title("🗂️ Work Schedule")
st.markdown(
    """
Upload the team schedule spreadsheet (Date, Name and Test columns), then pick a person and a view.\n
Every upload replaces the whole shared schedule.
"""
)


def get_session() -> ScheduleSession:
    if "session" not in st.session_state:
        # Streamlit reruns the script on every interaction; poll on rerun instead of a watcher thread
        store = JsonFileScheduleStore(SCHEDULE_STORE_PATH, poll_interval=None)
        prefs = JsonPreferenceStore(PREFERENCES_PATH)
        st.session_state.session = ScheduleSession(store, prefs).open()
    return st.session_state.session


def fmt_day(iso: str) -> str:
    d = to_date(iso)
    return f"{d:%A} {d.month}/{d.day}"


def show_entry(entry, show_person: bool = False):
    title = f"**{entry.person}** · {entry.test}" if show_person else f"**{entry.test}**"
    details = [v for v in (entry.time, entry.location, entry.zipCode) if v]
    st.markdown(title + (f"  \n{' · '.join(details)}" if details else ""))
    if entry.testId or entry.mep:
        st.caption(" · ".join(v for v in (entry.testId, entry.mep) if v))


def week_nav(session: ScheduleSession, views: ScheduleViews):
    prev_col, mid_col, next_col = st.columns([1, 3, 1])
    prev_col.button("◀ Prev", on_click=session.prev_week, key="prev_week")
    start = to_date(views.week_dates[0])
    mid_col.markdown(f"#### Week of {start:%B} {start.day}")
    mid_col.button("Today", on_click=session.this_week, key="this_week")
    next_col.button("Next ▶", on_click=session.next_week, key="next_week")


def show_week(week, show_person: bool, today_iso: str):
    for day, items in week.items():
        label = fmt_day(day) + ("  (today)" if day == today_iso else "")
        with st.expander(label, expanded=bool(items)):
            if not items:
                st.caption("Nothing scheduled")
            for entry in items:
                show_entry(entry, show_person=show_person)


def show_my_schedule(session: ScheduleSession, views: ScheduleViews):
    if not views.selected_person:
        st.info("Select a person in the sidebar to see their schedule.")
        return
    st.subheader(f"{views.selected_person}'s week")
    week_nav(session, views)
    show_week(views.person_week, show_person=False, today_iso=date.today().isoformat())


def show_team_weekly(session: ScheduleSession, views: ScheduleViews):
    st.subheader("Team schedule")
    week_nav(session, views)
    show_week(views.team_week, show_person=True, today_iso=date.today().isoformat())
    team_df = week_to_frame(views.team_week)
    if not team_df.empty:
        download_excel(team_df, f"team_week_{views.week_dates[0]}.xlsx")


def show_monthly(session: ScheduleSession, views: ScheduleViews):
    year, month = parse_month(views.month)
    prev_col, mid_col, next_col = st.columns([1, 3, 1])
    prev_col.button("◀ Prev", on_click=session.prev_month, key="prev_month")
    mid_col.markdown(f"#### {date(year, month, 1):%B %Y}")
    mid_col.button("This month", on_click=session.this_month, key="this_month")
    next_col.button("Next ▶", on_click=session.next_month, key="next_month")

    if not views.selected_person:
        st.info("Select a person in the sidebar to see their tasks on the calendar.")

    header = st.columns(7)
    for col, iso in zip(header, [c.date for c in views.month_grid[:7]]):
        col.markdown(f"**{to_date(iso):%a}**")

    for week_start in range(0, len(views.month_grid), 7):
        cols = st.columns(7)
        for col, cell in zip(cols, views.month_grid[week_start:week_start + 7]):
            tasks = views.person_tasks_by_date.get(cell.date, [])
            day_label = f"**{cell.day}**" if cell.is_current_month else f":gray[{cell.day}]"
            if cell.is_today:
                day_label += " 🔵"
            col.markdown(day_label)
            for entry in tasks:
                col.caption(entry.test)


def show_list(session: ScheduleSession, views: ScheduleViews):
    who = views.selected_person or "Everyone"
    st.subheader(f"All tasks · {who}")
    df = entries_to_frame(views.person_list)
    if df.empty:
        st.write("No schedule data to show.")
        return
    st.dataframe(df, hide_index=True, use_container_width=True)
    download_excel(df, "schedule_list.xlsx")


session = get_session()
session.schedule_store.poll()
state = session.state

# --- Sidebar ---
st.sidebar.header("Schedule")
uploaded = st.sidebar.file_uploader(
    "Upload schedule", type=["xlsx", "xls", "csv", "tsv", "txt"], key="schedule_file"
)
if uploaded is not None and st.sidebar.button("Import", type="primary"):
    with st.spinner("Importing schedule..."):
        session.upload(uploaded.getvalue(), uploaded.name)

if state.updated_at:
    st.sidebar.caption(f"Last updated {state.updated_at.astimezone():%b %d, %Y %I:%M %p}")

views = session.views()

people = [""] + views.people
current = state.preferences.current_user
person = st.sidebar.selectbox(
    "Person",
    people,
    index=people.index(current) if current in people else 0,
    format_func=lambda p: p or "(select)",
)
if person != current:
    session.select_person(person)

filters = [FILTER_ALL] + views.test_types
active_filter = state.preferences.test_filter
chosen_filter = st.sidebar.selectbox(
    "Test type",
    filters,
    index=filters.index(active_filter) if active_filter in filters else 0,
    format_func=lambda f: "All tests" if f == FILTER_ALL else f,
)
if chosen_filter != active_filter:
    session.set_filter(chosen_filter)

view_mode = st.sidebar.radio(
    "View",
    VIEW_MODES,
    index=VIEW_MODES.index(state.preferences.view_mode),
    format_func=VIEW_LABELS.get,
)
if view_mode != state.preferences.view_mode:
    session.set_view(view_mode)

st.sidebar.markdown("---")
confirm_clear = st.sidebar.checkbox("I understand this cannot be undone")
if st.sidebar.button("Clear all data", disabled=not confirm_clear):
    session.clear()

# --- Banner ---
if state.loading:
    st.info("Loading schedule...")
if state.error:
    st.warning(state.error)
elif state.notice:
    st.success(state.notice)

# --- Main view ---
views = session.views()
if not state.entries:
    st.write("No schedule uploaded yet.")
else:
    {
        "mySchedule": show_my_schedule,
        "teamWeekly": show_team_weekly,
        "monthly": show_monthly,
        "list": show_list,
    }[state.preferences.view_mode](session, views)
