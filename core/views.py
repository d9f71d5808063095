from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence
from schemas.schedule.entry import ScheduleEntry
from utils.constants import DAYS_PER_WEEK, FILTER_ALL, MONTH_GRID_DAYS
from utils.date_utils import (
    DateLike,
    month_bounds,
    normalize_to_week_start,
    to_date,
)


@dataclass(frozen=True)
class MonthCell:
    """One square of the 6-week month calendar."""

    date: str
    """ISO date of the cell."""
    day: int
    """Day-of-month number shown in the cell."""
    is_current_month: bool
    """False for the leading/trailing days borrowed from adjacent months."""
    is_today: bool


@dataclass
class ScheduleViews:
    """
    Everything the four views need, derived from one set of inputs.

    Built by `build_views`; never mutated afterwards.
    """

    people: List[str]
    test_types: List[str]
    filtered: List[ScheduleEntry]
    week_dates: List[str]
    team_week: Dict[str, List[ScheduleEntry]]
    person_week: Dict[str, List[ScheduleEntry]]
    month_grid: List[MonthCell]
    person_tasks_by_date: Dict[str, List[ScheduleEntry]]
    person_list: List[ScheduleEntry]
    selected_person: str = ""
    test_filter: str = FILTER_ALL
    month: str = ""


def people_list(entries: Sequence[ScheduleEntry]) -> List[str]:
    return sorted({e.person for e in entries})


def test_types_list(entries: Sequence[ScheduleEntry]) -> List[str]:
    return sorted({e.test for e in entries})


def filtered_entries(entries: Sequence[ScheduleEntry], test_filter: str = FILTER_ALL) -> List[ScheduleEntry]:
    if not test_filter or test_filter == FILTER_ALL:
        return list(entries)
    return [e for e in entries if e.test == test_filter]


def week_dates(anchor: DateLike) -> List[str]:
    """The 7 ISO dates of the Saturday-start week containing `anchor`."""
    start = to_date(normalize_to_week_start(anchor))
    return [(start + timedelta(days=i)).isoformat() for i in range(DAYS_PER_WEEK)]


def _by_date(entries: Sequence[ScheduleEntry]) -> Dict[str, List[ScheduleEntry]]:
    grouped: Dict[str, List[ScheduleEntry]] = {}
    for e in entries:
        grouped.setdefault(e.iso_date, []).append(e)
    return grouped


def team_week(filtered: Sequence[ScheduleEntry], dates: Sequence[str]) -> Dict[str, List[ScheduleEntry]]:
    grouped = _by_date(filtered)
    return {
        d: sorted(grouped.get(d, []), key=lambda e: (e.person, e.test))
        for d in dates
    }


def person_week(
    filtered: Sequence[ScheduleEntry], dates: Sequence[str], person: str
) -> Dict[str, List[ScheduleEntry]]:
    grouped = _by_date(e for e in filtered if e.person == person)
    return {d: sorted(grouped.get(d, []), key=lambda e: e.test) for d in dates}


def month_grid(anchor: str, today: Optional[DateLike] = None) -> List[MonthCell]:
    """
    42 cells (6 weeks) starting on the Saturday on or before the 1st of the
    anchor month.
    """
    first, _ = month_bounds(anchor)
    start = to_date(normalize_to_week_start(first))
    today_iso = to_date(today).isoformat() if today is not None else date.today().isoformat()

    cells = []
    for i in range(MONTH_GRID_DAYS):
        d = start + timedelta(days=i)
        cells.append(
            MonthCell(
                date=d.isoformat(),
                day=d.day,
                is_current_month=(d.year, d.month) == (first.year, first.month),
                is_today=d.isoformat() == today_iso,
            )
        )
    return cells


def person_tasks_by_date(filtered: Sequence[ScheduleEntry], person: str) -> Dict[str, List[ScheduleEntry]]:
    if not person:
        return {}
    return _by_date(e for e in filtered if e.person == person)


def person_list_sorted(filtered: Sequence[ScheduleEntry], person: str = "") -> List[ScheduleEntry]:
    """Selected person's entries by date, or everyone's when nobody is selected."""
    rows = [e for e in filtered if e.person == person] if person else list(filtered)
    return sorted(rows, key=lambda e: e.date)


def build_views(
    entries: Sequence[ScheduleEntry],
    selected_person: str = "",
    test_filter: str = FILTER_ALL,
    week_anchor: Optional[DateLike] = None,
    month: Optional[str] = None,
    today: Optional[DateLike] = None,
) -> ScheduleViews:
    """
    Derive every view from the record set and the UI inputs.

    Parameters:
        entries: The full record set as last pushed by the store.
        selected_person: Person for the personal views; "" means nobody.
        test_filter: "all" or an exact test type.
        week_anchor: Any day of the week to show; defaults to today.
        month: "YYYY-MM" for the calendar; defaults to today's month.
        today: Reference day for defaults and the calendar's today marker.
    """
    today_date = to_date(today) if today is not None else date.today()
    week_anchor = week_anchor if week_anchor is not None else today_date
    month = month or f"{today_date.year:04d}-{today_date.month:02d}"

    filtered = filtered_entries(entries, test_filter)
    dates = week_dates(week_anchor)
    return ScheduleViews(
        people=people_list(entries),
        test_types=test_types_list(entries),
        filtered=filtered,
        week_dates=dates,
        team_week=team_week(filtered, dates),
        person_week=person_week(filtered, dates, selected_person),
        month_grid=month_grid(month, today_date),
        person_tasks_by_date=person_tasks_by_date(filtered, selected_person),
        person_list=person_list_sorted(filtered, selected_person),
        selected_person=selected_person,
        test_filter=test_filter or FILTER_ALL,
        month=month,
    )
