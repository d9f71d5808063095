import io
from datetime import date
from typing import Dict, List

import pandas as pd
import pytest

from schemas.schedule.entry import ScheduleEntry
from store.preference_store import InMemoryPreferenceStore
from store.schedule_store import InMemoryScheduleStore


def make_workbook(rows: List[Dict], columns: List[str] = None) -> bytes:
    """An .xlsx file whose first sheet holds `rows` under `columns`."""
    buffer = io.BytesIO()
    pd.DataFrame(rows, columns=columns).to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


def make_csv(text: str) -> bytes:
    return text.encode("utf-8")


def entry(person: str, test: str, day: str, **extra) -> ScheduleEntry:
    return ScheduleEntry(person=person, test=test, date=date.fromisoformat(day), **extra)


@pytest.fixture
def sample_entries() -> List[ScheduleEntry]:
    return [
        entry("Bob", "Radon", "2023-03-14"),
        entry("Alice", "Mold", "2023-03-15", time="9:00 AM"),
        entry("Alice", "Asbestos", "2023-03-15"),
        entry("Carol", "Radon", "2023-03-15"),
        entry("Alice", "Radon", "2023-03-17"),
        entry("Bob", "Mold", "2023-03-20"),
    ]


@pytest.fixture
def schedule_store():
    store = InMemoryScheduleStore()
    yield store
    store.dispose()


@pytest.fixture
def preference_store():
    return InMemoryPreferenceStore()


@pytest.fixture
def valid_workbook() -> bytes:
    return make_workbook(
        [
            {"Date": 45000, "Name": "A", "Test": "X", "Zip Code": 2134},
            {"Date": "2023-03-16", "Name": "B", "Test": "Y", "Zip Code": None},
            {"Date": "3/17/2023", "Name": "  A ", "Test": " Z ", "Zip Code": None},
        ]
    )
