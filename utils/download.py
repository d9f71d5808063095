from io import BytesIO
from typing import Dict, List, Sequence
import pandas as pd
import streamlit as st
from schemas.schedule.entry import ScheduleEntry

DISPLAY_COLUMNS = {
    "date": "Date",
    "person": "Name",
    "test": "Test",
    "time": "Time",
    "location": "Location",
    "zipCode": "Zip Code",
    "testId": "Test ID",
    "mep": "MEP Description",
}


def entries_to_frame(entries: Sequence[ScheduleEntry]) -> pd.DataFrame:
    """Schedule entries as a DataFrame with the upload template's column headers."""
    rows = [e.model_dump(exclude={"id"}) for e in entries]
    df = pd.DataFrame(rows, columns=list(DISPLAY_COLUMNS))
    return df.rename(columns=DISPLAY_COLUMNS)


def week_to_frame(week: Dict[str, List[ScheduleEntry]]) -> pd.DataFrame:
    """Flatten a date -> entries mapping in week order."""
    return entries_to_frame([e for day in week.values() for e in day])


def to_excel_bytes(df: pd.DataFrame) -> bytes:
    buffer = BytesIO()
    df.to_excel(buffer, index=False, engine="xlsxwriter")
    return buffer.getvalue()


def download_excel(df: pd.DataFrame, filename: str):
    """ Renders a download button serving the DataFrame as an Excel file. """
    st.download_button(
        label=f"Download {filename}",
        data=to_excel_bytes(df),
        file_name=filename,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
