from datetime import date, datetime

import pytest

from conftest import make_csv, make_workbook
from exceptions.custom_errors import (
    DateParseError,
    FileContentError,
    FileReadingError,
    MissingColumnsError,
    NoValidRowsError,
    RowValidationError,
)
from utils.loader import ingest, resolve_columns, summarize_row_errors


def test_serial_date_row_is_ingested():
    result = ingest(make_workbook([{"Date": 45000, "Name": "A", "Test": "X"}]), "upload.xlsx")

    assert len(result.entries) == 1
    e = result.entries[0]
    assert (e.date.isoformat(), e.person, e.test) == ("2023-03-15", "A", "X")
    assert result.errors == []


def test_valid_workbook(valid_workbook):
    result = ingest(valid_workbook, "schedule.xlsx")

    assert [e.iso_date for e in result.entries] == ["2023-03-15", "2023-03-16", "2023-03-17"]
    assert [e.person for e in result.entries] == ["A", "B", "A"]
    assert result.entries[2].test == "Z"
    assert result.entries[0].zipCode == "2134"
    assert result.entries[1].zipCode is None
    assert [e.id for e in result.entries] == ["0", "1", "2"]


def test_every_entry_has_required_fields(valid_workbook):
    for e in ingest(valid_workbook).entries:
        assert e.person and e.test
        assert len(e.iso_date) == 10 and e.iso_date[4] == "-" and e.iso_date[7] == "-"


def test_workbook_detected_without_filename(valid_workbook):
    assert len(ingest(valid_workbook).entries) == 3


def test_row_error_uses_one_based_source_row_number():
    rows = [
        {"Date": "2023-03-13", "Name": "A", "Test": "X"},
        {"Date": "2023-03-14", "Name": "B", "Test": "X"},
        {"Date": None, "Name": "C", "Test": None},
        {"Date": "2023-03-16", "Name": "D", "Test": "Y"},
    ]
    result = ingest(make_workbook(rows), "s.xlsx")

    assert [e.person for e in result.entries] == ["A", "B", "D"]
    assert len(result.errors) == 1
    assert result.errors[0].row == 4
    assert str(result.errors[0]) == "Row 4: Missing test type"


def test_blank_rows_are_skipped_silently():
    rows = [
        {"Date": "2023-03-13", "Name": "A", "Test": "X"},
        {"Date": None, "Name": None, "Test": None},
        {"Date": "2023-03-14", "Name": "B", "Test": "X"},
    ]
    result = ingest(make_workbook(rows), "s.xlsx")

    assert len(result.entries) == 2
    assert result.errors == []


def test_each_missing_field_reported():
    csv = make_csv(
        "Date,Name,Test\n"
        "2023-03-13,,X\n"
        "2023-03-13,A,\n"
        ",A,X\n"
        "someday,A,X\n"
        "2023-03-13,A,X\n"
    )
    result = ingest(csv, "s.csv")

    assert len(result.entries) == 1
    assert [str(e) for e in result.errors] == [
        "Row 2: Missing person name",
        "Row 3: Missing test type",
        "Row 4: Missing date",
        'Row 5: Invalid date format "someday"',
    ]
    assert isinstance(result.errors[3], DateParseError)
    assert all(isinstance(e, RowValidationError) for e in result.errors)


def test_missing_date_column():
    with pytest.raises(MissingColumnsError) as exc:
        ingest(make_workbook([{"Name": "A", "Test": "X"}]), "s.xlsx")

    assert exc.value.missing == ["Date"]
    assert exc.value.found == ["Name", "Test"]
    assert "Date" in str(exc.value)


def test_missing_all_required_columns():
    with pytest.raises(MissingColumnsError) as exc:
        ingest(make_csv("Foo,Bar\n1,2\n"), "s.csv")

    assert exc.value.missing == ["Date", "Name/Person", "Test"]


def test_no_valid_rows():
    csv = make_csv("Date,Name,Test\n2023-03-13,,X\n,,\n")
    with pytest.raises(NoValidRowsError) as exc:
        ingest(csv, "s.csv")

    assert [str(e) for e in exc.value.row_errors] == ["Row 2: Missing person name"]


def test_empty_inputs():
    with pytest.raises(FileContentError):
        ingest(b"", "s.csv")
    with pytest.raises(FileContentError):
        ingest(make_csv("Date,Name,Test\n"), "s.csv")


def test_unreadable_workbook():
    with pytest.raises(FileReadingError):
        ingest(b"definitely not a spreadsheet", "s.xlsx")


def test_column_aliases_are_case_insensitive():
    csv = make_csv(
        "TEST DATE,technician,service,start time,site,ZIP,job id,notes\n"
        "2023-03-15, Ann ,Radon,9:00 AM,12 Main St,02134,J-77,Bring ladder\n"
    )
    e = ingest(csv, "s.csv").entries[0]

    assert (e.person, e.test, e.iso_date) == ("Ann", "Radon", "2023-03-15")
    assert e.time == "9:00 AM"
    assert e.location == "12 Main St"
    assert e.zipCode == "02134"
    assert e.testId == "J-77"
    assert e.mep == "Bring ladder"


def test_optional_fields_absent_are_none():
    e = ingest(make_csv("Date,Name,Test,Location\n2023-03-15,A,X,\n"), "s.csv").entries[0]

    assert e.location is None
    assert e.time is None and e.zipCode is None and e.testId is None and e.mep is None


def test_first_alias_wins_when_several_present():
    columns = resolve_columns(["Test Date", "Date", "Tech", "Name", "Service", "Test"])

    assert columns["date"] == "Date"
    assert columns["person"] == "Name"
    assert columns["test"] == "Test"
    assert columns["location"] is None


def test_numeric_string_serial_in_csv():
    e = ingest(make_csv("Date,Name,Test\n45000,A,X\n"), "s.csv").entries[0]
    assert e.date == date(2023, 3, 15)


def test_semicolon_delimited_text():
    csv = make_csv(
        "Date;Name;Test\n"
        "2023-03-15;A;X\n"
        "2023-03-16;B;Y\n"
    )
    result = ingest(csv, "s.txt")
    assert [e.person for e in result.entries] == ["A", "B"]


def test_datetime_cells_from_workbook():
    rows = [{"Date": datetime(2023, 3, 15, 8, 30), "Name": "A", "Test": "X"}]
    e = ingest(make_workbook(rows), "s.xlsx").entries[0]
    assert e.date == date(2023, 3, 15)


def test_summary_caps_listed_errors():
    errors = [RowValidationError(i, "Missing date") for i in range(2, 9)]
    summary = summarize_row_errors(errors, limit=5)

    assert summary.splitlines()[:5] == [f"Row {i}: Missing date" for i in range(2, 7)]
    assert summary.endswith("...and 2 more errors")
    assert "Row 7" not in summary


def test_summary_without_remainder():
    errors = [RowValidationError(2, "Missing date")]
    assert summarize_row_errors(errors) == "Row 2: Missing date"


def test_blank_line_in_text_keeps_source_row_numbers():
    csv = make_csv("Date,Name,Test\n2023-03-13,A,X\n\n2023-03-14,,X\n")
    result = ingest(csv, "s.csv")

    assert [e.person for e in result.entries] == ["A"]
    assert [str(e) for e in result.errors] == ["Row 4: Missing person name"]


def test_blank_row_in_workbook_keeps_source_row_numbers():
    rows = [
        {"Date": "2023-03-13", "Name": "A", "Test": "X"},
        {"Date": None, "Name": None, "Test": None},
        {"Date": "2023-03-14", "Name": None, "Test": "X"},
    ]
    result = ingest(make_workbook(rows), "s.xlsx")

    assert [str(e) for e in result.errors] == ["Row 4: Missing person name"]


def test_tab_delimited_text():
    tsv = make_csv("Date\tName\tTest\tZip\n2023-03-15\tA\tX\t02134\n")
    e = ingest(tsv, "s.tsv").entries[0]

    assert (e.person, e.test, e.zipCode) == ("A", "X", "02134")
