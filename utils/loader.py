import io
import numbers
import pandas as pd
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, IO, List, Optional, Union
from exceptions.custom_errors import (
    DateParseError,
    FileContentError,
    FileReadingError,
    MissingColumnsError,
    NoValidRowsError,
    RowValidationError,
)
from schemas.schedule.entry import ScheduleEntry
from utils.constants import COLUMN_ALIASES, MAX_ROW_ERRORS_SHOWN, OPTIONAL_FIELDS, REQUIRED_FIELDS
from utils.date_utils import parse_date_value
from utils.logger import get_logger

logger = get_logger("ingest")

WORKBOOK_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
DELIMITED_SUFFIXES = {".csv", ".tsv", ".txt"}
ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = b"\xd0\xcf\x11\xe0"


@dataclass
class IngestResult:
    """Valid entries from one upload plus the rows that were rejected."""

    entries: List[ScheduleEntry]
    errors: List[RowValidationError] = field(default_factory=list)
    columns: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def warnings(self) -> List[str]:
        return [str(e) for e in self.errors]

    def summary(self, limit: int = MAX_ROW_ERRORS_SHOWN) -> str:
        return summarize_row_errors(self.errors, limit)


def summarize_row_errors(errors: List[RowValidationError], limit: int = MAX_ROW_ERRORS_SHOWN) -> str:
    """First `limit` row errors, one per line, then a remainder count."""
    lines = [str(e) for e in errors[:limit]]
    text = "\n".join(lines)
    if len(errors) > limit:
        text += f"\n\n...and {len(errors) - limit} more errors"
    return text


# == Reading ==
def _is_workbook(data: bytes, filename: Optional[str]) -> bool:
    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix in WORKBOOK_SUFFIXES:
        return True
    if suffix in DELIMITED_SUFFIXES:
        return False
    return data.startswith(ZIP_MAGIC) or data.startswith(OLE_MAGIC)


def _read_delimited(data: bytes) -> pd.DataFrame:
    # sep=None lets pandas sniff the delimiter from the header line.
    # Blank lines stay as rows so row numbers match the source file.
    return pd.read_csv(
        io.StringIO(data.decode("utf-8-sig")),
        sep=None,
        engine="python",
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
    )


def read_first_sheet(
    source: Union[bytes, str, Path, IO], filename: Optional[str] = None
) -> pd.DataFrame:
    """
    Read the first sheet of a workbook, or a delimited text file, into a DataFrame.

    Parameters:
        source: Raw file bytes, a path, or a file-like object (e.g. Streamlit UploadedFile).
        filename: Original file name, used to pick the reader by extension.

    Returns:
        pd.DataFrame keyed by the header row's text, cell values left as read
        (numbers stay numbers in workbooks, everything is text in delimited files).
    """
    if isinstance(source, (str, Path)):
        filename = filename or str(source)
        source = Path(source).read_bytes()
    elif not isinstance(source, (bytes, bytearray)):
        filename = filename or getattr(source, "name", None)
        source = source.read()

    data = bytes(source)
    if not data.strip():
        raise FileContentError("The Excel file appears to be empty.")

    try:
        if _is_workbook(data, filename):
            df = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=object)
        else:
            df = _read_delimited(data)
    except Exception as e:
        raise FileReadingError(f"Error reading file: {e}")

    df.columns = [str(c).strip() for c in df.columns]
    return df


# == Column resolution ==
def resolve_columns(columns: List[str]) -> Dict[str, Optional[str]]:
    """
    Map each logical field to the header that carries it.

    Aliases are tried in their configured order and compared case-insensitively;
    the first alias that matches wins, so "Date" beats "Test Date" when a
    sheet carries both.
    """
    lowered: Dict[str, str] = {}
    for col in columns:
        lowered.setdefault(col.strip().lower(), col)

    resolved: Dict[str, Optional[str]] = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        resolved[field_name] = next(
            (lowered[a.lower()] for a in aliases if a.lower() in lowered), None
        )
    return resolved


# == Cell helpers ==
def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell_text(value: Any) -> Optional[str]:
    """Trimmed text for a cell; integral floats lose their ".0" (zip codes, job ids)."""
    if _is_blank(value):
        return None
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if float(value).is_integer():
            return str(int(value))
    text = str(value).strip()
    return text or None


# == Ingestion ==
def ingest(
    source: Union[bytes, str, Path, IO], filename: Optional[str] = None
) -> IngestResult:
    """
    Turn an uploaded schedule spreadsheet into schedule entries.

    Raises:
        FileReadingError: the file could not be parsed at all.
        FileContentError: the sheet has no data rows.
        MissingColumnsError: Date, Name/Person or Test could not be resolved.
        NoValidRowsError: every row was blank or rejected.
    """
    df = read_first_sheet(source, filename)
    logger.info("Read %d rows, columns: %s", len(df), list(df.columns))

    if df.empty:
        raise FileContentError("The Excel file appears to be empty.")

    columns = resolve_columns(list(df.columns))
    logger.info("Mapped columns: %s", columns)

    missing = [label for key, label in REQUIRED_FIELDS.items() if columns[key] is None]
    if missing:
        raise MissingColumnsError(missing, list(df.columns))

    return ingest_rows(df.to_dict(orient="records"), columns)


def ingest_rows(
    rows: List[Dict[str, Any]], columns: Dict[str, Optional[str]]
) -> IngestResult:
    """Validate and normalize row dicts whose columns are already resolved."""
    entries: List[ScheduleEntry] = []
    errors: List[RowValidationError] = []

    for idx, row in enumerate(rows):
        row_num = idx + 2  # header is row 1
        person = _cell_text(row.get(columns["person"]))
        test = _cell_text(row.get(columns["test"]))
        raw_date = row.get(columns["date"])

        # Skip empty rows
        if person is None and test is None and _is_blank(raw_date):
            continue

        if person is None:
            errors.append(RowValidationError(row_num, "Missing person name"))
            continue
        if test is None:
            errors.append(RowValidationError(row_num, "Missing test type"))
            continue
        if _is_blank(raw_date):
            errors.append(RowValidationError(row_num, "Missing date"))
            continue

        try:
            day = parse_date_value(raw_date)
        except (ValueError, OverflowError):
            errors.append(DateParseError(row_num, f'Invalid date format "{raw_date}"'))
            continue

        optional = {
            key: _cell_text(row.get(columns[key])) if columns.get(key) else None
            for key in OPTIONAL_FIELDS
        }
        entries.append(
            ScheduleEntry(
                id=str(len(entries)),
                person=person,
                test=test,
                date=day,
                **optional,
            )
        )

    logger.info("Processed %d valid rows, %d row errors", len(entries), len(errors))
    if errors:
        logger.warning("Errors during import:\n%s", summarize_row_errors(errors))

    if not entries:
        raise NoValidRowsError(errors)

    return IngestResult(entries=entries, errors=errors, columns=columns)
