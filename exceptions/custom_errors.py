from typing import List, Optional


class FileReadingError(Exception):
    """Raised when there is an error reading an uploaded file."""

    pass


class FileContentError(Exception):
    """Raised when the content of a file is not as expected (e.g. no data rows)."""

    pass


class MissingColumnsError(FileContentError):
    """Raised when the header row lacks a required Date, Name/Person or Test column."""

    def __init__(self, missing: List[str], found: Optional[List[str]] = None):
        self.missing = list(missing)
        self.found = list(found or [])
        message = f"Missing required columns: {', '.join(self.missing)}."
        if self.found:
            message += f"\n\nFound columns: {', '.join(self.found)}"
        message += (
            "\n\nPlease ensure your Excel file has columns for Date, Name/Person, and Test."
        )
        super().__init__(message)


class RowValidationError(Exception):
    """A single spreadsheet row that could not be imported. Non-fatal."""

    def __init__(self, row: int, message: str):
        self.row = row
        self.message = message
        super().__init__(f"Row {row}: {message}")


class DateParseError(RowValidationError):
    """Raised when a row's date cell cannot be read as a calendar date."""

    pass


class NoValidRowsError(FileContentError):
    """Raised when a file was read but none of its rows produced a schedule entry."""

    def __init__(self, row_errors: Optional[List[RowValidationError]] = None):
        self.row_errors = list(row_errors or [])
        super().__init__(
            "No valid data found in file. Please check the format and try again."
        )


class StoreError(Exception):
    """Raised when the shared schedule store cannot be read or written."""

    pass


class TooManyRowsError(StoreError):
    """Raised when a replace would exceed the store's operation limit."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Schedule has {count} rows but the store accepts at most {limit} per upload."
        )


# Mapping of custom exceptions to HTTP status codes
CUSTOM_ERRORS = {
    MissingColumnsError: 400,
    NoValidRowsError: 400,
    FileContentError: 400,
    FileReadingError: 400,
    TooManyRowsError: 413,
    StoreError: 503,
}


def status_code_for(exc: Exception) -> int:
    """Most specific status code registered for the exception's type, 500 if none."""
    for cls in type(exc).__mro__:
        if cls in CUSTOM_ERRORS:
            return CUSTOM_ERRORS[cls]
    return 500
