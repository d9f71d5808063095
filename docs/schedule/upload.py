schedule_upload_description = """
Replace the shared schedule with the contents of an uploaded spreadsheet

### Request Body

`multipart/form-data` with a single `file` field:

- A workbook (`.xlsx`, `.xls`; only the first sheet is read) or a delimited text file (`.csv`, `.tsv`, `.txt`).
- The first row is the header. Column order does not matter; headers are matched case-insensitively:
    - `date`: Date, Date/Time, DateTime, Test Date **(required)**
    - `person`: Name, Person, Employee, Technician, Tech **(required)**
    - `test`: Test, Test Type, TestType, Service **(required)**
    - `time`: Time, Start Time, StartTime
    - `location`: Location, Site, Address
    - `zipCode`: Zip Code, ZipCode, Zip, Postal Code
    - `testId`: Test ID, TestID, ID, Job ID, JobID
    - `mep`: MEP Description, MEP, Description, Notes

Dates may be spreadsheet serial numbers (e.g. `45000` is 2023-03-15) or text such as `2023-03-15` or `3/15/2023`.

Rows where person, test and date are all blank are skipped. Rows missing only some of them, or with an unreadable date, are reported in `warnings` and left out.

The API endpoint returns a JSON object with the following keys:

- `count`: Number of schedule entries now stored.
- `warnings`: One message per rejected row, e.g. `Row 4: Missing test type`.
- `updatedAt`: When the schedule was replaced.

Every upload replaces the whole schedule; nothing is merged.

The API endpoint raises an HTTPException with a status code of 400 if a required column is missing or no row is valid (nothing is written), 413 if the schedule has more rows than the store accepts in one upload, and 503 if the store cannot be written.
"""
