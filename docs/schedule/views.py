schedule_views_description = """
Compute the schedule views for one viewer

### Query Parameters

- `person`: Selected person for the personal views (`personWeek`, `personTasksByDate`, `personList`). Empty means nobody; `personList` then lists everyone.
- `filter`: `all` (default) or an exact test type. Applied before every view.
- `week`: Any date in the week to show (YYYY-MM-DD). Weeks start on Saturday. Defaults to the current week.
- `month`: Calendar month to show (YYYY-MM). Defaults to the current month.

The API endpoint returns a JSON object with the following keys:

- `people`, `testTypes`: Sorted distinct names and test types across the whole schedule.
- `weekDates`: The 7 dates of the week, Saturday first.
- `teamWeek`: Date → entries on that day, sorted by person then test.
- `personWeek`: Date → the selected person's entries, sorted by test.
- `monthGrid`: 42 cells starting on the Saturday on or before the 1st, each with `date`, `day`, `isCurrentMonth` and `isToday`.
- `personTasksByDate`: Date → the selected person's entries on that date.
- `personList`: Entries sorted by date.

The API endpoint raises an HTTPException with a status code of 400 if `week` or `month` cannot be read.
"""
