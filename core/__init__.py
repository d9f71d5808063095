"""
core
----

Schedule viewing engine:

- build_views & friends (`views`):
  Pure functions deriving the person, team, monthly and list views from the
  record set, the selected person, the test filter and the week/month anchors.

- SessionState (`state`):
  Everything one viewer's session holds between renders.

- ScheduleSession (`session`):
  Wire the schedule store subscription, local preferences, ingestion and the
  view builder together for a front end.
"""
