"""
utils package
-------------

Contains utility modules used throughout the schedule application.

Includes the spreadsheet loader, calendar date helpers, configuration constants, logging setup and the Excel download helper.
"""
