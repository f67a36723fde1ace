"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SECTION = "A"
SECTIONS = ("A", "B", "C")

YEARS_OF_STUDY = ("1st Year", "2nd Year", "3rd Year", "4th Year")
MIN_SEMESTER = 1
MAX_SEMESTER = 8

DEPARTMENTS = ("CSE", "IT", "ECE", "EEE", "Civil", "Mechanical", "CSBS", "AIDS")

MIN_PASSWORD_LENGTH = 6
DEFAULT_STUDENT_PASSWORD = "defaultPassword123"

DEFAULT_ACCESS_TOKEN_MINUTES = 15
DEFAULT_REFRESH_TOKEN_DAYS = 7

DEFAULT_HISTORY_LIMIT = 60
NOT_MARKED = "Not Marked"
