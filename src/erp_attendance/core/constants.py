"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Settings modules may override the policy values below.
"""

from datetime import time

DEFAULT_SHIFT_START = time(9, 0)
DEFAULT_SHIFT_END = time(19, 0)
DEFAULT_FULL_DAY_HOURS = 8
DEFAULT_BUSINESS_TIMEZONE = "Asia/Kolkata"

# Payroll divides the monthly base salary by a fixed number of working days.
DEFAULT_PAYROLL_WORKING_DAYS = 26
HALF_DAY_CREDIT = "0.5"

DEFAULT_DAILY_BATCH_TIME = time(19, 30)
DEFAULT_BATCH_MAX_SECONDS = 300

DEFAULT_LIST_LIMIT = 200
