"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time
from decimal import Decimal

# Payroll policy
AVERAGE_WORKING_DAYS_PER_MONTH = Decimal("20.5")
STANDARD_DAILY_HOURS = Decimal("7.5")
OVERTIME_PREMIUM = Decimal("1.25")
LATE_NIGHT_PREMIUM = Decimal("1.50")

# Late-night window (22:00 - 05:00 next day)
LATE_NIGHT_START = time(22, 0)
LATE_NIGHT_END = time(5, 0)

# Leave
LEAVE_DAYS_TOLERANCE = Decimal("0.01")
HALF_DAY = Decimal("0.5")

# Employees
DEFAULT_BREAK_MINUTES = 90
ALLOWED_BREAK_MINUTES = (30, 60, 90)
DEFAULT_PRESCRIBED_WORK_HOURS = Decimal("7.5")
NAME_MAX_LENGTH = 50

# Masters
MASTER_NAME_MAX_LENGTH = 100
DEFAULT_DISPLAY_ORDER = 999

# Payroll periods
MIN_PAYROLL_YEAR = 2000
MAX_PAYROLL_YEAR = 3000
