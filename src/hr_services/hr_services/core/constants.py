"""Constants and defaults."""

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_IMPORT_MAX_ROWS = 5000

# Serial 60 is Excel's nonexistent 1900-02-29.
EXCEL_PHANTOM_LEAP_SERIAL = 60

PROMOTION_SHEET_REQUIRED_COLUMNS = ("employee_id", "to_designation", "effective_date", "level")
PROMOTION_SHEET_OPTIONAL_COLUMNS = ("remarks",)

# Matches hr_employee_promotions.remarks VARCHAR(500).
REMARKS_MAX_LENGTH = 500
