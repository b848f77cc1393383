from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime
from typing import Any

from openpyxl.utils.datetime import from_excel

from ..core.constants import EXCEL_PHANTOM_LEAP_SERIAL
from ..core.exceptions import ValidationError

# A bare date, or a date followed by a "T" or space time part.
_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ].*)?$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def excel_serial_to_date(serial: float) -> date:
    """Convert an Excel serial day number (1900 date system) into a calendar date.

    The fractional part (time of day) is dropped.
    """
    if isinstance(serial, bool) or not isinstance(serial, numbers.Real) or math.isnan(serial):
        raise ValidationError(f"Invalid Excel date serial: {serial!r}")
    if serial < 1:
        raise ValidationError(f"Excel date serial must be positive: {serial!r}")
    day = int(math.floor(serial))
    if day == EXCEL_PHANTOM_LEAP_SERIAL:
        raise ValidationError("Excel date serial 60 (1900-02-29) is not a real date")
    try:
        return from_excel(day).date()
    except OverflowError:
        raise ValidationError(f"Excel date serial out of range: {serial!r}")


def coerce_date(value: Any) -> date:
    """Accept a date, datetime, ISO string or Excel serial and return a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return excel_serial_to_date(value)
    if isinstance(value, str):
        v = value.strip()
        if not v:
            raise ValidationError("Effective date is required")
        match = _ISO_DATE_PREFIX.match(v)
        if match:
            try:
                return parse_iso_date(match.group(1))
            except ValueError:
                raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")
        try:
            return excel_serial_to_date(float(v))
        except ValueError:
            raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")
    raise ValidationError(f"Invalid date: {value!r}")
