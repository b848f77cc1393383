from __future__ import annotations

from enum import Enum


class EmployeeStatus(str, Enum):
    """Employment status stored on the employee row."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
