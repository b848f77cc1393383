from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import EmployeeStatus


@dataclass(frozen=True)
class Employee:
    """Employee as seen by the promotion chain.

    ``initial_designation`` is fixed at hire. ``current_designation`` is a
    cache of the chain tail and is only written by the promotion services.
    """

    employee_id: int
    employee_name: str
    initial_designation: str
    current_designation: str
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    join_date: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE
