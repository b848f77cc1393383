from __future__ import annotations

from datetime import date
from typing import Iterator

from ..core.exceptions import EmployeeNotFound
from ..employees.model import Employee
from .chain import chain_violations, designation_on
from .model import PromotionEvent
from .repository import ChainStore


class PromotionHistory:
    """Lazy view of one employee's chain, oldest first.

    Nothing is read until iteration starts; every new iteration reads the
    chain again.
    """

    def __init__(self, chains: ChainStore, employee_id: int):
        self._chains = chains
        self.employee_id = int(employee_id)

    def __iter__(self) -> Iterator[PromotionEvent]:
        return iter(self._chains.list_events(self.employee_id))


class PromotionQueryService:
    def __init__(self, chains: ChainStore):
        self._chains = chains

    def _employee(self, employee_id: int) -> Employee:
        employee = self._chains.get_employee(int(employee_id))
        if employee is None:
            raise EmployeeNotFound([employee_id])
        return employee

    def current_designation(self, employee_id: int) -> str:
        return self._employee(employee_id).current_designation

    def history(self, employee_id: int) -> PromotionHistory:
        self._employee(employee_id)
        return PromotionHistory(self._chains, employee_id)

    def designation_on(self, employee_id: int, on_date: date) -> str:
        employee = self._employee(employee_id)
        return designation_on(employee.initial_designation, self.history(employee_id), on_date)

    def audit(self, employee_id: int) -> list[str]:
        employee = self._employee(employee_id)
        return chain_violations(employee, list(self.history(employee_id)))
