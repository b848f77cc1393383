from __future__ import annotations

from datetime import date
from typing import ContextManager, Iterable, Optional, Protocol, Sequence

from ..employees.model import Employee
from .model import PromotionEvent


class ChainTransaction(Protocol):
    """Reads and writes on one employee's chain inside a single transaction.

    Reads see earlier writes of the same transaction. No invariant checks
    happen here; that is the services' job.
    """

    def get_employee(self) -> Employee:
        raise NotImplementedError

    def list_events(self) -> Sequence[PromotionEvent]:
        """All events of the employee, oldest first."""

        raise NotImplementedError

    def get_event(self, event_id: int) -> Optional[PromotionEvent]:
        raise NotImplementedError

    def get_event_on(self, effective_date: date) -> Optional[PromotionEvent]:
        raise NotImplementedError

    def get_predecessor(self, effective_date: date) -> Optional[PromotionEvent]:
        """Latest event strictly before ``effective_date``."""

        raise NotImplementedError

    def get_successor(self, effective_date: date) -> Optional[PromotionEvent]:
        """Earliest event strictly after ``effective_date``."""

        raise NotImplementedError

    def get_tail(self) -> Optional[PromotionEvent]:
        raise NotImplementedError

    def insert_event(
        self,
        *,
        from_designation: str,
        to_designation: str,
        effective_date: date,
        level: int,
        remarks: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update_event(
        self,
        *,
        event_id: int,
        from_designation: str,
        to_designation: str,
        effective_date: date,
        level: int,
        remarks: Optional[str],
    ) -> None:
        raise NotImplementedError

    def relink(self, *, event_id: int, from_designation: str) -> None:
        raise NotImplementedError

    def delete_event(self, *, event_id: int) -> None:
        raise NotImplementedError

    def set_current_designation(self, designation: str) -> None:
        raise NotImplementedError


class ChainStore(Protocol):
    def transaction(self, employee_id: int) -> ContextManager[ChainTransaction]:
        """Lock the employee and open a transaction on its chain.

        Commits when the block exits normally and rolls back on any exception.
        Raises EmployeeNotFound when the employee does not exist.
        """

        raise NotImplementedError

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def find_missing_employees(self, employee_ids: Iterable[int]) -> set[int]:
        raise NotImplementedError

    def get_event(self, event_id: int) -> Optional[PromotionEvent]:
        raise NotImplementedError

    def list_events(self, employee_id: int) -> Sequence[PromotionEvent]:
        raise NotImplementedError
