from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import coerce_date
from ..common.validators import optional_text, require_int, require_non_empty
from ..core.constants import REMARKS_MAX_LENGTH
from ..core.exceptions import DateConflict, InactiveEmployee, InvalidSequence, PromotionNotFound, ValidationError
from ..designations.repository import DesignationRepository
from ..employees.model import Employee
from .chain import expected_from
from .model import PromotionEvent
from .repository import ChainStore, ChainTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromotionInput:
    to_designation: str
    effective_date: date
    level: int
    remarks: Optional[str]


class PromotionChainService:
    """Single-event mutations of an employee's designation chain.

    Every public method runs in one ``ChainStore.transaction``: all writes of
    the operation (the event itself, a neighbour relink, the cached current
    designation) commit together or not at all.
    """

    def __init__(self, chains: ChainStore, designations: DesignationRepository):
        self._chains = chains
        self._designations = designations

    def clean_input(self, *, to_designation, effective_date, level, remarks=None) -> PromotionInput:
        code = require_non_empty(to_designation, "Designation")
        if self._designations.get(code) is None:
            raise ValidationError(f"Unknown designation: {code}")
        return PromotionInput(
            to_designation=code,
            effective_date=coerce_date(effective_date),
            level=require_int(level, "Level", minimum=0),
            remarks=optional_text(remarks, "Remarks", max_length=REMARKS_MAX_LENGTH),
        )

    @staticmethod
    def _require_active(employee: Employee) -> None:
        if not employee.is_active:
            raise InactiveEmployee(f"Employee {employee.employee_id} is inactive")

    @staticmethod
    def _require_not_before_join(employee: Employee, effective_date: date) -> None:
        """Reject dates before the join date.

        A promotion dated on the join date itself is accepted, so "after hire
        date" is enforced as "not before hire date".
        """
        if employee.join_date is not None and effective_date < employee.join_date:
            raise InvalidSequence(
                f"Promotion date {effective_date} cannot be before join date {employee.join_date}"
            )

    def append_within(self, tx: ChainTransaction, data: PromotionInput) -> PromotionEvent:
        """Append ``data`` as the new tail of the chain locked by ``tx``."""
        employee = tx.get_employee()
        self._require_active(employee)

        tail = tx.get_tail()
        if tail is not None and data.effective_date <= tail.effective_date:
            raise InvalidSequence(
                f"Promotion date {data.effective_date} must be after the latest promotion on {tail.effective_date}"
            )
        if tail is None:
            self._require_not_before_join(employee, data.effective_date)

        from_designation = expected_from(employee.initial_designation, tail)
        event_id = tx.insert_event(
            from_designation=from_designation,
            to_designation=data.to_designation,
            effective_date=data.effective_date,
            level=data.level,
            remarks=data.remarks,
        )
        tx.set_current_designation(data.to_designation)
        return PromotionEvent(
            event_id=event_id,
            employee_id=employee.employee_id,
            from_designation=from_designation,
            to_designation=data.to_designation,
            effective_date=data.effective_date,
            level=data.level,
            remarks=data.remarks,
        )

    def append(self, *, employee_id: int, to_designation, effective_date, level, remarks=None) -> PromotionEvent:
        data = self.clean_input(
            to_designation=to_designation, effective_date=effective_date, level=level, remarks=remarks
        )
        with self._chains.transaction(int(employee_id)) as tx:
            event = self.append_within(tx, data)

        logger.info(
            "Appended promotion %s for employee %s: %s -> %s on %s",
            event.event_id, event.employee_id, event.from_designation, event.to_designation, event.effective_date,
        )
        return event

    def insert_at(self, *, employee_id: int, to_designation, effective_date, level, remarks=None) -> PromotionEvent:
        data = self.clean_input(
            to_designation=to_designation, effective_date=effective_date, level=level, remarks=remarks
        )
        with self._chains.transaction(int(employee_id)) as tx:
            employee = tx.get_employee()
            self._require_active(employee)
            self._require_not_before_join(employee, data.effective_date)

            if tx.get_event_on(data.effective_date) is not None:
                raise DateConflict(
                    f"Employee {employee.employee_id} already has a promotion on {data.effective_date}"
                )

            predecessor = tx.get_predecessor(data.effective_date)
            successor = tx.get_successor(data.effective_date)
            from_designation = expected_from(employee.initial_designation, predecessor)

            event_id = tx.insert_event(
                from_designation=from_designation,
                to_designation=data.to_designation,
                effective_date=data.effective_date,
                level=data.level,
                remarks=data.remarks,
            )
            if successor is not None:
                tx.relink(event_id=successor.event_id, from_designation=data.to_designation)
            else:
                tx.set_current_designation(data.to_designation)

        logger.info(
            "Inserted promotion %s for employee %s on %s (relinked successor: %s)",
            event_id, employee.employee_id, data.effective_date, successor.event_id if successor else None,
        )
        return PromotionEvent(
            event_id=event_id,
            employee_id=employee.employee_id,
            from_designation=from_designation,
            to_designation=data.to_designation,
            effective_date=data.effective_date,
            level=data.level,
            remarks=data.remarks,
        )

    def _locate(self, event_id: int) -> PromotionEvent:
        existing = self._chains.get_event(int(event_id))
        if existing is None:
            raise PromotionNotFound(event_id)
        return existing

    def update(self, *, event_id: int, to_designation, effective_date, level, remarks=None) -> PromotionEvent:
        data = self.clean_input(
            to_designation=to_designation, effective_date=effective_date, level=level, remarks=remarks
        )
        located = self._locate(event_id)

        with self._chains.transaction(located.employee_id) as tx:
            employee = tx.get_employee()
            current = tx.get_event(located.event_id)
            if current is None:
                raise PromotionNotFound(event_id)

            predecessor = tx.get_predecessor(current.effective_date)
            successor = tx.get_successor(current.effective_date)

            if predecessor is not None and data.effective_date <= predecessor.effective_date:
                raise DateConflict(
                    f"Promotion date must be after the previous promotion date ({predecessor.effective_date})"
                )
            if successor is not None and data.effective_date >= successor.effective_date:
                raise DateConflict(
                    f"Promotion date must be before the next promotion date ({successor.effective_date})"
                )
            if predecessor is None:
                self._require_not_before_join(employee, data.effective_date)

            from_designation = expected_from(employee.initial_designation, predecessor)
            tx.update_event(
                event_id=current.event_id,
                from_designation=from_designation,
                to_designation=data.to_designation,
                effective_date=data.effective_date,
                level=data.level,
                remarks=data.remarks,
            )
            if successor is None:
                tx.set_current_designation(data.to_designation)
            elif successor.from_designation != data.to_designation:
                tx.relink(event_id=successor.event_id, from_designation=data.to_designation)

        logger.info("Updated promotion %s for employee %s", current.event_id, employee.employee_id)
        return PromotionEvent(
            event_id=current.event_id,
            employee_id=employee.employee_id,
            from_designation=from_designation,
            to_designation=data.to_designation,
            effective_date=data.effective_date,
            level=data.level,
            remarks=data.remarks,
        )

    def delete(self, *, event_id: int) -> PromotionEvent:
        located = self._locate(event_id)

        with self._chains.transaction(located.employee_id) as tx:
            employee = tx.get_employee()
            current = tx.get_event(located.event_id)
            if current is None:
                raise PromotionNotFound(event_id)

            predecessor = tx.get_predecessor(current.effective_date)
            successor = tx.get_successor(current.effective_date)
            tx.delete_event(event_id=current.event_id)

            carried = expected_from(employee.initial_designation, predecessor)
            if successor is not None:
                tx.relink(event_id=successor.event_id, from_designation=carried)
            else:
                tx.set_current_designation(carried)

        logger.info("Deleted promotion %s for employee %s", current.event_id, employee.employee_id)
        return current
