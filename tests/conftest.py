from __future__ import annotations

import dataclasses
import threading
from contextlib import contextmanager
from datetime import date
from typing import Optional

import pytest

from src.hr_services.hr_services.container import build_services
from src.hr_services.hr_services.core.enums import EmployeeStatus
from src.hr_services.hr_services.core.exceptions import ConcurrentModification, EmployeeNotFound
from src.hr_services.hr_services.designations.model import Designation
from src.hr_services.hr_services.employees.model import Employee
from src.hr_services.hr_services.promotions.model import PromotionEvent


class InMemoryDesignations:
    def __init__(self, designations):
        self._by_code = {d.code: d for d in designations}

    def get(self, code):
        return self._by_code.get(code)

    def list_all(self):
        return sorted(self._by_code.values(), key=lambda d: (d.rank, d.code))


class InMemoryChainTransaction:
    """Works on private copies; the store publishes them only on commit."""

    def __init__(self, store: "InMemoryChainStore", employee: Employee, events: dict[int, PromotionEvent]):
        self._store = store
        self.employee = employee
        self.events = events

    def _sorted(self):
        return sorted(self.events.values(), key=lambda e: e.effective_date)

    def get_employee(self):
        return self.employee

    def list_events(self):
        return self._sorted()

    def get_event(self, event_id):
        return self.events.get(int(event_id))

    def get_event_on(self, effective_date):
        return next((e for e in self._sorted() if e.effective_date == effective_date), None)

    def get_predecessor(self, effective_date):
        before = [e for e in self._sorted() if e.effective_date < effective_date]
        return before[-1] if before else None

    def get_successor(self, effective_date):
        return next((e for e in self._sorted() if e.effective_date > effective_date), None)

    def get_tail(self):
        events = self._sorted()
        return events[-1] if events else None

    def insert_event(self, *, from_designation, to_designation, effective_date, level, remarks):
        if self.get_event_on(effective_date) is not None:
            raise AssertionError("unique (employee_id, effective_date) violated")
        event_id = self._store.next_id()
        self.events[event_id] = PromotionEvent(
            event_id=event_id,
            employee_id=self.employee.employee_id,
            from_designation=from_designation,
            to_designation=to_designation,
            effective_date=effective_date,
            level=level,
            remarks=remarks,
        )
        return event_id

    def update_event(self, *, event_id, from_designation, to_designation, effective_date, level, remarks):
        self.events[event_id] = dataclasses.replace(
            self.events[event_id],
            from_designation=from_designation,
            to_designation=to_designation,
            effective_date=effective_date,
            level=level,
            remarks=remarks,
        )

    def relink(self, *, event_id, from_designation):
        self.events[event_id] = dataclasses.replace(self.events[event_id], from_designation=from_designation)

    def delete_event(self, *, event_id):
        del self.events[event_id]

    def set_current_designation(self, designation):
        self.employee = dataclasses.replace(self.employee, current_designation=designation)


class InMemoryChainStore:
    def __init__(self, *, lock_timeout: float = 2.0):
        self.employees: dict[int, Employee] = {}
        self.events: dict[int, PromotionEvent] = {}
        self.commits = 0
        self._lock_timeout = lock_timeout
        self._meta = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}
        self._next_id = 0

    def next_id(self) -> int:
        with self._meta:
            self._next_id += 1
            return self._next_id

    def add_employee(
        self,
        employee_id: int,
        initial_designation: str,
        *,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        join_date: Optional[date] = None,
        name: str = "",
    ) -> Employee:
        employee = Employee(
            employee_id=employee_id,
            employee_name=name or f"Employee {employee_id}",
            initial_designation=initial_designation,
            current_designation=initial_designation,
            status=status,
            join_date=join_date,
        )
        self.employees[employee_id] = employee
        return employee

    def lock_for(self, employee_id: int) -> threading.Lock:
        with self._meta:
            return self._locks.setdefault(int(employee_id), threading.Lock())

    @contextmanager
    def transaction(self, employee_id):
        employee_id = int(employee_id)
        lock = self.lock_for(employee_id)
        if not lock.acquire(timeout=self._lock_timeout):
            raise ConcurrentModification("lock wait timeout")
        try:
            employee = self.employees.get(employee_id)
            if employee is None:
                raise EmployeeNotFound([employee_id])
            own = {k: v for k, v in self.events.items() if v.employee_id == employee_id}
            tx = InMemoryChainTransaction(self, employee, dict(own))
            yield tx
            for event_id in own:
                self.events.pop(event_id, None)
            self.events.update(tx.events)
            self.employees[employee_id] = tx.employee
            self.commits += 1
        finally:
            lock.release()

    def get_employee(self, employee_id):
        return self.employees.get(int(employee_id))

    def find_missing_employees(self, employee_ids):
        return {int(e) for e in employee_ids} - set(self.employees)

    def get_event(self, event_id):
        return self.events.get(int(event_id))

    def list_events(self, employee_id):
        own = [e for e in self.events.values() if e.employee_id == int(employee_id)]
        return sorted(own, key=lambda e: e.effective_date)


@pytest.fixture
def designations():
    return InMemoryDesignations(
        [
            Designation(code="KA", name="Knowledge Associate", rank=5),
            Designation(code="PE", name="Project Engineer", rank=10),
            Designation(code="SPE", name="Senior Project Engineer", rank=20),
            Designation(code="PM", name="Project Manager", rank=30),
            Designation(code="SPM", name="Senior Project Manager", rank=40),
        ]
    )


@pytest.fixture
def store():
    return InMemoryChainStore()


@pytest.fixture
def container(store, designations):
    return build_services(designations_repo=designations, chain_store=store)


@pytest.fixture
def chain_service(container):
    return container.promotion_service


@pytest.fixture
def bulk_service(container):
    return container.bulk_import_service


@pytest.fixture
def query_service(container):
    return container.promotion_query_service


@pytest.fixture
def make_store():
    return InMemoryChainStore
