"""Pure helpers over an already loaded chain (no I/O)."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..employees.model import Employee
from .model import PromotionEvent


def sort_chain(events: Iterable[PromotionEvent]) -> list[PromotionEvent]:
    return sorted(events, key=lambda e: e.effective_date)


def expected_from(initial_designation: str, predecessor: Optional[PromotionEvent]) -> str:
    """The ``from_designation`` an event must carry after ``predecessor``."""
    return predecessor.to_designation if predecessor is not None else initial_designation


def designation_on(initial_designation: str, events: Iterable[PromotionEvent], on_date: date) -> str:
    current = initial_designation
    for event in sort_chain(events):
        if event.effective_date > on_date:
            break
        current = event.to_designation
    return current


def chain_violations(employee: Employee, events: Sequence[PromotionEvent]) -> list[str]:
    """Describe every way ``events`` break the chain rules; empty when sound."""
    problems: list[str] = []
    previous: Optional[PromotionEvent] = None
    for event in sort_chain(events):
        if event.employee_id != employee.employee_id:
            problems.append(f"Event {event.event_id} belongs to employee {event.employee_id}")
        if previous is not None and event.effective_date <= previous.effective_date:
            problems.append(
                f"Event {event.event_id} on {event.effective_date} does not follow event "
                f"{previous.event_id} on {previous.effective_date}"
            )
        want = expected_from(employee.initial_designation, previous)
        if event.from_designation != want:
            problems.append(
                f"Event {event.event_id} starts from {event.from_designation!r}, expected {want!r}"
            )
        previous = event

    tail_designation = expected_from(employee.initial_designation, previous)
    if employee.current_designation != tail_designation:
        problems.append(
            f"Current designation {employee.current_designation!r} does not match chain tail {tail_designation!r}"
        )
    return problems
