from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """Base exception for business rule violations."""

    retryable = False


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class EmployeeNotFound(DomainError):
    """Raised when one or more referenced employees do not exist."""

    def __init__(self, employee_ids: Iterable[int]):
        self.employee_ids = sorted({int(e) for e in employee_ids})
        joined = ", ".join(str(e) for e in self.employee_ids)
        super().__init__(f"Employee not found: {joined}")


class PromotionNotFound(DomainError):
    """Raised when a promotion event id does not exist."""

    def __init__(self, event_id: int):
        self.event_id = int(event_id)
        super().__init__(f"Promotion record {self.event_id} not found")


class InactiveEmployee(DomainError):
    """Raised when a new promotion targets an inactive employee."""


class DateConflict(DomainError):
    """Raised for a duplicate effective date or a date outside its neighbours."""


class InvalidSequence(DomainError):
    """Raised when an event would break the chronological order of a chain."""


class ConcurrentModification(DomainError):
    """Raised on lock contention or when a row changed under a transaction."""

    retryable = True


class PersistenceError(DomainError):
    """Raised when the database rejects an operation for a non-business reason."""
