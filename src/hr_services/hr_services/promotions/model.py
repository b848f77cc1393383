from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class PromotionEvent:
    """One node of an employee's designation chain."""

    event_id: int
    employee_id: int
    from_designation: str
    to_designation: str
    effective_date: date
    level: int
    remarks: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "employee_id": self.employee_id,
            "from_designation": self.from_designation,
            "to_designation": self.to_designation,
            "effective_date": self.effective_date.strftime("%Y-%m-%d"),
            "level": self.level,
            "remarks": self.remarks or "",
        }


@dataclass(frozen=True)
class ProposedPromotion:
    """A promotion supplied from outside (form post or spreadsheet row).

    ``row`` is the 1-based source row, used in error messages only.
    """

    employee_id: int
    to_designation: str
    effective_date: date
    level: int
    remarks: Optional[str] = None
    row: Optional[int] = None


@dataclass
class BulkImportReport:
    successful: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    def add_success(self, *, employee_id: int, event_id: int) -> None:
        self.successful.append({"employee_id": int(employee_id), "event_id": int(event_id)})

    def add_failure(self, *, employee_id: int, error: Exception) -> None:
        entry = {"employee_id": int(employee_id), "error": str(error), "code": type(error).__name__}
        if getattr(error, "retryable", False):
            entry["retryable"] = True
        self.failed.append(entry)

    def to_dict(self) -> dict:
        return {"successful": list(self.successful), "failed": list(self.failed)}
