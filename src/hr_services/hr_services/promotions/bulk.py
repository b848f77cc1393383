from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

from ..core.exceptions import DateConflict, DomainError, EmployeeNotFound
from ..designations.repository import DesignationRepository
from .model import BulkImportReport, ProposedPromotion
from .repository import ChainStore
from .service import PromotionChainService

logger = logging.getLogger(__name__)


def _row_label(proposal: ProposedPromotion, index: int) -> str:
    return f"Row {proposal.row if proposal.row is not None else index + 1}"


def partition_by_employee(proposals: Sequence[ProposedPromotion]) -> dict[int, list[ProposedPromotion]]:
    """Group proposals per employee, each group sorted by effective date."""
    groups: dict[int, list[ProposedPromotion]] = defaultdict(list)
    for p in proposals:
        groups[int(p.employee_id)].append(p)
    return {eid: sorted(group, key=lambda p: p.effective_date) for eid, group in groups.items()}


class BulkImportService:
    """Applies a multi-employee batch of promotions.

    Each employee's group is one transaction: it lands completely or not at
    all. A failing group is reported and the batch moves on. Unknown
    employees abort the whole batch before anything is written.
    """

    def __init__(self, chains: ChainStore, designations: DesignationRepository, chain_service: PromotionChainService):
        self._chains = chains
        self._designations = designations
        self._chain_service = chain_service

    def import_batch(self, proposals: Sequence[ProposedPromotion]) -> BulkImportReport:
        report = BulkImportReport()
        groups = partition_by_employee(proposals)
        if not groups:
            return report

        missing = self._chains.find_missing_employees(groups.keys())
        if missing:
            logger.warning("Promotion import rejected, unknown employees: %s", sorted(missing))
            raise EmployeeNotFound(missing)

        # Ascending ids keep the lock order stable across concurrent imports.
        for employee_id in sorted(groups):
            group = groups[employee_id]
            try:
                event_ids = self._apply_group(employee_id, group)
            except DomainError as e:
                logger.warning("Promotion import failed for employee %s: %s", employee_id, e)
                report.add_failure(employee_id=employee_id, error=e)
                continue
            except Exception as e:
                # The group transaction has rolled back; later employees still run.
                logger.exception("Promotion import failed for employee %s", employee_id)
                report.add_failure(employee_id=employee_id, error=e)
                continue
            for event_id in event_ids:
                report.add_success(employee_id=employee_id, event_id=event_id)

        logger.info(
            "Promotion import finished: %d events applied, %d employees failed",
            len(report.successful), len(report.failed),
        )
        return report

    def _apply_group(self, employee_id: int, group: Sequence[ProposedPromotion]) -> list[int]:
        cleaned = [
            self._chain_service.clean_input(
                to_designation=p.to_designation,
                effective_date=p.effective_date,
                level=p.level,
                remarks=p.remarks,
            )
            for p in group
        ]
        for earlier, later in zip(cleaned, cleaned[1:]):
            if earlier.effective_date == later.effective_date:
                raise DateConflict(
                    f"Employee {employee_id} has more than one promotion dated {later.effective_date} in this upload"
                )

        with self._chains.transaction(employee_id) as tx:
            return [self._chain_service.append_within(tx, data).event_id for data in cleaned]

    def validate_batch(self, proposals: Sequence[ProposedPromotion]) -> list[str]:
        """Read-only preview of what an import would reject, one message per problem."""
        errors: list[str] = []
        employees = {}
        tails = {}
        seen_dates: set[tuple[int, object]] = set()

        for index, p in enumerate(proposals):
            label = _row_label(p, index)
            employee_id = int(p.employee_id)

            if employee_id not in employees:
                employees[employee_id] = self._chains.get_employee(employee_id)
                events = self._chains.list_events(employee_id) if employees[employee_id] else []
                tails[employee_id] = events[-1] if events else None
            employee = employees[employee_id]
            if employee is None:
                errors.append(f"{label}: Employee ID {employee_id} does not exist")
                continue

            if not employee.is_active:
                errors.append(f"{label}: Employee {employee_id} is inactive")
            if employee.join_date is not None and p.effective_date < employee.join_date:
                errors.append(f"{label}: Promotion date cannot be before join date for employee {employee_id}")

            tail = tails[employee_id]
            if tail is not None and p.effective_date <= tail.effective_date:
                errors.append(
                    f"{label}: Promotion date {p.effective_date} must be after the latest promotion "
                    f"on {tail.effective_date} for employee {employee_id}"
                )

            key = (employee_id, p.effective_date)
            if key in seen_dates:
                errors.append(f"{label}: Duplicate promotion date {p.effective_date} for employee {employee_id}")
            seen_dates.add(key)

            target = self._designations.get(p.to_designation)
            if target is None:
                errors.append(f"{label}: Invalid designation {p.to_designation}")
                continue
            current = self._designations.get(employee.current_designation)
            if current is not None and target.rank < current.rank:
                errors.append(f"{label}: Cannot demote employee {employee_id} from {current.name}")

        return errors
