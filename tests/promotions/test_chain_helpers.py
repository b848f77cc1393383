from __future__ import annotations

from datetime import date

from src.hr_services.hr_services.employees.model import Employee
from src.hr_services.hr_services.promotions.chain import chain_violations, designation_on, expected_from
from src.hr_services.hr_services.promotions.model import PromotionEvent


def _event(event_id, frm, to, when, employee_id=1):
    return PromotionEvent(
        event_id=event_id, employee_id=employee_id, from_designation=frm, to_designation=to, effective_date=when, level=1
    )


def test_expected_from_uses_initial_designation_without_predecessor():
    assert expected_from("PE", None) == "PE"
    assert expected_from("PE", _event(1, "PE", "SPE", date(2021, 1, 1))) == "SPE"


def test_designation_on_ignores_input_order():
    events = [_event(2, "SPE", "PM", date(2022, 1, 1)), _event(1, "PE", "SPE", date(2021, 1, 1))]
    assert designation_on("PE", events, date(2021, 6, 1)) == "SPE"
    assert designation_on("PE", [], date(2021, 6, 1)) == "PE"


def test_chain_violations_reports_each_problem():
    employee = Employee(employee_id=1, employee_name="A", initial_designation="PE", current_designation="SPM")
    events = [
        _event(1, "KA", "SPE", date(2021, 1, 1)),
        _event(2, "SPE", "PM", date(2021, 1, 1)),
        _event(3, "PM", "SPM", date(2022, 1, 1), employee_id=2),
    ]

    assert chain_violations(employee, events) == [
        "Event 1 starts from 'KA', expected 'PE'",
        "Event 2 on 2021-01-01 does not follow event 1 on 2021-01-01",
        "Event 3 belongs to employee 2",
    ]


def test_chain_violations_checks_cached_designation():
    employee = Employee(employee_id=1, employee_name="A", initial_designation="PE", current_designation="PM")
    assert chain_violations(employee, []) == ["Current designation 'PM' does not match chain tail 'PE'"]
