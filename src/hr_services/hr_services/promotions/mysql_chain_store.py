from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, Optional, Sequence

from ..core.enums import EmployeeStatus
from ..core.exceptions import EmployeeNotFound
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, translate_mysql_errors
from ..employees.model import Employee
from .model import PromotionEvent
from .repository import ChainStore, ChainTransaction

_EMPLOYEE_COLUMNS = "employee_id, employee_name, initial_designation, designation, status, join_date"
_EVENT_COLUMNS = "id, employee_id, from_designation, to_designation, effective_date, level, remarks"


def _employee_from_row(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        employee_name=r["employee_name"],
        initial_designation=r["initial_designation"],
        current_designation=r.get("designation") or r["initial_designation"],
        status=EmployeeStatus(r["status"]),
        join_date=r.get("join_date"),
    )


def _event_from_row(r: dict) -> PromotionEvent:
    return PromotionEvent(
        event_id=int(r["id"]),
        employee_id=int(r["employee_id"]),
        from_designation=r["from_designation"],
        to_designation=r["to_designation"],
        effective_date=r["effective_date"],
        level=int(r["level"]),
        remarks=r.get("remarks"),
    )


class MySQLChainTransaction(ChainTransaction):
    def __init__(self, cur, employee: Employee):
        self._cur = cur
        self._employee = employee

    def _one(self, sql: str, params: tuple) -> Optional[PromotionEvent]:
        self._cur.execute(sql, params)
        r = fetchone(self._cur)
        return _event_from_row(r) if r else None

    def get_employee(self) -> Employee:
        return self._employee

    def list_events(self) -> Sequence[PromotionEvent]:
        self._cur.execute(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM hr_employee_promotions
            WHERE employee_id=%s
            ORDER BY effective_date ASC
            """,
            (self._employee.employee_id,),
        )
        return [_event_from_row(r) for r in fetchall(self._cur)]

    def get_event(self, event_id: int) -> Optional[PromotionEvent]:
        return self._one(
            f"SELECT {_EVENT_COLUMNS} FROM hr_employee_promotions WHERE id=%s AND employee_id=%s",
            (int(event_id), self._employee.employee_id),
        )

    def get_event_on(self, effective_date: date) -> Optional[PromotionEvent]:
        return self._one(
            f"SELECT {_EVENT_COLUMNS} FROM hr_employee_promotions WHERE employee_id=%s AND effective_date=%s",
            (self._employee.employee_id, effective_date),
        )

    def get_predecessor(self, effective_date: date) -> Optional[PromotionEvent]:
        return self._one(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM hr_employee_promotions
            WHERE employee_id=%s AND effective_date < %s
            ORDER BY effective_date DESC
            LIMIT 1
            """,
            (self._employee.employee_id, effective_date),
        )

    def get_successor(self, effective_date: date) -> Optional[PromotionEvent]:
        return self._one(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM hr_employee_promotions
            WHERE employee_id=%s AND effective_date > %s
            ORDER BY effective_date ASC
            LIMIT 1
            """,
            (self._employee.employee_id, effective_date),
        )

    def get_tail(self) -> Optional[PromotionEvent]:
        return self._one(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM hr_employee_promotions
            WHERE employee_id=%s
            ORDER BY effective_date DESC
            LIMIT 1
            """,
            (self._employee.employee_id,),
        )

    def insert_event(
        self,
        *,
        from_designation: str,
        to_designation: str,
        effective_date: date,
        level: int,
        remarks: Optional[str],
    ) -> int:
        self._cur.execute(
            """
            INSERT INTO hr_employee_promotions
                (employee_id, from_designation, to_designation, effective_date, level, remarks)
            VALUES (%s,%s,%s,%s,%s,%s)
            """,
            (self._employee.employee_id, from_designation, to_designation, effective_date, int(level), remarks),
        )
        return int(self._cur.lastrowid)

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
        self._cur.execute(
            """
            UPDATE hr_employee_promotions
            SET from_designation=%s, to_designation=%s, effective_date=%s, level=%s, remarks=%s
            WHERE id=%s AND employee_id=%s
            """,
            (
                from_designation,
                to_designation,
                effective_date,
                int(level),
                remarks,
                int(event_id),
                self._employee.employee_id,
            ),
        )

    def relink(self, *, event_id: int, from_designation: str) -> None:
        self._cur.execute(
            "UPDATE hr_employee_promotions SET from_designation=%s WHERE id=%s AND employee_id=%s",
            (from_designation, int(event_id), self._employee.employee_id),
        )

    def delete_event(self, *, event_id: int) -> None:
        self._cur.execute(
            "DELETE FROM hr_employee_promotions WHERE id=%s AND employee_id=%s",
            (int(event_id), self._employee.employee_id),
        )

    def set_current_designation(self, designation: str) -> None:
        self._cur.execute(
            "UPDATE hr_employees SET designation=%s WHERE employee_id=%s",
            (designation, self._employee.employee_id),
        )
        self._employee = dataclasses.replace(self._employee, current_designation=designation)


class MySQLChainStore(ChainStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def transaction(self, employee_id: int) -> Iterator[MySQLChainTransaction]:
        with translate_mysql_errors(), db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the employee serializes every writer of this chain.
            cur.execute(
                f"SELECT {_EMPLOYEE_COLUMNS} FROM hr_employees WHERE employee_id=%s FOR UPDATE",
                (int(employee_id),),
            )
            r = fetchone(cur)
            if not r:
                raise EmployeeNotFound([employee_id])
            yield MySQLChainTransaction(cur, _employee_from_row(r))

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EMPLOYEE_COLUMNS} FROM hr_employees WHERE employee_id=%s", (int(employee_id),))
            r = fetchone(cur)
            return _employee_from_row(r) if r else None

    def find_missing_employees(self, employee_ids: Iterable[int]) -> set[int]:
        wanted = {int(e) for e in employee_ids}
        if not wanted:
            return set()
        placeholders = ",".join(["%s"] * len(wanted))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT employee_id FROM hr_employees WHERE employee_id IN ({placeholders})",
                tuple(sorted(wanted)),
            )
            found = {int(r["employee_id"]) for r in fetchall(cur)}
        return wanted - found

    def get_event(self, event_id: int) -> Optional[PromotionEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EVENT_COLUMNS} FROM hr_employee_promotions WHERE id=%s", (int(event_id),))
            r = fetchone(cur)
            return _event_from_row(r) if r else None

    def list_events(self, employee_id: int) -> Sequence[PromotionEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM hr_employee_promotions
                WHERE employee_id=%s
                ORDER BY effective_date ASC
                """,
                (int(employee_id),),
            )
            return [_event_from_row(r) for r in fetchall(cur)]
