from __future__ import annotations

from datetime import date

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.hr_services.hr_services.core.enums import EmployeeStatus
from src.hr_services.hr_services.core.exceptions import (
    ConcurrentModification,
    DateConflict,
    EmployeeNotFound,
    PersistenceError,
    ValidationError,
)
from src.hr_services.hr_services.database.mysql_base import translate_mysql_errors
from src.hr_services.hr_services.promotions.mysql_chain_store import MySQLChainStore


class ScriptedCursor:
    def __init__(self, results):
        self._results = list(results)
        self._current = None
        self.executed: list[tuple[str, tuple]] = []
        self.lastrowid = 0
        self.closed = False

    def execute(self, sql, params=()):
        self.executed.append((" ".join(sql.split()), params))
        if sql.lstrip().upper().startswith("INSERT"):
            self.lastrowid += 1
            self._current = None
        else:
            self._current = self._results.pop(0) if self._results else []

    def fetchone(self):
        rows = self._current or []
        return rows[0] if rows else None

    def fetchall(self):
        return list(self._current or [])

    def close(self):
        self.closed = True


class ScriptedConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class ScriptedFactory:
    def __init__(self, *results):
        self.cursor = ScriptedCursor(results)
        self.connection = ScriptedConnection(self.cursor)

    def connect(self, *, with_database=True):
        return self.connection


EMPLOYEE_ROW = {
    "employee_id": 100,
    "employee_name": "Asha",
    "initial_designation": "PE",
    "designation": "SPE",
    "status": "ACTIVE",
    "join_date": date(2021, 3, 1),
}
EVENT_ROW = {
    "id": 7,
    "employee_id": 100,
    "from_designation": "PE",
    "to_designation": "SPE",
    "effective_date": date(2023, 1, 1),
    "level": 2,
    "remarks": None,
}


def test_transaction_locks_employee_row_and_commits():
    factory = ScriptedFactory([EMPLOYEE_ROW], [EVENT_ROW])
    store = MySQLChainStore(factory)

    with store.transaction(100) as tx:
        assert tx.get_employee().status == EmployeeStatus.ACTIVE
        assert tx.get_tail().event_id == 7
        new_id = tx.insert_event(
            from_designation="SPE", to_designation="PM", effective_date=date(2024, 1, 1), level=3, remarks=None
        )
        tx.set_current_designation("PM")

    assert new_id == 1
    assert tx.get_employee().current_designation == "PM"
    lock_sql, lock_params = factory.cursor.executed[0]
    assert lock_sql.endswith("FOR UPDATE")
    assert lock_params == (100,)
    assert factory.cursor.executed[-1] == ("UPDATE hr_employees SET designation=%s WHERE employee_id=%s", ("PM", 100))
    assert factory.connection.committed and not factory.connection.rolled_back
    assert factory.connection.closed


def test_transaction_for_missing_employee_rolls_back():
    factory = ScriptedFactory([])
    store = MySQLChainStore(factory)

    with pytest.raises(EmployeeNotFound):
        with store.transaction(5):
            pass

    assert factory.connection.rolled_back and not factory.connection.committed


def test_error_inside_transaction_rolls_back():
    factory = ScriptedFactory([EMPLOYEE_ROW])
    store = MySQLChainStore(factory)

    with pytest.raises(RuntimeError):
        with store.transaction(100) as tx:
            tx.relink(event_id=7, from_designation="KA")
            raise RuntimeError("boom")

    assert factory.connection.rolled_back and not factory.connection.committed


def test_find_missing_employees():
    factory = ScriptedFactory([{"employee_id": 1}, {"employee_id": 3}])
    assert MySQLChainStore(factory).find_missing_employees([3, 1, 2]) == {2}
    assert factory.cursor.executed[0][1] == (1, 2, 3)


def test_list_events_maps_rows():
    factory = ScriptedFactory([EVENT_ROW])
    (event,) = MySQLChainStore(factory).list_events(100)
    assert (event.event_id, event.from_designation, event.to_designation, event.level) == (7, "PE", "SPE", 2)


def test_lock_contention_becomes_concurrent_modification():
    with pytest.raises(ConcurrentModification) as exc:
        with translate_mysql_errors():
            raise mysql.connector.DatabaseError(msg="Lock wait timeout exceeded", errno=errorcode.ER_LOCK_WAIT_TIMEOUT)
    assert exc.value.retryable is True

    with pytest.raises(ConcurrentModification):
        with translate_mysql_errors():
            raise mysql.connector.DatabaseError(msg="Deadlock found", errno=errorcode.ER_LOCK_DEADLOCK)


def test_duplicate_key_becomes_date_conflict():
    with pytest.raises(DateConflict):
        with translate_mysql_errors():
            raise mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)


def test_rejected_value_becomes_validation_error():
    with pytest.raises(ValidationError) as exc:
        with translate_mysql_errors():
            raise mysql.connector.DataError(msg="Data too long for column 'remarks'", errno=errorcode.ER_DATA_TOO_LONG)
    assert "Data too long" in str(exc.value)


def test_other_mysql_errors_become_persistence_error():
    with pytest.raises(PersistenceError) as exc:
        with translate_mysql_errors():
            raise mysql.connector.ProgrammingError(msg="syntax", errno=errorcode.ER_PARSE_ERROR)
    assert isinstance(exc.value.__cause__, mysql.connector.ProgrammingError)
    assert exc.value.retryable is False


def test_store_failure_inside_transaction_rolls_back_as_domain_error():
    factory = ScriptedFactory([EMPLOYEE_ROW])
    store = MySQLChainStore(factory)

    with pytest.raises(PersistenceError):
        with store.transaction(100):
            raise mysql.connector.OperationalError(msg="server has gone away", errno=errorcode.CR_SERVER_GONE_ERROR)

    assert factory.connection.rolled_back and not factory.connection.committed
