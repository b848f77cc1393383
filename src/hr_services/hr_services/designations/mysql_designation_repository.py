from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Designation
from .repository import DesignationRepository


def _from_row(r: dict) -> Designation:
    return Designation(code=r["designation"], name=r["designation_name"], rank=int(r["rank_order"]))


class MySQLDesignationRepository(DesignationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, code: str) -> Optional[Designation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT designation, designation_name, rank_order FROM hr_designations WHERE designation=%s",
                (code,),
            )
            r = fetchone(cur)
            return _from_row(r) if r else None

    def list_all(self) -> Sequence[Designation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT designation, designation_name, rank_order FROM hr_designations ORDER BY rank_order, designation")
            return [_from_row(r) for r in fetchall(cur)]
