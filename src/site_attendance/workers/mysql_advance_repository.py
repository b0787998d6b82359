from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Advance
from .repository import AdvanceRepository


class MySQLAdvanceRepository(AdvanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        worker_id: int,
        project_id: int,
        amount: float,
        advance_date: date,
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO advances(worker_id, project_id, amount, advance_date, notes)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(worker_id), int(project_id), amount, advance_date, notes),
            )
            return int(cur.lastrowid)

    def list_for_worker(self, worker_id: int) -> Sequence[Advance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT advance_id, worker_id, project_id, amount, advance_date, notes
                FROM advances
                WHERE worker_id=%s
                ORDER BY advance_date DESC, advance_id DESC
                """,
                (int(worker_id),),
            )
            return [
                Advance(
                    advance_id=int(r["advance_id"]),
                    worker_id=int(r["worker_id"]),
                    project_id=int(r["project_id"]),
                    amount=float(r["amount"]),
                    advance_date=r["advance_date"],
                    notes=r.get("notes"),
                )
                for r in fetchall(cur)
            ]
