from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import CompensationMode
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Worker
from .repository import WorkerRepository

_WORKER_COLUMNS = "worker_id, full_name, compensation_mode, rate, phone_number, face_ref, photo_url, is_active"


def _to_worker(row: dict) -> Worker:
    return Worker(
        worker_id=int(row["worker_id"]),
        full_name=row["full_name"],
        compensation_mode=CompensationMode(row["compensation_mode"]),
        rate=float(row["rate"]),
        phone_number=row.get("phone_number"),
        face_ref=row.get("face_ref"),
        photo_url=row.get("photo_url"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_WORKER_COLUMNS} FROM workers WHERE worker_id=%s", (int(worker_id),))
            row = fetchone(cur)
            return _to_worker(row) if row else None

    def get_by_face_ref(self, face_ref: str) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_WORKER_COLUMNS} FROM workers WHERE face_ref=%s", (face_ref,))
            row = fetchone(cur)
            return _to_worker(row) if row else None

    def list_with_face_refs(self) -> Sequence[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_WORKER_COLUMNS} FROM workers WHERE face_ref IS NOT NULL ORDER BY worker_id")
            return [_to_worker(r) for r in fetchall(cur)]

    def create_worker(
        self,
        *,
        full_name: str,
        compensation_mode: CompensationMode,
        rate: float,
        phone_number: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workers(full_name, compensation_mode, rate, phone_number, is_active)
                VALUES(%s,%s,%s,%s,1)
                """,
                (full_name, compensation_mode.value, rate, phone_number),
            )
            return int(cur.lastrowid)

    def update_details(
        self,
        *,
        worker_id: int,
        full_name: str,
        compensation_mode: CompensationMode,
        rate: float,
        phone_number: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE workers
                SET full_name=%s, compensation_mode=%s, rate=%s, phone_number=%s
                WHERE worker_id=%s
                """,
                (full_name, compensation_mode.value, rate, phone_number, int(worker_id)),
            )
            return cur.rowcount > 0

    def set_face(self, *, worker_id: int, face_ref: Optional[str], photo_url: Optional[str] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE workers
                SET face_ref=%s, photo_url=COALESCE(%s, photo_url)
                WHERE worker_id=%s
                """,
                (face_ref, photo_url, int(worker_id)),
            )
            return cur.rowcount > 0

    def deactivate(self, worker_id: int, *, end_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE workers SET is_active=0 WHERE worker_id=%s", (int(worker_id),))
            if cur.rowcount == 0:
                cur.execute("SELECT 1 FROM workers WHERE worker_id=%s", (int(worker_id),))
                if not fetchone(cur):
                    raise NotFoundError(f"Worker {worker_id} does not exist")
            cur.execute(
                "UPDATE worker_assignments SET end_date=%s WHERE worker_id=%s AND end_date IS NULL",
                (end_date, int(worker_id)),
            )
            return int(cur.rowcount)

    def delete_cascade(self, worker_id: int) -> bool:
        worker_id = int(worker_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM worker_assignments WHERE worker_id=%s", (worker_id,))
            cur.execute("DELETE FROM attendance_records WHERE worker_id=%s", (worker_id,))
            cur.execute("DELETE FROM advances WHERE worker_id=%s", (worker_id,))
            cur.execute("DELETE FROM workers WHERE worker_id=%s", (worker_id,))
            return cur.rowcount > 0
