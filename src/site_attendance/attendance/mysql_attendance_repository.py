from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import MarkMode
from ..core.exceptions import DuplicateAttendanceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, DailyAttendanceEntry
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, worker_id, project_id, work_date, present, hours_worked, overtime_hours,
    check_in_photo_url, check_in_confidence, check_out_photo_url, check_out_confidence
"""

# Column pairs per photo slot. Fixed identifiers, never user input.
_SLOT_COLUMNS = {
    MarkMode.CHECK_IN: ("check_in_photo_url", "check_in_confidence"),
    MarkMode.CHECK_OUT: ("check_out_photo_url", "check_out_confidence"),
}


def _opt_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        worker_id=int(r["worker_id"]),
        project_id=int(r["project_id"]),
        work_date=r["work_date"],
        present=bool(r["present"]),
        hours_worked=float(r.get("hours_worked") or 0),
        overtime_hours=float(r.get("overtime_hours") or 0),
        check_in_photo_url=r.get("check_in_photo_url"),
        check_in_confidence=_opt_float(r.get("check_in_confidence")),
        check_out_photo_url=r.get("check_out_photo_url"),
        check_out_confidence=_opt_float(r.get("check_out_confidence")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_day(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE worker_id=%s AND project_id=%s AND work_date=%s
                """,
                (int(worker_id), int(project_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create_present(
        self,
        *,
        worker_id: int,
        project_id: int,
        work_date: date,
        hours_worked: float,
        photo_url: str,
        confidence: float,
        slot: MarkMode = MarkMode.CHECK_IN,
    ) -> int:
        photo_col, confidence_col = _SLOT_COLUMNS[slot]
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    INSERT INTO attendance_records(
                        worker_id, project_id, work_date, present, hours_worked, {photo_col}, {confidence_col}
                    )
                    VALUES(%s,%s,%s,1,%s,%s,%s)
                    """,
                    (int(worker_id), int(project_id), work_date, hours_worked, photo_url, confidence),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateAttendanceError(
                    f"Attendance already recorded for worker {worker_id} on project {project_id} at {work_date}"
                ) from e
            raise

    def mark_present(
        self,
        *,
        attendance_id: int,
        hours_worked: float,
        photo_url: str,
        confidence: float,
        slot: MarkMode = MarkMode.CHECK_IN,
    ) -> bool:
        photo_col, confidence_col = _SLOT_COLUMNS[slot]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET present=1, hours_worked=%s, {photo_col}=%s, {confidence_col}=%s
                WHERE attendance_id=%s AND present=0
                """,
                (hours_worked, photo_url, confidence, int(attendance_id)),
            )
            return cur.rowcount > 0

    def fill_photo_slot(self, *, attendance_id: int, photo_url: str, confidence: float, slot: MarkMode) -> bool:
        photo_col, confidence_col = _SLOT_COLUMNS[slot]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {photo_col}=%s, {confidence_col}=%s
                WHERE attendance_id=%s AND {photo_col} IS NULL
                """,
                (photo_url, confidence, int(attendance_id)),
            )
            return cur.rowcount > 0

    def upsert_daily(self, *, project_id: int, work_date: date, entries: Sequence[DailyAttendanceEntry]) -> int:
        if not entries:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_records(worker_id, project_id, work_date, present, hours_worked, overtime_hours)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    present=VALUES(present),
                    hours_worked=VALUES(hours_worked),
                    overtime_hours=VALUES(overtime_hours)
                """,
                [
                    (
                        int(e.worker_id),
                        int(project_id),
                        work_date,
                        1 if e.present else 0,
                        e.hours_worked,
                        e.overtime_hours,
                    )
                    for e in entries
                ],
            )
            return len(entries)

    def list_for_worker(
        self,
        *,
        worker_id: int,
        project_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 60,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["worker_id=%s", "project_id=%s"]
        params: list[object] = [int(worker_id), int(project_id)]

        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)
        params.append(int(limit))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY work_date DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_project_day(self, *, project_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE project_id=%s AND work_date=%s
                ORDER BY worker_id ASC
                """,
                (int(project_id), work_date),
            )
            return [_to_record(r) for r in fetchall(cur)]
