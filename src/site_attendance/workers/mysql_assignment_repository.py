from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.exceptions import DuplicateAssignmentError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Assignment
from .repository import AssignmentRepository


def _to_assignment(row: dict) -> Assignment:
    return Assignment(
        assignment_id=int(row["assignment_id"]),
        worker_id=int(row["worker_id"]),
        project_id=int(row["project_id"]),
        start_date=row["start_date"],
        end_date=row.get("end_date"),
    )


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_worker_and_project(self, *, worker_id: int, project_id: int) -> Sequence[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, worker_id, project_id, start_date, end_date
                FROM worker_assignments
                WHERE worker_id=%s AND project_id=%s
                ORDER BY start_date DESC
                """,
                (int(worker_id), int(project_id)),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def get_open(self, *, worker_id: int, project_id: int) -> Optional[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, worker_id, project_id, start_date, end_date
                FROM worker_assignments
                WHERE worker_id=%s AND project_id=%s AND end_date IS NULL
                """,
                (int(worker_id), int(project_id)),
            )
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def create(self, *, worker_id: int, project_id: int, start_date: date) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO worker_assignments(worker_id, project_id, start_date) VALUES(%s,%s,%s)",
                    (int(worker_id), int(project_id), start_date),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateAssignmentError("Worker already has an open assignment to this project") from e
            raise

    def close(self, *, assignment_id: int, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE worker_assignments SET end_date=%s WHERE assignment_id=%s AND end_date IS NULL",
                (end_date, int(assignment_id)),
            )
            return cur.rowcount > 0

    def transfer(self, *, worker_id: int, from_project_id: int, to_project_id: int, on_date: date) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE worker_assignments SET end_date=%s
                    WHERE worker_id=%s AND project_id=%s AND end_date IS NULL
                    """,
                    (on_date, int(worker_id), int(from_project_id)),
                )
                if cur.rowcount == 0:
                    raise NotFoundError("Worker has no open assignment on the source project")
                cur.execute(
                    "INSERT INTO worker_assignments(worker_id, project_id, start_date) VALUES(%s,%s,%s)",
                    (int(worker_id), int(to_project_id), on_date),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateAssignmentError("Worker already has an open assignment to the target project") from e
            raise
