from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import MarkMode
from .model import AttendanceRecord, DailyAttendanceEntry


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_day(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert a present record.

        Raises DuplicateAttendanceError when the (worker, project, day) key is
        already taken, including by a concurrent insert.
        """

        raise NotImplementedError

    def mark_present(
        self,
        *,
        attendance_id: int,
        hours_worked: float,
        photo_url: str,
        confidence: float,
        slot: MarkMode = MarkMode.CHECK_IN,
    ) -> bool:
        """Flip an absent record to present. False if it was already present."""

        raise NotImplementedError

    def fill_photo_slot(self, *, attendance_id: int, photo_url: str, confidence: float, slot: MarkMode) -> bool:
        """Set a photo slot only if it is empty. False if it was already filled."""

        raise NotImplementedError

    def upsert_daily(self, *, project_id: int, work_date: date, entries: Sequence[DailyAttendanceEntry]) -> int:
        raise NotImplementedError

    def list_for_worker(
        self,
        *,
        worker_id: int,
        project_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 60,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_project_day(self, *, project_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
