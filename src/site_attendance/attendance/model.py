from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import MarkMode


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one worker's attendance on one project on one calendar day.

    There is at most one record per (worker_id, project_id, work_date).
    ``work_date`` is the project-local day, not a timestamp.
    """

    attendance_id: int
    worker_id: int
    project_id: int
    work_date: date
    present: bool
    hours_worked: float = 0.0
    overtime_hours: float = 0.0
    check_in_photo_url: Optional[str] = None
    check_in_confidence: Optional[float] = None
    check_out_photo_url: Optional[str] = None
    check_out_confidence: Optional[float] = None

    def photo_url(self, slot: MarkMode) -> Optional[str]:
        if slot == MarkMode.CHECK_OUT:
            return self.check_out_photo_url
        return self.check_in_photo_url

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "worker_id": self.worker_id,
            "project_id": self.project_id,
            "date": self.work_date.isoformat(),
            "present": self.present,
            "hours_worked": self.hours_worked,
            "overtime_hours": self.overtime_hours,
            "check_in_photo_url": self.check_in_photo_url,
            "check_in_confidence": self.check_in_confidence,
            "check_out_photo_url": self.check_out_photo_url,
            "check_out_confidence": self.check_out_confidence,
        }


@dataclass(frozen=True)
class DailyAttendanceEntry:
    """One line of an admin's bulk marking sheet for a project day."""

    worker_id: int
    present: bool
    hours_worked: float = 0.0
    overtime_hours: float = 0.0
