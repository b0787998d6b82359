from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Mapping, Sequence

from ..common.validators import require_id, require_non_negative
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import NotFoundError, ValidationError
from ..projects.calendar import ProjectCalendar
from ..workers.repository import WorkerRepository
from .model import AttendanceRecord, DailyAttendanceEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


class AttendanceService:
    """Use cases: admin bulk marking and ledger listings."""

    def __init__(self, attendance: AttendanceRepository, workers: WorkerRepository, calendar: ProjectCalendar):
        self._attendance = attendance
        self._workers = workers
        self._calendar = calendar

    @staticmethod
    def _to_entry(raw: DailyAttendanceEntry | Mapping) -> DailyAttendanceEntry:
        if isinstance(raw, DailyAttendanceEntry):
            return raw
        present = _truthy(raw.get("present"))
        hours = require_non_negative(raw.get("hours_worked"), "Hours worked")
        overtime = require_non_negative(raw.get("overtime_hours", raw.get("overtime")), "Overtime")
        return DailyAttendanceEntry(
            worker_id=require_id(raw.get("worker_id"), "Worker"),
            present=present,
            hours_worked=hours if present else 0.0,
            overtime_hours=overtime if present else 0.0,
        )

    def upsert_daily_attendance(
        self,
        *,
        project_id: int,
        work_date: date,
        entries: Iterable[DailyAttendanceEntry | Mapping],
    ) -> int:
        """Write one project day's marking sheet.

        Upsert keyed by (worker, project, day): rows are never deleted, an
        absent worker is stored with present=False, and photo slots from
        verification are kept.
        """
        project = self._calendar.require_project(require_id(project_id, "Project"))
        parsed = [self._to_entry(e) for e in entries]
        if not parsed:
            raise ValidationError("At least one attendance entry is required")

        seen: set[int] = set()
        for e in parsed:
            if e.worker_id in seen:
                raise ValidationError(f"Worker {e.worker_id} appears more than once")
            seen.add(e.worker_id)
            if not self._workers.get_by_id(e.worker_id):
                raise NotFoundError(f"Worker {e.worker_id} does not exist")

        count = self._attendance.upsert_daily(project_id=project.project_id, work_date=work_date, entries=parsed)
        logger.info("Upserted %d attendance rows for project %s on %s", count, project.project_id, work_date)
        return count

    def worker_history(
        self,
        *,
        worker_id: int,
        project_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[AttendanceRecord]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("Start date must not be after end date")
        return self._attendance.list_for_worker(
            worker_id=require_id(worker_id, "Worker"),
            project_id=require_id(project_id, "Project"),
            start_date=start_date,
            end_date=end_date,
            limit=int(limit),
        )

    def project_day(self, *, project_id: int, work_date: date | None = None) -> Sequence[AttendanceRecord]:
        project = self._calendar.require_project(require_id(project_id, "Project"))
        return self._attendance.list_for_project_day(
            project_id=project.project_id,
            work_date=work_date or self._calendar.today(project),
        )
