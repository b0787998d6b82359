from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import error_response, ok, payload
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ValidationError


def _optional_date(value):
    return parse_iso_date(value) if value else None


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    def attendance_history():
        try:
            records = service.worker_history(
                worker_id=request.args.get("workerId"),
                project_id=request.args.get("projectId"),
                start_date=_optional_date(request.args.get("start")),
                end_date=_optional_date(request.args.get("end")),
                limit=request.args.get("limit", DEFAULT_HISTORY_LIMIT, type=int),
            )
        except Exception as e:
            return error_response(e, action="loading attendance history")
        return ok({"attendance": [r.to_dict() for r in records]})

    @app.route("/api/projects/<int:project_id>/attendance", methods=["GET"], endpoint="project_attendance")
    def project_attendance(project_id: int):
        try:
            records = service.project_day(project_id=project_id, work_date=_optional_date(request.args.get("date")))
        except Exception as e:
            return error_response(e, action="loading project attendance")
        return ok({"project_id": project_id, "attendance": [r.to_dict() for r in records]})

    @app.route("/api/projects/<int:project_id>/attendance", methods=["POST"], endpoint="mark_project_attendance")
    def mark_project_attendance(project_id: int):
        """Admin marking sheet: ``{"date": "YYYY-MM-DD", "entries": [{worker_id, present, hours_worked, overtime_hours}]}``."""
        data = payload()
        try:
            entries = data.get("entries")
            if not isinstance(entries, list):
                raise ValidationError("Entries must be a list")
            count = service.upsert_daily_attendance(
                project_id=project_id,
                work_date=parse_iso_date(data.get("date")),
                entries=entries,
            )
        except Exception as e:
            return error_response(e, action="saving project attendance")
        return ok({"project_id": project_id, "date": data.get("date"), "saved": count})
