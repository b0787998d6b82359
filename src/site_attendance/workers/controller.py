from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.responses import error_response, ok, payload
from ..container import Container


def _optional_date(value):
    return parse_iso_date(value) if value else None


def _uploaded_photo() -> bytes | None:
    upload = request.files.get("photo")
    return upload.read() if upload else None


def register(app: Flask, container: Container) -> None:
    service = container.worker_service

    @app.route("/api/workers", methods=["POST"], endpoint="onboard_worker")
    def onboard_worker():
        data = payload()
        try:
            result = service.onboard_worker(
                full_name=data.get("name", ""),
                compensation_mode=data.get("compensationMode", ""),
                rate=data.get("rate"),
                project_id=data.get("projectId"),
                phone_number=data.get("phoneNumber"),
                photo=_uploaded_photo(),
            )
        except Exception as e:
            return error_response(e, action="onboarding worker")

        body = {"worker": result.worker.to_dict(), "assignment_id": result.assignment_id}
        if result.face_error:
            body["face_error"] = result.face_error
        return ok(body, 201)

    @app.route("/api/workers/<int:worker_id>", methods=["GET"], endpoint="get_worker")
    def get_worker(worker_id: int):
        try:
            worker = service.get_worker(worker_id)
        except Exception as e:
            return error_response(e, action="loading worker")
        return ok({"worker": worker.to_dict()})

    @app.route("/api/workers/<int:worker_id>", methods=["PATCH"], endpoint="update_worker")
    def update_worker(worker_id: int):
        data = payload()
        try:
            current = service.get_worker(worker_id)
            worker = service.update_worker(
                worker_id=worker_id,
                full_name=data.get("name", current.full_name),
                compensation_mode=data.get("compensationMode", current.compensation_mode.value),
                rate=data.get("rate", current.rate),
                phone_number=data.get("phoneNumber", current.phone_number),
            )
        except Exception as e:
            return error_response(e, action="updating worker")
        return ok({"worker": worker.to_dict()})

    @app.route("/api/workers/<int:worker_id>/face", methods=["POST"], endpoint="enroll_face")
    def enroll_face(worker_id: int):
        try:
            face_ref = service.enroll_face(worker_id=worker_id, photo=_uploaded_photo())
        except Exception as e:
            return error_response(e, action="enrolling face")
        return ok({"worker_id": worker_id, "face_ref": face_ref})

    @app.route("/api/workers/<int:worker_id>/face", methods=["DELETE"], endpoint="clear_face")
    def clear_face(worker_id: int):
        try:
            service.clear_face(worker_id)
        except Exception as e:
            return error_response(e, action="clearing face")
        return ok({"worker_id": worker_id})

    @app.route("/api/workers/<int:worker_id>", methods=["DELETE"], endpoint="delete_worker")
    def delete_worker(worker_id: int):
        try:
            service.delete_worker(worker_id)
        except Exception as e:
            return error_response(e, action="deleting worker")
        return ok({"worker_id": worker_id})

    @app.route("/api/workers/<int:worker_id>/deactivate", methods=["POST"], endpoint="deactivate_worker")
    def deactivate_worker(worker_id: int):
        try:
            closed = service.deactivate_worker(worker_id)
        except Exception as e:
            return error_response(e, action="deactivating worker")
        return ok({"worker_id": worker_id, "assignments_closed": closed})

    @app.route("/api/workers/<int:worker_id>/transfer", methods=["POST"], endpoint="transfer_worker")
    def transfer_worker(worker_id: int):
        data = payload()
        try:
            assignment_id = service.transfer_worker(
                worker_id=worker_id,
                from_project_id=data.get("fromProjectId"),
                to_project_id=data.get("toProjectId"),
                on_date=_optional_date(data.get("date")),
            )
        except Exception as e:
            return error_response(e, action="transferring worker")
        return ok({"worker_id": worker_id, "assignment_id": assignment_id}, 201)

    @app.route("/api/workers/<int:worker_id>/advances", methods=["POST"], endpoint="record_advance")
    def record_advance(worker_id: int):
        data = payload()
        try:
            advance_id = service.record_advance(
                worker_id=worker_id,
                project_id=data.get("projectId"),
                amount=data.get("amount"),
                notes=data.get("notes"),
                advance_date=_optional_date(data.get("date")),
            )
        except Exception as e:
            return error_response(e, action="recording advance")
        return ok({"advance_id": advance_id}, 201)

    @app.route("/api/projects/<int:project_id>/assignments", methods=["POST"], endpoint="assign_worker")
    def assign_worker(project_id: int):
        data = payload()
        try:
            assignment_id = service.assign_to_project(
                worker_id=data.get("workerId"),
                project_id=project_id,
                start_date=_optional_date(data.get("startDate")),
            )
        except Exception as e:
            return error_response(e, action="assigning worker")
        return ok({"assignment_id": assignment_id}, 201)

    @app.route(
        "/api/projects/<int:project_id>/assignments/<int:worker_id>",
        methods=["DELETE"],
        endpoint="end_assignment",
    )
    def end_assignment(project_id: int, worker_id: int):
        try:
            service.end_assignment(
                worker_id=worker_id,
                project_id=project_id,
                end_date=_optional_date(request.args.get("endDate")),
            )
        except Exception as e:
            return error_response(e, action="ending assignment")
        return ok({"worker_id": worker_id, "project_id": project_id})
