from __future__ import annotations

from flask import Flask, request

from ..common.responses import error_response, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.face_admin_service

    @app.route("/api/admin/faces", methods=["GET"], endpoint="list_faces")
    def list_faces():
        try:
            entries = service.list_enrolled_faces()
        except Exception as e:
            return error_response(e, action="listing enrolled faces")
        return ok(
            {
                "faces": [entry.to_dict() for entry in entries],
                "orphans": sum(1 for entry in entries if entry.worker is None),
            }
        )

    @app.route("/api/admin/faces/purge-orphans", methods=["POST"], endpoint="purge_orphan_faces")
    def purge_orphan_faces():
        try:
            include_live = request.args.get("includeLiveSubjects", "").lower() in ("1", "true", "yes")
            purged = service.purge_orphan_faces(include_live_subjects=include_live)
        except Exception as e:
            return error_response(e, action="purging orphan faces")
        return ok({"purged": purged})
