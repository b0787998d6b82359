from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from ..container import Container
from ..core.enums import VerificationOutcome
from ..core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

INVALID_INPUT = "invalid_input"

_STATUS = {
    VerificationOutcome.RECORDED: 201,
    VerificationOutcome.ALREADY_PRESENT: 200,
    VerificationOutcome.NO_MATCHING_FACE: 404,
    VerificationOutcome.WORKER_NOT_FOUND: 404,
    VerificationOutcome.NOT_ASSIGNED_TO_PROJECT: 404,
    VerificationOutcome.PROVIDER_ERROR: 503,
}

_MESSAGES = {
    VerificationOutcome.RECORDED: "Attendance marked",
    VerificationOutcome.ALREADY_PRESENT: "Attendance already marked for today",
    VerificationOutcome.NO_MATCHING_FACE: "No matching face found",
    VerificationOutcome.WORKER_NOT_FOUND: "Face matched but no worker record exists",
    VerificationOutcome.NOT_ASSIGNED_TO_PROJECT: "Worker is not assigned to this project",
    VerificationOutcome.PROVIDER_ERROR: "Face verification is unavailable, try again",
}


def _input_error(message: str, status: int = 400):
    return jsonify({"success": False, "outcome": INVALID_INPUT, "retryable": False, "message": message}), status


def register(app: Flask, container: Container) -> None:
    @app.errorhandler(RequestEntityTooLarge)
    def photo_too_large(e):
        return _input_error("Photo too large", 413)

    @app.route("/api/attendance/verify", methods=["POST"], endpoint="verify_attendance")
    def verify_attendance():
        """Multipart capture: ``photo`` file, ``projectId``, optional ``mode`` (in|out)."""
        upload = request.files.get("photo")
        photo = upload.read() if upload else None

        try:
            result = container.verification_service.verify_and_mark(
                photo=photo,
                project_id=request.form.get("projectId"),
                mode=request.form.get("mode"),
            )
        except (ValidationError, NotFoundError) as e:
            return _input_error(str(e))
        except Exception:
            logger.exception("Verification failed")
            return jsonify({"success": False, "outcome": "error", "message": "Internal server error"}), 500

        body = result.to_dict()
        body["success"] = result.outcome in (VerificationOutcome.RECORDED, VerificationOutcome.ALREADY_PRESENT)
        body.setdefault("message", _MESSAGES[result.outcome])
        return jsonify(body), _STATUS[result.outcome]
