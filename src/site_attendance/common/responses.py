from __future__ import annotations

import logging

from flask import jsonify, request

from ..core.exceptions import (
    DuplicateAssignmentError,
    DuplicateAttendanceError,
    NoFaceDetectedError,
    NotFoundError,
    ProviderError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (DuplicateAssignmentError, 409),
    (DuplicateAttendanceError, 409),
    (NoFaceDetectedError, 422),
    (ProviderError, 503),
)


def payload() -> dict:
    """JSON body, falling back to form fields for multipart requests."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def ok(data: dict | None = None, status: int = 200):
    body = {"success": True}
    body.update(data or {})
    return jsonify(body), status


def error_response(e: Exception, *, action: str):
    for exc_type, status in _STATUS:
        if isinstance(e, exc_type):
            body = {"success": False, "message": str(e)}
            if status == 503:
                body["retryable"] = True
            return jsonify(body), status

    logger.exception("Unexpected error while %s", action)
    return jsonify({"success": False, "message": "Internal server error"}), 500
