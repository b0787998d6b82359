from __future__ import annotations

from enum import Enum


class CompensationMode(str, Enum):
    """How a worker is paid. A worker carries exactly one rate."""

    HOURLY = "hourly"
    DAILY = "daily"


class MarkMode(str, Enum):
    """Which photo slot a capture fills on the day's attendance record."""

    CHECK_IN = "in"
    CHECK_OUT = "out"


class VerificationOutcome(str, Enum):
    """Tag of a verification result."""

    RECORDED = "recorded"
    ALREADY_PRESENT = "already_present"
    NO_MATCHING_FACE = "no_matching_face"
    WORKER_NOT_FOUND = "worker_not_found"
    NOT_ASSIGNED_TO_PROJECT = "not_assigned_to_project"
    PROVIDER_ERROR = "provider_error"
