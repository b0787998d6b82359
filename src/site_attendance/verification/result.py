from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..core.enums import VerificationOutcome


@dataclass(frozen=True)
class VerificationResult:
    """Tagged result of one photo verification.

    ``outcome`` is the tag; the other fields are filled according to it:
    RECORDED and ALREADY_PRESENT carry ``record``; WORKER_NOT_FOUND carries the
    dangling ``face_ref``; PROVIDER_ERROR carries ``message``.
    """

    outcome: VerificationOutcome
    record: Optional[AttendanceRecord] = None
    worker_id: Optional[int] = None
    worker_name: Optional[str] = None
    confidence: Optional[float] = None
    face_ref: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def recorded(cls, record: AttendanceRecord, *, worker_name: str, confidence: float) -> "VerificationResult":
        return cls(
            VerificationOutcome.RECORDED,
            record=record,
            worker_id=record.worker_id,
            worker_name=worker_name,
            confidence=confidence,
        )

    @classmethod
    def already_present(cls, record: AttendanceRecord, *, worker_name: str, confidence: float) -> "VerificationResult":
        return cls(
            VerificationOutcome.ALREADY_PRESENT,
            record=record,
            worker_id=record.worker_id,
            worker_name=worker_name,
            confidence=confidence,
        )

    @classmethod
    def no_matching_face(cls) -> "VerificationResult":
        return cls(VerificationOutcome.NO_MATCHING_FACE)

    @classmethod
    def worker_not_found(cls, *, face_ref: str, confidence: float) -> "VerificationResult":
        return cls(VerificationOutcome.WORKER_NOT_FOUND, face_ref=face_ref, confidence=confidence)

    @classmethod
    def not_assigned(cls, *, worker_id: int, worker_name: str, confidence: float) -> "VerificationResult":
        return cls(
            VerificationOutcome.NOT_ASSIGNED_TO_PROJECT,
            worker_id=worker_id,
            worker_name=worker_name,
            confidence=confidence,
        )

    @classmethod
    def provider_error(cls, message: str) -> "VerificationResult":
        return cls(VerificationOutcome.PROVIDER_ERROR, message=message)

    @property
    def is_recorded(self) -> bool:
        return self.outcome == VerificationOutcome.RECORDED

    @property
    def retryable(self) -> bool:
        return self.outcome == VerificationOutcome.PROVIDER_ERROR

    def to_dict(self) -> dict:
        data: dict = {"outcome": self.outcome.value, "retryable": self.retryable}
        if self.record is not None:
            data["attendance"] = self.record.to_dict()
        if self.worker_id is not None:
            data["worker"] = {"id": self.worker_id, "name": self.worker_name}
        if self.confidence is not None:
            data["confidence"] = self.confidence
        if self.message:
            data["message"] = self.message
        return data
