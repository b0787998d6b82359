from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import CompensationMode


@dataclass(frozen=True)
class Worker:
    """Domain entity: a site worker.

    ``face_ref`` is the opaque id issued by the face directory; ``None`` means
    the worker cannot be verified by photo yet.
    """

    worker_id: int
    full_name: str
    compensation_mode: CompensationMode
    rate: float
    phone_number: Optional[str] = None
    face_ref: Optional[str] = None
    photo_url: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.worker_id,
            "name": self.full_name,
            "compensation_mode": self.compensation_mode.value,
            "rate": self.rate,
            "phone_number": self.phone_number,
            "face_enrolled": self.face_ref is not None,
            "photo_url": self.photo_url,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Assignment:
    """Worker <-> project over [start_date, end_date]; end_date None means open."""

    assignment_id: int
    worker_id: int
    project_id: int
    start_date: date
    end_date: Optional[date] = None

    @property
    def is_open(self) -> bool:
        return self.end_date is None

    def is_valid_on(self, day: date) -> bool:
        if self.start_date > day:
            return False
        return self.end_date is None or self.end_date >= day


@dataclass(frozen=True)
class Advance:
    advance_id: int
    worker_id: int
    project_id: int
    amount: float
    advance_date: date
    notes: Optional[str] = None
