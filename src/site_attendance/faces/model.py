from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FaceMatch:
    """Best match returned by a face search, at or above the match threshold."""

    face_ref: str
    subject_id: Optional[str]
    confidence: float


@dataclass(frozen=True)
class EnrolledFace:
    face_ref: str
    subject_id: Optional[str] = None
    image_id: Optional[str] = None
    indexed_confidence: Optional[float] = None
