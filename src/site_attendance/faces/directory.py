from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EnrolledFace, FaceMatch


class FaceDirectory(Protocol):
    """Capability interface of the face-recognition provider.

    Implementations raise ProviderError for anything the provider failed to
    answer (including timeouts), never a "no match".
    """

    def ensure_collection(self) -> None:
        raise NotImplementedError

    def index(self, image: bytes, subject_id: str) -> str:
        """Enroll the best face in ``image``; return its face reference.

        Raises NoFaceDetectedError when the image holds no face.
        """

        raise NotImplementedError

    def search(self, image: bytes) -> Optional[FaceMatch]:
        """Best match at or above the threshold, or None."""

        raise NotImplementedError

    def delete(self, face_ref: str) -> None:
        """Idempotent: deleting an absent reference succeeds."""

        raise NotImplementedError

    def list_faces(self) -> Sequence[EnrolledFace]:
        raise NotImplementedError
