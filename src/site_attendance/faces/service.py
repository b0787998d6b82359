from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.exceptions import ProviderError
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .directory import FaceDirectory
from .model import EnrolledFace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaceOwnership:
    face: EnrolledFace
    worker: Optional[Worker]

    def to_dict(self) -> dict:
        return {
            "face_ref": self.face.face_ref,
            "subject_id": self.face.subject_id,
            "image_id": self.face.image_id,
            "worker": (
                {"id": self.worker.worker_id, "name": self.worker.full_name, "photo_url": self.worker.photo_url}
                if self.worker
                else None
            ),
        }


class FaceAdminService:
    """Reconciliation between the face directory and worker records."""

    def __init__(self, faces: FaceDirectory, workers: WorkerRepository):
        self._faces = faces
        self._workers = workers

    def list_enrolled_faces(self) -> Sequence[FaceOwnership]:
        owners = {w.face_ref: w for w in self._workers.list_with_face_refs()}
        return [FaceOwnership(face=f, worker=owners.get(f.face_ref)) for f in self._faces.list_faces()]

    def purge_orphan_faces(self, *, include_live_subjects: bool = False) -> list[str]:
        """Delete directory faces no worker references. Returns the purged refs.

        A face indexed under the id of an existing worker is skipped by default:
        enrollment indexes before it stores the reference, so such a face may be
        one still being enrolled. Pass ``include_live_subjects`` to also purge
        those, e.g. faces left behind when a re-enrollment could not delete them.
        """
        purged: list[str] = []
        for entry in self.list_enrolled_faces():
            if entry.worker is not None:
                continue
            if not include_live_subjects and self._subject_is_worker(entry.face):
                logger.info("Skipping face %s: subject %r is an existing worker", entry.face.face_ref, entry.face.subject_id)
                continue
            try:
                self._faces.delete(entry.face.face_ref)
            except ProviderError as e:
                logger.warning("Orphan face %s could not be purged: %s", entry.face.face_ref, e)
                continue
            logger.info("Purged orphan face %s (subject %r)", entry.face.face_ref, entry.face.subject_id)
            purged.append(entry.face.face_ref)
        return purged

    def _subject_is_worker(self, face: EnrolledFace) -> bool:
        subject = face.subject_id or ""
        return subject.isdigit() and self._workers.get_by_id(int(subject)) is not None
