from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.validators import require_id, require_non_empty, require_photo, require_positive
from ..core.enums import CompensationMode
from ..core.exceptions import NoFaceDetectedError, NotFoundError, ProviderError, ValidationError
from ..faces.directory import FaceDirectory
from ..projects.calendar import ProjectCalendar
from ..storage.base import PhotoStorage, reference_photo_key
from .model import Worker
from .repository import AdvanceRepository, AssignmentRepository, WorkerRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Onboarding:
    """Outcome of onboarding. ``face_error`` is set when a supplied photo could not be enrolled."""

    worker: Worker
    assignment_id: int
    face_ref: Optional[str] = None
    face_error: Optional[str] = None


def _parse_compensation(mode) -> CompensationMode:
    try:
        return CompensationMode(mode)
    except ValueError:
        allowed = ", ".join(m.value for m in CompensationMode)
        raise ValidationError(f"Compensation mode must be one of: {allowed}")


class WorkerService:
    """Use cases: worker onboarding, face enrollment, assignments and deletion."""

    def __init__(
        self,
        workers: WorkerRepository,
        assignments: AssignmentRepository,
        advances: AdvanceRepository,
        faces: FaceDirectory,
        storage: PhotoStorage,
        calendar: ProjectCalendar,
        *,
        max_photo_bytes: int | None = None,
    ):
        self._workers = workers
        self._assignments = assignments
        self._advances = advances
        self._faces = faces
        self._storage = storage
        self._calendar = calendar
        self._max_photo_bytes = max_photo_bytes

    def _validate_photo(self, photo: bytes | None) -> str:
        if self._max_photo_bytes:
            return require_photo(photo, max_bytes=self._max_photo_bytes)
        return require_photo(photo)

    def get_worker(self, worker_id: int) -> Worker:
        worker = self._workers.get_by_id(require_id(worker_id, "Worker"))
        if not worker:
            raise NotFoundError(f"Worker {worker_id} does not exist")
        return worker

    def _discard_face(self, face_ref: str, *, reason: str) -> bool:
        """Best-effort directory cleanup; failures are logged and left for reconciliation."""
        try:
            self._faces.delete(face_ref)
        except ProviderError as e:
            logger.warning("Face %s left in directory after %s: %s", face_ref, reason, e)
            return False
        logger.info("Face %s removed from directory (%s)", face_ref, reason)
        return True

    def onboard_worker(
        self,
        *,
        full_name: str,
        compensation_mode,
        rate,
        project_id: int,
        phone_number: Optional[str] = None,
        photo: bytes | None = None,
    ) -> Onboarding:
        full_name = require_non_empty(full_name, "Name")
        mode = _parse_compensation(compensation_mode)
        rate = require_positive(rate, "Rate")
        project = self._calendar.require_project(require_id(project_id, "Project"))
        if photo:
            self._validate_photo(photo)

        worker_id = self._workers.create_worker(
            full_name=full_name,
            compensation_mode=mode,
            rate=rate,
            phone_number=(phone_number or "").strip() or None,
        )
        assignment_id = self._assignments.create(
            worker_id=worker_id,
            project_id=project.project_id,
            start_date=self._calendar.today(project),
        )
        logger.info("Onboarded worker %s on project %s", worker_id, project.project_id)

        face_ref = None
        face_error = None
        if photo:
            try:
                face_ref = self.enroll_face(worker_id=worker_id, photo=photo)
            except (NoFaceDetectedError, ProviderError) as e:
                face_error = str(e)
                logger.warning("Worker %s onboarded without face enrollment: %s", worker_id, e)

        return Onboarding(
            worker=self.get_worker(worker_id),
            assignment_id=assignment_id,
            face_ref=face_ref,
            face_error=face_error,
        )

    def update_worker(
        self,
        *,
        worker_id: int,
        full_name: str,
        compensation_mode,
        rate,
        phone_number: Optional[str] = None,
    ) -> Worker:
        self.get_worker(worker_id)
        self._workers.update_details(
            worker_id=int(worker_id),
            full_name=require_non_empty(full_name, "Name"),
            compensation_mode=_parse_compensation(compensation_mode),
            rate=require_positive(rate, "Rate"),
            phone_number=(phone_number or "").strip() or None,
        )
        return self.get_worker(worker_id)

    def enroll_face(self, *, worker_id: int, photo: bytes) -> str:
        """Index ``photo`` for the worker and store the new face reference.

        On NoFaceDetectedError the worker keeps whatever reference it had.
        Re-enrollment removes the replaced face from the directory.
        """
        content_type = self._validate_photo(photo)
        worker = self.get_worker(worker_id)

        photo_url = self._storage.put(
            photo,
            key=reference_photo_key(worker_id=worker.worker_id, content_type=content_type),
            content_type=content_type,
        )
        face_ref = self._faces.index(photo, str(worker.worker_id))

        if not self._workers.set_face(worker_id=worker.worker_id, face_ref=face_ref, photo_url=photo_url):
            self._discard_face(face_ref, reason=f"worker {worker.worker_id} vanished during enrollment")
            raise NotFoundError(f"Worker {worker.worker_id} does not exist")

        logger.info("Enrolled face %s for worker %s", face_ref, worker.worker_id)
        if worker.face_ref and worker.face_ref != face_ref:
            self._discard_face(worker.face_ref, reason=f"re-enrollment of worker {worker.worker_id}")
        return face_ref

    def clear_face(self, worker_id: int) -> None:
        worker = self.get_worker(worker_id)
        if not worker.face_ref:
            return
        self._workers.set_face(worker_id=worker.worker_id, face_ref=None)
        self._discard_face(worker.face_ref, reason=f"face cleared for worker {worker.worker_id}")

    def assign_to_project(self, *, worker_id: int, project_id: int, start_date: date | None = None) -> int:
        worker = self.get_worker(worker_id)
        if not worker.is_active:
            raise ValidationError("Inactive workers cannot be assigned")
        project = self._calendar.require_project(require_id(project_id, "Project"))
        return self._assignments.create(
            worker_id=worker.worker_id,
            project_id=project.project_id,
            start_date=start_date or self._calendar.today(project),
        )

    def end_assignment(self, *, worker_id: int, project_id: int, end_date: date | None = None) -> None:
        project = self._calendar.require_project(require_id(project_id, "Project"))
        assignment = self._assignments.get_open(worker_id=require_id(worker_id, "Worker"), project_id=project.project_id)
        if not assignment:
            raise NotFoundError("Worker has no open assignment to this project")

        end_date = end_date or self._calendar.today(project)
        if end_date < assignment.start_date:
            raise ValidationError("End date cannot be before the assignment start date")
        self._assignments.close(assignment_id=assignment.assignment_id, end_date=end_date)

    def transfer_worker(
        self,
        *,
        worker_id: int,
        from_project_id: int,
        to_project_id: int,
        on_date: date | None = None,
    ) -> int:
        from_project_id = require_id(from_project_id, "Source project")
        to_project_id = require_id(to_project_id, "Target project")
        if from_project_id == to_project_id:
            raise ValidationError("Select a different project to transfer to")
        worker = self.get_worker(worker_id)
        self._calendar.require_project(from_project_id)
        target = self._calendar.require_project(to_project_id)

        assignment_id = self._assignments.transfer(
            worker_id=worker.worker_id,
            from_project_id=from_project_id,
            to_project_id=target.project_id,
            on_date=on_date or self._calendar.today(target),
        )
        logger.info("Transferred worker %s from project %s to %s", worker.worker_id, from_project_id, to_project_id)
        return assignment_id

    def deactivate_worker(self, worker_id: int) -> int:
        """Soft delete: mark inactive and close every open assignment. Returns assignments closed.

        Inactive workers are refused at verification, so the closing day no
        longer admits a check-in.
        """
        worker = self.get_worker(worker_id)
        closed = self._workers.deactivate(worker.worker_id, end_date=self._calendar.default_today())
        logger.info("Deactivated worker %s (%d assignments closed)", worker.worker_id, closed)
        return closed

    def record_advance(
        self,
        *,
        worker_id: int,
        project_id: int,
        amount,
        notes: Optional[str] = None,
        advance_date: date | None = None,
    ) -> int:
        worker = self.get_worker(worker_id)
        project = self._calendar.require_project(require_id(project_id, "Project"))
        return self._advances.create(
            worker_id=worker.worker_id,
            project_id=project.project_id,
            amount=require_positive(amount, "Amount"),
            advance_date=advance_date or self._calendar.today(project),
            notes=(notes or "").strip() or None,
        )

    def delete_worker(self, worker_id: int) -> None:
        """Hard delete with cascade. The face directory entry is removed last and
        its failure never undoes the database delete."""
        worker = self.get_worker(worker_id)
        if not self._workers.delete_cascade(worker.worker_id):
            raise NotFoundError(f"Worker {worker_id} does not exist")
        logger.info("Deleted worker %s with assignments, attendance and advances", worker.worker_id)

        if worker.face_ref:
            self._discard_face(worker.face_ref, reason=f"deletion of worker {worker.worker_id}")
