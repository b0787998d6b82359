from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.validators import require_id, require_photo
from ..core.constants import DEFAULT_FULL_DAY_HOURS
from ..core.enums import MarkMode
from ..core.exceptions import DuplicateAttendanceError, ProviderError, ValidationError
from ..faces.directory import FaceDirectory
from ..faces.model import FaceMatch
from ..projects.calendar import ProjectCalendar
from ..projects.model import Project
from ..storage.base import PhotoStorage, attendance_photo_key
from ..workers.model import Worker
from ..workers.repository import AssignmentRepository, WorkerRepository
from .result import VerificationResult

logger = logging.getLogger(__name__)


def parse_mode(mode) -> MarkMode:
    if isinstance(mode, MarkMode):
        return mode
    try:
        return MarkMode((mode or MarkMode.CHECK_IN.value).strip().lower())
    except ValueError:
        raise ValidationError("Mode must be 'in' or 'out'")


class VerificationService:
    """Photo check-in: face match -> worker -> eligibility -> ledger write.

    Holds no state between calls. The only coordination between concurrent
    captures is the ledger's unique (worker, project, day) key: a request that
    loses the insert race re-reads the winner's record and reports it.
    """

    def __init__(
        self,
        faces: FaceDirectory,
        workers: WorkerRepository,
        assignments: AssignmentRepository,
        attendance: AttendanceRepository,
        storage: PhotoStorage,
        calendar: ProjectCalendar,
        *,
        full_day_hours: float = DEFAULT_FULL_DAY_HOURS,
        max_photo_bytes: int | None = None,
    ):
        self._faces = faces
        self._workers = workers
        self._assignments = assignments
        self._attendance = attendance
        self._storage = storage
        self._calendar = calendar
        self._full_day_hours = float(full_day_hours)
        self._max_photo_bytes = max_photo_bytes

    def verify_and_mark(self, *, photo: bytes | None, project_id, mode=MarkMode.CHECK_IN) -> VerificationResult:
        """Verify a capture for a project and mark the matched worker present.

        Input problems raise ValidationError/NotFoundError before any call
        leaves the process. Everything else comes back as a VerificationResult.
        """
        if self._max_photo_bytes:
            content_type = require_photo(photo, max_bytes=self._max_photo_bytes)
        else:
            content_type = require_photo(photo)
        slot = parse_mode(mode)
        project = self._calendar.require_project(require_id(project_id, "Project"))

        try:
            return self._verify(photo, content_type, project, slot, self._calendar.now())
        except ProviderError as e:
            logger.error("Verification on project %s failed at %s: %s", project.project_id, e.provider, e)
            return VerificationResult.provider_error(str(e))

    def _verify(
        self,
        photo: bytes,
        content_type: str,
        project: Project,
        slot: MarkMode,
        now: datetime,
    ) -> VerificationResult:
        match = self._faces.search(photo)
        if match is None:
            logger.info("No enrolled face matched capture on project %s", project.project_id)
            return VerificationResult.no_matching_face()

        worker = self._resolve_worker(match)
        if worker is None:
            logger.error(
                "Face %s (subject %r, similarity %.2f) matched but no worker owns it; "
                "face directory and worker records need reconciling",
                match.face_ref,
                match.subject_id,
                match.confidence,
            )
            return VerificationResult.worker_not_found(face_ref=match.face_ref, confidence=match.confidence)

        if not worker.is_active:
            logger.info("Worker %s is inactive; capture on project %s rejected", worker.worker_id, project.project_id)
            return VerificationResult.not_assigned(
                worker_id=worker.worker_id, worker_name=worker.full_name, confidence=match.confidence
            )

        today = self._calendar.today(project, now=now)
        assignments = self._assignments.list_for_worker_and_project(
            worker_id=worker.worker_id, project_id=project.project_id
        )
        if not any(a.is_valid_on(today) for a in assignments):
            logger.info("Worker %s is not assigned to project %s on %s", worker.worker_id, project.project_id, today)
            return VerificationResult.not_assigned(
                worker_id=worker.worker_id, worker_name=worker.full_name, confidence=match.confidence
            )

        existing = self._attendance.get_for_day(worker_id=worker.worker_id, project_id=project.project_id, work_date=today)
        if existing is not None and self._slot_taken(existing, slot):
            return VerificationResult.already_present(existing, worker_name=worker.full_name, confidence=match.confidence)

        photo_url = self._storage.put(
            photo,
            key=attendance_photo_key(
                project_id=project.project_id,
                worker_id=worker.worker_id,
                slot=slot.value,
                content_type=content_type,
                now=now,
            ),
            content_type=content_type,
        )

        if existing is None:
            return self._create(worker, project, today, slot, photo_url, match.confidence)
        return self._update(worker, existing, slot, photo_url, match.confidence)

    def _resolve_worker(self, match: FaceMatch) -> Optional[Worker]:
        # Faces are enrolled with the worker id as subject id; the stored
        # reference covers faces enrolled under another subject id.
        if match.subject_id and match.subject_id.isdigit():
            worker = self._workers.get_by_id(int(match.subject_id))
            if worker:
                return worker
        return self._workers.get_by_face_ref(match.face_ref)

    @staticmethod
    def _slot_taken(record: AttendanceRecord, slot: MarkMode) -> bool:
        if slot == MarkMode.CHECK_OUT:
            return record.check_out_photo_url is not None
        return record.present

    def _create(
        self,
        worker: Worker,
        project: Project,
        today: date,
        slot: MarkMode,
        photo_url: str,
        confidence: float,
    ) -> VerificationResult:
        try:
            attendance_id = self._attendance.create_present(
                worker_id=worker.worker_id,
                project_id=project.project_id,
                work_date=today,
                hours_worked=self._full_day_hours,
                photo_url=photo_url,
                confidence=confidence,
                slot=slot,
            )
        except DuplicateAttendanceError:
            existing = self._attendance.get_for_day(
                worker_id=worker.worker_id, project_id=project.project_id, work_date=today
            )
            if existing is None:
                raise
            logger.info("Concurrent capture already wrote attendance %s", existing.attendance_id)
            if self._slot_taken(existing, slot):
                return VerificationResult.already_present(existing, worker_name=worker.full_name, confidence=confidence)
            return self._update(worker, existing, slot, photo_url, confidence)

        record = self._attendance.get_by_id(attendance_id)
        logger.info(
            "Recorded attendance %s for worker %s on project %s (%s, %.2f)",
            attendance_id,
            worker.worker_id,
            project.project_id,
            today,
            confidence,
        )
        return VerificationResult.recorded(record, worker_name=worker.full_name, confidence=confidence)

    def _update(
        self,
        worker: Worker,
        existing: AttendanceRecord,
        slot: MarkMode,
        photo_url: str,
        confidence: float,
    ) -> VerificationResult:
        if existing.present:
            changed = self._attendance.fill_photo_slot(
                attendance_id=existing.attendance_id, photo_url=photo_url, confidence=confidence, slot=slot
            )
        else:
            changed = self._attendance.mark_present(
                attendance_id=existing.attendance_id,
                hours_worked=self._full_day_hours,
                photo_url=photo_url,
                confidence=confidence,
                slot=slot,
            )

        record = self._attendance.get_by_id(existing.attendance_id)
        if not changed:
            return VerificationResult.already_present(record, worker_name=worker.full_name, confidence=confidence)
        logger.info("Updated attendance %s for worker %s (%s)", existing.attendance_id, worker.worker_id, slot.value)
        return VerificationResult.recorded(record, worker_name=worker.full_name, confidence=confidence)
