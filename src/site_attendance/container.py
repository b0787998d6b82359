from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_utc
from .core.constants import DEFAULT_FULL_DAY_HOURS, DEFAULT_MAX_PHOTO_BYTES, DEFAULT_TIMEZONE
from .database.connection import DatabaseConnection
from .faces.directory import FaceDirectory
from .faces.rekognition_directory import RekognitionFaceDirectory, build_rekognition_client
from .faces.service import FaceAdminService
from .projects.calendar import ProjectCalendar
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .storage.base import PhotoStorage
from .storage.local_storage import LocalPhotoStorage
from .storage.s3_storage import S3PhotoStorage
from .verification.service import VerificationService
from .workers.mysql_advance_repository import MySQLAdvanceRepository
from .workers.mysql_assignment_repository import MySQLAssignmentRepository
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.repository import AdvanceRepository, AssignmentRepository, WorkerRepository
from .workers.service import WorkerService


@dataclass(frozen=True)
class Container:
    projects_repo: ProjectRepository
    workers_repo: WorkerRepository
    assignments_repo: AssignmentRepository
    advances_repo: AdvanceRepository
    attendance_repo: AttendanceRepository

    faces: FaceDirectory
    storage: PhotoStorage
    calendar: ProjectCalendar

    worker_service: WorkerService
    attendance_service: AttendanceService
    verification_service: VerificationService
    face_admin_service: FaceAdminService


def build_services(
    *,
    projects: ProjectRepository,
    workers: WorkerRepository,
    assignments: AssignmentRepository,
    advances: AdvanceRepository,
    attendance: AttendanceRepository,
    faces: FaceDirectory,
    storage: PhotoStorage,
    default_timezone: str = DEFAULT_TIMEZONE,
    full_day_hours: float = DEFAULT_FULL_DAY_HOURS,
    max_photo_bytes: int = DEFAULT_MAX_PHOTO_BYTES,
    clock: Callable[[], datetime] = now_utc,
) -> Container:
    """Wire services over whatever repositories and providers are given."""
    calendar = ProjectCalendar(projects, default_timezone=default_timezone, clock=clock)

    worker_service = WorkerService(
        workers,
        assignments,
        advances,
        faces,
        storage,
        calendar,
        max_photo_bytes=max_photo_bytes,
    )
    attendance_service = AttendanceService(attendance, workers, calendar)
    verification_service = VerificationService(
        faces,
        workers,
        assignments,
        attendance,
        storage,
        calendar,
        full_day_hours=full_day_hours,
        max_photo_bytes=max_photo_bytes,
    )
    face_admin_service = FaceAdminService(faces, workers)

    return Container(
        projects_repo=projects,
        workers_repo=workers,
        assignments_repo=assignments,
        advances_repo=advances,
        attendance_repo=attendance,
        faces=faces,
        storage=storage,
        calendar=calendar,
        worker_service=worker_service,
        attendance_service=attendance_service,
        verification_service=verification_service,
        face_admin_service=face_admin_service,
    )


def build_container(settings) -> Container:
    """Production wiring: MySQL repositories, Rekognition, S3 or local photos."""
    conn = DatabaseConnection.from_dict(getattr(settings, "DB_CONFIG"))

    region = getattr(settings, "AWS_REGION")
    faces = RekognitionFaceDirectory(
        build_rekognition_client(
            region=region,
            timeout_seconds=float(getattr(settings, "FACE_CALL_TIMEOUT_SECONDS", 10)),
        ),
        collection_id=getattr(settings, "FACE_COLLECTION_ID"),
        match_threshold=float(getattr(settings, "FACE_MATCH_THRESHOLD", 95)),
    )

    if getattr(settings, "USE_S3", False):
        storage: PhotoStorage = S3PhotoStorage.from_settings(
            bucket=getattr(settings, "S3_BUCKET"),
            region=getattr(settings, "S3_REGION", region),
        )
    else:
        storage = LocalPhotoStorage(getattr(settings, "UPLOAD_DIR", "./uploads"))

    return build_services(
        projects=MySQLProjectRepository(conn),
        workers=MySQLWorkerRepository(conn),
        assignments=MySQLAssignmentRepository(conn),
        advances=MySQLAdvanceRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        faces=faces,
        storage=storage,
        default_timezone=getattr(settings, "DEFAULT_TIMEZONE", DEFAULT_TIMEZONE),
        full_day_hours=float(getattr(settings, "FULL_DAY_HOURS", DEFAULT_FULL_DAY_HOURS)),
        max_photo_bytes=int(getattr(settings, "MAX_PHOTO_BYTES", DEFAULT_MAX_PHOTO_BYTES)),
    )
