from __future__ import annotations

import struct
import threading
import zlib
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from io import BytesIO
from typing import Optional

import pytest
from PIL import Image

from site_attendance.attendance.model import AttendanceRecord, DailyAttendanceEntry
from site_attendance.container import Container, build_services
from site_attendance.core.enums import CompensationMode, MarkMode
from site_attendance.core.exceptions import (
    DuplicateAssignmentError,
    DuplicateAttendanceError,
    NoFaceDetectedError,
    NotFoundError,
)
from site_attendance.faces.model import EnrolledFace, FaceMatch
from site_attendance.projects.model import Project
from site_attendance.workers.model import Advance, Assignment, Worker

DAY_1 = date(2026, 3, 1)
DAY_5 = date(2026, 3, 5)
DAY_6 = date(2026, 3, 6)

# Noon in Asia/Kolkata on day 5 / day 6.
NOON_DAY_5 = datetime(2026, 3, 5, 6, 30, tzinfo=timezone.utc)
NOON_DAY_6 = datetime(2026, 3, 6, 6, 30, tzinfo=timezone.utc)

SITE_PROJECT_ID = 1
OTHER_PROJECT_ID = 2
RAVI_ID = 7
RAVI_FACE = "face-ravi"


def make_photo(color=(180, 150, 120), fmt: str = "JPEG") -> bytes:
    buf = BytesIO()
    Image.new("RGB", (32, 32), color).save(buf, format=fmt)
    return buf.getvalue()


def make_png_header(width: int, height: int) -> bytes:
    """A tiny PNG whose header claims ``width`` x ``height`` RGB pixels."""

    def chunk(kind: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", zlib.compress(b"\x00")) + chunk(b"IEND", b"")


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryProjects:
    def __init__(self, projects=()):
        self._projects = {p.project_id: p for p in projects}

    def get_by_id(self, project_id: int) -> Optional[Project]:
        return self._projects.get(project_id)


class InMemoryAssignments:
    def __init__(self):
        self._items: dict[int, Assignment] = {}
        self._id = 0

    def add(self, *, worker_id, project_id, start_date, end_date=None) -> int:
        self._id += 1
        self._items[self._id] = Assignment(self._id, worker_id, project_id, start_date, end_date)
        return self._id

    def all_for_worker(self, worker_id: int) -> list[Assignment]:
        return [a for a in self._items.values() if a.worker_id == worker_id]

    def delete_for_worker(self, worker_id: int) -> None:
        for a in self.all_for_worker(worker_id):
            del self._items[a.assignment_id]

    def list_for_worker_and_project(self, *, worker_id, project_id):
        return [a for a in self.all_for_worker(worker_id) if a.project_id == project_id]

    def get_open(self, *, worker_id, project_id):
        for a in self.list_for_worker_and_project(worker_id=worker_id, project_id=project_id):
            if a.is_open:
                return a
        return None

    def create(self, *, worker_id, project_id, start_date) -> int:
        if self.get_open(worker_id=worker_id, project_id=project_id):
            raise DuplicateAssignmentError("Worker already has an open assignment to this project")
        return self.add(worker_id=worker_id, project_id=project_id, start_date=start_date)

    def close(self, *, assignment_id, end_date) -> bool:
        a = self._items.get(assignment_id)
        if not a or not a.is_open:
            return False
        self._items[assignment_id] = replace(a, end_date=end_date)
        return True

    def close_all_open(self, *, worker_id, end_date) -> int:
        closed = 0
        for a in self.all_for_worker(worker_id):
            if a.is_open:
                self._items[a.assignment_id] = replace(a, end_date=end_date)
                closed += 1
        return closed

    def transfer(self, *, worker_id, from_project_id, to_project_id, on_date) -> int:
        current = self.get_open(worker_id=worker_id, project_id=from_project_id)
        if not current:
            raise NotFoundError("Worker has no open assignment to the source project")
        self.close(assignment_id=current.assignment_id, end_date=on_date)
        return self.create(worker_id=worker_id, project_id=to_project_id, start_date=on_date)


class InMemoryAdvances:
    def __init__(self):
        self._items: dict[int, Advance] = {}
        self._id = 0

    def create(self, *, worker_id, project_id, amount, advance_date, notes=None) -> int:
        self._id += 1
        self._items[self._id] = Advance(self._id, worker_id, project_id, amount, advance_date, notes)
        return self._id

    def list_for_worker(self, worker_id: int):
        return [a for a in self._items.values() if a.worker_id == worker_id]

    def delete_for_worker(self, worker_id: int) -> None:
        for a in self.list_for_worker(worker_id):
            del self._items[a.advance_id]


class InMemoryAttendance:
    """Ledger fake that enforces the (worker, project, day) unique key under a lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: dict[int, AttendanceRecord] = {}
        self._by_key: dict[tuple[int, int, date], int] = {}
        self._id = 0
        self.writes = 0

    def add(self, **fields) -> int:
        with self._lock:
            self._id += 1
            rec = AttendanceRecord(attendance_id=self._id, **fields)
            self._items[self._id] = rec
            self._by_key[(rec.worker_id, rec.project_id, rec.work_date)] = self._id
            return self._id

    def all(self) -> list[AttendanceRecord]:
        return list(self._items.values())

    def delete_for_worker(self, worker_id: int) -> None:
        with self._lock:
            for rec in [r for r in self._items.values() if r.worker_id == worker_id]:
                del self._items[rec.attendance_id]
                del self._by_key[(rec.worker_id, rec.project_id, rec.work_date)]

    def get_by_id(self, attendance_id):
        return self._items.get(attendance_id)

    def get_for_day(self, *, worker_id, project_id, work_date):
        rid = self._by_key.get((worker_id, project_id, work_date))
        return self._items.get(rid) if rid else None

    def create_present(self, *, worker_id, project_id, work_date, hours_worked, photo_url, confidence, slot=MarkMode.CHECK_IN):
        with self._lock:
            if (worker_id, project_id, work_date) in self._by_key:
                raise DuplicateAttendanceError("Attendance already recorded for this worker and day")
            self._id += 1
            photo = {"check_in_photo_url": photo_url, "check_in_confidence": confidence}
            if slot == MarkMode.CHECK_OUT:
                photo = {"check_out_photo_url": photo_url, "check_out_confidence": confidence}
            self._items[self._id] = AttendanceRecord(
                attendance_id=self._id,
                worker_id=worker_id,
                project_id=project_id,
                work_date=work_date,
                present=True,
                hours_worked=hours_worked,
                **photo,
            )
            self._by_key[(worker_id, project_id, work_date)] = self._id
            self.writes += 1
            return self._id

    def mark_present(self, *, attendance_id, hours_worked, photo_url, confidence, slot=MarkMode.CHECK_IN):
        with self._lock:
            rec = self._items[attendance_id]
            if rec.present:
                return False
            if slot == MarkMode.CHECK_OUT:
                rec = replace(rec, check_out_photo_url=photo_url, check_out_confidence=confidence)
            else:
                rec = replace(rec, check_in_photo_url=photo_url, check_in_confidence=confidence)
            self._items[attendance_id] = replace(rec, present=True, hours_worked=hours_worked)
            self.writes += 1
            return True

    def fill_photo_slot(self, *, attendance_id, photo_url, confidence, slot):
        with self._lock:
            rec = self._items[attendance_id]
            if rec.photo_url(slot) is not None:
                return False
            if slot == MarkMode.CHECK_OUT:
                rec = replace(rec, check_out_photo_url=photo_url, check_out_confidence=confidence)
            else:
                rec = replace(rec, check_in_photo_url=photo_url, check_in_confidence=confidence)
            self._items[attendance_id] = rec
            self.writes += 1
            return True

    def upsert_daily(self, *, project_id, work_date, entries: list[DailyAttendanceEntry]) -> int:
        for e in entries:
            existing = self.get_for_day(worker_id=e.worker_id, project_id=project_id, work_date=work_date)
            if existing:
                self._items[existing.attendance_id] = replace(
                    existing, present=e.present, hours_worked=e.hours_worked, overtime_hours=e.overtime_hours
                )
            else:
                self.add(
                    worker_id=e.worker_id,
                    project_id=project_id,
                    work_date=work_date,
                    present=e.present,
                    hours_worked=e.hours_worked,
                    overtime_hours=e.overtime_hours,
                )
            self.writes += 1
        return len(entries)

    def list_for_worker(self, *, worker_id, project_id, start_date=None, end_date=None, limit=60):
        items = [
            r
            for r in self._items.values()
            if r.worker_id == worker_id
            and r.project_id == project_id
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]

    def list_for_project_day(self, *, project_id, work_date):
        return [r for r in self._items.values() if r.project_id == project_id and r.work_date == work_date]


class InMemoryWorkers:
    def __init__(self, *, assignments, cascade=()):
        self._items: dict[int, Worker] = {}
        self._assignments = assignments
        self._id = 100
        self._cascade = list(cascade)
        self.fail_delete: Optional[Exception] = None

    def add(self, worker: Worker) -> Worker:
        self._items[worker.worker_id] = worker
        return worker

    def get_by_id(self, worker_id):
        return self._items.get(worker_id)

    def get_by_face_ref(self, face_ref):
        for w in self._items.values():
            if w.face_ref == face_ref:
                return w
        return None

    def list_with_face_refs(self):
        return [w for w in self._items.values() if w.face_ref]

    def create_worker(self, *, full_name, compensation_mode, rate, phone_number=None) -> int:
        self._id += 1
        self._items[self._id] = Worker(self._id, full_name, compensation_mode, rate, phone_number)
        return self._id

    def update_details(self, *, worker_id, full_name, compensation_mode, rate, phone_number=None) -> bool:
        w = self._items.get(worker_id)
        if not w:
            return False
        self._items[worker_id] = replace(
            w, full_name=full_name, compensation_mode=compensation_mode, rate=rate, phone_number=phone_number
        )
        return True

    def set_face(self, *, worker_id, face_ref, photo_url=None) -> bool:
        w = self._items.get(worker_id)
        if not w:
            return False
        self._items[worker_id] = replace(w, face_ref=face_ref, photo_url=photo_url or w.photo_url)
        return True

    def deactivate(self, worker_id, *, end_date) -> int:
        w = self._items.get(worker_id)
        if not w:
            raise NotFoundError(f"Worker {worker_id} does not exist")
        self._items[worker_id] = replace(w, is_active=False)
        return self._assignments.close_all_open(worker_id=worker_id, end_date=end_date)

    def delete_cascade(self, worker_id) -> bool:
        if self.fail_delete:
            raise self.fail_delete
        if worker_id not in self._items:
            return False
        for repo in self._cascade:
            repo.delete_for_worker(worker_id)
        del self._items[worker_id]
        return True


class FakeFaceDirectory:
    """Maps photo bytes to search results; ``faceless`` photos hold no face."""

    def __init__(self):
        self.faces: dict[str, Optional[str]] = {}
        self.matches: dict[bytes, FaceMatch] = {}
        self.faceless: set[bytes] = set()
        self.search_error: Optional[Exception] = None
        self.index_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None
        self.search_calls = 0
        self.deleted: list[str] = []
        self._id = 0

    def ensure_collection(self) -> None:
        return None

    def index(self, image, subject_id):
        if self.index_error:
            raise self.index_error
        if image in self.faceless:
            raise NoFaceDetectedError("No face detected in the image")
        self._id += 1
        ref = f"face-{self._id}"
        self.faces[ref] = subject_id
        return ref

    def search(self, image):
        self.search_calls += 1
        if self.search_error:
            raise self.search_error
        return self.matches.get(image)

    def delete(self, face_ref):
        if self.delete_error:
            raise self.delete_error
        self.faces.pop(face_ref, None)
        self.deleted.append(face_ref)

    def list_faces(self):
        return [EnrolledFace(face_ref=ref, subject_id=subject) for ref, subject in self.faces.items()]


class FakeStorage:
    def __init__(self):
        self._lock = threading.Lock()
        self.objects: dict[str, bytes] = {}
        self.error: Optional[Exception] = None
        self.barrier: Optional[threading.Barrier] = None

    def put(self, data, *, key, content_type):
        if self.barrier:
            self.barrier.wait(timeout=5)
        if self.error:
            raise self.error
        with self._lock:
            assert key not in self.objects
            self.objects[key] = data
        return f"memory://{key}"


@dataclass
class Site:
    projects: InMemoryProjects
    workers: InMemoryWorkers
    assignments: InMemoryAssignments
    advances: InMemoryAdvances
    attendance: InMemoryAttendance
    faces: FakeFaceDirectory
    storage: FakeStorage
    clock: Clock
    container: Container
    ravi_photo: bytes
    stranger_photo: bytes


@pytest.fixture
def site() -> Site:
    """Project 1 (Asia/Kolkata) with worker Ravi enrolled and assigned from day 1 to day 5."""
    projects = InMemoryProjects(
        [
            Project(SITE_PROJECT_ID, "PRJ-1", "Tower A", "Asia/Kolkata"),
            Project(OTHER_PROJECT_ID, "PRJ-2", "Bridge B", None),
        ]
    )
    assignments = InMemoryAssignments()
    advances = InMemoryAdvances()
    attendance = InMemoryAttendance()
    workers = InMemoryWorkers(assignments=assignments, cascade=[assignments, attendance, advances])
    faces = FakeFaceDirectory()
    storage = FakeStorage()
    clock = Clock(NOON_DAY_5)

    workers.add(Worker(RAVI_ID, "Ravi Kumar", CompensationMode.DAILY, 800.0, "9800000000", RAVI_FACE))
    assignments.add(worker_id=RAVI_ID, project_id=SITE_PROJECT_ID, start_date=DAY_1, end_date=DAY_5)

    ravi_photo = make_photo((190, 150, 120))
    stranger_photo = make_photo((20, 40, 60))
    faces.faces[RAVI_FACE] = str(RAVI_ID)
    faces.matches[ravi_photo] = FaceMatch(face_ref=RAVI_FACE, subject_id=str(RAVI_ID), confidence=99.2)

    container = build_services(
        projects=projects,
        workers=workers,
        assignments=assignments,
        advances=advances,
        attendance=attendance,
        faces=faces,
        storage=storage,
        default_timezone="Asia/Kolkata",
        full_day_hours=8.0,
        clock=clock,
    )
    return Site(
        projects=projects,
        workers=workers,
        assignments=assignments,
        advances=advances,
        attendance=attendance,
        faces=faces,
        storage=storage,
        clock=clock,
        container=container,
        ravi_photo=ravi_photo,
        stranger_photo=stranger_photo,
    )
