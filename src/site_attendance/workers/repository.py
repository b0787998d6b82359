from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import CompensationMode
from .model import Advance, Assignment, Worker


class WorkerRepository(Protocol):
    """Repository interface for workers.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        raise NotImplementedError

    def get_by_face_ref(self, face_ref: str) -> Optional[Worker]:
        raise NotImplementedError

    def list_with_face_refs(self) -> Sequence[Worker]:
        raise NotImplementedError

    def create_worker(
        self,
        *,
        full_name: str,
        compensation_mode: CompensationMode,
        rate: float,
        phone_number: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_details(
        self,
        *,
        worker_id: int,
        full_name: str,
        compensation_mode: CompensationMode,
        rate: float,
        phone_number: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def set_face(self, *, worker_id: int, face_ref: Optional[str], photo_url: Optional[str] = None) -> bool:
        raise NotImplementedError

    def deactivate(self, worker_id: int, *, end_date: date) -> int:
        """Mark inactive and close every open assignment in one transaction.

        Returns the number of assignments closed; raises NotFoundError for an
        unknown worker.
        """

        raise NotImplementedError

    def delete_cascade(self, worker_id: int) -> bool:
        """Delete assignments, attendance, advances and the worker in one transaction."""

        raise NotImplementedError


class AssignmentRepository(Protocol):
    def list_for_worker_and_project(self, *, worker_id: int, project_id: int) -> Sequence[Assignment]:
        raise NotImplementedError

    def get_open(self, *, worker_id: int, project_id: int) -> Optional[Assignment]:
        raise NotImplementedError

    def create(self, *, worker_id: int, project_id: int, start_date: date) -> int:
        """Raises DuplicateAssignmentError when an open assignment already exists."""

        raise NotImplementedError

    def close(self, *, assignment_id: int, end_date: date) -> bool:
        raise NotImplementedError

    def transfer(self, *, worker_id: int, from_project_id: int, to_project_id: int, on_date: date) -> int:
        """Close the open assignment on one project and open one on another, atomically."""

        raise NotImplementedError


class AdvanceRepository(Protocol):
    def create(
        self,
        *,
        worker_id: int,
        project_id: int,
        amount: float,
        advance_date: date,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def list_for_worker(self, worker_id: int) -> Sequence[Advance]:
        raise NotImplementedError
