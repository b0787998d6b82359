from __future__ import annotations

from dataclasses import replace

import pytest

from conftest import DAY_1, DAY_5, OTHER_PROJECT_ID, RAVI_FACE, RAVI_ID, SITE_PROJECT_ID, make_photo
from site_attendance.core.enums import CompensationMode
from site_attendance.core.exceptions import (
    DuplicateAssignmentError,
    NoFaceDetectedError,
    NotFoundError,
    ProviderError,
    ValidationError,
)


def test_enroll_face_stores_new_ref_and_removes_replaced_one(site):
    service = site.container.worker_service
    photo = make_photo((10, 200, 30))

    face_ref = service.enroll_face(worker_id=RAVI_ID, photo=photo)

    worker = site.workers.get_by_id(RAVI_ID)
    assert worker.face_ref == face_ref != RAVI_FACE
    assert worker.photo_url.startswith("memory://workers/7/reference-")
    assert site.faces.faces[face_ref] == str(RAVI_ID)
    assert site.faces.deleted == [RAVI_FACE]


def test_enroll_without_face_leaves_existing_ref_untouched(site):
    photo = make_photo((255, 255, 255))
    site.faces.faceless.add(photo)

    with pytest.raises(NoFaceDetectedError):
        site.container.worker_service.enroll_face(worker_id=RAVI_ID, photo=photo)

    assert site.workers.get_by_id(RAVI_ID).face_ref == RAVI_FACE
    assert site.faces.deleted == []


def test_enroll_survives_failed_cleanup_of_old_face(site):
    site.faces.delete_error = ProviderError("delete timed out", provider="rekognition")

    face_ref = site.container.worker_service.enroll_face(worker_id=RAVI_ID, photo=make_photo((1, 2, 3)))

    assert site.workers.get_by_id(RAVI_ID).face_ref == face_ref


def test_enroll_rejects_unknown_worker(site):
    with pytest.raises(NotFoundError):
        site.container.worker_service.enroll_face(worker_id=999, photo=make_photo())


def test_clear_face_removes_ref_and_directory_entry(site):
    site.container.worker_service.clear_face(RAVI_ID)

    assert site.workers.get_by_id(RAVI_ID).face_ref is None
    assert site.faces.deleted == [RAVI_FACE]


def test_delete_worker_cascades(site):
    site.attendance.add(worker_id=RAVI_ID, project_id=SITE_PROJECT_ID, work_date=DAY_5, present=True)
    site.advances.create(worker_id=RAVI_ID, project_id=SITE_PROJECT_ID, amount=500.0, advance_date=DAY_1)

    site.container.worker_service.delete_worker(RAVI_ID)

    assert site.workers.get_by_id(RAVI_ID) is None
    assert site.assignments.all_for_worker(RAVI_ID) == []
    assert site.attendance.all() == []
    assert site.advances.list_for_worker(RAVI_ID) == []
    assert site.faces.deleted == [RAVI_FACE]
    with pytest.raises(NotFoundError):
        site.container.worker_service.get_worker(RAVI_ID)


def test_delete_worker_holds_when_face_delete_fails(site, caplog):
    site.attendance.add(worker_id=RAVI_ID, project_id=SITE_PROJECT_ID, work_date=DAY_5, present=True)
    site.faces.delete_error = ProviderError("unreachable", provider="rekognition")

    with caplog.at_level("WARNING"):
        site.container.worker_service.delete_worker(RAVI_ID)

    assert site.workers.get_by_id(RAVI_ID) is None
    assert site.attendance.all() == []
    assert RAVI_FACE in site.faces.faces
    assert RAVI_FACE in caplog.text


def test_delete_worker_keeps_face_when_database_delete_fails(site):
    site.workers.fail_delete = RuntimeError("connection lost")

    with pytest.raises(RuntimeError):
        site.container.worker_service.delete_worker(RAVI_ID)

    assert site.faces.deleted == []


def test_onboard_creates_worker_assignment_and_face(site):
    result = site.container.worker_service.onboard_worker(
        full_name="  Arjun Singh ",
        compensation_mode="hourly",
        rate="120",
        project_id=SITE_PROJECT_ID,
        photo=make_photo((50, 60, 70)),
    )

    assert result.worker.full_name == "Arjun Singh"
    assert result.worker.compensation_mode == CompensationMode.HOURLY
    assert result.worker.face_ref == result.face_ref
    assert result.face_error is None
    (assignment,) = site.assignments.all_for_worker(result.worker.worker_id)
    assert assignment.start_date == DAY_5 and assignment.is_open


def test_onboard_reports_face_error_but_keeps_worker(site):
    photo = make_photo((255, 255, 255))
    site.faces.faceless.add(photo)

    result = site.container.worker_service.onboard_worker(
        full_name="Meena", compensation_mode="daily", rate=700, project_id=SITE_PROJECT_ID, photo=photo
    )

    assert result.face_ref is None
    assert "No face" in result.face_error
    assert site.workers.get_by_id(result.worker.worker_id).face_ref is None


@pytest.mark.parametrize(
    "fields",
    [
        {"full_name": "", "compensation_mode": "daily", "rate": 100},
        {"full_name": "A", "compensation_mode": "weekly", "rate": 100},
        {"full_name": "A", "compensation_mode": "daily", "rate": 0},
    ],
)
def test_onboard_validates_input(site, fields):
    with pytest.raises(ValidationError):
        site.container.worker_service.onboard_worker(project_id=SITE_PROJECT_ID, **fields)


def test_update_worker_changes_compensation(site):
    worker = site.container.worker_service.update_worker(
        worker_id=RAVI_ID, full_name="Ravi K.", compensation_mode="hourly", rate=110
    )

    assert worker.full_name == "Ravi K."
    assert worker.compensation_mode == CompensationMode.HOURLY
    assert worker.rate == 110.0
    assert worker.face_ref == RAVI_FACE


def test_second_open_assignment_is_rejected(site):
    service = site.container.worker_service
    service.assign_to_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID)

    with pytest.raises(DuplicateAssignmentError):
        service.assign_to_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID)


def test_inactive_worker_cannot_be_assigned(site):
    site.workers.add(replace(site.workers.get_by_id(RAVI_ID), is_active=False))

    with pytest.raises(ValidationError):
        site.container.worker_service.assign_to_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID)


def test_end_assignment_closes_open_one(site):
    service = site.container.worker_service
    service.assign_to_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID, start_date=DAY_1)

    service.end_assignment(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID, end_date=DAY_5)

    (closed,) = site.assignments.list_for_worker_and_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID)
    assert closed.end_date == DAY_5


def test_end_assignment_before_start_is_rejected(site):
    service = site.container.worker_service
    service.assign_to_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID, start_date=DAY_5)

    with pytest.raises(ValidationError):
        service.end_assignment(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID, end_date=DAY_1)


def test_transfer_moves_open_assignment(site):
    service = site.container.worker_service
    service.assign_to_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID, start_date=DAY_1)

    service.transfer_worker(worker_id=RAVI_ID, from_project_id=OTHER_PROJECT_ID, to_project_id=SITE_PROJECT_ID)

    assert site.assignments.get_open(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID) is None
    assert site.assignments.get_open(worker_id=RAVI_ID, project_id=SITE_PROJECT_ID).start_date == DAY_5


def test_transfer_to_same_project_is_rejected(site):
    with pytest.raises(ValidationError):
        site.container.worker_service.transfer_worker(
            worker_id=RAVI_ID, from_project_id=SITE_PROJECT_ID, to_project_id=SITE_PROJECT_ID
        )


def test_deactivate_closes_open_assignments(site):
    service = site.container.worker_service
    service.assign_to_project(worker_id=RAVI_ID, project_id=OTHER_PROJECT_ID, start_date=DAY_1)

    closed = service.deactivate_worker(RAVI_ID)

    assert closed == 1
    assert site.workers.get_by_id(RAVI_ID).is_active is False
    assert all(not a.is_open for a in site.assignments.all_for_worker(RAVI_ID))


def test_deactivate_unknown_worker_is_not_found(site):
    with pytest.raises(NotFoundError):
        site.container.worker_service.deactivate_worker(999)


def test_record_advance(site):
    advance_id = site.container.worker_service.record_advance(
        worker_id=RAVI_ID, project_id=SITE_PROJECT_ID, amount="1500", notes=" tools "
    )

    (advance,) = site.advances.list_for_worker(RAVI_ID)
    assert advance.advance_id == advance_id
    assert advance.amount == 1500.0
    assert advance.advance_date == DAY_5
    assert advance.notes == "tools"


def test_record_advance_rejects_negative_amount(site):
    with pytest.raises(ValidationError):
        site.container.worker_service.record_advance(worker_id=RAVI_ID, project_id=SITE_PROJECT_ID, amount=-5)
