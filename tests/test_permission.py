"""
Tests: permission predicates.

Pure functions over (user, request); exercised against real rows so the
relationship-based checks (assignees, student prodi) are covered too.
"""

from surat.models import db
from surat.models.letter import DispositionAssignment
from surat.services import permission


def _assign(req, officer, dean, seq=1):
    db.session.add(DispositionAssignment(
        letter_request_id=req.id, assigned_to_user_id=officer.id, assigned_by_user_id=dean.id,
        instructions="x", order_sequence=seq,
    ))
    db.session.commit()


def test_admin_sees_everything(faculty, draft_request):
    admin = faculty["ADMIN"]
    assert permission.can_view_request(admin, draft_request)
    assert permission.can_view_documents(admin, draft_request)
    assert permission.can_view_dispositions(admin, draft_request)
    assert permission.can_view_tracking_logs(admin, draft_request)


def test_creator_and_handler_can_update_status(faculty, draft_request):
    assert permission.can_update_status(faculty["STAFF_PRODI"].id, draft_request)
    assert permission.can_update_status(faculty["KAPRODI"].id, draft_request)
    assert not permission.can_update_status(faculty["DEKAN"].id, draft_request)
    assert not permission.can_update_status(None, draft_request)


def test_assignee_sees_dispositions_but_not_documents(faculty, draft_request):
    _assign(draft_request, faculty["KABAG_TU"], faculty["DEKAN"])
    officer = faculty["KABAG_TU"]
    assert permission.is_assignee(officer.id, draft_request)
    assert permission.can_view_dispositions(officer, draft_request)
    assert permission.can_view_request(officer, draft_request)
    assert not permission.can_view_documents(officer, draft_request)


def test_faculty_roles_see_request_and_trail_only(faculty, draft_request):
    dean = faculty["DEKAN"]
    assert permission.can_view_request(dean, draft_request)
    assert permission.can_view_tracking_logs(dean, draft_request)
    assert not permission.can_view_documents(dean, draft_request)
    assert not permission.can_view_dispositions(dean, draft_request)


def test_program_roles_see_trail_of_their_program(make_user, draft_request):
    ti_staff = make_user("STAFF_PRODI", prodi="TI")
    si_staff = make_user("STAFF_PRODI", prodi="SI")
    assert permission.can_view_tracking_logs(ti_staff, draft_request)
    assert not permission.can_view_tracking_logs(si_staff, draft_request)
    assert not permission.can_view_request(ti_staff, draft_request)


def test_missing_user_sees_nothing(draft_request):
    assert not permission.can_view_request(None, draft_request)
    assert not permission.can_view_tracking_logs(None, draft_request)


def test_only_dean_signs_and_dispositions(faculty):
    assert permission.can_sign(faculty["DEKAN"])
    assert permission.can_create_disposition(faculty["DEKAN"])
    assert not permission.can_sign(faculty["WD1"])
    assert not permission.can_create_disposition(faculty["ADMIN"])
    assert not permission.can_sign(None)


def test_final_letter_upload_requires_current_handler(faculty, draft_request):
    assert permission.can_upload_final_letter(faculty["KAPRODI"].id, draft_request)
    assert not permission.can_upload_final_letter(faculty["STAFF_PRODI"].id, draft_request)
