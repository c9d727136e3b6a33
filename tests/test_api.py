"""
Tests: HTTP surface.

Walks the main line through the API (create → approve → forward →
disposition → process → sign → archive) and checks the error mapping.
"""

import pytest


def _h(user):
    return {"X-User-Id": str(user.id)}


def _create(client, faculty, student, **overrides):
    payload = {
        "student_id": student.id,
        "letter_type": "Surat Keterangan Aktif Kuliah",
        "purpose": "Beasiswa",
        "priority": "NORMAL",
    }
    payload.update(overrides)
    return client.post("/api/v1/letter-requests", json=payload, headers=_h(faculty["STAFF_PRODI"]))


def test_health(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"
    assert "X-Request-ID" in res.headers
    assert "X-Request-Duration-Ms" in res.headers


# ── Directory ────────────────────────────────────────────────────────────────


def test_create_and_list_users(client):
    res = client.post("/api/v1/users", json={
        "email": "wd1@univ.ac.id", "name": "Wakil Dekan 1", "role": "WD1",
    })
    assert res.status_code == 201
    user_id = res.get_json()["id"]

    res = client.get("/api/v1/users?role=WD1")
    assert [u["id"] for u in res.get_json()["items"]] == [user_id]

    assert client.get(f"/api/v1/users/{user_id}").status_code == 200
    assert client.get("/api/v1/users/999").status_code == 404


def test_user_errors(client):
    res = client.post("/api/v1/users", json={"email": "x@univ.ac.id", "name": "X"})
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    res = client.post("/api/v1/users", json={"email": "k@univ.ac.id", "name": "K", "role": "KAPRODI"})
    assert res.status_code == 422

    client.post("/api/v1/users", json={"email": "d@univ.ac.id", "name": "D", "role": "ADMIN"})
    res = client.post("/api/v1/users", json={"email": "d@univ.ac.id", "name": "D2", "role": "ADMIN"})
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"

    assert client.get("/api/v1/users?role=REKTOR").status_code == 400


def test_students_endpoints(client):
    res = client.post("/api/v1/students", json={"nim": "2024001", "name": "Budi", "prodi": "TI"})
    assert res.status_code == 201
    res = client.get("/api/v1/students?search=budi")
    assert res.get_json()["total"] == 1
    res = client.post("/api/v1/students", json={"nim": "2024001", "name": "Budi", "prodi": "TI"})
    assert res.status_code == 409


# ── Letter requests ──────────────────────────────────────────────────────────


def test_create_request_requires_acting_user(client, faculty, student):
    res = client.post("/api/v1/letter-requests", json={
        "student_id": student.id, "letter_type": "X", "purpose": "Y",
    })
    assert res.status_code == 422
    assert res.get_json()["code"] == "ERR_VALIDATION_RULE"


def test_create_request_missing_fields(client, faculty, student):
    res = client.post("/api/v1/letter-requests", json={"student_id": student.id}, headers=_h(faculty["STAFF_PRODI"]))
    assert res.status_code == 400


def test_create_request_unknown_student(client, faculty):
    res = client.post(
        "/api/v1/letter-requests",
        json={"student_id": 404, "letter_type": "X", "purpose": "Y"},
        headers=_h(faculty["STAFF_PRODI"]),
    )
    assert res.status_code == 404
    assert res.get_json()["error"] == "Student not found"


def test_full_workflow_over_http(client, faculty, student):
    res = _create(client, faculty, student, documents=[
        {"file_name": "ktm.pdf", "file_url": "https://files.univ.ac.id/ktm.pdf"},
    ])
    assert res.status_code == 201
    body = res.get_json()
    rid = body["id"]
    assert body["status"] == "DRAFT"
    assert body["current_handler_user_id"] == faculty["KAPRODI"].id

    res = client.post(f"/api/v1/letter-requests/{rid}/status",
                      json={"status": "APPROVED_KAPRODI"}, headers=_h(faculty["KAPRODI"]))
    assert res.status_code == 200
    res = client.post(f"/api/v1/letter-requests/{rid}/status",
                      json={"status": "FORWARDED_TO_DEKAN", "next_handler_user_id": faculty["DEKAN"].id},
                      headers=_h(faculty["KAPRODI"]))
    assert res.get_json()["current_handler_user_id"] == faculty["DEKAN"].id

    res = client.post(f"/api/v1/letter-requests/{rid}/dispositions", json={
        "instructions": "Proses",
        "assignments": [
            {"assigned_to_user_id": faculty["WD1"].id, "order_sequence": 1},
            {"assigned_to_user_id": faculty["KABAG_TU"].id, "order_sequence": 2},
        ],
    }, headers=_h(faculty["DEKAN"]))
    assert res.status_code == 201
    a1, a2 = [a["id"] for a in res.get_json()["items"]]

    res = client.get(f"/api/v1/letter-requests/{rid}/dispositions", headers=_h(faculty["WD1"]))
    assert res.get_json()["total"] == 2

    assert client.post(f"/api/v1/disposition-assignments/{a1}/process", json={"notes": "ok"},
                       headers=_h(faculty["WD1"])).status_code == 200
    res = client.post(f"/api/v1/disposition-assignments/{a2}/process", json={},
                      headers=_h(faculty["KABAG_TU"]))
    assert res.get_json()["is_completed"] is True

    res = client.get(f"/api/v1/letter-requests/{rid}", headers=_h(faculty["DEKAN"]))
    detail = res.get_json()
    assert detail["status"] == "TTD_READY"
    assert detail["current_handler"]["id"] == faculty["DEKAN"].id

    # No final letter uploaded on this path yet
    res = client.post(f"/api/v1/letter-requests/{rid}/sign", json={"signature_data": "sig"},
                      headers=_h(faculty["DEKAN"]))
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_CONFLICT_STATE"


def test_sign_and_archive_over_http(client, faculty, student):
    from surat.models import db
    from surat.models.letter import LetterRequest

    rid = _create(client, faculty, student).get_json()["id"]
    req = db.session.get(LetterRequest, rid)
    req.status = "DISPOSISI_TO_WD1"
    req.current_handler_user_id = faculty["WD1"].id
    db.session.commit()

    client.post(f"/api/v1/letter-requests/{rid}/status", json={"status": "PROCESSED_BY_WD1"},
                headers=_h(faculty["WD1"]))
    res = client.post(f"/api/v1/letter-requests/{rid}/final-letter",
                      json={"file_url": "https://files.univ.ac.id/final.pdf"}, headers=_h(faculty["WD1"]))
    assert res.get_json()["status"] == "TTD_READY"

    res = client.post(f"/api/v1/letter-requests/{rid}/sign", json={"signature_data": "sig"},
                      headers=_h(faculty["WD1"]))
    assert res.status_code == 403
    res = client.post(f"/api/v1/letter-requests/{rid}/sign", json={"signature_data": "sig"},
                      headers=_h(faculty["DEKAN"]))
    assert res.get_json()["status"] == "TTD_DONE"

    staff = _h(faculty["STAFF_FAKULTAS"])
    for target in ("RETURNED_TO_PRODI", "PRINTED", "DELIVERED", "ARCHIVED"):
        res = client.post(f"/api/v1/letter-requests/{rid}/status", json={"status": target}, headers=staff)
        assert res.status_code == 200

    res = client.get(f"/api/v1/letter-requests/{rid}/tracking-logs", headers=staff)
    actions = [l["action_type"] for l in res.get_json()["items"]]
    assert actions[-6:] == ["SIGNED", "FORWARDED", "RETURNED", "PRINTED", "DELIVERED", "ARCHIVED"]


def test_list_requests_with_filters(client, faculty, student):
    _create(client, faculty, student)
    _create(client, faculty, student, priority="URGENT")

    res = client.get("/api/v1/letter-requests?priority=URGENT", headers=_h(faculty["ADMIN"]))
    assert res.get_json()["total"] == 1
    res = client.get("/api/v1/letter-requests?student_nim=2024001", headers=_h(faculty["STAFF_PRODI"]))
    assert res.get_json()["total"] == 2
    res = client.get("/api/v1/letter-requests", headers=_h(faculty["DEKAN"]))
    assert res.get_json()["total"] == 0
    res = client.get("/api/v1/letter-requests?status=NOPE", headers=_h(faculty["ADMIN"]))
    assert res.status_code == 422


def test_documents_and_notes_over_http(client, faculty, student):
    rid = _create(client, faculty, student).get_json()["id"]

    res = client.post(f"/api/v1/letter-requests/{rid}/documents",
                      json={"file_name": "a.pdf", "file_url": "https://files.univ.ac.id/a.pdf"},
                      headers=_h(faculty["KAPRODI"]))
    assert res.status_code == 201
    res = client.get(f"/api/v1/letter-requests/{rid}/documents", headers=_h(faculty["STAFF_PRODI"]))
    assert res.get_json()["total"] == 1

    res = client.post(f"/api/v1/letter-requests/{rid}/tracking-logs",
                      json={"action_type": "NOTE_ADDED", "description": "Catatan"},
                      headers=_h(faculty["KAPRODI"]))
    assert res.status_code == 201
    res = client.post(f"/api/v1/letter-requests/{rid}/tracking-logs",
                      json={"action_type": "NOTE_ADDED", "description": "x", "new_status": "ARCHIVED"},
                      headers=_h(faculty["KAPRODI"]))
    assert res.status_code == 409


@pytest.mark.parametrize("path", ["/status", "/final-letter", "/sign"])
def test_unknown_request_is_404(client, faculty, path):
    payload = {"status": "APPROVED_KAPRODI", "file_url": "https://f/x.pdf", "signature_data": "sig"}
    res = client.post(f"/api/v1/letter-requests/4040{path}", json=payload, headers=_h(faculty["DEKAN"]))
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


def test_process_foreign_assignment_is_404(client, faculty):
    res = client.post("/api/v1/disposition-assignments/1/process", json={}, headers=_h(faculty["WD1"]))
    assert res.status_code == 404
    assert res.get_json()["error"] == "Assignment not found"


def test_missing_routing_target_is_500(client, make_user, make_student):
    staff = make_user("STAFF_PRODI", prodi="TI")
    make_user("KAPRODI", prodi="TI")
    wd1 = make_user("WD1")
    st = make_student()
    res = client.post("/api/v1/letter-requests", json={
        "student_id": st.id, "letter_type": "X", "purpose": "Y",
    }, headers=_h(staff))
    rid = res.get_json()["id"]

    from surat.models import db
    from surat.models.letter import LetterRequest
    req = db.session.get(LetterRequest, rid)
    req.status = "PROCESSED_BY_WD1"
    req.current_handler_user_id = wd1.id
    db.session.commit()

    res = client.post(f"/api/v1/letter-requests/{rid}/final-letter",
                      json={"file_url": "https://files.univ.ac.id/final.pdf"}, headers=_h(wd1))
    assert res.status_code == 500
    assert res.get_json()["code"] == "ERR_CONFIGURATION_MISSING"
    assert res.get_json()["error"] == "No DEKAN user found to assign as next handler"
