import pytest
from faculty_appraisal.models import Appraisal, AppraisalStatus, EvaluatorRole

PERFORMANCE = {
    "research_band": "HIGH",
    "university_service_count": 5,
    "community_service_count": 1,
    "teaching_eval_avg": 92,
}
CAPABILITIES = {
    "selections": {
        "institutional_commitment": "HIGH",
        "collaboration_teamwork": "HIGH",
        "leading_change": "PARTIAL",
    },
}


def test_missing_identity_is_unauthenticated(client, active_cycle):
    response = client.get("/api/appraisals/current")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "AUTH_FAILED"


def test_unknown_user_is_unauthenticated(client, active_cycle):
    response = client.get("/api/appraisals/current", headers={"X-User-Id": "9999"})
    assert response.status_code == 401


def test_inactive_user_is_forbidden(client, db_session, people, active_cycle, auth_headers):
    people["instructor"].is_active = False
    db_session.commit()
    response = client.get("/api/appraisals/current", headers=auth_headers(people["instructor"]))
    assert response.status_code == 403


def test_current_appraisal_without_active_cycle(client, people, auth_headers):
    response = client.get("/api/appraisals/current", headers=auth_headers(people["instructor"]))
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "ACTIVE_CYCLE_REQUIRED"


def test_review_flow_over_http(client, people, active_cycle, auth_headers):
    instructor = auth_headers(people["instructor"])
    hod = auth_headers(people["hod"])

    current = client.get("/api/appraisals/current", headers=instructor)
    assert current.status_code == 200
    appraisal_id = current.json()["id"]
    assert current.json()["status"] == "new"

    reviews = client.get("/api/reviews", headers=hod)
    assert reviews.status_code == 200
    assert [item["appraisal"]["id"] for item in reviews.json()["items"]] == [appraisal_id]

    access = client.get(f"/api/reviews/{appraisal_id}/access", headers=hod)
    assert access.json() == {"authorized": True, "evaluator_role": "HOD"}

    early_send = client.post(f"/api/reviews/{appraisal_id}/send", headers=hod)
    assert early_send.status_code == 400
    assert early_send.json()["errors"][0]["code"] == "INCOMPLETE_EVALUATION"

    performance = client.put(f"/api/reviews/{appraisal_id}/performance", headers=hod, json=PERFORMANCE)
    assert performance.status_code == 200
    # 30 + 20 + 4 + 30
    assert performance.json()["performance_pts"] == 84

    capabilities = client.put(f"/api/reviews/{appraisal_id}/capabilities", headers=hod, json=CAPABILITIES)
    assert capabilities.status_code == 200
    assert capabilities.json()["capabilities_pts"] == 48

    sent = client.post(f"/api/reviews/{appraisal_id}/send", headers=hod)
    assert sent.status_code == 200
    assert sent.json()["appraisal"]["status"] == "sent"
    assert sent.json()["appraisal"]["total_score"] == 132

    approved = client.post("/api/appraisals/current/approve", headers=instructor, json={"appraisal_id": appraisal_id})
    assert approved.status_code == 200
    data = approved.json()["appraisal"]
    assert data["status"] == "complete"
    assert [s["note"] for s in data["signatures"]] == ["Approved"]

    again = client.post("/api/appraisals/current/approve", headers=instructor, json={"appraisal_id": appraisal_id})
    assert again.status_code == 409
    assert again.json()["errors"][0]["code"] == "NOT_ACTIONABLE"


def test_appeal_over_http(client, db_session, people, make_appraisal, auth_headers):
    appraisal = make_appraisal(people["instructor"], status=AppraisalStatus.SENT, evaluator_role=EvaluatorRole.HOD)
    appraisal_id = appraisal.id

    response = client.post(
        "/api/appraisals/current/appeal",
        headers=auth_headers(people["instructor"]),
        json={"message": "Community service count is missing two items"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["appraisal"]["status"] == "returned"
    assert body["appeal"]["message"] == "Community service count is missing two items"

    listed = client.get("/api/admin/appeals?open_only=true", headers=auth_headers(people["admin"]))
    assert [a["id"] for a in listed.json()] == [body["appeal"]["id"]]

    resolved = client.post(
        f"/api/admin/appeals/{body['appeal']['id']}/resolve",
        headers=auth_headers(people["admin"]),
        json={"resolution_note": "Counts corrected"},
    )
    assert resolved.status_code == 200
    assert resolved.json()["resolution_note"] == "Counts corrected"
    assert resolved.json()["is_resolved"] is True

    resent = client.post(f"/api/reviews/{appraisal_id}/send", headers=auth_headers(people["hod"]))
    assert resent.json()["appraisal"]["status"] == "sent"


def test_other_department_hod_is_forbidden(client, people, make_appraisal, auth_headers):
    appraisal = make_appraisal(people["instructor"])
    appraisal_id = appraisal.id
    headers = auth_headers(people["hod_physics"])

    access = client.get(f"/api/reviews/{appraisal_id}/access", headers=headers)
    assert access.json() == {"authorized": False, "evaluator_role": None}

    response = client.put(f"/api/reviews/{appraisal_id}/performance", headers=headers, json=PERFORMANCE)
    assert response.status_code == 403


def test_unknown_appraisal_is_not_found(client, people, active_cycle, auth_headers):
    response = client.get("/api/reviews/999/access", headers=auth_headers(people["hod"]))
    assert response.status_code == 404


def test_invalid_performance_input(client, people, make_appraisal, auth_headers):
    appraisal = make_appraisal(people["instructor"])
    response = client.put(
        f"/api/reviews/{appraisal.id}/performance",
        headers=auth_headers(people["hod"]),
        json={**PERFORMANCE, "teaching_eval_avg": 140},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "teaching_eval_avg"


def test_instructors_cannot_list_reviews(client, people, active_cycle, auth_headers):
    response = client.get("/api/reviews", headers=auth_headers(people["instructor"]))
    assert response.status_code == 403


def test_admin_saves_cycle_grading(client, people, active_cycle, auth_headers):
    headers = auth_headers(people["admin"])
    payload = {
        "research_weight": 40,
        "university_service_weight": 15,
        "community_service_weight": 15,
        "teaching_quality_weight": 30,
        "service_points_per_item": 3,
        "service_max_points": 15,
        "teaching_bands": [95, 85, 70, 55],
        "research_map": {"HIGH": 40},
    }
    saved = client.put(f"/api/admin/grading/cycles/{active_cycle.id}", headers=headers, json=payload)
    assert saved.status_code == 200
    assert saved.json()["scope"] == "CYCLE"

    effective = client.get(f"/api/grading/effective?cycle_id={active_cycle.id}", headers=headers)
    assert effective.json()["id"] == saved.json()["id"]

    bad = client.put("/api/admin/grading/global", headers=headers, json={**payload, "research_weight": 10})
    assert bad.status_code == 422
