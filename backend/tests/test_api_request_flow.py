from __future__ import annotations

import re

PASSWORD = "password123"
API = "/api/v1"


def _login(client, email, password=PASSWORD):
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    assert response.headers["cache-control"] == "no-store"
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


def _file_request(client, headers):
    response = client.post(
        f"{API}/requests",
        data={
            "department": "KAM001",
            "subject": "Road repair budget",
            "description": "Copies of sanctioned estimates for 2023-24",
        },
        files={"attachment": ("estimate.pdf", b"%PDF-1.4 estimate", "application/pdf")},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health_and_public_district_directory(client) -> None:
    assert client.get(f"{API}/system/health").json()["status"] == "ok"

    districts = client.get(f"{API}/districts").json()
    assert {d["districtCode"] for d in districts} == {"BLR", "KAM"}


def test_register_then_login_returns_camel_case_profile(client) -> None:
    response = client.post(
        f"{API}/auth/register",
        json={"name": "Meena", "email": "meena@example.com", "phone": "9876543210", "password": "long-enough"},
    )
    assert response.status_code == 201, response.text
    assert response.json()["role"] == "1"

    login = client.post(f"{API}/auth/login", json={"email": "meena@example.com", "password": "long-enough"})
    body = login.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["email"] == "meena@example.com"
    assert "passwordHash" not in body["user"]


def test_wrong_password_is_problem_details(client) -> None:
    response = client.post(f"{API}/auth/login", json={"email": "asha@example.com", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_login_rate_limit_per_ip(client, fake_redis) -> None:
    fake_redis.values["auth:rl:login:ip:testclient"] = 10

    response = client.post(f"{API}/auth/login", json={"email": "asha@example.com", "password": PASSWORD})

    assert response.status_code == 429
    assert "retry-after" in response.headers


def test_citizen_files_and_pio_rejects_with_full_timeline(client) -> None:
    citizen = _login(client, "asha@example.com")
    created = _file_request(client, citizen)
    request_id = created["id"]

    assert re.fullmatch(r"KAM001-\d{8}-001", request_id)
    assert created["status"] == "Pending"
    assert created["fileName"] == "estimate.pdf"

    pio = _login(client, "pio.kam001@example.com")
    assert client.post(f"{API}/requests/{request_id}/forward", headers=pio).status_code == 200

    blank = client.post(f"{API}/requests/{request_id}/reject", json={"justification": "   "}, headers=pio)
    assert blank.status_code == 400
    assert blank.json()["code"] == "JUSTIFICATION_REQUIRED"

    rejected = client.post(
        f"{API}/requests/{request_id}/reject",
        json={"justification": "Personal information of third parties"},
        headers=pio,
    )
    assert rejected.status_code == 200, rejected.text

    again = client.post(f"{API}/requests/{request_id}/forward", headers=pio)
    assert again.status_code == 404
    assert again.json()["code"] == "REQUEST_INVALID_STATE"
    assert again.json()["details"]["currentStatus"] == "Rejected"

    detail = client.get(f"{API}/requests/{request_id}", headers=citizen).json()
    assert detail["status"] == "Rejected"
    assert detail["rejectionReason"] == "Personal information of third parties"

    timeline = client.get(f"{API}/requests/{request_id}/timeline", headers=citizen).json()
    assert [(e["actionType"], e["newValue"]) for e in timeline] == [
        ("STATUS_CHANGE", "Pending"),
        ("ATTACHMENT_ADDED", "estimate.pdf"),
        ("STATUS_CHANGE", "Processing"),
        ("RESPONSE_ADDED", "Personal information of third parties"),
        ("STATUS_CHANGE", "Rejected"),
    ]
    assert timeline[2]["actor"]["name"] == "Revenue PIO"

    attachment = client.get(f"{API}/requests/{request_id}/attachment", headers=citizen)
    assert attachment.status_code == 200
    assert attachment.content == b"%PDF-1.4 estimate"
    assert attachment.headers["content-type"] == "application/pdf"

    notifications = client.get(f"{API}/notifications", headers=citizen).json()
    assert {n["notificationType"] for n in notifications} == {"REQUEST_CREATED", "REQUEST_FORWARDED", "STATUS_CHANGED"}


def test_requests_outside_scope_are_hidden(client) -> None:
    created = _file_request(client, _login(client, "asha@example.com"))
    request_id = created["id"]

    stranger = _login(client, "ravi@example.com")
    response = client.get(f"{API}/requests/{request_id}", headers=stranger)
    assert response.status_code == 404
    assert response.json()["code"] == "REQUEST_NOT_FOUND"
    assert client.get(f"{API}/requests/{request_id}/timeline", headers=stranger).json() == []

    other_pio = _login(client, "pio.blr001@example.com")
    assert client.post(f"{API}/requests/{request_id}/forward", headers=other_pio).status_code == 404


def test_role_gate_rejects_wrong_capability(client) -> None:
    pio = _login(client, "pio.kam001@example.com")

    response = client.post(
        f"{API}/requests",
        data={"department": "KAM001", "subject": "s", "description": "d"},
        headers=pio,
    )

    assert response.status_code == 403


def test_spio_assigns_and_assistant_reviews(client, world) -> None:
    request_id = _file_request(client, _login(client, "asha@example.com"))["id"]
    spio = _login(client, "spio.kam@example.com")

    assigned = client.post(
        f"{API}/requests/{request_id}/assign",
        json={"assistantId": str(world.assistant_a.id), "remarks": "Check ward register"},
        headers=spio,
    )
    assert assigned.status_code == 200, assigned.text

    assistant_b = _login(client, "b.kam@example.com")
    denied = client.post(
        f"{API}/requests/{request_id}/review",
        json={"remarks": "Looks fine", "verificationStatus": "verified"},
        headers=assistant_b,
    )
    assert denied.status_code == 403
    assert denied.json()["code"] == "REQUEST_NOT_ASSIGNED"

    assistant_a = _login(client, "a.kam@example.com")
    inbox = client.get(f"{API}/assistant/requests", headers=assistant_a).json()
    assert [r["id"] for r in inbox["requests"]] == [request_id]
    assert inbox["stats"] == {"totalAssigned": 1, "pendingReview": 1, "reviewed": 0}

    reviewed = client.post(
        f"{API}/requests/{request_id}/review",
        json={"remarks": "Register entries match", "verificationStatus": "verified"},
        headers=assistant_a,
    )
    assert reviewed.status_code == 200, reviewed.text

    inbox = client.get(f"{API}/assistant/requests", headers=assistant_a).json()
    assert inbox["stats"] == {"totalAssigned": 1, "pendingReview": 0, "reviewed": 1}
    assert inbox["requests"][0]["status"] == "Pending"
    assert inbox["requests"][0]["reviewStatus"] == "reviewed"


def test_logout_revokes_token(client, fake_redis) -> None:
    headers = _login(client, "asha@example.com")
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 200

    response = client.post(f"{API}/auth/logout", headers=headers)
    assert response.status_code == 200

    assert any(key.startswith("auth:revoked:jti:") for key in fake_redis.values)
    me = client.get(f"{API}/auth/me", headers=headers)
    assert me.status_code == 401
    assert me.json()["detail"] == "Token has been revoked"


def test_refresh_issues_new_token_and_revokes_presented_one(client) -> None:
    headers = _login(client, "asha@example.com")

    response = client.post(f"{API}/auth/refresh", headers=headers)
    assert response.status_code == 200, response.text
    assert response.headers["cache-control"] == "no-store"
    fresh = {"Authorization": f"Bearer {response.json()['accessToken']}"}
    assert fresh != headers

    assert client.get(f"{API}/auth/me", headers=fresh).json()["email"] == "asha@example.com"
    stale = client.get(f"{API}/auth/me", headers=headers)
    assert stale.status_code == 401
    assert stale.json()["detail"] == "Token has been revoked"


def test_spio_sees_reviewed_requests_with_assignee(client, world) -> None:
    citizen = _login(client, "asha@example.com")
    reviewed_id = _file_request(client, citizen)["id"]
    pending_id = _file_request(client, citizen)["id"]
    spio = _login(client, "spio.kam@example.com")
    for request_id in (reviewed_id, pending_id):
        assigned = client.post(
            f"{API}/requests/{request_id}/assign",
            json={"assistantId": str(world.assistant_a.id)},
            headers=spio,
        )
        assert assigned.status_code == 200, assigned.text
    client.post(
        f"{API}/requests/{reviewed_id}/review",
        json={"remarks": "Register entries match", "verificationStatus": "verified"},
        headers=_login(client, "a.kam@example.com"),
    )

    reviewed = client.get(f"{API}/spio/reviewed-requests", headers=spio)
    assert reviewed.status_code == 200, reviewed.text
    assert [r["id"] for r in reviewed.json()] == [reviewed_id]
    assert reviewed.json()[0]["assignee"]["name"] == "Assistant A"
    assert reviewed.json()[0]["assistantRemarks"] == "Register entries match"

    pending = client.get(f"{API}/requests", params={"reviewStatus": "pending"}, headers=spio).json()
    assert [r["id"] for r in pending] == [pending_id]

    assert client.get(f"{API}/spio/reviewed-requests", headers=citizen).status_code == 403
    bad_filter = client.get(f"{API}/requests", params={"reviewStatus": "done"}, headers=spio)
    assert bad_filter.status_code == 400
    assert bad_filter.json()["code"] == "INVALID_REVIEW_STATUS_FILTER"


def test_assign_with_malformed_assistant_id_is_not_found(client) -> None:
    request_id = _file_request(client, _login(client, "asha@example.com"))["id"]

    response = client.post(
        f"{API}/requests/{request_id}/assign",
        json={"assistantId": "nobody"},
        headers=_login(client, "spio.kam@example.com"),
    )

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["code"] == "ASSISTANT_NOT_FOUND"
