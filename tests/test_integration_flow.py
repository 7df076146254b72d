import os
from uuid import uuid4

import pytest


ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")


def _require_integration(integration_enabled: bool) -> None:
    if not integration_enabled:
        pytest.skip("Set RUN_INTEGRATION=1 to execute integration tests")


def _admin_headers(live_client) -> dict[str, str]:
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        pytest.skip("Set ADMIN_EMAIL and ADMIN_PASSWORD to run admin integration tests")
    resp = live_client.post("/v1/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _register_and_login(live_client):
    username = f"it_{uuid4().hex[:8]}"
    email = f"{username}@example.com"
    password = f"Pwd-{uuid4().hex[:10]}"

    register_resp = live_client.post(
        "/v1/auth/register", json={"email": email, "username": username, "password": password}
    )
    assert register_resp.status_code == 201, register_resp.text

    login_resp = live_client.post("/v1/auth/login", json={"email": email, "password": password})
    assert login_resp.status_code == 200, login_resp.text
    body = login_resp.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['access_token']}"}


@pytest.mark.integration
def test_private_course_enrollment_flow(live_client, integration_enabled: bool):
    _require_integration(integration_enabled)
    admin_headers = _admin_headers(live_client)
    user_id, user_headers = _register_and_login(live_client)

    create_resp = live_client.post(
        "/v1/admin/courses",
        headers=admin_headers,
        json={"title": f"Integration {uuid4().hex[:6]}", "is_published": True, "is_public": False},
    )
    assert create_resp.status_code == 201, create_resp.text
    course_id = create_resp.json()["id"]

    for order, is_trailer in ((0, True), (1, False)):
        video_resp = live_client.post(
            "/v1/videos",
            headers=admin_headers,
            json={
                "course_id": course_id,
                "title": f"Part {order}",
                "order": order,
                "is_trailer": is_trailer,
                "source_url": f"https://cdn.example.com/{course_id}/{order}.mp4",
            },
        )
        assert video_resp.status_code == 201, video_resp.text

    denied = live_client.get(f"/v1/courses/{course_id}", headers=user_headers)
    assert denied.status_code == 403, denied.text

    preview = live_client.get(f"/v1/courses/{course_id}/preview")
    assert preview.status_code == 200, preview.text
    assert len(preview.json()["videos"]) == 1

    enroll_resp = live_client.post(
        f"/v1/courses/{course_id}/enroll", headers=admin_headers, json={"user_id": user_id}
    )
    assert enroll_resp.status_code == 201, enroll_resp.text

    detail = live_client.get(f"/v1/courses/{course_id}", headers=user_headers)
    assert detail.status_code == 200, detail.text
    assert detail.json()["access"] == "full"
    assert detail.headers.get("X-Token-Refreshed") == "true"

    delete_resp = live_client.delete(f"/v1/admin/courses/{course_id}", headers=admin_headers)
    assert delete_resp.status_code == 204, delete_resp.text
