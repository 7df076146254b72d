import uuid

import pytest

from courseware.core.errors import ApiError, ErrorKind
from courseware.core.roles import Role, is_admin_tier
from courseware.services.role_service import change_role, is_transition_allowed
from tests.factories import auth_headers, make_user


def test_admin_tier():
    assert is_admin_tier(Role.ADMIN)
    assert is_admin_tier("SUPERADMIN")
    assert not is_admin_tier(Role.USER)
    assert not is_admin_tier(None)
    assert not is_admin_tier("root")


@pytest.mark.parametrize(
    ("requester", "current", "new", "allowed"),
    [
        (Role.ADMIN, Role.USER, Role.ADMIN, True),
        (Role.ADMIN, Role.ADMIN, Role.USER, False),
        (Role.ADMIN, Role.USER, Role.SUPERADMIN, False),
        (Role.SUPERADMIN, Role.USER, Role.ADMIN, True),
        (Role.SUPERADMIN, Role.ADMIN, Role.USER, True),
        (Role.SUPERADMIN, Role.USER, Role.SUPERADMIN, False),
        (Role.SUPERADMIN, Role.SUPERADMIN, Role.USER, False),
        (Role.SUPERADMIN, Role.SUPERADMIN, Role.ADMIN, False),
        (Role.USER, Role.USER, Role.ADMIN, False),
        (None, Role.USER, Role.ADMIN, False),
    ],
)
def test_transition_table(requester, current, new, allowed):
    assert is_transition_allowed(requester, current, new) is allowed


def test_admin_promotes_user(db, user):
    updated = change_role(db, user.id, Role.ADMIN, Role.ADMIN)
    assert updated.role == Role.ADMIN.value


def test_admin_cannot_demote_admin(db):
    other_admin = make_user(db, "other_admin", Role.ADMIN)
    with pytest.raises(ApiError) as exc_info:
        change_role(db, other_admin.id, Role.USER, Role.ADMIN)
    assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"
    assert exc_info.value.kind is ErrorKind.FORBIDDEN
    db.refresh(other_admin)
    assert other_admin.role == Role.ADMIN.value


def test_superadmin_demotes_admin(db):
    other_admin = make_user(db, "other_admin", Role.ADMIN)
    assert change_role(db, other_admin.id, Role.USER, Role.SUPERADMIN).role == Role.USER.value


def test_same_role_rejected_before_permissions(db, user):
    with pytest.raises(ApiError) as exc_info:
        change_role(db, user.id, Role.USER, Role.ADMIN)
    assert exc_info.value.code == "SAME_ROLE"
    assert exc_info.value.status_code == 400


def test_superadmin_is_untouchable(db, superadmin):
    other_root = make_user(db, "other_root", Role.SUPERADMIN)
    for new_role in (Role.ADMIN, Role.USER):
        with pytest.raises(ApiError) as exc_info:
            change_role(db, other_root.id, new_role, Role.SUPERADMIN)
        assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"


def test_nobody_grants_superadmin(db, user):
    with pytest.raises(ApiError) as exc_info:
        change_role(db, user.id, Role.SUPERADMIN, Role.SUPERADMIN)
    assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"


def test_requester_must_be_admin_tier(db, user):
    target = make_user(db, "target")
    with pytest.raises(ApiError) as exc_info:
        change_role(db, target.id, Role.ADMIN, Role.USER)
    assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"

    with pytest.raises(ApiError) as exc_info:
        change_role(db, target.id, Role.ADMIN, "bogus")
    assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"


@pytest.mark.parametrize("requester", [Role.USER, Role.ADMIN, Role.SUPERADMIN])
def test_same_role_wins_for_every_requester(db, requester):
    target = make_user(db, "target")
    with pytest.raises(ApiError) as exc_info:
        change_role(db, target.id, Role.USER, requester)
    assert exc_info.value.code == "SAME_ROLE"
    db.refresh(target)
    assert target.role == Role.USER.value


def test_unknown_or_deleted_target(db, user):
    with pytest.raises(ApiError) as exc_info:
        change_role(db, uuid.uuid4(), Role.ADMIN, Role.ADMIN)
    assert exc_info.value.code == "USER_NOT_FOUND"


def test_role_endpoint(client, db, admin, user):
    resp = client.patch(f"/v1/users/{user.id}/role", headers=auth_headers(user), json={"role": "ADMIN"})
    assert resp.status_code == 403

    resp = client.patch(f"/v1/users/{user.id}/role", headers=auth_headers(admin), json={"role": "ADMIN"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["role"] == "ADMIN"

    resp = client.patch(f"/v1/users/{user.id}/role", headers=auth_headers(admin), json={"role": "ADMIN"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "SAME_ROLE"

    resp = client.patch(f"/v1/users/{user.id}/role", headers=auth_headers(admin), json={"role": "OWNER"})
    assert resp.status_code == 422


def test_list_users_requires_admin(client, db, admin, user):
    resp = client.get("/v1/users", headers=auth_headers(user))
    assert resp.status_code == 403

    resp = client.get("/v1/users", headers=auth_headers(admin))
    assert resp.status_code == 200, resp.text
    assert {item["username"] for item in resp.json()["users"]} == {"admin", "learner"}
