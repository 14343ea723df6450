import time

import pytest
from conftest import JWT_TEST_SECRET

from buttons_api.api_catalog import CUSTOM_BUTTONS, UnknownActionError, all_identifiers
from buttons_api.jwt_utils import encode


def _bearer(userid, role, secret=JWT_TEST_SECRET):
    return {"Authorization": f"Bearer {encode({'sub': userid, 'role': role}, secret=secret)}"}


@pytest.mark.parametrize("scope, verb, action, identifier", [
    ("collection", "get", "read", "custom_button_show_list"),
    ("collection", "post", "create", "custom_button_new"),
    ("collection", "post", "edit", "custom_button_edit"),
    ("collection", "post", "delete", "custom_button_delete"),
    ("resource", "get", "read", "custom_button_show"),
    ("resource", "post", "edit", "custom_button_edit"),
    ("resource", "put", "edit", "custom_button_edit"),
    ("resource", "patch", "edit", "custom_button_edit"),
    ("resource", "post", "delete", "custom_button_delete"),
    ("resource", "delete", "delete", "custom_button_delete"),
])
def test_catalog_identifiers(scope, verb, action, identifier):
    assert CUSTOM_BUTTONS.identifier(scope, verb, action) == identifier


def test_catalog_unknown_action():
    with pytest.raises(UnknownActionError):
        CUSTOM_BUTTONS.identifier("resource", "post", "create")
    assert CUSTOM_BUTTONS.actions("collection", "post") == ["create", "delete", "edit"]
    assert all_identifiers() == [
        "custom_button_delete",
        "custom_button_edit",
        "custom_button_new",
        "custom_button_show",
        "custom_button_show_list",
    ]


def test_bearer_token_identity(client, api_headers, seed_button):
    seed_button()
    role = api_headers("custom_button_show_list")["X-User-Role"]
    r = client.get("/api/custom_buttons", headers=_bearer("jwt_user", role))
    assert r.status_code == 200
    assert r.get_json()["count"] == 1


def test_bearer_token_userid_recorded_on_create(client, api_headers):
    role = api_headers("custom_button_new")["X-User-Role"]
    r = client.post("/api/custom_buttons", json={"name": "x"}, headers=_bearer("jwt_user", role))
    assert r.status_code == 200
    assert r.get_json()["results"][0]["userid"] == "jwt_user"


def test_invalid_bearer_token_is_401(client, api_headers):
    role = api_headers("custom_button_show_list")["X-User-Role"]
    r = client.get("/api/custom_buttons", headers=_bearer("jwt_user", role, secret="wrong"))
    assert r.status_code == 401
    assert r.headers["Content-Type"].startswith("application/problem+json")


def test_super_administrator_bypasses_features(client, seed_button):
    cb_id = seed_button()
    headers = {"X-User-Role": "super_administrator", "X-User-Id": "root"}
    assert client.get(f"/api/custom_buttons/{cb_id}", headers=headers).status_code == 200
    assert client.delete(f"/api/custom_buttons/{cb_id}", headers=headers).status_code == 204


def test_everything_feature_grants_all(client, api_headers, seed_button):
    cb_id = seed_button()
    headers = api_headers("everything")
    assert client.get("/api/custom_buttons", headers=headers).status_code == 200
    assert client.patch(
        f"/api/custom_buttons/{cb_id}", json=[{"action": "edit", "path": "name", "value": "n"}], headers=headers
    ).status_code == 200


def test_unknown_role_has_no_capabilities(client):
    r = client.get("/api/custom_buttons", headers={"X-User-Role": "ghost", "X-User-Id": "u"})
    assert r.status_code == 403


def test_options_public_by_default(client):
    assert client.options("/api/custom_buttons").status_code == 200


def test_options_can_require_auth(app_session, client, api_headers, monkeypatch):
    monkeypatch.setitem(app_session.config, "OPTIONS_REQUIRE_AUTH", True)
    assert client.options("/api/custom_buttons").status_code == 401
    other = app_session.test_client()
    assert other.options("/api/custom_buttons", headers=api_headers()).status_code == 403
    third = app_session.test_client()
    r = third.options("/api/custom_buttons", headers=api_headers("custom_button_show_list"))
    assert r.status_code == 200


def test_identity_does_not_outlive_its_request(client, api_headers, seed_button):
    seed_button()
    headers = api_headers("custom_button_show_list")
    assert client.get("/api/custom_buttons", headers=headers).status_code == 200
    # same client, no credentials: nothing carried over from the earlier request
    assert client.get("/api/custom_buttons").status_code == 401
    assert client.get("/api/custom_buttons", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_rejected_bearer_overrides_test_headers(client, api_headers):
    headers = api_headers("custom_button_show_list")
    headers["Authorization"] = "Bearer garbage"
    assert client.get("/api/custom_buttons", headers=headers).status_code == 401


def test_expired_bearer_after_valid_one_is_401(client, api_headers):
    role = api_headers("custom_button_show_list")["X-User-Role"]
    assert client.get("/api/custom_buttons", headers=_bearer("jwt_user", role)).status_code == 200
    now = int(time.time())
    stale = encode({"sub": "jwt_user", "role": role, "iat": now - 7200, "exp": now - 3600}, secret=JWT_TEST_SECRET)
    r = client.get("/api/custom_buttons", headers={"Authorization": f"Bearer {stale}"})
    assert r.status_code == 401
