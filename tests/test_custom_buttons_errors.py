from __future__ import annotations

import pytest
from problem_utils import assert_problem


def test_unauthenticated_is_401(client, seed_button):
    seed_button()
    r = client.get("/api/custom_buttons")
    body = assert_problem(r, 401, "Unauthorized")
    assert body["type"].endswith("/errors/unauthorized")


def test_forbidden_is_problem_with_required_capability(client, api_headers):
    r = client.delete("/api/custom_buttons/1", headers=api_headers("custom_button_edit"))
    body = assert_problem(r, 403, "Forbidden")
    assert body["required_capability"] == "custom_button_delete"


def test_unknown_id_is_404(client, api_headers):
    headers = api_headers("custom_button_show", "custom_button_edit", "custom_button_delete")
    assert_problem(client.get("/api/custom_buttons/999999", headers=headers), 404)
    assert_problem(client.put("/api/custom_buttons/999999", json={"name": "x"}, headers=headers), 404)
    assert_problem(client.delete("/api/custom_buttons/999999", headers=headers), 404)
    body = assert_problem(client.get("/api/custom_buttons/abc", headers=headers), 404)
    assert body["detail"] == "Couldn't find CustomButton with 'id'=abc"


def test_unknown_id_is_forbidden_before_not_found(client, api_headers):
    assert_problem(client.get("/api/custom_buttons/999999", headers=api_headers()), 403)


def test_create_requires_name(client, api_headers):
    r = client.post("/api/custom_buttons", json={"description": "no name"}, headers=api_headers("custom_button_new"))
    body = assert_problem(r, 422)
    assert {"name": "name", "reason": "required"} in body["errors"]


def test_create_rejects_id(client, api_headers):
    r = client.post("/api/custom_buttons", json={"id": "5", "name": "x"}, headers=api_headers("custom_button_new"))
    body = assert_problem(r, 400)
    assert "should not be specified" in body["detail"]


def test_create_rejects_unknown_attribute(client, api_headers):
    r = client.post("/api/custom_buttons", json={"name": "x", "colour": "red"}, headers=api_headers("custom_button_new"))
    body = assert_problem(r, 400)
    assert "colour" in body["detail"]


def test_create_options_must_be_mapping(client, api_headers):
    r = client.post("/api/custom_buttons", json={"name": "x", "options": ["a"]}, headers=api_headers("custom_button_new"))
    body = assert_problem(r, 422)
    assert body["errors"] == [{"name": "options", "reason": "must_be_mapping"}]


def test_applies_to_id_requires_class(client, api_headers, seed_button):
    r = client.post("/api/custom_buttons", json={"name": "x", "applies_to_id": 3}, headers=api_headers("custom_button_new"))
    assert_problem(r, 422)
    cb_id = seed_button(applies_to_class="Vm", applies_to_id=3)
    r = client.patch(
        f"/api/custom_buttons/{cb_id}",
        json=[{"action": "remove", "path": "applies_to_class"}],
        headers=api_headers("custom_button_edit"),
    )
    assert_problem(r, 422)


def test_batch_create_is_all_or_nothing(client, api_headers):
    headers = api_headers("custom_button_new", "custom_button_show_list")
    body = {"action": "create", "resources": [{"name": "ok"}, {"description": "missing name"}]}
    assert_problem(client.post("/api/custom_buttons", json=body, headers=headers), 422)
    assert client.get("/api/custom_buttons", headers=headers).get_json()["count"] == 0


def test_unsupported_collection_action(client, api_headers):
    r = client.post("/api/custom_buttons", json={"action": "explode"}, headers=api_headers("custom_button_new"))
    body = assert_problem(r, 400)
    assert body["detail"] == "Unsupported Action explode for the custom_buttons"


def test_unsupported_resource_action(client, api_headers, seed_button):
    cb_id = seed_button()
    r = client.post(f"/api/custom_buttons/{cb_id}", json={"action": "create"}, headers=api_headers("custom_button_new"))
    body = assert_problem(r, 400)
    assert body["detail"] == "Unsupported Action create for the custom_buttons resource"


def test_bulk_edit_reports_per_item_failures(client, api_headers, seed_button, href):
    good = seed_button(name="good")
    request = {
        "action": "edit",
        "resources": [
            {"id": "999999", "name": "ghost"},
            {"id": str(good), "name": "renamed"},
            {"id": str(good), "name": ""},
        ],
    }
    r = client.post("/api/custom_buttons", json=request, headers=api_headers("custom_button_edit"))
    assert r.status_code == 200
    results = r.get_json()["results"]
    assert len(results) == 3
    assert results[0] == {
        "success": False,
        "message": "Couldn't find CustomButton with 'id'=999999",
        "href": href(999999),
    }
    assert results[1]["name"] == "renamed"
    assert results[2]["success"] is False
    # the failing third entry did not undo the second
    got = client.get(f"/api/custom_buttons/{good}", headers=api_headers("custom_button_show")).get_json()
    assert got["name"] == "renamed"


def test_bulk_delete_reports_missing_ids(client, api_headers, seed_button):
    cb_id = seed_button()
    request = {"action": "delete", "resources": [{"id": "999999"}, {"href": f"http://localhost/api/custom_buttons/{cb_id}"}]}
    r = client.post("/api/custom_buttons", json=request, headers=api_headers("custom_button_delete"))
    results = r.get_json()["results"]
    assert results[0]["success"] is False
    assert results[1] == {
        "success": True,
        "message": f"custom_buttons id: {cb_id} deleting",
        "href": f"http://localhost/api/custom_buttons/{cb_id}",
    }


def test_bulk_requires_resources(client, api_headers):
    r = client.post("/api/custom_buttons", json={"action": "delete"}, headers=api_headers("custom_button_delete"))
    assert_problem(r, 400)


def test_patch_rejects_malformed_operations(client, api_headers, seed_button):
    cb_id = seed_button()
    headers = api_headers("custom_button_edit")
    url = f"/api/custom_buttons/{cb_id}"
    assert_problem(client.patch(url, json={"action": "edit"}, headers=headers), 400)
    assert_problem(client.patch(url, json=[{"action": "move", "path": "name", "value": "x"}], headers=headers), 400)
    assert_problem(client.patch(url, json=[{"action": "edit", "path": "guid", "value": "x"}], headers=headers), 400)
    assert_problem(client.patch(url, json=[{"action": "edit", "path": "name"}], headers=headers), 400)
    assert_problem(client.patch(url, json=[{"action": "remove", "path": "name"}], headers=headers), 422)


def test_invalid_json_body(client, api_headers):
    r = client.post(
        "/api/custom_buttons",
        data="{not json",
        content_type="application/json",
        headers=api_headers("custom_button_new"),
    )
    assert_problem(r, 400)


def test_method_not_allowed(client, api_headers):
    r = client.put("/api/custom_buttons", json={}, headers=api_headers("custom_button_edit"))
    assert_problem(r, 405)


def test_non_ascii_digit_id_is_404(client, api_headers):
    headers = api_headers("custom_button_show", "custom_button_delete")
    body = assert_problem(client.get("/api/custom_buttons/%C2%B2", headers=headers), 404)
    assert body["detail"] == "Couldn't find CustomButton with 'id'=²"
    assert_problem(client.delete("/api/custom_buttons/%C2%B2", headers=headers), 404)


def test_id_beyond_integer_column_is_404(client, api_headers):
    headers = api_headers("custom_button_show", "custom_button_edit", "custom_button_delete")
    huge = "99999999999999999999999"
    assert_problem(client.get(f"/api/custom_buttons/{huge}", headers=headers), 404)
    assert_problem(client.get(f"/api/custom_buttons/{2**63}", headers=headers), 404)
    assert_problem(client.put(f"/api/custom_buttons/{huge}", json={"name": "x"}, headers=headers), 404)
    assert_problem(client.delete(f"/api/custom_buttons/{huge}", headers=headers), 404)


@pytest.mark.parametrize("value, reason", [
    ("²", "invalid_type"),
    ("7", "invalid_type"),
    (True, "invalid_type"),
    (2**70, "out_of_range"),
])
def test_applies_to_id_must_be_int_in_range(client, api_headers, value, reason):
    r = client.post(
        "/api/custom_buttons",
        json={"name": "x", "applies_to_class": "Vm", "applies_to_id": value},
        headers=api_headers("custom_button_new"),
    )
    body = assert_problem(r, 422)
    assert body["errors"] == [{"name": "applies_to_id", "reason": reason}]


def test_bulk_edit_bad_item_after_good_one(client, api_headers, seed_button, href):
    first = seed_button(name="first")
    second = seed_button(name="second", applies_to_class="Vm")
    request = {
        "action": "edit",
        "resources": [
            {"id": str(first), "name": "first renamed"},
            {"id": str(second), "applies_to_id": "²"},
            {"id": "99999999999999999999999", "name": "ghost"},
        ],
    }
    r = client.post("/api/custom_buttons", json=request, headers=api_headers("custom_button_edit", "custom_button_show"))
    assert r.status_code == 200
    results = r.get_json()["results"]
    assert results[0]["name"] == "first renamed"
    assert results[1] == {"success": False, "message": "applies_to_id: invalid_type", "href": href(second)}
    assert results[2]["success"] is False
    assert "href" not in results[2]


def test_bulk_edit_reports_unexpected_item_error(client, api_headers, seed_button, monkeypatch):
    from buttons_api import custom_button_service as svc

    good, bad = seed_button(name="good"), seed_button(name="bad")
    real_edit = svc.edit_button

    def flaky_edit(db, button_id, payload):
        if button_id == bad:
            raise RuntimeError("database went away")
        return real_edit(db, button_id, payload)

    monkeypatch.setattr(svc, "edit_button", flaky_edit)
    headers = api_headers("custom_button_edit", "custom_button_show")
    request = {"action": "edit", "resources": [{"id": str(good), "name": "g2"}, {"id": str(bad), "name": "b2"}]}
    r = client.post("/api/custom_buttons", json=request, headers=headers)
    assert r.status_code == 200
    results = r.get_json()["results"]
    assert results[0]["name"] == "g2"
    assert results[1]["success"] is False
    assert results[1]["message"].startswith("internal_error incident_id=")
    assert client.get(f"/api/custom_buttons/{good}", headers=headers).get_json()["name"] == "g2"
    assert client.get(f"/api/custom_buttons/{bad}", headers=headers).get_json()["name"] == "bad"


def test_bulk_delete_reports_unexpected_item_error(client, api_headers, seed_button, monkeypatch, href):
    from buttons_api import custom_button_service as svc

    keep, gone = seed_button(name="keep"), seed_button(name="gone")
    real_delete = svc.delete_button

    def flaky_delete(db, button_id):
        if button_id == keep:
            raise RuntimeError("lock timeout")
        return real_delete(db, button_id)

    monkeypatch.setattr(svc, "delete_button", flaky_delete)
    request = {"action": "delete", "resources": [{"id": str(keep)}, {"id": str(gone)}]}
    r = client.post("/api/custom_buttons", json=request, headers=api_headers("custom_button_delete"))
    assert r.status_code == 200
    results = r.get_json()["results"]
    assert results[0]["success"] is False and results[0]["href"] == href(keep)
    assert results[1] == {"success": True, "message": f"custom_buttons id: {gone} deleting", "href": href(gone)}
