"""Custom buttons collection API.

GET/POST/OPTIONS on the collection, GET/POST/PUT/PATCH/DELETE on a single
resource. POST bodies carry an `action` (create, edit, delete) that selects
the operation; each action is authorized against its own capability
identifier from the collection catalog before any data is touched.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, assert_never

from flask import Blueprint, current_app, jsonify, request, url_for
from flask.typing import ResponseReturnValue

from . import custom_button_service as svc
from . import metadata_catalog
from .api_catalog import CUSTOM_BUTTONS
from .api_types import ButtonAction, ListEnvelope
from .app_authz import authorize, require_capability
from .db import get_session
from .errors import BadRequestError

COLLECTION = CUSTOM_BUTTONS.name

bp = Blueprint("custom_buttons_api", __name__, url_prefix=f"/api/{COLLECTION}")

# Collection rules share one path; OPTIONS is served explicitly, not by Flask
_COLLECTION_RULE: dict[str, Any] = {"strict_slashes": False, "provide_automatic_options": False}


def _href(button_id: int) -> str:
    return url_for("custom_buttons_api.show_button", button_id=str(button_id), _external=True)


def _json_body(kind: type, *, allow_empty: bool = False) -> Any:
    data = request.get_json(silent=True)
    if data is None:
        if allow_empty and not request.get_data():
            return kind()
        raise BadRequestError("Request body must be valid JSON")
    if not isinstance(data, kind):
        raise BadRequestError(f"Request body must be a JSON {'object' if kind is dict else 'array'}")
    return data


def _unsupported(raw: object, *, resource: bool) -> BadRequestError:
    target = f"{COLLECTION} resource" if resource else COLLECTION
    return BadRequestError(f"Unsupported Action {raw} for the {target}")


def _wants_expanded() -> bool:
    expand = request.args.get("expand", "")
    return "resources" in [e.strip() for e in expand.split(",")]


# ---- Collection ----------------------------------------------------------------

@bp.route("", methods=["GET"], **_COLLECTION_RULE)
@require_capability(CUSTOM_BUTTONS, "collection", "read")
def list_buttons() -> ResponseReturnValue:
    attributes = svc.parse_attributes(request.args.get("attributes"))
    expanded = _wants_expanded()
    db = get_session()
    try:
        rows, total = svc.list_buttons(db)
        if expanded:
            resources: list = [svc.serialize_button(cb, _href(cb.id), attributes) for cb in rows]
        else:
            resources = [{"href": _href(cb.id)} for cb in rows]
        body: ListEnvelope = {
            "name": COLLECTION,
            "count": total,
            "subcount": len(rows),
            "resources": resources,
        }
        return jsonify(body)
    finally:
        db.close()


@bp.route("", methods=["POST"], **_COLLECTION_RULE)
def post_collection() -> ResponseReturnValue:
    data = _json_body(dict)
    raw_action = data.get("action")
    action = ButtonAction.parse(raw_action, default=ButtonAction.CREATE)
    if action is None:
        raise _unsupported(raw_action, resource=False)
    identity = authorize(CUSTOM_BUTTONS, "collection", "post", action.value)
    db = get_session()
    try:
        match action:
            case ButtonAction.CREATE:
                if "resources" in data:
                    entries = data["resources"]
                else:
                    entries = [{k: v for k, v in data.items() if k != "action"}]
                results: list = svc.bulk_create(
                    db, entries, collection=COLLECTION, userid=identity["userid"], href_for=_href
                )
            case ButtonAction.EDIT:
                results = svc.bulk_edit(db, data.get("resources"), href_for=_href)
            case ButtonAction.DELETE:
                results = svc.bulk_delete(db, data.get("resources"), collection=COLLECTION, href_for=_href)
            case _:
                assert_never(action)
        return jsonify({"results": results})
    finally:
        db.close()


@bp.route("", methods=["OPTIONS"], **_COLLECTION_RULE)
def collection_options() -> ResponseReturnValue:
    if current_app.config.get("OPTIONS_REQUIRE_AUTH"):
        authorize(CUSTOM_BUTTONS, "collection", "get", "read")
    db = get_session()
    try:
        resp = jsonify(metadata_catalog.options_document(db))
    finally:
        db.close()
    resp.headers["Allow"] = ", ".join(v.upper() for v in CUSTOM_BUTTONS.verbs)
    return resp


# ---- Single resource -----------------------------------------------------------

@bp.get("/<button_id>")
@require_capability(CUSTOM_BUTTONS, "resource", "read")
def show_button(button_id: str) -> ResponseReturnValue:
    attributes = svc.parse_attributes(request.args.get("attributes"))
    bid = svc.parse_id(button_id)
    db = get_session()
    try:
        cb = svc.get_button(db, bid)
        return jsonify(svc.serialize_button(cb, _href(cb.id), attributes))
    finally:
        db.close()


@bp.post("/<button_id>")
def post_resource(button_id: str) -> ResponseReturnValue:
    data = _json_body(dict, allow_empty=True)
    raw_action = data.get("action")
    action = ButtonAction.parse(raw_action)
    if action is None or action is ButtonAction.CREATE:
        raise _unsupported(raw_action, resource=True)
    authorize(CUSTOM_BUTTONS, "resource", "post", action.value)
    bid = svc.parse_id(button_id)
    db = get_session()
    try:
        match action:
            case ButtonAction.EDIT:
                fields: Mapping[str, Any] = {k: v for k, v in data.items() if k != "action"}
                cb = svc.edit_button(db, bid, fields)
                return jsonify(svc.serialize_button(cb, _href(cb.id)))
            case ButtonAction.DELETE:
                svc.delete_button(db, bid)
                return jsonify(
                    {"success": True, "message": svc.delete_message(COLLECTION, bid), "href": _href(bid)}
                )
            case _:
                assert_never(action)
    finally:
        db.close()


@bp.put("/<button_id>")
@require_capability(CUSTOM_BUTTONS, "resource", "edit")
def replace_button(button_id: str) -> ResponseReturnValue:
    data = _json_body(dict)
    bid = svc.parse_id(button_id)
    db = get_session()
    try:
        cb = svc.replace_button(db, bid, data)
        return jsonify(svc.serialize_button(cb, _href(cb.id)))
    finally:
        db.close()


@bp.patch("/<button_id>")
@require_capability(CUSTOM_BUTTONS, "resource", "edit")
def patch_button(button_id: str) -> ResponseReturnValue:
    operations = _json_body(list)
    bid = svc.parse_id(button_id)
    db = get_session()
    try:
        cb = svc.patch_button(db, bid, operations)
        return jsonify(svc.serialize_button(cb, _href(cb.id)))
    finally:
        db.close()


@bp.delete("/<button_id>")
@require_capability(CUSTOM_BUTTONS, "resource", "delete")
def delete_button(button_id: str) -> ResponseReturnValue:
    bid = svc.parse_id(button_id)
    db = get_session()
    try:
        svc.delete_button(db, bid)
    finally:
        db.close()
    return "", 204
