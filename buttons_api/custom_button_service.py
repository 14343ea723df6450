"""Custom button service layer.

Service functions take an explicit Session and raise domain errors
(NotFoundError / ValidationError / BadRequestError); the blueprint owns
session lifetime, authorization and response shaping. Bulk helpers turn
per-item failures into `{success: false}` entries instead of raising, and
commit each item on its own so one failure never rolls back its siblings.
"""
from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from .api_types import PATCH_ACTIONS, ActionResult, ButtonRepresentation
from .errors import BadRequestError, DomainError, NotFoundError, ValidationError
from .models import CustomButton

log = logging.getLogger("buttons_api.custom_buttons")

EDITABLE_ATTRIBUTES: tuple[str, ...] = (
    "name",
    "description",
    "applies_to_class",
    "applies_to_id",
    "options",
)
READONLY_ATTRIBUTES: tuple[str, ...] = ("id", "href", "guid", "userid", "created_on", "updated_on")
ALL_ATTRIBUTES: tuple[str, ...] = READONLY_ATTRIBUTES + EDITABLE_ATTRIBUTES

# Reset values used by PUT (full replacement) and PATCH remove
_BLANK: dict[str, Any] = {
    "description": None,
    "applies_to_class": None,
    "applies_to_id": None,
    "options": {},
}

_HREF_ID = re.compile(r"/([0-9]+)/?$")
_DIGITS = re.compile(r"[0-9]+")

# Largest value a 64-bit signed INTEGER column holds
MAX_DB_INT = 2**63 - 1

HrefFor = Callable[[int], str]


# ---- Identifiers ---------------------------------------------------------------

def not_found_message(raw_id: object) -> str:
    return f"Couldn't find CustomButton with 'id'={raw_id}"


def parse_id(raw: object) -> int:
    """Accept an int, an ASCII digit string or an href ending in /<id>.

    Anything else, or a number no row could carry, is an unknown id.
    """
    value: int | None = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str):
        s = raw.strip()
        m = _DIGITS.fullmatch(s) or _HREF_ID.search(s)
        digits = m.group(m.lastindex or 0) if m else ""
        # Bound the length before int(); overlong digit strings are never ids
        if digits and len(digits.lstrip("0")) <= len(str(MAX_DB_INT)):
            value = int(digits)
    if value is None or not 1 <= value <= MAX_DB_INT:
        raise NotFoundError(not_found_message(raw))
    return value


def entry_id(entry: Mapping[str, Any]) -> int:
    """Resolve the target id of a bulk entry from its `id` or `href`."""
    raw = entry.get("id")
    if raw is None:
        raw = entry.get("href")
    if raw is None:
        raise BadRequestError("Resource id or href must be specified")
    return parse_id(raw)


def delete_message(collection: str, button_id: int) -> str:
    return f"{collection} id: {button_id} deleting"


# ---- Validation ----------------------------------------------------------------

def _check_attribute_names(data: Mapping[str, Any]) -> None:
    unknown = sorted(k for k in data if k not in EDITABLE_ATTRIBUTES)
    if unknown:
        raise BadRequestError(f"Invalid attribute(s) {', '.join(unknown)} specified for a custom button")


def _coerce(data: Mapping[str, Any]) -> dict[str, Any]:
    """Type-check submitted editable fields; returns a normalized copy."""
    out: dict[str, Any] = {}
    errors: list[dict[str, str]] = []
    for key, value in data.items():
        if key == "name":
            if not isinstance(value, str) or not value.strip():
                errors.append({"name": "name", "reason": "required"})
                continue
            out[key] = value
        elif key in ("description", "applies_to_class"):
            if value is not None and not isinstance(value, str):
                errors.append({"name": key, "reason": "invalid_type"})
                continue
            out[key] = value
        elif key == "applies_to_id":
            # JSON integers only; digit strings are rejected, not converted
            if value is None:
                out[key] = None
            elif not isinstance(value, int) or isinstance(value, bool):
                errors.append({"name": key, "reason": "invalid_type"})
            elif not -MAX_DB_INT - 1 <= value <= MAX_DB_INT:
                errors.append({"name": key, "reason": "out_of_range"})
            else:
                out[key] = value
        elif key == "options":
            if value is None:
                out[key] = {}
            elif isinstance(value, Mapping):
                out[key] = dict(value)
            else:
                errors.append({"name": key, "reason": "must_be_mapping"})
    if errors:
        raise ValidationError(errors, detail="; ".join(f"{e['name']}: {e['reason']}" for e in errors))
    return out


def _check_record(values: Mapping[str, Any]) -> None:
    name = values.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError.field("name", "required")
    if values.get("applies_to_id") is not None and not values.get("applies_to_class"):
        raise ValidationError.field("applies_to_class", "required_with_applies_to_id")


def _current_values(cb: CustomButton) -> dict[str, Any]:
    return {
        "name": cb.name,
        "description": cb.description,
        "applies_to_class": cb.applies_to_class,
        "applies_to_id": cb.applies_to_id,
        "options": dict(cb.options or {}),
    }


def _store(db: Session, cb: CustomButton, values: Mapping[str, Any]) -> CustomButton:
    for key in EDITABLE_ATTRIBUTES:
        if key in values:
            setattr(cb, key, values[key])
    cb.updated_on = datetime.now(UTC)
    db.commit()
    db.refresh(cb)
    return cb


# ---- Serialization -------------------------------------------------------------

def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def serialize_button(cb: CustomButton, href: str, attributes: Sequence[str] | None = None) -> ButtonRepresentation:
    full: ButtonRepresentation = {
        "href": href,
        "id": str(cb.id),
        "guid": cb.guid,
        "name": cb.name,
        "description": cb.description,
        "applies_to_class": cb.applies_to_class,
        "applies_to_id": cb.applies_to_id,
        "options": dict(cb.options or {}),
        "userid": cb.userid,
        "created_on": _iso(cb.created_on),
        "updated_on": _iso(cb.updated_on),
    }
    if not attributes:
        return full
    keep = {"href", "id", *attributes}
    return {k: v for k, v in full.items() if k in keep}  # type: ignore[return-value]


def parse_attributes(raw: str | None) -> list[str] | None:
    """Parse the `attributes` query parameter (comma separated)."""
    if not raw:
        return None
    names = [a.strip() for a in raw.split(",") if a.strip()]
    unknown = sorted(set(names) - set(ALL_ATTRIBUTES))
    if unknown:
        raise BadRequestError(f"Invalid attributes specified: {', '.join(unknown)}")
    return names


# ---- Single record operations --------------------------------------------------

def list_buttons(db: Session) -> tuple[list[CustomButton], int]:
    q = db.query(CustomButton)
    total = q.count()
    rows = q.order_by(CustomButton.id.asc()).all()
    return rows, total


def get_button(db: Session, button_id: int) -> CustomButton:
    cb = db.get(CustomButton, button_id)
    if cb is None:
        raise NotFoundError(not_found_message(button_id))
    return cb


def create_button(db: Session, payload: Mapping[str, Any], *, collection: str, userid: str | None = None) -> CustomButton:
    if "id" in payload or "href" in payload:
        raise BadRequestError(f"Resource id or href should not be specified for creating a new {collection}")
    _check_attribute_names(payload)
    values = {**_BLANK, **_coerce(payload)}
    _check_record(values)
    cb = CustomButton(userid=userid)
    db.add(cb)
    try:
        _store(db, cb, values)
    except Exception:
        db.rollback()
        raise
    log.info("custom_button created id=%s name=%s userid=%s", cb.id, cb.name, userid)
    return cb


def edit_button(db: Session, button_id: int, payload: Mapping[str, Any]) -> CustomButton:
    """Partial update: only submitted fields change."""
    cb = get_button(db, button_id)
    fields = {k: v for k, v in payload.items() if k not in ("id", "href")}
    _check_attribute_names(fields)
    values = {**_current_values(cb), **_coerce(fields)}
    _check_record(values)
    try:
        _store(db, cb, values)
    except Exception:
        db.rollback()
        raise
    log.info("custom_button edited id=%s fields=%s", cb.id, sorted(fields))
    return cb


def replace_button(db: Session, button_id: int, payload: Mapping[str, Any]) -> CustomButton:
    """Full replacement: editable fields missing from payload are reset."""
    cb = get_button(db, button_id)
    fields = {k: v for k, v in payload.items() if k not in ("id", "href")}
    _check_attribute_names(fields)
    values = {**_BLANK, **_coerce(fields)}
    _check_record(values)
    try:
        _store(db, cb, values)
    except Exception:
        db.rollback()
        raise
    log.info("custom_button replaced id=%s", cb.id)
    return cb


def _split_path(raw: object) -> tuple[str, str | None]:
    if not isinstance(raw, str) or not raw.strip("/ "):
        raise BadRequestError("Patch path must be an attribute name")
    parts = raw.strip().strip("/").split("/", 1)
    attr = parts[0]
    sub = parts[1] if len(parts) > 1 else None
    if attr not in EDITABLE_ATTRIBUTES:
        raise BadRequestError(f"Invalid attribute(s) {attr} specified for a custom button")
    if sub is not None and attr != "options":
        raise BadRequestError(f"Attribute {attr} has no nested keys")
    return attr, sub


def apply_patch(current: Mapping[str, Any], operations: object) -> dict[str, Any]:
    """Apply patch operations in order to a copy of `current`.

    Each operation is {action: edit|add|remove, path, value}. `options/<key>`
    addresses a single key of the options mapping. Later operations on the
    same path override earlier ones.
    """
    if not isinstance(operations, list):
        raise BadRequestError("Patch body must be a list of operations")
    values = dict(current)
    values["options"] = dict(values.get("options") or {})
    for op in operations:
        if not isinstance(op, Mapping):
            raise BadRequestError("Patch operation must be an object")
        action = op.get("action")
        if action not in PATCH_ACTIONS:
            raise BadRequestError(f"Unsupported patch action {action}")
        attr, sub = _split_path(op.get("path"))
        if action == "remove":
            if attr == "name":
                raise ValidationError.field("name", "required")
            if sub is not None:
                values["options"].pop(sub, None)
            else:
                values[attr] = {} if attr == "options" else _BLANK[attr]
            continue
        if "value" not in op:
            raise BadRequestError(f"Patch {action} on {op.get('path')} requires a value")
        if sub is not None:
            values["options"][sub] = op["value"]
        else:
            values.update(_coerce({attr: op["value"]}))
    return values


def patch_button(db: Session, button_id: int, operations: object) -> CustomButton:
    cb = get_button(db, button_id)
    values = apply_patch(_current_values(cb), operations)
    _check_record(values)
    try:
        _store(db, cb, values)
    except Exception:
        db.rollback()
        raise
    log.info("custom_button patched id=%s ops=%s", cb.id, len(operations) if isinstance(operations, list) else 0)
    return cb


def delete_button(db: Session, button_id: int) -> None:
    cb = get_button(db, button_id)
    try:
        db.delete(cb)
        db.commit()
    except Exception:
        db.rollback()
        raise
    log.info("custom_button deleted id=%s", button_id)


# ---- Bulk operations -----------------------------------------------------------

def _failure(message: str, href: str | None = None) -> ActionResult:
    res: ActionResult = {"success": False, "message": message}
    if href:
        res["href"] = href
    return res


def _unexpected_failure(db: Session, op: str, href: str | None) -> ActionResult:
    """Turn an unexpected per-item error into a failure entry; siblings carry on."""
    db.rollback()
    incident_id = str(uuid.uuid4())
    log.exception("custom_button bulk %s item crashed incident_id=%s href=%s", op, incident_id, href)
    return _failure(f"internal_error incident_id={incident_id}", href)


def _entries(resources: object) -> list[Any]:
    if not isinstance(resources, list) or not resources:
        raise BadRequestError("resources must be a non-empty list")
    return resources


def bulk_create(db: Session, resources: object, *, collection: str, userid: str | None, href_for: HrefFor) -> list[ButtonRepresentation]:
    # Creation is all-or-nothing per request: validate every entry before the first insert
    entries = _entries(resources)
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise BadRequestError("each resource must be an object")
        if "id" in entry or "href" in entry:
            raise BadRequestError(f"Resource id or href should not be specified for creating a new {collection}")
        _check_attribute_names(entry)
        _check_record({**_BLANK, **_coerce(entry)})
    out: list[ButtonRepresentation] = []
    for entry in entries:
        cb = create_button(db, entry, collection=collection, userid=userid)
        out.append(serialize_button(cb, href_for(cb.id)))
    return out


def bulk_edit(db: Session, resources: object, *, href_for: HrefFor) -> list[ButtonRepresentation | ActionResult]:
    results: list[ButtonRepresentation | ActionResult] = []
    for entry in _entries(resources):
        href = None
        try:
            if not isinstance(entry, Mapping):
                raise BadRequestError("each resource must be an object")
            bid = entry_id(entry)
            href = href_for(bid)
            cb = edit_button(db, bid, entry)
            results.append(serialize_button(cb, href))
        except DomainError as err:
            log.info("custom_button bulk edit item failed: %s", err.detail)
            results.append(_failure(err.detail, href))
        except Exception:
            results.append(_unexpected_failure(db, "edit", href))
    return results


def bulk_delete(db: Session, resources: object, *, collection: str, href_for: HrefFor) -> list[ActionResult]:
    results: list[ActionResult] = []
    for entry in _entries(resources):
        href = None
        try:
            if not isinstance(entry, Mapping):
                raise BadRequestError("each resource must be an object")
            bid = entry_id(entry)
            href = href_for(bid)
            delete_button(db, bid)
            results.append({"success": True, "message": delete_message(collection, bid), "href": href})
        except DomainError as err:
            log.info("custom_button bulk delete item failed: %s", err.detail)
            results.append(_failure(err.detail, href))
        except Exception:
            results.append(_unexpected_failure(db, "delete", href))
    return results


__all__ = [
    "EDITABLE_ATTRIBUTES",
    "READONLY_ATTRIBUTES",
    "ALL_ATTRIBUTES",
    "parse_id",
    "entry_id",
    "delete_message",
    "not_found_message",
    "serialize_button",
    "parse_attributes",
    "list_buttons",
    "get_button",
    "create_button",
    "edit_button",
    "replace_button",
    "apply_patch",
    "patch_button",
    "delete_button",
    "bulk_create",
    "bulk_edit",
    "bulk_delete",
]
