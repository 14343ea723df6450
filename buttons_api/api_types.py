"""Request/response contracts for the custom buttons collection.

TypedDicts document the wire shapes; ButtonAction is the closed set of
operations a POST body may carry in its `action` field.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, NotRequired, TypedDict


class ButtonAction(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"

    @classmethod
    def parse(cls, raw: object, default: ButtonAction | None = None) -> ButtonAction | None:
        """Map a raw `action` value to a member; None when absent or unknown.

        An absent action yields `default` so POST on the collection without an
        action means create.
        """
        if raw is None or raw == "":
            return default
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


PatchAction = Literal["edit", "add", "remove"]
PATCH_ACTIONS: tuple[PatchAction, ...] = ("edit", "add", "remove")


class ButtonRepresentation(TypedDict, total=False):
    href: str
    id: str
    guid: str
    name: str
    description: str | None
    applies_to_class: str | None
    applies_to_id: int | None
    options: dict[str, Any]
    userid: str | None
    created_on: str | None
    updated_on: str | None


class ResourceRef(TypedDict):
    href: str


class ListEnvelope(TypedDict):
    name: str
    count: int
    subcount: int
    resources: list[ResourceRef] | list[ButtonRepresentation]


class ActionResult(TypedDict):
    success: bool
    message: str
    href: NotRequired[str]


class ResultsEnvelope(TypedDict):
    results: list[ButtonRepresentation | ActionResult]


class PatchOperation(TypedDict):
    action: PatchAction
    path: str
    value: NotRequired[Any]


class OptionsDocument(TypedDict):
    custom_button_types: dict[str, str]
    service_dialogs: list[list[Any]]
    distinct_instances_across_domains: list[str]
    user_roles: list[str]


__all__ = [
    "ButtonAction",
    "PatchAction",
    "PATCH_ACTIONS",
    "ButtonRepresentation",
    "ResourceRef",
    "ListEnvelope",
    "ActionResult",
    "ResultsEnvelope",
    "PatchOperation",
    "OptionsDocument",
]
