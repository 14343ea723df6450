"""Collection catalog: names, verbs and capability identifiers per action.

Every authorization check resolves its identifier here, so the permission a
route demands is declared in one table instead of being scattered across
decorators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Scope = Literal["collection", "resource"]
Verb = Literal["get", "post", "put", "patch", "delete", "options"]


class UnknownActionError(LookupError):
    """No identifier is declared for the (scope, verb, action) triple."""


@dataclass(frozen=True)
class CollectionSpec:
    name: str
    description: str
    klass: str
    verbs: tuple[Verb, ...]
    identifiers: dict[tuple[Scope, Verb, str], str] = field(default_factory=dict)

    def identifier(self, scope: Scope, verb: Verb, action: str) -> str:
        try:
            return self.identifiers[(scope, verb, action)]
        except KeyError:
            raise UnknownActionError(f"{scope} {verb} {action}") from None

    def actions(self, scope: Scope, verb: Verb) -> list[str]:
        return sorted(a for (s, v, a) in self.identifiers if s == scope and v == verb)


CUSTOM_BUTTONS = CollectionSpec(
    name="custom_buttons",
    description="Custom Buttons",
    klass="CustomButton",
    verbs=("get", "post", "put", "patch", "delete", "options"),
    identifiers={
        ("collection", "get", "read"): "custom_button_show_list",
        ("collection", "post", "create"): "custom_button_new",
        ("collection", "post", "edit"): "custom_button_edit",
        ("collection", "post", "delete"): "custom_button_delete",
        ("resource", "get", "read"): "custom_button_show",
        ("resource", "post", "edit"): "custom_button_edit",
        ("resource", "post", "delete"): "custom_button_delete",
        ("resource", "put", "edit"): "custom_button_edit",
        ("resource", "patch", "edit"): "custom_button_edit",
        ("resource", "delete", "delete"): "custom_button_delete",
    },
)

COLLECTIONS: dict[str, CollectionSpec] = {CUSTOM_BUTTONS.name: CUSTOM_BUTTONS}


def get_collection(name: str) -> CollectionSpec:
    return COLLECTIONS[name]


def all_identifiers() -> list[str]:
    return sorted({ident for spec in COLLECTIONS.values() for ident in spec.identifiers.values()})


__all__ = [
    "Scope",
    "Verb",
    "CollectionSpec",
    "UnknownActionError",
    "CUSTOM_BUTTONS",
    "COLLECTIONS",
    "get_collection",
    "all_identifiers",
]
