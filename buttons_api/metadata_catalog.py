"""Read-only aggregations served by OPTIONS /api/custom_buttons."""
from __future__ import annotations

from sqlalchemy.orm import Session, joinedload

from .api_types import OptionsDocument
from .models import AutomateDomain, AutomateInstance, Dialog, UserRole

# Supported button kinds (key -> display label)
CUSTOM_BUTTON_TYPES: dict[str, str] = {
    "default": "Default",
    "ansible_playbook": "Ansible Playbook",
}

# Namespace/class searched for instances offered as button targets
DEFAULT_INSTANCE_PATH = "SYSTEM/PROCESS"


def custom_button_types() -> dict[str, str]:
    return dict(CUSTOM_BUTTON_TYPES)


def service_dialogs(db: Session) -> list[list[object]]:
    rows = db.query(Dialog.id, Dialog.label).all()
    return [[r[0], r[1]] for r in sorted(rows, key=lambda r: (r[0], r[1] or ""))]


def _split_path(path: str) -> tuple[str, str]:
    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) < 2:
        raise ValueError(f"instance path needs namespace and class: {path!r}")
    return "/".join(parts[:-1]), parts[-1]


def find_distinct_instances_across_domains(db: Session, path: str = DEFAULT_INSTANCE_PATH) -> list[AutomateInstance]:
    """One instance per distinct name under `path`, over enabled domains.

    When the same name exists in several domains the instance from the domain
    with the highest priority wins; equal priorities fall back to domain name.
    Matching on namespace/class is case-insensitive. Result is ordered by
    winning domain (priority desc) then instance name.
    """
    namespace, class_name = _split_path(path)
    rows = (
        db.query(AutomateInstance)
        .join(AutomateDomain, AutomateInstance.domain_id == AutomateDomain.id)
        .options(joinedload(AutomateInstance.domain))
        .filter(AutomateDomain.enabled.is_(True))
        .all()
    )
    ns_key, cls_key = namespace.lower(), class_name.lower()
    candidates = [
        r for r in rows if r.namespace.lower() == ns_key and r.class_name.lower() == cls_key
    ]
    candidates.sort(key=lambda r: (-(r.domain.priority or 0), r.domain.name, r.name))
    seen: set[str] = set()
    winners: list[AutomateInstance] = []
    for inst in candidates:
        key = inst.name.lower()
        if key in seen:
            continue
        seen.add(key)
        winners.append(inst)
    return winners


def distinct_instance_names(db: Session, path: str = DEFAULT_INSTANCE_PATH) -> list[str]:
    return sorted(i.name for i in find_distinct_instances_across_domains(db, path))


def user_roles(db: Session) -> list[str]:
    return sorted(r[0] for r in db.query(UserRole.name).all())


def options_document(db: Session) -> OptionsDocument:
    return {
        "custom_button_types": custom_button_types(),
        "service_dialogs": service_dialogs(db),
        "distinct_instances_across_domains": distinct_instance_names(db),
        "user_roles": user_roles(db),
    }


__all__ = [
    "CUSTOM_BUTTON_TYPES",
    "DEFAULT_INSTANCE_PATH",
    "custom_button_types",
    "service_dialogs",
    "find_distinct_instances_across_domains",
    "distinct_instance_names",
    "user_roles",
    "options_document",
]
