"""Capability based authorization.

Every route names the capability identifier it needs through the collection
catalog (collection scope for `/custom_buttons`, resource scope for
`/custom_buttons/<id>`). The identifier is checked against the caller's role
by the authorization service attached to the app.

Raises SessionError (401) when no identity is present and AuthzError (403)
when the identity lacks the capability; central handlers render both.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, Protocol, TypeVar

from flask import current_app, request

from .api_catalog import CollectionSpec, Scope, Verb
from .app_sessions import SessionData, require_session
from .db import get_session
from .models import UserRole

P = ParamSpec("P")
R = TypeVar("R")

log = logging.getLogger("buttons_api.authz")

SUPER_ROLES = ("super_administrator",)
ALL_FEATURES = "everything"


class AuthzError(Exception):
    """Signals an authorization (403) failure to be caught by centralized handlers."""

    required: str | None

    def __init__(self, message: str = "forbidden", required: str | None = None):
        super().__init__(message)
        self.required = required


class AuthorizationService(Protocol):
    def is_allowed(self, identity: SessionData, identifier: str) -> bool: ...


class RoleFeatureAuthorizer:
    """Answers allow/deny from the feature list stored on the caller's role."""

    def role_features(self, role_name: str) -> set[str]:
        db = get_session()
        try:
            role = db.query(UserRole).filter(UserRole.name == role_name).first()
            if role is None:
                return set()
            return {str(f) for f in (role.features or [])}
        finally:
            db.close()

    def is_allowed(self, identity: SessionData, identifier: str) -> bool:
        if identity["role"] in SUPER_ROLES:
            return True
        features = self.role_features(identity["role"])
        return ALL_FEATURES in features or identifier in features


def _service() -> AuthorizationService:
    svc = getattr(current_app, "authorization_service", None)
    if svc is None:
        svc = RoleFeatureAuthorizer()
        current_app.authorization_service = svc  # type: ignore[attr-defined]
    return svc


def authorize(collection: CollectionSpec, scope: Scope, verb: Verb, action: str) -> SessionData:
    """Check the caller holds the identifier for (scope, verb, action); return the identity."""
    identity = require_session()
    identifier = collection.identifier(scope, verb, action)
    if not _service().is_allowed(identity, identifier):
        log.info(
            {
                "authz_denied": identifier,
                "userid": identity["userid"],
                "role": identity["role"],
                "path": request.path,
            }
        )
        raise AuthzError("forbidden", required=identifier)
    return identity


def require_capability(
    collection: CollectionSpec, scope: Scope, action: str, verb: Verb | None = None
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator form of authorize(); verb defaults to the request method."""

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            v = verb or request.method.lower()
            authorize(collection, scope, v, action)  # type: ignore[arg-type]
            return fn(*args, **kwargs)

        return wrapper

    return decorator


__all__ = [
    "AuthzError",
    "AuthorizationService",
    "RoleFeatureAuthorizer",
    "authorize",
    "require_capability",
    "SUPER_ROLES",
    "ALL_FEATURES",
]
