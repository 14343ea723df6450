"""Domain error system + RFC7807 handler registration."""
from __future__ import annotations

import logging
import traceback
import uuid
from collections.abc import Callable
from typing import Any

from flask import request
from werkzeug.wrappers.response import Response

from .app_authz import AuthzError
from .app_sessions import SessionError
from .http_errors import (
    bad_request,
    forbidden,
    internal_server_error,
    method_not_allowed,
    not_found,
    unauthorized,
    unprocessable_entity,
)

log = logging.getLogger("buttons_api")


class DomainError(Exception):
    def __init__(self, status: int, code: str, detail: str | None = None, **extra: Any):
        self.status = status
        self.code = code
        self.detail = detail or code
        self.extra = extra
        super().__init__(self.detail)


class BadRequestError(DomainError):
    def __init__(self, detail: str = "bad_request", **extra: Any):
        super().__init__(400, "bad_request", detail, **extra)


class NotFoundError(DomainError):
    def __init__(self, detail: str = "not_found", **extra: Any):
        super().__init__(404, "not_found", detail, **extra)


class ValidationError(DomainError):
    """Field-level failure; errors is a list of {name, reason} dicts."""

    def __init__(self, errors: Any, detail: str = "validation_error", **extra: Any):
        super().__init__(422, "validation_error", detail, errors=errors, **extra)
        self.errors = errors

    @classmethod
    def field(cls, name: str, reason: str) -> ValidationError:
        return cls([{"name": name, "reason": reason}], detail=f"{name}: {reason}")


_STATUS_HELPERS: dict[int, Callable[..., Response]] = {
    400: bad_request,
    401: unauthorized,
    403: forbidden,
    404: not_found,
    405: method_not_allowed,
}


def register_error_handlers(app: Any) -> None:
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(SessionError)
    def _h_session(err: SessionError) -> Response:
        return unauthorized(detail=str(err) or "authentication_required")

    @app.errorhandler(AuthzError)
    def _h_authz(err: AuthzError) -> Response:
        # Include required capability when available
        required = getattr(err, "required", None)
        extra = {"required_capability": required} if required else {}
        return forbidden(detail=str(err) or "forbidden", **extra)

    @app.errorhandler(DomainError)
    def _h_domain(err: DomainError) -> Response:
        if err.status == 422:
            others = {k: v for k, v in err.extra.items() if k != "errors"}
            return unprocessable_entity(err.extra.get("errors") or getattr(err, "errors", []), detail=err.detail, **others)
        helper = _STATUS_HELPERS.get(err.status)
        if helper:
            return helper(detail=err.detail, **err.extra)
        return bad_request(detail=err.detail, **err.extra)

    @app.errorhandler(HTTPException)
    def _h_http(ex: HTTPException) -> Response:
        status = ex.code or 500
        helper = _STATUS_HELPERS.get(status)
        if helper:
            resp = helper(detail=ex.description)
        elif status >= 500:
            resp = internal_server_error()
        else:
            resp = bad_request(detail=str(ex.description))
        if status == 405:
            allowed = ex.get_headers()
            for k, v in allowed:
                if k.lower() == "allow":
                    resp.headers["Allow"] = v
        return resp

    @app.errorhandler(Exception)
    def _h_exception(ex: Exception) -> Response:
        incident_id = str(uuid.uuid4())
        log.error("Unhandled exception incident_id=%s path=%s\n%s", incident_id, request.path, traceback.format_exc())
        return internal_server_error(incident_id=incident_id)


__all__ = [
    "DomainError",
    "BadRequestError",
    "NotFoundError",
    "ValidationError",
    "register_error_handlers",
]
