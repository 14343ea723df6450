"""Caller identity helpers.

Authentication happens per request (bearer token or, under TESTING, the
X-User-* headers). The resolved identity lives on `g` for that request only;
nothing is written to the session cookie, so an expired or rotated token can
never be outlived by an earlier request's identity.
"""
from __future__ import annotations

from typing import TypedDict

from flask import g


class SessionData(TypedDict):
    userid: str
    role: str


def set_identity(userid: str, role: str) -> None:
    g.identity = SessionData(userid=str(userid), role=role)


def clear_identity() -> None:
    g.identity = None


def get_session() -> SessionData | None:
    data = g.get("identity")
    if not data or not data.get("userid") or not data.get("role"):
        return None
    return data


def require_session() -> SessionData:
    data = get_session()
    if data is None:
        raise SessionError("authentication required")
    return data


class SessionError(Exception):
    """Signals a 401 unauthorized due to missing/invalid identity."""
    def __init__(self, message: str = "authentication required"):
        super().__init__(message)

__all__ = [
    "SessionData",
    "set_identity",
    "clear_identity",
    "get_session",
    "require_session",
    "SessionError",
]
