from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from typing import Any, TypedDict

"""Bearer token helpers (HS256).

Tokens carry the caller identity (`sub`) and role name (`role`). Multiple
shared secrets are accepted for verification so secrets can be rotated; the
first one signs.
"""

DEFAULT_ACCESS_TTL = 600  # 10 min
SKEW_SECS = 30

ALG_HS256 = "HS256"


class JWTError(Exception):
    pass


class AccessTokenPayload(TypedDict):
    sub: str
    role: str
    iat: int
    exp: int


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + pad)


def _sign(msg: bytes, secret: str) -> str:
    sig = hmac.new(secret.encode(), msg, hashlib.sha256).digest()
    return _b64url(sig)


def encode(payload: dict[str, Any], *, secret: str, ttl: int = DEFAULT_ACCESS_TTL) -> str:
    now = int(time.time())
    header = {"alg": ALG_HS256, "typ": "JWT"}
    pl = payload.copy()
    pl.setdefault("iat", now)
    pl.setdefault("exp", now + ttl)
    header_b = _b64url(json.dumps(header, separators=(",", ":")).encode())
    payload_b = _b64url(json.dumps(pl, separators=(",", ":")).encode())
    msg = f"{header_b}.{payload_b}".encode()
    return f"{header_b}.{payload_b}.{_sign(msg, secret)}"


def decode(
    token: str,
    *,
    secrets_list: list[str] | None,
    verify_exp: bool = True,
    leeway: int = SKEW_SECS,
) -> AccessTokenPayload:
    try:
        header_b, payload_b, sig = token.split(".")
    except ValueError as e:
        raise JWTError("malformed token") from e
    try:
        header_raw = json.loads(_b64url_decode(header_b))
    except Exception as e:  # pragma: no cover
        raise JWTError("bad header") from e
    if not isinstance(header_raw, dict) or header_raw.get("alg") != ALG_HS256:
        raise JWTError("alg")
    secrets_to_try = [s for s in (secrets_list or []) if s]
    if not secrets_to_try:
        raise JWTError("bad signature")
    msg = f"{header_b}.{payload_b}".encode()
    for sec in secrets_to_try:
        if hmac.compare_digest(_sign(msg, sec), sig):
            break
    else:
        raise JWTError("bad signature")
    try:
        raw = json.loads(_b64url_decode(payload_b))
    except Exception as e:  # pragma: no cover
        raise JWTError("bad payload") from e
    if not isinstance(raw, dict):  # pragma: no cover
        raise JWTError("bad payload type")

    def _req(key: str, t: type | tuple[type, ...]) -> Any:
        if key not in raw:
            raise JWTError(f"missing claim {key}")
        val = raw[key]
        if not isinstance(val, t):
            raise JWTError(f"bad claim type {key}")
        return val

    sub = _req("sub", (str, int))
    role = _req("role", str)
    iat = _req("iat", int)
    exp = _req("exp", int)
    now = int(time.time())
    if verify_exp:
        if now > exp + leeway:
            raise JWTError("token expired")
        if iat > now + leeway:
            raise JWTError("iat_future")
    return AccessTokenPayload(sub=str(sub), role=role, iat=iat, exp=exp)


__all__ = ["JWTError", "AccessTokenPayload", "encode", "decode", "DEFAULT_ACCESS_TTL"]
