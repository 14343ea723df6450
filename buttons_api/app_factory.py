"""Flask application factory.

Provides:
 - App factory with configuration override (dataclass keys or upper-case Flask keys)
 - DB engine initialization
 - Per-request caller identity from bearer token or test headers
 - RFC7807 problem+json error handlers
 - Request id / timing middleware with one structured log line per request
 - Blueprint registration (custom buttons) plus /healthz and OpenAPI spec
"""

from __future__ import annotations

import time
import uuid
from typing import Any

from dotenv import load_dotenv
from flask import Flask, g, request
from werkzeug.wrappers.response import Response

from .api_catalog import COLLECTIONS
from .app_authz import RoleFeatureAuthorizer
from .app_sessions import clear_identity, get_session as current_identity, set_identity
from .config import Config
from .custom_buttons_api import COLLECTION, bp as custom_buttons_bp
from .db import init_engine, remove_session
from .errors import register_error_handlers
from .jwt_utils import JWTError, decode as jwt_decode
from .logging_setup import configure_logging
from .openapi import build_spec


def _load_identity(app: Flask) -> None:
    clear_identity()
    if app.config.get("TESTING"):
        role = request.headers.get("X-User-Role")
        uid = request.headers.get("X-User-Id")
        if role:
            set_identity(uid or "api_user", role)
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(None, 1)[1].strip()
        try:
            payload = jwt_decode(
                token,
                secrets_list=app.config.get("JWT_SECRETS") or [],
                leeway=app.config.get("JWT_LEEWAY_SECONDS", 60),
            )
        except JWTError as e:
            # Invalid bearer -> no identity even if test headers were sent; protected routes answer 401
            app.logger.debug({"jwt_reject": str(e)})
            clear_identity()
            return
        set_identity(payload["sub"], payload["role"])


def create_app(config_override: dict[str, Any] | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    # --- Configuration ---
    cfg = Config.from_env()
    if config_override:
        known = {k: v for k, v in config_override.items() if hasattr(cfg, k)}
        if known:
            cfg.override(known)
    app.config.update(cfg.to_flask_dict())
    if config_override:
        for k, v in config_override.items():  # also allow direct Flask config keys
            if k.isupper():
                app.config[k] = v
    app.json.sort_keys = False  # type: ignore[attr-defined]

    log = configure_logging(cfg.log_level)

    # --- DB setup ---
    init_engine(cfg.database_url, force=bool(app.config.get("FORCE_DB_REINIT")))
    log.info({"startup": True, "database_url": cfg.database_url.split("@")[-1], "api_prefix": cfg.api_prefix})

    app.authorization_service = RoleFeatureAuthorizer()  # type: ignore[attr-defined]

    # --- Logging / timing middleware ---
    @app.before_request
    def _before_req() -> None:
        g._t0 = time.perf_counter()
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        _load_identity(app)

    @app.after_request
    def _after_req(resp: Response) -> Response:
        dur_ms = int((time.perf_counter() - getattr(g, "_t0", time.perf_counter())) * 1000)
        rid = getattr(g, "request_id", str(uuid.uuid4()))
        resp.headers["X-Request-Id"] = rid
        resp.headers["X-Request-Duration-ms"] = str(dur_ms)
        if "Cache-Control" not in resp.headers:
            resp.headers["Cache-Control"] = "no-store"
        ident = current_identity()
        log.info(
            {
                "request_id": rid,
                "userid": (ident or {}).get("userid"),
                "role": (ident or {}).get("role"),
                "method": request.method,
                "path": request.path,
                "status": resp.status_code,
                "duration_ms": dur_ms,
            }
        )
        return resp

    @app.teardown_appcontext
    def _teardown(_exc: BaseException | None) -> None:
        remove_session()

    register_error_handlers(app)

    # --- Register blueprints ---
    app.register_blueprint(custom_buttons_bp, url_prefix=f"{cfg.api_prefix}/{COLLECTION}")

    @app.get("/healthz")
    def healthz() -> tuple[dict[str, Any], int]:
        # Minimal health endpoint for container orchestrators
        return {"status": "ok", "collections": sorted(COLLECTIONS)}, 200

    @app.get(f"{cfg.api_prefix}/openapi.json")
    def openapi_spec() -> dict[str, Any]:
        return build_spec(cfg.api_prefix)

    return app


__all__ = ["create_app"]
