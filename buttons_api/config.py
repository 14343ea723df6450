from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class Config:
    secret_key: str = "change-me"
    database_url: str = "sqlite:///buttons.db"
    api_prefix: str = "/api"
    jwt_secrets: list[str] = field(default_factory=list)  # first element used for signing; all accepted for verification
    jwt_leeway_seconds: int = 60
    options_require_auth: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Config:
        jwt_multi = os.getenv("JWT_SECRETS", "")
        # JWT_SECRETS allows key rotation: comma-separated secrets; first used for signing.
        jwt_list = [s for s in [j.strip() for j in jwt_multi.split(",")] if s]
        prefix = os.getenv("API_PREFIX", "/api").rstrip("/")
        return cls(
            secret_key=os.getenv("SECRET_KEY", "change-me"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///buttons.db"),
            api_prefix=prefix or "/api",
            jwt_secrets=jwt_list,
            jwt_leeway_seconds=int(os.getenv("JWT_LEEWAY_SECONDS", "60")),
            options_require_auth=bool(int(os.getenv("OPTIONS_REQUIRE_AUTH", "0"))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def override(self, d: dict):
        for k, v in d.items():
            if hasattr(self, k):
                setattr(self, k, v)

    def to_flask_dict(self):
        return {
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "API_PREFIX": self.api_prefix,
            "JWT_SECRETS": self.jwt_secrets,
            "JWT_LEEWAY_SECONDS": self.jwt_leeway_seconds,
            "OPTIONS_REQUIRE_AUTH": self.options_require_auth,
            "LOG_LEVEL": self.log_level,
            "SESSION_COOKIE_HTTPONLY": True,
            "SESSION_COOKIE_SAMESITE": "Lax",
        }
