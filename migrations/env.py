"""Alembic environment for the custom buttons schema.

Database URL, first match wins:
  1. `database_url` attribute set by tools/init_db.py
  2. DATABASE_URL (environment or .env)
  3. sqlalchemy.url in alembic.ini
"""
from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from buttons_api.db import _normalize_url  # noqa: E402
from buttons_api.models import Base  # noqa: E402

alembic_cfg = context.config

if alembic_cfg.config_file_name:
    fileConfig(alembic_cfg.config_file_name, disable_existing_loggers=False)

load_dotenv()
_url = alembic_cfg.attributes.get("database_url") or os.getenv("DATABASE_URL")
if _url:
    alembic_cfg.set_main_option("sqlalchemy.url", _normalize_url(_url))

target_metadata = Base.metadata


def _configure(**kw) -> None:
    # sqlite needs batch mode for ALTER
    context.configure(target_metadata=target_metadata, render_as_batch=True, **kw)
    with context.begin_transaction():
        context.run_migrations()


def upgrade_offline() -> None:
    """Emit SQL to stdout (alembic upgrade --sql)."""
    _configure(url=alembic_cfg.get_main_option("sqlalchemy.url"), literal_binds=True)


def upgrade_online() -> None:
    engine = engine_from_config(
        alembic_cfg.get_section(alembic_cfg.config_ini_section) or {},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)


if context.is_offline_mode():
    upgrade_offline()
else:
    upgrade_online()
