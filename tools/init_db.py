"""Create/upgrade the schema and optionally seed demo catalogs.

Usage:
  python tools/init_db.py           # alembic upgrade head
  python tools/init_db.py --seed    # ... then seed roles, dialogs, automate domains
"""
from __future__ import annotations

import argparse
import os
import sys

from alembic import command
from alembic.config import Config as AlembicConfig

# Ensure project root on path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from buttons_api.api_catalog import all_identifiers  # noqa: E402
from buttons_api.config import Config  # noqa: E402
from buttons_api.db import get_session, init_engine  # noqa: E402
from buttons_api.models import AutomateDomain, AutomateInstance, Dialog, UserRole  # noqa: E402

# (domain, priority, instance names under SYSTEM/PROCESS)
DEMO_DOMAINS: tuple[tuple[str, int, tuple[str, ...]], ...] = (
    ("DOMAIN1", 10, ("inst3", "inst4")),
    ("DOMAIN2", 20, ("inst31", "inst41")),
    ("DOMAIN3", 50, ("inst1", "inst2", "inst32", "inst4")),
)


def run_migrations(database_url: str) -> None:
    acfg = AlembicConfig(os.path.join(ROOT, "alembic.ini"))
    acfg.set_main_option("script_location", os.path.join(ROOT, "migrations"))
    acfg.attributes["database_url"] = database_url
    command.upgrade(acfg, "head")


def seed_demo() -> None:
    db = get_session()
    try:
        roles = {r.name for r in db.query(UserRole).all()}
        if "api_admin" not in roles:
            db.add(UserRole(name="api_admin", features=all_identifiers()))
        if "api_reader" not in roles:
            db.add(UserRole(name="api_reader", features=["custom_button_show_list", "custom_button_show"]))
        if not db.query(Dialog).first():
            db.add_all([Dialog(label="Provision VM"), Dialog(label="Retire Service")])
        existing = {d.name for d in db.query(AutomateDomain).all()}
        for name, priority, instances in DEMO_DOMAINS:
            if name in existing:
                continue
            dom = AutomateDomain(name=name, priority=priority, enabled=True)
            dom.instances = [
                AutomateInstance(namespace="SYSTEM", class_name="PROCESS", name=i) for i in instances
            ]
            db.add(dom)
        db.commit()
        print("Seeded roles api_admin/api_reader, dialogs and automate domains")
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--seed", action="store_true", help="seed demo roles, dialogs and domains")
    args = parser.parse_args(argv)
    url = Config.from_env().database_url
    print(f"Using DATABASE_URL={url}")
    run_migrations(url)
    if args.seed:
        init_engine(url, force=True)
        seed_demo()
    print("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
