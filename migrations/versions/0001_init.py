"""Initial schema: custom buttons and the catalogs behind OPTIONS

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    conn = op.get_bind()
    dialect = conn.dialect.name if conn is not None else "sqlite"
    true_def = sa.text("TRUE") if dialect == "postgresql" else sa.text("1")
    op.create_table(
        "custom_buttons",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("guid", sa.String(length=36), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("applies_to_class", sa.String(length=255)),
        sa.Column("applies_to_id", sa.Integer()),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("userid", sa.String(length=255)),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_on", sa.DateTime(timezone=True), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_custom_buttons_applies_to", "custom_buttons", ["applies_to_class", "applies_to_id"])
    op.create_table(
        "dialogs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
    )
    op.create_table(
        "user_roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("features", sa.JSON(), nullable=False),
    )
    op.create_table(
        "automate_domains",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=true_def),
    )
    op.create_table(
        "automate_instances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("domain_id", sa.Integer(), sa.ForeignKey("automate_domains.id"), nullable=False),
        sa.Column("namespace", sa.String(length=255), nullable=False),
        sa.Column("class_name", sa.String(length=120), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
    )
    op.create_index("ix_automate_instances_path", "automate_instances", ["namespace", "class_name"])


def downgrade() -> None:
    op.drop_index("ix_automate_instances_path", table_name="automate_instances")
    op.drop_table("automate_instances")
    op.drop_table("automate_domains")
    op.drop_table("user_roles")
    op.drop_table("dialogs")
    op.drop_index("ix_custom_buttons_applies_to", table_name="custom_buttons")
    op.drop_table("custom_buttons")
