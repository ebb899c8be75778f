"""Create resources table

Revision ID: 001_create_resources
Revises:
Create Date: 2026-10-17

One table for every resource kind, unique per (kind, namespace, name).
resource_version is the optimistic concurrency counter.
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_create_resources"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "resources",
        sa.Column("uid", sa.String(length=36), primary_key=True),
        sa.Column("api_version", sa.String(length=128), nullable=False),
        sa.Column("kind", sa.String(length=64), nullable=False),
        sa.Column("namespace", sa.String(length=253), nullable=False),
        sa.Column("name", sa.String(length=253), nullable=False),
        sa.Column("labels", sa.JSON, nullable=False),
        sa.Column("body", sa.JSON, nullable=False),
        sa.Column("resource_version", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("kind", "namespace", "name", name="uq_resources_kind_namespace_name"),
    )

    op.create_index("ix_resources_kind", "resources", ["kind"])
    op.create_index("ix_resources_namespace", "resources", ["namespace"])


def downgrade() -> None:
    op.drop_index("ix_resources_namespace", table_name="resources")
    op.drop_index("ix_resources_kind", table_name="resources")
    op.drop_table("resources")
