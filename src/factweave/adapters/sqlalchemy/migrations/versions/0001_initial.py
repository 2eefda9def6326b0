"""Create field store, context graph and diagnostic run tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from factweave.adapters.sqlalchemy.mappings import JsonText, UTCDateTime

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "field_store",
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("payload", JsonText(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("entity_id", name=op.f("pk_field_store")),
    )
    op.create_table(
        "context_graph",
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("payload", JsonText(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("entity_id", name=op.f("pk_context_graph")),
    )
    op.create_table(
        "diagnostic_run",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("raw_result", JsonText(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_diagnostic_run")),
    )
    op.create_index(
        "ix_diagnostic_run_entity_kind_created",
        "diagnostic_run",
        ["entity_id", "kind", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_diagnostic_run_entity_kind_created", table_name="diagnostic_run")
    op.drop_table("diagnostic_run")
    op.drop_table("context_graph")
    op.drop_table("field_store")
