"""Create context graph document and revision tables.

Revision ID: 0001_create_context_graph
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from contextgraph.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_create_context_graph"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "context_graph",
        sa.Column("company_id", sa.String(length=128), nullable=False),
        sa.Column("document", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("updated_by", sa.String(length=255), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("company_id", name=op.f("pk_context_graph")),
    )
    op.create_table(
        "context_graph_revision",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("company_id", sa.String(length=128), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("document", sa.Text(), nullable=False),
        sa.Column("updated_by", sa.String(length=255), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["company_id"],
            ["context_graph.company_id"],
            name=op.f("fk_context_graph_revision_company_id_context_graph"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_context_graph_revision")),
    )
    with op.batch_alter_table("context_graph_revision", schema=None) as batch_op:
        batch_op.create_index(
            "ix_context_graph_revision_company_version",
            ["company_id", "version"],
            unique=True,
        )


def downgrade() -> None:
    with op.batch_alter_table("context_graph_revision", schema=None) as batch_op:
        batch_op.drop_index("ix_context_graph_revision_company_version")
    op.drop_table("context_graph_revision")
    op.drop_table("context_graph")
