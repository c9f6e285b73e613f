"""Seating charts with optimistic revision and version snapshots

Revision ID: s1a2b3c4d5e6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "s1a2b3c4d5e6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "seating_charts",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("department", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("layout_data", sa.Text(), nullable=False),
        sa.Column("metadata", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("revision", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("seating_charts", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_seating_charts_department"), ["department"], unique=False)
        batch_op.create_index(batch_op.f("ix_seating_charts_is_active"), ["is_active"], unique=False)
        batch_op.create_index(
            "ix_seating_charts_dept_active_updated",
            ["department", "is_active", "updated_at"],
            unique=False,
        )

    op.create_table(
        "seating_chart_versions",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("chart_id", sa.String(length=64), nullable=False),
        sa.Column("version_data", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["chart_id"], ["seating_charts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("seating_chart_versions", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_seating_chart_versions_chart_id"), ["chart_id"], unique=False)
        batch_op.create_index(
            "ix_seating_chart_versions_chart_created",
            ["chart_id", "created_at"],
            unique=False,
        )


def downgrade():
    with op.batch_alter_table("seating_chart_versions", schema=None) as batch_op:
        batch_op.drop_index("ix_seating_chart_versions_chart_created")
        batch_op.drop_index(batch_op.f("ix_seating_chart_versions_chart_id"))
    op.drop_table("seating_chart_versions")

    with op.batch_alter_table("seating_charts", schema=None) as batch_op:
        batch_op.drop_index("ix_seating_charts_dept_active_updated")
        batch_op.drop_index(batch_op.f("ix_seating_charts_is_active"))
        batch_op.drop_index(batch_op.f("ix_seating_charts_department"))
    op.drop_table("seating_charts")
