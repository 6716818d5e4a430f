"""metric catalog initial schema

Revision ID: 0001_metric_catalog_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_metric_catalog_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "metric_definition",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("code", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(length=50), nullable=True),
        sa.Column("data_type", sa.String(length=20), nullable=False),
        sa.Column("expression", sa.Text(), nullable=False),
        sa.Column("source_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("owner", sa.String(length=255), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("create_by", sa.String(length=255), nullable=False),
        sa.Column("update_by", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("org_id", "code", name="uq_metric_org_code"),
    )
    op.create_index("ix_metric_definition_org_id", "metric_definition", ["org_id"])
    op.create_index("ix_metric_definition_source_id", "metric_definition", ["source_id"])
    op.create_index("ix_metric_definition_status", "metric_definition", ["status"])
    op.create_index("ix_metric_definition_created_at", "metric_definition", ["created_at"])

    # No ON DELETE CASCADE: forced deletes purge usage rows first.
    op.create_table(
        "metric_usage",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "metric_id", sa.String(length=36),
            sa.ForeignKey("metric_definition.id"), nullable=False,
        ),
        sa.Column("resource_type", sa.String(length=20), nullable=False),
        sa.Column("resource_id", sa.String(length=255), nullable=False),
        sa.Column("resource_name", sa.String(length=255), nullable=True),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("create_by", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "metric_id", "resource_type", "resource_id",
            name="uq_usage_metric_resource",
        ),
    )
    op.create_index("ix_metric_usage_metric_id", "metric_usage", ["metric_id"])
    op.create_index("ix_metric_usage_org_id", "metric_usage", ["org_id"])
    op.create_index("ix_metric_usage_created_at", "metric_usage", ["created_at"])

    op.create_table(
        "metric_audit_events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("metric_id", sa.String(length=36), nullable=False),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("detail", sa.JSON(), nullable=True),
        sa.Column("prev_hash", sa.String(length=64), nullable=True),
        sa.Column("event_hash", sa.String(length=64), nullable=False),
        sa.Column("signature", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_metric_audit_events_metric_id", "metric_audit_events", ["metric_id"])
    op.create_index("ix_metric_audit_events_org_id", "metric_audit_events", ["org_id"])
    op.create_index("ix_metric_audit_events_event_type", "metric_audit_events", ["event_type"])
    op.create_index("ix_metric_audit_events_created_at", "metric_audit_events", ["created_at"])


def downgrade() -> None:
    op.drop_table("metric_audit_events")
    op.drop_table("metric_usage")
    op.drop_table("metric_definition")
