"""Initial schema — clients, dossier records, Meerzorg applications, herindicatie, audit.

Revision ID: 001_initial
Revises: None
Create Date: 2026-02-12

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _client_fk():
    return sa.ForeignKey("clients.client_id", ondelete="CASCADE")


def _application_fk():
    return sa.ForeignKey("meerzorg_applications.id", ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("client_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("dob", sa.String(10), nullable=False, server_default=""),
        sa.Column("bsn_encrypted", sa.String(500), nullable=True),
        sa.Column("wlz_profile", sa.String(20), nullable=False, server_default=""),
        sa.Column("provider", sa.String(200), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # ─── Dossier records ───
    op.create_table(
        "notes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("author", sa.String(200), nullable=False, server_default="Unknown"),
        sa.Column("section", sa.String(100), nullable=False, server_default="General"),
        sa.Column("text", sa.Text, nullable=False),
    )
    op.create_table(
        "measures",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("type", sa.String(100), nullable=False, server_default="Unknown"),
        sa.Column("score", sa.String(50), nullable=False, server_default=""),
        sa.Column("comment", sa.Text, nullable=True),
    )
    op.create_table(
        "incidents",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("type", sa.String(100), nullable=False, server_default="Unknown"),
        sa.Column("severity", sa.String(20), nullable=False, server_default="Medium"),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
    )
    for table in ("notes", "measures", "incidents"):
        op.create_index(f"ix_{table}_client_id", table, ["client_id"])

    # ─── Meerzorg ───
    op.create_table(
        "meerzorg_applications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("version", sa.String(10), nullable=False, server_default="2026"),
        sa.Column("form_data", sa.JSON, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("submitted_by", sa.String(200), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_meerzorg_applications_client_id", "meerzorg_applications", ["client_id"])

    op.create_table(
        "meerzorg_form_fields",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", UUID(as_uuid=True), _application_fk(), nullable=False),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column("field_value", sa.Text, nullable=True),
        sa.Column("source_type", sa.String(20), nullable=False, server_default="unknown"),
        sa.Column("source_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("confidence", sa.Float, nullable=False, server_default="0.5"),
    )
    op.create_table(
        "evidence",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", UUID(as_uuid=True), _application_fk(), nullable=False),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column("field_label", sa.String(200), nullable=True),
        sa.Column("source_type", sa.String(20), nullable=False),
        sa.Column("source_id", sa.String(64), nullable=False),
        sa.Column("evidence_text", sa.Text, nullable=False),
        sa.Column("confidence_score", sa.Float, nullable=False, server_default="0.8"),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "normative_checks",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", UUID(as_uuid=True), _application_fk(), nullable=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("check_type", sa.String(30), nullable=False),
        sa.Column("rule_id", sa.String(100), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("severity", sa.String(10), nullable=False),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "review_workflows",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", UUID(as_uuid=True), _application_fk(), nullable=False),
        sa.Column("reviewer_role", sa.String(50), nullable=False),
        sa.Column("reviewer_name", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("comments", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    for table in ("meerzorg_form_fields", "evidence", "normative_checks", "review_workflows"):
        op.create_index(f"ix_{table}_application_id", table, ["application_id"])

    # ─── Herindicatie ───
    op.create_table(
        "md_reviews",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("reviewer_name", sa.String(200), nullable=False),
        sa.Column("reviewer_role", sa.String(20), nullable=False),
        sa.Column("clinical_notes", sa.Text, nullable=False),
        sa.Column("decision", sa.String(10), nullable=False),
        sa.Column("observation_period_days", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "trend_records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("metric_type", sa.String(30), nullable=False),
        sa.Column("metric_value", sa.Float, nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "risk_flags",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", sa.String(64), _client_fk(), nullable=False),
        sa.Column("flag_type", sa.String(30), nullable=False),
        sa.Column("severity", sa.String(10), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
    )
    for table in ("md_reviews", "trend_records", "risk_flags"):
        op.create_index(f"ix_{table}_client_id", table, ["client_id"])

    # ─── Audit (no FK: events outlive the client) ───
    op.create_table(
        "audit_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("actor", sa.String(100), nullable=False),
        sa.Column("client_id", sa.String(64), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("meta", sa.JSON, nullable=False),
    )
    op.create_index("ix_audit_events_ts", "audit_events", ["ts"])
    op.create_index("ix_audit_events_client_id", "audit_events", ["client_id"])


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("risk_flags")
    op.drop_table("trend_records")
    op.drop_table("md_reviews")
    op.drop_table("review_workflows")
    op.drop_table("normative_checks")
    op.drop_table("evidence")
    op.drop_table("meerzorg_form_fields")
    op.drop_table("meerzorg_applications")
    op.drop_table("incidents")
    op.drop_table("measures")
    op.drop_table("notes")
    op.drop_table("clients")
