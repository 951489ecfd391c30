"""Create artifact workflow and audit tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Creates:
- artifacts: requests/files and their lifecycle status
- artifact_recipients: one reviewer slot per recipient
- artifact_comments: append-only comment trail
- artifact_attachments: attachment descriptors
- audit_log: before/after record of every mutation
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


role_enum = sa.Enum("admin", "director", "department", name="actor_role")


def _existing(enum: sa.Enum) -> sa.Enum:
    """Reference an enum type created earlier in this migration."""
    if op.get_bind().dialect.name == "postgresql":
        return postgresql.ENUM(*enum.enums, name=enum.name, create_type=False)
    return enum


def upgrade() -> None:
    # ===========================================
    # 1. artifacts
    # ===========================================
    op.create_table(
        "artifacts",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("kind", sa.Enum("request", "file", name="artifact_kind"), nullable=False),
        sa.Column("title", sa.String(512), nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column(
            "category",
            sa.Enum(
                "approval", "budget", "support", "policy", "procurement", "other",
                name="artifact_category",
            ),
            nullable=False,
            server_default="approval",
        ),
        sa.Column(
            "priority",
            sa.Enum("low", "medium", "high", "urgent", name="artifact_priority"),
            nullable=False,
            server_default="medium",
        ),
        sa.Column(
            "status",
            sa.Enum(
                "draft", "pending", "need_signature", "sent_back", "approved", "rejected",
                name="artifact_status",
            ),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("created_by_id", sa.String(128), nullable=False),
        sa.Column("created_by_role", role_enum, nullable=False),
        sa.Column("created_by_department", sa.String(128), nullable=True),
        sa.Column("created_by_display", sa.String(256), nullable=True),
        sa.Column("requires_signature", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("signature_provided", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("signature", sa.JSON, nullable=True),
        sa.Column("edited_since_sent_back", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_artifacts_kind", "artifacts", ["kind"])
    op.create_index("ix_artifacts_priority", "artifacts", ["priority"])
    op.create_index("ix_artifacts_status", "artifacts", ["status"])
    op.create_index("ix_artifacts_created_by_id", "artifacts", ["created_by_id"])
    op.create_index("ix_artifacts_status_priority", "artifacts", ["status", "priority"])
    op.create_index("ix_artifacts_created_at", "artifacts", ["created_at"])

    # ===========================================
    # 2. artifact_recipients
    # ===========================================
    op.create_table(
        "artifact_recipients",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("artifact_id", sa.String(128), sa.ForeignKey("artifacts.id"), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "recipient_kind",
            sa.Enum("department", "user", name="recipient_kind"),
            nullable=False,
        ),
        sa.Column("recipient_id", sa.String(128), nullable=False),
        sa.Column("recipient_display", sa.String(256), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "approved", "rejected", "sent_back", "need_signature",
                name="slot_status",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("acted_by", sa.String(128), nullable=True),
        sa.Column("action_comment", sa.Text, nullable=True),
        sa.Column("acted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signature_requested", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.UniqueConstraint(
            "artifact_id", "recipient_kind", "recipient_id",
            name="uq_artifact_recipients_recipient",
        ),
    )
    op.create_index("ix_artifact_recipients_artifact_id", "artifact_recipients", ["artifact_id"])
    op.create_index(
        "ix_artifact_recipients_target", "artifact_recipients", ["recipient_kind", "recipient_id"]
    )

    # ===========================================
    # 3. artifact_comments
    # ===========================================
    op.create_table(
        "artifact_comments",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("artifact_id", sa.String(128), sa.ForeignKey("artifacts.id"), nullable=False),
        sa.Column("seq", sa.Integer, nullable=False),
        sa.Column("author_id", sa.String(128), nullable=False),
        sa.Column("author_role", _existing(role_enum), nullable=False),
        sa.Column("author_department", sa.String(128), nullable=True),
        sa.Column("author_display", sa.String(256), nullable=True),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("is_signature", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("action", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("artifact_id", "seq", name="uq_artifact_comments_seq"),
    )
    op.create_index("ix_artifact_comments_artifact_id", "artifact_comments", ["artifact_id"])
    op.create_index("ix_artifact_comments_author_id", "artifact_comments", ["author_id"])

    # ===========================================
    # 4. artifact_attachments
    # ===========================================
    op.create_table(
        "artifact_attachments",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("artifact_id", sa.String(128), sa.ForeignKey("artifacts.id"), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("size_bytes", sa.Integer, nullable=False),
        sa.Column("media_type", sa.String(128), nullable=False),
        sa.Column("uri", sa.String(2000), nullable=False),
        sa.Column("added_by", sa.String(128), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_artifact_attachments_artifact_id", "artifact_attachments", ["artifact_id"])

    # ===========================================
    # 5. audit_log
    # ===========================================
    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column(
            "actor_role",
            sa.Enum("admin", "director", "department", "system", name="audit_actor_role"),
            nullable=False,
        ),
        sa.Column("actor_id", sa.String(128), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "created", "updated", "status_changed", "commented", "signed", "attachment_added",
                name="audit_action",
            ),
            nullable=False,
        ),
        sa.Column("entity_kind", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(128), nullable=False),
        sa.Column("before", sa.JSON, nullable=True),
        sa.Column("after", sa.JSON, nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("trace_id", sa.String(64), nullable=True),
    )
    op.create_index("ix_audit_log_ts", "audit_log", ["ts"])
    op.create_index("ix_audit_log_actor_id", "audit_log", ["actor_id"])
    op.create_index("ix_audit_log_action", "audit_log", ["action"])
    op.create_index("ix_audit_log_entity_kind", "audit_log", ["entity_kind"])
    op.create_index("ix_audit_log_entity_id", "audit_log", ["entity_id"])
    op.create_index("ix_audit_log_trace_id", "audit_log", ["trace_id"])
    op.create_index("ix_audit_log_entity", "audit_log", ["entity_kind", "entity_id"])
    op.create_index("ix_audit_log_actor", "audit_log", ["actor_role", "actor_id"])
    op.create_index("ix_audit_log_entity_ts", "audit_log", ["entity_kind", "entity_id", "ts"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("artifact_attachments")
    op.drop_table("artifact_comments")
    op.drop_table("artifact_recipients")
    op.drop_table("artifacts")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name in (
            "audit_action",
            "audit_actor_role",
            "slot_status",
            "recipient_kind",
            "actor_role",
            "artifact_status",
            "artifact_priority",
            "artifact_category",
            "artifact_kind",
        ):
            op.execute(f"DROP TYPE IF EXISTS {name}")
