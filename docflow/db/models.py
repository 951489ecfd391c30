"""
SQLAlchemy models for artifacts and their workflow state.

Following the schema guidelines:
- one row per artifact, with ``version`` as the optimistic-concurrency counter
- recipients, comments and attachments in child tables, not JSON arrays
- comments ordered by a server-assigned per-artifact sequence
"""

from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# Workflow Enums as Database Enums
# =============================================================================

# These mirror docflow/workflow/enums.py
artifact_kind_enum = Enum("request", "file", name="artifact_kind")

artifact_status_enum = Enum(
    "draft",
    "pending",
    "need_signature",
    "sent_back",
    "approved",
    "rejected",
    name="artifact_status",
)

slot_status_enum = Enum(
    "pending",
    "approved",
    "rejected",
    "sent_back",
    "need_signature",
    name="slot_status",
)

priority_enum = Enum("low", "medium", "high", "urgent", name="artifact_priority")

category_enum = Enum(
    "approval",
    "budget",
    "support",
    "policy",
    "procurement",
    "other",
    name="artifact_category",
)

recipient_kind_enum = Enum("department", "user", name="recipient_kind")

role_enum = Enum("admin", "director", "department", name="actor_role")


# =============================================================================
# Database Models
# =============================================================================


class ArtifactModel(Base):
    """A submitted request or file and its lifecycle state."""

    __tablename__ = "artifacts"

    id = Column(String(128), primary_key=True)
    kind = Column(artifact_kind_enum, nullable=False, default="request", index=True)

    title = Column(String(512), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    category = Column(category_enum, nullable=False, default="approval")
    priority = Column(priority_enum, nullable=False, default="medium", index=True)
    status = Column(artifact_status_enum, nullable=False, default="draft", index=True)

    # Creator (Actor denormalized)
    created_by_id = Column(String(128), nullable=False, index=True)
    created_by_role = Column(role_enum, nullable=False, default="department")
    created_by_department = Column(String(128), nullable=True)
    created_by_display = Column(String(256), nullable=True)

    requires_signature = Column(Boolean, nullable=False, default=False)
    signature_provided = Column(Boolean, nullable=False, default=False)
    # {type, data, signed_by, signed_at}; written once
    signature = Column(JSON, nullable=True)

    # Set when the creator changes content after a send-back
    edited_since_sent_back = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    recipients = relationship(
        "RecipientSlotModel",
        back_populates="artifact",
        cascade="all, delete-orphan",
        order_by="RecipientSlotModel.position",
    )
    comments = relationship(
        "CommentModel",
        back_populates="artifact",
        cascade="all, delete-orphan",
        order_by="CommentModel.seq",
    )
    attachments = relationship(
        "AttachmentModel",
        back_populates="artifact",
        cascade="all, delete-orphan",
        order_by="AttachmentModel.position",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_artifacts_status_priority", "status", "priority"),
        Index("ix_artifacts_created_at", "created_at"),
    )

    def created_by_dict(self) -> Dict[str, Any]:
        return {
            "actor_id": self.created_by_id,
            "role": self.created_by_role,
            "department_id": self.created_by_department,
            "display": self.created_by_display,
        }

    def snapshot(self) -> Dict[str, Any]:
        """Compact state used for audit before/after records."""
        return {
            "status": self.status,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "requires_signature": self.requires_signature,
            "signature_provided": self.signature_provided,
            "recipients": [r.to_dict() for r in self.recipients],
            "attachments": [a.to_dict() for a in self.attachments],
            "version": self.version,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary matching the Artifact read schema."""
        return {
            "id": self.id,
            "kind": self.kind,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "status": self.status,
            "created_by": self.created_by_dict(),
            "target_recipients": [r.to_dict() for r in self.recipients],
            "requires_signature": self.requires_signature,
            "signature_provided": self.signature_provided,
            "signature": self.signature,
            "attachments": [a.to_dict() for a in self.attachments],
            "comments": [c.to_dict() for c in self.comments],
            "version": self.version,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "submitted_at": _iso(self.submitted_at),
        }


class RecipientSlotModel(Base):
    """One recipient of an artifact and the outcome of their review."""

    __tablename__ = "artifact_recipients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    artifact_id = Column(
        String(128), ForeignKey("artifacts.id"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)

    recipient_kind = Column(recipient_kind_enum, nullable=False)
    recipient_id = Column(String(128), nullable=False)
    recipient_display = Column(String(256), nullable=True)

    status = Column(slot_status_enum, nullable=False, default="pending")
    acted_by = Column(String(128), nullable=True)
    action_comment = Column(Text, nullable=True)
    acted_at = Column(DateTime(timezone=True), nullable=True)
    signature_requested = Column(Boolean, nullable=False, default=False)

    artifact = relationship("ArtifactModel", back_populates="recipients")

    __table_args__ = (
        UniqueConstraint(
            "artifact_id",
            "recipient_kind",
            "recipient_id",
            name="uq_artifact_recipients_recipient",
        ),
        Index("ix_artifact_recipients_target", "recipient_kind", "recipient_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipient": {
                "kind": self.recipient_kind,
                "id": self.recipient_id,
                "display": self.recipient_display,
            },
            "status": self.status,
            "acted_by": self.acted_by,
            "action_comment": self.action_comment,
            "acted_at": _iso(self.acted_at),
            "signature_requested": self.signature_requested,
        }


class CommentModel(Base):
    """Append-only audit trail entry."""

    __tablename__ = "artifact_comments"

    id = Column(String(128), primary_key=True)
    artifact_id = Column(
        String(128), ForeignKey("artifacts.id"), nullable=False, index=True
    )
    # Server-assigned, 1-based, gapless per artifact
    seq = Column(Integer, nullable=False)

    author_id = Column(String(128), nullable=False, index=True)
    author_role = Column(role_enum, nullable=False)
    author_department = Column(String(128), nullable=True)
    author_display = Column(String(256), nullable=True)

    text = Column(Text, nullable=False)
    is_signature = Column(Boolean, nullable=False, default=False)
    action = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    artifact = relationship("ArtifactModel", back_populates="comments")

    __table_args__ = (
        UniqueConstraint("artifact_id", "seq", name="uq_artifact_comments_seq"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "author": {
                "actor_id": self.author_id,
                "role": self.author_role,
                "department_id": self.author_department,
                "display": self.author_display,
            },
            "timestamp": _iso(self.created_at),
            "text": self.text,
            "is_signature": self.is_signature,
            "action": self.action,
        }


class AttachmentModel(Base):
    """Descriptor of a file attached to an artifact."""

    __tablename__ = "artifact_attachments"

    id = Column(String(128), primary_key=True)
    artifact_id = Column(
        String(128), ForeignKey("artifacts.id"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(256), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    media_type = Column(String(128), nullable=False)
    uri = Column(String(2000), nullable=False)

    added_by = Column(String(128), nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    artifact = relationship("ArtifactModel", back_populates="attachments")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size_bytes": self.size_bytes,
            "media_type": self.media_type,
            "uri": self.uri,
        }
