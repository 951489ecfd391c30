"""
Audit Log Database Models.

Every workflow mutation is recorded with before/after snapshots, the acting
user and an optional trace ID, independent of the artifact's own comment
trail.
"""

from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    Index,
    String,
    Text,
)
from sqlalchemy.sql import func

from .base import Base


# Audit actor role enum (matches workflow roles plus the system itself)
audit_actor_role_enum = Enum(
    "admin",
    "director",
    "department",
    "system",
    name="audit_actor_role",
)

# Audit action enum
audit_action_enum = Enum(
    "created",
    "updated",
    "status_changed",
    "commented",
    "signed",
    "attachment_added",
    name="audit_action",
)


class AuditLogModel(Base):
    """Audit log entry for forensics.

    Provides:
    - Full traceability of who did what and when
    - Before/after state for debugging disputed decisions
    - Correlation via trace_id with API request logs
    """

    __tablename__ = "audit_log"

    # Primary key (ULID for sortability and uniqueness)
    id = Column(String(36), primary_key=True)

    ts = Column(
        DateTime(timezone=True),
        nullable=False,
        default=func.now(),
        index=True,
    )

    # Who performed the action
    actor_role = Column(audit_actor_role_enum, nullable=False)
    actor_id = Column(String(128), nullable=False, index=True)

    # What action was performed
    action = Column(audit_action_enum, nullable=False, index=True)

    # What entity was affected
    entity_kind = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(128), nullable=False, index=True)

    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)

    note = Column(Text, nullable=True)

    trace_id = Column(String(64), nullable=True, index=True)

    __table_args__ = (
        Index("ix_audit_log_entity", "entity_kind", "entity_id"),
        Index("ix_audit_log_actor", "actor_role", "actor_id"),
        Index("ix_audit_log_entity_ts", "entity_kind", "entity_id", "ts"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "ts": self.ts.isoformat() if self.ts else None,
            "actor_role": self.actor_role,
            "actor_id": self.actor_id,
            "action": self.action,
            "entity_kind": self.entity_kind,
            "entity_id": self.entity_id,
            "before": self.before,
            "after": self.after,
            "note": self.note,
            "trace_id": self.trace_id,
        }
