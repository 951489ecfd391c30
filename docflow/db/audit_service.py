"""
Audit Log Service.

Records audit events for workflow operations. Entries are added to the
caller's session and flushed but not committed, so an entry commits or rolls
back together with the change it describes.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..workflow.primitives import generate_ulid, utc_now
from .audit_models import AuditLogModel


class AuditService:
    """Service for managing audit log entries.

    Usage:
        audit = AuditService(db_session)
        audit.log_create("Artifact", artifact.id, artifact.snapshot(), actor_role="department", actor_id="u-1")
        db_session.commit()
    """

    def __init__(self, db: Session):
        self.db = db

    def _record(
        self,
        action: str,
        entity_kind: str,
        entity_id: str,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
        actor_role: str,
        actor_id: str,
        note: Optional[str],
        trace_id: Optional[str],
    ) -> AuditLogModel:
        entry = AuditLogModel(
            id=generate_ulid(),
            ts=utc_now(),
            actor_role=actor_role,
            actor_id=actor_id,
            action=action,
            entity_kind=entity_kind,
            entity_id=entity_id,
            before=before,
            after=after,
            note=note,
            trace_id=trace_id,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def log_create(
        self,
        entity_kind: str,
        entity_id: str,
        after: Dict[str, Any],
        actor_role: str = "system",
        actor_id: str = "unknown",
        note: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> AuditLogModel:
        """Log the creation of an entity.

        Args:
            entity_kind: Type of entity (e.g., "Artifact")
            entity_id: ID of the entity
            after: State of the entity after creation
            actor_role: Role of the actor ("admin", "director", "department", "system")
            actor_id: ID of the actor
            note: Optional human-readable note
            trace_id: Optional trace ID for correlation

        Returns:
            The pending AuditLogModel
        """
        return self._record(
            "created", entity_kind, entity_id, None, after,
            actor_role, actor_id, note, trace_id,
        )

    def log_update(
        self,
        entity_kind: str,
        entity_id: str,
        before: Dict[str, Any],
        after: Dict[str, Any],
        actor_role: str = "system",
        actor_id: str = "unknown",
        note: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> AuditLogModel:
        """Log an edit to an entity's content."""
        return self._record(
            "updated", entity_kind, entity_id, before, after,
            actor_role, actor_id, note, trace_id,
        )

    def log_status_change(
        self,
        entity_kind: str,
        entity_id: str,
        old_status: str,
        new_status: str,
        actor_role: str = "system",
        actor_id: str = "unknown",
        note: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> AuditLogModel:
        """Log a status change on an entity.

        Recorded even when the aggregate status did not move (e.g. the first
        of several approvals) so every reviewer decision is traceable.
        """
        return self._record(
            "status_changed",
            entity_kind,
            entity_id,
            {"status": old_status},
            {"status": new_status},
            actor_role,
            actor_id,
            note or f"Status changed: {old_status} -> {new_status}",
            trace_id,
        )

    def log_comment(
        self,
        entity_kind: str,
        entity_id: str,
        seq: int,
        actor_role: str = "system",
        actor_id: str = "unknown",
        trace_id: Optional[str] = None,
    ) -> AuditLogModel:
        """Log a comment appended to an entity's trail."""
        return self._record(
            "commented", entity_kind, entity_id, None, {"seq": seq},
            actor_role, actor_id, None, trace_id,
        )

    def log_signature(
        self,
        entity_kind: str,
        entity_id: str,
        signature_type: str,
        actor_role: str = "system",
        actor_id: str = "unknown",
        trace_id: Optional[str] = None,
    ) -> AuditLogModel:
        """Log a signature being recorded. The signature data itself is not copied."""
        return self._record(
            "signed", entity_kind, entity_id, {"signature_provided": False},
            {"signature_provided": True, "type": signature_type},
            actor_role, actor_id, None, trace_id,
        )

    def log_attachment(
        self,
        entity_kind: str,
        entity_id: str,
        attachment: Dict[str, Any],
        actor_role: str = "system",
        actor_id: str = "unknown",
        trace_id: Optional[str] = None,
    ) -> AuditLogModel:
        """Log an attachment appended to an entity."""
        return self._record(
            "attachment_added", entity_kind, entity_id, None, attachment,
            actor_role, actor_id, None, trace_id,
        )

    # Query methods

    def query_by_entity(
        self,
        entity_kind: str,
        entity_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogModel]:
        """Get audit history for a specific entity, newest first."""
        return (
            self.db.query(AuditLogModel)
            .filter(
                AuditLogModel.entity_kind == entity_kind,
                AuditLogModel.entity_id == entity_id,
            )
            .order_by(desc(AuditLogModel.ts), desc(AuditLogModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def query_by_trace(
        self,
        trace_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogModel]:
        """Get all audit entries for a trace ID, newest first."""
        return (
            self.db.query(AuditLogModel)
            .filter(AuditLogModel.trace_id == trace_id)
            .order_by(desc(AuditLogModel.ts), desc(AuditLogModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def query_by_actor(
        self,
        actor_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogModel]:
        """Get all audit entries by a specific actor, newest first."""
        return (
            self.db.query(AuditLogModel)
            .filter(AuditLogModel.actor_id == actor_id)
            .order_by(desc(AuditLogModel.ts), desc(AuditLogModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def query_by_action(
        self,
        action: str,
        entity_kind: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogModel]:
        """Get all audit entries for a specific action type."""
        query = self.db.query(AuditLogModel).filter(AuditLogModel.action == action)

        if entity_kind:
            query = query.filter(AuditLogModel.entity_kind == entity_kind)

        return (
            query.order_by(desc(AuditLogModel.ts), desc(AuditLogModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
