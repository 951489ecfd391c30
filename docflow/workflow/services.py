"""
Approval workflow service.

``ApprovalWorkflow`` owns every mutation of an artifact: creation, submission,
reviewer actions, signatures, edits, comments and attachments. Each operation
validates first and then commits status, recipient slots, comments, the audit
entry and timestamps in one transaction, or rolls everything back.

Concurrent writers are serialized per artifact by the ``version`` column:
callers may pass ``expected_version`` to fail fast, and a stale write detected
at flush time is reported the same way, as ``ConflictError``.
"""

import os
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Union

import structlog
from sqlalchemy import desc, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..config import get_settings
from ..db.audit_models import AuditLogModel, audit_action_enum
from ..db.audit_service import AuditService
from ..db.models import (
    ArtifactModel,
    AttachmentModel,
    CommentModel,
    RecipientSlotModel,
)
from . import state_machine
from .enums import (
    REVIEWER_ACTIONS,
    Action,
    ArtifactStatus,
    RecipientKind,
    Role,
    SlotStatus,
)
from .errors import (
    AuthorizationError,
    ConflictError,
    DuplicateSignatureError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from .notifications import LoggingNotifier, Notifier, TransitionEvent, dispatch
from .primitives import Actor, Recipient, generate_ulid, utc_now
from .schemas import (
    ArtifactCreate,
    ArtifactPatch,
    AttachmentDescriptor,
    SignaturePayload,
)

logger = structlog.get_logger()

ENTITY_KIND = "Artifact"

AUDIT_ACTIONS = frozenset(audit_action_enum.enums)

# Default comment text for reviewer actions taken without a remark.
ACTION_LABELS = {
    Action.APPROVE: "Approved",
    Action.REJECT: "Rejected",
    Action.SEND_BACK: "Sent back for changes",
    Action.REQUEST_SIGNATURE: "Signature requested",
    Action.RESUBMIT: "Resubmitted",
}

# Patch fields whose change counts as a correction after a send-back.
CONTENT_FIELDS = ("title", "description", "attachments")

SIGNATURE_ON_FILE = "Signature already on file"


def _slot_recipient(slot: RecipientSlotModel) -> Recipient:
    return Recipient(
        kind=slot.recipient_kind,
        id=slot.recipient_id,
        display=slot.recipient_display,
    )


def _role_value(actor: Actor) -> str:
    return Role(actor.role).value


class ApprovalWorkflow:
    """Service enforcing the artifact lifecycle."""

    def __init__(
        self,
        db: Session,
        audit: Optional[AuditService] = None,
        notifiers: Optional[List[Notifier]] = None,
        approval_policy: Optional[str] = None,
    ):
        settings = get_settings()
        self.db = db
        self.audit = audit or AuditService(db)
        self.notifiers = notifiers if notifiers is not None else [LoggingNotifier()]
        self.approval_policy = approval_policy or settings.approval_policy
        if self.approval_policy not in state_machine.APPROVAL_POLICIES:
            raise ValueError(f"Unknown approval policy: {self.approval_policy!r}")
        self.max_attachment_bytes = settings.max_attachment_bytes
        self.attachment_extensions = settings.attachment_extensions()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, artifact_id: str) -> Iterator[None]:
        """Commit on success; roll back and re-raise on any failure."""
        try:
            yield
            self.db.commit()
        except (StaleDataError, IntegrityError):
            self.db.rollback()
            logger.info("Concurrent write rejected", artifact_id=artifact_id)
            raise ConflictError(artifact_id) from None
        except Exception:
            self.db.rollback()
            raise

    def _load(
        self, artifact_id: str, expected_version: Optional[int] = None
    ) -> ArtifactModel:
        artifact = self.get(artifact_id)
        if artifact is None:
            raise NotFoundError(artifact_id)
        if expected_version is not None and artifact.version != expected_version:
            raise ConflictError(artifact_id, expected_version, artifact.version)
        return artifact

    def _require_creator(self, artifact: ArtifactModel, actor: Actor, operation: str) -> None:
        if actor.actor_id != artifact.created_by_id:
            raise AuthorizationError(
                f"Only the creator may {operation} this artifact",
                artifact_id=artifact.id,
            )

    def _is_participant(self, artifact: ArtifactModel, actor: Actor) -> bool:
        if actor.actor_id == artifact.created_by_id or actor.role == Role.ADMIN:
            return True
        return any(_slot_recipient(s).matches(actor) for s in artifact.recipients)

    def _validate_attachment(self, descriptor: AttachmentDescriptor) -> None:
        if descriptor.size_bytes > self.max_attachment_bytes:
            raise ValidationError(
                f"Attachment '{descriptor.name}' exceeds the "
                f"{self.max_attachment_bytes} byte limit"
            )
        if self.attachment_extensions:
            ext = os.path.splitext(descriptor.name)[1].lower()
            if ext not in self.attachment_extensions:
                raise ValidationError(
                    f"Attachment type '{ext or descriptor.name}' is not allowed"
                )

    def _validate_submission(self, artifact: ArtifactModel) -> None:
        missing = []
        if not (artifact.title or "").strip():
            missing.append("title")
        if not (artifact.description or "").strip():
            missing.append("description")
        if not artifact.recipients:
            missing.append("target_recipients")
        if missing:
            raise ValidationError(
                f"Cannot submit without: {', '.join(missing)}",
                artifact_id=artifact.id,
            )

    def _append_comment(
        self,
        artifact: ArtifactModel,
        actor: Actor,
        text: str,
        now: datetime,
        is_signature: bool = False,
        action: Optional[Action] = None,
    ) -> CommentModel:
        seq = max((c.seq for c in artifact.comments), default=0) + 1
        comment = CommentModel(
            id=generate_ulid(),
            seq=seq,
            author_id=actor.actor_id,
            author_role=_role_value(actor),
            author_department=actor.department_id,
            author_display=actor.display,
            text=text,
            is_signature=is_signature,
            action=action.value if action else None,
            created_at=now,
        )
        artifact.comments.append(comment)
        return comment

    def _append_attachment(
        self, artifact: ArtifactModel, descriptor: AttachmentDescriptor, actor: Actor, now: datetime
    ) -> AttachmentModel:
        attachment = AttachmentModel(
            id=generate_ulid(),
            position=len(artifact.attachments),
            name=descriptor.name,
            size_bytes=descriptor.size_bytes,
            media_type=descriptor.media_type,
            uri=descriptor.uri,
            added_by=actor.actor_id,
            added_at=now,
        )
        artifact.attachments.append(attachment)
        return attachment

    def _set_recipients(self, artifact: ArtifactModel, recipients: List[Recipient]) -> None:
        """Replace the recipient set, keeping slots for recipients that stay."""
        existing = {(s.recipient_kind, s.recipient_id): s for s in artifact.recipients}
        wanted = {r.key: r for r in recipients}

        for key, slot in existing.items():
            if key not in wanted:
                artifact.recipients.remove(slot)

        for position, recipient in enumerate(recipients):
            slot = existing.get(recipient.key)
            if slot is None:
                slot = RecipientSlotModel(
                    recipient_kind=RecipientKind(recipient.kind).value,
                    recipient_id=recipient.id,
                    status=SlotStatus.PENDING.value,
                )
                artifact.recipients.append(slot)
            slot.recipient_display = recipient.display
            slot.position = position

    def _reset_slots(self, artifact: ArtifactModel) -> None:
        for slot in artifact.recipients:
            slot.status = SlotStatus.PENDING.value
            slot.acted_by = None
            slot.action_comment = None
            slot.acted_at = None
            slot.signature_requested = False

    def _aggregate(self, artifact: ArtifactModel) -> ArtifactStatus:
        return state_machine.aggregate_status(
            (s.status for s in artifact.recipients), policy=self.approval_policy
        )

    def _notify(
        self,
        artifact: ArtifactModel,
        operation: str,
        actor: Actor,
        old_status: Optional[str],
        comment: Optional[str] = None,
    ) -> None:
        event = TransitionEvent(
            artifact_id=artifact.id,
            operation=operation,
            actor=actor,
            old_status=old_status,
            new_status=artifact.status,
            created_by=artifact.created_by_id,
            recipients=[_slot_recipient(s) for s in artifact.recipients],
            comment=comment,
        )
        dispatch(self.notifiers, event)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, artifact_id: str) -> Optional[ArtifactModel]:
        """Get an artifact by ID."""
        return self.db.query(ArtifactModel).filter(ArtifactModel.id == artifact_id).first()

    def list(
        self,
        created_by: Optional[str] = None,
        status: Optional[str] = None,
        kind: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ArtifactModel]:
        """List artifacts with optional filtering, newest first."""
        query = self.db.query(ArtifactModel)

        if created_by:
            query = query.filter(ArtifactModel.created_by_id == created_by)
        if status:
            query = query.filter(ArtifactModel.status == status)
        if kind:
            query = query.filter(ArtifactModel.kind == kind)
        if priority:
            query = query.filter(ArtifactModel.priority == priority)
        if category:
            query = query.filter(ArtifactModel.category == category)

        return (
            query.order_by(desc(ArtifactModel.created_at), desc(ArtifactModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def list_for_creator(
        self,
        creator_id: str,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ArtifactModel]:
        """Artifacts created by ``creator_id``."""
        return self.list(created_by=creator_id, status=status, limit=limit, offset=offset)

    def list_for_recipient(
        self,
        recipient: Recipient,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ArtifactModel]:
        """Artifacts routed to ``recipient``. Drafts are never routed."""
        query = (
            self.db.query(ArtifactModel)
            .join(RecipientSlotModel, RecipientSlotModel.artifact_id == ArtifactModel.id)
            .filter(
                RecipientSlotModel.recipient_kind == RecipientKind(recipient.kind).value,
                RecipientSlotModel.recipient_id == recipient.id,
                ArtifactModel.status != ArtifactStatus.DRAFT.value,
            )
        )
        if status:
            query = query.filter(ArtifactModel.status == status)

        return (
            query.order_by(desc(ArtifactModel.created_at), desc(ArtifactModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def inbox(
        self,
        actor: Actor,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ArtifactModel]:
        """Artifacts the actor may review: addressed to them or, for directors, their department."""
        targets = [
            (RecipientSlotModel.recipient_kind == RecipientKind.USER.value)
            & (RecipientSlotModel.recipient_id == actor.actor_id)
        ]
        if actor.role == Role.DIRECTOR and actor.department_id:
            targets.append(
                (RecipientSlotModel.recipient_kind == RecipientKind.DEPARTMENT.value)
                & (RecipientSlotModel.recipient_id == actor.department_id)
            )

        addressed = select(RecipientSlotModel.artifact_id).where(or_(*targets))
        query = self.db.query(ArtifactModel).filter(
            ArtifactModel.id.in_(addressed),
            ArtifactModel.status != ArtifactStatus.DRAFT.value,
        )
        if status:
            query = query.filter(ArtifactModel.status == status)

        return (
            query.order_by(desc(ArtifactModel.created_at), desc(ArtifactModel.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def comments(self, artifact_id: str) -> List[CommentModel]:
        """The artifact's audit trail in append order."""
        return list(self._load(artifact_id).comments)

    def history(self, artifact_id: str, limit: int = 100, offset: int = 0) -> List[AuditLogModel]:
        """Audit log entries for the artifact, newest first."""
        self._load(artifact_id)
        return self.audit.query_by_entity(ENTITY_KIND, artifact_id, limit=limit, offset=offset)

    def audit_entries(
        self,
        actor: Actor,
        trace_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogModel]:
        """Search the audit log by exactly one of trace, actor or action.

        Only admins may search across artifacts.
        """
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only admins may search the audit log")
        filters = [f for f in (trace_id, actor_id, action) if f]
        if len(filters) != 1:
            raise ValidationError("Give exactly one of trace_id, actor_id or action")

        if trace_id:
            return self.audit.query_by_trace(trace_id, limit=limit, offset=offset)
        if actor_id:
            return self.audit.query_by_actor(actor_id, limit=limit, offset=offset)
        if action not in AUDIT_ACTIONS:
            raise ValidationError(f"Unknown audit action: {action!r}")
        return self.audit.query_by_action(
            action, entity_kind=ENTITY_KIND, limit=limit, offset=offset
        )

    # ------------------------------------------------------------------
    # Creator operations
    # ------------------------------------------------------------------

    def create(
        self,
        data: ArtifactCreate,
        actor: Actor,
        submit: bool = False,
        trace_id: Optional[str] = None,
    ) -> ArtifactModel:
        """Create an artifact as a draft, or submit it straight away."""
        for descriptor in data.attachments:
            self._validate_attachment(descriptor)

        now = utc_now()
        artifact = ArtifactModel(
            id=generate_ulid(),
            kind=data.kind.value,
            title=data.title,
            description=data.description,
            category=data.category.value,
            priority=data.priority.value,
            status=ArtifactStatus.DRAFT.value,
            created_by_id=actor.actor_id,
            created_by_role=_role_value(actor),
            created_by_department=actor.department_id,
            created_by_display=actor.display,
            requires_signature=data.requires_signature,
            signature_provided=False,
            edited_since_sent_back=False,
            created_at=now,
            updated_at=now,
        )
        self._set_recipients(artifact, data.target_recipients)
        for descriptor in data.attachments:
            self._append_attachment(artifact, descriptor, actor, now)

        if submit:
            self._validate_submission(artifact)
            artifact.status = state_machine.next_status(
                ArtifactStatus.DRAFT, Action.SUBMIT
            ).value
            artifact.submitted_at = now

        with self._transaction(artifact.id):
            self.db.add(artifact)
            self.db.flush()
            self.audit.log_create(
                entity_kind=ENTITY_KIND,
                entity_id=artifact.id,
                after=artifact.snapshot(),
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )

        logger.info(
            "Artifact created",
            artifact_id=artifact.id,
            status=artifact.status,
            created_by=actor.actor_id,
        )
        self._notify(artifact, "create", actor, None)
        return artifact

    def submit(
        self, artifact_id: str, actor: Actor, trace_id: Optional[str] = None
    ) -> ArtifactModel:
        """Move a draft to ``pending`` once it is complete."""
        artifact = self._load(artifact_id)
        self._require_creator(artifact, actor, "submit")
        old_status = artifact.status
        if not state_machine.can_transition(old_status, Action.SUBMIT):
            raise InvalidTransitionError(artifact_id, old_status, Action.SUBMIT.value)
        self._validate_submission(artifact)

        with self._transaction(artifact_id):
            now = utc_now()
            self._reset_slots(artifact)
            artifact.status = state_machine.next_status(old_status, Action.SUBMIT).value
            artifact.submitted_at = now
            artifact.updated_at = now
            self.audit.log_status_change(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                old_status=old_status,
                new_status=artifact.status,
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )

        logger.info("Artifact submitted", artifact_id=artifact_id)
        self._notify(artifact, Action.SUBMIT.value, actor, old_status)
        return artifact

    def edit(
        self,
        artifact_id: str,
        actor: Actor,
        patch: Union[ArtifactPatch, Dict[str, Any]],
        expected_version: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> ArtifactModel:
        """Change content while the artifact is still editable."""
        if not isinstance(patch, ArtifactPatch):
            try:
                patch = ArtifactPatch.model_validate(patch)
            except ValueError as e:
                raise ValidationError(f"Invalid changes: {e}", artifact_id=artifact_id)

        artifact = self._load(artifact_id, expected_version)
        self._require_creator(artifact, actor, "edit")
        status = ArtifactStatus(artifact.status)
        if status not in state_machine.EDITABLE_STATES:
            raise InvalidStateError(artifact_id, status.value, "edit")

        changes = patch.model_dump(exclude_unset=True)
        if changes.get("target_recipients") is not None and status not in state_machine.ROUTABLE_STATES:
            raise InvalidStateError(artifact_id, status.value, "change recipients of")
        for descriptor in patch.attachments or []:
            self._validate_attachment(descriptor)

        with self._transaction(artifact_id):
            now = utc_now()
            before = artifact.snapshot()

            if patch.title is not None:
                artifact.title = patch.title
            if patch.description is not None:
                artifact.description = patch.description
            if patch.category is not None:
                artifact.category = patch.category.value
            if patch.priority is not None:
                artifact.priority = patch.priority.value
            if patch.requires_signature is not None:
                artifact.requires_signature = patch.requires_signature
            if patch.target_recipients is not None:
                self._set_recipients(artifact, patch.target_recipients)
            if patch.attachments is not None:
                artifact.attachments.clear()
                for descriptor in patch.attachments:
                    self._append_attachment(artifact, descriptor, actor, now)

            after = artifact.snapshot()
            content_changed = any(
                before[name] != after[name] for name in CONTENT_FIELDS
            )
            if status == ArtifactStatus.SENT_BACK and content_changed:
                artifact.edited_since_sent_back = True

            artifact.updated_at = now
            self.db.flush()
            self.audit.log_update(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                before=before,
                after=artifact.snapshot(),
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )

        logger.info("Artifact edited", artifact_id=artifact_id, fields=sorted(changes))
        self._notify(artifact, "edit", actor, status.value)
        return artifact

    def resubmit(
        self,
        artifact_id: str,
        actor: Actor,
        comment: Optional[str] = None,
        expected_version: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> ArtifactModel:
        """Return a corrected, sent-back artifact to every reviewer."""
        artifact = self._load(artifact_id, expected_version)
        self._require_creator(artifact, actor, "resubmit")
        old_status = artifact.status
        if not state_machine.can_transition(old_status, Action.RESUBMIT):
            raise InvalidTransitionError(artifact_id, old_status, Action.RESUBMIT.value)
        if not artifact.edited_since_sent_back:
            raise ValidationError(
                "Edit the title, description or attachments before resubmitting",
                artifact_id=artifact_id,
            )
        self._validate_submission(artifact)

        with self._transaction(artifact_id):
            now = utc_now()
            self._reset_slots(artifact)
            artifact.status = state_machine.next_status(old_status, Action.RESUBMIT).value
            artifact.edited_since_sent_back = False
            text = (comment or "").strip() or ACTION_LABELS[Action.RESUBMIT]
            self._append_comment(artifact, actor, text, now, action=Action.RESUBMIT)
            artifact.updated_at = now
            self.audit.log_status_change(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                old_status=old_status,
                new_status=artifact.status,
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )

        logger.info("Artifact resubmitted", artifact_id=artifact_id)
        self._notify(artifact, Action.RESUBMIT.value, actor, old_status, comment)
        return artifact

    def provide_signature(
        self,
        artifact_id: str,
        actor: Actor,
        payload: Union[SignaturePayload, Dict[str, Any]],
        expected_version: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> ArtifactModel:
        """Record the creator's signature and settle the signature requests."""
        if not isinstance(payload, SignaturePayload):
            try:
                payload = SignaturePayload.model_validate(payload)
            except ValueError as e:
                raise ValidationError(f"Invalid signature payload: {e}", artifact_id=artifact_id)

        artifact = self._load(artifact_id, expected_version)
        self._require_creator(artifact, actor, "sign")
        if artifact.signature_provided:
            raise DuplicateSignatureError(artifact_id)
        old_status = artifact.status
        if not state_machine.can_transition(old_status, Action.PROVIDE_SIGNATURE):
            raise InvalidTransitionError(
                artifact_id, old_status, Action.PROVIDE_SIGNATURE.value
            )

        with self._transaction(artifact_id):
            now = utc_now()
            artifact.signature = {
                "type": payload.type.value,
                "data": payload.data,
                "signed_by": actor.actor_id,
                "signed_at": now.isoformat(),
            }
            artifact.signature_provided = True
            for slot in artifact.recipients:
                if slot.status == SlotStatus.NEED_SIGNATURE.value:
                    slot.status = SlotStatus.APPROVED.value
            artifact.status = self._aggregate(artifact).value

            signer = actor.display or actor.actor_id
            self._append_comment(
                artifact,
                actor,
                f"Signed by {signer}",
                now,
                is_signature=True,
                action=Action.PROVIDE_SIGNATURE,
            )
            artifact.updated_at = now
            self.audit.log_signature(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                signature_type=payload.type.value,
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )
            self.audit.log_status_change(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                old_status=old_status,
                new_status=artifact.status,
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )

        logger.info("Artifact signed", artifact_id=artifact_id, status=artifact.status)
        self._notify(artifact, Action.PROVIDE_SIGNATURE.value, actor, old_status)
        return artifact

    def add_attachment(
        self,
        artifact_id: str,
        actor: Actor,
        descriptor: Union[AttachmentDescriptor, Dict[str, Any]],
        trace_id: Optional[str] = None,
    ) -> AttachmentModel:
        """Append an attachment. Removal is only possible through ``edit``."""
        if not isinstance(descriptor, AttachmentDescriptor):
            try:
                descriptor = AttachmentDescriptor.model_validate(descriptor)
            except ValueError as e:
                raise ValidationError(f"Invalid attachment: {e}", artifact_id=artifact_id)

        artifact = self._load(artifact_id)
        self._require_creator(artifact, actor, "attach files to")
        if state_machine.is_terminal(artifact.status):
            raise InvalidStateError(artifact_id, artifact.status, "attach files to")
        self._validate_attachment(descriptor)

        with self._transaction(artifact_id):
            now = utc_now()
            attachment = self._append_attachment(artifact, descriptor, actor, now)
            if artifact.status == ArtifactStatus.SENT_BACK.value:
                artifact.edited_since_sent_back = True
            artifact.updated_at = now
            self.audit.log_attachment(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                attachment=descriptor.model_dump(),
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )

        return attachment

    # ------------------------------------------------------------------
    # Reviewer and participant operations
    # ------------------------------------------------------------------

    def take_action(
        self,
        artifact_id: str,
        actor: Actor,
        action: Union[Action, str],
        comment: Optional[str] = None,
        expected_version: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> ArtifactModel:
        """Apply a reviewer decision (approve, reject, sendBack, requestSignature).

        Checks run in a fixed order: transition legality, then reviewer
        authorization, then the comment requirement.
        """
        try:
            action = Action(action)
        except ValueError:
            raise ValidationError(f"Unknown action: {action!r}", artifact_id=artifact_id)
        if action not in REVIEWER_ACTIONS:
            raise ValidationError(
                f"'{action.value}' is not a reviewer action", artifact_id=artifact_id
            )

        artifact = self._load(artifact_id, expected_version)
        old_status = artifact.status
        if not state_machine.can_transition(old_status, action):
            raise InvalidTransitionError(artifact_id, old_status, action.value)

        mine = [s for s in artifact.recipients if _slot_recipient(s).matches(actor)]
        if not mine:
            raise AuthorizationError(
                f"{actor.actor_id} is not a reviewer of this artifact",
                artifact_id=artifact_id,
            )
        open_slots = [s for s in mine if s.status == SlotStatus.PENDING.value]
        if not open_slots:
            raise InvalidTransitionError(artifact_id, mine[0].status, action.value)

        remark = (comment or "").strip()
        if action in state_machine.COMMENT_REQUIRED and not remark:
            raise ValidationError(
                f"A comment is required to {action.value}", artifact_id=artifact_id
            )

        with self._transaction(artifact_id):
            now = utc_now()
            outcome = state_machine.SLOT_OUTCOMES[action]
            default_text = ACTION_LABELS[action]
            if action == Action.REQUEST_SIGNATURE and artifact.signature_provided:
                # A signature is written once; a later request is settled by it
                outcome = SlotStatus.APPROVED
                default_text = SIGNATURE_ON_FILE
            for slot in open_slots:
                slot.status = outcome.value
                slot.acted_by = actor.actor_id
                slot.action_comment = remark or None
                slot.acted_at = now
                if action == Action.REQUEST_SIGNATURE:
                    slot.signature_requested = True
            if action == Action.REQUEST_SIGNATURE:
                artifact.requires_signature = True

            artifact.status = self._aggregate(artifact).value
            self._append_comment(
                artifact, actor, remark or default_text, now, action=action
            )
            artifact.updated_at = now
            self.audit.log_status_change(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                old_status=old_status,
                new_status=artifact.status,
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                note=f"{action.value} by {actor.actor_id}",
                trace_id=trace_id,
            )

        logger.info(
            "Reviewer action applied",
            artifact_id=artifact_id,
            action=action.value,
            actor_id=actor.actor_id,
            old_status=old_status,
            new_status=artifact.status,
        )
        self._notify(artifact, action.value, actor, old_status, remark or None)
        return artifact

    def add_comment(
        self,
        artifact_id: str,
        actor: Actor,
        text: str,
        trace_id: Optional[str] = None,
    ) -> CommentModel:
        """Append a remark to the trail. Never changes the status."""
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text must not be empty", artifact_id=artifact_id)

        artifact = self._load(artifact_id)
        if not self._is_participant(artifact, actor):
            raise AuthorizationError(
                f"{actor.actor_id} is not a participant of this artifact",
                artifact_id=artifact_id,
            )

        with self._transaction(artifact_id):
            now = utc_now()
            comment = self._append_comment(artifact, actor, text, now)
            artifact.updated_at = now
            self.db.flush()
            self.audit.log_comment(
                entity_kind=ENTITY_KIND,
                entity_id=artifact_id,
                seq=comment.seq,
                actor_role=_role_value(actor),
                actor_id=actor.actor_id,
                trace_id=trace_id,
            )

        return comment
