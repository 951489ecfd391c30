"""
Artifact approval workflow.

The state machine, schemas and typed errors are importable from here.
The database-backed service lives in ``docflow.workflow.services``.
"""

from .enums import (
    REVIEWER_ACTIONS,
    Action,
    ArtifactKind,
    ArtifactStatus,
    Category,
    Priority,
    RecipientKind,
    Role,
    SignatureType,
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
    WorkflowError,
)
from .primitives import Actor, Recipient, generate_ulid, utc_now
from .schemas import (
    ActionRequest,
    Artifact,
    ArtifactCreate,
    ArtifactPatch,
    AttachmentDescriptor,
    Comment,
    SignaturePayload,
)
from .state_machine import (
    TERMINAL_STATES,
    TRANSITIONS,
    aggregate_status,
    allowed_actions,
    can_transition,
    next_status,
)

__all__ = [
    # Enums
    "Action",
    "ArtifactKind",
    "ArtifactStatus",
    "Category",
    "Priority",
    "RecipientKind",
    "REVIEWER_ACTIONS",
    "Role",
    "SignatureType",
    "SlotStatus",
    # Errors
    "AuthorizationError",
    "ConflictError",
    "DuplicateSignatureError",
    "InvalidStateError",
    "InvalidTransitionError",
    "NotFoundError",
    "ValidationError",
    "WorkflowError",
    # Primitives
    "Actor",
    "Recipient",
    "generate_ulid",
    "utc_now",
    # Schemas
    "ActionRequest",
    "Artifact",
    "ArtifactCreate",
    "ArtifactPatch",
    "AttachmentDescriptor",
    "Comment",
    "SignaturePayload",
    # State machine
    "TERMINAL_STATES",
    "TRANSITIONS",
    "aggregate_status",
    "allowed_actions",
    "can_transition",
    "next_status",
]
